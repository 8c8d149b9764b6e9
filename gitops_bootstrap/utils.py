# /*
# Copyright 2026 The k3d-gitops-bootstrap Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Utility functions for kubectl invocation, command lookup, and secret decoding."""

from __future__ import annotations

import base64
import subprocess

import sh

from gitops_bootstrap.constants import KUBECTL_TIMEOUT_SECONDS


def resolve_command(cmd: str) -> str | None:
    """Look up a command on the system PATH.

    Args:
        cmd: Name of the CLI command.

    Returns:
        Absolute path of the executable, or None if it is not installed.
    """
    try:
        return str(sh.Command(cmd))
    except sh.CommandNotFound:
        return None


def run_kubectl(
    args: list[str],
    timeout: int = KUBECTL_TIMEOUT_SECONDS,
    context: str | None = None,
    stdin: str | None = None,
) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Uses subprocess instead of sh because callers inspect stderr separately
    (e.g. to tell ``NotFound`` apart from a real failure).

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "default"]``).
        timeout: Maximum seconds to wait for the command to complete.
        context: kubeconfig context to target, or None for the current one.
        stdin: Text written to kubectl's standard input.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    cmd = ["kubectl"]
    if context:
        cmd += ["--context", context]
    try:
        result = subprocess.run(
            [*cmd, *args],
            input=stdin,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def is_not_found(stderr: str) -> bool:
    """Return whether kubectl stderr reports a missing object."""
    return "NotFound" in stderr or "not found" in stderr


def decode_secret_data(data: dict[str, str] | None) -> dict[str, str]:
    """Base64-decode the ``data`` map of a Kubernetes secret.

    Args:
        data: Secret ``data`` field, or None when the secret has no data.

    Returns:
        Mapping of key to decoded UTF-8 value.
    """
    return {key: base64.b64decode(value).decode() for key, value in (data or {}).items()}
