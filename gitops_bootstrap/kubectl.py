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

"""kubectl-backed orchestration API bound to a single cluster context."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from gitops_bootstrap.errors import BootstrapError
from gitops_bootstrap.interfaces import ClusterHandle, OrchestrationApi
from gitops_bootstrap.utils import decode_secret_data, is_not_found, run_kubectl

# Remote manifests (e.g. the Argo CD install bundle) can take a while to download and apply.
APPLY_REMOTE_TIMEOUT_SECONDS = 300


class KubectlApi(OrchestrationApi):
    """Runs kubectl against the context of *handle*.

    Every call passes ``--context`` explicitly, so the current kubeconfig
    context is never consulted.
    """

    def __init__(self, handle: ClusterHandle) -> None:
        self.handle = handle

    def _run(self, args: list[str], **kwargs: Any) -> str:
        ok, stdout, stderr = run_kubectl(args, context=self.handle.context, **kwargs)
        if not ok:
            raise BootstrapError(f"kubectl {' '.join(args[:3])} failed: {stderr.strip()[:300]}")
        return stdout

    def _get_json(self, args: list[str]) -> dict[str, Any] | None:
        ok, stdout, stderr = run_kubectl([*args, "-o", "json"], context=self.handle.context)
        if not ok:
            if is_not_found(stderr):
                return None
            raise BootstrapError(f"kubectl {' '.join(args[:3])} failed: {stderr.strip()[:300]}")
        return json.loads(stdout)

    def cluster_info(self) -> str:
        return self._run(["cluster-info"])

    def namespace_exists(self, name: str) -> bool:
        return self._get_json(["get", "namespace", name]) is not None

    def apply_manifest(self, manifest: dict[str, Any], namespace: str | None = None) -> None:
        args = ["apply", "-f", "-"]
        if namespace:
            args += ["-n", namespace]
        self._run(args, stdin=yaml.safe_dump(manifest, default_flow_style=False))

    def apply_url(self, url: str, namespace: str | None = None) -> None:
        args = ["apply", "-f", url]
        if namespace:
            args += ["-n", namespace]
        self._run(args, timeout=APPLY_REMOTE_TIMEOUT_SECONDS)

    def apply_file(self, path: Path) -> None:
        self._run(["apply", "-f", str(path)])

    def get_secret_data(self, namespace: str, name: str) -> dict[str, str] | None:
        secret = self._get_json(["get", "secret", name, "-n", namespace])
        if secret is None:
            return None
        return decode_secret_data(secret.get("data"))

    def list_pods(self, namespace: str) -> list[dict[str, Any]]:
        pods = self._get_json(["get", "pods", "-n", namespace])
        return (pods or {}).get("items", [])

    def get_service(self, namespace: str, name: str) -> dict[str, Any] | None:
        return self._get_json(["get", "service", name, "-n", namespace])

    def patch_service_type(self, namespace: str, name: str, service_type: str) -> None:
        patch = json.dumps({"spec": {"type": service_type}})
        self._run(["patch", "service", name, "-n", namespace, "-p", patch])

    def get_table(self, resource: str, namespace: str | None = None) -> str:
        args = ["get", resource]
        if namespace:
            args += ["-n", namespace]
        return self._run(args)
