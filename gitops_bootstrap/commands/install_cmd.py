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

"""install subcommand (docker, kubectl, k3d, argocd)."""

from __future__ import annotations

import typer

from gitops_bootstrap.commands import load_settings
from gitops_bootstrap.config import ToolsConfig
from gitops_bootstrap.constants import INSTALLABLE_TOOLS
from gitops_bootstrap.orchestrator import run_install


def install(
    tools: list[str] | None = typer.Argument(
        None, help=f"Tools to install (default: {', '.join(INSTALLABLE_TOOLS)})"),
    arch: str | None = typer.Option(None, "--arch", help="CPU architecture for downloads (amd64, arm64)"),
    install_dir: str | None = typer.Option(None, "--install-dir", help="Directory to install binaries into"),
) -> None:
    """Install the toolchain, skipping tools that are already on PATH."""
    tools_cfg = load_settings(ToolsConfig, arch=arch, install_dir=install_dir)

    unknown = [t for t in tools or [] if t not in INSTALLABLE_TOOLS]
    if unknown:
        raise typer.BadParameter(f"unknown tool(s): {', '.join(unknown)}", param_hint="TOOLS")
    run_install(tools_cfg, list(tools) if tools else None)
