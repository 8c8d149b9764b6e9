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

"""setup and status subcommands."""

from __future__ import annotations

from pathlib import Path

import typer

from gitops_bootstrap.commands import load_settings
from gitops_bootstrap.config import ArgoCDConfig, ClusterConfig
from gitops_bootstrap.orchestrator import run_setup, run_status


def setup(
    cluster_name: str | None = typer.Option(None, "--cluster-name", help="k3d cluster name"),
    agents: int | None = typer.Option(None, "--agents", help="Number of k3s agent nodes"),
    recreate: bool | None = typer.Option(
        None, "--recreate/--reuse", help="Recreate or reuse an existing cluster (default: ask)"),
    repo_url: str | None = typer.Option(
        None, "--repo-url", help="Manifest repository for the generated Argo CD application"),
    repo_path: str | None = typer.Option(None, "--repo-path", help="Path inside the manifest repository"),
    app_manifest: Path | None = typer.Option(
        None, "--app-manifest", help="Argo CD application manifest to apply"),
    pod_timeout: float | None = typer.Option(
        None, "--pod-timeout", help="Seconds to wait for Argo CD pods"),
    skip_preflight: bool = typer.Option(
        False, "--skip-preflight", help="Skip tool and Docker daemon checks"),
) -> None:
    """Create the k3d cluster, install Argo CD, and register the application."""
    cluster_cfg = load_settings(ClusterConfig, cluster_name=cluster_name, agents=agents)
    argocd_cfg = load_settings(
        ArgoCDConfig,
        repo_url=repo_url,
        repo_path=repo_path,
        app_manifest=app_manifest,
        pod_timeout=pod_timeout,
    )

    def _confirm(prompt: str) -> bool:
        if recreate is not None:
            return recreate
        return typer.confirm(prompt, default=False)

    run_setup(cluster_cfg, argocd_cfg, confirm=_confirm, skip_preflight=skip_preflight)


def status(
    cluster_name: str | None = typer.Option(None, "--cluster-name", help="k3d cluster name"),
) -> None:
    """Show whether the cluster exists and whether its pods are ready."""
    run_status(load_settings(ClusterConfig, cluster_name=cluster_name), load_settings(ArgoCDConfig))
