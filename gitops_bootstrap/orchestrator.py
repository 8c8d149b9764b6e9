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

"""Orchestration functions that compose domain modules into workflows."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from rich.panel import Panel
from rich.table import Table

from gitops_bootstrap import console
from gitops_bootstrap.argocd import (
    AccessInfo,
    create_namespaces,
    deploy_application,
    expose_server,
    install_argocd,
    retrieve_credentials,
    server_node_port,
    show_access_info,
)
from gitops_bootstrap.checks import pods_ready
from gitops_bootstrap.cluster import (
    Confirm,
    cluster_is_listed,
    delete_cluster,
    ensure_cluster,
    preflight_checks,
    show_cluster,
)
from gitops_bootstrap.config import ArgoCDConfig, ClusterConfig, PollPolicy, ToolsConfig
from gitops_bootstrap.installer import install_tools
from gitops_bootstrap.interfaces import ClusterHandle, ClusterManager, OrchestrationApi
from gitops_bootstrap.k3d import K3dClusterManager
from gitops_bootstrap.kubectl import KubectlApi
from gitops_bootstrap.poller import Success, TimedOut, poll

ApiFactory = Callable[[ClusterHandle], OrchestrationApi]


@dataclass(frozen=True)
class NamespaceStatus:
    namespace: str
    ready: bool
    detail: str


def run_install(tools_cfg: ToolsConfig, tools: list[str] | None = None) -> list[str]:
    """Install the toolchain. Returns the names of newly installed tools."""
    return install_tools(tools_cfg, tools)


def run_setup(
    cluster_cfg: ClusterConfig,
    argocd_cfg: ArgoCDConfig,
    *,
    confirm: Confirm,
    cluster_manager: ClusterManager | None = None,
    api_factory: ApiFactory | None = None,
    skip_preflight: bool = False,
) -> AccessInfo:
    """Create the cluster, install Argo CD, and register the application.

    Args:
        cluster_cfg: k3d cluster configuration.
        argocd_cfg: Argo CD configuration.
        confirm: Callback asked whether to recreate an existing cluster.
        cluster_manager: Cluster manager, or None for k3d.
        api_factory: Builds the orchestration API for a cluster handle, or None for kubectl.
        skip_preflight: Whether to skip the toolchain and Docker daemon checks.

    Returns:
        Access information for the Argo CD UI.

    Raises:
        PreconditionError: If a required tool or the Docker daemon is missing.
        ReadinessTimeout: If the cluster, a namespace, or the admin secret never appears.
    """
    manager = cluster_manager or K3dClusterManager()
    make_api = api_factory or KubectlApi

    if not skip_preflight:
        preflight_checks()

    handle = ensure_cluster(manager, cluster_cfg, confirm)
    api = make_api(handle)
    show_cluster(api)

    create_namespaces(api, [argocd_cfg.namespace, argocd_cfg.dev_namespace])
    install_argocd(api, argocd_cfg)
    credentials = retrieve_credentials(api, argocd_cfg)
    expose_server(api, argocd_cfg)
    deploy_application(api, argocd_cfg)

    info = AccessInfo(
        cluster=handle,
        namespace=argocd_cfg.namespace,
        dev_namespace=argocd_cfg.dev_namespace,
        node_port=server_node_port(api, argocd_cfg),
        credentials=credentials,
        server_service=argocd_cfg.server_service,
    )
    show_access_info(info)
    return info


def run_cleanup(
    cluster_cfg: ClusterConfig,
    *,
    confirm: Confirm,
    cluster_manager: ClusterManager | None = None,
) -> bool:
    """Delete the cluster after confirmation. Returns True if it was deleted."""
    console.print(Panel.fit("Cleaning up", style="bold blue"))
    deleted = delete_cluster(cluster_manager or K3dClusterManager(), cluster_cfg, confirm)
    console.print("[green]\u2705 Cleanup complete[/green]")
    return deleted


def run_status(
    cluster_cfg: ClusterConfig,
    argocd_cfg: ArgoCDConfig,
    *,
    cluster_manager: ClusterManager | None = None,
    api_factory: ApiFactory | None = None,
) -> list[NamespaceStatus]:
    """Report cluster existence and pod readiness once, without waiting.

    Returns:
        One status per namespace, or an empty list if the cluster does not exist.
    """
    manager = cluster_manager or K3dClusterManager()
    if not cluster_is_listed(manager, cluster_cfg.cluster_name):
        console.print(f"[yellow]\u26a0\ufe0f  Cluster '{cluster_cfg.cluster_name}' not found[/yellow]")
        return []

    api = (api_factory or KubectlApi)(manager.handle_for(cluster_cfg.cluster_name))
    statuses = []
    for namespace in (argocd_cfg.namespace, argocd_cfg.dev_namespace):
        outcome = poll(pods_ready(api, namespace), PollPolicy.once())
        if isinstance(outcome, Success):
            detail = f"{outcome.payload} pods ready"
        elif isinstance(outcome, TimedOut):
            detail = outcome.last_state
        else:
            detail = f"error: {outcome.error}"
        statuses.append(NamespaceStatus(namespace=namespace, ready=outcome.ok, detail=detail))

    table = Table(title=f"Cluster '{cluster_cfg.cluster_name}'")
    table.add_column("Namespace")
    table.add_column("Ready")
    table.add_column("Detail")
    for status in statuses:
        table.add_row(status.namespace, "[green]yes[/green]" if status.ready else "[yellow]no[/yellow]",
                      status.detail)
    console.print(table)
    return statuses
