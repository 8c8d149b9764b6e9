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

"""Preflight checks and k3d cluster lifecycle."""

from __future__ import annotations

from collections.abc import Callable

import docker
import sh
from rich.panel import Panel

from gitops_bootstrap import console
from gitops_bootstrap.checks import cluster_exists, tool_installed
from gitops_bootstrap.config import ClusterConfig, PollPolicy
from gitops_bootstrap.constants import PREFLIGHT_TOOLS
from gitops_bootstrap.errors import BootstrapError, PreconditionError
from gitops_bootstrap.interfaces import ClusterHandle, ClusterManager, OrchestrationApi
from gitops_bootstrap.poller import Failed, poll, require_success

Confirm = Callable[[str], bool]


# ============================================================================
# Preflight
# ============================================================================

def require_tools(tools: tuple[str, ...] | list[str]) -> None:
    """Check that every tool in *tools* is on PATH.

    Args:
        tools: Command names to look up.

    Raises:
        PreconditionError: On the first missing tool.
    """
    for cmd in tools:
        outcome = poll(tool_installed(cmd), PollPolicy.once())
        if not outcome.ok:
            raise PreconditionError(f"{cmd} is not installed. Run 'gitops-bootstrap install' first.")


def check_docker_daemon() -> None:
    """Ping the Docker daemon.

    Raises:
        PreconditionError: If the daemon cannot be reached.
    """
    try:
        client = docker.from_env()
    except docker.errors.DockerException as err:
        raise PreconditionError(
            "Docker daemon is not running. Please start Docker (try: sudo systemctl start docker)."
        ) from err
    try:
        client.ping()
    except docker.errors.DockerException as err:
        raise PreconditionError(
            "Docker daemon is not responding. Please start Docker (try: sudo systemctl start docker)."
        ) from err
    finally:
        client.close()


def preflight_checks() -> None:
    """Verify the toolchain and the Docker daemon before touching any cluster."""
    console.print(Panel.fit("Pre-flight checks", style="bold blue"))
    require_tools(PREFLIGHT_TOOLS)
    check_docker_daemon()
    console.print("[green]\u2705 All pre-flight checks passed[/green]")


# ============================================================================
# Cluster operations
# ============================================================================

def cluster_is_listed(manager: ClusterManager, name: str) -> bool:
    """Single-shot cluster-exists check.

    Raises:
        PreconditionError: If the cluster manager cannot list clusters.
    """
    outcome = poll(cluster_exists(manager, name), PollPolicy.once())
    if isinstance(outcome, Failed):
        raise PreconditionError(str(outcome.error)) from outcome.error
    return outcome.ok


def create_cluster(manager: ClusterManager, cfg: ClusterConfig) -> ClusterHandle:
    """Create the cluster and wait until the cluster manager lists it.

    Args:
        manager: Cluster manager used to create and list clusters.
        cfg: Cluster configuration.

    Returns:
        Handle of the new cluster.

    Raises:
        BootstrapError: If creation fails after all retries.
        ReadinessTimeout: If the cluster is not listed within the ready timeout.
    """
    console.print(f"[yellow]\u2139\ufe0f  Creating k3d cluster '{cfg.cluster_name}' "
                  f"({cfg.servers} server, {cfg.agents} agents)...[/yellow]")
    try:
        handle = manager.create_cluster(cfg)
    except sh.ErrorReturnCode as err:
        detail = err.stderr.decode(errors="replace").strip()[-300:]
        raise BootstrapError(f"Failed to create cluster '{cfg.cluster_name}': {detail}") from err

    require_success(poll(cluster_exists(manager, cfg.cluster_name), cfg.ready_policy()))
    console.print(f"[green]\u2705 Cluster '{cfg.cluster_name}' created successfully[/green]")
    return handle


def ensure_cluster(manager: ClusterManager, cfg: ClusterConfig, confirm: Confirm) -> ClusterHandle:
    """Return a handle to the configured cluster, creating it when needed.

    When the cluster already exists, *confirm* decides between deleting and
    recreating it or reusing it as is.

    Args:
        manager: Cluster manager used to list, create and delete clusters.
        cfg: Cluster configuration.
        confirm: Callback asked whether to recreate an existing cluster.

    Returns:
        Handle of the created or reused cluster.
    """
    console.print(Panel.fit("Creating k3d cluster", style="bold blue"))
    if cluster_is_listed(manager, cfg.cluster_name):
        console.print(f"[yellow]\u26a0\ufe0f  Cluster '{cfg.cluster_name}' already exists[/yellow]")
        if not confirm("Do you want to delete and recreate it?"):
            console.print("[yellow]\u2139\ufe0f  Using existing cluster[/yellow]")
            return manager.handle_for(cfg.cluster_name)
        console.print("[yellow]\u2139\ufe0f  Deleting existing cluster...[/yellow]")
        manager.delete_cluster(cfg.cluster_name)
    return create_cluster(manager, cfg)


def show_cluster(api: OrchestrationApi) -> None:
    """Print control plane endpoints and nodes of the cluster behind *api*."""
    console.print("[yellow]\u2139\ufe0f  Verifying cluster status...[/yellow]")
    console.print(api.cluster_info().rstrip())
    console.print("[yellow]\u2139\ufe0f  Cluster nodes:[/yellow]")
    console.print(api.get_table("nodes").rstrip())


def delete_cluster(manager: ClusterManager, cfg: ClusterConfig, confirm: Confirm) -> bool:
    """Delete the configured cluster after confirmation.

    Args:
        manager: Cluster manager used to list and delete clusters.
        cfg: Cluster configuration with the cluster name.
        confirm: Callback asked before deleting.

    Returns:
        True if the cluster was deleted.
    """
    if not cluster_is_listed(manager, cfg.cluster_name):
        console.print(f"[yellow]\u26a0\ufe0f  Cluster '{cfg.cluster_name}' not found[/yellow]")
        return False

    console.print(f"[yellow]\u2139\ufe0f  Found cluster '{cfg.cluster_name}'[/yellow]")
    if not confirm("Are you sure you want to delete the cluster?"):
        console.print("[yellow]\u2139\ufe0f  Cluster deletion cancelled[/yellow]")
        return False

    console.print(f"[yellow]\u2139\ufe0f  Deleting k3d cluster '{cfg.cluster_name}'...[/yellow]")
    try:
        manager.delete_cluster(cfg.cluster_name)
    except sh.ErrorReturnCode as err:
        detail = err.stderr.decode(errors="replace").strip()[-300:]
        raise BootstrapError(f"Failed to delete cluster '{cfg.cluster_name}': {detail}") from err
    console.print(f"[green]\u2705 Cluster '{cfg.cluster_name}' deleted[/green]")
    return True
