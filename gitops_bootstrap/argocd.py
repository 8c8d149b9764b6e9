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

"""Argo CD installation, credentials, exposure, and application registration."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from rich.markup import escape
from rich.panel import Panel

from gitops_bootstrap import console, logger
from gitops_bootstrap.checks import namespace_ready, pods_ready, secret_available
from gitops_bootstrap.config import ArgoCDConfig, PollPolicy
from gitops_bootstrap.constants import (
    ARGOCD_ADMIN_USER,
    ARGOCD_APP_API_VERSION,
    ARGOCD_FORWARD_LOCAL_PORT,
    ARGOCD_IN_CLUSTER_SERVER,
    ARGOCD_PASSWORD_KEY,
    ARGOCD_SERVER_HTTPS_PORT_NAME,
    ARGOCD_SERVER_SERVICE,
    NAMESPACE_READY_POLL_INTERVAL_SECONDS,
    NAMESPACE_READY_TIMEOUT_SECONDS,
)
from gitops_bootstrap.interfaces import ClusterHandle, OrchestrationApi
from gitops_bootstrap.poller import Success, TimedOut, poll, require_success


@dataclass(frozen=True)
class ArgoCDCredentials:
    """Initial Argo CD admin login."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class AccessInfo:
    """Everything needed to reach the Argo CD UI after setup.

    Attributes:
        cluster: Handle of the cluster Argo CD runs in.
        namespace: Argo CD namespace.
        dev_namespace: Namespace the application deploys into.
        node_port: NodePort of the server's https port, or None if unknown.
        credentials: Initial admin credentials.
        server_service: Name of the Argo CD server service.
    """

    cluster: ClusterHandle
    namespace: str
    dev_namespace: str
    node_port: int | None
    credentials: ArgoCDCredentials
    server_service: str = ARGOCD_SERVER_SERVICE

    @property
    def port_forward_command(self) -> str:
        return (f"kubectl --context {self.cluster.context} port-forward svc/{self.server_service} "
                f"-n {self.namespace} {ARGOCD_FORWARD_LOCAL_PORT}:443")


# ============================================================================
# Namespaces
# ============================================================================

def namespace_manifest(name: str) -> dict[str, Any]:
    return {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": name}}


def create_namespaces(api: OrchestrationApi, namespaces: list[str]) -> None:
    """Apply each namespace idempotently and wait until it exists.

    Args:
        api: Orchestration API of the target cluster.
        namespaces: Namespace names to create.

    Raises:
        ReadinessTimeout: If a namespace does not appear in time.
    """
    console.print(Panel.fit("Creating namespaces", style="bold blue"))
    policy = PollPolicy(interval=NAMESPACE_READY_POLL_INTERVAL_SECONDS,
                        max_duration=NAMESPACE_READY_TIMEOUT_SECONDS)
    for name in namespaces:
        console.print(f"[yellow]\u2139\ufe0f  Creating namespace '{name}'...[/yellow]")
        api.apply_manifest(namespace_manifest(name))
        require_success(poll(namespace_ready(api, name), policy))
    console.print("[green]\u2705 Namespaces created successfully[/green]")
    console.print(api.get_table("namespaces").rstrip())


# ============================================================================
# Argo CD install
# ============================================================================

def wait_for_pods(api: OrchestrationApi, namespace: str, policy: PollPolicy) -> bool:
    """Wait for every pod in *namespace* to be Ready.

    A timeout is advisory: a warning and the current pod table are printed
    and the caller carries on.

    Returns:
        True if all pods became ready within the policy's duration.
    """
    console.print(f"[yellow]\u2139\ufe0f  Waiting for all pods in namespace '{namespace}' to be ready "
                  f"(timeout: {policy.max_duration:.0f}s)...[/yellow]")
    outcome = poll(pods_ready(api, namespace), policy)
    if isinstance(outcome, Success):
        console.print(f"[green]\u2705 {outcome.payload} pods ready in '{namespace}'[/green]")
        return True
    detail = outcome.last_state if isinstance(outcome, TimedOut) else str(outcome.error)
    console.print(f"[yellow]\u26a0\ufe0f  Some pods may not be ready yet ({detail}). Checking status...[/yellow]")
    console.print(api.get_table("pods", namespace).rstrip())
    return False


def install_argocd(api: OrchestrationApi, cfg: ArgoCDConfig) -> bool:
    """Apply the Argo CD install manifest and wait for its pods.

    Args:
        api: Orchestration API of the target cluster.
        cfg: Argo CD configuration.

    Returns:
        True if all Argo CD pods became ready in time.
    """
    console.print(Panel.fit("Installing Argo CD", style="bold blue"))
    console.print(f"[yellow]\u2139\ufe0f  Installing Argo CD in namespace '{cfg.namespace}'...[/yellow]")
    api.apply_url(cfg.install_manifest, namespace=cfg.namespace)

    if cfg.settle_seconds:
        logger.debug("Giving Argo CD %ss to create its pods", cfg.settle_seconds)
        time.sleep(cfg.settle_seconds)
    ready = wait_for_pods(api, cfg.namespace, cfg.pod_policy())
    console.print("[green]\u2705 Argo CD installed[/green]")
    return ready


# ============================================================================
# Access
# ============================================================================

def retrieve_credentials(api: OrchestrationApi, cfg: ArgoCDConfig) -> ArgoCDCredentials:
    """Wait for the initial admin secret and return the decoded login.

    Raises:
        ReadinessTimeout: If the secret does not appear within the secret timeout.
    """
    console.print(Panel.fit("Configuring Argo CD access", style="bold blue"))
    console.print("[yellow]\u2139\ufe0f  Retrieving Argo CD admin password...[/yellow]")
    check = secret_available(api, cfg.namespace, cfg.admin_secret, ARGOCD_PASSWORD_KEY)
    password = require_success(poll(check, cfg.secret_policy()))
    return ArgoCDCredentials(username=ARGOCD_ADMIN_USER, password=password)


def expose_server(api: OrchestrationApi, cfg: ArgoCDConfig) -> None:
    """Switch the Argo CD server service to NodePort."""
    console.print("[yellow]\u2139\ufe0f  Patching Argo CD server service for external access...[/yellow]")
    api.patch_service_type(cfg.namespace, cfg.server_service, "NodePort")
    console.print("[green]\u2705 Argo CD access configured[/green]")


def server_node_port(api: OrchestrationApi, cfg: ArgoCDConfig) -> int | None:
    """Return the NodePort of the server's https port, or None if unavailable."""
    service = api.get_service(cfg.namespace, cfg.server_service)
    if service is None:
        return None
    for port in service.get("spec", {}).get("ports", []):
        if port.get("name") == ARGOCD_SERVER_HTTPS_PORT_NAME and port.get("nodePort"):
            return int(port["nodePort"])
    return None


# ============================================================================
# Application
# ============================================================================

def application_manifest(cfg: ArgoCDConfig) -> dict[str, Any]:
    """Build an Argo CD Application that syncs *cfg.repo_url* into the dev namespace.

    Args:
        cfg: Argo CD configuration with repository settings.

    Returns:
        Application resource as a dictionary ready for YAML serialization.
    """
    return {
        "apiVersion": ARGOCD_APP_API_VERSION,
        "kind": "Application",
        "metadata": {"name": cfg.app_name, "namespace": cfg.namespace},
        "spec": {
            "project": "default",
            "source": {
                "repoURL": cfg.repo_url,
                "targetRevision": cfg.target_revision,
                "path": cfg.repo_path,
            },
            "destination": {"server": ARGOCD_IN_CLUSTER_SERVER, "namespace": cfg.dev_namespace},
            "syncPolicy": {
                "automated": {"prune": True, "selfHeal": True},
                "syncOptions": ["CreateNamespace=true"],
            },
        },
    }


def deploy_application(api: OrchestrationApi, cfg: ArgoCDConfig) -> bool:
    """Register the Argo CD application.

    The manifest file wins when it exists; otherwise one is generated from
    the configured repository URL.

    Returns:
        True if an application was applied.
    """
    console.print(Panel.fit("Deploying Argo CD application", style="bold blue"))
    if cfg.app_manifest.is_file():
        console.print(f"[yellow]\u2139\ufe0f  Applying application manifest {cfg.app_manifest}...[/yellow]")
        api.apply_file(cfg.app_manifest)
    elif cfg.repo_url:
        console.print(f"[yellow]\u2139\ufe0f  Registering application '{escape(cfg.app_name)}' "
                      f"for {escape(cfg.repo_url)}...[/yellow]")
        api.apply_manifest(application_manifest(cfg), namespace=cfg.namespace)
    else:
        console.print(f"[yellow]\u26a0\ufe0f  Application configuration not found at: {cfg.app_manifest}[/yellow]")
        console.print("[yellow]   Create it and run: "
                      f"kubectl apply -f {cfg.app_manifest}, or pass --repo-url[/yellow]")
        return False
    console.print("[green]\u2705 Argo CD application deployed[/green]")
    return True


def show_access_info(info: AccessInfo) -> None:
    """Print how to reach the Argo CD UI and a few useful commands."""
    lines = [
        "[bold]Argo CD UI[/bold]",
        "  Port-forward (recommended):",
        f"    {info.port_forward_command}",
        f"    Then open: https://localhost:{ARGOCD_FORWARD_LOCAL_PORT}",
    ]
    if info.node_port is not None:
        lines += ["  NodePort:", f"    https://localhost:{info.node_port}"]
    lines += [
        "",
        "[bold]Credentials[/bold]",
        f"  Username: {escape(info.credentials.username)}",
        f"  Password: {escape(info.credentials.password)}",
        "",
        "[bold]Useful commands[/bold]",
        f"  kubectl --context {info.cluster.context} get pods -n {info.namespace}",
        f"  kubectl --context {info.cluster.context} get all -n {info.dev_namespace}",
        f"  k3d cluster delete {info.cluster.name}",
    ]
    console.print(Panel("\n".join(lines), title="Setup complete", style="green"))
