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

"""Configuration classes and the poll policy."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitops_bootstrap.constants import (
    ARGOCD_ADMIN_SECRET,
    ARGOCD_SERVER_SERVICE,
    CLUSTER_READY_POLL_INTERVAL_SECONDS,
    CLUSTER_READY_TIMEOUT_SECONDS,
    DEFAULT_AGENTS,
    DEFAULT_APP_MANIFEST,
    DEFAULT_APP_NAME,
    DEFAULT_ARCH,
    DEFAULT_ARGOCD_INSTALL_MANIFEST,
    DEFAULT_ARGOCD_NAMESPACE,
    DEFAULT_CLUSTER_CREATE_MAX_RETRIES,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_DEV_NAMESPACE,
    DEFAULT_HTTP_PORT,
    DEFAULT_HTTPS_PORT,
    DEFAULT_INSTALL_DIR,
    DEFAULT_REPO_PATH,
    DEFAULT_SERVERS,
    DEFAULT_TARGET_REVISION,
    POD_READY_POLL_INTERVAL_SECONDS,
    POD_READY_TIMEOUT_SECONDS,
    POD_SETTLE_SECONDS,
    SECRET_READY_POLL_INTERVAL_SECONDS,
    SECRET_READY_TIMEOUT_SECONDS,
)


# ============================================================================
# Poll policy
# ============================================================================

@dataclass(frozen=True)
class PollPolicy:
    """How a readiness check is retried.

    Attributes:
        interval: Seconds to sleep between attempts. Fixed, no backoff.
        max_duration: Seconds after the first attempt at which a not-ready
            check is reported as timed out.
        errors_fatal: Whether a hard error from the predicate ends the poll
            immediately. When False, hard errors count as "not ready".
    """

    interval: float
    max_duration: float
    errors_fatal: bool = True

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")
        if self.max_duration < 0:
            raise ValueError(f"max_duration must be >= 0, got {self.max_duration}")
        # A zero interval is only meaningful for single-attempt policies.
        if self.interval == 0 and self.max_duration > 0:
            raise ValueError(f"interval must be > 0 when max_duration is {self.max_duration}")

    @classmethod
    def once(cls, errors_fatal: bool = True) -> PollPolicy:
        """Policy that evaluates the check exactly once."""
        return cls(interval=0, max_duration=0, errors_fatal=errors_fatal)


# ============================================================================
# Configuration classes
# ============================================================================

class ClusterConfig(BaseSettings):
    """k3d cluster configuration, auto-loaded from GITOPS_* env vars.

    Attributes:
        cluster_name: Name of the k3d cluster.
        servers: Number of k3s server nodes.
        agents: Number of k3s agent nodes.
        http_port: Host port mapped to the load balancer's port 80.
        https_port: Host port mapped to the load balancer's port 443.
        max_retries: Maximum cluster creation attempts.
        ready_timeout: Seconds to wait for the new cluster to be listed.
        ready_interval: Seconds between cluster listing checks.
    """

    model_config = SettingsConfigDict(env_prefix="GITOPS_", extra="ignore")

    cluster_name: str = Field(default=DEFAULT_CLUSTER_NAME, pattern=r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
    servers: int = Field(default=DEFAULT_SERVERS, ge=1, le=7)
    agents: int = Field(default=DEFAULT_AGENTS, ge=0, le=50)
    http_port: int = Field(default=DEFAULT_HTTP_PORT, ge=1, le=65535)
    https_port: int = Field(default=DEFAULT_HTTPS_PORT, ge=1, le=65535)
    max_retries: int = Field(default=DEFAULT_CLUSTER_CREATE_MAX_RETRIES, ge=1, le=10)
    ready_timeout: float = Field(default=CLUSTER_READY_TIMEOUT_SECONDS, ge=0)
    ready_interval: float = Field(default=CLUSTER_READY_POLL_INTERVAL_SECONDS, gt=0)

    def ready_policy(self) -> PollPolicy:
        return PollPolicy(interval=self.ready_interval, max_duration=self.ready_timeout, errors_fatal=False)


class ArgoCDConfig(BaseSettings):
    """Argo CD install and application settings, auto-loaded from GITOPS_* env vars.

    Attributes:
        namespace: Namespace Argo CD is installed into.
        dev_namespace: Namespace the application deploys into.
        install_manifest: URL or path of the Argo CD install manifest.
        admin_secret: Name of the secret holding the initial admin password.
        server_service: Name of the Argo CD server service.
        pod_timeout: Seconds to wait for Argo CD pods to become ready.
        pod_interval: Seconds between pod readiness checks.
        settle_seconds: Seconds to wait after applying the manifest before
            the first pod check, so the pods exist.
        secret_timeout: Seconds to wait for the admin secret.
        secret_interval: Seconds between admin secret checks.
        app_manifest: Application manifest applied when present.
        app_name: Name of the generated Application.
        repo_url: Manifest repository URL for the generated Application,
            or None to skip generation.
        repo_path: Path inside the repository to sync.
        target_revision: Git revision to track.
    """

    model_config = SettingsConfigDict(env_prefix="GITOPS_", extra="ignore")

    namespace: str = DEFAULT_ARGOCD_NAMESPACE
    dev_namespace: str = DEFAULT_DEV_NAMESPACE
    install_manifest: str = DEFAULT_ARGOCD_INSTALL_MANIFEST
    admin_secret: str = ARGOCD_ADMIN_SECRET
    server_service: str = ARGOCD_SERVER_SERVICE
    pod_timeout: float = Field(default=POD_READY_TIMEOUT_SECONDS, ge=0)
    pod_interval: float = Field(default=POD_READY_POLL_INTERVAL_SECONDS, gt=0)
    settle_seconds: float = Field(default=POD_SETTLE_SECONDS, ge=0)
    secret_timeout: float = Field(default=SECRET_READY_TIMEOUT_SECONDS, ge=0)
    secret_interval: float = Field(default=SECRET_READY_POLL_INTERVAL_SECONDS, gt=0)
    app_manifest: Path = Path(DEFAULT_APP_MANIFEST)
    app_name: str = DEFAULT_APP_NAME
    repo_url: str | None = None
    repo_path: str = DEFAULT_REPO_PATH
    target_revision: str = DEFAULT_TARGET_REVISION

    def pod_policy(self) -> PollPolicy:
        return PollPolicy(interval=self.pod_interval, max_duration=self.pod_timeout, errors_fatal=False)

    def secret_policy(self) -> PollPolicy:
        return PollPolicy(interval=self.secret_interval, max_duration=self.secret_timeout, errors_fatal=False)


class ToolsConfig(BaseSettings):
    """Tool installation settings, auto-loaded from GITOPS_* env vars.

    Attributes:
        arch: CPU architecture used in download URLs.
        install_dir: Directory binaries are installed into.
    """

    model_config = SettingsConfigDict(env_prefix="GITOPS_", extra="ignore")

    arch: str = Field(default=DEFAULT_ARCH, pattern=r"^(amd64|arm64)$")
    install_dir: str = DEFAULT_INSTALL_DIR
