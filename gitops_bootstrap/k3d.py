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

"""k3d-backed cluster manager."""

from __future__ import annotations

import json

import sh
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from gitops_bootstrap import console, logger
from gitops_bootstrap.config import ClusterConfig
from gitops_bootstrap.constants import CLUSTER_CREATE_RETRY_WAIT_SECONDS
from gitops_bootstrap.errors import BootstrapError, PreconditionError
from gitops_bootstrap.interfaces import ClusterHandle, ClusterManager


def _k3d(*args: str) -> str:
    try:
        return str(sh.k3d(*args))
    except sh.CommandNotFound as err:
        raise PreconditionError("k3d is not installed. Run 'gitops-bootstrap install' first.") from err


def cluster_create_args(cfg: ClusterConfig) -> list[str]:
    """Build the ``k3d cluster create`` argument list for *cfg*.

    Args:
        cfg: Cluster configuration with node counts and port mappings.

    Returns:
        Arguments following the ``k3d`` executable name.
    """
    return [
        "cluster", "create", cfg.cluster_name,
        "--servers", str(cfg.servers),
        "--agents", str(cfg.agents),
        "--port", f"{cfg.http_port}:80@loadbalancer",
        "--port", f"{cfg.https_port}:443@loadbalancer",
        "--wait",
    ]


class K3dClusterManager(ClusterManager):
    """Drives the ``k3d`` CLI."""

    def list_clusters(self) -> list[str]:
        try:
            output = _k3d("cluster", "list", "-o", "json")
        except sh.ErrorReturnCode as err:
            raise BootstrapError(f"Failed to list k3d clusters: {err.stderr.decode(errors='replace').strip()}") from err
        try:
            clusters = json.loads(output or "[]")
        except json.JSONDecodeError as err:
            raise BootstrapError(f"Unexpected 'k3d cluster list' output: {output[:200]}") from err
        return [cluster["name"] for cluster in clusters]

    def create_cluster(self, cfg: ClusterConfig) -> ClusterHandle:
        """Create the cluster, retrying from a clean slate on failure.

        Raises:
            sh.ErrorReturnCode: If the last creation attempt fails.
        """

        @retry(
            stop=stop_after_attempt(cfg.max_retries),
            wait=wait_fixed(CLUSTER_CREATE_RETRY_WAIT_SECONDS),
            retry=retry_if_exception_type(sh.ErrorReturnCode),
            reraise=True,
        )
        def _attempt() -> None:
            try:
                _k3d("cluster", "delete", cfg.cluster_name)
                console.print("[yellow]   Removed leftover cluster[/yellow]")
            except sh.ErrorReturnCode_1:
                logger.debug("No leftover cluster named %s", cfg.cluster_name)
            _k3d(*cluster_create_args(cfg))

        _attempt()
        return self.handle_for(cfg.cluster_name)

    def delete_cluster(self, name: str) -> None:
        _k3d("cluster", "delete", name)

    def handle_for(self, name: str) -> ClusterHandle:
        return ClusterHandle.for_k3d(name)
