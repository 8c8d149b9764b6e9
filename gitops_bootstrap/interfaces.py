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

"""Capability interfaces for the cluster manager and the orchestration API.

Orchestration code and readiness checks depend only on these classes, so that
tests can supply in-memory fakes instead of shelling out to k3d and kubectl.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from gitops_bootstrap.constants import K3D_CONTEXT_PREFIX

if TYPE_CHECKING:
    from gitops_bootstrap.config import ClusterConfig


@dataclass(frozen=True)
class ClusterHandle:
    """An existing cluster, passed explicitly to every step that talks to it.

    Attributes:
        name: Cluster name as known to the cluster manager.
        context: kubeconfig context that targets the cluster.
    """

    name: str
    context: str

    @classmethod
    def for_k3d(cls, name: str) -> ClusterHandle:
        return cls(name=name, context=f"{K3D_CONTEXT_PREFIX}{name}")


class ClusterManager(ABC):
    """Creates, lists and deletes local clusters."""

    @abstractmethod
    def list_clusters(self) -> list[str]:
        """Return the names of all clusters."""

    @abstractmethod
    def create_cluster(self, cfg: ClusterConfig) -> ClusterHandle:
        """Create a cluster and return its handle."""

    @abstractmethod
    def delete_cluster(self, name: str) -> None:
        """Delete the named cluster."""

    @abstractmethod
    def handle_for(self, name: str) -> ClusterHandle:
        """Return the handle of an already existing cluster."""


class OrchestrationApi(ABC):
    """Reads and writes Kubernetes objects in one cluster."""

    @abstractmethod
    def cluster_info(self) -> str:
        """Return a short description of the control plane endpoints."""

    @abstractmethod
    def namespace_exists(self, name: str) -> bool:
        """Return whether the namespace object exists."""

    @abstractmethod
    def apply_manifest(self, manifest: dict[str, Any], namespace: str | None = None) -> None:
        """Create or update the object described by *manifest*."""

    @abstractmethod
    def apply_url(self, url: str, namespace: str | None = None) -> None:
        """Create or update all objects in the manifest at *url*."""

    @abstractmethod
    def apply_file(self, path: Path) -> None:
        """Create or update all objects in the manifest file at *path*."""

    @abstractmethod
    def get_secret_data(self, namespace: str, name: str) -> dict[str, str] | None:
        """Return the base64-decoded data of a secret, or None if it does not exist."""

    @abstractmethod
    def list_pods(self, namespace: str) -> list[dict[str, Any]]:
        """Return the pod objects in *namespace*."""

    @abstractmethod
    def get_service(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Return the service object, or None if it does not exist."""

    @abstractmethod
    def patch_service_type(self, namespace: str, name: str, service_type: str) -> None:
        """Change the type of a service (e.g. ``NodePort``)."""

    @abstractmethod
    def get_table(self, resource: str, namespace: str | None = None) -> str:
        """Return ``kubectl get`` style tabular output for display."""
