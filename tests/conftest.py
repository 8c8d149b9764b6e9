"""Shared pytest fixtures: a fake clock and in-memory cluster/API fakes."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest

from gitops_bootstrap.config import ArgoCDConfig, ClusterConfig
from gitops_bootstrap.interfaces import ClusterHandle, ClusterManager, OrchestrationApi


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeClusterManager(ClusterManager):
    def __init__(self, clusters: list[str] | None = None) -> None:
        self.clusters = list(clusters or [])
        self.created: list[str] = []
        self.deleted: list[str] = []

    def list_clusters(self) -> list[str]:
        return list(self.clusters)

    def create_cluster(self, cfg: ClusterConfig) -> ClusterHandle:
        self.created.append(cfg.cluster_name)
        self.clusters.append(cfg.cluster_name)
        return self.handle_for(cfg.cluster_name)

    def delete_cluster(self, name: str) -> None:
        self.deleted.append(name)
        self.clusters.remove(name)

    def handle_for(self, name: str) -> ClusterHandle:
        return ClusterHandle.for_k3d(name)


def ready_pod(name: str, ready: bool = True) -> dict[str, Any]:
    return {
        "metadata": {"name": name},
        "status": {"conditions": [{"type": "Ready", "status": "True" if ready else "False"}]},
    }


class FakeApi(OrchestrationApi):
    """In-memory cluster: applying a Namespace creates it, everything else is recorded."""

    def __init__(self, handle: ClusterHandle | None = None) -> None:
        self.handle = handle or ClusterHandle.for_k3d("test")
        self.namespaces: set[str] = {"default", "kube-system"}
        self.pods: dict[str, list[dict[str, Any]]] = {}
        self.secrets: dict[tuple[str, str], dict[str, str]] = {}
        self.services: dict[tuple[str, str], dict[str, Any]] = {}
        self.applied: list[tuple[str, Any, str | None]] = []
        self.patched: list[tuple[str, str, str]] = []

    def cluster_info(self) -> str:
        return "Kubernetes control plane is running at https://0.0.0.0:6443\n"

    def namespace_exists(self, name: str) -> bool:
        return name in self.namespaces

    def apply_manifest(self, manifest: dict[str, Any], namespace: str | None = None) -> None:
        self.applied.append(("manifest", manifest, namespace))
        if manifest.get("kind") == "Namespace":
            self.namespaces.add(manifest["metadata"]["name"])

    def apply_url(self, url: str, namespace: str | None = None) -> None:
        self.applied.append(("url", url, namespace))

    def apply_file(self, path: Path) -> None:
        self.applied.append(("file", path, None))

    def get_secret_data(self, namespace: str, name: str) -> dict[str, str] | None:
        return self.secrets.get((namespace, name))

    def list_pods(self, namespace: str) -> list[dict[str, Any]]:
        return self.pods.get(namespace, [])

    def get_service(self, namespace: str, name: str) -> dict[str, Any] | None:
        return self.services.get((namespace, name))

    def patch_service_type(self, namespace: str, name: str, service_type: str) -> None:
        self.patched.append((namespace, name, service_type))

    def get_table(self, resource: str, namespace: str | None = None) -> str:
        return f"NAME   STATUS\n{resource}   ok\n"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_manager() -> FakeClusterManager:
    return FakeClusterManager()


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep GITOPS_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("GITOPS_"):
            monkeypatch.delenv(key)


@pytest.fixture
def cluster_cfg() -> ClusterConfig:
    return ClusterConfig(ready_timeout=0, ready_interval=1)


@pytest.fixture
def argocd_cfg(tmp_path) -> ArgoCDConfig:
    return ArgoCDConfig(
        pod_timeout=0,
        secret_timeout=0,
        settle_seconds=0,
        app_manifest=tmp_path / "missing.yaml",
    )
