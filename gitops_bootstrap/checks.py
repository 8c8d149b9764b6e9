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

"""Readiness checks against the toolchain, the cluster manager and the cluster."""

from __future__ import annotations

from typing import Any

from gitops_bootstrap.errors import NotReadyError
from gitops_bootstrap.interfaces import ClusterManager, OrchestrationApi
from gitops_bootstrap.poller import Check, CheckResult
from gitops_bootstrap.utils import resolve_command


def tool_installed(cmd: str) -> Check:
    """Ready when *cmd* resolves to an executable on PATH. Payload: its path."""

    def _predicate() -> CheckResult:
        path = resolve_command(cmd)
        if path is None:
            return CheckResult(ready=False, message=f"'{cmd}' not found on PATH")
        return CheckResult(ready=True, message=path, payload=path)

    return Check(name=f"tool-installed[{cmd}]", predicate=_predicate)


def cluster_exists(manager: ClusterManager, name: str) -> Check:
    """Ready when a cluster named exactly *name* is listed."""

    def _predicate() -> CheckResult:
        clusters = manager.list_clusters()
        if name in clusters:
            return CheckResult(ready=True, message=f"cluster '{name}' exists", payload=name)
        return CheckResult(ready=False, message=f"cluster '{name}' not listed ({len(clusters)} clusters)")

    return Check(name=f"cluster-exists[{name}]", predicate=_predicate)


def namespace_ready(api: OrchestrationApi, namespace: str) -> Check:
    def _predicate() -> CheckResult:
        if api.namespace_exists(namespace):
            return CheckResult(ready=True, message=f"namespace '{namespace}' exists", payload=namespace)
        return CheckResult(ready=False, message=f"namespace '{namespace}' not found")

    return Check(name=f"namespace-ready[{namespace}]", predicate=_predicate)


def secret_available(api: OrchestrationApi, namespace: str, name: str, key: str) -> Check:
    """Ready when secret *name* exists and holds *key*. Payload: the decoded value."""

    def _predicate() -> CheckResult:
        data = api.get_secret_data(namespace, name)
        if data is None:
            raise NotReadyError(f"secret '{name}' not created yet in namespace '{namespace}'")
        if key not in data:
            return CheckResult(ready=False, message=f"secret '{name}' has no '{key}' key yet")
        return CheckResult(ready=True, message=f"secret '{name}' available", payload=data[key])

    return Check(name=f"secret-available[{namespace}/{name}]", predicate=_predicate)


def pod_is_ready(pod: dict[str, Any]) -> bool:
    """Return whether a pod object reports the ``Ready`` condition as True."""
    conditions = pod.get("status", {}).get("conditions") or []
    return any(c.get("type") == "Ready" and c.get("status") == "True" for c in conditions)


def pods_ready(api: OrchestrationApi, namespace: str) -> Check:
    """Ready when the namespace has pods and every one of them is Ready. Payload: pod count.

    An empty namespace is reported as not ready: right after a manifest is
    applied the pods may not have been created yet.
    """

    def _predicate() -> CheckResult:
        pods = api.list_pods(namespace)
        if not pods:
            return CheckResult(ready=False, message=f"no pods in namespace '{namespace}' yet")
        pending = [p.get("metadata", {}).get("name", "?") for p in pods if not pod_is_ready(p)]
        ready_count = len(pods) - len(pending)
        message = f"{ready_count}/{len(pods)} pods ready in '{namespace}'"
        if pending:
            return CheckResult(ready=False, message=f"{message}, waiting on {', '.join(sorted(pending)[:5])}")
        return CheckResult(ready=True, message=message, payload=len(pods))

    return Check(name=f"pods-ready[{namespace}]", predicate=_predicate)
