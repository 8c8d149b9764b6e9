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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load pinned tool and manifest locations from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Required tools --
PREFLIGHT_TOOLS = ("docker", "k3d", "kubectl")
INSTALLABLE_TOOLS = ("docker", "kubectl", "k3d", "argocd")

# Base packages the installers rely on (curl for downloads, git for the app repo).
PREREQUISITE_COMMANDS = ("curl", "wget", "git")
PREREQUISITE_PACKAGES = (
    "curl", "wget", "git", "apt-transport-https", "ca-certificates", "gnupg", "lsb-release",
)

# -- K3d cluster defaults --
DEFAULT_CLUSTER_NAME = "iot-cluster"
DEFAULT_SERVERS = 1
DEFAULT_AGENTS = 2
DEFAULT_HTTP_PORT = 8081
DEFAULT_HTTPS_PORT = 8443
DEFAULT_CLUSTER_CREATE_MAX_RETRIES = 3
CLUSTER_CREATE_RETRY_WAIT_SECONDS = 10
CLUSTER_READY_TIMEOUT_SECONDS = 120
CLUSTER_READY_POLL_INTERVAL_SECONDS = 2
K3D_CONTEXT_PREFIX = "k3d-"

# -- Namespaces --
DEFAULT_ARGOCD_NAMESPACE = "argocd"
DEFAULT_DEV_NAMESPACE = "dev"
NAMESPACE_READY_TIMEOUT_SECONDS = 30
NAMESPACE_READY_POLL_INTERVAL_SECONDS = 1

# -- Argo CD --
ARGOCD_ADMIN_USER = "admin"
ARGOCD_ADMIN_SECRET = "argocd-initial-admin-secret"
ARGOCD_PASSWORD_KEY = "password"
ARGOCD_SERVER_SERVICE = "argocd-server"
ARGOCD_SERVER_HTTPS_PORT_NAME = "https"
ARGOCD_FORWARD_LOCAL_PORT = 8081
ARGOCD_APP_API_VERSION = "argoproj.io/v1alpha1"
ARGOCD_IN_CLUSTER_SERVER = "https://kubernetes.default.svc"
DEFAULT_ARGOCD_INSTALL_MANIFEST = dep_value(
    "argocd", "install_manifest",
    default="https://raw.githubusercontent.com/argoproj/argo-cd/stable/manifests/install.yaml",
)
DEFAULT_APP_MANIFEST = "confs/argocd/application.yaml"
DEFAULT_APP_NAME = "dev-app"
DEFAULT_REPO_PATH = "."
DEFAULT_TARGET_REVISION = "HEAD"

# -- Readiness waits --
POD_READY_TIMEOUT_SECONDS = 300
POD_READY_POLL_INTERVAL_SECONDS = 5
POD_SETTLE_SECONDS = 10
SECRET_READY_TIMEOUT_SECONDS = 300
SECRET_READY_POLL_INTERVAL_SECONDS = 5

# -- Tool installation --
DEFAULT_ARCH = "amd64"
DEFAULT_INSTALL_DIR = "/usr/local/bin"

# -- Subprocess --
KUBECTL_TIMEOUT_SECONDS = 60
