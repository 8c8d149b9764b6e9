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

"""cleanup subcommand."""

from __future__ import annotations

import typer

from gitops_bootstrap.commands import load_settings
from gitops_bootstrap.config import ClusterConfig
from gitops_bootstrap.orchestrator import run_cleanup


def cleanup(
    cluster_name: str | None = typer.Option(None, "--cluster-name", help="k3d cluster name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Delete without asking for confirmation"),
) -> None:
    """Delete the k3d cluster."""
    cluster_cfg = load_settings(ClusterConfig, cluster_name=cluster_name)
    run_cleanup(cluster_cfg, confirm=lambda prompt: yes or typer.confirm(prompt, default=False))
