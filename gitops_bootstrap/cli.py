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

"""
cli.py - Command line entry point for gitops-bootstrap.

Subcommands:
    install    Install docker, kubectl, k3d and the argocd CLI
    setup      Create the k3d cluster, install Argo CD, register the application
    status     Show cluster and pod readiness
    cleanup    Delete the k3d cluster

Examples:
    # Install the toolchain
    gitops-bootstrap install

    # Full setup, pointing Argo CD at a manifest repository
    gitops-bootstrap setup --repo-url https://github.com/me/manifests.git

    # Reuse an existing cluster without asking
    gitops-bootstrap setup --reuse

    # Delete the cluster without asking
    gitops-bootstrap cleanup --yes
"""

from __future__ import annotations

import logging
import sys

import typer

from gitops_bootstrap import console
from gitops_bootstrap.commands import cleanup_cmd, install_cmd, setup_cmd

app = typer.Typer(
    help="Bootstrap a local k3d cluster with Argo CD.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.command("install")(install_cmd.install)
app.command("setup")(setup_cmd.setup)
app.command("status")(setup_cmd.status)
app.command("cleanup")(cleanup_cmd.cleanup)


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
