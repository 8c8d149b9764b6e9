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

"""Idempotent installation of docker, kubectl, k3d and the argocd CLI."""

from __future__ import annotations

import getpass
import os
import tempfile
from collections.abc import Callable
from pathlib import Path

import sh
from rich.panel import Panel

from gitops_bootstrap import console, logger
from gitops_bootstrap.checks import tool_installed
from gitops_bootstrap.config import PollPolicy, ToolsConfig
from gitops_bootstrap.constants import (
    INSTALLABLE_TOOLS,
    PREREQUISITE_COMMANDS,
    PREREQUISITE_PACKAGES,
    dep_value,
)
from gitops_bootstrap.errors import BootstrapError
from gitops_bootstrap.poller import poll

VERSION_ARGS = {
    "docker": ("--version",),
    "kubectl": ("version", "--client"),
    "k3d": ("version",),
    "argocd": ("version", "--client", "--short"),
}


def is_installed(cmd: str) -> bool:
    return poll(tool_installed(cmd), PollPolicy.once()).ok


def tool_version(cmd: str) -> str:
    """Return the first line of the tool's version output, or a hint if it cannot run yet."""
    try:
        output = str(sh.Command(cmd)(*VERSION_ARGS.get(cmd, ("--version",))))
    except (sh.ErrorReturnCode, sh.CommandNotFound):
        return "restart shell to verify"
    lines = output.strip().splitlines()
    return lines[0] if lines else ""


def install_prerequisites() -> bool:
    """Install the base packages with apt-get when any prerequisite command is missing.

    Returns:
        True if packages were installed, False if everything was already present.

    Raises:
        BootstrapError: If apt-get is unavailable or the package install fails.
    """
    console.print("[yellow]\u2139\ufe0f  Checking prerequisites...[/yellow]")
    missing = [cmd for cmd in PREREQUISITE_COMMANDS if not is_installed(cmd)]
    if not missing:
        console.print("[green]\u2705 Prerequisites already installed[/green]")
        return False
    if not is_installed("apt-get"):
        raise BootstrapError(
            f"Missing prerequisites: {', '.join(missing)}. Install them with your package manager and retry."
        )

    console.print(f"[yellow]\u2139\ufe0f  Installing prerequisites (missing: {', '.join(missing)})...[/yellow]")
    try:
        sh.sudo("apt-get", "update", "-y")
        sh.sudo("apt-get", "install", "-y", *PREREQUISITE_PACKAGES)
    except sh.ErrorReturnCode as err:
        detail = err.stderr.decode(errors="replace").strip()[-300:]
        raise BootstrapError(f"Failed to install prerequisites: {detail}") from err
    except sh.CommandNotFound as err:
        raise BootstrapError(f"Failed to install prerequisites: {err} is not installed") from err
    console.print("[green]\u2705 Prerequisites installed[/green]")
    return True


def _install_docker(cfg: ToolsConfig) -> None:
    script = dep_value("docker", "install_script")
    sh.bash("-c", f"curl -fsSL {script} | sudo bash")
    if os.geteuid() == 0:
        console.print("[yellow]\u26a0\ufe0f  Running as root. Docker group membership won't be configured.[/yellow]")
        return
    sh.sudo("usermod", "-aG", "docker", getpass.getuser())


def _install_kubectl(cfg: ToolsConfig) -> None:
    version = str(sh.curl("-L", "-s", dep_value("kubectl", "stable_url"))).strip()
    url = dep_value("kubectl", "download_url").format(version=version, arch=cfg.arch)
    with tempfile.TemporaryDirectory() as tmp:
        binary = Path(tmp) / "kubectl"
        sh.curl("-L", "-o", str(binary), url)
        sh.sudo("install", "-o", "root", "-g", "root", "-m", "0755", str(binary), f"{cfg.install_dir}/kubectl")


def _install_k3d(cfg: ToolsConfig) -> None:
    script = dep_value("k3d", "install_script")
    sh.bash("-c", f"curl -s {script} | bash")


def _install_argocd(cfg: ToolsConfig) -> None:
    url = dep_value("argocd", "cli_url").format(arch=cfg.arch)
    target = f"{cfg.install_dir}/argocd"
    sh.sudo("curl", "-sSL", "-o", target, url)
    sh.sudo("chmod", "+x", target)


INSTALLERS: dict[str, Callable[[ToolsConfig], None]] = {
    "docker": _install_docker,
    "kubectl": _install_kubectl,
    "k3d": _install_k3d,
    "argocd": _install_argocd,
}


def install_tool(cmd: str, cfg: ToolsConfig) -> bool:
    """Install *cmd* unless it is already on PATH.

    Args:
        cmd: One of the installable tool names.
        cfg: Tool installation settings.

    Returns:
        True if the tool was installed, False if it was already present.

    Raises:
        BootstrapError: If the tool is unknown or its installation fails.
    """
    if cmd not in INSTALLERS:
        raise BootstrapError(f"Don't know how to install '{cmd}'")
    console.print(f"[yellow]\u2139\ufe0f  Checking {cmd} installation...[/yellow]")
    if is_installed(cmd):
        console.print(f"[green]\u2705 {cmd} is already installed: {tool_version(cmd)}[/green]")
        return False

    console.print(f"[yellow]\u2139\ufe0f  Installing {cmd}...[/yellow]")
    try:
        INSTALLERS[cmd](cfg)
    except sh.ErrorReturnCode as err:
        detail = err.stderr.decode(errors="replace").strip()[-300:]
        raise BootstrapError(f"Failed to install {cmd}: {detail}") from err
    except sh.CommandNotFound as err:
        raise BootstrapError(f"Failed to install {cmd}: {err} is not installed") from err
    logger.info("Installed %s", cmd)
    console.print(f"[green]\u2705 {cmd} installed successfully[/green]")
    return True


def install_tools(cfg: ToolsConfig, tools: list[str] | None = None) -> list[str]:
    """Install each missing tool, then print the installed versions.

    Args:
        cfg: Tool installation settings.
        tools: Tools to install, or None for all of them.

    Returns:
        Names of the tools that were newly installed.
    """
    console.print(Panel.fit("Installing tools", style="bold blue"))
    install_prerequisites()
    installed = [cmd for cmd in (tools or list(INSTALLABLE_TOOLS)) if install_tool(cmd, cfg)]

    console.print("[green]\u2705 All tools installed successfully[/green]")
    console.print("Installed versions:")
    for cmd in tools or INSTALLABLE_TOOLS:
        console.print(f"  - {cmd}: {tool_version(cmd)}")
    if "docker" in installed:
        console.print("[yellow]\u2139\ufe0f  Fresh Docker install: run 'newgrp docker', "
                      "or log out and back in for group changes to take effect.[/yellow]")
    return installed
