"""Tests for toolchain installation."""

from __future__ import annotations

import pytest
import sh

from gitops_bootstrap import installer
from gitops_bootstrap.config import ToolsConfig
from gitops_bootstrap.errors import BootstrapError


@pytest.fixture
def fake_sh(mocker):
    fake = mocker.MagicMock()
    fake.ErrorReturnCode = sh.ErrorReturnCode
    fake.CommandNotFound = sh.CommandNotFound
    mocker.patch.object(installer, "sh", fake)
    return fake


def test_install_tool_skips_installed(mocker, fake_sh):
    mocker.patch.object(installer, "is_installed", return_value=True)
    mocker.patch.object(installer, "tool_version", return_value="k3d version v5.7.4")
    install_k3d = mocker.patch.dict(installer.INSTALLERS, {"k3d": mocker.MagicMock()})

    assert not installer.install_tool("k3d", ToolsConfig())
    install_k3d["k3d"].assert_not_called()


def test_install_tool_runs_installer(mocker, fake_sh):
    mocker.patch.object(installer, "is_installed", return_value=False)
    fake_installer = mocker.MagicMock()
    mocker.patch.dict(installer.INSTALLERS, {"k3d": fake_installer})
    cfg = ToolsConfig()

    assert installer.install_tool("k3d", cfg)
    fake_installer.assert_called_once_with(cfg)


def test_install_tool_unknown():
    with pytest.raises(BootstrapError, match="helm"):
        installer.install_tool("helm", ToolsConfig())


def test_install_tool_wraps_command_failure(mocker, fake_sh):
    mocker.patch.object(installer, "is_installed", return_value=False)
    failing = mocker.MagicMock(side_effect=sh.ErrorReturnCode_1("bash", b"", b"curl: (6) Could not resolve host"))
    mocker.patch.dict(installer.INSTALLERS, {"k3d": failing})

    with pytest.raises(BootstrapError, match="Could not resolve host"):
        installer.install_tool("k3d", ToolsConfig())


def test_install_kubectl_downloads_stable_release(fake_sh):
    fake_sh.curl.return_value = "v1.31.2\n"

    installer._install_kubectl(ToolsConfig(arch="arm64"))

    download = fake_sh.curl.call_args_list[1].args
    assert download[-1] == "https://dl.k8s.io/release/v1.31.2/bin/linux/arm64/kubectl"
    install_args = fake_sh.sudo.call_args.args
    assert install_args[:7] == ("install", "-o", "root", "-g", "root", "-m", "0755")
    assert install_args[-1] == "/usr/local/bin/kubectl"


def test_install_argocd_cli(fake_sh):
    installer._install_argocd(ToolsConfig(install_dir="/opt/bin"))

    first, second = fake_sh.sudo.call_args_list
    assert first.args[-2:] == ("/opt/bin/argocd",
                               "https://github.com/argoproj/argo-cd/releases/latest/download/argocd-linux-amd64")
    assert second.args == ("chmod", "+x", "/opt/bin/argocd")


def test_install_docker_adds_user_to_group(mocker, fake_sh):
    mocker.patch.object(installer.os, "geteuid", return_value=1000)
    mocker.patch.object(installer.getpass, "getuser", return_value="dev")

    installer._install_docker(ToolsConfig())

    assert "get.docker.com" in fake_sh.bash.call_args.args[-1]
    fake_sh.sudo.assert_called_once_with("usermod", "-aG", "docker", "dev")


def test_install_docker_as_root_skips_group(mocker, fake_sh):
    mocker.patch.object(installer.os, "geteuid", return_value=0)

    installer._install_docker(ToolsConfig())

    fake_sh.sudo.assert_not_called()


def test_install_tools_reports_newly_installed(mocker):
    mocker.patch.object(installer, "install_prerequisites", return_value=False)
    mocker.patch.object(installer, "install_tool", side_effect=lambda cmd, cfg: cmd == "docker")
    mocker.patch.object(installer, "tool_version", return_value="v1")

    assert installer.install_tools(ToolsConfig()) == ["docker"]


def test_tool_version_when_not_runnable(fake_sh):
    fake_sh.Command.side_effect = sh.CommandNotFound("k3d")

    assert installer.tool_version("k3d") == "restart shell to verify"


def test_tool_version_first_line(fake_sh):
    fake_sh.Command.return_value.return_value = "k3d version v5.7.4\nk3s version v1.30\n"

    assert installer.tool_version("k3d") == "k3d version v5.7.4"
    fake_sh.Command.return_value.assert_called_once_with("version")


def test_install_tool_wraps_missing_command(mocker, fake_sh):
    mocker.patch.object(installer, "is_installed", return_value=False)
    missing_curl = mocker.MagicMock(side_effect=sh.CommandNotFound("curl"))
    mocker.patch.dict(installer.INSTALLERS, {"kubectl": missing_curl})

    with pytest.raises(BootstrapError, match="Failed to install kubectl: curl is not installed"):
        installer.install_tool("kubectl", ToolsConfig())


def test_prerequisites_skipped_when_present(mocker, fake_sh):
    mocker.patch.object(installer, "is_installed", return_value=True)

    assert not installer.install_prerequisites()
    fake_sh.sudo.assert_not_called()


def test_prerequisites_installed_with_apt_on_fresh_host(mocker, fake_sh):
    mocker.patch.object(installer, "is_installed", side_effect=lambda cmd: cmd in ("git", "apt-get"))

    assert installer.install_prerequisites()

    update, install = fake_sh.sudo.call_args_list
    assert update.args == ("apt-get", "update", "-y")
    assert install.args[:3] == ("apt-get", "install", "-y")
    assert {"curl", "wget", "ca-certificates", "gnupg"} <= set(install.args)


def test_prerequisites_without_apt_get(mocker, fake_sh):
    mocker.patch.object(installer, "is_installed", return_value=False)

    with pytest.raises(BootstrapError, match="curl, wget, git"):
        installer.install_prerequisites()
    fake_sh.sudo.assert_not_called()


def test_prerequisites_apt_failure(mocker, fake_sh):
    mocker.patch.object(installer, "is_installed", side_effect=lambda cmd: cmd == "apt-get")
    fake_sh.sudo.side_effect = sh.ErrorReturnCode_1("sudo", b"", b"E: Unable to locate package gnupg")

    with pytest.raises(BootstrapError, match="Unable to locate package"):
        installer.install_prerequisites()


def test_install_tools_installs_prerequisites_first(mocker):
    calls = []
    mocker.patch.object(installer, "install_prerequisites", side_effect=lambda: calls.append("prereqs"))
    mocker.patch.object(installer, "install_tool", side_effect=lambda cmd, cfg: calls.append(cmd) and False)
    mocker.patch.object(installer, "tool_version", return_value="v1")

    installer.install_tools(ToolsConfig(), ["k3d"])

    assert calls == ["prereqs", "k3d"]
