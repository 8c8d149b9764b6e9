"""Tests for the k3d-backed cluster manager."""

from __future__ import annotations

import json

import pytest
import sh

from gitops_bootstrap import cluster, k3d
from gitops_bootstrap.config import ClusterConfig
from gitops_bootstrap.errors import BootstrapError, PreconditionError
from gitops_bootstrap.k3d import K3dClusterManager, cluster_create_args


def _error(code: int = 1, stderr: bytes = b"") -> sh.ErrorReturnCode:
    return sh.ErrorReturnCode_1("k3d", b"", stderr) if code == 1 else sh.ErrorReturnCode_2("k3d", b"", stderr)


def test_cluster_create_args():
    args = cluster_create_args(ClusterConfig(cluster_name="demo", agents=3, http_port=9080))

    assert args[:3] == ["cluster", "create", "demo"]
    assert args[args.index("--agents") + 1] == "3"
    assert "9080:80@loadbalancer" in args
    assert "8443:443@loadbalancer" in args
    assert args[-1] == "--wait"


def test_list_clusters_parses_json(mocker):
    mocker.patch.object(k3d, "_k3d", return_value=json.dumps([{"name": "a"}, {"name": "b"}]))

    assert K3dClusterManager().list_clusters() == ["a", "b"]


def test_list_clusters_empty_output(mocker):
    mocker.patch.object(k3d, "_k3d", return_value="")

    assert K3dClusterManager().list_clusters() == []


def test_list_clusters_failure(mocker):
    mocker.patch.object(k3d, "_k3d", side_effect=_error(2, b"docker not reachable"))

    with pytest.raises(BootstrapError, match="docker not reachable"):
        K3dClusterManager().list_clusters()


def test_create_cluster_returns_handle(mocker):
    run = mocker.patch.object(k3d, "_k3d", return_value="")

    handle = K3dClusterManager().create_cluster(ClusterConfig(cluster_name="demo"))

    assert handle.name == "demo"
    assert handle.context == "k3d-demo"
    assert run.call_args_list[0].args == ("cluster", "delete", "demo")
    assert run.call_args_list[1].args[:3] == ("cluster", "create", "demo")


def test_create_cluster_ignores_missing_leftover(mocker):
    def fake(*args):
        if args[1] == "delete":
            raise _error(1)
        return ""

    mocker.patch.object(k3d, "_k3d", side_effect=fake)

    assert K3dClusterManager().create_cluster(ClusterConfig()).name == "iot-cluster"


def test_create_cluster_reraises_after_last_attempt(mocker):
    def fake(*args):
        if args[1] == "create":
            raise _error(1, b"port already allocated")
        return ""

    run = mocker.patch.object(k3d, "_k3d", side_effect=fake)

    with pytest.raises(sh.ErrorReturnCode):
        K3dClusterManager().create_cluster(ClusterConfig(max_retries=1))
    assert [c.args[1] for c in run.call_args_list] == ["delete", "create"]


def test_delete_cluster(mocker):
    run = mocker.patch.object(k3d, "_k3d", return_value="")

    K3dClusterManager().delete_cluster("demo")

    run.assert_called_once_with("cluster", "delete", "demo")


def test_missing_k3d_binary_is_a_precondition_error(mocker):
    fake_sh = mocker.MagicMock()
    fake_sh.CommandNotFound = sh.CommandNotFound
    fake_sh.ErrorReturnCode = sh.ErrorReturnCode
    fake_sh.k3d.side_effect = sh.CommandNotFound("k3d")
    mocker.patch.object(k3d, "sh", fake_sh)

    with pytest.raises(PreconditionError, match="k3d is not installed. Run 'gitops-bootstrap install' first."):
        cluster.cluster_is_listed(K3dClusterManager(), "iot-cluster")


def test_create_does_not_retry_without_k3d(mocker):
    k3d_cmd = mocker.patch.object(k3d, "_k3d", side_effect=PreconditionError("k3d is not installed"))

    with pytest.raises(PreconditionError):
        K3dClusterManager().create_cluster(ClusterConfig(max_retries=3))
    assert k3d_cmd.call_count == 1
