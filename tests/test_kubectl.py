"""Tests for the kubectl-backed orchestration API."""

from __future__ import annotations

import base64
import json
import subprocess

import pytest
import yaml

from gitops_bootstrap import kubectl as kubectl_mod
from gitops_bootstrap.errors import BootstrapError
from gitops_bootstrap.interfaces import ClusterHandle
from gitops_bootstrap.kubectl import KubectlApi
from gitops_bootstrap.utils import decode_secret_data, run_kubectl


@pytest.fixture
def api() -> KubectlApi:
    return KubectlApi(ClusterHandle.for_k3d("iot-cluster"))


@pytest.fixture
def fake_run(mocker):
    return mocker.patch.object(kubectl_mod, "run_kubectl", return_value=(True, "", ""))


def test_every_call_targets_the_handle_context(api, fake_run):
    api.cluster_info()

    assert fake_run.call_args.kwargs["context"] == "k3d-iot-cluster"


def test_namespace_exists(api, fake_run):
    fake_run.return_value = (True, json.dumps({"metadata": {"name": "argocd"}}), "")
    assert api.namespace_exists("argocd")
    assert fake_run.call_args.args[0] == ["get", "namespace", "argocd", "-o", "json"]

    fake_run.return_value = (False, "", 'Error from server (NotFound): namespaces "argocd" not found')
    assert not api.namespace_exists("argocd")


def test_unexpected_failure_raises(api, fake_run):
    fake_run.return_value = (False, "", "The connection to the server localhost:6443 was refused")

    with pytest.raises(BootstrapError, match="connection to the server"):
        api.namespace_exists("argocd")


def test_apply_manifest_pipes_yaml(api, fake_run):
    manifest = {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "dev"}}

    api.apply_manifest(manifest)

    args, kwargs = fake_run.call_args
    assert args[0] == ["apply", "-f", "-"]
    assert yaml.safe_load(kwargs["stdin"]) == manifest


def test_apply_url_in_namespace(api, fake_run):
    api.apply_url("https://example.com/install.yaml", namespace="argocd")

    args, kwargs = fake_run.call_args
    assert args[0] == ["apply", "-f", "https://example.com/install.yaml", "-n", "argocd"]
    assert kwargs["timeout"] == kubectl_mod.APPLY_REMOTE_TIMEOUT_SECONDS


def test_apply_failure_raises(api, fake_run):
    fake_run.return_value = (False, "", "error: unable to read URL")

    with pytest.raises(BootstrapError, match="unable to read URL"):
        api.apply_url("https://example.com/install.yaml")


def test_get_secret_data_decodes(api, fake_run):
    encoded = base64.b64encode(b"s3cret").decode()
    fake_run.return_value = (True, json.dumps({"data": {"password": encoded}}), "")

    assert api.get_secret_data("argocd", "argocd-initial-admin-secret") == {"password": "s3cret"}


def test_get_secret_data_missing(api, fake_run):
    fake_run.return_value = (False, "", 'Error from server (NotFound): secrets "x" not found')

    assert api.get_secret_data("argocd", "x") is None


def test_list_pods(api, fake_run):
    fake_run.return_value = (True, json.dumps({"items": [{"metadata": {"name": "a"}}]}), "")

    assert api.list_pods("argocd") == [{"metadata": {"name": "a"}}]


def test_patch_service_type(api, fake_run):
    api.patch_service_type("argocd", "argocd-server", "NodePort")

    args = fake_run.call_args.args[0]
    assert args[:5] == ["patch", "service", "argocd-server", "-n", "argocd"]
    assert json.loads(args[-1]) == {"spec": {"type": "NodePort"}}


def test_get_table(api, fake_run):
    fake_run.return_value = (True, "NAME READY\n", "")

    assert api.get_table("pods", "argocd") == "NAME READY\n"
    assert fake_run.call_args.args[0] == ["get", "pods", "-n", "argocd"]


def test_run_kubectl_builds_command(mocker):
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="ok", stderr="")
    run = mocker.patch("gitops_bootstrap.utils.subprocess.run", return_value=completed)

    assert run_kubectl(["get", "ns"], context="k3d-x", stdin="data") == (True, "ok", "")
    assert run.call_args.args[0] == ["kubectl", "--context", "k3d-x", "get", "ns"]
    assert run.call_args.kwargs["input"] == "data"


def test_run_kubectl_reports_missing_binary(mocker):
    mocker.patch("gitops_bootstrap.utils.subprocess.run", side_effect=FileNotFoundError("kubectl"))

    ok, stdout, stderr = run_kubectl(["get", "ns"])

    assert not ok
    assert stdout == ""
    assert "kubectl" in stderr


def test_decode_secret_data_handles_empty():
    assert decode_secret_data(None) == {}
