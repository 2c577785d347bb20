import json

import pytest
from kubernetes import config as kube_config

from criboot.cluster.recorder import ClusterRecorder, build_config_map
from criboot.errors import ClusterConfigError, PublishError
from criboot.k8s import client as k8s_client
from criboot.kubelet.patcher import DESIRED_OVERRIDES
from criboot.utils.serialize import loads_live_config


def _patched_cfg():
    cfg = {"dockerEndpoint": "unix:///var/run/docker.sock"}
    cfg.update(DESIRED_OVERRIDES)
    return cfg


def test_build_config_map():
    cm = build_config_map("node-1", _patched_cfg())
    assert cm.metadata.name == "kubelet-node-1"
    assert cm.metadata.namespace == "kube-system"
    assert list(cm.data) == ["kubelet.config"]
    assert json.loads(cm.data["kubelet.config"]) == _patched_cfg()


def test_publish_creates_in_kube_system(fake_core_api):
    api = fake_core_api()
    ClusterRecorder(api).publish("node-1", _patched_cfg())

    assert len(api.created) == 1
    ns, body = api.created[0]
    assert ns == "kube-system"
    assert body.metadata.name == "kubelet-node-1"


def test_publish_wraps_api_errors(fake_core_api, api_exception):
    api = fake_core_api(error=api_exception(409, "AlreadyExists"))
    with pytest.raises(PublishError) as ei:
        ClusterRecorder(api).publish("node-1", _patched_cfg())
    assert "kube-system/kubelet-node-1" in str(ei.value)
    assert "409" in str(ei.value)


def test_core_v1_api_without_credentials(monkeypatch):
    def no_cluster():
        raise kube_config.ConfigException("Service host/port is not set.")

    monkeypatch.setattr(k8s_client.config, "load_incluster_config", no_cluster)
    with pytest.raises(ClusterConfigError):
        k8s_client.core_v1_api()


def test_core_v1_api_prefers_explicit_kubeconfig(monkeypatch):
    calls = []
    monkeypatch.setattr(k8s_client.config, "load_kube_config", lambda **kw: calls.append(kw))
    monkeypatch.setattr(
        k8s_client.config, "load_incluster_config",
        lambda: pytest.fail("in-cluster config must not be used"),
    )

    k8s_client.core_v1_api(kubeconfig="/etc/kubernetes/admin.conf")

    assert calls == [{"config_file": "/etc/kubernetes/admin.conf", "context": None}]


def test_config_map_keeps_numbers_verbatim():
    cfg = loads_live_config('{"dockerEndpoint": "unix:///var/run/docker.sock", "ratio": 0.12345678901234567890123, "qps": 1E+2}')

    cm = build_config_map("node-1", cfg)

    assert cm.data["kubelet.config"] == (
        '{"dockerEndpoint": "unix:///var/run/docker.sock", "ratio": 0.12345678901234567890123, "qps": 1E+2}'
    )
