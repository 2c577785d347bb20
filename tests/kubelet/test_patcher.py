import json
import os
import stat
from pathlib import Path

import pytest

from criboot.errors import MissingFieldError, PersistenceError
from criboot.kubelet.patcher import DESIRED_OVERRIDES, ConfigPatcher
from criboot.utils.serialize import loads_live_config


def _patched(**extra):
    cfg = dict(DESIRED_OVERRIDES)
    cfg.update(extra)
    return cfg


def test_overrides_table_is_read_only():
    with pytest.raises(TypeError):
        DESIRED_OVERRIDES["enableCRI"] = False  # type: ignore[index]


def test_is_already_patched_requires_every_key():
    p = ConfigPatcher()
    assert p.is_already_patched(_patched(dockerEndpoint="unix:///var/run/docker.sock"))

    partial = _patched()
    del partial["remoteImageEndpoint"]
    assert not p.is_already_patched(partial)
    assert not p.is_already_patched({})


@pytest.mark.parametrize("key,value", [
    ("enableCRI", "true"),
    ("enableCRI", 1),
    ("containerRuntime", "docker"),
    ("remoteRuntimeEndpoint", "/var/run/dockershim.sock"),
])
def test_is_already_patched_is_type_strict(key, value):
    assert not ConfigPatcher().is_already_patched(_patched(**{key: value}))


@pytest.mark.parametrize("prior", [
    {},
    {"enableCRI": "yes", "containerRuntime": 7},
    {"containerRuntime": "docker", "enableCRI": False,
     "remoteRuntimeEndpoint": "", "remoteImageEndpoint": None},
])
def test_apply_overrides_overwrites_everything(prior):
    live = dict(prior, other="kept")
    ConfigPatcher().apply_overrides(live)
    for key, value in DESIRED_OVERRIDES.items():
        assert live[key] == value and type(live[key]) is type(value)
    assert live["other"] == "kept"


def test_extract_engine_endpoint():
    p = ConfigPatcher()
    assert p.extract_engine_endpoint({"dockerEndpoint": "tcp://1.2.3.4:2375"}) == "tcp://1.2.3.4:2375"
    with pytest.raises(MissingFieldError):
        p.extract_engine_endpoint({})
    with pytest.raises(MissingFieldError):
        p.extract_engine_endpoint({"dockerEndpoint": 42})


def test_patch_backs_up_original_before_mutating(tmp_path: Path):
    saved = tmp_path / "kubelet.json"
    raw = '{"dockerEndpoint": "unix:///var/run/docker.sock", "maxPods": 110, "qps": 5.50, "ratio": 0.12345678901234567890123}'
    live = loads_live_config(raw)

    result = ConfigPatcher().patch(live, str(saved))

    assert result is not None
    assert result.engine_endpoint == "unix:///var/run/docker.sock"
    assert result.config is live and live["enableCRI"] is True
    assert saved.read_text() == raw
    assert stat.S_IMODE(os.stat(saved).st_mode) == 0o600


def test_patch_tightens_mode_of_existing_backup(tmp_path: Path):
    saved = tmp_path / "kubelet.json"
    saved.write_text("{}")
    os.chmod(saved, 0o644)
    ConfigPatcher().patch({"dockerEndpoint": "unix:///d.sock"}, str(saved))
    assert stat.S_IMODE(os.stat(saved).st_mode) == 0o600


def test_patch_is_noop_when_already_patched(tmp_path: Path):
    saved = tmp_path / "kubelet.json"
    live = _patched(dockerEndpoint="unix:///var/run/docker.sock")
    before = dict(live)

    assert ConfigPatcher().patch(live, str(saved)) is None
    assert not saved.exists()
    assert live == before


def test_failed_backup_leaves_config_untouched(tmp_path: Path):
    live = {"dockerEndpoint": "unix:///var/run/docker.sock"}
    with pytest.raises(PersistenceError) as ei:
        ConfigPatcher().patch(live, str(tmp_path / "missing-dir" / "kubelet.json"))
    assert "missing-dir" in str(ei.value)
    assert live == {"dockerEndpoint": "unix:///var/run/docker.sock"}


def test_missing_endpoint_fails_after_backup(tmp_path: Path):
    saved = tmp_path / "kubelet.json"
    with pytest.raises(MissingFieldError):
        ConfigPatcher().patch({"maxPods": 110}, str(saved))
    assert json.loads(saved.read_text()) == {"maxPods": 110}
