"""
Unit tests for inspect output parsing.
"""
import json
import pytest
from pgimage.PARSERS.config_inspector import ConfigInspector, MalformedConfigError


def test_inspect_parses_config(fake_engine):
    config = ConfigInspector(fake_engine).inspect("src")
    assert fake_engine.calls == [("inspect", "src")]
    assert config.env[0] == ("PATH", "/usr/local/bin:/usr/bin:/bin")
    assert config.working_dir == "/"
    assert config.user is None
    assert config.entrypoint == ["docker-entrypoint.sh"]
    assert config.cmd == ["postgres"]
    assert config.exposed_ports == ["5432/tcp"]
    assert config.volumes == ["/var/lib/postgresql/data"]


def test_null_fields_map_to_empty():
    config = ConfigInspector.parse([{"Config": {
        "Env": None, "WorkingDir": "", "User": "", "Entrypoint": None,
        "Cmd": None, "ExposedPorts": None, "Volumes": None,
    }}])
    assert config.env == []
    assert config.working_dir is None
    assert config.entrypoint == []
    assert config.cmd == []
    assert config.exposed_ports == []
    assert config.volumes == []


def test_env_value_keeps_equals_signs():
    config = ConfigInspector.parse({"Config": {"Env": ["OPTS=-a=1 -b=2", "FLAG=", "BARE"]}})
    assert config.env == [("OPTS", "-a=1 -b=2"), ("FLAG", ""), ("BARE", "")]


def test_string_cmd_becomes_single_argument():
    config = ConfigInspector.parse({"Config": {"Cmd": "/bin/sh -c run"}})
    assert config.cmd == ["/bin/sh -c run"]


@pytest.mark.parametrize("data", [
    [],
    "not an object",
    [{"Id": "sha256:abc"}],
    [{"Config": None}],
    [{"Config": {"Env": [1, 2]}}],
    [{"Config": {"ExposedPorts": ["5432/tcp"]}}],
    [{"Config": {"Entrypoint": 5}}],
])
def test_malformed_config_raises(data):
    with pytest.raises(MalformedConfigError):
        ConfigInspector.parse(data)


def test_invalid_json_raises(fake_engine):
    fake_engine.inspect_output = "{not json"
    with pytest.raises(MalformedConfigError):
        ConfigInspector(fake_engine).inspect("src")


def test_engine_output_round_trip(fake_engine):
    fake_engine.inspect_output = json.dumps([{"Config": {"User": "app", "WorkingDir": "/app"}}])
    config = ConfigInspector(fake_engine).inspect("src")
    assert config.user == "app"
    assert config.working_dir == "/app"
