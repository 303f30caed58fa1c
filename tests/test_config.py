import json

import pytest

from growbackend.config import Config, ConfigError, load_config


def test_loads_yaml_file(tmp_path):
    (tmp_path / "appbackend.yaml").write_text("RedisURL: cache:6379\nPort: 8080\n")
    config = load_config("appbackend", [tmp_path], environ={})
    assert config.get("RedisURL") == "cache:6379"
    assert config.get("port") == 8080
    assert config.source == tmp_path / "appbackend.yaml"


def test_keys_are_case_insensitive(tmp_path):
    (tmp_path / "appbackend.yaml").write_text("JWTSecret: secret\n")
    config = load_config("appbackend", [tmp_path], environ={})
    assert config.get("jwtsecret") == config.get("JWTSECRET") == "secret"


def test_loads_json_file(tmp_path):
    (tmp_path / "timelapse.json").write_text(json.dumps({"AccessKey": "placeholder"}))
    config = load_config("timelapse", [tmp_path], environ={})
    assert config.get("AccessKey") == "placeholder"


def test_environment_overrides_file(tmp_path):
    (tmp_path / "appbackend.yaml").write_text("RedisURL: cache:6379\n")
    config = load_config(
        "appbackend", [tmp_path], environ={"APPBACKEND_REDISURL": "other:1"}
    )
    assert config.get("RedisURL") == "other:1"


def test_env_prefix_defaults_to_upper_name(tmp_path):
    (tmp_path / "timelapse.yaml").write_text("a: 1\n")
    config = load_config("timelapse", [tmp_path], environ={"TIMELAPSE_LEVELDBDIR": "/x"})
    assert config.env_prefix == "TIMELAPSE"
    assert config.get("LevelDBDir") == "/x"


def test_defaults_and_fallback(tmp_path):
    (tmp_path / "appbackend.yaml").write_text("a: 1\n")
    config = load_config("appbackend", [tmp_path], environ={})
    config.set_default("LogRequests", "true")
    assert config.get("logrequests") == "true"
    assert config.get("missing", "fallback") == "fallback"
    assert "LogRequests" in config
    assert "missing" not in config


def test_file_value_beats_default(tmp_path):
    (tmp_path / "appbackend.yaml").write_text("LogRequests: 'false'\n")
    config = load_config("appbackend", [tmp_path], environ={})
    config.set_default("LogRequests", "true")
    assert config.get("LogRequests") == "false"


def test_first_search_path_wins(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    (first / "appbackend.yaml").write_text("where: first\n")
    (second / "appbackend.yaml").write_text("where: second\n")
    config = load_config("appbackend", [first, second], environ={})
    assert config.get("where") == "first"


def test_nested_keys_are_dotted(tmp_path):
    (tmp_path / "appbackend.yaml").write_text("db:\n  Host: pg\n")
    config = load_config("appbackend", [tmp_path], environ={})
    assert config.get("db.host") == "pg"


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_config("appbackend", [tmp_path], environ={})


def test_malformed_file_raises(tmp_path):
    (tmp_path / "appbackend.json").write_text("{not json")
    with pytest.raises(ConfigError):
        load_config("appbackend", [tmp_path], environ={})


def test_non_mapping_file_raises(tmp_path):
    (tmp_path / "appbackend.yaml").write_text("- a\n- b\n")
    with pytest.raises(ConfigError):
        load_config("appbackend", [tmp_path], environ={})


def test_config_without_prefix_reads_plain_env():
    config = Config({"x": 1}, env_prefix="", environ={"X": "2"})
    assert config.get("x") == "2"