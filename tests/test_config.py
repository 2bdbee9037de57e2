import json
import logging

import pytest

from config import CONFIG_ENV_VAR, DEFAULTS, configure_logging, load_config, save_config


def test_defaults_when_file_missing(tmp_path):
    assert load_config(str(tmp_path / "missing.json")) == DEFAULTS


def test_stored_values_override_defaults(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"max_candidates": 3}))
    cfg = load_config(str(path))
    assert cfg["max_candidates"] == 3
    assert cfg["default_duration_hours"] == DEFAULTS["default_duration_hours"]


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "env.json"
    save_config({"log_level": "DEBUG"}, str(path))
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_config()["log_level"] == "DEBUG"


def test_non_object_config_rejected(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_configure_logging_sets_level():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
