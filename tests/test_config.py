"""
Tests for ToolConfig loading and validation.
"""

import json
import logging

import pytest

from altsource.config import ToolConfig, default_config_path
from common.exceptions import InvalidConfigError


class TestDefaults:

    @pytest.mark.unit
    def test_defaults(self):
        config = ToolConfig()
        assert config.timeout == 30.0
        assert config.max_retries == 3
        assert config.follow_redirects is True
        assert config.user_agent.startswith("altsource/")

    @pytest.mark.unit
    def test_default_path_follows_xdg(self, isolated_config_home):
        assert default_config_path() == isolated_config_home / "altsource" / "config.json"

    @pytest.mark.unit
    def test_missing_default_file_means_defaults(self, isolated_config_home):
        assert ToolConfig.load() == ToolConfig()


class TestLoad:

    @pytest.mark.unit
    def test_load_default_location(self, isolated_config_home):
        path = isolated_config_home / "altsource" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"timeout": 10, "max_retries": 5}), encoding="utf-8")

        config = ToolConfig.load()
        assert config.timeout == 10
        assert config.max_retries == 5
        assert config.retry_delay == 1.0

    @pytest.mark.unit
    def test_explicit_path_must_exist(self, tmp_path):
        with pytest.raises(InvalidConfigError):
            ToolConfig.load(tmp_path / "missing.json")

    @pytest.mark.unit
    def test_bad_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{timeout: 1", encoding="utf-8")

        with pytest.raises(InvalidConfigError) as excinfo:
            ToolConfig.load(path)
        assert excinfo.value.code == "INVALID_CONFIG"

    @pytest.mark.unit
    def test_top_level_must_be_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(InvalidConfigError):
            ToolConfig.load(path)

    @pytest.mark.unit
    def test_unknown_keys_warned_and_ignored(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"timeout": 3, "colour": "blue"}), encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="altsource.config"):
            config = ToolConfig.load(path)

        assert config.timeout == 3
        assert "colour" in caplog.text

    @pytest.mark.unit
    def test_to_dict_round_trip(self):
        config = ToolConfig(timeout=12.5, user_agent="mirror-bot/2")
        assert ToolConfig.from_dict(config.to_dict()) == config


class TestValidation:

    @pytest.mark.unit
    @pytest.mark.parametrize("field,value", [
        ("timeout", 0),
        ("timeout", "30"),
        ("timeout", True),
        ("user_agent", ""),
        ("max_retries", 0),
        ("max_retries", 2.5),
        ("retry_delay", -1),
        ("follow_redirects", "yes"),
    ])
    def test_rejected(self, field, value):
        with pytest.raises(InvalidConfigError) as excinfo:
            ToolConfig(**{field: value})
        assert excinfo.value.details["field"] == field
