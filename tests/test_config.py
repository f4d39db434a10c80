"""Tests for settings, the CLI config helpers and model-output parsing."""

import argparse
import logging

import pytest

from operator_agent.config import Settings
from operator_agent.logging import get_logger, setup_logging
from operator_agent.main import build_platforms, get_provider_and_model, load_yaml_config
from operator_agent.types import EntityDomain
from operator_agent.utils.json_array import parse_string_array


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "LLM_PROVIDER", "LLM_MODEL"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)
        assert settings.pending_ttl_seconds == 300
        assert settings.max_tool_rounds == 10
        assert settings.memory_extraction_interval == 5
        assert settings.memory_dedupe
        assert settings.detect_provider() is None

    def test_detect_provider(self, clean_env, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        settings = Settings(_env_file=None)
        assert settings.detect_provider() == "openai"
        assert settings.get_api_key_for_provider("openai") == "sk-test"

    def test_explicit_provider_wins(self, clean_env, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        assert Settings(_env_file=None).detect_provider() == "anthropic"

    def test_rejects_bad_values(self, clean_env):
        with pytest.raises(ValueError):
            Settings(_env_file=None, pending_ttl_seconds=0)


class TestCliConfig:
    """Tests for the YAML config helpers used by the CLI."""

    def test_missing_file(self, tmp_path):
        assert load_yaml_config(str(tmp_path / "nope.yaml")) == {}

    def test_cli_beats_yaml(self, clean_env):
        args = argparse.Namespace(provider="openai", model=None)
        provider, model = get_provider_and_model(args, {"llm": {"provider": "anthropic", "model": "m"}})
        assert (provider, model) == ("openai", "m")

    def test_build_platforms(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "platforms:\n"
            "  checkout:\n"
            "    domains:\n"
            "      subscription:\n"
            "        user-1:\n"
            "          - {id: sub_881, name: Pro Monthly, metric: 49}\n"
        )

        registry = build_platforms(load_yaml_config(str(path)))

        assert registry.domains == [EntityDomain.SUBSCRIPTION]


class TestParseStringArray:
    """Tests for parse_string_array."""

    def test_wrapped_in_prose(self):
        text = 'Sure!\n```json\n["one", " two ", "", 3, "four"]\n```'
        assert parse_string_array(text) == ["one", "two", "four"]

    def test_limit(self):
        assert parse_string_array('["a", "b", "c"]', limit=2) == ["a", "b"]

    @pytest.mark.parametrize("text", ["", "no array here", "[not json", '{"a": 1}', None])
    def test_nothing_usable(self, text):
        assert parse_string_array(text) == []


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def fresh_logger(self):
        logger = logging.getLogger("operator_agent")
        saved = (logger.level, list(logger.handlers))
        logger.handlers.clear()
        yield
        logger.setLevel(saved[0])
        logger.handlers[:] = saved[1]

    def test_flag_beats_env(self, monkeypatch):
        monkeypatch.setenv("OPERATOR_AGENT_LOG_LEVEL", "ERROR")
        assert setup_logging("debug").level == logging.DEBUG
        assert get_logger("operator_agent.core.loop").getEffectiveLevel() == logging.DEBUG

    def test_env_then_default(self, monkeypatch):
        monkeypatch.setenv("OPERATOR_AGENT_LOG_LEVEL", "info")
        assert setup_logging().level == logging.INFO
        monkeypatch.delenv("OPERATOR_AGENT_LOG_LEVEL")
        assert setup_logging().level == logging.WARNING

    def test_invalid_level_and_single_handler(self, capsys):
        logger = setup_logging("chatty")
        setup_logging("error")

        assert "Invalid log level 'CHATTY'" in capsys.readouterr().err
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.ERROR
