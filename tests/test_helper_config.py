"""Tests for shared.helper.HelperConfig: typed environment readers."""

import pytest


class TestHelperConfig:
    def test_string(self, helper_config, env):
        env.setenv("CATALOG_ENGINE", "  bsp ")
        assert helper_config.get_string_val("catalog_engine") == "bsp"

    def test_missing_required(self, helper_config, env):
        env.delenv("EMBED_ENGINE", raising=False)
        with pytest.raises(ValueError):
            helper_config.get_string_val("EMBED_ENGINE")

    def test_default(self, helper_config, env):
        env.delenv("LLM_CHAT_MODEL", raising=False)
        assert helper_config.get_string_val("LLM_CHAT_MODEL", default="gemma3") == "gemma3"

    def test_numbers(self, helper_config, env):
        env.setenv("PROCESS_BATCH_SIZE", "7")
        env.setenv("LLM_TEMPERATURE", "0.5")
        assert helper_config.get_number_val("PROCESS_BATCH_SIZE", default=5) == 7
        assert isinstance(helper_config.get_number_val("PROCESS_BATCH_SIZE", default=5), int)
        assert helper_config.get_number_val("LLM_TEMPERATURE", default=0.3) == 0.5

    def test_number_below_minimum(self, helper_config, env):
        env.setenv("EMBED_BATCH_SIZE", "0")
        with pytest.raises(ValueError):
            helper_config.get_number_val("EMBED_BATCH_SIZE", default=20, minimum=1)

    def test_number_not_numeric(self, helper_config, env):
        env.setenv("CHUNK_SIZE", "large")
        with pytest.raises(ValueError):
            helper_config.get_number_val("CHUNK_SIZE", default=1000)

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("yes", True), ("false", False), ("no", False)])
    def test_bool(self, helper_config, env, raw, expected):
        env.setenv("LOG_TO_FILE", raw)
        assert helper_config.get_bool_val("LOG_TO_FILE", default=True) is expected

    def test_list(self, helper_config, env):
        env.setenv("SOME_LIST", "[1, 2,3]")
        assert helper_config.get_list_val("SOME_LIST", element_type=int) == [1, 2, 3]

    def test_list_requires_brackets(self, helper_config, env):
        env.setenv("SOME_LIST", "1,2")
        with pytest.raises(ValueError):
            helper_config.get_list_val("SOME_LIST")
