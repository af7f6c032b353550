from unittest.mock import patch

import pytest

from workflow_agent import config


class TestValidateConfig:
    def test_google_requires_key(self):
        with patch.object(config, "LLM_PROVIDER", "google"), patch.object(config, "GEMINI_API_KEY", ""):
            with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
                config.validate_config()

    def test_openai_requires_key(self):
        with patch.object(config, "LLM_PROVIDER", "openai"), patch.object(config, "OPENAI_API_KEY", ""):
            with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
                config.validate_config()

    def test_ollama_key_is_optional(self):
        with patch.object(config, "LLM_PROVIDER", "ollama"), patch.object(config, "OLLAMA_API_KEY", ""):
            config.validate_config()

    def test_unknown_provider(self):
        with patch.object(config, "LLM_PROVIDER", "bard"):
            with pytest.raises(RuntimeError, match="Unsupported LLM_PROVIDER"):
                config.validate_config()
