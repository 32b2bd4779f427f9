"""
Unit Tests for Logging Configuration
====================================
"""

import pytest

from finvisor.config.logging import QUIET_LOGGERS, get_logging_config, mask_secrets


@pytest.mark.unit
class TestMaskSecrets:
    """Test credential masking."""

    def test_masks_credential_keys(self):
        event = mask_secrets(
            None,
            "info",
            {"event": "Calling provider", "api_key": "sk-live", "Authorization": "Bearer x", "provider": "openai"},
        )

        assert event["api_key"] == "***"
        assert event["Authorization"] == "***"
        assert event["provider"] == "openai"

    def test_masks_by_name_and_suffix(self):
        event = mask_secrets(
            None,
            "info",
            {"event": "x", "zoom_client_secret": "s", "access_token": "t", "openai_api_key": "k", "token_type": "b"},
        )

        assert set(event.values()) == {"x", "***"}

    def test_token_counts_are_not_masked(self):
        event = mask_secrets(
            None, "info", {"event": "Chat completed", "max_tokens": 1000, "total_tokens": 42, "tokens": 7}
        )

        assert event == {"event": "Chat completed", "max_tokens": 1000, "total_tokens": 42, "tokens": 7}

    def test_leaves_empty_values(self):
        event = mask_secrets(None, "info", {"event": "x", "zoom_webhook_secret": None})

        assert event["zoom_webhook_secret"] is None


@pytest.mark.unit
class TestLoggingConfig:
    """Test the dictConfig built per environment."""

    def test_testing_has_no_file_handlers(self, test_settings):
        config = get_logging_config(test_settings)

        assert list(config["handlers"]) == ["console"]
        assert config["handlers"]["console"]["formatter"] == "plain"
        for name in QUIET_LOGGERS:
            assert config["loggers"][name]["level"] == "WARNING"

    def test_production_logs_json_to_files(self, test_settings, tmp_path):
        production = test_settings.model_copy(update={"environment": "production", "log_path": tmp_path})

        config = get_logging_config(production)

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["handlers"]["error_file"]["level"] == "ERROR"
        assert config["handlers"]["file"]["filename"] == f"{tmp_path}/app.log"
        assert config["loggers"][""]["handlers"] == ["console", "file", "error_file"]
