"""Tests for environment-based settings."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from imgshift.config import Settings, get_settings


class TestSettings:
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.max_file_size == 5 * 1024 * 1024
        assert settings.port == 3001
        assert settings.cors_origins == ["http://localhost:3000"]
        assert settings.queue_timeout is None
        assert settings.log_level == "INFO"

    def test_env_overrides(self) -> None:
        env = {
            "IMGSHIFT_MAX_FILE_SIZE": "1024",
            "IMGSHIFT_MAX_CONCURRENT": "8",
            "IMGSHIFT_QUEUE_TIMEOUT": "2.5",
            "IMGSHIFT_CORS_ORIGINS": '["https://example.com"]',
        }
        with patch.dict(os.environ, env, clear=True):
            settings = get_settings()
        assert settings.max_file_size == 1024
        assert settings.max_concurrent == 8
        assert settings.queue_timeout == 2.5
        assert settings.cors_origins == ["https://example.com"]

    def test_rejects_zero_concurrency(self) -> None:
        with pytest.raises(ValidationError):
            Settings(max_concurrent=0)

    def test_rejects_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            Settings(log_level="CHATTY")  # type: ignore[arg-type]
