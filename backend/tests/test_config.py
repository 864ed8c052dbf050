"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from legal_review.core.config import Settings


def test_yaml_and_env_overrides(tmp_path: Path, monkeypatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "pipeline:\n  batch_size: 2\n  pacing_seconds: 1\n"
        "rules:\n  base_url: https://rules.example.test\n"
        "review:\n  statuses: [pending]\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("LGR_BATCH_SIZE", "3")
    monkeypatch.setenv("LGR_AUTO_STATUSES", "pending, error")
    monkeypatch.setenv("GEMINI_API_KEY", "secret")

    settings = Settings.from_yaml(config)

    assert settings.batch_size == 3
    assert settings.rules_base_url == "https://rules.example.test"
    assert settings.review_statuses == ["pending"]
    assert settings.auto_statuses == ["pending", "error"]
    assert settings.gemini_api_key == "secret"
    assert settings.embedding_backend == "hashed"


def test_defaults() -> None:
    settings = Settings()
    assert settings.max_retries == 3
    assert settings.retry_initial_delay == 2.0
    assert settings.max_batch_size == 5
    assert settings.review_statuses == ["pending", "error"]


def test_unknown_status_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(review_statuses=["pending", "archived"])
