from __future__ import annotations

import logging

import pytest

from infrastructure.config import INSECURE_DEV_SECRET, ConfigurationError, Settings


def test_development_falls_back_to_insecure_secret(tmp_path, caplog) -> None:
    settings = Settings(project_root=tmp_path)

    assert settings.signing_secret == INSECURE_DEV_SECRET
    with caplog.at_level(logging.WARNING):
        settings.warn_if_insecure()
    assert "INSECURE" in caplog.text


@pytest.mark.parametrize("secret", ["", INSECURE_DEV_SECRET])
def test_production_requires_real_secret(tmp_path, secret) -> None:
    with pytest.raises(ConfigurationError):
        Settings(project_root=tmp_path, environment="production", session_secret=secret)


def test_production_with_secret(tmp_path) -> None:
    settings = Settings(project_root=tmp_path, environment="production", session_secret="s3")
    assert settings.is_production
    assert settings.signing_secret == "s3"
    assert not settings.uses_insecure_secret


@pytest.mark.parametrize("field", ["session_ttl_hours", "inference_timeout_seconds"])
def test_non_positive_durations_are_rejected(tmp_path, field) -> None:
    with pytest.raises(ConfigurationError):
        Settings(project_root=tmp_path, **{field: 0})


@pytest.mark.parametrize("provider, model", [
    ("openai", "gpt-4.1-mini"),
    ("groq", "llama-3.3-70b-versatile"),
    ("ollama", "llama3.2"),
])
def test_active_model_follows_provider(tmp_path, provider, model) -> None:
    assert Settings(project_root=tmp_path, llm_provider=provider).active_llm_model == model


def test_from_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", " Production ")
    monkeypatch.setenv("SESSION_SECRET", "from-env")
    monkeypatch.setenv("SESSION_TTL_HOURS", "12")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("LLM_PROVIDER", "groq")
    monkeypatch.setenv("INFERENCE_TIMEOUT_SECONDS", "7.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env(project_root=tmp_path)

    assert settings.is_production
    assert settings.session_secret == "from-env"
    assert settings.session_ttl_hours == 12
    assert settings.db_path == str(tmp_path / "env.db")
    assert settings.llm_provider == "groq"
    assert settings.inference_timeout_seconds == 7.5
    assert settings.log_level == "DEBUG"


def test_from_env_rejects_unparseable_numbers(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("SESSION_TTL_HOURS", "thirty days")
    with pytest.raises(ConfigurationError):
        Settings.from_env(project_root=tmp_path)
