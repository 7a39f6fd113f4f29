"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from environment or passed
explicitly in tests. Loaded once at startup by the composition root.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Development-only signing secret. Never accepted when APP_ENV=production.
INSECURE_DEV_SECRET = "carescan-insecure-dev-secret"

_PRODUCTION = "production"


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the CareScan assistant.

    No module-level globals: construct via from_env() or pass explicitly
    in tests.
    """
    project_root: Path

    # Runtime environment: "development" or "production"
    environment: str = "development"

    # Database
    db_path: str = "carescan.db"

    # ── Session tokens ──────────────────────────────────────────
    # Long-lived by default (30 days): sessions are refreshed on every
    # verified request and discarded client-side on logout.
    session_secret: str = ""
    session_ttl_hours: int = 720
    session_algorithm: str = "HS256"

    # ── Centralized LLM Provider ────────────────────────────────
    # Allowed: "openai", "groq", "ollama"
    llm_provider: str = "ollama"

    # Model names; only the one matching llm_provider is used.
    llm_model_ollama: str = "llama3.2"
    llm_model_openai: str = "gpt-4.1-mini"
    llm_model_groq: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.3

    # Connection details
    ollama_base_url: str = "http://localhost:11434/"
    groq_api_key: str = ""
    openai_api_key: str = ""

    # Upper bound for one consultation round-trip to the LLM
    inference_timeout_seconds: float = 60.0

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.session_ttl_hours <= 0:
            raise ConfigurationError("SESSION_TTL_HOURS must be positive.")
        if self.inference_timeout_seconds <= 0:
            raise ConfigurationError("INFERENCE_TIMEOUT_SECONDS must be positive.")
        if self.is_production and self.session_secret in ("", INSECURE_DEV_SECRET):
            raise ConfigurationError(
                "SESSION_SECRET must be set to a non-default value when APP_ENV=production."
            )

    @property
    def is_production(self) -> bool:
        return self.environment == _PRODUCTION

    @property
    def uses_insecure_secret(self) -> bool:
        return not self.session_secret or self.session_secret == INSECURE_DEV_SECRET

    @property
    def signing_secret(self) -> str:
        """Secret used to sign session tokens.

        Falls back to INSECURE_DEV_SECRET outside production only
        (__post_init__ rejects the fallback in production).
        """
        return self.session_secret or INSECURE_DEV_SECRET

    def warn_if_insecure(self) -> None:
        if self.uses_insecure_secret:
            logger.warning(
                "SESSION_SECRET is not set; signing sessions with the INSECURE "
                "development fallback. Never run like this in production."
            )

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "openai":
            return self.llm_model_openai
        elif self.llm_provider == "groq":
            return self.llm_model_groq
        return self.llm_model_ollama

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from the environment (and a .env file if present)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent

        try:
            return cls(
                project_root=root,
                environment=os.getenv("APP_ENV", "development").strip().lower(),
                db_path=os.getenv("DB_PATH", "carescan.db"),
                session_secret=os.getenv("SESSION_SECRET", ""),
                session_ttl_hours=int(os.getenv("SESSION_TTL_HOURS", "720")),

                # Centralized LLM provider
                llm_provider=os.getenv("LLM_PROVIDER", "ollama"),
                llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
                llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4.1-mini"),
                llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
                llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.3")),
                ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),
                groq_api_key=os.getenv("GROQ_API_KEY", ""),
                openai_api_key=os.getenv("OPENAI_API_KEY", ""),

                inference_timeout_seconds=float(os.getenv("INFERENCE_TIMEOUT_SECONDS", "60")),
                log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            )
        except ValueError as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid configuration value: {exc}") from exc


def configure_logging(level: str = "INFO") -> None:
    """Install the process-wide logging format. Called by entry points only."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
