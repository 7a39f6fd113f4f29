"""
factory - Composition root for the CareScan assistant.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, REST) call this factory to get fully
configured services.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup

    auth = factory.create_authentication_service()
    identity = await auth.authenticate("alice", "secret")
    token = factory.create_session_issuer().issue(identity)
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.ports import InferencePort
from domain.exceptions import InferenceUnavailable
from infrastructure.config import Settings
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.identity_repo import SQLiteIdentityRepository
from infrastructure.persistence.medication_repo import SQLiteMedicationRecordRepository
from infrastructure.llm.llm_builder import build_llm
from infrastructure.llm.inference import LangChainInferenceService
from application.services.authentication import AuthenticationService
from application.services.session import SessionIssuer
from application.services.personalization import PersonalizationService
from application.services.consultation import ConsultationService
from application.services.profile import ProfileService
from application.services.medication_history import MedicationHistoryService

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root. Wires all dependencies together.

    Call initialize() once at startup, then create services as needed.
    Services are cheap and created per request; the only shared objects are
    the immutable Settings and the inference client.
    """

    def __init__(self, config: Settings, inference: Optional[InferencePort] = None):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.db_path)

        # Built lazily: commands that never consult (login, profile) must not
        # need LLM credentials.
        self._inference = inference
        self._initialized = False

    @property
    def config(self) -> Settings:
        return self._config

    @property
    def connection(self) -> AsyncSQLiteConnection:
        return self._connection

    async def initialize(self) -> None:
        """One-time startup: run migrations, check the signing secret."""
        logger.info("Initializing ServiceFactory...")
        self._config.warn_if_insecure()

        await run_migrations(self._connection)
        logger.info("Database migrations complete")

        self._initialized = True
        logger.info("ServiceFactory ready")

    # ------------------------------------------------------------------
    # Service creation
    # ------------------------------------------------------------------

    def create_authentication_service(self) -> AuthenticationService:
        """Create an AuthenticationService over the identity store."""
        return AuthenticationService(
            identity_repo=SQLiteIdentityRepository(self._connection),
        )

    def create_session_issuer(self) -> SessionIssuer:
        """Create a SessionIssuer bound to the process-wide signing secret."""
        return SessionIssuer(
            secret=self._config.signing_secret,
            ttl_hours=self._config.session_ttl_hours,
            algorithm=self._config.session_algorithm,
        )

    def create_personalization_service(self) -> PersonalizationService:
        return PersonalizationService(
            identity_repo=SQLiteIdentityRepository(self._connection),
            record_repo=SQLiteMedicationRecordRepository(self._connection),
        )

    def create_consultation_service(self) -> ConsultationService:
        """Create a ConsultationService with the configured inference client."""
        self._ensure_initialized()
        return ConsultationService(
            inference=self._get_inference(),
            default_timeout=self._config.inference_timeout_seconds,
        )

    def create_profile_service(self) -> ProfileService:
        return ProfileService(
            identity_repo=SQLiteIdentityRepository(self._connection),
        )

    def create_medication_history_service(self) -> MedicationHistoryService:
        return MedicationHistoryService(
            record_repo=SQLiteMedicationRecordRepository(self._connection),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_inference(self) -> InferencePort:
        if self._inference is None:
            try:
                llm = build_llm(
                    provider=self._config.llm_provider,
                    model=self._config.active_llm_model,
                    temperature=self._config.llm_temperature,
                    ollama_base_url=self._config.ollama_base_url,
                    openai_api_key=self._config.openai_api_key,
                    groq_api_key=self._config.groq_api_key,
                    timeout=self._config.inference_timeout_seconds,
                )
            except (ValueError, ImportError) as exc:
                logger.error("Could not build the inference client: %s", exc)
                raise InferenceUnavailable(detail=str(exc)) from exc
            self._inference = LangChainInferenceService(
                llm, default_timeout=self._config.inference_timeout_seconds,
            )
        return self._inference

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
