"""
application.services.consultation - Medication consultation orchestration.

Combines the fixed assistant instructions, the patient's personalization
block, a bounded window of the caller's chat history and the new message
into a single prompt, sends it to the inference service and returns the
reply text unmodified.

No automatic retries: a retry may duplicate model cost, so the caller
decides.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from domain.models import ConversationTurn, PersonalizationBlock
from domain.ports import InferencePort
from domain.exceptions import InferenceUnavailable, MissingMessage

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 5
NO_HISTORY = "None"

_INSTRUCTIONS = """You are CareScan AI, a specialized medical assistant.
Your goal is to help users understand their medications, dosages, and safety restrictions."""

_GUIDELINES = """Guidelines:
1. Provide clear, medically-grounded information.
2. If asked about side effects or restrictions, be thorough but easy to understand.
3. ALWAYS include a disclaimer that you are an AI and the user should consult a doctor.
4. Avoid providing specific medical diagnoses; focus on medication information.
5. Use a helpful, professional, and empathetic tone.
6. Format answers with short paragraphs or bullet points; keep dosage figures exact."""


def render_history(
    history: Optional[Iterable[ConversationTurn]],
    window: int = HISTORY_WINDOW,
) -> str:
    """Last *window* turns as ``role: content`` lines, oldest first."""
    turns = list(history or [])[-window:] if window > 0 else []
    if not turns:
        return NO_HISTORY
    return "\n".join(turn.render() for turn in turns)


def build_prompt(
    message: str,
    history: Optional[Iterable[ConversationTurn]],
    personalization: PersonalizationBlock,
    window: int = HISTORY_WINDOW,
) -> str:
    sections = [_INSTRUCTIONS, _GUIDELINES]
    if not personalization.is_empty:
        sections.append(personalization.text)
    sections.append(f"Previous Chat History:\n{render_history(history, window)}")
    sections.append(f"User Message: {message}")
    return "\n\n".join(sections)


class ConsultationService:
    """Answers one consultation message via the inference service."""

    def __init__(
        self,
        inference: InferencePort,
        default_timeout: Optional[float] = None,
        history_window: int = HISTORY_WINDOW,
    ):
        self._inference = inference
        self._default_timeout = default_timeout
        self._history_window = history_window

    async def consult(
        self,
        message: str,
        history: Optional[Iterable[ConversationTurn]],
        personalization: PersonalizationBlock,
        timeout: Optional[float] = None,
    ) -> str:
        """Return the assistant's reply to *message*.

        Raises:
            MissingMessage:       message is empty (inference is not called).
            InferenceUnavailable: the inference call failed or timed out.
        """
        if not message or not message.strip():
            raise MissingMessage("Message is required.")

        prompt = build_prompt(message, history, personalization, self._history_window)
        timeout = timeout if timeout is not None else self._default_timeout
        logger.info(
            "Consultation for user %s (personalized=%s, prompt=%d chars)",
            personalization.user_id, not personalization.is_empty, len(prompt),
        )

        try:
            reply = await self._inference.complete(prompt, timeout=timeout)
        except InferenceUnavailable as exc:
            logger.error("Inference unavailable: %s", exc.detail)
            raise
        except Exception as exc:
            logger.error("Inference failed: %s", exc)
            raise InferenceUnavailable(detail=f"{type(exc).__name__}: {exc}") from exc

        if not isinstance(reply, str) or not reply.strip():
            logger.error("Inference returned an unusable reply: %r", reply)
            raise InferenceUnavailable(detail="Inference returned an empty or non-text reply")
        return reply
