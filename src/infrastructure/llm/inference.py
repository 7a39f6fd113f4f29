"""
infrastructure.llm.inference - Text-completion adapter over a LangChain model.

Implements InferencePort. The call goes through the model's native async
``ainvoke`` under ``asyncio.wait_for``, so a timeout cancels the pending
request instead of leaving a worker thread blocked on it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from domain.exceptions import InferenceUnavailable

logger = logging.getLogger(__name__)


class LangChainInferenceService:
    """Send one prompt, get one reply string back.

    Safe for concurrent use: the wrapped model is only read.
    """

    def __init__(self, llm: Any, default_timeout: Optional[float] = None):
        self._llm = llm
        self._default_timeout = default_timeout

    async def complete(self, prompt: str, timeout: Optional[float] = None) -> str:
        timeout = timeout if timeout is not None else self._default_timeout
        try:
            result = await asyncio.wait_for(self._llm.ainvoke(prompt), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise InferenceUnavailable(
                detail=f"Inference timed out after {timeout}s",
            ) from exc
        except Exception as exc:
            raise InferenceUnavailable(detail=f"{type(exc).__name__}: {exc}") from exc

        text = _extract_text(result)
        if not text:
            raise InferenceUnavailable(
                detail=f"Inference returned no text ({type(result).__name__})",
            )
        return text


def _extract_text(result: Any) -> str:
    """Pull the reply text out of an AIMessage, a plain string, or content blocks."""
    if isinstance(result, str):
        return result
    content = getattr(result, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return ""
