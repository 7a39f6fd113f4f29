from __future__ import annotations

import asyncio

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage

from application.services.consultation import (
    ConsultationService,
    build_prompt,
    render_history,
)
from domain.exceptions import InferenceUnavailable, MissingMessage
from domain.models import ConversationTurn, PersonalizationBlock
from infrastructure.llm.inference import LangChainInferenceService
from infrastructure.llm.llm_builder import build_llm

from conftest import FakeInference

PROFILE = PersonalizationBlock(
    text="PATIENT PROFILE:\n- Name: alice\n- Age: 61",
    user_id=1,
)


def _turns(n: int) -> list[ConversationTurn]:
    return [
        ConversationTurn(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
        for i in range(n)
    ]


class SlowLLM:
    def __init__(self, delay: float):
        self.delay = delay
        self.cancelled = False

    async def ainvoke(self, prompt):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return AIMessage(content="too late")


class BrokenLLM:
    async def ainvoke(self, prompt):
        raise ConnectionError("connection refused")


@pytest.mark.asyncio
async def test_reply_is_returned_unmodified() -> None:
    inference = FakeInference(reply="  Take with food.\n")
    reply = await ConsultationService(inference).consult("Metformin?", [], PROFILE)

    assert reply == "  Take with food.\n"
    assert len(inference.prompts) == 1


@pytest.mark.asyncio
async def test_prompt_carries_profile_window_and_message() -> None:
    inference = FakeInference()
    await ConsultationService(inference).consult("Can I drink alcohol?", _turns(8), PROFILE)

    prompt = inference.prompts[0]
    assert PROFILE.text in prompt
    assert "turn 2" not in prompt
    for i in range(3, 8):
        assert f"turn {i}" in prompt
    assert prompt.index("turn 3") < prompt.index("turn 7")
    assert prompt.rstrip().endswith("User Message: Can I drink alcohol?")
    assert "consult a doctor" in prompt


@pytest.mark.asyncio
@pytest.mark.parametrize("message", ["", "   ", None])
async def test_empty_message_never_reaches_inference(message) -> None:
    inference = FakeInference()
    with pytest.raises(MissingMessage):
        await ConsultationService(inference).consult(message, [], PROFILE)
    assert inference.prompts == []


@pytest.mark.asyncio
async def test_inference_errors_become_unavailable() -> None:
    inference = FakeInference(error=RuntimeError("model crashed"))
    with pytest.raises(InferenceUnavailable) as excinfo:
        await ConsultationService(inference).consult("hello", [], PROFILE)
    assert "model crashed" in excinfo.value.detail


@pytest.mark.asyncio
async def test_blank_reply_is_unavailable() -> None:
    with pytest.raises(InferenceUnavailable):
        await ConsultationService(FakeInference(reply="  ")).consult("hello", [], PROFILE)


@pytest.mark.asyncio
async def test_default_timeout_is_passed_through() -> None:
    inference = FakeInference()
    service = ConsultationService(inference, default_timeout=12.5)

    await service.consult("hello", [], PROFILE)
    await service.consult("hello", [], PROFILE, timeout=3)

    assert inference.timeouts == [12.5, 3]


def test_prompt_without_personalization_or_history() -> None:
    prompt = build_prompt("hi", None, PersonalizationBlock.empty())
    assert "PATIENT PROFILE" not in prompt
    assert "Previous Chat History:\nNone" in prompt


def test_render_history_uses_role_prefixes() -> None:
    assert render_history(_turns(2)) == "user: turn 0\nassistant: turn 1"
    assert render_history([]) == "None"


# --- LangChain adapter ---

@pytest.mark.asyncio
async def test_langchain_adapter_returns_message_content() -> None:
    llm = FakeListChatModel(responses=["Ibuprofen may upset your stomach."])
    reply = await LangChainInferenceService(llm).complete("question", timeout=5)
    assert reply == "Ibuprofen may upset your stomach."


@pytest.mark.asyncio
async def test_langchain_adapter_times_out() -> None:
    llm = SlowLLM(delay=5)
    service = LangChainInferenceService(llm)
    with pytest.raises(InferenceUnavailable) as excinfo:
        await service.complete("question", timeout=0.05)
    assert "timed out" in excinfo.value.detail
    assert llm.cancelled


@pytest.mark.asyncio
async def test_langchain_adapter_wraps_provider_errors() -> None:
    service = LangChainInferenceService(BrokenLLM())
    with pytest.raises(InferenceUnavailable) as excinfo:
        await service.complete("question")
    assert "ConnectionError" in excinfo.value.detail


@pytest.mark.asyncio
async def test_consultation_timeout_through_adapter() -> None:
    service = ConsultationService(
        LangChainInferenceService(SlowLLM(delay=5)), default_timeout=0.05,
    )
    with pytest.raises(InferenceUnavailable):
        await service.consult("hello", [], PROFILE)


def test_build_llm_rejects_unknown_provider() -> None:
    with pytest.raises(ValueError):
        build_llm(provider="bard", model="x")


def test_build_llm_requires_api_key() -> None:
    with pytest.raises(ValueError):
        build_llm(provider="openai", model="gpt-4.1-mini", openai_api_key="")


def test_build_llm_forwards_timeout_to_ollama_client() -> None:
    llm = build_llm(provider="ollama", model="llama3.2", timeout=7)
    assert llm.client_kwargs == {"timeout": 7}
