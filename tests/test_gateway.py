"""Tests for prompt assembly and error normalization in the AI gateway."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from pavilion_tutor.config import Settings
from pavilion_tutor.errors import ServiceError
from pavilion_tutor.gateway import AIGateway, PromptKind, TutorQuestion, build_gateway, build_llm, build_tts
from pavilion_tutor.prompts import EMPTY_EXPLANATION, EMPTY_TUTOR_ANSWER, EXPLAIN_SYSTEM


class FakeLLM:
    """Simple fake LLM that avoids AsyncMock's `name` attribute issue."""

    def __init__(self, response: str = "好问题。", side_effect: Exception | None = None, delay: float = 0):
        self.response = response
        self.side_effect = side_effect
        self.delay = delay
        self.calls: list[dict] = []

    async def generate(self, prompt: str, temperature: float = 0.7, system: str | None = None) -> str:
        self.calls.append({"prompt": prompt, "temperature": temperature, "system": system})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.side_effect is not None:
            raise self.side_effect
        return self.response

    def name(self) -> str:
        return "fake-llm"


class FakeTTS:
    def __init__(self, audio: bytes | None = b"\x00\x80", side_effect: Exception | None = None):
        self.audio = audio
        self.side_effect = side_effect
        self.texts: list[str] = []

    async def synthesize(self, text: str) -> bytes | None:
        self.texts.append(text)
        if self.side_effect is not None:
            raise self.side_effect
        return self.audio

    def name(self) -> str:
        return "fake-tts"


class TestGenerateText:
    @pytest.mark.asyncio
    async def test_explain_prompt(self):
        llm = FakeLLM("赏析")
        gw = AIGateway(llm)
        result = await gw.generate_text(PromptKind.EXPLAIN, "落霞与孤鹜齐飞")

        assert result == "赏析"
        call = llm.calls[0]
        assert "落霞与孤鹜齐飞" in call["prompt"]
        assert "滕王阁序" in call["prompt"]
        assert call["temperature"] == 0.7
        assert call["system"] == EXPLAIN_SYSTEM

    @pytest.mark.asyncio
    async def test_tutor_prompt(self):
        llm = FakeLLM("答案")
        gw = AIGateway(llm)
        result = await gw.generate_text(
            PromptKind.TUTOR_ANSWER,
            TutorQuestion(question="帝子是谁？", context="第一段\n第二段"),
        )

        assert result == "答案"
        call = llm.calls[0]
        assert "帝子是谁？" in call["prompt"]
        assert "第一段\n第二段" in call["prompt"]
        assert call["temperature"] == 0.8
        assert "滕王阁序" in call["system"]

    @pytest.mark.asyncio
    async def test_custom_temperatures(self):
        llm = FakeLLM()
        gw = AIGateway(llm, explain_temperature=0.2, tutor_temperature=0.3)
        await gw.generate_text(PromptKind.EXPLAIN, "文")
        await gw.generate_text(PromptKind.TUTOR_ANSWER, TutorQuestion("问", "文"))
        assert [c["temperature"] for c in llm.calls] == [0.2, 0.3]

    @pytest.mark.asyncio
    async def test_empty_reply_gets_default_text(self):
        gw = AIGateway(FakeLLM(""))
        assert await gw.generate_text(PromptKind.EXPLAIN, "文") == EMPTY_EXPLANATION
        assert await gw.generate_text(PromptKind.TUTOR_ANSWER, TutorQuestion("问", "文")) == EMPTY_TUTOR_ANSWER

    @pytest.mark.asyncio
    async def test_wrong_payload_type(self):
        gw = AIGateway(FakeLLM())
        with pytest.raises(TypeError):
            await gw.generate_text(PromptKind.EXPLAIN, TutorQuestion("问", "文"))
        with pytest.raises(TypeError):
            await gw.generate_text(PromptKind.TUTOR_ANSWER, "问")

    @pytest.mark.asyncio
    async def test_provider_error_becomes_service_error(self):
        cause = RuntimeError("connection refused")
        gw = AIGateway(FakeLLM(side_effect=cause))
        with pytest.raises(ServiceError) as exc_info:
            await gw.generate_text(PromptKind.EXPLAIN, "文")
        assert exc_info.value.__cause__ is cause

    @pytest.mark.asyncio
    async def test_http_error_becomes_service_error(self):
        request = httpx.Request("POST", "https://example.invalid")
        response = httpx.Response(429, request=request)
        err = httpx.HTTPStatusError("quota", request=request, response=response)
        gw = AIGateway(FakeLLM(side_effect=err))
        with pytest.raises(ServiceError):
            await gw.generate_text(PromptKind.EXPLAIN, "文")

    @pytest.mark.asyncio
    async def test_timeout_becomes_service_error(self):
        gw = AIGateway(FakeLLM(delay=1.0), timeout=0.01)
        with pytest.raises(ServiceError, match="timed out"):
            await gw.generate_text(PromptKind.EXPLAIN, "文")

    @pytest.mark.asyncio
    async def test_no_retry(self):
        llm = FakeLLM(side_effect=RuntimeError("boom"))
        gw = AIGateway(llm)
        with pytest.raises(ServiceError):
            await gw.generate_text(PromptKind.EXPLAIN, "文")
        assert len(llm.calls) == 1


class TestSynthesizeSpeech:
    @pytest.mark.asyncio
    async def test_returns_audio(self):
        tts = FakeTTS(b"\x01\x02")
        gw = AIGateway(FakeLLM(), tts)
        assert await gw.synthesize_speech("秋水共长天一色") == b"\x01\x02"
        assert "秋水共长天一色" in tts.texts[0]

    @pytest.mark.asyncio
    async def test_no_audio_is_none(self):
        gw = AIGateway(FakeLLM(), FakeTTS(None))
        assert await gw.synthesize_speech("文") is None

    @pytest.mark.asyncio
    async def test_failure_becomes_service_error(self):
        gw = AIGateway(FakeLLM(), FakeTTS(side_effect=httpx.ConnectError("down")))
        with pytest.raises(ServiceError):
            await gw.synthesize_speech("文")

    @pytest.mark.asyncio
    async def test_without_provider(self):
        gw = AIGateway(FakeLLM())
        with pytest.raises(ServiceError):
            await gw.synthesize_speech("文")


class TestBuilders:
    def test_gemini_defaults(self):
        gw = build_gateway(Settings())
        assert gw.llm.name() == "gemini/gemini-3-flash-preview"
        assert gw.tts.name() == "gemini-tts/Kore"
        assert gw.explain_temperature == 0.7
        assert gw.tutor_temperature == 0.8
        assert gw.timeout == 60.0

    def test_ollama(self):
        llm = build_llm(Settings(llm_provider="ollama", llm_model="qwen3:8b"))
        assert llm.name() == "ollama/qwen3:8b"

    def test_audio_disabled(self):
        assert build_gateway(Settings(audio_enabled=False)).tts is None

    def test_unknown_llm(self):
        with pytest.raises(ValueError):
            build_llm(Settings(llm_provider="nope"))

    def test_unknown_tts(self):
        with pytest.raises(ValueError):
            build_tts(Settings(tts_provider="nope"))
