"""Typed client over the text-generation and speech-synthesis providers.

Builds prompts per request kind and normalizes every remote failure into
ServiceError. No retries happen here; callers choose their own fallback.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pavilion_tutor.errors import ServiceError
from pavilion_tutor.prompts import (
    EMPTY_EXPLANATION,
    EMPTY_TUTOR_ANSWER,
    EXPLAIN_SYSTEM,
    format_explain_prompt,
    format_speech_prompt,
    format_tutor_prompt,
    format_tutor_system,
)

if TYPE_CHECKING:
    from pavilion_tutor.config import Settings
    from pavilion_tutor.providers.base import LLMProvider, TTSProvider

log = logging.getLogger("pavilion_tutor.gateway")


class PromptKind(str, Enum):
    EXPLAIN = "explain"
    TUTOR_ANSWER = "tutor_answer"


@dataclass(frozen=True)
class TutorQuestion:
    question: str
    context: str


class AIGateway:
    def __init__(
        self,
        llm: LLMProvider,
        tts: TTSProvider | None = None,
        explain_temperature: float = 0.7,
        tutor_temperature: float = 0.8,
        timeout: float | None = 60.0,
    ):
        self.llm = llm
        self.tts = tts
        self.explain_temperature = explain_temperature
        self.tutor_temperature = tutor_temperature
        self.timeout = timeout

    async def generate_text(self, kind: PromptKind, payload: str | TutorQuestion) -> str:
        """Generate text for ``kind``.

        EXPLAIN takes the passage text; TUTOR_ANSWER takes a TutorQuestion.
        """
        if kind is PromptKind.EXPLAIN:
            if not isinstance(payload, str):
                raise TypeError("EXPLAIN expects the passage text")
            prompt = format_explain_prompt(payload)
            system, temperature, empty = EXPLAIN_SYSTEM, self.explain_temperature, EMPTY_EXPLANATION
        elif kind is PromptKind.TUTOR_ANSWER:
            if not isinstance(payload, TutorQuestion):
                raise TypeError("TUTOR_ANSWER expects a TutorQuestion")
            prompt = format_tutor_prompt(payload.question, payload.context)
            system, temperature, empty = format_tutor_system(), self.tutor_temperature, EMPTY_TUTOR_ANSWER
        else:
            raise ValueError(f"Unknown prompt kind: {kind}")

        text = await self._call(
            self.llm.generate(prompt, temperature=temperature, system=system),
            what=f"{kind.value} via {self.llm.name()}",
        )
        return text or empty

    async def synthesize_speech(self, text: str) -> bytes | None:
        if self.tts is None:
            raise ServiceError("No speech provider configured")
        return await self._call(
            self.tts.synthesize(format_speech_prompt(text)),
            what=f"speech via {self.tts.name()}",
        )

    async def _call(self, coro, what: str):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            log.warning("%s timed out after %.0fs", what, self.timeout)
            raise ServiceError(f"{what} timed out") from e
        except ServiceError:
            raise
        except Exception as e:
            log.warning("%s failed: %s", what, e)
            raise ServiceError(f"{what} failed: {e}") from e


def build_gateway(settings: Settings) -> AIGateway:
    return AIGateway(
        llm=build_llm(settings),
        tts=build_tts(settings) if settings.audio_enabled else None,
        explain_temperature=settings.explain_temperature,
        tutor_temperature=settings.tutor_temperature,
        timeout=settings.request_timeout,
    )


def build_llm(settings: Settings) -> LLMProvider:
    s = settings
    if s.llm_provider == "gemini":
        from pavilion_tutor.providers.llm_gemini import GeminiProvider
        return GeminiProvider(model=s.llm_model, base_url=s.gemini_url)
    elif s.llm_provider == "ollama":
        from pavilion_tutor.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=s.ollama_url, model=s.llm_model)
    elif s.llm_provider == "anthropic":
        from pavilion_tutor.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(model=s.llm_model)
    elif s.llm_provider == "openai":
        from pavilion_tutor.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=s.llm_model)
    raise ValueError(f"Unknown LLM provider: {s.llm_provider}")


def build_tts(settings: Settings) -> TTSProvider:
    s = settings
    if s.tts_provider == "gemini":
        from pavilion_tutor.providers.tts_gemini import GeminiTTSProvider
        return GeminiTTSProvider(model=s.tts_model, voice=s.tts_voice, base_url=s.gemini_url)
    elif s.tts_provider == "elevenlabs":
        from pavilion_tutor.providers.tts_elevenlabs import ElevenLabsProvider
        return ElevenLabsProvider(voice_id=s.tts_voice)
    raise ValueError(f"Unknown TTS provider: {s.tts_provider}")
