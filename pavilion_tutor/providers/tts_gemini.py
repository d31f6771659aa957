from __future__ import annotations

import base64
import logging
import time

import httpx

from pavilion_tutor.providers.base import TTSProvider
from pavilion_tutor.providers.llm_gemini import DEFAULT_URL, gemini_api_key

log = logging.getLogger("pavilion_tutor.tts")


def extract_inline_audio(data: dict) -> str | None:
    """Return the base64 audio at candidates[0].content.parts[0].inlineData.data, if any."""
    candidates = data.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return None
    inline = parts[0].get("inlineData") or parts[0].get("inline_data") or {}
    return inline.get("data") or None


class GeminiTTSProvider(TTSProvider):
    def __init__(
        self,
        model: str = "gemini-2.5-flash-preview-tts",
        voice: str = "Kore",
        base_url: str = DEFAULT_URL,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.model = model
        self.voice = voice
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key if api_key is not None else gemini_api_key()
        self._transport = transport

    async def synthesize(self, text: str) -> bytes | None:
        body = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": self.voice}},
                },
            },
        }
        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=120.0, transport=self._transport) as client:
            resp = await client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()

        encoded = extract_inline_audio(data)
        if encoded is None:
            log.info("Synthesis returned no audio (%.1fs)", time.monotonic() - t0)
            return None
        audio = base64.b64decode(encoded)
        log.info("Synthesized %d bytes (%.1fs)", len(audio), time.monotonic() - t0)
        return audio

    def name(self) -> str:
        return f"gemini-tts/{self.voice}"
