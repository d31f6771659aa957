from __future__ import annotations

import logging
import os
import time

import httpx

from pavilion_tutor.providers.base import LLMProvider

log = logging.getLogger("pavilion_tutor.llm")

DEFAULT_URL = "https://generativelanguage.googleapis.com/v1beta"


def gemini_api_key() -> str:
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY", "")


class GeminiProvider(LLMProvider):
    def __init__(
        self,
        model: str = "gemini-3-flash-preview",
        base_url: str = DEFAULT_URL,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key if api_key is not None else gemini_api_key()
        self._transport = transport

    async def generate(self, prompt: str, temperature: float = 0.7, system: str | None = None) -> str:
        log.info("── PROMPT (%s) ──\n%s", self.model, prompt)
        body: dict = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature},
        }
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}

        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=120.0, transport=self._transport) as client:
            resp = await client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()
        elapsed = time.monotonic() - t0

        parts = (data.get("candidates") or [{}])[0].get("content", {}).get("parts") or []
        response = "".join(p.get("text", "") for p in parts)
        log.info("── RESPONSE (%.1fs) ──\n%s", elapsed, response)
        return response

    def name(self) -> str:
        return f"gemini/{self.model}"
