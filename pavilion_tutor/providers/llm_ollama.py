from __future__ import annotations

import logging
import re
import time

import httpx

from pavilion_tutor.providers.base import LLMProvider

log = logging.getLogger("pavilion_tutor.llm")

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)


class OllamaProvider(LLMProvider):
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "qwen3:8b",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._transport = transport

    async def generate(self, prompt: str, temperature: float = 0.7, system: str | None = None) -> str:
        log.info("── PROMPT (%s) ──\n%s", self.model, prompt)
        if system:
            log.info("── SYSTEM ──\n%s", system)
        body: dict = {
            "model": self.model,
            "prompt": prompt,
            "temperature": temperature,
            "stream": False,
            "think": False,
        }
        if system:
            body["system"] = system

        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=120.0, transport=self._transport) as client:
            resp = await client.post(f"{self.base_url}/api/generate", json=body)
            resp.raise_for_status()
            data = resp.json()
        elapsed = time.monotonic() - t0
        # Qwen3 may still emit <think> blocks with thinking disabled
        response = _THINK_BLOCK.sub("", data["response"]).strip()
        tokens = data.get("eval_count", "?")
        log.info("── RESPONSE (%.1fs, %s tokens) ──\n%s", elapsed, tokens, response)
        return response

    def name(self) -> str:
        return f"ollama/{self.model}"
