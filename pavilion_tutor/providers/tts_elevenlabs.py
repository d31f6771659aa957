from __future__ import annotations

import asyncio
import os

from pavilion_tutor.providers.base import TTSProvider


class ElevenLabsProvider(TTSProvider):
    """ElevenLabs narration requested as raw 24 kHz 16-bit PCM, matching the codec."""

    def __init__(self, voice_id: str = "lfBVYbXnblkOddWFfEIg", model_id: str = "eleven_multilingual_v2"):
        from elevenlabs import ElevenLabs
        self.client = ElevenLabs(
            api_key=os.environ.get("ELEVEN_LABS_API_KEY", ""),
        )
        self.voice_id = voice_id
        self.model_id = model_id

    async def synthesize(self, text: str) -> bytes | None:
        from elevenlabs.types import VoiceSettings

        def _generate() -> bytes:
            audio = self.client.text_to_speech.convert(
                voice_id=self.voice_id,
                text=text,
                model_id=self.model_id,
                output_format="pcm_24000",
                voice_settings=VoiceSettings(
                    stability=0.5,
                    similarity_boost=0.75,
                    style=0.3,
                    speed=0.9,
                ),
            )
            # audio is a generator of bytes
            return b"".join(audio)

        data = await asyncio.get_running_loop().run_in_executor(None, _generate)
        return data or None

    def name(self) -> str:
        return f"elevenlabs/{self.voice_id}"
