"""PCM decoding, single-output playback, and the narration cache."""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from pavilion_tutor.errors import DecodeError

if TYPE_CHECKING:
    from pavilion_tutor.gateway import AIGateway

log = logging.getLogger("pavilion_tutor.audio")

SAMPLE_RATE = 24000
SAMPLE_SCALE = 32768.0


def decode_pcm(payload: bytes) -> np.ndarray:
    """Decode little-endian signed 16-bit mono PCM into float32 samples in [-1.0, 1.0)."""
    if len(payload) % 2:
        raise DecodeError(f"PCM payload has odd length {len(payload)}")
    samples = np.frombuffer(payload, dtype="<i2")
    return samples.astype(np.float32) / SAMPLE_SCALE


def duration_seconds(buffer: np.ndarray) -> float:
    return len(buffer) / SAMPLE_RATE


class AudioPlayer:
    """The process-wide output device. Owns at most one scheduled buffer.

    ``backend`` is anything with sounddevice's ``play``/``stop`` signature;
    by default the real sounddevice module is imported on first use.
    """

    def __init__(self, backend=None, sample_rate: int = SAMPLE_RATE):
        self._backend = backend
        self.sample_rate = sample_rate

    def _device(self):
        if self._backend is None:
            import sounddevice
            self._backend = sounddevice
        return self._backend

    async def play(self, buffer: np.ndarray) -> None:
        """Schedule ``buffer`` for immediate playback and return without waiting for it to finish."""
        if buffer.size == 0:
            return
        log.info("Playing %.1fs of audio", duration_seconds(buffer))
        self._device().play(buffer, samplerate=self.sample_rate, blocking=False)

    def stop(self) -> None:
        if self._backend is None:
            return  # nothing was ever played
        self._backend.stop()


def text_hash(text: str, voice: str = "") -> str:
    """Cache key for ``text`` spoken by ``voice``; a different voice never shares audio."""
    key = f"{voice}\n{text}" if voice else text
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def get_or_create_speech(
    text: str,
    gateway: AIGateway,
    cache_dir: Path | None,
    voice: str = "",
) -> bytes | None:
    """Return cached PCM for ``text`` or synthesize and cache it.

    Raises ServiceError from the gateway; a response without audio is not cached.
    Cache read and write failures are logged and never raised.
    """
    cache_path = None
    if cache_dir is not None:
        cache_path = cache_dir / f"{text_hash(text, voice)}.pcm"
        try:
            if cache_path.is_file():
                log.debug("Speech cache hit: %s", cache_path.name)
                return cache_path.read_bytes()
        except OSError as e:
            log.warning("Speech cache read failed for %s: %s", cache_path.name, e)

    audio = await gateway.synthesize_speech(text)
    # only well-formed PCM is cached
    if audio and len(audio) % 2 == 0 and cache_path is not None:
        try:
            cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path.write_bytes(audio)
        except OSError as e:
            log.warning("Speech cache write failed in %s: %s", cache_dir, e)
    return audio
