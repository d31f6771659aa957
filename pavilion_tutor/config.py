from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "gemini",
    "llm_model": "gemini-3-flash-preview",
    "tts_provider": "gemini",
    "tts_model": "gemini-2.5-flash-preview-tts",
    "tts_voice": "Kore",
    "gemini_url": "https://generativelanguage.googleapis.com/v1beta",
    "ollama_url": "http://localhost:11434",
    "explain_temperature": 0.7,
    "tutor_temperature": 0.8,
    "request_timeout": 60.0,
    "audio_cache_dir": "audio_cache",
    "audio_enabled": True,
    "content_file": "",
    "host": "127.0.0.1",
    "port": 8765,
}


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    tts_provider: str = DEFAULTS["tts_provider"]
    tts_model: str = DEFAULTS["tts_model"]
    tts_voice: str = DEFAULTS["tts_voice"]
    gemini_url: str = DEFAULTS["gemini_url"]
    ollama_url: str = DEFAULTS["ollama_url"]
    explain_temperature: float = DEFAULTS["explain_temperature"]
    tutor_temperature: float = DEFAULTS["tutor_temperature"]
    request_timeout: float = DEFAULTS["request_timeout"]
    audio_cache_dir: str = DEFAULTS["audio_cache_dir"]
    audio_enabled: bool = DEFAULTS["audio_enabled"]
    content_file: str = DEFAULTS["content_file"]
    host: str = DEFAULTS["host"]
    port: int = DEFAULTS["port"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def audio_cache_full_path(self) -> Path:
        return self.project_root / self.audio_cache_dir

    @property
    def speech_voice(self) -> str:
        """Identifies the narration voice; cached audio is keyed on it."""
        return f"{self.tts_provider}/{self.tts_model}/{self.tts_voice}"

    @property
    def content_full_path(self) -> Path:
        if self.content_file:
            return self.project_root / self.content_file
        return Path(__file__).resolve().parent / "data" / "content.json"

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "tts_provider": self.tts_provider,
            "tts_model": self.tts_model,
            "tts_voice": self.tts_voice,
            "gemini_url": self.gemini_url,
            "ollama_url": self.ollama_url,
            "explain_temperature": self.explain_temperature,
            "tutor_temperature": self.tutor_temperature,
            "request_timeout": self.request_timeout,
            "audio_cache_dir": self.audio_cache_dir,
            "audio_enabled": self.audio_enabled,
            "content_file": self.content_file,
            "host": self.host,
            "port": self.port,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
