"""Shared test fixtures."""
from __future__ import annotations

import asyncio

import pytest

from pavilion_tutor.content import Content
from pavilion_tutor.errors import ServiceError
from pavilion_tutor.models import Annotation, Passage, QuizQuestion


class FakeGateway:
    """Gateway double whose replies can be held back with an asyncio.Event.

    Set ``gate`` to an Event to keep every call pending until it is set;
    set ``error`` to make calls fail after the gate opens.
    """

    def __init__(self, text: str = "这是一段赏析。", audio: bytes | None = b"\x00\x00\xff\x7f"):
        self.text = text
        self.audio = audio
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.text_calls: list[tuple] = []
        self.speech_calls: list[str] = []

    async def generate_text(self, kind, payload) -> str:
        self.text_calls.append((kind, payload))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.text

    async def synthesize_speech(self, text: str) -> bytes | None:
        self.speech_calls.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.audio


class FakeBackend:
    """Stands in for the sounddevice module."""

    def __init__(self):
        self.played: list = []
        self.stopped = 0

    def play(self, data, samplerate: int, blocking: bool = False) -> None:
        self.played.append((data, samplerate, blocking))

    def stop(self) -> None:
        self.stopped += 1


@pytest.fixture
def passages():
    return (
        Passage(1, "豫章故郡，洪都新府。", "这里是汉代的豫章郡城。",
                (Annotation("豫章", "汉代郡名"),)),
        Passage(2, "时维九月，序属三秋。", "时值九月，正是深秋。"),
        Passage(3, "落霞与孤鹜齐飞，秋水共长天一色。", "落霞与野鸭一齐飞翔。"),
        Passage(4, "天高地迥，觉宇宙之无穷。", "天高地远，感到宇宙无穷。"),
        Passage(5, "关山难越，谁悲失路之人？", "关山难以越过，谁同情不得志的人？"),
    )


@pytest.fixture
def questions():
    return tuple(
        QuizQuestion(
            prompt=f"第{i + 1}题",
            options=("甲", "乙", "丙", "丁"),
            correct_option_index=i % 4,
            explanation=f"解析{i + 1}",
        )
        for i in range(5)
    )


@pytest.fixture
def content(passages, questions):
    return Content(passages=passages, questions=questions)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def failing_gateway():
    g = FakeGateway()
    g.error = ServiceError("quota exceeded")
    return g


@pytest.fixture
def backend():
    return FakeBackend()
