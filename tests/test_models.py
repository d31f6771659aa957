"""Tests for data models."""
from __future__ import annotations

import dataclasses

import pytest

from pavilion_tutor.models import (
    Annotation,
    ChatMessage,
    ChatState,
    ExplanationState,
    Passage,
    QuizQuestion,
    QuizState,
    Role,
    SpeechState,
    Status,
)


class TestPassage:
    def test_create(self):
        p = Passage(1, "豫章故郡", "豫章旧郡", (Annotation("豫章", "郡名", "《汉书》"),))
        assert p.id == 1
        assert p.annotations[0].origin == "《汉书》"

    def test_immutable(self):
        p = Passage(1, "豫章故郡", "豫章旧郡")
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.content = "改"


class TestChatMessage:
    def test_immutable(self):
        m = ChatMessage(Role.USER, "问")
        with pytest.raises(dataclasses.FrozenInstanceError):
            m.content = "改"


class TestStates:
    def test_explanation_defaults(self):
        s = ExplanationState()
        assert s.active_paragraph_id is None
        assert s.status is Status.IDLE
        assert s.text is None

    def test_speech_defaults(self):
        assert SpeechState().speaking_paragraph_id is None

    def test_chat_defaults(self):
        s = ChatState()
        assert s.messages == []
        assert s.status is Status.IDLE

    def test_quiz_current_question(self):
        q = QuizQuestion("问", ("甲", "乙"), 0, "")
        assert QuizState(questions=(q,)).current_question == q
        assert QuizState(questions=(q,), current_index=1, finished=True).current_question is None
        assert QuizState(questions=()).current_question is None

    def test_enum_values(self):
        assert Role.ASSISTANT.value == "assistant"
        assert Status.LOADING.value == "loading"
