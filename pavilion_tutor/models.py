from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Status(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    AWAITING = "awaiting"


@dataclass(frozen=True)
class Annotation:
    word: str
    meaning: str
    origin: str | None = None


@dataclass(frozen=True)
class Passage:
    id: int
    content: str
    translation: str
    annotations: tuple[Annotation, ...] = ()


@dataclass(frozen=True)
class QuizQuestion:
    prompt: str
    options: tuple[str, ...]
    correct_option_index: int
    explanation: str


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass
class ExplanationState:
    active_paragraph_id: int | None = None
    status: Status = Status.IDLE
    text: str | None = None


@dataclass
class SpeechState:
    speaking_paragraph_id: int | None = None


@dataclass
class ChatState:
    messages: list[ChatMessage] = field(default_factory=list)
    status: Status = Status.IDLE


@dataclass(frozen=True)
class QuizState:
    questions: tuple[QuizQuestion, ...]
    current_index: int = 0
    score: int = 0
    selected_option: int | None = None
    revealed: bool = False
    finished: bool = False

    @property
    def current_question(self) -> QuizQuestion | None:
        if self.finished or not self.questions:
            return None
        return self.questions[self.current_index]
