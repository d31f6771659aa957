"""Loads the fixed passages and quiz questions the sessions read from."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from pavilion_tutor.models import Annotation, Passage, QuizQuestion


@dataclass(frozen=True)
class Content:
    passages: tuple[Passage, ...]
    questions: tuple[QuizQuestion, ...]

    def passage(self, paragraph_id: int) -> Passage | None:
        return next((p for p in self.passages if p.id == paragraph_id), None)


def parse_passage(raw: dict) -> Passage:
    pid = int(raw["id"])
    if pid < 1:
        raise ValueError(f"Passage id must be >= 1, got {pid}")
    return Passage(
        id=pid,
        content=raw["content"],
        translation=raw.get("translation", ""),
        annotations=tuple(
            Annotation(a["word"], a["meaning"], a.get("origin"))
            for a in raw.get("annotations", [])
        ),
    )


def parse_question(raw: dict) -> QuizQuestion:
    options = tuple(raw["options"])
    correct = int(raw["correct_option_index"])
    if len(options) < 2:
        raise ValueError(f"Question needs at least 2 options: {raw['prompt']!r}")
    if not 0 <= correct < len(options):
        raise ValueError(f"correct_option_index {correct} out of range: {raw['prompt']!r}")
    return QuizQuestion(
        prompt=raw["prompt"],
        options=options,
        correct_option_index=correct,
        explanation=raw.get("explanation", ""),
    )


def parse_content(raw: dict) -> Content:
    passages = tuple(parse_passage(p) for p in raw.get("passages", []))
    ids = [p.id for p in passages]
    if len(ids) != len(set(ids)):
        raise ValueError("Duplicate passage ids")
    questions = tuple(parse_question(q) for q in raw.get("questions", []))
    return Content(passages=passages, questions=questions)


def load_content(path: Path) -> Content:
    return parse_content(json.loads(path.read_text(encoding="utf-8")))
