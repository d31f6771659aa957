"""Quiz progression and scoring as pure transitions over QuizState."""
from __future__ import annotations

import logging
from dataclasses import replace

from pavilion_tutor.models import QuizQuestion, QuizState

log = logging.getLogger("pavilion_tutor.quiz")


def new_quiz(questions: list[QuizQuestion] | tuple[QuizQuestion, ...]) -> QuizState:
    questions = tuple(questions)
    # with no questions the quiz is already past the last one
    return QuizState(questions=questions, finished=not questions)


def select_option(state: QuizState, idx: int) -> QuizState:
    """Answer the current question. One shot: a revealed question is locked."""
    question = state.current_question
    if state.revealed or question is None:
        return state
    if not 0 <= idx < len(question.options):
        raise IndexError(f"Option {idx} out of range for {len(question.options)} options")
    correct = idx == question.correct_option_index
    log.debug("Question %d: chose %d (%s)", state.current_index + 1, idx,
              "correct" if correct else "wrong")
    return replace(
        state,
        selected_option=idx,
        revealed=True,
        score=state.score + 1 if correct else state.score,
    )


def next_question(state: QuizState) -> QuizState:
    """Advance past a revealed question. Moving past the last one finishes the quiz."""
    if not state.revealed or state.finished:
        return state
    index = state.current_index + 1
    if index >= len(state.questions):
        log.info("Quiz finished: %d/%d", state.score, len(state.questions))
        return replace(state, current_index=index, finished=True)
    return replace(state, current_index=index, selected_option=None, revealed=False)


def reset_quiz(state: QuizState) -> QuizState:
    return new_quiz(state.questions)


def percentage(state: QuizState) -> int | None:
    """Rounded score percentage, available only once the quiz is finished."""
    if not state.finished or not state.questions:
        return None
    # round half up; Python's round() would send 50.5 to 50
    return int(100 * state.score / len(state.questions) + 0.5)


class QuizEngine:
    """Holds the current QuizState for the presentation layer."""

    def __init__(self, questions: list[QuizQuestion] | tuple[QuizQuestion, ...]):
        self.state = new_quiz(questions)

    def select_option(self, idx: int) -> bool:
        before = self.state
        self.state = select_option(self.state, idx)
        return self.state is not before

    def next(self) -> bool:
        before = self.state
        self.state = next_question(self.state)
        return self.state is not before

    def reset(self) -> None:
        self.state = reset_quiz(self.state)

    @property
    def percentage(self) -> int | None:
        return percentage(self.state)
