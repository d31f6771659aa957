"""Prompt templates for explanations, tutoring and narration."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pavilion_tutor.models import Passage

TEXT_TITLE = "《滕王阁序》"

EXPLAIN_SYSTEM = (
    "你是一个专业的语文老师，语气温和、博学，"
    "能用现代学生易懂的语言解释艰深的古文。"
)

EXPLAIN_PROMPT = """\
你是一名资深的中国古典文学教授。请深入浅出地解释{title}中的以下句子，\
包括字词含义、修辞手法、文学意境和背后的历史文化典故：

"{text}"
"""

TUTOR_SYSTEM = (
    "你是一个专注于{title}教学的AI助手。你的任务是引导学生思考，"
    "解答他们的疑问，激发他们对中国古典文学的兴趣。"
)

TUTOR_PROMPT = """\
学生关于{title}提出了一个问题：{question}

参考文本背景：{context}"""

SPEECH_PROMPT = """\
请用沉稳、典雅、充满感情的语调朗读这段{title}原文：

{text}"""

# Returned when the model answers with an empty text body.
EMPTY_EXPLANATION = "抱歉，我暂时无法解释这段文字。"
EMPTY_TUTOR_ANSWER = "这个问题太深奥了，让我再思考一下。"


def format_explain_prompt(text: str) -> str:
    return EXPLAIN_PROMPT.format(title=TEXT_TITLE, text=text)


def format_tutor_prompt(question: str, context: str) -> str:
    return TUTOR_PROMPT.format(title=TEXT_TITLE, question=question, context=context)


def format_tutor_system() -> str:
    return TUTOR_SYSTEM.format(title=TEXT_TITLE)


def format_speech_prompt(text: str) -> str:
    return SPEECH_PROMPT.format(title=TEXT_TITLE, text=text)


def full_text_context(passages: list[Passage] | tuple[Passage, ...]) -> str:
    """Join every passage's original text, one per line."""
    return "\n".join(p.content for p in passages)
