"""Stateful interactions between the reader UI and the AI gateway.

Each session owns its state object and a monotonic generation token.
Actions start asynchronous work as tracked tasks; when the work completes
it only writes back if the token it captured is still current, so a slow
response can never clobber state that was dismissed, reset or superseded.
Remote calls are never cancelled, only their effect is dropped.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from pathlib import Path
from typing import TYPE_CHECKING

from pavilion_tutor.audio import AudioPlayer, decode_pcm, duration_seconds, get_or_create_speech
from pavilion_tutor.errors import DecodeError, ServiceError
from pavilion_tutor.gateway import PromptKind, TutorQuestion
from pavilion_tutor.models import (
    ChatMessage,
    ChatState,
    ExplanationState,
    Role,
    SpeechState,
    Status,
)
from pavilion_tutor.prompts import full_text_context

if TYPE_CHECKING:
    from pavilion_tutor.gateway import AIGateway
    from pavilion_tutor.models import Passage

log = logging.getLogger("pavilion_tutor.session")

EXPLANATION_FALLBACK = "服务连接失败，请稍后再试。"
CHAT_GREETING = "你好！我是你的助教。对《滕王阁序》中的字词、典故或意境有任何疑问，都可以问我哦。"
CHAT_RESET_GREETING = "对话已重置。有什么我可以帮你的吗？"
CHAT_FALLBACK = "抱歉，我现在有点走神，请再试一次。"


class _AsyncSession:
    def __init__(self):
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()

    def _advance(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, token: int) -> bool:
        return token == self._generation

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every outstanding task, superseded or not."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class ExplanationSession(_AsyncSession):
    """Idle -> Loading -> Ready | Error, back to Idle on dismiss."""

    def __init__(self, gateway: AIGateway):
        super().__init__()
        self.gateway = gateway
        self.state = ExplanationState()

    def request_explanation(self, passage: Passage) -> asyncio.Task | None:
        """Start explaining ``passage``. Returns None if one is already loading."""
        if self.state.status is Status.LOADING:
            log.debug("Explanation for %s still loading, ignoring %d",
                      self.state.active_paragraph_id, passage.id)
            return None
        token = self._advance()
        self.state = ExplanationState(active_paragraph_id=passage.id, status=Status.LOADING)
        return self._spawn(self._explain(passage, token))

    async def _explain(self, passage: Passage, token: int) -> None:
        try:
            text = await self.gateway.generate_text(PromptKind.EXPLAIN, passage.content)
            outcome = ExplanationState(passage.id, Status.READY, text)
        except ServiceError as e:
            log.warning("Explanation for paragraph %d failed: %s", passage.id, e)
            outcome = ExplanationState(passage.id, Status.ERROR, EXPLANATION_FALLBACK)

        if not self._is_current(token):
            log.info("Discarding stale explanation for paragraph %d", passage.id)
            return
        self.state = outcome

    def dismiss(self) -> None:
        self._advance()
        self.state = ExplanationState()


class SpeechSession(_AsyncSession):
    """Narrates one passage at a time; concurrent requests are rejected.

    The speaking slot stays occupied while the scheduled buffer plays so
    the output device never receives a second buffer on top of the first.
    """

    def __init__(
        self,
        gateway: AIGateway,
        player: AudioPlayer | None = None,
        cache_dir: Path | None = None,
        voice: str = "",
        hold_while_playing: bool = True,
    ):
        super().__init__()
        self.gateway = gateway
        self.player = player or AudioPlayer()
        self.cache_dir = cache_dir
        self.voice = voice
        self.hold_while_playing = hold_while_playing
        self.state = SpeechState()

    def speak(self, passage: Passage) -> asyncio.Task | None:
        if self.state.speaking_paragraph_id is not None:
            log.debug("Paragraph %d is speaking, ignoring %d",
                      self.state.speaking_paragraph_id, passage.id)
            return None
        token = self._advance()
        self.state = SpeechState(speaking_paragraph_id=passage.id)
        return self._spawn(self._narrate(passage, token))

    async def _narrate(self, passage: Passage, token: int) -> None:
        try:
            audio = await get_or_create_speech(
                passage.content, self.gateway, self.cache_dir, self.voice)
            if audio is None:
                log.info("No audio returned for paragraph %d", passage.id)
                return
            buffer = decode_pcm(audio)
            if not self._is_current(token):
                log.info("Discarding stale narration for paragraph %d", passage.id)
                return
            await self.player.play(buffer)
            if self.hold_while_playing:
                await asyncio.sleep(duration_seconds(buffer))
        except (ServiceError, DecodeError) as e:
            log.warning("Narration for paragraph %d failed: %s", passage.id, e)
        finally:
            if self._is_current(token):
                self.state = SpeechState()

    def stop(self) -> None:
        """Release the slot and silence the device; a pending synthesis is discarded."""
        if self.state.speaking_paragraph_id is None:
            return
        self._advance()
        self.state = SpeechState()
        self.player.stop()


class ChatSession(_AsyncSession):
    def __init__(self, gateway: AIGateway, passages: list[Passage] | tuple[Passage, ...]):
        super().__init__()
        self.gateway = gateway
        self.context = full_text_context(passages)
        self.state = ChatState(messages=[ChatMessage(Role.ASSISTANT, CHAT_GREETING)])

    @property
    def messages(self) -> list[ChatMessage]:
        return self.state.messages

    def send(self, user_text: str) -> asyncio.Task | None:
        question = user_text.strip()
        if not question:
            return None
        if self.state.status is Status.AWAITING:
            log.debug("Tutor reply pending, ignoring new message")
            return None
        self.state.messages.append(ChatMessage(Role.USER, question))
        self.state.status = Status.AWAITING
        return self._spawn(self._answer(question, self._generation))

    async def _answer(self, question: str, token: int) -> None:
        try:
            reply = await self.gateway.generate_text(
                PromptKind.TUTOR_ANSWER,
                TutorQuestion(question=question, context=self.context),
            )
        except ServiceError as e:
            log.warning("Tutor request failed: %s", e)
            reply = CHAT_FALLBACK

        if not self._is_current(token):
            log.info("Discarding tutor reply for a conversation that was reset")
            return
        self.state.messages.append(ChatMessage(Role.ASSISTANT, reply))
        self.state.status = Status.IDLE

    def reset(self) -> None:
        self._advance()
        self.state = ChatState(messages=[ChatMessage(Role.ASSISTANT, CHAT_RESET_GREETING)])
