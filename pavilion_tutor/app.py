"""FastAPI application exposing the study sessions to the reader UI."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from pavilion_tutor.audio import AudioPlayer
from pavilion_tutor.config import Settings, load_settings, save_settings
from pavilion_tutor.content import Content, load_content
from pavilion_tutor.gateway import AIGateway, build_gateway
from pavilion_tutor.models import ChatState, ExplanationState, Passage, QuizState, SpeechState
from pavilion_tutor.quiz import QuizEngine, percentage
from pavilion_tutor.sessions import ChatSession, ExplanationSession, SpeechSession

app = FastAPI(title="Pavilion Tutor")

log = logging.getLogger("pavilion_tutor.app")

# Global state (initialized in startup)
_settings: Settings | None = None
_content: Content | None = None
_gateway: AIGateway | None = None
_explanation: ExplanationSession | None = None
_speech: SpeechSession | None = None
_chat: ChatSession | None = None
_quiz: QuizEngine | None = None


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def get_content() -> Content:
    assert _content is not None
    return _content


def init_sessions(
    settings: Settings,
    content: Content,
    gateway: AIGateway,
    player: AudioPlayer | None = None,
) -> None:
    global _settings, _content, _gateway, _explanation, _speech, _chat, _quiz
    _settings = settings
    _content = content
    _gateway = gateway
    _explanation = ExplanationSession(gateway)
    _speech = SpeechSession(
        gateway,
        player=player,
        cache_dir=settings.audio_cache_full_path,
        voice=settings.speech_voice,
    )
    _chat = ChatSession(gateway, content.passages)
    _quiz = QuizEngine(content.questions)


def clear_sessions() -> None:
    global _settings, _content, _gateway, _explanation, _speech, _chat, _quiz
    _settings = _content = _gateway = None
    _explanation = _speech = _chat = _quiz = None


@app.on_event("startup")
async def startup():
    if _settings is not None:
        return  # Already initialized (e.g. by tests)
    settings = load_settings()
    content = load_content(settings.content_full_path)
    log.info("Loaded %d passages, %d quiz questions",
             len(content.passages), len(content.questions))
    init_sessions(settings, content, build_gateway(settings))


@app.on_event("shutdown")
async def shutdown():
    if _speech is not None:
        _speech.stop()


def _passage_or_404(paragraph_id: int) -> Passage:
    passage = get_content().passage(paragraph_id)
    if passage is None:
        raise HTTPException(404, f"Paragraph {paragraph_id} not found")
    return passage


async def _body(request: Request) -> dict:
    if not await request.body():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Malformed JSON body")
    if not isinstance(body, dict):
        raise HTTPException(400, "Expected a JSON object")
    return body


async def _finish(task: asyncio.Task | None, wait: bool) -> None:
    if task is not None and wait:
        await task


# ── Serialization ─────────────────────────────────────────────────────────

def passage_dict(p: Passage) -> dict:
    return {
        "id": p.id,
        "content": p.content,
        "translation": p.translation,
        "annotations": [
            {"word": a.word, "meaning": a.meaning, "origin": a.origin}
            for a in p.annotations
        ],
    }


def explanation_dict(s: ExplanationState) -> dict:
    return {
        "active_paragraph_id": s.active_paragraph_id,
        "status": s.status.value,
        "text": s.text,
    }


def speech_dict(s: SpeechState) -> dict:
    return {"speaking_paragraph_id": s.speaking_paragraph_id}


def chat_dict(s: ChatState) -> dict:
    return {
        "status": s.status.value,
        "messages": [{"role": m.role.value, "content": m.content} for m in s.messages],
    }


def quiz_dict(s: QuizState) -> dict:
    q = s.current_question
    return {
        "total": len(s.questions),
        "current_index": s.current_index,
        "score": s.score,
        "selected_option": s.selected_option,
        "revealed": s.revealed,
        "finished": s.finished,
        "percentage": percentage(s),
        "question": None if q is None else {
            "prompt": q.prompt,
            "options": list(q.options),
            # correctness is only shown once the answer is locked
            "correct_option_index": q.correct_option_index if s.revealed else None,
            "explanation": q.explanation if s.revealed else None,
        },
    }


# ── API: Content & state ──────────────────────────────────────────────────

@app.get("/api/passages")
async def api_passages():
    return [passage_dict(p) for p in get_content().passages]


@app.get("/api/state")
async def api_state():
    return {
        "explanation": explanation_dict(_explanation.state),
        "speech": speech_dict(_speech.state),
        "chat": chat_dict(_chat.state),
        "quiz": quiz_dict(_quiz.state),
    }


# ── API: Explanation ──────────────────────────────────────────────────────

@app.get("/api/explanation")
async def api_explanation():
    return explanation_dict(_explanation.state)


@app.post("/api/explain/dismiss")
async def api_explain_dismiss():
    _explanation.dismiss()
    return {"accepted": True, "explanation": explanation_dict(_explanation.state)}


@app.post("/api/explain/{paragraph_id}")
async def api_explain(paragraph_id: int, wait: bool = False):
    passage = _passage_or_404(paragraph_id)
    task = _explanation.request_explanation(passage)
    await _finish(task, wait)
    return {"accepted": task is not None, "explanation": explanation_dict(_explanation.state)}


# ── API: Narration ────────────────────────────────────────────────────────

@app.get("/api/speech")
async def api_speech():
    return speech_dict(_speech.state)


@app.post("/api/speak/stop")
async def api_speak_stop():
    _speech.stop()
    return {"accepted": True, "speech": speech_dict(_speech.state)}


@app.post("/api/speak/{paragraph_id}")
async def api_speak(paragraph_id: int, wait: bool = False):
    if not get_settings().audio_enabled:
        raise HTTPException(400, "Narration is disabled")
    passage = _passage_or_404(paragraph_id)
    task = _speech.speak(passage)
    await _finish(task, wait)
    return {"accepted": task is not None, "speech": speech_dict(_speech.state)}


# ── API: Tutor chat ───────────────────────────────────────────────────────

@app.get("/api/chat")
async def api_chat_get():
    return chat_dict(_chat.state)


@app.post("/api/chat")
async def api_chat(request: Request, wait: bool = False):
    body = await _body(request)
    message = body.get("message", "")
    if not isinstance(message, str):
        raise HTTPException(400, "message must be a string")
    task = _chat.send(message)
    await _finish(task, wait)
    return {"accepted": task is not None, "chat": chat_dict(_chat.state)}


@app.post("/api/chat/reset")
async def api_chat_reset():
    _chat.reset()
    return {"accepted": True, "chat": chat_dict(_chat.state)}


# ── API: Quiz ─────────────────────────────────────────────────────────────

@app.get("/api/quiz")
async def api_quiz():
    return quiz_dict(_quiz.state)


@app.post("/api/quiz/select")
async def api_quiz_select(request: Request):
    body = await _body(request)
    option = body.get("option")
    if not isinstance(option, int) or isinstance(option, bool):
        raise HTTPException(400, "option must be an integer")
    try:
        accepted = _quiz.select_option(option)
    except IndexError as e:
        raise HTTPException(400, str(e))
    return {"accepted": accepted, "quiz": quiz_dict(_quiz.state)}


@app.post("/api/quiz/next")
async def api_quiz_next():
    accepted = _quiz.next()
    return {"accepted": accepted, "quiz": quiz_dict(_quiz.state)}


@app.post("/api/quiz/reset")
async def api_quiz_reset():
    _quiz.reset()
    return {"accepted": True, "quiz": quiz_dict(_quiz.state)}


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    global _settings, _gateway
    body = await _body(request)
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    s = replace(get_settings(), **{k: v for k, v in body.items() if k in known})
    try:
        gateway = build_gateway(s)
    except ValueError as e:
        raise HTTPException(400, str(e))
    save_settings(s)
    _settings, _gateway = s, gateway
    # Open sessions keep their state; only providers and the narration cache change
    for session in (_explanation, _speech, _chat):
        session.gateway = gateway
    _speech.cache_dir = s.audio_cache_full_path
    _speech.voice = s.speech_voice
    return s.to_dict()
