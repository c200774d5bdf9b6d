"""
JamBot chat endpoints and the landing page CMS document.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from jamakers.auth import Principal, require_authenticated
from jamakers.authorization import require_role
from jamakers.cms import LandingCms
from jamakers.dependencies import get_assistant, get_cms
from jamakers.schemas import ChatPayload, LandingConfigUpdate
from models.assistant import AssistantClient, AssistantError
from shared.types import UserRole

logger = logging.getLogger(__name__)

router = APIRouter()


def _message_and_history(payload: ChatPayload):
    if not payload.message or not payload.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")
    history = [turn.model_dump() for turn in payload.conversation_history]
    return payload.message, history


@router.post("/chat")
def chat(
    payload: ChatPayload,
    _: Principal = Depends(require_authenticated),
    assistant: AssistantClient = Depends(get_assistant),
):
    message, history = _message_and_history(payload)
    try:
        reply = assistant.complete(message, history)
    except AssistantError as exc:
        raise HTTPException(status_code=500, detail="Failed to generate response") from exc
    return {"response": reply}


@router.post("/chat/stream")
def chat_stream(
    payload: ChatPayload,
    _: Principal = Depends(require_authenticated),
    assistant: AssistantClient = Depends(get_assistant),
):
    message, history = _message_and_history(payload)
    try:
        fragments = assistant.stream(message, history)
    except AssistantError as exc:
        raise HTTPException(status_code=502, detail="Failed to connect to the assistant") from exc
    return StreamingResponse(fragments, media_type="text/plain; charset=utf-8")


@router.get("/cms/landing")
def get_landing_config(cms: LandingCms = Depends(get_cms)):
    return cms.get()


@router.put("/cms/landing")
def update_landing_config(
    payload: LandingConfigUpdate,
    _: Principal = Depends(require_role(UserRole.ADMIN)),
    cms: LandingCms = Depends(get_cms),
):
    return cms.update(payload.model_dump(exclude_unset=True))
