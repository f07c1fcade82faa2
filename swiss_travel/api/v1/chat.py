from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from swiss_travel.core.errors import LLMError
from swiss_travel.schemas.chat import ChatRequest
from swiss_travel.services.assistant import TravelAssistant, get_assistant

logger = logging.getLogger(__name__)
router = APIRouter(tags=["chat"])


async def _reply(assistant: TravelAssistant, message: str) -> str:
    try:
        return await assistant.chat(message)
    except LLMError as exc:
        logger.exception("Chat turn failed: %s", exc)
        raise HTTPException(status_code=502, detail="Upstream LLM error")


@router.post("/chat", response_class=PlainTextResponse)
async def chat(
    payload: ChatRequest,
    assistant: TravelAssistant = Depends(get_assistant),
):
    return await _reply(assistant, payload.message)


@router.get("/chat", response_class=PlainTextResponse)
async def chat_get(
    q: str = Query(..., min_length=1),
    assistant: TravelAssistant = Depends(get_assistant),
):
    return await _reply(assistant, q)
