"""Chat router: orchestration endpoint and conversation history."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.chat_orchestrator.config import MAX_CONTEXT_MESSAGES, MAX_STORED_MESSAGES
from src.chat_orchestrator.context import build_context
from src.chat_orchestrator.errors import AuthenticationError, OrchestratorError
from src.chat_orchestrator.loop import LoopOptions, run_loop
from src.chat_orchestrator.models import Message
from src.chat_orchestrator.session_store import (
    get_conversation_store,
    load_conversation,
    new_conversation_id,
    save_conversation,
)
from src.chat_orchestrator.system_prompt_loader import get_default_system_prompt
from src.chat_orchestrator.tools import get_tools_for_user
from src.content_backend import get_backend_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(_CamelModel):
    """Request body for POST /chat."""

    messages: list[Message] = Field(default_factory=list, description="New messages from the caller")
    conversation_id: str | None = Field(
        None,
        alias="conversationId",
        description="Conversation to continue; a new id is generated when omitted",
    )
    user_token: str | None = Field(None, alias="userToken", description="Caller's backend token")


class ChatChoice(BaseModel):
    message: Message


class ChatResponse(_CamelModel):
    """Response for POST /chat."""

    conversation_id: str = Field(..., alias="conversationId")
    choices: list[ChatChoice]
    used_tokens: int = Field(0, alias="usedTokens")


class HistoryRequest(_CamelModel):
    """Request body for POST /chat/history."""

    conversation_id: str | None = Field(None, alias="conversationId")
    user_token: str | None = Field(None, alias="userToken")


class HistoryResponse(_CamelModel):
    messages: list[Message] = Field(default_factory=list)
    conversation_id: str | None = Field(None, alias="conversationId")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _parse_messages(raw: list[Any]) -> list[Message]:
    parsed = []
    for item in raw:
        try:
            parsed.append(Message.model_validate(item))
        except ValidationError:
            continue
    return parsed


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(request: ChatRequest, background_tasks: BackgroundTasks):
    """Run the tool-orchestration loop for the new messages and return the assistant reply.

    The transcript is saved to disk and the caller's token balance is charged
    in background tasks after the response is sent.
    """
    conversation_id = request.conversation_id or new_conversation_id()
    try:
        if not request.user_token:
            raise AuthenticationError("Unauthenticated: missing user token")

        store = get_conversation_store()
        context = build_context(
            store.get(conversation_id),
            request.messages,
            get_default_system_prompt(),
            MAX_CONTEXT_MESSAGES,
        )
        result = await run_loop(
            context,
            tools=get_tools_for_user(request.user_token),
            options=LoopOptions(),
        )
    except OrchestratorError as e:
        logger.warning("Chat request for %s failed (%d): %s", conversation_id, e.status_code, e)
        return _error(e.status_code, str(e))
    except Exception as e:
        logger.exception("Chat request for %s failed", conversation_id)
        return _error(500, str(e))

    persisted = store.append(conversation_id, [*request.messages, result.message], MAX_STORED_MESSAGES)
    background_tasks.add_task(save_conversation, conversation_id, persisted)
    background_tasks.add_task(get_backend_client().decrease_tokens, request.user_token, result.used_tokens)

    return ChatResponse(
        conversation_id=conversation_id,
        choices=[ChatChoice(message=result.message)],
        used_tokens=max(0, result.used_tokens),
    )


@router.post("/history", response_model=HistoryResponse, response_model_exclude_none=True)
async def history(request: HistoryRequest):
    """Return a conversation's messages (system messages excluded).

    Looks in memory first, then the backend's chat thread, then the disk copy.
    """
    conversation_id = request.conversation_id
    if not conversation_id:
        return _error(400, "Conversation ID is required")

    store = get_conversation_store()
    messages = store.get(conversation_id)

    if not messages:
        raw = await get_backend_client().get_chat_thread(conversation_id, request.user_token)
        messages = _parse_messages(raw or [])
        if messages:
            store.set(conversation_id, messages)

    if not messages:
        messages = await asyncio.to_thread(load_conversation, conversation_id) or []
        if messages:
            store.set(conversation_id, messages)

    if not messages:
        logger.info("No history found for %s", conversation_id)
        return HistoryResponse(messages=[])

    return HistoryResponse(
        messages=[m for m in messages if m.role != "system"],
        conversation_id=conversation_id,
    )
