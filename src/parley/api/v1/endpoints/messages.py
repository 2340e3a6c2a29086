# src/parley/api/v1/endpoints/messages.py
"""Message endpoints: history, sending and read receipts."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, status

from parley.api.v1.dependencies import CurrentUserDep, PipelineDep, ReadStateDep
from parley.api.v1.errors import ERROR_RESPONSES
from parley.schemas import MessageCreate, MessageResponse, OkResponse

router = APIRouter(
    prefix="/conversations/{conversation_id}", tags=["messages"], responses=ERROR_RESPONSES
)


@router.get("/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: str,
    current_user: CurrentUserDep,
    pipeline: PipelineDep,
) -> list[MessageResponse]:
    """Return the conversation's messages, oldest first."""
    views = pipeline.list_messages(conversation_id, current_user.id)
    return [MessageResponse.model_validate(view) for view in views]


@router.post("/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    pipeline: PipelineDep,
) -> MessageResponse:
    """Send a message; repeating a ``client_message_id`` returns the stored message."""
    view = pipeline.send(
        conversation_id, current_user.id, message_data.content, message_data.client_message_id
    )
    return MessageResponse(**asdict(view))


@router.post("/read", response_model=OkResponse)
async def mark_read(
    conversation_id: str,
    current_user: CurrentUserDep,
    read_state: ReadStateDep,
) -> OkResponse:
    """Mark everything in the conversation as read for the caller."""
    read_state.mark_read(conversation_id, current_user.id)
    return OkResponse()
