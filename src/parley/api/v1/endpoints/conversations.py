# src/parley/api/v1/endpoints/conversations.py
"""Conversation endpoints: resolve, list, archive and unread counts."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from parley.api.v1.dependencies import (
    ArchiveDep,
    CurrentUserDep,
    ListAssemblerDep,
    ReadStateDep,
    ResolverDep,
)
from parley.api.v1.errors import ERROR_RESPONSES
from parley.schemas import (
    ConversationResolveRequest,
    ConversationResolveResponse,
    ConversationSummaryResponse,
    OkResponse,
    UnreadCountResponse,
)

router = APIRouter(prefix="/conversations", tags=["conversations"], responses=ERROR_RESPONSES)


@router.post("", response_model=ConversationResolveResponse, status_code=status.HTTP_200_OK)
async def resolve_conversation(
    payload: ConversationResolveRequest,
    current_user: CurrentUserDep,
    resolver: ResolverDep,
) -> ConversationResolveResponse:
    """Find or start the conversation with another user."""
    resolved = resolver.find_or_create(current_user.id, payload.other_user_id)
    return ConversationResolveResponse.model_validate(resolved)


@router.get("", response_model=list[ConversationSummaryResponse])
async def list_conversations(
    current_user: CurrentUserDep,
    assembler: ListAssemblerDep,
    include_archived: bool = Query(False, description="Also return archived conversations"),
) -> list[ConversationSummaryResponse]:
    """List the caller's conversations, most recently active first."""
    summaries = assembler.list(current_user.id, include_archived=include_archived)
    return [ConversationSummaryResponse.model_validate(summary) for summary in summaries]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def aggregate_unread_count(
    current_user: CurrentUserDep,
    read_state: ReadStateDep,
) -> UnreadCountResponse:
    """Total unread messages across the caller's active conversations."""
    return UnreadCountResponse(count=read_state.aggregate_unread_count(current_user.id))


@router.get("/{conversation_id}/unread-count", response_model=UnreadCountResponse)
async def conversation_unread_count(
    conversation_id: str,
    current_user: CurrentUserDep,
    read_state: ReadStateDep,
) -> UnreadCountResponse:
    """Unread messages in one conversation."""
    return UnreadCountResponse(count=read_state.unread_count(conversation_id, current_user.id))


@router.post("/{conversation_id}/archive", response_model=OkResponse)
async def archive_conversation(
    conversation_id: str,
    current_user: CurrentUserDep,
    archive: ArchiveDep,
) -> OkResponse:
    """Hide a conversation from the caller's list."""
    archive.archive(conversation_id, current_user.id)
    return OkResponse()


@router.delete("/{conversation_id}/archive", response_model=OkResponse)
async def unarchive_conversation(
    conversation_id: str,
    current_user: CurrentUserDep,
    archive: ArchiveDep,
) -> OkResponse:
    """Restore a conversation to the caller's list."""
    archive.unarchive(conversation_id, current_user.id)
    return OkResponse()
