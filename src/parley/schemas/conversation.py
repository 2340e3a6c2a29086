"""Conversation-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserRefResponse(BaseModel):
    """Identity and display name of a conversation partner."""

    id: str
    username: str

    model_config = ConfigDict(from_attributes=True)


class ConversationResolveRequest(BaseModel):
    """Schema for finding or starting a conversation with another user."""

    other_user_id: str = Field(..., min_length=1, description="Identity to converse with")


class ConversationResolveResponse(BaseModel):
    """Conversation id returned by the resolve endpoint."""

    conversation_id: str
    other_user: UserRefResponse
    created: bool = Field(False, description="True when this call created the conversation")

    model_config = ConfigDict(from_attributes=True)


class LastMessageResponse(BaseModel):
    """Preview of the newest message in a conversation."""

    id: str
    content: str
    created_at: datetime
    sender_id: str

    model_config = ConfigDict(from_attributes=True)


class ConversationSummaryResponse(BaseModel):
    """Inbox row for one conversation."""

    id: str
    other_user: UserRefResponse
    last_message: LastMessageResponse | None = None
    unread_count: int
    is_archived: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
