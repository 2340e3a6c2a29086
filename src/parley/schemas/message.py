"""Message-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for sending a message.

    Length and emptiness are checked by the message pipeline so that every
    content failure surfaces with the same error code.
    """

    content: str = Field(..., description="Message text; trimmed before storage")
    client_message_id: str | None = Field(
        None,
        max_length=128,
        description="Client correlation id; unique per sender within a conversation",
    )


class MessageResponse(BaseModel):
    """Schema for a persisted message returned by the API."""

    id: str
    conversation_id: str
    sender_id: str
    sender_username: str
    content: str
    created_at: datetime
    client_message_id: str | None = None

    model_config = ConfigDict(from_attributes=True)
