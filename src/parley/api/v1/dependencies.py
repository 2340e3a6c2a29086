"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from parley.core.errors import Unauthorized
from parley.core.security import decode_subject
from parley.db.session import get_db
from parley.models import User
from parley.services import (
    ArchiveController,
    ConversationListAssembler,
    ConversationResolver,
    MessagePipeline,
    ReadStateTracker,
)

# HTTP Bearer scheme; missing credentials are reported as Unauthorized below
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from the bearer token.

    Args:
        credentials: HTTP Bearer token credentials, if any were sent
        db: Database session

    Returns:
        User object for the authenticated identity

    Raises:
        Unauthorized: If the token is missing or invalid, or the user is unknown
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Not authenticated")

    user_id = decode_subject(credentials.credentials)
    user = db.get(User, user_id)
    if user is None:
        raise Unauthorized("User not found")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_resolver(db: SessionDep) -> ConversationResolver:
    return ConversationResolver(db)


def get_pipeline(db: SessionDep) -> MessagePipeline:
    return MessagePipeline(db)


def get_read_state(db: SessionDep) -> ReadStateTracker:
    return ReadStateTracker(db)


def get_archive(db: SessionDep) -> ArchiveController:
    return ArchiveController(db)


def get_list_assembler(db: SessionDep) -> ConversationListAssembler:
    return ConversationListAssembler(db)


ResolverDep = Annotated[ConversationResolver, Depends(get_resolver)]
PipelineDep = Annotated[MessagePipeline, Depends(get_pipeline)]
ReadStateDep = Annotated[ReadStateTracker, Depends(get_read_state)]
ArchiveDep = Annotated[ArchiveController, Depends(get_archive)]
ListAssemblerDep = Annotated[ConversationListAssembler, Depends(get_list_assembler)]
