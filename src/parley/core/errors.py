"""Error taxonomy shared by the messaging services, the API and the client.

Every failure a caller can observe is one of the ``MessagingError`` subclasses
below. Services raise them directly; the HTTP layer renders them with the
status code carried by the class, and the client maps the ``code`` field of an
error response back onto the same class.
"""

from __future__ import annotations

from http import HTTPStatus


class MessagingError(Exception):
    """Base class for all messaging failures."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "error"
    default_detail: str = "Messaging operation failed"
    retryable: bool = False

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthorized(MessagingError):
    """No authenticated identity accompanied the request."""

    status_code = HTTPStatus.UNAUTHORIZED
    code = "unauthorized"
    default_detail = "Could not validate credentials"


class Forbidden(MessagingError):
    """Authenticated identity is not a participant of the target conversation."""

    status_code = HTTPStatus.FORBIDDEN
    code = "forbidden"
    default_detail = "You are not a participant in this conversation"


class InvalidOperation(MessagingError):
    """The request is well-formed but not allowed, e.g. messaging yourself."""

    status_code = HTTPStatus.BAD_REQUEST
    code = "invalid_operation"
    default_detail = "Operation not allowed"


class InvalidInput(MessagingError):
    """Submitted content failed validation."""

    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "invalid_input"
    default_detail = "Invalid input"


class NotFound(MessagingError):
    """Unknown conversation, identity or participation."""

    status_code = HTTPStatus.NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class Transient(MessagingError):
    """The store is temporarily unavailable; the whole operation may be retried."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    code = "transient"
    default_detail = "Message store temporarily unavailable"
    retryable = True


ERRORS_BY_CODE: dict[str, type[MessagingError]] = {
    cls.code: cls
    for cls in (Unauthorized, Forbidden, InvalidOperation, InvalidInput, NotFound, Transient)
}

_ERRORS_BY_STATUS: dict[int, type[MessagingError]] = {
    int(cls.status_code): cls for cls in ERRORS_BY_CODE.values()
}


def error_from_response(status_code: int, code: str | None, detail: str | None) -> MessagingError:
    """Rebuild a ``MessagingError`` from an HTTP error response.

    The ``code`` field wins when present; otherwise the status code decides,
    and any 5xx without a known code is treated as transient.
    """
    cls = ERRORS_BY_CODE.get(code or "") or _ERRORS_BY_STATUS.get(status_code)
    if cls is None:
        cls = Transient if status_code >= HTTPStatus.INTERNAL_SERVER_ERROR else MessagingError
    return cls(detail)


__all__ = [
    "ERRORS_BY_CODE",
    "Forbidden",
    "InvalidInput",
    "InvalidOperation",
    "MessagingError",
    "NotFound",
    "Transient",
    "Unauthorized",
    "error_from_response",
]
