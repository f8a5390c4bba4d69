"""REST-facing error conditions raised by the audit subsystem.

Each error is a FastAPI ``HTTPException`` so the controller layer can let it
propagate and have the framework render the status code and message.
"""

from __future__ import annotations

from enum import Enum

from fastapi import HTTPException, status


class MessageCode(str, Enum):
    """Machine-readable message codes carried by audit errors."""

    ERROR_SYSTEM = "ERROR_SYSTEM"
    ERROR_NO_OBJECT = "ERROR_NO_OBJECT"
    OPER_NO_PERMISSION = "OPER_NO_PERMISSION"
    BAD_CREDENTIALS = "BAD_CREDENTIALS"


class AuditAdminError(HTTPException):
    """Base class for errors surfaced to REST callers."""

    def __init__(self, status_code: int, message: str, message_code: MessageCode):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.message_code = message_code

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class UnauthorizedError(AuditAdminError):
    """No user session is present."""

    def __init__(self, message: str = "Bad Credentials"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, MessageCode.BAD_CREDENTIALS)


class ForbiddenError(AuditAdminError):
    """A user is logged in but lacks the privilege for the operation."""

    def __init__(self, message: str):
        super().__init__(status.HTTP_403_FORBIDDEN, message, MessageCode.OPER_NO_PERMISSION)


class AuditSystemError(AuditAdminError):
    """A backend query failed or reported a non-zero status."""

    def __init__(self, message: str = "Error running query"):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR, message, MessageCode.ERROR_SYSTEM
        )


class RecordNotFoundError(AuditAdminError):
    """No record exists with the requested id."""

    def __init__(self, kind: str, record_id: int):
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            f"{kind} not found. id={record_id}",
            MessageCode.ERROR_NO_OBJECT,
        )
        self.record_id = record_id
