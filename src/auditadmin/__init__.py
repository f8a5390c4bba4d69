"""Admin-only access to transaction-log and access-audit records."""

from .config import AuditBackend
from .errors import AuditSystemError, ForbiddenError, UnauthorizedError
from .manager import AuditManager, build_audit_manager
from .schemas import SearchCriteria, SearchField, SortField
from .session import UserSession

__all__ = [
    "AuditBackend",
    "AuditManager",
    "AuditSystemError",
    "ForbiddenError",
    "SearchCriteria",
    "SearchField",
    "SortField",
    "UnauthorizedError",
    "UserSession",
    "build_audit_manager",
]
