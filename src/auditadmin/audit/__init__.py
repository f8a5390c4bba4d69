"""Audit records and their relational persistence."""

from .records import AccessAudit, AccessAuditList, TrxLog, TrxLogList
from .repository import AuditRepository
from .store import AuditStore

__all__ = [
    "AccessAudit",
    "AccessAuditList",
    "AuditRepository",
    "AuditStore",
    "TrxLog",
    "TrxLogList",
]
