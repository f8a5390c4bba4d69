"""Abstract base class for relational audit persistence.

``AuditManager`` delegates every CRUD and relational search call to an
implementation of this interface after the admin check has passed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from auditadmin.schemas import SearchCriteria

from .records import AccessAudit, AccessAuditList, TrxLog, TrxLogList


class AuditRepository(ABC):
    """Persistence operations for transaction logs and access audits."""

    @abstractmethod
    def get_trx_log(self, trx_log_id: int) -> TrxLog:
        """Return the transaction log with the given id.

        Raises:
            RecordNotFoundError: If no such record exists.
        """
        pass

    @abstractmethod
    def create_trx_log(self, trx_log: TrxLog) -> TrxLog:
        """Persist a new transaction log and return it with its id set."""
        pass

    @abstractmethod
    def update_trx_log(self, trx_log: TrxLog) -> TrxLog:
        pass

    @abstractmethod
    def delete_trx_log(self, trx_log_id: int, force: bool) -> None:
        pass

    @abstractmethod
    def search_trx_logs(self, criteria: SearchCriteria) -> TrxLogList:
        pass

    @abstractmethod
    def get_trx_log_search_count(self, criteria: SearchCriteria) -> int:
        pass

    @abstractmethod
    def get_access_audit(self, access_audit_id: int) -> AccessAudit:
        """Return the access audit with the given id.

        Raises:
            RecordNotFoundError: If no such record exists.
        """
        pass

    @abstractmethod
    def create_access_audit(self, access_audit: AccessAudit) -> AccessAudit:
        pass

    @abstractmethod
    def update_access_audit(self, access_audit: AccessAudit) -> AccessAudit:
        pass

    @abstractmethod
    def delete_access_audit(self, access_audit_id: int, force: bool) -> None:
        pass

    @abstractmethod
    def search_access_audits(self, criteria: SearchCriteria) -> AccessAuditList:
        pass

    @abstractmethod
    def get_access_audit_search_count(self, criteria: SearchCriteria) -> int:
        pass
