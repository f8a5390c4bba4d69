"""Admin-only facade over transaction-log and access-audit records.

Every operation takes the caller's ``UserSession`` (``None`` when nobody is
logged in), checks that the caller is an admin and then delegates to the
relational repository. Access-audit search and count go to Solr instead when
the configured audit backend is ``AuditBackend.SOLR``.
"""

from __future__ import annotations

import logging
from typing import Optional

import pysolr

from auditadmin.audit.records import AccessAudit, AccessAuditList, TrxLog, TrxLogList
from auditadmin.audit.repository import AuditRepository
from auditadmin.audit.store import AuditStore
from auditadmin.config import AuditBackend, Settings, get_settings
from auditadmin.errors import ForbiddenError, UnauthorizedError
from auditadmin.schemas import SearchCriteria
from auditadmin.search.access_audits import SolrAccessAuditsService
from auditadmin.search.solr_util import SolrUtil
from auditadmin.session import UserSession

logger = logging.getLogger(__name__)


class AuditManager:
    """Guards audit operations behind an admin check.

    Args:
        repository: Relational persistence for both record kinds.
        audit_backend: Backend serving access-audit search and count.
        solr_service: Solr search path; required when ``audit_backend`` is
            ``AuditBackend.SOLR``.
    """

    def __init__(
        self,
        repository: AuditRepository,
        audit_backend: AuditBackend = AuditBackend.DB,
        solr_service: Optional[SolrAccessAuditsService] = None,
    ):
        if audit_backend == AuditBackend.SOLR and solr_service is None:
            raise ValueError("solr_service is required when the audit backend is solr")
        self._repository = repository
        self._audit_backend = audit_backend
        self._solr_service = solr_service

    @property
    def audit_backend(self) -> AuditBackend:
        return self._audit_backend

    def check_admin_access(self, session: Optional[UserSession]) -> None:
        """Allow the call only for a logged-in admin.

        Raises:
            UnauthorizedError: If there is no session.
            ForbiddenError: If the session user is not an admin.
        """
        if session is None:
            raise UnauthorizedError("Bad Credentials")
        if not session.is_user_admin:
            logger.warning(f"Non-admin audit access denied. userId={session.user_id}")
            raise ForbiddenError(
                f"Operation denied. LoggedInUser={session.user_id}"
                " ,isn't permitted to perform the action."
            )

    # Transaction logs

    def get_trx_log(self, session: Optional[UserSession], trx_log_id: int) -> TrxLog:
        self.check_admin_access(session)
        return self._repository.get_trx_log(trx_log_id)

    def create_trx_log(self, session: Optional[UserSession], trx_log: TrxLog) -> TrxLog:
        self.check_admin_access(session)
        return self._repository.create_trx_log(trx_log)

    def update_trx_log(self, session: Optional[UserSession], trx_log: TrxLog) -> TrxLog:
        self.check_admin_access(session)
        return self._repository.update_trx_log(trx_log)

    def delete_trx_log(
        self, session: Optional[UserSession], trx_log_id: int, force: bool = False
    ) -> None:
        self.check_admin_access(session)
        self._repository.delete_trx_log(trx_log_id, force)

    def search_trx_logs(
        self, session: Optional[UserSession], criteria: SearchCriteria
    ) -> TrxLogList:
        self.check_admin_access(session)
        return self._repository.search_trx_logs(criteria)

    def get_trx_log_search_count(
        self, session: Optional[UserSession], criteria: SearchCriteria
    ) -> int:
        self.check_admin_access(session)
        return self._repository.get_trx_log_search_count(criteria)

    # Access audits

    def get_access_audit(self, session: Optional[UserSession], access_audit_id: int) -> AccessAudit:
        self.check_admin_access(session)
        return self._repository.get_access_audit(access_audit_id)

    def create_access_audit(
        self, session: Optional[UserSession], access_audit: AccessAudit
    ) -> AccessAudit:
        self.check_admin_access(session)
        return self._repository.create_access_audit(access_audit)

    def update_access_audit(
        self, session: Optional[UserSession], access_audit: AccessAudit
    ) -> AccessAudit:
        self.check_admin_access(session)
        return self._repository.update_access_audit(access_audit)

    def delete_access_audit(
        self, session: Optional[UserSession], access_audit_id: int, force: bool = False
    ) -> None:
        self.check_admin_access(session)
        self._repository.delete_access_audit(access_audit_id, force)

    def search_access_audits(
        self, session: Optional[UserSession], criteria: SearchCriteria
    ) -> AccessAuditList:
        self.check_admin_access(session)
        if self._audit_backend == AuditBackend.SOLR:
            return self._solr_service.search_access_audits(criteria)
        return self._repository.search_access_audits(criteria)

    def get_access_audit_search_count(
        self, session: Optional[UserSession], criteria: SearchCriteria
    ) -> int:
        self.check_admin_access(session)
        if self._audit_backend == AuditBackend.SOLR:
            return self._solr_service.get_access_audit_search_count(criteria)
        return self._repository.get_access_audit_search_count(criteria)


def build_audit_manager(
    settings: Optional[Settings] = None,
    repository: Optional[AuditRepository] = None,
) -> AuditManager:
    """Wire an ``AuditManager`` from settings.

    Args:
        settings: Settings instance, or None to use get_settings().
        repository: Relational repository, or None for an ``AuditStore`` at
            the configured path.
    """
    settings = settings or get_settings()
    backend = settings.audit.db_type
    repository = repository or AuditStore(settings.audit.db_path)

    solr_service = None
    if backend == AuditBackend.SOLR:
        client = pysolr.Solr(
            settings.solr.url,
            timeout=settings.solr.timeout,
            always_commit=settings.solr.always_commit,
        )
        solr_service = SolrAccessAuditsService(SolrUtil(settings.solr.timezone), client)
        logger.info(f"Access audits served from Solr: {settings.solr.url}")
    else:
        logger.info(f"Access audits served from relational store: {settings.audit.db_path}")

    return AuditManager(repository, audit_backend=backend, solr_service=solr_service)
