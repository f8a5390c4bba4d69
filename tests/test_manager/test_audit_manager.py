from unittest.mock import MagicMock

import pytest

from auditadmin.audit.records import AccessAudit, AccessAuditList, TrxLog
from auditadmin.audit.repository import AuditRepository
from auditadmin.audit.store import AuditStore
from auditadmin.config import AuditBackend, AuditConfig, Settings
from auditadmin.errors import ForbiddenError, UnauthorizedError
from auditadmin.manager import AuditManager, build_audit_manager
from auditadmin.schemas import SearchCriteria
from auditadmin.search.access_audits import SolrAccessAuditsService
from auditadmin.session import UserSession

ADMIN = UserSession(user_id=1, login_id="admin", is_user_admin=True)
USER = UserSession(user_id=7, login_id="alice", is_user_admin=False)

# (manager method, repository method, extra args)
GUARDED_OPERATIONS = [
    ("get_trx_log", "get_trx_log", (1,)),
    ("create_trx_log", "create_trx_log", (TrxLog(),)),
    ("update_trx_log", "update_trx_log", (TrxLog(id=1),)),
    ("delete_trx_log", "delete_trx_log", (1, True)),
    ("search_trx_logs", "search_trx_logs", (SearchCriteria(),)),
    ("get_trx_log_search_count", "get_trx_log_search_count", (SearchCriteria(),)),
    ("get_access_audit", "get_access_audit", (1,)),
    ("create_access_audit", "create_access_audit", (AccessAudit(),)),
    ("update_access_audit", "update_access_audit", (AccessAudit(id=1),)),
    ("delete_access_audit", "delete_access_audit", (1, False)),
    ("search_access_audits", "search_access_audits", (SearchCriteria(),)),
    ("get_access_audit_search_count", "get_access_audit_search_count", (SearchCriteria(),)),
]


@pytest.fixture
def repository():
    return MagicMock(spec=AuditRepository)


@pytest.fixture
def solr_service():
    return MagicMock(spec=SolrAccessAuditsService)


def test_check_access_without_session_is_unauthorized(repository):
    manager = AuditManager(repository)
    with pytest.raises(UnauthorizedError) as exc_info:
        manager.check_admin_access(None)
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Bad Credentials"


def test_check_access_for_non_admin_is_forbidden(repository):
    manager = AuditManager(repository)
    with pytest.raises(ForbiddenError) as exc_info:
        manager.check_admin_access(USER)
    assert exc_info.value.status_code == 403
    assert "LoggedInUser=7" in exc_info.value.message


def test_check_access_for_admin_passes(repository):
    manager = AuditManager(repository)
    assert manager.check_admin_access(ADMIN) is None
    assert repository.method_calls == []


@pytest.mark.parametrize("method, repo_method, args", GUARDED_OPERATIONS)
def test_operations_delegate_for_admin(repository, method, repo_method, args):
    manager = AuditManager(repository)
    result = getattr(manager, method)(ADMIN, *args)
    getattr(repository, repo_method).assert_called_once_with(*args)
    if not method.startswith("delete"):
        assert result is getattr(repository, repo_method).return_value


@pytest.mark.parametrize("method, repo_method, args", GUARDED_OPERATIONS)
def test_operations_reject_anonymous_callers(repository, method, repo_method, args):
    manager = AuditManager(repository)
    with pytest.raises(UnauthorizedError):
        getattr(manager, method)(None, *args)
    assert repository.method_calls == []


@pytest.mark.parametrize("method, repo_method, args", GUARDED_OPERATIONS)
def test_operations_reject_non_admins(repository, method, repo_method, args):
    manager = AuditManager(repository)
    with pytest.raises(ForbiddenError):
        getattr(manager, method)(USER, *args)
    assert repository.method_calls == []


def test_solr_backend_routes_access_audit_search_to_solr(repository, solr_service):
    manager = AuditManager(repository, audit_backend=AuditBackend.SOLR, solr_service=solr_service)
    criteria = SearchCriteria(params={"requestUser": "alice"})

    manager.search_access_audits(ADMIN, criteria)
    manager.get_access_audit_search_count(ADMIN, criteria)

    solr_service.search_access_audits.assert_called_once_with(criteria)
    solr_service.get_access_audit_search_count.assert_called_once_with(criteria)
    repository.search_access_audits.assert_not_called()
    repository.get_access_audit_search_count.assert_not_called()


def test_db_backend_routes_access_audit_search_to_repository(repository, solr_service):
    manager = AuditManager(repository, audit_backend=AuditBackend.DB, solr_service=solr_service)
    criteria = SearchCriteria()

    manager.search_access_audits(ADMIN, criteria)
    manager.get_access_audit_search_count(ADMIN, criteria)

    repository.search_access_audits.assert_called_once_with(criteria)
    repository.get_access_audit_search_count.assert_called_once_with(criteria)
    solr_service.search_access_audits.assert_not_called()


def test_solr_backend_still_uses_repository_for_trx_logs(repository, solr_service):
    manager = AuditManager(repository, audit_backend=AuditBackend.SOLR, solr_service=solr_service)
    manager.search_trx_logs(ADMIN, SearchCriteria())
    repository.search_trx_logs.assert_called_once()


def test_solr_backend_requires_solr_service(repository):
    with pytest.raises(ValueError):
        AuditManager(repository, audit_backend=AuditBackend.SOLR)


def test_build_audit_manager_from_settings():
    settings = Settings(audit=AuditConfig(db_type="SOLR", db_path=":memory:"))
    manager = build_audit_manager(settings)
    assert manager.audit_backend == AuditBackend.SOLR


def test_build_audit_manager_end_to_end_with_store():
    settings = Settings(audit=AuditConfig(db_type="db", db_path=":memory:"))
    store = AuditStore(":memory:")
    manager = build_audit_manager(settings, repository=store)

    manager.create_access_audit(ADMIN, AccessAudit(request_user="alice", repo_name="hdfs"))
    result = manager.search_access_audits(ADMIN, SearchCriteria(params={"repoName": "hdfs"}))

    assert isinstance(result, AccessAuditList)
    assert result.total_count == 1
    assert manager.get_access_audit_search_count(ADMIN, SearchCriteria()) == 1
