import pytest
from pydantic import ValidationError

from auditadmin.config import AuditBackend, AuditConfig, Settings, SolrConfig, configure_logging


def test_defaults():
    settings = Settings()
    assert settings.audit.db_type == AuditBackend.DB
    assert settings.solr.timezone is None
    assert settings.log_level == "INFO"


@pytest.mark.parametrize("raw", ["solr", "SOLR", " Solr "])
def test_audit_backend_parsed_case_insensitively(monkeypatch, raw):
    monkeypatch.setenv("AUDITADMIN_AUDIT_DB_TYPE", raw)
    assert AuditConfig().db_type == AuditBackend.SOLR


@pytest.mark.parametrize("raw", ["db", "mysql", ""])
def test_other_backend_values_use_db(monkeypatch, raw):
    monkeypatch.setenv("AUDITADMIN_AUDIT_DB_TYPE", raw)
    assert AuditConfig().db_type == AuditBackend.DB


def test_solr_settings_from_env(monkeypatch):
    monkeypatch.setenv("AUDITADMIN_SOLR_URL", "http://solr:8983/solr/audits")
    monkeypatch.setenv("AUDITADMIN_SOLR_TIMEZONE", "UTC")
    cfg = SolrConfig()
    assert cfg.url == "http://solr:8983/solr/audits"
    assert cfg.timezone == "UTC"


def test_invalid_log_level_rejected():
    with pytest.raises(ValidationError):
        Settings(log_level="loud")


def test_configure_logging_accepts_settings():
    configure_logging(Settings(log_level="debug"))
