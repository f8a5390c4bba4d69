"""Access-audit search against the Solr audit index."""

from __future__ import annotations

import logging
import zlib
from typing import Any, Dict, List, Optional

import pysolr

from auditadmin.audit.records import AccessAudit, AccessAuditList
from auditadmin.schemas import DataType, SearchCriteria, SearchField, SearchType, SortField, SortOrder

from .solr_util import SolrUtil

logger = logging.getLogger(__name__)

SEARCH_FIELDS: List[SearchField] = [
    SearchField("accessType", "access"),
    SearchField("aclEnforcer", "enforcer"),
    SearchField("agentId", "agent"),
    SearchField("repoName", "repo"),
    SearchField("sessionId", "sess"),
    SearchField("requestUser", "reqUser"),
    SearchField("requestData", "reqData", search_type=SearchType.PARTIAL),
    SearchField("resourcePath", "resource", search_type=SearchType.PARTIAL),
    SearchField("clientIP", "cliIP"),
    SearchField("auditType", "logType", DataType.INTEGER),
    SearchField("accessResult", "result", DataType.INTEGER),
    SearchField("policyId", "policy", DataType.LONG),
    SearchField("repoType", "repoType", DataType.INTEGER),
    SearchField("resourceType", "resType"),
    SearchField("reason", "reason"),
    SearchField("action", "action"),
    SearchField("startDate", "evtTime", DataType.DATE, SearchType.GREATER_EQUAL_THAN),
    SearchField("endDate", "evtTime", DataType.DATE, SearchType.LESS_EQUAL_THAN),
]

SORT_FIELDS: List[SortField] = [
    SortField("eventTime", "evtTime", is_default=True, default_order=SortOrder.DESC),
    SortField("policyId", "policy"),
    SortField("requestUser", "reqUser"),
    SortField("resourceType", "resType"),
    SortField("accessType", "access"),
    SortField("action", "action"),
    SortField("aclEnforcer", "enforcer"),
]


class SolrAccessAuditsService:
    """Searches access audits stored in Solr.

    Args:
        solr_util: Query translator.
        client: pysolr client bound to the audit collection.
    """

    def __init__(self, solr_util: SolrUtil, client: pysolr.Solr):
        self._util = solr_util
        self._client = client

    def search_access_audits(self, criteria: SearchCriteria) -> AccessAuditList:
        response = self._util.search_resources(criteria, SEARCH_FIELDS, SORT_FIELDS, self._client)
        results = [self._to_access_audit(doc) for doc in response.docs]
        return AccessAuditList(
            start_index=criteria.start_index,
            page_size=criteria.max_rows,
            total_count=response.hits,
            result_size=len(results),
            sort_by=criteria.sort_by,
            sort_type=criteria.sort_type,
            results=results,
        )

    def get_access_audit_search_count(self, criteria: SearchCriteria) -> int:
        response = self._util.search_resources(criteria, SEARCH_FIELDS, SORT_FIELDS, self._client)
        return response.hits

    def _to_access_audit(self, doc: Dict[str, Any]) -> AccessAudit:
        util = self._util
        return AccessAudit(
            id=self._doc_id(doc.get("id")),
            access_type=_str(doc.get("access")),
            acl_enforcer=_str(doc.get("enforcer")),
            agent_id=_str(doc.get("agent")),
            repo_name=_str(doc.get("repo")),
            session_id=_str(doc.get("sess")),
            request_user=_str(doc.get("reqUser")),
            request_data=_str(doc.get("reqData")),
            resource_path=_str(doc.get("resource")),
            client_ip=_str(doc.get("cliIP")),
            client_type=_str(doc.get("cliType")),
            audit_type=util.to_int(doc.get("logType")),
            access_result=util.to_int(doc.get("result")),
            policy_id=util.to_long(doc.get("policy")),
            repo_type=util.to_int(doc.get("repoType")),
            resource_type=_str(doc.get("resType")),
            result_reason=_str(doc.get("reason")),
            action=_str(doc.get("action")),
            event_time=util.to_date(doc.get("evtTime")),
            sequence_number=util.to_long(doc.get("seq_num")),
            event_count=util.to_long(doc.get("event_count")),
            event_duration=util.to_long(doc.get("event_dur_ms")),
        )

    def _doc_id(self, value: Any) -> Optional[int]:
        """Numeric ids are kept; other ids are reduced to a stable checksum."""
        if value is None:
            return None
        text = str(value)
        if text.isdigit():
            return int(text)
        return zlib.crc32(text.encode("utf-8"))


def _str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
