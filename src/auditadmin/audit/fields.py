"""Search and sort descriptors for the relational audit tables.

Field names are SQL column names in the tables created by ``AuditStore``.
"""

from __future__ import annotations

from typing import List

from auditadmin.schemas import DataType, SearchField, SearchType, SortField, SortOrder

TRX_LOG_SEARCH_FIELDS: List[SearchField] = [
    SearchField("attributeName", "attribute_name"),
    SearchField("action", "action"),
    SearchField("sessionId", "session_id"),
    SearchField("transactionId", "transaction_id"),
    SearchField("owner", "owner"),
    SearchField("objectClassType", "object_class_type", DataType.INTEGER),
    SearchField("objectId", "object_id", DataType.LONG),
    SearchField("objectName", "object_name", search_type=SearchType.PARTIAL),
    SearchField("startDate", "create_date", DataType.DATE, SearchType.GREATER_EQUAL_THAN),
    SearchField("endDate", "create_date", DataType.DATE, SearchType.LESS_EQUAL_THAN),
]

TRX_LOG_SORT_FIELDS: List[SortField] = [
    SortField("id", "id"),
    SortField("createDate", "create_date", is_default=True, default_order=SortOrder.DESC),
    SortField("owner", "owner"),
    SortField("action", "action"),
]

ACCESS_AUDIT_SEARCH_FIELDS: List[SearchField] = [
    SearchField("accessType", "access_type"),
    SearchField("aclEnforcer", "acl_enforcer"),
    SearchField("agentId", "agent_id"),
    SearchField("repoName", "repo_name"),
    SearchField("sessionId", "session_id"),
    SearchField("requestUser", "request_user"),
    SearchField("requestData", "request_data", search_type=SearchType.PARTIAL),
    SearchField("resourcePath", "resource_path", search_type=SearchType.PARTIAL),
    SearchField("clientIP", "client_ip"),
    SearchField("auditType", "audit_type", DataType.INTEGER),
    SearchField("accessResult", "access_result", DataType.INTEGER),
    SearchField("policyId", "policy_id", DataType.LONG),
    SearchField("repoType", "repo_type", DataType.INTEGER),
    SearchField("resourceType", "resource_type"),
    SearchField("action", "action"),
    SearchField("startDate", "event_time", DataType.DATE, SearchType.GREATER_EQUAL_THAN),
    SearchField("endDate", "event_time", DataType.DATE, SearchType.LESS_EQUAL_THAN),
]

ACCESS_AUDIT_SORT_FIELDS: List[SortField] = [
    SortField("eventTime", "event_time", is_default=True, default_order=SortOrder.DESC),
    SortField("policyId", "policy_id"),
    SortField("requestUser", "request_user"),
    SortField("resourceType", "resource_type"),
    SortField("accessType", "access_type"),
    SortField("action", "action"),
    SortField("aclEnforcer", "acl_enforcer"),
]
