"""View models for transaction-log and access-audit records."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TrxLog(BaseModel):
    """One attribute change recorded against an admin object."""

    id: Optional[int] = None
    create_date: Optional[datetime] = None
    update_date: Optional[datetime] = None
    owner: Optional[str] = None
    updated_by: Optional[str] = None
    object_class_type: int = 0
    object_id: Optional[int] = None
    object_name: Optional[str] = None
    parent_object_class_type: int = 0
    parent_object_id: Optional[int] = None
    parent_object_name: Optional[str] = None
    attribute_name: Optional[str] = None
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    transaction_id: Optional[str] = None
    action: Optional[str] = None
    session_id: Optional[str] = None
    request_id: Optional[str] = None
    session_type: Optional[str] = None


class AccessAudit(BaseModel):
    """One access decision reported by an enforcement agent."""

    id: Optional[int] = None
    create_date: Optional[datetime] = None
    update_date: Optional[datetime] = None
    audit_type: int = 0
    access_result: int = 0
    access_type: Optional[str] = None
    acl_enforcer: Optional[str] = None
    agent_id: Optional[str] = None
    client_ip: Optional[str] = None
    client_type: Optional[str] = None
    policy_id: int = 0
    repo_name: Optional[str] = None
    repo_type: int = 0
    result_reason: Optional[str] = None
    session_id: Optional[str] = None
    event_time: Optional[datetime] = None
    request_user: Optional[str] = None
    action: Optional[str] = None
    request_data: Optional[str] = None
    resource_path: Optional[str] = None
    resource_type: Optional[str] = None
    sequence_number: int = 0
    event_count: int = 0
    event_duration: int = 0


class _PagedList(BaseModel):
    start_index: int = 0
    page_size: int = 0
    total_count: int = 0
    result_size: int = 0
    sort_by: Optional[str] = None
    sort_type: Optional[str] = None


class TrxLogList(_PagedList):
    results: List[TrxLog] = Field(default_factory=list)


class AccessAuditList(_PagedList):
    results: List[AccessAudit] = Field(default_factory=list)
