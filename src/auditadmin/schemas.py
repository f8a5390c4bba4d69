"""Search request and field descriptor types.

``SearchCriteria`` is built per request by the controller layer and may be
updated in place while a query is translated (sort normalization).
``SearchField`` and ``SortField`` are static tables declared next to the
service that owns a record kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple


class DataType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    LONG = "long"
    DATE = "date"


class SearchType(str, Enum):
    """How a parameter value is compared with the stored field."""

    FULL = "full"        # equality
    PARTIAL = "partial"  # substring match where the backend supports it
    GREATER_THAN = "greater_than"
    GREATER_EQUAL_THAN = "greater_equal_than"
    LESS_THAN = "less_than"
    LESS_EQUAL_THAN = "less_equal_than"

    @property
    def is_lower_bound(self) -> bool:
        return self in (SearchType.GREATER_THAN, SearchType.GREATER_EQUAL_THAN)

    @property
    def is_upper_bound(self) -> bool:
        return self in (SearchType.LESS_THAN, SearchType.LESS_EQUAL_THAN)

    @property
    def is_range(self) -> bool:
        return self.is_lower_bound or self.is_upper_bound


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SearchField:
    """Maps a request parameter onto a stored field.

    Attributes:
        client_field_name: Parameter name used in ``SearchCriteria.params``.
        field_name: Physical field (Solr field or SQL column).
        data_type: Type of the stored field.
        search_type: Comparison applied to the parameter value.
    """

    client_field_name: str
    field_name: str
    data_type: DataType = DataType.STRING
    search_type: SearchType = SearchType.FULL


@dataclass(frozen=True)
class SortField:
    """Sortable parameter and the field it sorts on."""

    param_name: str
    field_name: str
    is_default: bool = False
    default_order: SortOrder = SortOrder.ASC


@dataclass
class SearchCriteria:
    """Filter, sort and pagination request for a search.

    Attributes:
        params: Parameter values keyed by ``SearchField.client_field_name``.
            A list, tuple or set value means "any of".
        start_index: Offset of the first row to return.
        max_rows: Page size.
        sort_by: Requested sort parameter; normalized during translation.
        sort_type: "asc" or "desc"; anything else sorts ascending.
    """

    params: Dict[str, Any] = field(default_factory=dict)
    start_index: int = 0
    max_rows: int = 25
    sort_by: Optional[str] = None
    sort_type: Optional[str] = None

    def get_param_value(self, name: str) -> Any:
        return self.params.get(name)

    def add_param(self, name: str, value: Any) -> None:
        self.params[name] = value


def resolve_sort(
    criteria: SearchCriteria, sort_fields: Sequence[SortField]
) -> Optional[Tuple[str, SortOrder]]:
    """Resolve the field and direction to sort on.

    A ``sort_by`` matching a sort parameter case-insensitively is normalized
    to the canonical parameter name. Otherwise the default sort field is used
    and both ``sort_by`` and ``sort_type`` on the criteria are overwritten.

    Returns:
        ``(field_name, order)``, or None when nothing matched and no sort
        field is flagged as default.
    """
    query_sort_by = None
    sort_by = (criteria.sort_by or "").strip()
    if sort_by:
        for sort_field in sort_fields:
            if sort_by.lower() == sort_field.param_name.lower():
                query_sort_by = sort_field.field_name
                criteria.sort_by = sort_field.param_name
                break

    if query_sort_by is None:
        for sort_field in sort_fields:
            if sort_field.is_default:
                query_sort_by = sort_field.field_name
                criteria.sort_by = sort_field.param_name
                criteria.sort_type = sort_field.default_order.value
                break

    if query_sort_by is None:
        return None

    sort_type = criteria.sort_type
    if sort_type is not None and sort_type.lower() == SortOrder.DESC.value:
        return query_sort_by, SortOrder.DESC
    return query_sort_by, SortOrder.ASC
