"""Translate search criteria into Solr queries.

``SolrUtil`` turns a ``SearchCriteria`` plus a record kind's static
``SearchField``/``SortField`` tables into the ``q``/``fq``/``sort``/``start``/
``rows`` parameters of a Solr select request, runs it through a pysolr
client and checks the response status. It also carries the lenient value
converters used when mapping Solr documents back onto records.

Usage:
    from auditadmin.search.solr_util import SolrUtil

    util = SolrUtil(timezone="UTC")
    response = util.search_resources(criteria, search_fields, sort_fields, client)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Collection, Dict, List, NamedTuple, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pysolr

from auditadmin.errors import AuditSystemError
from auditadmin.schemas import (
    DataType,
    SearchCriteria,
    SearchField,
    SearchType,
    SortField,
    SortOrder,
    resolve_sort,
)

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
MATCH_ALL = "*:*"
RANGE_OPEN_START = "*"
RANGE_OPEN_END = "NOW"

_SPECIAL_CHARS = frozenset('\\+-!():^[]"{}~*?|&;/')
_MULTI_VALUED = (list, tuple, set, frozenset)


def escape_query_chars(value: str) -> str:
    """Backslash-escape characters that have meaning in Solr query syntax."""
    escaped = []
    for ch in value:
        if ch in _SPECIAL_CHARS or ch.isspace():
            escaped.append("\\")
        escaped.append(ch)
    return "".join(escaped)


class UnsupportedComparison(NamedTuple):
    """A search field whose comparison cannot be expressed as a filter yet."""

    field_name: str
    search_type: SearchType


@dataclass
class SolrQuery:
    """Parameters of a Solr select request.

    Attributes:
        q: Main query; always match-all, filtering happens in ``fq``.
        filter_queries: Filter clauses, all of which must match.
        sort: ``(field, order)`` pairs in priority order.
        start: Offset of the first document.
        rows: Maximum number of documents.
        unsupported: Search fields that were skipped because their
            comparison is not supported.
    """

    q: str = MATCH_ALL
    filter_queries: List[str] = field(default_factory=list)
    sort: List[Tuple[str, SortOrder]] = field(default_factory=list)
    start: int = 0
    rows: int = 10
    unsupported: List[UnsupportedComparison] = field(default_factory=list)

    def add_filter_query(self, fq: str) -> None:
        self.filter_queries.append(fq)

    def add_sort(self, field_name: str, order: SortOrder) -> None:
        self.sort.append((field_name, order))

    def to_params(self) -> Dict[str, Any]:
        """Keyword arguments for ``pysolr.Solr.search``."""
        params: Dict[str, Any] = {"start": self.start, "rows": self.rows}
        if self.filter_queries:
            params["fq"] = list(self.filter_queries)
        if self.sort:
            params["sort"] = ",".join(f"{name} {order.value}" for name, order in self.sort)
        return params

    def __str__(self) -> str:
        parts = [f"q={self.q}"]
        parts.extend(f"fq={fq}" for fq in self.filter_queries)
        if self.sort:
            parts.append("sort=" + ",".join(f"{name} {order.value}" for name, order in self.sort))
        parts.append(f"start={self.start}")
        parts.append(f"rows={self.rows}")
        return "&".join(parts)


def _response_status(response: Any) -> int:
    raw = getattr(response, "raw_response", None) or {}
    return int(raw.get("responseHeader", {}).get("status", 0))


class SolrUtil:
    """Builds and runs Solr queries for audit searches.

    Args:
        timezone: IANA zone name used to render date range bounds. ``None``
            uses the local zone, as does an unknown zone name.
    """

    def __init__(self, timezone: Optional[str] = None):
        self._tz: Optional[ZoneInfo] = None
        if timezone is not None:
            logger.info(f"Setting timezone to {timezone}")
            try:
                self._tz = ZoneInfo(timezone)
            except (ZoneInfoNotFoundError, ValueError):
                logger.error(f"Error setting timezone. timeZone={timezone}")

    def run_query(self, client: pysolr.Solr, query: Optional[SolrQuery]) -> Optional[pysolr.Results]:
        """Execute a query, returning None if it failed."""
        if query is None:
            return None
        try:
            return client.search(query.q, **query.to_params())
        except Exception:
            logger.exception("Error from Solr server.")
        return None

    def build_query(
        self,
        criteria: SearchCriteria,
        search_fields: Sequence[SearchField],
        sort_fields: Sequence[SortField],
    ) -> SolrQuery:
        """Translate criteria into a Solr query without running it.

        Only one date range is tracked: bounds from a later date field replace
        those of an earlier one.
        """
        query = SolrQuery()
        from_date: Optional[datetime] = None
        to_date: Optional[datetime] = None
        date_field_name: Optional[str] = None

        for search_field in search_fields:
            value = criteria.get_param_value(search_field.client_field_name)
            if value is None or str(value).strip() == "":
                continue
            field_name = search_field.field_name

            if isinstance(value, _MULTI_VALUED):
                fq = self.or_list(field_name, value)
                if fq is not None:
                    query.add_filter_query(fq)
            elif search_field.data_type == DataType.DATE:
                date_value = value if isinstance(value, datetime) else self.to_date(value)
                if date_value is None:
                    logger.error(f"Search value for date field {field_name} is not a date. value={value}")
                    continue
                if date_field_name is not None and date_field_name != field_name:
                    logger.debug(f"Date range on {date_field_name} replaced by {field_name}")
                if search_field.search_type.is_lower_bound:
                    from_date = date_value
                    date_field_name = field_name
                elif search_field.search_type.is_upper_bound:
                    to_date = date_value
                    date_field_name = field_name
            elif search_field.search_type.is_range:
                unsupported = UnsupportedComparison(field_name, search_field.search_type)
                logger.warning(
                    f"Range search on non-date field is not supported, skipping. "
                    f"field={field_name}, searchType={search_field.search_type.value}"
                )
                query.unsupported.append(unsupported)
            else:
                fq = self.set_field(field_name, value)
                if fq is not None:
                    query.add_filter_query(fq)

        if from_date is not None or to_date is not None:
            query.add_filter_query(self.set_date_range(date_field_name, from_date, to_date))

        self.set_sort_clause(criteria, sort_fields, query)
        query.start = criteria.start_index
        query.rows = criteria.max_rows
        return query

    def search_resources(
        self,
        criteria: SearchCriteria,
        search_fields: Sequence[SearchField],
        sort_fields: Sequence[SortField],
        client: pysolr.Solr,
    ) -> pysolr.Results:
        """Translate criteria, run the query and return the Solr response.

        Raises:
            AuditSystemError: If the query failed or Solr reported a
                non-zero status.
        """
        query = self.build_query(criteria, search_fields, sort_fields)
        logger.debug(f"SOLR QUERY={query}")

        response = self.run_query(client, query)
        if response is None or _response_status(response) != 0:
            logger.error(f"Error running query. query={query}, response={response}")
            raise AuditSystemError("Error running query")
        return response

    def set_field(self, field_name: str, value: Any) -> Optional[str]:
        if value is None or str(value).strip() == "":
            return None
        return f"{field_name}:{escape_query_chars(str(value).strip().lower())}"

    def set_date_range(
        self, field_name: str, from_date: Optional[datetime], to_date: Optional[datetime]
    ) -> str:
        from_str = RANGE_OPEN_START
        to_str = RANGE_OPEN_END
        if from_date is not None:
            from_str = self.format_date(from_date)
        if to_date is not None:
            to_str = self.format_date(to_date)
        return f"{field_name}:[{from_str} TO {to_str}]"

    def format_date(self, value: datetime) -> str:
        """Render a date in the configured zone; naive values are local time."""
        return value.astimezone(self._tz).strftime(DATE_FORMAT)

    def or_list(self, field_name: str, values: Optional[Collection[Any]]) -> Optional[str]:
        return self._join_list(field_name, values, " OR ")

    def and_list(self, field_name: str, values: Optional[Collection[Any]]) -> Optional[str]:
        return self._join_list(field_name, values, " AND ")

    def _join_list(
        self, field_name: str, values: Optional[Collection[Any]], operator: str
    ) -> Optional[str]:
        if not values:
            return None
        expr = operator.join(
            f"{field_name}:{escape_query_chars(str(value).lower())}" for value in values
        )
        return f"({expr})"

    def set_sort_clause(
        self,
        criteria: SearchCriteria,
        sort_fields: Sequence[SortField],
        query: SolrQuery,
    ) -> None:
        """Apply the single supported sort field to the query.

        Normalizes ``criteria.sort_by``, or replaces ``sort_by`` and
        ``sort_type`` with the default sort field when nothing matched.
        """
        sort = resolve_sort(criteria, sort_fields)
        if sort is not None:
            query.add_sort(*sort)

    # Lenient converters for Solr document values

    def to_int(self, value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, int):
            return int(value)
        if str(value) == "":
            return 0
        try:
            return int(str(value))
        except ValueError:
            logger.exception(f"Error converting value to integer. value={value}")
        return 0

    def to_long(self, value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, int):
            return int(value)
        if str(value) == "":
            return 0
        try:
            return int(str(value))
        except ValueError:
            logger.exception(f"Error converting value to long. value={value}")
        return 0

    def to_date(self, value: Any) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        text = str(value).strip()
        if text == "":
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            logger.exception(f"Error converting value to date. value={value}")
        return None
