import logging
from datetime import datetime, timezone

import pysolr
import pytest

from auditadmin.errors import AuditSystemError
from auditadmin.schemas import (
    DataType,
    SearchCriteria,
    SearchField,
    SearchType,
    SortField,
    SortOrder,
)
from auditadmin.search.solr_util import SolrQuery, SolrUtil, UnsupportedComparison, escape_query_chars

SEARCH_FIELDS = [
    SearchField("repoName", "repo"),
    SearchField("requestUser", "reqUser"),
    SearchField("accessResult", "result", DataType.INTEGER),
    SearchField("policyId", "policy", DataType.LONG, SearchType.GREATER_THAN),
    SearchField("startDate", "evtTime", DataType.DATE, SearchType.GREATER_EQUAL_THAN),
    SearchField("endDate", "evtTime", DataType.DATE, SearchType.LESS_EQUAL_THAN),
]

SORT_FIELDS = [
    SortField("eventTime", "evtTime", is_default=True, default_order=SortOrder.DESC),
    SortField("requestUser", "reqUser"),
]


class FakeSolr:
    """Records search calls and answers with a canned response."""

    def __init__(self, decoded=None, error=None):
        self.decoded = decoded if decoded is not None else {
            "responseHeader": {"status": 0},
            "response": {"numFound": 0, "docs": []},
        }
        self.error = error
        self.calls = []

    def search(self, q, **kwargs):
        self.calls.append((q, kwargs))
        if self.error is not None:
            raise self.error
        return pysolr.Results(self.decoded)


@pytest.fixture
def util():
    return SolrUtil(timezone="UTC")


def test_escape_query_chars():
    assert escape_query_chars("a+b") == r"a\+b"
    assert escape_query_chars("/data/x y") == r"\/data\/x\ y"
    assert escape_query_chars('key:"v"') == r'key\:\"v\"'
    assert escape_query_chars("plain") == "plain"


def test_set_field_lowercases_and_escapes(util):
    assert util.set_field("reqUser", "  Bob Smith ") == r"reqUser:bob\ smith"
    assert util.set_field("result", 1) == "result:1"


def test_set_field_blank_returns_none(util):
    assert util.set_field("reqUser", None) is None
    assert util.set_field("reqUser", "   ") is None


def test_or_list_builds_parenthesized_disjunction(util):
    assert util.or_list("repo", ["HDFS", "Hive:Dev"]) == r"(repo:hdfs OR repo:hive\:dev)"


def test_and_list_builds_parenthesized_conjunction(util):
    assert util.and_list("tags", ["PII", "Finance"]) == "(tags:pii AND tags:finance)"


def test_lists_empty_return_none(util):
    assert util.or_list("repo", []) is None
    assert util.or_list("repo", None) is None
    assert util.and_list("repo", []) is None


def test_set_date_range_both_bounds(util):
    start = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    end = datetime(2024, 1, 3, tzinfo=timezone.utc)
    assert (
        util.set_date_range("evtTime", start, end)
        == "evtTime:[2024-01-02T03:04:05Z TO 2024-01-03T00:00:00Z]"
    )


def test_set_date_range_open_bounds(util):
    when = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    assert util.set_date_range("evtTime", when, None) == "evtTime:[2024-05-06T07:08:09Z TO NOW]"
    assert util.set_date_range("evtTime", None, when) == "evtTime:[* TO 2024-05-06T07:08:09Z]"


def test_date_range_uses_configured_timezone():
    util = SolrUtil(timezone="Asia/Kolkata")
    when = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    assert util.format_date(when) == "2024-01-01T05:30:00Z"


def test_unknown_timezone_falls_back_to_local(caplog):
    with caplog.at_level(logging.ERROR):
        util = SolrUtil(timezone="Not/AZone")
    assert "Error setting timezone" in caplog.text
    when = datetime(2024, 1, 1, 12, 0, 0)
    assert util.format_date(when) == "2024-01-01T12:00:00Z"


def test_build_query_multi_valued_param_becomes_or_filter(util):
    criteria = SearchCriteria(params={"repoName": ["HDFS", "hive"]})
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.q == "*:*"
    assert query.filter_queries == ["(repo:hdfs OR repo:hive)"]


def test_build_query_equality_filters(util):
    criteria = SearchCriteria(params={"requestUser": "Alice", "accessResult": 0, "repoName": " "})
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.filter_queries == ["reqUser:alice", "result:0"]


def test_build_query_date_range_from_two_fields(util):
    criteria = SearchCriteria(
        params={
            "startDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "endDate": datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc),
        }
    )
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.filter_queries == ["evtTime:[2024-01-01T00:00:00Z TO 2024-01-31T23:59:59Z]"]


def test_build_query_upper_bound_only(util):
    criteria = SearchCriteria(params={"endDate": datetime(2024, 2, 1, tzinfo=timezone.utc)})
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.filter_queries == ["evtTime:[* TO 2024-02-01T00:00:00Z]"]


def test_build_query_parses_date_strings(util):
    criteria = SearchCriteria(params={"startDate": "2024-03-01T10:00:00Z"})
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.filter_queries == ["evtTime:[2024-03-01T10:00:00Z TO NOW]"]


def test_build_query_last_date_field_wins(util):
    fields = [
        SearchField("startDate", "evtTime", DataType.DATE, SearchType.GREATER_EQUAL_THAN),
        SearchField("createdAfter", "createTime", DataType.DATE, SearchType.GREATER_THAN),
    ]
    criteria = SearchCriteria(
        params={
            "startDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "createdAfter": datetime(2024, 6, 1, tzinfo=timezone.utc),
        }
    )
    query = util.build_query(criteria, fields, SORT_FIELDS)
    assert query.filter_queries == ["createTime:[2024-06-01T00:00:00Z TO NOW]"]


def test_build_query_non_date_range_is_reported_unsupported(util):
    criteria = SearchCriteria(params={"policyId": 10})
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.filter_queries == []
    assert query.unsupported == [UnsupportedComparison("policy", SearchType.GREATER_THAN)]


def test_sort_matches_case_insensitively_and_normalizes(util):
    criteria = SearchCriteria(sort_by=" REQUESTUSER ", sort_type="DESC")
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.sort == [("reqUser", SortOrder.DESC)]
    assert criteria.sort_by == "requestUser"


def test_sort_defaults_to_ascending(util):
    criteria = SearchCriteria(sort_by="requestUser", sort_type="descending")
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.sort == [("reqUser", SortOrder.ASC)]


def test_unknown_sort_falls_back_to_default_field(util):
    criteria = SearchCriteria(sort_by="bogus", sort_type="asc")
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.sort == [("evtTime", SortOrder.DESC)]
    assert criteria.sort_by == "eventTime"
    assert criteria.sort_type == "desc"


def test_no_sort_when_nothing_matches_and_no_default(util):
    criteria = SearchCriteria(sort_by="bogus")
    query = util.build_query(criteria, SEARCH_FIELDS, [SortField("requestUser", "reqUser")])
    assert query.sort == []
    assert "sort" not in query.to_params()


def test_pagination_applied(util):
    criteria = SearchCriteria(start_index=50, max_rows=25)
    query = util.build_query(criteria, SEARCH_FIELDS, SORT_FIELDS)
    assert query.start == 50
    assert query.rows == 25


def test_search_resources_sends_translated_params(util):
    client = FakeSolr({
        "responseHeader": {"status": 0},
        "response": {"numFound": 1, "docs": [{"id": "1"}]},
    })
    criteria = SearchCriteria(params={"requestUser": "Alice"}, start_index=0, max_rows=10)

    response = util.search_resources(criteria, SEARCH_FIELDS, SORT_FIELDS, client)

    assert response.hits == 1
    q, params = client.calls[0]
    assert q == "*:*"
    assert params == {"start": 0, "rows": 10, "fq": ["reqUser:alice"], "sort": "evtTime desc"}


def test_search_resources_non_zero_status_raises(util):
    client = FakeSolr({"responseHeader": {"status": 500}, "response": {"numFound": 0, "docs": []}})
    with pytest.raises(AuditSystemError) as exc_info:
        util.search_resources(SearchCriteria(), SEARCH_FIELDS, SORT_FIELDS, client)
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Error running query"


def test_search_resources_client_failure_raises(util):
    client = FakeSolr(error=pysolr.SolrError("connection refused"))
    with pytest.raises(AuditSystemError):
        util.search_resources(SearchCriteria(), SEARCH_FIELDS, SORT_FIELDS, client)
    assert len(client.calls) == 1


def test_run_query_without_query_returns_none(util):
    client = FakeSolr()
    assert util.run_query(client, None) is None
    assert client.calls == []


def test_solr_query_str():
    query = SolrQuery(filter_queries=["repo:hdfs"], start=5, rows=10)
    query.add_sort("evtTime", SortOrder.DESC)
    assert str(query) == "q=*:*&fq=repo:hdfs&sort=evtTime desc&start=5&rows=10"


@pytest.mark.parametrize("value", [None, "", "abc", "1.5"])
def test_to_int_defaults_to_zero(util, value):
    assert util.to_int(value) == 0


def test_to_int_converts(util):
    assert util.to_int(7) == 7
    assert util.to_int("42") == 42


def test_bool_values_convert_to_plain_ints(util):
    assert util.to_int(True) == 1
    assert type(util.to_int(True)) is int
    assert type(util.to_long(False)) is int


@pytest.mark.parametrize("value", [None, "", "12x"])
def test_to_long_defaults_to_zero(util, value):
    assert util.to_long(value) == 0


def test_to_long_converts(util):
    assert util.to_long("9876543210") == 9876543210


@pytest.mark.parametrize("value", [None, "", "not a date"])
def test_to_date_defaults_to_none(util, value):
    assert util.to_date(value) is None


def test_to_date_converts(util):
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert util.to_date(when) is when
    assert util.to_date("2024-01-01T00:00:00Z") == when


def test_to_int_logs_failures(util, caplog):
    with caplog.at_level(logging.ERROR):
        util.to_int("abc")
    assert "Error converting value to integer" in caplog.text
