"""Solr query translation and the Solr-backed access-audit search."""

from .access_audits import SolrAccessAuditsService
from .solr_util import SolrQuery, SolrUtil, UnsupportedComparison, escape_query_chars

__all__ = [
    "SolrAccessAuditsService",
    "SolrQuery",
    "SolrUtil",
    "UnsupportedComparison",
    "escape_query_chars",
]
