"""Adapters package initialization."""
from affiliate_scout.adapters.fetch_client import FetchClient, FetchResult
from affiliate_scout.adapters.record_store import InMemoryRecordStore, RecordStore
from affiliate_scout.adapters.search_oracle import (
    ClaudeSearchOracle,
    NullSearchOracle,
    SearchOracle,
    SearchVerdict,
    StaticSearchOracle,
)
from affiliate_scout.adapters.supabase_store import SupabaseRecordStore

__all__ = [
    "ClaudeSearchOracle",
    "FetchClient",
    "FetchResult",
    "InMemoryRecordStore",
    "NullSearchOracle",
    "RecordStore",
    "SearchOracle",
    "SearchVerdict",
    "StaticSearchOracle",
    "SupabaseRecordStore",
]
