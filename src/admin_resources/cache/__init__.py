"""
In-memory query cache: keyed reads with coalescing and staleness, writes
that invalidate related reads, and the retry policy reads run under.
"""

from .client import QueryClient, get_query_client, reset_query_client, set_query_client
from .keys import QueryKey, QueryKind, detail_key, entity_prefix, list_key, serialize_params
from .mutation import (
    MutationExecutor,
    MutationRequest,
    Operation,
    build_action_request,
    build_request,
    invalidation_plan,
)
from .query import QueryExecutor
from .retry import RetryPolicy, run_with_retry
from .store import CacheEntry, CacheStatus, CacheStore

__all__ = [
    # Keys
    "QueryKey",
    "QueryKind",
    "serialize_params",
    "list_key",
    "detail_key",
    "entity_prefix",
    # Store
    "CacheStore",
    "CacheEntry",
    "CacheStatus",
    # Executors
    "QueryExecutor",
    "MutationExecutor",
    "MutationRequest",
    "Operation",
    "build_request",
    "build_action_request",
    "invalidation_plan",
    # Retry
    "RetryPolicy",
    "run_with_retry",
    # Owner
    "QueryClient",
    "get_query_client",
    "set_query_client",
    "reset_query_client",
]
