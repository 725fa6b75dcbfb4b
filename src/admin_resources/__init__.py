from . import app, cache, resources

from .cache import (
    CacheEntry,
    CacheStatus,
    CacheStore,
    MutationExecutor,
    MutationRequest,
    Operation,
    QueryClient,
    QueryExecutor,
    QueryKey,
    RetryPolicy,
    get_query_client,
    reset_query_client,
)
from .debounce import DebouncedQueryTrigger, DebounceState
from .exceptions import (
    ClientError,
    ConfigurationError,
    NotFoundError,
    PermissionDeniedError,
    ResourceError,
    TransientError,
    ValidationError,
    classify_error,
)
from .notify import Failure, LoggingNotificationSink, NotificationSink, Success
from .resources import DISABLED, Page, ResourceClient, build_resource_client

__all__ = [
    # Modules
    "app",
    "cache",
    "resources",
    # Cache
    "QueryKey",
    "CacheStore",
    "CacheEntry",
    "CacheStatus",
    "QueryExecutor",
    "MutationExecutor",
    "MutationRequest",
    "Operation",
    "RetryPolicy",
    "QueryClient",
    "get_query_client",
    "reset_query_client",
    # Resources
    "ResourceClient",
    "build_resource_client",
    "Page",
    "DISABLED",
    # Debounce
    "DebouncedQueryTrigger",
    "DebounceState",
    # Notifications
    "NotificationSink",
    "LoggingNotificationSink",
    "Success",
    "Failure",
    # Errors
    "ResourceError",
    "ClientError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "TransientError",
    "ConfigurationError",
    "classify_error",
]
