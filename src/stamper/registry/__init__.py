"""Stamper registry - owner/name/version content store with a FastAPI front end."""

from .client import AsyncRegistryClient, RegistryClient
from .errors import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    RateLimitedError,
    RegistryError,
    StorageError,
)
from .keyspace import DEFAULT_VERSION, PackageKey, resolve_key, sanitize
from .models import PackageVersion, SearchResult, WriteOutcome, WriteResult, sha256_hex
from .server import create_app
from .service import PackageRegistry
from .storage import FileStore, KeyValueStore, MemoryStore, create_store

__all__ = [
    "create_app",
    "RegistryClient",
    "AsyncRegistryClient",
    "PackageRegistry",
    "PackageKey",
    "PackageVersion",
    "WriteOutcome",
    "WriteResult",
    "SearchResult",
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "create_store",
    "resolve_key",
    "sanitize",
    "sha256_hex",
    "DEFAULT_VERSION",
    "RegistryError",
    "NotFoundError",
    "InvalidArgumentError",
    "InternalError",
    "StorageError",
    "RateLimitedError",
]
