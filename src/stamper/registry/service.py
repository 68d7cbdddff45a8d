"""Version store operations layered over a key-value store.

``create_version`` is the single publish entry point: it writes when the
key is absent and otherwise hands over to ``update_version``. There is no
compare-and-swap, so two concurrent creates of the same absent key may both
write; the last one wins.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from .errors import InvalidArgumentError, NotFoundError
from .keyspace import sanitize, resolve_key
from .models import (
    FetchedVersion,
    PackageVersion,
    SearchHit,
    SearchResult,
    WriteOutcome,
    WriteResult,
)
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT = "default package content"
DEFAULT_SEARCH_LIMIT = 10


def _coerce_limit(limit: Any) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_SEARCH_LIMIT
    return value if value >= 1 else DEFAULT_SEARCH_LIMIT


class PackageRegistry:
    """Create, update, fetch and search package versions."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def create_version(
        self,
        owner: Optional[str],
        name: Optional[str],
        version: Optional[str] = None,
        content: Optional[str] = None,
    ) -> WriteResult:
        key = resolve_key(owner, name, version)

        if self.store.get(key.key) is not None:
            logger.info("Version %s already exists, updating instead", key)
            return self.update_version(owner, name, version, content)

        package = PackageVersion.from_key(key, content or DEFAULT_CONTENT)
        self.store.put(key.key, package.content)
        logger.info("Created %s (%s)", key, package.content_hash)
        return WriteResult(outcome=WriteOutcome.CREATED, package=package)

    def update_version(
        self,
        owner: Optional[str],
        name: Optional[str],
        version: Optional[str] = None,
        content: Optional[str] = None,
    ) -> WriteResult:
        key = resolve_key(owner, name, version)

        if not content:
            raise InvalidArgumentError("Missing 'content' field in request body")

        if self.store.get(key.key) is None:
            raise NotFoundError()

        package = PackageVersion.from_key(key, content)
        self.store.put(key.key, package.content)
        logger.info("Updated %s (%s)", key, package.content_hash)
        return WriteResult(outcome=WriteOutcome.UPDATED, package=package)

    def get_version(
        self,
        owner: Optional[str],
        name: Optional[str],
        version: Optional[str] = None,
    ) -> FetchedVersion:
        key = resolve_key(owner, name, version)
        content = self.store.get(key.key)
        if content is None:
            raise NotFoundError()
        return FetchedVersion(
            package=PackageVersion.from_key(key, content),
            served_at=int(time.time() * 1000),
        )

    def search_packages(self, query: Optional[str], limit: Any = None) -> SearchResult:
        """Case-insensitive substring match over every stored key.

        Results come in store enumeration order and stop at ``limit``.
        """
        query = sanitize(query)
        limit = _coerce_limit(limit)
        needle = query.lower()

        result = SearchResult(query=query)
        for key in self.store.list():
            if needle not in key.lower():
                continue
            content = self.store.get(key)
            if content is None:
                continue
            result.results.append(SearchHit(name=key, value=content))
            if result.count >= limit:
                break

        logger.debug("Search %r matched %d key(s)", query, result.count)
        return result
