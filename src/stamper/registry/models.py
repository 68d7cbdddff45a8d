"""Data models for the stamper registry."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum

from .keyspace import PackageKey


def sha256_hex(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass
class PackageVersion:
    """A named, versioned content blob."""
    owner: str
    name: str
    version: str
    content: str

    @classmethod
    def from_key(cls, key: PackageKey, content: str) -> "PackageVersion":
        return cls(owner=key.owner, name=key.name, version=key.version, content=content)

    @property
    def key(self) -> str:
        return PackageKey(self.owner, self.name, self.version).key

    @property
    def content_hash(self) -> str:
        # Recomputed on demand; never persisted next to the content.
        return sha256_hex(self.content)

    def to_dict(self) -> dict:
        return {
            "owner": self.owner,
            "name": self.name,
            "version": self.version,
            "hash": self.content_hash,
        }


class WriteOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass
class WriteResult:
    """Tagged result of a publish: tells callers whether the key was new."""
    outcome: WriteOutcome
    package: PackageVersion

    @property
    def created(self) -> bool:
        return self.outcome is WriteOutcome.CREATED

    @property
    def hash(self) -> str:
        return self.package.content_hash

    @property
    def message(self) -> str:
        if self.created:
            return "Package version initialized successfully"
        return "Package version updated successfully"

    def to_dict(self) -> dict:
        return {"message": self.message, **self.package.to_dict()}


@dataclass
class FetchedVersion:
    package: PackageVersion
    served_at: int  # epoch milliseconds at response time


@dataclass
class SearchHit:
    name: str
    value: str

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


@dataclass
class SearchResult:
    query: str
    results: list[SearchHit] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "count": self.count,
            "results": [hit.to_dict() for hit in self.results],
        }
