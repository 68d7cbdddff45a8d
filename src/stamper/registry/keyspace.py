"""Key-space resolver: canonical ``owner/name/version`` storage keys."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidArgumentError

DEFAULT_VERSION = "0.1.0"
KEY_SEPARATOR = "/"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")
_RESERVED_PARTS = {".", ".."}


def sanitize(value: Optional[str]) -> str:
    """Replace every character outside ``[A-Za-z0-9_.-]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", value or "")


@dataclass(frozen=True)
class PackageKey:
    """Sanitized identity of one package version."""
    owner: str
    name: str
    version: str

    @property
    def key(self) -> str:
        return KEY_SEPARATOR.join((self.owner, self.name, self.version))

    @property
    def parts(self) -> tuple[str, str, str]:
        return (self.owner, self.name, self.version)

    def __str__(self) -> str:
        return self.key


def _require(label: str, value: Optional[str]) -> str:
    if not value:
        raise InvalidArgumentError(f"Missing '{label}' parameter")
    part = sanitize(value)
    if part in _RESERVED_PARTS:
        raise InvalidArgumentError(f"Invalid '{label}' parameter")
    return part


def resolve_key(owner: Optional[str], name: Optional[str], version: Optional[str] = None) -> PackageKey:
    """Build the storage key for a package version.

    ``version`` falls back to ``DEFAULT_VERSION`` when absent or empty.
    Missing ``owner``/``name`` are rejected rather than collapsed into an
    empty path segment.
    """
    return PackageKey(
        owner=_require("owner", owner),
        name=_require("name", name),
        version=_require("version", version or DEFAULT_VERSION),
    )


def parse_key(key: str) -> PackageKey:
    """Split a stored key back into its three parts."""
    parts = key.split(KEY_SEPARATOR)
    if len(parts) != 3:
        raise ValueError(f"Malformed package key: {key!r}")
    owner, name, version = parts
    return PackageKey(owner=owner, name=name, version=version)
