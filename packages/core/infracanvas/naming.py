"""Resource naming helpers.

Names must be stable across compiles: everything here is derived from node
identity and a caller-supplied session token, never from the clock.
"""

from __future__ import annotations

import hashlib
import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_SESSION = "infracanvas"


def sanitize_name(name: str) -> str:
    """Lowercase, collapse anything non-alphanumeric to single underscores."""
    cleaned = _NON_ALNUM.sub("_", name.lower()).strip("_")
    if not cleaned:
        return "resource"
    if cleaned[0].isdigit():
        cleaned = f"r_{cleaned}"
    return cleaned


def dns_name(name: str, max_len: int = 63) -> str:
    """Hyphenated lowercase form for names that end up in DNS or bucket names."""
    return sanitize_name(name).replace("_", "-")[:max_len].strip("-")


def compact_name(name: str, max_len: int = 24) -> str:
    """Lowercase alphanumerics only (Azure storage accounts and friends)."""
    return sanitize_name(name).replace("_", "")[:max_len]


def stable_suffix(node_id: str, session: str = DEFAULT_SESSION, length: int = 8) -> str:
    digest = hashlib.sha256(f"{session}:{node_id}".encode()).hexdigest()
    return digest[:length]


class NameAllocator:
    """Hands out resource names that are unique within one resource type."""

    def __init__(self):
        self._taken: dict[str, set[str]] = {}

    def reserve(self, resource_type: str, name: str) -> None:
        self._taken.setdefault(resource_type, set()).add(name)

    def allocate(self, resource_type: str, preferred: str) -> str:
        taken = self._taken.setdefault(resource_type, set())
        base = sanitize_name(preferred)
        name = base
        n = 2
        while name in taken:
            name = f"{base}_{n}"
            n += 1
        taken.add(name)
        return name
