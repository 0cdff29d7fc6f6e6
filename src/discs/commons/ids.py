from __future__ import annotations

from uuid import UUID

from uuid6 import uuid7  # type: ignore[import-not-found]


def uuid7_uuid() -> UUID:
    """Generate a UUIDv7 (every primary key in the catalog uses one)."""
    return uuid7()


def parse_uuid(raw: str) -> UUID | None:
    """Parse a path parameter; `None` when it is not a UUID."""
    try:
        return UUID(raw)
    except (TypeError, ValueError):
        return None
