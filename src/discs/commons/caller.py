from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AuthenticatedCaller:
    """
    Identity resolved from a live session.

    Produced only by `discs.auth.depends`; every service call that touches
    user-owned rows takes one of these instead of a bare user id.
    """

    user_id: UUID
    session_id: UUID
    email: str
    name: str
