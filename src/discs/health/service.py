from __future__ import annotations

from discs.core.settings import settings
from discs.health import repository


async def get_health_payload() -> dict:
    db_ok, db_detail = await repository.check_db()
    return {
        "status": "ok" if db_ok else "error",
        "version": settings.API_VERSION,
        "db": {"ok": db_ok, "detail": db_detail},
    }
