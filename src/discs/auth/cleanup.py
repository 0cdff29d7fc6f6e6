"""
Expired-session sweep.

Meant for a scheduler (cron, k8s CronJob) rather than the request path:

    discs-clean-sessions
"""

from __future__ import annotations

import asyncio

from discs.auth.service import SessionService
from discs.commons.logging import logger
from discs.core.db import database_manager


async def clean_expired_sessions(svc: SessionService | None = None) -> int:
    svc = svc or SessionService.build()
    await database_manager.initialize()
    try:
        async with database_manager.session() as session:
            return await svc.clean_expired(session)
    finally:
        await database_manager.shutdown()


def main() -> None:
    deleted = asyncio.run(clean_expired_sessions())
    logger.info("Session sweep finished, %d expired sessions removed", deleted)


if __name__ == "__main__":
    main()
