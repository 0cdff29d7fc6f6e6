from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]

from discs.artists.models import Artist
from discs.commons.caller import AuthenticatedCaller
from discs.commons.catalog import NamedEntityRepository, NamedEntityService
from discs.commons.logging import get_logger


@dataclass
class ArtistsService(NamedEntityService[Artist]):
    @classmethod
    def build(cls) -> "ArtistsService":
        return cls(
            repo=NamedEntityRepository(model=Artist),
            logger=get_logger("artists"),
            entity="Artist",
            unique_names=True,
        )

    async def search(
        self, session: AsyncSession, *, caller: AuthenticatedCaller, query: str
    ) -> list[Artist]:
        query = query.strip()
        if not query:
            return await self.list_by_user(session, caller=caller)
        return await self.repo.search_for_user(session, user_id=caller.user_id, query=query)
