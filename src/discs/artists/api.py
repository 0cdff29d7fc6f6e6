from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Query  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]

from discs.artists.schemas import ArtistPublic, ArtistWrite, ListArtistsResponse
from discs.artists.service import ArtistsService
from discs.auth.depends import current_caller_required
from discs.commons.caller import AuthenticatedCaller
from discs.commons.catalog_api import add_named_entity_routes
from discs.commons.depends import database_session

router = APIRouter(prefix="/artists", tags=["artists"])


@lru_cache
def get_artists_service() -> ArtistsService:
    return ArtistsService.build()


# Registered before "/{entity_id}" so "search" is not read as an id.
@router.get("/search", response_model=ListArtistsResponse)
async def search_artists(
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[ArtistsService, Depends(get_artists_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
    q: str = Query(default="", max_length=255),
) -> ListArtistsResponse:
    rows = await svc.search(session, caller=caller, query=q)
    return ListArtistsResponse(items=[ArtistPublic.model_validate(r) for r in rows])


add_named_entity_routes(
    router,
    entity="Artist",
    get_service=get_artists_service,
    public=ArtistPublic,
    write=ArtistWrite,
    listing=ListArtistsResponse,
)
