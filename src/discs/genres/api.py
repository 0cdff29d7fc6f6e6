from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter  # type: ignore[import-not-found]

from discs.commons.catalog_api import add_named_entity_routes
from discs.genres.schemas import GenrePublic, GenreWrite, ListGenresResponse
from discs.genres.service import GenresService

router = APIRouter(prefix="/genres", tags=["genres"])


@lru_cache
def get_genres_service() -> GenresService:
    return GenresService.build()


add_named_entity_routes(
    router,
    entity="Genre",
    get_service=get_genres_service,
    public=GenrePublic,
    write=GenreWrite,
    listing=ListGenresResponse,
)
