from __future__ import annotations

from pydantic import BaseModel

from discs.commons.catalog_api import NamedEntityPublic, NamedEntityWrite


class GenrePublic(NamedEntityPublic):
    pass


class GenreWrite(NamedEntityWrite):
    pass


class ListGenresResponse(BaseModel):
    items: list[GenrePublic]
