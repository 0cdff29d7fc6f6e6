from __future__ import annotations

from pydantic import BaseModel

from discs.commons.catalog_api import NamedEntityPublic, NamedEntityWrite


class ArtistPublic(NamedEntityPublic):
    pass


class ArtistWrite(NamedEntityWrite):
    pass


class ListArtistsResponse(BaseModel):
    items: list[ArtistPublic]
