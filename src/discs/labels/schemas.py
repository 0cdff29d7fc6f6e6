from __future__ import annotations

from pydantic import BaseModel

from discs.commons.catalog_api import NamedEntityPublic, NamedEntityWrite


class LabelPublic(NamedEntityPublic):
    pass


class LabelWrite(NamedEntityWrite):
    pass


class ListLabelsResponse(BaseModel):
    items: list[LabelPublic]
