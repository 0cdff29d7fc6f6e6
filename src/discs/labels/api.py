from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter  # type: ignore[import-not-found]

from discs.commons.catalog_api import add_named_entity_routes
from discs.labels.schemas import LabelPublic, LabelWrite, ListLabelsResponse
from discs.labels.service import LabelsService

router = APIRouter(prefix="/labels", tags=["labels"])


@lru_cache
def get_labels_service() -> LabelsService:
    return LabelsService.build()


add_named_entity_routes(
    router,
    entity="Label",
    get_service=get_labels_service,
    public=LabelPublic,
    write=LabelWrite,
    listing=ListLabelsResponse,
)
