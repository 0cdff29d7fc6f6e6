from __future__ import annotations

from dataclasses import dataclass

from discs.genres.models import Genre
from discs.commons.catalog import NamedEntityRepository, NamedEntityService
from discs.commons.logging import get_logger


@dataclass
class GenresService(NamedEntityService[Genre]):
    @classmethod
    def build(cls) -> "GenresService":
        return cls(
            repo=NamedEntityRepository(model=Genre),
            logger=get_logger("genres"),
            entity="Genre",
        )
