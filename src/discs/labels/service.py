from __future__ import annotations

from dataclasses import dataclass

from discs.labels.models import Label
from discs.commons.catalog import NamedEntityRepository, NamedEntityService
from discs.commons.logging import get_logger


@dataclass
class LabelsService(NamedEntityService[Label]):
    @classmethod
    def build(cls) -> "LabelsService":
        return cls(
            repo=NamedEntityRepository(model=Label),
            logger=get_logger("labels"),
            entity="Label",
        )
