from __future__ import annotations

from discs.commons.exceptions import (
    BaseServiceNotFoundException,
    BaseServiceStorageException,
    BaseServiceUnauthorizedException,
    BaseServiceUnProcessableException,
)


class RecordNotFoundException(BaseServiceNotFoundException):
    pass


class RecordUnauthorizedException(BaseServiceUnauthorizedException):
    pass


class RecordValidationException(BaseServiceUnProcessableException):
    pass


class RecordStorageException(BaseServiceStorageException):
    pass


class TrackNotFoundException(BaseServiceNotFoundException):
    pass


RECORD_NOT_FOUND = "Record not found"
TRACK_NOT_FOUND = "Track not found"
