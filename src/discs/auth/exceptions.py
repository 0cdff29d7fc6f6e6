from __future__ import annotations

from discs.commons.exceptions import (
    BaseServiceConflictException,
    BaseServiceNotFoundException,
    BaseServiceStorageException,
    BaseServiceUnauthorizedException,
)


class AuthServiceNotFoundException(BaseServiceNotFoundException):
    pass


class AuthServiceUnauthorizedException(BaseServiceUnauthorizedException):
    pass


class AuthServiceConflictException(BaseServiceConflictException):
    pass


class AuthServiceStorageException(BaseServiceStorageException):
    pass


class SessionNotFoundException(AuthServiceUnauthorizedException):
    pass


class SessionExpiredException(SessionNotFoundException):
    # Same outcome as not-found for every caller; kept distinct for logs.
    pass
