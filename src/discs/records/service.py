"""
Record aggregate: a record row plus its credited artists, genres, label and
tracks.

Writes to the aggregate (base row, both association tables, tracks) run as a
single unit of work and commit once. Any failure rolls the whole thing back,
so a partially written record is never visible.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]

from discs.artists.models import Artist
from discs.commons.caller import AuthenticatedCaller
from discs.commons.catalog import NamedEntityRepository, blank_to_none
from discs.commons.logging import get_logger
from discs.genres.models import Genre
from discs.labels.models import Label
from discs.records.exceptions import (
    RECORD_NOT_FOUND,
    TRACK_NOT_FOUND,
    RecordNotFoundException,
    RecordStorageException,
    RecordUnauthorizedException,
    RecordValidationException,
    TrackNotFoundException,
)
from discs.records.models import Record, Track
from discs.records.repository import CreditedArtist, RecordsRepository, SearchFilters


@dataclass(frozen=True)
class ArtistCredit:
    artist_id: UUID
    role: str | None = None


@dataclass(frozen=True)
class TrackData:
    title: str
    duration: str | None = None
    position: str | None = None


@dataclass(frozen=True)
class RecordData:
    title: str
    release_year: int | None = None
    catalog_number: str | None = None
    condition: str | None = None
    notes: str | None = None
    cover_image_url: str | None = None
    storage_location: str | None = None
    label_id: UUID | None = None
    artists: Sequence[ArtistCredit] = ()
    genre_ids: Sequence[UUID] = ()
    tracks: Sequence[TrackData] = ()


@dataclass
class RecordDetail:
    record: Record
    artists: list[CreditedArtist] = field(default_factory=list)
    genres: list[Genre] = field(default_factory=list)
    label: Label | None = None
    # None when the read path does not load tracks (lists, search).
    tracks: list[Track] | None = None


def _record_fields(data: RecordData) -> dict[str, Any]:
    title = (data.title or "").strip()
    if not title:
        raise RecordValidationException("Record title is required")
    return {
        "title": title,
        # 0 means "unknown" to clients.
        "release_year": data.release_year or None,
        "catalog_number": blank_to_none(data.catalog_number),
        "condition": blank_to_none(data.condition),
        "notes": blank_to_none(data.notes),
        "cover_image_url": blank_to_none(data.cover_image_url),
        "storage_location": blank_to_none(data.storage_location),
        "label_id": data.label_id,
    }


def _track_fields(data: TrackData) -> dict[str, Any]:
    title = (data.title or "").strip()
    if not title:
        raise RecordValidationException("Track title is required")
    return {
        "title": title,
        "duration": blank_to_none(data.duration),
        "position": blank_to_none(data.position),
    }


def _artist_credits(artists: Sequence[ArtistCredit]) -> list[tuple[UUID, str | None]]:
    # One association row per artist; the first role given wins.
    seen: dict[UUID, str | None] = {}
    for credit in artists:
        if credit.artist_id not in seen:
            seen[credit.artist_id] = blank_to_none(credit.role)
    return list(seen.items())


def _unique(ids: Sequence[UUID]) -> list[UUID]:
    return list(dict.fromkeys(ids))


async def owned_record(
    session: AsyncSession,
    repo: RecordsRepository,
    logger: logging.Logger,
    *,
    caller: AuthenticatedCaller,
    record_id: UUID,
) -> Record:
    row = await repo.get_by_id(session, record_id=record_id)
    if row is None:
        raise RecordNotFoundException(RECORD_NOT_FOUND)
    if row.user_id != caller.user_id:
        logger.warning(
            "Cross-user record access record_id=%s user_id=%s", record_id, caller.user_id
        )
        raise RecordUnauthorizedException("Unauthorized")
    return row


@dataclass
class RecordsService:
    repo: RecordsRepository
    artists: NamedEntityRepository[Artist]
    genres: NamedEntityRepository[Genre]
    labels: NamedEntityRepository[Label]
    logger: logging.Logger

    @classmethod
    def build(cls) -> "RecordsService":
        return cls(
            repo=RecordsRepository(),
            artists=NamedEntityRepository(model=Artist),
            genres=NamedEntityRepository(model=Genre),
            labels=NamedEntityRepository(model=Label),
            logger=get_logger("records"),
        )

    async def _hydrate(
        self, session: AsyncSession, record: Record, *, with_tracks: bool
    ) -> RecordDetail:
        detail = RecordDetail(record=record)
        detail.artists = await self.repo.list_artists(session, record_id=record.id)
        detail.genres = await self.repo.list_genres(session, record_id=record.id)
        if record.label_id is not None:
            detail.label = await self.repo.get_label(session, label_id=record.label_id)
        if with_tracks:
            detail.tracks = await self.repo.list_tracks(session, record_id=record.id)
        return detail

    async def _check_references(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        artist_ids: Sequence[UUID],
        genre_ids: Sequence[UUID],
        label_id: UUID | None,
    ) -> None:
        # Referenced rows must exist and belong to the caller.
        found = await self.artists.existing_ids_for_user(
            session, user_id=caller.user_id, ids=artist_ids
        )
        missing = [i for i in artist_ids if i not in found]
        if missing:
            raise RecordValidationException("Artist not found", str(missing[0]))

        found = await self.genres.existing_ids_for_user(
            session, user_id=caller.user_id, ids=genre_ids
        )
        missing = [i for i in genre_ids if i not in found]
        if missing:
            raise RecordValidationException("Genre not found", str(missing[0]))

        if label_id is not None:
            found = await self.labels.existing_ids_for_user(
                session, user_id=caller.user_id, ids=[label_id]
            )
            if label_id not in found:
                raise RecordValidationException("Label not found", str(label_id))

    async def get(
        self, session: AsyncSession, *, caller: AuthenticatedCaller, record_id: UUID
    ) -> RecordDetail:
        row = await owned_record(
            session, self.repo, self.logger, caller=caller, record_id=record_id
        )
        try:
            return await self._hydrate(session, row, with_tracks=True)
        except SQLAlchemyError as exc:
            raise RecordStorageException("Failed to load record", str(exc)) from exc

    async def list_by_user(
        self, session: AsyncSession, *, caller: AuthenticatedCaller
    ) -> list[RecordDetail]:
        try:
            rows = await self.repo.list_for_user(session, user_id=caller.user_id)
            return [await self._hydrate(session, r, with_tracks=False) for r in rows]
        except SQLAlchemyError as exc:
            raise RecordStorageException("Failed to list records", str(exc)) from exc

    async def search(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        query: str | None = None,
        artist: str | None = None,
        genre: str | None = None,
        label: str | None = None,
        location: str | None = None,
    ) -> list[RecordDetail]:
        filters = SearchFilters(
            query=blank_to_none(query),
            artist=blank_to_none(artist),
            genre=blank_to_none(genre),
            label=blank_to_none(label),
            location=blank_to_none(location),
        )
        try:
            rows = await self.repo.search_for_user(
                session, user_id=caller.user_id, filters=filters
            )
            return [await self._hydrate(session, r, with_tracks=False) for r in rows]
        except SQLAlchemyError as exc:
            raise RecordStorageException("Failed to search records", str(exc)) from exc

    async def create(
        self, session: AsyncSession, *, caller: AuthenticatedCaller, data: RecordData
    ) -> RecordDetail:
        fields = _record_fields(data)
        credits = _artist_credits(data.artists)
        genre_ids = _unique(data.genre_ids)
        tracks = [_track_fields(t) for t in data.tracks]

        try:
            await self._check_references(
                session,
                caller=caller,
                artist_ids=[aid for aid, _ in credits],
                genre_ids=genre_ids,
                label_id=data.label_id,
            )
            row = await self.repo.insert(session, user_id=caller.user_id, fields=fields)
            await self.repo.add_artists(session, record_id=row.id, credits=credits)
            await self.repo.add_genres(session, record_id=row.id, genre_ids=genre_ids)
            await self.repo.insert_tracks(session, record_id=row.id, tracks=tracks)
            detail = await self._hydrate(session, row, with_tracks=True)
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            self.logger.warning("Record create rejected user_id=%s: %s", caller.user_id, exc)
            raise RecordValidationException("Invalid record references") from exc
        except SQLAlchemyError as exc:
            await session.rollback()
            self.logger.error("Record create failed user_id=%s: %s", caller.user_id, exc)
            raise RecordStorageException("Failed to create record", str(exc)) from exc
        except Exception:
            await session.rollback()
            raise

        self.logger.info("Record created id=%s user_id=%s", row.id, caller.user_id)
        return detail

    async def update(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        record_id: UUID,
        data: RecordData,
    ) -> RecordDetail:
        await owned_record(
            session, self.repo, self.logger, caller=caller, record_id=record_id
        )
        fields = _record_fields(data)
        credits = _artist_credits(data.artists)
        genre_ids = _unique(data.genre_ids)
        tracks = [_track_fields(t) for t in data.tracks]

        try:
            await self._check_references(
                session,
                caller=caller,
                artist_ids=[aid for aid, _ in credits],
                genre_ids=genre_ids,
                label_id=data.label_id,
            )
            row = await self.repo.update_for_user(
                session, user_id=caller.user_id, record_id=record_id, fields=fields
            )
            if row is None:
                raise RecordNotFoundException(RECORD_NOT_FOUND)

            # Association sets are replaced wholesale, never diffed.
            await self.repo.clear_artists(session, record_id=record_id)
            await self.repo.add_artists(session, record_id=record_id, credits=credits)
            await self.repo.clear_genres(session, record_id=record_id)
            await self.repo.add_genres(session, record_id=record_id, genre_ids=genre_ids)
            # An empty track list leaves the current tracks alone.
            if tracks:
                await self.repo.clear_tracks(session, record_id=record_id)
                await self.repo.insert_tracks(session, record_id=record_id, tracks=tracks)

            detail = await self._hydrate(session, row, with_tracks=True)
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            self.logger.warning("Record update rejected id=%s: %s", record_id, exc)
            raise RecordValidationException("Invalid record references") from exc
        except SQLAlchemyError as exc:
            await session.rollback()
            self.logger.error("Record update failed id=%s: %s", record_id, exc)
            raise RecordStorageException("Failed to update record", str(exc)) from exc
        except Exception:
            await session.rollback()
            raise

        self.logger.info("Record updated id=%s user_id=%s", record_id, caller.user_id)
        return detail

    async def delete(
        self, session: AsyncSession, *, caller: AuthenticatedCaller, record_id: UUID
    ) -> None:
        await owned_record(
            session, self.repo, self.logger, caller=caller, record_id=record_id
        )
        try:
            # Tracks and association rows go with it (ON DELETE CASCADE).
            deleted = await self.repo.delete_for_user(
                session, user_id=caller.user_id, record_id=record_id
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            self.logger.error("Record delete failed id=%s: %s", record_id, exc)
            raise RecordStorageException("Failed to delete record", str(exc)) from exc
        if deleted == 0:
            raise RecordNotFoundException(RECORD_NOT_FOUND)
        self.logger.info("Record deleted id=%s user_id=%s", record_id, caller.user_id)


@dataclass
class TracksService:
    """Tracks of one record; every call is authorized through the parent record."""

    repo: RecordsRepository
    logger: logging.Logger

    @classmethod
    def build(cls) -> "TracksService":
        return cls(repo=RecordsRepository(), logger=get_logger("tracks"))

    async def _parent(
        self, session: AsyncSession, *, caller: AuthenticatedCaller, record_id: UUID
    ) -> Record:
        return await owned_record(
            session, self.repo, self.logger, caller=caller, record_id=record_id
        )

    async def list_for_record(
        self, session: AsyncSession, *, caller: AuthenticatedCaller, record_id: UUID
    ) -> list[Track]:
        await self._parent(session, caller=caller, record_id=record_id)
        return await self.repo.list_tracks(session, record_id=record_id)

    async def get(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        record_id: UUID,
        track_id: UUID,
    ) -> Track:
        await self._parent(session, caller=caller, record_id=record_id)
        row = await self.repo.get_track(session, record_id=record_id, track_id=track_id)
        if row is None:
            raise TrackNotFoundException(TRACK_NOT_FOUND)
        return row

    async def create(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        record_id: UUID,
        data: TrackData,
    ) -> Track:
        await self._parent(session, caller=caller, record_id=record_id)
        fields = _track_fields(data)
        try:
            rows = await self.repo.insert_tracks(session, record_id=record_id, tracks=[fields])
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise RecordStorageException("Failed to create track", str(exc)) from exc
        return rows[0]

    async def update(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        record_id: UUID,
        track_id: UUID,
        data: TrackData,
    ) -> Track:
        await self._parent(session, caller=caller, record_id=record_id)
        fields = _track_fields(data)
        try:
            row = await self.repo.update_track(
                session, record_id=record_id, track_id=track_id, fields=fields
            )
            if row is None:
                await session.rollback()
                raise TrackNotFoundException(TRACK_NOT_FOUND)
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise RecordStorageException("Failed to update track", str(exc)) from exc
        return row

    async def delete(
        self,
        session: AsyncSession,
        *,
        caller: AuthenticatedCaller,
        record_id: UUID,
        track_id: UUID,
    ) -> None:
        await self._parent(session, caller=caller, record_id=record_id)
        try:
            deleted = await self.repo.delete_track(
                session, record_id=record_id, track_id=track_id
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise RecordStorageException("Failed to delete track", str(exc)) from exc
        if deleted == 0:
            raise TrackNotFoundException(TRACK_NOT_FOUND)
