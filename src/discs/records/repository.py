from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import sqlalchemy as sa  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]

from discs.artists.models import Artist
from discs.commons.catalog import like_pattern
from discs.commons.ids import uuid7_uuid
from discs.genres.models import Genre
from discs.labels.models import Label
from discs.records.models import ArtistRecord, GenreRecord, Record, Track

# Scalar columns a caller may write on the base row.
RECORD_FIELDS = (
    "title",
    "release_year",
    "catalog_number",
    "condition",
    "notes",
    "cover_image_url",
    "storage_location",
    "label_id",
)


@dataclass(frozen=True)
class CreditedArtist:
    artist: Artist
    role: str | None


@dataclass(frozen=True)
class SearchFilters:
    query: str | None = None
    artist: str | None = None
    genre: str | None = None
    label: str | None = None
    location: str | None = None


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def _track_order() -> tuple[Any, ...]:
    # Plain text order: "A1" < "A2" < "B1"; unpositioned tracks last.
    return (Track.position.asc().nulls_last(), Track.id.asc())


class RecordsRepository:
    async def get_by_id(self, session: AsyncSession, *, record_id: UUID) -> Record | None:
        res = await session.execute(sa.select(Record).where(Record.id == record_id))
        return res.scalar_one_or_none()

    async def list_for_user(self, session: AsyncSession, *, user_id: UUID) -> list[Record]:
        stmt = (
            sa.select(Record)
            .where(Record.user_id == user_id)
            .order_by(Record.title.asc(), Record.id.asc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def search_for_user(
        self, session: AsyncSession, *, user_id: UUID, filters: SearchFilters
    ) -> list[Record]:
        conditions: list[Any] = [Record.user_id == user_id]
        if filters.query:
            pattern = like_pattern(filters.query)
            conditions.append(
                sa.or_(
                    Record.title.ilike(pattern),
                    Record.notes.ilike(pattern),
                    Record.catalog_number.ilike(pattern),
                )
            )
        if filters.artist:
            conditions.append(Artist.name.ilike(like_pattern(filters.artist)))
        if filters.genre:
            conditions.append(Genre.name.ilike(like_pattern(filters.genre)))
        if filters.label:
            conditions.append(Label.name.ilike(like_pattern(filters.label)))
        if filters.location:
            conditions.append(Record.storage_location.ilike(like_pattern(filters.location)))

        # The joins fan out per artist/genre, so ids are de-duplicated first.
        matched = (
            sa.select(Record.id)
            .select_from(Record)
            .outerjoin(ArtistRecord, ArtistRecord.record_id == Record.id)
            .outerjoin(Artist, Artist.id == ArtistRecord.artist_id)
            .outerjoin(GenreRecord, GenreRecord.record_id == Record.id)
            .outerjoin(Genre, Genre.id == GenreRecord.genre_id)
            .outerjoin(Label, Label.id == Record.label_id)
            .where(sa.and_(*conditions))
            .distinct()
        )
        stmt = (
            sa.select(Record)
            .where(Record.id.in_(matched))
            .order_by(Record.title.asc(), Record.id.asc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def insert(
        self, session: AsyncSession, *, user_id: UUID, fields: dict[str, Any]
    ) -> Record:
        now = _utcnow()
        row = Record(id=uuid7_uuid(), user_id=user_id, created_at=now, updated_at=now, **fields)
        session.add(row)
        await session.flush()
        return row

    async def update_for_user(
        self,
        session: AsyncSession,
        *,
        user_id: UUID,
        record_id: UUID,
        fields: dict[str, Any],
    ) -> Record | None:
        stmt = (
            sa.update(Record)
            .where(Record.id == record_id)
            .where(Record.user_id == user_id)
            .values(**fields, updated_at=_utcnow())
            .returning(Record)
        )
        res = await session.execute(stmt)
        await session.flush()
        return res.scalar_one_or_none()

    async def delete_for_user(
        self, session: AsyncSession, *, user_id: UUID, record_id: UUID
    ) -> int:
        stmt = (
            sa.delete(Record)
            .where(Record.id == record_id)
            .where(Record.user_id == user_id)
        )
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)

    # --- related rows -------------------------------------------------------

    async def list_artists(
        self, session: AsyncSession, *, record_id: UUID
    ) -> list[CreditedArtist]:
        stmt = (
            sa.select(Artist, ArtistRecord.role)
            .join(ArtistRecord, ArtistRecord.artist_id == Artist.id)
            .where(ArtistRecord.record_id == record_id)
            .order_by(Artist.name.asc())
        )
        res = await session.execute(stmt)
        return [CreditedArtist(artist=a, role=role) for a, role in res.all()]

    async def list_genres(self, session: AsyncSession, *, record_id: UUID) -> list[Genre]:
        stmt = (
            sa.select(Genre)
            .join(GenreRecord, GenreRecord.genre_id == Genre.id)
            .where(GenreRecord.record_id == record_id)
            .order_by(Genre.name.asc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def get_label(self, session: AsyncSession, *, label_id: UUID) -> Label | None:
        res = await session.execute(sa.select(Label).where(Label.id == label_id))
        return res.scalar_one_or_none()

    async def add_artists(
        self,
        session: AsyncSession,
        *,
        record_id: UUID,
        credits: Sequence[tuple[UUID, str | None]],
    ) -> None:
        if not credits:
            return
        session.add_all(
            [ArtistRecord(artist_id=aid, record_id=record_id, role=role) for aid, role in credits]
        )
        await session.flush()

    async def clear_artists(self, session: AsyncSession, *, record_id: UUID) -> None:
        await session.execute(sa.delete(ArtistRecord).where(ArtistRecord.record_id == record_id))
        await session.flush()

    async def add_genres(
        self, session: AsyncSession, *, record_id: UUID, genre_ids: Sequence[UUID]
    ) -> None:
        if not genre_ids:
            return
        session.add_all([GenreRecord(genre_id=gid, record_id=record_id) for gid in genre_ids])
        await session.flush()

    async def clear_genres(self, session: AsyncSession, *, record_id: UUID) -> None:
        await session.execute(sa.delete(GenreRecord).where(GenreRecord.record_id == record_id))
        await session.flush()

    # --- tracks -------------------------------------------------------------

    async def list_tracks(self, session: AsyncSession, *, record_id: UUID) -> list[Track]:
        stmt = sa.select(Track).where(Track.record_id == record_id).order_by(*_track_order())
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def get_track(
        self, session: AsyncSession, *, record_id: UUID, track_id: UUID
    ) -> Track | None:
        stmt = (
            sa.select(Track)
            .where(Track.id == track_id)
            .where(Track.record_id == record_id)
        )
        res = await session.execute(stmt)
        return res.scalar_one_or_none()

    async def insert_tracks(
        self,
        session: AsyncSession,
        *,
        record_id: UUID,
        tracks: Sequence[dict[str, Any]],
    ) -> list[Track]:
        now = _utcnow()
        rows = [
            Track(id=uuid7_uuid(), record_id=record_id, created_at=now, updated_at=now, **t)
            for t in tracks
        ]
        session.add_all(rows)
        await session.flush()
        return rows

    async def update_track(
        self,
        session: AsyncSession,
        *,
        record_id: UUID,
        track_id: UUID,
        fields: dict[str, Any],
    ) -> Track | None:
        stmt = (
            sa.update(Track)
            .where(Track.id == track_id)
            .where(Track.record_id == record_id)
            .values(**fields, updated_at=_utcnow())
            .returning(Track)
        )
        res = await session.execute(stmt)
        await session.flush()
        return res.scalar_one_or_none()

    async def delete_track(
        self, session: AsyncSession, *, record_id: UUID, track_id: UUID
    ) -> int:
        stmt = (
            sa.delete(Track)
            .where(Track.id == track_id)
            .where(Track.record_id == record_id)
        )
        res = await session.execute(stmt)
        await session.flush()
        return int(res.rowcount or 0)

    async def clear_tracks(self, session: AsyncSession, *, record_id: UUID) -> None:
        await session.execute(sa.delete(Track).where(Track.record_id == record_id))
        await session.flush()
