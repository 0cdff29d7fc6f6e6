from __future__ import annotations

import datetime as dt
from uuid import UUID

import sqlalchemy as sa  # type: ignore[import-not-found]
from sqlalchemy.orm import Mapped, mapped_column  # type: ignore[import-not-found]

from discs.auth.models import Base


class Record(Base):
    __tablename__ = "records"
    __table_args__ = (
        sa.Index("records_user_id_idx", "user_id"),
        sa.Index("records_label_id_idx", "label_id"),
    )

    id: Mapped[UUID] = mapped_column(sa.Uuid(), primary_key=True)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    release_year: Mapped[int | None] = mapped_column(sa.Integer(), nullable=True)
    catalog_number: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    condition: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    storage_location: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    user_id: Mapped[UUID] = mapped_column(
        sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    label_id: Mapped[UUID | None] = mapped_column(
        sa.Uuid(), sa.ForeignKey("labels.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


class Track(Base):
    __tablename__ = "tracks"
    __table_args__ = (sa.Index("tracks_record_id_idx", "record_id"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid(), primary_key=True)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    # Free-form, e.g. "5:37".
    duration: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    # Side/number label, e.g. "A1"; sorted as plain text.
    position: Mapped[str | None] = mapped_column(sa.String(10), nullable=True)
    record_id: Mapped[UUID] = mapped_column(
        sa.Uuid(), sa.ForeignKey("records.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


class ArtistRecord(Base):
    __tablename__ = "artist_record"

    artist_id: Mapped[UUID] = mapped_column(
        sa.Uuid(), sa.ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True
    )
    record_id: Mapped[UUID] = mapped_column(
        sa.Uuid(), sa.ForeignKey("records.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)


class GenreRecord(Base):
    __tablename__ = "genre_record"

    genre_id: Mapped[UUID] = mapped_column(
        sa.Uuid(), sa.ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True
    )
    record_id: Mapped[UUID] = mapped_column(
        sa.Uuid(), sa.ForeignKey("records.id", ondelete="CASCADE"), primary_key=True
    )
