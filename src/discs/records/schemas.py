from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field  # type: ignore[import-not-found]

from discs.genres.schemas import GenrePublic
from discs.labels.schemas import LabelPublic
from discs.records.models import Track
from discs.records.service import ArtistCredit, RecordData, RecordDetail, TrackData


class TrackPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    duration: str | None = None
    position: str | None = None
    record_id: UUID
    created_at: datetime
    updated_at: datetime


class TrackWrite(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    duration: str | None = Field(default=None, max_length=32)
    position: str | None = Field(default=None, max_length=10)

    def to_data(self) -> TrackData:
        return TrackData(title=self.title, duration=self.duration, position=self.position)


class RecordArtistPublic(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    role: str | None = None


class RecordArtistRef(BaseModel):
    id: UUID
    role: str | None = Field(default=None, max_length=100)


class RecordPublic(BaseModel):
    id: UUID
    title: str
    release_year: int | None = None
    catalog_number: str | None = None
    condition: str | None = None
    notes: str | None = None
    cover_image_url: str | None = None
    storage_location: str | None = None
    user_id: UUID
    label_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    artists: list[RecordArtistPublic] = Field(default_factory=list)
    genres: list[GenrePublic] = Field(default_factory=list)
    label: LabelPublic | None = None
    # Omitted (null) on list and search results.
    tracks: list[TrackPublic] | None = None


class RecordWrite(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    release_year: int | None = Field(default=None, ge=0, le=9999)
    catalog_number: str | None = Field(default=None, max_length=100)
    condition: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    cover_image_url: str | None = None
    storage_location: str | None = Field(default=None, max_length=255)
    label_id: UUID | None = None
    artists: list[RecordArtistRef] = Field(default_factory=list)
    genre_ids: list[UUID] = Field(default_factory=list)
    tracks: list[TrackWrite] = Field(default_factory=list)

    def to_data(self) -> RecordData:
        return RecordData(
            title=self.title,
            release_year=self.release_year,
            catalog_number=self.catalog_number,
            condition=self.condition,
            notes=self.notes,
            cover_image_url=self.cover_image_url,
            storage_location=self.storage_location,
            label_id=self.label_id,
            artists=[ArtistCredit(artist_id=a.id, role=a.role) for a in self.artists],
            genre_ids=list(self.genre_ids),
            tracks=[t.to_data() for t in self.tracks],
        )


class ListRecordsResponse(BaseModel):
    items: list[RecordPublic]


class ListTracksResponse(BaseModel):
    items: list[TrackPublic]


def track_public(row: Track) -> TrackPublic:
    return TrackPublic.model_validate(row)


def record_public(detail: RecordDetail) -> RecordPublic:
    r = detail.record
    return RecordPublic(
        id=r.id,
        title=r.title,
        release_year=r.release_year,
        catalog_number=r.catalog_number,
        condition=r.condition,
        notes=r.notes,
        cover_image_url=r.cover_image_url,
        storage_location=r.storage_location,
        user_id=r.user_id,
        label_id=r.label_id,
        created_at=r.created_at,
        updated_at=r.updated_at,
        artists=[
            RecordArtistPublic(
                id=c.artist.id,
                name=c.artist.name,
                description=c.artist.description,
                role=c.role,
            )
            for c in detail.artists
        ],
        genres=[GenrePublic.model_validate(g) for g in detail.genres],
        label=LabelPublic.model_validate(detail.label) if detail.label is not None else None,
        tracks=(
            [track_public(t) for t in detail.tracks] if detail.tracks is not None else None
        ),
    )
