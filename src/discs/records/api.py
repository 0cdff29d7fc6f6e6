from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response  # type: ignore[import-not-found]
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]
from starlette import status  # type: ignore[import-not-found]

from discs.auth.depends import current_caller_required
from discs.commons.caller import AuthenticatedCaller
from discs.commons.catalog_api import path_id
from discs.commons.depends import database_session
from discs.records.schemas import (
    ListRecordsResponse,
    ListTracksResponse,
    RecordPublic,
    RecordWrite,
    TrackPublic,
    TrackWrite,
    record_public,
    track_public,
)
from discs.records.service import RecordsService, TracksService

router = APIRouter(prefix="/records", tags=["records"])


@lru_cache
def get_records_service() -> RecordsService:
    return RecordsService.build()


@lru_cache
def get_tracks_service() -> TracksService:
    return TracksService.build()


@router.get("", response_model=ListRecordsResponse)
async def list_records(
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[RecordsService, Depends(get_records_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> ListRecordsResponse:
    items = await svc.list_by_user(session, caller=caller)
    return ListRecordsResponse(items=[record_public(d) for d in items])


@router.post("", response_model=RecordPublic, status_code=status.HTTP_201_CREATED)
async def create_record(
    req: RecordWrite,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[RecordsService, Depends(get_records_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> RecordPublic:
    detail = await svc.create(session, caller=caller, data=req.to_data())
    return record_public(detail)


@router.get("/search", response_model=ListRecordsResponse)
async def search_records(
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[RecordsService, Depends(get_records_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
    q: str = Query(default="", max_length=255),
    artist: str = Query(default="", max_length=255),
    genre: str = Query(default="", max_length=255),
    label: str = Query(default="", max_length=255),
    location: str = Query(default="", max_length=255),
) -> ListRecordsResponse:
    items = await svc.search(
        session,
        caller=caller,
        query=q,
        artist=artist,
        genre=genre,
        label=label,
        location=location,
    )
    return ListRecordsResponse(items=[record_public(d) for d in items])


@router.get("/{record_id}", response_model=RecordPublic)
async def get_record(
    record_id: str,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[RecordsService, Depends(get_records_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> RecordPublic:
    detail = await svc.get(session, caller=caller, record_id=path_id(record_id, "Record"))
    return record_public(detail)


@router.put("/{record_id}", response_model=RecordPublic)
async def update_record(
    record_id: str,
    req: RecordWrite,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[RecordsService, Depends(get_records_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> RecordPublic:
    detail = await svc.update(
        session,
        caller=caller,
        record_id=path_id(record_id, "Record"),
        data=req.to_data(),
    )
    return record_public(detail)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: str,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[RecordsService, Depends(get_records_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> Response:
    await svc.delete(session, caller=caller, record_id=path_id(record_id, "Record"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{record_id}/tracks", response_model=ListTracksResponse)
async def list_tracks(
    record_id: str,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[TracksService, Depends(get_tracks_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> ListTracksResponse:
    rows = await svc.list_for_record(
        session, caller=caller, record_id=path_id(record_id, "Record")
    )
    return ListTracksResponse(items=[track_public(t) for t in rows])


@router.post(
    "/{record_id}/tracks", response_model=TrackPublic, status_code=status.HTTP_201_CREATED
)
async def create_track(
    record_id: str,
    req: TrackWrite,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[TracksService, Depends(get_tracks_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> TrackPublic:
    row = await svc.create(
        session,
        caller=caller,
        record_id=path_id(record_id, "Record"),
        data=req.to_data(),
    )
    return track_public(row)


@router.get("/{record_id}/tracks/{track_id}", response_model=TrackPublic)
async def get_track(
    record_id: str,
    track_id: str,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[TracksService, Depends(get_tracks_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> TrackPublic:
    row = await svc.get(
        session,
        caller=caller,
        record_id=path_id(record_id, "Record"),
        track_id=path_id(track_id, "Track"),
    )
    return track_public(row)


@router.put("/{record_id}/tracks/{track_id}", response_model=TrackPublic)
async def update_track(
    record_id: str,
    track_id: str,
    req: TrackWrite,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[TracksService, Depends(get_tracks_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> TrackPublic:
    row = await svc.update(
        session,
        caller=caller,
        record_id=path_id(record_id, "Record"),
        track_id=path_id(track_id, "Track"),
        data=req.to_data(),
    )
    return track_public(row)


@router.delete("/{record_id}/tracks/{track_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_track(
    record_id: str,
    track_id: str,
    session: Annotated[AsyncSession, Depends(database_session)],
    svc: Annotated[TracksService, Depends(get_tracks_service)],
    caller: Annotated[AuthenticatedCaller, Depends(current_caller_required)],
) -> Response:
    await svc.delete(
        session,
        caller=caller,
        record_id=path_id(record_id, "Record"),
        track_id=path_id(track_id, "Track"),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
