from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

import pytest  # type: ignore[import-not-found]
from fastapi import FastAPI  # type: ignore[import-not-found]
from fastapi.testclient import TestClient  # type: ignore[import-not-found]

from discs.artists.models import Artist
from discs.auth.depends import current_caller_required
from discs.commons.caller import AuthenticatedCaller
from discs.commons.depends import database_session
from discs.records import api as records_api
from discs.records.exceptions import (
    RecordNotFoundException,
    RecordUnauthorizedException,
    RecordValidationException,
)
from discs.records.models import Record, Track
from discs.records.repository import CreditedArtist
from discs.records.service import RecordDetail

USER_ID = UUID("11111111-1111-1111-1111-111111111111")
RECORD_ID = UUID("22222222-2222-2222-2222-222222222222")
ARTIST_ID = UUID("33333333-3333-3333-3333-333333333333")
NOW = datetime.now(UTC)


def _detail(*, with_tracks: bool = True) -> RecordDetail:
    record = Record(
        id=RECORD_ID,
        title="Kind of Blue",
        release_year=1959,
        user_id=USER_ID,
        created_at=NOW,
        updated_at=NOW,
    )
    artist = Artist(
        id=ARTIST_ID, name="Miles Davis", user_id=USER_ID, created_at=NOW, updated_at=NOW
    )
    tracks = [
        Track(
            id=UUID("44444444-4444-4444-4444-444444444444"),
            title="So What",
            position="A1",
            record_id=RECORD_ID,
            created_at=NOW,
            updated_at=NOW,
        )
    ]
    return RecordDetail(
        record=record,
        artists=[CreditedArtist(artist=artist, role="Primary Artist")],
        tracks=tracks if with_tracks else None,
    )


class FakeRecordsService:
    def __init__(self) -> None:
        self.created = None
        self.search_args: dict | None = None

    async def list_by_user(self, session, *, caller):  # type: ignore[no-untyped-def]
        assert caller.user_id == USER_ID
        return [_detail(with_tracks=False)]

    async def get(self, session, *, caller, record_id):  # type: ignore[no-untyped-def]
        if record_id == RECORD_ID:
            return _detail()
        if record_id == UUID(int=1):
            raise RecordUnauthorizedException("Unauthorized")
        raise RecordNotFoundException("Record not found")

    async def create(self, session, *, caller, data):  # type: ignore[no-untyped-def]
        if data.label_id is not None:
            raise RecordValidationException("Label not found", str(data.label_id))
        self.created = data
        return _detail()

    async def search(self, session, *, caller, **kwargs):  # type: ignore[no-untyped-def]
        self.search_args = kwargs
        return [_detail(with_tracks=False)]

    async def delete(self, session, *, caller, record_id):  # type: ignore[no-untyped-def]
        return None


@pytest.fixture()
def fake_svc() -> FakeRecordsService:
    return FakeRecordsService()


@pytest.fixture()
def records_client(app: FastAPI, fake_svc: FakeRecordsService) -> TestClient:
    async def fake_db_session():  # type: ignore[no-untyped-def]
        yield None

    caller = AuthenticatedCaller(
        user_id=USER_ID, session_id=UUID(int=9), email="u@example.com", name="U"
    )
    app.dependency_overrides[database_session] = fake_db_session
    app.dependency_overrides[current_caller_required] = lambda: caller
    app.dependency_overrides[records_api.get_records_service] = lambda: fake_svc
    return TestClient(app)


def test_records_require_authentication(client: TestClient) -> None:
    async def fake_db_session():  # type: ignore[no-untyped-def]
        yield None

    client.app.dependency_overrides[database_session] = fake_db_session
    assert client.get("/records").status_code == 401


def test_list_records_omits_tracks(records_client: TestClient) -> None:
    r = records_client.get("/records")
    assert r.status_code == 200
    item = r.json()["items"][0]
    assert item["id"] == str(RECORD_ID)
    assert item["tracks"] is None
    assert item["artists"] == [
        {
            "id": str(ARTIST_ID),
            "name": "Miles Davis",
            "description": None,
            "role": "Primary Artist",
        }
    ]


def test_get_record(records_client: TestClient) -> None:
    r = records_client.get(f"/records/{RECORD_ID}")
    assert r.status_code == 200
    data = r.json()
    assert data["title"] == "Kind of Blue"
    assert data["label"] is None
    assert [t["position"] for t in data["tracks"]] == ["A1"]


def test_get_record_errors(records_client: TestClient) -> None:
    assert records_client.get("/records/not-a-uuid").status_code == 404
    assert records_client.get(f"/records/{UUID(int=2)}").status_code == 404
    assert records_client.get(f"/records/{UUID(int=1)}").status_code == 401


def test_create_record_maps_body(records_client: TestClient, fake_svc: FakeRecordsService) -> None:
    r = records_client.post(
        "/records",
        json={
            "title": "Kind of Blue",
            "release_year": 1959,
            "artists": [{"id": str(ARTIST_ID), "role": "Primary Artist"}],
            "tracks": [{"title": "So What", "position": "A1"}],
        },
    )
    assert r.status_code == 201
    assert fake_svc.created is not None
    assert fake_svc.created.artists[0].artist_id == ARTIST_ID
    assert fake_svc.created.artists[0].role == "Primary Artist"
    assert fake_svc.created.tracks[0].title == "So What"


def test_create_record_with_bad_reference_is_422(records_client: TestClient) -> None:
    r = records_client.post(
        "/records", json={"title": "X", "label_id": str(UUID(int=5))}
    )
    assert r.status_code == 422
    assert r.json()["exception"]["message"] == "Label not found"


def test_create_record_requires_title(records_client: TestClient) -> None:
    assert records_client.post("/records", json={"notes": "no title"}).status_code == 422


def test_search_is_not_mistaken_for_an_id(
    records_client: TestClient, fake_svc: FakeRecordsService
) -> None:
    r = records_client.get("/records/search", params={"artist": "miles", "location": "A"})
    assert r.status_code == 200
    assert fake_svc.search_args == {
        "query": "",
        "artist": "miles",
        "genre": "",
        "label": "",
        "location": "A",
    }


def test_delete_record(records_client: TestClient) -> None:
    r = records_client.delete(f"/records/{RECORD_ID}")
    assert r.status_code == 204
