from __future__ import annotations

from uuid import UUID

import pytest  # type: ignore[import-not-found]
import sqlalchemy as sa  # type: ignore[import-not-found]
from sqlalchemy.exc import IntegrityError  # type: ignore[import-not-found]

from discs.artists.service import ArtistsService
from discs.genres.service import GenresService
from discs.labels.service import LabelsService
from discs.records.exceptions import (
    RecordNotFoundException,
    RecordUnauthorizedException,
    RecordValidationException,
)
from discs.records.models import ArtistRecord, GenreRecord, Record, Track
from discs.records.repository import RecordsRepository
from discs.records.service import ArtistCredit, RecordData, RecordsService, TrackData

pytestmark = pytest.mark.anyio


async def _count(session, model, **where) -> int:  # type: ignore[no-untyped-def]
    stmt = sa.select(sa.func.count()).select_from(model)
    for column, value in where.items():
        stmt = stmt.where(getattr(model, column) == value)
    res = await session.execute(stmt)
    return int(res.scalar_one())


async def _artist(session, caller, name: str) -> UUID:  # type: ignore[no-untyped-def]
    row = await ArtistsService.build().create(session, caller=caller, name=name, description=None)
    return row.id


async def _genre(session, caller, name: str) -> UUID:  # type: ignore[no-untyped-def]
    row = await GenresService.build().create(session, caller=caller, name=name, description=None)
    return row.id


async def _label(session, caller, name: str) -> UUID:  # type: ignore[no-untyped-def]
    row = await LabelsService.build().create(session, caller=caller, name=name, description=None)
    return row.id


async def test_create_then_get_returns_whole_aggregate(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    miles = await _artist(db_session, alice, "Miles Davis")
    coltrane = await _artist(db_session, alice, "John Coltrane")
    jazz = await _genre(db_session, alice, "Jazz")
    modal = await _genre(db_session, alice, "Modal")
    columbia = await _label(db_session, alice, "Columbia")

    created = await svc.create(
        db_session,
        caller=alice,
        data=RecordData(
            title="  Kind of Blue ",
            release_year=1959,
            catalog_number="CL 1355",
            condition="   ",
            storage_location="Shelf A",
            label_id=columbia,
            artists=[
                ArtistCredit(artist_id=miles, role="Primary Artist"),
                ArtistCredit(artist_id=coltrane, role="Saxophone"),
            ],
            genre_ids=[modal, jazz],
            tracks=[
                TrackData(title="So What", position="A1", duration="9:22"),
                TrackData(title="Freddie Freeloader", position="A2"),
                TrackData(title="Blue in Green", position="A3"),
            ],
        ),
    )
    record_id = created.record.id
    assert created.tracks is not None
    assert all(t.id is not None for t in created.tracks)

    detail = await svc.get(db_session, caller=alice, record_id=record_id)
    assert detail.record.title == "Kind of Blue"
    assert detail.record.condition is None
    assert detail.record.notes is None
    assert {(c.artist.id, c.role) for c in detail.artists} == {
        (miles, "Primary Artist"),
        (coltrane, "Saxophone"),
    }
    # Artists and genres come back ordered by name.
    assert [c.artist.name for c in detail.artists] == ["John Coltrane", "Miles Davis"]
    assert [g.name for g in detail.genres] == ["Jazz", "Modal"]
    assert detail.label is not None and detail.label.name == "Columbia"
    assert [t.position for t in detail.tracks or []] == ["A1", "A2", "A3"]


async def test_release_year_zero_is_stored_as_null(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    created = await svc.create(
        db_session, caller=alice, data=RecordData(title="Untitled", release_year=0)
    )
    detail = await svc.get(db_session, caller=alice, record_id=created.record.id)
    assert detail.record.release_year is None
    assert detail.label is None
    assert detail.artists == []
    assert detail.tracks == []


async def test_missing_reference_rolls_back_everything(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    miles = await _artist(db_session, alice, "Miles Davis")
    user_id = alice.user_id

    with pytest.raises(RecordValidationException):
        await svc.create(
            db_session,
            caller=alice,
            data=RecordData(
                title="Ghost",
                artists=[ArtistCredit(artist_id=miles, role="Primary Artist")],
                genre_ids=[UUID("00000000-0000-0000-0000-0000000000ff")],
                tracks=[TrackData(title="Nothing", position="A1")],
            ),
        )

    assert await _count(db_session, Record, user_id=user_id) == 0
    assert await _count(db_session, ArtistRecord) == 0
    assert await _count(db_session, GenreRecord) == 0
    assert await _count(db_session, Track) == 0


class _ConstraintFailingRepository(RecordsRepository):
    async def add_genres(self, session, *, record_id, genre_ids):  # type: ignore[no-untyped-def]
        raise IntegrityError(
            "INSERT INTO genre_records (genre_id, record_id) VALUES (?, ?)",
            (genre_ids, record_id),
            Exception("FOREIGN KEY constraint failed"),
        )


async def test_constraint_violation_hides_driver_detail(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    base = RecordsService.build()
    svc = RecordsService(
        repo=_ConstraintFailingRepository(),
        artists=base.artists,
        genres=base.genres,
        labels=base.labels,
        logger=base.logger,
    )
    user_id = alice.user_id

    with pytest.raises(RecordValidationException) as err:
        await svc.create(db_session, caller=alice, data=RecordData(title="Ghost"))

    assert err.value.message == "Invalid record references"
    assert err.value.details is None
    assert await _count(db_session, Record, user_id=user_id) == 0


async def test_reference_owned_by_another_user_is_rejected(db_session, alice, bob) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    bobs_label = await _label(db_session, bob, "Blue Note")

    with pytest.raises(RecordValidationException):
        await svc.create(
            db_session,
            caller=alice,
            data=RecordData(title="Somethin' Else", label_id=bobs_label),
        )
    assert await _count(db_session, Record) == 0


async def test_blank_title_is_rejected(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(RecordValidationException):
        await RecordsService.build().create(db_session, caller=alice, data=RecordData(title="  "))


async def test_update_replaces_artist_set(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    a1 = await _artist(db_session, alice, "Miles Davis")
    created = await svc.create(
        db_session,
        caller=alice,
        data=RecordData(
            title="Kind of Blue",
            artists=[ArtistCredit(artist_id=a1, role="Primary Artist")],
        ),
    )
    record_id = created.record.id

    detail = await svc.get(db_session, caller=alice, record_id=record_id)
    assert [(c.artist.id, c.role) for c in detail.artists] == [(a1, "Primary Artist")]

    await svc.update(
        db_session,
        caller=alice,
        record_id=record_id,
        data=RecordData(title="Kind of Blue", artists=[]),
    )

    detail = await svc.get(db_session, caller=alice, record_id=record_id)
    assert detail.artists == []
    assert await _count(db_session, ArtistRecord, record_id=record_id) == 0


async def test_update_keeps_tracks_unless_new_ones_are_given(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    created = await svc.create(
        db_session,
        caller=alice,
        data=RecordData(
            title="Blue Train",
            tracks=[TrackData(title="Blue Train", position="A1")],
        ),
    )
    record_id = created.record.id

    detail = await svc.update(
        db_session,
        caller=alice,
        record_id=record_id,
        data=RecordData(title="Blue Train (Mono)"),
    )
    assert detail.record.title == "Blue Train (Mono)"
    assert [t.title for t in detail.tracks or []] == ["Blue Train"]

    detail = await svc.update(
        db_session,
        caller=alice,
        record_id=record_id,
        data=RecordData(
            title="Blue Train (Mono)",
            tracks=[
                TrackData(title="Moment's Notice", position="A2"),
                TrackData(title="Locomotion", position="B1"),
            ],
        ),
    )
    assert [t.title for t in detail.tracks or []] == ["Moment's Notice", "Locomotion"]
    assert await _count(db_session, Track, record_id=record_id) == 2


async def test_update_by_another_user_leaves_row_untouched(db_session, alice, bob) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    created = await svc.create(db_session, caller=alice, data=RecordData(title="Mingus Ah Um"))
    record_id = created.record.id

    with pytest.raises(RecordUnauthorizedException):
        await svc.update(
            db_session, caller=bob, record_id=record_id, data=RecordData(title="Stolen")
        )

    detail = await svc.get(db_session, caller=alice, record_id=record_id)
    assert detail.record.title == "Mingus Ah Um"


async def test_get_unknown_record_is_not_found(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(RecordNotFoundException):
        await RecordsService.build().get(
            db_session, caller=alice, record_id=UUID("00000000-0000-0000-0000-000000000042")
        )


async def test_delete_cascades_to_tracks_and_associations(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    artist = await _artist(db_session, alice, "Thelonious Monk")
    genre = await _genre(db_session, alice, "Jazz")
    created = await svc.create(
        db_session,
        caller=alice,
        data=RecordData(
            title="Brilliant Corners",
            artists=[ArtistCredit(artist_id=artist)],
            genre_ids=[genre],
            tracks=[TrackData(title="Pannonica", position="A2")],
        ),
    )
    record_id = created.record.id

    await svc.delete(db_session, caller=alice, record_id=record_id)

    assert await _count(db_session, Record, id=record_id) == 0
    assert await _count(db_session, Track, record_id=record_id) == 0
    assert await _count(db_session, ArtistRecord, record_id=record_id) == 0
    assert await _count(db_session, GenreRecord, record_id=record_id) == 0
    with pytest.raises(RecordNotFoundException):
        await svc.get(db_session, caller=alice, record_id=record_id)


async def test_delete_by_another_user_is_refused(db_session, alice, bob) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    created = await svc.create(db_session, caller=alice, data=RecordData(title="Time Out"))
    record_id = created.record.id

    with pytest.raises(RecordUnauthorizedException):
        await svc.delete(db_session, caller=bob, record_id=record_id)
    assert await _count(db_session, Record, id=record_id) == 1


async def test_deleting_a_label_detaches_it_from_records(db_session, alice) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    label = await _label(db_session, alice, "Impulse!")
    created = await svc.create(
        db_session, caller=alice, data=RecordData(title="A Love Supreme", label_id=label)
    )
    record_id = created.record.id

    await LabelsService.build().delete(db_session, caller=alice, entity_id=label)

    detail = await svc.get(db_session, caller=alice, record_id=record_id)
    assert detail.label is None
    assert await _count(db_session, Record, id=record_id) == 1


async def test_list_hydrates_relations_but_not_tracks(db_session, alice, bob) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    artist = await _artist(db_session, alice, "Bill Evans")
    await svc.create(
        db_session,
        caller=alice,
        data=RecordData(
            title="Waltz for Debby",
            artists=[ArtistCredit(artist_id=artist, role="Piano")],
            tracks=[TrackData(title="My Foolish Heart", position="A1")],
        ),
    )
    await svc.create(db_session, caller=alice, data=RecordData(title="Portrait in Jazz"))
    await svc.create(db_session, caller=bob, data=RecordData(title="Not Alice's"))

    items = await svc.list_by_user(db_session, caller=alice)
    assert [d.record.title for d in items] == ["Portrait in Jazz", "Waltz for Debby"]
    assert all(d.tracks is None for d in items)
    assert [c.role for c in items[1].artists] == ["Piano"]


async def test_search_by_each_dimension(db_session, alice, bob) -> None:  # type: ignore[no-untyped-def]
    svc = RecordsService.build()
    searchable_artist = await _artist(db_session, alice, "SEARCHABLE Artist")
    other_artist = await _artist(db_session, alice, "Other Artist")
    jazz = await _genre(db_session, alice, "Jazz")
    bebop = await _genre(db_session, alice, "Bebop")
    searchable_label = await _label(db_session, alice, "SEARCHABLE Records")

    r1 = await svc.create(
        db_session,
        caller=alice,
        data=RecordData(
            title="SEARCHABLE X",
            artists=[ArtistCredit(artist_id=other_artist)],
            genre_ids=[jazz, bebop],
        ),
    )
    r2 = await svc.create(
        db_session,
        caller=alice,
        data=RecordData(
            title="Second",
            artists=[
                ArtistCredit(artist_id=searchable_artist),
                ArtistCredit(artist_id=other_artist),
            ],
            genre_ids=[jazz, bebop],
        ),
    )
    r3 = await svc.create(
        db_session,
        caller=alice,
        data=RecordData(
            title="Third",
            artists=[ArtistCredit(artist_id=searchable_artist)],
            label_id=searchable_label,
            storage_location="Shelf B",
        ),
    )
    await svc.create(db_session, caller=bob, data=RecordData(title="SEARCHABLE but Bob's"))
    r1_id, r2_id, r3_id = r1.record.id, r2.record.id, r3.record.id

    async def ids(**kwargs) -> list[UUID]:  # type: ignore[no-untyped-def]
        found = await svc.search(db_session, caller=alice, **kwargs)
        return [d.record.id for d in found]

    assert await ids(query="searchable") == [r1_id]
    assert sorted(await ids(artist="searchable")) == sorted([r2_id, r3_id])
    assert await ids(label="searchable") == [r3_id]
    assert await ids(location="shelf b") == [r3_id]
    assert sorted(await ids(genre="BEBOP")) == sorted([r1_id, r2_id])
    assert await ids(artist="searchable", label="searchable") == [r3_id]

    everything = await ids(query="", artist="  ", genre=None, label="", location="")
    assert len(everything) == 3
    assert set(everything) == {r1_id, r2_id, r3_id}

    found = await svc.search(db_session, caller=alice, artist="searchable")
    assert all(d.tracks is None for d in found)
