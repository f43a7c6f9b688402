"""
Media items and the album cover image they drive.
"""
import os

import pytest

from albums import create_album, get_album, serialize_album
from errors import NotFound, ValidationFailed
from media import create_media, delete_media, get_media, list_media, move_media, update_media
from schemas import AlbumCreate, MediaCreate, MediaUpdate


@pytest.fixture
def album(db, trip, stay_id):
    return create_album(db, AlbumCreate(
        name="Hotel", tripId=str(trip["_id"]), relatedItem={"type": "stay", "itemId": stay_id}))


@pytest.fixture
def other_album(db, trip, segment_id):
    return create_album(db, AlbumCreate(
        name="Flight", tripId=str(trip["_id"]), relatedItem={"type": "segment", "itemId": segment_id}))


def _add(db, album, media_type, content, **extra):
    return create_media(db, str(album["_id"]), MediaCreate(type=media_type, content=content, **extra))


def _cover(db, album):
    return get_album(db, str(album["_id"])).get("coverImageId")


def test_cover_falls_back_through_photos(db, album):
    _add(db, album, "note", "Checked in at 3pm")
    photo1 = _add(db, album, "photo", "/uploads/photo-1.jpg")
    photo2 = _add(db, album, "photo", "/uploads/photo-2.jpg")

    assert _cover(db, album) == str(photo1["_id"])

    delete_media(db, str(photo1["_id"]))
    assert _cover(db, album) == str(photo2["_id"])

    delete_media(db, str(photo2["_id"]))
    assert _cover(db, album) is None


def test_serialized_cover_uses_note_when_no_photos(db, album):
    note = _add(db, album, "note", "No pictures allowed")
    data = serialize_album(db, get_album(db, str(album["_id"])))
    assert data["coverImageId"] is None
    assert data["coverImage"]["id"] == str(note["_id"])


def test_first_photo_sets_cover_only_once(db, album):
    first = _add(db, album, "photo", "/uploads/a.jpg")
    _add(db, album, "photo", "/uploads/b.jpg")
    assert _cover(db, album) == str(first["_id"])


def test_deleting_non_cover_keeps_cover(db, album):
    first = _add(db, album, "photo", "/uploads/a.jpg")
    second = _add(db, album, "photo", "/uploads/b.jpg")
    delete_media(db, str(second["_id"]))
    assert _cover(db, album) == str(first["_id"])


def test_list_media_order(db, album):
    late = _add(db, album, "note", "third", sortOrder=2)
    a = _add(db, album, "note", "tie older", sortOrder=1)
    b = _add(db, album, "note", "tie newer", sortOrder=1)
    first = _add(db, album, "photo", "/uploads/x.jpg", sortOrder=0)

    ids = [m["_id"] for m in list_media(db, str(album["_id"]))]
    assert ids == [first["_id"], b["_id"], a["_id"], late["_id"]]


def test_list_media_missing_album(db):
    with pytest.raises(NotFound):
        list_media(db, "64b7f0c2a1b2c3d4e5f60718")


def test_create_media_keeps_metadata(db, album):
    item = _add(db, album, "photo", "/uploads/a.jpg", caption="Lobby", metadata={"camera": "X100V"})
    saved = get_media(db, str(item["_id"]))
    assert saved["albumId"] == str(album["_id"])
    assert saved["metadata"] == {"camera": "X100V"}
    assert saved["caption"] == "Lobby"
    assert saved["sortOrder"] == 0
    assert saved["dateCreated"]


def test_move_updates_both_covers(db, album, other_album):
    photo1 = _add(db, album, "photo", "/uploads/a.jpg")
    photo2 = _add(db, album, "photo", "/uploads/b.jpg")

    moved = move_media(db, str(photo1["_id"]), str(other_album["_id"]))

    assert moved["albumId"] == str(other_album["_id"])
    assert _cover(db, album) == str(photo2["_id"])
    assert _cover(db, other_album) == str(photo1["_id"])


def test_move_last_photo_clears_source_cover(db, album, other_album):
    photo = _add(db, album, "photo", "/uploads/a.jpg")
    existing = _add(db, other_album, "photo", "/uploads/b.jpg")

    move_media(db, str(photo["_id"]), str(other_album["_id"]))

    assert _cover(db, album) is None
    assert _cover(db, other_album) == str(existing["_id"])


def test_move_to_same_album_is_noop(db, album):
    photo = _add(db, album, "photo", "/uploads/a.jpg")
    moved = move_media(db, str(photo["_id"]), str(album["_id"]))
    assert moved["albumId"] == str(album["_id"])
    assert _cover(db, album) == str(photo["_id"])


def test_move_to_missing_album(db, album):
    photo = _add(db, album, "photo", "/uploads/a.jpg")
    with pytest.raises(NotFound, match="Album not found"):
        move_media(db, str(photo["_id"]), "64b7f0c2a1b2c3d4e5f60718")
    assert get_media(db, str(photo["_id"]))["albumId"] == str(album["_id"])


def test_update_photo_to_note_releases_cover(db, album):
    photo = _add(db, album, "photo", "/uploads/a.jpg")
    update_media(db, str(photo["_id"]), MediaUpdate(type="note", content="now a note"))
    assert _cover(db, album) is None


def test_update_note_to_photo_claims_cover(db, album):
    note = _add(db, album, "note", "soon a photo")
    update_media(db, str(note["_id"]), MediaUpdate(type="photo", content="/uploads/c.jpg"))
    assert _cover(db, album) == str(note["_id"])


def test_update_rejects_empty_content(db, album):
    note = _add(db, album, "note", "text")
    with pytest.raises(ValidationFailed):
        update_media(db, str(note["_id"]), MediaUpdate(content=""))


@pytest.mark.parametrize("field", ["metadata", "sortOrder"])
def test_update_rejects_null_fields(db, album, field):
    note = _add(db, album, "note", "text", metadata={"mood": "calm"}, sortOrder=2)
    with pytest.raises(ValidationFailed, match=f"{field} cannot be null"):
        update_media(db, str(note["_id"]), MediaUpdate(**{field: None}))
    stored = get_media(db, str(note["_id"]))
    assert stored["metadata"] == {"mood": "calm"}
    assert stored["sortOrder"] == 2


def test_update_caption_and_order(db, album):
    note = _add(db, album, "note", "text")
    updated = update_media(db, str(note["_id"]), MediaUpdate(caption="Dinner", sortOrder=5))
    assert updated["caption"] == "Dinner"
    assert updated["sortOrder"] == 5
    assert updated["content"] == "text"


def test_delete_photo_removes_stored_file(db, album, storage):
    url = storage.store(b"\xff\xd8\xff", "pool.jpg", "image/jpeg")
    photo = _add(db, album, "photo", url)

    delete_media(db, str(photo["_id"]), storage)

    assert not os.path.exists(storage.path_for(url))
    with pytest.raises(NotFound):
        get_media(db, str(photo["_id"]))
