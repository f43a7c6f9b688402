"""
Media items (photos and notes). Each belongs to exactly one album; the
album's cover is re-resolved whenever a photo enters or leaves it.
"""

import logging
from typing import Any, Dict, List

from albums import DISPLAY_ORDER, get_album, refresh_cover
from database import ALBUMS, MEDIA, create_document, find_by_id, now, save_document
from errors import NotFound, ValidationFailed
from schemas import MediaCreate, MediaUpdate

logger = logging.getLogger(__name__)


def get_media(db, media_id: str) -> Dict[str, Any]:
    item = find_by_id(db, MEDIA, media_id, "media id")
    if not item:
        raise NotFound("Media not found")
    return item


def list_media(db, album_id: str) -> List[Dict[str, Any]]:
    album = get_album(db, album_id)
    return list(db[MEDIA].find({"albumId": str(album["_id"])}).sort(DISPLAY_ORDER))


def _release_cover(db, album_id: str, media_id: str) -> None:
    album = find_by_id(db, ALBUMS, album_id, "album id")
    if album and album.get("coverImageId") == media_id:
        album["coverImageId"] = None
        refresh_cover(db, save_document(db, ALBUMS, album))


def create_media(db, album_id: str, payload: MediaCreate) -> Dict[str, Any]:
    album = get_album(db, album_id)
    data = payload.model_dump()
    data["albumId"] = str(album["_id"])
    data["dateCreated"] = now()
    media_id = create_document(db, MEDIA, data)
    if payload.type == "photo":
        refresh_cover(db, album)
    return get_media(db, media_id)


def update_media(db, media_id: str, payload: MediaUpdate) -> Dict[str, Any]:
    item = get_media(db, media_id)
    changes = payload.model_dump(exclude_unset=True)
    for field in ("type", "content"):
        if field in changes and not changes[field]:
            raise ValidationFailed(f"{field} cannot be empty")
    for field in ("metadata", "sortOrder"):
        if field in changes and changes[field] is None:
            raise ValidationFailed(f"{field} cannot be null")

    was_photo = item["type"] == "photo"
    item.update(changes)
    item = save_document(db, MEDIA, item)

    if was_photo and item["type"] != "photo":
        _release_cover(db, item["albumId"], str(item["_id"]))
    elif not was_photo and item["type"] == "photo":
        album = find_by_id(db, ALBUMS, item["albumId"], "album id")
        if album:
            refresh_cover(db, album)
    return item


def delete_media(db, media_id: str, storage=None) -> None:
    item = get_media(db, media_id)
    if storage is not None and item["type"] == "photo":
        storage.delete(item["content"])
    db[MEDIA].delete_one({"_id": item["_id"]})
    _release_cover(db, item["albumId"], str(item["_id"]))
    logger.info("Deleted media %s from album %s", item["_id"], item["albumId"])


def move_media(db, media_id: str, target_album_id: str) -> Dict[str, Any]:
    """Move an item to another album, fixing the cover of both albums."""
    item = get_media(db, media_id)
    target = get_album(db, target_album_id)
    source_id, target_id = item["albumId"], str(target["_id"])
    if source_id == target_id:
        return item

    item["albumId"] = target_id
    item = save_document(db, MEDIA, item)
    _release_cover(db, source_id, str(item["_id"]))
    if item["type"] == "photo":
        refresh_cover(db, target)
    logger.info("Moved media %s from album %s to %s", item["_id"], source_id, target_id)
    return item
