"""
Albums and the references that tie them to trips and media.

An album hangs off a trip, or off one of the trip's segments or stays. For
each such item at most one album is flagged ``isDefault`` and the item keeps
that album's id in ``defaultAlbumId``. An album's ``coverImageId`` always
names a photo of its own, or is None when it has no photos.

Writes spanning several documents are issued one after another (album
first, then trip) with no transaction around them.

When several albums or photos qualify, the earliest created one wins.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from database import ALBUMS, MEDIA, TRIPS, create_document, find_by_id, now, save_document, serialize_doc
from errors import Conflict, NotFound, ValidationFailed
from schemas import AlbumCreate, AlbumUpdate
from trips import ITEM_COLLECTIONS, find_item, get_trip, item_label, save_trip

logger = logging.getLogger(__name__)

ITEM_TYPES = ("trip",) + tuple(ITEM_COLLECTIONS)

EARLIEST_FIRST = [("createdAt", ASCENDING), ("_id", ASCENDING)]
DISPLAY_ORDER = [("sortOrder", ASCENDING), ("dateCreated", DESCENDING), ("_id", DESCENDING)]


def _first(db, collection: str, query: Dict[str, Any], sort) -> Optional[Dict[str, Any]]:
    return next(iter(db[collection].find(query).sort(sort).limit(1)), None)


def check_item_type(item_type: str) -> str:
    if item_type not in ITEM_TYPES:
        raise ValidationFailed('Invalid item type. Must be "trip", "segment" or "stay"')
    return item_type


def item_query(trip_id: str, item_type: str, item_id: Optional[str]) -> Dict[str, Any]:
    query = {"tripId": str(trip_id), "relatedItem.type": item_type}
    if item_type != "trip":
        query["relatedItem.itemId"] = str(item_id)
    return query


def _relation(album: Dict[str, Any]):
    related = album.get("relatedItem") or {}
    return related.get("type"), related.get("itemId")


# ---- Lookups ----

def get_album(db, album_id: str) -> Dict[str, Any]:
    album = find_by_id(db, ALBUMS, album_id, "album id")
    if not album:
        raise NotFound("Album not found")
    return album


def list_albums(db, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    return list(db[ALBUMS].find(query or {}).sort(EARLIEST_FIRST))


def albums_for_item(db, trip_id: str, item_type: str, item_id: Optional[str]) -> List[Dict[str, Any]]:
    check_item_type(item_type)
    return list_albums(db, item_query(trip_id, item_type, item_id))


def current_default(db, trip_id: str, item_type: str, item_id: Optional[str]) -> Optional[Dict[str, Any]]:
    return _first(db, ALBUMS, dict(item_query(trip_id, item_type, item_id), isDefault=True), EARLIEST_FIRST)


# ---- Cover image ----

def _photo_in_album(db, album: Dict[str, Any], media_id: Any) -> Optional[Dict[str, Any]]:
    if not media_id or not ObjectId.is_valid(str(media_id)):
        return None
    return db[MEDIA].find_one({"_id": ObjectId(str(media_id)), "albumId": str(album["_id"]), "type": "photo"})


def resolve_cover(db, album: Dict[str, Any]) -> Optional[str]:
    """Id of the album's cover photo: the explicit one if still valid, else its first photo."""
    if _photo_in_album(db, album, album.get("coverImageId")):
        return str(album["coverImageId"])
    photo = _first(db, MEDIA, {"albumId": str(album["_id"]), "type": "photo"}, EARLIEST_FIRST)
    return str(photo["_id"]) if photo else None


def refresh_cover(db, album: Dict[str, Any]) -> Dict[str, Any]:
    cover_id = resolve_cover(db, album)
    if cover_id != album.get("coverImageId"):
        album["coverImageId"] = cover_id
        album = save_document(db, ALBUMS, album)
        logger.info("Album %s cover is now %s", album["_id"], cover_id)
    return album


def cover_image(db, album: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    cover = _photo_in_album(db, album, album.get("coverImageId"))
    if cover:
        return cover
    key = str(album["_id"])
    return (_first(db, MEDIA, {"albumId": key, "type": "photo"}, EARLIEST_FIRST)
            or _first(db, MEDIA, {"albumId": key}, DISPLAY_ORDER))


def serialize_album(db, album: Dict[str, Any]) -> Dict[str, Any]:
    data = serialize_doc(album)
    data["coverImage"] = serialize_doc(cover_image(db, album))
    return data


# ---- Default album ----

def _point_item_at(db, trip_id: str, item_type: str, item_id: Optional[str], album_id: Optional[str]) -> bool:
    """Write defaultAlbumId on the trip/segment/stay. False if it no longer exists."""
    trip = find_by_id(db, TRIPS, trip_id, "trip id")
    item = find_item(trip, item_type, item_id) if trip else None
    if item is None:
        logger.warning("Cannot point %s %s of trip %s at album %s: item is gone",
                       item_type, item_id, trip_id, album_id)
        return False
    item["defaultAlbumId"] = album_id
    save_trip(db, trip)
    return True


def _make_default(db, album: Dict[str, Any]) -> Dict[str, Any]:
    item_type, item_id = _relation(album)
    others = dict(item_query(album["tripId"], item_type, item_id), isDefault=True, _id={"$ne": album["_id"]})
    db[ALBUMS].update_many(others, {"$set": {"isDefault": False, "updatedAt": now()}})
    album["isDefault"] = True
    album = save_document(db, ALBUMS, album)
    _point_item_at(db, album["tripId"], item_type, item_id, str(album["_id"]))
    return album


def ensure_default_album(db, trip_id: str, item_type: str, item_id: Optional[str]) -> Dict[str, Any]:
    """
    Create the default album for a trip, segment or stay.

    Raises Conflict (carrying the existing album id) when the item already
    has one.
    """
    check_item_type(item_type)
    trip = get_trip(db, trip_id)
    item = find_item(trip, item_type, item_id)
    if item is None:
        raise NotFound(f"{item_type.capitalize()} not found")

    trip_key = str(trip["_id"])
    existing = current_default(db, trip_key, item_type, item_id)
    if existing:
        raise Conflict("Default album already exists for this item", album_id=str(existing["_id"]))

    related = {"type": item_type}
    if item_type != "trip":
        related["itemId"] = str(item_id)
    album_id = create_document(db, ALBUMS, {
        "name": f"{item_label(trip, item_type, item)} Album",
        "description": None,
        "tripId": trip_key,
        "relatedItem": related,
        "coverImageId": None,
        "isDefault": True,
    })
    item["defaultAlbumId"] = album_id
    save_trip(db, trip)
    logger.info("Created default album %s for %s %s", album_id, item_type, item_id or trip_key)
    return get_album(db, album_id)


def reassign_default_on_delete(db, album: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Hand the default flag of an album about to be deleted to a sibling album.

    The sole album of a segment or stay cannot be deleted (Conflict). A
    trip-level album, or one whose segment/stay has since been removed from
    the trip, just drops the pointer.
    """
    item_type, item_id = _relation(album)
    siblings = dict(item_query(album["tripId"], item_type, item_id), _id={"$ne": album["_id"]})
    successor = _first(db, ALBUMS, siblings, EARLIEST_FIRST)

    if successor is None:
        trip = find_by_id(db, TRIPS, album["tripId"], "trip id")
        item_exists = trip is not None and find_item(trip, item_type, item_id) is not None
        if item_type != "trip" and item_exists:
            raise Conflict(f"Cannot delete the only album for this {item_type}")
        if item_exists:
            _point_item_at(db, album["tripId"], item_type, item_id, None)
        return None

    successor["isDefault"] = True
    successor = save_document(db, ALBUMS, successor)
    _point_item_at(db, album["tripId"], item_type, item_id, str(successor["_id"]))
    logger.info("Album %s is now default for %s %s", successor["_id"], item_type, item_id or album["tripId"])
    return successor


# ---- CRUD ----

def create_album(db, payload: AlbumCreate) -> Dict[str, Any]:
    trip = get_trip(db, payload.tripId)
    related = payload.relatedItem.model_dump()
    item_type, item_id = related["type"], related.get("itemId")
    if find_item(trip, item_type, item_id) is None:
        raise NotFound(f"{item_type.capitalize()} not found")

    trip_key = str(trip["_id"])
    has_default = current_default(db, trip_key, item_type, item_id) is not None
    album_id = create_document(db, ALBUMS, {
        "name": payload.name,
        "description": payload.description,
        "tripId": trip_key,
        "relatedItem": related,
        "coverImageId": None,
        "isDefault": False,
    })
    album = get_album(db, album_id)
    # The first album of an item becomes its default
    if payload.isDefault or not has_default:
        album = _make_default(db, album)
    return album


def update_album(db, album_id: str, payload: AlbumUpdate) -> Dict[str, Any]:
    album = get_album(db, album_id)
    fields = payload.model_fields_set

    if "name" in fields and payload.name is not None:
        if not payload.name.strip():
            raise ValidationFailed("Album name cannot be empty")
        album["name"] = payload.name.strip()
    if "description" in fields:
        album["description"] = payload.description.strip() if payload.description else payload.description
    if "isDefault" in fields and payload.isDefault is False and album.get("isDefault"):
        raise ValidationFailed("Mark another album as default instead of unsetting this one")

    if "coverImageId" in fields:
        if payload.coverImageId is None:
            album["coverImageId"] = None
        elif _photo_in_album(db, album, payload.coverImageId):
            album["coverImageId"] = payload.coverImageId
        else:
            raise ValidationFailed("Cover image must be a photo in this album")

    album = save_document(db, ALBUMS, album)
    if album.get("coverImageId") is None:
        album = refresh_cover(db, album)
    if payload.isDefault and not album.get("isDefault"):
        album = _make_default(db, album)
    return album


def delete_album(db, album_id: str, storage=None) -> int:
    """
    Delete an album and every media item in it. Returns the number of
    media items removed.
    """
    album = get_album(db, album_id)
    if album.get("isDefault"):
        reassign_default_on_delete(db, album)

    key = str(album["_id"])
    if storage is not None:
        for item in db[MEDIA].find({"albumId": key, "type": "photo"}):
            storage.delete(item["content"])
    removed = db[MEDIA].delete_many({"albumId": key}).deleted_count
    db[ALBUMS].delete_one({"_id": album["_id"]})
    logger.info("Deleted album %s with %d media items", key, removed)
    return removed
