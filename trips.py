"""
Trip documents: embedded segments/stays and the derived date range.

Every save recomputes startDate, endDate and dateRange from the segment
dates and stay start/end dates.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from database import ALBUMS, MEDIA, TRIPS, create_document, find_by_id, get_documents, new_id, save_document
from errors import NotFound, ValidationFailed
from schemas import TripCreate, TripUpdate

logger = logging.getLogger(__name__)

ITEM_COLLECTIONS = {"segment": "segments", "stay": "stays"}


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value[:10]).date()
    return None


def format_date_range(start: date, end: date) -> str:
    return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"


def derive_date_range(trip: Dict[str, Any]) -> Dict[str, Any]:
    """Set startDate/endDate/dateRange on a trip document, or drop them if it has no dates."""
    dates: List[date] = []
    for segment in trip.get("segments") or []:
        dates.append(_as_date(segment.get("date")))
    for stay in trip.get("stays") or []:
        dates.append(_as_date(stay.get("dateStart")))
        dates.append(_as_date(stay.get("dateEnd")))
    dates = [d for d in dates if d is not None]

    if not dates:
        for key in ("startDate", "endDate", "dateRange"):
            trip.pop(key, None)
        return trip

    start, end = min(dates), max(dates)
    trip["startDate"] = start
    trip["endDate"] = end
    trip["dateRange"] = format_date_range(start, end)
    return trip


def _embed(items: List[Any], existing: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    # Items re-sent without defaultAlbumId keep the pointer they already had
    previous = {str(e.get("_id")): e for e in existing or []}
    docs = []
    seen = set()
    for item in items:
        data = item.model_dump(exclude={"id"})
        data["_id"] = item.id or new_id()
        if data["_id"] in seen:
            raise ValidationFailed(f"Duplicate item id: {data['_id']}")
        seen.add(data["_id"])
        if data.get("defaultAlbumId") is None and data["_id"] in previous:
            data["defaultAlbumId"] = previous[data["_id"]].get("defaultAlbumId")
        docs.append(data)
    return docs


def find_item(trip: Dict[str, Any], item_type: str, item_id: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the trip itself, or the embedded segment/stay with the given id."""
    if item_type == "trip":
        return trip
    for item in trip.get(ITEM_COLLECTIONS[item_type]) or []:
        if str(item.get("_id")) == str(item_id):
            return item
    return None


def item_label(trip: Dict[str, Any], item_type: str, item: Dict[str, Any]) -> str:
    if item_type == "segment":
        return f"{item['origin']['name']} to {item['destination']['name']}"
    if item_type == "stay":
        return item["location"]
    return trip["tripName"]


def get_trip(db, trip_id: str) -> Dict[str, Any]:
    trip = find_by_id(db, TRIPS, trip_id, "trip id")
    if not trip:
        raise NotFound("Trip not found")
    return trip


def list_trips(db) -> List[Dict[str, Any]]:
    return get_documents(db, TRIPS)


def save_trip(db, trip: Dict[str, Any]) -> Dict[str, Any]:
    return save_document(db, TRIPS, derive_date_range(trip))


def create_trip(db, payload: TripCreate) -> Dict[str, Any]:
    doc = {
        "tripName": payload.tripName,
        "segments": _embed(payload.segments),
        "stays": _embed(payload.stays),
        "description": payload.description,
        "coverImage": payload.coverImage,
        "defaultAlbumId": None,
    }
    trip_id = create_document(db, TRIPS, derive_date_range(doc))
    logger.info("Created trip %s (%s)", trip_id, payload.tripName)
    return get_trip(db, trip_id)


def update_trip(db, trip_id: str, payload: TripUpdate) -> Dict[str, Any]:
    trip = get_trip(db, trip_id)
    trip["tripName"] = payload.tripName or trip["tripName"]
    if payload.segments is not None:
        trip["segments"] = _embed(payload.segments, trip.get("segments"))
    if payload.stays is not None:
        trip["stays"] = _embed(payload.stays, trip.get("stays"))
    fields = payload.model_fields_set
    if "description" in fields:
        trip["description"] = payload.description
    if "coverImage" in fields:
        trip["coverImage"] = payload.coverImage
    return save_trip(db, trip)


def delete_trip(db, trip_id: str, storage=None) -> None:
    """Delete a trip with its albums and their media items."""
    trip = get_trip(db, trip_id)
    key = str(trip["_id"])
    album_ids = [str(a["_id"]) for a in db[ALBUMS].find({"tripId": key}, {"_id": 1})]
    if album_ids:
        if storage is not None:
            for item in db[MEDIA].find({"albumId": {"$in": album_ids}, "type": "photo"}):
                storage.delete(item["content"])
        removed = db[MEDIA].delete_many({"albumId": {"$in": album_ids}}).deleted_count
        db[ALBUMS].delete_many({"tripId": key})
        logger.info("Trip %s: removed %d albums and %d media items", key, len(album_ids), removed)
    db[TRIPS].delete_one({"_id": trip["_id"]})
