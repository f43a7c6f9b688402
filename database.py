"""
Database access

MongoDB connection plus the small helpers shared by the trip, album and
media modules. The connection is configured from the environment:

- DATABASE_URL: MongoDB connection string
- DATABASE_NAME: database to use

When either is missing ``db`` stays None and the API answers 500.
"""

import os
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient

from errors import ValidationFailed

load_dotenv()

logger = logging.getLogger(__name__)

TRIPS = "trips"
ALBUMS = "albums"
MEDIA = "mediaitems"

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

client: Optional[MongoClient] = None
db = None

if DATABASE_URL and DATABASE_NAME:
    client = MongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]


def get_db():
    """FastAPI dependency returning the configured database."""
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(ObjectId())


def to_object_id(value: Any, label: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationFailed(f"Invalid {label}: {value}")


def _encode(value: Any) -> Any:
    # BSON has no plain date type
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_encode(v) for v in value]
    return value


def create_document(database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    doc = _encode(dict(data))
    stamp = now()
    doc.setdefault("createdAt", stamp)
    doc["updatedAt"] = stamp
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def save_document(database, collection_name: str, doc: Dict[str, Any]) -> Dict[str, Any]:
    """Re-save a whole document after patching its fields."""
    doc = _encode(doc)
    doc["updatedAt"] = now()
    database[collection_name].replace_one({"_id": doc["_id"]}, doc)
    return doc


def get_documents(database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  limit: Optional[int] = None, sort: Optional[List] = None) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def find_by_id(database, collection_name: str, doc_id: Any, label: str = "id") -> Optional[Dict[str, Any]]:
    return database[collection_name].find_one({"_id": to_object_id(doc_id, label)})


def ensure_indexes(database) -> None:
    database[ALBUMS].create_index([("tripId", ASCENDING)])
    database[ALBUMS].create_index(
        [("tripId", ASCENDING), ("relatedItem.type", ASCENDING), ("relatedItem.itemId", ASCENDING)]
    )
    database[MEDIA].create_index([("albumId", ASCENDING)])
    database[MEDIA].create_index([("albumId", ASCENDING), ("type", ASCENDING)])
    logger.info("Indexes ensured on %s and %s", ALBUMS, MEDIA)


def serialize_doc(doc: Any) -> Any:
    if isinstance(doc, list):
        return [serialize_doc(i) for i in doc]
    if isinstance(doc, dict):
        d = {}
        for k, v in doc.items():
            if k == "_id":
                d["id"] = str(v)
            else:
                d[k] = serialize_doc(v)
        return d
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    return doc
