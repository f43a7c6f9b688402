"""
Database Schemas for Trip Albums

Pydantic models validating request payloads for the three MongoDB
collections:
- Trip -> "trips" (segments and stays embedded)
- Album -> "albums"
- MediaItem -> "mediaitems"

Stored documents keep the camelCase field names used here.
"""

import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

SegmentType = Literal["flight", "train", "shuttle", "walk", "bus"]
MediaType = Literal["photo", "note"]


def _check_coordinates(v: List[float]) -> List[float]:
    if len(v) != 2:
        raise ValueError("Coordinates must be [latitude, longitude]")
    return v


class Point(BaseModel):
    name: str = Field(..., description="Place name")
    code: Optional[str] = Field(None, description="Airport or station code")
    coordinates: List[float] = Field(..., description="[latitude, longitude]")

    @field_validator("coordinates")
    @classmethod
    def check_coordinates(cls, v):
        return _check_coordinates(v)


class Segment(BaseModel):
    """One transport leg, embedded in a trip."""
    id: Optional[str] = Field(None, description="Existing segment id when re-saving a trip")
    date: datetime.date
    type: SegmentType
    transport: str = Field(..., description="Flight number, line name, ...")
    origin: Point
    destination: Point
    notes: Optional[str] = None
    defaultAlbumId: Optional[str] = None


class Stay(BaseModel):
    """Lodging interval, embedded in a trip."""
    id: Optional[str] = Field(None, description="Existing stay id when re-saving a trip")
    location: str
    coordinates: List[float] = Field(..., description="[latitude, longitude]")
    dateStart: datetime.date
    dateEnd: datetime.date
    notes: Optional[str] = None
    amenities: List[str] = Field(default_factory=list)
    defaultAlbumId: Optional[str] = None

    @field_validator("coordinates")
    @classmethod
    def check_coordinates(cls, v):
        return _check_coordinates(v)


class TripCreate(BaseModel):
    """
    Trips collection payload
    Collection name: "trips"
    """
    tripName: str = Field(..., min_length=1)
    segments: List[Segment]
    stays: List[Stay]
    description: Optional[str] = None
    coverImage: Optional[str] = Field(None, description="URL of a trip cover image")


class TripUpdate(BaseModel):
    tripName: Optional[str] = None
    segments: Optional[List[Segment]] = None
    stays: Optional[List[Stay]] = None
    description: Optional[str] = None
    coverImage: Optional[str] = None


# ---- Albums ----

class TripRelation(BaseModel):
    type: Literal["trip"]


class ItemRelation(BaseModel):
    type: Literal["segment", "stay"]
    itemId: str = Field(..., min_length=1)


RelatedItem = Annotated[Union[TripRelation, ItemRelation], Field(discriminator="type")]


class AlbumCreate(BaseModel):
    """
    Albums collection payload
    Collection name: "albums"
    """
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    tripId: str
    relatedItem: RelatedItem
    isDefault: bool = False

    @field_validator("name", "description", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class AlbumUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    coverImageId: Optional[str] = None
    isDefault: Optional[bool] = None


# ---- Media ----

class MediaCreate(BaseModel):
    """
    MediaItems collection payload
    Collection name: "mediaitems"
    """
    type: MediaType
    content: str = Field(..., min_length=1, description="URL for photos, text for notes")
    caption: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict, description="Location, camera info, ...")
    sortOrder: int = Field(0, description="Manual ordering within the album")


class MediaUpdate(BaseModel):
    type: Optional[MediaType] = None
    content: Optional[str] = None
    caption: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None
    sortOrder: Optional[int] = None
