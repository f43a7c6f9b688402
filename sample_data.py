"""
Sample itinerary: the "Japan Adventure 2025" trip.

Loaded through POST /api/trips/import/japan, or from the command line:

    python sample_data.py
"""

import logging
from typing import Any, Dict, Optional

from database import TRIPS
from errors import Conflict
from schemas import TripCreate
from trips import create_trip

logger = logging.getLogger(__name__)

SAMPLE_TRIP_NAME = "Japan Adventure 2025"


def _pt(name: str, lat: float, lng: float, code: Optional[str] = None) -> Dict[str, Any]:
    return {"name": name, "code": code, "coordinates": [lat, lng]}


DCA = _pt("Ronald Reagan Washington National Airport (DCA)", 38.8512, -77.0402, "DCA")
ORD = _pt("O'Hare International Airport (ORD)", 41.9742, -87.9073, "ORD")
NRT = _pt("Narita International Airport (NRT)", 35.7720, 140.3929, "NRT")
NRT_T1 = _pt("Narita Airport Terminal 1", 35.7647, 140.3864, "NRT T1")
NIPPORI = _pt("Nippori Station", 35.7281, 139.7703)
SHINJUKU = _pt("Shinjuku Station", 35.6896, 139.7006)
OMIYA = _pt("Omiya Station", 35.9063, 139.6234)
YUZAWA = _pt("Echigo-Yuzawa Station", 36.935862, 138.809237)
JUJO = _pt("Satoyama Jujo", 37.020567, 138.801704)
RYUGON = _pt("Ryugon", 37.058056, 138.883397)
YOKOHAMA = _pt("Yokohama Station", 35.4657, 139.6223)
HYATT_YOKOHAMA = _pt("Hyatt Regency Yokohama", 35.445859, 139.645263)
CHINATOWN = _pt("Yokohama Chinatown (Chukagai)", 35.443927, 139.646748)
HND_T3 = _pt("Haneda Airport Terminal 3", 35.544512, 139.767891, "HND T3")
HND = _pt("Haneda Airport (HND)", 35.544512, 139.767891, "HND")

SEGMENTS = [
    ("2025-02-16", "flight", "AA 3180", DCA, ORD),
    ("2025-02-17", "flight", "NH 11", ORD, NRT),
    ("2025-02-18", "train", "Skyliner", NRT_T1, NIPPORI),
    ("2025-02-18", "train", "JR Line", NIPPORI, SHINJUKU),
    ("2025-02-19", "train", "Shonan Shinjuku Line", SHINJUKU, OMIYA),
    ("2025-02-19", "train", "Joetsu Shinkansen", OMIYA, YUZAWA),
    ("2025-02-19", "shuttle", "Hotel Shuttle", YUZAWA, JUJO),
    ("2025-02-20", "shuttle", "Hotel Shuttle", JUJO, YUZAWA),
    ("2025-02-20", "shuttle", "Hotel Shuttle", YUZAWA, RYUGON),
    ("2025-02-21", "shuttle", "Hotel Shuttle", RYUGON, YUZAWA),
    ("2025-02-21", "train", "Joetsu Shinkansen", YUZAWA, OMIYA),
    ("2025-02-21", "train", "Takasaki Line", OMIYA, YOKOHAMA),
    ("2025-02-21", "walk", "Walking", YOKOHAMA, HYATT_YOKOHAMA),
    ("2025-02-22", "bus", "Limousine Bus", CHINATOWN, HND_T3),
    ("2025-02-22", "flight", "JL 10", HND, ORD),
    ("2025-02-22", "flight", "AA 4528", ORD, DCA),
]

STAYS = [
    ("Hilton Garden Inn O'Hare", [42.000855, -87.864553], "2025-02-16", "2025-02-17", "Airport hotel before Japan flight"),
    ("Hyatt Regency Tokyo", [35.691091, 139.691477], "2025-02-18", "2025-02-19", "First night in Japan"),
    ("Satoyama Jujo", [37.020567, 138.801704], "2025-02-19", "2025-02-20", "Luxury ryokan experience"),
    ("Ryugon", [37.058056, 138.883397], "2025-02-20", "2025-02-21", "Traditional ryokan"),
    ("Hyatt Regency Yokohama", [35.445859, 139.645263], "2025-02-21", "2025-02-22", "Last night in Japan"),
]


def sample_trip() -> TripCreate:
    return TripCreate(
        tripName=SAMPLE_TRIP_NAME,
        segments=[
            {"date": d, "type": t, "transport": tr, "origin": o, "destination": dst}
            for d, t, tr, o, dst in SEGMENTS
        ],
        stays=[
            {"location": loc, "coordinates": coords, "dateStart": start, "dateEnd": end, "notes": notes}
            for loc, coords, start, end, notes in STAYS
        ],
    )


def import_sample_trip(db) -> Dict[str, Any]:
    if db[TRIPS].find_one({"tripName": SAMPLE_TRIP_NAME}):
        raise Conflict("Japan trip already imported")
    trip = create_trip(db, sample_trip())
    logger.info("Imported sample trip %s", trip["_id"])
    return trip


if __name__ == "__main__":
    import database

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    created = import_sample_trip(database.get_db())
    print(f"Created trip with ID: {created['_id']}")
