import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

import database
from albums import (
    albums_for_item,
    check_item_type,
    create_album,
    delete_album,
    ensure_default_album,
    get_album,
    list_albums,
    serialize_album,
    update_album,
)
from database import ensure_indexes, get_db, serialize_doc
from errors import AppError, Conflict
from media import create_media, delete_media, get_media, list_media, move_media, update_media
from sample_data import import_sample_trip
from schemas import AlbumCreate, AlbumUpdate, MediaCreate, MediaUpdate, TripCreate, TripUpdate
from storage import PhotoStorage
from trips import create_trip, delete_trip, get_trip, list_trips, update_trip

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
DEVELOPMENT = os.getenv("ENVIRONMENT", "production") == "development"

storage = PhotoStorage(UPLOAD_DIR)


def get_storage() -> PhotoStorage:
    return storage


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        ensure_indexes(database.db)
    yield


app = FastAPI(title="Trip Albums API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")


# -------- Error handlers --------

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    body = {"detail": exc.message}
    if isinstance(exc, Conflict) and exc.album_id:
        body["albumId"] = exc.album_id
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        # drop the leading "body"/"path" from the location
        field = ".".join(str(p) for p in err.get("loc", ())[1:])
        messages.append(f"{field}: {err['msg']}" if field else err["msg"])
    return JSONResponse(status_code=400, content={"detail": ", ".join(messages)})


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = f"Server error: {exc}" if DEVELOPMENT else "Server error"
    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/")
def read_root():
    return {"message": "Trip Albums API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "connection_status": "Not Connected",
        "collections": []
    }
    db = database.db
    if db is not None:
        response["connection_status"] = "Connected"
        try:
            response["collections"] = db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"

    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
    return response


# -------- Trip endpoints --------

@app.get("/api/trips")
def get_trips(db=Depends(get_db)):
    return serialize_doc(list_trips(db))


@app.post("/api/trips", status_code=201)
def post_trip(payload: TripCreate, db=Depends(get_db)):
    return serialize_doc(create_trip(db, payload))


@app.post("/api/trips/import/japan", status_code=201)
def import_japan_trip(db=Depends(get_db)):
    return serialize_doc(import_sample_trip(db))


@app.get("/api/trips/{trip_id}")
def get_trip_by_id(trip_id: str, db=Depends(get_db)):
    return serialize_doc(get_trip(db, trip_id))


@app.put("/api/trips/{trip_id}")
def put_trip(trip_id: str, payload: TripUpdate, db=Depends(get_db)):
    return serialize_doc(update_trip(db, trip_id, payload))


@app.delete("/api/trips/{trip_id}")
def remove_trip(trip_id: str, db=Depends(get_db), store: PhotoStorage = Depends(get_storage)):
    delete_trip(db, trip_id, store)
    return {"message": "Trip removed"}


# -------- Album endpoints --------

@app.get("/api/albums")
def get_albums(db=Depends(get_db)):
    return [serialize_album(db, a) for a in list_albums(db)]


@app.get("/api/albums/trip/{trip_id}")
def get_trip_albums(trip_id: str, db=Depends(get_db)):
    return [serialize_album(db, a) for a in list_albums(db, {"tripId": trip_id})]


@app.get("/api/albums/trip/{trip_id}/{item_type}/{item_id}")
def get_item_albums(trip_id: str, item_type: str, item_id: str, db=Depends(get_db)):
    return [serialize_album(db, a) for a in albums_for_item(db, trip_id, item_type, item_id)]


@app.post("/api/albums/default/{trip_id}/{item_type}/{item_id}", status_code=201)
def post_default_album(trip_id: str, item_type: str, item_id: str, db=Depends(get_db)):
    check_item_type(item_type)
    return serialize_album(db, ensure_default_album(db, trip_id, item_type, item_id))


@app.get("/api/albums/{album_id}")
def get_album_by_id(album_id: str, db=Depends(get_db)):
    return serialize_album(db, get_album(db, album_id))


@app.post("/api/albums", status_code=201)
def post_album(payload: AlbumCreate, db=Depends(get_db)):
    return serialize_album(db, create_album(db, payload))


@app.put("/api/albums/{album_id}")
def put_album(album_id: str, payload: AlbumUpdate, db=Depends(get_db)):
    return serialize_album(db, update_album(db, album_id, payload))


@app.delete("/api/albums/{album_id}")
def remove_album(album_id: str, db=Depends(get_db), store: PhotoStorage = Depends(get_storage)):
    removed = delete_album(db, album_id, store)
    return {"message": "Album removed", "mediaRemoved": removed}


# -------- Media endpoints --------

@app.post("/api/media/upload", status_code=201)
async def upload_photo(photo: Optional[UploadFile] = File(None), store: PhotoStorage = Depends(get_storage)):
    if photo is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    # one byte past the limit is enough to reject
    raw = await photo.read(store.max_bytes + 1)
    url = await run_in_threadpool(store.store, raw, photo.filename or "", photo.content_type)
    return {"message": "File uploaded successfully", "url": url}


@app.get("/api/media/album/{album_id}")
def get_album_media(album_id: str, db=Depends(get_db)):
    return serialize_doc(list_media(db, album_id))


@app.post("/api/media/album/{album_id}", status_code=201)
def post_media(album_id: str, payload: MediaCreate, db=Depends(get_db)):
    return serialize_doc(create_media(db, album_id, payload))


@app.get("/api/media/{media_id}")
def get_media_by_id(media_id: str, db=Depends(get_db)):
    return serialize_doc(get_media(db, media_id))


@app.put("/api/media/{media_id}")
def put_media(media_id: str, payload: MediaUpdate, db=Depends(get_db)):
    return serialize_doc(update_media(db, media_id, payload))


@app.put("/api/media/{media_id}/move/{target_album_id}")
def put_media_move(media_id: str, target_album_id: str, db=Depends(get_db)):
    return serialize_doc(move_media(db, media_id, target_album_id))


@app.delete("/api/media/{media_id}")
def remove_media(media_id: str, db=Depends(get_db), store: PhotoStorage = Depends(get_storage)):
    delete_media(db, media_id, store)
    return {"message": "Media deleted successfully"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
