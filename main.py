import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import BackgroundTasks, Body, Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

import config
import database
from bookings import create_booking, get_booked_seats, get_user_bookings, verify_payment
from catalog import (
    get_entity,
    get_screenings,
    list_cities,
    list_entities,
    list_venues,
    upsert_entities,
    upsert_screenings,
)
from database import ensure_indexes, get_db
from errors import PaymentGatewayError, UnknownReferenceError
from payments import RazorpayGateway, close_gateway, get_gateway
from schemas import (
    CreateBookingPayload,
    EntityKind,
    ScreeningImport,
    SearchResults,
    SyncUserPayload,
    UpsertResult,
    VerifyPaymentPayload,
    WishlistTogglePayload,
)
from search import search
from users import get_user, sync_user
from wishlist import get_wishlist, toggle_wishlist

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        ensure_indexes(database.db)
    yield
    close_gateway()
    if database.client is not None:
        database.client.close()


app = FastAPI(title=config.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CLIENT_URL, "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %s (%.1f ms)",
        request.method, request.url.path, response.status_code, (time.perf_counter() - started) * 1000,
    )
    return response


@app.exception_handler(UnknownReferenceError)
async def unknown_reference_handler(request: Request, exc: UnknownReferenceError):
    logger.error("Import rejected: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(PaymentGatewayError)
async def payment_gateway_handler(request: Request, exc: PaymentGatewayError):
    return JSONResponse(status_code=500, content={"detail": f"Payment gateway error: {exc}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Helpers

def require_admin(x_api_key: Optional[str] = Header(None)):
    if not config.ADMIN_API_KEY or x_api_key != config.ADMIN_API_KEY:
        raise HTTPException(401, "Not authorized as admin. Invalid or missing API Key.")


CatalogRecords = Union[List[Dict[str, Any]], Dict[str, Any]]


# Routes
@app.get("/")
def root():
    return {"app": config.APP_NAME, "status": "ok"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if config.DATABASE_URL else "❌ Not Set",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    db = database.db
    if db is None:
        response["database"] = "⚠️ Available but not initialized"
        return response
    response["database"] = "✅ Available"
    response["database_name"] = db.name
    response["connection_status"] = "Connected"
    try:
        response["collections"] = db.list_collection_names()[:20]
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    return response


# Cities & Venues
@app.get("/api/cities")
def get_cities(db=Depends(get_db)):
    return list_cities(db)


@app.post("/api/cities", response_model=UpsertResult, dependencies=[Depends(require_admin)])
def upsert_cities(records: CatalogRecords = Body(...), db=Depends(get_db)):
    return upsert_entities(db, "city", records)


@app.get("/api/venues")
def get_venues(city: Optional[str] = None, db=Depends(get_db)):
    return list_venues(db, city)


@app.post("/api/venues", response_model=UpsertResult, dependencies=[Depends(require_admin)])
def upsert_venues(records: CatalogRecords = Body(...), db=Depends(get_db)):
    return upsert_entities(db, "venue", records)


# Movies
@app.get("/api/movies")
def get_movies(city: Optional[str] = None, db=Depends(get_db)):
    return list_entities(db, EntityKind.MOVIE, city)


@app.get("/api/movies/{movie_id}")
def get_movie(movie_id: str, db=Depends(get_db)):
    return get_entity(db, EntityKind.MOVIE, movie_id)


@app.post("/api/movies", response_model=UpsertResult, dependencies=[Depends(require_admin)])
def upsert_movies(records: CatalogRecords = Body(...), db=Depends(get_db)):
    return upsert_entities(db, EntityKind.MOVIE.collection, records)


# Events
@app.get("/api/events")
def get_events(city: Optional[str] = None, type: Optional[str] = None, db=Depends(get_db)):
    return list_entities(db, EntityKind.EVENT, city, {"type": type})


@app.get("/api/events/{event_id}")
def get_event(event_id: str, db=Depends(get_db)):
    return get_entity(db, EntityKind.EVENT, event_id)


@app.post("/api/events", response_model=UpsertResult, dependencies=[Depends(require_admin)])
def upsert_events(records: CatalogRecords = Body(...), db=Depends(get_db)):
    return upsert_entities(db, EntityKind.EVENT.collection, records)


# Restaurants
@app.get("/api/restaurants")
def get_restaurants(city: Optional[str] = None, cuisine: Optional[str] = None, db=Depends(get_db)):
    return list_entities(db, EntityKind.RESTAURANT, city, {"cuisine": cuisine})


@app.get("/api/restaurants/{restaurant_id}")
def get_restaurant(restaurant_id: str, db=Depends(get_db)):
    return get_entity(db, EntityKind.RESTAURANT, restaurant_id)


@app.post("/api/restaurants", response_model=UpsertResult, dependencies=[Depends(require_admin)])
def upsert_restaurants(records: CatalogRecords = Body(...), db=Depends(get_db)):
    return upsert_entities(db, EntityKind.RESTAURANT.collection, records)


# Stores
@app.get("/api/stores")
def get_stores(city: Optional[str] = None, category: Optional[str] = None, db=Depends(get_db)):
    return list_entities(db, EntityKind.STORE, city, {"category": category})


@app.get("/api/stores/{store_id}")
def get_store(store_id: str, db=Depends(get_db)):
    return get_entity(db, EntityKind.STORE, store_id)


@app.post("/api/stores", response_model=UpsertResult, dependencies=[Depends(require_admin)])
def upsert_stores(records: CatalogRecords = Body(...), db=Depends(get_db)):
    return upsert_entities(db, EntityKind.STORE.collection, records)


# Activities
@app.get("/api/activities")
def get_activities(
    city: Optional[str] = None,
    type: Optional[str] = None,
    difficulty: Optional[str] = None,
    db=Depends(get_db),
):
    return list_entities(db, EntityKind.ACTIVITY, city, {"type": type, "difficulty": difficulty})


@app.get("/api/activities/{activity_id}")
def get_activity(activity_id: str, db=Depends(get_db)):
    return get_entity(db, EntityKind.ACTIVITY, activity_id)


@app.post("/api/activities", response_model=UpsertResult, dependencies=[Depends(require_admin)])
def upsert_activities(records: CatalogRecords = Body(...), db=Depends(get_db)):
    return upsert_entities(db, EntityKind.ACTIVITY.collection, records)


# Screenings
@app.post("/api/screenings", status_code=201, dependencies=[Depends(require_admin)])
def import_screenings(records: Union[List[ScreeningImport], ScreeningImport] = Body(...), db=Depends(get_db)):
    single = not isinstance(records, list)
    results = upsert_screenings(db, [records] if single else records)
    if single and len(results) == 1:
        return results[0]
    return results


@app.get("/api/screenings/{movie_slug}/{city_slug}")
def screenings_for_city(movie_slug: str, city_slug: str, db=Depends(get_db)):
    return get_screenings(db, movie_slug, city_slug)


# Bookings + Razorpay
@app.post("/api/bookings", status_code=201)
def book(
    payload: CreateBookingPayload,
    db=Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
):
    return create_booking(db, gateway, payload)


@app.post("/api/bookings/verify-payment")
def confirm_payment(
    payload: VerifyPaymentPayload,
    background_tasks: BackgroundTasks,
    db=Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
):
    result = verify_payment(db, gateway, payload, background_tasks)
    if not result["success"]:
        return JSONResponse(status_code=400, content=jsonable_encoder(result))
    return result


@app.get("/api/bookings/booked-seats")
def booked_seats(
    entityId: str,
    venueId: Optional[str] = None,
    date: Optional[datetime] = None,
    showTime: Optional[str] = None,
    screenName: Optional[str] = None,
    db=Depends(get_db),
):
    return get_booked_seats(db, entityId, venueId, date, showTime, screenName)


@app.get("/api/bookings/user/{user_id}")
def user_bookings(user_id: str, db=Depends(get_db)):
    return get_user_bookings(db, user_id)


# Users & Hotlist
@app.post("/api/users/sync")
def sync(payload: SyncUserPayload, response: Response, db=Depends(get_db)):
    user, created = sync_user(db, payload)
    if created:
        response.status_code = 201
    return user


@app.post("/api/users/wishlist/toggle")
def toggle(payload: WishlistTogglePayload, db=Depends(get_db)):
    return toggle_wishlist(db, payload.clerkId, payload.itemId, payload.itemType)


@app.get("/api/users/wishlist/{clerk_id}")
def wishlist(clerk_id: str, db=Depends(get_db)):
    return get_wishlist(db, clerk_id)


@app.get("/api/users/{clerk_id}")
def user_profile(clerk_id: str, db=Depends(get_db)):
    return get_user(db, clerk_id)


# Search
@app.get("/api/search", response_model=SearchResults)
def global_search(q: Optional[str] = None, city: Optional[str] = None, db=Depends(get_db)):
    return search(db, q, city)
