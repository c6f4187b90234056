"""
BlockBuster Database Schemas (MongoDB via Pydantic)

Each Pydantic model maps to one MongoDB collection using the lowercase class name.
Example: class Restaurant -> collection "restaurant"

Catalog models accept extra fields so imports can carry display attributes
that the API does not interpret.
"""
from __future__ import annotations
from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, EmailStr
from typing import Any, Dict, List, Optional, Literal
from datetime import datetime


class EntityKind(str, Enum):
    """The five bookable / wishlistable catalog categories."""
    MOVIE = "Movie"
    EVENT = "Event"
    RESTAURANT = "Restaurant"
    STORE = "Store"
    ACTIVITY = "Activity"

    @property
    def collection(self) -> str:
        return self.value.lower()

    @property
    def city_scoped(self) -> bool:
        # movies reach cities through screenings, not a city reference
        return self is not EntityKind.MOVIE


class CatalogModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    slug: str
    createdAt: Optional[datetime] = None


class City(CatalogModel):
    name: str
    image: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class Venue(CatalogModel):
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    type: Literal["Cinema", "Arena", "Restaurant", "Pub", "Other"] = "Other"
    image: Optional[str] = None
    facilities: List[str] = []


class CastMember(BaseModel):
    name: str
    role: Optional[str] = None
    image: Optional[str] = None


class Movie(CatalogModel):
    title: str
    city: List[str] = []  # city slugs
    description: Optional[str] = None
    language: Optional[str] = None
    genre: List[str] = []
    duration: Optional[int] = None  # minutes
    releaseDate: Optional[datetime] = None
    poster: Optional[str] = None
    backdrop: Optional[str] = None
    rating: float = 0
    votes: int = 0
    certificate: Literal["U", "U/A", "A", "S"] = "U/A"
    trailerUrl: Optional[str] = None
    cast: List[CastMember] = []


class Event(CatalogModel):
    title: str
    description: Optional[str] = None
    type: Optional[str] = None
    city: Optional[str] = None
    venue: Optional[str] = None
    date: Optional[datetime] = None
    price: float = Field(ge=0)
    image: Optional[str] = None
    artist: Optional[str] = None
    organizer: Optional[str] = None
    tags: List[str] = []


class Restaurant(CatalogModel):
    title: str
    description: Optional[str] = None
    cuisine: List[str] = []
    city: Optional[str] = None
    venue: Optional[str] = None
    priceRange: Literal["$", "$$", "$$$", "$$$$"] = "$$"
    rating: float = 0
    image: Optional[str] = None
    menu: Optional[str] = None
    contactNumber: Optional[str] = None
    operatingHours: Optional[str] = None
    tags: List[str] = []


class Store(CatalogModel):
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    city: Optional[str] = None
    venue: Optional[str] = None
    image: Optional[str] = None
    website: Optional[str] = None
    contactNumber: Optional[str] = None
    operatingHours: Optional[str] = None
    tags: List[str] = []


class Activity(CatalogModel):
    title: str
    description: Optional[str] = None
    type: Optional[str] = None
    city: Optional[str] = None
    venue: Optional[str] = None
    duration: Optional[str] = None
    price: float = Field(ge=0)
    difficulty: Literal["Easy", "Moderate", "Hard"] = "Easy"
    image: Optional[str] = None
    inclusions: List[str] = []
    requirements: List[str] = []
    date: Optional[datetime] = None
    tags: List[str] = []


class Screen(BaseModel):
    screenName: str
    language: str
    formats: List[str] = []
    price: float = Field(ge=0)
    shows: List[str] = []


# Catalog collection -> model used to validate imports
CATALOG_MODELS = {
    "city": City,
    "venue": Venue,
    "movie": Movie,
    "event": Event,
    "restaurant": Restaurant,
    "store": Store,
    "activity": Activity,
}


# Request payloads

class CreateBookingPayload(BaseModel):
    userId: str = Field(min_length=1)
    email: EmailStr
    entityId: str
    entityType: EntityKind
    venueId: Optional[str] = None
    date: Optional[datetime] = None
    showTime: Optional[str] = None
    screenName: Optional[str] = None
    seats: List[str] = []
    quantity: int = Field(1, ge=1)
    totalAmount: int = Field(gt=0)


class VerifyPaymentPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bookingId: str
    order_id: str = Field(validation_alias=AliasChoices("razorpay_order_id", "orderId", "order_id"))
    payment_id: str = Field(validation_alias=AliasChoices("razorpay_payment_id", "paymentId", "payment_id"))
    signature: str = Field(validation_alias=AliasChoices("razorpay_signature", "signature"))


class SyncUserPayload(BaseModel):
    clerkId: str = Field(min_length=1)
    email: EmailStr
    firstName: Optional[str] = None
    lastName: Optional[str] = None


class WishlistTogglePayload(BaseModel):
    clerkId: str = Field(min_length=1, validation_alias=AliasChoices("clerkId", "userId"))
    itemId: str
    itemType: EntityKind


class Theatre(BaseModel):
    name: str
    location: Optional[str] = None


class ScreeningImport(BaseModel):
    movieSlug: str
    city: str  # city slug
    theatre: Theatre
    screens: List[Screen] = []


class UpsertResult(BaseModel):
    message: str
    inserted: int
    updated: int


class SearchResults(BaseModel):
    movies: List[Dict[str, Any]] = []
    events: List[Dict[str, Any]] = []
    restaurants: List[Dict[str, Any]] = []
    stores: List[Dict[str, Any]] = []
    activities: List[Dict[str, Any]] = []
    total: int = 0
