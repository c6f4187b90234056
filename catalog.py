"""
Catalog reads and imports: cities, venues, the five entity kinds and movie screenings.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException
from pydantic import ValidationError
from pymongo import ReturnDocument, UpdateOne
from slugify import slugify

from database import create_document, now_utc, oid, serialize, serialize_all
from errors import UnknownReferenceError
from schemas import CATALOG_MODELS, EntityKind, ScreeningImport

logger = logging.getLogger(__name__)

# query parameter -> how it is matched, per kind
KIND_FILTERS = {
    EntityKind.MOVIE: {},
    EntityKind.EVENT: {"type": "eq"},
    EntityKind.RESTAURANT: {"cuisine": "in"},
    EntityKind.STORE: {"category": "eq"},
    EntityKind.ACTIVITY: {"type": "eq", "difficulty": "eq"},
}

PLURALS = {
    "city": "Cities",
    "venue": "Venues",
    "movie": "Movies",
    "event": "Events",
    "restaurant": "Restaurants",
    "store": "Stores",
    "activity": "Activities",
}


def resolve_city(db, slug: str) -> Optional[dict]:
    return db["city"].find_one({"slug": slug})


def populate(db, docs: List[dict], field: str, collection: str, projection: Optional[dict] = None) -> List[dict]:
    """Replace the id stored in `field` with the referenced document (or None)."""
    ids = list({d[field] for d in docs if d.get(field) is not None})
    if not ids:
        return docs
    found = {r["_id"]: r for r in db[collection].find({"_id": {"$in": ids}}, projection)}
    for d in docs:
        if d.get(field) is not None:
            d[field] = found.get(d[field])
    return docs


def _populate_place(db, docs: List[dict]) -> List[dict]:
    populate(db, docs, "venue", "venue")
    populate(db, docs, "city", "city")
    return docs


def list_entities(db, kind: EntityKind, city_slug: Optional[str] = None, filters: Optional[Dict[str, Any]] = None) -> List[dict]:
    query: Dict[str, Any] = {}

    if city_slug:
        city = resolve_city(db, city_slug)
        if city is None:
            return []
        if kind.city_scoped:
            query["city"] = city["_id"]
        else:
            query["_id"] = {"$in": db["screening"].distinct("movie", {"city": city["_id"]})}

    for name, mode in KIND_FILTERS[kind].items():
        value = (filters or {}).get(name)
        if value is None or value == "":
            continue
        query[name] = {"$in": [value]} if mode == "in" else value

    docs = list(db[kind.collection].find(query))
    if kind.city_scoped:
        _populate_place(db, docs)
    return serialize_all(docs)


def find_entity(db, kind: EntityKind, entity_id) -> Optional[dict]:
    """Look up an entity by kind; the one place a kind is mapped to its collection."""
    return db[kind.collection].find_one({"_id": oid(entity_id)})


def get_entity(db, kind: EntityKind, entity_id: str) -> dict:
    doc = find_entity(db, kind, entity_id)
    if not doc:
        raise HTTPException(404, f"{kind.value} not found")
    if kind.city_scoped:
        _populate_place(db, [doc])
    return serialize(doc)


def list_cities(db) -> List[dict]:
    return serialize_all(db["city"].find({}).sort("name", 1))


def list_venues(db, city_slug: Optional[str] = None) -> List[dict]:
    query = {}
    if city_slug:
        city = resolve_city(db, city_slug)
        if city is None:
            return []
        query["city"] = city["_id"]
    venues = list(db["venue"].find(query))
    populate(db, venues, "city", "city", {"name": 1, "slug": 1})
    return serialize_all(venues)


def _reference(db, collection: str, slug: str, label: str):
    doc = db[collection].find_one({"slug": slug})
    if doc is None:
        raise UnknownReferenceError(label, slug)
    return doc["_id"]


def _prepare_record(db, collection: str, raw: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    model = CATALOG_MODELS[collection]
    label_field = "name" if collection in ("city", "venue") else "title"
    record = dict(raw)

    if not record.get("slug"):
        source = record.get(label_field)
        if not source:
            raise HTTPException(400, f"Each record needs a slug or a {label_field}")
        record["slug"] = slugify(str(source))

    city_slug = record.pop("citySlug", None)
    venue_slug = record.pop("venueSlug", None)

    try:
        parsed = model.model_validate(record)
    except ValidationError as e:
        raise HTTPException(400, detail=e.errors(include_url=False, include_context=False))

    # fields the record carried are $set; model defaults only fill new documents
    full = parsed.model_dump(exclude={"id", "createdAt"})
    provided = {k: v for k, v in full.items() if k in record}
    defaults = {k: v for k, v in full.items() if k not in record and v is not None}

    # movies keep a list of city slugs rather than a reference
    if collection != "movie":
        if city_slug:
            provided["city"] = _reference(db, "city", city_slug, "City")
        elif isinstance(provided.get("city"), str):
            provided["city"] = oid(provided["city"])
    if collection not in ("city", "venue", "movie"):
        if venue_slug:
            provided["venue"] = _reference(db, "venue", venue_slug, "Venue")
        elif isinstance(provided.get("venue"), str):
            provided["venue"] = oid(provided["venue"])

    return {"set": provided, "defaults": defaults}


def upsert_entities(db, collection: str, records: Union[Dict[str, Any], List[Dict[str, Any]]]) -> dict:
    """Insert or update records keyed by slug.

    Every reference is resolved before anything is written, so one bad slug
    rejects the whole batch.
    """
    data = records if isinstance(records, list) else [records]
    prepared = [_prepare_record(db, collection, r) for r in data]

    message = f"{PLURALS[collection]} inserted/updated successfully"
    if not prepared:
        return {"message": message, "inserted": 0, "updated": 0}

    ts = now_utc()
    operations = [
        UpdateOne(
            {"slug": p["set"]["slug"]},
            {
                "$set": {**p["set"], "updated_at": ts},
                "$setOnInsert": {**p["defaults"], "created_at": ts},
            },
            upsert=True,
        )
        for p in prepared
    ]
    result = db[collection].bulk_write(operations)
    logger.info(
        "Upserted %d %s (%d new, %d modified)",
        len(operations), collection, result.upserted_count, result.modified_count,
    )
    return {"message": message, "inserted": result.upserted_count, "updated": result.modified_count}


def upsert_screenings(db, records: List[ScreeningImport]) -> List[dict]:
    results = []
    for item in records:
        movie = db["movie"].find_one({"slug": item.movieSlug})
        if not movie:
            logger.warning("Movie not found for slug: %s", item.movieSlug)
            continue
        city = resolve_city(db, item.city)
        if not city:
            logger.warning("City not found for slug: %s", item.city)
            continue

        venue_slug = slugify(item.theatre.name)
        venue = db["venue"].find_one({"slug": venue_slug})
        if venue is None:
            venue_id = create_document(db, "venue", {
                "name": item.theatre.name,
                "slug": venue_slug,
                "address": item.theatre.location,
                "city": city["_id"],
                "type": "Cinema",
                "facilities": [],
            })
        else:
            venue_id = venue["_id"]

        ts = now_utc()
        screening = db["screening"].find_one_and_update(
            {"movie": movie["_id"], "venue": venue_id},
            {
                "$set": {
                    "movie": movie["_id"],
                    "city": city["_id"],
                    "venue": venue_id,
                    "screens": [s.model_dump() for s in item.screens],
                    "updated_at": ts,
                },
                "$setOnInsert": {"created_at": ts},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        results.append(serialize(screening))
    return results


def get_screenings(db, movie_slug: str, city_slug: str) -> dict:
    movie = db["movie"].find_one({"slug": movie_slug})
    city = resolve_city(db, city_slug)
    if not movie or not city:
        raise HTTPException(404, "Movie or City not found")

    screenings = list(db["screening"].find({"movie": movie["_id"], "city": city["_id"]}))
    populate(db, screenings, "venue", "venue")
    return {
        "movie": serialize(movie),
        "city": serialize(city),
        "screenings": serialize_all(screenings),
    }
