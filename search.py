import re
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from catalog import populate, resolve_city
from database import serialize_all
from schemas import EntityKind

MIN_QUERY_LENGTH = 2
RESULTS_PER_KIND = 5

RESULT_KEYS = {
    EntityKind.MOVIE: "movies",
    EntityKind.EVENT: "events",
    EntityKind.RESTAURANT: "restaurants",
    EntityKind.STORE: "stores",
    EntityKind.ACTIVITY: "activities",
}


def empty_results() -> dict:
    results = {key: [] for key in RESULT_KEYS.values()}
    results["total"] = 0
    return results


def _find(db, kind: EntityKind, query: dict, city_id) -> list:
    if city_id is not None and kind.city_scoped:
        query = {**query, "city": city_id}
    docs = list(db[kind.collection].find(query).limit(RESULTS_PER_KIND))
    if kind.city_scoped:
        populate(db, docs, "city", "city")
        populate(db, docs, "venue", "venue")
    return serialize_all(docs)


def search(db, q: Optional[str], city_slug: Optional[str] = None) -> dict:
    """Case-insensitive match on title, description or tags across all five kinds."""
    if not q or len(q.strip()) < MIN_QUERY_LENGTH:
        return empty_results()

    pattern = {"$regex": re.escape(q.strip()), "$options": "i"}
    query = {"$or": [{"title": pattern}, {"description": pattern}, {"tags": pattern}]}

    city_id = None
    if city_slug:
        city = resolve_city(db, city_slug)
        if city:
            city_id = city["_id"]

    with ThreadPoolExecutor(max_workers=len(RESULT_KEYS)) as pool:
        futures = {kind: pool.submit(_find, db, kind, query, city_id) for kind in RESULT_KEYS}
        results = {RESULT_KEYS[kind]: f.result() for kind, f in futures.items()}

    results["total"] = sum(len(v) for v in results.values())
    return results
