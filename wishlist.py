import logging
from typing import List

from catalog import find_entity
from database import now_utc, oid, serialize
from schemas import EntityKind

logger = logging.getLogger(__name__)

PLACEHOLDER_EMAIL = "placeholder@temporary.com"


def toggle_wishlist(db, clerk_id: str, item_id: str, item_type: EntityKind) -> dict:
    """Add the item to the user's Hotlist, or remove it if it is already there.

    The user is created on first use; the placeholder email is replaced by
    the next identity sync.
    """
    users = db["user"]
    entry = {"itemId": oid(item_id), "itemType": item_type.value}
    ts = now_utc()

    users.update_one(
        {"clerkId": clerk_id},
        {"$setOnInsert": {"email": PLACEHOLDER_EMAIL, "wishlist": [], "created_at": ts}},
        upsert=True,
    )

    removed = users.update_one(
        {"clerkId": clerk_id, "wishlist": {"$elemMatch": entry}},
        {"$pull": {"wishlist": entry}, "$set": {"updated_at": ts}},
    )
    if removed.modified_count:
        message = "Removed from Hotlist"
    else:
        users.update_one(
            {"clerkId": clerk_id},
            {"$addToSet": {"wishlist": entry}, "$set": {"updated_at": ts}},
        )
        message = "Added to Hotlist"

    user = users.find_one({"clerkId": clerk_id})
    logger.debug("%s: %s %s for %s", message, item_type.value, item_id, clerk_id)
    return {"wishlist": serialize(user.get("wishlist", [])), "message": message}


def get_wishlist(db, clerk_id: str) -> List[dict]:
    user = db["user"].find_one({"clerkId": clerk_id})
    if not user:
        return []

    items = []
    for item in user.get("wishlist", []):
        details = find_entity(db, EntityKind(item["itemType"]), item["itemId"])
        # stale references are dropped
        if details is None:
            continue
        items.append(serialize({**item, "details": details}))
    return items
