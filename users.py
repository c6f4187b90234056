from typing import Tuple

from fastapi import HTTPException
from pymongo import ReturnDocument

from database import now_utc, serialize
from schemas import SyncUserPayload


def sync_user(db, payload: SyncUserPayload) -> Tuple[dict, bool]:
    """Upsert the local user for an identity-provider id. Returns (user, created)."""
    ts = now_utc()
    before = db["user"].find_one_and_update(
        {"clerkId": payload.clerkId},
        {
            "$set": {
                "email": payload.email,
                "firstName": payload.firstName,
                "lastName": payload.lastName,
                "updated_at": ts,
            },
            "$setOnInsert": {"wishlist": [], "created_at": ts},
        },
        upsert=True,
        return_document=ReturnDocument.BEFORE,
    )
    user = db["user"].find_one({"clerkId": payload.clerkId})
    return serialize(user), before is None


def get_user(db, clerk_id: str) -> dict:
    user = db["user"].find_one({"clerkId": clerk_id})
    if not user:
        raise HTTPException(404, "User not found")
    return serialize(user)
