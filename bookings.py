"""
Booking lifecycle: a booking is created `pending` together with a gateway
order and settles exactly once, to `confirmed` or `failed`, when the
checkout callback is verified.
"""
import logging
import time
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import BackgroundTasks, HTTPException
from pymongo import ReturnDocument

from catalog import find_entity, populate
from config import PAYMENT_CURRENCY
from database import create_document, now_utc, oid, serialize
from notifications import send_booking_confirmation
from payments import RazorpayGateway
from schemas import CreateBookingPayload, EntityKind, VerifyPaymentPayload

logger = logging.getLogger(__name__)


def _seats_taken(db, payload: CreateBookingPayload, entity_id, venue_id) -> bool:
    return db["booking"].find_one({
        "entityId": entity_id,
        "venueId": venue_id,
        "date": payload.date,
        "showTime": payload.showTime,
        "screenName": payload.screenName,
        "status": "confirmed",
        "seats": {"$in": payload.seats},
    }) is not None


def create_booking(db, gateway: RazorpayGateway, payload: CreateBookingPayload) -> dict:
    kind = payload.entityType
    entity = find_entity(db, kind, payload.entityId)
    if entity is None:
        raise HTTPException(404, f"{kind.value} not found")
    venue_id = oid(payload.venueId) if payload.venueId else None

    if kind is EntityKind.MOVIE:
        if not payload.seats:
            raise HTTPException(400, "Seats are required for movie bookings")
        if _seats_taken(db, payload, entity["_id"], venue_id):
            raise HTTPException(400, "One or more selected seats are already booked")

    # the submitted amount is charged as is
    order = gateway.create_order(
        amount=payload.totalAmount * 100,
        currency=PAYMENT_CURRENCY,
        receipt=f"receipt_{int(time.time() * 1000)}",
        notes={
            "userId": payload.userId,
            "entityType": kind.value,
            "entityId": str(entity["_id"]),
        },
    )

    doc = {
        "userId": payload.userId,
        "email": payload.email,
        "entityId": entity["_id"],
        "entityType": kind.value,
        "venueId": venue_id,
        "date": payload.date,
        "quantity": payload.quantity,
        "totalAmount": payload.totalAmount,
        "paymentOrderId": order["id"],
        "status": "pending",
        "paymentStatus": "pending",
    }
    if kind is EntityKind.MOVIE:
        doc["showTime"] = payload.showTime
        doc["screenName"] = payload.screenName
        doc["seats"] = payload.seats

    booking_id = create_document(db, "booking", doc)
    booking = db["booking"].find_one({"_id": booking_id})
    logger.info("Booking %s created for %s %s, order %s", booking_id, kind.value, entity["_id"], order["id"])

    return {
        "booking": serialize(booking),
        "order": {"id": order["id"], "amount": order["amount"], "currency": order["currency"]},
        "razorpayKeyId": gateway.key_id,
    }


def _schedule_confirmation(db, booking: dict, background_tasks: BackgroundTasks) -> None:
    entity = find_entity(db, EntityKind(booking["entityType"]), booking["entityId"])
    if entity is None:
        logger.warning("Booking %s confirmed but its %s is gone, no email", booking["_id"], booking["entityType"])
        return
    venue = db["venue"].find_one({"_id": booking["venueId"]}) if booking.get("venueId") else None
    user = db["user"].find_one({"clerkId": booking["userId"]})
    user_name = (user or {}).get("firstName") or "User"
    background_tasks.add_task(
        send_booking_confirmation,
        serialize(booking),
        serialize(entity),
        serialize(venue) if venue else None,
        user_name,
    )


def verify_payment(
    db,
    gateway: RazorpayGateway,
    payload: VerifyPaymentPayload,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Dict[str, object]:
    """Check the checkout signature and settle the booking.

    Returns {"success": bool, "booking": dict}. Only a `pending` booking is
    written; a settled one is returned as it is.
    """
    booking = db["booking"].find_one({"_id": oid(payload.bookingId)})
    if not booking:
        raise HTTPException(404, "Booking not found")
    if booking.get("paymentOrderId") != payload.order_id:
        logger.warning("Order %s does not belong to booking %s", payload.order_id, booking["_id"])
        raise HTTPException(400, "Order does not match booking")

    valid = gateway.verify_signature(payload.order_id, payload.payment_id, payload.signature)
    if valid:
        changes = {
            "status": "confirmed",
            "paymentStatus": "completed",
            "paymentId": payload.payment_id,
            "paymentSignature": payload.signature,
        }
    else:
        changes = {"status": "failed", "paymentStatus": "failed"}
    changes["updated_at"] = now_utc()

    updated = db["booking"].find_one_and_update(
        {"_id": booking["_id"], "status": "pending"},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        updated = db["booking"].find_one({"_id": booking["_id"]})
        logger.info("Booking %s already %s", booking["_id"], updated["status"])
    else:
        logger.info("Booking %s %s", booking["_id"], updated["status"])
        if valid and background_tasks is not None:
            _schedule_confirmation(db, updated, background_tasks)

    success = valid and updated["status"] == "confirmed"
    result = {"success": success, "booking": _with_references(db, [updated])[0]}
    if not success:
        result["message"] = "Payment verification failed"
    return result


def _with_references(db, bookings: List[dict]) -> List[dict]:
    """Serialize bookings with `venue` and `entity` resolved alongside the ids."""
    for b in bookings:
        b["venue"] = b.get("venueId")
    populate(db, bookings, "venue", "venue")

    by_kind: Dict[str, list] = {}
    for b in bookings:
        by_kind.setdefault(b["entityType"], []).append(b["entityId"])
    entities = {}
    for kind_name, ids in by_kind.items():
        collection = EntityKind(kind_name).collection
        for doc in db[collection].find({"_id": {"$in": ids}}):
            entities[doc["_id"]] = doc
    for b in bookings:
        b["entity"] = entities.get(b["entityId"])
    return [serialize(b) for b in bookings]


def get_user_bookings(db, user_id: str) -> List[dict]:
    bookings = list(db["booking"].find({"userId": user_id}).sort([("created_at", -1), ("_id", -1)]))
    return _with_references(db, bookings)


def get_booked_seats(
    db,
    entity_id: str,
    venue_id: Optional[str],
    date: Optional[datetime],
    show_time: Optional[str],
    screen_name: Optional[str] = None,
) -> List[str]:
    query = {
        "entityId": oid(entity_id),
        "venueId": oid(venue_id) if venue_id else None,
        "date": date,
        "showTime": show_time,
        "status": "confirmed",
    }
    if screen_name:
        query["screenName"] = screen_name
    seats: List[str] = []
    for b in db["booking"].find(query):
        seats.extend(b.get("seats", []))
    return seats
