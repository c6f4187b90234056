"""
Booking confirmation emails (sent as background tasks).
"""
import logging
from typing import Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from config import (
    APP_NAME,
    CLIENT_URL,
    MAIL_FROM,
    MAIL_PASSWORD,
    MAIL_PORT,
    MAIL_SERVER,
    MAIL_USERNAME,
)

logger = logging.getLogger(__name__)


def mail_configured() -> bool:
    return bool(MAIL_USERNAME and MAIL_PASSWORD)


def _connection() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=MAIL_USERNAME,
        MAIL_PASSWORD=MAIL_PASSWORD,
        MAIL_FROM=MAIL_FROM,
        MAIL_PORT=MAIL_PORT,
        MAIL_SERVER=MAIL_SERVER,
        MAIL_FROM_NAME=APP_NAME,
        MAIL_STARTTLS=True,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=True,
        VALIDATE_CERTS=True,
    )


def render_confirmation(booking: dict, entity: dict, venue: Optional[dict], user_name: str) -> str:
    entity_name = entity.get("title") or entity.get("name") or booking.get("entityType")
    image = entity.get("poster") or entity.get("image")
    date = booking.get("date")
    date_text = date.strftime("%a, %B %d, %Y") if hasattr(date, "strftime") else (date or "N/A")
    seats = booking.get("seats") or []
    code = str(booking.get("id") or booking.get("_id"))[-6:].upper()

    rows = [
        f"<p><strong>Date:</strong> {date_text}</p>",
        f"<p><strong>Time:</strong> {booking.get('showTime') or 'All Day'}</p>",
    ]
    if venue:
        rows.append(f"<p><strong>Venue:</strong> {venue.get('name')}<br>{venue.get('address') or ''}</p>")
    if seats:
        rows.append(f"<p><strong>Seats:</strong> {', '.join(seats)}</p>")
    else:
        rows.append(f"<p><strong>Quantity:</strong> {booking.get('quantity', 1)}</p>")
    rows.append(f"<p><strong>Amount paid:</strong> &#8377;{booking.get('totalAmount')}</p>")
    rows.append(f"<p><strong>Booking ID:</strong> #{code}</p>")

    banner = f'<img src="{image}" alt="{entity_name}" style="width:100%;max-height:250px;object-fit:cover">' if image else ""
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"><title>Booking Confirmation</title></head>
    <body style="font-family: Arial, sans-serif; background:#f3f4f6; padding:40px 0;">
        <div style="max-width:600px;margin:0 auto;background:#fff;border-radius:16px;overflow:hidden;">
            {banner}
            <div style="padding:32px 24px;">
                <h1 style="margin:0 0 8px;">{entity_name}</h1>
                <h2 style="color:#4f46e5;">Booking Confirmed!</h2>
                <p>Hi {user_name}, your booking is ready.</p>
                {''.join(rows)}
                <p><a href="{CLIENT_URL}/profile">View your bookings</a></p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_booking_confirmation(booking: dict, entity: dict, venue: Optional[dict], user_name: str) -> bool:
    if not mail_configured():
        logger.warning("MAIL_USERNAME or MAIL_PASSWORD not set, skipping confirmation for booking %s", booking.get("id"))
        return False

    message = MessageSchema(
        subject=f"Booking Confirmed: {entity.get('title') or entity.get('name')}",
        recipients=[booking["email"]],
        body=render_confirmation(booking, entity, venue, user_name),
        subtype=MessageType.html,
    )
    try:
        await FastMail(_connection()).send_message(message)
    except Exception as e:
        logger.error("Confirmation email for booking %s failed: %s", booking.get("id"), e)
        return False
    logger.info("Confirmation email sent to %s for booking %s", booking["email"], booking.get("id"))
    return True
