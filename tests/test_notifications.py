"""
Tests for booking confirmation emails.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from notifications import render_confirmation, send_booking_confirmation
from tests.conftest import sign


def confirmed_booking(**overrides):
    booking = {
        "id": "66a1f0c2e4b0a1b2c3d4e5f6",
        "email": "guest@example.com",
        "entityType": "Movie",
        "date": datetime(2024, 8, 15),
        "showTime": "18:00",
        "seats": ["A1", "A2"],
        "totalAmount": 500,
    }
    booking.update(overrides)
    return booking


MOVIE = {"title": "Pizza Night", "poster": "https://img.example.com/pizza.jpg"}
VENUE = {"name": "Prasads Multiplex", "address": "NTR Marg"}


class TestRenderConfirmation:
    def test_movie_booking_lists_seats(self):
        html = render_confirmation(confirmed_booking(), MOVIE, VENUE, "Asha")

        assert "Pizza Night" in html
        assert "Hi Asha" in html
        assert "Thu, August 15, 2024" in html
        assert "A1, A2" in html
        assert "Prasads Multiplex" in html
        assert "#D4E5F6" in html
        assert 'src="https://img.example.com/pizza.jpg"' in html

    def test_quantity_booking_without_venue(self):
        booking = confirmed_booking(seats=[], quantity=3, showTime=None, date=None, entityType="Restaurant")

        html = render_confirmation(booking, {"title": "Paradise Biryani"}, None, "User")

        assert "Quantity:</strong> 3" in html
        assert "All Day" in html
        assert "Venue:" not in html
        assert "<img" not in html


class TestSendBookingConfirmation:
    def test_skipped_without_credentials(self):
        with patch("notifications.MAIL_USERNAME", ""):
            sent = asyncio.run(send_booking_confirmation(confirmed_booking(), MOVIE, VENUE, "Asha"))

        assert sent is False

    def test_sends_html_message(self):
        mailer = MagicMock()
        mailer.send_message = AsyncMock()
        with patch("notifications.mail_configured", return_value=True), \
                patch("notifications._connection"), \
                patch("notifications.FastMail", return_value=mailer):
            sent = asyncio.run(send_booking_confirmation(confirmed_booking(), MOVIE, VENUE, "Asha"))

        assert sent is True
        message = mailer.send_message.call_args.args[0]
        assert message.subject == "Booking Confirmed: Pizza Night"
        assert "guest@example.com" in str(message.recipients[0])

    def test_send_failure_is_reported_not_raised(self):
        mailer = MagicMock()
        mailer.send_message = AsyncMock(side_effect=ConnectionError("smtp down"))
        with patch("notifications.mail_configured", return_value=True), \
                patch("notifications._connection"), \
                patch("notifications.FastMail", return_value=mailer):
            sent = asyncio.run(send_booking_confirmation(confirmed_booking(), MOVIE, VENUE, "Asha"))

        assert sent is False


class TestConfirmationScheduling:
    def test_first_confirmation_schedules_one_email(self, client, catalog):
        created = client.post("/api/bookings", json={
            "userId": "user_1",
            "email": "guest@example.com",
            "entityId": str(catalog["event"]),
            "entityType": "Event",
            "venueId": str(catalog["venue"]),
            "totalAmount": 1500,
        }).json()
        order_id = created["order"]["id"]
        body = {
            "bookingId": created["booking"]["id"],
            "razorpay_order_id": order_id,
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": sign(order_id, "pay_1"),
        }

        with patch("bookings.send_booking_confirmation", new=AsyncMock(return_value=True)) as send:
            client.post("/api/bookings/verify-payment", json=body)
            client.post("/api/bookings/verify-payment", json=body)

        assert send.call_count == 1
        booking, entity, venue, user_name = send.call_args.args
        assert entity["title"] == "Sunburn Arena"
        assert venue["name"] == "Prasads Multiplex"
        assert user_name == "User"
