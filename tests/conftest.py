"""
Pytest configuration and shared fixtures.
"""

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import config
from database import get_db, now_utc
from errors import PaymentGatewayError
from main import app
from payments import RazorpayGateway, compute_signature, get_gateway

TEST_SECRET = "test_secret"
ADMIN_KEY = "test-admin-key"


class FakeGateway(RazorpayGateway):
    """Records orders instead of calling Razorpay; signatures use TEST_SECRET."""

    def __init__(self):
        super().__init__("rzp_test_key", TEST_SECRET)
        self.orders = []
        self.fail = False

    def create_order(self, amount, currency, receipt, notes):
        if self.fail:
            raise PaymentGatewayError("connection refused")
        order = {
            "id": f"order_test_{len(self.orders) + 1}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        self.orders.append(order)
        return order


def sign(order_id, payment_id):
    return compute_signature(order_id, payment_id, TEST_SECRET)


@pytest.fixture
def db():
    return mongomock.MongoClient()["blockbuster_test"]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(db, gateway, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_API_KEY", ADMIN_KEY)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"x-api-key": ADMIN_KEY}


@pytest.fixture
def catalog(db):
    """Two cities with one venue, movie, event, restaurant, store and activity."""
    ts = now_utc()
    ids = {name: ObjectId() for name in (
        "hyderabad", "mumbai", "venue", "mumbai_venue", "movie", "event",
        "restaurant", "store", "activity", "screening",
    )}
    db["city"].insert_many([
        {"_id": ids["hyderabad"], "name": "Hyderabad", "slug": "hyderabad", "created_at": ts},
        {"_id": ids["mumbai"], "name": "Mumbai", "slug": "mumbai", "created_at": ts},
    ])
    db["venue"].insert_many([
        {"_id": ids["venue"], "name": "Prasads Multiplex", "slug": "prasads-multiplex",
         "address": "NTR Marg", "city": ids["hyderabad"], "type": "Cinema", "created_at": ts},
        {"_id": ids["mumbai_venue"], "name": "Phoenix Arena", "slug": "phoenix-arena",
         "address": "Lower Parel", "city": ids["mumbai"], "type": "Arena", "created_at": ts},
    ])
    db["movie"].insert_one({
        "_id": ids["movie"], "title": "Pizza Night", "slug": "pizza-night",
        "description": "A heist in a pizzeria", "genre": ["Comedy"], "created_at": ts,
    })
    db["event"].insert_one({
        "_id": ids["event"], "title": "Sunburn Arena", "slug": "sunburn-arena", "type": "Concert",
        "city": ids["hyderabad"], "venue": ids["venue"], "price": 1500, "tags": ["edm"], "created_at": ts,
    })
    db["restaurant"].insert_one({
        "_id": ids["restaurant"], "title": "Paradise Biryani", "slug": "paradise-biryani",
        "cuisine": ["Hyderabadi", "Mughlai"], "city": ids["hyderabad"], "venue": ids["venue"],
        "description": "Famous for pizza-free biryani", "created_at": ts,
    })
    db["store"].insert_one({
        "_id": ids["store"], "title": "Crossword Books", "slug": "crossword-books", "category": "Books",
        "city": ids["mumbai"], "venue": ids["mumbai_venue"], "created_at": ts,
    })
    db["activity"].insert_one({
        "_id": ids["activity"], "title": "Go Karting", "slug": "go-karting", "type": "Sports",
        "difficulty": "Moderate", "price": 800, "city": ids["hyderabad"], "venue": ids["venue"],
        "created_at": ts,
    })
    db["screening"].insert_one({
        "_id": ids["screening"], "movie": ids["movie"], "city": ids["hyderabad"], "venue": ids["venue"],
        "screens": [{"screenName": "Screen 1", "language": "Telugu", "formats": ["2D"], "price": 250,
                     "shows": ["18:00", "21:30"]}],
        "created_at": ts,
    })
    return ids
