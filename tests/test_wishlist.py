"""
Tests for the Hotlist (wishlist) toggle and read.
"""

from bson import ObjectId

from schemas import EntityKind
from wishlist import PLACEHOLDER_EMAIL, get_wishlist, toggle_wishlist


class TestToggleWishlist:
    def test_first_toggle_adds_and_creates_user(self, db, catalog):
        result = toggle_wishlist(db, "user_1", str(catalog["movie"]), EntityKind.MOVIE)

        assert result["message"] == "Added to Hotlist"
        assert result["wishlist"] == [{"itemId": str(catalog["movie"]), "itemType": "Movie"}]
        user = db["user"].find_one({"clerkId": "user_1"})
        assert user["email"] == PLACEHOLDER_EMAIL

    def test_second_toggle_removes(self, db, catalog):
        toggle_wishlist(db, "user_1", str(catalog["movie"]), EntityKind.MOVIE)
        result = toggle_wishlist(db, "user_1", str(catalog["movie"]), EntityKind.MOVIE)

        assert result["message"] == "Removed from Hotlist"
        assert result["wishlist"] == []

    def test_same_id_with_other_type_is_a_separate_entry(self, db, catalog):
        item = str(catalog["movie"])
        toggle_wishlist(db, "user_1", item, EntityKind.MOVIE)
        result = toggle_wishlist(db, "user_1", item, EntityKind.EVENT)

        assert result["message"] == "Added to Hotlist"
        assert len(result["wishlist"]) == 2

    def test_existing_user_keeps_email(self, db, catalog):
        db["user"].insert_one({"clerkId": "user_1", "email": "real@example.com", "wishlist": []})

        toggle_wishlist(db, "user_1", str(catalog["event"]), EntityKind.EVENT)

        assert db["user"].find_one({"clerkId": "user_1"})["email"] == "real@example.com"
        assert db["user"].count_documents({"clerkId": "user_1"}) == 1


class TestGetWishlist:
    def test_unknown_user_is_empty(self, db, catalog):
        assert get_wishlist(db, "nobody") == []

    def test_entries_carry_details(self, db, catalog):
        toggle_wishlist(db, "user_1", str(catalog["restaurant"]), EntityKind.RESTAURANT)
        toggle_wishlist(db, "user_1", str(catalog["activity"]), EntityKind.ACTIVITY)

        items = get_wishlist(db, "user_1")

        assert [i["details"]["title"] for i in items] == ["Paradise Biryani", "Go Karting"]
        assert items[0]["itemType"] == "Restaurant"

    def test_stale_entries_are_dropped(self, db, catalog):
        toggle_wishlist(db, "user_1", str(catalog["movie"]), EntityKind.MOVIE)
        toggle_wishlist(db, "user_1", str(catalog["store"]), EntityKind.STORE)
        db["movie"].delete_one({"_id": catalog["movie"]})

        items = get_wishlist(db, "user_1")

        stored = db["user"].find_one({"clerkId": "user_1"})["wishlist"]
        assert len(stored) == 2
        assert len(items) == 1
        assert items[0]["details"]["slug"] == "crossword-books"
        assert all(i["details"] is not None for i in items)


class TestWishlistRoutes:
    def test_toggle_round_trip(self, client, catalog):
        body = {"clerkId": "user_1", "itemId": str(catalog["movie"]), "itemType": "Movie"}

        added = client.post("/api/users/wishlist/toggle", json=body)
        removed = client.post("/api/users/wishlist/toggle", json=body)

        assert added.json()["message"] == "Added to Hotlist"
        assert removed.json()["message"] == "Removed from Hotlist"
        assert client.get("/api/users/wishlist/user_1").json() == []

    def test_accepts_user_id_field(self, client, catalog):
        body = {"userId": "user_2", "itemId": str(catalog["event"]), "itemType": "Event"}
        response = client.post("/api/users/wishlist/toggle", json=body)

        assert response.status_code == 200
        assert client.get("/api/users/wishlist/user_2").json()[0]["details"]["title"] == "Sunburn Arena"

    def test_rejects_unknown_item_type(self, client, catalog):
        body = {"clerkId": "user_1", "itemId": str(catalog["movie"]), "itemType": "Trailer"}
        assert client.post("/api/users/wishlist/toggle", json=body).status_code == 422

    def test_rejects_malformed_item_id(self, client):
        body = {"clerkId": "user_1", "itemId": "not-an-id", "itemType": "Movie"}
        assert client.post("/api/users/wishlist/toggle", json=body).status_code == 400

    def test_unused_id_is_still_accepted(self, client):
        body = {"clerkId": "user_1", "itemId": str(ObjectId()), "itemType": "Movie"}
        response = client.post("/api/users/wishlist/toggle", json=body)

        assert response.status_code == 200
        assert client.get("/api/users/wishlist/user_1").json() == []
