class TestSubscriptions:
    def test_toggle_subscription(self, client, make_user, mongo_db):
        ada = make_user("ada")
        grace = make_user("grace")

        subscribed = client.post(f"/subscriptions/toggle/c/{ada['id']}", headers=grace["headers"])
        assert subscribed.status_code == 201
        assert subscribed.json()["data"] == {"subscribed": True}
        assert mongo_db["subscription"].count_documents({}) == 1

        unsubscribed = client.post(f"/subscriptions/toggle/c/{ada['id']}", headers=grace["headers"])
        assert unsubscribed.status_code == 200
        assert unsubscribed.json()["data"] == {"subscribed": False}
        assert mongo_db["subscription"].count_documents({}) == 0

    def test_cannot_subscribe_to_self(self, client, make_user):
        ada = make_user("ada")
        assert client.post(f"/subscriptions/toggle/c/{ada['id']}", headers=ada["headers"]).status_code == 400

    def test_unknown_channel(self, client, make_user):
        ada = make_user("ada")
        response = client.post("/subscriptions/toggle/c/0123456789abcdef01234567", headers=ada["headers"])
        assert response.status_code == 404

    def test_subscriber_and_channel_lists(self, client, make_user):
        ada = make_user("ada")
        grace = make_user("grace")
        linus = make_user("linus")
        client.post(f"/subscriptions/toggle/c/{ada['id']}", headers=grace["headers"])
        client.post(f"/subscriptions/toggle/c/{ada['id']}", headers=linus["headers"])
        client.post(f"/subscriptions/toggle/c/{linus['id']}", headers=grace["headers"])

        subscribers = client.get(f"/subscriptions/u/{ada['id']}", headers=ada["headers"]).json()["data"]
        assert [s["username"] for s in subscribers] == ["linus", "grace"]
        assert "subscribed_at" in subscribers[0]
        assert "password_hash" not in subscribers[0]

        channels = client.get(f"/subscriptions/c/{grace['id']}", headers=grace["headers"]).json()["data"]
        assert [c["username"] for c in channels] == ["linus", "ada"]

    def test_empty_lists(self, client, make_user):
        ada = make_user("ada")
        response = client.get(f"/subscriptions/u/{ada['id']}", headers=ada["headers"])
        assert response.status_code == 200
        assert response.json()["data"] == []
