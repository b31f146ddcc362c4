class TestTweets:
    def test_create_and_list(self, client, make_user):
        ada = make_user("ada")
        created = client.post("/tweets", json={"content": "hello world"}, headers=ada["headers"])
        assert created.status_code == 201
        assert created.json()["data"]["owner"] == ada["id"]
        client.post("/tweets", json={"content": "second"}, headers=ada["headers"])

        tweets = client.get(f"/tweets/user/{ada['id']}", headers=ada["headers"]).json()["data"]
        assert [t["content"] for t in tweets] == ["second", "hello world"]
        assert tweets[0]["owner"]["username"] == "ada"

    def test_content_is_required(self, client, make_user):
        ada = make_user("ada")
        assert client.post("/tweets", json={}, headers=ada["headers"]).status_code == 400

    def test_edit_and_delete(self, client, make_user, mongo_db):
        ada = make_user("ada")
        grace = make_user("grace")
        tweet = client.post("/tweets", json={"content": "draft"}, headers=ada["headers"]).json()["data"]
        client.post(f"/likes/toggle/t/{tweet['id']}", headers=grace["headers"])

        assert client.patch(f"/tweets/{tweet['id']}", json={"content": "x"}, headers=grace["headers"]).status_code == 403
        edited = client.patch(f"/tweets/{tweet['id']}", json={"content": "final"}, headers=ada["headers"])
        assert edited.json()["data"]["content"] == "final"

        assert client.delete(f"/tweets/{tweet['id']}", headers=grace["headers"]).status_code == 403
        assert client.delete(f"/tweets/{tweet['id']}", headers=ada["headers"]).status_code == 200
        assert mongo_db["tweet"].count_documents({}) == 0
        assert mongo_db["like"].count_documents({}) == 0
        assert client.delete(f"/tweets/{tweet['id']}", headers=ada["headers"]).status_code == 404
