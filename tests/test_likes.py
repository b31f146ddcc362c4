class TestToggleLike:
    def test_video_like_toggles(self, client, make_user, publish_video, mongo_db):
        ada = make_user("ada")
        grace = make_user("grace")
        video = publish_video(ada)

        liked = client.post(f"/likes/toggle/v/{video['id']}", headers=grace["headers"])
        assert liked.status_code == 201
        assert liked.json()["data"] == {"isLiked": True}
        assert mongo_db["like"].count_documents({}) == 1

        unliked = client.post(f"/likes/toggle/v/{video['id']}", headers=grace["headers"])
        assert unliked.status_code == 200
        assert unliked.json()["data"] == {"isLiked": False}
        assert mongo_db["like"].count_documents({}) == 0

    def test_tweet_and_comment_likes(self, client, make_user, publish_video):
        ada = make_user("ada")
        video = publish_video(ada)
        tweet = client.post("/tweets", json={"content": "hello"}, headers=ada["headers"]).json()["data"]
        comment = client.post(f"/comments/{video['id']}", json={"content": "hey"}, headers=ada["headers"]).json()["data"]

        assert client.post(f"/likes/toggle/t/{tweet['id']}", headers=ada["headers"]).status_code == 201
        assert client.post(f"/likes/toggle/c/{comment['id']}", headers=ada["headers"]).status_code == 201

    def test_likes_are_per_user(self, client, make_user, publish_video, mongo_db):
        ada = make_user("ada")
        grace = make_user("grace")
        video = publish_video(ada)
        client.post(f"/likes/toggle/v/{video['id']}", headers=ada["headers"])
        client.post(f"/likes/toggle/v/{video['id']}", headers=grace["headers"])
        assert mongo_db["like"].count_documents({"video": {"$ne": None}}) == 2

    def test_missing_target(self, client, make_user):
        ada = make_user("ada")
        response = client.post("/likes/toggle/t/0123456789abcdef01234567", headers=ada["headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "Tweet not found"


class TestLikedVideos:
    def test_lists_only_liked_videos_newest_first(self, client, make_user, publish_video):
        ada = make_user("ada")
        first = publish_video(ada, title="First")
        second = publish_video(ada, title="Second")
        publish_video(ada, title="Ignored")
        tweet = client.post("/tweets", json={"content": "hello"}, headers=ada["headers"]).json()["data"]

        client.post(f"/likes/toggle/v/{first['id']}", headers=ada["headers"])
        client.post(f"/likes/toggle/v/{second['id']}", headers=ada["headers"])
        client.post(f"/likes/toggle/t/{tweet['id']}", headers=ada["headers"])

        liked = client.get("/likes/videos", headers=ada["headers"]).json()["data"]
        assert [entry["video"]["title"] for entry in liked] == ["Second", "First"]
        assert "liked_at" in liked[0]

    def test_nothing_liked(self, client, make_user):
        ada = make_user("ada")
        response = client.get("/likes/videos", headers=ada["headers"])
        assert response.status_code == 200
        assert response.json()["data"] == []
