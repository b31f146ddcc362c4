import pytest


@pytest.fixture
def video_with_viewers(make_user, publish_video):
    ada = make_user("ada")
    grace = make_user("grace")
    return ada, grace, publish_video(ada)


class TestComments:
    def test_add_and_list_newest_first(self, client, video_with_viewers):
        ada, grace, video = video_with_viewers
        first = client.post(f"/comments/{video['id']}", json={"content": "first!"}, headers=grace["headers"])
        assert first.status_code == 201
        assert first.json()["data"]["owner"] == grace["id"]
        client.post(f"/comments/{video['id']}", json={"content": "thanks"}, headers=ada["headers"])

        data = client.get(f"/comments/{video['id']}", headers=ada["headers"]).json()["data"]
        assert data["totalCount"] == 2
        assert [c["content"] for c in data["comments"]] == ["thanks", "first!"]
        assert data["comments"][1]["owner"]["username"] == "grace"

    def test_pagination(self, client, video_with_viewers):
        ada, _, video = video_with_viewers
        for i in range(3):
            client.post(f"/comments/{video['id']}", json={"content": f"c{i}"}, headers=ada["headers"])
        data = client.get(f"/comments/{video['id']}", params={"page": 2, "limit": 2}, headers=ada["headers"]).json()["data"]
        assert [c["content"] for c in data["comments"]] == ["c0"]
        assert data["page"] == 2

    def test_no_comments_is_an_empty_page(self, client, video_with_viewers):
        ada, _, video = video_with_viewers
        response = client.get(f"/comments/{video['id']}", headers=ada["headers"])
        assert response.status_code == 200
        assert response.json()["data"]["comments"] == []

    def test_empty_content_is_rejected(self, client, video_with_viewers):
        ada, _, video = video_with_viewers
        response = client.post(f"/comments/{video['id']}", json={"content": "   "}, headers=ada["headers"])
        assert response.status_code == 400

    def test_comment_on_missing_video(self, client, make_user):
        ada = make_user("ada")
        response = client.post("/comments/0123456789abcdef01234567", json={"content": "hi"}, headers=ada["headers"])
        assert response.status_code == 404

    def test_author_edits_and_deletes(self, client, video_with_viewers, mongo_db):
        ada, grace, video = video_with_viewers
        comment = client.post(f"/comments/{video['id']}", json={"content": "typo"}, headers=grace["headers"]).json()["data"]
        client.post(f"/likes/toggle/c/{comment['id']}", headers=ada["headers"])

        edited = client.patch(f"/comments/c/{comment['id']}", json={"content": "fixed"}, headers=grace["headers"])
        assert edited.status_code == 200
        assert edited.json()["data"]["content"] == "fixed"

        assert client.delete(f"/comments/c/{comment['id']}", headers=grace["headers"]).status_code == 200
        assert mongo_db["comment"].count_documents({}) == 0
        assert mongo_db["like"].count_documents({}) == 0

    def test_only_author_may_modify(self, client, video_with_viewers):
        ada, grace, video = video_with_viewers
        comment = client.post(f"/comments/{video['id']}", json={"content": "mine"}, headers=grace["headers"]).json()["data"]
        assert client.patch(f"/comments/c/{comment['id']}", json={"content": "x"}, headers=ada["headers"]).status_code == 403
        assert client.delete(f"/comments/c/{comment['id']}", headers=ada["headers"]).status_code == 403
