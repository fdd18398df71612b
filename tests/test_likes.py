import uuid

from fastapi.testclient import TestClient
from sqlalchemy import delete

import api.likes.toggle as toggle_module
from api.db.models import Video


def _toggle(client: TestClient, user: dict, kind: str, target_id: str) -> dict:
    r = client.post(f"/api/likes/toggle/{kind}/{target_id}", headers=user["headers"])
    assert r.status_code == 200, r.text
    return r.json()


def test_two_users_toggling_a_video(client: TestClient, signup, publish):
    u = signup("likeru")
    w = signup("likerw")
    video = publish(u)

    body = _toggle(client, u, "v", video["id"])
    assert body["data"] == {"is_liked": True, "total_likes": 1}
    assert body["message"] == "Video liked successfully"

    body = _toggle(client, w, "v", video["id"])
    assert body["data"] == {"is_liked": True, "total_likes": 2}

    body = _toggle(client, u, "v", video["id"])
    assert body["data"] == {"is_liked": False, "total_likes": 1}
    assert body["message"] == "Video unliked successfully"

    body = _toggle(client, u, "v", video["id"])
    assert body["data"] == {"is_liked": True, "total_likes": 2}


def test_toggling_twice_restores_state(client: TestClient, signup, publish):
    user = signup("twice")
    video = publish(user)

    first = _toggle(client, user, "v", video["id"])["data"]
    second = _toggle(client, user, "v", video["id"])["data"]
    assert first["is_liked"] is not second["is_liked"]
    assert second["total_likes"] == 0


def test_comment_and_tweet_likes(client: TestClient, signup, publish):
    user = signup("socialliker")
    video = publish(user)
    comment = client.post(
        f"/api/comments/{video['id']}", headers=user["headers"], json={"content": "great"}
    ).json()["data"]
    tweet = client.post("/api/tweets/", headers=user["headers"], json={"content": "hi"}).json()["data"]

    body = _toggle(client, user, "c", comment["id"])
    assert body["data"] == {"is_liked": True, "total_likes": 1}
    assert body["message"] == "Comment liked successfully"

    body = _toggle(client, user, "t", tweet["id"])
    assert body["data"] == {"is_liked": True, "total_likes": 1}
    assert body["message"] == "Tweet liked successfully"

    # Likes on one target kind do not leak into another
    body = _toggle(client, user, "v", video["id"])
    assert body["data"]["total_likes"] == 1


def test_like_missing_target(client: TestClient, signup):
    user = signup("ghostliker")
    for kind, message in (("v", "Video not found"), ("c", "Comment not found"), ("t", "Tweet not found")):
        r = client.post(f"/api/likes/toggle/{kind}/{uuid.uuid4()}", headers=user["headers"])
        assert r.status_code == 404
        assert r.json()["message"] == message


def test_concurrent_insert_is_reported_as_liked(client: TestClient, signup, publish, monkeypatch):
    user = signup("racer")
    video = publish(user)
    _toggle(client, user, "v", video["id"])

    # The existence check misses the row another request just wrote
    monkeypatch.setattr(toggle_module, "_find_like", lambda *args: None)
    body = _toggle(client, user, "v", video["id"])
    assert body["data"] == {"is_liked": True, "total_likes": 1}


def test_liked_videos_lists_only_published(client: TestClient, signup, publish):
    creator = signup("creator")
    fan = signup("fan")
    shown = publish(creator, title="Shown")
    hidden = publish(creator, title="Hidden")

    _toggle(client, fan, "v", shown["id"])
    _toggle(client, fan, "v", hidden["id"])
    r = client.patch(f"/api/videos/toggle/publish/{hidden['id']}", headers=creator["headers"])
    assert r.json()["data"]["is_published"] is False

    r = client.get("/api/likes/videos", headers=fan["headers"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["totalItems"] == 1
    assert [item["title"] for item in data["items"]] == ["Shown"]
    assert data["items"][0]["thumbnail"]["url"].startswith("https://media.test/")

    r = client.get("/api/likes/videos", headers=creator["headers"])
    assert r.json()["data"]["items"] == []


def test_target_deleted_before_insert_is_not_found(client: TestClient, signup, publish, monkeypatch):
    user = signup("latecomer")
    video = publish(user)
    _toggle(client, user, "v", video["id"])

    # The video disappears between the existence check and the insert
    def _find_after_delete(session, target, target_id, user_id):
        session.exec(delete(Video).where(Video.id == target_id))
        session.commit()
        return None

    monkeypatch.setattr(toggle_module, "_find_like", _find_after_delete)
    r = client.post(f"/api/likes/toggle/v/{video['id']}", headers=user["headers"])
    assert r.status_code == 404
    assert r.json()["message"] == "Video not found"
