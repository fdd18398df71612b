import uuid

from fastapi.testclient import TestClient

from api.errors import AuthorizationError
from api.ownership import is_owner, require_owner


def test_is_owner_matches_any_reference():
    alice, bob = uuid.uuid4(), uuid.uuid4()
    assert is_owner(alice, alice)
    assert is_owner(alice, bob, alice)
    assert not is_owner(alice, bob)
    assert not is_owner(alice, None)
    assert not is_owner(alice)


def test_require_owner_names_the_action():
    try:
        require_owner(uuid.uuid4(), uuid.uuid4(), action="delete this tweet")
    except AuthorizationError as e:
        assert e.status_code == 403
        assert e.message == "You are not allowed to delete this tweet"
    else:
        raise AssertionError("expected AuthorizationError")


def _comment(client: TestClient, user: dict, video: dict, content: str = "hello") -> dict:
    r = client.post(f"/api/comments/{video['id']}", headers=user["headers"], json={"content": content})
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_comment_deletion_by_author_video_owner_and_stranger(client: TestClient, signup, publish):
    owner = signup("channel")
    author = signup("viewer")
    stranger = signup("stranger")
    video = publish(owner)

    first = _comment(client, author, video, "first")
    second = _comment(client, author, video, "second")

    r = client.delete(f"/api/comments/c/{first['id']}", headers=stranger["headers"])
    assert r.status_code == 403
    assert r.json()["message"] == "You are not allowed to delete this comment"

    r = client.delete(f"/api/comments/c/{first['id']}", headers=author["headers"])
    assert r.status_code == 200

    r = client.delete(f"/api/comments/c/{second['id']}", headers=owner["headers"])
    assert r.status_code == 200

    r = client.get(f"/api/comments/{video['id']}")
    assert r.json()["data"]["totalItems"] == 0


def test_only_author_updates_comment(client: TestClient, signup, publish):
    owner = signup("channel2")
    author = signup("viewer2")
    video = publish(owner)
    comment = _comment(client, author, video)

    r = client.patch(f"/api/comments/c/{comment['id']}", headers=owner["headers"], json={"content": "edited"})
    assert r.status_code == 403

    r = client.patch(f"/api/comments/c/{uuid.uuid4()}", headers=author["headers"], json={"content": "edited"})
    assert r.status_code == 404

    r = client.patch(f"/api/comments/c/{comment['id']}", headers=author["headers"], json={"content": "edited"})
    assert r.status_code == 200
    assert r.json()["data"]["content"] == "edited"


def test_video_mutations_require_owner(client: TestClient, signup, publish, media):
    owner = signup("vidowner")
    other = signup("vidother")
    video = publish(owner)

    r = client.patch(f"/api/videos/{video['id']}", headers=other["headers"], data={"title": "mine now"})
    assert r.status_code == 403
    r = client.patch(f"/api/videos/toggle/publish/{video['id']}", headers=other["headers"])
    assert r.status_code == 403
    r = client.delete(f"/api/videos/{video['id']}", headers=other["headers"])
    assert r.status_code == 403
    assert media.deleted == []

    r = client.get(f"/api/videos/{video['id']}")
    assert r.json()["data"]["title"] == "My video"


def test_playlist_and_tweet_mutations_require_owner(client: TestClient, signup, publish):
    owner = signup("listowner")
    other = signup("listother")
    video = publish(owner)

    r = client.post("/api/playlists/", headers=owner["headers"], json={"name": "Mine", "description": "d"})
    playlist = r.json()["data"]
    r = client.post("/api/tweets/", headers=owner["headers"], json={"content": "hello"})
    tweet = r.json()["data"]

    checks = [
        client.patch(f"/api/playlists/{playlist['id']}", headers=other["headers"], json={"name": "Theirs"}),
        client.delete(f"/api/playlists/{playlist['id']}", headers=other["headers"]),
        client.patch(f"/api/playlists/add/{video['id']}/{playlist['id']}", headers=other["headers"]),
        client.patch(f"/api/playlists/remove/{video['id']}/{playlist['id']}", headers=other["headers"]),
        client.patch(f"/api/tweets/{tweet['id']}", headers=other["headers"], json={"content": "hijack"}),
        client.delete(f"/api/tweets/{tweet['id']}", headers=other["headers"]),
    ]
    for r in checks:
        assert r.status_code == 403, r.text
        assert r.json()["success"] is False


def test_mutations_require_authentication(client: TestClient, signup, publish):
    user = signup("anon-check")
    video = publish(user)

    assert client.delete(f"/api/videos/{video['id']}").status_code == 401
    assert client.post(f"/api/likes/toggle/v/{video['id']}").status_code == 401
    assert client.post("/api/tweets/", json={"content": "x"}).status_code == 401
    assert client.get("/api/likes/videos").status_code == 401
