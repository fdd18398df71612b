import uuid

from fastapi.testclient import TestClient


def test_tweet_lifecycle(client: TestClient, signup):
    author = signup("tweeter")
    fan = signup("follower")

    r = client.post("/api/tweets/", headers=author["headers"], json={"content": "  first post "})
    assert r.status_code == 201
    tweet = r.json()["data"]
    assert tweet["content"] == "first post"

    client.post(f"/api/likes/toggle/t/{tweet['id']}", headers=fan["headers"])

    r = client.get(f"/api/tweets/user/{author['id']}")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["totalItems"] == 1
    item = data["items"][0]
    assert item["total_likes"] == 1
    assert item["owner"]["username"] == "tweeter"

    r = client.patch(f"/api/tweets/{tweet['id']}", headers=author["headers"], json={"content": "edited"})
    assert r.status_code == 200
    assert r.json()["data"]["content"] == "edited"

    r = client.delete(f"/api/tweets/{tweet['id']}", headers=author["headers"])
    assert r.status_code == 200

    r = client.get(f"/api/tweets/user/{author['id']}")
    assert r.json()["data"]["totalItems"] == 0


def test_tweet_content_validation(client: TestClient, signup):
    user = signup("quiet")
    r = client.post("/api/tweets/", headers=user["headers"], json={"content": "   "})
    assert r.status_code == 400
    assert r.json()["message"] == "Tweet content cannot be empty"

    r = client.post("/api/tweets/", headers=user["headers"], json={"content": "x" * 281})
    assert r.status_code == 400

    r = client.patch(f"/api/tweets/{uuid.uuid4()}", headers=user["headers"], json={"content": "hi"})
    assert r.status_code == 404


def test_user_tweets_newest_first(client: TestClient, signup):
    user = signup("chatty")
    for text in ("one", "two", "three"):
        client.post("/api/tweets/", headers=user["headers"], json={"content": text})

    r = client.get(f"/api/tweets/user/{user['id']}?limit=2")
    data = r.json()["data"]
    assert [item["content"] for item in data["items"]] == ["three", "two"]
    assert data["totalPages"] == 2
