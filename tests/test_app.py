"""HTTP routes mounted over the registry."""

import pytest
from fastapi.testclient import TestClient

from conduit.api.app import create_app
from conduit.services.seed.service import SeedService


ORIGIN = "http://localhost:3000"


@pytest.fixture
def client(registry):
    SeedService(registry).seed()
    return TestClient(create_app(registry, [ORIGIN]))


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_tags(client):
    assert client.get("/api/tags").json() == {"tags": ["databases", "dragons", "http", "python", "training"]}


def test_list_articles_by_tag_and_author(client):
    by_tag = client.get("/api/articles", params={"tag": "python"}).json()
    assert by_tag["articles_count"] == 2
    by_author = client.get("/api/articles", params={"author": "zakoooo"}).json()
    assert [article["title"] for article in by_author["articles"]] == ["Reading CORS errors"]


def test_article_and_comments(client):
    article = client.get("/api/articles/how-to-train-your-dragon").json()
    assert article["author"] == "stallen"
    assert article["favorites_count"] == 1

    comments = client.get("/api/articles/reading-cors-errors/comments").json()["comments"]
    assert [comment["author"] for comment in comments] == ["zakoooo", "stallen"]


def test_unknown_resources_are_404(client):
    assert client.get("/api/articles/nope").status_code == 404
    assert client.get("/api/articles/nope/comments").status_code == 404
    assert client.get("/api/profiles/nobody").status_code == 404


def test_profile(client):
    profile = client.get("/api/profiles/stallen").json()
    assert profile["username"] == "stallen"
    assert profile["following"] is False


def test_cors_allows_configured_origin_only(client):
    allowed = client.get("/api/tags", headers={"Origin": ORIGIN})
    assert allowed.headers["access-control-allow-origin"] == ORIGIN

    denied = client.get("/api/tags", headers={"Origin": "http://evil.test"})
    assert "access-control-allow-origin" not in denied.headers

    preflight = client.options(
        "/api/articles",
        headers={"Origin": ORIGIN, "Access-Control-Request-Method": "GET"},
    )
    assert preflight.status_code == 200


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"x-request-id": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"
    assert client.get("/health").headers["x-request-id"]


def test_metrics_endpoint_reports_requests(client):
    client.get("/api/tags")
    body = client.get("/metrics").text
    assert "http_requests_total" in body
    assert 'route="/api/tags"' in body
