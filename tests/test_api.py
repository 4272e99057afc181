"""Tests for the HTTP control surface."""

import pytest
from fastapi.testclient import TestClient

from affiliate_scout.adapters.search_oracle import NullSearchOracle
from affiliate_scout.main import create_app


ACME_HOME = '<html><body><a href="/affiliates">Affiliate Program</a></body></html>'
ACME_AFFILIATES = "<html><body><p>Get 15% commission per sale.</p></body></html>"


@pytest.fixture
def client(web, store):
    web.pages.update({
        "https://acme.test": ACME_HOME,
        "https://acme.test/affiliates": ACME_AFFILIATES,
    })
    store.add({"id": "acme-1", "tool_name": "Acme", "website_url": "acme.test"})
    app = create_app(store=store, fetch_client=web.client(), search_oracle=NullSearchOracle())
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_pending_count(client):
    response = client.get("/api/subjects/pending/count")
    assert response.json() == {"pending": 1}


def test_run_batch(client, store):
    response = client.post("/api/batches", json={"batch_size": 5})

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 1
    assert payload["successful"] == 1
    assert payload["failed"] == 0
    assert store.row("acme-1")["affiliate_url"] == "https://acme.test/affiliates"
    assert store.row("acme-1")["commission"] == "15% commission per sale"


def test_run_batch_rejects_out_of_range_size(client):
    response = client.post("/api/batches", json={"batch_size": 2})
    assert response.status_code == 422


def test_discover_single_subject(client):
    response = client.post("/api/subjects/acme-1/discover")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "Found"
    assert payload["outreach_status"] == "Affiliate Found"
    assert payload["stage"] == "homepage_scan"
    assert payload["affiliate_url"] == "https://acme.test/affiliates"
    assert payload["trace_id"]


def test_discover_unknown_subject(client):
    response = client.post("/api/subjects/missing/discover")
    assert response.status_code == 404


def test_reset_subject(client, store):
    client.post("/api/subjects/acme-1/discover")

    response = client.post("/api/subjects/acme-1/reset")

    assert response.status_code == 200
    row = store.row("acme-1")
    assert row["status"] == "Pending"
    assert row["affiliate_url"] is None


def test_reset_by_status(client, store):
    client.post("/api/subjects/acme-1/discover")

    response = client.post("/api/subjects/reset", json={"status": "Found"})

    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert store.row("acme-1")["status"] == "Pending"


def test_reset_by_unknown_status(client):
    response = client.post("/api/subjects/reset", json={"status": "Archived"})
    assert response.status_code == 422


def test_stop_when_auto_run_idle(client):
    response = client.delete("/api/batches/auto")
    assert response.status_code == 404


def test_auto_run_status_when_idle(client):
    response = client.get("/api/batches/auto")

    assert response.status_code == 200
    assert response.json()["running"] is False
