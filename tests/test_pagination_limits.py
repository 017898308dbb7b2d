import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:////tmp/promo_rules_test.db")
os.environ.setdefault("AUTO_CREATE_DB", "true")
os.environ.setdefault("AUTO_RUN_MIGRATIONS", "false")
os.environ.setdefault("AUTO_SEED_RULES", "false")
os.environ.setdefault("PROMO_AUTH_DISABLED", "true")

from fastapi.testclient import TestClient

from promo_rules.main import create_app
from promo_rules.core.db import SessionLocal
from promo_rules.core.pagination import clamp_page_size, page_window
from promo_rules.services.rules import create_rule


def _client() -> TestClient:
    app = create_app()
    return TestClient(app)


def _seed_rules(tag: str, count: int) -> None:
    with SessionLocal() as db:
        for i in range(count):
            create_rule(
                db,
                {
                    "name": f"Paged {tag} {i:02d}",
                    "salience": i,
                    "stackable": True,
                    "condition_json": {"field": "line.quantity", "operator": ">", "value": i},
                    "action_json": {"type": "applyPercent", "args": [5]},
                },
            )


def test_page_size_capped(monkeypatch):
    monkeypatch.setenv("API_MAX_PAGE_SIZE", "5")
    tag = uuid.uuid4().hex[:8]
    with _client() as client:
        _seed_rules(tag, 12)
        resp = client.get(f"/api/v1/rules?search={tag}&page_size=100")
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["items"]) == 5
        assert body["total"] == 12
        assert body["summary"]["total_rules"] == 12
        assert resp.headers.get("X-Page-Size") == "5"
        assert resp.headers.get("X-Total-Count") == "12"

        last = client.get(f"/api/v1/rules?search={tag}&page_size=5&page=3").json()
        assert [item["name"] for item in last["items"]] == [f"Paged {tag} 10", f"Paged {tag} 11"]


def test_negative_page_rejected():
    with _client() as client:
        resp = client.get("/api/v1/rules?page=-1")
        assert resp.status_code == 422
        resp = client.get("/api/v1/rules?page_size=0")
        assert resp.status_code == 422


def test_clamp_and_paginate_helpers(monkeypatch):
    monkeypatch.setenv("API_MAX_PAGE_SIZE", "not-a-number")
    assert clamp_page_size(500) == 200
    assert clamp_page_size(0) == 1
    window = page_window(2, 2)
    assert window.offset == 2
    assert window.slice([1, 2, 3, 4, 5]) == [3, 4]
    assert page_window(0, 10).page == 1
