from fastapi.testclient import TestClient

from models.delivery_platform import DeliveryPlatform
from models.platform_link import PlatformLink
from app import app
from config import settings
from services.platform_catalog import PLATFORMS, seed_platforms


def test_seed_is_idempotent(db):
    seed_platforms(db)
    seed_platforms(db)

    assert db.query(DeliveryPlatform).count() == len(PLATFORMS)


def test_manual_seed_retires_unknown_platforms_and_their_links(client, db, worker):
    legacy = DeliveryPlatform(name="Legacy Courier", slug="legacy-courier", is_active=True)
    db.add(legacy)
    db.commit()
    db.add(PlatformLink(user_id=worker["user"]["id"], platform_id=legacy.platform_id, is_active=True))
    db.commit()

    seed_platforms(db, retire_unlisted=True)
    db.expire_all()

    assert db.query(DeliveryPlatform).filter_by(slug="legacy-courier").one().is_active is False
    assert db.query(PlatformLink).filter_by(platform_id=legacy.platform_id).one().is_active is False


def test_list_platforms_is_public_and_alphabetical(client, platforms):
    response = client.get("/api/platforms")

    assert response.status_code == 200
    names = [p["name"] for p in response.json()["platforms"]]
    assert names == sorted(names)
    assert len(names) == len(PLATFORMS)


def test_search_matches_name_or_slug_case_insensitively(client, platforms):
    by_name = client.get("/api/platforms/search", params={"q": "DOOR"}).json()["platforms"]
    by_slug = client.get("/api/platforms/search", params={"q": "uber-"}).json()["platforms"]

    assert [p["slug"] for p in by_name] == ["doordash"]
    assert [p["slug"] for p in by_slug] == ["uber-eats"]


def test_get_platform_by_slug(client, platforms):
    response = client.get("/api/platforms/amazon-flex")
    assert response.status_code == 200
    assert response.json()["platform"]["androidPackage"] == "com.amazon.flex.rabbit"

    missing = client.get("/api/platforms/nope")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Platform not found"}


def test_create_platform_requires_super_admin(client, worker):
    response = client.post("/api/platforms", headers=worker["headers"], json={"name": "Spark", "slug": "spark"})
    assert response.status_code == 403


def test_super_admin_creates_platform(client, super_admin, platforms):
    payload = {"name": "Spark Driver", "slug": "spark", "webPortalUrl": "https://spark.example.com"}
    response = client.post("/api/platforms", headers=super_admin["headers"], json=payload)

    assert response.status_code == 201
    assert response.json()["platform"]["slug"] == "spark"

    duplicate = client.post("/api/platforms", headers=super_admin["headers"], json=payload)
    assert duplicate.status_code == 409


def test_startup_seed_keeps_platforms_added_through_the_api(client, db, super_admin, worker, monkeypatch):
    created = client.post("/api/platforms", headers=super_admin["headers"], json={"name": "Spark Driver", "slug": "spark"})
    assert created.status_code == 201
    platform_id = created.json()["platform"]["id"]
    linked = client.post("/api/dashboard/link", headers=worker["headers"], json={"platformId": platform_id})
    assert linked.status_code == 201

    monkeypatch.setattr(settings, "SEED_PLATFORMS_ON_STARTUP", True)
    with TestClient(app):
        pass

    slugs = [p["slug"] for p in client.get("/api/platforms").json()["platforms"]]
    assert "spark" in slugs
    assert set(p["slug"] for p in PLATFORMS) <= set(slugs)

    links = client.get("/api/dashboard", headers=worker["headers"]).json()["platformLinks"]
    assert [l["platformId"] for l in links] == [platform_id]
