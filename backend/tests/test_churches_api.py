# backend/tests/test_churches_api.py
from __future__ import annotations


def test_create_and_read_church(client):
    r = client.post(
        "/churches/",
        json={"name": "Iglesia Bautista", "responsible": "Pr. Vega", "membership_count": 999},
    )
    assert r.status_code == 201, r.text
    church = r.json()
    assert church["membership_count"] == 0
    assert church["avg_weekly_attendance"] == 0

    r = client.get(f"/churches/{church['id']}")
    assert r.status_code == 200
    assert r.json()["name"] == "Iglesia Bautista"
    assert any(c["id"] == church["id"] for c in client.get("/churches/").json())


def test_patch_cannot_write_aggregates(client, make_church):
    church = make_church()
    r = client.patch(f"/churches/{church.id}", json={"name": "Renombrada", "ordained_preachers": 7})
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Renombrada"
    assert r.json()["ordained_preachers"] == 0


def test_stats_read_is_stored_snapshot(client, make_church):
    church = make_church()
    r = client.get(f"/churches/{church.id}/stats")
    assert r.status_code == 200
    stats = r.json()
    assert stats["church_id"] == church.id
    assert stats["membership_count"] == 0
    assert stats["reference_year"] == 2025


def test_unknown_church(client):
    r = client.get("/churches/9999/stats")
    assert r.status_code == 404
    assert r.json()["category"] == "not_found"

    r = client.post("/members/", json={"first_name": "A", "last_name": "B"}, headers={"X-Church-Id": "9999"})
    assert r.status_code == 404


def test_delete_church_cascades(client, make_church):
    church = make_church()
    h = {"X-Church-Id": str(church.id)}
    client.post("/members/", json={"first_name": "A", "last_name": "B"}, headers=h)
    client.post("/weekly-attendance/", json={"week_date": "2025-01-05", "attendance_count": 12}, headers=h)

    r = client.delete(f"/churches/{church.id}")
    assert r.status_code == 204
    assert client.get(f"/churches/{church.id}").status_code == 404
    assert client.get("/members/", headers=h).json()["total"] == 0


def test_health_and_version(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["db"]["status"] == "ok"

    r = client.get("/version")
    assert r.status_code == 200
    assert r.json()["reference_year"] == 2025
