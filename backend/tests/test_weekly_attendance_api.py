# backend/tests/test_weekly_attendance_api.py
from __future__ import annotations


def _h(church_id: int) -> dict:
    return {"X-Church-Id": str(church_id)}


def _post_week(client, church_id, week, count):
    return client.post(
        "/weekly-attendance/",
        json={"week_date": week, "attendance_count": count},
        headers=_h(church_id),
    )


def test_average_tracks_every_write(client, make_church):
    church = make_church()
    assert _post_week(client, church.id, "2025-01-05", 40).status_code == 201
    assert _post_week(client, church.id, "2025-01-12", 60).status_code == 201
    r = _post_week(client, church.id, "2025-01-19", 50)
    assert r.status_code == 201, r.text
    assert r.json()["stats"]["avg_weekly_attendance"] == 50
    rec_id = r.json()["record"]["id"]

    r = client.patch(f"/weekly-attendance/{rec_id}", json={"attendance_count": 80}, headers=_h(church.id))
    assert r.status_code == 200, r.text
    assert r.json()["record"]["attendance_count"] == 80
    assert r.json()["stats"]["avg_weekly_attendance"] == 60

    r = client.delete(f"/weekly-attendance/{rec_id}", headers=_h(church.id))
    assert r.status_code == 200, r.text
    assert r.json()["deleted_id"] == rec_id
    assert r.json()["stats"]["avg_weekly_attendance"] == 50


def test_duplicate_week_is_conflict(client, make_church):
    church = make_church()
    _post_week(client, church.id, "2025-02-02", 30)

    r = _post_week(client, church.id, "2025-02-02", 90)
    assert r.status_code == 409, r.text
    assert r.json()["category"] == "duplicate_week"
    assert client.get(f"/churches/{church.id}/stats").json()["avg_weekly_attendance"] == 30


def test_moving_a_record_onto_a_taken_week_is_conflict(client, make_church):
    church = make_church()
    _post_week(client, church.id, "2025-02-02", 30)
    r = _post_week(client, church.id, "2025-02-09", 50)
    rec_id = r.json()["record"]["id"]

    r = client.patch(f"/weekly-attendance/{rec_id}", json={"week_date": "2025-02-02"}, headers=_h(church.id))
    assert r.status_code == 409
    assert r.json()["category"] == "duplicate_week"


def test_same_week_in_two_churches_is_fine(client, make_church):
    a = make_church("A")
    b = make_church("B")
    assert _post_week(client, a.id, "2025-03-02", 10).status_code == 201
    assert _post_week(client, b.id, "2025-03-02", 90).status_code == 201
    assert client.get(f"/churches/{a.id}/stats").json()["avg_weekly_attendance"] == 10
    assert client.get(f"/churches/{b.id}/stats").json()["avg_weekly_attendance"] == 90


def test_negative_count_rejected(client, make_church):
    church = make_church()
    r = _post_week(client, church.id, "2025-03-02", -1)
    assert r.status_code == 422


def test_list_includes_stored_average(client, make_church):
    church = make_church()
    _post_week(client, church.id, "2024-12-29", 20)
    _post_week(client, church.id, "2025-01-05", 31)

    r = client.get("/weekly-attendance/", headers=_h(church.id))
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 2
    assert body["avg_weekly_attendance"] == 26  # 25.5 rounds up
    assert [rec["week_date"] for rec in body["records"]] == ["2025-01-05", "2024-12-29"]

    r = client.get("/weekly-attendance/?year=2024", headers=_h(church.id))
    assert r.json()["total"] == 1


def test_window_change_on_church_recomputes(client, make_church):
    church = make_church()
    for week, n in [("2025-01-05", 100), ("2025-01-12", 10), ("2025-01-19", 20)]:
        _post_week(client, church.id, week, n)
    assert client.get(f"/churches/{church.id}/stats").json()["avg_weekly_attendance"] == 43

    r = client.patch(f"/churches/{church.id}", json={"attendance_window_weeks": 2})
    assert r.status_code == 200, r.text
    assert r.json()["avg_weekly_attendance"] == 15
