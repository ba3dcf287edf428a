# backend/tests/test_event_roster.py
from __future__ import annotations

import pytest

from app.models import EventAttendee


def _h(church_id: int) -> dict:
    return {"X-Church-Id": str(church_id)}


def _member(client, church_id, first, **extra):
    r = client.post("/members/", json={"first_name": first, "last_name": "Reyes", **extra}, headers=_h(church_id))
    assert r.status_code == 201, r.text
    return r.json()["member"]["id"]


def _event(client, church_id, start="2025-03-02T10:00:00", **extra):
    payload = {"title": "Culto dominical", "event_type": "service", "start_date": start, **extra}
    r = client.post("/events/", json=payload, headers=_h(church_id))
    assert r.status_code == 201, r.text
    return r.json()["event"]["id"]


@pytest.fixture
def setup(client, make_church):
    church = make_church()
    m1 = _member(client, church.id, "Ana")
    m2 = _member(client, church.id, "Beto")
    m3 = _member(client, church.id, "Carla")
    ev = _event(client, church.id)
    return church.id, ev, (m1, m2, m3)


def test_replace_roster_end_to_end(client, db, setup):
    church_id, ev, (m1, m2, _m3) = setup
    body = {
        "attendees": [
            {"member_id": m1, "attended": True},
            {"member_id": m2, "attended": True, "made_faith_decision": True},
        ]
    }
    r = client.put(f"/events/{ev}/attendees", json=body, headers=_h(church_id))
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["attendee_count"] == 2
    assert data["faith_decision_count"] == 1
    assert data["attended_count"] == 2
    assert data["stats"]["faith_decisions_year"] == 1

    rows = db.query(EventAttendee).filter(EventAttendee.event_id == ev).all()
    assert sorted(r.member_id for r in rows) == sorted([m1, m2])

    r = client.get(f"/events/{ev}", headers=_h(church_id))
    assert r.status_code == 200
    assert r.json()["attendees_count"] == 2
    assert r.json()["faith_decisions"] == 1
    assert len(r.json()["attendees"]) == 2


def test_replace_overwrites_previous_roster(client, setup):
    church_id, ev, (m1, m2, m3) = setup
    first = {"attendees": [{"member_id": m1, "made_faith_decision": True}, {"member_id": m2}]}
    assert client.put(f"/events/{ev}/attendees", json=first, headers=_h(church_id)).status_code == 200

    second = {"attendees": [{"member_id": m3}]}
    r = client.put(f"/events/{ev}/attendees", json=second, headers=_h(church_id))
    assert r.status_code == 200, r.text
    assert r.json()["attendee_count"] == 1
    assert r.json()["stats"]["faith_decisions_year"] == 0

    r = client.get(f"/events/{ev}/attendees", headers=_h(church_id))
    assert [a["member_id"] for a in r.json()] == [m3]


def test_same_roster_twice_is_harmless(client, setup):
    church_id, ev, (m1, m2, _m3) = setup
    body = {"attendees": [{"member_id": m1}, {"member_id": m2, "made_faith_decision": True}]}
    r1 = client.put(f"/events/{ev}/attendees", json=body, headers=_h(church_id))
    r2 = client.put(f"/events/{ev}/attendees", json=body, headers=_h(church_id))
    assert r1.status_code == r2.status_code == 200
    assert r1.json()["stats"] == r2.json()["stats"]
    assert len(client.get(f"/events/{ev}/attendees", headers=_h(church_id)).json()) == 2


def test_empty_roster_clears_event(client, setup):
    church_id, ev, (m1, _m2, _m3) = setup
    client.put(
        f"/events/{ev}/attendees",
        json={"attendees": [{"member_id": m1, "made_faith_decision": True}]},
        headers=_h(church_id),
    )
    r = client.put(f"/events/{ev}/attendees", json={"attendees": []}, headers=_h(church_id))
    assert r.status_code == 200, r.text
    assert r.json()["attendee_count"] == 0
    assert r.json()["stats"]["faith_decisions_year"] == 0
    assert client.get(f"/events/{ev}/attendees", headers=_h(church_id)).json() == []


def test_duplicate_member_rejected_and_roster_kept(client, setup):
    church_id, ev, (m1, m2, _m3) = setup
    keep = {"attendees": [{"member_id": m2, "made_faith_decision": True}]}
    assert client.put(f"/events/{ev}/attendees", json=keep, headers=_h(church_id)).status_code == 200

    bad = {"attendees": [{"member_id": m1}, {"member_id": m1, "made_faith_decision": True}]}
    r = client.put(f"/events/{ev}/attendees", json=bad, headers=_h(church_id))
    assert r.status_code == 422, r.text
    assert r.json()["category"] == "duplicate_attendee"
    assert r.json()["member_ids"] == [m1]

    rows = client.get(f"/events/{ev}/attendees", headers=_h(church_id)).json()
    assert [a["member_id"] for a in rows] == [m2]
    stats = client.get(f"/churches/{church_id}/stats").json()
    assert stats["faith_decisions_year"] == 1


def test_member_from_another_church_rejected(client, make_church, setup):
    church_id, ev, (m1, _m2, _m3) = setup
    other = make_church("Otra Iglesia")
    outsider = _member(client, other.id, "Diego")

    body = {"attendees": [{"member_id": m1}, {"member_id": outsider}]}
    r = client.put(f"/events/{ev}/attendees", json=body, headers=_h(church_id))
    assert r.status_code == 422, r.text
    assert r.json()["category"] == "cross_tenant_reference"
    assert client.get(f"/events/{ev}/attendees", headers=_h(church_id)).json() == []


def test_unknown_member_is_not_found(client, setup):
    church_id, ev, _members = setup
    r = client.put(f"/events/{ev}/attendees", json={"attendees": [{"member_id": 999999}]}, headers=_h(church_id))
    assert r.status_code == 404
    assert r.json()["category"] == "not_found"


def test_event_of_another_church_is_not_found(client, make_church, setup):
    _church_id, ev, (m1, _m2, _m3) = setup
    other = make_church("Otra Iglesia")
    r = client.put(f"/events/{ev}/attendees", json={"attendees": []}, headers=_h(other.id))
    assert r.status_code == 404
    assert r.json()["category"] == "not_found"


def test_non_positive_member_id_is_validation_error(client, setup):
    church_id, ev, _members = setup
    r = client.put(f"/events/{ev}/attendees", json={"attendees": [{"member_id": 0}]}, headers=_h(church_id))
    assert r.status_code == 422


def test_second_replace_rewrites_rows(client, db, setup):
    church_id, ev, (m1, m2, _m3) = setup
    client.put(f"/events/{ev}/attendees", json={"attendees": [{"member_id": m1}]}, headers=_h(church_id))

    body = {
        "attendees": [
            {"member_id": m1, "made_faith_decision": True},
            {"member_id": m2, "attended": False},
        ]
    }
    r = client.put(f"/events/{ev}/attendees", json=body, headers=_h(church_id))
    assert r.status_code == 200, r.text
    assert r.json()["attendee_count"] == 2
    assert r.json()["faith_decision_count"] == 1
    assert r.json()["attended_count"] == 1

    rows = db.query(EventAttendee).filter(EventAttendee.event_id == ev).order_by(EventAttendee.member_id).all()
    assert len(rows) == 2
    by_member = {row.member_id: row for row in rows}
    assert by_member[m1].made_faith_decision is True
    assert by_member[m2].attended is False
    assert client.get(f"/events/{ev}", headers=_h(church_id)).json()["attendees_count"] == 1


def test_failed_recompute_keeps_previous_roster(client, db, monkeypatch, setup):
    church_id, ev, (m1, m2, m3) = setup
    keep = {"attendees": [{"member_id": m1, "made_faith_decision": True}]}
    assert client.put(f"/events/{ev}/attendees", json=keep, headers=_h(church_id)).status_code == 200

    def _boom(*args, **kwargs):
        raise RuntimeError("storage went away")

    monkeypatch.setattr("app.services.stats.coordinator.recompute_church_stats", _boom)
    body = {"attendees": [{"member_id": m2}, {"member_id": m3, "made_faith_decision": True}]}
    with pytest.raises(RuntimeError):
        client.put(f"/events/{ev}/attendees", json=body, headers=_h(church_id))
    monkeypatch.undo()

    rows = db.query(EventAttendee).filter(EventAttendee.event_id == ev).all()
    assert [(row.member_id, row.made_faith_decision) for row in rows] == [(m1, True)]
    stats = client.get(f"/churches/{church_id}/stats").json()
    assert stats["faith_decisions_year"] == 1
    assert client.get(f"/events/{ev}", headers=_h(church_id)).json()["faith_decisions"] == 1
