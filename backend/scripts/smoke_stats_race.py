# backend/scripts/smoke_stats_race.py
"""
Race smoke against a running server: N concurrent weekly-attendance inserts
and member creates for one church, then check the stored aggregates saw
every write.

  uvicorn app.main:app --port 8000   (from backend/)
  python backend/scripts/smoke_stats_race.py --n 12
"""
import argparse
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta

import requests

BASE = "http://127.0.0.1:8000"


def _json(r):
    ct = r.headers.get("content-type", "")
    return r.json() if ct.startswith("application/json") else r.text


def create_church(name):
    r = requests.post(f"{BASE}/churches/", json={"name": name}, timeout=30)
    r.raise_for_status()
    return r.json()["id"]


def post_week(church_id, week, count):
    try:
        r = requests.post(
            f"{BASE}/weekly-attendance/",
            json={"week_date": week.isoformat(), "attendance_count": count},
            headers={"X-Church-Id": str(church_id)},
            timeout=60,
        )
        return r.status_code, _json(r)
    except requests.RequestException as e:
        return -1, str(e)


def post_member(church_id, i):
    try:
        r = requests.post(
            f"{BASE}/members/",
            json={"first_name": f"Smoke{i}", "last_name": "Race"},
            headers={"X-Church-Id": str(church_id)},
            timeout=60,
        )
        return r.status_code, _json(r)
    except requests.RequestException as e:
        return -1, str(e)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--n", type=int, default=10)
    ap.add_argument("--workers", type=int, default=8)
    args = ap.parse_args()

    church_id = create_church("Smoke Race Church")
    start = date(2025, 1, 5)
    counts = [10 * (i + 1) for i in range(args.n)]

    with ThreadPoolExecutor(max_workers=args.workers) as ex:
        futs = [ex.submit(post_week, church_id, start + timedelta(weeks=i), c) for i, c in enumerate(counts)]
        futs += [ex.submit(post_member, church_id, i) for i in range(args.n)]
        results = [f.result() for f in as_completed(futs)]

    failed = [(s, b) for s, b in results if s != 201]
    stats = requests.get(f"{BASE}/churches/{church_id}/stats", timeout=30).json()
    expected_avg = sum(counts) // len(counts)  # 10, 20, ... always averages to a whole number
    print("Stats:", stats)
    if failed:
        print("Failures:", failed)

    if not failed and stats["membership_count"] == args.n and stats["avg_weekly_attendance"] == expected_avg:
        print("✅ STATS RACE SMOKE OK")
        return 0
    print(f"❌ STATS RACE SMOKE FAIL (expected members={args.n} avg={expected_avg})")
    return 1


if __name__ == "__main__":
    sys.exit(main())
