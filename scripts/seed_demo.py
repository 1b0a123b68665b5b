#!/usr/bin/env python3
"""
Demo initialization script.
Creates an every-minute schedule for the next hour so the processor has work.

Run from repository root: python scripts/seed_demo.py
"""
import sys
import os
import time

# Ensure repo root is on path when run as scripts/seed_demo.py
_repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _repo_root not in sys.path:
    sys.path.insert(0, _repo_root)

from eventide.core.memory.db import init_db
from eventide.core.schedule.service import ScheduleService

DEMO_USER = "demo-user"


def init_demo():
    """Initialize demo data."""
    init_db()

    svc = ScheduleService()
    existing = svc.list_schedules(DEMO_USER)["schedules"]
    if existing:
        print(f"Demo schedule already exists with ID: {existing[0]['id']}")
        return existing[0]["id"]

    now = int(time.time())
    out = svc.add_schedule(
        DEMO_USER,
        {"cron": "* * * * *", "start_at": now, "end_at": now + 3600, "message_id": "demo-message"},
    )
    print(f"Created demo schedule with ID: {out['scheduleId']}")
    if out["event"]:
        print(f"   First event due at: {out['event']['plan_start']}")
    return out["scheduleId"]


if __name__ == "__main__":
    schedule_id = init_demo()
    print(f"\nDemo initialized! Schedule ID: {schedule_id}")
    print("\nNext steps:")
    print("1. Start the server: python -m eventide.core.main")
    print(f"2. Watch events: GET /schedules/{schedule_id}/events with X-User-Id: {DEMO_USER}")
