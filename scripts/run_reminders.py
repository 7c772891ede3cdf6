#!/usr/bin/env python3
"""
Run one reminder invocation from the command line.
Usage:
  python scripts/run_reminders.py attendance
  python scripts/run_reminders.py checklist --now 2025-03-01T17:15:00Z --fixture fixtures.json
With --fixture the store is read from a JSON file keyed by table name
(tenants, attendance_types, attendance, person_attendances, tenantUsers,
notifications) instead of Supabase. Configuration is validated as usual and
messages are still sent to Telegram.
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import timezone

from dotenv import load_dotenv

load_dotenv()
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from reminder_service.reminders import runner
from reminder_service.reminders.windows import parse_timestamp
from reminder_service.storage.memory_store import InMemoryReminderStore


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a reminder job once")
    parser.add_argument("job", choices=sorted(runner.JOBS))
    parser.add_argument("--now", help="ISO timestamp to use as the current instant")
    parser.add_argument("--fixture", help="JSON file to use as the data store")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    kwargs = {}
    if args.now:
        now = parse_timestamp(args.now)
        # A --now without an offset is UTC
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        kwargs["now"] = now
    if args.fixture:
        with open(args.fixture, encoding="utf-8") as f:
            data = json.load(f)

        async def _fixture_store(settings):
            return InMemoryReminderStore.from_dict(data)

        kwargs["store_factory"] = _fixture_store

    try:
        result = asyncio.run(runner.invoke(args.job, **kwargs))
    except Exception as e:
        print(json.dumps({"success": False, "error": str(e)}))
        return 1

    print(json.dumps({
        "success": result.success,
        "processed": result.processed,
        "timestamp": result.timestamp.isoformat(),
    }))
    return 0


if __name__ == "__main__":
    sys.exit(main())
