"""
Print the latest check-ins straight from the database.

    python scripts/show_attendance.py --limit 20
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(PROJECT_ROOT)
load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

from face_attendance.database import dispose_engine, get_session_factory  # noqa: E402
from face_attendance.exceptions import AttendanceError, ConfigurationError  # noqa: E402
from face_attendance.services.store import AttendanceStore  # noqa: E402

WIDTH = 92


async def show_attendance(limit: int) -> int:
    try:
        async with get_session_factory()() as session:
            records = await AttendanceStore(session).list_attendance(limit)
    except ConfigurationError as e:
        print(f"[!] {e}")
        return 2
    except AttendanceError as e:
        print(f"[!] Could not read attendance: {e.message}")
        return 1
    finally:
        await dispose_engine()

    print("=" * WIDTH)
    print(f" {'Check-in':<20} | {'Name':<22} | {'Email':<32} | {'Confidence':>10}")
    print("=" * WIDTH)
    if not records:
        print(" No attendance records found.")
    for record in records:
        user = record.user
        when = record.check_in_time.strftime("%Y-%m-%d %H:%M:%S")
        print(
            f" {when:<20} | {user.name if user else 'Unknown':<22} | "
            f"{user.email if user else 'N/A':<32} | "
            f"{record.face_match_confidence:>9.2f}%"
        )
    print("=" * WIDTH)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--limit", type=int, default=50)
    args = parser.parse_args()

    # SQL echo would drown the table.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return asyncio.run(show_attendance(args.limit))


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
