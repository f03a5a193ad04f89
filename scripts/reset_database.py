#!/usr/bin/env python3
"""
Script to reset program activity data.
This will delete:
- All surveys
- All registrations
- All event occurrences and event templates
- All milestones
- All donations
- All visitor records (participants without a password)

This script preserves:
- Registered participant and admin accounts

⚠️  WARNING: This is a destructive operation that cannot be undone!

Usage: python scripts/reset_database.py
       python scripts/reset_database.py --confirm  # Skip confirmation prompt
"""
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ella_rises.database.database import SessionLocal
from ella_rises.models import (
    Donation,
    EventOccurrence,
    EventTemplate,
    Milestone,
    Participant,
    Registration,
    Survey,
)

# Children before parents so RESTRICT foreign keys never fire
DELETE_ORDER = [
    ("surveys", Survey),
    ("registrations", Registration),
    ("event occurrences", EventOccurrence),
    ("event templates", EventTemplate),
    ("milestones", Milestone),
    ("donations", Donation),
]


def reset_database(skip_confirmation: bool = False):
    """
    Delete all activity rows and visitor records.

    Args:
        skip_confirmation: If True, skip the confirmation prompt
    """
    if not skip_confirmation:
        answer = input("This deletes all events, registrations, surveys, milestones and donations. Type 'yes' to continue: ")
        if answer.strip().lower() != "yes":
            print("Aborted.")
            return

    db = SessionLocal()
    try:
        for label, model in DELETE_ORDER:
            count = db.query(model).delete(synchronize_session=False)
            print(f"  ✓ Deleted {count} {label}")
        visitors = db.query(Participant).filter(Participant.hashed_password.is_(None)).delete(synchronize_session=False)
        print(f"  ✓ Deleted {visitors} visitor records")
        db.commit()
        print("✅ Database reset complete")
    except Exception as e:
        db.rollback()
        print(f"❌ Error resetting database: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    reset_database(skip_confirmation="--confirm" in sys.argv)
