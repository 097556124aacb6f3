"""
Award XP for completed quests whose reward was never granted.

A completion commits before its XP transaction; if that second step failed,
the progress row is left with xp_awarded = false. This script claims and
applies those rewards. SAFE to run repeatedly (each reward is claimed once).

Usage:
    python scripts/reconcile_xp.py            # every user
    python scripts/reconcile_xp.py <user_id>  # one user
"""
import sys
import os

# Add the parent directory to the path so we can import mindmuse modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from mindmuse.core.logging_config import configure_logging  # noqa: E402
from mindmuse.db.base import SessionLocal  # noqa: E402
from mindmuse.quests.tracker import reconcile_unawarded_xp  # noqa: E402


def reconcile(user_id: str | None = None) -> bool:
    db = SessionLocal()

    try:
        awarded = reconcile_unawarded_xp(db, user_id)
        print(f"SUCCESS: awarded {awarded} pending quest reward(s)"
              + (f" for user {user_id}" if user_id else ""))
        return True

    except Exception as e:
        db.rollback()
        print(f"ERROR: reconciliation failed: {str(e)}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    target = sys.argv[1] if len(sys.argv) > 1 else None
    print("Reconciling unawarded quest XP...")
    print("-" * 50)

    if not reconcile(target):
        sys.exit(1)
