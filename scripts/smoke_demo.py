#!/usr/bin/env python3
"""Smoke test for the demo workspace.

Validates that the demo database was seeded and that dashboard
statistics and battle history are consistent.

Usage:
    python scripts/smoke_demo.py

Exit codes:
    0: All checks passed
    1: Some checks failed
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from agentlab.analytics.dashboard import dashboard_stats  # noqa: E402
from agentlab.db import repo  # noqa: E402
from agentlab.db.session import get_session  # noqa: E402

# Constants
DEMO_DB_PATH = PROJECT_ROOT / "demo.db"


def check_database_exists() -> bool:
    """Check that demo database exists."""
    if not DEMO_DB_PATH.exists():
        print(f"FAIL: Demo database not found: {DEMO_DB_PATH}")
        return False
    print(f"OK: Database exists: {DEMO_DB_PATH}")
    return True


def check_dashboard(session) -> bool:
    """Check dashboard counters add up."""
    experiments = repo.list_experiments(session)
    if not experiments:
        print("FAIL: No experiments found")
        return False

    stats = dashboard_stats(experiments)
    summary = stats.summary
    ok = True

    if summary.rated + summary.unrated != summary.total:
        print(f"FAIL: rated + unrated != total ({summary.rated} + {summary.unrated})")
        ok = False

    bucket_total = sum(b.count for b in stats.rating_distribution)
    if bucket_total != summary.rated:
        print(f"FAIL: rating buckets sum to {bucket_total}, expected {summary.rated}")
        ok = False

    if stats.timeline and stats.timeline[-1].cumulative_count != summary.total:
        print("FAIL: timeline does not end at total")
        ok = False

    print(
        f"OK: {summary.total} experiments, {summary.rated} rated, "
        f"avg {summary.average_rating}, success {summary.success_rate}%"
    )
    for goal in stats.goal_performance:
        print(f"    {goal.goal}: avg {goal.average_rating} over {goal.count}")
    return ok


def check_battles(session) -> bool:
    """Check every battle moved scores in the right direction."""
    battles = repo.list_battles(session)
    if not battles:
        print("FAIL: No battles recorded")
        return False

    ok = True
    for battle in battles:
        if battle.winner_elo_after <= battle.winner_elo_before:
            print(f"FAIL: winner score did not rise in {battle.battle_id}")
            ok = False
        if battle.loser_elo_after >= battle.loser_elo_before:
            print(f"FAIL: loser score did not fall in {battle.battle_id}")
            ok = False

    print(f"OK: {len(battles)} battles recorded")
    return ok


def main() -> int:
    """Run all smoke checks."""
    print("=" * 60)
    print("agentlab Demo Smoke Test")
    print("=" * 60)

    if not check_database_exists():
        return 1

    session = get_session(DEMO_DB_PATH)
    try:
        results = [check_dashboard(session), check_battles(session)]
    finally:
        session.close()

    print("=" * 60)
    if all(results):
        print("All checks passed")
        return 0
    print("Some checks failed")
    return 1


if __name__ == "__main__":
    sys.exit(main())
