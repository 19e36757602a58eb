#!/usr/bin/env python3
"""Seed a demo workspace.

Usage:
    python scripts/seed_demo.py

This script:
1. Initializes the demo database
2. Creates folders and tags
3. Seeds experiments across two goals and three boards, some rated
4. Plays one round of battles on each board to move Elo ratings
5. Adds a template and an annotation that mentions a reviewer
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from agentlab.arena.bracket import eligible_contenders  # noqa: E402
from agentlab.arena.elo import BattleInput, SqlBattleStore, record_battle  # noqa: E402
from agentlab.db import repo  # noqa: E402
from agentlab.db.schema import Experiment  # noqa: E402
from agentlab.db.session import get_session, init_db  # noqa: E402
from agentlab.workspace import annotations, organize, templates  # noqa: E402

# Constants
DEMO_DB_PATH = PROJECT_ROOT / "demo.db"
DEMO_USER_ID = "demo-user"
DEMO_REVIEWER_ID = "demo-reviewer"

# (goal, board, rating or None, output)
DEMO_EXPERIMENTS = [
    ("Summarize weekly standup notes", "eng-standup", 5, "Three blockers, two releases."),
    ("Summarize weekly standup notes", "eng-standup", 4, "Releases on track; one blocker."),
    ("Summarize weekly standup notes", "eng-standup", 2, "Team met."),
    ("Summarize weekly standup notes", "eng-standup", None, "Blockers: CI flakes, review lag."),
    ("Summarize weekly standup notes", "design-sync", 3, "New palette approved."),
    ("Summarize weekly standup notes", "design-sync", None, "Palette and icon set reviewed."),
    ("Triage incoming support tickets", "support-queue", 4, "P1: login outage."),
    ("Triage incoming support tickets", "support-queue", 1, "All tickets normal."),
    ("Triage incoming support tickets", "support-queue", None, ""),
]


def seed_workspace(session) -> list[str]:
    """Create folders, tags and experiments. Returns experiment IDs."""
    research = organize.create_folder(session, "Research")
    organize.create_folder(session, "Production", color="#16a34a")
    baseline = organize.create_tag(session, "baseline")
    websearch = organize.create_tag(session, "websearch", color="#f59e0b")

    start = datetime.now() - timedelta(days=len(DEMO_EXPERIMENTS) * 2)
    experiment_ids = []
    for i, (goal, board, rating, output) in enumerate(DEMO_EXPERIMENTS):
        experiment_id = f"demo-{i:02d}"
        session.add(
            Experiment(
                experiment_id=experiment_id,
                name=f"{board} #{i}",
                goal=goal,
                board_name=board,
                mission=f"Help the team with: {goal.lower()}",
                output=output,
                rating=rating,
                use_websearch=i % 3 == 0,
                folder_id=research.folder_id if i % 2 == 0 else None,
                created_at=start + timedelta(days=i * 2, hours=i),
            )
        )
        experiment_ids.append(experiment_id)
    repo.commit(session)

    for i, experiment_id in enumerate(experiment_ids):
        organize.add_tag(session, experiment_id, baseline.tag_id)
        if i % 3 == 0:
            organize.add_tag(session, experiment_id, websearch.tag_id)

    return experiment_ids


def play_battles(session) -> int:
    """King-of-the-hill round on every board. Returns battles recorded."""
    experiments = repo.list_experiments(session)
    boards = sorted({(e.goal, e.board_name) for e in experiments})
    store = SqlBattleStore(session)
    recorded = 0

    for goal, board in boards:
        contenders = eligible_contenders(experiments, goal, board)
        if len(contenders) < 2:
            continue
        champion = contenders[0]
        for challenger in contenders[1:]:
            # Higher human rating wins; unrated counts as 0
            champion_score = champion.rating or 0
            challenger_score = challenger.rating or 0
            winner, loser = (
                (champion, challenger)
                if champion_score >= challenger_score
                else (challenger, champion)
            )
            winner = repo.get_experiment(session, winner.experiment_id)
            loser = repo.get_experiment(session, loser.experiment_id)
            change = record_battle(
                store,
                BattleInput(
                    winner_id=winner.experiment_id,
                    loser_id=loser.experiment_id,
                    winner_elo_before=winner.elo_rating,
                    loser_elo_before=loser.elo_rating,
                    goal=goal,
                    board_name=board,
                    user_id=DEMO_USER_ID,
                ),
            )
            if change is not None:
                recorded += 1
            champion = winner

    return recorded


def seed_collaboration(session, experiment_ids: list[str]) -> int:
    """Save a template and annotate the first output. Returns notifications created."""
    goal, _, _, output = DEMO_EXPERIMENTS[0]
    highlight = output.split(",")[0]
    templates.create_template(
        session,
        {"name": "Standup summary", "goal": goal, "rules": "Name every blocker."},
        user_id=DEMO_USER_ID,
    )
    result = annotations.create_annotation(
        session,
        {
            "experiment_id": experiment_ids[0],
            "field_name": "output",
            "start_offset": 0,
            "end_offset": len(highlight),
            "highlighted_text": highlight,
            "note": "@demo-reviewer are these still open?",
        },
        user_id=DEMO_USER_ID,
        mentioned_user_ids=[DEMO_REVIEWER_ID],
    )
    return len(result.notifications)


def main() -> int:
    """Seed the demo database from scratch."""
    if DEMO_DB_PATH.exists():
        DEMO_DB_PATH.unlink()

    print(f"Initializing database at {DEMO_DB_PATH}...")
    init_db(DEMO_DB_PATH)
    session = get_session(DEMO_DB_PATH)

    try:
        experiment_ids = seed_workspace(session)
        print(f"Seeded {len(experiment_ids)} experiments")

        battles = play_battles(session)
        print(f"Recorded {battles} battles")

        notified = seed_collaboration(session, experiment_ids)
        print(f"Annotated 1 output, {notified} mention notification(s)")
    finally:
        session.close()

    print("\nDemo seeded. Start the API with:")
    print(f"  AGENTLAB_DB_PATH={DEMO_DB_PATH} python scripts/serve.py")
    return 0


if __name__ == "__main__":
    sys.exit(main())
