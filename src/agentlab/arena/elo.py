"""Elo rating updates for pairwise battles.

calculate_elo_change is pure. record_battle applies the result through a
BattleStore in three sequential steps:
1. write the winner's new score
2. write the loser's new score
3. insert the battle history record

A failure in step 1 or 2 aborts and returns None. A failure in step 3 is
logged and swallowed: scores are authoritative, history is best-effort.
The steps are not atomic; two battles racing on the same experiment
resolve last-write-wins.
"""

from __future__ import annotations

import logging
import math
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass

from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import BattleEntity

logger = logging.getLogger(__name__)

K_FACTOR = 32
ELO_SCALE = 400


@dataclass(frozen=True)
class EloChange:
    """Scores of both parties after one battle."""

    winner_new: int
    loser_new: int


@dataclass(frozen=True)
class BattleInput:
    """Input for recording a battle.

    user_id is the acting user, passed explicitly by the caller.
    """

    winner_id: str
    loser_id: str
    winner_elo_before: int
    loser_elo_before: int
    goal: str = ""
    board_name: str = ""
    user_id: str | None = None


def expected_score(rating: float, opponent_rating: float) -> float:
    """Probability that a player rated ``rating`` beats ``opponent_rating``."""
    return 1 / (1 + 10 ** ((opponent_rating - rating) / ELO_SCALE))


def _round_score(value: float) -> int:
    # Halves round up: 1215.5 -> 1216
    return math.floor(value + 0.5)


def calculate_elo_change(winner_rating: float, loser_rating: float) -> EloChange:
    """Compute both parties' new scores after the winner beats the loser.

    Examples:
        >>> calculate_elo_change(1200, 1200)
        EloChange(winner_new=1216, loser_new=1184)
    """
    expected_winner = expected_score(winner_rating, loser_rating)
    expected_loser = expected_score(loser_rating, winner_rating)

    return EloChange(
        winner_new=_round_score(winner_rating + K_FACTOR * (1 - expected_winner)),
        loser_new=_round_score(loser_rating + K_FACTOR * (0 - expected_loser)),
    )


class BattleStore(ABC):
    """Persistence for battle outcomes.

    Implementations raise on failure; record_battle decides which
    failures are fatal.
    """

    @abstractmethod
    def update_elo(self, experiment_id: str, elo_rating: int) -> None:
        """Persist a new Elo score for one experiment."""
        pass

    @abstractmethod
    def insert_battle(self, battle: BattleEntity) -> None:
        """Persist an immutable battle history record."""
        pass


class SqlBattleStore(BattleStore):
    """BattleStore on a SQLAlchemy session.

    Commits after every call so that a later failure cannot undo an
    earlier, already reported write.
    """

    def __init__(self, session: DbSession):
        self.session = session

    def update_elo(self, experiment_id: str, elo_rating: int) -> None:
        try:
            if not repo.update_elo_rating(self.session, experiment_id, elo_rating):
                raise LookupError(f"Experiment not found: {experiment_id}")
            repo.commit(self.session)
        except Exception:
            repo.rollback(self.session)
            raise

    def insert_battle(self, battle: BattleEntity) -> None:
        try:
            repo.create_battle(self.session, battle)
            repo.commit(self.session)
        except Exception:
            repo.rollback(self.session)
            raise


def record_battle(store: BattleStore, battle_input: BattleInput) -> EloChange | None:
    """Apply a battle outcome and record it.

    Args:
        store: Persistence for scores and history.
        battle_input: Both parties, their scores before the battle and
            the goal/board context.

    Returns:
        EloChange with the new scores, or None if either score write
        failed.
    """
    change = calculate_elo_change(battle_input.winner_elo_before, battle_input.loser_elo_before)

    try:
        store.update_elo(battle_input.winner_id, change.winner_new)
    except Exception:
        logger.exception("Failed to update winner Elo for %s", battle_input.winner_id)
        return None

    try:
        store.update_elo(battle_input.loser_id, change.loser_new)
    except Exception:
        logger.exception("Failed to update loser Elo for %s", battle_input.loser_id)
        return None

    battle = BattleEntity(
        battle_id=str(uuid.uuid4()),
        winner_id=battle_input.winner_id,
        loser_id=battle_input.loser_id,
        winner_elo_before=battle_input.winner_elo_before,
        winner_elo_after=change.winner_new,
        loser_elo_before=battle_input.loser_elo_before,
        loser_elo_after=change.loser_new,
        goal=battle_input.goal,
        board_name=battle_input.board_name,
        user_id=battle_input.user_id,
    )
    try:
        store.insert_battle(battle)
    except Exception:
        logger.exception(
            "Failed to record battle history %s vs %s",
            battle_input.winner_id,
            battle_input.loser_id,
        )

    logger.info(
        "Battle recorded: %s %d->%d beat %s %d->%d",
        battle_input.winner_id,
        battle_input.winner_elo_before,
        change.winner_new,
        battle_input.loser_id,
        battle_input.loser_elo_before,
        change.loser_new,
    )
    return change
