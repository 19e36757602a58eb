"""Tests for Elo updates and battle recording.

Invariants:
1. Equal ratings: winner +16, loser -16 (K=32)
2. Upsets move scores further than expected wins
3. A failed score write aborts before any later step
4. A failed history insert is logged and the battle still succeeds
"""

import logging

import pytest
from sqlalchemy.orm import Session

from agentlab.arena.elo import (
    K_FACTOR,
    BattleInput,
    BattleStore,
    EloChange,
    SqlBattleStore,
    calculate_elo_change,
    expected_score,
    record_battle,
)
from agentlab.db import repo
from agentlab.db.schema import BattleHistory, Experiment


class RecordingStore(BattleStore):
    """In-memory store that records calls and can fail on demand."""

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls: list[tuple] = []
        self.elo_writes = 0

    def update_elo(self, experiment_id, elo_rating):
        self.elo_writes += 1
        step = "winner" if self.elo_writes == 1 else "loser"
        if self.fail_on == step:
            raise ConnectionError(f"{step} write failed")
        self.calls.append(("update_elo", experiment_id, elo_rating))

    def insert_battle(self, battle):
        if self.fail_on == "history":
            raise ConnectionError("history insert failed")
        self.calls.append(("insert_battle", battle))


def _battle(winner_elo=1200, loser_elo=1200, user_id=None) -> BattleInput:
    return BattleInput(
        winner_id="exp-w",
        loser_id="exp-l",
        winner_elo_before=winner_elo,
        loser_elo_before=loser_elo,
        goal="summarize",
        board_name="board-1",
        user_id=user_id,
    )


class TestCalculateEloChange:
    """Test the pure rating formula."""

    def test_equal_ratings(self):
        """1200 vs 1200: expected 0.5 each, +/-16."""
        assert calculate_elo_change(1200, 1200) == EloChange(winner_new=1216, loser_new=1184)

    def test_upset_gains_more_than_half_k(self):
        """Lower-rated 1000 beating 1400 gains more than 16."""
        change = calculate_elo_change(1000, 1400)
        assert change.winner_new - 1000 > K_FACTOR / 2
        assert change.loser_new < 1400
        assert change == EloChange(winner_new=1029, loser_new=1371)

    def test_favorite_gains_less_than_half_k(self):
        """Higher-rated 1400 beating 1000 gains little."""
        change = calculate_elo_change(1400, 1000)
        assert 0 < change.winner_new - 1400 < K_FACTOR / 2
        assert change == EloChange(winner_new=1403, loser_new=997)

    def test_expected_scores_sum_to_one(self):
        """expected(a, b) + expected(b, a) == 1 before rounding."""
        assert expected_score(1350, 1210) + expected_score(1210, 1350) == pytest.approx(1.0)

    def test_expected_score_equal_ratings(self):
        """Equal ratings are a coin flip."""
        assert expected_score(1500, 1500) == 0.5


class TestRecordBattle:
    """Test the three sequential writes and their failure handling."""

    def test_writes_in_order(self):
        """Winner score, loser score, then history."""
        store = RecordingStore()
        change = record_battle(store, _battle(user_id="user-1"))

        assert change == EloChange(winner_new=1216, loser_new=1184)
        assert store.calls[0] == ("update_elo", "exp-w", 1216)
        assert store.calls[1] == ("update_elo", "exp-l", 1184)
        assert store.calls[2][0] == "insert_battle"

    def test_history_captures_before_and_after(self):
        """History record has both parties' scores, context and user."""
        store = RecordingStore()
        record_battle(store, _battle(user_id="user-1"))

        battle = store.calls[2][1]
        assert (battle.winner_elo_before, battle.winner_elo_after) == (1200, 1216)
        assert (battle.loser_elo_before, battle.loser_elo_after) == (1200, 1184)
        assert battle.goal == "summarize"
        assert battle.board_name == "board-1"
        assert battle.user_id == "user-1"

    def test_winner_write_failure_aborts(self):
        """First write fails: nothing else happens, result is None."""
        store = RecordingStore(fail_on="winner")
        assert record_battle(store, _battle()) is None
        assert store.calls == []

    def test_loser_write_failure_skips_history(self):
        """Second write fails: result is None, history not written."""
        store = RecordingStore(fail_on="loser")
        assert record_battle(store, _battle()) is None
        assert store.calls == [("update_elo", "exp-w", 1216)]

    def test_history_failure_still_succeeds(self, caplog):
        """History failure is logged; scores stand and the call succeeds."""
        store = RecordingStore(fail_on="history")
        with caplog.at_level(logging.ERROR, logger="agentlab.arena.elo"):
            change = record_battle(store, _battle())

        assert change == EloChange(winner_new=1216, loser_new=1184)
        assert len(store.calls) == 2
        assert "Failed to record battle history" in caplog.text


class TestSqlBattleStore:
    """Test battle recording against the database."""

    def _seed(self, session: Session) -> None:
        session.add_all(
            [
                Experiment(experiment_id="exp-w", name="winner", elo_rating=1200),
                Experiment(experiment_id="exp-l", name="loser", elo_rating=1200),
            ]
        )
        session.commit()

    def test_persists_scores_and_history(self, session):
        """Both scores and one history row are written."""
        self._seed(session)
        change = record_battle(SqlBattleStore(session), _battle(user_id="user-1"))

        assert change is not None
        assert repo.get_experiment(session, "exp-w").elo_rating == 1216
        assert repo.get_experiment(session, "exp-l").elo_rating == 1184
        history = session.query(BattleHistory).all()
        assert len(history) == 1
        assert history[0].user_id == "user-1"
        assert history[0].winner_elo_after == 1216

    def test_missing_winner_changes_nothing(self, session):
        """Unknown winner: no score changes, no history, None result."""
        self._seed(session)
        battle = BattleInput(
            winner_id="ghost",
            loser_id="exp-l",
            winner_elo_before=1200,
            loser_elo_before=1200,
        )
        assert record_battle(SqlBattleStore(session), battle) is None
        assert repo.get_experiment(session, "exp-l").elo_rating == 1200
        assert session.query(BattleHistory).count() == 0

    def test_history_failure_keeps_scores(self, session, monkeypatch):
        """Scores are committed even if the history insert fails."""
        self._seed(session)

        def broken_create_battle(db_session, entity):
            raise RuntimeError("insert rejected")

        monkeypatch.setattr(repo, "create_battle", broken_create_battle)
        change = record_battle(SqlBattleStore(session), _battle())

        assert change == EloChange(winner_new=1216, loser_new=1184)
        assert repo.get_experiment(session, "exp-w").elo_rating == 1216
        assert repo.get_experiment(session, "exp-l").elo_rating == 1184
        assert session.query(BattleHistory).count() == 0
