"""Battles API endpoints.

POST /api/battles                          - Record a battle outcome
GET  /api/battles                          - List battle history
GET  /api/battles/goals                    - Goals with battle-ready outputs
GET  /api/battles/boards                   - Boards under a goal
GET  /api/battles/contenders               - Shuffled contenders for a goal/board
GET  /api/battles/leaderboard              - Experiments of a goal/board by Elo
GET  /api/experiments/{experiment_id}/battles - Battles an experiment took part in
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from agentlab.api.app import get_change_feed, get_current_user_id, get_db_session
from agentlab.arena.bracket import (
    battle_boards,
    battle_goals,
    eligible_contenders,
    shuffle_contenders,
)
from agentlab.arena.elo import BattleInput, SqlBattleStore, record_battle
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import BattleEntity, ExperimentEntity
from agentlab.models.types import (
    BattleDetail,
    BattleOutcome,
    BattleSubmission,
    ExperimentDetail,
)
from agentlab.realtime.feed import ChangeEvent, ChangeFeed

router = APIRouter()


def _battle_to_detail(battle: BattleEntity) -> BattleDetail:
    """Convert BattleEntity to BattleDetail."""
    return BattleDetail(**asdict(battle))


def _experiment_to_detail(exp: ExperimentEntity) -> ExperimentDetail:
    return ExperimentDetail(**asdict(exp))


@router.post("/battles", response_model=BattleOutcome, status_code=201)
def create_battle(
    battle: BattleSubmission,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
    user_id: str | None = Depends(get_current_user_id),
) -> BattleOutcome:
    """Record the outcome of one battle and update both Elo scores.

    Raises:
        HTTPException: 400 if winner and loser are the same experiment,
            404 if either experiment is not found, 500 if a score write
            fails.
    """
    if battle.winner_id == battle.loser_id:
        raise HTTPException(status_code=400, detail="Winner and loser must differ")

    winner = repo.get_experiment(session, battle.winner_id)
    if winner is None:
        raise HTTPException(status_code=404, detail="Winner experiment not found")
    loser = repo.get_experiment(session, battle.loser_id)
    if loser is None:
        raise HTTPException(status_code=404, detail="Loser experiment not found")

    battle_input = BattleInput(
        winner_id=winner.experiment_id,
        loser_id=loser.experiment_id,
        winner_elo_before=(
            battle.winner_elo_before
            if battle.winner_elo_before is not None
            else winner.elo_rating
        ),
        loser_elo_before=(
            battle.loser_elo_before if battle.loser_elo_before is not None else loser.elo_rating
        ),
        goal=battle.goal,
        board_name=battle.board_name,
        user_id=user_id,
    )

    change = record_battle(SqlBattleStore(session), battle_input)
    if change is None:
        raise HTTPException(status_code=500, detail="Failed to update Elo ratings")

    for experiment_id, elo_rating in (
        (winner.experiment_id, change.winner_new),
        (loser.experiment_id, change.loser_new),
    ):
        feed.publish(
            ChangeEvent("experiments", "UPDATE", experiment_id, {"elo_rating": elo_rating})
        )

    return BattleOutcome(
        winner_id=battle_input.winner_id,
        loser_id=battle_input.loser_id,
        winner_elo_before=battle_input.winner_elo_before,
        winner_elo_after=change.winner_new,
        loser_elo_before=battle_input.loser_elo_before,
        loser_elo_after=change.loser_new,
    )


@router.get("/battles", response_model=list[BattleDetail])
def list_battles(
    goal: str | None = None,
    board_name: str | None = None,
    session: DbSession = Depends(get_db_session),
) -> list[BattleDetail]:
    """List battle history, newest first."""
    battles = repo.list_battles(session, goal=goal, board_name=board_name)
    return [_battle_to_detail(b) for b in battles]


@router.get("/battles/goals", response_model=list[str])
def list_battle_goals(session: DbSession = Depends(get_db_session)) -> list[str]:
    """Goals that have at least one experiment with an output."""
    return battle_goals(repo.list_experiments(session))


@router.get("/battles/boards", response_model=list[str])
def list_battle_boards(
    goal: str,
    session: DbSession = Depends(get_db_session),
) -> list[str]:
    """Boards under a goal that have at least one experiment with an output."""
    return battle_boards(repo.list_experiments(session, goal=goal), goal)


@router.get("/battles/contenders", response_model=list[ExperimentDetail])
def list_contenders(
    goal: str,
    board_name: str,
    session: DbSession = Depends(get_db_session),
) -> list[ExperimentDetail]:
    """Battle-ready experiments of a goal/board in random order."""
    experiments = repo.list_experiments(session, goal=goal, board_name=board_name)
    contenders = shuffle_contenders(eligible_contenders(experiments, goal, board_name))
    return [_experiment_to_detail(e) for e in contenders]


@router.get("/battles/leaderboard", response_model=list[ExperimentDetail])
def get_leaderboard(
    goal: str,
    board_name: str,
    session: DbSession = Depends(get_db_session),
) -> list[ExperimentDetail]:
    """Experiments of a goal/board ordered by Elo rating, strongest first."""
    experiments = repo.list_experiments_by_elo(session, goal, board_name)
    return [_experiment_to_detail(e) for e in experiments]


@router.get("/experiments/{experiment_id}/battles", response_model=list[BattleDetail])
def list_experiment_battles(
    experiment_id: str,
    session: DbSession = Depends(get_db_session),
) -> list[BattleDetail]:
    """Battles an experiment won or lost, newest first.

    Raises:
        HTTPException: 404 if experiment not found.
    """
    if repo.get_experiment(session, experiment_id) is None:
        raise HTTPException(status_code=404, detail="Experiment not found")

    battles = repo.list_battles_for_experiment(session, experiment_id)
    return [_battle_to_detail(b) for b in battles]
