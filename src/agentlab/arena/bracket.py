"""Contender selection for output battles.

Only experiments with a non-blank output can battle. Contenders are
scoped by goal and board, then shuffled so the first pairing is random.
"""

from __future__ import annotations

import secrets
from typing import Sequence

from agentlab.models.domain import ExperimentEntity


def _has_output(exp: ExperimentEntity) -> bool:
    return bool(exp.output and exp.output.strip())


def battle_goals(experiments: Sequence[ExperimentEntity]) -> list[str]:
    """Distinct non-empty goals that have at least one battle-ready output."""
    return sorted({e.goal for e in experiments if _has_output(e) and e.goal})


def battle_boards(experiments: Sequence[ExperimentEntity], goal: str) -> list[str]:
    """Distinct non-empty boards under a goal with battle-ready outputs."""
    return sorted(
        {e.board_name for e in experiments if e.goal == goal and _has_output(e) and e.board_name}
    )


def eligible_contenders(
    experiments: Sequence[ExperimentEntity],
    goal: str,
    board_name: str,
) -> list[ExperimentEntity]:
    """Experiments of one goal/board that can battle."""
    return [
        e
        for e in experiments
        if e.goal == goal and e.board_name == board_name and _has_output(e)
    ]


def shuffle_contenders(experiments: Sequence[ExperimentEntity]) -> list[ExperimentEntity]:
    """Return a shuffled copy (Fisher-Yates). The input is left untouched."""
    shuffled = list(experiments)
    for i in range(len(shuffled) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
