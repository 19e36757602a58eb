"""Dashboard API endpoint.

GET /api/dashboard/stats - Compute dashboard statistics
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from agentlab.analytics.dashboard import dashboard_stats
from agentlab.api.app import get_db_session
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.types import DashboardStatsDetail

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStatsDetail)
def get_dashboard_stats(
    folder_id: str | None = None,
    session: DbSession = Depends(get_db_session),
) -> DashboardStatsDetail:
    """Compute every dashboard view from the current experiments.

    Nothing is cached: each request recomputes from a fresh snapshot.

    Args:
        folder_id: Restrict statistics to one folder.
        session: Database session (injected).
    """
    experiments = repo.list_experiments(session, folder_id=folder_id)
    stats = dashboard_stats(experiments)
    return DashboardStatsDetail(**asdict(stats))
