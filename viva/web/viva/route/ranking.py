"""Leaderboard routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from viva.auth import AuthContext, get_current_user
from viva.core import di
from viva.evaluation import leaderboard
from viva.model import RankingTarget

from ..view.ranking import RankingListResponse

router = APIRouter(prefix="/api/rankings", tags=["rankings"])


@router.get("/{target}", operation_id="list_rankings")
@di.inject
def list_rankings(
    target: RankingTarget,
    limit: int | None = Query(None, gt=0),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> RankingListResponse:
    """Groups or students ordered by composite percentage, with competition ranks."""
    with session.begin():
        rows = leaderboard.rankings(target, limit, session=session)
        return RankingListResponse(target=target, rankings=rows, total=len(rows))
