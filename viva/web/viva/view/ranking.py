"""View models for leaderboard routes."""

from __future__ import annotations

import pydantic as p

from viva.model import GroupRanking, RankingTarget, StudentRanking


class RankingListResponse(p.BaseModel):
    target: RankingTarget
    rankings: list[GroupRanking] | list[StudentRanking]
    total: int
