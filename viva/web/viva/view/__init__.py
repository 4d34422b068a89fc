"""View models for the evaluation web application."""

__all__ = [
    # Evaluation views
    "AssignRequest",
    "AssignResponse",
    "EvaluationResponse",
    "ExtrasRequest",
    "ScoreRequest",
    "ScoreResponse",
    "ScoresRequest",
    "UnlockRequest",
    # Schedule views
    "AssignPanelResponse",
    "FeedbackFormStatus",
    "ScheduleAggregateResponse",
    # Ranking views
    "RankingListResponse",
]

from .evaluation import AssignRequest, AssignResponse, EvaluationResponse, ExtrasRequest, ScoreRequest, ScoreResponse, \
    ScoresRequest, UnlockRequest
from .ranking import RankingListResponse
from .schedule import AssignPanelResponse, FeedbackFormStatus, ScheduleAggregateResponse
