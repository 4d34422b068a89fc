"""Rubric scoring, evaluation lifecycle, aggregation and ranking."""

__all__ = [
    # Errors
    "EngineError",
    "MissingCriteriaError",
    "NotFoundError",
    "RubricWeightError",
    "ScoreRangeError",
    "StateConflictError",
    "UnknownCriterionError",
    "ValidationError",
    # Rubric
    "percentage",
    "validate_scores",
    "validate_weights",
    "weighted_average",
    # Normalization
    "normalize",
    # Aggregation and ranking
    "aggregate_schedule",
    "rank",
    "rankings",
    "schedule_aggregate",
]

from .aggregate import aggregate_schedule
from .errors import EngineError, MissingCriteriaError, NotFoundError, RubricWeightError, ScoreRangeError, \
    StateConflictError, UnknownCriterionError, ValidationError
from .leaderboard import rankings, schedule_aggregate
from .normalize import normalize
from .ranking import rank
from .rubric import percentage, validate_scores, validate_weights, weighted_average
