"""Errors raised by the evaluation engine."""

from __future__ import annotations

import typing as t

from viva.model import EvaluationStatus, RubricCriterionID


class EngineError(Exception):
    """Base class for evaluation engine errors."""

    pass


class ValidationError(EngineError):
    """Input rejected by a rubric or lifecycle rule."""

    pass


class RubricWeightError(ValidationError):
    def __init__(self, total: float, tolerance: float):
        self.total = total
        self.tolerance = tolerance
        super().__init__(f"rubric weights sum to {total:g}, expected 100 (tolerance {tolerance:g})")


class UnknownCriterionError(ValidationError):
    def __init__(self, criterion_ids: t.Iterable[RubricCriterionID]):
        self.criterion_ids = tuple(sorted(criterion_ids))
        super().__init__(f"unknown criteria: {', '.join(self.criterion_ids)}")


class ScoreRangeError(ValidationError):
    def __init__(self, criterion_id: RubricCriterionID, score: float, min_score: float, max_score: float):
        self.criterion_id = criterion_id
        self.score = score
        self.min_score = min_score
        self.max_score = max_score
        super().__init__(f"score {score:g} for {criterion_id} is outside [{min_score:g}, {max_score:g}]")


class MissingCriteriaError(ValidationError):
    def __init__(self, missing_criterion_ids: t.Iterable[RubricCriterionID]):
        self.missing_criterion_ids = tuple(sorted(missing_criterion_ids))
        super().__init__(f"missing scores for criteria: {', '.join(self.missing_criterion_ids)}")


class StateConflictError(EngineError):
    """The entity is not in a state that permits the operation."""

    def __init__(self, message: str, current_state: EvaluationStatus):
        self.current_state = current_state
        super().__init__(f"{message} (current state: {current_state.value})")


class NotFoundError(EngineError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")
