"""Weighted scoring against a rubric.

Weights are percentage points and must total 100 over a template's full
criteria set. Scores are validated against each criterion's range and
never clamped. Criteria without a score are left out of both the numerator
and the denominator.
"""

from __future__ import annotations

import math
import typing as t

from viva.model import RubricCriterion, RubricCriterionID

from .errors import RubricWeightError, ScoreRangeError, UnknownCriterionError

WeightTolerance = 1e-4


def validate_weights(criteria: t.Sequence[RubricCriterion], tolerance: float = WeightTolerance) -> None:
    """
    Raises:
        RubricWeightError: if the weights do not total 100
    """
    total = math.fsum(c.weight for c in criteria)
    if abs(total - 100.0) > tolerance:
        raise RubricWeightError(total, tolerance)


def validate_scores(scores: t.Mapping[RubricCriterionID, float], criteria: t.Sequence[RubricCriterion]) -> None:
    """
    Raises:
        UnknownCriterionError: if a score references a criterion not in `criteria`
        ScoreRangeError: if a score falls outside its criterion's range
    """
    by_id = {c.criterion_id: c for c in criteria}
    if unknown := set(scores) - set(by_id):
        raise UnknownCriterionError(unknown)
    for criterion_id, score in scores.items():
        c = by_id[criterion_id]
        if not (c.min_score <= score <= c.max_score):
            raise ScoreRangeError(criterion_id, score, c.min_score, c.max_score)


def weighted_average(
    scores: t.Mapping[RubricCriterionID, float],
    criteria: t.Sequence[RubricCriterion],
    tolerance: float = WeightTolerance,
) -> float | None:
    """Weighted mean of raw scores over the criteria that were scored.

    Returns None when no criterion was scored.
    """
    validate_weights(criteria, tolerance)
    validate_scores(scores, criteria)
    return _weighted_mean((c.weight, scores[c.criterion_id]) for c in criteria if c.criterion_id in scores)


def percentage(
    scores: t.Mapping[RubricCriterionID, float],
    criteria: t.Sequence[RubricCriterion],
    tolerance: float = WeightTolerance,
) -> float | None:
    """Weighted mean of scores rescaled to 0-100 by each criterion's range, to
    two decimals. Returns None when no criterion was scored."""
    validate_weights(criteria, tolerance)
    validate_scores(scores, criteria)
    pct = _weighted_mean(
        (c.weight, _rescale(scores[c.criterion_id], c)) for c in criteria if c.criterion_id in scores
    )
    return round(pct, 2) if pct is not None else None


def _rescale(score: float, criterion: RubricCriterion) -> float:
    span = criterion.max_score - criterion.min_score
    if span <= 0:
        # degenerate range, any valid score is a full score
        return 100.0
    return (score - criterion.min_score) / span * 100.0


def _weighted_mean(pairs: t.Iterable[tuple[float, float]]) -> float | None:
    pairs = list(pairs)
    denominator = math.fsum(w for w, _ in pairs)
    if not pairs or denominator == 0:
        return None
    return math.fsum(w * s for w, s in pairs) / denominator
