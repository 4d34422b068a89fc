"""Tests for viva.evaluation.rubric module."""

from __future__ import annotations

import pytest

from viva.evaluation.errors import RubricWeightError, ScoreRangeError, UnknownCriterionError
from viva.evaluation.rubric import percentage, validate_scores, validate_weights, weighted_average
from viva.model import RubricCriterion, RubricCriterionID, RubricTemplateID


def make_criteria(*weights: float, min_score: float = 0.0, max_score: float = 10.0) -> list[RubricCriterion]:
    template_id = RubricTemplateID()
    return [
        RubricCriterion(
            criterion_id=RubricCriterionID(),
            template_id=template_id,
            label=f"Criterion {i}",
            weight=w,
            min_score=min_score,
            max_score=max_score,
        )
        for i, w in enumerate(weights, start=1)
    ]


class TestValidateWeights(object):
    def test_exact_hundred(self) -> None:
        validate_weights(make_criteria(40, 30, 30))

    def test_within_tolerance(self) -> None:
        """validate_weights() accepts float drift such as thirds."""
        validate_weights(make_criteria(33.33333, 33.33333, 33.33334))

    def test_short_total_raises(self) -> None:
        with pytest.raises(RubricWeightError) as exc_info:
            validate_weights(make_criteria(40, 30, 20))

        assert exc_info.value.total == pytest.approx(90.0)

    def test_over_total_raises(self) -> None:
        with pytest.raises(RubricWeightError):
            validate_weights(make_criteria(50, 30, 30))

    def test_custom_tolerance(self) -> None:
        validate_weights(make_criteria(40, 30, 30.5), tolerance=1.0)


class TestValidateScores(object):
    def test_boundaries_are_valid(self) -> None:
        criteria = make_criteria(50, 50)
        validate_scores({criteria[0].criterion_id: 0.0, criteria[1].criterion_id: 10.0}, criteria)

    def test_above_max_raises(self) -> None:
        criteria = make_criteria(50, 50)
        with pytest.raises(ScoreRangeError) as exc_info:
            validate_scores({criteria[0].criterion_id: 10.5}, criteria)

        assert exc_info.value.criterion_id == criteria[0].criterion_id
        assert exc_info.value.score == 10.5

    def test_below_min_raises(self) -> None:
        """Scores are rejected, never clamped."""
        criteria = make_criteria(50, 50)
        with pytest.raises(ScoreRangeError):
            validate_scores({criteria[1].criterion_id: -1.0}, criteria)

    def test_unknown_criterion_raises(self) -> None:
        criteria = make_criteria(50, 50)
        stranger = RubricCriterionID()
        with pytest.raises(UnknownCriterionError) as exc_info:
            validate_scores({stranger: 5.0}, criteria)

        assert exc_info.value.criterion_ids == (stranger,)


class TestWeightedAverage(object):
    def test_full_rubric(self) -> None:
        """weighted_average() of 8, 6, 9 under weights 40/30/30 is 7.7."""
        criteria = make_criteria(40, 30, 30)
        scores = {c.criterion_id: s for c, s in zip(criteria, (8.0, 6.0, 9.0))}

        assert weighted_average(scores, criteria) == pytest.approx(7.7)

    def test_partial_completion_uses_scored_weights_only(self) -> None:
        criteria = make_criteria(40, 30, 30)
        scores = {criteria[0].criterion_id: 8.0, criteria[1].criterion_id: 6.0}

        assert weighted_average(scores, criteria) == pytest.approx((8 * 40 + 6 * 30) / 70)

    def test_no_scores_is_none(self) -> None:
        assert weighted_average({}, make_criteria(40, 30, 30)) is None

    def test_bad_weights_raise_before_scoring(self) -> None:
        criteria = make_criteria(40, 30, 20)
        with pytest.raises(RubricWeightError):
            weighted_average({criteria[0].criterion_id: 5.0}, criteria)

    def test_out_of_range_raises(self) -> None:
        criteria = make_criteria(40, 30, 30)
        with pytest.raises(ScoreRangeError):
            weighted_average({criteria[2].criterion_id: 12.0}, criteria)

    def test_unknown_criterion_raises(self) -> None:
        criteria = make_criteria(40, 30, 30)
        with pytest.raises(UnknownCriterionError):
            weighted_average({RubricCriterionID(): 5.0}, criteria)


class TestPercentage(object):
    def test_full_rubric(self) -> None:
        criteria = make_criteria(40, 30, 30)
        scores = {c.criterion_id: s for c, s in zip(criteria, (8.0, 6.0, 9.0))}

        assert percentage(scores, criteria) == 77.0

    def test_rescales_by_criterion_range(self) -> None:
        """percentage() maps each score onto 0-100 using min and max."""
        criteria = make_criteria(50, 50, min_score=1.0, max_score=5.0)
        scores = {criteria[0].criterion_id: 3.0, criteria[1].criterion_id: 5.0}

        assert percentage(scores, criteria) == 75.0

    def test_rounds_to_two_decimals(self) -> None:
        criteria = make_criteria(100 / 3, 100 / 3, 100 / 3)
        scores = {criteria[0].criterion_id: 10.0, criteria[1].criterion_id: 0.0, criteria[2].criterion_id: 0.0}

        assert percentage(scores, criteria) == 33.33

    def test_no_scores_is_none(self) -> None:
        assert percentage({}, make_criteria(100)) is None
