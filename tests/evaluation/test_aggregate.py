"""Tests for viva.evaluation.aggregate module."""

from __future__ import annotations

import datetime
import typing as t

import pytest

from viva.evaluation.aggregate import aggregate_schedule
from viva.model import EvaluationID, EvaluationScore, EvaluationStatus, EvaluationWithScores, IntegrityWarningKind, \
    RubricCriterion, RubricCriterionID, RubricTemplateID, ScheduleID, UserID

Now = datetime.datetime(2026, 3, 2, 12, 0, tzinfo=datetime.UTC)


@pytest.fixture
def schedule_id() -> ScheduleID:
    return ScheduleID()


@pytest.fixture
def criteria() -> list[RubricCriterion]:
    template_id = RubricTemplateID()
    return [
        RubricCriterion(criterion_id=RubricCriterionID(), template_id=template_id, label=label, weight=weight)
        for label, weight in (("Presentation", 40.0), ("Methodology", 30.0), ("Defense", 30.0))
    ]


@pytest.fixture
def members() -> list[UserID]:
    return [UserID(), UserID()]


def make_evaluation(
    schedule_id: ScheduleID,
    scores: t.Mapping[RubricCriterionID, float] | None = None,
    extras: dict[str, t.Any] | None = None,
    status: EvaluationStatus = EvaluationStatus.Submitted,
) -> EvaluationWithScores:
    evaluation_id = EvaluationID()
    return EvaluationWithScores(
        evaluation_id=evaluation_id,
        schedule_id=schedule_id,
        evaluator_id=UserID(),
        status=status,
        extras=extras or {},
        scores=[
            EvaluationScore(evaluation_id=evaluation_id, criterion_id=c, score=s) for c, s in (scores or {}).items()
        ],
        create_time=Now,
        update_time=Now,
    )


def full_scores(criteria: list[RubricCriterion], *values: float) -> dict[RubricCriterionID, float]:
    return {c.criterion_id: v for c, v in zip(criteria, values)}


class TestStatusGating(object):
    def test_pending_is_excluded(
        self, schedule_id: ScheduleID, criteria: list[RubricCriterion], members: list[UserID]
    ) -> None:
        evaluations = [
            make_evaluation(schedule_id, full_scores(criteria, 8, 6, 9)),
            make_evaluation(schedule_id, full_scores(criteria, 1, 1, 1), status=EvaluationStatus.Pending),
        ]
        result = aggregate_schedule(schedule_id, evaluations, criteria, members)

        assert result.submitted_evaluations_count == 1
        assert result.group_score == pytest.approx(7.7)
        assert result.group_percentage == 77.0

    def test_locked_counts(self, schedule_id: ScheduleID, criteria: list[RubricCriterion]) -> None:
        evaluations = [
            make_evaluation(schedule_id, full_scores(criteria, 10, 10, 10), status=EvaluationStatus.Locked),
            make_evaluation(schedule_id, full_scores(criteria, 5, 5, 5)),
        ]
        result = aggregate_schedule(schedule_id, evaluations, criteria, [])

        assert result.submitted_evaluations_count == 2
        assert result.group_score == pytest.approx(7.5)
        assert result.group_percentage == 75.0


class TestNullPropagation(object):
    def test_no_evaluations(
        self, schedule_id: ScheduleID, criteria: list[RubricCriterion], members: list[UserID]
    ) -> None:
        result = aggregate_schedule(schedule_id, [], criteria, members)

        assert result.group_score is None
        assert result.system_score is None
        assert result.group_percentage is None
        assert result.submitted_evaluations_count == 0
        assert result.student_personal_scores == {m: None for m in members}
        assert result.partial is False

    def test_submitted_without_scores_or_extras(
        self, schedule_id: ScheduleID, criteria: list[RubricCriterion]
    ) -> None:
        result = aggregate_schedule(schedule_id, [make_evaluation(schedule_id)], criteria, [])

        assert result.submitted_evaluations_count == 1
        assert result.group_score is None
        assert result.group_percentage is None

    def test_means_skip_missing_values(self, schedule_id: ScheduleID, criteria: list[RubricCriterion]) -> None:
        evaluations = [
            make_evaluation(schedule_id, extras={"groupScore": 80, "systemScore": 70}),
            make_evaluation(schedule_id, extras={"groupScore": 90}),
        ]
        result = aggregate_schedule(schedule_id, evaluations, criteria, [])

        assert result.group_score == pytest.approx(85.0)
        assert result.system_score == pytest.approx(70.0)


class TestPersonalScores(object):
    def test_per_member_means_and_percentages(
        self, schedule_id: ScheduleID, criteria: list[RubricCriterion], members: list[UserID]
    ) -> None:
        first, second = members
        evaluations = [
            make_evaluation(schedule_id, extras={"members": {first: 80, second: {"score": 40}}}),
            make_evaluation(schedule_id, extras={"members": [{"id": first, "score": 90}]}),
        ]
        result = aggregate_schedule(schedule_id, evaluations, criteria, members, personal_max_score=100.0)

        assert result.student_personal_scores[first] == pytest.approx(85.0)
        assert result.student_personal_scores[second] == pytest.approx(40.0)
        assert result.student_percentages[first] == 85.0
        assert result.student_percentages[second] == 40.0

    def test_percentage_scaled_by_personal_max(
        self, schedule_id: ScheduleID, criteria: list[RubricCriterion], members: list[UserID]
    ) -> None:
        first, _ = members
        evaluations = [make_evaluation(schedule_id, extras={"members": {first: 15}})]
        result = aggregate_schedule(schedule_id, evaluations, criteria, members, personal_max_score=20.0)

        assert result.student_percentages[first] == 75.0

    def test_breakdown_lists_members(
        self, schedule_id: ScheduleID, criteria: list[RubricCriterion], members: list[UserID]
    ) -> None:
        first, second = members
        evaluations = [make_evaluation(schedule_id, extras={"members": {first: {"score": 70, "comment": "clear"}}})]
        result = aggregate_schedule(schedule_id, evaluations, criteria, members)

        (breakdown,) = result.evaluations
        by_student = {m.student_id: m for m in breakdown.members}
        assert by_student[first].personal_score == 70.0
        assert by_student[first].personal_comment == "clear"
        assert by_student[second].personal_score is None


class TestIntegrity(object):
    def test_orphaned_scores_flagged(self, schedule_id: ScheduleID, criteria: list[RubricCriterion]) -> None:
        orphan = RubricCriterionID()
        scores = {**full_scores(criteria, 8, 6, 9), orphan: 3.0}
        evaluation = make_evaluation(schedule_id, scores)
        result = aggregate_schedule(schedule_id, [evaluation], criteria, [])

        assert result.partial is True
        assert result.group_percentage == 77.0
        (warning,) = result.warnings
        assert warning.kind is IntegrityWarningKind.OrphanedScore
        assert warning.criterion_id == orphan
        assert warning.evaluation_id == evaluation.evaluation_id

    def test_bad_weights_null_percentages(self, schedule_id: ScheduleID) -> None:
        template_id = RubricTemplateID()
        criteria = [
            RubricCriterion(criterion_id=RubricCriterionID(), template_id=template_id, label="A", weight=50.0),
            RubricCriterion(criterion_id=RubricCriterionID(), template_id=template_id, label="B", weight=40.0),
        ]
        evaluations = [make_evaluation(schedule_id, full_scores(criteria, 5, 5))]
        result = aggregate_schedule(schedule_id, evaluations, criteria, [])

        assert result.group_percentage is None
        assert result.partial is True
        assert [w.kind for w in result.warnings] == [IntegrityWarningKind.RubricWeights]

    def test_configured_tolerance_covers_group_score(self, schedule_id: ScheduleID) -> None:
        template_id = RubricTemplateID()
        criteria = [
            RubricCriterion(criterion_id=RubricCriterionID(), template_id=template_id, label=label, weight=33.333)
            for label in ("A", "B", "C")
        ]
        evaluations = [make_evaluation(schedule_id, full_scores(criteria, 8, 8, 8))]
        result = aggregate_schedule(schedule_id, evaluations, criteria, [], tolerance=0.01)

        assert result.group_percentage == 80.0
        assert result.group_score == pytest.approx(8.0)
        assert result.warnings == []

    def test_out_of_range_score_excludes_evaluation(
        self, schedule_id: ScheduleID, criteria: list[RubricCriterion]
    ) -> None:
        evaluations = [
            make_evaluation(schedule_id, full_scores(criteria, 8, 6, 9)),
            make_evaluation(schedule_id, full_scores(criteria, 8, 6, 14)),
        ]
        result = aggregate_schedule(schedule_id, evaluations, criteria, [])

        assert result.group_percentage == 77.0
        assert result.submitted_evaluations_count == 2
        assert [w.kind for w in result.warnings] == [IntegrityWarningKind.ScoreOutOfRange]

    def test_missing_rubric(self, schedule_id: ScheduleID) -> None:
        evaluations = [make_evaluation(schedule_id, extras={"groupScore": 88})]
        result = aggregate_schedule(schedule_id, evaluations, [], [])

        assert result.group_score == 88.0
        assert result.group_percentage is None
        assert [w.kind for w in result.warnings] == [IntegrityWarningKind.MissingRubric]

    def test_repeatable(self, schedule_id: ScheduleID, criteria: list[RubricCriterion], members: list[UserID]) -> None:
        evaluations = [make_evaluation(schedule_id, full_scores(criteria, 8, 6, 9), {"members": {members[0]: 60}})]

        first = aggregate_schedule(schedule_id, evaluations, criteria, members)
        second = aggregate_schedule(schedule_id, evaluations, criteria, members)

        assert first == second
