"""Tests for viva.evaluation.normalize module."""

from __future__ import annotations

import datetime
import typing as t

import pytest

from viva.evaluation.normalize import member_entry, normalize, pick_comment, pick_score, to_number
from viva.model import EvaluationID, EvaluationScore, EvaluationStatus, EvaluationWithScores, RubricCriterion, \
    RubricCriterionID, RubricTemplateID, ScheduleID, UserID

Now = datetime.datetime(2026, 3, 2, 12, 0, tzinfo=datetime.UTC)


def make_evaluation(
    extras: dict[str, t.Any] | None = None, scores: t.Mapping[RubricCriterionID, float] | None = None
) -> EvaluationWithScores:
    evaluation_id = EvaluationID()
    return EvaluationWithScores(
        evaluation_id=evaluation_id,
        schedule_id=ScheduleID(),
        evaluator_id=UserID(),
        status=EvaluationStatus.Submitted,
        extras=extras or {},
        scores=[
            EvaluationScore(evaluation_id=evaluation_id, criterion_id=cid, score=s) for cid, s in (scores or {}).items()
        ],
        create_time=Now,
        update_time=Now,
    )


@pytest.fixture
def criteria() -> list[RubricCriterion]:
    template_id = RubricTemplateID()
    return [
        RubricCriterion(criterion_id=RubricCriterionID(), template_id=template_id, label=label, weight=weight)
        for label, weight in (("Presentation", 40.0), ("Methodology", 30.0), ("Defense", 30.0))
    ]


class TestScalars(object):
    @pytest.mark.parametrize(
        "value, expected",
        [
            (8, 8.0),
            (7.5, 7.5),
            (" 6.25 ", 6.25),
            ("", None),
            ("n/a", None),
            (True, None),
            (float("nan"), None),
            (float("inf"), None),
            (None, None),
            ([8], None),
        ],
    )
    def test_to_number(self, value: t.Any, expected: float | None) -> None:
        assert to_number(value) == expected

    def test_pick_score_from_container(self) -> None:
        """pick_score() takes the first usable key in priority order."""
        assert pick_score({"total": "n/a", "value": 7}) == 7.0
        assert pick_score({"score": 9, "total": 3}) == 9.0
        assert pick_score({"comment": "good"}) is None

    def test_pick_comment(self) -> None:
        assert pick_comment("  well argued  ") == "well argued"
        assert pick_comment({"feedback": "clear slides"}) == "clear slides"
        assert pick_comment("8.5") is None
        assert pick_comment({"comment": "   "}) is None


class TestGroupScore(object):
    @pytest.mark.parametrize(
        "extras",
        [
            {"groupScore": 85},
            {"group_score": "85"},
            {"group": {"score": 85, "comment": "solid"}},
            {"overall": {"total": 85}},
            {"overallScore": 85.0},
            {"summary": {"value": 85}},
        ],
    )
    def test_accepted_spellings(self, extras: dict[str, t.Any], criteria: list[RubricCriterion]) -> None:
        assert normalize(make_evaluation(extras), criteria).group_score == 85.0

    def test_earlier_path_wins(self, criteria: list[RubricCriterion]) -> None:
        """Values are never merged across paths; the first usable one is taken."""
        extras = {"groupScore": 70, "group": {"score": 90}, "total": 10}

        assert normalize(make_evaluation(extras), criteria).group_score == 70.0

    def test_unusable_path_falls_through(self, criteria: list[RubricCriterion]) -> None:
        extras = {"groupScore": "pending", "overall": 88}

        assert normalize(make_evaluation(extras), criteria).group_score == 88.0

    def test_falls_back_to_rubric_scores(self, criteria: list[RubricCriterion]) -> None:
        scores = {c.criterion_id: s for c, s in zip(criteria, (8.0, 6.0, 9.0))}

        assert normalize(make_evaluation({}, scores), criteria).group_score == pytest.approx(7.7)

    def test_orphaned_scores_are_ignored(self, criteria: list[RubricCriterion]) -> None:
        scores = {criteria[0].criterion_id: 8.0, RubricCriterionID(): 2.0}

        assert normalize(make_evaluation({}, scores), criteria).group_score == pytest.approx(8.0)

    def test_nothing_recorded_is_none(self, criteria: list[RubricCriterion]) -> None:
        result = normalize(make_evaluation(), criteria)

        assert result.group_score is None
        assert result.system_score is None
        assert result.personal_score is None
        assert result.group_comment is None

    def test_group_comment(self, criteria: list[RubricCriterion]) -> None:
        extras = {"groupComment": "tighten the related work", "group": {"score": 80, "comment": "ignored"}}

        assert normalize(make_evaluation(extras), criteria).group_comment == "tighten the related work"

    def test_group_comment_from_container(self, criteria: list[RubricCriterion]) -> None:
        extras = {"group": {"score": 80, "notes": "good demo"}}

        assert normalize(make_evaluation(extras), criteria).group_comment == "good demo"


class TestSystemScore(object):
    def test_system_container(self, criteria: list[RubricCriterion]) -> None:
        extras = {"system": {"score": 92, "comment": "stable build"}}
        result = normalize(make_evaluation(extras), criteria)

        assert result.system_score == 92.0
        assert result.system_comment == "stable build"

    def test_system_flat(self, criteria: list[RubricCriterion]) -> None:
        assert normalize(make_evaluation({"systemTotal": "74.5"}), criteria).system_score == 74.5


class TestPersonalScore(object):
    def test_member_map(self, criteria: list[RubricCriterion]) -> None:
        student_id = UserID()
        extras = {"members": {student_id: {"score": 88, "comment": "confident answers"}}}
        result = normalize(make_evaluation(extras), criteria, subject_student_id=student_id)

        assert result.personal_score == 88.0
        assert result.personal_comment == "confident answers"

    def test_member_list(self, criteria: list[RubricCriterion]) -> None:
        student_id = UserID()
        extras = {"studentScores": [{"studentId": UserID(), "score": 60}, {"studentId": student_id, "score": 91}]}

        assert normalize(make_evaluation(extras), criteria, subject_student_id=student_id).personal_score == 91.0

    def test_maps_before_lists(self) -> None:
        student_id = UserID()
        extras = {
            "members": [{"id": student_id, "score": 50}],
            "individuals": {student_id: 75},
        }

        assert member_entry(extras, student_id) == 75

    def test_absent_member_is_none(self, criteria: list[RubricCriterion]) -> None:
        extras = {"members": {UserID(): 80}}

        assert normalize(make_evaluation(extras), criteria, subject_student_id=UserID()).personal_score is None

    def test_without_subject_reads_personal_keys(self, criteria: list[RubricCriterion]) -> None:
        extras = {"personalScore": 77, "personalComment": "n/a for groups of one"}
        result = normalize(make_evaluation(extras), criteria)

        assert result.personal_score == 77.0
        assert result.personal_comment == "n/a for groups of one"
