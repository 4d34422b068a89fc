"""Combine every evaluator's view of a defense into composite scores.

Only submitted and locked evaluations count. Data-quality problems never
raise here: the affected values come back as None and an IntegrityWarning
explains why.
"""

from __future__ import annotations

import logging
import typing as t

from viva.core.provider import TRACE
from viva.lib.util import mean, round2
from viva.model import EvaluationBreakdown, EvaluationWithScores, GroupID, IntegrityWarning, IntegrityWarningKind, \
    MemberBreakdown, RubricCriterion, RubricCriterionID, ScheduleAggregate, ScheduleID, UserID

from .errors import RubricWeightError, ScoreRangeError
from .normalize import normalize
from .rubric import percentage, validate_weights, WeightTolerance

logger = logging.getLogger(__name__)


def aggregate_schedule(
    schedule_id: ScheduleID,
    evaluations: t.Iterable[EvaluationWithScores],
    criteria: t.Sequence[RubricCriterion],
    group_members: t.Sequence[UserID],
    *,
    group_id: GroupID | None = None,
    personal_max_score: float = 100.0,
    tolerance: float = WeightTolerance,
) -> ScheduleAggregate:
    warnings: list[IntegrityWarning] = []
    known = {c.criterion_id for c in criteria}

    weights_ok = _check_rubric(schedule_id, criteria, tolerance, warnings)

    breakdowns: list[EvaluationBreakdown] = []
    for evaluation in evaluations:
        if not evaluation.status.counts:
            continue

        scores: dict[RubricCriterionID, float] = {}
        for criterion_id, score in evaluation.score_map().items():
            if criterion_id in known:
                scores[criterion_id] = score
            else:
                warnings.append(
                    IntegrityWarning(
                        kind=IntegrityWarningKind.OrphanedScore,
                        message="score references a criterion that is not part of the rubric",
                        schedule_id=schedule_id,
                        evaluation_id=evaluation.evaluation_id,
                        criterion_id=criterion_id,
                    )
                )

        pct: float | None = None
        if weights_ok and scores:
            try:
                pct = percentage(scores, criteria, tolerance)
            except ScoreRangeError as e:
                warnings.append(
                    IntegrityWarning(
                        kind=IntegrityWarningKind.ScoreOutOfRange,
                        message=str(e),
                        schedule_id=schedule_id,
                        evaluation_id=evaluation.evaluation_id,
                        criterion_id=e.criterion_id,
                    )
                )

        members: list[MemberBreakdown] = []
        for student_id in group_members:
            personal = normalize(evaluation, criteria, subject_student_id=student_id, tolerance=tolerance)
            members.append(
                MemberBreakdown(
                    student_id=student_id,
                    personal_score=personal.personal_score,
                    personal_comment=personal.personal_comment,
                )
            )

        breakdowns.append(
            EvaluationBreakdown(
                evaluation_id=evaluation.evaluation_id,
                evaluator_id=evaluation.evaluator_id,
                status=evaluation.status,
                normalized=normalize(evaluation, criteria, tolerance=tolerance),
                percentage=pct,
                members=members,
            )
        )
        logger.log(
            TRACE,
            "evaluation counted",
            extra={"schedule_id": schedule_id, "evaluation_id": evaluation.evaluation_id, "percentage": pct},
        )

    personal_scores: dict[UserID, float | None] = {}
    personal_percentages: dict[UserID, float | None] = {}
    for i, student_id in enumerate(group_members):
        score = mean(b.members[i].personal_score for b in breakdowns)
        personal_scores[student_id] = score
        personal_percentages[student_id] = (
            round2(score / personal_max_score * 100.0) if score is not None and personal_max_score > 0 else None
        )

    for w in warnings:
        logger.warning(
            w.message,
            extra={
                "kind": w.kind.value,
                "schedule_id": schedule_id,
                "evaluation_id": w.evaluation_id,
                "criterion_id": w.criterion_id,
            },
        )

    return ScheduleAggregate(
        schedule_id=schedule_id,
        group_id=group_id,
        group_score=mean(b.normalized.group_score for b in breakdowns),
        system_score=mean(b.normalized.system_score for b in breakdowns),
        group_percentage=round2(mean(b.percentage for b in breakdowns)),
        student_personal_scores=personal_scores,
        student_percentages=personal_percentages,
        submitted_evaluations_count=len(breakdowns),
        evaluations=breakdowns,
        partial=bool(warnings),
        warnings=warnings,
    )


def _check_rubric(
    schedule_id: ScheduleID,
    criteria: t.Sequence[RubricCriterion],
    tolerance: float,
    warnings: list[IntegrityWarning],
) -> bool:
    if not criteria:
        warnings.append(
            IntegrityWarning(
                kind=IntegrityWarningKind.MissingRubric,
                message="schedule has no rubric criteria, percentages are unavailable",
                schedule_id=schedule_id,
            )
        )
        return False
    try:
        validate_weights(criteria, tolerance)
    except RubricWeightError as e:
        warnings.append(
            IntegrityWarning(kind=IntegrityWarningKind.RubricWeights, message=str(e), schedule_id=schedule_id)
        )
        return False
    return True
