"""Canonical scores from an evaluation's extras payload.

Evaluators' clients have written the extras map under several historical
shapes. Every accepted spelling is listed in the lookup tables below, in
priority order; the first path that resolves to a usable value wins and
values are never merged across paths. Supporting a new spelling means
adding a path here, nothing else.
"""

from __future__ import annotations

import math
import typing as t
from collections.abc import Mapping

from viva.model import EvaluationWithScores, NormalizedScore, RubricCriterion

from .errors import ValidationError
from .rubric import weighted_average, WeightTolerance

Path = tuple[str, ...]

# keys tried, in order, when a container holds a score or comment rather than being one
ScoreKeys: tuple[str, ...] = (
    "score",
    "total",
    "value",
    "points",
    "memberScore",
    "member_score",
    "finalScore",
    "final_score",
    "overallScore",
    "overall_score",
    "groupScore",
    "group_score",
    "systemScore",
    "system_score",
)
CommentKeys: tuple[str, ...] = ("comment", "comments", "note", "notes", "feedback", "reason")
MemberIDKeys: tuple[str, ...] = ("id", "studentId", "student_id", "userId", "user_id")

GroupScorePaths: tuple[Path, ...] = (
    ("groupScore",),
    ("group_score",),
    ("group",),
    ("overall",),
    ("overallScore",),
    ("overall_score",),
    ("total",),
    ("final",),
    ("summary",),
)
GroupCommentPaths: tuple[Path, ...] = (("groupComment",), ("group_comment",), *GroupScorePaths)

SystemScorePaths: tuple[Path, ...] = (
    ("systemScore",),
    ("system_score",),
    ("system",),
    ("systemTotal",),
    ("system_total",),
    ("systemResult",),
    ("system_result",),
)
SystemCommentPaths: tuple[Path, ...] = (("systemComment",), ("system_comment",), *SystemScorePaths)

# personal values when no particular student is asked for
PersonalScorePaths: tuple[Path, ...] = (("personalScore",), ("personal_score",), ("personal",))
PersonalCommentPaths: tuple[Path, ...] = (("personalComment",), ("personal_comment",), *PersonalScorePaths)

# per-member sub-structures, either keyed by student id or a list of member records
MemberPaths: tuple[Path, ...] = (
    ("members",),
    ("memberScores",),
    ("member_scores",),
    ("perMember",),
    ("per_member",),
    ("individuals",),
    ("students",),
    ("studentScores",),
    ("student_scores",),
)


def to_number(value: t.Any) -> float | None:
    """Finite number from a number or numeric string, anything else is None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        n = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            n = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return n if math.isfinite(n) else None


def to_comment(value: t.Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def pick_score(value: t.Any) -> float | None:
    if (n := to_number(value)) is not None:
        return n
    if isinstance(value, Mapping):
        for key in ScoreKeys:
            if (n := to_number(value.get(key))) is not None:
                return n
    return None


def pick_comment(value: t.Any) -> str | None:
    # a bare numeric string is a score, not a comment
    if (s := to_comment(value)) is not None and to_number(s) is None:
        return s
    if isinstance(value, Mapping):
        for key in CommentKeys:
            if (s := to_comment(value.get(key))) is not None:
                return s
    return None


def resolve(extras: t.Mapping[str, t.Any], path: Path) -> t.Any:
    value: t.Any = extras
    for key in path:
        if not isinstance(value, Mapping) or key not in value:
            return None
        value = value[key]
    return value


def first_match(
    extras: t.Mapping[str, t.Any], paths: t.Iterable[Path], pick: t.Callable[[t.Any], t.Any]
) -> t.Any:
    for path in paths:
        if (found := pick(resolve(extras, path))) is not None:
            return found
    return None


def member_entry(extras: t.Mapping[str, t.Any], student_id: str) -> t.Any:
    """Locate a student's record among the per-member containers, maps before lists"""
    containers = [resolve(extras, path) for path in MemberPaths]
    for c in containers:
        if isinstance(c, Mapping) and student_id in c:
            return c[student_id]
    for c in containers:
        if isinstance(c, list):
            for entry in c:
                if isinstance(entry, Mapping) and _member_id(entry) == student_id:
                    return entry
    return None


def _member_id(entry: t.Mapping[str, t.Any]) -> str | None:
    for key in MemberIDKeys:
        if entry.get(key) is not None:
            return str(entry[key])
    return None


def rubric_score(
    evaluation: EvaluationWithScores, criteria: t.Sequence[RubricCriterion], tolerance: float = WeightTolerance
) -> float | None:
    """Weighted average of the recorded criterion scores; orphaned scores are ignored
    and a misconfigured rubric or out-of-range score yields None"""
    known = {c.criterion_id for c in criteria}
    scores = {k: v for k, v in evaluation.score_map().items() if k in known}
    if not scores:
        return None
    try:
        return weighted_average(scores, criteria, tolerance)
    except ValidationError:
        return None


def normalize(
    evaluation: EvaluationWithScores,
    criteria: t.Sequence[RubricCriterion],
    subject_student_id: str | None = None,
    tolerance: float = WeightTolerance,
) -> NormalizedScore:
    extras: t.Mapping[str, t.Any] = evaluation.extras if isinstance(evaluation.extras, Mapping) else {}

    group_score = first_match(extras, GroupScorePaths, pick_score)
    if group_score is None:
        group_score = rubric_score(evaluation, criteria, tolerance)

    if subject_student_id is not None:
        entry = member_entry(extras, subject_student_id)
        personal_score = pick_score(entry)
        personal_comment = pick_comment(entry)
    else:
        personal_score = first_match(extras, PersonalScorePaths, pick_score)
        personal_comment = first_match(extras, PersonalCommentPaths, pick_comment)

    return NormalizedScore(
        group_score=group_score,
        system_score=first_match(extras, SystemScorePaths, pick_score),
        personal_score=personal_score,
        group_comment=first_match(extras, GroupCommentPaths, pick_comment),
        system_comment=first_match(extras, SystemCommentPaths, pick_comment),
        personal_comment=personal_comment,
    )
