"""Load defenses from storage and turn them into aggregates and rankings.

This is the read side of the engine: nothing here writes, and stale reads
are acceptable.
"""

from __future__ import annotations

import datetime
import logging
import typing as t

from viva.core import di
from viva.lib.util import mean, round2
from viva.model import DefenseSchedule, EvaluationStatus, EvaluationWithScores, GroupID, GroupRanking, RankingTarget, \
    RankItem, RubricCriterion, RubricTemplateID, ScheduleAggregate, ScheduleID, StudentRanking, ThesisGroup, User, \
    UserID
from viva.storage import evaluation as evaluation_storage
from viva.storage import group as group_storage
from viva.storage import rubric as rubric_storage
from viva.storage import schedule as schedule_storage
from viva.storage import Session
from viva.storage import user as user_storage

from .aggregate import aggregate_schedule
from .errors import NotFoundError
from .ranking import rank

logger = logging.getLogger(__name__)

Counted = tuple(s for s in EvaluationStatus if s.counts)
DefaultPersonalMax = 100.0


def schedule_aggregate(
    schedule_id: ScheduleID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    tolerance: float = di.Provide["config.evaluation.weight_tolerance"],
) -> ScheduleAggregate:
    schedule = schedule_storage.get(schedule_id, session=session)
    if schedule is None:
        raise NotFoundError("schedule", schedule_id)
    return DefenseSlice.load([schedule], session=session).aggregate(schedule, tolerance)


def rankings(
    target: RankingTarget,
    limit: int | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    tolerance: float = di.Provide["config.evaluation.weight_tolerance"],
) -> list[GroupRanking] | list[StudentRanking]:
    """Rank every group or every student by pooled rubric percentage.

    Group percentages pool the per-evaluation rubric percentages across all of
    the group's defenses; student percentages pool the per-evaluation personal
    scores, scaled by the rubric's personal maximum. Subjects with nothing to
    pool are still listed, ranked below everyone with a percentage. `limit`
    truncates after ranking so shared ranks are never renumbered.
    """
    schedules = schedule_storage.find(session=session)
    slice_ = DefenseSlice.load(schedules, all_groups=True, session=session)
    aggregates = [(s, slice_.aggregate(s, tolerance)) for s in schedules]

    rows: list[GroupRanking] | list[StudentRanking]
    if target is RankingTarget.Group:
        rows = _group_rankings(slice_, aggregates)
    else:
        rows = _student_rankings(slice_, aggregates, session=session)

    logger.debug(
        "rankings computed",
        extra={"target": target.value, "schedules": len(schedules), "rows": len(rows), "limit": limit},
    )
    if limit is not None and limit > 0:
        return rows[:limit]  # type: ignore[return-value]
    return rows


class DefenseSlice(object):
    """Everything needed to aggregate a set of schedules, fetched in bulk"""

    def __init__(
        self,
        groups: dict[GroupID, ThesisGroup],
        members: dict[GroupID, list[UserID]],
        evaluations: dict[ScheduleID, list[EvaluationWithScores]],
        criteria: dict[RubricTemplateID, list[RubricCriterion]],
        personal_max: dict[RubricTemplateID, float],
    ):
        self.groups = groups
        self.members = members
        self.evaluations = evaluations
        self.criteria = criteria
        self.personal_max = personal_max

    @classmethod
    def load(
        cls, schedules: t.Sequence[DefenseSchedule], *, all_groups: bool = False, session: Session
    ) -> DefenseSlice:
        schedule_ids = [s.schedule_id for s in schedules]
        group_ids: set[GroupID] | None = None if all_groups else {s.group_id for s in schedules}
        template_ids = {s.rubric_template_id for s in schedules if s.rubric_template_id is not None}

        groups = {g.group_id: g for g in group_storage.find(group_ids=group_ids, session=session)}

        members: dict[GroupID, list[UserID]] = {}
        for m in group_storage.find_members(group_ids=group_ids, session=session):
            members.setdefault(m.group_id, []).append(m.student_id)

        evaluations: dict[ScheduleID, list[EvaluationWithScores]] = {}
        if schedule_ids:
            for e in evaluation_storage.find(
                schedule_ids=schedule_ids, statuses=Counted, with_scores=True, session=session
            ):
                evaluations.setdefault(e.schedule_id, []).append(e)

        criteria: dict[RubricTemplateID, list[RubricCriterion]] = {}
        personal_max: dict[RubricTemplateID, float] = {}
        if template_ids:
            for c in rubric_storage.find_criteria(template_ids=template_ids, session=session):
                criteria.setdefault(c.template_id, []).append(c)
            for template_id in template_ids:
                template = rubric_storage.get(template_id, session=session)
                if template is not None:
                    personal_max[template_id] = template.personal_max_score

        return cls(groups, members, evaluations, criteria, personal_max)

    def aggregate(self, schedule: DefenseSchedule, tolerance: float) -> ScheduleAggregate:
        template_id = schedule.rubric_template_id
        return aggregate_schedule(
            schedule.schedule_id,
            self.evaluations.get(schedule.schedule_id, []),
            self.criteria.get(template_id, []) if template_id is not None else [],
            self.members.get(schedule.group_id, []),
            group_id=schedule.group_id,
            personal_max_score=self.personal_max_for(schedule),
            tolerance=tolerance,
        )

    def personal_max_for(self, schedule: DefenseSchedule) -> float:
        if schedule.rubric_template_id is None:
            return DefaultPersonalMax
        return self.personal_max.get(schedule.rubric_template_id, DefaultPersonalMax)


class _Pool(object):
    def __init__(self) -> None:
        self.percentages: list[float | None] = []
        self.submitted = 0
        self.latest: DefenseSchedule | None = None

    def add(self, schedule: DefenseSchedule, submitted: int) -> None:
        self.submitted += submitted
        if self.latest is None or schedule.scheduled_at > self.latest.scheduled_at:
            self.latest = schedule

    @property
    def percentage(self) -> float | None:
        return round2(mean(self.percentages))

    @property
    def latest_defense_at(self) -> datetime.datetime | None:
        return self.latest.scheduled_at if self.latest is not None else None


def _group_rankings(
    slice_: DefenseSlice, aggregates: t.Sequence[tuple[DefenseSchedule, ScheduleAggregate]]
) -> list[GroupRanking]:
    pools = {group_id: _Pool() for group_id in slice_.groups}
    for schedule, aggregate in aggregates:
        if not aggregate.submitted_evaluations_count:
            continue
        pool = pools.setdefault(schedule.group_id, _Pool())
        pool.add(schedule, aggregate.submitted_evaluations_count)
        pool.percentages.extend(b.percentage for b in aggregate.evaluations)

    titles = {group_id: group.title for group_id, group in slice_.groups.items()}
    items = [
        RankItem(
            id=group_id,
            percentage=pool.percentage,
            submitted_count=pool.submitted,
            tie_break_key=titles.get(group_id) or group_id,
        )
        for group_id, pool in pools.items()
    ]
    return [
        GroupRanking(
            rank=r.rank,
            group_id=GroupID(r.id),
            title=titles.get(GroupID(r.id)) or r.id,
            percentage=pools[GroupID(r.id)].percentage,
            submitted_evaluations=pools[GroupID(r.id)].submitted,
            latest_defense_at=pools[GroupID(r.id)].latest_defense_at,
        )
        for r in rank(items)
    ]


def _student_rankings(
    slice_: DefenseSlice,
    aggregates: t.Sequence[tuple[DefenseSchedule, ScheduleAggregate]],
    *,
    session: Session,
) -> list[StudentRanking]:
    pools: dict[UserID, _Pool] = {}
    home: dict[UserID, GroupID] = {}
    for group_id, student_ids in slice_.members.items():
        for student_id in student_ids:
            pools.setdefault(student_id, _Pool())
            home.setdefault(student_id, group_id)

    for schedule, aggregate in aggregates:
        scale = slice_.personal_max_for(schedule)
        for student_id in slice_.members.get(schedule.group_id, []):
            # only evaluations that scored this student count towards their row
            scored = [
                m.personal_score
                for b in aggregate.evaluations
                for m in b.members
                if m.student_id == student_id and m.personal_score is not None
            ]
            if not scored:
                continue
            pool = pools[student_id]
            pool.add(schedule, len(scored))
            if pool.latest is schedule:
                home[student_id] = schedule.group_id
            pool.percentages.extend(_personal_percentage(score, scale) for score in scored)

    users: dict[UserID, User] = {u.user_id: u for u in user_storage.find(user_ids=list(pools), session=session)}
    items = [
        RankItem(
            id=student_id,
            percentage=pool.percentage,
            submitted_count=pool.submitted,
            tie_break_key=users[student_id].name if student_id in users else student_id,
        )
        for student_id, pool in pools.items()
    ]

    rows: list[StudentRanking] = []
    for r in rank(items):
        student_id = UserID(r.id)
        pool = pools[student_id]
        user = users.get(student_id)
        group = slice_.groups.get(home[student_id])
        rows.append(
            StudentRanking(
                rank=r.rank,
                student_id=student_id,
                name=user.name if user is not None else student_id,
                email=user.email if user is not None else None,
                group_id=home[student_id],
                group_title=group.title if group is not None else None,
                percentage=pool.percentage,
                submitted_evaluations=pool.submitted,
                latest_defense_at=pool.latest_defense_at,
            )
        )
    return rows


def _personal_percentage(score: float | None, scale: float) -> float | None:
    if score is None or scale <= 0:
        return None
    return score / scale * 100.0
