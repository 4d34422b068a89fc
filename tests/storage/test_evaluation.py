"""Tests for viva.storage.evaluation module."""

from __future__ import annotations

import datetime
import typing as t

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from viva.model import DefenseSchedule, EvaluationID, EvaluationStatus, EvaluationWithScores, \
    RubricTemplateWithCriteria, User
from viva.storage import evaluation as evaluation_storage


class TestInsert(object):
    """Tests for evaluation_storage.insert()."""

    def test_insert_pending(
        self, db_session: Session, schedule_factory: t.Callable[..., DefenseSchedule], panelist: User
    ) -> None:
        """insert() creates a pending evaluation with empty extras."""
        schedule = schedule_factory()

        with db_session.begin():
            evaluation = evaluation_storage.insert(schedule.schedule_id, panelist.user_id, session=db_session)

        assert evaluation.status is EvaluationStatus.Pending
        assert evaluation.extras == {}
        assert evaluation.submitted_at is None
        assert evaluation.locked_at is None

    def test_insert_duplicate_raises(
        self, db_session: Session, schedule_factory: t.Callable[..., DefenseSchedule], panelist: User
    ) -> None:
        """insert() enforces one evaluation per evaluator and schedule."""
        schedule = schedule_factory()
        with db_session.begin():
            evaluation_storage.insert(schedule.schedule_id, panelist.user_id, session=db_session)

        with pytest.raises(IntegrityError):
            with db_session.begin():
                evaluation_storage.insert(schedule.schedule_id, panelist.user_id, session=db_session)


class TestGet(object):
    """Tests for evaluation_storage.get() and get_assigned()."""

    def test_get_nonexistent_returns_none(self, db_session: Session) -> None:
        with db_session.begin():
            assert evaluation_storage.get(EvaluationID(), session=db_session) is None

    def test_get_with_scores(
        self,
        db_session: Session,
        schedule_factory: t.Callable[..., DefenseSchedule],
        evaluation_factory: t.Callable[..., EvaluationWithScores],
    ) -> None:
        """get() with with_scores=True includes criterion scores."""
        schedule = schedule_factory()
        evaluation = evaluation_factory(schedule, scores={"Presentation": 8, "Defense": 9})

        with db_session.begin():
            result = evaluation_storage.get(evaluation.evaluation_id, with_scores=True, session=db_session)

        assert result is not None
        assert sorted(s.score for s in result.scores) == [8.0, 9.0]

    def test_get_assigned(
        self, db_session: Session, schedule_factory: t.Callable[..., DefenseSchedule], panelist: User, staff: User
    ) -> None:
        schedule = schedule_factory()
        with db_session.begin():
            evaluation = evaluation_storage.insert(schedule.schedule_id, panelist.user_id, session=db_session)

            found = evaluation_storage.get_assigned(schedule.schedule_id, panelist.user_id, session=db_session)
            missing = evaluation_storage.get_assigned(schedule.schedule_id, staff.user_id, session=db_session)

        assert found is not None
        assert found.evaluation_id == evaluation.evaluation_id
        assert missing is None


class TestFind(object):
    """Tests for evaluation_storage.find()."""

    def test_filter_by_status(
        self,
        db_session: Session,
        schedule_factory: t.Callable[..., DefenseSchedule],
        evaluation_factory: t.Callable[..., EvaluationWithScores],
    ) -> None:
        schedule = schedule_factory()
        pending = evaluation_factory(schedule, status=EvaluationStatus.Pending)
        submitted = evaluation_factory(schedule, status=EvaluationStatus.Submitted)
        locked = evaluation_factory(schedule, status=EvaluationStatus.Locked)

        with db_session.begin():
            counted = evaluation_storage.find(
                schedule_ids=[schedule.schedule_id],
                statuses=(EvaluationStatus.Submitted, EvaluationStatus.Locked),
                session=db_session,
            )
            everything = evaluation_storage.find(schedule_ids=[schedule.schedule_id], session=db_session)

        assert {e.evaluation_id for e in counted} == {submitted.evaluation_id, locked.evaluation_id}
        assert pending.evaluation_id in {e.evaluation_id for e in everything}

    def test_scores_loaded_only_on_request(
        self,
        db_session: Session,
        schedule_factory: t.Callable[..., DefenseSchedule],
        evaluation_factory: t.Callable[..., EvaluationWithScores],
    ) -> None:
        schedule = schedule_factory()
        evaluation_factory(schedule, scores={"Presentation": 7})

        with db_session.begin():
            (bare,) = evaluation_storage.find(schedule_ids=[schedule.schedule_id], session=db_session)
            (loaded,) = evaluation_storage.find(
                schedule_ids=[schedule.schedule_id], with_scores=True, session=db_session
            )

        assert bare.scores == []
        assert [s.score for s in loaded.scores] == [7.0]

    def test_filter_by_evaluator(
        self,
        db_session: Session,
        schedule_factory: t.Callable[..., DefenseSchedule],
        evaluation_factory: t.Callable[..., EvaluationWithScores],
        panelist: User,
    ) -> None:
        evaluation_factory(schedule_factory(), evaluator=panelist)
        evaluation_factory(schedule_factory(), evaluator=panelist)
        evaluation_factory(schedule_factory())

        with db_session.begin():
            result = evaluation_storage.find(evaluator_id=panelist.user_id, session=db_session)

        assert len(result) == 2


class TestUpdate(object):
    """Tests for evaluation_storage.update()."""

    def test_update_fields(
        self,
        db_session: Session,
        schedule_factory: t.Callable[..., DefenseSchedule],
        evaluation_factory: t.Callable[..., EvaluationWithScores],
    ) -> None:
        evaluation = evaluation_factory(schedule_factory(), status=EvaluationStatus.Pending)
        submitted_at = datetime.datetime(2026, 3, 2, 11, 15, tzinfo=datetime.UTC)

        with db_session.begin():
            evaluation_storage.update(
                evaluation.evaluation_id,
                status=EvaluationStatus.Submitted,
                submitted_at=submitted_at,
                extras={"groupScore": 88},
                session=db_session,
            )
            result = evaluation_storage.get(evaluation.evaluation_id, session=db_session)

        assert result is not None
        assert result.status is EvaluationStatus.Submitted
        assert result.submitted_at == submitted_at
        assert result.extras == {"groupScore": 88}

    def test_update_nonexistent_raises(self, db_session: Session) -> None:
        with pytest.raises(KeyError):
            with db_session.begin():
                evaluation_storage.update(EvaluationID(), status=EvaluationStatus.Locked, session=db_session)


class TestScores(object):
    """Tests for evaluation_storage.upsert_score() and delete()."""

    def test_upsert_keeps_comment_when_unset(
        self,
        db_session: Session,
        rubric_factory: t.Callable[..., RubricTemplateWithCriteria],
        schedule_factory: t.Callable[..., DefenseSchedule],
        panelist: User,
    ) -> None:
        rubric = rubric_factory()
        schedule = schedule_factory(rubric=rubric)
        criterion = rubric.criteria[0]

        with db_session.begin():
            evaluation = evaluation_storage.insert(schedule.schedule_id, panelist.user_id, session=db_session)
            evaluation_storage.upsert_score(
                evaluation.evaluation_id, criterion.criterion_id, 6, "hesitant", session=db_session
            )
            score = evaluation_storage.upsert_score(
                evaluation.evaluation_id, criterion.criterion_id, 7, session=db_session
            )
            stored = evaluation_storage.find_scores(evaluation_ids=[evaluation.evaluation_id], session=db_session)

        assert score.score == 7
        assert score.comment == "hesitant"
        assert len(stored) == 1

    def test_delete_removes_scores(
        self,
        db_session: Session,
        schedule_factory: t.Callable[..., DefenseSchedule],
        evaluation_factory: t.Callable[..., EvaluationWithScores],
    ) -> None:
        evaluation = evaluation_factory(schedule_factory(), scores={"Presentation": 5, "Methodology": 5})

        with db_session.begin():
            deleted = evaluation_storage.delete(evaluation.evaluation_id, session=db_session)
            again = evaluation_storage.delete(evaluation.evaluation_id, session=db_session)
            scores = evaluation_storage.find_scores(evaluation_ids=[evaluation.evaluation_id], session=db_session)

        assert deleted is True
        assert again is False
        assert scores == ()
