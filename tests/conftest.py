"""Pytest fixtures for viva tests.

Tests run against the `test` environment, which points the persistent store at
an in-memory SQLite database. The schema is created once per session; every
test runs inside an outer transaction that is rolled back afterwards.

Usage:
    def test_aggregate(client: TestClient, schedule_factory, auth_headers):
        schedule = schedule_factory()
        response = client.get(f"/api/schedules/{schedule.schedule_id}/aggregate", headers=auth_headers(admin))
        assert response.status_code == 200
"""

from __future__ import annotations

import datetime
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import viva
from viva.core import TimestampProvider, VivaContainer
from viva.model import DefenseSchedule, DeploymentEnvironment, EvaluationStatus, EvaluationWithScores, \
    RubricCriterion, RubricTemplateWithCriteria, ThesisGroup, User, UserID, UserRole
from viva.storage import evaluation as evaluation_storage
from viva.storage import group as group_storage
from viva.storage import rubric as rubric_storage
from viva.storage import schedule as schedule_storage
from viva.storage import user as user_storage
from viva.storage.table import metadata

Criteria = t.Sequence[tuple[str, float]]
StandardCriteria: Criteria = (("Presentation", 40.0), ("Methodology", 30.0), ("Defense", 30.0))


@pytest.fixture(scope="session")
def container() -> t.Generator[VivaContainer]:
    """Boot the DI container once for the test session and create the schema."""
    ct = VivaContainer()
    root = Path(os.path.dirname(viva.__file__)).parent

    VivaContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )
    metadata.create_all(ct.storage().persistent().engine())

    yield ct

    ct.shutdown_resources()


@pytest.fixture(scope="session")
def app(container: VivaContainer) -> FastAPI:
    from viva.core.config.web import VivaWebSettings
    from viva.web.viva.main import build_app

    return build_app(config=VivaWebSettings(**container.config.web.viva()), env=DeploymentEnvironment.Test)


@pytest.fixture
def db_session(container: VivaContainer) -> t.Generator[Session]:
    """Provide a session wrapped in a transaction that is rolled back after the test.

    join_transaction_mode="create_savepoint" turns the `session.begin()` calls
    made by application code into savepoints inside the outer transaction.
    """
    engine = container.storage().persistent().engine()

    connection = engine.connect()
    transaction = connection.begin()

    session = Session(
        bind=connection,
        autobegin=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def client(app: FastAPI, container: VivaContainer, db_session: Session) -> t.Generator[TestClient]:
    """Provide a TestClient whose requests share the test's transactional session."""
    container.storage().persistent().session.override(db_session)

    with TestClient(app) as test_client:
        yield test_client

    container.storage().persistent().session.reset_override()


@pytest.fixture
def utcnow() -> TimestampProvider:
    return lambda: datetime.datetime.now(datetime.UTC)


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Create users with unique email addresses.

    Usage:
        panelist = user_factory(name="Dr. Reyes", role=UserRole.Panelist)
    """

    def create_user(name: str = "Test User", role: UserRole = UserRole.Panelist, email: str | None = None) -> User:
        if email is None:
            email = f"{UserID().key.lower()}@example.edu"
        with db_session.begin():
            return user_storage.create({"email": email, "name": name, "role": role}, session=db_session)

    return create_user


@pytest.fixture
def admin(user_factory: t.Callable[..., User]) -> User:
    return user_factory(name="Admin", role=UserRole.Admin)


@pytest.fixture
def staff(user_factory: t.Callable[..., User]) -> User:
    return user_factory(name="Staff", role=UserRole.Staff)


@pytest.fixture
def panelist(user_factory: t.Callable[..., User]) -> User:
    return user_factory(name="Panelist", role=UserRole.Panelist)


@pytest.fixture
def group_factory(db_session: Session) -> t.Callable[..., ThesisGroup]:
    """Create a thesis group and enroll the given students."""

    def create_group(title: str = "Test Group", members: t.Sequence[User] = ()) -> ThesisGroup:
        with db_session.begin():
            group = group_storage.create({"title": title, "program": "BSCS", "term": "2026-1"}, session=db_session)
            for student in members:
                group_storage.add_member(group.group_id, student.user_id, session=db_session)
            return group

    return create_group


@pytest.fixture
def rubric_factory(db_session: Session) -> t.Callable[..., RubricTemplateWithCriteria]:
    """Create a rubric template; criteria are (label, weight) pairs scored 0-10."""

    def create_rubric(
        criteria: Criteria = StandardCriteria,
        name: str = "Thesis Defense",
        personal_max_score: float = 100.0,
        min_score: float = 0.0,
        max_score: float = 10.0,
    ) -> RubricTemplateWithCriteria:
        with db_session.begin():
            template = rubric_storage.create(
                {"name": name, "personal_max_score": personal_max_score}, session=db_session
            )
            for label, weight in criteria:
                rubric_storage.create_criterion(
                    {
                        "template_id": template.template_id,
                        "label": label,
                        "weight": weight,
                        "min_score": min_score,
                        "max_score": max_score,
                    },
                    session=db_session,
                )
            rubric = rubric_storage.get(template.template_id, with_criteria=True, session=db_session)
            assert rubric is not None
            return rubric

    return create_rubric


@pytest.fixture
def schedule_factory(
    db_session: Session,
    group_factory: t.Callable[..., ThesisGroup],
    rubric_factory: t.Callable[..., RubricTemplateWithCriteria],
) -> t.Callable[..., DefenseSchedule]:
    """Create a defense schedule; a group and the standard rubric are made when not given."""

    def create_schedule(
        group: ThesisGroup | None = None,
        rubric: RubricTemplateWithCriteria | None = None,
        panelists: t.Sequence[User] = (),
        scheduled_at: datetime.datetime | None = None,
        with_rubric: bool = True,
    ) -> DefenseSchedule:
        if group is None:
            group = group_factory()
        if rubric is None and with_rubric:
            rubric = rubric_factory()
        if scheduled_at is None:
            scheduled_at = datetime.datetime(2026, 3, 2, 9, 0, tzinfo=datetime.UTC)
        with db_session.begin():
            schedule = schedule_storage.create(
                {
                    "group_id": group.group_id,
                    "rubric_template_id": rubric.template_id if rubric is not None else None,
                    "scheduled_at": scheduled_at,
                    "room": "AVR 1",
                },
                session=db_session,
            )
            for user in panelists:
                schedule_storage.add_panelist(schedule.schedule_id, user.user_id, session=db_session)
            return schedule

    return create_schedule


@pytest.fixture
def evaluation_factory(
    db_session: Session, user_factory: t.Callable[..., User], utcnow: TimestampProvider
) -> t.Callable[..., EvaluationWithScores]:
    """Write an evaluation row directly, bypassing the lifecycle rules.

    `scores` maps criterion labels (or criterion objects) to scores.
    """

    def create_evaluation(
        schedule: DefenseSchedule,
        evaluator: User | None = None,
        scores: t.Mapping[str | RubricCriterion, float] | None = None,
        extras: dict[str, t.Any] | None = None,
        status: EvaluationStatus = EvaluationStatus.Submitted,
    ) -> EvaluationWithScores:
        if evaluator is None:
            evaluator = user_factory(name="Panelist", role=UserRole.Panelist)
        with db_session.begin():
            criteria = {}
            if schedule.rubric_template_id is not None:
                criteria = {
                    c.label: c
                    for c in rubric_storage.find_criteria(
                        template_ids=[schedule.rubric_template_id], session=db_session
                    )
                }
            evaluation = evaluation_storage.insert(schedule.schedule_id, evaluator.user_id, session=db_session)
            for key, score in (scores or {}).items():
                criterion = key if isinstance(key, RubricCriterion) else criteria[key]
                evaluation_storage.upsert_score(
                    evaluation.evaluation_id, criterion.criterion_id, score, session=db_session
                )
            now = utcnow()
            evaluation_storage.update(
                evaluation.evaluation_id,
                status=status,
                submitted_at=now if status is not EvaluationStatus.Pending else None,
                locked_at=now if status is EvaluationStatus.Locked else None,
                extras=extras or {},
                session=db_session,
            )
            result = evaluation_storage.get(evaluation.evaluation_id, with_scores=True, session=db_session)
            assert result is not None
            return result

    return create_evaluation


@pytest.fixture
def auth_headers(app: FastAPI, container: VivaContainer) -> t.Callable[[User], dict[str, str]]:
    """Mint a bearer token for a user with the configured JWT secret."""

    def headers_for(user: User) -> dict[str, str]:
        token = container.auth().jwt_manager().create_access_token(user.user_id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return headers_for
