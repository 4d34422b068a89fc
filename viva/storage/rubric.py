from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from viva.core import di
from viva.model import RubricCriterion, RubricCriterionID, RubricTemplate, RubricTemplateID, \
    RubricTemplateWithCriteria

from . import Session
from .table import rubric_criteria, rubric_templates


@t.overload
def get(
    key: RubricTemplateID, *, with_criteria: t.Literal[False] = ..., session: Session = ...
) -> RubricTemplate | None: ...


@t.overload
def get(
    key: RubricTemplateID, *, with_criteria: t.Literal[True], session: Session = ...
) -> RubricTemplateWithCriteria | None: ...


def get(
    key: RubricTemplateID,
    *,
    with_criteria: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> RubricTemplate | RubricTemplateWithCriteria | None:
    """Get a rubric template, optionally with its criteria."""
    stmt = sqla.select(rubric_templates.__table__).where(rubric_templates.template_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    if row is None:
        return None
    if with_criteria:
        criteria = find_criteria(template_ids=[key], session=session)
        return RubricTemplateWithCriteria(**row, criteria=list(criteria))
    return RubricTemplate(**row)


def find(
    *,
    name: str | None = None,
    active: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[RubricTemplate, ...]:
    """Find rubric templates, newest version first."""
    stmt = sqla.select(rubric_templates.__table__).order_by(rubric_templates.name, rubric_templates.version.desc())
    if name is not None:
        stmt = stmt.where(rubric_templates.name == name)
    if active is not None:
        stmt = stmt.where(rubric_templates.active == active)
    rows = session.execute(stmt).mappings().all()
    return tuple(RubricTemplate(**row) for row in rows)


def create(
    params: TemplateCreateParams, session: Session = di.Provide["storage.persistent.session"]
) -> RubricTemplate:
    template_id = RubricTemplateID()
    stmt = sqla.insert(rubric_templates).values(
        template_id=template_id,
        name=params["name"],
        version=params.get("version", 1),
        active=params.get("active", True),
        personal_max_score=params.get("personal_max_score", 100.0),
    )
    session.execute(stmt)
    session.flush()
    template = get(template_id, session=session)
    assert template is not None
    return template


def get_criterion(
    key: RubricCriterionID, session: Session = di.Provide["storage.persistent.session"]
) -> RubricCriterion | None:
    stmt = sqla.select(rubric_criteria.__table__).where(rubric_criteria.criterion_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    return RubricCriterion(**row) if row else None


def find_criteria(
    *,
    template_ids: t.Collection[RubricTemplateID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[RubricCriterion, ...]:
    stmt = sqla.select(rubric_criteria.__table__).order_by(rubric_criteria.template_id, rubric_criteria.criterion_id)
    if template_ids is not None:
        stmt = stmt.where(rubric_criteria.template_id.in_(list(template_ids)))
    rows = session.execute(stmt).mappings().all()
    return tuple(RubricCriterion(**row) for row in rows)


def create_criterion(
    params: CriterionCreateParams, session: Session = di.Provide["storage.persistent.session"]
) -> RubricCriterion:
    criterion_id = RubricCriterionID()
    stmt = sqla.insert(rubric_criteria).values(
        criterion_id=criterion_id,
        template_id=params["template_id"],
        label=params["label"],
        description=params.get("description"),
        weight=params["weight"],
        min_score=params.get("min_score", 0.0),
        max_score=params.get("max_score", 10.0),
    )
    session.execute(stmt)
    session.flush()
    criterion = get_criterion(criterion_id, session=session)
    assert criterion is not None
    return criterion


def delete_criterion(key: RubricCriterionID, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    """Delete a criterion. Scores recorded against it are left in place.

    Returns:
        True if a criterion was deleted, False if not found
    """
    stmt = sqla.delete(rubric_criteria).where(rubric_criteria.criterion_id == key)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


class TemplateCreateParams(t.TypedDict, total=False):
    name: t.Required[str]
    version: int
    active: bool
    personal_max_score: float


class CriterionCreateParams(t.TypedDict, total=False):
    template_id: t.Required[RubricTemplateID]
    label: t.Required[str]
    weight: t.Required[float]
    description: str | None
    min_score: float
    max_score: float
