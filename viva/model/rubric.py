from .base import BaseModel, WithTimestamps
from .id import RubricCriterionID, RubricTemplateID


class RubricTemplate(WithTimestamps):
    template_id: RubricTemplateID
    name: str
    version: int = 1
    active: bool = True
    personal_max_score: float = 100.0


class RubricCriterion(BaseModel):
    criterion_id: RubricCriterionID
    template_id: RubricTemplateID

    label: str
    description: str | None = None
    weight: float
    min_score: float = 0.0
    max_score: float = 10.0


class RubricTemplateWithCriteria(RubricTemplate):
    criteria: list[RubricCriterion] = []
