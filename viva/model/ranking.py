import datetime
import enum

import pydantic as p

from .base import BaseModel
from .id import GroupID, UserID


class RankingTarget(enum.Enum):
    Group = "group"
    Student = "student"


class RankItem(BaseModel):
    id: str
    percentage: p.FiniteFloat | None = None
    submitted_count: int = 0
    tie_break_key: str = ""


class Ranked(BaseModel):
    id: str
    rank: int


class RankingRow(BaseModel):
    rank: int
    percentage: float | None = None
    submitted_evaluations: int = 0
    latest_defense_at: datetime.datetime | None = None


class GroupRanking(RankingRow):
    group_id: GroupID
    title: str


class StudentRanking(RankingRow):
    student_id: UserID
    name: str
    email: str | None = None
    group_id: GroupID | None = None
    group_title: str | None = None
