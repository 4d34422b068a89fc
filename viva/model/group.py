from .base import WithCtime, WithTimestamps
from .id import GroupID, UserID


class ThesisGroup(WithTimestamps):
    group_id: GroupID
    title: str
    program: str | None = None
    term: str | None = None


class GroupMember(WithCtime):
    group_id: GroupID
    student_id: UserID


class GroupWithMembers(ThesisGroup):
    members: list[GroupMember] = []
