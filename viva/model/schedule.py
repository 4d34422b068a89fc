import datetime
import enum

from .base import WithCtime, WithTimestamps
from .id import GroupID, RubricTemplateID, ScheduleID, UserID


class ScheduleStatus(enum.Enum):
    Scheduled = "scheduled"
    Completed = "completed"
    Cancelled = "cancelled"


class DefenseSchedule(WithTimestamps):
    schedule_id: ScheduleID
    group_id: GroupID
    rubric_template_id: RubricTemplateID | None = None
    scheduled_at: datetime.datetime
    room: str | None = None
    status: ScheduleStatus = ScheduleStatus.Scheduled


class SchedulePanelist(WithCtime):
    schedule_id: ScheduleID
    panelist_id: UserID
