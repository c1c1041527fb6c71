"""Read models returned by the lifecycle orchestrator to the routing layer."""

from typing import Optional

from pydantic import Field

from assignments.models.lifecycle import ComputedAssignmentState
from assignments.models.state_record import AssignmentStateRecord
from assignments.models.summary import TeacherSummary
from shared.models.domain import CamelModel, UtcDateTime


class AssignmentView(CamelModel):
    """Single-assignment view: derived state plus the persisted record."""
    state: ComputedAssignmentState
    state_record: AssignmentStateRecord
    has_assignments: bool


class DashboardView(CamelModel):
    """Educator dashboard grouping. Active assignments are sorted most urgent first."""
    active: list[ComputedAssignmentState] = Field(default_factory=list)
    resolved: list[ComputedAssignmentState] = Field(default_factory=list)
    archived_count: int = 0


class AutoArchiveResult(CamelModel):
    checked: int = 0
    archived: list[str] = Field(default_factory=list)


class ArchivedAssignment(CamelModel):
    assignment_id: str
    title: str
    archived_at: Optional[UtcDateTime] = None
    teacher_summary: Optional[TeacherSummary] = None
    total_students: int = 0
    average_score: int = 0
    completion_rate: int = 0
