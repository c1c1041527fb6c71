"""
State Record Models

The persisted half of the lifecycle: one record per assignment holding
transition timestamps, teacher engagement and the frozen archive summary,
plus the document that wraps every record on disk.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from assignments.models.lifecycle import ActiveReason, LifecycleState
from assignments.models.summary import TeacherSummary
from shared.models.domain import CamelModel, UtcDateTime


class AssignmentStateRecord(CamelModel):
    """Durable lifecycle metadata for a single assignment."""

    assignment_id: str
    lifecycle_state: LifecycleState = "active"
    active_reasons: list[ActiveReason] = Field(default_factory=lambda: ["not-reviewed"])

    # Timestamps
    created_at: UtcDateTime
    resolved_at: Optional[UtcDateTime] = None
    archived_at: Optional[UtcDateTime] = None
    last_activity_at: UtcDateTime

    # Teacher engagement
    teacher_viewed_at: Optional[UtcDateTime] = None
    teacher_view_count: int = 0

    # Set on each archive; frozen while the record stays archived
    teacher_summary: Optional[TeacherSummary] = None

    @classmethod
    def new(cls, assignment_id: str, now: datetime) -> "AssignmentStateRecord":
        return cls(
            assignment_id=assignment_id,
            lifecycle_state="active",
            active_reasons=["not-reviewed"],
            created_at=now,
            last_activity_at=now,
            teacher_view_count=0,
        )

    @property
    def is_archived(self) -> bool:
        return self.lifecycle_state == "archived"

    @property
    def has_summary(self) -> bool:
        return self.teacher_summary is not None


class AssignmentStateDocument(CamelModel):
    """Canonical persisted layout: ``{states: {id: record}, lastAutoArchiveCheck}``."""

    states: dict[str, AssignmentStateRecord] = Field(default_factory=dict)
    last_auto_archive_check: UtcDateTime

    @classmethod
    def empty(cls, now: datetime) -> "AssignmentStateDocument":
        return cls(states={}, last_auto_archive_check=now)
