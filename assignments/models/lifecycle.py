"""
Lifecycle Models

Derived, never-persisted view of an assignment: per-student statuses and the
aggregate state recomputed from session data on every request.
"""

from typing import Literal, Optional

from pydantic import Field

from shared.models.domain import CamelModel

LifecycleState = Literal["active", "resolved", "archived"]

ActiveReason = Literal[
    "students-need-support",
    "incomplete-work",
    "not-reviewed",
    "pending-feedback",
    "recent-activity",
]

UnderstandingLevel = Literal["strong", "developing", "needs-support"]

# Canonical emission order for active reasons
ACTIVE_REASON_ORDER: tuple[ActiveReason, ...] = (
    "students-need-support",
    "incomplete-work",
    "not-reviewed",
    "pending-feedback",
    "recent-activity",
)


def order_reasons(reasons) -> list[ActiveReason]:
    """Deduplicate reasons and sort them in canonical order."""
    present = set(reasons)
    return [reason for reason in ACTIVE_REASON_ORDER if reason in present]


class StudentStatus(CamelModel):
    """One student's standing on an assignment, from their latest attempt."""

    student_id: str
    student_name: str
    is_complete: bool = False
    understanding: UnderstandingLevel = "needs-support"
    needs_support: bool = Field(default=False, description="Score or hint usage warrants follow-up")
    has_teacher_note: bool = False
    hints_used: int = 0
    score: float = 0.0
    improved_after_help: bool = False


class Distribution(CamelModel):
    """Tally of understanding levels across every roster/attempting student."""

    strong: int = 0
    developing: int = 0
    needs_support: int = 0


class ComputedAssignmentState(CamelModel):
    """Current derived state of an assignment."""

    assignment_id: str
    title: str
    lifecycle_state: LifecycleState
    active_reasons: list[ActiveReason] = Field(default_factory=list)

    total_students: int = 0
    completed_count: int = 0
    in_progress_count: int = 0
    distribution: Distribution = Field(default_factory=Distribution)

    student_statuses: list[StudentStatus] = Field(default_factory=list)
    students_needing_support: int = 0

    all_students_complete: bool = False
    all_flagged_reviewed: bool = True

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state == "active"

    def status_for(self, student_id: str) -> Optional[StudentStatus]:
        for status in self.student_statuses:
            if status.student_id == student_id:
                return status
        return None
