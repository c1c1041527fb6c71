"""Assignment lifecycle models."""
from assignments.models.lifecycle import (
    ACTIVE_REASON_ORDER,
    ActiveReason,
    ComputedAssignmentState,
    Distribution,
    LifecycleState,
    StudentStatus,
    UnderstandingLevel,
)
from assignments.models.summary import (
    ClassPerformance,
    CoachUsage,
    Insights,
    QuestionAnalysis,
    QuestionPerformance,
    StudentHighlights,
    TeacherEngagement,
    TeacherSummary,
)
from assignments.models.state_record import AssignmentStateDocument, AssignmentStateRecord
from assignments.models.views import ArchivedAssignment, AssignmentView, AutoArchiveResult, DashboardView
