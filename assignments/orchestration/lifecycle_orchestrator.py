"""
Assignment Lifecycle Orchestrator

Single entry point for the routing layer. Loads lesson, session and roster
data, runs the pure lifecycle computations and persists transitions through
the state store, so every caller uses the same thresholds and clock.
"""

import logging
from typing import Optional

from assignments.models.lifecycle import ComputedAssignmentState
from assignments.models.state_record import AssignmentStateRecord
from assignments.models.summary import ClassPerformance, TeacherSummary
from assignments.models.views import ArchivedAssignment, AssignmentView, AutoArchiveResult, DashboardView
from assignments.orchestration.collaborators import (
    LessonSource,
    RosterSource,
    SessionSource,
    StudentNameSource,
)
from assignments.services.lifecycle_service import compute_assignment_state, should_resolve
from assignments.services.summary_service import generate_teacher_summary
from assignments.stores.base import AssignmentStateStore
from config import Settings, get_settings
from shared.models.domain import Lesson, Session
from shared.utils.clock import Clock, utc_now
from shared.utils.constants import UNKNOWN_ASSIGNMENT_TITLE
from shared.utils.exceptions import AssignmentNotFoundException

logger = logging.getLogger(__name__)


def dashboard_priority(state: ComputedAssignmentState) -> int:
    """Students needing support first, then unreviewed work, then everything else."""
    if "students-need-support" in state.active_reasons:
        return 3
    if "not-reviewed" in state.active_reasons:
        return 2
    return 1


class AssignmentLifecycleOrchestrator:
    """Computes assignment state on demand and drives persisted transitions."""

    def __init__(
        self,
        store: AssignmentStateStore,
        lessons: LessonSource,
        sessions: SessionSource,
        roster: RosterSource,
        *,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.lessons = lessons
        self.sessions = sessions
        self.roster = roster
        self.settings = settings or get_settings()
        self._clock = clock or utc_now

    # ── Helpers ─────────────────────────────────────────────────

    def _require_lesson(self, assignment_id: str) -> Lesson:
        lesson = self.lessons.get_lesson(assignment_id)
        if lesson is None:
            raise AssignmentNotFoundException(assignment_id)
        return lesson

    def _student_names(self, lesson_id: str) -> Optional[dict[str, str]]:
        if isinstance(self.roster, StudentNameSource):
            return dict(self.roster.student_names(lesson_id))
        return None

    def _compute(
        self,
        lesson: Lesson,
        sessions: list[Session],
        roster_ids: list[str],
        record: Optional[AssignmentStateRecord],
    ) -> ComputedAssignmentState:
        return compute_assignment_state(
            lesson,
            sessions,
            roster_ids,
            record,
            student_names=self._student_names(lesson.id),
            now=self._clock(),
            recent_activity_window_hours=self.settings.recent_activity_window_hours,
        )

    def _load(self, lesson: Lesson) -> tuple[list[Session], list[str]]:
        sessions = list(self.sessions.list_sessions_for_lesson(lesson.id))
        roster_ids = list(self.roster.get_assigned_student_ids(lesson.id))
        return sessions, roster_ids

    def _archive(self, lesson: Lesson, record: AssignmentStateRecord) -> AssignmentStateRecord:
        summary: Optional[TeacherSummary] = record.teacher_summary
        if not (record.is_archived and record.has_summary):
            sessions, roster_ids = self._load(lesson)
            state = self._compute(lesson, sessions, roster_ids, record)
            summary = generate_teacher_summary(
                lesson,
                sessions,
                state.student_statuses,
                record,
                now=self._clock(),
            )
        return self.store.archive_with_summary(lesson.id, summary)

    # ── Reads ───────────────────────────────────────────────────

    def get_assignment(self, assignment_id: str) -> AssignmentView:
        """
        Get computed state for a single assignment.

        Raises:
            AssignmentNotFoundException: if no lesson has this ID
        """
        lesson = self._require_lesson(assignment_id)
        sessions, roster_ids = self._load(lesson)
        record = self.store.get_or_create(assignment_id)
        state = self._compute(lesson, sessions, roster_ids, record)
        return AssignmentView(
            state=state,
            state_record=record,
            has_assignments=len(roster_ids) > 0,
        )

    def build_dashboard(self) -> DashboardView:
        """
        Group every assigned lesson by lifecycle state.

        Lessons with nobody assigned are left out. An active record whose
        computed state has nothing outstanding is resolved on the way.
        """
        active: list[ComputedAssignmentState] = []
        resolved: list[ComputedAssignmentState] = []
        archived_count = 0

        for lesson in self.lessons.list_lessons():
            sessions, roster_ids = self._load(lesson)
            if not roster_ids:
                continue

            record = self.store.get_or_create(lesson.id)
            state = self._compute(lesson, sessions, roster_ids, record)

            if record.lifecycle_state == "active" and (
                should_resolve(state) or state.lifecycle_state == "resolved"
            ):
                logger.info(f"Auto-resolving assignment {lesson.id}")
                self.store.resolve(lesson.id)
                state = state.model_copy(update={"lifecycle_state": "resolved"})

            if state.is_active:
                active.append(state)
            elif state.lifecycle_state == "resolved":
                resolved.append(state)
            else:
                archived_count += 1

        # sorted() is stable, so equal priorities keep lesson order
        active = sorted(active, key=dashboard_priority, reverse=True)
        return DashboardView(active=active, resolved=resolved, archived_count=archived_count)

    def list_archived(self) -> list[ArchivedAssignment]:
        """Archived assignments with their frozen summaries and headline stats."""
        archived = []
        for record in self.store.get_all():
            if not record.is_archived:
                continue
            lesson = self.lessons.get_lesson(record.assignment_id)
            performance = (
                record.teacher_summary.class_performance
                if record.teacher_summary else ClassPerformance()
            )
            archived.append(ArchivedAssignment(
                assignment_id=record.assignment_id,
                title=lesson.title if lesson and lesson.title else UNKNOWN_ASSIGNMENT_TITLE,
                archived_at=record.archived_at,
                teacher_summary=record.teacher_summary,
                total_students=performance.total_students,
                average_score=performance.average_score,
                completion_rate=performance.completion_rate,
            ))
        return archived

    # ── Transitions ─────────────────────────────────────────────

    def record_teacher_view(self, assignment_id: str) -> AssignmentStateRecord:
        return self.store.record_teacher_view(assignment_id)

    def record_student_activity(self, assignment_id: str) -> AssignmentStateRecord:
        return self.store.record_student_activity(assignment_id)

    def resolve(self, assignment_id: str) -> AssignmentStateRecord:
        return self.store.resolve(assignment_id)

    def restore(self, assignment_id: str) -> AssignmentStateRecord:
        return self.store.restore(assignment_id)

    def keep_active(self, assignment_id: str) -> AssignmentStateRecord:
        return self.store.keep_active(assignment_id)

    def archive(self, assignment_id: str) -> AssignmentStateRecord:
        """
        Archive an assignment with a generated teacher summary.

        Raises:
            AssignmentNotFoundException: if no lesson has this ID
        """
        lesson = self._require_lesson(assignment_id)
        record = self.store.get_or_create(assignment_id)
        return self._archive(lesson, record)

    def run_auto_archive(self, threshold_days: Optional[float] = None) -> AutoArchiveResult:
        """
        Archive every assignment resolved for longer than the threshold.
        Candidates whose lesson is gone or has nobody assigned are skipped.
        """
        if threshold_days is None:
            threshold_days = self.settings.auto_archive_threshold_days
        candidates = self.store.query_ready_for_archive(threshold_days)
        archived: list[str] = []

        for candidate in candidates:
            lesson = self.lessons.get_lesson(candidate.assignment_id)
            if lesson is None:
                logger.warning(f"Skipping auto-archive of {candidate.assignment_id}: lesson not found")
                continue
            if not self.roster.get_assigned_student_ids(lesson.id):
                continue
            self._archive(lesson, candidate)
            archived.append(candidate.assignment_id)

        logger.info(f"Auto-archive archived {len(archived)} of {len(candidates)} candidate(s)")
        return AutoArchiveResult(checked=len(candidates), archived=archived)
