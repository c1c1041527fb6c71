"""Lifecycle computation: derives an assignment's state from session data.

Teachers do not manage the dashboard: whether an assignment is active,
resolved or archived is computed from what students actually submitted plus
the persisted state record. Every function here is pure; persisting a
transition is the caller's decision.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional, Union

from assignments.models.lifecycle import (
    ActiveReason,
    ComputedAssignmentState,
    Distribution,
    LifecycleState,
    StudentStatus,
    UnderstandingLevel,
    order_reasons,
)
from assignments.models.state_record import AssignmentStateRecord
from shared.models.domain import Lesson, Session
from shared.utils.clock import parse_timestamp, utc_now
from shared.utils.constants import (
    DEFAULT_AUTO_ARCHIVE_THRESHOLD_DAYS,
    DEFAULT_RECENT_ACTIVITY_WINDOW_HOURS,
    DEVELOPING_THRESHOLD,
    SIGNIFICANT_HINT_RATIO,
    STRONG_THRESHOLD,
    UNKNOWN_STUDENT_NAME,
)

logger = logging.getLogger(__name__)


def derive_understanding(score: float) -> UnderstandingLevel:
    if score >= STRONG_THRESHOLD:
        return "strong"
    if score >= DEVELOPING_THRESHOLD:
        return "developing"
    return "needs-support"


def _activity_key(session: Session) -> float:
    activity_at = session.activity_at
    return activity_at.timestamp() if activity_at else float("-inf")


def latest_sessions_by_student(lesson: Lesson, sessions: Iterable[Session]) -> dict[str, Session]:
    """
    Keep each student's most recent attempt at the lesson.

    Students keep the order in which they first appear in ``sessions``; on a
    timestamp tie the earlier-listed session wins.
    """
    latest: dict[str, Session] = {}
    for session in sessions:
        if not session.belongs_to(lesson.id):
            continue
        current = latest.get(session.student_id)
        if current is None or _activity_key(session) > _activity_key(current):
            latest[session.student_id] = session
    return latest


def build_student_status(session: Session) -> StudentStatus:
    """Status for a student with at least one attempt."""
    score = session.total_score
    understanding = derive_understanding(score)
    hints_used = session.hints_used
    hint_ratio = hints_used / max(len(session.submission.responses), 1)

    return StudentStatus(
        student_id=session.student_id,
        student_name=session.student_name,
        is_complete=session.is_complete,
        understanding=understanding,
        needs_support=understanding == "needs-support" or hint_ratio > SIGNIFICANT_HINT_RATIO,
        has_teacher_note=bool(session.educator_notes),
        hints_used=hints_used,
        score=score,
        improved_after_help=hints_used > 0 and score >= DEVELOPING_THRESHOLD,
    )


def not_started_status(student_id: str, student_name: Optional[str] = None) -> StudentStatus:
    """Status for a roster student with no attempt.

    Not started is not struggling: the understanding bucket is needs-support
    but the needs-support flag stays off until the student submits something.
    """
    return StudentStatus(
        student_id=student_id,
        student_name=student_name or UNKNOWN_STUDENT_NAME,
        is_complete=False,
        understanding="needs-support",
        needs_support=False,
        has_teacher_note=False,
        hints_used=0,
        score=0.0,
        improved_after_help=False,
    )


def _has_recent_activity(
    lesson: Lesson,
    sessions: Iterable[Session],
    now: datetime,
    window_hours: float,
) -> bool:
    timestamps = [
        session.activity_at
        for session in sessions
        if session.belongs_to(lesson.id) and session.activity_at is not None
    ]
    if not timestamps:
        return False
    return now - max(timestamps) < timedelta(hours=window_hours)


def compute_assignment_state(
    lesson: Lesson,
    sessions: list[Session],
    roster_ids: Iterable[str],
    state_record: Optional[AssignmentStateRecord] = None,
    *,
    student_names: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
    recent_activity_window_hours: float = DEFAULT_RECENT_ACTIVITY_WINDOW_HOURS,
) -> ComputedAssignmentState:
    """
    Compute the current state of an assignment.

    Steps:
    1. Keep each student's most recent attempt (older attempts are ignored here)
    2. Derive a status per attempting student
    3. Synthesize a not-started status for roster students with no attempt
    4. Aggregate counts and the understanding distribution
    5. Collect active reasons
    6. Pick the lifecycle state (archived is sticky until an explicit restore)

    Args:
        lesson: Lesson being tracked
        sessions: Every session for the lesson, across students and attempts
        roster_ids: Students explicitly assigned to the lesson
        state_record: Persisted record for the assignment, if any
        student_names: Optional id -> name lookup for students who have not started
        now: Reference time for the recent-activity window
        recent_activity_window_hours: Width of the recent-activity window

    Returns:
        ComputedAssignmentState
    """
    now = now or utc_now()
    roster = list(dict.fromkeys(roster_ids))
    names = student_names or {}

    latest = latest_sessions_by_student(lesson, sessions)
    statuses = [build_student_status(session) for session in latest.values()]
    statuses.extend(
        not_started_status(student_id, names.get(student_id))
        for student_id in roster
        if student_id not in latest
    )

    completed_count = sum(1 for session in latest.values() if session.is_complete)
    in_progress_count = len(latest) - completed_count
    distribution = Distribution(
        strong=sum(1 for s in statuses if s.understanding == "strong"),
        developing=sum(1 for s in statuses if s.understanding == "developing"),
        needs_support=sum(1 for s in statuses if s.understanding == "needs-support"),
    )

    total_students = len(roster)
    flagged = [s for s in statuses if s.needs_support]
    students_needing_support = len(flagged)
    all_students_complete = completed_count >= total_students
    all_flagged_reviewed = all(s.has_teacher_note for s in flagged)

    reasons: list[ActiveReason] = []
    if students_needing_support > 0:
        reasons.append("students-need-support")
    if completed_count < total_students:
        reasons.append("incomplete-work")
    if state_record is None or state_record.teacher_viewed_at is None:
        reasons.append("not-reviewed")
    if state_record is not None and "pending-feedback" in state_record.active_reasons:
        reasons.append("pending-feedback")
    if _has_recent_activity(lesson, sessions, now, recent_activity_window_hours):
        reasons.append("recent-activity")
    active_reasons = order_reasons(reasons)

    lifecycle_state: LifecycleState = "active"
    if state_record is not None and state_record.is_archived:
        lifecycle_state = "archived"
    elif not active_reasons:
        teacher_viewed = state_record is not None and state_record.teacher_viewed_at is not None
        if completed_count > 0 or teacher_viewed:
            lifecycle_state = "resolved"

    logger.debug(
        f"Computed state for {lesson.id}: {lifecycle_state} "
        f"(reasons={active_reasons}, completed={completed_count}/{total_students})"
    )

    return ComputedAssignmentState(
        assignment_id=lesson.id,
        title=lesson.title,
        lifecycle_state=lifecycle_state,
        active_reasons=active_reasons,
        total_students=total_students,
        completed_count=completed_count,
        in_progress_count=in_progress_count,
        distribution=distribution,
        student_statuses=statuses,
        students_needing_support=students_needing_support,
        all_students_complete=all_students_complete,
        all_flagged_reviewed=all_flagged_reviewed,
    )


def should_resolve(state: ComputedAssignmentState) -> bool:
    """An active assignment with nothing outstanding and some completed work can resolve."""
    return (
        state.lifecycle_state == "active"
        and len(state.active_reasons) == 0
        and state.completed_count > 0
    )


def is_ready_for_auto_archive(
    resolved_at: Union[str, datetime],
    threshold_days: float = DEFAULT_AUTO_ARCHIVE_THRESHOLD_DAYS,
    *,
    now: Optional[datetime] = None,
) -> bool:
    """Check if a resolved assignment has been resolved for at least ``threshold_days``."""
    now = now or utc_now()
    return now - parse_timestamp(resolved_at) >= timedelta(days=threshold_days)
