"""Teacher summary generation: the frozen cover page of an archived assignment.

The summary helps a teacher recall what happened without re-reading every
submission. It is built once, at archive time; nothing here should be called
again for an assignment whose record already carries a summary.
"""

import logging
import math
from datetime import datetime
from typing import Optional, Sequence

from assignments.models.lifecycle import StudentStatus
from assignments.models.state_record import AssignmentStateRecord
from assignments.models.summary import (
    ClassPerformance,
    CoachUsage,
    Insights,
    StudentHighlights,
    TeacherEngagement,
    TeacherSummary,
)
from assignments.services.question_analysis_service import analyze_question_performance
from shared.models.domain import Lesson, Session
from shared.utils.clock import utc_now

logger = logging.getLogger(__name__)


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for positive values (2.5 -> 3, not banker's 2)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def _class_performance(statuses: Sequence[StudentStatus]) -> ClassPerformance:
    completed = [s for s in statuses if s.is_complete]
    average_score = (
        int(round_half_up(sum(s.score for s in completed) / len(completed)))
        if completed else 0
    )
    return ClassPerformance(
        total_students=len(statuses),
        strong_count=sum(1 for s in statuses if s.understanding == "strong"),
        developing_count=sum(1 for s in statuses if s.understanding == "developing"),
        needs_support_count=sum(1 for s in statuses if s.understanding == "needs-support"),
        average_score=average_score,
        completion_rate=int(round_half_up(len(completed) / max(len(statuses), 1) * 100)),
    )


def _student_highlights(statuses: Sequence[StudentStatus]) -> StudentHighlights:
    return StudentHighlights(
        improved_significantly=tuple(
            s.student_name for s in statuses
            if s.improved_after_help and s.understanding != "needs-support"
        ),
        may_need_follow_up=tuple(
            s.student_name for s in statuses
            if s.understanding == "needs-support" or (s.needs_support and not s.has_teacher_note)
        ),
        exceeded_expectations=tuple(
            s.student_name for s in statuses
            if s.understanding == "strong" and s.hints_used == 0
        ),
    )


def _teacher_engagement(
    statuses: Sequence[StudentStatus],
    state_record_meta: Optional[AssignmentStateRecord],
) -> TeacherEngagement:
    students_with_notes = sum(1 for s in statuses if s.has_teacher_note)
    return TeacherEngagement(
        # Simplified, could count per-question notes
        total_notes_written=students_with_notes,
        students_with_notes=students_with_notes,
        reviewed_all_flagged=all(s.has_teacher_note for s in statuses if s.needs_support),
        teacher_view_count=state_record_meta.teacher_view_count if state_record_meta else 0,
    )


def generate_teacher_summary(
    lesson: Lesson,
    sessions: list[Session],
    student_statuses: Sequence[StudentStatus],
    state_record_meta: Optional[AssignmentStateRecord] = None,
    *,
    now: Optional[datetime] = None,
) -> TeacherSummary:
    """
    Build the teacher summary for an assignment.

    Args:
        lesson: Lesson being archived
        sessions: Every session for the lesson (question analysis uses all attempts)
        student_statuses: Statuses from compute_assignment_state (latest attempts)
        state_record_meta: Persisted record, used for teacher view metadata
        now: Generation timestamp

    Returns:
        TeacherSummary (immutable)
    """
    questions = analyze_question_performance(lesson, sessions)

    hinted = sum(1 for s in student_statuses if s.hints_used > 0)
    total_hints = sum(s.hints_used for s in student_statuses)
    average_hints = (
        round_half_up(total_hints / len(student_statuses), 1)
        if student_statuses else 0.0
    )

    summary = TeacherSummary(
        generated_at=now or utc_now(),
        class_performance=_class_performance(student_statuses),
        insights=Insights(
            common_strengths=tuple(questions.common_strengths),
            common_challenges=tuple(questions.common_challenges),
            skills_mastered=tuple(questions.skills_mastered),
            skills_needing_reinforcement=tuple(questions.skills_needing_reinforcement),
        ),
        coach_usage=CoachUsage(
            average_hints_per_student=average_hints,
            students_who_used_hints=hinted,
            most_effective_hints=tuple(questions.most_effective_hints),
            questions_needing_more_scaffolding=tuple(questions.questions_needing_more_scaffolding),
        ),
        student_highlights=_student_highlights(student_statuses),
        teacher_engagement=_teacher_engagement(student_statuses, state_record_meta),
    )

    logger.info(
        f"Generated teacher summary for {lesson.id}: "
        f"{summary.class_performance.total_students} students, "
        f"average score {summary.class_performance.average_score}"
    )
    return summary
