"""Pure computation over lesson, session and roster data."""
from assignments.services.lifecycle_service import (
    compute_assignment_state,
    derive_understanding,
    is_ready_for_auto_archive,
    should_resolve,
)
from assignments.services.question_analysis_service import analyze_question_performance
from assignments.services.summary_service import generate_teacher_summary
