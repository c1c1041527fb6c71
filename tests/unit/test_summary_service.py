"""Unit tests for assignments/services/summary_service.py"""

import pytest
from pydantic import ValidationError

from assignments.models.state_record import AssignmentStateRecord
from assignments.models.summary import TeacherSummary
from assignments.services.lifecycle_service import compute_assignment_state
from assignments.services.summary_service import generate_teacher_summary, round_half_up
from conftest import FIXED_NOW, build_lesson, build_session


def _summarize(sessions, roster, record=None, student_names=None) -> TeacherSummary:
    lesson = build_lesson()
    state = compute_assignment_state(
        lesson, sessions, roster, record, student_names=student_names, now=FIXED_NOW,
    )
    return generate_teacher_summary(lesson, sessions, state.student_statuses, record, now=FIXED_NOW)


@pytest.fixture
def fractions_summary():
    sessions = [
        build_session("A", score=85, student_name="Ava"),
        build_session("B", score=30, hinted=["q1", "q2"], student_name="Ben"),
    ]
    return _summarize(sessions, ["A", "B", "C"], student_names={"C": "Cy"})


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,ndigits,expected",
        [
            (2.5, 0, 3),
            (57.5, 0, 58),
            (0.666, 1, 0.7),
            (66.666, 0, 67),
        ],
    )
    def test_rounds_halves_up(self, value, ndigits, expected):
        assert round_half_up(value, ndigits) == expected


class TestClassPerformance:
    def test_fractions_scenario(self, fractions_summary):
        performance = fractions_summary.class_performance

        assert performance.total_students == 3
        assert performance.strong_count == 1
        assert performance.developing_count == 0
        assert performance.needs_support_count == 2
        # Average over completed students only: (85 + 30) / 2
        assert performance.average_score == 58
        assert performance.completion_rate == 67

    def test_no_completed_students(self):
        summary = _summarize([build_session("A", score=None, status="in-progress")], ["A"])

        assert summary.class_performance.average_score == 0
        assert summary.class_performance.completion_rate == 0

    def test_empty_roster(self):
        summary = _summarize([], [])

        assert summary.class_performance.total_students == 0
        assert summary.class_performance.completion_rate == 0
        assert summary.coach_usage.average_hints_per_student == 0.0


class TestCoachUsage:
    def test_hint_stats(self, fractions_summary):
        usage = fractions_summary.coach_usage

        assert usage.students_who_used_hints == 1
        # 2 hints across 3 students
        assert usage.average_hints_per_student == 0.7

    def test_question_buckets_flow_into_summary(self, fractions_summary):
        # q1 and q2 were hinted by Ben (score 30), never effectively
        assert len(fractions_summary.coach_usage.questions_needing_more_scaffolding) == 2
        assert fractions_summary.coach_usage.most_effective_hints == ()


class TestStudentHighlights:
    def test_fractions_scenario(self, fractions_summary):
        highlights = fractions_summary.student_highlights

        assert highlights.exceeded_expectations == ("Ava",)
        assert highlights.may_need_follow_up == ("Ben", "Cy")
        assert highlights.improved_significantly == ()

    def test_improved_with_help(self):
        sessions = [build_session("A", score=75, hinted=["q1"], student_name="Ava")]
        summary = _summarize(sessions, ["A"])

        assert summary.student_highlights.improved_significantly == ("Ava",)
        assert summary.student_highlights.exceeded_expectations == ()

    def test_flagged_student_with_note_needs_no_follow_up(self):
        sessions = [
            build_session("A", score=55, hinted=["q1", "q2"], educator_notes="Checked in", student_name="Ava"),
        ]
        summary = _summarize(sessions, ["A"])

        assert summary.student_highlights.may_need_follow_up == ()


class TestTeacherEngagement:
    def test_counts_notes_and_views(self):
        record = AssignmentStateRecord.new("fractions", FIXED_NOW)
        record.teacher_view_count = 4
        sessions = [
            build_session("A", score=85, educator_notes="Great"),
            build_session("B", score=20, educator_notes="Follow up Monday"),
        ]

        engagement = _summarize(sessions, ["A", "B"], record).teacher_engagement

        assert engagement.students_with_notes == 2
        assert engagement.total_notes_written == 2
        assert engagement.reviewed_all_flagged is True
        assert engagement.teacher_view_count == 4

    def test_unreviewed_flagged_student(self, fractions_summary):
        engagement = fractions_summary.teacher_engagement

        assert engagement.reviewed_all_flagged is False
        assert engagement.teacher_view_count == 0


class TestSummarySnapshot:
    def test_generated_at_uses_supplied_time(self, fractions_summary):
        assert fractions_summary.generated_at == FIXED_NOW

    def test_summary_is_immutable(self, fractions_summary):
        with pytest.raises(ValidationError):
            fractions_summary.class_performance.average_score = 100

    def test_serializes_camel_case(self, fractions_summary):
        data = fractions_summary.to_json_dict()

        assert data["classPerformance"]["averageScore"] == 58
        assert data["coachUsage"]["studentsWhoUsedHints"] == 1
        assert data["studentHighlights"]["exceededExpectations"] == ["Ava"]
        assert data["teacherEngagement"]["reviewedAllFlagged"] is False

    def test_round_trips_through_json(self, fractions_summary):
        restored = TeacherSummary.model_validate_json(fractions_summary.model_dump_json(by_alias=True))
        assert restored == fractions_summary
