"""Unit tests for shared/models/domain.py and shared/utils/clock.py"""
from datetime import datetime, timedelta, timezone

import pytest

from shared.models.domain import Evaluation, Lesson, Session
from shared.utils.clock import ensure_utc, parse_timestamp


class TestSessionParsing:
    def test_parses_collaborator_json(self):
        session = Session.model_validate({
            "id": "sess-1",
            "lessonId": "fractions",
            "studentId": "A",
            "studentName": "Ava",
            "status": "completed",
            "startedAt": "2024-03-10T09:00:00.000Z",
            "completedAt": "2024-03-10T09:30:00.000Z",
            "evaluation": {"totalScore": 82, "criteriaScores": [{"criterionId": "q1", "score": 90}]},
            "submission": {"responses": [
                {"promptId": "q1", "response": "1/2", "hintUsed": True},
                {"promptId": "q2", "response": "3/4", "hintUsed": False},
            ]},
        })

        assert session.is_complete is True
        assert session.hints_used == 1
        assert session.total_score == 82
        assert session.activity_at == datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)
        assert session.evaluation.score_for("q1") == 90
        assert session.evaluation.score_for("q2") == 0.0

    def test_permissive_defaults(self):
        session = Session.model_validate({"studentId": "A"})

        assert session.student_name == "Unknown"
        assert session.is_complete is False
        assert session.total_score == 0.0
        assert session.hints_used == 0
        assert session.activity_at is None

    def test_activity_falls_back_to_start(self):
        started = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)
        session = Session(student_id="A", status="in-progress", started_at=started)

        assert session.activity_at == started

    def test_session_without_lesson_id_belongs_to_any_lesson(self):
        session = Session(student_id="A")
        assert session.belongs_to("fractions") is True
        assert Session(student_id="A", lesson_id="decimals").belongs_to("fractions") is False


class TestLessonParsing:
    def test_prompts_with_defaults(self):
        lesson = Lesson.model_validate({"id": "fractions", "prompts": [{"id": "q1"}]})

        assert lesson.title == ""
        assert lesson.prompts[0].input == ""
        assert lesson.prompts[0].hints == []


class TestEvaluation:
    def test_empty_evaluation(self):
        assert Evaluation().score_for("q1") == 0.0


class TestClock:
    def test_naive_is_utc(self):
        assert ensure_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc

    def test_converts_offsets(self):
        local = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert ensure_utc(local) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert ensure_utc(local).utcoffset() == timedelta(0)

    @pytest.mark.parametrize(
        "value",
        ["2024-03-15T12:00:00Z", "2024-03-15T12:00:00.000Z", "2024-03-15T12:00:00+00:00", "2024-03-15T14:00:00+02:00"],
    )
    def test_parse_timestamp(self, value):
        assert parse_timestamp(value) == datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
