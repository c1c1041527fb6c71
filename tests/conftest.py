"""Pytest configuration and shared fixtures."""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from assignments.stores.json_store import JsonAssignmentStateStore
from assignments.stores.sql_store import SqlAssignmentStateStore
from config import Settings, reset_settings
from database import DatabaseManager
from shared.models.domain import (
    CriterionScore,
    Evaluation,
    Lesson,
    Prompt,
    PromptResponse,
    Session,
    Submission,
)
from shared.models.entities import Base

FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

# Old enough to fall outside the 48h recent-activity window
DEFAULT_COMPLETED_AT = FIXED_NOW - timedelta(days=3)


class MutableClock:
    """Deterministic clock that tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_lesson(
    lesson_id: str = "fractions",
    title: str = "Fractions",
    prompt_ids: Iterable[str] = ("q1", "q2", "q3"),
) -> Lesson:
    return Lesson(
        id=lesson_id,
        title=title,
        prompts=[
            Prompt(id=pid, input=f"Question {pid}: compare the fractions", hints=[f"Hint for {pid}"])
            for pid in prompt_ids
        ],
    )


def build_session(
    student_id: str,
    *,
    lesson_id: str = "fractions",
    score: Optional[float] = None,
    hinted: Iterable[str] = (),
    prompt_ids: Iterable[str] = ("q1", "q2", "q3"),
    criteria: Optional[dict[str, float]] = None,
    status: str = "completed",
    completed_at: Optional[datetime] = DEFAULT_COMPLETED_AT,
    started_at: Optional[datetime] = None,
    educator_notes: Optional[str] = None,
    student_name: Optional[str] = None,
    session_id: Optional[str] = None,
) -> Session:
    """
    Build a session with one response per prompt.

    Per-prompt criterion scores default to the total score unless overridden
    through ``criteria``.
    """
    prompt_ids = list(prompt_ids)
    hinted = set(hinted)
    criteria = criteria or {}

    evaluation = None
    if score is not None:
        evaluation = Evaluation(
            total_score=score,
            criteria_scores=[
                CriterionScore(criterion_id=pid, score=criteria.get(pid, score))
                for pid in prompt_ids
            ],
        )

    if status != "completed":
        completed_at = None
    if started_at is None:
        started_at = (completed_at or DEFAULT_COMPLETED_AT) - timedelta(hours=1)

    return Session(
        id=session_id or f"{lesson_id}-{student_id}",
        lesson_id=lesson_id,
        student_id=student_id,
        student_name=student_name or f"Student {student_id}",
        status=status,
        started_at=started_at,
        completed_at=completed_at,
        educator_notes=educator_notes,
        evaluation=evaluation,
        submission=Submission(
            responses=[
                PromptResponse(prompt_id=pid, response=f"answer to {pid}", hint_used=pid in hinted)
                for pid in prompt_ids
            ]
        ),
    )


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------

class FakeLessonSource:
    def __init__(self, lessons: Iterable[Lesson] = ()):
        self.lessons = {lesson.id: lesson for lesson in lessons}

    def add(self, lesson: Lesson) -> Lesson:
        self.lessons[lesson.id] = lesson
        return lesson

    def remove(self, lesson_id: str) -> None:
        self.lessons.pop(lesson_id, None)

    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        return self.lessons.get(lesson_id)

    def list_lessons(self) -> list[Lesson]:
        return list(self.lessons.values())


class FakeSessionSource:
    def __init__(self):
        self.sessions: list[Session] = []

    def add(self, *sessions: Session) -> None:
        self.sessions.extend(sessions)

    def list_sessions_for_lesson(self, lesson_id: str) -> list[Session]:
        return [s for s in self.sessions if s.lesson_id == lesson_id]


class FakeRosterSource:
    def __init__(self):
        self.rosters: dict[str, list[str]] = {}

    def assign(self, lesson_id: str, *student_ids: str) -> None:
        self.rosters.setdefault(lesson_id, []).extend(student_ids)

    def get_assigned_student_ids(self, lesson_id: str) -> list[str]:
        return list(self.rosters.get(lesson_id, []))


class NamedRosterSource(FakeRosterSource):
    """Roster that also knows student names."""

    def __init__(self, names: dict[str, str]):
        super().__init__()
        self.names = names

    def student_names(self, lesson_id: str) -> dict[str, str]:
        return {sid: self.names[sid] for sid in self.get_assigned_student_ids(lesson_id) if sid in self.names}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_settings():
    """Keep the cached global settings from leaking between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        state_file_path=str(tmp_path / "assignment-states.json"),
        database_url=f"sqlite:///{tmp_path / 'assignment-states.db'}",
        recent_activity_window_hours=48,
        auto_archive_threshold_days=7,
    )


@pytest.fixture
def db_session():
    """
    Create a test database session with in-memory SQLite.

    This fixture creates a fresh database for each test function,
    ensuring test isolation.
    """
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(engine)


@pytest.fixture
def db_manager(settings):
    manager = DatabaseManager(settings)
    manager.create_all()
    yield manager
    manager.close()


@pytest.fixture
def json_store(settings, clock):
    return JsonAssignmentStateStore(settings.state_file_path, clock=clock)


@pytest.fixture
def sql_store(db_manager, clock):
    return SqlAssignmentStateStore(db_manager, clock=clock)


@pytest.fixture(params=["json", "sql"])
def store(request):
    """Run a test against both store backends."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def lesson():
    return build_lesson()


@pytest.fixture
def lessons(lesson):
    return FakeLessonSource([lesson])


@pytest.fixture
def sessions():
    return FakeSessionSource()


@pytest.fixture
def roster():
    return FakeRosterSource()
