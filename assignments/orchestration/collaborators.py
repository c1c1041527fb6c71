"""Data sources the lifecycle orchestrator reads from.

Lessons, sessions and rosters live outside this package; anything with the
matching methods can be passed in.
"""

from typing import Mapping, Optional, Protocol, Sequence, runtime_checkable

from shared.models.domain import Lesson, Session


class LessonSource(Protocol):
    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        ...

    def list_lessons(self) -> Sequence[Lesson]:
        ...


class SessionSource(Protocol):
    def list_sessions_for_lesson(self, lesson_id: str) -> Sequence[Session]:
        ...


class RosterSource(Protocol):
    def get_assigned_student_ids(self, lesson_id: str) -> Sequence[str]:
        ...


@runtime_checkable
class StudentNameSource(Protocol):
    """Optional roster extension: names for students who have not started."""

    def student_names(self, lesson_id: str) -> Mapping[str, str]:
        ...
