"""
Summary Models

The teacher summary is a frozen snapshot attached to an assignment when it is
archived. Models are immutable (``frozen=True``, tuples instead of lists) so a
persisted summary cannot be edited in place after generation.
"""

from pydantic import ConfigDict, Field

from shared.models.domain import CamelModel, UtcDateTime


class FrozenCamelModel(CamelModel):
    model_config = ConfigDict(frozen=True)


class ClassPerformance(FrozenCamelModel):
    total_students: int = 0
    strong_count: int = 0
    developing_count: int = 0
    needs_support_count: int = 0
    average_score: int = 0
    completion_rate: int = 0


class Insights(FrozenCamelModel):
    common_strengths: tuple[str, ...] = ()
    common_challenges: tuple[str, ...] = ()
    skills_mastered: tuple[str, ...] = ()
    skills_needing_reinforcement: tuple[str, ...] = ()


class CoachUsage(FrozenCamelModel):
    average_hints_per_student: float = 0.0
    students_who_used_hints: int = 0
    most_effective_hints: tuple[str, ...] = ()
    questions_needing_more_scaffolding: tuple[str, ...] = ()


class StudentHighlights(FrozenCamelModel):
    """Name buckets. A student may appear in more than one."""
    improved_significantly: tuple[str, ...] = ()
    may_need_follow_up: tuple[str, ...] = ()
    exceeded_expectations: tuple[str, ...] = ()


class TeacherEngagement(FrozenCamelModel):
    total_notes_written: int = 0
    students_with_notes: int = 0
    reviewed_all_flagged: bool = True
    teacher_view_count: int = 0


class TeacherSummary(FrozenCamelModel):
    """Cover page of an archived assignment."""

    generated_at: UtcDateTime
    class_performance: ClassPerformance = Field(default_factory=ClassPerformance)
    insights: Insights = Field(default_factory=Insights)
    coach_usage: CoachUsage = Field(default_factory=CoachUsage)
    student_highlights: StudentHighlights = Field(default_factory=StudentHighlights)
    teacher_engagement: TeacherEngagement = Field(default_factory=TeacherEngagement)


class QuestionPerformance(CamelModel):
    """Counters for one lesson prompt across every historical attempt."""

    prompt_id: str
    label: str
    attempts: int = 0
    successes: int = 0
    hints_used: int = 0
    improved_with_hint: int = 0

    @property
    def success_rate(self) -> float:
        return self.successes / self.attempts if self.attempts else 0.0

    @property
    def hint_usage_rate(self) -> float:
        return self.hints_used / self.attempts if self.attempts else 0.0

    @property
    def hint_effectiveness(self) -> float:
        return self.improved_with_hint / self.hints_used if self.hints_used else 0.0


class QuestionAnalysis(CamelModel):
    """Per-prompt counters plus the top-3 insight buckets derived from them."""

    performance: list[QuestionPerformance] = Field(default_factory=list)
    common_strengths: list[str] = Field(default_factory=list)
    common_challenges: list[str] = Field(default_factory=list)
    skills_mastered: list[str] = Field(default_factory=list)
    skills_needing_reinforcement: list[str] = Field(default_factory=list)
    most_effective_hints: list[str] = Field(default_factory=list)
    questions_needing_more_scaffolding: list[str] = Field(default_factory=list)
