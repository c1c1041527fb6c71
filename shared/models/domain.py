"""Domain models for the data supplied by lesson, session and roster collaborators.

Collaborators speak camelCase JSON (``lessonId``, ``hintUsed``, ...); the
models accept either spelling and default every optional field so partial
records degrade to zero/false instead of failing validation.
"""
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.utils.clock import ensure_utc
from shared.utils.constants import SESSION_STATUS_COMPLETED, UNKNOWN_STUDENT_NAME

UtcDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class CamelModel(BaseModel):
    """Base model serializing to camelCase while accepting snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """Dump using the camelCase wire format, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Prompt(CamelModel):
    """A single question within a lesson."""
    id: str
    input: str = ""
    hints: List[str] = Field(default_factory=list)


class Lesson(CamelModel):
    """Lesson (assignment) content as supplied by the lesson collaborator."""
    id: str
    title: str = ""
    prompts: List[Prompt] = Field(default_factory=list)


class CriterionScore(CamelModel):
    """Evaluator score for one criterion; criteria are keyed by prompt id."""
    criterion_id: str
    score: float = 0.0
    comment: Optional[str] = None


class Evaluation(CamelModel):
    """Evaluator output attached to a session."""
    total_score: float = 0.0
    criteria_scores: List[CriterionScore] = Field(default_factory=list)

    def score_for(self, criterion_id: str) -> float:
        for criterion in self.criteria_scores:
            if criterion.criterion_id == criterion_id:
                return criterion.score
        return 0.0


class PromptResponse(CamelModel):
    """A student's answer to one prompt."""
    prompt_id: str
    response: str = ""
    hint_used: bool = False
    educator_note: Optional[str] = None


class Submission(CamelModel):
    """All responses submitted during a session."""
    responses: List[PromptResponse] = Field(default_factory=list)


class Session(CamelModel):
    """One attempt by one student at one lesson."""
    id: str = ""
    lesson_id: Optional[str] = None
    student_id: str
    student_name: str = UNKNOWN_STUDENT_NAME
    status: str = ""
    started_at: Optional[UtcDateTime] = None
    completed_at: Optional[UtcDateTime] = None
    educator_notes: Optional[str] = None
    evaluation: Optional[Evaluation] = None
    submission: Submission = Field(default_factory=Submission)

    @property
    def is_complete(self) -> bool:
        return self.status == SESSION_STATUS_COMPLETED

    @property
    def activity_at(self) -> Optional[datetime]:
        """Most meaningful timestamp: completion, falling back to start."""
        return self.completed_at or self.started_at

    @property
    def hints_used(self) -> int:
        return sum(1 for response in self.submission.responses if response.hint_used)

    @property
    def total_score(self) -> float:
        return self.evaluation.total_score if self.evaluation else 0.0

    def belongs_to(self, lesson_id: str) -> bool:
        return self.lesson_id is None or self.lesson_id == lesson_id
