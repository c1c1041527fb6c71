"""Question analysis: per-prompt success and hint statistics across every attempt."""

import logging
from typing import Iterable

from assignments.models.summary import QuestionAnalysis, QuestionPerformance
from shared.models.domain import Lesson, Session
from shared.utils.constants import (
    CHALLENGE_SUCCESS_RATE,
    EFFECTIVE_HINT_RATE,
    HINT_EFFECTIVE_SCORE,
    HINT_USAGE_RATE_FLOOR,
    INEFFECTIVE_HINT_RATE,
    MASTERED_SUCCESS_RATE,
    MAX_INSIGHTS_PER_BUCKET,
    QUESTION_LABEL_LENGTH,
    QUESTION_SUCCESS_SCORE,
    STRENGTH_SUCCESS_RATE,
)

logger = logging.getLogger(__name__)


def question_label(text: str) -> str:
    """First 50 characters of the prompt text, with an ellipsis when cut."""
    if len(text) > QUESTION_LABEL_LENGTH:
        return text[:QUESTION_LABEL_LENGTH] + "..."
    return text


def collect_question_performance(lesson: Lesson, sessions: Iterable[Session]) -> list[QuestionPerformance]:
    """
    Accumulate per-prompt counters over every response in every session.

    Unlike the lifecycle view this looks at all historical attempts, not just
    each student's latest. Responses to prompts the lesson no longer declares
    are ignored.
    """
    performance = {
        prompt.id: QuestionPerformance(prompt_id=prompt.id, label=question_label(prompt.input))
        for prompt in lesson.prompts
    }

    for session in sessions:
        if not session.belongs_to(lesson.id):
            continue
        for response in session.submission.responses:
            perf = performance.get(response.prompt_id)
            if perf is None:
                continue

            perf.attempts += 1
            score = session.evaluation.score_for(response.prompt_id) if session.evaluation else 0.0
            if score >= QUESTION_SUCCESS_SCORE:
                perf.successes += 1

            if response.hint_used:
                perf.hints_used += 1
                if score >= HINT_EFFECTIVE_SCORE:
                    perf.improved_with_hint += 1

    # dict preserves prompt declaration order
    return list(performance.values())


def analyze_question_performance(lesson: Lesson, sessions: Iterable[Session]) -> QuestionAnalysis:
    """Classify each prompt into strength/challenge/hint buckets, top 3 per bucket."""
    performance = collect_question_performance(lesson, sessions)
    analysis = QuestionAnalysis(performance=performance)

    for perf in performance:
        if perf.attempts == 0:
            continue

        success_rate = perf.success_rate
        hint_usage_rate = perf.hint_usage_rate
        hint_effectiveness = perf.hint_effectiveness

        if success_rate >= STRENGTH_SUCCESS_RATE:
            analysis.common_strengths.append(perf.label)
            if success_rate >= MASTERED_SUCCESS_RATE:
                analysis.skills_mastered.append(perf.label)

        if success_rate < CHALLENGE_SUCCESS_RATE:
            analysis.common_challenges.append(perf.label)
            analysis.skills_needing_reinforcement.append(perf.label)

        if hint_usage_rate > HINT_USAGE_RATE_FLOOR:
            if hint_effectiveness >= EFFECTIVE_HINT_RATE:
                analysis.most_effective_hints.append(perf.label)
            elif hint_effectiveness < INEFFECTIVE_HINT_RATE:
                analysis.questions_needing_more_scaffolding.append(perf.label)

    for bucket in (
        "common_strengths",
        "common_challenges",
        "skills_mastered",
        "skills_needing_reinforcement",
        "most_effective_hints",
        "questions_needing_more_scaffolding",
    ):
        setattr(analysis, bucket, getattr(analysis, bucket)[:MAX_INSIGHTS_PER_BUCKET])

    logger.debug(
        f"Analyzed {len(performance)} prompts for lesson {lesson.id} "
        f"({len(analysis.common_strengths)} strengths, {len(analysis.common_challenges)} challenges)"
    )
    return analysis
