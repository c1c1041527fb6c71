"""
Assignment State Store

Tracks assignment lifecycle state separately from lesson content, so
archiving never touches the lessons themselves.

Every transition is written once here in terms of a single atomic primitive,
``_apply``: load-or-create the record, mutate it in memory, persist it. A
backend decides how that primitive stays atomic (one writer at a time for the
JSON document, optimistic versioning per key for SQL).
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from assignments.models.state_record import AssignmentStateDocument, AssignmentStateRecord
from assignments.models.summary import TeacherSummary
from shared.utils.clock import Clock, utc_now
from shared.utils.constants import DEFAULT_AUTO_ARCHIVE_THRESHOLD_DAYS
from shared.utils.exceptions import InvalidStateUpdateError, StaleStateError

logger = logging.getLogger(__name__)

# Mutators receive the record and the operation timestamp and edit the record in place
Mutator = Callable[[AssignmentStateRecord, datetime], None]


def _field_name_lookup() -> dict[str, str]:
    lookup = {}
    for name, field in AssignmentStateRecord.model_fields.items():
        lookup[name] = name
        if field.alias:
            lookup[field.alias] = name
    return lookup


class AssignmentStateStore(ABC):
    """Durable, keyed store of AssignmentStateRecords with lifecycle transitions."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now

    def now(self) -> datetime:
        return self._clock()

    # ── Backend primitives ──────────────────────────────────────

    @abstractmethod
    def _read(self, assignment_id: str) -> Optional[AssignmentStateRecord]:
        """Return the stored record, or None. Never creates."""

    @abstractmethod
    def _read_all(self) -> list[AssignmentStateRecord]:
        """Return every stored record."""

    @abstractmethod
    def _apply(self, assignment_id: str, mutator: Optional[Mutator]) -> AssignmentStateRecord:
        """
        Atomically load (creating if absent), mutate and persist a record.

        With ``mutator=None`` an existing record is returned without a write;
        a missing one is created and persisted.
        """

    @abstractmethod
    def _remove(self, assignment_id: str) -> bool:
        """Delete a record. Returns False if it did not exist."""

    @abstractmethod
    def _select_ready_for_archive(self, cutoff: datetime, now: datetime) -> list[AssignmentStateRecord]:
        """Return resolved records with resolved_at < cutoff and stamp the auto-archive check."""

    @property
    @abstractmethod
    def last_auto_archive_check(self) -> datetime:
        """When query_ready_for_archive last ran."""

    # ── Public API ──────────────────────────────────────────────

    def get(self, assignment_id: str) -> Optional[AssignmentStateRecord]:
        """Return the record if one exists, without creating it."""
        return self._read(assignment_id)

    def get_or_create(self, assignment_id: str) -> AssignmentStateRecord:
        """
        Get the state record for an assignment.
        Creates a new "active" record (reason: not-reviewed) if none exists.
        """
        record = self._read(assignment_id)
        if record is not None:
            return record
        try:
            record = self._apply(assignment_id, None)
        except StaleStateError:
            # Another writer created it between our read and insert
            record = self._read(assignment_id)
            if record is None:
                raise
            return record
        logger.info(f"Created state record for assignment {assignment_id}")
        return record

    def get_all(self) -> list[AssignmentStateRecord]:
        return self._read_all()

    def update(self, assignment_id: str, partial: Mapping[str, Any]) -> AssignmentStateRecord:
        """
        Merge fields into a record. Keys may be snake_case or camelCase.
        Always touches last_activity_at.

        Raises:
            InvalidStateUpdateError: if a key is not a record field,
                or the update would replace the summary of an archived record
        """
        lookup = _field_name_lookup()
        unknown = sorted(key for key in partial if key not in lookup)
        if unknown:
            raise InvalidStateUpdateError(assignment_id, unknown)
        changes = {lookup[key]: value for key, value in partial.items()}
        changes.pop("assignment_id", None)

        def mutate(record: AssignmentStateRecord, now: datetime) -> None:
            if "teacher_summary" in changes and record.is_archived and record.has_summary:
                raise InvalidStateUpdateError(assignment_id, ["teacherSummary"], reason="frozen fields")
            merged = record.model_dump()
            merged.update(changes)
            merged["last_activity_at"] = now
            updated = AssignmentStateRecord.model_validate(merged)
            for name in AssignmentStateRecord.model_fields:
                setattr(record, name, getattr(updated, name))

        return self._apply(assignment_id, mutate)

    def record_teacher_view(self, assignment_id: str) -> AssignmentStateRecord:
        """Record that a teacher viewed the assignment review; clears not-reviewed."""

        def mutate(record: AssignmentStateRecord, now: datetime) -> None:
            record.teacher_viewed_at = now
            record.teacher_view_count += 1
            record.last_activity_at = now
            record.active_reasons = [r for r in record.active_reasons if r != "not-reviewed"]

        return self._apply(assignment_id, mutate)

    def record_student_activity(self, assignment_id: str) -> AssignmentStateRecord:
        """
        Record new student activity. A resolved or archived assignment moves
        back to active; archived_at is kept so the archive history survives.
        """

        def mutate(record: AssignmentStateRecord, now: datetime) -> None:
            record.last_activity_at = now
            if record.lifecycle_state != "active":
                logger.info(f"Reactivating {record.lifecycle_state} assignment {assignment_id} on student activity")
                record.lifecycle_state = "active"
                record.active_reasons = ["recent-activity"]
                record.resolved_at = None

        return self._apply(assignment_id, mutate)

    def resolve(self, assignment_id: str) -> AssignmentStateRecord:
        def mutate(record: AssignmentStateRecord, now: datetime) -> None:
            record.lifecycle_state = "resolved"
            record.active_reasons = []
            record.resolved_at = now
            record.last_activity_at = now

        record = self._apply(assignment_id, mutate)
        logger.info(f"Resolved assignment {assignment_id}")
        return record

    def archive_with_summary(self, assignment_id: str, summary: TeacherSummary) -> AssignmentStateRecord:
        """
        Archive an assignment and attach its teacher summary.
        The summary passed in replaces any kept from an earlier archive.
        """

        def mutate(record: AssignmentStateRecord, now: datetime) -> None:
            record.lifecycle_state = "archived"
            record.archived_at = now
            record.last_activity_at = now
            record.teacher_summary = summary

        record = self._apply(assignment_id, mutate)
        logger.info(f"Archived assignment {assignment_id}")
        return record

    def restore(self, assignment_id: str) -> AssignmentStateRecord:
        """Restore an archived assignment to active. The summary is kept for reference."""

        def mutate(record: AssignmentStateRecord, now: datetime) -> None:
            record.lifecycle_state = "active"
            record.active_reasons = ["recent-activity"]
            record.last_activity_at = now

        record = self._apply(assignment_id, mutate)
        logger.info(f"Restored assignment {assignment_id}")
        return record

    def keep_active(self, assignment_id: str) -> AssignmentStateRecord:
        """
        Pin an assignment active (manual override). The pending-feedback
        reason is sticky: only an explicit resolve or restore removes it.
        """

        def mutate(record: AssignmentStateRecord, now: datetime) -> None:
            record.lifecycle_state = "active"
            if "pending-feedback" not in record.active_reasons:
                record.active_reasons.append("pending-feedback")
            record.last_activity_at = now

        return self._apply(assignment_id, mutate)

    def query_ready_for_archive(
        self, threshold_days: float = DEFAULT_AUTO_ARCHIVE_THRESHOLD_DAYS
    ) -> list[AssignmentStateRecord]:
        """
        Get resolved assignments whose resolved_at is strictly older than
        now - threshold_days. Also stamps the last auto-archive check.
        """
        now = self.now()
        cutoff = now - timedelta(days=threshold_days)
        ready = self._select_ready_for_archive(cutoff, now)
        logger.info(f"Auto-archive check: {len(ready)} assignment(s) resolved before {cutoff.isoformat()}")
        return ready

    def delete(self, assignment_id: str) -> bool:
        removed = self._remove(assignment_id)
        if removed:
            logger.info(f"Deleted state record for assignment {assignment_id}")
        return removed

    def to_document(self) -> AssignmentStateDocument:
        """Export every record in the canonical persisted layout."""
        return AssignmentStateDocument(
            states={record.assignment_id: record for record in self._read_all()},
            last_auto_archive_check=self.last_auto_archive_check,
        )

    def close(self) -> None:
        """Release backend resources. The JSON backend holds none between calls."""


def is_ready(record: AssignmentStateRecord, cutoff: datetime) -> bool:
    """Resolved strictly before the cutoff."""
    return (
        record.lifecycle_state == "resolved"
        and record.resolved_at is not None
        and record.resolved_at < cutoff
    )
