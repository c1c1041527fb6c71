"""SQL backend for the assignment state store.

One row per assignment instead of one shared document, so writers touching
different assignments never race. Writers touching the same assignment are
caught by the row's ``state_version``: the update only lands if the version
read is still current, otherwise StaleStateError propagates to the caller.
"""

import logging
from datetime import datetime
from typing import Optional

from assignments.models.state_record import AssignmentStateRecord
from assignments.stores.base import AssignmentStateStore, Mutator, is_ready
from database import DatabaseManager
from shared.repositories.assignment_state_repository import (
    LAST_AUTO_ARCHIVE_CHECK_KEY,
    AssignmentStateRepository,
    to_record,
)
from shared.utils.clock import Clock, parse_timestamp

logger = logging.getLogger(__name__)


class SqlAssignmentStateStore(AssignmentStateStore):
    """Per-key store with optimistic concurrency on each assignment row."""

    def __init__(self, db_manager: DatabaseManager, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.db_manager = db_manager

    def close(self) -> None:
        self.db_manager.close()

    def _read(self, assignment_id: str) -> Optional[AssignmentStateRecord]:
        with self.db_manager.session_scope() as db:
            row = AssignmentStateRepository(db).get_by_id(assignment_id)
            return to_record(row) if row else None

    def _read_all(self) -> list[AssignmentStateRecord]:
        with self.db_manager.session_scope() as db:
            return [to_record(row) for row in AssignmentStateRepository(db).list_all()]

    def _apply(self, assignment_id: str, mutator: Optional[Mutator]) -> AssignmentStateRecord:
        with self.db_manager.session_scope() as db:
            repo = AssignmentStateRepository(db)
            now = self.now()
            row = repo.get_by_id(assignment_id)

            if row is None:
                record = AssignmentStateRecord.new(assignment_id, now)
                if mutator is not None:
                    mutator(record, now)
                repo.create(record)
                return record

            record = to_record(row)
            if mutator is None:
                return record
            expected_version = row.state_version or 1
            mutator(record, now)
            repo.update_if_version(record, expected_version)
            return record

    def _remove(self, assignment_id: str) -> bool:
        with self.db_manager.session_scope() as db:
            return AssignmentStateRepository(db).delete(assignment_id)

    def _select_ready_for_archive(self, cutoff: datetime, now: datetime) -> list[AssignmentStateRecord]:
        with self.db_manager.session_scope() as db:
            repo = AssignmentStateRepository(db)
            records = [to_record(row) for row in repo.list_by_lifecycle_state("resolved")]
            repo.set_metadata(LAST_AUTO_ARCHIVE_CHECK_KEY, now.isoformat())
            return [record for record in records if is_ready(record, cutoff)]

    @property
    def last_auto_archive_check(self) -> datetime:
        with self.db_manager.session_scope() as db:
            value = AssignmentStateRepository(db).get_metadata(LAST_AUTO_ARCHIVE_CHECK_KEY)
        return parse_timestamp(value) if value else self.now()
