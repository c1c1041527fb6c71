"""Assignment state data access layer."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from assignments.models.state_record import AssignmentStateRecord
from shared.models.entities import AssignmentState, StoreMetadata
from shared.utils.exceptions import StaleStateError

logger = logging.getLogger(__name__)

LAST_AUTO_ARCHIVE_CHECK_KEY = "lastAutoArchiveCheck"


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    return value.replace(tzinfo=None) if value is not None else None


class AssignmentStateRepository:
    """Repository for assignment state rows with optimistic versioning."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_by_id(self, assignment_id: str) -> Optional[AssignmentState]:
        """
        Retrieve a state row by assignment ID.

        Args:
            assignment_id: Assignment (lesson) identifier

        Returns:
            AssignmentState row if found, None otherwise
        """
        return (
            self.db.query(AssignmentState)
            .filter(AssignmentState.assignment_id == assignment_id)
            .first()
        )

    def list_all(self) -> list[AssignmentState]:
        return self.db.query(AssignmentState).order_by(AssignmentState.created_at.asc()).all()

    def list_by_lifecycle_state(self, lifecycle_state: str) -> list[AssignmentState]:
        return (
            self.db.query(AssignmentState)
            .filter(AssignmentState.lifecycle_state == lifecycle_state)
            .all()
        )

    def create(self, record: AssignmentStateRecord) -> AssignmentState:
        """
        Insert a new state row at version 1.

        Raises:
            StaleStateError: if another writer created the row first
        """
        row = AssignmentState(
            assignment_id=record.assignment_id,
            record_json=record.model_dump_json(by_alias=True, exclude_none=True),
            lifecycle_state=record.lifecycle_state,
            resolved_at=_naive_utc(record.resolved_at),
            state_version=1,
            created_at=_naive_utc(record.created_at),
            updated_at=datetime.utcnow(),
        )
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise StaleStateError(f"Assignment state {record.assignment_id} was created concurrently")
        return row

    def update_if_version(self, record: AssignmentStateRecord, expected_version: int) -> int:
        """
        Write a record only if the row is still at ``expected_version``.

        Returns:
            The new version number

        Raises:
            StaleStateError: if the row was modified since it was read
        """
        result = self.db.execute(
            update(AssignmentState)
            .where(
                AssignmentState.assignment_id == record.assignment_id,
                AssignmentState.state_version == expected_version,
            )
            .values(
                record_json=record.model_dump_json(by_alias=True, exclude_none=True),
                lifecycle_state=record.lifecycle_state,
                resolved_at=_naive_utc(record.resolved_at),
                state_version=expected_version + 1,
                updated_at=datetime.utcnow(),
            )
        )
        if result.rowcount == 0:
            self.db.rollback()
            logger.warning(f"Stale write rejected for assignment {record.assignment_id} at version {expected_version}")
            raise StaleStateError(
                f"Assignment state {record.assignment_id} was modified concurrently "
                f"(expected version {expected_version})"
            )
        return expected_version + 1

    def delete(self, assignment_id: str) -> bool:
        """
        Delete a state row.

        Returns:
            True if deleted, False if not found
        """
        row = self.get_by_id(assignment_id)
        if row:
            self.db.delete(row)
            return True
        return False

    def get_metadata(self, key: str) -> Optional[str]:
        row = self.db.query(StoreMetadata).filter(StoreMetadata.key == key).first()
        return row.value if row else None

    def set_metadata(self, key: str, value: str) -> None:
        row = self.db.query(StoreMetadata).filter(StoreMetadata.key == key).first()
        if row:
            row.value = value
            row.updated_at = datetime.utcnow()
        else:
            self.db.add(StoreMetadata(key=key, value=value, updated_at=datetime.utcnow()))


def to_record(row: AssignmentState) -> AssignmentStateRecord:
    return AssignmentStateRecord.model_validate_json(row.record_json)
