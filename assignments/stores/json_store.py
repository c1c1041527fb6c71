"""JSON document backend for the assignment state store.

All records live in one document, ``{"states": {...}, "lastAutoArchiveCheck": ...}``.
Every operation is a full read -> modify -> write of that document, so the
store serializes them behind a single lock; writes go to a temp file that is
atomically swapped in, leaving the previous document intact if a write fails.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from assignments.models.state_record import AssignmentStateDocument, AssignmentStateRecord
from assignments.stores.base import AssignmentStateStore, Mutator, is_ready
from shared.utils.clock import Clock

logger = logging.getLogger(__name__)


class JsonAssignmentStateStore(AssignmentStateStore):
    """Single-writer store persisted as one JSON document."""

    def __init__(self, path: Union[str, Path], clock: Optional[Clock] = None):
        super().__init__(clock)
        self.path = Path(path)
        self._lock = threading.RLock()

    # ── Document I/O ────────────────────────────────────────────

    def _load_document(self) -> AssignmentStateDocument:
        """Load the document. A missing or corrupted file is an empty store."""
        if not self.path.exists():
            return AssignmentStateDocument.empty(self.now())

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if isinstance(data, dict) and "lastAutoArchiveCheck" not in data:
                data["lastAutoArchiveCheck"] = self.now()
            return AssignmentStateDocument.model_validate(data)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Corrupted state document at {self.path}, starting fresh: {e}")
            return AssignmentStateDocument.empty(self.now())

    def _write_document(self, document: AssignmentStateDocument) -> None:
        """Write the whole document atomically (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(document.to_json_dict(), indent=2)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    # ── Backend primitives ──────────────────────────────────────

    def _read(self, assignment_id: str) -> Optional[AssignmentStateRecord]:
        with self._lock:
            return self._load_document().states.get(assignment_id)

    def _read_all(self) -> list[AssignmentStateRecord]:
        with self._lock:
            return list(self._load_document().states.values())

    def _apply(self, assignment_id: str, mutator: Optional[Mutator]) -> AssignmentStateRecord:
        with self._lock:
            document = self._load_document()
            now = self.now()
            record = document.states.get(assignment_id)
            created = record is None
            if created:
                record = AssignmentStateRecord.new(assignment_id, now)
                document.states[assignment_id] = record
            if mutator is not None:
                mutator(record, now)
            if created or mutator is not None:
                self._write_document(document)
            return record

    def _remove(self, assignment_id: str) -> bool:
        with self._lock:
            document = self._load_document()
            if assignment_id not in document.states:
                return False
            del document.states[assignment_id]
            self._write_document(document)
            return True

    def _select_ready_for_archive(self, cutoff: datetime, now: datetime) -> list[AssignmentStateRecord]:
        with self._lock:
            document = self._load_document()
            ready = [record for record in document.states.values() if is_ready(record, cutoff)]
            document.last_auto_archive_check = now
            self._write_document(document)
            return ready

    @property
    def last_auto_archive_check(self) -> datetime:
        with self._lock:
            return self._load_document().last_auto_archive_check
