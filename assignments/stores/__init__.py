"""Assignment state store backends."""
import logging
from typing import Optional

from assignments.stores.base import AssignmentStateStore
from assignments.stores.json_store import JsonAssignmentStateStore
from assignments.stores.sql_store import SqlAssignmentStateStore
from config import Settings, get_settings
from database import DatabaseManager
from shared.utils.clock import Clock

logger = logging.getLogger(__name__)


def create_state_store(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> AssignmentStateStore:
    """
    Build the configured state store. Call once at process start and pass the
    instance to everything that needs it.
    """
    settings = settings or get_settings()

    if settings.state_store_backend == "sql":
        db_manager = DatabaseManager(settings)
        db_manager.create_all()
        logger.info("Using SQL assignment state store")
        return SqlAssignmentStateStore(db_manager, clock=clock)

    logger.info(f"Using JSON assignment state store at {settings.state_file_path}")
    return JsonAssignmentStateStore(settings.state_file_path, clock=clock)
