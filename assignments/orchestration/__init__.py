"""Orchestration of lifecycle computation and persisted transitions."""
from assignments.orchestration.collaborators import (
    LessonSource,
    RosterSource,
    SessionSource,
    StudentNameSource,
)
from assignments.orchestration.lifecycle_orchestrator import (
    AssignmentLifecycleOrchestrator,
    dashboard_priority,
)
