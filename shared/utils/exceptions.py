"""Custom exception hierarchy for better error handling."""
from fastapi import HTTPException, status


class AssignmentLifecycleException(Exception):
    """Base exception for all assignment lifecycle errors."""
    pass


class AssignmentNotFoundException(AssignmentLifecycleException):
    """Raised when the lesson behind an assignment cannot be found."""

    def __init__(self, assignment_id: str):
        self.assignment_id = assignment_id
        super().__init__(f"Assignment {assignment_id} not found")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Assignment {self.assignment_id} not found"
        )


class InvalidStateUpdateError(AssignmentLifecycleException):
    """Raised when a partial state update names unknown or frozen fields."""

    def __init__(self, assignment_id: str, fields: list[str], reason: str = "unknown fields"):
        self.assignment_id = assignment_id
        self.fields = fields
        super().__init__(
            f"Invalid state update for assignment {assignment_id}: "
            f"{reason} {', '.join(fields)}"
        )

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(self)
        )


class StaleStateError(AssignmentLifecycleException):
    """Raised when an optimistic locking conflict is detected during a state update."""

    def __init__(self, message: str):
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(self)
        )
