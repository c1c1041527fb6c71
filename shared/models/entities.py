"""SQLAlchemy ORM database models."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Text, DateTime, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class AssignmentState(Base):
    """Assignment state table - one lifecycle record per assignment."""
    __tablename__ = "assignment_states"

    assignment_id = Column(String, primary_key=True)
    record_json = Column(Text, nullable=False)  # Full AssignmentStateRecord serialized (camelCase)
    lifecycle_state = Column(String, nullable=False, default="active")  # Denormalized for auto-archive queries
    resolved_at = Column(DateTime, nullable=True)  # Denormalized, naive UTC
    state_version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_assignment_state_lifecycle", "lifecycle_state", "resolved_at"),
    )


class StoreMetadata(Base):
    """Key/value metadata for the state store (e.g. lastAutoArchiveCheck)."""
    __tablename__ = "assignment_store_metadata"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
