"""SQLAlchemy models for the face matching service."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class LostPersonRecord(Base):
    """Lost-and-found report with its face descriptor."""

    __tablename__ = "lost_persons"
    __table_args__ = (
        Index("idx_lost_persons_status", "status"),
    )

    # Insertion order; candidates are scanned oldest first
    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(36),
        unique=True,
        nullable=False,
        comment="Public record identifier"
    )
    name: Mapped[str] = mapped_column(String(255), default="Unknown")
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gender: Mapped[str] = mapped_column(String(16), default="Unknown")
    photo_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    face_descriptor: Mapped[List[float]] = mapped_column(
        JSON,
        nullable=False,
        comment="128-value face embedding"
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="missing")
    contact_info: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    last_seen_location: Mapped[str] = mapped_column(String(512), default="Not specified")
    current_location: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Incremented on every committed change"
    )


class DevoteeRecord(Base):
    """Registered devotee, searchable by face when a descriptor was captured."""

    __tablename__ = "devotees"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    registration_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(16), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    emergency_contact_name: Mapped[str] = mapped_column(String(255), nullable=False)
    emergency_contact_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    face_descriptor: Mapped[Optional[List[float]]] = mapped_column(JSON(none_as_null=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
