from __future__ import annotations

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from receipt_spend.core.models import Base, Timestamped, UUIDPrimaryKey


class ReportSessionStatus(str, enum.Enum):
    OPEN = "OPEN"
    EXPORTED = "EXPORTED"


class UploadStatus(str, enum.Enum):
    UPLOADED = "UPLOADED"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"


class ReportSession(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "sessions_report_session"

    name: Mapped[str] = mapped_column(String(200), default="")
    department: Mapped[str] = mapped_column(String(200), default="")
    status: Mapped[ReportSessionStatus] = mapped_column(
        Enum(ReportSessionStatus, native_enum=False), default=ReportSessionStatus.OPEN, index=True
    )

    uploads = relationship(
        "Upload", back_populates="report_session", cascade="all, delete-orphan"
    )


class Upload(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "sessions_upload"

    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("sessions_report_session.id"), index=True
    )
    storage_key: Mapped[str] = mapped_column(String(1024), unique=True)
    original_name: Mapped[str] = mapped_column(String(512))
    byte_size: Mapped[int] = mapped_column(Integer)
    sha256: Mapped[str] = mapped_column(String(64), index=True)

    status: Mapped[UploadStatus] = mapped_column(
        Enum(UploadStatus, native_enum=False), index=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    report_session = relationship("ReportSession", back_populates="uploads")
