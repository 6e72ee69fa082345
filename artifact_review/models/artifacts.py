from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from artifact_review.models.base import Base, new_id, now_utc

FILE_TYPES = ("zip", "html", "markdown")

# Largest value the version_number column holds on every supported database.
MAX_VERSION_NUMBER = 2**31 - 1


class Artifact(Base):
    __tablename__ = "artifacts"
    __table_args__ = (Index("ix_artifacts_by_creator_active", "creator_id", "is_deleted"),)

    artifact_id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    creator_id: Mapped[str] = mapped_column(ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    share_token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)


class ArtifactVersion(Base):
    __tablename__ = "artifact_versions"
    __table_args__ = (
        UniqueConstraint("artifact_id", "version_number", name="uq_artifact_versions_by_artifact_version"),
        Index("ix_artifact_versions_by_artifact_active", "artifact_id", "is_deleted"),
        CheckConstraint(
            "file_type IN ({})".format(", ".join(f"'{t}'" for t in FILE_TYPES)),
            name="ck_artifact_versions_file_type",
        ),
    )

    version_id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    artifact_id: Mapped[str] = mapped_column(ForeignKey("artifacts.artifact_id", ondelete="CASCADE"), index=True)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    file_type: Mapped[str] = mapped_column(String(20), nullable=False)
    html_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    markdown_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    entry_point: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    file_size: Mapped[int] = mapped_column(Integer, default=0)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)


class ArtifactFile(Base):
    __tablename__ = "artifact_files"
    __table_args__ = (
        UniqueConstraint("version_id", "file_path", name="uq_artifact_files_by_version_path"),
        Index("ix_artifact_files_by_version_active", "version_id", "is_deleted"),
    )

    file_id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    version_id: Mapped[str] = mapped_column(ForeignKey("artifact_versions.version_id", ondelete="CASCADE"), index=True)
    file_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    storage_uri: Mapped[str] = mapped_column(String(2048), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(200), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, default=0)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
