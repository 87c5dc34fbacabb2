"""Submission job and log message tables."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from podtrunk.db.base import Base, TimestampMixin


class SubmissionJobRow(Base, TimestampMixin):
    __tablename__ = "submission_jobs"
    __table_args__ = (
        Index("ix_submission_jobs_runnable", "needs_to_perform_work", "updated_at"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    pod_version_id: Mapped[str] = mapped_column(String(128), ForeignKey("pod_versions.id"), nullable=False, index=True)

    # Progress fields, each written once by exactly one pipeline step
    base_commit_sha: Mapped[str | None] = mapped_column(String(64), nullable=True)
    base_tree_sha: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_tree_sha: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_commit_sha: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_branch_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pull_request_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    merge_commit_sha: Mapped[str | None] = mapped_column(String(64), nullable=True)

    travis_build_success: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    needs_to_perform_work: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    succeeded: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class LogMessageRow(Base):
    __tablename__ = "log_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_job_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("submission_jobs.id"), nullable=False, index=True
    )
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="info")
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
