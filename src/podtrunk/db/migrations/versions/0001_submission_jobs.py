"""Pods, pod versions, submission jobs and their log.

Revision ID: 0001
Revises:
"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "pods",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        "pod_versions",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("pod_id", sa.String(128), sa.ForeignKey("pods.id"), nullable=False, index=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("published", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("specification_data", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("pod_id", "name", name="uq_pod_versions_pod_id_name"),
    )
    op.create_table(
        "submission_jobs",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("pod_version_id", sa.String(128), sa.ForeignKey("pod_versions.id"), nullable=False, index=True),
        sa.Column("base_commit_sha", sa.String(64), nullable=True),
        sa.Column("base_tree_sha", sa.String(64), nullable=True),
        sa.Column("new_tree_sha", sa.String(64), nullable=True),
        sa.Column("new_commit_sha", sa.String(64), nullable=True),
        sa.Column("new_branch_ref", sa.String(255), nullable=True),
        sa.Column("pull_request_number", sa.Integer, nullable=True),
        sa.Column("merge_commit_sha", sa.String(64), nullable=True),
        sa.Column("travis_build_success", sa.Boolean, nullable=True),
        sa.Column("needs_to_perform_work", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("succeeded", sa.Boolean, nullable=True),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index(
        "ix_submission_jobs_runnable", "submission_jobs", ["needs_to_perform_work", "updated_at"]
    )
    op.create_table(
        "log_messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "submission_job_id", sa.String(128), sa.ForeignKey("submission_jobs.id"), nullable=False, index=True
        ),
        sa.Column("level", sa.String(20), nullable=False, server_default="info"),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("log_messages")
    op.drop_index("ix_submission_jobs_runnable", table_name="submission_jobs")
    op.drop_table("submission_jobs")
    op.drop_table("pod_versions")
    op.drop_table("pods")
