"""Pydantic models for submission jobs and their log."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from podtrunk.models.enums import LogLevel, SubmissionState


class SubmissionJobModel(BaseModel):
    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: str
    pod_version_id: str
    state: SubmissionState
    base_commit_sha: str | None = None
    base_tree_sha: str | None = None
    new_tree_sha: str | None = None
    new_commit_sha: str | None = None
    new_branch_ref: str | None = None
    pull_request_number: int | None = None
    merge_commit_sha: str | None = None
    travis_build_success: bool | None = None
    needs_to_perform_work: bool
    succeeded: bool | None = None
    attempts: int
    created_at: datetime
    updated_at: datetime


class LogMessageModel(BaseModel):
    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: int
    level: LogLevel
    message: str
    created_at: datetime


class BuildResultRequest(BaseModel):
    """CI callback payload."""

    model_config = ConfigDict(extra="forbid")

    success: bool


class MergeNotificationRequest(BaseModel):
    """Out-of-band merge of the submission pull request."""

    model_config = ConfigDict(extra="forbid")

    merge_commit_sha: str = Field(..., pattern=r"^[0-9a-f]{7,64}$")
