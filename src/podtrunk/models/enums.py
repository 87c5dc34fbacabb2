"""String enums for submission job state."""

from enum import StrEnum


class SubmissionState(StrEnum):
    """Where a submission job stands, derived from its progress fields."""

    FETCH_BASE_COMMIT = "fetch_base_commit"
    FETCH_BASE_TREE = "fetch_base_tree"
    CREATE_TREE = "create_tree"
    CREATE_COMMIT = "create_commit"
    CREATE_BRANCH = "create_branch"
    CREATE_PULL_REQUEST = "create_pull_request"
    AWAITING_BUILD = "awaiting_build"
    MERGE_PULL_REQUEST = "merge_pull_request"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_runnable(self) -> bool:
        return self in RUNNABLE_STATES

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionState.SUCCEEDED, SubmissionState.FAILED)


RUNNABLE_STATES = frozenset({
    SubmissionState.FETCH_BASE_COMMIT,
    SubmissionState.FETCH_BASE_TREE,
    SubmissionState.CREATE_TREE,
    SubmissionState.CREATE_COMMIT,
    SubmissionState.CREATE_BRANCH,
    SubmissionState.CREATE_PULL_REQUEST,
    SubmissionState.MERGE_PULL_REQUEST,
})


class LogLevel(StrEnum):
    INFO = "info"
    ERROR = "error"
