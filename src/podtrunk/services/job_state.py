"""Derive a submission job's state from which progress fields are set.

The pipeline steps run in a fixed order; each one writes exactly one field.
``PIPELINE_STEPS`` lists them in that order so the first unset field names
the next step to run.
"""

from podtrunk.db.models.submission_job import SubmissionJobRow
from podtrunk.models.enums import SubmissionState

PIPELINE_STEPS: tuple[tuple[SubmissionState, str], ...] = (
    (SubmissionState.FETCH_BASE_COMMIT, "base_commit_sha"),
    (SubmissionState.FETCH_BASE_TREE, "base_tree_sha"),
    (SubmissionState.CREATE_TREE, "new_tree_sha"),
    (SubmissionState.CREATE_COMMIT, "new_commit_sha"),
    (SubmissionState.CREATE_BRANCH, "new_branch_ref"),
    (SubmissionState.CREATE_PULL_REQUEST, "pull_request_number"),
    (SubmissionState.MERGE_PULL_REQUEST, "merge_commit_sha"),
)

PROGRESS_FIELDS: tuple[str, ...] = tuple(field for _, field in PIPELINE_STEPS)


def derive_state(job: SubmissionJobRow) -> SubmissionState:
    """Return the state a job is in.

    The merge step additionally waits for the CI result; until it arrives the
    job sits in ``AWAITING_BUILD``.
    """
    if job.succeeded is True:
        return SubmissionState.SUCCEEDED
    if job.succeeded is False:
        return SubmissionState.FAILED

    for state, field in PIPELINE_STEPS:
        if getattr(job, field) is not None:
            continue
        if state is SubmissionState.MERGE_PULL_REQUEST and job.travis_build_success is None:
            return SubmissionState.AWAITING_BUILD
        return state

    # merge_commit_sha is set but succeeded was never recorded
    return SubmissionState.SUCCEEDED
