"""Submission intake and external signals for submission jobs."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from podtrunk.db.models.submission_job import SubmissionJobRow
from podtrunk.errors.exceptions import ConflictError, NotFoundError, ValidationError
from podtrunk.repositories.log_message_repo import LogMessageRepository
from podtrunk.repositories.submission_job_repo import SubmissionJobRepository
from podtrunk.services.registry import PodRegistry
from podtrunk.services.validator import SpecificationDocument, SubmissionValidator

logger = logging.getLogger(__name__)


async def submit_specification(
    session: AsyncSession,
    raw: str | bytes,
    validator: SubmissionValidator | None = None,
    check_source: bool = False,
) -> SubmissionJobRow:
    """Validate a podspec document and queue a submission job for it.

    Raises:
        ValidationError: The document is malformed or fails validation.
        ConflictError: The version is already published or already has a job
            in progress.
    """
    validator = validator or SubmissionValidator()

    doc = SpecificationDocument.from_json(raw)
    if doc is None:
        raise ValidationError("Unable to parse the submitted specification as a JSON object")

    result = validator.validate(doc)
    if not result.valid:
        raise ValidationError("The submitted specification is invalid", details=result.as_details())

    if check_source and not await validator.publicly_accessible(doc):
        raise ValidationError(
            "The source of the submitted specification is not publicly accessible",
            details={"source": doc.source},
        )

    registry = PodRegistry(session)
    jobs = SubmissionJobRepository(session, registry=registry)

    # Checked before the payload is replaced; a running job pushes the stored one
    existing_version = await registry.find_version(doc.name, doc.version)
    if existing_version is not None:
        for existing in await jobs.list_for_version(existing_version.id):
            if existing.succeeded is None:
                raise ConflictError(
                    f"{doc.name} {doc.version} already has a submission in progress",
                    details={"job_id": existing.id},
                )

    version = await registry.find_or_create_version(doc.name, doc.version, doc.to_pretty_json())
    job = await jobs.create_for_version(version.id)
    if result.warnings:
        await LogMessageRepository(session).append(job.id, "Warnings: " + "; ".join(result.warnings))
    return job


async def _get_job(session: AsyncSession, job_id: str) -> tuple[SubmissionJobRepository, SubmissionJobRow]:
    jobs = SubmissionJobRepository(session)
    job = await jobs.get(job_id)
    if not job:
        raise NotFoundError("SubmissionJob", job_id)
    return jobs, job


async def record_build_result(session: AsyncSession, job_id: str, success: bool) -> SubmissionJobRow:
    """Record the CI verdict for a job's pull request.

    Success makes the job runnable so the next pass merges; failure ends it.
    """
    jobs, job = await _get_job(session, job_id)
    await jobs.update(job, travis_build_success=success)
    message = "Build succeeded." if success else "Build failed."
    await LogMessageRepository(session).append(job.id, message)
    logger.info("Submission job %s build result: %s", job.id, "success" if success else "failure")
    return job


async def record_merge(session: AsyncSession, job_id: str, merge_commit_sha: str) -> SubmissionJobRow:
    """Record a merge of the job's pull request that happened out-of-band."""
    jobs, job = await _get_job(session, job_id)
    await jobs.update(job, merge_commit_sha=merge_commit_sha)
    await LogMessageRepository(session).append(job.id, f"Pull-request merged as {merge_commit_sha}.")
    logger.info("Submission job %s merged out-of-band (%s)", job.id, merge_commit_sha)
    return job
