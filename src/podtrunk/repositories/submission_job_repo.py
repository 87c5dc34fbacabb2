"""Submission job repository: the durable job record store."""

import logging
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from podtrunk.db.models.submission_job import SubmissionJobRow
from podtrunk.errors.exceptions import ConflictError
from podtrunk.logging_config import quiet_logging
from podtrunk.repositories.base import BaseRepository
from podtrunk.repositories.log_message_repo import LogMessageRepository
from podtrunk.services.id_generator import generate_id
from podtrunk.services.job_state import PROGRESS_FIELDS, derive_state
from podtrunk.services.registry import PodRegistry

logger = logging.getLogger(__name__)

# Fields that resolve once and are never overwritten
_WRITE_ONCE_FIELDS = PROGRESS_FIELDS + ("travis_build_success",)

# Fields callers may change; needs_to_perform_work is always derived
_UPDATABLE_FIELDS = frozenset(_WRITE_ONCE_FIELDS + ("succeeded", "attempts"))


class SubmissionJobRepository(BaseRepository):
    def __init__(self, session: AsyncSession, registry: PodRegistry | None = None):
        super().__init__(session, SubmissionJobRow)
        self.registry = registry or PodRegistry(session)

    async def get(self, job_id: str) -> SubmissionJobRow | None:
        return await self.get_by_id("id", job_id)

    async def create_for_version(self, pod_version_id: str) -> SubmissionJobRow:
        """Create a job for a pod version and log its submission."""
        job = await self.create(
            id=generate_id("job_"),
            pod_version_id=pod_version_id,
            needs_to_perform_work=True,
            attempts=0,
        )
        await LogMessageRepository(self.session).append(job.id, "Submitted")
        logger.info("Submission job %s created for pod version %s", job.id, pod_version_id)
        return job

    async def list_for_version(self, pod_version_id: str) -> list[SubmissionJobRow]:
        return await self.list_by_field("pod_version_id", pod_version_id)

    @staticmethod
    def claim_statement() -> Select:
        """Oldest runnable job first, locked for the rest of the transaction.

        Locked rows are skipped so concurrent dispatchers move on to the next
        runnable job instead of waiting on the same one.
        """
        return (
            select(SubmissionJobRow)
            .where(SubmissionJobRow.needs_to_perform_work.is_(True))
            .order_by(SubmissionJobRow.updated_at.asc(), SubmissionJobRow.id.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )

    async def claim_next(self) -> SubmissionJobRow | None:
        """Lock and return the next runnable job, or None.

        The lock lasts until the caller's transaction ends.
        """
        with quiet_logging("sqlalchemy.engine", __name__):
            result = await self.session.execute(self.claim_statement())
            return result.scalar_one_or_none()

    async def update(self, job: SubmissionJobRow, **changes: Any) -> SubmissionJobRow:
        """Apply field changes and recompute the derived flags.

        Raises:
            ConflictError: The job is already terminal, or a write-once field
                would be overwritten with a different value.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update submission job fields: {sorted(unknown)}")

        if job.succeeded is not None:
            raise ConflictError(
                f"Submission job '{job.id}' is already {'published' if job.succeeded else 'failed'}",
                details={"job_id": job.id},
            )

        for field in _WRITE_ONCE_FIELDS:
            if field not in changes:
                continue
            current = getattr(job, field)
            if current is not None and current != changes[field]:
                raise ConflictError(
                    f"Submission job '{job.id}' already has {field}={current!r}",
                    details={"job_id": job.id, "field": field},
                )

        for key, value in changes.items():
            setattr(job, key, value)

        if job.travis_build_success is False:
            job.succeeded = False
        elif job.merge_commit_sha is not None:
            job.succeeded = True
        job.needs_to_perform_work = derive_state(job).is_runnable

        await self.session.flush()

        if job.succeeded is True:
            await self.registry.mark_published(job.pod_version_id)
        return job
