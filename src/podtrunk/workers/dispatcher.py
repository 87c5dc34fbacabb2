"""Dispatcher: claim one runnable submission job and advance it one step."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from podtrunk.logging_config import bind_job_context, clear_context
from podtrunk.repositories.submission_job_repo import SubmissionJobRepository
from podtrunk.services.pipeline import SubmissionPipeline

logger = logging.getLogger(__name__)


async def perform_task(
    session_factory: async_sessionmaker[AsyncSession],
    pipeline: SubmissionPipeline,
) -> bool:
    """Run a single pipeline step for the oldest runnable job.

    The claim lock is held until the step's result is committed. Returns
    False, without writing anything, when no job is runnable.

    Raises:
        InvalidJobStateError: The claimed job had no runnable step. The
            transaction is rolled back, leaving the job as it was.
    """
    async with session_factory() as session:
        async with session.begin():
            job = await SubmissionJobRepository(session).claim_next()
            if job is None:
                return False

            bind_job_context(job.id)
            try:
                state = await pipeline.perform_next_task(session, job)
            finally:
                clear_context()

    logger.debug("Dispatched submission job %s (%s)", job.id, state)
    return True
