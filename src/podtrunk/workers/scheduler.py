"""Background loop that keeps calling the dispatcher."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from podtrunk.config import settings
from podtrunk.errors.exceptions import InvalidJobStateError
from podtrunk.services.pipeline import SubmissionPipeline
from podtrunk.workers.dispatcher import perform_task

logger = logging.getLogger(__name__)


async def drain_queue(
    session_factory: async_sessionmaker[AsyncSession],
    pipeline: SubmissionPipeline,
    max_tasks: int | None = None,
) -> int:
    """Dispatch until no job is runnable (or ``max_tasks`` is hit). Returns steps run."""
    performed = 0
    while max_tasks is None or performed < max_tasks:
        if not await perform_task(session_factory, pipeline):
            break
        performed += 1
    return performed


async def run_dispatcher(
    session_factory: async_sessionmaker[AsyncSession],
    pipeline: SubmissionPipeline,
    poll_interval: float | None = None,
) -> None:
    """Drain runnable jobs, then sleep ``poll_interval`` seconds; repeat until cancelled."""
    interval = poll_interval if poll_interval is not None else settings.dispatcher_poll_interval
    logger.info("Submission dispatcher started (poll_interval=%ss)", interval)

    while True:
        try:
            count = await drain_queue(session_factory, pipeline)
            if count:
                logger.info("Dispatcher performed %d submission steps", count)
            await asyncio.sleep(interval)

        except asyncio.CancelledError:
            logger.info("Submission dispatcher stopped")
            break
        except InvalidJobStateError as exc:
            # Left untouched for an operator; it stays oldest and is claimed again
            logger.error("Dispatcher claimed submission job %s it cannot run: %s", exc.job_id, exc.reason)
            await asyncio.sleep(interval)
        except Exception as exc:
            logger.exception("Dispatcher error: %s", exc)
            await asyncio.sleep(interval)
