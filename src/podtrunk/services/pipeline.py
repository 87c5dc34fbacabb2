"""Submission pipeline: advances a claimed job by exactly one step.

Each step makes one Hosting API call and records its result in a single
progress field. A step runs inside a savepoint, so a failure discards only
that step's partial writes; the failure itself is then persisted as an
attempt (or as terminal failure once the retry ceiling is reached).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from podtrunk.config import settings
from podtrunk.db.models.submission_job import SubmissionJobRow
from podtrunk.errors.exceptions import InvalidJobStateError
from podtrunk.integrations.base import HostingClient
from podtrunk.integrations.github import sanitize_branch_name
from podtrunk.models.enums import LogLevel, SubmissionState
from podtrunk.repositories.log_message_repo import LogMessageRepository
from podtrunk.repositories.submission_job_repo import SubmissionJobRepository
from podtrunk.services.job_state import derive_state
from podtrunk.services.registry import PodRegistry, PodVersionInfo

logger = logging.getLogger(__name__)

StepAction = Callable[[], Awaitable[dict[str, Any]]]


class SubmissionPipeline:
    """Runs the next step of a submission job against the hosting service."""

    def __init__(
        self,
        hosting: HostingClient,
        base_branch: str | None = None,
        retry_count: int | None = None,
        timeout: float | None = None,
    ):
        self.hosting = hosting
        self.base_branch = base_branch or settings.github_base_branch
        self.retry_count = retry_count if retry_count is not None else settings.submission_retry_count
        self.timeout = timeout if timeout is not None else settings.hosting_timeout_seconds

    async def perform_next_task(self, session: AsyncSession, job: SubmissionJobRow) -> SubmissionState:
        """Execute the step the job's state calls for and return that state.

        Raises:
            InvalidJobStateError: The job is not runnable. Nothing is written.
        """
        if not job.needs_to_perform_work:
            raise InvalidJobStateError(job.id, "marked as not needing to perform work")

        state = derive_state(job)
        steps: dict[SubmissionState, Callable[..., Awaitable[None]]] = {
            SubmissionState.FETCH_BASE_COMMIT: self._fetch_base_commit,
            SubmissionState.FETCH_BASE_TREE: self._fetch_base_tree,
            SubmissionState.CREATE_TREE: self._create_tree,
            SubmissionState.CREATE_COMMIT: self._create_commit,
            SubmissionState.CREATE_BRANCH: self._create_branch,
            SubmissionState.CREATE_PULL_REQUEST: self._create_pull_request,
            SubmissionState.MERGE_PULL_REQUEST: self._merge_pull_request,
        }
        step = steps.get(state)
        if step is None:
            raise InvalidJobStateError(job.id, f"unable to run a step in state '{state}'")

        registry = PodRegistry(session)
        info = await registry.describe(job.pod_version_id)
        await step(session, job, info)
        return state

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _fetch_base_commit(self, session, job, info: PodVersionInfo) -> None:
        async def action():
            return {"base_commit_sha": await self._call(self.hosting.fetch_branch_head(self.base_branch))}

        await self._perform_task(session, job, f"Fetching latest commit SHA of {self.base_branch}.", action)

    async def _fetch_base_tree(self, session, job, info: PodVersionInfo) -> None:
        async def action():
            return {"base_tree_sha": await self._call(self.hosting.fetch_tree(job.base_commit_sha))}

        await self._perform_task(session, job, f"Fetching tree SHA of commit {job.base_commit_sha}.", action)

    async def _create_tree(self, session, job, info: PodVersionInfo) -> None:
        async def action():
            sha = await self._call(
                self.hosting.create_tree(job.base_tree_sha, info.document_path, info.document_payload)
            )
            return {"new_tree_sha": sha}

        await self._perform_task(session, job, f"Creating new tree based on tree {job.base_tree_sha}.", action)

    async def _create_commit(self, session, job, info: PodVersionInfo) -> None:
        async def action():
            sha = await self._call(
                self.hosting.create_commit(job.new_tree_sha, job.base_commit_sha, _title(info))
            )
            return {"new_commit_sha": sha}

        await self._perform_task(session, job, f"Creating new commit with tree {job.new_tree_sha}.", action)

    async def _create_branch(self, session, job, info: PodVersionInfo) -> None:
        branch_name = branch_name_for(info, job.id)

        async def action():
            return {"new_branch_ref": await self._call(self.hosting.create_branch(branch_name, job.new_commit_sha))}

        await self._perform_task(
            session, job, f"Creating new branch `{branch_name}' with commit {job.new_commit_sha}.", action
        )

    async def _create_pull_request(self, session, job, info: PodVersionInfo) -> None:
        async def action():
            number = await self._call(
                self.hosting.create_pull_request(_title(info), info.url, job.new_branch_ref)
            )
            return {"pull_request_number": number}

        await self._perform_task(
            session, job, f"Creating new pull-request with branch {job.new_branch_ref}.", action
        )

    async def _merge_pull_request(self, session, job, info: PodVersionInfo) -> None:
        if not job.travis_build_success:
            # CI failed: close out without touching the hosting service
            async def give_up():
                return {"succeeded": False}

            await self._perform_task(
                session, job, f"Build failed, not merging pull-request number {job.pull_request_number}.", give_up
            )
            return

        async def action():
            return {"merge_commit_sha": await self._call(self.hosting.merge_pull_request(job.pull_request_number))}

        await self._perform_task(session, job, f"Merging pull-request number {job.pull_request_number}.", action)

    # ------------------------------------------------------------------
    # Task execution
    # ------------------------------------------------------------------

    async def _call(self, coro: Awaitable[Any]) -> Any:
        """Await a hosting call, bounded by the configured timeout."""
        return await asyncio.wait_for(coro, timeout=self.timeout)

    async def _perform_task(
        self,
        session: AsyncSession,
        job: SubmissionJobRow,
        message: str,
        action: StepAction,
    ) -> None:
        """Log, run ``action`` in a savepoint, and persist its result or failure.

        Failures never propagate: they become an extra attempt, or terminal
        failure once ``retry_count`` consecutive attempts have failed.
        """
        jobs = SubmissionJobRepository(session)
        log = LogMessageRepository(session)
        await log.append(job.id, message)

        try:
            async with session.begin_nested():
                changes = await action()
                if job.attempts:
                    changes["attempts"] = 0
                await jobs.update(job, **changes)
        except Exception as exc:
            # The savepoint rollback expired the job; reload what was committed
            await session.refresh(job)
            await self._record_failure(jobs, log, job, exc)
            return

        logger.info("Submission job %s completed step: %s", job.id, message)

    async def _record_failure(
        self,
        jobs: SubmissionJobRepository,
        log: LogMessageRepository,
        job: SubmissionJobRow,
        exc: BaseException,
    ) -> None:
        attempts = job.attempts + 1
        reason = str(exc) or exc.__class__.__name__

        if attempts >= self.retry_count:
            await jobs.update(job, attempts=attempts, succeeded=False)
            await log.append(job.id, f"Error: {reason}", LogLevel.ERROR)
            await log.append(job.id, f"Giving up after {attempts} failed attempts.", LogLevel.ERROR)
        else:
            await jobs.update(job, attempts=attempts)
            await log.append(job.id, f"Error: {reason}", LogLevel.ERROR)

        logger.error(
            "Submission job %s step failed (attempt %d/%d): %s",
            job.id,
            attempts,
            self.retry_count,
            reason,
            exc_info=exc,
        )


def branch_name_for(info: PodVersionInfo, job_id: str) -> str:
    """Branch name for a job, unique per pod, version and job."""
    return sanitize_branch_name(f"{info.pod_name}-{info.version_string}-job-{job_id}")


def _title(info: PodVersionInfo) -> str:
    return f"[Add] {info.pod_name} {info.version_string}"
