"""Submission intake and job status routes."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from podtrunk.db.models.submission_job import SubmissionJobRow
from podtrunk.dependencies import get_db
from podtrunk.errors.exceptions import NotFoundError
from podtrunk.models.submission import (
    BuildResultRequest,
    LogMessageModel,
    MergeNotificationRequest,
    SubmissionJobModel,
)
from podtrunk.repositories.log_message_repo import LogMessageRepository
from podtrunk.repositories.submission_job_repo import SubmissionJobRepository
from podtrunk.services.job_state import derive_state
from podtrunk.services.submissions import record_build_result, record_merge, submit_specification

router = APIRouter(tags=["Submissions"])


def _job_response(job: SubmissionJobRow) -> dict:
    model = SubmissionJobModel.model_validate(
        {**{c: getattr(job, c) for c in SubmissionJobModel.model_fields if c != "state"},
         "state": derive_state(job)}
    )
    return model.model_dump(mode="json")


@router.post("/submissions", status_code=202)
async def create_submission(
    request: Request,
    check_source: bool = Query(False),
    db: AsyncSession = Depends(get_db),
) -> dict:
    raw = await request.body()
    job = await submit_specification(db, raw, check_source=check_source)
    await db.commit()
    return _job_response(job)


@router.get("/submission-jobs/{job_id}")
async def get_submission_job(job_id: str, db: AsyncSession = Depends(get_db)) -> dict:
    job = await SubmissionJobRepository(db).get(job_id)
    if not job:
        raise NotFoundError("SubmissionJob", job_id)
    return _job_response(job)


@router.get("/submission-jobs/{job_id}/log")
async def get_submission_log(job_id: str, db: AsyncSession = Depends(get_db)) -> list[dict]:
    job = await SubmissionJobRepository(db).get(job_id)
    if not job:
        raise NotFoundError("SubmissionJob", job_id)
    rows = await LogMessageRepository(db).list_for_job(job_id)
    return [LogMessageModel.model_validate(row).model_dump(mode="json") for row in rows]


@router.post("/submission-jobs/{job_id}/build-result")
async def post_build_result(
    job_id: str,
    body: BuildResultRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    job = await record_build_result(db, job_id, body.success)
    await db.commit()
    return _job_response(job)


@router.post("/submission-jobs/{job_id}/merge")
async def post_merge(
    job_id: str,
    body: MergeNotificationRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    job = await record_merge(db, job_id, body.merge_commit_sha)
    await db.commit()
    return _job_response(job)
