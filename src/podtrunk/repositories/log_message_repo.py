"""Append-only log of submission job messages."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from podtrunk.db.models.submission_job import LogMessageRow
from podtrunk.models.enums import LogLevel
from podtrunk.repositories.base import BaseRepository


class LogMessageRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, LogMessageRow)

    async def append(self, job_id: str, message: str, level: LogLevel = LogLevel.INFO) -> LogMessageRow:
        """Append a message to a job's log. Messages are never updated or removed."""
        return await self.create(submission_job_id=job_id, message=message, level=str(level))

    async def list_for_job(self, job_id: str) -> list[LogMessageRow]:
        stmt = (
            select(LogMessageRow)
            .where(LogMessageRow.submission_job_id == job_id)
            .order_by(LogMessageRow.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
