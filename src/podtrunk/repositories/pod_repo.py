"""Pod and PodVersion repositories."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from podtrunk.db.models.pod import PodRow, PodVersionRow
from podtrunk.repositories.base import BaseRepository


class PodRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, PodRow)

    async def get(self, pod_id: str) -> PodRow | None:
        return await self.get_by_id("id", pod_id)

    async def get_by_name(self, name: str) -> PodRow | None:
        return await self.get_by_id("name", name)


class PodVersionRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, PodVersionRow)

    async def get(self, pod_version_id: str) -> PodVersionRow | None:
        return await self.get_by_id("id", pod_version_id)

    async def get_by_name(self, pod_id: str, name: str) -> PodVersionRow | None:
        stmt = select(PodVersionRow).where(
            PodVersionRow.pod_id == pod_id,
            PodVersionRow.name == name,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_pod(self, pod_version_id: str) -> tuple[PodVersionRow, PodRow] | None:
        stmt = (
            select(PodVersionRow, PodRow)
            .join(PodRow, PodRow.id == PodVersionRow.pod_id)
            .where(PodVersionRow.id == pod_version_id)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        return (row[0], row[1]) if row else None
