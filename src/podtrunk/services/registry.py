"""Pod registry: destination metadata for submissions and publication."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from podtrunk.config import settings
from podtrunk.db.models.pod import PodVersionRow
from podtrunk.errors.exceptions import ConflictError, NotFoundError
from podtrunk.repositories.pod_repo import PodRepository, PodVersionRepository
from podtrunk.services.id_generator import generate_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PodVersionInfo:
    """What the pipeline needs to know about the version it submits."""

    pod_version_id: str
    pod_name: str
    version_string: str
    document_payload: str
    url: str

    @property
    def document_path(self) -> str:
        return f"{self.pod_name}/{self.version_string}/{self.pod_name}.podspec.json"


class PodRegistry:
    """Owns Pod/PodVersion records for the submission pipeline."""

    def __init__(self, session: AsyncSession, public_base_url: str | None = None):
        self.session = session
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        self.pods = PodRepository(session)
        self.versions = PodVersionRepository(session)

    async def describe(self, pod_version_id: str) -> PodVersionInfo:
        found = await self.versions.get_with_pod(pod_version_id)
        if not found:
            raise NotFoundError("PodVersion", pod_version_id)
        version, pod = found
        return PodVersionInfo(
            pod_version_id=version.id,
            pod_name=pod.name,
            version_string=version.name,
            document_payload=version.specification_data or "",
            url=f"{self.public_base_url}/pods/{pod.name}/versions/{version.name}",
        )

    async def mark_published(self, pod_version_id: str) -> None:
        version = await self.versions.get(pod_version_id)
        if not version:
            raise NotFoundError("PodVersion", pod_version_id)
        version.published = True
        await self.session.flush()
        logger.info("Pod version %s marked published", pod_version_id)

    async def find_version(self, pod_name: str, version_string: str) -> PodVersionRow | None:
        pod = await self.pods.get_by_name(pod_name)
        if not pod:
            return None
        return await self.versions.get_by_name(pod.id, version_string)

    async def find_or_create_version(self, pod_name: str, version_string: str, payload: str) -> PodVersionRow:
        """Record a submitted version, creating the pod on first push.

        An unpublished version keeps its row and takes the latest payload.
        """
        pod = await self.pods.get_by_name(pod_name)
        if not pod:
            pod = await self.pods.create(id=generate_id("pod_"), name=pod_name)
            logger.info("Registered new pod %s", pod_name)

        version = await self.versions.get_by_name(pod.id, version_string)
        if version is None:
            return await self.versions.create(
                id=generate_id("ver_"),
                pod_id=pod.id,
                name=version_string,
                published=False,
                specification_data=payload,
            )

        if version.published:
            raise ConflictError(
                f"{pod_name} {version_string} has already been published",
                details={"pod_version_id": version.id},
            )
        version.specification_data = payload
        await self.session.flush()
        return version
