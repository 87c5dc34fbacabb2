"""Shared test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from podtrunk.db.base import Base
from podtrunk.db.engine import enable_sqlite_savepoints
# Import all models to register with Base.metadata
import podtrunk.db.models  # noqa: F401
from podtrunk.errors.exceptions import HostingAPIError
from podtrunk.integrations.base import HostingClient
from podtrunk.repositories.submission_job_repo import SubmissionJobRepository
from podtrunk.services.registry import PodRegistry

SPEC_JSON = """{
  "name": "AFNetworking",
  "version": "1.2.0",
  "summary": "A delightful networking framework.",
  "homepage": "https://github.com/AFNetworking/AFNetworking",
  "license": "MIT",
  "authors": {"Mattt": "mattt@example.com"},
  "source": {"git": "https://github.com/AFNetworking/AFNetworking.git", "tag": "1.2.0"}
}"""


class FakeHostingClient(HostingClient):
    """Records hosting calls and answers with predictable values.

    ``failures`` maps an operation name to the number of times it should
    raise ``HostingAPIError`` before succeeding.
    """

    def __init__(self, failures: dict[str, int] | None = None):
        self.calls: list[tuple] = []
        self.failures = dict(failures or {})

    def _record(self, name: str, *args):
        self.calls.append((name, *args))
        if self.failures.get(name, 0) > 0:
            self.failures[name] -= 1
            raise HostingAPIError(f"{name} is unavailable", http_status=502)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def fetch_branch_head(self, branch):
        self._record("fetch_branch_head", branch)
        return "632671a3f28771a3631119354731dba03963a276"

    async def fetch_tree(self, commit_sha):
        self._record("fetch_tree", commit_sha)
        return "f93e3a1a1525fb5b91020da86e44810c87a2d7bc"

    async def create_tree(self, base_tree_sha, path, content):
        self._record("create_tree", base_tree_sha, path, content)
        return "18f3c6a4c2d5e6f7a8b9c0d1e2f3a4b5c6d7e8f9"

    async def create_commit(self, tree_sha, parent_sha, message):
        self._record("create_commit", tree_sha, parent_sha, message)
        return "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

    async def create_branch(self, name, commit_sha):
        self._record("create_branch", name, commit_sha)
        return f"refs/heads/{name}"

    async def create_pull_request(self, title, body, branch):
        self._record("create_pull_request", title, body, branch)
        return 42

    async def merge_pull_request(self, number):
        self._record("merge_pull_request", number)
        return "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def hosting():
    return FakeHostingClient()


@pytest.fixture
def make_job(session_factory):
    """Create a committed submission job for a fresh pod version; returns its id."""

    async def _make(pod_name: str = "AFNetworking", version: str = "1.2.0") -> str:
        async with session_factory() as session:
            registry = PodRegistry(session)
            pod_version = await registry.find_or_create_version(pod_name, version, SPEC_JSON)
            job = await SubmissionJobRepository(session, registry=registry).create_for_version(pod_version.id)
            await session.commit()
            return job.id

    return _make


@pytest.fixture
def load_job(session_factory):
    """Read a job back through a fresh session."""

    async def _load(job_id: str):
        async with session_factory() as session:
            return await SubmissionJobRepository(session).get(job_id)

    return _load


@pytest.fixture
def app(db_engine, session_factory):
    """Create a test application instance with in-memory DB."""
    from podtrunk.main import create_app

    _app = create_app()
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = session_factory
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def spec_json() -> str:
    return SPEC_JSON
