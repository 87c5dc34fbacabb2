"""Abstract interface for the Git hosting service used by the pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod


class HostingClient(ABC):
    """The Git operations needed to land a file through a pull request.

    Every method raises ``HostingAPIError`` on transport, auth or API failure.
    """

    @abstractmethod
    async def fetch_branch_head(self, branch: str) -> str:
        """Return the SHA of the latest commit on ``branch``."""
        ...

    @abstractmethod
    async def fetch_tree(self, commit_sha: str) -> str:
        """Return the tree SHA of ``commit_sha``."""
        ...

    @abstractmethod
    async def create_tree(self, base_tree_sha: str, path: str, content: str) -> str:
        """Create a tree on top of ``base_tree_sha`` holding ``content`` at ``path``."""
        ...

    @abstractmethod
    async def create_commit(self, tree_sha: str, parent_sha: str, message: str) -> str:
        ...

    @abstractmethod
    async def create_branch(self, name: str, commit_sha: str) -> str:
        """Create branch ``name`` at ``commit_sha`` and return its full ref."""
        ...

    @abstractmethod
    async def create_pull_request(self, title: str, body: str, branch: str) -> int:
        """Open a pull request from ``branch`` and return its number."""
        ...

    @abstractmethod
    async def merge_pull_request(self, number: int) -> str:
        """Merge pull request ``number`` and return the merge commit SHA."""
        ...
