"""Async issue source used by the context graph fetcher."""

import asyncio
from typing import Protocol

from .client import GitHubClient
from .models import ChangedFile, GitHubComment, IssueRecord


class IssueSource(Protocol):
    """Read access to issues, pull requests and repository files.

    Any call may raise; the graph fetcher treats errors as "not found".
    """

    async def get_issue(
        self, owner: str, repo: str, number: int
    ) -> IssueRecord | None: ...

    async def list_comments(
        self, owner: str, repo: str, number: int, is_pull_request: bool = False
    ) -> list[GitHubComment]: ...

    async def get_diff(self, owner: str, repo: str, number: int) -> str: ...

    async def list_closing_issues(
        self, owner: str, repo: str, number: int
    ) -> list[str]: ...

    async def list_changed_files(
        self, owner: str, repo: str, number: int
    ) -> list[ChangedFile]: ...

    async def get_readme(self, owner: str, repo: str) -> str | None: ...

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> str | None: ...

    async def get_languages(self, owner: str, repo: str) -> dict[str, int]: ...


class GitHubIssueSource:
    """IssueSource backed by the synchronous PyGitHub client.

    Every call runs in a worker thread so concurrent fetches do not block the
    event loop.
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    async def get_issue(self, owner: str, repo: str, number: int) -> IssueRecord:
        return await asyncio.to_thread(self.client.get_issue, owner, repo, number)

    async def list_comments(
        self, owner: str, repo: str, number: int, is_pull_request: bool = False
    ) -> list[GitHubComment]:
        return await asyncio.to_thread(
            self.client.list_comments, owner, repo, number, is_pull_request
        )

    async def get_diff(self, owner: str, repo: str, number: int) -> str:
        return await asyncio.to_thread(
            self.client.get_pull_request_diff, owner, repo, number
        )

    async def list_closing_issues(
        self, owner: str, repo: str, number: int
    ) -> list[str]:
        return await asyncio.to_thread(
            self.client.list_closing_issues, owner, repo, number
        )

    async def list_changed_files(
        self, owner: str, repo: str, number: int
    ) -> list[ChangedFile]:
        return await asyncio.to_thread(
            self.client.list_changed_files, owner, repo, number
        )

    async def get_readme(self, owner: str, repo: str) -> str | None:
        return await asyncio.to_thread(self.client.get_readme, owner, repo)

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> str | None:
        return await asyncio.to_thread(
            self.client.get_file_content, owner, repo, path, ref
        )

    async def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        return await asyncio.to_thread(self.client.get_languages, owner, repo)
