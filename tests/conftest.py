"""Test configuration and fixtures."""

import asyncio
from collections.abc import Callable

import pytest

from gh_context.github_client.models import (
    ChangedFile,
    GitHubComment,
    GitHubUser,
    IssueRecord,
)


class FakeIssueSource:
    """In-memory IssueSource keyed by ``owner/repo/number``."""

    def __init__(self) -> None:
        self.issues: dict[str, IssueRecord] = {}
        self.comments: dict[str, list[GitHubComment]] = {}
        self.diffs: dict[str, str] = {}
        self.closing: dict[str, list[str] | Exception] = {}
        self.files: dict[str, list[ChangedFile]] = {}
        self.readmes: dict[str, str] = {}
        self.contents: dict[tuple[str, str, str, str | None], str] = {}
        self.languages: dict[str, dict[str, int]] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []

    def add_issue(
        self,
        key: str,
        body: str | None = "",
        comments: list[str | GitHubComment] | None = None,
        is_pull_request: bool = False,
        diff: str | None = None,
        files: list[ChangedFile] | None = None,
    ) -> IssueRecord:
        owner, repo, number = key.split("/")
        kind = "pull" if is_pull_request else "issues"
        issue = IssueRecord(
            number=int(number),
            title=f"Title {number}",
            body=body,
            is_pull_request=is_pull_request,
            html_url=f"https://github.com/{owner}/{repo}/{kind}/{number}",
        )
        self.issues[key] = issue
        self.comments[key] = [
            c
            if isinstance(c, GitHubComment)
            else GitHubComment(
                id=1000 * int(number) + index,
                user=GitHubUser(login="alice"),
                body=c,
            )
            for index, c in enumerate(comments or [])
        ]
        if diff is not None:
            self.diffs[key] = diff
        if files is not None:
            self.files[key] = files
        return issue

    async def get_issue(self, owner: str, repo: str, number: int) -> IssueRecord | None:
        key = f"{owner}/{repo}/{number}"
        self.calls.append(key)
        await asyncio.sleep(0)
        if key in self.errors:
            raise self.errors[key]
        return self.issues.get(key)

    async def list_comments(
        self, owner: str, repo: str, number: int, is_pull_request: bool = False
    ) -> list[GitHubComment]:
        await asyncio.sleep(0)
        return list(self.comments.get(f"{owner}/{repo}/{number}", []))

    async def get_diff(self, owner: str, repo: str, number: int) -> str:
        key = f"{owner}/{repo}/{number}"
        if key not in self.diffs:
            raise ValueError(f"No diff for {key}")
        return self.diffs[key]

    async def list_closing_issues(
        self, owner: str, repo: str, number: int
    ) -> list[str]:
        closing = self.closing.get(f"{owner}/{repo}/{number}", [])
        if isinstance(closing, Exception):
            raise closing
        return list(closing)

    async def list_changed_files(
        self, owner: str, repo: str, number: int
    ) -> list[ChangedFile]:
        return list(self.files.get(f"{owner}/{repo}/{number}", []))

    async def get_readme(self, owner: str, repo: str) -> str | None:
        return self.readmes.get(f"{owner}/{repo}")

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> str | None:
        return self.contents.get((owner, repo, path, ref))

    async def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        key = f"{owner}/{repo}"
        if key in self.errors:
            raise self.errors[key]
        return self.languages.get(key, {})


def _word_count(text: str) -> int:
    return len(text.split())


@pytest.fixture
def fake_source() -> FakeIssueSource:
    """Empty in-memory issue source."""
    return FakeIssueSource()


@pytest.fixture
def word_count() -> Callable[[str], int]:
    """Whitespace tokenizer used instead of tiktoken."""
    return _word_count


@pytest.fixture
def make_comment() -> Callable[..., GitHubComment]:
    """Factory for comments with a given author."""

    def _make(
        comment_id: int | str,
        body: str,
        login: str = "alice",
        user_type: str = "User",
        **kwargs: object,
    ) -> GitHubComment:
        return GitHubComment(
            id=comment_id,
            user=GitHubUser(login=login, type=user_type),
            body=body,
            **kwargs,
        )

    return _make
