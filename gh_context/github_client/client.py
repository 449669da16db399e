"""GitHub API client using PyGitHub."""

import logging
import os
import time

import httpx
from github import Auth, Github
from github.ContentFile import ContentFile
from github.File import File
from github.GithubException import RateLimitExceededException, UnknownObjectException
from github.Issue import Issue
from github.IssueComment import IssueComment
from github.NamedUser import NamedUser
from github.PullRequestComment import PullRequestComment
from github.Repository import Repository
from rich.console import Console

from .models import ChangedFile, GitHubComment, GitHubUser, IssueRecord

console = Console(stderr=True)
logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_GRAPHQL_URL = f"{GITHUB_API_URL}/graphql"
USER_AGENT = "github-issue-context/0.1.0"

CLOSING_ISSUES_QUERY = """
query($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $number) {
      closingIssuesReferences(first: 100) {
        nodes {
          number
          repository {
            name
            owner {
              login
            }
          }
        }
      }
    }
  }
}
"""


class GitHubClient:
    """GitHub API client with rate limiting and authentication."""

    def __init__(self, token: str | None = None, timeout: float = 30.0):
        """Initialize GitHub client with authentication.

        Args:
            token: GitHub personal access token. If None, reads from
                GITHUB_TOKEN env var.
            timeout: Timeout in seconds for raw diff downloads
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GitHub token is required. Set GITHUB_TOKEN environment variable."
            )

        self.github = Github(auth=Auth.Token(self.token))
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "User-Agent": USER_AGENT,
        }

    def _check_rate_limit(self) -> None:
        """Check rate limit and sleep if necessary."""
        try:
            rate_limit = self.github.get_rate_limit()
            core = getattr(rate_limit, "resources", rate_limit).core
            remaining = core.remaining

            if remaining < 10:
                sleep_time = core.reset.timestamp() - time.time() + 1
                console.print(
                    f"Rate limit low ({remaining} requests remaining), "
                    f"sleeping for {sleep_time:.1f} seconds..."
                )
                time.sleep(max(sleep_time, 0))

        except (AttributeError, TypeError) as e:
            logger.debug(f"Rate limit check failed: {e}")

    def _convert_user(self, github_user: NamedUser | None) -> GitHubUser | None:
        """Convert PyGitHub user to our model."""
        if github_user is None:
            return None
        return GitHubUser(
            login=github_user.login,
            id=github_user.id,
            type=github_user.type or "User",
        )

    def _convert_comment(self, github_comment: IssueComment) -> GitHubComment:
        """Convert PyGitHub issue comment to our model."""
        return GitHubComment(
            id=github_comment.id,
            user=self._convert_user(github_comment.user),
            body=github_comment.body or "",
            created_at=github_comment.created_at,
        )

    def _convert_review_comment(
        self, github_comment: PullRequestComment
    ) -> GitHubComment:
        """Convert PyGitHub pull request review comment to our model."""
        return GitHubComment(
            id=github_comment.id,
            user=self._convert_user(github_comment.user),
            body=github_comment.body or "",
            created_at=github_comment.created_at,
            comment_type="pull_request_review_comment",
            path=github_comment.path,
            diff_hunk=github_comment.diff_hunk,
        )

    def _convert_issue(self, github_issue: Issue) -> IssueRecord:
        """Convert PyGitHub issue to our model."""
        return IssueRecord(
            number=github_issue.number,
            title=github_issue.title or "",
            body=github_issue.body,
            state=github_issue.state,
            is_pull_request=github_issue.pull_request is not None,
            html_url=github_issue.html_url,
            user=self._convert_user(github_issue.user),
        )

    def _convert_file(self, github_file: File) -> ChangedFile:
        """Convert PyGitHub pull request file to our model."""
        return ChangedFile(
            filename=github_file.filename,
            additions=github_file.additions,
            deletions=github_file.deletions,
            status=github_file.status,
        )

    def get_repository(self, org: str, repo: str) -> Repository:
        """Get repository object."""
        try:
            return self.github.get_repo(f"{org}/{repo}")
        except UnknownObjectException:
            raise ValueError(f"Repository {org}/{repo} not found")

    def get_issue(self, org: str, repo: str, issue_number: int) -> IssueRecord:
        """Get a specific issue or pull request without its comments.

        Raises:
            ValueError: If repository or issue not found
        """
        self._check_rate_limit()

        try:
            repository = self.get_repository(org, repo)
            return self._convert_issue(repository.get_issue(issue_number))
        except UnknownObjectException:
            raise ValueError(f"Issue #{issue_number} not found in {org}/{repo}")
        except RateLimitExceededException:
            console.print("Rate limit exceeded, waiting...")
            time.sleep(60)
            return self.get_issue(org, repo, issue_number)

    def list_comments(
        self, org: str, repo: str, issue_number: int, is_pull_request: bool = False
    ) -> list[GitHubComment]:
        """List comments on an issue or pull request.

        For pull requests, review comments on the diff follow the regular
        conversation comments.
        """
        repository = self.get_repository(org, repo)
        github_issue = repository.get_issue(issue_number)
        comments = [self._convert_comment(c) for c in github_issue.get_comments()]

        if is_pull_request:
            pull = repository.get_pull(issue_number)
            comments.extend(
                self._convert_review_comment(c) for c in pull.get_review_comments()
            )

        return comments

    def get_pull_request_diff(self, org: str, repo: str, pull_number: int) -> str:
        """Download the unified diff of a pull request.

        PyGitHub has no accessor for the diff media type, so the raw endpoint
        is requested directly.
        """
        url = f"{GITHUB_API_URL}/repos/{org}/{repo}/pulls/{pull_number}"
        headers = {**self.headers, "Accept": "application/vnd.github.diff"}
        response = httpx.get(
            url, headers=headers, timeout=self.timeout, follow_redirects=True
        )
        response.raise_for_status()
        return response.text

    def list_closing_issues(self, org: str, repo: str, pull_number: int) -> list[str]:
        """List issues a pull request is linked to close, as owner/repo/number.

        These are the issues shown in the pull request's "Development"
        sidebar, which are only exposed through the GraphQL API.

        Raises:
            ValueError: If the query returns errors
        """
        response = httpx.post(
            GITHUB_GRAPHQL_URL,
            json={
                "query": CLOSING_ISSUES_QUERY,
                "variables": {"owner": org, "repo": repo, "number": pull_number},
            },
            headers=self.headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if payload.get("errors"):
            messages = "; ".join(e.get("message", "") for e in payload["errors"])
            raise ValueError(
                f"GraphQL query failed for {org}/{repo}#{pull_number}: {messages}"
            )

        pull = ((payload.get("data") or {}).get("repository") or {}).get("pullRequest")
        if not pull:
            return []
        return [
            f"{node['repository']['owner']['login']}/"
            f"{node['repository']['name']}/{node['number']}"
            for node in pull["closingIssuesReferences"]["nodes"]
        ]

    def list_changed_files(
        self, org: str, repo: str, pull_number: int
    ) -> list[ChangedFile]:
        """List files changed by a pull request."""
        repository = self.get_repository(org, repo)
        pull = repository.get_pull(pull_number)
        return [self._convert_file(f) for f in pull.get_files()]

    def get_readme(self, org: str, repo: str) -> str | None:
        """Get the decoded README of a repository, or None if it has none."""
        repository = self.get_repository(org, repo)
        try:
            readme = repository.get_readme()
        except UnknownObjectException:
            return None
        return readme.decoded_content.decode("utf-8", errors="replace")

    def get_file_content(
        self, org: str, repo: str, path: str, ref: str | None = None
    ) -> str | None:
        """Get the decoded content of a file at an optional ref.

        Returns:
            File content, or None if the path is missing or is a directory
        """
        repository = self.get_repository(org, repo)
        try:
            if ref:
                content = repository.get_contents(path, ref=ref)
            else:
                content = repository.get_contents(path)
        except UnknownObjectException:
            return None

        if not isinstance(content, ContentFile):
            return None
        return content.decoded_content.decode("utf-8", errors="replace")

    def get_languages(self, org: str, repo: str) -> dict[str, int]:
        """Get bytes of code per language for a repository."""
        return self.get_repository(org, repo).get_languages()
