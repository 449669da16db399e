"""Pydantic models for GitHub data structures.

These models map to GitHub's REST API v3 response structures, trimmed to the
fields needed for context assembly.
API Reference: https://docs.github.com/en/rest/issues
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

CommentType = Literal["issue_comment", "pull_request_review_comment", "synthetic"]


class GitHubUser(BaseModel):
    """GitHub user model representing a user account.

    Maps to GitHub REST API User object.
    API Reference: https://docs.github.com/en/rest/users/users
    """

    login: str = Field(..., description="GitHub username/login (string)")
    id: int | None = Field(None, description="Unique user identifier (integer)")
    type: str = Field("User", description="Account type: 'User', 'Bot', ...")

    @property
    def is_bot(self) -> bool:
        return self.type == "Bot" or self.login.endswith("[bot]")


class GitHubComment(BaseModel):
    """GitHub comment model representing issue/PR comments.

    Maps to GitHub REST API Issue Comment and Pull Request Review Comment
    objects. Synthetic comments (README sections, linked code) are added by
    the context builder and have no GitHub counterpart.
    API Reference: https://docs.github.com/en/rest/issues/comments
    """

    id: int | str = Field(..., description="Unique comment identifier")
    user: GitHubUser | None = Field(None, description="Comment author details")
    body: str = Field("", description="Text content of the comment (string)")
    created_at: datetime | None = Field(
        None, description="Timestamp of comment creation (ISO 8601)"
    )
    comment_type: CommentType = Field(
        "issue_comment", description="Issue comment, review comment or synthetic"
    )
    path: str | None = Field(
        None, description="File the review comment is attached to"
    )
    diff_hunk: str | None = Field(
        None, description="Diff hunk the review comment refers to"
    )

    @property
    def author(self) -> str:
        return self.user.login if self.user else "unknown"


class IssueRecord(BaseModel):
    """GitHub issue or pull request without its comments.

    Maps to GitHub REST API Issue object; pull requests are issues with a
    ``pull_request`` member.
    API Reference: https://docs.github.com/en/rest/issues/issues
    """

    number: int = Field(..., description="Issue number within the repository")
    title: str = Field("", description="Short description/title of the issue")
    body: str | None = Field(
        None, description="Detailed description of the issue in markdown"
    )
    state: str = Field("open", description="Current state: 'open', 'closed'")
    is_pull_request: bool = Field(
        False, description="Whether the issue is a pull request"
    )
    html_url: str = Field(..., description="Browser URL of the issue")
    user: GitHubUser | None = Field(None, description="Creator/author of the issue")


class ChangedFile(BaseModel):
    """File changed by a pull request.

    Maps to GitHub REST API Pull Request File object.
    API Reference: https://docs.github.com/en/rest/pulls/pulls#list-pull-requests-files
    """

    filename: str = Field(..., description="Path of the changed file")
    additions: int = Field(0, description="Number of added lines")
    deletions: int = Field(0, description="Number of deleted lines")
    status: str = Field(
        "modified", description="added, removed, modified, renamed, ..."
    )
