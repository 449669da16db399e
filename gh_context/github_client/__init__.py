"""GitHub client package for API interaction."""

from .client import GitHubClient
from .models import ChangedFile, GitHubComment, GitHubUser, IssueRecord
from .source import GitHubIssueSource, IssueSource

__all__ = [
    "GitHubClient",
    "GitHubIssueSource",
    "IssueSource",
    "GitHubUser",
    "GitHubComment",
    "IssueRecord",
    "ChangedFile",
]
