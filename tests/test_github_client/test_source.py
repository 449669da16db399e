"""Tests for the async issue source adapter."""

from unittest.mock import Mock

import pytest

from gh_context.github_client.models import IssueRecord
from gh_context.github_client.source import GitHubIssueSource


class TestGitHubIssueSource:
    """Test GitHubIssueSource delegation."""

    @pytest.mark.asyncio
    async def test_get_issue(self) -> None:
        issue = IssueRecord(number=1, html_url="https://github.com/o/r/issues/1")
        client = Mock()
        client.get_issue.return_value = issue

        result = await GitHubIssueSource(client).get_issue("o", "r", 1)

        assert result == issue
        client.get_issue.assert_called_once_with("o", "r", 1)

    @pytest.mark.asyncio
    async def test_list_comments_passes_pull_request_flag(self) -> None:
        client = Mock()
        client.list_comments.return_value = []

        await GitHubIssueSource(client).list_comments("o", "r", 2, True)

        client.list_comments.assert_called_once_with("o", "r", 2, True)

    @pytest.mark.asyncio
    async def test_get_diff(self) -> None:
        client = Mock()
        client.get_pull_request_diff.return_value = "diff"

        assert await GitHubIssueSource(client).get_diff("o", "r", 3) == "diff"
        client.get_pull_request_diff.assert_called_once_with("o", "r", 3)

    @pytest.mark.asyncio
    async def test_list_closing_issues(self) -> None:
        client = Mock()
        client.list_closing_issues.return_value = ["o/r/9"]

        keys = await GitHubIssueSource(client).list_closing_issues("o", "r", 4)

        assert keys == ["o/r/9"]
        client.list_closing_issues.assert_called_once_with("o", "r", 4)

    @pytest.mark.asyncio
    async def test_repository_files(self) -> None:
        client = Mock()
        client.get_readme.return_value = "# Readme"
        client.get_file_content.return_value = "code"
        client.get_languages.return_value = {"Python": 10}
        source = GitHubIssueSource(client)

        assert await source.get_readme("o", "r") == "# Readme"
        assert await source.get_file_content("o", "r", "a.py", "main") == "code"
        assert await source.get_languages("o", "r") == {"Python": 10}
        client.get_file_content.assert_called_once_with("o", "r", "a.py", "main")

    @pytest.mark.asyncio
    async def test_errors_propagate(self) -> None:
        client = Mock()
        client.list_changed_files.side_effect = ValueError("Repository o/r not found")

        with pytest.raises(ValueError, match="not found"):
            await GitHubIssueSource(client).list_changed_files("o", "r", 4)
