"""Test main CLI functionality."""

from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from gh_context.ai.answer import AnswerResult, TokenUsage
from gh_context.cli.main import app
from gh_context.context.builder import ContextResult
from gh_context.context.graph import GraphNode
from gh_context.context.tokens import TokenBudget
from gh_context.errors import NoContextAvailableError

runner = CliRunner()


@pytest.fixture
def context_result() -> ContextResult:
    return ContextResult(
        root_key="org/repo/1",
        blocks=[
            "Issue Tree Structure:",
            "Issue #1 (https://github.com/org/repo/issues/1)\nBody:\n    [login] fails",
        ],
        budget=TokenBudget(
            model_max_token_limit=1000,
            max_completion_tokens=100,
            running_token_count=50,
        ),
        root=GraphNode(key="org/repo/1"),
        node_count=1,
    )


def test_version_command() -> None:
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "GitHub Issue Context v" in result.stdout


class TestContextCommand:
    """Test the context command."""

    def test_requires_target(self) -> None:
        result = runner.invoke(app, ["context", "--org", "org"])
        assert result.exit_code == 2

    def test_rejects_invalid_url(self) -> None:
        result = runner.invoke(app, ["context", "--url", "https://example.com/x"])
        assert result.exit_code == 2

    @patch("gh_context.cli.main.build_context", new_callable=AsyncMock)
    @patch("gh_context.cli.main.GitHubClient")
    def test_prints_context(
        self, mock_client_class, mock_build, context_result
    ) -> None:
        mock_build.return_value = context_result

        result = runner.invoke(
            app,
            [
                "context",
                "--url",
                "https://github.com/org/repo/issues/1",
                "--related",
                "other/lib#5",
                "--max-depth",
                "2",
                "--token",
                "test_token",
            ],
        )

        assert result.exit_code == 0
        assert "Issue #1 (https://github.com/org/repo/issues/1)" in result.stdout
        assert "[login] fails" in result.stdout
        mock_client_class.assert_called_once_with("test_token")

        args = mock_build.await_args.args
        assert args[1] == "org/repo/1"
        assert args[2].max_depth == 2
        assert [seed.key for seed in args[3]] == ["other/lib/5"]

    @patch("gh_context.cli.main.build_context", new_callable=AsyncMock)
    @patch("gh_context.cli.main.GitHubClient")
    def test_org_repo_issue_number(
        self, mock_client_class, mock_build, context_result
    ) -> None:
        mock_build.return_value = context_result

        result = runner.invoke(
            app, ["context", "-o", "org", "-r", "repo", "-i", "1"]
        )

        assert result.exit_code == 0
        assert mock_build.await_args.args[1] == "org/repo/1"

    @patch("gh_context.cli.main.build_context", new_callable=AsyncMock)
    @patch("gh_context.cli.main.GitHubClient")
    def test_no_context_available(self, mock_client_class, mock_build) -> None:
        mock_build.side_effect = NoContextAvailableError("org/repo/1")

        result = runner.invoke(app, ["context", "-o", "org", "-r", "repo", "-i", "1"])

        assert result.exit_code == 1
        assert "Sorry, no context is available for org/repo/1" in result.output

    @patch("gh_context.cli.main.GitHubClient")
    def test_missing_token(self, mock_client_class) -> None:
        mock_client_class.side_effect = ValueError("GitHub token is required.")

        result = runner.invoke(app, ["context", "-o", "org", "-r", "repo", "-i", "1"])

        assert result.exit_code == 1
        assert "GitHub token is required" in result.output

    def test_invalid_model(self) -> None:
        result = runner.invoke(
            app, ["context", "-o", "org", "-r", "repo", "-i", "1", "-m", "gpt-4o"]
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestAskCommand:
    """Test the ask command."""

    @patch("gh_context.cli.main.answer_question", new_callable=AsyncMock)
    @patch("gh_context.cli.main.collect_ground_truths", new_callable=AsyncMock)
    @patch("gh_context.cli.main.build_context", new_callable=AsyncMock)
    @patch("gh_context.cli.main.GitHubClient")
    def test_answers_question(
        self,
        mock_client_class,
        mock_build,
        mock_truths,
        mock_answer,
        context_result,
    ) -> None:
        mock_build.return_value = context_result
        mock_truths.return_value = ["Uses Python"]
        mock_answer.return_value = AnswerResult(
            answer="Because of the auth rewrite.",
            ground_truths=["Uses Python"],
            token_usage=TokenUsage(input=10, output=5, total=15),
        )

        result = runner.invoke(
            app, ["ask", "Why does login fail?", "-o", "org", "-r", "repo", "-i", "1"]
        )

        assert result.exit_code == 0
        assert "Because of the auth rewrite." in result.stdout
        mock_truths.assert_awaited_once()
        args, kwargs = mock_answer.await_args
        assert args[0] == "Why does login fail?"
        assert args[1] == context_result.blocks
        assert kwargs["ground_truths"] == ["Uses Python"]
        assert kwargs["budget"] is context_result.budget

    @patch("gh_context.cli.main.answer_question", new_callable=AsyncMock)
    @patch("gh_context.cli.main.collect_ground_truths", new_callable=AsyncMock)
    @patch("gh_context.cli.main.build_context", new_callable=AsyncMock)
    @patch("gh_context.cli.main.GitHubClient")
    def test_without_ground_truths(
        self,
        mock_client_class,
        mock_build,
        mock_truths,
        mock_answer,
        context_result,
    ) -> None:
        mock_build.return_value = context_result
        mock_answer.return_value = AnswerResult(answer="ok")

        result = runner.invoke(
            app,
            [
                "ask",
                "q",
                "--url",
                "https://github.com/org/repo/issues/1",
                "--no-ground-truths",
            ],
        )

        assert result.exit_code == 0
        mock_truths.assert_not_awaited()
        assert mock_answer.await_args.kwargs["ground_truths"] == []

    @patch("gh_context.cli.main.answer_question", new_callable=AsyncMock)
    @patch("gh_context.cli.main.build_context", new_callable=AsyncMock)
    @patch("gh_context.cli.main.GitHubClient")
    def test_empty_answer(
        self, mock_client_class, mock_build, mock_answer, context_result
    ) -> None:
        mock_build.return_value = context_result
        mock_answer.return_value = AnswerResult(answer="")

        result = runner.invoke(
            app,
            ["ask", "q", "--url", "org/repo#1", "--no-ground-truths"],
        )

        assert result.exit_code == 1
        assert "returned no answer" in result.output

    @patch("gh_context.cli.main.answer_question", new_callable=AsyncMock)
    @patch("gh_context.cli.main.build_context", new_callable=AsyncMock)
    @patch("gh_context.cli.main.GitHubClient")
    def test_model_error(
        self, mock_client_class, mock_build, mock_answer, context_result
    ) -> None:
        mock_build.return_value = context_result
        mock_answer.side_effect = RuntimeError("provider down")

        result = runner.invoke(
            app,
            ["ask", "q", "--url", "org/repo#1", "--no-ground-truths"],
        )

        assert result.exit_code == 1
        assert "provider down" in result.output
