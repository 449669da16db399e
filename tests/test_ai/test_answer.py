"""Tests for question answering."""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from gh_context.ai.answer import (
    answer_question,
    build_system_message,
    find_token_length,
)
from gh_context.config import ContextSettings
from gh_context.context.tokens import TokenBudget


def make_agent(output: str, input_tokens: int = 10, output_tokens: int = 5) -> Mock:
    result = Mock()
    result.output = output
    result.usage.return_value = Mock(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
    )
    agent = Mock()
    agent.run = AsyncMock(return_value=result)
    return agent


class TestBuildSystemMessage:
    """Test build_system_message function."""

    def test_sections_in_order(self) -> None:
        message = build_system_message(
            ["Uses Python"], "helper", ["Issue #1 body"], ["Similar issue"]
        )

        assert message.startswith("You Must obey the following ground truths: ")
        assert json.dumps(["Uses Python"]) in message
        assert "Your name is: helper" in message
        main = message.index("Main Context")
        assert message.index("Issue #1 body") > main
        secondary = message.index("Secondary Context: ")
        assert secondary > message.index("Issue #1 body")
        assert message.rstrip().endswith("Similar issue")

    def test_empty_ground_truths(self) -> None:
        message = build_system_message([], "helper", [])
        assert "[]" in message


def test_find_token_length(word_count) -> None:
    length = find_token_length(
        "why", ["secondary text"], ["main text"], ["truth"], count=word_count
    )
    assert length == word_count("why" + "secondary text" + "main text" + "truth")


class TestAnswerQuestion:
    """Test answer_question function."""

    @pytest.mark.asyncio
    async def test_answer_with_usage(self, word_count) -> None:
        agent = make_agent("Because of the auth rewrite.")
        settings = ContextSettings(model="openai:gpt-4o-mini", bot_name="helper")

        with patch("gh_context.ai.answer.Agent", return_value=agent) as agent_class:
            result = await answer_question(
                "Why does login fail?",
                ["Issue #1 body"],
                settings=settings,
                ground_truths=["Uses Python"],
                count=word_count,
            )

        assert result.answer == "Because of the auth rewrite."
        assert result.ground_truths == ["Uses Python"]
        assert (result.token_usage.input, result.token_usage.output) == (10, 5)
        assert result.token_usage.total == 15

        args, kwargs = agent_class.call_args
        assert args[0] == "openai:gpt-4o-mini"
        assert "Your name is: helper" in kwargs["instructions"]
        assert "Issue #1 body" in kwargs["instructions"]
        assert kwargs["output_type"] is str

        run_args, run_kwargs = agent.run.call_args
        assert run_args[0] == "Why does login fail?"
        assert run_kwargs["model_settings"]["max_tokens"] == 16_384

    @pytest.mark.asyncio
    async def test_completion_limit_from_budget(self, word_count) -> None:
        agent = make_agent("ok")
        budget = TokenBudget(model_max_token_limit=1000, max_completion_tokens=200)

        with patch("gh_context.ai.answer.Agent", return_value=agent):
            await answer_question("q", [], budget=budget, count=word_count)

        _, run_kwargs = agent.run.call_args
        assert run_kwargs["model_settings"]["max_tokens"] == 200

    @pytest.mark.asyncio
    async def test_empty_output(self, word_count) -> None:
        agent = make_agent("", 0, 0)

        with patch("gh_context.ai.answer.Agent", return_value=agent):
            result = await answer_question("q", ["ctx"], count=word_count)

        assert result.answer == ""
        assert result.token_usage.total == 0

    @pytest.mark.asyncio
    async def test_model_errors_propagate(self, word_count) -> None:
        agent = Mock()
        agent.run = AsyncMock(side_effect=RuntimeError("provider down"))

        with patch("gh_context.ai.answer.Agent", return_value=agent):
            with pytest.raises(RuntimeError, match="provider down"):
                await answer_question("q", ["ctx"], count=word_count)
