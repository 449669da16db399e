"""Answer a question about an issue using its assembled context."""

import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field
from pydantic_ai import Agent

from ..config import ContextSettings
from ..context.tokens import TokenBudget, TokenCounter, count_tokens
from .prompts import (
    ANSWER_INSTRUCTIONS_PROMPT,
    BOT_NAME_TEMPLATE,
    GROUND_TRUTHS_HEADER,
    MAIN_CONTEXT_HEADER,
    SECONDARY_CONTEXT_HEADER,
)

logger = logging.getLogger(__name__)


class TokenUsage(BaseModel):
    """Token usage reported by the model provider."""

    input: int = Field(0, description="Prompt tokens")
    output: int = Field(0, description="Completion tokens")
    total: int = Field(0, description="Prompt plus completion tokens")


class AnswerResult(BaseModel):
    """Model answer with the ground truths it was given."""

    answer: str = Field("", description="Answer text, empty if none was produced")
    ground_truths: list[str] = Field(default_factory=list)
    token_usage: TokenUsage = Field(default_factory=TokenUsage)


def build_system_message(
    ground_truths: Sequence[str],
    bot_name: str,
    local_context: Sequence[str],
    additional_context: Sequence[str] = (),
) -> str:
    """Assemble the system message sent with every question.

    Main context is the rendered issue tree; secondary context is anything
    else the caller found relevant, such as similar issues.
    """
    return "\n".join(
        [
            GROUND_TRUTHS_HEADER,
            json.dumps(list(ground_truths)) + "\n",
            ANSWER_INSTRUCTIONS_PROMPT.strip(),
            BOT_NAME_TEMPLATE.format(bot_name=bot_name),
            "\n",
            MAIN_CONTEXT_HEADER,
            "\n".join(local_context),
            SECONDARY_CONTEXT_HEADER,
            "\n".join(additional_context),
        ]
    )


def find_token_length(
    prompt: str,
    additional_context: Sequence[str] = (),
    local_context: Sequence[str] = (),
    ground_truths: Sequence[str] = (),
    count: TokenCounter = count_tokens,
) -> int:
    """Count the tokens of a question plus everything sent along with it."""
    return count(
        prompt
        + "\n".join(additional_context)
        + "\n".join(local_context)
        + "\n".join(ground_truths)
    )


def _usage(result: Any) -> TokenUsage:
    try:
        usage = result.usage()
    except AttributeError:
        return TokenUsage()
    input_tokens = getattr(usage, "input_tokens", 0) or 0
    output_tokens = getattr(usage, "output_tokens", 0) or 0
    return TokenUsage(
        input=input_tokens,
        output=output_tokens,
        total=getattr(usage, "total_tokens", None) or input_tokens + output_tokens,
    )


async def answer_question(
    question: str,
    local_context: Sequence[str],
    settings: ContextSettings | None = None,
    ground_truths: Sequence[str] = (),
    additional_context: Sequence[str] = (),
    budget: TokenBudget | None = None,
    count: TokenCounter = count_tokens,
) -> AnswerResult:
    """Ask the configured model a question about an issue.

    Args:
        question: The user's question
        local_context: Rendered issue tree blocks
        settings: Model and bot name settings
        ground_truths: Repository ground truths
        additional_context: Secondary context blocks
        budget: Budget the context was built with; its
            ``max_completion_tokens`` caps the answer length
        count: Token counter used for the prompt size log

    Returns:
        The answer; empty when the model returned nothing

    Raises:
        Exception: If the model call fails
    """
    settings = settings or ContextSettings()
    if budget is None:
        budget = TokenBudget.for_model(settings.model, settings.max_completion_tokens)

    num_tokens = find_token_length(
        question, additional_context, local_context, ground_truths, count
    )
    logger.info(f"Number of tokens: {num_tokens}")

    system_message = build_system_message(
        ground_truths, settings.bot_name, local_context, additional_context
    )
    logger.debug(f"System message: {system_message}")
    logger.debug(f"Query: {question}")

    agent = Agent(settings.model, instructions=system_message, output_type=str)
    result = await agent.run(
        question,
        model_settings={
            "temperature": 0.2,
            "top_p": 0.5,
            "max_tokens": budget.max_completion_tokens,
        },
    )

    answer = result.output or ""
    if not answer:
        logger.debug(f"No completion found for query: {question}")
    return AnswerResult(
        answer=answer,
        ground_truths=list(ground_truths),
        token_usage=_usage(result),
    )
