"""Token counting and the running token budget for prompt assembly."""

import math
from collections.abc import Callable
from functools import lru_cache

import tiktoken
from pydantic import BaseModel, Field

TokenCounter = Callable[[str], int]

# Characters per token used for quick estimates
CHARS_PER_TOKEN = 3.5

DEFAULT_ENCODING = "cl100k_base"
DEFAULT_MODEL_MAX_TOKENS = 128_000
DEFAULT_MODEL_MAX_OUTPUT = 16_384

# No endpoint reports these, so they are kept by hand
MODEL_TOKEN_LIMITS: dict[str, int] = {
    "o1-mini": 128_000,
    "o1-preview": 128_000,
    "o3-mini": 200_000,
    "o4-mini": 200_000,
    "gpt-4-turbo": 128_000,
    "gpt-4o": 128_000,
    "gpt-4o-mini": 128_000,
    "gpt-4.1": 1_047_576,
    "gpt-4": 8_192,
    "gpt-3.5-turbo-0125": 16_385,
    "gpt-3.5-turbo": 16_385,
}

MODEL_OUTPUT_LIMITS: dict[str, int] = {
    "o1-mini": 65_536,
    "o1-preview": 32_768,
    "o3-mini": 100_000,
    "o4-mini": 100_000,
    "gpt-4-turbo": 4_096,
    "gpt-4o-mini": 16_384,
    "gpt-4o": 16_384,
    "gpt-4.1": 32_768,
    "gpt-4": 8_192,
    "gpt-3.5-turbo-0125": 4_096,
    "gpt-3.5-turbo": 4_096,
}


def _model_name(model: str) -> str:
    """Strip a ``provider:`` prefix from a model string."""
    return model.split(":", 1)[1] if ":" in model else model


def get_model_max_token_limit(model: str) -> int:
    return MODEL_TOKEN_LIMITS.get(_model_name(model), DEFAULT_MODEL_MAX_TOKENS)


def get_model_max_output_limit(model: str) -> int:
    return MODEL_OUTPUT_LIMITS.get(_model_name(model), DEFAULT_MODEL_MAX_OUTPUT)


@lru_cache(maxsize=8)
def get_encoding(model: str | None = None) -> tiktoken.Encoding:
    """Get the tiktoken encoding for a model, falling back to cl100k_base."""
    if model:
        try:
            return tiktoken.encoding_for_model(_model_name(model))
        except KeyError:
            pass
    return tiktoken.get_encoding(DEFAULT_ENCODING)


def count_tokens(text: str) -> int:
    """Count tokens exactly.

    Special-token text such as ``<|endoftext|>`` is encoded as ordinary text
    because diffs and comments can contain it verbatim.
    """
    if not text:
        return 0
    return len(get_encoding().encode(text, disallowed_special=()))


def estimate_tokens(text: str) -> int:
    """Cheap token estimate from character count."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TokenBudget(BaseModel):
    """Running ledger of prompt tokens against a model's context window.

    ``tokens_remaining`` is derived, so it always equals
    ``model_max_token_limit - max_completion_tokens - running_token_count``.
    """

    model_max_token_limit: int = Field(..., ge=0)
    max_completion_tokens: int = Field(..., ge=0)
    running_token_count: int = Field(0, ge=0)

    @property
    def tokens_remaining(self) -> int:
        return (
            self.model_max_token_limit
            - self.max_completion_tokens
            - self.running_token_count
        )

    @classmethod
    def for_model(
        cls, model: str, max_completion_tokens: int | None = None
    ) -> "TokenBudget":
        """Create an empty budget sized for a model."""
        if max_completion_tokens is None:
            max_completion_tokens = get_model_max_output_limit(model)
        return cls(
            model_max_token_limit=get_model_max_token_limit(model),
            max_completion_tokens=max_completion_tokens,
        )

    def fits(self, tokens: int) -> bool:
        return tokens <= self.tokens_remaining

    def consume(self, tokens: int) -> None:
        self.running_token_count += tokens

    def release(self, tokens: int) -> None:
        """Give back tokens for content that was evicted."""
        self.running_token_count = max(0, self.running_token_count - tokens)

    def charge(self, text: str, count: TokenCounter = count_tokens) -> bool:
        """Consume the cost of text if it fits.

        Returns:
            True if the text fit and was charged, False otherwise
        """
        tokens = count(text)
        if not self.fits(tokens):
            return False
        self.consume(tokens)
        return True
