"""Configuration for context assembly."""

import os
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .context.references import (
    DEFAULT_PLACEHOLDER_MARKER,
    DEFAULT_PLACEHOLDER_NUMBER,
    PlaceholderFilter,
)

ENV_PREFIX = "GH_CONTEXT_"


def validate_model_string(model: str) -> tuple[str, str]:
    """Validate and parse model string format.

    Args:
        model: Model identifier (e.g., 'openai:gpt-4o-mini')

    Returns:
        Tuple of (provider, model_name)

    Raises:
        ValueError: If model string format is invalid
    """
    if ":" not in model:
        raise ValueError(
            f"Invalid model format '{model}'. Expected format: provider:model\n\n"
            f"💡 Examples of valid model formats:\n"
            f"   openai:o4-mini\n"
            f"   openai:gpt-4o-mini\n"
            f"   anthropic:claude-3-5-sonnet-latest"
        )

    parts = model.split(":", 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(
            f"Invalid model format '{model}'. Both provider and model name must be "
            f"non-empty."
        )

    provider = parts[0].lower()
    model_name = parts[1]
    return provider, model_name


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


class ContextSettings(BaseModel):
    """Settings for one context assembly run."""

    model: str = Field("openai:gpt-4o", description="Model the context is built for")
    max_depth: int = Field(
        3, ge=0, description="Max depth of referenced issues to traverse"
    )
    concurrency_limit: int = Field(
        10, ge=1, description="Concurrent fetches per fan-out"
    )
    max_completion_tokens: int | None = Field(
        None, ge=0, description="Tokens reserved for the answer (model default)"
    )
    placeholder_number: str | None = Field(
        DEFAULT_PLACEHOLDER_NUMBER,
        description="Example issue number from template boilerplate to ignore",
    )
    placeholder_marker: str | None = Field(
        DEFAULT_PLACEHOLDER_MARKER,
        description="Boilerplate text that marks the placeholder number",
    )
    ignore_quoted_references: bool = Field(
        False, description="Ignore references inside code blocks and quotes"
    )
    include_readme: bool = Field(
        False, description="Add the repository README to the root issue"
    )
    include_linked_code: bool = Field(
        False, description="Fetch code files linked from bodies and comments"
    )
    linked_code_extensions: list[str] = Field(
        default_factory=lambda: [".py", ".ts", ".json", ".sol"],
        description="File extensions fetched for linked code",
    )
    exclude_bot_comments: bool = Field(
        True, description="Drop comments written by bot accounts"
    )
    bot_name: str = Field("github-context", description="Name used in prompts")

    @field_validator("model")
    @classmethod
    def _check_model(cls, value: str) -> str:
        validate_model_string(value)
        return value

    @field_validator("placeholder_number")
    @classmethod
    def _check_placeholder(cls, value: str | None) -> str | None:
        if value is not None and not value.isdigit():
            raise ValueError(f"placeholder_number must be digits, got '{value}'")
        return value

    @property
    def placeholder(self) -> PlaceholderFilter:
        return PlaceholderFilter(
            number=self.placeholder_number, marker=self.placeholder_marker
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> "ContextSettings":
        """Build settings from GH_CONTEXT_* environment variables.

        Keyword overrides that are not None take precedence over the
        environment.
        """
        values: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            if field.annotation is bool:
                values[name] = _parse_bool(raw)
            elif name == "linked_code_extensions":
                values[name] = [ext.strip() for ext in raw.split(",") if ext.strip()]
            else:
                values[name] = raw

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
