"""Standardized CLI option definitions for consistent shorthand mappings.

This module provides centralized option definitions to ensure consistent
shorthand options across all commands and prevent future drift.
"""

import typer

# Target selection
ORG_OPTION = typer.Option(
    None,
    "--org",
    "-o",
    help="GitHub organization name",
    rich_help_panel="Target Selection",
)

REPO_OPTION = typer.Option(
    None,
    "--repo",
    "-r",
    help="GitHub repository name",
    rich_help_panel="Target Selection",
)

ISSUE_NUMBER_OPTION = typer.Option(
    None,
    "--issue-number",
    "-i",
    help="Issue or pull request number",
    rich_help_panel="Target Selection",
)

URL_OPTION = typer.Option(
    None,
    "--url",
    "-u",
    help="Issue or pull request URL (instead of --org/--repo/--issue-number)",
    rich_help_panel="Target Selection",
)

RELATED_OPTION = typer.Option(
    None,
    "--related",
    help="Related issue URL or owner/repo#N to follow (can be used multiple times)",
    rich_help_panel="Target Selection",
)

# AI configuration
MODEL_OPTION = typer.Option(
    None,
    "--model",
    "-m",
    help="AI model the context is sized for (e.g., 'openai:gpt-4o-mini')",
    rich_help_panel="AI Configuration",
)

MAX_COMPLETION_TOKENS_OPTION = typer.Option(
    None,
    "--max-completion-tokens",
    help="Tokens reserved for the answer (defaults to the model's output limit)",
    rich_help_panel="AI Configuration",
)

GROUND_TRUTHS_OPTION = typer.Option(
    True,
    "--ground-truths/--no-ground-truths",
    help="Derive ground truths from repository languages and dependencies",
    rich_help_panel="AI Configuration",
)

# Traversal options
MAX_DEPTH_OPTION = typer.Option(
    None,
    "--max-depth",
    help="Max depth of referenced issues to follow",
    rich_help_panel="Traversal Options",
)

CONCURRENCY_OPTION = typer.Option(
    None,
    "--concurrency",
    help="Concurrent fetches per issue",
    rich_help_panel="Traversal Options",
)

INCLUDE_README_OPTION = typer.Option(
    None,
    "--include-readme/--no-include-readme",
    help="Add the repository README to the root issue",
    rich_help_panel="Traversal Options",
)

INCLUDE_LINKED_CODE_OPTION = typer.Option(
    None,
    "--include-linked-code/--no-include-linked-code",
    help="Fetch code files linked from issues and comments",
    rich_help_panel="Traversal Options",
)

IGNORE_QUOTED_OPTION = typer.Option(
    None,
    "--ignore-quoted/--no-ignore-quoted",
    help="Ignore references inside code blocks and quotes",
    rich_help_panel="Traversal Options",
)

# Authentication options
TOKEN_OPTION = typer.Option(
    None, "--token", "-t", help="GitHub API token (defaults to GITHUB_TOKEN env var)"
)

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
