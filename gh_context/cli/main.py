"""Main CLI entry point."""

import asyncio
import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ..ai.answer import AnswerResult, answer_question
from ..ai.ground_truths import collect_ground_truths
from ..config import ContextSettings
from ..context.builder import ContextResult, build_context
from ..context.identifiers import IssueKey
from ..context.references import Reference, make_seed, parse_issue
from ..errors import NoContextAvailableError
from ..github_client.client import GitHubClient
from ..github_client.source import GitHubIssueSource, IssueSource
from .options import (
    CONCURRENCY_OPTION,
    GROUND_TRUTHS_OPTION,
    IGNORE_QUOTED_OPTION,
    INCLUDE_LINKED_CODE_OPTION,
    INCLUDE_README_OPTION,
    ISSUE_NUMBER_OPTION,
    MAX_COMPLETION_TOKENS_OPTION,
    MAX_DEPTH_OPTION,
    MODEL_OPTION,
    ORG_OPTION,
    RELATED_OPTION,
    REPO_OPTION,
    TOKEN_OPTION,
    URL_OPTION,
    VERBOSE_OPTION,
)

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="github-context",
    help="Assemble token-budgeted context from linked GitHub issues and PRs",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose)],
        force=True,
    )


def _resolve_target(
    org: str | None, repo: str | None, issue_number: int | None, url: str | None
) -> str:
    """Turn the target options into a canonical owner/repo/number key."""
    if url:
        issue = parse_issue(url)
        if issue is None:
            raise typer.BadParameter(
                f"Not a GitHub issue or pull request: {url}", param_hint="--url"
            )
        return issue.key

    if not org or not repo or issue_number is None:
        raise typer.BadParameter(
            "Provide --url, or all of --org, --repo and --issue-number"
        )
    issue = IssueKey.try_parse(f"{org}/{repo}/{issue_number}")
    if issue is None:
        raise typer.BadParameter(f"Invalid target: {org}/{repo}#{issue_number}")
    return issue.key


def _parse_related(related: list[str] | None) -> list[Reference]:
    seeds = []
    for raw in related or []:
        seed = make_seed(raw)
        if seed is None:
            err_console.print(
                f"[yellow]Ignoring invalid related issue: {escape(raw)}[/yellow]"
            )
            continue
        seeds.append(seed)
    return seeds


def _create_source(token: str | None) -> IssueSource:
    try:
        return GitHubIssueSource(GitHubClient(token))
    except ValueError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _load_settings(**overrides: object) -> ContextSettings:
    try:
        return ContextSettings.from_env(**overrides)
    except ValueError as e:
        err_console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _summary(result: ContextResult) -> str:
    budget = result.budget
    summary = (
        f"{result.node_count} issues/PRs, {budget.running_token_count} tokens used, "
        f"{budget.tokens_remaining} remaining"
    )
    if result.failed:
        summary += f", {len(result.failed)} could not be fetched"
    return summary


async def _ask(
    source: IssueSource,
    root_key: str,
    question: str,
    settings: ContextSettings,
    seeds: list[Reference],
    use_ground_truths: bool,
) -> tuple[ContextResult, AnswerResult]:
    result = await build_context(source, root_key, settings, seeds)
    ground_truths: list[str] = []
    if use_ground_truths:
        ground_truths = await collect_ground_truths(
            source, result.root.owner, result.root.repo
        )
    answer = await answer_question(
        question,
        result.blocks,
        settings=settings,
        ground_truths=ground_truths,
        budget=result.budget,
    )
    return result, answer


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def context(
    org: str | None = ORG_OPTION,
    repo: str | None = REPO_OPTION,
    issue_number: int | None = ISSUE_NUMBER_OPTION,
    url: str | None = URL_OPTION,
    related: list[str] | None = RELATED_OPTION,
    model: str | None = MODEL_OPTION,
    max_completion_tokens: int | None = MAX_COMPLETION_TOKENS_OPTION,
    max_depth: int | None = MAX_DEPTH_OPTION,
    concurrency: int | None = CONCURRENCY_OPTION,
    include_readme: bool | None = INCLUDE_README_OPTION,
    include_linked_code: bool | None = INCLUDE_LINKED_CODE_OPTION,
    ignore_quoted: bool | None = IGNORE_QUOTED_OPTION,
    token: str | None = TOKEN_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Print the issue tree assembled for an issue or pull request."""
    _configure_logging(verbose)
    root_key = _resolve_target(org, repo, issue_number, url)
    settings = _load_settings(
        model=model,
        max_completion_tokens=max_completion_tokens,
        max_depth=max_depth,
        concurrency_limit=concurrency,
        include_readme=include_readme,
        include_linked_code=include_linked_code,
        ignore_quoted_references=ignore_quoted,
    )
    seeds = _parse_related(related)
    source = _create_source(token)

    try:
        result = asyncio.run(build_context(source, root_key, settings, seeds))
    except NoContextAvailableError as e:
        err_console.print(f"[red]Sorry, no context is available for {root_key}.[/red]")
        raise typer.Exit(1) from e

    console.print(result.text, markup=False, highlight=False, soft_wrap=True)
    err_console.print(f"[dim]{_summary(result)}[/dim]")


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def ask(
    question: str = typer.Argument(..., help="Question to answer"),
    org: str | None = ORG_OPTION,
    repo: str | None = REPO_OPTION,
    issue_number: int | None = ISSUE_NUMBER_OPTION,
    url: str | None = URL_OPTION,
    related: list[str] | None = RELATED_OPTION,
    model: str | None = MODEL_OPTION,
    max_completion_tokens: int | None = MAX_COMPLETION_TOKENS_OPTION,
    ground_truths: bool = GROUND_TRUTHS_OPTION,
    max_depth: int | None = MAX_DEPTH_OPTION,
    concurrency: int | None = CONCURRENCY_OPTION,
    include_readme: bool | None = INCLUDE_README_OPTION,
    include_linked_code: bool | None = INCLUDE_LINKED_CODE_OPTION,
    ignore_quoted: bool | None = IGNORE_QUOTED_OPTION,
    token: str | None = TOKEN_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Answer a question using the context of an issue or pull request."""
    _configure_logging(verbose)
    root_key = _resolve_target(org, repo, issue_number, url)
    settings = _load_settings(
        model=model,
        max_completion_tokens=max_completion_tokens,
        max_depth=max_depth,
        concurrency_limit=concurrency,
        include_readme=include_readme,
        include_linked_code=include_linked_code,
        ignore_quoted_references=ignore_quoted,
    )
    seeds = _parse_related(related)
    source = _create_source(token)

    try:
        result, answer = asyncio.run(
            _ask(source, root_key, question, settings, seeds, ground_truths)
        )
    except NoContextAvailableError as e:
        err_console.print(f"[red]Sorry, no context is available for {root_key}.[/red]")
        raise typer.Exit(1) from e
    except Exception as e:
        err_console.print(f"[red]Error generating answer: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    if not answer.answer:
        err_console.print("[yellow]The model returned no answer.[/yellow]")
        raise typer.Exit(1)

    console.print(answer.answer, markup=False, highlight=False, soft_wrap=True)
    usage = answer.token_usage
    err_console.print(
        f"[dim]{_summary(result)}; model usage: {usage.input} in, "
        f"{usage.output} out, {usage.total} total[/dim]"
    )


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def version() -> None:
    """Show version information."""
    from gh_context import __version__

    console.print(f"GitHub Issue Context v{__version__}")


if __name__ == "__main__":
    app()
