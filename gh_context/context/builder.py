"""End-to-end context assembly for one question."""

import logging
from collections.abc import Iterable

from pydantic import BaseModel, Field

from ..config import ContextSettings
from ..errors import NoContextAvailableError
from ..github_client.source import IssueSource
from .graph import GraphFetcher, GraphNode
from .references import Reference, parse_issue
from .renderer import ContextRenderer
from .tokens import TokenBudget, TokenCounter, count_tokens

logger = logging.getLogger(__name__)


class ContextResult(BaseModel):
    """Rendered context plus the budget state it left behind."""

    root_key: str = Field(..., description="Key of the root issue")
    blocks: list[str] = Field(..., description="Ordered text blocks")
    budget: TokenBudget = Field(..., description="Budget after rendering")
    root: GraphNode = Field(..., description="Resolved issue graph")
    node_count: int = Field(..., description="Nodes in the rendered tree")
    failed: list[str] = Field(
        default_factory=list, description="Keys that could not be fetched"
    )

    @property
    def text(self) -> str:
        return "\n\n".join(self.blocks)


async def build_context(
    source: IssueSource,
    root: str,
    settings: ContextSettings | None = None,
    seeds: Iterable[Reference] = (),
    budget: TokenBudget | None = None,
    count: TokenCounter = count_tokens,
) -> ContextResult:
    """Fetch the issue graph around ``root`` and render it within budget.

    Args:
        source: Issue source to fetch from
        root: Root issue as an ``owner/repo/number`` key or issue URL
        settings: Traversal and budget settings
        seeds: Additional references, e.g. similarity search results
        budget: Existing budget to charge; a fresh one sized for
            ``settings.model`` is created when omitted
        count: Exact token counter

    Returns:
        The rendered context

    Raises:
        NoContextAvailableError: If the root issue cannot be resolved
    """
    settings = settings or ContextSettings()
    root_issue = parse_issue(root)
    if root_issue is None:
        raise NoContextAvailableError(root)
    root_key = root_issue.key

    if budget is None:
        budget = TokenBudget.for_model(settings.model, settings.max_completion_tokens)

    fetcher = GraphFetcher(
        source,
        budget,
        max_depth=settings.max_depth,
        concurrency_limit=settings.concurrency_limit,
        placeholder=settings.placeholder,
        skip_quoted=settings.ignore_quoted_references,
        exclude_bot_comments=settings.exclude_bot_comments,
        include_readme=settings.include_readme,
        linked_code_extensions=(
            settings.linked_code_extensions if settings.include_linked_code else None
        ),
        count=count,
    )
    root_node = await fetcher.resolve(root_key, seeds)
    if root_node is None:
        raise NoContextAvailableError(root_key)

    blocks = ContextRenderer(count).render(root_node, budget)
    node_count = sum(1 for _ in root_node.walk())
    logger.info(
        f"Built context for {root_key}: {node_count} nodes, "
        f"{budget.running_token_count} tokens used"
    )
    return ContextResult(
        root_key=root_key,
        blocks=blocks,
        budget=budget,
        root=root_node,
        node_count=node_count,
        failed=sorted(fetcher.state.failed),
    )
