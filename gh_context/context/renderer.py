"""Serialize an issue graph into prompt text.

Output looks like::

    Issue Tree Structure:

    Issue #12 (https://github.com/org/repo/issues/12)
    Body:
        The login page is blank.
    Comments: 1
    └── issuecomment-99: alice: Fixed in #15

    └── PR #15 (https://github.com/org/repo/pull/15)
        Body:
            Resolves #12
        Diff:
            diff --git a/app.py b/app.py
            ...
"""

import logging

from ..github_client.models import GitHubComment
from .graph import GraphNode
from .tokens import TokenBudget, TokenCounter, count_tokens

logger = logging.getLogger(__name__)

TREE_HEADER = "Issue Tree Structure:"
BUDGET_EXCEEDED_MESSAGE = (
    "Issue tree omitted: it needs {needed} tokens but only {remaining} "
    "remain in the token budget."
)

INDENT = "    "
BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "


def unique_comments(node: GraphNode) -> list[GitHubComment]:
    """Comments worth rendering for a node.

    Blank comments, exact repeats of an earlier comment and comments that
    only echo the node's own body are dropped.
    """
    body = (node.body or "").strip()
    seen = {body} if body else set()
    comments = []
    for comment in node.comments:
        text = comment.body.strip()
        if not text or text in seen:
            continue
        seen.add(text)
        comments.append(comment)
    return comments


def _comment_label(comment: GitHubComment) -> str:
    if comment.comment_type == "pull_request_review_comment":
        location = f" ({comment.path})" if comment.path else ""
        return f"reviewcomment-{comment.id}{location}: {comment.author}"
    if comment.comment_type == "synthetic":
        return str(comment.id)
    return f"issuecomment-{comment.id}: {comment.author}"


def _indented(prefix: str, line: str) -> str:
    # Empty lines get no trailing indent; other lines are kept verbatim
    return f"{prefix}{line}" if line else prefix.rstrip()


def _section(title: str, text: str, prefix: str) -> list[str]:
    lines = [f"{prefix}{title}:"]
    for line in text.strip("\n").split("\n"):
        lines.append(_indented(prefix + INDENT, line))
    return lines


class ContextRenderer:
    """Depth-first renderer for a resolved issue graph."""

    def __init__(self, count: TokenCounter = count_tokens):
        self.count = count

    def render(self, root: GraphNode, budget: TokenBudget) -> list[str]:
        """Render the graph rooted at ``root`` as ordered text blocks.

        The first block is a title, then one block per node in depth-first
        order. The rendered text is counted once; diff tokens already charged
        while packing are not counted twice.

        When the text does not fit the remaining budget, packed diffs are
        dropped from the graph one node at a time, deepest and last first,
        and their tokens released. Only if the tree still does not fit
        without any diff is a single placeholder block returned instead.
        """
        blocks, needed = self._render_tree(root)

        if not budget.fits(needed):
            for node in reversed(list(root.walk())):
                details = node.pull_request
                if details is None or not details.diff:
                    continue
                budget.release(details.drop_diff())
                logger.info(f"Dropped diff of {node.key} to fit the token budget")
                blocks, needed = self._render_tree(root)
                if budget.fits(needed):
                    break

        if not budget.fits(needed):
            logger.warning(
                f"Rendered context needs {needed} tokens, "
                f"{budget.tokens_remaining} remaining; omitting issue tree"
            )
            placeholder = BUDGET_EXCEEDED_MESSAGE.format(
                needed=needed, remaining=budget.tokens_remaining
            )
            budget.charge(placeholder, self.count)
            return [placeholder]

        budget.consume(needed)
        logger.info(
            f"Final tokens: {budget.running_token_count}/{budget.tokens_remaining}"
        )
        return blocks

    def _render_tree(self, root: GraphNode) -> tuple[list[str], int]:
        """Render all blocks and count the tokens not yet charged."""
        blocks = [TREE_HEADER]
        self._render_node(root, "", "", True, blocks)

        total = self.count("\n\n".join(blocks))
        charged = sum(
            node.pull_request.diff_tokens
            for node in root.walk()
            if node.pull_request is not None
        )
        return blocks, max(total - charged, 0)

    def _render_node(
        self,
        node: GraphNode,
        prefix: str,
        connector: str,
        is_last: bool,
        blocks: list[str],
    ) -> None:
        kind = "PR" if node.is_pull_request else "Issue"
        lines = [f"{prefix}{connector}{kind} #{node.number} ({node.html_url})"]

        if not connector:
            content_prefix = prefix
        else:
            content_prefix = prefix + (INDENT if is_last else PIPE)

        if node.body and node.body.strip():
            lines.extend(_section("Body", node.body, content_prefix))

        details = node.pull_request
        if details is not None:
            if details.diff:
                lines.extend(_section("Diff", details.diff, content_prefix))
            elif details.files or details.omitted_files:
                lines.append(
                    f"{content_prefix}Diff: omitted to stay within token limits"
                )
            if details.files:
                lines.append(f"{content_prefix}Files changed: {len(details.files)}")
                for file in details.files:
                    lines.append(
                        f"{content_prefix}{INDENT}{file.status} {file.filename} "
                        f"(+{file.additions} -{file.deletions})"
                    )
            if details.diff and details.omitted_files:
                lines.append(
                    f"{content_prefix}Diff omitted for: "
                    f"{', '.join(details.omitted_files)}"
                )

        comments = unique_comments(node)
        if comments:
            lines.append(f"{content_prefix}Comments: {len(comments)}")
            for index, comment in enumerate(comments):
                last = index == len(comments) - 1
                branch = LAST_BRANCH if last else BRANCH
                continuation = content_prefix + (INDENT if last else PIPE)
                text_lines = comment.body.strip().split("\n")
                lines.append(
                    f"{content_prefix}{branch}{_comment_label(comment)}: "
                    f"{text_lines[0]}"
                )
                lines.extend(_indented(continuation, line) for line in text_lines[1:])

        blocks.append("\n".join(lines))

        for index, child in enumerate(node.children):
            last = index == len(node.children) - 1
            self._render_node(
                child, content_prefix, LAST_BRANCH if last else BRANCH, last, blocks
            )
