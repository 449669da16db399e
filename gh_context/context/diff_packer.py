"""Fit a pull request diff into the remaining token budget.

Packing runs in two phases. Each file's cost is first estimated from its
length and files are admitted smallest-first while the estimate fits; only the
admitted files are then tokenized exactly, and files are evicted from the end
of the admitted list until the exact total fits. The estimate avoids
tokenizing files that cannot fit anyway, the exact pass keeps the hard limit.
"""

import logging
import re

from pydantic import BaseModel, Field

from .tokens import TokenBudget, TokenCounter, count_tokens, estimate_tokens

logger = logging.getLogger(__name__)

DIFF_HEADER_PATTERN = re.compile(r"^diff --git a/(.*?) b/.*$", re.MULTILINE)


class FileDiff(BaseModel):
    """Diff content for a single file."""

    filename: str = Field(..., description="Path of the file before the change")
    content: str = Field(..., description="Diff section including its header")
    position: int = Field(..., description="Index of the file in the original diff")


class PackedDiff(BaseModel):
    """Files of a diff that fit the budget."""

    text: str = Field(..., description="Surviving file diffs in original order")
    tokens: int = Field(..., description="Exact token count charged to the budget")
    included: list[str] = Field(default_factory=list)
    omitted: list[str] = Field(default_factory=list)


def parse_per_file_diffs(diff: str) -> list[FileDiff]:
    """Split a unified git diff into per-file sections."""
    matches = list(DIFF_HEADER_PATTERN.finditer(diff))
    files = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(diff)
        files.append(
            FileDiff(
                filename=match[1],
                content=diff[match.start() : end].strip(),
                position=index,
            )
        )
    return files


def pack_diff(
    raw_diff: str | None,
    budget: TokenBudget,
    count: TokenCounter = count_tokens,
    reserve: int = 0,
) -> PackedDiff | None:
    """Include as many whole files of a diff as the budget allows.

    Args:
        raw_diff: Unified diff as returned by GitHub
        budget: Budget to check against and charge with the exact cost
        count: Exact token counter
        reserve: Tokens to leave free for text rendered alongside the diff

    Returns:
        The packed diff, or None when no file fits. Running out of budget is
        not an error; the caller may still list the changed files.
    """
    files = parse_per_file_diffs(raw_diff or "")
    if not files:
        return None

    available = budget.tokens_remaining - reserve
    if available <= 0:
        logger.info("No token budget left for the diff")
        return None

    estimated = sorted(files, key=lambda file: estimate_tokens(file.content))

    candidates: list[FileDiff] = []
    estimated_total = 0
    for file in estimated:
        cost = estimate_tokens(file.content)
        if estimated_total + cost > available:
            logger.debug(f"Skipping {file.filename} diff to stay within token limits")
            continue
        candidates.append(file)
        estimated_total += cost

    if not candidates:
        logger.info("No file from the diff fits the remaining token budget")
        return None

    exact = [(file, count(file.content)) for file in candidates]
    exact_total = sum(tokens for _, tokens in exact)
    while exact and exact_total > available:
        removed, removed_tokens = exact.pop()
        exact_total -= removed_tokens
        logger.debug(
            f"Excluded {removed.filename} after exact count "
            f"({removed_tokens} tokens, new total {exact_total})"
        )

    if not exact:
        logger.info("No file from the diff fits after exact token counting")
        return None

    survivors = sorted((file for file, _ in exact), key=lambda file: file.position)
    kept_positions = {file.position for file in survivors}
    budget.consume(exact_total)

    return PackedDiff(
        text="\n".join(file.content for file in survivors),
        tokens=exact_total,
        included=[file.filename for file in survivors],
        omitted=[
            file.filename for file in files if file.position not in kept_positions
        ],
    )
