"""Context graph assembly and token-budget packing."""

from .diff_packer import FileDiff, PackedDiff, pack_diff, parse_per_file_diffs
from .graph import GraphFetcher, GraphNode, PullRequestDetails, TraversalState
from .identifiers import IssueKey, split_key
from .references import (
    PlaceholderFilter,
    Reference,
    ReferenceKind,
    extract_keys,
    extract_references,
    make_seed,
    parse_issue,
)
from .renderer import ContextRenderer
from .tokens import TokenBudget, count_tokens, estimate_tokens

__all__ = [
    "ContextRenderer",
    "FileDiff",
    "GraphFetcher",
    "GraphNode",
    "IssueKey",
    "PackedDiff",
    "PlaceholderFilter",
    "PullRequestDetails",
    "Reference",
    "ReferenceKind",
    "TokenBudget",
    "TraversalState",
    "count_tokens",
    "estimate_tokens",
    "extract_keys",
    "extract_references",
    "make_seed",
    "pack_diff",
    "parse_issue",
    "parse_per_file_diffs",
    "split_key",
]
