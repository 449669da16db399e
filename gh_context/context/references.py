"""Detection of issue and pull request references in free text."""

import re
from enum import Enum

from pydantic import BaseModel, Field

from .identifiers import IssueKey, clean_github_url, is_valid_key

# Characters allowed to follow a reference
_END = r"(?=$|[\s#,.!?:;)\]])"
_LOCAL_END = r"(?=$|[\s,.!?:;)\]])"

GITHUB_ISSUE_URL_PATTERN = re.compile(
    r"https?://(?:www\.)?github\.com/([^/\s]+)/([^/\s]+?)/(?:issues|pull)/(\d+)" + _END
)
CROSS_REPO_PATTERN = re.compile(
    r"(?<![\w./-])([A-Za-z0-9][A-Za-z0-9-]*)/([A-Za-z0-9_-]+)#(\d+)" + _LOCAL_END
)
LOCAL_PATTERN = re.compile(r"(?:^|(?<=\s))#(\d+)" + _LOCAL_END, re.MULTILINE)
RESOLUTION_PATTERN = re.compile(
    r"\b(?:Resolves|Closes|Fixes)\s+#(\d+)" + _LOCAL_END, re.IGNORECASE
)
DEPENDENCY_PATTERN = re.compile(
    r"\bDepends on (?:#(\d+)|https?://(?:www\.)?github\.com/([^/\s]+)/([^/\s]+?)"
    r"/(?:issues|pull)/(\d+))" + _END
)

DEFAULT_PLACEHOLDER_NUMBER = "1234"
DEFAULT_PLACEHOLDER_MARKER = "You must link the issue number e.g."


class ReferenceKind(str, Enum):
    """Which pattern produced a reference."""

    URL = "url"
    CROSS_REPO = "cross_repo"
    LOCAL = "local"
    RESOLUTION_KEYWORD = "resolution_keyword"
    DEPENDENCY_KEYWORD = "dependency_keyword"
    SEED = "seed"


class Reference(BaseModel):
    """An issue or pull request mentioned somewhere, with its provenance."""

    issue: IssueKey = Field(..., description="Referenced issue or pull request")
    kind: ReferenceKind = Field(..., description="Pattern that matched")
    score: float | None = Field(
        None, description="Similarity score for references seeded by search"
    )

    @property
    def key(self) -> str:
        return self.issue.key


class PlaceholderFilter(BaseModel):
    """Excludes the example issue number used in pull request templates.

    Templates commonly say "You must link the issue number e.g. #1234"; the
    ``#1234`` there is not a real reference. When ``marker`` is None the
    number is excluded wherever it appears.
    """

    number: str | None = DEFAULT_PLACEHOLDER_NUMBER
    marker: str | None = DEFAULT_PLACEHOLDER_MARKER

    def excludes(self, number: str, text: str) -> bool:
        if self.number is None or number != self.number:
            return False
        return self.marker is None or self.marker in text


def strip_quoted(text: str) -> str:
    """Drop fenced code blocks and ``>`` quotes from markdown text.

    A quote runs until the next blank line, matching how GitHub renders lazy
    continuation lines.
    """
    kept = []
    in_code_block = False
    in_quote = False
    for line in text.split("\n"):
        stripped = line.strip()
        if stripped.startswith("```"):
            in_code_block = not in_code_block
            continue
        if stripped.startswith(">"):
            in_quote = True
        elif not stripped:
            in_quote = False
        if in_code_block or in_quote:
            continue
        kept.append(line)
    return "\n".join(kept)


class _Collector:
    def __init__(self) -> None:
        self.references: list[Reference] = []
        self.seen: set[str] = set()

    def add(self, owner: str, repo: str, number: str, kind: ReferenceKind) -> None:
        key = f"{owner}/{repo}/{number}"
        if key in self.seen or not is_valid_key(key):
            return
        self.seen.add(key)
        self.references.append(
            Reference(
                issue=IssueKey(owner=owner, repo=repo, number=int(number)), kind=kind
            )
        )


def extract_references(
    text: str | None,
    owner: str | None = None,
    repo: str | None = None,
    placeholder: PlaceholderFilter | None = None,
    skip_quoted: bool = False,
) -> list[Reference]:
    """Find every issue or pull request referenced in text.

    Args:
        text: Issue body, comment body or any other markdown
        owner: Owner used to resolve local ``#N`` references
        repo: Repository used to resolve local ``#N`` references
        placeholder: Template placeholder rule; defaults to ``#1234`` inside
            the "You must link the issue number e.g." boilerplate
        skip_quoted: Ignore references inside code blocks and quotes

    Returns:
        References in order of first occurrence, one per key. Patterns are
        applied in precedence order (URLs, ``owner/repo#N``, ``#N``,
        resolution keywords, ``Depends on``) and the first pattern to produce
        a key decides its provenance.
    """
    if not text:
        return []

    if placeholder is None:
        placeholder = PlaceholderFilter()

    cleaned = clean_github_url(strip_quoted(text) if skip_quoted else text)
    collector = _Collector()

    for match in GITHUB_ISSUE_URL_PATTERN.finditer(cleaned):
        collector.add(match[1], match[2], match[3], ReferenceKind.URL)

    for match in CROSS_REPO_PATTERN.finditer(cleaned):
        collector.add(match[1], match[2], match[3], ReferenceKind.CROSS_REPO)

    has_local_repo = bool(owner and repo)

    def add_local(number: str, kind: ReferenceKind) -> None:
        if not has_local_repo or placeholder.excludes(number, cleaned):
            return
        collector.add(owner, repo, number, kind)  # type: ignore[arg-type]

    for match in LOCAL_PATTERN.finditer(cleaned):
        add_local(match[1], ReferenceKind.LOCAL)

    for match in RESOLUTION_PATTERN.finditer(cleaned):
        add_local(match[1], ReferenceKind.RESOLUTION_KEYWORD)

    for match in DEPENDENCY_PATTERN.finditer(cleaned):
        if match[1]:
            add_local(match[1], ReferenceKind.DEPENDENCY_KEYWORD)
        else:
            collector.add(
                match[2], match[3], match[4], ReferenceKind.DEPENDENCY_KEYWORD
            )

    return collector.references


def parse_issue(raw: str) -> IssueKey | None:
    """Parse an issue URL, ``owner/repo#N`` shorthand or ``owner/repo/N`` key."""
    found = extract_references(raw, placeholder=PlaceholderFilter(number=None))
    if found:
        return found[0].issue
    return IssueKey.try_parse(raw)


def make_seed(raw: str, score: float | None = None) -> Reference | None:
    """Turn a similarity search hit into a seed reference.

    Returns:
        The seed, or None if ``raw`` names no valid issue
    """
    issue = parse_issue(raw)
    if issue is None:
        return None
    return Reference(issue=issue, kind=ReferenceKind.SEED, score=score)


def extract_keys(
    text: str | None,
    owner: str | None = None,
    repo: str | None = None,
    placeholder: PlaceholderFilter | None = None,
    skip_quoted: bool = False,
) -> list[str]:
    """Same as extract_references but returns canonical key strings."""
    return [
        reference.key
        for reference in extract_references(
            text, owner, repo, placeholder=placeholder, skip_quoted=skip_quoted
        )
    ]
