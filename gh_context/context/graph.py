"""Recursive, cycle-safe fetching of linked issues and pull requests.

Starting from a root issue, every body and comment is scanned for references
and each referenced issue is fetched in turn, up to ``max_depth`` levels away
from the root. Three sets scoped to one traversal keep this finite:

- ``visited``: resolved keys, returned from the registry instead of refetched
- ``failed``: keys whose fetch errored, never retried
- ``in_progress``: keys on the current resolution path, which break cycles

A node is registered before its references are followed, so when B points
back at A while A is still being resolved, the existing A is found instead of
fetched again. A child is attached only to the node that first discovered it,
so mutual references produce a single edge.
"""

import logging
from collections.abc import Iterable, Iterator
from functools import partial

from pydantic import BaseModel, Field

from ..github_client.models import ChangedFile, GitHubComment
from ..github_client.source import IssueSource
from .code_links import find_code_links
from .diff_packer import pack_diff, parse_per_file_diffs
from .identifiers import is_valid_key, split_key
from .references import PlaceholderFilter, Reference, extract_keys
from .throttle import gather_bounded
from .tokens import TokenBudget, TokenCounter, count_tokens

logger = logging.getLogger(__name__)

README_COMMENT_ID = "readme-section"


class PullRequestDetails(BaseModel):
    """Pull request payload attached to a node."""

    diff: str | None = Field(None, description="Packed diff, None if nothing fit")
    diff_tokens: int = Field(0, description="Tokens charged for the packed diff")
    files: list[ChangedFile] = Field(default_factory=list)
    included_files: list[str] = Field(
        default_factory=list, description="Files kept in the packed diff"
    )
    omitted_files: list[str] = Field(
        default_factory=list, description="Files left out of the packed diff"
    )

    def drop_diff(self) -> int:
        """Remove the packed diff, keeping its file names as omitted.

        Returns:
            Tokens that were charged for the diff
        """
        released = self.diff_tokens
        self.omitted_files = self.included_files + self.omitted_files
        self.included_files = []
        self.diff = None
        self.diff_tokens = 0
        return released


class GraphNode(BaseModel):
    """One fetched issue or pull request and the nodes it discovered."""

    key: str = Field(..., description="Canonical owner/repo/number key")
    title: str = ""
    body: str | None = None
    html_url: str = ""
    is_pull_request: bool = False
    comments: list[GitHubComment] = Field(default_factory=list)
    pull_request: PullRequestDetails | None = None
    depth: int = Field(0, description="Distance from the root, root is 0")
    parent_key: str | None = Field(
        None, description="Key of the node that first discovered this one"
    )
    children: list["GraphNode"] = Field(default_factory=list)

    @property
    def number(self) -> int:
        return split_key(self.key)[2]

    @property
    def owner(self) -> str:
        return split_key(self.key)[0]

    @property
    def repo(self) -> str:
        return split_key(self.key)[1]

    def merge_comments(self, comments: Iterable[GitHubComment]) -> int:
        """Append comments, skipping exact duplicates of existing bodies.

        Returns:
            Number of comments added
        """
        bodies = {comment.body for comment in self.comments}
        added = 0
        for comment in comments:
            if comment.body in bodies:
                continue
            bodies.add(comment.body)
            self.comments.append(comment)
            added += 1
        return added

    def walk(self) -> Iterator["GraphNode"]:
        """Iterate over this node and its descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


class TraversalState:
    """Registry and bookkeeping sets for one traversal."""

    def __init__(self) -> None:
        self.nodes: dict[str, GraphNode] = {}
        self.visited: set[str] = set()
        self.failed: set[str] = set()
        self.in_progress: set[str] = set()

    def register(self, node: GraphNode) -> None:
        self.nodes[node.key] = node
        self.visited.add(node.key)

    def is_known(self, key: str) -> bool:
        return key in self.visited or key in self.failed or key in self.in_progress


class GraphFetcher:
    """Builds the reference graph for one root issue.

    A fetcher holds the state of a single traversal; create a new one per
    request.
    """

    def __init__(
        self,
        source: IssueSource,
        budget: TokenBudget,
        max_depth: int = 3,
        concurrency_limit: int = 10,
        placeholder: PlaceholderFilter | None = None,
        skip_quoted: bool = False,
        exclude_bot_comments: bool = True,
        include_readme: bool = False,
        linked_code_extensions: list[str] | None = None,
        count: TokenCounter = count_tokens,
    ):
        """Initialize the fetcher.

        Args:
            source: Where issues, comments and diffs come from
            budget: Token budget charged by packed pull request diffs
            max_depth: Deepest level followed, the root being level 0
            concurrency_limit: Concurrent child resolutions per node
            placeholder: Template placeholder rule for local references
            skip_quoted: Ignore references in code blocks and quotes
            exclude_bot_comments: Drop comments written by bot accounts
            include_readme: Merge the repository README into the root node
            linked_code_extensions: Fetch linked code files with these
                extensions; None disables linked code
            count: Exact token counter
        """
        self.source = source
        self.budget = budget
        self.max_depth = max_depth
        self.concurrency_limit = concurrency_limit
        self.placeholder = placeholder or PlaceholderFilter()
        self.skip_quoted = skip_quoted
        self.exclude_bot_comments = exclude_bot_comments
        self.include_readme = include_readme
        self.linked_code_extensions = linked_code_extensions
        self.count = count
        self.state = TraversalState()

    async def resolve(
        self, root_key: str, seeds: Iterable[Reference] = ()
    ) -> GraphNode | None:
        """Fetch the root issue and everything reachable from it.

        Args:
            root_key: Canonical key of the issue the question was asked on
            seeds: Extra references for the root, such as similarity search
                results; followed after the root's own references, highest
                score first. Seeds are fetched even when ``max_depth`` is 0,
                but their own references obey it.

        Returns:
            The root node, or None if the root itself could not be fetched
        """
        ordered_seeds = sorted(
            seeds,
            key=lambda seed: seed.score if seed.score is not None else 0.0,
            reverse=True,
        )
        try:
            root = await self._resolve(
                root_key, 0, None, extra=[seed.key for seed in ordered_seeds]
            )
        except Exception as e:
            logger.error(f"Error building issue graph for {root_key}: {e}")
            return None

        logger.info(
            f"Resolved {len(self.state.visited)} nodes from {root_key} "
            f"({len(self.state.failed)} failed). "
            f"Tokens: {self.budget.running_token_count}/"
            f"{self.budget.tokens_remaining}"
        )
        return root

    async def _resolve(
        self,
        key: str,
        depth: int,
        parent_key: str | None,
        extra: list[str] | None = None,
        seeded: bool = False,
    ) -> GraphNode | None:
        state = self.state
        # Seeds are fetched even past max_depth, their own references are not
        if key in state.in_progress or (depth > self.max_depth and not seeded):
            logger.debug(f"Skip {key} - max depth/already processing")
            return state.nodes.get(key)

        if key in state.visited:
            logger.debug(f"Return cached node: {key}")
            return state.nodes[key]

        if key in state.failed:
            logger.debug(f"Skip {key} - previous fetch failed")
            return None

        state.in_progress.add(key)
        try:
            try:
                node = await self._fetch_node(key, depth, parent_key)
            except Exception as e:
                logger.warning(f"Error fetching {key}: {e}")
                node = None

            if node is None:
                state.failed.add(key)
                return None

            state.register(node)
            logger.info(f"Fetched {key} at depth {depth}")

            if self.include_readme and depth == 0:
                await self._merge_readme(node)
            if self.linked_code_extensions:
                await self._merge_linked_code(node)
            if node.is_pull_request:
                await self._attach_pull_request(node)

            references = self._references(node)
            if node.is_pull_request:
                for closing_key in await self._closing_issues(node):
                    if closing_key not in references:
                        references.append(closing_key)

            seeds = {extra_key for extra_key in extra or [] if extra_key != key}
            for extra_key in extra or []:
                if extra_key in seeds and extra_key not in references:
                    references.append(extra_key)

            await self._resolve_children(node, references, seeds)
            return node
        finally:
            state.in_progress.discard(key)

    async def _fetch_node(
        self, key: str, depth: int, parent_key: str | None
    ) -> GraphNode | None:
        owner, repo, number = split_key(key)
        issue = await self.source.get_issue(owner, repo, number)
        if issue is None:
            logger.warning(f"{key} not found")
            return None

        comments = await self.source.list_comments(
            owner, repo, number, issue.is_pull_request
        )
        if self.exclude_bot_comments:
            comments = [c for c in comments if c.user is None or not c.user.is_bot]

        node = GraphNode(
            key=key,
            title=issue.title,
            body=issue.body,
            html_url=issue.html_url,
            is_pull_request=issue.is_pull_request,
            depth=depth,
            parent_key=parent_key,
        )
        node.merge_comments(comments)
        return node

    async def _attach_pull_request(self, node: GraphNode) -> None:
        """Attach the packed diff and changed files of a pull request.

        Failures leave the diff out; the node itself stays in the graph.
        """
        details = PullRequestDetails()
        node.pull_request = details

        try:
            details.files = await self.source.list_changed_files(
                node.owner, node.repo, node.number
            )
        except Exception as e:
            logger.warning(f"Error fetching changed files for {node.key}: {e}")

        try:
            raw_diff = await self.source.get_diff(node.owner, node.repo, node.number)
        except Exception as e:
            logger.warning(f"Error fetching diff for {node.key}: {e}")
            return

        packed = pack_diff(
            raw_diff, self.budget, self.count, reserve=self._text_tokens(node)
        )
        if packed is None:
            logger.info(f"Diff for {node.key} omitted to stay within token limits")
            details.omitted_files = [
                file.filename for file in parse_per_file_diffs(raw_diff)
            ]
            return

        details.diff = packed.text
        details.diff_tokens = packed.tokens
        details.included_files = packed.included
        details.omitted_files = packed.omitted

    def _text_tokens(self, node: GraphNode) -> int:
        """Tokens of the body and comments rendered next to a node's diff."""
        texts = [node.body or ""] + [comment.body for comment in node.comments]
        return self.count("\n".join(texts))

    async def _merge_readme(self, node: GraphNode) -> None:
        try:
            readme = await self.source.get_readme(node.owner, node.repo)
        except Exception as e:
            logger.warning(f"Error fetching README for {node.owner}/{node.repo}: {e}")
            return
        if not readme:
            return

        node.merge_comments(
            [
                GitHubComment(
                    id=README_COMMENT_ID,
                    body=f"Relevant README section:\n{readme}",
                    comment_type="synthetic",
                )
            ]
        )

    async def _merge_linked_code(self, node: GraphNode) -> None:
        texts = [node.body or ""] + [comment.body for comment in node.comments]
        links = find_code_links("\n".join(texts), self.linked_code_extensions or [])

        snippets = []
        for link in links:
            try:
                content = await self.source.get_file_content(
                    link.owner, link.repo, link.path, link.ref
                )
            except Exception as e:
                logger.warning(f"Error fetching content from {link.url}: {e}")
                continue
            if content is None:
                continue
            snippets.append(
                GitHubComment(
                    id=f"code-{link.path}",
                    body=f"Code from {link.path}:\n```\n{content}\n```",
                    comment_type="synthetic",
                )
            )
        node.merge_comments(snippets)

    def _references(self, node: GraphNode) -> list[str]:
        """Keys referenced by a node's body and comments, body first."""
        references: list[str] = []
        texts = [node.body] + [
            comment.body
            for comment in node.comments
            if comment.comment_type != "synthetic"
        ]
        for text in texts:
            for ref_key in extract_keys(
                text,
                node.owner,
                node.repo,
                placeholder=self.placeholder,
                skip_quoted=self.skip_quoted,
            ):
                if ref_key == node.key or ref_key in references:
                    continue
                if self.state.is_known(ref_key):
                    continue
                references.append(ref_key)
        return references

    async def _closing_issues(self, node: GraphNode) -> list[str]:
        """Issues a pull request is linked to close, even if no text mentions them."""
        try:
            keys = await self.source.list_closing_issues(
                node.owner, node.repo, node.number
            )
        except Exception as e:
            logger.warning(f"Error fetching closing issues for {node.key}: {e}")
            return []

        closing = []
        for closing_key in keys:
            if not is_valid_key(closing_key) or closing_key == node.key:
                continue
            if self.state.is_known(closing_key):
                continue
            closing.append(closing_key)
        return closing

    async def _resolve_children(
        self, node: GraphNode, references: list[str], seeds: set[str]
    ) -> None:
        async def resolve_child(ref_key: str) -> GraphNode | None:
            # Another branch may have claimed the key since it was extracted
            if self.state.is_known(ref_key):
                return None
            return await self._resolve(
                ref_key, node.depth + 1, node.key, seeded=ref_key in seeds
            )

        results = await gather_bounded(
            (partial(resolve_child, ref_key) for ref_key in references),
            self.concurrency_limit,
        )

        for ref_key, result in zip(references, results):
            if isinstance(result, BaseException):
                logger.warning(f"Error resolving {ref_key} from {node.key}: {result}")
                continue
            if result is None or result.parent_key != node.key:
                continue
            node.children.append(result)
