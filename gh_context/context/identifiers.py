"""Canonical owner/repo/number keys for issues and pull requests."""

import re
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict

from ..errors import InvalidKeyError

OWNER_PATTERN = re.compile(r"^[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?$")
REPO_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
NUMBER_PATTERN = re.compile(r"^[0-9]+$")

# Owner segment produced by generic API paths such as ".../repos/x/issues/1"
RESERVED_OWNER = "issues"


def clean_github_url(text: str) -> str:
    """Normalize text containing GitHub links before reference matching.

    Decodes percent-encoding, drops square brackets, collapses duplicate
    slashes (except after a scheme colon), strips trailing slashes and repairs
    doubled ``/issues/N/issues/N`` paths.
    """
    cleaned = unquote(text)
    cleaned = cleaned.replace("[", "").replace("]", "")
    cleaned = re.sub(r"([^:/])/{2,}", r"\1/", cleaned)
    cleaned = re.sub(r"/+$", "", cleaned)
    cleaned = re.sub(r"/issues/(\d+)/issues/\d+", r"/issues/\1", cleaned)
    return cleaned


def is_valid_key(key: str) -> bool:
    """Check that a key is exactly ``owner/repo/number`` with valid segments."""
    parts = key.split("/")
    if len(parts) != 3:
        return False

    owner, repo, number = parts
    if not owner or owner == RESERVED_OWNER or not OWNER_PATTERN.fullmatch(owner):
        return False
    if not repo or not REPO_PATTERN.fullmatch(repo):
        return False
    return bool(NUMBER_PATTERN.fullmatch(number))


def canonicalize_key(raw: str) -> str:
    """Reduce a raw key or path to ``owner/repo/number``.

    Percent-encoding is decoded, duplicate and trailing separators removed and
    the last three path segments kept, so ``"org//repo/12/"`` and
    ``"github.com/org/repo/12"`` both become ``"org/repo/12"``.

    Raises:
        InvalidKeyError: If fewer than three segments remain.
    """
    cleaned = unquote(raw).replace("[", "").replace("]", "").strip()
    cleaned = re.sub(r"/+", "/", cleaned).strip("/")
    parts = cleaned.split("/")
    if len(parts) < 3:
        raise InvalidKeyError(raw)
    return "/".join(parts[-3:])


class IssueKey(BaseModel):
    """Identifier of one issue or pull request across repositories."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    number: int

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.repo}/{self.number}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/issues/{self.number}"

    def __str__(self) -> str:
        return self.key

    @classmethod
    def parse(cls, raw: str) -> "IssueKey":
        """Parse a raw key, raising InvalidKeyError when it is malformed."""
        key = canonicalize_key(raw)
        if not is_valid_key(key):
            raise InvalidKeyError(raw)
        owner, repo, number = key.split("/")
        return cls(owner=owner, repo=repo, number=int(number))

    @classmethod
    def try_parse(cls, raw: str) -> "IssueKey | None":
        try:
            return cls.parse(raw)
        except InvalidKeyError:
            return None

    @classmethod
    def from_parts(cls, owner: str, repo: str, number: int | str) -> "IssueKey":
        return cls.parse(f"{owner}/{repo}/{number}")


def split_key(key: str) -> tuple[str, str, int]:
    """Split a key into its owner, repo and number."""
    issue_key = IssueKey.parse(key)
    return issue_key.owner, issue_key.repo, issue_key.number
