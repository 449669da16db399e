"""Links to source files on GitHub found in issue text."""

import re

from pydantic import BaseModel

from .identifiers import clean_github_url

GITHUB_URL_PATTERN = re.compile(r"https?://(?:www\.)?github\.com/[^\s)\]>\"']+")
BLOB_PATTERN = re.compile(
    r"https?://(?:www\.)?github\.com/([^/]+)/([^/]+?)/blob/([^/]+)/(.+)"
)
LINE_ANCHOR_PATTERN = re.compile(r"#L\d+(?:-L\d+)?$")


class CodeLink(BaseModel):
    """A ``github.com/{owner}/{repo}/blob/{ref}/{path}`` link."""

    owner: str
    repo: str
    ref: str
    path: str
    url: str


def find_code_links(text: str | None, extensions: list[str]) -> list[CodeLink]:
    """Find links to files whose extension is in ``extensions``.

    Line anchors such as ``#L10-L20`` are dropped from the path. Each
    distinct owner/repo/ref/path is returned once, in order of appearance.
    """
    if not text:
        return []

    suffixes = tuple(ext.lower() for ext in extensions)
    links = []
    seen = set()
    for raw_url in GITHUB_URL_PATTERN.findall(text):
        url = clean_github_url(raw_url)
        match = BLOB_PATTERN.match(url)
        if not match:
            continue

        owner, repo, ref, path = match.groups()
        path = LINE_ANCHOR_PATTERN.sub("", path).split("#")[0].split("?")[0]
        if not path.lower().endswith(suffixes):
            continue

        key = (owner, repo, ref, path)
        if key in seen:
            continue
        seen.add(key)
        links.append(CodeLink(owner=owner, repo=repo, ref=ref, path=path, url=url))
    return links
