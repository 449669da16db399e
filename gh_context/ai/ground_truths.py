"""Repository ground truths used to anchor answers.

Ground truths are short statements about a repository (main languages, key
dependencies) placed at the top of the system message. They are derived
directly from GitHub language statistics and dependency manifests.
"""

import json
import logging
import re
import tomllib
from typing import Any

from ..github_client.source import IssueSource

logger = logging.getLogger(__name__)

# Leading distribution name of a PEP 508 requirement string
REQUIREMENT_NAME_PATTERN = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def language_shares(languages: dict[str, int]) -> list[tuple[str, int]]:
    """Convert GitHub's bytes-per-language map into rounded percentages.

    Returns:
        (language, percent) pairs, largest first, zero-percent entries dropped
    """
    total = sum(languages.values())
    if total <= 0:
        return []
    shares = [
        (language, round(100 * size / total))
        for language, size in sorted(
            languages.items(), key=lambda item: item[1], reverse=True
        )
    ]
    return [(language, percent) for language, percent in shares if percent > 0]


def parse_package_json(text: str) -> tuple[list[str], list[str]]:
    """Dependency and dev dependency names from a package.json document."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse package.json: {e}")
        return [], []
    if not isinstance(data, dict):
        return [], []
    return (
        list((data.get("dependencies") or {}).keys()),
        list((data.get("devDependencies") or {}).keys()),
    )


def _requirement_names(requirements: list[Any]) -> list[str]:
    names = []
    for requirement in requirements:
        if not isinstance(requirement, str):
            continue
        match = REQUIREMENT_NAME_PATTERN.match(requirement)
        if match and match[1] not in names:
            names.append(match[1])
    return names


def parse_pyproject(text: str) -> tuple[list[str], list[str]]:
    """Dependency and optional dependency names from a pyproject.toml."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        logger.warning(f"Could not parse pyproject.toml: {e}")
        return [], []

    project = data.get("project", {})
    dependencies = _requirement_names(project.get("dependencies", []))
    optional: list[Any] = []
    for extra in project.get("optional-dependencies", {}).values():
        optional.extend(extra)
    dev_dependencies = [
        name for name in _requirement_names(optional) if name not in dependencies
    ]
    return dependencies, dev_dependencies


def _join(items: list[str]) -> str:
    if len(items) == 1:
        return items[0]
    return f"{', '.join(items[:-1])} and {items[-1]}"


def build_ground_truths(
    languages: dict[str, int] | None = None,
    dependencies: list[str] | None = None,
    dev_dependencies: list[str] | None = None,
    max_languages: int = 4,
    max_dependencies: int = 8,
) -> list[str]:
    """Summarize a repository as a list of ground truth statements.

    Args:
        languages: Bytes of code per language, as reported by GitHub
        dependencies: Runtime dependency names
        dev_dependencies: Development and test dependency names
        max_languages: Most prevalent languages to mention
        max_dependencies: Dependencies to mention per group

    Returns:
        Ground truth statements; empty when nothing is known
    """
    truths = []

    shares = language_shares(languages or {})[:max_languages]
    if shares:
        main, main_percent = shares[0]
        sentence = f"The repo predominantly uses {main} ({main_percent}%)"
        others = [f"{language} ({percent}%)" for language, percent in shares[1:]]
        if others:
            sentence += f", with {_join(others)} also present"
        truths.append(sentence + ".")

    if dependencies:
        truths.append(
            f"The project depends on {_join(dependencies[:max_dependencies])}."
        )
    if dev_dependencies:
        truths.append(
            "Development and tests use "
            f"{_join(dev_dependencies[:max_dependencies])}."
        )
    return truths


async def collect_ground_truths(
    source: IssueSource, owner: str, repo: str
) -> list[str]:
    """Fetch repository metadata and build its ground truths.

    Any fetch failure is logged and the corresponding statement left out.
    """
    languages: dict[str, int] = {}
    try:
        languages = await source.get_languages(owner, repo)
    except Exception as e:
        logger.warning(f"Error fetching languages for {owner}/{repo}: {e}")

    dependencies: list[str] = []
    dev_dependencies: list[str] = []
    for path, parse in (
        ("package.json", parse_package_json),
        ("pyproject.toml", parse_pyproject),
    ):
        try:
            content = await source.get_file_content(owner, repo, path)
        except Exception as e:
            logger.warning(f"Error fetching {path} for {owner}/{repo}: {e}")
            continue
        if not content:
            continue
        runtime, development = parse(content)
        dependencies.extend(name for name in runtime if name not in dependencies)
        dev_dependencies.extend(
            name for name in development if name not in dev_dependencies
        )

    truths = build_ground_truths(languages, dependencies, dev_dependencies)
    logger.info(f"Built {len(truths)} ground truths for {owner}/{repo}")
    return truths
