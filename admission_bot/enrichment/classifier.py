"""Intent classification and dispatch to the matching enrichment source.

Classifiers are tried in order and the first one whose pattern matches
owns the message, even if its fetch then fails: at most one source is
consulted per message.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from admission_bot.enrichment import github, web
from admission_bot.enrichment.base import Enrichment, FetchResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"https?://[^\s<>\"'`]+", re.IGNORECASE)

SEARCH_TRIGGERS = (
    # Ukrainian
    "знайди", "знайти", "пошукай", "шукай", "загугли", "погугли",
    # Russian
    "найди", "поищи", "ищи",
    # English
    r"search\s+for", "search", "google", r"look\s+up", "find",
)
SEARCH_RE = re.compile(
    r"^\s*(?:" + "|".join(SEARCH_TRIGGERS) + r")\b[:,]?\s+(?P<query>\S.*)$",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(frozen=True)
class Classifier:
    """Pattern plus the fetch/render pair used when it matches."""

    kind: str
    match: Callable[[str], Any]
    fetch: Callable[[Any], Awaitable[FetchResult]]
    render: Callable[[dict[str, Any]], str]
    label: Callable[[dict[str, Any]], str]


def _match_url(text: str) -> str | None:
    match = URL_RE.search(text)
    return match.group(0).rstrip(".,;:!?)") if match else None


def _match_search(text: str) -> str | None:
    match = SEARCH_RE.match(text)
    if match is None:
        return None
    return match["query"].strip().rstrip("?") or None


async def _fetch_repository(ref: github.RepoReference) -> FetchResult:
    if ref.path:
        return await github.fetch_contents(ref)
    return await github.analyze_repository(ref.slug)


def _render_repository(data: dict[str, Any]) -> str:
    if "metadata" in data:
        return github.render_report(data)
    return github.render_contents(data)


def _repository_label(data: dict[str, Any]) -> str:
    if "metadata" in data:
        return "GitHub repository analysis"
    if data["kind"] == "dir":
        return "GitHub directory listing"
    return "GitHub file contents"


DEFAULT_CLASSIFIERS: tuple[Classifier, ...] = (
    Classifier(
        kind="repository",
        match=lambda text: github.parse_repo_reference(text),
        fetch=_fetch_repository,
        render=_render_repository,
        label=_repository_label,
    ),
    Classifier(
        kind="url",
        match=_match_url,
        fetch=lambda url: web.fetch_page(url),
        render=lambda data: web.render_page(data),
        label=lambda _data: "Web page content",
    ),
    Classifier(
        kind="search",
        match=_match_search,
        fetch=lambda query: web.search(query),
        render=lambda data: web.render_results(data),
        label=lambda _data: "Web search results",
    ),
)


class ContextEnricher:
    """Fetches supplementary context for a user message."""

    def __init__(self, classifiers: tuple[Classifier, ...] = DEFAULT_CLASSIFIERS) -> None:
        self._classifiers = classifiers

    def classify(self, text: str) -> tuple[Classifier, Any] | None:
        """Return the first matching classifier and its match value."""
        for classifier in self._classifiers:
            value = classifier.match(text)
            if value:
                return classifier, value
        return None

    async def enrich(self, text: str) -> Enrichment | None:
        """Run the first matching source. Failures yield ``None``."""
        found = self.classify(text)
        if found is None:
            return None

        classifier, value = found
        logger.info("Enriching message via %s", classifier.kind)
        try:
            result = await classifier.fetch(value)
        except Exception:
            logger.exception("Enrichment fetcher %s raised", classifier.kind)
            return None

        if not result.success:
            logger.warning("Enrichment via %s failed: %s", classifier.kind, result.error)
            return None

        return Enrichment(
            kind=classifier.kind,
            label=classifier.label(result.data),
            text=classifier.render(result.data),
        )
