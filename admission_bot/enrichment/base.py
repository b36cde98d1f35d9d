"""Result types for context-enrichment fetchers."""

from dataclasses import dataclass
from typing import Any


@dataclass
class FetchResult:
    """Result of an enrichment fetch.

    Every fetcher returns one of these instead of raising, so a failed
    fetch can never surface as a user-facing error.
    """

    data: dict[str, Any] | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Enrichment:
    """Supplementary context appended to the user's message."""

    kind: str  # "repository", "url" or "search"
    label: str
    text: str

    def render(self) -> str:
        return f"\n\n--- {self.label} ---\n{self.text}"
