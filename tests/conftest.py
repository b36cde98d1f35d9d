"""Shared test fixtures."""

import pytest


@pytest.fixture(autouse=True)
def _reset_clients(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop lazily created API clients so no test reuses another's client."""
    monkeypatch.setattr("admission_bot.llm.client._client", None)
    monkeypatch.setattr("admission_bot.enrichment.github._github_client", None)
