"""Tests for intent classification and enrichment dispatch."""

from unittest.mock import AsyncMock, patch

import pytest

from admission_bot.enrichment import ContextEnricher, FetchResult
from admission_bot.enrichment.github import RepoReference

_PAGE = {"url": "https://example.edu/dates", "title": "Dates", "text": "Deadline is July 1"}
_SEARCH = {
    "query": "розклад вступу",
    "results": [{"title": "Schedule", "url": "https://example.edu/s", "snippet": "July"}],
}


@pytest.fixture()
def enricher() -> ContextEnricher:
    return ContextEnricher()


class TestClassify:
    def test_repository_wins_over_url(self, enricher):
        classifier, value = enricher.classify("check https://github.com/octo/site")
        assert classifier.kind == "repository"
        assert value == RepoReference("octo", "site")

    def test_url(self, enricher):
        classifier, value = enricher.classify("what does https://example.edu/dates, say?")
        assert classifier.kind == "url"
        assert value == "https://example.edu/dates"

    def test_url_wins_over_search(self, enricher):
        classifier, _ = enricher.classify("find https://example.edu/page")
        assert classifier.kind == "url"

    @pytest.mark.parametrize(
        ("text", "query"),
        [
            ("знайди розклад вступу", "розклад вступу"),
            ("Пошукай: стипендії КПІ", "стипендії КПІ"),
            ("найди общежитие", "общежитие"),
            ("search for admission rules?", "admission rules"),
            ("Google tuition fees", "tuition fees"),
            ("look up dorm prices", "dorm prices"),
        ],
    )
    def test_search_triggers(self, enricher, text, query):
        classifier, value = enricher.classify(text)
        assert classifier.kind == "search"
        assert value == query

    @pytest.mark.parametrize(
        "text",
        [
            "привіт",
            "коли дедлайн?",
            "finding my way",
            "search",
            "I want to search for it",
            "google.com is down",
            "find-a-course portal",
        ],
    )
    def test_no_match(self, enricher, text):
        assert enricher.classify(text) is None


async def test_plain_message_has_no_enrichment(enricher) -> None:
    with patch("admission_bot.enrichment.web.search", new_callable=AsyncMock) as mock_search:
        assert await enricher.enrich("коли вступна кампанія?") is None
    mock_search.assert_not_awaited()


async def test_url_enrichment(enricher) -> None:
    with patch(
        "admission_bot.enrichment.web.fetch_page",
        new_callable=AsyncMock,
        return_value=FetchResult(data=_PAGE),
    ) as mock_fetch:
        enrichment = await enricher.enrich("see https://example.edu/dates")

    mock_fetch.assert_awaited_once_with("https://example.edu/dates")
    assert enrichment.kind == "url"
    assert enrichment.label == "Web page content"
    assert enrichment.render().startswith(
        "\n\n--- Web page content ---\nURL: https://example.edu/dates"
    )
    assert "Deadline is July 1" in enrichment.text


async def test_search_enrichment(enricher) -> None:
    with patch(
        "admission_bot.enrichment.web.search",
        new_callable=AsyncMock,
        return_value=FetchResult(data=_SEARCH),
    ) as mock_search:
        enrichment = await enricher.enrich("знайди розклад вступу")

    mock_search.assert_awaited_once_with("розклад вступу")
    assert enrichment.kind == "search"
    assert "1. Schedule" in enrichment.text


async def test_repository_without_path_runs_analysis(enricher) -> None:
    data = {"metadata": {"full_name": "octo/site"}, "structure": None}
    with (
        patch(
            "admission_bot.enrichment.github.analyze_repository",
            new_callable=AsyncMock,
            return_value=FetchResult(data=data),
        ) as mock_analyze,
        patch("admission_bot.enrichment.github.render_report", return_value="REPORT"),
    ):
        enrichment = await enricher.enrich("https://github.com/octo/site")

    mock_analyze.assert_awaited_once_with("octo/site")
    assert enrichment.label == "GitHub repository analysis"
    assert enrichment.text == "REPORT"


async def test_repository_with_path_fetches_contents(enricher) -> None:
    data = {"kind": "file", "path": "app.py", "content": "x = 1", "truncated": False, "repo": "o/r"}
    with patch(
        "admission_bot.enrichment.github.fetch_contents",
        new_callable=AsyncMock,
        return_value=FetchResult(data=data),
    ) as mock_fetch:
        enrichment = await enricher.enrich("https://github.com/o/r/blob/main/app.py")

    assert mock_fetch.call_args.args[0] == RepoReference("o", "r", "main", "app.py")
    assert enrichment.label == "GitHub file contents"
    assert enrichment.text == "File app.py in o/r:\nx = 1"


async def test_failed_fetch_does_not_fall_through(enricher) -> None:
    with (
        patch(
            "admission_bot.enrichment.web.fetch_page",
            new_callable=AsyncMock,
            return_value=FetchResult(error="HTTP 404 fetching https://example.edu/x"),
        ),
        patch("admission_bot.enrichment.web.search", new_callable=AsyncMock) as mock_search,
    ):
        assert await enricher.enrich("знайди https://example.edu/x") is None
    mock_search.assert_not_awaited()


async def test_raising_fetcher_yields_none(enricher) -> None:
    with patch(
        "admission_bot.enrichment.web.fetch_page",
        new_callable=AsyncMock,
        side_effect=RuntimeError("unexpected"),
    ):
        assert await enricher.enrich("https://example.edu/x") is None
