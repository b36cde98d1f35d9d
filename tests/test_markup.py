"""Tests for LLM output conversion to Telegram Markdown."""

from unittest.mock import patch

import pytest

from admission_bot.formatting import format_response, strip_markup


class TestMarkdown:
    def test_double_star_becomes_single(self):
        assert format_response("**Bold** text") == "*Bold* text"

    def test_heading_becomes_bold(self):
        assert format_response("# Admission\nBody") == "*Admission*\nBody"

    def test_bullets(self):
        assert format_response("- one\n* two\n+ three") == "• one\n• two\n• three"

    def test_blank_runs_collapsed(self):
        assert format_response("a  \n\n\n\nb") == "a\n\nb"

    def test_unclosed_emphasis_repaired(self):
        assert format_response("*important note") == "important note"


class TestHtml:
    def test_inline_tags(self):
        assert format_response("<b>Hi</b> <i>there</i> <s>old</s>") == "*Hi* _there_ ~old~"

    def test_strong_and_em(self):
        assert format_response("<strong>A</strong> <em>B</em>") == "*A* _B_"

    def test_list(self):
        assert format_response("<ul><li>A</li><li>B</li></ul>") == "• A\n• B"

    def test_heading(self):
        assert format_response("<h2>Dates</h2>Deadline soon") == "*Dates*\nDeadline soon"

    def test_anchor(self):
        text = '<a href="https://ex.com/a_b">site</a>'
        assert format_response(text) == "[site](https://ex.com/a%5Fb)"

    def test_pre_block(self):
        assert format_response("<pre><code>x = a*b</code></pre>") == "```\nx = a*b\n```"

    def test_inline_code(self):
        assert format_response("Use <code>my_var</code> here") == "Use `my_var` here"

    def test_line_breaks_and_paragraphs(self):
        assert format_response("<p>One</p><p>Two<br>Three</p>") == "One\nTwo\nThree"

    def test_entities_decoded(self):
        assert format_response("5 &lt; 6 &amp; 7") == "5 < 6 & 7"

    def test_image_alt(self):
        assert format_response('<img src="c.png" alt="Campus">') == "🖼 Campus"

    def test_unknown_tags_removed(self):
        assert format_response("<span class='x'>plain</span>") == "plain"

    def test_bold_inner_stars_removed(self):
        assert format_response("<b>a*b</b>") == "*ab*"


def test_table_fenced() -> None:
    text = "| a | b |\n| 1 | 2 |"
    assert format_response(text) == "```\n| a | b |\n| 1 | 2 |\n```"


def test_bold_label_lines_stay_prose() -> None:
    text = "**Дата:** 1 липня\n**Місце:** Київ\n**Час:** 10:00"
    assert format_response(text) == "*Дата:* 1 липня\n*Місце:* Київ\n*Час:* 10:00"


def test_html_pre_with_pipes_has_no_raw_tags() -> None:
    text = "<pre>| a | b |\n| c | d |</pre>"
    assert format_response(text) == "```\n| a | b |\n| c | d |\n```"


def test_code_content_untouched() -> None:
    text = "```\nif a**2 > b_c:\n    pass\n```"
    assert format_response(text) == text


def test_empty_input() -> None:
    assert format_response("") == ""
    assert format_response("   ") == ""


@pytest.mark.parametrize(
    "text",
    [
        "**Bold** and _it_",
        "Line\n\n\n\nLine2",
        "| a | b |\n| 1 | 2 |",
        "<b>Hi</b> <a href='https://x.io'>x</a>",
        "- Deadline: July\n- Fee: 0\n- City: Kyiv",
        "Use `code` and ```\nblock\n```",
    ],
)
def test_idempotent(text) -> None:
    once = format_response(text)
    assert format_response(once) == once


def test_internal_error_falls_back_to_plain_text() -> None:
    text = "**Bold** [link](https://x.com/a_b)"
    with patch(
        "admission_bot.formatting.markup.normalize_markdown", side_effect=RuntimeError("boom")
    ):
        result = format_response(text)
    assert result == strip_markup(text)
    assert result == "Bold link (https://x.com/a%5Fb)"


class TestStripMarkup:
    def test_removes_delimiters(self):
        assert strip_markup("*bold* _it_ `code` ~s~") == "bold it code s"

    def test_unwraps_fences(self):
        assert strip_markup("See:\n```python\nprint(1)\n```") == "See:\nprint(1)"

    def test_html(self):
        assert strip_markup("<b>x</b><br>y &amp; z") == "x\ny & z"

    def test_empty(self):
        assert strip_markup("") == ""
