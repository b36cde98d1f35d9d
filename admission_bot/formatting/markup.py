"""LLM output to Telegram Markdown conversion.

The model answers in a mix of HTML and Markdown. ``format_response``
rewrites that into Telegram's legacy Markdown (``*bold*``, ``_italic_``,
`` `code` ``, fenced blocks, ``[label](url)``) and repairs unpaired
delimiters. It never raises: on any internal error the caller gets the
plain-text rendering instead.
"""

from __future__ import annotations

import html
import logging
import re

from admission_bot.formatting.repair import DELIMITERS, LINK_RE, escape_url, repair_delimiters
from admission_bot.formatting.spans import CodeStash
from admission_bot.formatting.tables import wrap_tables

logger = logging.getLogger(__name__)

_TAG_OPTS = r"(?:\s[^<>]*)?"

_PRE_RE = re.compile(
    rf"<pre{_TAG_OPTS}>\s*(?:<code{_TAG_OPTS}>)?([\s\S]*?)(?:</code\s*>)?\s*</pre\s*>", re.I
)
_CODE_RE = re.compile(rf"<code{_TAG_OPTS}>([\s\S]*?)</code\s*>", re.I)
_BR_RE = re.compile(r"<br\s*/?>", re.I)
_BLOCK_OPEN_RE = re.compile(rf"<(?:p|div){_TAG_OPTS}>", re.I)
_BLOCK_CLOSE_RE = re.compile(r"</(?:p|div)\s*>", re.I)
_BOLD_RE = re.compile(rf"<(b|strong){_TAG_OPTS}>([\s\S]*?)</\1\s*>", re.I)
_ITALIC_RE = re.compile(rf"<(i|em){_TAG_OPTS}>([\s\S]*?)</\1\s*>", re.I)
_STRIKE_RE = re.compile(rf"<(s|del|strike){_TAG_OPTS}>([\s\S]*?)</\1\s*>", re.I)
_HEADING_RE = re.compile(rf"<h([1-6]){_TAG_OPTS}>([\s\S]*?)</h\1\s*>", re.I)
_LIST_WRAP_RE = re.compile(rf"</?(?:ul|ol){_TAG_OPTS}>", re.I)
_LI_OPEN_RE = re.compile(rf"<li{_TAG_OPTS}>", re.I)
_LI_CLOSE_RE = re.compile(r"</li\s*>", re.I)
_ANCHOR_RE = re.compile(
    r"<a\s[^<>]*?href\s*=\s*([\"'])(.*?)\1[^<>]*>([\s\S]*?)</a\s*>", re.I
)
_IMG_RE = re.compile(r"<img\s[^<>]*?/?>", re.I)
_ALT_RE = re.compile(r"alt\s*=\s*([\"'])(.*?)\1", re.I)
_HR_RE = re.compile(r"<hr\s*/?>", re.I)
_ANY_TAG_RE = re.compile(r"</?[a-z][a-z0-9]*(?:\s[^<>]*)?/?>")

_BULLET_RE = re.compile(r"^([ \t]*)[-*+][ \t]+", re.M)
_HEADING_MD_RE = re.compile(r"^#{1,6}[ \t]+(.+?)[ \t#]*$", re.M)
_DOUBLE_STAR_RE = re.compile(r"\*\*(.+?)\*\*")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")
_BLANK_RUN_RE = re.compile(r"\n{3,}")

_FENCE_BLOCK_RE = re.compile(r"```(?:[\w+#.-]+\n)?([\s\S]*?)```")
_STRIP_DELIMITERS = str.maketrans("", "", DELIMITERS)


def _bold(inner: str) -> str:
    inner = inner.replace("*", "").strip()
    return f"*{inner}*" if inner else ""


def _fence(code: str) -> str:
    return "```\n" + code.strip("\n") + "\n```"


def _image(m: re.Match) -> str:
    alt = _ALT_RE.search(m.group(0))
    return f"🖼 {alt.group(2)}".rstrip() if alt else "🖼"


def translate_html(text: str, stash: CodeStash) -> str:
    """Rewrite HTML tags into Telegram Markdown markers.

    Code produced from ``<pre>``/``<code>`` goes straight into *stash* so
    later rules never see its contents.
    """
    text = _PRE_RE.sub(lambda m: stash.put(_fence(html.unescape(m.group(1)))), text)
    text = _CODE_RE.sub(lambda m: stash.put(f"`{html.unescape(m.group(1))}`"), text)

    text = _BR_RE.sub("\n", text)
    text = _BLOCK_OPEN_RE.sub("", text)
    text = _BLOCK_CLOSE_RE.sub("\n", text)
    text = _HEADING_RE.sub(lambda m: f"\n{_bold(m.group(2))}\n", text)
    text = _BOLD_RE.sub(lambda m: _bold(m.group(2)), text)
    text = _ITALIC_RE.sub(r"_\2_", text)
    text = _STRIKE_RE.sub(r"~\2~", text)
    text = _LIST_WRAP_RE.sub("", text)
    text = _LI_OPEN_RE.sub("\n• ", text)
    text = _LI_CLOSE_RE.sub("", text)
    text = _ANCHOR_RE.sub(lambda m: f"[{m.group(3).strip()}]({m.group(2)})", text)
    text = _IMG_RE.sub(_image, text)
    text = _HR_RE.sub("\n---\n", text)
    text = _ANY_TAG_RE.sub("", text)
    return html.unescape(text)


def normalize_markdown(text: str) -> str:
    """Map standard Markdown onto the platform dialect."""
    text = _BULLET_RE.sub(r"\1• ", text)
    text = _HEADING_MD_RE.sub(lambda m: _bold(m.group(1)), text)
    text = _DOUBLE_STAR_RE.sub(r"*\1*", text)
    text = _TRAILING_SPACE_RE.sub("\n", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def strip_markup(text: str) -> str:
    """Plain-text rendering with every delimiter character removed."""
    if not text:
        return ""
    text = LINK_RE.sub(lambda m: f"{m.group(1)} ({escape_url(m.group(2))})", text)
    text = _BR_RE.sub("\n", text)
    text = _ANY_TAG_RE.sub("", text)
    text = html.unescape(text)
    text = _FENCE_BLOCK_RE.sub(lambda m: m.group(1), text)
    text = text.replace("```", "")
    text = text.translate(_STRIP_DELIMITERS)
    text = _TRAILING_SPACE_RE.sub("\n", text)
    return _BLANK_RUN_RE.sub("\n\n", text).strip()


def format_response(text: str) -> str:
    """Convert raw model output into deliverable Telegram Markdown."""
    if not text or not text.strip():
        return ""
    try:
        result = wrap_tables(text)
        stash = CodeStash()
        result = stash.protect(result)
        result = translate_html(result, stash)
        result = normalize_markdown(result)
        result = stash.restore(result)
        return repair_delimiters(result)
    except Exception:
        logger.exception("Response formatting failed, falling back to plain text")
        return strip_markup(text)
