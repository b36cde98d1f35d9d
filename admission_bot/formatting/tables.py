"""Detect tabular blocks and fence them so they render monospaced."""

import re

from admission_bot.formatting.spans import FENCE_RE

# A bullet marker needs trailing whitespace, so "**Key:** value" is not a bullet
KEY_VALUE_RE = re.compile(r"^\s*[-*+•][ \t]+[^:\n]+:\s*\S")

# Literal regions: Markdown fences and HTML code, still untranslated at this point
LITERAL_RE = re.compile(
    FENCE_RE.pattern + r"|<pre\b[^<>]*>[\s\S]*?</pre\s*>|<code\b[^<>]*>[\s\S]*?</code\s*>",
    re.I,
)

# Minimum run of consecutive lines per block shape
MIN_LINES = {"pipe": 2, "single_pipe": 2, "key_value": 3}


def _shape(line: str) -> str | None:
    pipes = line.count("|")
    if pipes >= 2:
        return "pipe"
    if pipes == 1:
        return "single_pipe"
    if KEY_VALUE_RE.match(line):
        return "key_value"
    return None


def _wrap_segment(segment: str) -> str:
    lines = segment.split("\n")
    out: list[str] = []
    i = 0
    while i < len(lines):
        shape = _shape(lines[i])
        j = i + 1
        if shape is not None:
            while j < len(lines) and _shape(lines[j]) == shape:
                j += 1
        block = lines[i:j]
        if shape is not None and len(block) >= MIN_LINES[shape]:
            out.append("```\n" + "\n".join(block) + "\n```")
        else:
            out.extend(block)
        i = j
    return "\n".join(out)


def wrap_tables(text: str) -> str:
    """Fence pipe tables, single-pipe columns and bulleted key: value lists.

    Text already inside a fence or an HTML ``<pre>``/``<code>`` element is
    left alone, so running this twice is the same as running it once.
    """
    parts: list[str] = []
    pos = 0
    for literal in LITERAL_RE.finditer(text):
        parts.append(_wrap_segment(text[pos : literal.start()]))
        parts.append(literal.group(0))
        pos = literal.end()
    parts.append(_wrap_segment(text[pos:]))
    return "".join(parts)
