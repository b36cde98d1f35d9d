"""Delimiter repair for Telegram Markdown.

Telegram rejects a Markdown message outright when a ``*``, ``_``, `` ` ``
or ``~`` delimiter is left unpaired. This is a heuristic, not a parser:
when a delimiter class has an odd count its last occurrence is deleted,
which may move the boundary of the final emphasized span. Nested or
overlapping delimiters are not handled.
"""

import re

from admission_bot.formatting.spans import CodeStash

DELIMITERS = "*_~`"

LINK_RE = re.compile(r"\[([^\[\]\n]*)\]\(([^()\s]*)\)")
BACKTICK_RUN_RE = re.compile(r"`{3,}")
EMPTY_PAIR_RE = re.compile(r"\*\*|__|~~|(?<!`)``(?!`)")
UNDERSCORE_RUN_RE = re.compile(r"_{2,}")
TILDE_RUN_RE = re.compile(r"~{2,}")
TRIPLE_RE = re.compile(r"```")
LONE_BACKTICK_RE = re.compile(r"(?<!`)`(?!`)")

_STRIP_DELIMITERS = str.maketrans("", "", DELIMITERS)
_URL_ESCAPES = str.maketrans({"*": "%2A", "_": "%5F", "~": "%7E", "`": "%60"})


def escape_url(url: str) -> str:
    """Percent-encode delimiter characters so a URL carries none of them."""
    return url.translate(_URL_ESCAPES)


def _drop_last_if_odd(text: str, pattern: re.Pattern) -> str:
    matches = list(pattern.finditer(text))
    if len(matches) % 2 == 0:
        return text
    last = matches[-1]
    return text[: last.start()] + text[last.end() :]


def repair_delimiters(text: str) -> str:
    """Make every delimiter class outside code spans appear an even number of times."""
    if not text:
        return text

    stash = CodeStash()
    text = stash.protect(text)

    def _sanitize_link(m: re.Match) -> str:
        label = stash.unwrap(m.group(1)).translate(_STRIP_DELIMITERS)
        url = escape_url(stash.unwrap(m.group(2)))
        return f"[{label}]({url})"

    text = LINK_RE.sub(_sanitize_link, text)

    text = BACKTICK_RUN_RE.sub("```", text)
    text = EMPTY_PAIR_RE.sub("", text)
    text = UNDERSCORE_RUN_RE.sub("_", text)
    text = TILDE_RUN_RE.sub("~", text)

    text = _drop_last_if_odd(text, TRIPLE_RE)
    text = _drop_last_if_odd(text, LONE_BACKTICK_RE)
    for delimiter in "*_~":
        text = _drop_last_if_odd(text, re.compile(re.escape(delimiter)))

    return stash.restore(text)
