"""Placeholder stashing for code regions.

Fenced blocks and inline code are literal: rewrite rules and delimiter
counting must never look inside them. They are swapped for placeholders
made of characters no rule touches, and swapped back at the end.
"""

import re

FENCE_RE = re.compile(r"```[\s\S]*?```")
INLINE_CODE_RE = re.compile(r"`[^`\n]+`")
PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")


class CodeStash:
    def __init__(self) -> None:
        self._spans: list[str] = []

    def put(self, code: str) -> str:
        """Stash *code* and return its placeholder."""
        self._spans.append(code)
        return f"\x00{len(self._spans) - 1}\x00"

    def protect(self, text: str) -> str:
        """Replace every complete fence and inline code span."""
        text = FENCE_RE.sub(lambda m: self.put(m.group(0)), text)
        return INLINE_CODE_RE.sub(lambda m: self.put(m.group(0)), text)

    def _lookup(self, match: re.Match) -> str:
        index = int(match.group(1))
        return self._spans[index] if index < len(self._spans) else ""

    def unwrap(self, text: str) -> str:
        """Restore placeholders without the backtick markers of their spans."""
        return PLACEHOLDER_RE.sub(lambda m: self._lookup(m).strip("`"), text)

    def restore(self, text: str) -> str:
        # A stashed span can hold placeholders of spans stashed before it
        # (inline code inside an HTML <pre>), so repeat until none are left.
        for _ in range(len(self._spans) + 1):
            if not PLACEHOLDER_RE.search(text):
                break
            text = PLACEHOLDER_RE.sub(self._lookup, text)
        return text
