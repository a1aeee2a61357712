"""
Glob Pattern Matching

Redis-compatible glob semantics shared by MemoryStorage and the short-life
cache, so that both tiers agree on which keys a pattern selects:

- ``*`` matches any sequence (including empty)
- ``?`` matches exactly one character
- ``[abc]``, ``[a-z]`` and ``[^abc]`` match character classes
- ``\\x`` matches ``x`` literally
"""

import functools
import re
from typing import Pattern

GLOB_SPECIAL_CHARS = "\\*?[]"


def escape_glob(text: str) -> str:
    """Escape glob metacharacters so ``text`` matches only itself."""
    return "".join("\\" + ch if ch in GLOB_SPECIAL_CHARS else ch for ch in text)


@functools.lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern[str]:
    """Translate a glob pattern into a compiled regular expression.

    Args:
        pattern: Glob pattern

    Returns:
        Compiled regex that must match the whole key
    """
    parts = []
    i = 0
    n = len(pattern)

    while i < n:
        ch = pattern[i]
        if ch == "\\" and i + 1 < n:
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        elif ch == "[":
            end, char_class = _parse_class(pattern, i + 1)
            if end is None:
                # Unterminated class, treat bracket literally
                parts.append(re.escape(ch))
            else:
                parts.append(char_class)
                i = end
        else:
            parts.append(re.escape(ch))
        i += 1

    return re.compile("".join(parts), re.DOTALL)


def _parse_class(pattern: str, start: int):
    """Parse a ``[...]`` class starting after the opening bracket.

    Returns:
        Tuple of (index of closing bracket, regex class) or (None, None)
    """
    i = start
    n = len(pattern)
    negate = False
    if i < n and pattern[i] == "^":
        negate = True
        i += 1

    members = []
    while i < n and pattern[i] != "]":
        ch = pattern[i]
        if ch == "\\" and i + 1 < n:
            members.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if i + 2 < n and pattern[i + 1] == "-" and pattern[i + 2] != "]":
            low, high = ch, pattern[i + 2]
            if low > high:
                low, high = high, low
            members.append(f"{re.escape(low)}-{re.escape(high)}")
            i += 3
            continue
        members.append(re.escape(ch))
        i += 1

    if i >= n:
        return None, None

    body = "".join(members)
    if not body:
        # "[]" matches nothing, "[^]" matches any single character
        return i, "." if negate else "(?!)"
    return i, f"[{'^' if negate else ''}{body}]"


def glob_match(pattern: str, key: str) -> bool:
    """Check whether ``key`` matches the glob ``pattern``."""
    return compile_glob(pattern).fullmatch(key) is not None
