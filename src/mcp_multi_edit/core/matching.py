"""Exact-substring occurrence search and replacement.

Matches are literal (whitespace included). Case-insensitive matching
escapes the search text and uses re.IGNORECASE, which folds case one
character at a time, so offsets stay valid in the original.
"""

import re


def find_all_matches(
    content: str,
    search: str,
    *,
    case_insensitive: bool = False,
) -> list[tuple[int, int]]:
    """Find all non-overlapping occurrences of search, return (start, end) spans."""
    if not search:
        return []

    if case_insensitive:
        pattern = re.compile(re.escape(search), re.IGNORECASE)
        return [m.span() for m in pattern.finditer(content)]

    matches = []
    start = 0
    while True:
        pos = content.find(search, start)
        if pos == -1:
            break
        matches.append((pos, pos + len(search)))
        start = pos + len(search)
    return matches


def get_line_number(content: str, char_index: int) -> int:
    """Return the 1-based line number containing char_index."""
    return content.count("\n", 0, char_index) + 1


def get_match_line_numbers(
    content: str,
    search: str,
    *,
    case_insensitive: bool = False,
) -> list[int]:
    """Return the 1-based line number of every occurrence of search."""
    spans = find_all_matches(content, search, case_insensitive=case_insensitive)
    return [get_line_number(content, start) for start, _ in spans]


def replace_spans(content: str, spans: list[tuple[int, int]], new_string: str) -> str:
    """Replace each (start, end) span with new_string.

    Spans are applied from end to start so earlier offsets stay valid.
    """
    for start, end in sorted(spans, key=lambda s: s[0], reverse=True):
        content = content[:start] + new_string + content[end:]
    return content
