"""Text splitting helpers for device output."""

import re

_LINE_BOUNDARY = re.compile(r"(?<=\n)")


def split_lines(text: str) -> list[str]:
    """Split text after each newline, keeping the newline characters.

    >>> split_lines("a\\nb\\n")
    ['a\\n', 'b\\n']
    """
    return [part for part in _LINE_BOUNDARY.split(text) if part]
