"""Line buffer entity for rendering monitor output."""

from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

# Business rules
MAX_CHARACTERS = 1_000_000
DEFAULT_SEPARATOR = "\n"


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Line:
    """A display line and the time its first fragment arrived."""

    text: str
    timestamp: datetime

    def is_closed(self, separator: str) -> bool:
        return self.text.endswith(separator)


@dataclass
class LineBuffer:
    """Merges raw fragments into lines and bounds total retained characters.

    Pure domain logic. When over the ceiling, characters are dropped from
    the front of the oldest line only; emptied lines are removed.
    """

    max_characters: int = MAX_CHARACTERS
    separator: str = DEFAULT_SEPARATOR
    clock: Callable[[], datetime] = _utc_now
    _lines: deque[Line] = field(default_factory=deque)
    _char_count: int = 0

    def __post_init__(self) -> None:
        if self.max_characters <= 0:
            raise ValueError("max_characters must be positive")
        if len(self.separator) != 1:
            raise ValueError("separator must be a single character")

    @property
    def char_count(self) -> int:
        """Characters currently retained."""
        return self._char_count

    @property
    def lines(self) -> list[Line]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add_batch(self, fragments: Iterable[str]) -> list[Line]:
        """Append a batch of fragments.

        Returns:
            Lines closed by this batch, in order.
        """
        closed: list[Line] = []
        for fragment in fragments:
            if not fragment:
                continue
            last = self._lines[-1] if self._lines else None
            if last is None or last.is_closed(self.separator):
                last = Line(fragment, self.clock())
                self._lines.append(last)
            else:
                last.text += fragment
            self._char_count += len(fragment)
            if last.is_closed(self.separator):
                closed.append(last)

        self._truncate()
        return closed

    def clear(self) -> None:
        self._lines.clear()
        self._char_count = 0

    def _truncate(self) -> None:
        excess = self._char_count - self.max_characters
        while excess > 0 and self._lines:
            first = self._lines[0]
            removed = min(excess, len(first.text))
            first.text = first.text[removed:]
            self._char_count -= removed
            excess -= removed
            if not first.text:
                self._lines.popleft()

    def __len__(self) -> int:
        """Return number of lines in buffer."""
        return len(self._lines)
