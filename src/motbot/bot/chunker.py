"""Split long replies into Telegram-sized messages."""

from __future__ import annotations

import logging

_logger = logging.getLogger(__name__)

#: Characters reserved for the ``(Part i/n)`` marker line.
PART_MARKER_RESERVE = 24

_ELLIPSIS = "…"


def part_marker(index: int, total: int) -> str:
    return f"(Part {index}/{total})"


def split_message(text: str, max_length: int) -> list[str]:
    """Split *text* at line boundaries into segments of at most *max_length*.

    Joining the result with ``"\\n"`` gives back *text* exactly. A line that
    is longer than *max_length* on its own becomes a segment of its own and
    is not split further, so such a segment is the only one that may exceed
    the budget.
    """
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")
    if len(text) <= max_length:
        return [text]

    segments: list[str] = []
    current: list[str] = []
    current_len = 0
    for line in text.split("\n"):
        if current and current_len + 1 + len(line) > max_length:
            segments.append("\n".join(current))
            current = []
            current_len = 0
        current_len += len(line) + (1 if current else 0)
        current.append(line)
    segments.append("\n".join(current))
    return segments


def _truncate(segment: str, max_length: int) -> str:
    if len(segment) <= max_length:
        return segment
    _logger.warning("Truncating a %d character line to fit %d characters", len(segment), max_length)
    return segment[: max_length - len(_ELLIPSIS)] + _ELLIPSIS


def paginate(text: str, max_length: int) -> list[str]:
    """Return the messages to send for *text*, each at most *max_length* long.

    A reply that fits is sent as-is. Otherwise it is split with room for a
    ``(Part i/n)`` marker line, which is prefixed to every message after the
    first. Whitespace-only segments are dropped and any segment that is
    still too long (a single oversized line) is truncated.
    """
    if len(text) <= max_length:
        return [text]

    budget = max(max_length - PART_MARKER_RESERVE, 1)
    segments = [segment for segment in split_message(text, budget) if segment.strip()]
    if not segments:
        return [_truncate(text, max_length)]

    total = len(segments)
    messages: list[str] = []
    for index, segment in enumerate(segments, start=1):
        if index > 1:
            segment = f"{part_marker(index, total)}\n{segment}"
        messages.append(_truncate(segment, max_length))
    return messages
