"""Segment showing session duration and line changes."""

from __future__ import annotations

from ccline.config import SegmentId
from ccline.input import InputData
from ccline.segments.base import Segment, SegmentData

_GREEN = "\x1b[32m"
_RED = "\x1b[31m"
_RESET = "\x1b[0m"


def format_duration(ms: int) -> str:
    """Compact duration: ``ms`` below a second, then ``s``, ``m[s]`` and ``h[m]``."""
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms // 1000}s"
    if ms < 3_600_000:
        minutes, rest = divmod(ms, 60_000)
        seconds = rest // 1000
        return f"{minutes}m" if seconds == 0 else f"{minutes}m{seconds}s"
    hours, rest = divmod(ms, 3_600_000)
    minutes = rest // 60_000
    return f"{hours}h" if minutes == 0 else f"{hours}h{minutes}m"


def _line_changes(added: int | None, removed: int | None) -> str:
    plus = f"{_GREEN}+{added}{_RESET}"
    minus = f"{_RED}-{removed}{_RESET}"
    if added is not None and removed is not None:
        return f"{plus} {minus}" if added > 0 or removed > 0 else ""
    if added:
        return plus
    if removed:
        return minus
    return ""


class SessionSegment(Segment):
    segment_id = SegmentId.SESSION

    def collect(self, input_data: InputData) -> SegmentData | None:
        cost = input_data.cost
        if cost is None or cost.total_duration_ms is None:
            return None

        metadata = {"duration_ms": str(cost.total_duration_ms)}
        if cost.total_api_duration_ms is not None:
            metadata["api_duration_ms"] = str(cost.total_api_duration_ms)
        if cost.total_lines_added is not None:
            metadata["lines_added"] = str(cost.total_lines_added)
        if cost.total_lines_removed is not None:
            metadata["lines_removed"] = str(cost.total_lines_removed)

        return SegmentData(
            primary=format_duration(cost.total_duration_ms),
            secondary=_line_changes(cost.total_lines_added, cost.total_lines_removed),
            metadata=metadata,
        )