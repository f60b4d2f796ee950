"""Segment showing the session's total cost."""

from __future__ import annotations

import math
from decimal import Decimal

from ccline.config import SegmentId
from ccline.input import InputData
from ccline.segments.base import Segment, SegmentData


def _display_float(value: float) -> str:
    """Shortest round-tripping decimal form, without exponent or trailing ``.0``."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


class CostSegment(Segment):
    segment_id = SegmentId.COST

    def collect(self, input_data: InputData) -> SegmentData | None:
        cost = input_data.cost
        if cost is None or cost.total_cost_usd is None:
            return None
        total = cost.total_cost_usd
        primary = "$0" if total < 0.01 else f"${total:.2f}"
        return SegmentData(primary=primary, metadata={"cost": _display_float(total)})