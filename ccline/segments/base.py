"""Common types for status line segments."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from ccline.config import SegmentId
from ccline.input import InputData


@dataclass
class SegmentData:
    """What a segment displays, plus free-form metadata for the renderer."""

    primary: str
    secondary: str = ""
    metadata: dict[str, str] = field(default_factory=dict)


class Segment(ABC):
    """A source of one piece of the status line."""

    segment_id: ClassVar[SegmentId]

    @abstractmethod
    def collect(self, input_data: InputData) -> SegmentData | None:
        """Gather this segment's data, or None when there is nothing to show."""