"""Segment showing the name of the working directory."""

from __future__ import annotations

from ccline.config import SegmentId
from ccline.input import InputData
from ccline.segments.base import Segment, SegmentData


def extract_directory_name(path: str) -> str:
    """Last component of a Unix or Windows path, ``root`` if it is empty."""
    unix_name = path.rsplit("/", 1)[-1]
    windows_name = path.rsplit("\\", 1)[-1]
    if len(windows_name) < len(path):
        result = windows_name
    elif len(unix_name) < len(path):
        result = unix_name
    else:
        result = path
    return result or "root"


class DirectorySegment(Segment):
    segment_id = SegmentId.DIRECTORY

    def collect(self, input_data: InputData) -> SegmentData | None:
        current_dir = input_data.workspace.current_dir
        return SegmentData(
            primary=extract_directory_name(current_dir),
            metadata={"full_path": current_dir},
        )