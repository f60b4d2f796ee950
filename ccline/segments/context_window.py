"""Segment showing how much of the model's context window is in use."""

from __future__ import annotations

import math
import os
from pathlib import Path

from ccline.config import SegmentId
from ccline.input import InputData, TranscriptEntry, parse_transcript_entry
from ccline.models import ModelConfig
from ccline.segments.base import Segment, SegmentData
from ccline.segments.cost import _display_float


def _read_lines(path: Path) -> list[str] | None:
    """Lines of a file; None if it cannot be opened, empty if it is not UTF-8."""
    try:
        raw = path.read_bytes()
    except OSError:
        return None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _usage_of(entry: TranscriptEntry) -> int | None:
    if entry.message is None or entry.message.usage is None:
        return None
    return entry.message.usage.normalize().display_tokens()


def _entries(lines: list[str]):
    for line in lines:
        line = line.strip()
        if not line:
            continue
        entry = parse_transcript_entry(line)
        if entry is not None:
            yield entry


def _jsonl_files(directory: Path) -> list[Path] | None:
    try:
        children = sorted(directory.iterdir())
    except OSError:
        return None
    return [child for child in children if child.suffix == ".jsonl"]


def _find_assistant_usage(lines: list[str], target_uuid: str) -> int | None:
    for entry in _entries(lines):
        if entry.uuid == target_uuid and entry.type == "assistant":
            usage = _usage_of(entry)
            if usage is not None:
                return usage
    return None


def _search_uuid_in_file(path: Path, target_uuid: str) -> int | None:
    lines = _read_lines(path)
    if not lines:
        return None
    for entry in _entries(lines):
        if entry.uuid != target_uuid:
            continue
        if entry.type == "assistant":
            return _usage_of(entry)
        if entry.type == "user" and entry.parent_uuid is not None:
            return _find_assistant_usage(lines, entry.parent_uuid)
        return None
    return None


def _find_usage_by_leaf_uuid(leaf_uuid: str, project_dir: Path) -> int | None:
    for path in _jsonl_files(project_dir) or []:
        usage = _search_uuid_in_file(path, leaf_uuid)
        if usage is not None:
            return usage
    return None


def _try_parse_transcript_file(path: Path) -> int | None:
    lines = _read_lines(path)
    if not lines:
        return None

    last = parse_transcript_entry(lines[-1].strip())
    if last is not None and last.type == "summary" and last.leaf_uuid is not None:
        return _find_usage_by_leaf_uuid(last.leaf_uuid, path.parent)

    for entry in _entries(reversed(lines)):
        if entry.type == "assistant":
            usage = _usage_of(entry)
            if usage is not None:
                return usage
    return None


def _mtime(path: Path) -> float:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return 0.0


def _usage_from_project_history(transcript_path: Path) -> int | None:
    files = _jsonl_files(transcript_path.parent)
    if not files:
        return None
    for path in reversed(sorted(files, key=_mtime)):
        usage = _try_parse_transcript_file(path)
        if usage is not None:
            return usage
    return None


def parse_transcript_usage(transcript_path: str | Path) -> int | None:
    """Context tokens of the latest assistant turn in a session transcript.

    A transcript ending in a summary is followed to the message its leaf
    refers to; a missing transcript falls back to the most recent session
    file in the same project directory.
    """
    path = Path(transcript_path)
    usage = _try_parse_transcript_file(path)
    if usage is not None:
        return usage
    if not path.exists():
        return _usage_from_project_history(path)
    return None


def _usage_rate(tokens: int, limit: int) -> float:
    if limit == 0:
        return math.inf if tokens > 0 else math.nan
    return tokens / limit * 100.0


def _format_percentage(rate: float) -> str:
    if math.isnan(rate):
        return "NaN%"
    if rate.is_integer():
        return f"{rate:.0f}%"
    return f"{rate:.1f}%"


def _format_tokens(tokens: int) -> str:
    if tokens < 1000:
        return str(tokens)
    k_value = tokens / 1000
    return f"{int(k_value)}k" if k_value.is_integer() else f"{k_value:.1f}k"


class ContextWindowSegment(Segment):
    segment_id = SegmentId.CONTEXT_WINDOW

    def __init__(self, model_config: ModelConfig | None = None) -> None:
        self._model_config = model_config

    def _config(self) -> ModelConfig:
        return self._model_config if self._model_config is not None else ModelConfig.load()

    def collect(self, input_data: InputData) -> SegmentData | None:
        model_id = input_data.model.id
        limit = self._config().get_context_limit(model_id)
        tokens = parse_transcript_usage(input_data.transcript_path)

        if tokens is None:
            percentage = tokens_text = "-"
            metadata = {"tokens": "-", "percentage": "-"}
        else:
            rate = _usage_rate(tokens, limit)
            percentage = _format_percentage(rate)
            tokens_text = _format_tokens(tokens)
            metadata = {"tokens": str(tokens), "percentage": _display_float(rate)}
        metadata["limit"] = str(limit)
        metadata["model"] = model_id

        return SegmentData(primary=f"{percentage} · {tokens_text} tokens", metadata=metadata)