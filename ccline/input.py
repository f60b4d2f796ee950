"""Data read from the host on stdin and from session transcripts."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1


def _as_object(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object, got {value!r}")
    return value


def _req_str(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _opt_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _check_uint(value: Any, key: str, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise ValueError(f"field `{key}` must be an unsigned integer, got {value!r}")
    return value


def _opt_uint(data: Mapping[str, Any], key: str, maximum: int = _U32_MAX) -> int | None:
    value = data.get(key)
    return None if value is None else _check_uint(value, key, maximum)


def _opt_float(data: Mapping[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field `{key}` must be a number")
    return float(value)


def _opt_object(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = data.get(key)
    return None if value is None else _as_object(value, key)


@dataclass
class Model:
    id: str
    display_name: str


@dataclass
class Workspace:
    current_dir: str


@dataclass
class Cost:
    total_cost_usd: float | None = None
    total_duration_ms: int | None = None
    total_api_duration_ms: int | None = None
    total_lines_added: int | None = None
    total_lines_removed: int | None = None


@dataclass
class OutputStyle:
    name: str


@dataclass
class RateLimitPeriod:
    used_percentage: float | None = None


@dataclass
class RateLimits:
    five_hour: RateLimitPeriod | None = None
    seven_day: RateLimitPeriod | None = None


def _period(data: Mapping[str, Any], key: str) -> RateLimitPeriod | None:
    obj = _opt_object(data, key)
    return None if obj is None else RateLimitPeriod(_opt_float(obj, "used_percentage"))


@dataclass
class InputData:
    model: Model
    workspace: Workspace
    transcript_path: str
    cost: Cost | None = None
    output_style: OutputStyle | None = None
    rate_limits: RateLimits | None = None

    @classmethod
    def from_dict(cls, data: Any) -> InputData:
        data = _as_object(data, "input")
        if "model" not in data:
            raise ValueError("missing field `model`")
        if "workspace" not in data:
            raise ValueError("missing field `workspace`")
        model = _as_object(data["model"], "model")
        workspace = _as_object(data["workspace"], "workspace")

        cost = None
        if (cost_obj := _opt_object(data, "cost")) is not None:
            cost = Cost(
                total_cost_usd=_opt_float(cost_obj, "total_cost_usd"),
                total_duration_ms=_opt_uint(cost_obj, "total_duration_ms", _U64_MAX),
                total_api_duration_ms=_opt_uint(cost_obj, "total_api_duration_ms", _U64_MAX),
                total_lines_added=_opt_uint(cost_obj, "total_lines_added"),
                total_lines_removed=_opt_uint(cost_obj, "total_lines_removed"),
            )

        output_style = None
        if (style_obj := _opt_object(data, "output_style")) is not None:
            output_style = OutputStyle(_req_str(style_obj, "name"))

        rate_limits = None
        if (limits_obj := _opt_object(data, "rate_limits")) is not None:
            rate_limits = RateLimits(
                five_hour=_period(limits_obj, "five_hour"),
                seven_day=_period(limits_obj, "seven_day"),
            )

        return cls(
            model=Model(id=_req_str(model, "id"), display_name=_req_str(model, "display_name")),
            workspace=Workspace(current_dir=_req_str(workspace, "current_dir")),
            transcript_path=_req_str(data, "transcript_path"),
            cost=cost,
            output_style=output_style,
            rate_limits=rate_limits,
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> InputData:
        return cls.from_dict(json.loads(text))


@dataclass
class PromptTokensDetails:
    cached_tokens: int | None = None
    audio_tokens: int | None = None


@dataclass
class NormalizedUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    calculation_source: str = ""
    raw_data_available: list[str] = field(default_factory=list)

    def context_tokens(self) -> int:
        """Tokens occupying the context window, including this turn's output."""
        return (
            self.input_tokens
            + self.cache_creation_input_tokens
            + self.cache_read_input_tokens
            + self.output_tokens
        )

    def total_for_cost(self) -> int:
        if self.total_tokens > 0:
            return self.total_tokens
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_creation_input_tokens
            + self.cache_read_input_tokens
        )

    def display_tokens(self) -> int:
        """Context tokens if any, else the reported total, else the larger side."""
        context = self.context_tokens()
        if context > 0:
            return context
        if self.total_tokens > 0:
            return self.total_tokens
        return max(self.input_tokens, self.output_tokens)


_RAW_USAGE_KEYS = frozenset(
    {
        "input_tokens",
        "prompt_tokens",
        "output_tokens",
        "completion_tokens",
        "total_tokens",
        "cache_creation_input_tokens",
        "cache_read_input_tokens",
        "cache_creation_prompt_tokens",
        "cache_read_prompt_tokens",
        "cached_tokens",
        "prompt_tokens_details",
        "completion_tokens_details",
    }
)


@dataclass
class RawUsage:
    """Token usage as reported by any provider, Anthropic or OpenAI style."""

    input_tokens: int | None = None
    prompt_tokens: int | None = None
    output_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None
    cache_creation_prompt_tokens: int | None = None
    cache_read_prompt_tokens: int | None = None
    cached_tokens: int | None = None
    prompt_tokens_details: PromptTokensDetails | None = None
    completion_tokens_details: dict[str, int] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> RawUsage:
        data = _as_object(data, "usage")
        details = None
        if (details_obj := _opt_object(data, "prompt_tokens_details")) is not None:
            details = PromptTokensDetails(
                cached_tokens=_opt_uint(details_obj, "cached_tokens"),
                audio_tokens=_opt_uint(details_obj, "audio_tokens"),
            )
        completion_details = None
        if (completion_obj := _opt_object(data, "completion_tokens_details")) is not None:
            completion_details = {
                key: _check_uint(value, key, _U32_MAX) for key, value in completion_obj.items()
            }
        return cls(
            input_tokens=_opt_uint(data, "input_tokens"),
            prompt_tokens=_opt_uint(data, "prompt_tokens"),
            output_tokens=_opt_uint(data, "output_tokens"),
            completion_tokens=_opt_uint(data, "completion_tokens"),
            total_tokens=_opt_uint(data, "total_tokens"),
            cache_creation_input_tokens=_opt_uint(data, "cache_creation_input_tokens"),
            cache_read_input_tokens=_opt_uint(data, "cache_read_input_tokens"),
            cache_creation_prompt_tokens=_opt_uint(data, "cache_creation_prompt_tokens"),
            cache_read_prompt_tokens=_opt_uint(data, "cache_read_prompt_tokens"),
            cached_tokens=_opt_uint(data, "cached_tokens"),
            prompt_tokens_details=details,
            completion_tokens_details=completion_details,
            extra={key: value for key, value in data.items() if key not in _RAW_USAGE_KEYS},
        )

    def normalize(self) -> NormalizedUsage:
        """Merge provider-specific fields, preferring Anthropic names."""

        def first(*values: int | None) -> int:
            return next((value for value in values if value is not None), 0)

        nested_cached = (
            self.prompt_tokens_details.cached_tokens if self.prompt_tokens_details else None
        )
        input_tokens = first(self.input_tokens, self.prompt_tokens)
        output_tokens = first(self.output_tokens, self.completion_tokens)
        total = first(self.total_tokens)
        cache_creation = first(self.cache_creation_input_tokens, self.cache_creation_prompt_tokens)
        cache_read = first(
            self.cache_read_input_tokens,
            self.cache_read_prompt_tokens,
            self.cached_tokens,
            nested_cached,
        )

        available = [
            name
            for name, value in (
                ("input_tokens", input_tokens),
                ("output_tokens", output_tokens),
                ("total_tokens", total),
                ("cache_creation", cache_creation),
                ("cache_read", cache_read),
            )
            if value > 0
        ]

        sources: list[str] = []
        if total > 0:
            sources.append("total_tokens_direct")
            total_value = total
        elif input_tokens or output_tokens or cache_read or cache_creation:
            sources.append("total_from_components")
            total_value = input_tokens + output_tokens + cache_read + cache_creation
        else:
            total_value = 0

        return NormalizedUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=total_value,
            cache_creation_input_tokens=cache_creation,
            cache_read_input_tokens=cache_read,
            calculation_source="+".join(sources),
            raw_data_available=available,
        )


@dataclass
class Message:
    usage: RawUsage | None = None


@dataclass
class TranscriptEntry:
    type: str | None = None
    message: Message | None = None
    leaf_uuid: str | None = None
    uuid: str | None = None
    parent_uuid: str | None = None
    summary: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> TranscriptEntry:
        data = _as_object(data, "transcript entry")
        message = None
        if (message_obj := _opt_object(data, "message")) is not None:
            usage_obj = message_obj.get("usage")
            message = Message(usage=None if usage_obj is None else RawUsage.from_dict(usage_obj))
        return cls(
            type=_opt_str(data, "type"),
            message=message,
            leaf_uuid=_opt_str(data, "leafUuid"),
            uuid=_opt_str(data, "uuid"),
            parent_uuid=_opt_str(data, "parentUuid"),
            summary=_opt_str(data, "summary"),
        )


def parse_transcript_entry(line: str) -> TranscriptEntry | None:
    """Parse one JSON line of a transcript, or return None if it is not valid."""
    try:
        return TranscriptEntry.from_dict(json.loads(line))
    except ValueError:
        return None