"""Segment showing rate-limit utilisation for the five-hour and seven-day windows."""

from __future__ import annotations

import http.client
import json
import os
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ccline.config import SegmentConfig, SegmentId
from ccline.input import InputData
from ccline.segments.base import Segment, SegmentData
from ccline.segments.usage_common import (
    UsageBarOpts,
    UsageData,
    _build_opener,
    get_setting_env,
    read_settings_json,
    render_usage_output,
)

DEFAULT_API_BASE = "https://api.anthropic.com"
_U64_MAX = 2**64 - 1

TokenProvider = Callable[[], "str | None"]


def _is_u64(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _U64_MAX


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class UsageOpts:
    base_url: str | None = None
    timeout: int = 5
    bar_width: int = 20
    bar_style: str = "cat"
    bar_colored: bool = True

    @classmethod
    def from_config(
        cls, segment_config: SegmentConfig | None, settings: Any = None
    ) -> UsageOpts:
        """Options from the segment, with the base URL falling back to settings and env."""
        options = segment_config.options if segment_config is not None else {}

        def opt_str(key: str) -> str | None:
            value = options.get(key)
            return value if isinstance(value, str) else None

        def opt_u64(key: str, default: int) -> int:
            value = options.get(key)
            return value if _is_u64(value) else default

        base_url = opt_str("api_base_url")
        if base_url is None:
            base_url = get_setting_env(settings, "ANTHROPIC_BASE_URL")
        if base_url is None:
            base_url = os.environ.get("ANTHROPIC_BASE_URL")

        bar_style = opt_str("bar_style")
        colored = options.get("bar_colored")
        return cls(
            base_url=base_url,
            timeout=opt_u64("timeout", 5),
            bar_width=opt_u64("bar_width", 20),
            bar_style="cat" if bar_style is None else bar_style,
            bar_colored=colored if isinstance(colored, bool) else True,
        )


def usage_from_rate_limits(input_data: InputData) -> UsageData | None:
    """Usage reported by the host on stdin, if either window is present."""
    limits = input_data.rate_limits
    if limits is None:
        return None
    five = limits.five_hour.used_percentage if limits.five_hour else None
    seven = limits.seven_day.used_percentage if limits.seven_day else None
    if five is None and seven is None:
        return None
    return UsageData(
        first_pct=five if five is not None else 0.0,
        first_label="5H",
        second_pct=seven if seven is not None else 0.0,
        second_label="7D",
    )


def _utilization(body: Any, window: str) -> float:
    value = body[window]["utilization"]
    if not _is_number(value):
        raise TypeError(f"utilization of {window} is not a number")
    return float(value)


def _fetch_oauth_usage(token: str, opts: UsageOpts, home: str | Path | None) -> UsageData | None:
    base = DEFAULT_API_BASE if opts.base_url is None else opts.base_url
    url = f"{base.rstrip('/')}/api/oauth/usage"
    try:
        request = urllib.request.Request(
            url,
            headers={
                "Authorization": f"Bearer {token}",
                "anthropic-beta": "oauth-2025-04-20",
            },
        )
        with _build_opener(home).open(request, timeout=opts.timeout) as response:
            body = json.load(response)
        first = _utilization(body, "five_hour")
        second = _utilization(body, "seven_day")
    except (OSError, ValueError, KeyError, TypeError, http.client.HTTPException):
        return None
    return UsageData(first_pct=first, first_label="5H", second_pct=second, second_label="7D")


class UsageSegment(Segment):
    """Usage bars from stdin rate limits, falling back to the OAuth usage endpoint.

    The OAuth source is only tried when a ``token_provider`` is given.
    """

    segment_id = SegmentId.USAGE

    def __init__(
        self,
        segment_config: SegmentConfig | None = None,
        token_provider: TokenProvider | None = None,
        home: str | Path | None = None,
    ) -> None:
        self._segment_config = segment_config
        self._token_provider = token_provider
        self._home = home

    def _from_oauth(self, opts: UsageOpts) -> UsageData | None:
        if self._token_provider is None:
            return None
        token = self._token_provider()
        if token is None:
            return None
        return _fetch_oauth_usage(token, opts, self._home)

    def collect(self, input_data: InputData) -> SegmentData | None:
        opts = UsageOpts.from_config(self._segment_config, read_settings_json(self._home))
        data = usage_from_rate_limits(input_data)
        if data is None:
            data = self._from_oauth(opts)
        if data is None:
            return None
        bar_opts = UsageBarOpts(
            bar_width=opts.bar_width, bar_style=opts.bar_style, bar_colored=opts.bar_colored
        )
        return render_usage_output(data, bar_opts)