"""Shared pieces of the usage segments: bars, countdowns, settings and timestamps."""

from __future__ import annotations

import json
import math
import os
import re
import time
import urllib.request
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from itertools import pairwise
from pathlib import Path
from typing import Any

from ccline.segments.base import SegmentData
from ccline.segments.cost import _display_float

_STOPS: tuple[tuple[float, int, int, int], ...] = (
    (0.00, 0, 200, 180),  # teal
    (0.20, 76, 210, 100),  # green
    (0.40, 180, 230, 60),  # lime
    (0.60, 255, 220, 40),  # yellow
    (0.80, 255, 140, 0),  # orange
    (1.00, 240, 60, 50),  # red
)
_PARTIALS = " ▏▎▍▌▋▊▉"
_BRACKET = "\x1b[38;2;70;70;70m"
_DIM = "\x1b[38;2;40;40;40m"

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


@dataclass
class UsageData:
    """Two utilisation windows, each with a label and optional seconds to reset."""

    first_pct: float
    first_label: str
    second_pct: float
    second_label: str
    first_resets_in: int | None = None
    second_resets_in: int | None = None


@dataclass
class UsageBarOpts:
    bar_width: int = 20
    bar_style: str = "cat"
    bar_colored: bool = True


def _round_half_away(value: float) -> int:
    """Round a non-negative float, halves going up."""
    whole = math.floor(value)
    return whole + 1 if value - whole >= 0.5 else whole


def _round_u8(value: float) -> int:
    if math.isnan(value):
        return 0
    rounded = math.floor(abs(value) + 0.5) if abs(value) != math.inf else math.inf
    rounded = rounded if value >= 0 else -rounded
    return int(min(max(rounded, 0), 255))


def lerp(a: int, b: int, t: float) -> int:
    """Linear interpolation between two byte values, clamped to 0..255."""
    value = a + (b - a) * t
    if math.isnan(value):
        return 0
    return int(min(max(value, 0.0), 255.0))


def heat_color(t: float) -> tuple[int, int, int]:
    """Heat-map colour for ``t`` in 0..1: teal, green, lime, yellow, orange, red."""
    t = min(max(t, 0.0), 1.0)
    lower, upper = next(
        ((low, high) for low, high in pairwise(_STOPS) if t <= high[0]),
        (_STOPS[-2], _STOPS[-1]),
    )
    t0, r0, g0, b0 = lower
    t1, r1, g1, b1 = upper
    s = min(max((t - t0) / (t1 - t0), 0.0), 1.0)
    return lerp(r0, r1, s), lerp(g0, g1, s), lerp(b0, b1, s)


def generate_bar(percentage: float, width: int, style: str = "", colored: bool = True) -> str:
    """Progress bar with eighth-block precision, optionally heat-coloured."""
    clamped = 0.0 if math.isnan(percentage) else min(max(percentage, 0.0), 100.0)
    fill_exact = clamped / 100.0 * width
    filled = math.floor(fill_exact)
    partial_index = _round_half_away((fill_exact - filled) * 8.0)
    has_partial = partial_index > 0 and filled < width
    empty = width - filled - (1 if has_partial else 0)
    partial = _PARTIALS[min(partial_index, 7)] if has_partial else ""

    if not colored:
        return f"▕{'█' * filled}{partial}{'░' * empty}▏"

    parts = [f"{_BRACKET}▕"]
    for cell in range(filled):
        r, g, b = heat_color((cell + 0.5) / width)
        parts.append(f"\x1b[38;2;{r};{g};{b}m█")
    if has_partial:
        r, g, b = heat_color(filled / width)
        parts.append(f"\x1b[38;2;{r};{g};{b}m{partial}")
    if empty > 0:
        parts.append(f"{_DIM}{'░' * empty}")
    parts.append(f"{_BRACKET}▏")
    return "".join(parts)


def format_countdown(secs: int | None) -> str:
    """Styled countdown with a pulsing dot, or an empty string if not positive."""
    if secs is None or secs <= 0:
        return ""
    if secs >= 86400:
        days, hours = secs // 86400, (secs % 86400) // 3600
        text = f"{days}d {hours}h" if hours > 0 else f"{days}d"
    elif secs >= 3600:
        hours, minutes = secs // 3600, (secs % 3600) // 60
        text = f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"
    else:
        text = f"{max(secs // 60, 1)}m"
    dot_color = "0;220;180" if int(time.time()) % 2 == 0 else "0;140;120"
    return f" \x1b[38;2;{dot_color}m◆\x1b[38;2;100;100;100m {text}"


def _home_dir(home: str | Path | None) -> str | None:
    if home is not None:
        return str(home)
    return os.environ.get("HOME") or os.environ.get("USERPROFILE")


def read_settings_json(home: str | Path | None = None) -> Any | None:
    """Parsed ``~/.claude/settings.json``, or None if missing or invalid."""
    base = _home_dir(home)
    if base is None:
        return None
    try:
        content = Path(f"{base}/.claude/settings.json").read_text(encoding="utf-8")
        return json.loads(content)
    except (OSError, ValueError):
        return None


def get_setting_env(settings: Any, key: str) -> str | None:
    """String value of ``env.<key>`` in the settings, if present."""
    if not isinstance(settings, dict):
        return None
    env = settings.get("env")
    if not isinstance(env, dict):
        return None
    value = env.get(key)
    return value if isinstance(value, str) else None


def get_proxy_from_settings(home: str | Path | None = None) -> str | None:
    settings = read_settings_json(home)
    if settings is None:
        return None
    proxy = get_setting_env(settings, "HTTPS_PROXY")
    return proxy if proxy is not None else get_setting_env(settings, "HTTP_PROXY")


def _build_opener(home: str | Path | None = None) -> urllib.request.OpenerDirector:
    """URL opener honouring a proxy configured in the settings file."""
    proxy = get_proxy_from_settings(home)
    if proxy is not None:
        return urllib.request.build_opener(
            urllib.request.ProxyHandler({"http": proxy, "https": proxy})
        )
    return urllib.request.build_opener()


def cache_dir(home: str | Path | None = None) -> Path | None:
    if home is None:
        try:
            home = Path.home()
        except RuntimeError:
            return None
    return Path(home) / ".claude" / "ccline"


def _parse_rfc3339(ts: str) -> datetime | None:
    found = _RFC3339.fullmatch(ts)
    if found is None:
        return None
    year, month, day, hour, minute, second, fraction, offset = found.groups()
    micro = int((fraction or "")[:6].ljust(6, "0"))
    try:
        if offset in ("Z", "z"):
            tz = timezone.utc
        else:
            sign = -1 if offset[0] == "-" else 1
            delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
            tz = timezone(sign * delta)
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tz
        )
    except ValueError:
        return None


def _seconds_since(moment: datetime) -> int:
    return int((datetime.now(timezone.utc) - moment) / timedelta(seconds=1))


def is_timestamp_valid(ts: str, ttl: int) -> bool:
    """True if the RFC 3339 timestamp is less than ``ttl`` seconds old."""
    moment = _parse_rfc3339(ts)
    return moment is not None and _seconds_since(moment) < ttl


def elapsed_secs(ts: str) -> int:
    """Whole seconds since the RFC 3339 timestamp, 0 if it cannot be parsed."""
    moment = _parse_rfc3339(ts)
    return 0 if moment is None else _seconds_since(moment)


def render_usage_output(data: UsageData, bar_opts: UsageBarOpts) -> SegmentData:
    """Render both usage windows as a block segment."""
    first_bar = generate_bar(
        data.first_pct, bar_opts.bar_width, bar_opts.bar_style, bar_opts.bar_colored
    )
    second_bar = generate_bar(
        data.second_pct, bar_opts.bar_width, bar_opts.bar_style, bar_opts.bar_colored
    )
    primary = (
        f"{data.first_label} {first_bar} {_round_u8(data.first_pct)}%"
        f"{format_countdown(data.first_resets_in)}  "
        f"{data.second_label} {second_bar} {_round_u8(data.second_pct)}%"
        f"{format_countdown(data.second_resets_in)}"
    )
    return SegmentData(
        primary=primary,
        metadata={
            "dynamic_icon": "",
            "block_display": "true",
            "five_hour_utilization": _display_float(data.first_pct),
            "seven_day_utilization": _display_float(data.second_pct),
        },
    )