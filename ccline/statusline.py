"""Rendering of collected segments into one ANSI-coloured status line."""

from __future__ import annotations

from collections.abc import Iterable

from ccline.config import (
    AnsiColor,
    Color16,
    Color256,
    Config,
    Rgb,
    SegmentConfig,
    SegmentId,
    StyleMode,
)
from ccline.input import InputData
from ccline.segments.base import Segment, SegmentData
from ccline.segments.context_window import ContextWindowSegment
from ccline.segments.cost import CostSegment
from ccline.segments.directory import DirectorySegment
from ccline.segments.git import GitSegment
from ccline.segments.model import ModelSegment
from ccline.segments.output_style import OutputStyleSegment
from ccline.segments.session import SessionSegment
from ccline.segments.usage import UsageSegment

POWERLINE_ARROW = "\ue0b0"
_RESET = "\x1b[0m"
_BG_RESET = "\x1b[49m"


def visible_width(text: str) -> int:
    """Number of characters in ``text`` once ANSI escape sequences are removed."""
    width = 0
    in_escape = False
    chars = iter(text)
    pending: str | None = None
    while True:
        if pending is not None:
            ch, pending = pending, None
        else:
            ch = next(chars, None)
            if ch is None:
                break
        if ch == "\x1b":
            in_escape = True
            following = next(chars, None)
            if following is None:
                break
            if following != "[":
                pending = following
        elif in_escape:
            if ch.isalpha():
                in_escape = False
        else:
            width += 1
    return width


def _foreground_number(color: Color16) -> int:
    return 30 + color.c16 if color.c16 < 8 else 90 + (color.c16 - 8)


def _background_number(color: Color16) -> int:
    return 40 + color.c16 if color.c16 < 8 else 100 + (color.c16 - 8)


def _foreground_code(color: AnsiColor) -> str:
    match color:
        case Color16():
            return f"\x1b[{_foreground_number(color)}m"
        case Color256(c256=c256):
            return f"\x1b[38;5;{c256}m"
        case Rgb(r=r, g=g, b=b):
            return f"\x1b[38;2;{r};{g};{b}m"
    raise TypeError(f"not a colour: {color!r}")


def _background_code(color: AnsiColor) -> str:
    match color:
        case Color16():
            return f"\x1b[{_background_number(color)}m"
        case Color256(c256=c256):
            return f"\x1b[48;5;{c256}m"
        case Rgb(r=r, g=g, b=b):
            return f"\x1b[48;2;{r};{g};{b}m"
    raise TypeError(f"not a colour: {color!r}")


def _apply_color(text: str, color: AnsiColor | None) -> str:
    if color is None:
        return text
    return f"{_foreground_code(color)}{text}{_RESET}"


def _apply_style(text: str, color: AnsiColor | None, bold: bool) -> str:
    codes: list[str] = []
    if bold:
        codes.append("1")
    match color:
        case Color16():
            codes.append(str(_foreground_number(color)))
        case Color256(c256=c256):
            codes.extend(["38", "5", str(c256)])
        case Rgb(r=r, g=g, b=b):
            codes.extend(["38", "2", str(r), str(g), str(b)])
    if not codes:
        return text
    return f"\x1b[{';'.join(codes)}m{text}{_RESET}"


def _powerline_arrow(prev_bg: AnsiColor | None, curr_bg: AnsiColor | None) -> str:
    if prev_bg is not None and curr_bg is not None:
        return f"{_background_code(curr_bg)}{_foreground_code(prev_bg)}{POWERLINE_ARROW}{_RESET}"
    if prev_bg is not None:
        return f"{_foreground_code(prev_bg)}{POWERLINE_ARROW}{_RESET}"
    if curr_bg is not None:
        return f"{_background_code(curr_bg)}{POWERLINE_ARROW}{_RESET}"
    return POWERLINE_ARROW


class StatusLineGenerator:
    """Turns segment configurations and data into the final status line text."""

    def __init__(self, config: Config) -> None:
        self.config = config

    def generate(self, segments: Iterable[tuple[SegmentConfig, SegmentData]]) -> str:
        """Inline segments on the first line, block segments on the lines below."""
        inline: list[tuple[str, SegmentConfig]] = []
        block_lines: list[str] = []

        for segment_config, data in segments:
            if not segment_config.enabled:
                continue
            rendered = self.render_segment(segment_config, data)
            if not rendered:
                continue
            if "block_display" in data.metadata or "\n" in rendered:
                block_lines.extend(line for line in rendered.split("\n") if line)
            else:
                inline.append((rendered, segment_config))

        if not inline and not block_lines:
            return ""

        if self.config.style.separator == POWERLINE_ARROW:
            result = self._join_with_powerline_arrows(inline)
        else:
            result = self._join_with_white_separators([text for text, _ in inline])

        return "".join([result, *("\n" + line for line in block_lines)])

    def render_segment(self, segment_config: SegmentConfig, data: SegmentData) -> str:
        """Render one segment: icon, primary and secondary text with colours."""
        icon = data.metadata.get("dynamic_icon")
        if icon is None:
            icon = self._icon(segment_config)
        colors = segment_config.colors
        bold = segment_config.styles.text_bold

        if colors.background is not None:
            icon_colored = (
                _apply_color(icon, colors.icon).replace(_RESET, "")
                if colors.icon is not None
                else icon
            )
            text_styled = _apply_style(data.primary, colors.text, bold).replace(_RESET, "")
            content = f" {text_styled} " if not icon else f" {icon_colored} {text_styled} "
            if data.secondary:
                secondary = _apply_style(data.secondary, colors.text, bold).replace(_RESET, "")
                content += f"{secondary} "
            return f"{_background_code(colors.background)}{content}{_BG_RESET}"

        icon_colored = _apply_color(icon, colors.icon)
        text_styled = _apply_style(data.primary, colors.text, bold)
        segment = text_styled if not icon else f"{icon_colored} {text_styled}"
        if data.secondary:
            segment += " " + _apply_style(data.secondary, colors.text, bold)
        return segment

    def _icon(self, segment_config: SegmentConfig) -> str:
        if self.config.style.mode is StyleMode.PLAIN:
            return segment_config.icon.plain
        return segment_config.icon.nerd_font

    def _join_with_white_separators(self, rendered: list[str]) -> str:
        separator = f"\x1b[37m{self.config.style.separator}{_RESET}"
        return separator.join(rendered)

    def _join_with_powerline_arrows(self, inline: list[tuple[str, SegmentConfig]]) -> str:
        if not inline:
            return ""
        if len(inline) == 1:
            return inline[0][0]
        parts = [inline[0][0]]
        for (_, prev_config), (text, curr_config) in zip(inline, inline[1:]):
            parts.append(
                _powerline_arrow(prev_config.colors.background, curr_config.colors.background)
            )
            parts.append(text)
        parts.append(_RESET)
        return "".join(parts)


def _segment_for(segment_config: SegmentConfig) -> Segment | None:
    match segment_config.id:
        case SegmentId.MODEL:
            return ModelSegment()
        case SegmentId.DIRECTORY:
            return DirectorySegment()
        case SegmentId.GIT:
            show_sha = segment_config.options.get("show_sha")
            return GitSegment(show_sha=show_sha if isinstance(show_sha, bool) else False)
        case SegmentId.CONTEXT_WINDOW:
            return ContextWindowSegment()
        case SegmentId.USAGE:
            return UsageSegment(segment_config=segment_config)
        case SegmentId.COST:
            return CostSegment()
        case SegmentId.SESSION:
            return SessionSegment()
        case SegmentId.OUTPUT_STYLE:
            return OutputStyleSegment()
    return None


def collect_all_segments(
    config: Config, input_data: InputData
) -> list[tuple[SegmentConfig, SegmentData]]:
    """Collect data for every enabled segment that has something to show."""
    results: list[tuple[SegmentConfig, SegmentData]] = []
    for segment_config in config.segments:
        if not segment_config.enabled:
            continue
        segment = _segment_for(segment_config)
        if segment is None:
            continue
        data = segment.collect(input_data)
        if data is not None:
            results.append((segment_config, data))
    return results