"""Status line configuration: style, segments, colours and their TOML form."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Union

import tomli_w


class ConfigError(ValueError):
    """Raised when a configuration is malformed or fails validation."""


class StyleMode(Enum):
    PLAIN = "plain"
    NERD_FONT = "nerd_font"
    POWERLINE = "powerline"


class SegmentId(Enum):
    MODEL = "model"
    DIRECTORY = "directory"
    GIT = "git"
    CONTEXT_WINDOW = "context_window"
    USAGE = "usage"
    COST = "cost"
    SESSION = "session"
    OUTPUT_STYLE = "output_style"
    UPDATE = "update"
    SUB2API = "sub2_api"

    @property
    def display_name(self) -> str:
        """CamelCase name, e.g. ``ContextWindow``."""
        return "".join(part.capitalize() for part in self.value.split("_"))


@dataclass(frozen=True)
class Color16:
    c16: int


@dataclass(frozen=True)
class Color256:
    c256: int


@dataclass(frozen=True)
class Rgb:
    r: int
    g: int
    b: int


AnsiColor = Union[Color16, Color256, Rgb]


def _is_u8(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 255


def color_from_dict(data: Any) -> AnsiColor:
    """Parse a colour table; variants are tried in the order c16, c256, rgb."""
    if not isinstance(data, Mapping):
        raise ConfigError(f"colour must be a table, got {data!r}")
    if _is_u8(data.get("c16")):
        return Color16(data["c16"])
    if _is_u8(data.get("c256")):
        return Color256(data["c256"])
    if all(_is_u8(data.get(channel)) for channel in ("r", "g", "b")):
        return Rgb(data["r"], data["g"], data["b"])
    raise ConfigError(f"data did not match any colour variant: {dict(data)!r}")


def color_to_dict(color: AnsiColor) -> dict[str, int]:
    match color:
        case Color16(c16=c16):
            return {"c16": c16}
        case Color256(c256=c256):
            return {"c256": c256}
        case Rgb(r=r, g=g, b=b):
            return {"r": r, "g": g, "b": b}
    raise ConfigError(f"not a colour: {color!r}")


def _field(data: Mapping[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    if not isinstance(data, Mapping):
        raise ConfigError(f"expected a table while reading `{key}`")
    if key not in data:
        raise ConfigError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, kind) or (kind is not bool and isinstance(value, bool)):
        raise ConfigError(f"invalid type for field `{key}`: {value!r}")
    return value


def _enum(enum_cls: type[Enum], value: str, what: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigError(f"unknown {what}: {value!r}") from None


def _optional_color(data: Mapping[str, Any], key: str) -> AnsiColor | None:
    value = data.get(key)
    return None if value is None else color_from_dict(value)


@dataclass
class IconConfig:
    plain: str
    nerd_font: str


@dataclass
class ColorConfig:
    icon: AnsiColor | None = None
    text: AnsiColor | None = None
    background: AnsiColor | None = None


@dataclass
class TextStyleConfig:
    text_bold: bool = False


@dataclass
class SegmentConfig:
    id: SegmentId
    enabled: bool
    icon: IconConfig
    colors: ColorConfig
    styles: TextStyleConfig = field(default_factory=TextStyleConfig)
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SegmentConfig:
        icon = _field(data, "icon", Mapping)
        colors = _field(data, "colors", Mapping)
        styles = _field(data, "styles", Mapping)
        return cls(
            id=_enum(SegmentId, _field(data, "id", str), "segment id"),
            enabled=_field(data, "enabled", bool),
            icon=IconConfig(
                plain=_field(icon, "plain", str),
                nerd_font=_field(icon, "nerd_font", str),
            ),
            colors=ColorConfig(
                icon=_optional_color(colors, "icon"),
                text=_optional_color(colors, "text"),
                background=_optional_color(colors, "background"),
            ),
            styles=TextStyleConfig(text_bold=_field(styles, "text_bold", bool)),
            options=dict(_field(data, "options", Mapping)),
        )

    def to_dict(self) -> dict[str, Any]:
        colors = {
            name: color_to_dict(color)
            for name, color in (
                ("icon", self.colors.icon),
                ("text", self.colors.text),
                ("background", self.colors.background),
            )
            if color is not None
        }
        return {
            "id": self.id.value,
            "enabled": self.enabled,
            "icon": {"plain": self.icon.plain, "nerd_font": self.icon.nerd_font},
            "colors": colors,
            "styles": {"text_bold": self.styles.text_bold},
            "options": dict(self.options),
        }


@dataclass
class StyleConfig:
    mode: StyleMode
    separator: str


@dataclass
class Config:
    style: StyleConfig
    segments: list[SegmentConfig]
    theme: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Config:
        style = _field(data, "style", Mapping)
        segments = _field(data, "segments", list)
        return cls(
            style=StyleConfig(
                mode=_enum(StyleMode, _field(style, "mode", str), "style mode"),
                separator=_field(style, "separator", str),
            ),
            segments=[SegmentConfig.from_dict(item) for item in segments],
            theme=_field(data, "theme", str),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "style": {"mode": self.style.mode.value, "separator": self.style.separator},
            "segments": [segment.to_dict() for segment in self.segments],
            "theme": self.theme,
        }

    def to_toml(self) -> str:
        try:
            return tomli_w.dumps(self.to_dict())
        except TypeError as exc:
            raise ConfigError(f"cannot serialise configuration: {exc}") from exc

    @classmethod
    def load_from_path(cls, path: str | Path) -> Config:
        """Read a configuration from a TOML file."""
        content = Path(path).read_text(encoding="utf-8")
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
        return cls.from_dict(data)

    def save(self, path: str | Path) -> None:
        """Write the configuration as TOML, creating parent directories."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.to_toml(), encoding="utf-8")

    def check(self) -> None:
        """Validate the configuration, raising ConfigError on problems."""
        if not self.segments:
            raise ConfigError("No segments configured")
        seen: set[SegmentId] = set()
        for segment in self.segments:
            if segment.id in seen:
                raise ConfigError(f"Duplicate segment ID: {segment.id.display_name}")
            seen.add(segment.id)