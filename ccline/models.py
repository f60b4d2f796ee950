"""Model display names and context-window limits, resolved from model IDs."""

from __future__ import annotations

import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ccline.config import ConfigError

DEFAULT_CONTEXT_LIMIT = 200_000
_U32_MAX = 2**32 - 1

_TEMPLATE = """\
# ccline model configuration
# Sets the name shown and the context-window size for each model.
# File location: ~/.claude/ccline/models.toml
#
# Claude models (Sonnet, Opus, Haiku) are recognised automatically, including
# their version numbers. Add entries here only to override them or to describe
# other models.

# Model entries use simple substring matching on the model ID and take
# priority over the built-in Claude model recognition.

# Example:
# [[models]]
# pattern = "my-model"
# display_name = "My Model"
# context_limit = 128000

# Context modifiers override the context limit and append a suffix to the
# display name. They are matched independently, so they compose:
#   model "Opus 4" + modifier " 1M" = "Opus 4 1M"

# Example:
# [[context_modifiers]]
# pattern = "[1m]"
# display_suffix = " 1M"
# context_limit = 1000000
"""


def _str_field(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise ConfigError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise ConfigError(f"invalid type for field `{key}`: {value!r}")
    return value


def _u32_field(data: Mapping[str, Any], key: str) -> int:
    if key not in data:
        raise ConfigError(f"missing field `{key}`")
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U32_MAX:
        raise ConfigError(f"invalid value for field `{key}`: {value!r}")
    return value


def _tables(data: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, Mapping) for item in value):
        raise ConfigError(f"`{key}` must be an array of tables")
    return value


@dataclass
class ModelEntry:
    pattern: str
    display_name: str
    context_limit: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModelEntry:
        return cls(
            pattern=_str_field(data, "pattern"),
            display_name=_str_field(data, "display_name"),
            context_limit=_u32_field(data, "context_limit"),
        )


@dataclass
class ContextModifier:
    """Overrides the context limit and appends a suffix, e.g. ``[1m]`` for 1M context."""

    pattern: str
    display_suffix: str
    context_limit: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContextModifier:
        return cls(
            pattern=_str_field(data, "pattern"),
            display_suffix=_str_field(data, "display_suffix"),
            context_limit=_u32_field(data, "context_limit"),
        )


@dataclass(frozen=True)
class _ModelFamily:
    """A Claude model family recognised by keyword, with version extraction.

    Matches both ``claude-{variant}-{major}[-{minor}]-{date}`` and
    ``claude-{major}[-{minor}]-{variant}-{date}``.  Version numbers end at a
    date suffix, a text qualifier, a context modifier or the end of the ID.
    """

    regex: re.Pattern[str]
    display_prefix: str
    context_limit: int

    @classmethod
    def build(cls, keyword: str, display_prefix: str, context_limit: int) -> _ModelFamily:
        kw = re.escape(keyword)
        pattern = (
            r"(?:(?P<pre_major>\d{1,2})(?:-(?P<pre_minor>\d{1,2}))?-" + kw
            + r"|" + kw + r"-(?P<post_major>\d{1,2})(?:-(?P<post_minor>\d{1,2}))?)"
            + r"(?:-\d{3,}|-[a-z]|\[|\Z)"
        )
        return cls(re.compile(pattern), display_prefix, context_limit)

    def match(self, model_id_lower: str) -> str | None:
        found = self.regex.search(model_id_lower)
        if found is None:
            return None
        major = found.group("post_major") or found.group("pre_major")
        if major is None:
            return None
        minor = found.group("post_minor") or found.group("pre_minor")
        version = f"{major}.{minor}" if minor is not None else major
        return f"{self.display_prefix} {version}"


_BUILTIN_FAMILIES = (
    _ModelFamily.build("sonnet", "Sonnet", DEFAULT_CONTEXT_LIMIT),
    _ModelFamily.build("opus", "Opus", DEFAULT_CONTEXT_LIMIT),
    _ModelFamily.build("haiku", "Haiku", DEFAULT_CONTEXT_LIMIT),
)


def match_builtin_family(model_id: str) -> tuple[str, int] | None:
    """Return ``(display_name, context_limit)`` for a recognised Claude model."""
    lowered = model_id.lower()
    for family in _BUILTIN_FAMILIES:
        name = family.match(lowered)
        if name is not None:
            return name, family.context_limit
    return None


def create_default_file(path: str | Path) -> None:
    """Write the commented models.toml template, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(_TEMPLATE, encoding="utf-8")


def _user_models_path(home: str | Path | None) -> Path | None:
    if home is None:
        try:
            home = Path.home()
        except RuntimeError:
            return None
    return Path(home) / ".claude" / "ccline" / "models.toml"


@dataclass
class ModelConfig:
    model_entries: list[ModelEntry] = field(default_factory=list)
    context_modifiers: list[ContextModifier] = field(default_factory=list)

    @classmethod
    def default(cls) -> ModelConfig:
        """Built-in entries for non-Claude models and the 1M context modifier."""
        return cls(
            model_entries=[
                ModelEntry("glm-4.5", "GLM-4.5", 128_000),
                ModelEntry("kimi-k2-turbo", "Kimi K2 Turbo", 128_000),
                ModelEntry("kimi-k2", "Kimi K2", 128_000),
                ModelEntry("qwen3-coder", "Qwen Coder", 256_000),
            ],
            context_modifiers=[ContextModifier("[1m]", " 1M", 1_000_000)],
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModelConfig:
        return cls(
            model_entries=[ModelEntry.from_dict(item) for item in _tables(data, "models")],
            context_modifiers=[
                ContextModifier.from_dict(item) for item in _tables(data, "context_modifiers")
            ],
        )

    @classmethod
    def load_from_file(cls, path: str | Path) -> ModelConfig:
        content = Path(path).read_text(encoding="utf-8")
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def load(cls, home: str | Path | None = None) -> ModelConfig:
        """Built-in config with the first loadable models.toml prepended.

        The user file under ``home`` is created from the template if missing;
        a ``models.toml`` in the working directory is tried next.
        """
        config = cls.default()
        user_path = _user_models_path(home)
        if user_path is not None and not user_path.exists():
            try:
                create_default_file(user_path)
            except OSError:
                pass

        candidates = [p for p in (user_path, Path("models.toml")) if p is not None]
        for path in candidates:
            if not path.exists():
                continue
            try:
                loaded = cls.load_from_file(path)
            except (OSError, ConfigError):
                continue
            return cls(
                model_entries=loaded.model_entries + config.model_entries,
                context_modifiers=loaded.context_modifiers + config.context_modifiers,
            )
        return config

    def _resolve(self, model_id: str) -> tuple[str | None, int, str | None]:
        lowered = model_id.lower()

        base_name: str | None = None
        base_limit: int | None = None
        entry = next((e for e in self.model_entries if e.pattern.lower() in lowered), None)
        if entry is not None:
            base_name, base_limit = entry.display_name, entry.context_limit
        elif (family := match_builtin_family(model_id)) is not None:
            base_name, base_limit = family

        modifier = next(
            (m for m in self.context_modifiers if m.pattern.lower() in lowered), None
        )

        display_name = base_name
        if base_name is not None and modifier is not None:
            display_name = base_name + modifier.display_suffix

        if modifier is not None:
            limit = modifier.context_limit
        elif base_limit is not None:
            limit = base_limit
        else:
            limit = DEFAULT_CONTEXT_LIMIT

        suffix = modifier.display_suffix if modifier is not None else None
        return display_name, limit, suffix

    def get_context_limit(self, model_id: str) -> int:
        """Modifier limit, else matched model limit, else the 200k default."""
        return self._resolve(model_id)[1]

    def try_get_context_limit(self, model_id: str) -> int | None:
        """The context limit, or None if neither a model nor a modifier matched."""
        name, limit, suffix = self._resolve(model_id)
        return limit if name is not None or suffix is not None else None

    def get_display_name(self, model_id: str) -> str | None:
        """Recognised display name with any modifier suffix, or None."""
        return self._resolve(model_id)[0]

    def get_display_suffix(self, model_id: str) -> str | None:
        """Suffix of the matching context modifier, if any."""
        return self._resolve(model_id)[2]