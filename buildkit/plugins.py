"""Closed set of plugin variants a descriptor can reference.

Plugins are data, not objects from the external build engine: each variant is a
frozen dataclass with a fixed set of configuration fields and a stable `kind`
tag used for (de)serialization.
"""

from __future__ import annotations

import difflib
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, ClassVar, TypeAlias

from buildkit.errors import ConfigurationError


@dataclass(frozen=True)
class ScriptLintPlugin:
    """Static analysis of script sources during the build."""

    kind: ClassVar[str] = "script-lint"


@dataclass(frozen=True)
class StyleOnlyEntriesPlugin:
    """Drops the empty script stub emitted for style-only entries."""

    kind: ClassVar[str] = "style-only-entries"

    silent: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.silent, bool):
            raise TypeError(
                f"StyleOnlyEntriesPlugin.silent must be a boolean (type={type(self.silent).__name__})"
            )


@dataclass(frozen=True)
class StyleExtractPlugin:
    """Emits extracted CSS files."""

    kind: ClassVar[str] = "style-extract"

    filename: str = "[name].css"

    def __post_init__(self) -> None:
        if not isinstance(self.filename, str) or not self.filename.strip():
            raise TypeError("StyleExtractPlugin.filename must be a non-empty string")
        object.__setattr__(self, "filename", self.filename.strip())


@dataclass(frozen=True)
class StyleLintPlugin:
    """Style linter."""

    kind: ClassVar[str] = "style-lint"


@dataclass(frozen=True)
class DirectorySearchPlugin:
    """Resolves imports by searching `directories` in order (first hit wins)."""

    kind: ClassVar[str] = "directory-search"

    directories: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.directories, str) or not isinstance(self.directories, (list, tuple)):
            raise TypeError(
                "DirectorySearchPlugin.directories must be a list[str] "
                f"(type={type(self.directories).__name__})"
            )
        items: list[str] = []
        for idx, item in enumerate(self.directories):
            if not isinstance(item, str) or not item.strip():
                raise TypeError(f"DirectorySearchPlugin.directories[{idx}] must be a non-empty string")
            items.append(item.strip())
        object.__setattr__(self, "directories", tuple(items))


Plugin: TypeAlias = (
    ScriptLintPlugin | StyleOnlyEntriesPlugin | StyleExtractPlugin | StyleLintPlugin | DirectorySearchPlugin
)

PLUGIN_TYPES: tuple[type, ...] = (
    ScriptLintPlugin,
    StyleOnlyEntriesPlugin,
    StyleExtractPlugin,
    StyleLintPlugin,
    DirectorySearchPlugin,
)

_BY_KIND: dict[str, type] = {cls.kind: cls for cls in PLUGIN_TYPES}


def plugin_kinds() -> tuple[str, ...]:
    return tuple(sorted(_BY_KIND.keys()))


def plugin_to_dict(plugin: Plugin) -> dict[str, Any]:
    if not isinstance(plugin, PLUGIN_TYPES):
        raise TypeError(f"Not a plugin variant: {type(plugin).__name__}")
    out: dict[str, Any] = {"kind": plugin.kind}
    for item in fields(plugin):
        value = getattr(plugin, item.name)
        out[item.name] = list(value) if isinstance(value, tuple) else value
    return out


def plugin_from_dict(raw: Any, *, path: str) -> Plugin:
    """Parse one plugin mapping (`{"kind": ..., **fields}`); variants pass through."""

    if isinstance(raw, PLUGIN_TYPES):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{path} must be a plugin mapping (type={type(raw).__name__})")

    kind = raw.get("kind")
    if not isinstance(kind, str) or not kind.strip():
        raise ConfigurationError(f"{path}.kind must be a non-empty string")
    cls = _BY_KIND.get(kind.strip())
    if cls is None:
        suggestions = difflib.get_close_matches(kind.strip(), list(_BY_KIND.keys()), n=3)
        hint = f" (did you mean: {', '.join(suggestions)})" if suggestions else ""
        raise ConfigurationError(
            f"Unknown plugin kind at {path}: {kind!r}{hint} (available: {', '.join(plugin_kinds())})"
        )

    allowed = {item.name for item in fields(cls)}
    unknown = sorted(str(key) for key in raw.keys() if key != "kind" and key not in allowed)
    if unknown:
        raise ConfigurationError(f"Unknown keys under {path} (kind={cls.kind}): {', '.join(unknown)}")

    kwargs = {key: value for key, value in raw.items() if key != "kind"}
    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid plugin at {path}: {exc}") from exc


def plugins_from_list(raw: Any, *, path: str) -> tuple[Plugin, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (str, Mapping)) or not isinstance(raw, (list, tuple)):
        raise ConfigurationError(f"{path} must be a list of plugins (type={type(raw).__name__})")
    return tuple(plugin_from_dict(item, path=f"{path}[{idx}]") for idx, item in enumerate(raw))
