"""Build descriptor data model.

A `BuildDescriptor` is the declarative plan for one module and one build kind.
It round-trips through a plain mapping (`to_dict` / `from_dict`) so callers can
supply partial overrides in the same shape and have them re-validated after a
merge.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from buildkit.errors import ConfigurationError
from buildkit.plugins import Plugin, plugin_to_dict, plugins_from_list

BuildKind: TypeAlias = Literal["script", "style"]
# Priority order: script descriptors always precede style descriptors for a module.
BUILD_KINDS: tuple[str, ...] = ("script", "style")

BuildMode: TypeAlias = Literal["development", "production"]
ALLOWED_BUILD_MODES: tuple[str, ...] = ("development", "production")

EntryMap: TypeAlias = dict[str, tuple[str, ...]]

DESCRIPTOR_FIELDS: tuple[str, ...] = (
    "name",
    "kind",
    "module",
    "mode",
    "entry",
    "output",
    "transform_rules",
    "plugins",
    "resolution",
    "devtool",
    "optimization",
    "stats",
)


def descriptor_name(kind: str, module_id: str) -> str:
    return f"{kind}-{module_id}"


def _require_mapping(raw: Any, *, path: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{path} must be a mapping (type={type(raw).__name__})")
    return raw


def _require_str(raw: Any, *, path: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigurationError(f"{path} must be a non-empty string")
    return raw.strip()


def _string_tuple(raw: Any, *, path: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise ConfigurationError(f"{path} must be a list[str] (type={type(raw).__name__})")
    items: list[str] = []
    for idx, item in enumerate(raw):
        items.append(_require_str(item, path=f"{path}[{idx}]"))
    return tuple(items)


def _reject_unknown_keys(raw: Mapping[str, Any], allowed: tuple[str, ...], *, path: str) -> None:
    unknown = sorted(str(key) for key in raw.keys() if key not in allowed)
    if unknown:
        raise ConfigurationError(
            f"Unknown keys under {path}: {', '.join(unknown)} (allowed: {', '.join(allowed)})"
        )


def normalize_entry_map(raw: Any, *, path: str = "entry") -> EntryMap:
    """Normalize an entry mapping; a bare string source becomes a 1-tuple."""

    mapping = _require_mapping(raw, path=path)
    entries: EntryMap = {}
    for name, sources in mapping.items():
        entry_name = _require_str(name, path=f"{path} key")
        if isinstance(sources, str):
            entries[entry_name] = (_require_str(sources, path=f"{path}.{entry_name}"),)
            continue
        normalized = _string_tuple(sources, path=f"{path}.{entry_name}")
        if not normalized:
            raise ConfigurationError(f"{path}.{entry_name} must list at least one source file")
        entries[entry_name] = normalized
    return entries


@dataclass(frozen=True)
class LoaderSpec:
    loader: str
    options: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"loader": self.loader, "options": dict(self.options)}

    @classmethod
    def from_dict(cls, raw: Any, *, path: str) -> "LoaderSpec":
        if isinstance(raw, LoaderSpec):
            return raw
        if isinstance(raw, str):
            return cls(loader=_require_str(raw, path=path))
        mapping = _require_mapping(raw, path=path)
        _reject_unknown_keys(mapping, ("loader", "options"), path=path)
        options = mapping.get("options") or {}
        return cls(
            loader=_require_str(mapping.get("loader"), path=f"{path}.loader"),
            options=dict(_require_mapping(options, path=f"{path}.options")),
        )


@dataclass(frozen=True)
class TransformRule:
    """Source transform: files matching `test` (minus `exclude`) run through `use` in order."""

    test: str
    use: tuple[LoaderSpec, ...]
    exclude: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "test": self.test,
            "exclude": list(self.exclude),
            "use": [loader.to_dict() for loader in self.use],
        }

    @classmethod
    def from_dict(cls, raw: Any, *, path: str) -> "TransformRule":
        if isinstance(raw, TransformRule):
            return raw
        mapping = _require_mapping(raw, path=path)
        _reject_unknown_keys(mapping, ("test", "exclude", "use"), path=path)
        test = _require_str(mapping.get("test"), path=f"{path}.test")
        try:
            re.compile(test)
        except re.error as exc:
            raise ConfigurationError(f"{path}.test is not a valid pattern: {test!r} ({exc})") from exc

        raw_use = mapping.get("use")
        if isinstance(raw_use, (str, Mapping)):
            raw_use = [raw_use]
        if not isinstance(raw_use, (list, tuple)) or not raw_use:
            raise ConfigurationError(f"{path}.use must be a non-empty list of loaders")
        return cls(
            test=test,
            use=tuple(LoaderSpec.from_dict(item, path=f"{path}.use[{idx}]") for idx, item in enumerate(raw_use)),
            exclude=_string_tuple(mapping.get("exclude"), path=f"{path}.exclude"),
        )


@dataclass(frozen=True)
class OutputConfig:
    path: str
    filename: str = "[name].js"
    chunk_filename: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "filename": self.filename, "chunk_filename": self.chunk_filename}

    @classmethod
    def from_dict(cls, raw: Any, *, path: str) -> "OutputConfig":
        mapping = _require_mapping(raw, path=path)
        _reject_unknown_keys(mapping, ("path", "filename", "chunk_filename"), path=path)
        chunk = mapping.get("chunk_filename")
        return cls(
            path=_require_str(mapping.get("path"), path=f"{path}.path"),
            filename=_require_str(mapping.get("filename", "[name].js"), path=f"{path}.filename"),
            chunk_filename=None if chunk is None else _require_str(chunk, path=f"{path}.chunk_filename"),
        )


@dataclass(frozen=True)
class ResolutionConfig:
    alias_table: dict[str, str] = field(default_factory=dict)
    search_directories: tuple[str, ...] = ()
    auxiliary_directory_search_enabled: bool = False
    plugins: tuple[Plugin, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "alias_table": dict(self.alias_table),
            "search_directories": list(self.search_directories),
            "auxiliary_directory_search_enabled": self.auxiliary_directory_search_enabled,
            "plugins": [plugin_to_dict(plugin) for plugin in self.plugins],
        }

    @classmethod
    def from_dict(cls, raw: Any, *, path: str) -> "ResolutionConfig":
        mapping = _require_mapping(raw, path=path)
        _reject_unknown_keys(
            mapping,
            ("alias_table", "search_directories", "auxiliary_directory_search_enabled", "plugins"),
            path=path,
        )
        aliases: dict[str, str] = {}
        for key, value in _require_mapping(mapping.get("alias_table") or {}, path=f"{path}.alias_table").items():
            alias = _require_str(key, path=f"{path}.alias_table key")
            aliases[alias] = _require_str(value, path=f"{path}.alias_table.{alias}")
        enabled = mapping.get("auxiliary_directory_search_enabled", False)
        if not isinstance(enabled, bool):
            raise ConfigurationError(
                f"{path}.auxiliary_directory_search_enabled must be a boolean (type={type(enabled).__name__})"
            )
        return cls(
            alias_table=aliases,
            search_directories=_string_tuple(mapping.get("search_directories"), path=f"{path}.search_directories"),
            auxiliary_directory_search_enabled=enabled,
            plugins=plugins_from_list(mapping.get("plugins"), path=f"{path}.plugins"),
        )


@dataclass(frozen=True)
class BuildDescriptor:
    name: str
    kind: BuildKind
    module: str
    mode: BuildMode
    entry: EntryMap
    output: OutputConfig
    transform_rules: tuple[TransformRule, ...]
    plugins: tuple[Plugin, ...]
    resolution: ResolutionConfig
    devtool: str | None = None
    optimization: dict[str, Any] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError("BuildDescriptor.name must be a non-empty string")
        object.__setattr__(self, "name", self.name.strip())
        if self.kind not in BUILD_KINDS:
            raise ConfigurationError(
                f"Invalid build kind for {self.name}: {self.kind!r} (allowed: {', '.join(BUILD_KINDS)})"
            )
        if self.mode not in ALLOWED_BUILD_MODES:
            raise ConfigurationError(
                f"Invalid build mode for {self.name}: {self.mode!r} (allowed: {', '.join(ALLOWED_BUILD_MODES)})"
            )
        if not self.entry:
            raise ConfigurationError(f"BuildDescriptor {self.name} has an empty entry map")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "module": self.module,
            "mode": self.mode,
            "entry": {name: list(sources) for name, sources in self.entry.items()},
            "output": self.output.to_dict(),
            "transform_rules": [rule.to_dict() for rule in self.transform_rules],
            "plugins": [plugin_to_dict(plugin) for plugin in self.plugins],
            "resolution": self.resolution.to_dict(),
            "devtool": self.devtool,
            "optimization": dict(self.optimization),
            "stats": dict(self.stats),
        }

    @classmethod
    def from_dict(cls, raw: Any, *, path: str = "descriptor") -> "BuildDescriptor":
        mapping = _require_mapping(raw, path=path)
        _reject_unknown_keys(mapping, DESCRIPTOR_FIELDS, path=path)
        name = _require_str(mapping.get("name"), path=f"{path}.name")
        here = f"{path}[{name}]"

        raw_rules = mapping.get("transform_rules") or []
        if not isinstance(raw_rules, (list, tuple)):
            raise ConfigurationError(f"{here}.transform_rules must be a list (type={type(raw_rules).__name__})")

        devtool = mapping.get("devtool")
        if devtool is not None and (not isinstance(devtool, str) or not devtool.strip()):
            raise ConfigurationError(f"{here}.devtool must be a non-empty string or null")

        return cls(
            name=name,
            kind=_require_str(mapping.get("kind"), path=f"{here}.kind"),  # type: ignore[arg-type]
            module=_require_str(mapping.get("module"), path=f"{here}.module"),
            mode=_require_str(mapping.get("mode"), path=f"{here}.mode"),  # type: ignore[arg-type]
            entry=normalize_entry_map(mapping.get("entry"), path=f"{here}.entry"),
            output=OutputConfig.from_dict(mapping.get("output"), path=f"{here}.output"),
            transform_rules=tuple(
                TransformRule.from_dict(item, path=f"{here}.transform_rules[{idx}]")
                for idx, item in enumerate(raw_rules)
            ),
            plugins=plugins_from_list(mapping.get("plugins"), path=f"{here}.plugins"),
            resolution=ResolutionConfig.from_dict(mapping.get("resolution") or {}, path=f"{here}.resolution"),
            devtool=devtool,
            optimization=dict(_require_mapping(mapping.get("optimization") or {}, path=f"{here}.optimization")),
            stats=dict(_require_mapping(mapping.get("stats") or {}, path=f"{here}.stats")),
        )
