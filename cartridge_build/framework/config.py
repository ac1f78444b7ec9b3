from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from buildkit.descriptor import ALLOWED_BUILD_MODES, BUILD_KINDS, DESCRIPTOR_FIELDS, BuildMode
from buildkit.errors import ConfigurationError
from buildkit.merge import merge_values, normalize_strategy_table, validate_override

Scope = Literal["js", "styles"]
SCOPES: tuple[str, ...] = ("js", "styles")

TOP_LEVEL_KEYS: tuple[str, ...] = (
    "strict",
    "build",
    "modules",
    "layout",
    "resolution",
    "naming",
    "scopes",
    "overrides",
    "merge_strategy",
)
SCOPED_KEYS: tuple[str, ...] = ("modules", "naming", "resolution")

DEFAULT_MAIN_FILES: dict[str, tuple[str, ...]] = {"script": ("main.js",), "style": ("main.scss",)}
DEFAULT_SOURCE_DIRS: dict[str, str] = {
    "script": "cartridge/client/default/js",
    "style": "cartridge/client/default/scss",
}
DEFAULT_OUTPUT_DIRS: dict[str, str] = {
    "script": "cartridge/static/default/js",
    "style": "cartridge/static/default/css",
}


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts True/False, 0/1 and the strings true/false/1/0/yes/no
    (case-insensitive). Anything else raises ConfigurationError naming `path`.
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ConfigurationError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
    raise ConfigurationError(f"Invalid boolean for {path}: {value!r}")


def parse_string_list(value: Any, path: str, *, split: bool = False) -> tuple[str, ...]:
    """Parse a list[str]; with `split`, a string is split on commas/whitespace."""

    if value is None:
        return ()
    if isinstance(value, str):
        if not split:
            raise ConfigurationError(f"Invalid config type for {path}: expected list[str], got str")
        return tuple(part for part in re.split(r"(?:,|\s)+", value.strip()) if part)
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"Invalid config type for {path}: expected list[str]")
    items: list[str] = []
    for idx, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(f"Invalid config value for {path}[{idx}]: must be a non-empty string")
        items.append(item.strip())
    return tuple(items)


def _section(cfg: Mapping[str, Any], key: str, path: str) -> Mapping[str, Any]:
    raw = cfg.get(key)
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Invalid config type for {path}: expected mapping")
    return raw


def _kind_dirs(raw: Mapping[str, Any], defaults: Mapping[str, str], path: str) -> dict[str, str]:
    unknown = sorted(str(key) for key in raw.keys() if key not in BUILD_KINDS)
    if unknown:
        raise ConfigurationError(f"Unknown build kinds under {path}: {', '.join(unknown)}")
    out = dict(defaults)
    for kind, value in raw.items():
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"Invalid config value for {path}.{kind}: must be a non-empty string")
        out[kind] = value.strip()
    return out


@dataclass(frozen=True)
class BuildConfiguration:
    """Which kinds to build and in which mode; replaces process-wide flags."""

    type: BuildMode = "development"
    js: bool = True
    css: bool = True

    def __post_init__(self) -> None:
        if self.type not in ALLOWED_BUILD_MODES:
            raise ConfigurationError(
                f"Invalid build.type: {self.type!r} (allowed: {', '.join(ALLOWED_BUILD_MODES)})"
            )

    @property
    def enabled_kinds(self) -> tuple[str, ...]:
        kinds: list[str] = []
        if self.js:
            kinds.append("script")
        if self.css:
            kinds.append("style")
        return tuple(kinds)

    @property
    def scope(self) -> Scope:
        return "styles" if self.css else "js"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], *, path: str = "build") -> "BuildConfiguration":
        unknown = sorted(str(key) for key in raw.keys() if key not in ("type", "js", "css"))
        if unknown:
            raise ConfigurationError(f"Unknown keys under {path}: {', '.join(unknown)}")
        mode = raw.get("type", "development")
        if not isinstance(mode, str):
            raise ConfigurationError(f"Invalid config type for {path}.type: expected string")
        return cls(
            type=mode.strip().lower(),  # type: ignore[arg-type]
            js=parse_bool(raw.get("js", True), f"{path}.js"),
            css=parse_bool(raw.get("css", True), f"{path}.css"),
        )


@dataclass(frozen=True)
class NamingConventions:
    main_files: tuple[str, ...]
    main_entry_name: str = "main"
    root_files: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], *, kind: str, path: str) -> "NamingConventions":
        unknown = sorted(
            str(key) for key in raw.keys() if key not in ("main_files", "main_entry_name", "root_files")
        )
        if unknown:
            raise ConfigurationError(f"Unknown keys under {path}: {', '.join(unknown)}")
        main_files = parse_string_list(raw.get("main_files"), f"{path}.main_files", split=True)
        entry_name = raw.get("main_entry_name", "main")
        if not isinstance(entry_name, str) or not entry_name.strip():
            raise ConfigurationError(f"Invalid config value for {path}.main_entry_name: must be a non-empty string")
        return cls(
            main_files=main_files or DEFAULT_MAIN_FILES[kind],
            main_entry_name=entry_name.strip(),
            root_files=parse_bool(raw.get("root_files", False), f"{path}.root_files"),
        )


@dataclass(frozen=True)
class ResolutionSettings:
    aliases: dict[str, str] = field(default_factory=dict)
    search_directories: tuple[str, ...] = ()
    directory_search: bool = False
    include_paths: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], *, path: str) -> "ResolutionSettings":
        allowed = ("aliases", "search_directories", "directory_search", "include_paths")
        unknown = sorted(str(key) for key in raw.keys() if key not in allowed)
        if unknown:
            raise ConfigurationError(f"Unknown keys under {path}: {', '.join(unknown)}")
        raw_aliases = raw.get("aliases") or {}
        if not isinstance(raw_aliases, Mapping):
            raise ConfigurationError(f"Invalid config type for {path}.aliases: expected mapping")
        aliases: dict[str, str] = {}
        for alias, target in raw_aliases.items():
            if not isinstance(alias, str) or not alias.strip():
                raise ConfigurationError(f"Invalid alias name under {path}.aliases: {alias!r}")
            if not isinstance(target, str) or not target.strip():
                raise ConfigurationError(f"Invalid config value for {path}.aliases.{alias}: must be a path")
            aliases[alias.strip()] = target.strip()
        return cls(
            aliases=aliases,
            search_directories=parse_string_list(raw.get("search_directories"), f"{path}.search_directories"),
            directory_search=parse_bool(raw.get("directory_search", False), f"{path}.directory_search"),
            include_paths=parse_string_list(raw.get("include_paths"), f"{path}.include_paths"),
        )


@dataclass(frozen=True)
class LayoutConfig:
    root_dir: str
    modules_dir: str = "cartridges"
    source_dirs: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SOURCE_DIRS))
    output_dirs: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_OUTPUT_DIRS))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], *, base_dir: str, path: str = "layout") -> "LayoutConfig":
        allowed = ("root_dir", "modules_dir", "source_dirs", "output_dirs")
        unknown = sorted(str(key) for key in raw.keys() if key not in allowed)
        if unknown:
            raise ConfigurationError(f"Unknown keys under {path}: {', '.join(unknown)}")

        root_raw = raw.get("root_dir", ".")
        if not isinstance(root_raw, str) or not root_raw.strip():
            raise ConfigurationError(f"Invalid config value for {path}.root_dir: must be a path")
        expanded = os.path.expandvars(os.path.expanduser(root_raw.strip()))
        if not os.path.isabs(expanded):
            expanded = os.path.join(base_dir, expanded)

        modules_dir = raw.get("modules_dir", "cartridges")
        if not isinstance(modules_dir, str) or not modules_dir.strip():
            raise ConfigurationError(f"Invalid config value for {path}.modules_dir: must be a path")

        return cls(
            root_dir=os.path.abspath(expanded),
            modules_dir=modules_dir.strip(),
            source_dirs=_kind_dirs(_section(raw, "source_dirs", f"{path}.source_dirs"), DEFAULT_SOURCE_DIRS, f"{path}.source_dirs"),
            output_dirs=_kind_dirs(_section(raw, "output_dirs", f"{path}.output_dirs"), DEFAULT_OUTPUT_DIRS, f"{path}.output_dirs"),
        )


@dataclass(frozen=True)
class ScopeConfig:
    """Effective settings for one discovery scope (`js` or `styles`)."""

    modules: tuple[str, ...] | None
    naming: dict[str, NamingConventions]
    resolution: ResolutionSettings


@dataclass(frozen=True)
class BuildConfig:
    build: BuildConfiguration
    layout: LayoutConfig
    scopes: dict[str, ScopeConfig]
    overrides: tuple[dict[str, Any], ...] = ()
    merge_strategy: dict[str, str] = field(default_factory=dict)

    def scope_config(self, scope: str | None = None) -> ScopeConfig:
        return self.scopes[scope or self.build.scope]

    @staticmethod
    def from_dict(
        cfg: Mapping[str, Any],
        *,
        base_dir: str | None = None,
    ) -> tuple["BuildConfig", list[str]]:
        """Parse the root config mapping.

        Args:
            cfg: Root YAML mapping loaded via `foundation.config_io.load_config()`.
            base_dir: Directory a relative `layout.root_dir` is anchored at
                (defaults to the current working directory).

        Returns:
            (BuildConfig, warnings)

        Raises:
            ConfigurationError: If keys are missing/invalid.
        """

        if not isinstance(cfg, Mapping):
            raise ConfigurationError("Config must be a mapping")

        warnings: list[str] = []
        strict = parse_bool(cfg.get("strict", False), "strict")

        unknown = sorted(str(key) for key in cfg.keys() if key not in TOP_LEVEL_KEYS)
        if unknown:
            message = f"Unknown top-level config keys: {', '.join(unknown)}"
            if strict:
                raise ConfigurationError(message)
            warnings.append(message)

        build = BuildConfiguration.from_dict(_section(cfg, "build", "build"))
        layout = LayoutConfig.from_dict(_section(cfg, "layout", "layout"), base_dir=base_dir or os.getcwd())

        raw_scopes = _section(cfg, "scopes", "scopes")
        unknown_scopes = sorted(str(key) for key in raw_scopes.keys() if key not in SCOPES)
        if unknown_scopes:
            raise ConfigurationError(
                f"Unknown scopes under scopes: {', '.join(unknown_scopes)} (allowed: {', '.join(SCOPES)})"
            )

        base_scoped = {
            "modules": cfg.get("modules"),
            "naming": dict(_section(cfg, "naming", "naming")),
            "resolution": dict(_section(cfg, "resolution", "resolution")),
        }
        scopes: dict[str, ScopeConfig] = {}
        for scope in SCOPES:
            overlay = _section(raw_scopes, scope, f"scopes.{scope}")
            extra = sorted(str(key) for key in overlay.keys() if key not in SCOPED_KEYS)
            if extra:
                raise ConfigurationError(
                    f"Unknown keys under scopes.{scope}: {', '.join(extra)} (allowed: {', '.join(SCOPED_KEYS)})"
                )
            effective = merge_values(base_scoped, dict(overlay), strategies={}, path="")
            scopes[scope] = _parse_scope(effective, scope=scope)

        raw_overrides = cfg.get("overrides") or []
        if not isinstance(raw_overrides, (list, tuple)):
            raise ConfigurationError("Invalid config type for overrides: expected list of mappings")
        overrides = tuple(validate_override(item, index=idx) for idx, item in enumerate(raw_overrides))

        raw_strategy = cfg.get("merge_strategy")
        if raw_strategy is not None and not isinstance(raw_strategy, Mapping):
            raise ConfigurationError("Invalid config type for merge_strategy: expected mapping")
        merge_strategy = normalize_strategy_table(raw_strategy, fields=DESCRIPTOR_FIELDS)

        return (
            BuildConfig(
                build=build,
                layout=layout,
                scopes=scopes,
                overrides=overrides,
                merge_strategy=merge_strategy,
            ),
            warnings,
        )


def _parse_scope(raw: Mapping[str, Any], *, scope: str) -> ScopeConfig:
    modules_raw = raw.get("modules")
    modules = None if modules_raw is None else parse_string_list(modules_raw, f"scopes.{scope}.modules", split=True)

    naming_raw = raw.get("naming") or {}
    unknown_kinds = sorted(str(key) for key in naming_raw.keys() if key not in BUILD_KINDS)
    if unknown_kinds:
        raise ConfigurationError(f"Unknown build kinds under naming: {', '.join(unknown_kinds)}")
    naming: dict[str, NamingConventions] = {}
    for kind in BUILD_KINDS:
        kind_raw = naming_raw.get(kind) or {}
        if not isinstance(kind_raw, Mapping):
            raise ConfigurationError(f"Invalid config type for naming.{kind}: expected mapping")
        naming[kind] = NamingConventions.from_dict(kind_raw, kind=kind, path=f"naming.{kind}")

    return ScopeConfig(
        modules=modules,
        naming=naming,
        resolution=ResolutionSettings.from_dict(raw.get("resolution") or {}, path="resolution"),
    )
