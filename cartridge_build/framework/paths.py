"""Path resolution and module discovery for cartridges.

The descriptor builder and pipeline depend only on the `PathResolver` and
`ModuleDiscovery` protocols. The filesystem implementations here encode the
cartridge layout conventions:

- sources:  <root>/<modules_dir>/<module>/<source_dirs[kind]>
- output:   <modules_dir>/<module>/<output_dirs[kind]> (relative to root)
- a recognized main file at `<sub>/<file>` becomes entry `<sub>/<main_entry_name>`
  (`<main_entry_name>` at the top level); several main files found in the same
  directory share one entry.
"""

from __future__ import annotations

import logging
import os
from typing import Protocol

from buildkit.descriptor import EntryMap
from cartridge_build.framework.config import BuildConfig, LayoutConfig, NamingConventions, ResolutionSettings

KIND_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "script": (".js",),
    "style": (".scss",),
}

logger = logging.getLogger(__name__)


class PathResolver(Protocol):
    def resolve_entries(self, module_id: str, kind: str, *, naming: NamingConventions) -> EntryMap:
        """Return entry name -> source files for one module and kind (empty when none)."""

    def resolve_output_path(self, module_id: str, kind: str) -> str:
        """Return the module's kind-specific output directory."""

    def resolve_aliases(self, kind: str) -> dict[str, str]:
        """Return the import alias table."""

    def resolve_search_directories(self, kind: str) -> tuple[tuple[str, ...], bool]:
        """Return (ordered search directories, directory search enabled)."""

    def resolve_include_paths(self, kind: str) -> tuple[str, ...]:
        """Return style preprocessor include paths."""


class ModuleDiscovery(Protocol):
    def list_modules(self, scope: str) -> list[str]:
        """Return module ids to build, in build order."""


class FilesystemPathResolver:
    def __init__(self, layout: LayoutConfig, resolution: ResolutionSettings) -> None:
        self.layout = layout
        self.resolution = resolution

    def _absolute(self, path: str) -> str:
        expanded = os.path.expandvars(os.path.expanduser(path))
        if os.path.isabs(expanded):
            return os.path.normpath(expanded)
        return os.path.normpath(os.path.join(self.layout.root_dir, expanded))

    def source_root(self, module_id: str, kind: str) -> str:
        return os.path.join(
            self.layout.root_dir, self.layout.modules_dir, module_id, self.layout.source_dirs[kind]
        )

    def resolve_entries(self, module_id: str, kind: str, *, naming: NamingConventions) -> EntryMap:
        source_root = self.source_root(module_id, kind)
        if not os.path.isdir(source_root):
            return {}

        entries: EntryMap = {}
        for dirpath, dirnames, filenames in os.walk(source_root):
            dirnames.sort()
            present = set(filenames)
            sources = tuple(os.path.join(dirpath, name) for name in naming.main_files if name in present)
            if not sources:
                continue
            rel = os.path.relpath(dirpath, source_root)
            if rel == os.curdir:
                entry_name = naming.main_entry_name
            else:
                entry_name = f"{rel.replace(os.sep, '/')}/{naming.main_entry_name}"
            entries[entry_name] = sources

        if naming.root_files:
            extensions = KIND_EXTENSIONS[kind]
            claimed = {source for sources in entries.values() for source in sources}
            try:
                names = sorted(os.listdir(source_root))
            except OSError as exc:
                logger.warning("Cannot list root files in %s: %s", source_root, exc)
                names = []
            for name in names:
                path = os.path.join(source_root, name)
                stem, ext = os.path.splitext(name)
                if ext not in extensions or name.startswith("_") or not os.path.isfile(path):
                    continue
                if path in claimed or stem in entries:
                    continue
                entries[stem] = (path,)

        return entries

    def resolve_output_path(self, module_id: str, kind: str) -> str:
        return os.path.join(self.layout.modules_dir, module_id, self.layout.output_dirs[kind])

    def resolve_aliases(self, kind: str) -> dict[str, str]:
        return {alias: self._absolute(target) for alias, target in self.resolution.aliases.items()}

    def resolve_search_directories(self, kind: str) -> tuple[tuple[str, ...], bool]:
        directories = tuple(self._absolute(item) for item in self.resolution.search_directories)
        return directories, self.resolution.directory_search

    def resolve_include_paths(self, kind: str) -> tuple[str, ...]:
        return tuple(self._absolute(item) for item in self.resolution.include_paths)


class ConfiguredModuleDiscovery:
    """Use the scope's configured module list, else every directory under `modules_dir`."""

    def __init__(self, config: BuildConfig) -> None:
        self.config = config

    def list_modules(self, scope: str) -> list[str]:
        configured = self.config.scope_config(scope).modules
        if configured is not None:
            return list(configured)

        modules_dir = os.path.join(self.config.layout.root_dir, self.config.layout.modules_dir)
        if not os.path.isdir(modules_dir):
            logger.warning("Modules directory not found: %s (scope=%s)", modules_dir, scope)
            return []
        return sorted(
            name
            for name in os.listdir(modules_dir)
            if not name.startswith(".") and os.path.isdir(os.path.join(modules_dir, name))
        )
