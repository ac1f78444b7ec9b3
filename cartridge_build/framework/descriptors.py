"""Descriptor builder: one module + one kind -> BuildDescriptor (or None).

Transform rules and plugins are fixed per kind. Only the entry map, output path
and resolution tables vary between modules.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace

from buildkit.descriptor import (
    BuildDescriptor,
    LoaderSpec,
    OutputConfig,
    ResolutionConfig,
    TransformRule,
    descriptor_name,
)
from buildkit.errors import Diagnostic, cleanup_failure, resolution_warning
from buildkit.plugins import (
    DirectorySearchPlugin,
    Plugin,
    ScriptLintPlugin,
    StyleExtractPlugin,
    StyleLintPlugin,
    StyleOnlyEntriesPlugin,
)
from cartridge_build.framework.cleanup import OutputCleaner
from cartridge_build.framework.config import NamingConventions
from cartridge_build.framework.paths import PathResolver

SCRIPT_LOADER = "babel-loader"
STYLE_EXTRACT_LOADER = "mini-css-extract-plugin/loader"
STYLE_CSS_LOADER = "css-loader"
STYLE_POSTCSS_LOADER = "postcss-loader"
STYLE_SASS_LOADER = "sass-loader"

STYLE_STATS = {
    "chunks_sort": "name",
    "modules": False,
    "children": False,
    "entrypoints": False,
    "chunk_origins": False,
}

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SharedOptions:
    """Computed once per pipeline run and shared by every module and kind."""

    naming: dict[str, NamingConventions]
    resolution: ResolutionConfig
    include_paths: tuple[str, ...] = ()


def compute_shared_options(
    resolver: PathResolver,
    naming: dict[str, NamingConventions],
    *,
    kind: str,
) -> SharedOptions:
    directories, enabled = resolver.resolve_search_directories(kind)
    return SharedOptions(
        naming=dict(naming),
        resolution=ResolutionConfig(
            alias_table=dict(resolver.resolve_aliases(kind)),
            search_directories=tuple(directories),
            auxiliary_directory_search_enabled=bool(enabled),
        ),
        include_paths=tuple(resolver.resolve_include_paths(kind)),
    )


def script_transform_rules() -> tuple[TransformRule, ...]:
    return (
        TransformRule(
            test=r"\.js$",
            exclude=("node_modules",),
            use=(LoaderSpec(SCRIPT_LOADER),),
        ),
    )


def style_transform_rules(include_paths: tuple[str, ...]) -> tuple[TransformRule, ...]:
    # Loaders apply last to first: sass, postcss, css, then extraction.
    return (
        TransformRule(
            test=r"\.scss$",
            use=(
                LoaderSpec(STYLE_EXTRACT_LOADER),
                LoaderSpec(STYLE_CSS_LOADER, {"url": False, "source_map": True}),
                LoaderSpec(STYLE_POSTCSS_LOADER, {"source_map": True}),
                LoaderSpec(
                    STYLE_SASS_LOADER,
                    {"source_map": True, "sass_options": {"include_paths": list(include_paths)}},
                ),
            ),
        ),
    )


def kind_plugins(kind: str) -> tuple[Plugin, ...]:
    if kind == "script":
        return (ScriptLintPlugin(),)
    return (
        StyleOnlyEntriesPlugin(silent=True),
        StyleExtractPlugin(filename="[name].css"),
        StyleLintPlugin(),
    )


def resolution_for(shared: SharedOptions) -> ResolutionConfig:
    """Per-descriptor copy of the shared resolution; no descriptor shares the alias table."""

    plugins: tuple[Plugin, ...] = ()
    if shared.resolution.auxiliary_directory_search_enabled:
        plugins = (DirectorySearchPlugin(directories=shared.resolution.search_directories),)
    return replace(shared.resolution, alias_table=dict(shared.resolution.alias_table), plugins=plugins)


def _unwritable_reason(path: str) -> str | None:
    if os.path.exists(path) and not os.path.isdir(path):
        return f"output path exists and is not a directory: {path}"
    probe = path
    while not os.path.exists(probe):
        parent = os.path.dirname(probe)
        if parent == probe:
            break
        probe = parent
    if not os.access(probe, os.W_OK):
        return f"output path is not writable: {path} (checked {probe})"
    return None


def build_descriptor(
    module_id: str,
    kind: str,
    shared: SharedOptions,
    *,
    resolver: PathResolver,
    cleaner: OutputCleaner,
    mode: str,
    root_dir: str,
    diagnostics: list[Diagnostic] | None = None,
) -> BuildDescriptor | None:
    """Build the descriptor for `module_id`/`kind`, or None when it has no entries.

    Non-fatal problems (unwritable output, missing search directories, failed
    cleanup) are logged and appended to `diagnostics`; the descriptor is still
    returned.
    """

    entries = resolver.resolve_entries(module_id, kind, naming=shared.naming[kind])
    if not entries:
        return None

    name = descriptor_name(kind, module_id)
    output_path = os.path.join(root_dir, resolver.resolve_output_path(module_id, kind))
    collected: list[Diagnostic] = []

    reason = _unwritable_reason(output_path)
    if reason:
        collected.append(resolution_warning(name, reason))
    missing = [item for item in shared.resolution.search_directories if not os.path.isdir(item)]
    if missing:
        collected.append(resolution_warning(name, f"search directories not found: {', '.join(missing)}"))

    if kind == "script":
        try:
            cleaner.clean(output_path)
        except OSError as exc:
            collected.append(cleanup_failure(name, f"could not clean {output_path}: {exc}"))

        descriptor = BuildDescriptor(
            name=name,
            kind="script",
            module=module_id,
            mode=mode,  # type: ignore[arg-type]
            entry=dict(entries),
            output=OutputConfig(path=output_path, filename="[name].js", chunk_filename="[name].js"),
            transform_rules=script_transform_rules(),
            plugins=kind_plugins("script"),
            resolution=resolution_for(shared),
            devtool=None,
            optimization={"split_chunks": {"min_chunks": 2}},
        )
    else:
        descriptor = BuildDescriptor(
            name=name,
            kind="style",
            module=module_id,
            mode=mode,  # type: ignore[arg-type]
            entry=dict(entries),
            output=OutputConfig(path=output_path, filename="[name].js"),
            transform_rules=style_transform_rules(shared.include_paths),
            plugins=kind_plugins("style"),
            resolution=resolution_for(shared),
            devtool="source-map" if mode != "production" else None,
            stats=dict(STYLE_STATS),
        )

    for item in collected:
        logger.warning("%s: %s", item.descriptor, item.message)
    if diagnostics is not None:
        diagnostics.extend(collected)
    return descriptor
