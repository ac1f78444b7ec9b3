"""Pipeline entry point: resolver -> builder -> aggregator -> override merger."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from buildkit.aggregator import aggregate_descriptors, ordered_kinds
from buildkit.descriptor import BuildDescriptor
from buildkit.errors import Diagnostic
from buildkit.merge import apply_overrides, override_matches
from cartridge_build.framework.cleanup import DirectoryCleaner, OutputCleaner, RecordingCleaner
from cartridge_build.framework.config import BuildConfig, BuildConfiguration, NamingConventions
from cartridge_build.framework.descriptors import build_descriptor, compute_shared_options
from cartridge_build.framework.paths import (
    ConfiguredModuleDiscovery,
    FilesystemPathResolver,
    ModuleDiscovery,
    PathResolver,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildPlan:
    descriptors: list[BuildDescriptor]
    diagnostics: tuple[Diagnostic, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(descriptor.name for descriptor in self.descriptors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "descriptors": [descriptor.to_dict() for descriptor in self.descriptors],
            "diagnostics": [item.to_dict() for item in self.diagnostics],
            "metadata": dict(self.metadata),
        }


def build_plan(
    configuration: BuildConfiguration,
    module_options: Mapping[str, NamingConventions],
    custom_overrides: Sequence[Mapping[str, Any]] | None = None,
    merge_strategy: Mapping[str, str] | None = None,
    *,
    resolver: PathResolver,
    discovery: ModuleDiscovery,
    cleaner: OutputCleaner,
    root_dir: str | None = None,
) -> BuildPlan:
    kinds = ordered_kinds(configuration.enabled_kinds)
    scope = configuration.scope
    primary_kind = "style" if scope == "styles" else "script"
    root = os.path.abspath(root_dir or os.getcwd())

    shared = compute_shared_options(resolver, dict(module_options), kind=primary_kind)
    module_ids = list(discovery.list_modules(scope))

    diagnostics: list[Diagnostic] = []
    skipped: list[dict[str, str]] = []

    def build(module_id: str, kind: str) -> BuildDescriptor | None:
        descriptor = build_descriptor(
            module_id,
            kind,
            shared,
            resolver=resolver,
            cleaner=cleaner,
            mode=configuration.type,
            root_dir=root,
            diagnostics=diagnostics,
        )
        if descriptor is None:
            skipped.append({"module": module_id, "kind": kind})
        return descriptor

    descriptors = aggregate_descriptors(module_ids, kinds, build)

    override_summary: dict[str, list[str]] = {}
    if custom_overrides:
        apply_overrides(descriptors, list(custom_overrides), merge_strategy or {})
        for raw in custom_overrides:
            override_name = str(raw.get("name", "")).strip()
            override_summary[override_name] = [
                item.name for item in descriptors if override_matches(item.name, override_name)
            ]

    logger.info(
        "Planned %d descriptor(s) for %d module(s) (kinds=%s, scope=%s, mode=%s)",
        len(descriptors),
        len(module_ids),
        ", ".join(kinds) or "<none>",
        scope,
        configuration.type,
    )

    metadata: dict[str, Any] = {
        "mode": configuration.type,
        "kinds": list(kinds),
        "scope": scope,
        "modules": module_ids,
        "skipped": skipped,
    }
    if override_summary:
        metadata["overrides"] = override_summary

    return BuildPlan(descriptors=descriptors, diagnostics=tuple(diagnostics), metadata=metadata)


def run(
    configuration: BuildConfiguration,
    module_options: Mapping[str, NamingConventions],
    custom_overrides: Sequence[Mapping[str, Any]] | None = None,
    merge_strategy: Mapping[str, str] | None = None,
    *,
    resolver: PathResolver,
    discovery: ModuleDiscovery,
    cleaner: OutputCleaner,
    root_dir: str | None = None,
) -> list[BuildDescriptor]:
    """Return the ordered descriptor list for one build invocation."""

    return build_plan(
        configuration,
        module_options,
        custom_overrides,
        merge_strategy,
        resolver=resolver,
        discovery=discovery,
        cleaner=cleaner,
        root_dir=root_dir,
    ).descriptors


def plan_from_config(
    config: BuildConfig,
    *,
    dry_run: bool = False,
    cleaner: OutputCleaner | None = None,
) -> BuildPlan:
    """Wire the filesystem collaborators from a parsed `BuildConfig` and plan."""

    scope_cfg = config.scope_config()
    if cleaner is None:
        cleaner = RecordingCleaner() if dry_run else DirectoryCleaner()
    return build_plan(
        config.build,
        scope_cfg.naming,
        config.overrides,
        config.merge_strategy,
        resolver=FilesystemPathResolver(config.layout, scope_cfg.resolution),
        discovery=ConfiguredModuleDiscovery(config),
        cleaner=cleaner,
        root_dir=config.layout.root_dir,
    )
