"""Reusable build-plan kernel (descriptor model, merge engine, aggregation).

This package must not import `cartridge_build.*`. Project
conventions (where entries live on disk, which loaders a kind uses, how modules
are discovered) must live in the consuming application.
"""

from buildkit.aggregator import aggregate_descriptors, ordered_kinds
from buildkit.descriptor import (
    ALLOWED_BUILD_MODES,
    BUILD_KINDS,
    BuildDescriptor,
    BuildKind,
    BuildMode,
    EntryMap,
    LoaderSpec,
    OutputConfig,
    ResolutionConfig,
    TransformRule,
    descriptor_name,
)
from buildkit.errors import ConfigurationError, Diagnostic
from buildkit.merge import (
    ALLOWED_MERGE_STRATEGIES,
    MergeStrategy,
    apply_overrides,
    merge_descriptor,
    merge_values,
)
from buildkit.plugins import (
    DirectorySearchPlugin,
    Plugin,
    ScriptLintPlugin,
    StyleExtractPlugin,
    StyleLintPlugin,
    StyleOnlyEntriesPlugin,
)

__all__ = [
    "ALLOWED_BUILD_MODES",
    "ALLOWED_MERGE_STRATEGIES",
    "BUILD_KINDS",
    "BuildDescriptor",
    "BuildKind",
    "BuildMode",
    "ConfigurationError",
    "Diagnostic",
    "DirectorySearchPlugin",
    "EntryMap",
    "LoaderSpec",
    "MergeStrategy",
    "OutputConfig",
    "Plugin",
    "ResolutionConfig",
    "ScriptLintPlugin",
    "StyleExtractPlugin",
    "StyleLintPlugin",
    "StyleOnlyEntriesPlugin",
    "TransformRule",
    "aggregate_descriptors",
    "apply_overrides",
    "descriptor_name",
    "merge_descriptor",
    "merge_values",
    "ordered_kinds",
]
