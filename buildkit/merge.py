"""Field-level merge engine and the override merger built on it.

Default merge rules (no strategy entry for a field path):

- mappings merge key-by-key recursively; the overlay wins on conflicting leaves
- sequences and scalars are replaced wholesale by the overlay value
- an explicit `None` in the overlay replaces the base value with `None`
- a type clash (mapping vs non-mapping, sequence vs non-sequence) is an error

A strategy table maps dotted field paths (`transform_rules`,
`resolution.alias_table`) to one of `ALLOWED_MERGE_STRATEGIES`. Changing one
rule inside a sequence is not expressible: without an `append`/`prepend` entry a
supplied sequence replaces the whole base sequence.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Literal, TypeAlias

from buildkit.descriptor import DESCRIPTOR_FIELDS, BuildDescriptor
from buildkit.errors import ConfigurationError

MergeStrategy: TypeAlias = Literal["replace", "append", "prepend", "merge"]
ALLOWED_MERGE_STRATEGIES: tuple[str, ...] = ("replace", "append", "prepend", "merge")

# `name` is the match key; `kind` and `module` determine it.
IDENTITY_FIELDS: tuple[str, ...] = ("kind", "module")

logger = logging.getLogger(__name__)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _join_path(parent: str, key: Any) -> str:
    if not parent:
        return str(key)
    return f"{parent}.{key}"


def normalize_strategy_table(
    raw: Mapping[str, Any] | None,
    *,
    fields: tuple[str, ...] | None = None,
) -> dict[str, str]:
    """Validate a strategy table; `fields` restricts the first path segment."""

    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Merge strategy table must be a mapping (type={type(raw).__name__})")

    table: dict[str, str] = {}
    for raw_path, raw_strategy in raw.items():
        if not isinstance(raw_path, str) or not raw_path.strip():
            raise ConfigurationError("Merge strategy field paths must be non-empty strings")
        field_path = raw_path.strip()
        if not isinstance(raw_strategy, str):
            raise ConfigurationError(
                f"Merge strategy for {field_path} must be a string (type={type(raw_strategy).__name__})"
            )
        strategy = raw_strategy.strip().lower()
        if strategy not in ALLOWED_MERGE_STRATEGIES:
            raise ConfigurationError(
                f"Unknown merge strategy for {field_path}: {raw_strategy!r} "
                f"(allowed: {', '.join(ALLOWED_MERGE_STRATEGIES)})"
            )
        if fields is not None:
            head = field_path.split(".", 1)[0]
            if head not in fields:
                raise ConfigurationError(
                    f"Merge strategy targets unknown field: {field_path} (fields: {', '.join(fields)})"
                )
        if field_path in table:
            raise ConfigurationError(f"Duplicate merge strategy field path: {field_path}")
        table[field_path] = strategy
    return table


def _merge_mappings(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
    *,
    strategies: Mapping[str, str],
    path: str,
) -> dict[str, Any]:
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, overlay_value in overlay.items():
        next_path = _join_path(path, key)
        if key in base:
            merged[key] = merge_values(base[key], overlay_value, strategies=strategies, path=next_path)
        else:
            merged[key] = copy.deepcopy(overlay_value)
    return merged


def merge_values(base: Any, overlay: Any, *, strategies: Mapping[str, str], path: str) -> Any:
    """Merge `overlay` onto `base` at `path`; neither input is mutated."""

    strategy = strategies.get(path) if path else None

    if strategy == "replace":
        return copy.deepcopy(overlay)
    if overlay is None:
        return None
    if base is None:
        return copy.deepcopy(overlay)

    if strategy in ("append", "prepend"):
        if not _is_sequence(base) or not _is_sequence(overlay):
            raise ConfigurationError(
                f"Merge strategy {strategy} at {path} requires sequences "
                f"(base={type(base).__name__}, overlay={type(overlay).__name__})"
            )
        added = copy.deepcopy(list(overlay))
        if strategy == "append":
            return [*copy.deepcopy(list(base)), *added]
        return [*added, *copy.deepcopy(list(base))]

    if strategy == "merge":
        if not isinstance(base, Mapping) or not isinstance(overlay, Mapping):
            raise ConfigurationError(
                f"Merge strategy merge at {path} requires mappings "
                f"(base={type(base).__name__}, overlay={type(overlay).__name__})"
            )
        return _merge_mappings(base, overlay, strategies=strategies, path=path)

    if isinstance(base, Mapping):
        if not isinstance(overlay, Mapping):
            raise ConfigurationError(
                f"Invalid merge at {path or '<root>'}: base is mapping but overlay is {type(overlay).__name__}"
            )
        return _merge_mappings(base, overlay, strategies=strategies, path=path)

    if _is_sequence(base):
        if not _is_sequence(overlay):
            raise ConfigurationError(
                f"Invalid merge at {path}: base is list but overlay is {type(overlay).__name__}"
            )
        return copy.deepcopy(list(overlay))

    if isinstance(overlay, Mapping) or _is_sequence(overlay):
        raise ConfigurationError(
            f"Invalid merge at {path}: base is {type(base).__name__} but overlay is {type(overlay).__name__}"
        )
    return overlay


def validate_override(raw: Any, *, index: int) -> dict[str, Any]:
    """Check one override partial and return a normalized copy."""

    path = f"overrides[{index}]"
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{path} must be a mapping (type={type(raw).__name__})")
    if "name" not in raw:
        raise ConfigurationError(f"{path} is missing required key: name")
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(f"{path}.name must be a non-empty string")

    unknown = sorted(str(key) for key in raw.keys() if key not in DESCRIPTOR_FIELDS)
    if unknown:
        raise ConfigurationError(
            f"Unknown keys under {path} (name={name.strip()}): {', '.join(unknown)}"
        )

    identity = [key for key in IDENTITY_FIELDS if key in raw]
    if identity:
        raise ConfigurationError(
            f"{path} (name={name.strip()}) cannot change identity fields: {', '.join(identity)}"
        )

    normalized = dict(raw)
    normalized["name"] = name.strip()
    return normalized


def override_matches(descriptor_name: str, override_name: str) -> bool:
    """Substring containment: `style` targets every `style-*` descriptor."""

    return override_name in descriptor_name


def merge_descriptor(
    descriptor: BuildDescriptor,
    partial: Mapping[str, Any],
    *,
    strategies: Mapping[str, str],
) -> BuildDescriptor:
    """Merge one partial onto a descriptor; `name` and the identity fields are never merged."""

    overlay = {key: value for key, value in partial.items() if key != "name" and key not in IDENTITY_FIELDS}
    merged = merge_values(descriptor.to_dict(), overlay, strategies=strategies, path="")
    merged["name"] = descriptor.name
    return BuildDescriptor.from_dict(merged, path=f"override[{partial.get('name')}]")


def apply_overrides(
    descriptors: list[BuildDescriptor],
    overrides: Sequence[Mapping[str, Any]],
    strategies: Mapping[str, Any] | None = None,
) -> None:
    """Merge matching overrides onto `descriptors` in place.

    Every override applies, in list order, to every descriptor whose name
    contains the override name. All inputs are validated and all merges are
    computed before the list is written, so a failure leaves it unchanged.
    """

    if not isinstance(descriptors, list):
        raise TypeError(f"descriptors must be a list (type={type(descriptors).__name__})")
    if isinstance(overrides, (str, Mapping)) or not isinstance(overrides, Sequence):
        raise ConfigurationError(f"overrides must be a list of mappings (type={type(overrides).__name__})")

    table = normalize_strategy_table(strategies, fields=DESCRIPTOR_FIELDS)
    partials = [validate_override(raw, index=idx) for idx, raw in enumerate(overrides)]

    updated: list[BuildDescriptor] = []
    for descriptor in descriptors:
        current = descriptor
        for partial in partials:
            if not override_matches(current.name, partial["name"]):
                continue
            logger.debug("Applying override %r to %s", partial["name"], current.name)
            current = merge_descriptor(current, partial, strategies=table)
        updated.append(current)

    for partial in partials:
        if not any(override_matches(item.name, partial["name"]) for item in descriptors):
            logger.debug("Override %r matched no descriptors", partial["name"])

    descriptors[:] = updated
