from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from buildkit.descriptor import BUILD_KINDS, BuildDescriptor
from buildkit.errors import ConfigurationError

DescriptorBuilder = Callable[[str, str], BuildDescriptor | None]

logger = logging.getLogger(__name__)


def ordered_kinds(enabled_kinds: Iterable[str]) -> tuple[str, ...]:
    """Return enabled kinds in fixed priority order, rejecting unknown kinds."""

    requested: set[str] = set()
    for raw in enabled_kinds:
        if not isinstance(raw, str) or raw.strip() not in BUILD_KINDS:
            raise ConfigurationError(
                f"Unknown build kind: {raw!r} (allowed: {', '.join(BUILD_KINDS)})"
            )
        requested.add(raw.strip())
    return tuple(kind for kind in BUILD_KINDS if kind in requested)


def aggregate_descriptors(
    module_ids: Sequence[str],
    enabled_kinds: Iterable[str],
    build: DescriptorBuilder,
) -> list[BuildDescriptor]:
    """Build descriptors module by module, kind by kind, keeping non-empty results.

    Modules keep list order; kinds always run script before style. A module/kind
    whose builder returns None contributes nothing. Duplicate names raise.
    """

    kinds = ordered_kinds(enabled_kinds)
    descriptors: list[BuildDescriptor] = []
    owners: dict[str, str] = {}
    duplicates: dict[str, list[str]] = {}

    for module_id in module_ids:
        if not isinstance(module_id, str) or not module_id.strip():
            raise ConfigurationError(f"Module ids must be non-empty strings (got {module_id!r})")
        for kind in kinds:
            descriptor = build(module_id.strip(), kind)
            if descriptor is None:
                logger.debug("No %s entries for module %s; skipping", kind, module_id)
                continue
            if not isinstance(descriptor, BuildDescriptor):
                raise TypeError(
                    f"Descriptor builder returned {type(descriptor).__name__} "
                    f"(module={module_id}, kind={kind})"
                )
            owner = owners.get(descriptor.name)
            if owner is not None:
                duplicates.setdefault(descriptor.name, [owner]).append(module_id)
            else:
                owners[descriptor.name] = module_id
            descriptors.append(descriptor)

    if duplicates:
        details = "; ".join(
            f"{name} (modules: {', '.join(modules)})" for name, modules in sorted(duplicates.items())
        )
        raise ConfigurationError(f"Duplicate descriptor names: {details}")

    return descriptors
