"""`buildkit` invariants and boundaries.

This module exists to make repository-wide refactors and boundary tests explicit.

Generic invariants:

1) `buildkit` must not import `cartridge_build.*`.
2) `buildkit` provides the descriptor data model, the closed plugin set, the
   field-level merge engine (override merger) and the aggregator.
3) `buildkit` does not define project conventions like:
   - where a module keeps its sources or writes its output
   - which loaders and plugins a build kind uses
   - how the module list is discovered or which kinds are enabled

Project code injects those conventions by passing a descriptor builder callable
to `aggregate_descriptors` and override partials to `apply_overrides`.
"""
