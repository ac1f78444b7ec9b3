"""Cartridge build planner: descriptor generation for multi-cartridge front-end builds.

- `cartridge_build.foundation`: YAML config loading + logging setup
- `cartridge_build.framework`: config parsing, path resolution, cleanup, descriptor builder
- `cartridge_build.app`: pipeline entry point (`run`, `build_plan`)

The reusable descriptor model and merge engine live in `buildkit`.
"""
