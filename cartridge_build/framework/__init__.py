"""Cartridge conventions layered on `buildkit`.

- `config`: strict parsing of the YAML config into `BuildConfig`
- `paths`: `PathResolver` / `ModuleDiscovery` protocols + filesystem implementations
- `cleanup`: pre-build output cleanup
- `descriptors`: per-kind descriptor builder
"""
