import os

import pytest

from cartridge_build.framework.config import NamingConventions


class FakeResolver:
    """In-memory PathResolver keyed by (module, kind)."""

    def __init__(
        self,
        entries: dict[tuple[str, str], dict[str, list[str]]] | None = None,
        *,
        aliases: dict[str, str] | None = None,
        search_directories: tuple[str, ...] = (),
        directory_search: bool = False,
        include_paths: tuple[str, ...] = (),
    ) -> None:
        self.entries = entries or {}
        self.aliases = aliases or {}
        self.search_directories = tuple(search_directories)
        self.directory_search = directory_search
        self.include_paths = tuple(include_paths)
        self.calls: list[tuple[str, str]] = []

    def resolve_entries(self, module_id, kind, *, naming):
        self.calls.append((module_id, kind))
        raw = self.entries.get((module_id, kind), {})
        return {name: tuple(sources) for name, sources in raw.items()}

    def resolve_output_path(self, module_id, kind):
        return os.path.join("cartridges", module_id, "static", kind)

    def resolve_aliases(self, kind):
        return dict(self.aliases)

    def resolve_search_directories(self, kind):
        return self.search_directories, self.directory_search

    def resolve_include_paths(self, kind):
        return self.include_paths


class FakeDiscovery:
    def __init__(self, modules: list[str]) -> None:
        self.modules = list(modules)
        self.scopes: list[str] = []

    def list_modules(self, scope):
        self.scopes.append(scope)
        return list(self.modules)


class FailingCleaner:
    def clean(self, path):
        raise PermissionError(13, "Permission denied", path)


@pytest.fixture
def naming() -> dict[str, NamingConventions]:
    return {
        "script": NamingConventions(main_files=("main.js",)),
        "style": NamingConventions(main_files=("main.scss",)),
    }


@pytest.fixture
def fake_resolver_cls():
    return FakeResolver


@pytest.fixture
def fake_discovery_cls():
    return FakeDiscovery


@pytest.fixture
def failing_cleaner():
    return FailingCleaner()
