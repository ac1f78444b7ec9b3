import os

from cartridge_build.framework import paths
from cartridge_build.framework.config import (
    BuildConfig,
    LayoutConfig,
    NamingConventions,
    ResolutionSettings,
)
from cartridge_build.framework.paths import ConfiguredModuleDiscovery, FilesystemPathResolver


def _write(path, text=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _resolver(tmp_path, **resolution) -> FilesystemPathResolver:
    return FilesystemPathResolver(LayoutConfig(root_dir=str(tmp_path)), ResolutionSettings(**resolution))


def test_main_files_become_entries_named_by_directory(tmp_path):
    js_root = tmp_path / "cartridges" / "app" / "cartridge" / "client" / "default" / "js"
    _write(js_root / "main.js")
    _write(js_root / "checkout" / "main.js")
    _write(js_root / "checkout" / "helper.js")
    _write(js_root / "account" / "profile" / "main.js")

    entries = _resolver(tmp_path).resolve_entries(
        "app", "script", naming=NamingConventions(main_files=("main.js",))
    )

    assert entries == {
        "main": (str(js_root / "main.js"),),
        "account/profile/main": (str(js_root / "account" / "profile" / "main.js"),),
        "checkout/main": (str(js_root / "checkout" / "main.js"),),
    }
    assert list(entries) == ["main", "account/profile/main", "checkout/main"]


def test_several_main_files_in_one_directory_share_an_entry(tmp_path):
    scss_root = tmp_path / "cartridges" / "app" / "cartridge" / "client" / "default" / "scss"
    _write(scss_root / "global.scss")
    _write(scss_root / "main.scss")

    entries = _resolver(tmp_path).resolve_entries(
        "app", "style", naming=NamingConventions(main_files=("main.scss", "global.scss"), main_entry_name="site")
    )

    assert entries == {"site": (str(scss_root / "main.scss"), str(scss_root / "global.scss"))}


def test_root_files_add_top_level_sources_and_skip_partials(tmp_path):
    scss_root = tmp_path / "cartridges" / "app" / "cartridge" / "client" / "default" / "scss"
    _write(scss_root / "main.scss")
    _write(scss_root / "checkout.scss")
    _write(scss_root / "_variables.scss")
    _write(scss_root / "notes.txt")

    entries = _resolver(tmp_path).resolve_entries(
        "app", "style", naming=NamingConventions(main_files=("main.scss",), root_files=True)
    )

    assert entries == {
        "main": (str(scss_root / "main.scss"),),
        "checkout": (str(scss_root / "checkout.scss"),),
    }


def test_missing_source_directory_yields_empty_entries(tmp_path):
    entries = _resolver(tmp_path).resolve_entries(
        "lib", "script", naming=NamingConventions(main_files=("main.js",))
    )
    assert entries == {}


def test_output_path_and_resolution_tables(tmp_path):
    resolver = _resolver(
        tmp_path,
        aliases={"base": "cartridges/base/cartridge/client/default"},
        search_directories=("cartridges/app", "/abs/elsewhere"),
        directory_search=True,
        include_paths=("node_modules",),
    )

    assert resolver.resolve_output_path("app", "style") == os.path.join(
        "cartridges", "app", "cartridge/static/default/css"
    )
    assert resolver.resolve_aliases("script") == {
        "base": os.path.normpath(str(tmp_path / "cartridges" / "base" / "cartridge" / "client" / "default"))
    }
    directories, enabled = resolver.resolve_search_directories("script")
    assert directories == (os.path.normpath(str(tmp_path / "cartridges" / "app")), "/abs/elsewhere")
    assert enabled is True
    assert resolver.resolve_include_paths("style") == (os.path.normpath(str(tmp_path / "node_modules")),)


def test_module_discovery_prefers_configured_scope_list(tmp_path):
    cfg, _warnings = BuildConfig.from_dict(
        {
            "modules": ["b", "a"],
            "scopes": {"styles": {"modules": ["styles_only"]}},
        },
        base_dir=str(tmp_path),
    )
    discovery = ConfiguredModuleDiscovery(cfg)

    assert discovery.list_modules("js") == ["b", "a"]
    assert discovery.list_modules("styles") == ["styles_only"]


def test_module_discovery_scans_modules_dir_when_unconfigured(tmp_path):
    for name in ("zeta", "alpha", ".hidden"):
        (tmp_path / "cartridges" / name).mkdir(parents=True)
    _write(tmp_path / "cartridges" / "README.md")
    cfg, _warnings = BuildConfig.from_dict({}, base_dir=str(tmp_path))

    assert ConfiguredModuleDiscovery(cfg).list_modules("js") == ["alpha", "zeta"]


def test_unreadable_root_listing_keeps_main_entries(tmp_path, monkeypatch):
    scss_root = tmp_path / "cartridges" / "app" / "cartridge" / "client" / "default" / "scss"
    _write(scss_root / "main.scss")
    _write(scss_root / "checkout.scss")

    def denied(path):
        raise PermissionError(13, "Permission denied", path)

    monkeypatch.setattr(paths.os, "listdir", denied)

    entries = _resolver(tmp_path).resolve_entries(
        "app", "style", naming=NamingConventions(main_files=("main.scss",), root_files=True)
    )

    assert entries == {"main": (str(scss_root / "main.scss"),)}
