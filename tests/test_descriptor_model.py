import pytest

from buildkit.descriptor import BuildDescriptor, LoaderSpec, OutputConfig, ResolutionConfig, TransformRule
from buildkit.errors import ConfigurationError
from buildkit.plugins import DirectorySearchPlugin, StyleExtractPlugin, plugin_from_dict, plugin_to_dict


def _raw(**changes):
    raw = {
        "name": "style-app",
        "kind": "style",
        "module": "app",
        "mode": "development",
        "entry": {"main": "/src/app/main.scss"},
        "output": {"path": "/out/app/css"},
        "transform_rules": [{"test": r"\.scss$", "use": ["css-loader", {"loader": "sass-loader", "options": {"a": 1}}]}],
        "plugins": [{"kind": "style-extract", "filename": "[name].min.css"}],
        "resolution": {
            "alias_table": {"base": "/base"},
            "search_directories": ["/mods"],
            "auxiliary_directory_search_enabled": True,
            "plugins": [{"kind": "directory-search", "directories": ["/mods"]}],
        },
        "devtool": "source-map",
    }
    raw.update(changes)
    return raw


def test_from_dict_normalizes_shorthand_forms():
    descriptor = BuildDescriptor.from_dict(_raw())

    assert descriptor.entry == {"main": ("/src/app/main.scss",)}
    assert descriptor.output == OutputConfig(path="/out/app/css", filename="[name].js")
    assert descriptor.transform_rules == (
        TransformRule(test=r"\.scss$", use=(LoaderSpec("css-loader"), LoaderSpec("sass-loader", {"a": 1}))),
    )
    assert descriptor.plugins == (StyleExtractPlugin(filename="[name].min.css"),)
    assert descriptor.resolution.plugins == (DirectorySearchPlugin(directories=("/mods",)),)


def test_to_dict_output_parses_back_to_an_equal_descriptor():
    descriptor = BuildDescriptor.from_dict(_raw())

    assert BuildDescriptor.from_dict(descriptor.to_dict()) == descriptor


def test_empty_entry_map_is_rejected():
    with pytest.raises(ConfigurationError, match=r"style-app has an empty entry map"):
        BuildDescriptor.from_dict(_raw(entry={}))


def test_unknown_descriptor_keys_are_rejected():
    with pytest.raises(ConfigurationError, match=r"Unknown keys under descriptor: module_rules"):
        BuildDescriptor.from_dict(_raw(module_rules=[]))


def test_invalid_kind_and_mode_are_rejected():
    with pytest.raises(ConfigurationError, match=r"Invalid build kind for style-app: 'css'"):
        BuildDescriptor.from_dict(_raw(kind="css"))
    with pytest.raises(ConfigurationError, match=r"Invalid build mode for style-app: 'staging'"):
        BuildDescriptor.from_dict(_raw(mode="staging"))


def test_invalid_transform_pattern_is_rejected():
    with pytest.raises(ConfigurationError, match=r"transform_rules\[0\]\.test is not a valid pattern"):
        BuildDescriptor.from_dict(_raw(transform_rules=[{"test": "([", "use": ["css-loader"]}]))


def test_transform_rule_requires_loaders():
    with pytest.raises(ConfigurationError, match=r"use must be a non-empty list of loaders"):
        BuildDescriptor.from_dict(_raw(transform_rules=[{"test": r"\.scss$", "use": []}]))


def test_devtool_must_be_string_or_null():
    assert BuildDescriptor.from_dict(_raw(devtool=None)).devtool is None
    with pytest.raises(ConfigurationError, match=r"devtool must be a non-empty string or null"):
        BuildDescriptor.from_dict(_raw(devtool=False))


def test_resolution_flag_must_be_boolean():
    resolution = dict(_raw()["resolution"], auxiliary_directory_search_enabled="yes")
    with pytest.raises(ConfigurationError, match=r"auxiliary_directory_search_enabled must be a boolean"):
        BuildDescriptor.from_dict(_raw(resolution=resolution))


def test_plugin_fields_are_validated():
    with pytest.raises(ConfigurationError, match=r"Unknown keys under p \(kind=style-lint\): silent"):
        plugin_from_dict({"kind": "style-lint", "silent": True}, path="p")
    with pytest.raises(ConfigurationError, match=r"Invalid plugin at p: StyleOnlyEntriesPlugin.silent"):
        plugin_from_dict({"kind": "style-only-entries", "silent": "no"}, path="p")


def test_plugin_to_dict_lists_fields_with_kind():
    assert plugin_to_dict(DirectorySearchPlugin(directories=("/a", "/b"))) == {
        "kind": "directory-search",
        "directories": ["/a", "/b"],
    }


def test_default_resolution_is_empty():
    assert ResolutionConfig().to_dict() == {
        "alias_table": {},
        "search_directories": [],
        "auxiliary_directory_search_enabled": False,
        "plugins": [],
    }
