import pytest

from buildkit.errors import ConfigurationError
from buildkit.merge import merge_values, normalize_strategy_table


def test_default_merge_replaces_lists_wholesale():
    merged = merge_values({"a": [1, 2]}, {"a": [3]}, strategies={}, path="")
    assert merged == {"a": [3]}


def test_default_merge_recurses_into_mappings_and_overlay_wins_on_leaves():
    base = {"output": {"path": "/out", "filename": "[name].js"}, "stats": {"modules": False}}
    overlay = {"output": {"filename": "[name].min.js"}}

    merged = merge_values(base, overlay, strategies={}, path="")

    assert merged == {
        "output": {"path": "/out", "filename": "[name].min.js"},
        "stats": {"modules": False},
    }


def test_default_merge_adds_new_keys_and_keeps_base_untouched():
    base = {"optimization": {"split_chunks": {"min_chunks": 2}}}
    merged = merge_values(base, {"optimization": {"minimize": True}}, strategies={}, path="")

    assert merged == {"optimization": {"split_chunks": {"min_chunks": 2}, "minimize": True}}
    assert base == {"optimization": {"split_chunks": {"min_chunks": 2}}}


def test_explicit_none_replaces_value():
    assert merge_values({"devtool": "source-map"}, {"devtool": None}, strategies={}, path="") == {
        "devtool": None
    }


def test_append_and_prepend_strategies_concatenate_sequences():
    base = {"rules": ["r1"]}
    overlay = {"rules": ["r2"]}

    assert merge_values(base, overlay, strategies={"rules": "append"}, path="") == {"rules": ["r1", "r2"]}
    assert merge_values(base, overlay, strategies={"rules": "prepend"}, path="") == {"rules": ["r2", "r1"]}


def test_replace_strategy_replaces_mapping_instead_of_merging():
    base = {"resolution": {"alias_table": {"base": "/a", "other": "/b"}}}
    overlay = {"resolution": {"alias_table": {"base": "/c"}}}

    merged = merge_values(base, overlay, strategies={"resolution.alias_table": "replace"}, path="")
    assert merged == {"resolution": {"alias_table": {"base": "/c"}}}

    default = merge_values(base, overlay, strategies={}, path="")
    assert default == {"resolution": {"alias_table": {"base": "/c", "other": "/b"}}}


def test_nested_strategy_paths_are_dotted():
    base = {"resolution": {"search_directories": ["/one"]}}
    overlay = {"resolution": {"search_directories": ["/zero"]}}

    merged = merge_values(
        base, overlay, strategies={"resolution.search_directories": "prepend"}, path=""
    )
    assert merged == {"resolution": {"search_directories": ["/zero", "/one"]}}


def test_type_mismatch_raises_with_field_path():
    with pytest.raises(ConfigurationError, match=r"Invalid merge at output: base is mapping but overlay is str"):
        merge_values({"output": {"path": "/x"}}, {"output": "/y"}, strategies={}, path="")

    with pytest.raises(ConfigurationError, match=r"Invalid merge at plugins: base is list"):
        merge_values({"plugins": []}, {"plugins": {"kind": "style-lint"}}, strategies={}, path="")


def test_append_strategy_requires_sequences():
    with pytest.raises(ConfigurationError, match=r"Merge strategy append at stats requires sequences"):
        merge_values({"stats": {}}, {"stats": {"modules": True}}, strategies={"stats": "append"}, path="")


def test_strategy_table_rejects_unknown_operator_and_field():
    with pytest.raises(ConfigurationError, match=r"Unknown merge strategy for plugins: 'union'"):
        normalize_strategy_table({"plugins": "union"})

    with pytest.raises(ConfigurationError, match=r"unknown field: rules"):
        normalize_strategy_table({"rules": "append"}, fields=("transform_rules",))


def test_strategy_table_normalizes_case_and_whitespace():
    assert normalize_strategy_table({" transform_rules ": " Append "}) == {"transform_rules": "append"}
