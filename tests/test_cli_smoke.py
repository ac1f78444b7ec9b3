import json
import logging

import pytest

from cartridge_build import cli


@pytest.fixture(autouse=True)
def _restore_build_loggers():
    saved = {}
    for name in ("cartridge_build", "buildkit"):
        named = logging.getLogger(name)
        saved[name] = (named.level, list(named.handlers), named.propagate)
    yield
    for name, (level, handlers, propagate) in saved.items():
        named = logging.getLogger(name)
        named.setLevel(level)
        named.handlers[:] = handlers
        named.propagate = propagate


def _site(tmp_path):
    app = tmp_path / "cartridges" / "app" / "cartridge" / "client" / "default"
    (app / "js").mkdir(parents=True)
    (app / "js" / "main.js").write_text("", encoding="utf-8")
    (app / "scss").mkdir(parents=True)
    (app / "scss" / "main.scss").write_text("", encoding="utf-8")
    (tmp_path / "cartridges" / "lib").mkdir(parents=True)


def _write_config(tmp_path, *extra_lines):
    config_path = tmp_path / "build.yaml"
    config_path.write_text(
        "\n".join(
            [
                "layout:",
                f"  root_dir: '{tmp_path.as_posix()}'",
                "modules: [app, lib]",
                *extra_lines,
                "",
            ]
        ),
        encoding="utf-8",
    )
    return str(config_path)


def test_cli_plan_dry_run_prints_descriptors(tmp_path, capsys):
    _site(tmp_path)
    stale = tmp_path / "cartridges" / "app" / "cartridge" / "static" / "default" / "js" / "old.js"
    stale.parent.mkdir(parents=True)
    stale.write_text("", encoding="utf-8")

    rc = cli.main(["--config", _write_config(tmp_path), "plan", "--dry-run"])
    assert rc == 0

    payload = json.loads(capsys.readouterr().out)
    assert [item["name"] for item in payload] == ["script-app", "style-app"]
    assert payload[0]["entry"] == {"main": [str(tmp_path / "cartridges/app/cartridge/client/default/js/main.js")]}
    assert payload[1]["devtool"] == "source-map"
    assert stale.exists()


def test_cli_plan_flags_override_config(tmp_path, capsys):
    _site(tmp_path)
    config_path = _write_config(tmp_path, "overrides:", "  - name: script", "    devtool: eval")

    rc = cli.main(["--config", config_path, "plan", "--dry-run", "--no-css", "--type", "production", "--report"])
    assert rc == 0

    payload = json.loads(capsys.readouterr().out)
    assert [item["name"] for item in payload["descriptors"]] == ["script-app"]
    assert payload["descriptors"][0]["mode"] == "production"
    assert payload["descriptors"][0]["devtool"] == "eval"
    assert payload["metadata"]["scope"] == "js"
    assert payload["metadata"]["overrides"] == {"script": ["script-app"]}
    assert payload["metadata"]["skipped"] == [{"module": "lib", "kind": "script"}]


def test_cli_list_modules_smoke(tmp_path, capsys):
    _site(tmp_path)

    rc = cli.main(["--config", _write_config(tmp_path), "list-modules"])
    assert rc == 0

    assert capsys.readouterr().out.splitlines() == ["app", "lib"]


def test_cli_invalid_config_exits_with_2(tmp_path, capsys):
    rc = cli.main(["--config", _write_config(tmp_path, "build:", "  type: staging"), "plan"])

    assert rc == 2
    assert capsys.readouterr().out == ""


def test_cli_missing_config_file_exits_with_2(tmp_path):
    assert cli.main(["--config", str(tmp_path / "missing.yaml"), "plan"]) == 2


def test_cli_unreadable_config_path_exits_with_2(tmp_path):
    config_dir = tmp_path / "config.yaml"
    config_dir.mkdir()

    assert cli.main(["--config", str(config_dir), "plan"]) == 2
