from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import os
import sys
from collections.abc import Sequence

from cartridge_build.foundation.config_io import load_config
from cartridge_build.foundation.logging_utils import setup_build_logger
from cartridge_build.framework.config import BuildConfig

logger = logging.getLogger("cartridge_build.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cartridge-build", add_help=True)
    parser.add_argument("--config", default=None, help="Config file (default: config/config.yaml)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging on stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    plan = sub.add_parser("plan", help="Print build descriptors as JSON")
    plan.add_argument("--type", choices=("development", "production"), default=None)
    plan.add_argument("--js", action=argparse.BooleanOptionalAction, default=None)
    plan.add_argument("--css", action=argparse.BooleanOptionalAction, default=None)
    plan.add_argument("--dry-run", action="store_true", help="Record output cleanup instead of deleting")
    plan.add_argument("--report", action="store_true", help="Include diagnostics and metadata")

    modules = sub.add_parser("list-modules", help="List modules for the configured scope")
    modules.add_argument("--css", action=argparse.BooleanOptionalAction, default=None)

    return parser


def _load(args: argparse.Namespace) -> BuildConfig:
    if args.config:
        raw_cfg, meta = load_config(config_path=args.config)
    else:
        raw_cfg, meta = load_config()
    logger.debug("Loaded config (%s): %s", meta["mode"], ", ".join(meta["paths"]))

    config, warnings = BuildConfig.from_dict(raw_cfg, base_dir=meta.get("repo_root") or os.getcwd())
    for warning in warnings:
        logger.warning("Config warning: %s", warning)

    changes = {
        key: getattr(args, key)
        for key in ("type", "js", "css")
        if getattr(args, key, None) is not None
    }
    if changes:
        config = dataclasses.replace(config, build=dataclasses.replace(config.build, **changes))
    return config


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    setup_build_logger(verbose=args.verbose)

    try:
        config = _load(args)

        if args.command == "plan":
            from .app.plan import plan_from_config

            plan = plan_from_config(config, dry_run=args.dry_run)
            if args.report:
                payload = plan.to_dict()
            else:
                payload = [descriptor.to_dict() for descriptor in plan.descriptors]
            print(json.dumps(payload, indent=2))
            return 0

        if args.command == "list-modules":
            from .framework.paths import ConfiguredModuleDiscovery

            for module_id in ConfiguredModuleDiscovery(config).list_modules(config.build.scope):
                print(module_id)
            return 0
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 2

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
