"""CLI entrypoint listing the packages a monorepo exposes to the resolver."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .discovery import MANIFEST_NAME
from .plugin import Plugin, ResolverContext


def _load_root_manifest(root: Path) -> dict:
    path = root / MANIFEST_NAME
    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="monorepo-helper", description=__doc__)
    parser.add_argument(
        "--root",
        type=Path,
        default=Path("."),
        help="Directory inside the monorepo (defaults to the current directory)",
    )
    parser.add_argument("--offline", action="store_true", help="Do not fetch tags from remotes")
    parser.add_argument("--max-depth", type=int, default=None, help="Maximum discovery depth")
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Directory to exclude from discovery (repeatable)",
    )
    parser.add_argument("--format", choices=("json", "text"), default="text")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    root = args.root.resolve()
    environ = dict(os.environ)
    if args.offline:
        environ["MONOREPO_HELPER_OFFLINE_MODE"] = "1"
    if args.max_depth is not None:
        environ["MONOREPO_HELPER_MAX_DISCOVERY_DEPTH"] = str(args.max_depth)
    if args.exclude:
        environ["MONOREPO_HELPER_EXCLUDED_DIRECTORIES"] = ",".join(args.exclude)

    try:
        root_manifest = _load_root_manifest(root)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"ERROR: Failed to read {root / MANIFEST_NAME}: {exc}", file=sys.stderr)
        return 1

    plugin = Plugin()
    context = ResolverContext(working_dir=root, root_manifest=root_manifest, environ=environ)
    if not plugin.activate(context):
        print("ERROR: The monorepo helper could not be activated", file=sys.stderr)
        return 1

    packages = plugin.repository.get_packages()
    if args.format == "json":
        print(json.dumps([package.to_dict() for package in packages], indent=2))
    else:
        for package in packages:
            reference = package.dist.reference if package.dist else ""
            print(f"{package.pretty_name}\t{package.pretty_version}\t{reference}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
