from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import GeneratorConfig
from .context import PackageRegistry, register_default
from .generator import JsonPlanGenerator
from .pipeline import ManifestShape, run

LOG_FORMAT = "%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(debug: bool = False) -> None:
    root = logging.getLogger()
    for h in root.handlers[:]:
        root.removeHandler(h)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)


def main(argv: Optional[List[str]] = None, registry: Optional[PackageRegistry] = None) -> int:
    p = argparse.ArgumentParser(prog="manifestc", description="Build a package graph from its manifest and hand it to the plan generator.")
    p.add_argument("package", nargs="?", help="Registered package name or module:function factory")
    p.add_argument("--out", dest="output_dir", default=None, help="Output directory (env MANIFESTC_OUTPUT_DIR, default ./target)")
    p.add_argument("--shape", choices=[s.value for s in ManifestShape], default=None, help="Phase sequence the manifest uses (default init-prepare-emit)")
    p.add_argument("--toolchain", default=None, help="Compiler to probe instead of the defaults")
    p.add_argument("--require-toolchain", action="store_true", default=None, help="Fail init when no toolchain is found")
    p.add_argument("--list", action="store_true", help="List registered packages and exit")
    p.add_argument("--json-diagnostics", action="store_true", help="Print diagnostics as JSON on stderr")
    p.add_argument("--debug", action="store_true", help="Verbose logging")
    args = p.parse_args(argv)

    setup_logging(args.debug)
    registry = registry or register_default(PackageRegistry())

    if args.list:
        for name in registry.names():
            print(name)
        return 0
    if not args.package:
        p.print_usage(sys.stderr)
        print("manifestc: error: a package is required", file=sys.stderr)
        return 1

    try:
        factory = registry.resolve(args.package)
    except (KeyError, ImportError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    try:
        config = GeneratorConfig.from_env().override(
            output_dir=args.output_dir,
            shape=args.shape,
            toolchain=args.toolchain,
            require_toolchain=args.require_toolchain,
        )
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    report = run(factory, JsonPlanGenerator(config), shape=config.shape)

    if report.ok:
        print(f"OK. package={report.package} out={config.output_dir}")
        return 0
    if args.json_diagnostics:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), file=sys.stderr)
    else:
        for d in report.diagnostics:
            print(f"ERROR {d.code}: {d.message}", file=sys.stderr)
            if d.remediation:
                print(f"  hint: {d.remediation}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
