import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from cg_core import (
    ConfigError,
    CrawlGenError,
    DirectorySink,
    GeneratorConfig,
    list_sources,
    load_catalog,
    load_config,
    load_config_schema,
    resolve_all,
    run,
    setup_logging,
    table_to_dict,
)
from cg_core.config import DEFAULT_CONFIG_NAME, STARTER_CONFIG
from cg_core.issues import Issue, to_lines
from cg_core.log import level_for_verbosity


def _print_issues(issues: List[Issue]) -> None:
    if not issues:
        print("No issues found.")
        return
    for line in to_lines(issues):
        print(line)


def _load_config_or_report(path: str) -> Optional[GeneratorConfig]:
    try:
        return load_config(path)
    except ConfigError as exc:
        print(f"Config failed: {exc.message}", file=sys.stderr)
        for line in to_lines(exc.issues):
            print(line, file=sys.stderr)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        print(f"Config failed: {exc}", file=sys.stderr)
    return None


def cmd_init(args: argparse.Namespace) -> int:
    root = Path(args.path).resolve()
    root.mkdir(parents=True, exist_ok=True)
    config_dst = root / DEFAULT_CONFIG_NAME

    if config_dst.exists():
        print(f"Config already exists: {config_dst}")
        return 0

    config_dst.write_text(STARTER_CONFIG, encoding="utf-8")
    print(f"Initialized crawler generator workspace at {root}")
    print(f"- {config_dst}")
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    config = _load_config_or_report(args.config)
    if config is None:
        return 1

    if args.out_dir:
        config.output_dir = args.out_dir
    if args.workers:
        config.workers = args.workers
    if args.crawler_name:
        config.crawler_name = args.crawler_name

    sink = None if args.dry_run else DirectorySink(config.output_dir)
    try:
        report = run(config, sink)
    except CrawlGenError as exc:
        print(f"Generate failed: {exc}", file=sys.stderr)
        return 1

    if args.output_json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        if args.dry_run:
            print("Dry run, nothing written. Artifacts:")
            for path in report.artifacts:
                print(f"  {path}")
        else:
            print(f"Wrote {len(report.artifacts)} artifacts to {config.output_dir}")
        print(report.summary())

    return 0 if report.ok else 1


def cmd_inspect(args: argparse.Namespace) -> int:
    config = _load_config_or_report(args.config)
    if config is None:
        return 1

    try:
        build = load_catalog(config)
    except CrawlGenError as exc:
        print(f"Inspect failed: {exc}", file=sys.stderr)
        return 1

    tables, issues = resolve_all(build, config)
    if args.table:
        wanted = {name.lower() for name in args.table}
        tables = [t for t in tables if t.name.lower() in wanted or t.canonical_name.lower() in wanted]

    payload = {"tables": [table_to_dict(table) for table in tables]}
    if args.format == "json":
        print(json.dumps(payload, indent=2))
    else:
        print(yaml.safe_dump(payload, sort_keys=False), end="")

    if issues:
        for line in to_lines(issues):
            print(line, file=sys.stderr)
    return 0


def cmd_sources(args: argparse.Namespace) -> int:
    sources = list_sources()
    if getattr(args, "output_json", False):
        print(json.dumps(sources, indent=2))
    else:
        print("Available schema sources:\n")
        for s in sources:
            status = "installed" if s["installed"] else "NOT INSTALLED"
            print(f"  {s['type']:14s}  {s['name']:38s}  driver: {s['driver']:10s}  [{status}]")
    return 0


def cmd_validate_config(args: argparse.Namespace) -> int:
    config = _load_config_or_report(args.config)
    if config is None:
        return 1
    _print_issues([])
    return 0


def cmd_print_config_schema(args: argparse.Namespace) -> int:
    print(json.dumps(load_config_schema(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cg", description="Crawler code generator CLI")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)")
    parser.add_argument("--log-json", action="store_true", help="Emit log records as JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    init_parser = sub.add_parser("init", help="Write a starter crawlgen.yaml")
    init_parser.add_argument("--path", default=".", help="Workspace path")
    init_parser.set_defaults(func=cmd_init)

    generate_parser = sub.add_parser("generate", help="Generate crawler artifacts for every table")
    generate_parser.add_argument("--config", default=DEFAULT_CONFIG_NAME, help="Path to generator config YAML")
    generate_parser.add_argument("--out-dir", help="Override output directory")
    generate_parser.add_argument("--workers", type=int, help="Override number of worker threads")
    generate_parser.add_argument("--crawler-name", help="Override crawler name")
    generate_parser.add_argument("--dry-run", action="store_true", help="List artifacts without writing them")
    generate_parser.add_argument("--output-json", action="store_true", help="Print the run report as JSON")
    generate_parser.set_defaults(func=cmd_generate)

    inspect_parser = sub.add_parser("inspect", help="Show the resolved view of each table")
    inspect_parser.add_argument("--config", default=DEFAULT_CONFIG_NAME, help="Path to generator config YAML")
    inspect_parser.add_argument("--table", action="append", help="Only show this table (repeatable)")
    inspect_parser.add_argument("--format", choices=["yaml", "json"], default="yaml", help="Output format")
    inspect_parser.set_defaults(func=cmd_inspect)

    validate_parser = sub.add_parser("validate-config", help="Validate a generator config")
    validate_parser.add_argument("--config", default=DEFAULT_CONFIG_NAME, help="Path to generator config YAML")
    validate_parser.set_defaults(func=cmd_validate_config)

    sources_parser = sub.add_parser("sources", help="List schema sources and driver status")
    sources_parser.add_argument("--output-json", action="store_true", help="Print as JSON")
    sources_parser.set_defaults(func=cmd_sources)

    schema_parser = sub.add_parser("print-config-schema", help="Print the config JSON schema")
    schema_parser.set_defaults(func=cmd_print_config_schema)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level_for_verbosity(args.verbose), json_format=args.log_json)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
