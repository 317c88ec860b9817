"""Command line entry point.

Usage::

    nodeform deploy nodes.yml -o build/nodes
    nodeform deploy nodes.yml --docker -P configFile=overrides.conf
    nodeform scan dist/shop-1.0-py3-none-any.whl --baseline api/shop.txt
    nodeform scan src/shop --baseline api/shop.txt --update-baseline
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape

from nodeform.apiscan.baseline import check_baseline
from nodeform.apiscan.report import report_name, scan_artifact, write_report
from nodeform.apiscan.scanner import ScanRules
from nodeform.config import Config
from nodeform.errors import ApiDifferenceError, NodeformError
from nodeform.node.deployer import Deployer, load_deployment
from nodeform.utils import console, print_error, print_success, print_warning

CONFIG_FILE_PROPERTY = "configFile"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodeform",
        description="Assemble ledger node deployments and track public APIs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  nodeform deploy nodes.yml -o build/nodes\n"
            "  nodeform scan dist/shop-1.0-py3-none-any.whl --baseline api/shop.txt\n"
        ),
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    deploy = subcommands.add_parser("deploy", help="Assemble node directories")
    deploy.add_argument("description", help="Path to the YAML deployment description")
    deploy.add_argument("--output", "-o", default=None, help="Output directory (default: ./build/nodes)")
    deploy.add_argument("--docker", action="store_true", help="Produce a Docker deployment")
    deploy.add_argument(
        "--config-file",
        default=None,
        help="File appended to every node.conf (wins over per-node config files)",
    )
    deploy.add_argument(
        "-P",
        dest="properties",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Build property; 'configFile' behaves like --config-file",
    )

    scan = subcommands.add_parser("scan", help="Generate and check an API report")
    scan.add_argument("artifact", help="Package directory, module or wheel to scan")
    scan.add_argument("--name", default=None, help="Report file name (default: derived from artifact)")
    scan.add_argument("--baseline", default=None, help="Baseline file to compare against")
    scan.add_argument(
        "--update-baseline",
        action="store_true",
        help="Overwrite the baseline with the fresh report",
    )
    scan.add_argument(
        "--exclude-annotation",
        action="append",
        default=[],
        metavar="NAME",
        help="Additional decorator name that hides a declaration",
    )
    scan.add_argument("--build-dir", default=None, help="Build directory (default: ./build)")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``nodeform`` / ``python -m nodeform``."""
    args = build_parser().parse_args(argv)
    config = Config.from_env()

    try:
        if args.command == "deploy":
            return _deploy(args, config)
        return _scan(args, config)
    except ApiDifferenceError as exc:
        print_error(str(exc))
        return 1
    except (NodeformError, OSError, ValidationError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        return 1


def _deploy(args: argparse.Namespace, config: Config) -> int:
    updates: dict[str, object] = {}
    if args.output:
        updates["output_dir"] = Path(args.output)
    for prop in args.properties:
        key, sep, value = prop.partition("=")
        if not sep:
            raise ValueError(f"Invalid property {prop!r}; expected KEY=VALUE")
        if key == CONFIG_FILE_PROPERTY:
            updates["config_file"] = Path(value)
        else:
            print_warning(f"Ignoring unknown property {key!r}")
    if args.config_file:
        updates["config_file"] = Path(args.config_file)
    config = config.model_copy(update=updates)

    deployment = load_deployment(args.description)
    Deployer(config).deploy(deployment, docker=args.docker)
    print_success(f"Nodes assembled under {config.output_dir}")
    return 0


def _scan(args: argparse.Namespace, config: Config) -> int:
    scanner_config = config.scanner
    if args.exclude_annotation:
        scanner_config = scanner_config.model_copy(
            update={
                "excluded_annotations": [
                    *scanner_config.excluded_annotations,
                    *args.exclude_annotation,
                ]
            }
        )
    if args.build_dir:
        config = config.model_copy(update={"build_dir": Path(args.build_dir)})

    lines = scan_artifact(args.artifact, ScanRules.from_config(scanner_config))
    report = write_report(lines, config.api_dir / (args.name or report_name(args.artifact)))
    console.print(f"  API report: [bold]{report}[/bold] ({len(lines)} declarations)")

    baseline = Path(args.baseline) if args.baseline else scanner_config.baseline
    if baseline is None:
        return 0

    update = args.update_baseline or scanner_config.update_baseline
    result = check_baseline(lines, baseline, update=update)
    if result.updated:
        print_success(f"Baseline {baseline} updated")
        return 0
    if result.ok:
        print_success("API matches baseline")
        return 0

    for line in result.removed:
        console.print(f"[red]- {escape(line)}[/red]", highlight=False)
    for line in result.added:
        console.print(f"[green]+ {escape(line)}[/green]", highlight=False)
    raise ApiDifferenceError(result.added, result.removed, result.diff)


if __name__ == "__main__":
    sys.exit(main())
