"""
Command-line interface for nodeflow.

Usage:
    nodeflow run workflow.json --message "hello there"
    nodeflow run workflow.json --message "hi" --json
    nodeflow validate workflow.json
    nodeflow catalog --category flow
"""

import argparse
import asyncio
import json
import sys

from nodeflow.config import LOG_LEVELS, EngineConfig
from nodeflow.errors import WorkflowDocumentError
from nodeflow.graph.document import load_workflow
from nodeflow.graph.executor import WorkflowExecutor
from nodeflow.nodes.builtin import create_default_registry
from nodeflow.nodes.catalog import NodeCategory, list_node_definitions
from nodeflow.observability import configure_logging
from nodeflow.schemas.execution import ExecutionStatus, NodeExecution


def _print_start(record: NodeExecution) -> None:
    print(f"▶ {record.node_label} ({record.node_type})")


def _print_complete(record: NodeExecution) -> None:
    if record.status == ExecutionStatus.SUCCESS:
        branch = f" → {record.branch}" if record.branch is not None else ""
        print(f"  ✓ {record.node_label} {record.duration_ms}ms{branch}")
    else:
        print(f"  ✗ {record.node_label}: {record.error}")


def cmd_run(args: argparse.Namespace) -> int:
    config = EngineConfig()
    configure_logging(level=args.log_level or config.log_level, format=config.log_format)

    try:
        graph = load_workflow(args.workflow)
    except WorkflowDocumentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    executor = WorkflowExecutor(
        registry=create_default_registry(
            simulate_delay=args.simulate_delay or config.simulate_delay
        ),
        node_timeout=args.timeout if args.timeout is not None else config.node_timeout,
        fail_fast=args.fail_fast or config.fail_fast,
    )

    quiet = args.json
    result = asyncio.run(
        executor.execute(
            graph=graph,
            message=args.message,
            on_node_start=None if quiet else _print_start,
            on_node_complete=None if quiet else _print_complete,
        )
    )

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print()
        if result.skipped:
            print(f"Skipped: {', '.join(result.skipped)}")
        if result.unreached:
            print(f"Unreached: {', '.join(result.unreached)}")
        if result.error:
            print(f"Error: {result.error}")
        print(f"Finished in {result.total_duration_ms}ms")
        print()
        print(result.final_output)

    return 0 if result.success else 1


def cmd_validate(args: argparse.Namespace) -> int:
    try:
        graph = load_workflow(args.workflow)
    except WorkflowDocumentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    known_types = {d.type for d in list_node_definitions()}
    problems = graph.validate(known_types=known_types)
    if not problems:
        print(f"✓ '{graph.name}' is valid ({len(graph.nodes)} nodes, {len(graph.edges)} edges)")
        return 0

    print(f"✗ '{graph.name}' has {len(problems)} problem(s):")
    for problem in problems:
        print(f"  • {problem}")
    return 1


def cmd_catalog(args: argparse.Namespace) -> int:
    definitions = list_node_definitions(args.category)
    if args.json:
        print(json.dumps([d.model_dump(mode="json") for d in definitions], indent=2))
        return 0

    for definition in definitions:
        print(
            f"{definition.type:<16} {definition.category.value:<9} "
            f"in={definition.inputs} out={definition.outputs}  {definition.description}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodeflow",
        description="nodeflow - Run node-graph workflows against a message",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a workflow document")
    run_parser.add_argument("workflow", help="Path to a workflow JSON document")
    run_parser.add_argument("--message", "-m", default="", help="Trigger message")
    run_parser.add_argument(
        "--timeout", type=float, default=None, help="Per-node timeout in seconds"
    )
    run_parser.add_argument(
        "--fail-fast", action="store_true", help="Stop at the first failed node"
    )
    run_parser.add_argument(
        "--simulate-delay", action="store_true", help="Simulate node latency"
    )
    run_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    run_parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level (default: INFO)",
    )
    run_parser.set_defaults(func=cmd_run)

    validate_parser = subparsers.add_parser("validate", help="Check a workflow document")
    validate_parser.add_argument("workflow", help="Path to a workflow JSON document")
    validate_parser.set_defaults(func=cmd_validate)

    catalog_parser = subparsers.add_parser("catalog", help="List built-in node types")
    catalog_parser.add_argument(
        "--category", choices=[c.value for c in NodeCategory], default=None
    )
    catalog_parser.add_argument("--json", action="store_true", help="Print as JSON")
    catalog_parser.set_defaults(func=cmd_catalog)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
