#!/usr/bin/env python3
"""
Command line front end for flow graph analysis
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from flowgraph.analysis import analyze_flow_graph
from flowgraph.config import Settings, load_settings, setup_logging
from flowgraph.errors import FlowGraphError
from flowgraph.preprocess import save_json
from flowgraph.runtime import load_graph
from flowgraph.schema import AppType
from flowgraph.templates import get_suggested_graph_templates
from flowgraph.validator import validate_graph
from flowgraph.visualize import (
    MERMAID_DIRECTIONS,
    MERMAID_THEMES,
    draw_with_legend,
    to_ascii,
    to_markdown_summary,
    to_mermaid,
)

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("markdown", "ascii", "mermaid", "json")


def cmd_templates(args: argparse.Namespace, settings: Settings) -> int:
    templates = get_suggested_graph_templates(args.app_type)
    if not templates:
        print(f"No templates for app type '{args.app_type}'")
        return 0

    for t in templates:
        app_types = ", ".join(a.value for a in t.app_types)
        print(f"{t.id:<28} [{t.priority.value}] {t.name}")
        print(f"   app types: {app_types} | nodes: {len(t.nodes)} | edges: {len(t.edges)}")
    return 0


def cmd_analyze(args: argparse.Namespace, settings: Settings) -> int:
    graph = load_graph(args.source)
    max_paths = args.max_paths or settings.max_paths
    direction = args.direction or settings.direction
    theme = args.theme or settings.theme

    analysis = analyze_flow_graph(graph, max_paths=max_paths)
    highlight = analysis.happy_path.node_ids if (args.highlight_happy_path and analysis.happy_path) else None

    if args.format == "markdown":
        print(to_markdown_summary(analysis, direction=direction, theme=theme))
    elif args.format == "ascii":
        print(to_ascii(graph))
    elif args.format == "mermaid":
        print(to_mermaid(graph, direction=direction, theme=theme, highlight_path=highlight))
    else:
        print(json.dumps(analysis.model_dump(mode="json"), ensure_ascii=False, indent=2))

    if args.png:
        draw_with_legend(graph, args.png, highlight_path=highlight)
    return 0


def cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    graph = load_graph(args.source, validate=False)
    report = validate_graph(graph)

    print(f"Validating graph: {graph.name}")
    for e in report.errors:
        print(f"   ❌ {e}")
    for w in report.warnings:
        print(f"   ⚠️ {w}")

    if report.ok:
        print(f"✅ Graph is valid ({len(graph.nodes)} nodes, {len(graph.edges)} edges)")
        return 0
    print("❌ Graph validation failed")
    return 1


def cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    graph = load_graph(args.source)
    save_json(graph, args.output)
    print(f"✅ Graph written to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowgraph",
        description="Static analysis of multi-screen user journey graphs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List templates for an app type
  flowgraph templates --app-type ecommerce

  # Analyze a template and print a Markdown summary
  flowgraph analyze ecommerce-checkout-graph

  # Analyze a graph file, print the Mermaid diagram and save a PNG
  flowgraph analyze flows/checkout.json --format mermaid --png checkout.png
        """
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p_templates = sub.add_parser("templates", help="List graph templates")
    p_templates.add_argument(
        '--app-type',
        default=AppType.UNKNOWN.value,
        choices=[a.value for a in AppType],
        help='Only templates supporting this app type (default: all)'
    )
    p_templates.set_defaults(handler=cmd_templates)

    p_analyze = sub.add_parser("analyze", help="Analyze a template id or graph JSON file")
    p_analyze.add_argument('source', help='Template id or path to a graph JSON file')
    p_analyze.add_argument('--format', '-f', choices=OUTPUT_FORMATS, default="markdown")
    p_analyze.add_argument('--max-paths', type=int, help='Path enumeration cap (default: FLOWGRAPH_MAX_PATHS)')
    p_analyze.add_argument('--direction', choices=MERMAID_DIRECTIONS, help='Mermaid direction')
    p_analyze.add_argument('--theme', choices=MERMAID_THEMES, help='Mermaid theme')
    p_analyze.add_argument(
        '--highlight-happy-path',
        action='store_true',
        help='Highlight the happy path in Mermaid and PNG output'
    )
    p_analyze.add_argument('--png', help='Also draw the graph to this PNG file')
    p_analyze.set_defaults(handler=cmd_analyze)

    p_validate = sub.add_parser("validate", help="Validate graph structure")
    p_validate.add_argument('source', help='Template id or path to a graph JSON file')
    p_validate.set_defaults(handler=cmd_validate)

    p_export = sub.add_parser("export", help="Write a graph as JSON")
    p_export.add_argument('source', help='Template id or path to a graph JSON file')
    p_export.add_argument('output', help='Output JSON path')
    p_export.set_defaults(handler=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ValidationError as e:
        print(f"❌ Invalid FLOWGRAPH_* settings: {e}")
        return 1

    setup_logging(args.verbose, settings.log_file, settings.log_level)

    try:
        return args.handler(args, settings)
    except FlowGraphError as e:
        logger.error(f"{e.code}: {e.message}")
        print(f"❌ {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
