from __future__ import annotations

import os

from flowgraph.analysis import analyze_flow_graph
from flowgraph.config import setup_logging
from flowgraph.templates import ECOMMERCE_CHECKOUT, create_graph_from_template
from flowgraph.visualize import draw_with_legend, to_ascii, to_markdown_summary


def main() -> None:
    setup_logging()
    print("=" * 60)
    print("Flow graph analysis demo")
    print("=" * 60)

    base_dir = os.path.dirname(os.path.abspath(__file__))
    output_png = os.path.join(base_dir, 'checkout_graph.png')

    graph = create_graph_from_template(ECOMMERCE_CHECKOUT)
    analysis = analyze_flow_graph(graph)

    print(to_ascii(graph))
    print()
    print(to_markdown_summary(analysis))

    metrics = analysis.metrics
    print(f"\nTotal nodes: {metrics.total_nodes}")
    print(f"Total edges: {metrics.total_edges}")
    print(f"Paths: {metrics.total_paths} (estimate {graph.estimated_paths})")

    draw_with_legend(graph, output_png, highlight_path=analysis.happy_path.node_ids if analysis.happy_path else None)
    print(f"\n✅ Graph image saved: {output_png}")


if __name__ == "__main__":
    main()
