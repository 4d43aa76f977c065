from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import networkx as nx

from .analysis import find_all_paths, find_orphan_nodes
from .builder import build_nx_graph
from .schema import FlowEdge, FlowEdgeType, FlowGraph, FlowGraphAnalysis, FlowNodeType

logger = logging.getLogger(__name__)


# ============================================================================
# Lookup tables
# ============================================================================

MERMAID_DIRECTIONS = ("TB", "TD", "BT", "LR", "RL")
MERMAID_THEMES = ("default", "dark", "forest", "neutral")

NODE_SHAPES: Dict[FlowNodeType, Tuple[str, str]] = {
    FlowNodeType.START: ("([", "])"),       # stadium
    FlowNodeType.END: ("([", "])"),
    FlowNodeType.SCREEN: ("[", "]"),        # rectangle
    FlowNodeType.DECISION: ("{", "}"),      # diamond
    FlowNodeType.MERGE: ("((", "))"),       # circle
    FlowNodeType.ERROR: ("[/", "/]"),       # parallelogram
    FlowNodeType.EXTERNAL: ("[[", "]]"),    # subroutine
}

EDGE_ARROWS: Dict[FlowEdgeType, str] = {
    FlowEdgeType.SUCCESS: "==>",
    FlowEdgeType.ERROR: "-.->",
    FlowEdgeType.OPTIONAL: "-.->",
}

EDGE_TYPE_LABELS: Dict[FlowEdgeType, str] = {
    FlowEdgeType.SUCCESS: "Success",
    FlowEdgeType.ERROR: "Error",
    FlowEdgeType.CONDITIONAL: "Conditional",
    FlowEdgeType.OPTIONAL: "Optional",
    FlowEdgeType.BACK: "Back",
    FlowEdgeType.EXIT: "Exit",
}

CLASS_DEFS = (
    "classDef highlight fill:#f9f,stroke:#333,stroke-width:2px",
    "classDef decision fill:#ffd,stroke:#333",
    "classDef error fill:#fdd,stroke:#933",
    "classDef start fill:#dfd,stroke:#393",
    "classDef end fill:#ddf,stroke:#339",
)
HIGHLIGHT_LINK_STYLE = "stroke:#f9f,stroke-width:2px"

NODE_ICONS: Dict[FlowNodeType, str] = {
    FlowNodeType.START: "▶",
    FlowNodeType.END: "◼",
    FlowNodeType.SCREEN: "□",
    FlowNodeType.DECISION: "◇",
    FlowNodeType.MERGE: "○",
    FlowNodeType.ERROR: "⚠",
    FlowNodeType.EXTERNAL: "↗",
}

ASCII_CENTER = 20
ASCII_RULE = 40

# Node type → color map (PNG)
NODE_COLORS: Dict[FlowNodeType, str] = {
    FlowNodeType.START: "#90EE90",
    FlowNodeType.SCREEN: "#87CEEB",
    FlowNodeType.DECISION: "#F0E68C",
    FlowNodeType.MERGE: "#DDA0DD",
    FlowNodeType.EXTERNAL: "#FFB6C1",
    FlowNodeType.END: "#FFA07A",
    FlowNodeType.ERROR: "#FF6B6B",
}


# ============================================================================
# Mermaid
# ============================================================================

def _escape_label(text: str) -> str:
    return text.replace('"', '\\"').replace("|", "#124;")


def _edge_label(edge: FlowEdge, show_labels: bool, type_labels: bool) -> Optional[str]:
    if show_labels and edge.label:
        return edge.label
    if type_labels:
        return EDGE_TYPE_LABELS.get(edge.type)
    return None


def to_mermaid(
    graph: FlowGraph,
    direction: str = "TB",
    show_labels: bool = True,
    type_labels: bool = True,
    highlight_path: Optional[Sequence[str]] = None,
    theme: str = "default",
) -> str:
    """Render the graph as a Mermaid flowchart.

    Args:
        graph: Graph to render
        direction: One of TB, TD, BT, LR, RL
        show_labels: Show each edge's own label when it has one
        type_labels: Fall back to a generic label ("Success", "Error", ...)
            for non-default edge types
        highlight_path: Node ids to highlight; edges between two of them
            are highlighted too
        theme: Mermaid theme name
    """
    if direction not in MERMAID_DIRECTIONS:
        raise ValueError(f"Unsupported direction '{direction}', expected one of {MERMAID_DIRECTIONS}")
    if theme not in MERMAID_THEMES:
        raise ValueError(f"Unsupported theme '{theme}', expected one of {MERMAID_THEMES}")

    highlight = set(highlight_path or ())
    lines: List[str] = [
        f"%%{{init: {{'theme': '{theme}'}}}}%%",
        f"flowchart {direction}",
    ]

    for node in graph.nodes:
        open_, close = NODE_SHAPES.get(node.type, ("[", "]"))
        suffix = ":::highlight" if node.id in highlight else ""
        lines.append(f'    {node.id}{open_}"{_escape_label(node.screen_name)}"{close}{suffix}')

    lines.append("")

    highlighted_links: List[str] = []
    for index, edge in enumerate(graph.edges):
        arrow = EDGE_ARROWS.get(edge.type, "-->")
        label = _edge_label(edge, show_labels, type_labels)
        style = f"|{_escape_label(label)}|" if label else ""
        lines.append(f"    {edge.source} {arrow}{style} {edge.target}")
        if edge.source in highlight and edge.target in highlight:
            highlighted_links.append(str(index))

    lines.append("")
    lines.extend(f"    {class_def}" for class_def in CLASS_DEFS)

    nodes_by_type: Dict[FlowNodeType, List[str]] = {}
    for node in graph.nodes:
        nodes_by_type.setdefault(node.type, []).append(node.id)
    for node_type, ids in nodes_by_type.items():
        if node_type != FlowNodeType.SCREEN:
            lines.append(f"    class {','.join(ids)} {node_type.value}")

    if highlighted_links:
        lines.append(f"    linkStyle {','.join(highlighted_links)} {HIGHLIGHT_LINK_STYLE}")

    return "\n".join(lines)


# ============================================================================
# ASCII
# ============================================================================

def get_node_icon(node_type: FlowNodeType) -> str:
    return NODE_ICONS.get(node_type, "□")


def to_ascii(graph: FlowGraph) -> str:
    """Boxed rendering of the first start-to-end path plus decision branches"""
    paths = find_all_paths(graph, 1)
    if not paths:
        return "Empty graph"

    walk = paths[0].node_ids
    lines: List[str] = [f"Flow: {graph.name}", "═" * ASCII_RULE, ""]

    for i, node_id in enumerate(walk):
        node = graph.get_node(node_id)
        if node is None:
            continue

        box = f"{get_node_icon(node.type)} {node.screen_name}"
        padding = " " * max(0, int(ASCII_CENTER - len(box) / 2))
        lines.append(f"{padding}┌{'─' * (len(box) + 2)}┐")
        lines.append(f"{padding}│ {box} │")
        lines.append(f"{padding}└{'─' * (len(box) + 2)}┘")

        if i < len(walk) - 1:
            edge = graph.find_edge(node_id, walk[i + 1])
            label = f" {edge.label}" if edge is not None and edge.label else ""
            lines.append(f"{' ' * ASCII_CENTER}│{label}")
            lines.append(f"{' ' * ASCII_CENTER}▼")

    decisions = [n for n in graph.nodes if n.type == FlowNodeType.DECISION]
    if decisions:
        lines.append("")
        lines.append("Decision Points:")
        lines.append("─" * ASCII_RULE)
        for decision in decisions:
            lines.append(f"  {decision.screen_name}:")
            for edge in graph.outgoing_edges(decision.id):
                label = edge.label or edge.type.value
                lines.append(f"    ├─[{label}]─> {graph.display_name(edge.target)}")

    return "\n".join(lines)


# ============================================================================
# Markdown
# ============================================================================

def _name_list(graph: FlowGraph, node_ids: Iterable[str]) -> List[str]:
    return [f"- {graph.display_name(node_id)}" for node_id in node_ids]


def to_markdown_summary(analysis: FlowGraphAnalysis, direction: str = "TB", theme: str = "default") -> str:
    graph = analysis.graph
    metrics = analysis.metrics
    lines: List[str] = []

    lines.append(f"## 📊 Flow Graph Analysis: {graph.name}")
    lines.append("")
    lines.append("### Overview")
    lines.append(f"- **App Type:** {graph.app_type.value}")
    lines.append(f"- **Total Screens:** {graph.total_screens}")
    lines.append(f"- **Decision Points:** {metrics.decision_points}")
    lines.append(f"- **Total Paths:** {metrics.total_paths}")
    lines.append("")

    lines.append("### Path Statistics")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Shortest Path | {metrics.min_path_length} steps |")
    lines.append(f"| Longest Path | {metrics.max_path_length} steps |")
    lines.append(f"| Average Path | {metrics.avg_path_length:.1f} steps |")
    lines.append("")

    if metrics.dead_ends:
        lines.append("### ⚠️ Dead Ends Detected")
        lines.extend(_name_list(graph, metrics.dead_ends))
        lines.append("")

    if metrics.orphan_nodes:
        lines.append("### ⚠️ Unreachable Nodes")
        lines.extend(_name_list(graph, metrics.orphan_nodes))
        lines.append("")

    if metrics.cycles:
        lines.append("### 🔄 Cycles Detected")
        for cycle in metrics.cycles:
            lines.append(f"- {' → '.join(graph.display_name(n) for n in cycle)}")
        lines.append("")

    lines.append("### Flow Diagram")
    lines.append("```mermaid")
    lines.append(to_mermaid(graph, direction=direction, theme=theme))
    lines.append("```")

    return "\n".join(lines)


# ============================================================================
# PNG (matplotlib)
# ============================================================================

def _try_graphviz_layout(g: nx.MultiDiGraph) -> Dict[str, Tuple[float, float]]:
    try:
        # Prefer pygraphviz if available
        from networkx.drawing.nx_agraph import graphviz_layout
        return graphviz_layout(g, prog="dot")
    except (ImportError, OSError):
        return {}


def _position_layout(graph: FlowGraph) -> Dict[str, Tuple[float, float]]:
    # Only usable when every node carries a layout hint
    if not graph.nodes or any(n.position is None for n in graph.nodes):
        return {}
    return {n.id: (n.position.x, -n.position.y) for n in graph.nodes}


def _depth_layered_layout(graph: FlowGraph) -> Dict[str, Tuple[float, float]]:
    # Columns by BFS depth from the start node; unreachable nodes go last
    depth: Dict[str, int] = {}
    if graph.has_node(graph.start_node_id):
        depth[graph.start_node_id] = 0
        queue: deque[str] = deque([graph.start_node_id])
        while queue:
            cur = queue.popleft()
            for edge in graph.outgoing_edges(cur):
                if edge.target not in depth and graph.has_node(edge.target):
                    depth[edge.target] = depth[cur] + 1
                    queue.append(edge.target)

    last = max(depth.values(), default=-1) + 1
    grouped: Dict[int, List[str]] = {}
    for node in graph.nodes:
        grouped.setdefault(depth.get(node.id, last), []).append(node.id)

    pos: Dict[str, Tuple[float, float]] = {}
    col_gap = 3.0
    row_gap = 1.5
    for col, nodes in sorted(grouped.items()):
        x = col * col_gap
        offset = (len(nodes) - 1) * row_gap / 2.0
        for i, n in enumerate(nodes):
            pos[n] = (x, -offset + i * row_gap)
    return pos


def draw_with_legend(
    graph: FlowGraph,
    save_path: str,
    highlight_path: Optional[Sequence[str]] = None,
) -> None:
    """Draw the graph to a PNG file, colored by node type.

    Unreachable nodes are faded. Edges between consecutive nodes of
    ``highlight_path`` are drawn heavier.
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    from matplotlib.patches import Patch

    g = build_nx_graph(graph)
    g_simple = nx.DiGraph(g)

    pos = _position_layout(graph) or _try_graphviz_layout(g) or _depth_layered_layout(graph)
    if not pos:
        pos = nx.spring_layout(g_simple, seed=42, k=0.7)

    orphans = set(find_orphan_nodes(graph))
    reachable_nodes = [n.id for n in graph.nodes if n.id not in orphans and n.id in g]
    orphan_nodes = [n.id for n in graph.nodes if n.id in orphans and n.id in g]
    labels = {n.id: n.screen_name for n in graph.nodes}

    highlight = list(highlight_path or ())
    highlight_edges = set(zip(highlight, highlight[1:]))
    edges_highlighted = [(u, v) for u, v in g_simple.edges() if (u, v) in highlight_edges]
    edges_normal = [(u, v) for u, v in g_simple.edges() if (u, v) not in highlight_edges]

    plt.figure(figsize=(16, 10))

    if orphan_nodes:
        nx.draw_networkx_nodes(
            g_simple,
            pos,
            nodelist=orphan_nodes,
            node_color="#D3D3D3",
            alpha=0.5,
            node_size=1800,
            edgecolors="#BBBBBB",
            linewidths=1.5,
        )

    if reachable_nodes:
        nx.draw_networkx_nodes(
            g_simple,
            pos,
            nodelist=reachable_nodes,
            node_color=[NODE_COLORS.get(g.nodes[n]["type"], "#D3D3D3") for n in reachable_nodes],
            node_size=2000,
            edgecolors="#444444",
            linewidths=2,
        )

    if edges_normal:
        nx.draw_networkx_edges(
            g_simple,
            pos,
            edgelist=edges_normal,
            arrows=True,
            arrowstyle="-|>",
            arrowsize=18,
            width=2.0,
            edge_color="#777777",
            connectionstyle="arc3,rad=0.06",
        )

    if edges_highlighted:
        nx.draw_networkx_edges(
            g_simple,
            pos,
            edgelist=edges_highlighted,
            arrows=True,
            arrowstyle="-|>",
            arrowsize=22,
            width=3.2,
            edge_color="#CC33CC",
            connectionstyle="arc3,rad=0.06",
        )

    nx.draw_networkx_labels(
        g_simple,
        pos,
        labels=labels,
        font_size=10,
        font_weight="bold",
        font_color="#111111",
    )

    edge_labels: Dict[Tuple[str, str], str] = {}
    for edge in graph.edges:
        if edge.label and (edge.source, edge.target) in g_simple.edges:
            edge_labels.setdefault((edge.source, edge.target), edge.label)
    if edge_labels:
        nx.draw_networkx_edge_labels(
            g_simple,
            pos,
            edge_labels=edge_labels,
            font_size=9,
            bbox=dict(
                boxstyle="round,pad=0.3",
                facecolor="white",
                edgecolor="gray",
                alpha=0.9,
            ),
            label_pos=0.55,
            font_color="#111111",
        )

    handles = [
        Patch(facecolor=col, edgecolor="#444444", label=node_type.value)
        for node_type, col in NODE_COLORS.items()
    ]
    plt.legend(
        handles=handles,
        title="Node type",
        loc="lower left",
        bbox_to_anchor=(1.02, 0),
        borderaxespad=0.0,
    )

    plt.axis("off")
    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches="tight", facecolor="white", edgecolor="none")
    plt.close()
    logger.info(f"Graph image saved: {save_path}")
