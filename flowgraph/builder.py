from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, Union

import networkx as nx

from .errors import DuplicateNodeError, EdgeNotFoundError, NodeNotFoundError
from .schema import AppType, FlowEdge, FlowGraph, FlowNode, FlowNodeType

logger = logging.getLogger(__name__)


# ============================================================================
# Node / Edge / Graph factories
# ============================================================================

def create_node(
    id: str,
    screen_name: str,
    type: Union[str, FlowNodeType] = FlowNodeType.SCREEN,
    **options: Any,
) -> FlowNode:
    """Create a flow node. ``description`` defaults to the screen name."""
    options.setdefault("description", screen_name)
    return FlowNode(id=id, type=type, screen_name=screen_name, **options)


def create_edge(source: str, target: str, **options: Any) -> FlowEdge:
    """Create a flow edge with id ``"<source>-><target>"`` unless one is given."""
    options.setdefault("id", f"{source}->{target}")
    return FlowEdge(source=source, target=target, **options)


def create_empty_graph(name: str, app_type: Union[str, AppType] = AppType.UNKNOWN) -> FlowGraph:
    start_node = create_node("start", "Start", FlowNodeType.START, description="Flow entry point")
    end_node = create_node("end", "End", FlowNodeType.END, description="Flow completion")

    return FlowGraph(
        id=new_graph_id(),
        name=name,
        description="",
        app_type=app_type,
        version="1.0.0",
        nodes=[start_node, end_node],
        edges=[],
        start_node_id="start",
        end_node_ids=["end"],
        critical_path=["start", "end"],
        total_screens=0,
        total_decision_points=0,
        estimated_paths=1,
    )


def new_graph_id() -> str:
    return f"graph-{int(time.time() * 1000)}"


# ============================================================================
# Pure mutators: every call returns a new graph
# ============================================================================

def add_node(graph: FlowGraph, node: FlowNode) -> FlowGraph:
    if graph.has_node(node.id):
        raise DuplicateNodeError(node.id)

    total_screens = graph.total_screens + (1 if node.type == FlowNodeType.SCREEN else 0)
    total_decisions = graph.total_decision_points + (1 if node.type == FlowNodeType.DECISION else 0)

    logger.debug(f"add_node: {node.id} ({node.type.value}) -> {graph.name}")
    return graph.model_copy(update={
        "nodes": [*graph.nodes, node],
        "total_screens": total_screens,
        "total_decision_points": total_decisions,
    })


def add_edge(graph: FlowGraph, edge: FlowEdge) -> FlowGraph:
    if not graph.has_node(edge.source):
        raise NodeNotFoundError(edge.source, "source")
    if not graph.has_node(edge.target):
        raise NodeNotFoundError(edge.target, "target")

    edges = [*graph.edges, edge]
    logger.debug(f"add_edge: {edge.id} ({edge.type.value}) -> {graph.name}")
    return graph.model_copy(update={
        "edges": edges,
        "estimated_paths": calculate_estimated_paths(graph.nodes, edges),
    })


def connect_nodes(graph: FlowGraph, source_id: str, target_id: str, **options: Any) -> FlowGraph:
    return add_edge(graph, create_edge(source_id, target_id, **options))


def insert_node_between(
    graph: FlowGraph,
    new_node: FlowNode,
    source_id: str,
    target_id: str,
) -> FlowGraph:
    """Split the ``source -> target`` connection with ``new_node``.

    The original edge is removed and both replacement edges keep its type.
    Screen/decision counters are updated through ``add_node``.
    """
    existing = graph.find_edge(source_id, target_id)
    if existing is None:
        raise EdgeNotFoundError(source_id, target_id)

    remaining = [e for e in graph.edges if e is not existing]
    result = add_node(graph.model_copy(update={"edges": remaining}), new_node)
    result = connect_nodes(result, source_id, new_node.id, type=existing.type)
    result = connect_nodes(result, new_node.id, target_id, type=existing.type)
    return result


# ============================================================================
# Derived counters
# ============================================================================

def calculate_estimated_paths(nodes: Iterable[FlowNode], edges: Iterable[FlowEdge]) -> int:
    """Product of branch counts over decision nodes.

    An upper bound only: branches that reconverge are counted once per
    combination.
    """
    out_degree: Dict[str, int] = {}
    for edge in edges:
        out_degree[edge.source] = out_degree.get(edge.source, 0) + 1

    paths = 1
    for node in nodes:
        if node.type != FlowNodeType.DECISION:
            continue
        branches = out_degree.get(node.id, 0)
        if branches > 1:
            paths *= branches
    return paths


# ============================================================================
# networkx projection
# ============================================================================

def build_nx_graph(graph: FlowGraph) -> nx.MultiDiGraph:
    """Project a flow graph onto a networkx MultiDiGraph.

    Edges are keyed by edge id. Insertion order follows ``graph.edges`` so
    successor iteration matches declaration order. Edges pointing at unknown
    node ids (hand-built graphs) are skipped.
    """
    g: nx.MultiDiGraph = nx.MultiDiGraph()

    for node in graph.nodes:
        g.add_node(
            node.id,
            type=node.type,
            screen_name=node.screen_name,
            position=node.position,
        )

    for edge in graph.edges:
        if edge.source not in g or edge.target not in g:
            continue
        g.add_edge(edge.source, edge.target, key=edge.id, type=edge.type, label=edge.label or "")

    return g
