"""
Static analysis over an immutable flow graph snapshot.

Every function here is total over a structurally valid graph: a graph
with no reachable end state yields empty results instead of an error.
Traversals use explicit stacks so deep chains do not hit the interpreter
recursion limit.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .schema import (
    FlowEdge,
    FlowGraph,
    FlowGraphAnalysis,
    FlowGraphMetrics,
    FlowNodeType,
    FlowPath,
    FlowRecommendations,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATHS = 100


def _adjacency(graph: FlowGraph) -> Dict[str, List[FlowEdge]]:
    adjacency: Dict[str, List[FlowEdge]] = {}
    for edge in graph.edges:
        adjacency.setdefault(edge.source, []).append(edge)
    return adjacency


def _new_path(index: int, node_ids: List[str], edge_ids: List[str]) -> FlowPath:
    return FlowPath(
        id=f"path-{index}",
        name=f"Path {index}",
        node_ids=node_ids,
        edge_ids=edge_ids,
    )


# ============================================================================
# Path enumeration
# ============================================================================

def find_all_paths(graph: FlowGraph, max_paths: int = DEFAULT_MAX_PATHS) -> List[FlowPath]:
    """Enumerate start-to-end paths depth first.

    A node may appear on many paths but never twice on the same one: an
    edge back to a node on the current path ends that branch without
    recording anything. Enumeration stops once ``max_paths`` paths exist.
    """
    paths, _ = _enumerate_paths(graph, max_paths)
    _label_paths(graph, paths)
    logger.debug(f"find_all_paths: {len(paths)} path(s) in {graph.name} (max {max_paths})")
    return paths


def _enumerate_paths(graph: FlowGraph, max_paths: int) -> Tuple[List[FlowPath], bool]:
    """Raw DFS enumeration. The flag is set only when a path beyond the cap exists."""
    paths: List[FlowPath] = []
    if max_paths <= 0:
        return paths, False

    adjacency = _adjacency(graph)
    end_ids = set(graph.end_node_ids)
    start = graph.start_node_id

    if start in end_ids:
        paths.append(_new_path(1, [start], []))
        return paths, False

    node_stack: List[str] = [start]
    edge_stack: List[str] = []
    on_path: Set[str] = {start}
    branches: List[Iterator[FlowEdge]] = [iter(adjacency.get(start, []))]

    while branches:
        edge = next(branches[-1], None)
        if edge is None:
            branches.pop()
            on_path.discard(node_stack.pop())
            if edge_stack:
                edge_stack.pop()
            continue

        target = edge.target
        if target in end_ids:
            if len(paths) >= max_paths:
                # One more complete path exists past the cap
                return paths, True
            paths.append(_new_path(len(paths) + 1, [*node_stack, target], [*edge_stack, edge.id]))
            continue
        if target in on_path:
            continue

        node_stack.append(target)
        edge_stack.append(edge.id)
        on_path.add(target)
        branches.append(iter(adjacency.get(target, [])))

    return paths, False


def _label_paths(graph: FlowGraph, paths: List[FlowPath]) -> None:
    if not paths:
        return

    # min() keeps the first of equally short paths
    happy = min(paths, key=lambda p: p.length)
    happy.is_happy_path = True
    happy.name = "Happy Path"

    # Critical path: exact sequence match with the declared critical path
    if not graph.critical_path:
        return
    for path in paths:
        if path.node_ids == graph.critical_path:
            path.is_critical_path = True
            if not path.is_happy_path:
                path.name = "Critical Path"


# ============================================================================
# Structural defects
# ============================================================================

def find_dead_ends(graph: FlowGraph) -> List[str]:
    """Non-terminal nodes without any outgoing edge"""
    with_outgoing = {e.source for e in graph.edges}
    end_ids = set(graph.end_node_ids)
    return [
        n.id for n in graph.nodes
        if n.id not in with_outgoing and n.id not in end_ids and n.type != FlowNodeType.END
    ]


def find_orphan_nodes(graph: FlowGraph) -> List[str]:
    """Nodes unreachable from the start node"""
    reachable = _reachable_from(graph, graph.start_node_id)
    return [n.id for n in graph.nodes if n.id not in reachable]


def _reachable_from(graph: FlowGraph, start: str) -> Set[str]:
    adjacency = _adjacency(graph)
    reachable: Set[str] = set()
    queue: deque[str] = deque([start])
    while queue:
        cur = queue.popleft()
        if cur in reachable:
            continue
        reachable.add(cur)
        for edge in adjacency.get(cur, []):
            if edge.target not in reachable:
                queue.append(edge.target)
    return reachable


def detect_cycles(graph: FlowGraph) -> List[List[str]]:
    """Report each back edge found by DFS as a closed node sequence.

    ``a -> b -> a`` is reported as ``["a", "b", "a"]``. Roots are tried in
    node declaration order; overlapping loops may share nodes.
    """
    adjacency = _adjacency(graph)
    cycles: List[List[str]] = []
    visited: Set[str] = set()

    for root in graph.node_ids():
        if root in visited:
            continue

        visited.add(root)
        path: List[str] = [root]
        on_stack: Set[str] = {root}
        branches: List[Iterator[FlowEdge]] = [iter(adjacency.get(root, []))]

        while branches:
            edge = next(branches[-1], None)
            if edge is None:
                branches.pop()
                on_stack.discard(path.pop())
                continue

            target = edge.target
            if target not in visited:
                visited.add(target)
                on_stack.add(target)
                path.append(target)
                branches.append(iter(adjacency.get(target, [])))
            elif target in on_stack:
                cycle = path[path.index(target):]
                cycle.append(target)
                cycles.append(cycle)

    return cycles


# ============================================================================
# Aggregate
# ============================================================================

def analyze_flow_graph(graph: FlowGraph, max_paths: Optional[int] = None) -> FlowGraphAnalysis:
    limit = DEFAULT_MAX_PATHS if max_paths is None else max_paths
    paths, truncated = _enumerate_paths(graph, limit)
    _label_paths(graph, paths)
    dead_ends = find_dead_ends(graph)
    orphan_nodes = find_orphan_nodes(graph)
    cycles = detect_cycles(graph)

    if truncated:
        logger.warning(f"Path enumeration for '{graph.name}' stopped at {limit} paths; results may be partial")

    lengths = [p.length for p in paths]
    metrics = FlowGraphMetrics(
        total_nodes=len(graph.nodes),
        total_edges=len(graph.edges),
        total_paths=len(paths),
        max_path_length=max(lengths) if lengths else 0,
        min_path_length=min(lengths) if lengths else 0,
        avg_path_length=sum(lengths) / len(lengths) if lengths else 0.0,
        decision_points=graph.total_decision_points,
        dead_ends=dead_ends,
        orphan_nodes=orphan_nodes,
        cycles=cycles,
    )

    logger.info(
        f"Analyzed '{graph.name}': {metrics.total_nodes} nodes, {metrics.total_edges} edges, "
        f"{metrics.total_paths} paths, {len(dead_ends)} dead end(s), "
        f"{len(orphan_nodes)} orphan(s), {len(cycles)} cycle(s)"
    )

    return FlowGraphAnalysis(
        graph=graph,
        paths=paths,
        metrics=metrics,
        node_issues={},
        edge_issues={},
        path_issues={},
        recommendations=FlowRecommendations(),
    )
