from __future__ import annotations

import logging
from collections import Counter
from typing import List

from pydantic import Field

from .analysis import find_dead_ends, find_orphan_nodes
from .builder import build_nx_graph
from .schema import BaseConfig, FlowGraph
from .toposort import kahn_toposort

logger = logging.getLogger(__name__)


class ValidationReport(BaseConfig):
    ok: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    dead_ends: List[str] = Field(default_factory=list)
    orphan_nodes: List[str] = Field(default_factory=list)
    cyclic_nodes: List[str] = Field(default_factory=list)
    topological_order: List[str] = Field(default_factory=list)


def validate_graph(graph: FlowGraph) -> ValidationReport:
    """Check a whole graph at once.

    The mutators in ``flowgraph.builder`` keep these invariants on their
    own; this is for graphs assembled by hand or loaded from elsewhere.
    Errors break referential integrity, warnings are design defects.
    """
    warnings: List[str] = []
    errors: List[str] = []

    node_ids = graph.node_ids()
    known = set(node_ids)

    duplicates = sorted(n for n, count in Counter(node_ids).items() if count > 1)
    if duplicates:
        errors.append(f"Duplicate node ids: {duplicates}")

    if graph.start_node_id not in known:
        errors.append(f"Start node '{graph.start_node_id}' is not in the graph")

    if not graph.end_node_ids:
        errors.append("No end node declared")
    missing_ends = [n for n in graph.end_node_ids if n not in known]
    if missing_ends:
        errors.append(f"End nodes not in the graph: {missing_ends}")

    for edge in graph.edges:
        if edge.source not in known:
            errors.append(f"Edge '{edge.id}' references unknown source '{edge.source}'")
        if edge.target not in known:
            errors.append(f"Edge '{edge.id}' references unknown target '{edge.target}'")

    dead_ends = find_dead_ends(graph)
    if dead_ends:
        warnings.append(f"Dead ends: {dead_ends}")

    orphans = find_orphan_nodes(graph)
    if orphans:
        warnings.append(f"Unreachable from '{graph.start_node_id}': {orphans}")

    topo = kahn_toposort(build_nx_graph(graph))
    if not topo.success:
        warnings.append(f"Cycles involve: {sorted(topo.cyclic_nodes)}")

    critical = graph.critical_path
    for source_id, target_id in zip(critical, critical[1:]):
        if graph.find_edge(source_id, target_id) is None:
            warnings.append(f"Critical path step '{source_id}' -> '{target_id}' has no edge")

    report = ValidationReport(
        ok=not errors,
        errors=errors,
        warnings=warnings,
        dead_ends=dead_ends,
        orphan_nodes=orphans,
        cyclic_nodes=topo.cyclic_nodes,
        topological_order=topo.order if topo.success else [],
    )
    for w in warnings:
        logger.warning(f"{graph.name}: {w}")
    for e in errors:
        logger.error(f"{graph.name}: {e}")
    return report
