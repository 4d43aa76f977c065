from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .builder import add_edge, add_node, new_graph_id
from .errors import GraphLoadError
from .schema import AppType, FlowEdge, FlowGraph, FlowNode, FlowNodeType

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def load_json(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _snake_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    # Graph documents may come from camelCase producers (screenName, startNodeId)
    return {_CAMEL_BOUNDARY.sub("_", k).lower(): v for k, v in raw.items()}


def _next_node_edges(node_id: str, next_nodes: List[Any]) -> List[Dict[str, Any]]:
    edges: List[Dict[str, Any]] = []
    for nxt in next_nodes:
        if isinstance(nxt, dict):
            cfg = _snake_keys(nxt)
            target = cfg.pop("target", None) or cfg.pop("name", None)
        else:
            cfg = {}
            target = str(nxt)

        if not target or target == node_id:
            continue  # empty target / self reference

        cfg.setdefault("id", f"{node_id}->{target}")
        edges.append({**cfg, "source": node_id, "target": target})
    return edges


def _split_nodes(raw_nodes: Any) -> Tuple[List[FlowNode], List[Dict[str, Any]]]:
    if isinstance(raw_nodes, dict):
        # {"node_id": {...}} form
        raw_nodes = [{"id": node_id, **(cfg or {})} for node_id, cfg in raw_nodes.items()]
    if not isinstance(raw_nodes, list) or not raw_nodes:
        raise GraphLoadError("Graph document has no nodes")

    nodes: List[FlowNode] = []
    implied_edges: List[Dict[str, Any]] = []
    for entry in raw_nodes:
        if not isinstance(entry, dict):
            raise GraphLoadError(f"Node entry must be an object, got {type(entry).__name__}")
        cfg = _snake_keys(entry)
        next_nodes = cfg.pop("next_nodes", None) or []
        node_id = cfg.get("id")
        if not node_id:
            raise GraphLoadError("Node entry without an id", {"entry": entry})

        cfg.setdefault("screen_name", node_id)
        cfg.setdefault("description", cfg["screen_name"])
        try:
            nodes.append(FlowNode(**cfg))
        except ValidationError as e:
            raise GraphLoadError(f"Invalid node '{node_id}': {e}", {"node_id": node_id}) from e

        implied_edges.extend(_next_node_edges(node_id, next_nodes))
    return nodes, implied_edges


def normalize_raw_to_graph(raw: Dict[str, Any], name: Optional[str] = None) -> FlowGraph:
    """Build a graph from a JSON-style document.

    Nodes and edges go through ``add_node``/``add_edge`` so duplicate ids
    and dangling edges raise the same errors as hand-built graphs.
    """
    if not isinstance(raw, dict) or not raw:
        raise GraphLoadError("Graph document is empty or not an object")

    doc = _snake_keys(raw)
    nodes, implied_edges = _split_nodes(doc.get("nodes"))

    raw_edges = doc.get("edges") or []
    if not isinstance(raw_edges, list):
        raise GraphLoadError("'edges' must be a list")

    start_node_id = doc.get("start_node_id") or "start"
    end_node_ids = doc.get("end_node_ids") or [n.id for n in nodes if n.type == FlowNodeType.END]

    try:
        graph = FlowGraph(
            id=doc.get("id") or new_graph_id(),
            name=name or doc.get("name") or "Untitled Flow",
            description=doc.get("description") or "",
            app_type=doc.get("app_type") or AppType.UNKNOWN,
            version=doc.get("version") or "1.0.0",
            start_node_id=start_node_id,
            end_node_ids=end_node_ids,
            critical_path=doc.get("critical_path") or [],
            tags=doc.get("tags") or [],
            estimated_paths=1,
        )
    except ValidationError as e:
        raise GraphLoadError(f"Invalid graph header: {e}") from e

    for node in nodes:
        graph = add_node(graph, node)

    if not all(isinstance(e, dict) for e in raw_edges):
        raise GraphLoadError("Every edge entry must be an object")

    for entry in [*(_snake_keys(e) for e in raw_edges), *implied_edges]:
        entry.setdefault("id", f"{entry.get('source')}->{entry.get('target')}")
        try:
            edge = FlowEdge(**entry)
        except ValidationError as e:
            raise GraphLoadError(f"Invalid edge '{entry['id']}': {e}", {"edge_id": entry["id"]}) from e
        graph = add_edge(graph, edge)

    if not graph.has_node(graph.start_node_id):
        raise GraphLoadError(f"Start node '{graph.start_node_id}' is not defined")

    logger.debug(f"Normalized graph '{graph.name}': {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return graph


def load_graph_file(path: str, name: Optional[str] = None) -> FlowGraph:
    try:
        raw = load_json(path)
    except FileNotFoundError as e:
        raise GraphLoadError(f"Graph file not found: {path}", {"path": path}) from e
    except json.JSONDecodeError as e:
        raise GraphLoadError(f"Graph file is not valid JSON: {e}", {"path": path}) from e

    graph = normalize_raw_to_graph(raw, name=name)
    logger.info(f"Loaded graph '{graph.name}' from {path} ({len(graph.nodes)} nodes)")
    return graph


def graph_to_dict(graph: FlowGraph) -> Dict[str, Any]:
    return graph.model_dump(mode="json", exclude_none=True)


def save_json(graph: FlowGraph, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(graph_to_dict(graph), f, ensure_ascii=False, indent=2)
    logger.info(f"Graph '{graph.name}' written to {path}")
