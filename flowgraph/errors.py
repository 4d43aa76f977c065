"""
Domain errors raised by graph construction and graph loading.

All of them signal caller or data bugs; none is retryable. They subclass
ValueError so callers that only care about "bad input" can catch that.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FlowGraphError(ValueError):
    """Base class for flow graph errors"""

    code = "FLOW_GRAPH_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class DuplicateNodeError(FlowGraphError):
    code = "DUPLICATE_NODE"

    def __init__(self, node_id: str) -> None:
        super().__init__(f'Node with id "{node_id}" already exists', {"node_id": node_id})
        self.node_id = node_id


class NodeNotFoundError(FlowGraphError):
    code = "NODE_NOT_FOUND"

    def __init__(self, node_id: str, role: str) -> None:
        super().__init__(
            f'{role.capitalize()} node "{node_id}" not found',
            {"node_id": node_id, "role": role},
        )
        self.node_id = node_id
        self.role = role


class EdgeNotFoundError(FlowGraphError):
    code = "EDGE_NOT_FOUND"

    def __init__(self, source_id: str, target_id: str) -> None:
        super().__init__(
            f'No edge exists between "{source_id}" and "{target_id}"',
            {"source": source_id, "target": target_id},
        )
        self.source_id = source_id
        self.target_id = target_id


class GraphLoadError(FlowGraphError):
    """A graph document or graph source could not be read"""

    code = "GRAPH_LOAD_FAILED"
