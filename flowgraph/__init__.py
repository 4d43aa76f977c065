"""
Flow graph package: user journey graph construction, analysis and rendering
"""

from .schema import (
    AppType, FlowActionType, FlowCondition, FlowEdge, FlowEdgeType, FlowGraph,
    FlowGraphAnalysis, FlowGraphMetrics, FlowGraphTemplate, FlowNode, FlowNodeType,
    FlowPath, FlowRecommendations, FrictionLevel, NodePosition, RoastIssue, Severity,
    TemplatePriority,
)
from .errors import DuplicateNodeError, EdgeNotFoundError, FlowGraphError, GraphLoadError, NodeNotFoundError
from .builder import (
    add_edge, add_node, build_nx_graph, calculate_estimated_paths, connect_nodes,
    create_edge, create_empty_graph, create_node, insert_node_between,
)
from .analysis import analyze_flow_graph, detect_cycles, find_all_paths, find_dead_ends, find_orphan_nodes
from .toposort import TopologyResult, kahn_toposort
from .validator import ValidationReport, validate_graph
from .visualize import draw_with_legend, to_ascii, to_markdown_summary, to_mermaid
from .templates import (
    GRAPH_TEMPLATES, create_graph_from_template, get_critical_graph_templates,
    get_graph_template, get_suggested_graph_templates,
)
from .preprocess import graph_to_dict, load_graph_file, normalize_raw_to_graph, save_json
from .runtime import load_graph

__version__ = "0.1.0"

__all__ = [
    'AppType', 'FlowActionType', 'FlowCondition', 'FlowEdge', 'FlowEdgeType', 'FlowGraph',
    'FlowGraphAnalysis', 'FlowGraphMetrics', 'FlowGraphTemplate', 'FlowNode', 'FlowNodeType',
    'FlowPath', 'FlowRecommendations', 'FrictionLevel', 'NodePosition', 'RoastIssue', 'Severity',
    'TemplatePriority',
    'DuplicateNodeError', 'EdgeNotFoundError', 'FlowGraphError', 'GraphLoadError', 'NodeNotFoundError',
    'add_edge', 'add_node', 'build_nx_graph', 'calculate_estimated_paths', 'connect_nodes',
    'create_edge', 'create_empty_graph', 'create_node', 'insert_node_between',
    'analyze_flow_graph', 'detect_cycles', 'find_all_paths', 'find_dead_ends', 'find_orphan_nodes',
    'TopologyResult', 'kahn_toposort',
    'ValidationReport', 'validate_graph',
    'draw_with_legend', 'to_ascii', 'to_markdown_summary', 'to_mermaid',
    'GRAPH_TEMPLATES', 'create_graph_from_template', 'get_critical_graph_templates',
    'get_graph_template', 'get_suggested_graph_templates',
    'graph_to_dict', 'load_graph_file', 'normalize_raw_to_graph', 'save_json',
    'load_graph',
]
