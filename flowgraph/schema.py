from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Base Configuration
# ============================================================================

class BaseConfig(BaseModel):
    """Base configuration with common settings"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class FrozenConfig(BaseConfig):
    """Value objects: never mutated after construction"""
    model_config = ConfigDict(frozen=True)


# ============================================================================
# Enums
# ============================================================================

class FlowNodeType(str, Enum):
    SCREEN = "screen"
    DECISION = "decision"
    MERGE = "merge"
    START = "start"
    END = "end"
    ERROR = "error"
    EXTERNAL = "external"


class FlowEdgeType(str, Enum):
    DEFAULT = "default"
    SUCCESS = "success"
    ERROR = "error"
    CONDITIONAL = "conditional"
    OPTIONAL = "optional"
    BACK = "back"
    EXIT = "exit"


class FlowActionType(str, Enum):
    """User action performed on a screen"""
    NAVIGATE = "navigate"
    CLICK = "click"
    INPUT = "input"
    SCROLL = "scroll"
    SWIPE = "swipe"
    WAIT = "wait"
    VERIFY = "verify"
    SUBMIT = "submit"
    SELECT = "select"
    UPLOAD = "upload"
    AUTHENTICATE = "authenticate"


class FrictionLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AppType(str, Enum):
    ECOMMERCE = "ecommerce"
    SAAS = "saas"
    SOCIAL = "social"
    FINTECH = "fintech"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    MEDIA = "media"
    PRODUCTIVITY = "productivity"
    MARKETPLACE = "marketplace"
    GAMING = "gaming"
    UNKNOWN = "unknown"


class TemplatePriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: lower ranks come first"""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TemplatePriority.CRITICAL: 0,
    TemplatePriority.HIGH: 1,
    TemplatePriority.MEDIUM: 2,
    TemplatePriority.LOW: 3,
}


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


# ============================================================================
# Issues (attached by an external classifier, stored only)
# ============================================================================

class RoastIssue(FrozenConfig):
    """A single finding attached to a node, edge or path"""
    id: str
    severity: Severity
    title: str
    source: str
    impact: str
    fix: str
    details: Optional[str] = None
    wcag_criteria: Optional[str] = None
    time_estimate: Optional[str] = None


# ============================================================================
# Nodes & Edges
# ============================================================================

class FlowCondition(FrozenConfig):
    """Descriptive transition condition. Never evaluated."""
    field: str
    operator: str
    value: Any = None
    label: Optional[str] = None


class NodePosition(FrozenConfig):
    x: float
    y: float


class FlowNode(FrozenConfig):
    id: str
    type: FlowNodeType = FlowNodeType.SCREEN
    screen_name: str
    description: str

    action: Optional[FlowActionType] = None
    expected_state: Optional[str] = None
    issues: List[RoastIssue] = Field(default_factory=list)
    scores: Dict[str, float] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    position: Optional[NodePosition] = None


class FlowEdge(FrozenConfig):
    id: str
    source: str
    target: str
    type: FlowEdgeType = FlowEdgeType.DEFAULT

    label: Optional[str] = None
    condition: Optional[FlowCondition] = None
    priority: Optional[int] = None
    friction: Optional[FrictionLevel] = None
    issues: List[RoastIssue] = Field(default_factory=list)


# ============================================================================
# Graph
# ============================================================================

class FlowGraph(FrozenConfig):
    """Aggregate root of a user journey.

    Mutation happens only through the functions in ``flowgraph.builder``,
    each of which returns a new graph. Referential integrity (edges, start
    and end ids) is enforced by those functions, not re-validated here.
    """
    id: str
    name: str
    description: str = ""
    app_type: AppType = AppType.UNKNOWN
    version: str = "1.0.0"

    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)
    start_node_id: str
    end_node_ids: List[str] = Field(default_factory=list)
    critical_path: List[str] = Field(default_factory=list)

    total_screens: int = Field(default=0, ge=0)
    total_decision_points: int = Field(default=0, ge=0)
    estimated_paths: int = Field(default=1, ge=0)
    tags: List[str] = Field(default_factory=list)

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def has_node(self, node_id: str) -> bool:
        return any(n.id == node_id for n in self.nodes)

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def outgoing_edges(self, node_id: str) -> List[FlowEdge]:
        return [e for e in self.edges if e.source == node_id]

    def find_edge(self, source_id: str, target_id: str) -> Optional[FlowEdge]:
        """First edge from source to target, in insertion order"""
        for edge in self.edges:
            if edge.source == source_id and edge.target == target_id:
                return edge
        return None

    def display_name(self, node_id: str) -> str:
        node = self.get_node(node_id)
        return node.screen_name if node else node_id


# ============================================================================
# Paths & Analysis
# ============================================================================

class FlowPath(BaseConfig):
    id: str
    name: str
    node_ids: List[str]
    edge_ids: List[str]
    is_happy_path: bool = False
    is_critical_path: bool = False
    friction: FrictionLevel = FrictionLevel.NONE
    issues: List[RoastIssue] = Field(default_factory=list)

    @property
    def length(self) -> int:
        """Number of nodes on the path"""
        return len(self.node_ids)


class FlowGraphMetrics(BaseConfig):
    total_nodes: int = 0
    total_edges: int = 0
    total_paths: int = 0
    max_path_length: int = 0
    min_path_length: int = 0
    avg_path_length: float = 0.0
    decision_points: int = 0
    dead_ends: List[str] = Field(default_factory=list)
    orphan_nodes: List[str] = Field(default_factory=list)
    cycles: List[List[str]] = Field(default_factory=list)


class FlowRecommendations(BaseConfig):
    simplify: List[str] = Field(default_factory=list)
    combine: List[str] = Field(default_factory=list)
    reorder: List[str] = Field(default_factory=list)
    add_path: List[str] = Field(default_factory=list)


class FlowGraphAnalysis(BaseConfig):
    """Analysis report. Issue maps and recommendations are filled externally."""
    graph: FlowGraph
    paths: List[FlowPath] = Field(default_factory=list)
    metrics: FlowGraphMetrics = Field(default_factory=FlowGraphMetrics)

    node_issues: Dict[str, List[RoastIssue]] = Field(default_factory=dict)
    edge_issues: Dict[str, List[RoastIssue]] = Field(default_factory=dict)
    path_issues: Dict[str, List[RoastIssue]] = Field(default_factory=dict)
    recommendations: FlowRecommendations = Field(default_factory=FlowRecommendations)

    @property
    def happy_path(self) -> Optional[FlowPath]:
        return next((p for p in self.paths if p.is_happy_path), None)

    @property
    def critical_paths(self) -> List[FlowPath]:
        return [p for p in self.paths if p.is_critical_path]

    def add_node_issue(self, node_id: str, issue: RoastIssue) -> None:
        self.node_issues.setdefault(node_id, []).append(issue)

    def add_edge_issue(self, edge_id: str, issue: RoastIssue) -> None:
        self.edge_issues.setdefault(edge_id, []).append(issue)

    def add_path_issue(self, path_id: str, issue: RoastIssue) -> None:
        self.path_issues.setdefault(path_id, []).append(issue)

    def issue_count(self) -> int:
        return sum(
            len(issues)
            for bucket in (self.node_issues, self.edge_issues, self.path_issues)
            for issues in bucket.values()
        )


# ============================================================================
# Templates
# ============================================================================

class FlowGraphTemplate(FrozenConfig):
    id: str
    name: str
    description: str
    app_types: List[AppType]
    priority: TemplatePriority
    nodes: List[FlowNode]
    edges: List[FlowEdge]
    start_node_id: str
    end_node_ids: List[str]
    critical_path: List[str]
    common_issues: List[str] = Field(default_factory=list)
    checkpoints: List[str] = Field(default_factory=list)

    def supports(self, app_type: AppType) -> bool:
        return app_type in self.app_types
