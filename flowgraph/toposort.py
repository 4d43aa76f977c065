from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List

import networkx as nx


@dataclass
class TopologyResult:
    success: bool
    order: List[str]
    cyclic_nodes: List[str]
    entry_nodes: List[str] = field(default_factory=list)
    exit_nodes: List[str] = field(default_factory=list)


def kahn_toposort(g: nx.MultiDiGraph) -> TopologyResult:
    """Kahn's algorithm. Nodes left with in-degree > 0 sit on or behind a cycle."""
    in_deg: Dict[str, int] = dict(g.in_degree())
    out_deg: Dict[str, int] = dict(g.out_degree())

    entries: List[str] = [n for n, d in in_deg.items() if d == 0 and out_deg[n] > 0]
    exits: List[str] = [n for n, d in out_deg.items() if d == 0 and in_deg[n] > 0]

    q: deque[str] = deque(n for n, d in in_deg.items() if d == 0)
    order: List[str] = []
    local = dict(in_deg)

    while q:
        cur = q.popleft()
        order.append(cur)
        # parallel edges count once per edge, matching in_degree()
        for _, nb in g.out_edges(cur):
            local[nb] -= 1
            if local[nb] == 0:
                q.append(nb)

    success = len(order) == g.number_of_nodes()
    cyclic_nodes = [] if success else [n for n, d in local.items() if d > 0]
    return TopologyResult(
        success=success,
        order=order,
        cyclic_nodes=cyclic_nodes,
        entry_nodes=entries,
        exit_nodes=exits,
    )
