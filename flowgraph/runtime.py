from __future__ import annotations

import logging
import os
from typing import Optional

from .errors import GraphLoadError
from .preprocess import load_graph_file
from .schema import FlowGraph
from .templates import create_graph_from_template, get_graph_template
from .validator import validate_graph

logger = logging.getLogger(__name__)


def load_graph(source: str, name: Optional[str] = None, validate: bool = True) -> FlowGraph:
    """Resolve a template id or a JSON file path to a graph.

    With ``validate`` the graph is checked as well: findings are logged and a
    report with errors raises. Callers that print their own report pass
    ``validate=False``.
    """
    template = get_graph_template(source)
    if template is not None:
        graph = create_graph_from_template(template, name)
        logger.info(f"Using template {template.id}")
    elif os.path.isfile(source):
        graph = load_graph_file(source, name=name)
    else:
        raise GraphLoadError(f"'{source}' is neither a template id nor a graph file", {"source": source})

    if not validate:
        return graph

    report = validate_graph(graph)
    if not report.ok:
        raise GraphLoadError(f"Graph '{graph.name}' failed validation: {report.errors}", {"errors": report.errors})
    return graph
