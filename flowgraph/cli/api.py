from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse, RedirectResponse
from pydantic import BaseModel

from flowgraph.analysis import analyze_flow_graph
from flowgraph.config import load_settings
from flowgraph.errors import FlowGraphError
from flowgraph.preprocess import normalize_raw_to_graph
from flowgraph.schema import AppType, FlowGraph, FlowGraphAnalysis, TemplatePriority
from flowgraph.templates import create_graph_from_template, get_graph_template, get_suggested_graph_templates
from flowgraph.visualize import to_ascii, to_markdown_summary, to_mermaid

settings = load_settings()

app = FastAPI(title="Flow Graph Analyzer API")

RENDER_FORMATS = ("mermaid", "ascii", "markdown")


class TemplateSummary(BaseModel):
    id: str
    name: str
    description: str
    app_types: List[AppType]
    priority: TemplatePriority
    node_count: int
    edge_count: int


def _graph_or_422(document: Dict[str, Any]) -> FlowGraph:
    try:
        return normalize_raw_to_graph(document)
    except FlowGraphError as e:
        raise HTTPException(status_code=422, detail=e.to_dict()) from e


@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    return RedirectResponse(url="/docs")


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"ok": True}


@app.get("/templates", response_model=List[TemplateSummary])
def list_templates(app_type: AppType = Query(AppType.UNKNOWN)) -> List[TemplateSummary]:
    return [
        TemplateSummary(
            id=t.id,
            name=t.name,
            description=t.description,
            app_types=t.app_types,
            priority=t.priority,
            node_count=len(t.nodes),
            edge_count=len(t.edges),
        )
        for t in get_suggested_graph_templates(app_type)
    ]


@app.get("/templates/{template_id}/analysis", response_model=FlowGraphAnalysis)
def template_analysis(template_id: str, max_paths: Optional[int] = Query(None, ge=1)) -> FlowGraphAnalysis:
    template = get_graph_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Unknown template: {template_id}")
    graph = create_graph_from_template(template)
    return analyze_flow_graph(graph, max_paths=max_paths or settings.max_paths)


@app.post("/analyze", response_model=FlowGraphAnalysis)
def analyze(document: Dict[str, Any], max_paths: Optional[int] = Query(None, ge=1)) -> FlowGraphAnalysis:
    graph = _graph_or_422(document)
    return analyze_flow_graph(graph, max_paths=max_paths or settings.max_paths)


@app.post("/render/{fmt}", response_class=PlainTextResponse)
def render(fmt: str, document: Dict[str, Any]) -> str:
    if fmt not in RENDER_FORMATS:
        raise HTTPException(status_code=404, detail=f"Unknown format: {fmt}")
    graph = _graph_or_422(document)

    if fmt == "mermaid":
        return to_mermaid(graph, direction=settings.direction, theme=settings.theme)
    if fmt == "ascii":
        return to_ascii(graph)
    analysis = analyze_flow_graph(graph, max_paths=settings.max_paths)
    return to_markdown_summary(analysis, direction=settings.direction, theme=settings.theme)
