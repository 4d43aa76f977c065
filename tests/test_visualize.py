# tests/test_visualize.py
"""Tests for the Mermaid, ASCII, Markdown and PNG renderers."""

from __future__ import annotations

import pytest

from flowgraph.analysis import analyze_flow_graph
from flowgraph.builder import add_node, connect_nodes, create_node
from flowgraph.schema import FlowNodeType, NodePosition
from flowgraph.visualize import (
    draw_with_legend,
    get_node_icon,
    to_ascii,
    to_markdown_summary,
    to_mermaid,
)


class TestToMermaid:
    def test_header(self, checkout_graph) -> None:
        lines = to_mermaid(checkout_graph).splitlines()

        assert lines[0] == "%%{init: {'theme': 'default'}}%%"
        assert lines[1] == "flowchart TB"

    def test_direction_and_theme(self, checkout_graph) -> None:
        lines = to_mermaid(checkout_graph, direction="LR", theme="dark").splitlines()

        assert lines[0] == "%%{init: {'theme': 'dark'}}%%"
        assert lines[1] == "flowchart LR"

    @pytest.mark.parametrize("kwargs", [{"direction": "XY"}, {"theme": "neon"}])
    def test_rejects_unknown_options(self, checkout_graph, kwargs) -> None:
        with pytest.raises(ValueError):
            to_mermaid(checkout_graph, **kwargs)

    def test_node_shapes(self, checkout_graph) -> None:
        lines = to_mermaid(checkout_graph).splitlines()

        assert '    start(["Start"])' in lines
        assert '    end(["End"])' in lines
        assert '    cart["Cart"]' in lines
        assert '    decision{"Account?"}' in lines

    @pytest.mark.parametrize(
        "node_type, rendered",
        [
            ("merge", '    x(("X"))'),
            ("error", '    x[/"X"/]'),
            ("external", '    x[["X"]]'),
        ],
    )
    def test_other_shapes(self, empty_graph, node_type: str, rendered: str) -> None:
        graph = add_node(empty_graph, create_node("x", "X", node_type))

        assert rendered in to_mermaid(graph).splitlines()

    def test_edge_arrows_and_labels(self, checkout_graph) -> None:
        lines = to_mermaid(checkout_graph).splitlines()

        assert "    start --> cart" in lines
        assert "    decision -->|Login| shipping" in lines
        assert "    decision -->|Guest| shipping" in lines
        assert "    shipping ==>|Success| end" in lines

    def test_dashed_arrows(self, linear_graph) -> None:
        graph = connect_nodes(linear_graph, "a", "end", type="optional", label="Skip")
        graph = connect_nodes(graph, "b", "a", type="error")

        lines = to_mermaid(graph).splitlines()

        assert "    a -.->|Skip| end" in lines
        assert "    b -.->|Error| a" in lines

    def test_generic_labels_can_be_disabled(self, checkout_graph) -> None:
        lines = to_mermaid(checkout_graph, type_labels=False).splitlines()

        assert "    shipping ==> end" in lines
        assert "    decision -->|Login| shipping" in lines

    def test_own_labels_can_be_disabled(self, checkout_graph) -> None:
        lines = to_mermaid(checkout_graph, show_labels=False).splitlines()

        assert "    decision -->|Conditional| shipping" in lines
        assert not any("|Login|" in line for line in lines)

    def test_quotes_are_escaped(self, empty_graph) -> None:
        graph = add_node(empty_graph, create_node("q", 'Say "hi"'))

        assert '    q["Say \\"hi\\""]' in to_mermaid(graph).splitlines()

    def test_edge_labels_are_escaped(self, linear_graph) -> None:
        graph = connect_nodes(linear_graph, "a", "end", label='Yes|No "maybe"')

        assert '    a -->|Yes#124;No \\"maybe\\"| end' in to_mermaid(graph).splitlines()

    def test_pipe_in_screen_name(self, empty_graph) -> None:
        graph = add_node(empty_graph, create_node("p", "Sign in | Sign up"))

        assert '    p["Sign in #124; Sign up"]' in to_mermaid(graph).splitlines()

    def test_class_assignments(self, checkout_graph) -> None:
        lines = to_mermaid(checkout_graph).splitlines()

        assert "    class start start" in lines
        assert "    class end end" in lines
        assert "    class decision decision" in lines
        assert not any(line.endswith(" screen") for line in lines)
        assert any(line.startswith("    classDef highlight") for line in lines)

    def test_highlight_path(self, checkout_graph) -> None:
        lines = to_mermaid(checkout_graph, highlight_path=["start", "cart", "decision"]).splitlines()

        assert '    start(["Start"]):::highlight' in lines
        assert '    cart["Cart"]:::highlight' in lines
        assert '    shipping["Shipping"]' in lines
        assert any(line.startswith("    linkStyle 0,1 ") for line in lines)

    def test_no_link_style_without_highlight(self, checkout_graph) -> None:
        assert "linkStyle" not in to_mermaid(checkout_graph)


class TestToAscii:
    def test_empty_graph(self, empty_graph) -> None:
        assert to_ascii(empty_graph) == "Empty graph"

    def test_header(self, linear_graph) -> None:
        lines = to_ascii(linear_graph).splitlines()

        assert lines[0] == "Flow: Linear"
        assert lines[1] == "═" * 40

    def test_boxes_follow_first_path(self, checkout_graph) -> None:
        text = to_ascii(checkout_graph)

        for name in ("▶ Start", "□ Cart", "◇ Account?", "□ Shipping", "◼ End"):
            assert f"│ {name} │" in text
        assert text.index("□ Cart") < text.index("◇ Account?") < text.index("□ Shipping")

    def test_box_border_width(self, linear_graph) -> None:
        lines = to_ascii(linear_graph).splitlines()
        content = next(line for line in lines if "Screen A" in line)
        top = lines[lines.index(content) - 1]

        assert top.strip() == "┌" + "─" * (len("□ Screen A") + 2) + "┐"

    def test_connector_labels(self, checkout_graph) -> None:
        lines = to_ascii(checkout_graph).splitlines()

        assert any(line.strip() == "│ Login" for line in lines)
        assert any(line.strip() == "▼" for line in lines)

    def test_decision_points(self, checkout_graph) -> None:
        text = to_ascii(checkout_graph)

        assert "Decision Points:" in text
        assert "  Account?:" in text
        assert "    ├─[Login]─> Shipping" in text
        assert "    ├─[Guest]─> Shipping" in text

    def test_unlabeled_branch_uses_edge_type(self, branching_graph) -> None:
        text = to_ascii(branching_graph)

        assert "    ├─[default]─> Long 1" in text
        assert "    ├─[default]─> Short" in text

    def test_no_decision_section_without_decisions(self, linear_graph) -> None:
        assert "Decision Points:" not in to_ascii(linear_graph)

    def test_icons(self) -> None:
        assert get_node_icon(FlowNodeType.START) == "▶"
        assert get_node_icon(FlowNodeType.DECISION) == "◇"
        assert get_node_icon(FlowNodeType.ERROR) == "⚠"
        assert get_node_icon(FlowNodeType.EXTERNAL) == "↗"


class TestToMarkdownSummary:
    def test_sections(self, checkout_graph) -> None:
        text = to_markdown_summary(analyze_flow_graph(checkout_graph))

        assert text.startswith("## 📊 Flow Graph Analysis: Checkout")
        assert "### Overview" in text
        assert "- **App Type:** ecommerce" in text
        assert "- **Total Screens:** 2" in text
        assert "- **Decision Points:** 1" in text
        assert "- **Total Paths:** 2" in text
        assert "| Shortest Path | 5 steps |" in text
        assert "| Average Path | 5.0 steps |" in text

    def test_clean_graph_has_no_defect_sections(self, checkout_graph) -> None:
        text = to_markdown_summary(analyze_flow_graph(checkout_graph))

        assert "Dead Ends" not in text
        assert "Unreachable Nodes" not in text
        assert "Cycles Detected" not in text

    def test_defect_sections_use_screen_names(self, cycle_graph) -> None:
        graph = add_node(cycle_graph, create_node("island", "Island"))
        text = to_markdown_summary(analyze_flow_graph(graph))

        assert "### ⚠️ Dead Ends Detected\n- Island" in text
        assert "### ⚠️ Unreachable Nodes\n- Island" in text
        assert "### 🔄 Cycles Detected\n- Screen A → Screen B → Screen A" in text

    def test_embeds_mermaid(self, checkout_graph) -> None:
        text = to_markdown_summary(analyze_flow_graph(checkout_graph), direction="LR")

        assert "### Flow Diagram\n```mermaid\n" in text
        assert "flowchart LR" in text
        assert text.endswith("```")


class TestDrawWithLegend:
    def test_writes_png(self, checkout_graph, tmp_path) -> None:
        out = tmp_path / "checkout.png"
        draw_with_legend(checkout_graph, str(out), highlight_path=["start", "cart", "decision"])

        assert out.exists()
        assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_orphans_and_cycles(self, cycle_graph, tmp_path) -> None:
        graph = add_node(cycle_graph, create_node("island", "Island"))
        out = tmp_path / "cyclic.png"
        draw_with_legend(graph, str(out))

        assert out.stat().st_size > 0

    def test_position_hints(self, empty_graph, tmp_path) -> None:
        graph = empty_graph.model_copy(update={
            "nodes": [
                n.model_copy(update={"position": NodePosition(x=i * 100.0, y=0.0)})
                for i, n in enumerate(empty_graph.nodes)
            ],
        })
        graph = connect_nodes(graph, "start", "end")
        out = tmp_path / "positioned.png"
        draw_with_legend(graph, str(out))

        assert out.exists()
