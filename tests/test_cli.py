# tests/test_cli.py
"""Tests for the flowgraph command line."""

from __future__ import annotations

import json

import pytest

from flowgraph.cli.main import build_parser, main
from flowgraph.config import setup_logging
from flowgraph.preprocess import load_graph_file


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging()


class TestParser:
    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_analyze_defaults(self) -> None:
        args = build_parser().parse_args(["analyze", "auth-login-graph"])

        assert args.format == "markdown"
        assert args.max_paths is None
        assert args.direction is None
        assert args.png is None

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["analyze", "auth-login-graph", "--format", "svg"])


class TestTemplatesCommand:
    def test_lists_all(self, capsys) -> None:
        assert main(["templates"]) == 0
        out = capsys.readouterr().out

        assert "ecommerce-checkout-graph" in out
        assert "saas-onboarding-graph" in out
        assert "auth-login-graph" in out

    def test_filter_by_app_type(self, capsys) -> None:
        assert main(["templates", "--app-type", "fintech"]) == 0
        out = capsys.readouterr().out

        assert "auth-login-graph" in out
        assert "ecommerce-checkout-graph" not in out

    def test_no_match(self, capsys) -> None:
        assert main(["templates", "--app-type", "gaming"]) == 0
        assert "No templates for app type 'gaming'" in capsys.readouterr().out


class TestAnalyzeCommand:
    def test_markdown(self, capsys) -> None:
        assert main(["analyze", "ecommerce-checkout-graph"]) == 0
        out = capsys.readouterr().out

        assert "## 📊 Flow Graph Analysis: E-commerce Checkout (with branches)" in out
        assert "```mermaid" in out

    def test_ascii(self, capsys) -> None:
        assert main(["analyze", "auth-login-graph", "-f", "ascii"]) == 0

        assert "Flow: Login Flow (with error recovery)" in capsys.readouterr().out

    def test_mermaid_options(self, capsys) -> None:
        argv = ["analyze", "saas-onboarding-graph", "-f", "mermaid", "--direction", "LR", "--highlight-happy-path"]
        assert main(argv) == 0
        out = capsys.readouterr().out

        assert "flowchart LR" in out
        assert ":::highlight" in out
        assert "linkStyle" in out

    def test_json(self, capsys) -> None:
        assert main(["analyze", "ecommerce-checkout-graph", "-f", "json"]) == 0
        data = json.loads(capsys.readouterr().out)

        assert data["metrics"]["total_paths"] == 6
        assert data["graph"]["start_node_id"] == "start"

    def test_max_paths_flag(self, capsys) -> None:
        assert main(["analyze", "ecommerce-checkout-graph", "-f", "json", "--max-paths", "2"]) == 0

        assert json.loads(capsys.readouterr().out)["metrics"]["total_paths"] == 2

    def test_max_paths_from_environment(self, capsys, monkeypatch) -> None:
        monkeypatch.setenv("FLOWGRAPH_MAX_PATHS", "3")

        assert main(["analyze", "ecommerce-checkout-graph", "-f", "json"]) == 0
        assert json.loads(capsys.readouterr().out)["metrics"]["total_paths"] == 3

    def test_png(self, tmp_path) -> None:
        out = tmp_path / "login.png"

        assert main(["analyze", "auth-login-graph", "-f", "ascii", "--png", str(out)]) == 0
        assert out.exists()

    def test_unknown_source(self, capsys) -> None:
        assert main(["analyze", "no-such-graph"]) == 1
        assert "❌" in capsys.readouterr().out

    def test_invalid_settings(self, capsys, monkeypatch) -> None:
        monkeypatch.setenv("FLOWGRAPH_THEME", "neon")

        assert main(["analyze", "auth-login-graph"]) == 1
        assert "Invalid FLOWGRAPH_* settings" in capsys.readouterr().out


class TestValidateCommand:
    def test_valid_with_warnings(self, capsys) -> None:
        assert main(["validate", "auth-login-graph"]) == 0
        out = capsys.readouterr().out

        assert "⚠️ Dead ends: ['locked']" in out
        assert "✅ Graph is valid" in out

    def test_broken_file(self, capsys, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"nodes": [{"id": "start", "type": "start"}]}), encoding="utf-8")

        assert main(["validate", str(path)]) == 1
        lines = capsys.readouterr().out.splitlines()

        assert "   ❌ No end node declared" in lines
        assert "   ⚠️ Dead ends: ['start']" in lines
        assert lines[-1] == "❌ Graph validation failed"


class TestExportCommand:
    def test_writes_loadable_json(self, capsys, tmp_path) -> None:
        out = tmp_path / "checkout.json"

        assert main(["export", "ecommerce-checkout-graph", str(out)]) == 0
        assert "✅ Graph written to" in capsys.readouterr().out

        graph = load_graph_file(str(out))
        assert graph.name == "E-commerce Checkout (with branches)"
        assert len(graph.edges) == 18
