# tests/conftest.py
"""Shared graph fixtures.

Every fixture builds its graph through the public mutators so the
construction invariants hold for all of them.
"""

from __future__ import annotations

import os

import pytest

from flowgraph.builder import add_node, connect_nodes, create_empty_graph, create_node
from flowgraph.schema import FlowGraph


def chain(graph: FlowGraph, *node_ids: str) -> FlowGraph:
    """Connect consecutive ids with default edges."""
    for source, target in zip(node_ids, node_ids[1:]):
        graph = connect_nodes(graph, source, target)
    return graph


@pytest.fixture(autouse=True)
def clean_env():
    """Keep FLOWGRAPH_* variables (including ones a .env file sets) out of other tests"""
    def _clear() -> None:
        for key in [k for k in os.environ if k.startswith("FLOWGRAPH_")]:
            del os.environ[key]

    _clear()
    yield
    _clear()


@pytest.fixture
def empty_graph() -> FlowGraph:
    return create_empty_graph("Test Flow")


@pytest.fixture
def linear_graph() -> FlowGraph:
    """start -> a -> b -> end"""
    graph = create_empty_graph("Linear")
    graph = add_node(graph, create_node("a", "Screen A"))
    graph = add_node(graph, create_node("b", "Screen B"))
    return chain(graph, "start", "a", "b", "end")


@pytest.fixture
def cycle_graph() -> FlowGraph:
    """start -> a -> b -> a, b -> end"""
    graph = create_empty_graph("Cyclic")
    graph = add_node(graph, create_node("a", "Screen A"))
    graph = add_node(graph, create_node("b", "Screen B"))
    graph = chain(graph, "start", "a", "b")
    graph = connect_nodes(graph, "b", "a", type="back", label="Back")
    return connect_nodes(graph, "b", "end")


@pytest.fixture
def checkout_graph() -> FlowGraph:
    """start -> cart -> decision{login|guest} -> shipping -> end"""
    graph = create_empty_graph("Checkout", "ecommerce")
    graph = add_node(graph, create_node("cart", "Cart"))
    graph = add_node(graph, create_node("decision", "Account?", "decision"))
    graph = add_node(graph, create_node("shipping", "Shipping"))
    graph = chain(graph, "start", "cart", "decision")
    graph = connect_nodes(graph, "decision", "shipping", id="decision-login", type="conditional", label="Login")
    graph = connect_nodes(graph, "decision", "shipping", id="decision-guest", type="conditional", label="Guest")
    return connect_nodes(graph, "shipping", "end", type="success")


@pytest.fixture
def branching_graph() -> FlowGraph:
    """start -> choice -> {short -> end, long1 -> long2 -> end}"""
    graph = create_empty_graph("Branching")
    graph = add_node(graph, create_node("choice", "Choice", "decision"))
    graph = add_node(graph, create_node("long1", "Long 1"))
    graph = add_node(graph, create_node("long2", "Long 2"))
    graph = add_node(graph, create_node("short", "Short"))
    graph = connect_nodes(graph, "start", "choice")
    graph = chain(graph, "choice", "long1", "long2", "end")
    return chain(graph, "choice", "short", "end")
