from __future__ import annotations

import logging
from typing import List, Optional, Tuple, Union

from .builder import calculate_estimated_paths, new_graph_id
from .schema import (
    AppType,
    FlowEdge,
    FlowGraph,
    FlowGraphTemplate,
    FlowNode,
    FlowNodeType,
    TemplatePriority,
)

logger = logging.getLogger(__name__)


def _node(id: str, type: str, screen_name: str, description: str, action: Optional[str] = None) -> FlowNode:
    return FlowNode(id=id, type=type, screen_name=screen_name, description=description, action=action)


def _edge(id: str, source: str, target: str, type: str, label: Optional[str] = None) -> FlowEdge:
    return FlowEdge(id=id, source=source, target=target, type=type, label=label)


# ============================================================================
# Catalog
# ============================================================================

ECOMMERCE_CHECKOUT = FlowGraphTemplate(
    id="ecommerce-checkout-graph",
    name="E-commerce Checkout (with branches)",
    description="Complete checkout flow with guest/login options and payment alternatives",
    app_types=[AppType.ECOMMERCE, AppType.MARKETPLACE],
    priority=TemplatePriority.CRITICAL,
    nodes=[
        _node("start", "start", "Start", "Begin checkout"),
        _node("cart", "screen", "Shopping Cart", "Review cart items", "verify"),
        _node("auth-decision", "decision", "Account Check", "Guest or login?"),
        _node("login", "screen", "Login", "Sign in to account", "authenticate"),
        _node("guest", "screen", "Guest Info", "Enter email for guest checkout", "input"),
        _node("shipping", "screen", "Shipping Address", "Enter shipping details", "input"),
        _node("shipping-method", "screen", "Shipping Method", "Choose shipping speed", "select"),
        _node("payment-decision", "decision", "Payment Method", "Choose payment type"),
        _node("card-payment", "screen", "Card Payment", "Enter card details", "input"),
        _node("paypal", "external", "PayPal", "PayPal checkout", "authenticate"),
        _node("apple-pay", "screen", "Apple Pay", "Apple Pay confirmation", "authenticate"),
        _node("review", "screen", "Order Review", "Final review before purchase", "verify"),
        _node("processing", "screen", "Processing", "Order being placed", "wait"),
        _node("confirmation", "end", "Confirmation", "Order confirmed"),
        _node("error", "error", "Payment Error", "Payment failed"),
    ],
    edges=[
        _edge("e1", "start", "cart", "default"),
        _edge("e2", "cart", "auth-decision", "default", "Checkout"),
        _edge("e3", "auth-decision", "login", "conditional", "Sign In"),
        _edge("e4", "auth-decision", "guest", "conditional", "Guest"),
        _edge("e5", "login", "shipping", "success"),
        _edge("e6", "guest", "shipping", "default"),
        _edge("e7", "shipping", "shipping-method", "default"),
        _edge("e8", "shipping-method", "payment-decision", "default"),
        _edge("e9", "payment-decision", "card-payment", "conditional", "Card"),
        _edge("e10", "payment-decision", "paypal", "conditional", "PayPal"),
        _edge("e11", "payment-decision", "apple-pay", "conditional", "Apple Pay"),
        _edge("e12", "card-payment", "review", "default"),
        _edge("e13", "paypal", "review", "success"),
        _edge("e14", "apple-pay", "review", "success"),
        _edge("e15", "review", "processing", "default", "Place Order"),
        _edge("e16", "processing", "confirmation", "success"),
        _edge("e17", "processing", "error", "error"),
        _edge("e18", "error", "payment-decision", "back", "Try Again"),
    ],
    start_node_id="start",
    end_node_ids=["confirmation"],
    critical_path=[
        "start", "cart", "auth-decision", "guest", "shipping", "shipping-method",
        "payment-decision", "card-payment", "review", "processing", "confirmation",
    ],
    common_issues=["Hidden costs", "Too many steps", "No guest option", "Payment failure recovery"],
    checkpoints=["cart", "shipping", "review", "confirmation"],
)

SAAS_ONBOARDING = FlowGraphTemplate(
    id="saas-onboarding-graph",
    name="SaaS Onboarding (with optional steps)",
    description="User onboarding with skippable personalization",
    app_types=[AppType.SAAS, AppType.PRODUCTIVITY],
    priority=TemplatePriority.CRITICAL,
    nodes=[
        _node("start", "start", "Start", "Begin onboarding"),
        _node("signup", "screen", "Sign Up", "Create account", "input"),
        _node("verify-email", "screen", "Verify Email", "Confirm email", "verify"),
        _node("profile-decision", "decision", "Profile Setup?", "Setup profile now?"),
        _node("profile", "screen", "Profile Setup", "Add profile info", "input"),
        _node("team-decision", "decision", "Create Team?", "Setup team now?"),
        _node("team", "screen", "Team Setup", "Create or join team", "input"),
        _node("invite", "screen", "Invite Members", "Invite team members", "input"),
        _node("tour-decision", "decision", "Product Tour?", "Take the tour?"),
        _node("tour", "screen", "Product Tour", "Guided walkthrough", "navigate"),
        _node("dashboard", "end", "Dashboard", "Main app dashboard"),
    ],
    edges=[
        _edge("e1", "start", "signup", "default"),
        _edge("e2", "signup", "verify-email", "default"),
        _edge("e3", "verify-email", "profile-decision", "success"),
        _edge("e4", "profile-decision", "profile", "conditional", "Setup Now"),
        _edge("e5", "profile-decision", "team-decision", "optional", "Skip"),
        _edge("e6", "profile", "team-decision", "default"),
        _edge("e7", "team-decision", "team", "conditional", "Create Team"),
        _edge("e8", "team-decision", "tour-decision", "optional", "Skip"),
        _edge("e9", "team", "invite", "default"),
        _edge("e10", "invite", "tour-decision", "default"),
        _edge("e11", "tour-decision", "tour", "conditional", "Yes"),
        _edge("e12", "tour-decision", "dashboard", "optional", "Skip"),
        _edge("e13", "tour", "dashboard", "default"),
    ],
    start_node_id="start",
    end_node_ids=["dashboard"],
    critical_path=[
        "start", "signup", "verify-email", "profile-decision", "team-decision", "tour-decision", "dashboard",
    ],
    common_issues=["Too many steps before value", "No skip options", "Email verification delay"],
    checkpoints=["signup", "verify-email", "dashboard"],
)

AUTH_LOGIN = FlowGraphTemplate(
    id="auth-login-graph",
    name="Login Flow (with error recovery)",
    description="Authentication flow with forgot password and error handling",
    app_types=[AppType.SAAS, AppType.ECOMMERCE, AppType.SOCIAL, AppType.FINTECH],
    priority=TemplatePriority.CRITICAL,
    nodes=[
        _node("start", "start", "Start", "Begin login"),
        _node("login", "screen", "Login", "Enter credentials", "input"),
        _node("auth-check", "decision", "Verify", "Check credentials"),
        _node("2fa", "screen", "2FA", "Enter verification code", "input"),
        _node("forgot", "screen", "Forgot Password", "Reset password", "input"),
        _node("reset-sent", "screen", "Reset Sent", "Check email message", "verify"),
        _node("locked", "error", "Account Locked", "Too many attempts"),
        _node("dashboard", "end", "Dashboard", "Login successful"),
    ],
    edges=[
        _edge("e1", "start", "login", "default"),
        _edge("e2", "login", "auth-check", "default", "Submit"),
        _edge("e3", "login", "forgot", "optional", "Forgot?"),
        _edge("e4", "auth-check", "2fa", "conditional", "2FA Required"),
        _edge("e5", "auth-check", "dashboard", "success", "Valid"),
        _edge("e6", "auth-check", "login", "error", "Invalid"),
        _edge("e7", "auth-check", "locked", "error", "Locked"),
        _edge("e8", "2fa", "dashboard", "success"),
        _edge("e9", "2fa", "login", "error", "Invalid Code"),
        _edge("e10", "forgot", "reset-sent", "default"),
        _edge("e11", "reset-sent", "login", "back", "Back to Login"),
    ],
    start_node_id="start",
    end_node_ids=["dashboard"],
    critical_path=["start", "login", "auth-check", "dashboard"],
    common_issues=["Poor error messages", "No password visibility", "Unclear lockout policy"],
    checkpoints=["login", "dashboard"],
)

GRAPH_TEMPLATES: Tuple[FlowGraphTemplate, ...] = (
    ECOMMERCE_CHECKOUT,
    SAAS_ONBOARDING,
    AUTH_LOGIN,
)


# ============================================================================
# Lookup / instantiation
# ============================================================================

def create_graph_from_template(template: FlowGraphTemplate, custom_name: Optional[str] = None) -> FlowGraph:
    """Instantiate a graph from a template.

    Nodes and edges are deep copies, so nothing in the returned graph is
    shared with the catalog. Counters are recomputed from the copies.
    """
    nodes = [n.model_copy(deep=True) for n in template.nodes]
    edges = [e.model_copy(deep=True) for e in template.edges]

    graph = FlowGraph(
        id=new_graph_id(),
        name=custom_name or template.name,
        description=template.description,
        app_type=template.app_types[0] if template.app_types else AppType.UNKNOWN,
        version="1.0.0",
        nodes=nodes,
        edges=edges,
        start_node_id=template.start_node_id,
        end_node_ids=list(template.end_node_ids),
        critical_path=list(template.critical_path),
        total_screens=sum(1 for n in nodes if n.type == FlowNodeType.SCREEN),
        total_decision_points=sum(1 for n in nodes if n.type == FlowNodeType.DECISION),
        estimated_paths=calculate_estimated_paths(nodes, edges),
        tags=list(template.common_issues),
    )
    logger.debug(f"Graph '{graph.name}' created from template {template.id}")
    return graph


def get_suggested_graph_templates(app_type: Union[str, AppType]) -> List[FlowGraphTemplate]:
    """Templates supporting ``app_type``, most important first.

    ``unknown`` matches every template.
    """
    app_type = AppType(app_type)
    matches = [t for t in GRAPH_TEMPLATES if app_type == AppType.UNKNOWN or t.supports(app_type)]
    return sorted(matches, key=lambda t: t.priority.rank)


def get_graph_template(template_id: str) -> Optional[FlowGraphTemplate]:
    return next((t for t in GRAPH_TEMPLATES if t.id == template_id), None)


def get_critical_graph_templates() -> List[FlowGraphTemplate]:
    return [t for t in GRAPH_TEMPLATES if t.priority == TemplatePriority.CRITICAL]
