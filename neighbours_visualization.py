"""
neighbours_visualization.py

Plotly-based visualization for function neighbourhoods.

This module converts NetworkX DiGraphs (cover graphs of formulas, the power
set graph of clauses) to interactive Plotly figures with hover information
and layered layouts.
"""

import networkx as nx
import plotly.graph_objects as go

from neighbours_core import Clause, build_cover_graph


ROLE_COLORS = {
    'formula': '#ff9800',
    'parent': '#4CAF50',
    'sibling': '#2196F3',
    'child': '#9c27b0',
}

ROLE_LABELS = {
    'formula': 'Function',
    'parent': 'Parent',
    'sibling': 'Sibling',
    'child': 'Child',
}


def create_neighbourhood_figure(hasse,
                                formula,
                                neighbourhood=None,
                                include_degenerate=False,
                                layout='hierarchical',
                                show_edges=True,
                                node_size=14,
                                title=None):
    """
    Create an interactive Plotly visualization of a formula and its neighbours.

    Nodes are placed by layers of the cover relation, so children appear
    below the formula and parents above it. Degenerate (inconsistent)
    formulas are drawn with open markers.

    Args:
        hasse: HasseDiagram the formula belongs to
        formula: Formula at the centre of the neighbourhood
        neighbourhood: Neighbourhood to draw (computed if None)
        include_degenerate: Passed on when computing neighbours and edges
        layout: Layout algorithm - 'hierarchical', 'force', or 'circular'
        show_edges: Whether to display cover edges
        node_size: Marker size
        title: Optional title for the figure

    Returns:
        plotly.graph_objects.Figure
    """
    if neighbourhood is None:
        neighbourhood = hasse.get_neighbourhood(formula, include_degenerate=include_degenerate)

    roles = {}
    for role, formulas in (('sibling', neighbourhood.siblings),
                           ('parent', neighbourhood.parents),
                           ('child', neighbourhood.children)):
        for f in formulas:
            roles[f] = role
    roles[formula] = 'formula'

    G = build_cover_graph(hasse, roles, include_degenerate=include_degenerate)
    for parent in neighbourhood.parents:
        G.add_edge(formula, parent)
    for child in neighbourhood.children:
        G.add_edge(child, formula)

    pos = compute_layout(G, layout)

    traces = []
    if show_edges:
        traces.append(create_edge_trace(G, pos))
    for role in ('child', 'sibling', 'parent', 'formula'):
        nodes = [f for f in G.nodes() if roles[f] == role]
        if nodes:
            traces.append(create_formula_trace(G, nodes, pos, role, node_size))

    fig = go.Figure(data=traces)
    fig.update_layout(
        title=dict(text=title or f"Neighbourhood of {formula.to_string()}", font=dict(size=16)),
        showlegend=True,
        hovermode='closest',
        margin=dict(b=20, l=5, r=5, t=40),
        xaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        yaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        plot_bgcolor='white',
        width=900,
        height=600
    )
    return fig


def create_power_set_figure(power_set, highlight=None, layout='hierarchical', node_size=10,
                            title=None):
    """
    Create a Plotly visualization of the power set graph of clauses.

    Args:
        power_set: PowerSetGraph
        highlight: Optional iterable of Clauses to emphasise (e.g. a formula)
        layout: Layout algorithm - 'hierarchical', 'force', or 'circular'
        node_size: Marker size
        title: Optional title for the figure

    Returns:
        plotly.graph_objects.Figure
    """
    highlight = set(highlight or ())

    # Edges point upward, from each clause to its direct supersets
    G = nx.DiGraph()
    G.add_nodes_from(power_set.all_clauses())
    G.add_edges_from(power_set.hasse_edges())
    pos = compute_layout(G, layout)

    nodes = list(G.nodes())
    node_trace = go.Scatter(
        x=[pos[c][0] for c in nodes],
        y=[pos[c][1] for c in nodes],
        mode='markers+text',
        text=[c.to_string() for c in nodes],
        textposition='top center',
        hoverinfo='text',
        hovertext=[f"<b>{c}</b><br>Order: {c.order()}" for c in nodes],
        marker=dict(
            size=[node_size * 1.5 if c in highlight else node_size for c in nodes],
            color=['#ff9800' if c in highlight else '#cccccc' for c in nodes],
            line=dict(width=1, color='#555')
        ),
        showlegend=False
    )

    fig = go.Figure(data=[create_edge_trace(G, pos), node_trace])
    fig.update_layout(
        title=dict(text=title or f"Power set graph (n={power_set.nvars}, {len(nodes)} clauses)",
                   font=dict(size=16)),
        showlegend=False,
        hovermode='closest',
        margin=dict(b=20, l=5, r=5, t=40),
        xaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        yaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
        plot_bgcolor='white',
        width=1000,
        height=700
    )
    return fig


def compute_layout(G, layout_type):
    """
    Compute node positions based on layout algorithm.

    Args:
        G: NetworkX DiGraph
        layout_type: 'hierarchical', 'force', or 'circular'

    Returns:
        dict mapping node -> (x, y) position
    """
    if layout_type == 'hierarchical':
        return hierarchical_layout(G)
    elif layout_type == 'force':
        return nx.spring_layout(G, k=0.5, iterations=50, seed=0)
    elif layout_type == 'circular':
        return nx.circular_layout(G)
    else:
        raise ValueError(f"Unknown layout type: {layout_type}")


def _node_sort_key(node):
    if isinstance(node, Clause):
        return (node.order(), node.variables())
    return (len(node), node.to_string())


def hierarchical_layout(G):
    """
    Create a hierarchical layout based on node levels.

    Uses longest path from source nodes to layer the DAG, so each node
    appears above all its predecessors. Sources sit at y=0.

    Args:
        G: NetworkX DiGraph

    Returns:
        dict mapping node -> (x, y) position
    """
    if G.number_of_nodes() == 0:
        return {}

    sources = [n for n in G.nodes() if G.in_degree(n) == 0]
    if not sources:
        return nx.spring_layout(G, k=0.5, iterations=50, seed=0)

    try:
        topo_order = list(nx.topological_sort(G))
    except nx.NetworkXUnfeasible:
        # Not a DAG
        return nx.spring_layout(G, k=0.5, iterations=50, seed=0)

    levels = {}
    for node in topo_order:
        pred_levels = [levels[pred] for pred in G.predecessors(node)]
        levels[node] = max(pred_levels) + 1 if pred_levels else 0

    level_groups = {}
    for node, level in levels.items():
        level_groups.setdefault(level, []).append(node)

    pos = {}
    max_level = max(levels.values())
    for level, nodes in level_groups.items():
        y = level / max(max_level, 1)
        n_nodes = len(nodes)
        for i, node in enumerate(sorted(nodes, key=_node_sort_key)):
            x = i / (n_nodes - 1) if n_nodes > 1 else 0.5
            pos[node] = (x, y)

    return pos


def create_edge_trace(G, pos):
    """
    Create Plotly trace for edges.

    Args:
        G: NetworkX DiGraph
        pos: dict mapping node -> (x, y) position

    Returns:
        plotly.graph_objects.Scatter trace
    """
    edge_x = []
    edge_y = []

    for u, v in G.edges():
        x0, y0 = pos[u]
        x1, y1 = pos[v]
        edge_x.extend([x0, x1, None])
        edge_y.extend([y0, y1, None])

    return go.Scatter(
        x=edge_x,
        y=edge_y,
        line=dict(width=0.8, color='#888'),
        hoverinfo='none',
        mode='lines',
        showlegend=False
    )


def create_formula_trace(G, nodes, pos, role, node_size):
    """
    Create Plotly trace for the formulas sharing one role.

    Args:
        G: NetworkX DiGraph of formulas
        nodes: list of Formulas to draw
        pos: dict mapping node -> (x, y) position
        role: 'formula', 'parent', 'sibling' or 'child'
        node_size: Marker size

    Returns:
        plotly.graph_objects.Scatter trace
    """
    nodes = sorted(nodes, key=_node_sort_key)
    return go.Scatter(
        x=[pos[f][0] for f in nodes],
        y=[pos[f][1] for f in nodes],
        mode='markers+text',
        name=ROLE_LABELS[role],
        text=[f.to_string() for f in nodes],
        textposition='top center',
        textfont=dict(size=9),
        hoverinfo='text',
        hovertext=[create_hover_text(f, role, G) for f in nodes],
        marker=dict(
            size=node_size,
            color=ROLE_COLORS[role],
            symbol=['circle' if f.consistent else 'circle-open' for f in nodes],
            line=dict(width=1, color='white')
        )
    )


def create_hover_text(formula, role, G):
    """
    Create hover text for a formula node.

    Returns:
        str: HTML-formatted hover text
    """
    lines = [
        f"<b>{ROLE_LABELS[role]}</b>",
        formula.to_string(),
        "",
        f"Clauses: {len(formula)}",
        f"Average clause length: {formula.clauses_avg_length():.2f}",
        "Consistent" if formula.consistent else "Degenerate",
        "",
        f"Parents shown: {G.out_degree(formula)}",
        f"Children shown: {G.in_degree(formula)}",
    ]
    return "<br>".join(lines)
