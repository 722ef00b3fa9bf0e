"""
neighbours_notebook_apps.py

Dash/Plotly interactive application for exploring function neighbourhoods.
This module provides a ready-to-use app for Jupyter notebooks or the browser.

Main components:
- parse_request(): validate the dimension and function typed by the user
- neighbours_report(): text listing of parents, siblings and children
- create_neighbours_app(): the interactive neighbours explorer
"""

from functools import lru_cache

from dash import Dash, dcc, html, Input, Output, State as DashState
import plotly.graph_objects as go

from neighbours_core import (
    DEFAULT_DIMENSION, DEFAULT_FUNCTION, PRACTICAL_DIMENSION_LIMIT,
    Formula, HasseDiagram, format_formulas
)

from neighbours_visualization import create_neighbourhood_figure


SECTION_HEADER = "------------------ {} ------------------"

DEFAULT_OPTIONS = ['parents', 'siblings', 'children']

FIELD_OK_STYLE = {'width': '320px', 'backgroundColor': 'white'}
FIELD_ERROR_STYLE = {'width': '320px', 'backgroundColor': '#ffcccc'}


# =============================================================================
# Request handling
# =============================================================================

@lru_cache(maxsize=PRACTICAL_DIMENSION_LIMIT)
def get_hasse_diagram(nvars):
    """One HasseDiagram (and power set graph) per dimension, built on first use."""
    return HasseDiagram(nvars)


def parse_request(dimension_text, function_text):
    """
    Parse the dimension and function fields.

    Never raises: a failed parse yields no formula and an error message.

    Returns:
        tuple of (nvars or None, Formula or None, error_message or None)
    """
    try:
        nvars = int(str(dimension_text).strip())
    except ValueError:
        return None, None, f"Invalid dimension: {dimension_text!r}"
    if nvars < 1:
        return None, None, f"Dimension must be at least 1, got {nvars}"
    if nvars > PRACTICAL_DIMENSION_LIMIT:
        return None, None, f"Dimension {nvars} is too large (maximum {PRACTICAL_DIMENSION_LIMIT})"

    try:
        formula = Formula.from_string(nvars, function_text or "")
    except ValueError as e:
        return nvars, None, str(e)
    return nvars, formula, None


def neighbours_report(neighbourhood, parents=True, siblings=True, children=True):
    """
    Render a neighbourhood as text, one section per requested set.

    Args:
        neighbourhood: Neighbourhood(parents, siblings, children)
        parents, siblings, children: Which sections to include

    Returns:
        str
    """
    lines = []
    for selected, name, formulas in ((parents, "Parents", neighbourhood.parents),
                                     (siblings, "Siblings", neighbourhood.siblings),
                                     (children, "Children", neighbourhood.children)):
        if selected:
            lines.append(SECTION_HEADER.format(name))
            lines.extend(format_formulas(formulas))
    return "\n".join(lines)


def update_neighbours(dimension_text, function_text, options):
    """
    Compute everything the app displays for one Run.

    Args:
        dimension_text: Content of the dimension field
        function_text: Content of the function field
        options: Selected checklist values among 'parents', 'siblings',
            'children' and 'degenerate'

    Returns:
        tuple of (report text, function field style, plotly Figure)
    """
    options = set(options or [])
    nvars, formula, error = parse_request(dimension_text, function_text)
    if error:
        return f"Error: {error}", FIELD_ERROR_STYLE, go.Figure()

    hasse = get_hasse_diagram(nvars)
    include_degenerate = 'degenerate' in options
    flags = dict(
        parents='parents' in options,
        siblings='siblings' in options,
        children='children' in options,
    )
    neighbourhood = hasse.get_neighbourhood(formula, include_degenerate=include_degenerate, **flags)

    report = neighbours_report(neighbourhood, **flags)
    if not formula.consistent:
        report = f"Warning: {formula} is degenerate\n" + report

    fig = create_neighbourhood_figure(hasse, formula, neighbourhood,
                                      include_degenerate=include_degenerate)
    return report, FIELD_OK_STYLE, fig


# =============================================================================
# Neighbours Explorer App
# =============================================================================

def create_neighbours_app(dimension=DEFAULT_DIMENSION, function=DEFAULT_FUNCTION):
    """
    Create the interactive function neighbours Dash app.

    Features:
    - Dimension and function fields ('{{1,2,3},{1,3,4},{2,4}}' notation)
    - Toggles for parents, siblings, children and degenerate functions
    - Text listing of the requested neighbours and a Hasse diagram view

    Args:
        dimension: Initial dimension
        function: Initial function text

    Returns:
        Dash app ready to run with app.run(jupyter_mode='inline', ...)
    """
    app = Dash(__name__)

    label_style = {'fontWeight': 'bold', 'display': 'inline-block', 'width': '90px'}

    app.layout = html.Div([
        html.H3("Function Direct Neighbours", style={'textAlign': 'center'}),

        html.Div([
            html.Label("Dimension:", style=label_style),
            dcc.Input(id='dimension-input', type='text', value=str(dimension),
                      style={'width': '60px'}),
        ], style={'marginBottom': '5px'}),
        html.Div([
            html.Label("Function:", style=label_style),
            dcc.Input(id='function-input', type='text', value=function,
                      style=FIELD_OK_STYLE),
        ], style={'marginBottom': '5px'}),

        dcc.Checklist(
            id='options',
            options=[
                {'label': ' Compute function parents', 'value': 'parents'},
                {'label': ' Compute function siblings', 'value': 'siblings'},
                {'label': ' Compute function children', 'value': 'children'},
                {'label': ' Consider degenerate functions', 'value': 'degenerate'},
            ],
            value=list(DEFAULT_OPTIONS),
            style={'marginLeft': '90px'},
            labelStyle={'display': 'block'}
        ),
        html.Button('Run', id='run-btn', n_clicks=0,
                    style={'backgroundColor': '#4CAF50', 'color': 'white',
                           'padding': '3px 12px', 'marginTop': '5px'}),

        html.Div([
            html.Pre(id='output', style={'width': '38%', 'display': 'inline-block',
                                         'verticalAlign': 'top', 'fontSize': '12px'}),
            html.Div([
                dcc.Graph(id='neighbourhood-graph', figure=go.Figure())
            ], style={'width': '60%', 'display': 'inline-block', 'verticalAlign': 'top'}),
        ], style={'marginTop': '10px'}),
    ], style={'padding': '8px', 'maxWidth': '1400px'})

    @app.callback(
        [Output('output', 'children'), Output('function-input', 'style'),
         Output('neighbourhood-graph', 'figure')],
        [Input('run-btn', 'n_clicks')],
        [DashState('dimension-input', 'value'), DashState('function-input', 'value'),
         DashState('options', 'value')]
    )
    def run(n_clicks, dimension_text, function_text, options):
        if not n_clicks:
            return "", FIELD_OK_STYLE, go.Figure()
        return update_neighbours(dimension_text, function_text, options)

    return app


if __name__ == "__main__":
    create_neighbours_app().run(debug=False)
