"""
ElectionTrends - Dashboard Application

Dash/Plotly dashboard for French election results and opinion polls.
Provides the trends chart (filters, grouping, CSV export) and an
elections overview with per-round turnout figures.
"""

import csv
import io
import logging
from typing import Any, Dict, List, Optional

import dash
from dash import dcc, html, Input, Output, State
from dash.exceptions import PreventUpdate
import dash_bootstrap_components as dbc  # type: ignore[import-untyped]
import plotly.graph_objects as go

from election_trends.api.routes import create_api_blueprint
from election_trends.dashboard.charts import build_trend_figure, build_turnout_figure
from election_trends.dashboard.data_provider import TrendsDataProvider
from election_trends.models.elections import Election, RoundData
from election_trends.models.observations import FAMILY_COLORS, PoliticalFamily
from election_trends.models.series import GroupBy
from election_trends.utils.errors import ElectionTrendsError, InvalidQuery


logger = logging.getLogger(__name__)


MENU = [
    {"title": "Tendances", "href": "/trends"},
    {"title": "Élections", "href": "/elections"},
]

GROUP_BY_OPTIONS = [
    {"label": "Nuance", "value": GroupBy.POLITICAL_FAMILY.value},
    {"label": "Parti", "value": GroupBy.PARTY.value},
    {"label": "Candidat", "value": GroupBy.CANDIDATE_NAME.value},
]

LEVEL_OPTIONS = [
    {"label": "National", "value": "national"},
    {"label": "Municipal", "value": "municipal"},
]

CSV_COLUMNS = [
    "date", "kind", "election_id", "group_key", "political_family",
    "political_family_label", "value", "amount", "context_count"
]

HIDDEN = {"display": "none"}
VISIBLE: Dict[str, str] = {}


def format_number(value: float) -> str:
    """Format a count with French thousands separators."""
    return f"{value:,.0f}".replace(",", " ")


class TrendsDashboard:
    """
    Election trends dashboard.

    Features:
    - Sidebar navigation, collapsible, state kept in session storage
    - Trends page: filters, group-by dependent selectors, line chart,
      CSV export of the current series
    - Elections page: one card per election with turnout per round
    - REST API blueprint mounted on the same Flask server
    """

    SIDEBAR_WIDTH = "16rem"
    SIDEBAR_COLLAPSED_WIDTH = "5rem"

    def __init__(
        self,
        data_provider: TrendsDataProvider,
        app_name: str = "Political Trends",
        api_prefix: str = "/api"
    ):
        """
        Initialize the dashboard.

        Args:
            data_provider: Provider shared with the REST API
            app_name: Application name for title
            api_prefix: URL prefix of the REST blueprint
        """
        self.app_name = app_name
        self.data_provider = data_provider

        # Initialize Dash app with Bootstrap theme
        self.app = dash.Dash(
            __name__,
            external_stylesheets=[dbc.themes.DARKLY],
            title=app_name,
            suppress_callback_exceptions=True
        )

        self.app.server.register_blueprint(
            create_api_blueprint(data_provider), url_prefix=api_prefix
        )

        self.app.layout = self._build_layout()
        self._register_callbacks()

        logger.info(f"[OK] Dashboard initialized: {app_name} (API under {api_prefix})")

    # ==================== Layout ====================

    def _build_layout(self) -> html.Div:
        """
        Build the shell: URL router, session state, sidebar and page container.
        """
        return html.Div([
            dcc.Location(id="url", refresh=False),
            # UI state scoped to the browser session
            dcc.Store(id="nav-state", storage_type="session", data={"collapsed": False}),
            dcc.Store(id="series-store"),

            self._build_sidebar(),
            html.Div(id="page-content", className="p-4", style={"marginLeft": self.SIDEBAR_WIDTH})
        ])

    def _build_sidebar(self) -> html.Div:
        return html.Div([
            html.Div([
                html.H4(self.app_name, id="nav-brand", className="text-white mb-0"),
                html.Small("Analyse électorale", id="nav-subtitle", className="text-muted")
            ], className="p-3 border-bottom border-secondary"),
            dbc.Button("«", id="nav-toggle", color="secondary", size="sm", className="m-2"),
            dbc.Nav(
                [dbc.NavLink(item["title"], href=item["href"], active="exact") for item in MENU],
                vertical=True,
                pills=True,
                className="px-2"
            )
        ], id="sidebar", style=self._sidebar_style(collapsed=False))

    def _sidebar_style(self, collapsed: bool) -> Dict[str, str]:
        return {
            "position": "fixed",
            "top": "0",
            "left": "0",
            "bottom": "0",
            "width": self.SIDEBAR_COLLAPSED_WIDTH if collapsed else self.SIDEBAR_WIDTH,
            "backgroundColor": "#222",
            "overflowX": "hidden",
            "transition": "width 0.3s"
        }

    def _build_trends_page(self) -> html.Div:
        """Build the trends page; filter options are read from the store on render."""
        try:
            options = self.data_provider.get_filter_options()
        except ElectionTrendsError as error:
            logger.error(f"[ERROR] Cannot load filter options: {error}")
            return dbc.Alert("Erreur lors du chargement des options de filtres", color="danger")

        def choices(values: List[str]) -> List[Dict[str, str]]:
            return [{"label": value, "value": value} for value in values]

        family_choices = [
            {"label": PoliticalFamily(code).label, "value": code}
            for code in options["political_families"]
        ]

        return html.Div([
            html.H1("Tendances Politiques", className="text-primary mb-4"),

            dbc.Card([
                dbc.CardHeader("Filtres"),
                dbc.CardBody([
                    dbc.Row([
                        dbc.Col([
                            dbc.Label("Types d'élection"),
                            dcc.Dropdown(
                                id="filter-election-types",
                                options=choices(options["election_types"]),
                                multi=True,
                                placeholder="Tous les types"
                            )
                        ], md=4),
                        dbc.Col([
                            dbc.Label("Période"),
                            dcc.DatePickerRange(
                                id="filter-dates",
                                display_format="DD/MM/YYYY",
                                clearable=True
                            )
                        ], md=4),
                        dbc.Col([
                            dbc.Label("Grouper par"),
                            dcc.Dropdown(
                                id="filter-group-by",
                                options=GROUP_BY_OPTIONS,
                                value=self.data_provider.default_group_by.value,
                                clearable=False
                            )
                        ], md=4),
                    ], className="mb-3"),
                    dbc.Row([
                        dbc.Col(html.Div([
                            dbc.Label("Nuances"),
                            dcc.Dropdown(
                                id="filter-families",
                                options=family_choices,
                                multi=True,
                                placeholder="Toutes les nuances"
                            )
                        ], id="wrap-families"), md=4),
                        dbc.Col(html.Div([
                            dbc.Label("Partis"),
                            dcc.Dropdown(
                                id="filter-parties",
                                options=choices(options["parties"]),
                                multi=True,
                                placeholder="Tous les partis"
                            )
                        ], id="wrap-parties", style=HIDDEN), md=4),
                        dbc.Col(html.Div([
                            dbc.Label("Candidats"),
                            dcc.Dropdown(
                                id="filter-candidates",
                                options=choices(options["candidates"]),
                                multi=True,
                                placeholder="Tous les candidats"
                            )
                        ], id="wrap-candidates", style=HIDDEN), md=4),
                        dbc.Col([
                            dbc.Label("Niveau géographique"),
                            dcc.Dropdown(
                                id="filter-level",
                                options=LEVEL_OPTIONS,
                                value="national",
                                clearable=False
                            )
                        ], md=4),
                        dbc.Col(html.Div([
                            dbc.Label("Ville"),
                            dcc.Dropdown(
                                id="filter-city",
                                options=choices(options["cities"]),
                                placeholder="-- Sélectionner une ville --"
                            )
                        ], id="wrap-city", style=HIDDEN), md=4),
                    ]),
                    dbc.Button("Afficher le graphique", id="apply-filters-btn", color="primary", className="mt-3")
                ])
            ], className="mb-4"),

            self._build_legend(),

            html.Div(id="search-feedback"),

            dbc.Card([
                dbc.CardHeader([
                    html.Span("Sondages et résultats"),
                    dbc.Button(
                        "Export CSV",
                        id="export-series-btn",
                        color="secondary",
                        size="sm",
                        className="float-end"
                    ),
                    dcc.Download(id="download-series-csv")
                ]),
                dbc.CardBody([
                    dcc.Loading(dcc.Graph(id="trend-chart", figure=go.Figure(layout={"template": "plotly_dark"}), style={"height": "32rem"}))
                ])
            ])
        ])

    def _build_legend(self) -> dbc.Card:
        swatches = [
            html.Span([
                html.Span(style={
                    "display": "inline-block", "width": "1rem", "height": "1rem",
                    "backgroundColor": FAMILY_COLORS[family], "marginRight": "0.4rem"
                }),
                family.label
            ], className="me-3")
            for family in PoliticalFamily
        ]
        return dbc.Card(dbc.CardBody([
            html.P("Petits points = Sondages · Gros points = Résultats officiels", className="text-muted mb-2"),
            html.Div(swatches)
        ]), className="mb-4")

    def _build_elections_page(self) -> html.Div:
        try:
            elections = self.data_provider.list_elections()
        except ElectionTrendsError as error:
            logger.error(f"[ERROR] Cannot load elections: {error}")
            return dbc.Alert("Erreur lors du chargement des élections", color="danger")

        if not elections:
            body = html.P("Aucune élection disponible", className="text-muted text-center py-5")
        else:
            body = dbc.Row([dbc.Col(self._build_election_card(election), md=6, className="mb-4") for election in elections])

        return html.Div([
            html.H1("Élections", className="text-primary mb-2"),
            html.P("Vue d'ensemble des élections françaises", className="text-muted mb-4"),
            body
        ])

    def _build_election_card(self, election: Election) -> dbc.Card:
        rounds = election.rounds
        return dbc.Card([
            dbc.CardHeader([
                html.H2(str(election.year), className="mb-0"),
                html.Span(election.election_type.capitalize(), className="text-muted")
            ]),
            dbc.CardBody(
                [self._build_round_block(round_data) for round_data in rounds]
                + [dcc.Graph(
                    figure=build_turnout_figure([round_data.to_dict() for round_data in rounds]),
                    config={"displayModeBar": False},
                    style={"height": "14rem"}
                )]
            )
        ])

    def _build_round_block(self, round_data: RoundData) -> html.Div:
        title = "1er TOUR" if round_data.round_number == 1 else "2ème TOUR"
        stats = [
            ("Inscrits", format_number(round_data.registered_amount)),
            ("Participation", f"{round_data.voters_pct_registered:.2f}%"),
            ("Abstention", f"{round_data.abstentions_pct_registered:.2f}%"),
            ("Blancs/Nuls", f"{round_data.blank_pct_registered + round_data.null_pct_registered:.2f}%"),
        ]
        return html.Div([
            html.Div([
                dbc.Badge(title, color="info", className="me-2"),
                html.Small(round_data.date.strftime("%d/%m/%Y"), className="text-muted")
            ], className="mb-2"),
            dbc.Row([
                dbc.Col([html.Small(label, className="text-muted d-block"), html.Strong(value)], width=3)
                for label, value in stats
            ])
        ], className="border-start border-3 border-info ps-3 mb-3")

    # ==================== Callbacks ====================

    def _register_callbacks(self):
        """Register all dashboard callbacks."""

        @self.app.callback(
            Output("page-content", "children"),
            [Input("url", "pathname")]
        )
        def render_page(pathname):
            """Route the URL to a page."""
            if pathname in (None, "/", "/trends"):
                return self._build_trends_page()
            if pathname == "/elections":
                return self._build_elections_page()
            return dbc.Alert(f"Page introuvable : {pathname}", color="warning")

        @self.app.callback(
            Output("nav-state", "data"),
            [Input("nav-toggle", "n_clicks")],
            [State("nav-state", "data")],
            prevent_initial_call=True
        )
        def toggle_nav(n_clicks, state):
            """Flip the sidebar collapse flag."""
            if not n_clicks:
                raise PreventUpdate
            state = dict(state or {})
            state["collapsed"] = not state.get("collapsed", False)
            return state

        @self.app.callback(
            [
                Output("sidebar", "style"),
                Output("page-content", "style"),
                Output("nav-brand", "style"),
                Output("nav-subtitle", "style"),
                Output("nav-toggle", "children")
            ],
            [Input("nav-state", "data")]
        )
        def apply_nav_state(state):
            """Resize the sidebar according to the stored flag."""
            collapsed = bool((state or {}).get("collapsed"))
            width = self.SIDEBAR_COLLAPSED_WIDTH if collapsed else self.SIDEBAR_WIDTH
            text_style = HIDDEN if collapsed else VISIBLE
            return (
                self._sidebar_style(collapsed),
                {"marginLeft": width, "transition": "margin-left 0.3s"},
                text_style,
                text_style,
                "»" if collapsed else "«"
            )

        @self.app.callback(
            [
                Output("wrap-families", "style"),
                Output("wrap-parties", "style"),
                Output("wrap-candidates", "style")
            ],
            [Input("filter-group-by", "value")]
        )
        def toggle_group_selectors(group_by):
            """Show only the selector matching the grouping dimension."""
            dimension = GroupBy.parse(group_by)
            return (
                VISIBLE if dimension is GroupBy.POLITICAL_FAMILY else HIDDEN,
                VISIBLE if dimension is GroupBy.PARTY else HIDDEN,
                VISIBLE if dimension is GroupBy.CANDIDATE_NAME else HIDDEN
            )

        @self.app.callback(
            Output("wrap-city", "style"),
            [Input("filter-level", "value")]
        )
        def toggle_city(level):
            return VISIBLE if level == "municipal" else HIDDEN

        @self.app.callback(
            [
                Output("trend-chart", "figure"),
                Output("series-store", "data"),
                Output("search-feedback", "children")
            ],
            [Input("apply-filters-btn", "n_clicks")],
            [
                State("filter-election-types", "value"),
                State("filter-dates", "start_date"),
                State("filter-dates", "end_date"),
                State("filter-group-by", "value"),
                State("filter-families", "value"),
                State("filter-parties", "value"),
                State("filter-candidates", "value"),
                State("filter-level", "value"),
                State("filter-city", "value")
            ],
            prevent_initial_call=True
        )
        def update_chart(n_clicks, election_types, start_date, end_date, group_by,
                         families, parties, candidates, level, city):
            """Run the search and redraw the chart."""
            if not n_clicks:
                raise PreventUpdate

            query = build_search_query(
                election_types=election_types,
                start_date=start_date,
                end_date=end_date,
                group_by=group_by,
                families=families,
                parties=parties,
                candidates=candidates,
                level=level,
                city=city
            )

            try:
                points = self.data_provider.search(query)
            except InvalidQuery as error:
                return dash.no_update, dash.no_update, dbc.Alert(str(error), color="warning")
            except ElectionTrendsError as error:
                logger.error(f"[ERROR] Dashboard search failed: {error}")
                return dash.no_update, dash.no_update, dbc.Alert(
                    "Erreur lors du chargement des données", color="danger"
                )

            figure = build_trend_figure(points, GroupBy.parse(group_by))
            feedback = None
            if not points:
                feedback = dbc.Alert("Aucune donnée pour ces filtres", color="secondary")
            return figure, points, feedback

        @self.app.callback(
            Output("download-series-csv", "data"),
            [Input("export-series-btn", "n_clicks")],
            [State("series-store", "data")],
            prevent_initial_call=True
        )
        def export_series_csv(n_clicks, points):
            """Export the current series to CSV."""
            if not n_clicks or not points:
                raise PreventUpdate
            return self._generate_csv_download(points, "election_trends.csv", CSV_COLUMNS)

    def _generate_csv_download(
        self,
        data: List[Dict],
        filename: str,
        columns: List[str]
    ) -> Dict:
        """
        Generate CSV download data.

        Args:
            data: List of dictionaries to export
            filename: Output filename
            columns: Column names to include

        Returns:
            Dictionary for dcc.Download component
        """
        if not data:
            return {"content": "", "filename": filename}

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(data)

        return {
            "content": output.getvalue(),
            "filename": filename,
            "type": "text/csv"
        }

    def run(self, host: str = "127.0.0.1", port: int = 8050, debug: bool = False):
        """
        Run the dashboard server.

        Args:
            host: Host address to bind
            port: Port number
            debug: Enable debug mode
        """
        logger.info(f"[...] Starting dashboard on http://{host}:{port}")
        self.app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)


def build_search_query(
    election_types: Optional[List[str]] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    group_by: Optional[str] = None,
    families: Optional[List[str]] = None,
    parties: Optional[List[str]] = None,
    candidates: Optional[List[str]] = None,
    level: Optional[str] = None,
    city: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a wire-format search query from the dashboard widgets.

    Only the selector matching the grouping dimension is sent; empty
    widgets are left out. The city only applies at municipal level.
    """
    dimension = GroupBy.parse(group_by)
    query: Dict[str, Any] = {"group_by": dimension.value}

    if election_types:
        query["election_types"] = list(election_types)
    if start_date:
        query["start_date"] = start_date[:10]
    if end_date:
        query["end_date"] = end_date[:10]
    if dimension is GroupBy.POLITICAL_FAMILY and families:
        query["political_families"] = list(families)
    if dimension is GroupBy.PARTY and parties:
        query["parties"] = list(parties)
    if dimension is GroupBy.CANDIDATE_NAME and candidates:
        query["candidates"] = list(candidates)
    if level:
        query["level"] = level
        if level == "municipal" and city:
            query["city"] = city
    return query
