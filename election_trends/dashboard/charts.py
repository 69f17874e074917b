"""
ElectionTrends - Chart Builders

Plotly figures for the trends and elections pages.
"""

import math
from collections import OrderedDict
from datetime import date
from typing import Any, Dict, List, Optional

import plotly.graph_objects as go

from election_trends.models.observations import FAMILY_COLORS, PoliticalFamily
from election_trends.models.series import GroupBy


# Marker sizes: official results stand out from poll points
RESULT_MARKER_SIZE = 14
POLL_MARKER_SIZE = 6
RESULT_MARKER_LINE = 3
POLL_MARKER_LINE = 1

DEFAULT_COLOR = FAMILY_COLORS[PoliticalFamily.OTHER]


def _series_label(point: Dict[str, Any], group_by: GroupBy) -> str:
    if group_by is GroupBy.POLITICAL_FAMILY:
        return point.get("political_family_label") or point["group_key"]
    return point["group_key"]


def _family_color(family_code: Optional[str]) -> str:
    try:
        return PoliticalFamily(family_code).color
    except ValueError:
        return DEFAULT_COLOR


def build_series_table(points: List[Dict[str, Any]], group_by: GroupBy) -> Dict[str, Any]:
    """
    Re-key aggregated points into one aligned row of values per series.

    All series share the sorted union of dates. A date with no point for a
    series holds None. When both a result and a poll exist for the same
    series and date, the result is shown.

    Args:
        points: SeriesPoint dictionaries, as returned by the data provider
        group_by: Grouping used for the search

    Returns:
        {"dates": [...], "series": {label: {"values", "is_result", "family"}}}
    """
    grouped: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    all_dates = set()

    for point in points:
        label = _series_label(point, group_by)
        day = date.fromisoformat(point["date"])
        all_dates.add(day)

        entry = grouped.setdefault(label, {
            "family": point.get("political_family"),
            "results": {},
            "polls": {}
        })
        bucket = entry["results"] if point["kind"] == "result" else entry["polls"]
        bucket.setdefault(day, point["value"])

    dates = sorted(all_dates)
    series: Dict[str, Dict[str, Any]] = OrderedDict()
    for label, entry in grouped.items():
        values = []
        is_result = []
        for day in dates:
            if day in entry["results"]:
                values.append(entry["results"][day])
                is_result.append(True)
            else:
                values.append(entry["polls"].get(day))
                is_result.append(False)
        series[label] = {"values": values, "is_result": is_result, "family": entry["family"]}

    return {"dates": dates, "series": series}


def compute_y_max(series: Dict[str, Dict[str, Any]]) -> float:
    """Upper bound of the y axis: 10% headroom over the largest value, rounded up."""
    values = [
        value
        for entry in series.values()
        for value in entry["values"]
        if value is not None
    ]
    if not values:
        return 100
    return math.ceil(max(values) * 1.1)


def build_trend_figure(points: List[Dict[str, Any]], group_by: GroupBy) -> go.Figure:
    """
    Build the trends line chart.

    One line per group key, coloured by political family. Results get
    large markers, polls small ones. Gaps between dates are connected.
    """
    table = build_series_table(points, group_by)
    fig = go.Figure()

    for label, entry in table["series"].items():
        color = _family_color(entry["family"])
        fig.add_trace(go.Scatter(
            x=table["dates"],
            y=entry["values"],
            mode="lines+markers",
            name=label,
            connectgaps=True,
            line=dict(color=color, width=2, shape="spline", smoothing=0.3),
            marker=dict(
                color=color,
                size=[RESULT_MARKER_SIZE if flag else POLL_MARKER_SIZE for flag in entry["is_result"]],
                line=dict(
                    color="#ffffff",
                    width=[RESULT_MARKER_LINE if flag else POLL_MARKER_LINE for flag in entry["is_result"]]
                )
            ),
            hovertemplate=f"<b>{label}</b><br>%{{x|%d/%m/%Y}}: %{{y:.2f}}%<extra></extra>"
        ))

    fig.update_layout(
        template="plotly_dark",
        title="Tendances Politiques - Sondages et Résultats",
        margin=dict(l=40, r=20, t=60, b=40),
        xaxis_title="Date",
        yaxis=dict(title="% des exprimés", range=[0, compute_y_max(table["series"])], ticksuffix="%"),
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)
    )

    return fig


def build_turnout_figure(rounds: List[Dict[str, Any]]) -> go.Figure:
    """Build the stacked turnout bar chart of an election (one bar per round)."""
    labels = [f"Tour {item['round_number']}" for item in rounds]

    fig = go.Figure(data=[
        go.Bar(name="Exprimés", x=labels, y=[r["expressed_amount"] for r in rounds], marker_color="#28a745"),
        go.Bar(name="Blancs", x=labels, y=[r["blank_amount"] for r in rounds], marker_color="#6c757d"),
        go.Bar(name="Nuls", x=labels, y=[r["null_amount"] for r in rounds], marker_color="#ffc107"),
        go.Bar(name="Abstentions", x=labels, y=[r["abstentions_amount"] for r in rounds], marker_color="#dc3545")
    ])

    fig.update_layout(
        template="plotly_dark",
        barmode="stack",
        margin=dict(l=40, r=20, t=20, b=40),
        yaxis_title="Électeurs inscrits",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)
    )
    return fig
