# components/charts.py
# Plotly chart helpers for engine outputs.
# All functions return a Plotly Figure; the host UI decides how to display it.

from typing import Dict, List, Mapping, Sequence

import plotly.graph_objects as go
import plotly.io as pio

from ..models import HealthReport, Projection, RebalancingAnalysis

pio.templates.default = "plotly_white"

_STATUS_COLORS = {
    "excellent": "#22c55e",  # green-500
    "good": "#84cc16",       # lime-500
    "fair": "#f59e0b",       # amber-500
    "poor": "#f97316",       # orange-500
    "critical": "#ef4444",   # red-500
}


def _fit(series, n):
    arr = list(series)
    if len(arr) < n: arr += [0.0] * (n - len(arr))
    return arr[:n]


def _label(key: str) -> str:
    out = "".join(" " + c.lower() if c.isupper() else c for c in key)
    return out.replace(".", " / ").strip().capitalize()


# ---------- Health score gauge ----------
def score_gauge(total_score: float) -> go.Figure:
    score = max(0.0, min(100.0, float(total_score)))  # clamp 0–100
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=round(score, 1),
        number={"suffix": " / 100"},
        gauge={
            "axis": {"range": [0, 100]},
            "bar": {"thickness": 0.35},
            "steps": [
                {"range": [0, 50],  "color": "#ef4444"},  # red-500
                {"range": [50, 70], "color": "#f59e0b"},  # amber-500
                {"range": [70, 100],"color": "#22c55e"},  # green-500
            ],
        }
    ))
    fig.update_layout(template="plotly_white", height=220, margin=dict(l=10, r=10, t=10, b=10))
    return fig


# ---------- Factor breakdown ----------
def factor_bar_chart(report: HealthReport, title: str = "Score Breakdown") -> go.Figure:
    """Horizontal bars of each factor's score against its weight."""
    names = list(report.factors)
    factors = [report.factors[n] for n in names]
    labels = [_label(n) for n in names]

    fig = go.Figure()
    fig.add_bar(
        y=labels, x=[f.weight for f in factors], orientation="h",
        name="Weight", marker_color="#e5e7eb",
        hovertemplate="%{y}<br>Max %{x}<extra></extra>"
    )
    fig.add_bar(
        y=labels, x=[f.score for f in factors], orientation="h",
        name="Score", marker_color=[_STATUS_COLORS[f.status] for f in factors],
        hovertemplate="%{y}<br>%{x:.1f} points<extra></extra>"
    )
    fig.update_layout(
        barmode="overlay",
        title=title,
        template="plotly_white",
        height=380,
        margin=dict(l=10, r=10, t=40, b=10),
        xaxis_title="Points",
        yaxis=dict(autorange="reversed"),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)
    )
    return fig


# ---------- Projected balances (stacked) ----------
def projection_area_chart(projection: Projection, title: str = "Projected Balances") -> go.Figure:
    ages = list(projection.ages)
    n = len(ages)
    order = ["pension", "trainingFund", "personalPortfolio", "realEstate", "crypto", "cash"]
    fig = go.Figure()
    for k in order:
        if k in projection.schedule and any(projection.schedule[k]):
            y = _fit(projection.schedule[k], n)
            fig.add_trace(go.Scatter(
                x=ages, y=y, mode="lines", name=_label(k),
                stackgroup="one",
                hovertemplate="Age %{x:.0f}<br>%{y:,.0f}<extra></extra>"
            ))
    if projection.retirement_goal:
        fig.add_hline(y=projection.retirement_goal, line_dash="dash", annotation_text="Goal")
    fig.update_layout(
        title=title, template="plotly_white", height=380,
        margin=dict(l=10, r=10, t=40, b=10),
        xaxis_title="Age", yaxis_title="Balance (nominal)"
    )
    return fig


# ---------- Inflation erosion ----------
def purchasing_power_chart(series: Sequence[Mapping[str, float]],
                           title: str = "Purchasing Power") -> go.Figure:
    """Line of real value per year from ``inflation.purchasing_power_series``."""
    years = [row["year"] for row in series]
    fig = go.Figure(go.Scatter(
        x=years, y=[row["real_value"] for row in series], mode="lines", name="Real value",
        hovertemplate="Year %{x}<br>%{y:,.0f}<extra></extra>"
    ))
    fig.update_layout(
        title=title, template="plotly_white", height=320,
        margin=dict(l=10, r=10, t=40, b=10),
        xaxis_title="Years", yaxis_title="Value (today's money)"
    )
    return fig


# ---------- Allocation drift ----------
def deviation_chart(analysis: RebalancingAnalysis, title: str = "Allocation Drift") -> go.Figure:
    """Bars of target minus current per asset; positive means underweight."""
    assets: List[str] = list(analysis.deviations)
    values = [analysis.deviations[a] for a in assets]
    colors = ["#22c55e" if v >= 0 else "#ef4444" for v in values]
    fig = go.Figure(go.Bar(
        x=[_label(a) for a in assets], y=values, marker_color=colors,
        hovertemplate="%{x}<br>%{y:+.1f} pts<extra></extra>"
    ))
    fig.update_layout(
        title=title, template="plotly_white", height=320,
        margin=dict(l=10, r=10, t=40, b=10),
        yaxis_title="Target − current (pts)"
    )
    return fig


def factor_table(report: HealthReport) -> Dict[str, List]:
    """Column-oriented summary of the factors, ready for a table widget."""
    return {
        "factor": [_label(n) for n in report.factors],
        "score": [f.score for f in report.factors.values()],
        "weight": [f.weight for f in report.factors.values()],
        "status": [f.status for f in report.factors.values()],
    }
