# figures.py

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from config import PRIORITIES

# for chart sizes
BAR_H = 360
PIE_H = 360
HEAT_H = 440

STATUS_COLORS = {
    "compliant": "#16a34a",
    "partially-compliant": "#f59e0b",
    "non-compliant": "#dc2626",
    "pending": "#94a3b8",
}


def _base_fig_layout(fig, theme="light", height=360):
    """
    Apply a consistent layout to a figure.

    This sets the font to a contrasting color for light/dark themes,
    and sets the grid color to a contrasting color. It also sets the
    axis colors to match the text color.

    :param fig: a figure to update
    :param theme: a string, either "light" or "dark"
    :param height: the height of the figure in pixels
    :return: the updated figure
    """

    font_color = "#f6f7fb" if theme == "dark" else "#0b1020"
    grid_color = "#334155" if theme == "dark" else "#CBD5E1"
    axis_color = font_color
    fig.update_layout(
        autosize=False,
        height=height,
        margin=dict(l=30, r=30, t=30, b=30),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=font_color),
        xaxis=dict(
            showgrid=True,
            gridcolor=grid_color,
            zeroline=False,
            linecolor=axis_color,
            ticks="outside",
            fixedrange=True,
        ),
        yaxis=dict(
            showgrid=True,
            gridcolor=grid_color,
            zeroline=False,
            linecolor=axis_color,
            ticks="outside",
            fixedrange=True,
        ),
        uirevision="keep",
    )
    return fig


def _score_color(score):
    if score >= 90:
        return "#16a34a"
    if score >= 70:
        return "#4ade80"
    if score >= 50:
        return "#f59e0b"
    return "#dc2626"


def framework_bar_figure(framework_scores, theme="light"):
    """
    Return a bar chart of framework scores (0-100).

    Args:
        framework_scores (list): dicts with "name" and "score"
        theme (str, optional): light or dark. Defaults to "light".

    Returns:
        go.Figure: bar figure
    """
    names = [f["name"] for f in framework_scores]
    vals = [float(f["score"]) for f in framework_scores]
    fig = go.Figure(
        go.Bar(x=names, y=vals, marker_color=[_score_color(v) for v in vals])
    )
    fig.update_layout(
        autosize=False,
        height=BAR_H,
        xaxis=dict(categoryorder="array", categoryarray=names, fixedrange=True),
        yaxis=dict(range=[0, 100], fixedrange=True, tick0=0, dtick=20),
        uirevision="keep",
    )
    return _base_fig_layout(fig, theme, height=BAR_H)


def status_pie_figure(distribution, theme="light"):
    """
    Return a donut of framework statuses.

    Args:
        distribution (dict): status -> number of frameworks
        theme (str, optional): light or dark. Defaults to "light".
    """
    labels = [s for s, n in distribution.items() if n]
    values = [distribution[s] for s in labels]
    fig = go.Figure(
        go.Pie(
            labels=[s.replace("-", " ") for s in labels],
            values=values,
            hole=0.45,
            marker=dict(colors=[STATUS_COLORS.get(s, "#94a3b8") for s in labels]),
            sort=False,
        )
    )
    return _base_fig_layout(fig, theme, height=PIE_H)


def priority_figure(priority_compliance, theme="light"):
    """Stacked bars of compliant vs open controls per priority."""
    compliant = [priority_compliance.get(p, {}).get("compliant", 0) for p in PRIORITIES]
    total = [priority_compliance.get(p, {}).get("total", 0) for p in PRIORITIES]
    open_ = [t - c for t, c in zip(total, compliant)]
    fig = go.Figure(
        [
            go.Bar(name="Compliant", x=PRIORITIES, y=compliant,
                   marker_color=STATUS_COLORS["compliant"]),
            go.Bar(name="Open", x=PRIORITIES, y=open_,
                   marker_color=STATUS_COLORS["non-compliant"]),
        ]
    )
    fig.update_layout(barmode="stack")
    return _base_fig_layout(fig, theme, height=BAR_H)


def heatmap_figure(mat_df, theme="light"):
    """
    Return a heatmap of control compliance per (framework, category).

    Args:
        mat_df (pd.DataFrame): coverage matrix dataframe
        theme (str, optional): light or dark. Defaults to "light".

    Returns:
        go.Figure: heatmap figure
    """
    if mat_df is None or mat_df.empty:
        pv = pd.DataFrame(dtype=float)
    else:
        pv = mat_df.pivot_table(
            index="Framework", columns="Category", values="Coverage", aggfunc="mean"
        )
    pv = pv.astype(float)
    z = pv.to_numpy()

    font_color = "#f6f7fb" if theme == "dark" else "#0b1020"
    muted = "#a9b0c4" if theme == "dark" else "#60646e"

    if z.size == 0 or np.all(np.isnan(z)):
        fig = go.Figure()
        fig.add_annotation(
            text="No controls recorded yet",
            xref="paper",
            yref="paper",
            x=0.5,
            y=0.5,
            showarrow=False,
            font=dict(size=14, color=muted),
        )
        return _base_fig_layout(fig, theme, height=HEAT_H)

    annotations = []
    for i, fw in enumerate(pv.index):
        for j, cat in enumerate(pv.columns):
            val = pv.iloc[i, j]
            if pd.notna(val):
                annotations.append(
                    dict(
                        x=cat,
                        y=fw,
                        text=f"{val:.0f}%",
                        showarrow=False,
                        font=dict(size=11, color=font_color),
                    )
                )

    fig = go.Figure(
        data=go.Heatmap(
            z=z,
            x=list(pv.columns),
            y=list(pv.index),
            zmin=0,
            zmax=100,
            colorscale="RdYlGn",
            hovertemplate="Category: %{x}<br>Framework: %{y}<br>Compliance: %{z:.0f}%<extra></extra>",
            xgap=1,
            ygap=1,
        )
    )
    fig.update_layout(
        autosize=False,
        height=HEAT_H,
        annotations=annotations,
        xaxis=dict(title="", tickangle=-30),
        yaxis=dict(title=""),
    )
    return _base_fig_layout(fig, theme, height=HEAT_H)


def control_results_figure(control_results, theme="light"):
    """Bar of control counts per status for one assessment result."""
    order = ["compliant", "partially-compliant", "non-compliant"]
    counts = [sum(1 for s in control_results.values() if s == st) for st in order]
    fig = go.Figure(
        go.Bar(
            x=[s.replace("-", " ") for s in order],
            y=counts,
            marker_color=[STATUS_COLORS[s] for s in order],
        )
    )
    return _base_fig_layout(fig, theme, height=BAR_H)
