"""Plotly chart components for the result panel."""

import plotly.graph_objects as go
from typing import Tuple

# Light theme colors (app uses #f8fafc background)
TEXT_COLOR = "#334155"
TICK_COLOR = "#64748b"
BORDER_COLOR = "#94a3b8"

STATUS_COLORS = {
    'good': "#059669",
    'warning': "#d97706",
    'bad': "#dc2626",
    'unknown': "#94a3b8",
}


def create_metric_gauge(title: str, value: float, bands: Tuple[float, float], status: str,
                        suffix: str = '°', max_value: float = None) -> go.Figure:
    """Gauge for a graded magnitude with good / warning / bad bands."""
    optimal, acceptable = bands
    max_value = max_value or max(acceptable * 2, value * 1.1)
    color = STATUS_COLORS.get(status, STATUS_COLORS['unknown'])

    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=value,
        domain={'x': [0, 1], 'y': [0, 1]},
        title={'text': title, 'font': {'size': 14, 'color': TEXT_COLOR}},
        number={'font': {'size': 28, 'color': color}, 'suffix': suffix, 'valueformat': '.1f'},
        gauge={
            'axis': {'range': [0, max_value], 'tickcolor': TICK_COLOR},
            'bar': {'color': color},
            'bgcolor': "rgba(0,0,0,0)",
            'bordercolor': BORDER_COLOR,
            'steps': [
                {'range': [0, optimal], 'color': 'rgba(5,150,105,0.15)'},
                {'range': [optimal, acceptable], 'color': 'rgba(217,119,6,0.15)'},
                {'range': [acceptable, max_value], 'color': 'rgba(220,38,38,0.15)'}
            ]
        }
    ))

    fig.update_layout(
        paper_bgcolor='rgba(0,0,0,0)', plot_bgcolor='rgba(0,0,0,0)',
        font={'color': TEXT_COLOR}, height=200, margin=dict(l=20, r=20, t=40, b=10)
    )
    return fig
