"""
Wellness Journal Visualization
==============================
Plotly charts built from the trailing 7-day series.

Missing days arrive as None and are drawn as gaps (connectgaps=False);
they are never plotted as zero.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional, Sequence

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from analytics.time_series import DaySlot
from constants import MOOD_MAX, SLEEP_QUALITY_MAX

log = logging.getLogger("visualizations")


class WellnessVisualizer:
    """Creates Plotly visualisations of the journal."""

    def __init__(self):
        self.colors = {
            "mood": "#8B5CF6",
            "sleep": "#3B82F6",
            "quality": "#00B8A9",
        }

    # ── 1. Weekly mood & sleep ────────────────────────────────

    def create_weekly_chart(self, slots: Sequence[DaySlot]) -> Optional[go.Figure]:
        """Mood (left axis) and sleep hours (right axis) for the last 7 days."""
        if not slots:
            log.info("No series available for visualization")
            return None

        x = [s.label for s in slots]
        fig = make_subplots(specs=[[{"secondary_y": True}]])

        fig.add_trace(
            go.Scatter(x=x, y=[s.mood for s in slots],
                       name="Mood", mode="lines+markers", connectgaps=False,
                       customdata=[s.date.isoformat() for s in slots],
                       hovertemplate="%{customdata}: mood %{y}<extra></extra>",
                       line=dict(color=self.colors["mood"], width=3)),
            secondary_y=False,
        )
        fig.add_trace(
            go.Scatter(x=x, y=[s.sleep_hours for s in slots],
                       name="Sleep Hours", mode="lines+markers", connectgaps=False,
                       customdata=[s.date.isoformat() for s in slots],
                       hovertemplate="%{customdata}: %{y} h<extra></extra>",
                       line=dict(color=self.colors["sleep"], width=3)),
            secondary_y=True,
        )

        fig.update_yaxes(title_text="Mood", range=[0, MOOD_MAX + 0.5], secondary_y=False)
        fig.update_yaxes(title_text="Sleep (h)", rangemode="tozero", secondary_y=True)
        fig.update_layout(
            title_text="Weekly Mood & Sleep Chart",
            hovermode="x unified", height=450,
        )
        return fig

    # ── 2. Sleep quality ──────────────────────────────────────

    def create_sleep_quality_chart(self, slots: Sequence[DaySlot]) -> Optional[go.Figure]:
        if not slots or all(s.sleep_quality is None for s in slots):
            return None
        fig = go.Figure(data=go.Bar(
            x=[s.label for s in slots],
            y=[s.sleep_quality for s in slots],
            name="Sleep Quality", marker_color=self.colors["quality"],
        ))
        fig.update_layout(
            title="Sleep Quality (1-5)",
            yaxis=dict(range=[0, SLEEP_QUALITY_MAX]), height=350,
        )
        return fig

    # ── Export ────────────────────────────────────────────────

    def export_weekly_charts(self, slots: Sequence[DaySlot], output_dir: str = "wellness_reports") -> Dict[str, str]:
        """Save the weekly charts as HTML; returns name -> path."""
        os.makedirs(output_dir, exist_ok=True)
        charts = {
            "weekly_mood_sleep": self.create_weekly_chart(slots),
            "weekly_sleep_quality": self.create_sleep_quality_chart(slots),
        }
        written: Dict[str, str] = {}
        for name, fig in charts.items():
            if fig:
                filepath = os.path.join(output_dir, f"{name}.html")
                fig.write_html(filepath)
                written[name] = filepath
                log.info("   Saved %s.html", name)
        return written
