"""
Chart rendering with matplotlib for insight series.
"""

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend for server environments

import io
from typing import List, Optional

import matplotlib.pyplot as plt
from matplotlib.ticker import FuncFormatter

from .auto_detection import render_kind
from .hypercube import Series
from .themes import apply_theme, get_color_palette, get_primary_color, get_secondary_color, get_theme
from .utils import format_axis_labels, format_number, optimize_image_size


def _compact_tick(value, _position) -> str:
    return format_number(value) if value >= 0 else f"-{format_number(-value)}"


class ChartGenerator:
    """Renders a chart series to a JPEG image."""

    SUPPORTED_KINDS = ['bar', 'line', 'scatter', 'pie', 'doughnut']

    def __init__(self, theme: str = "qlik"):
        """
        Initialize chart generator.

        Args:
            theme: Theme name ("qlik" or "clean")
        """
        self.theme_name = theme
        self.theme = get_theme(theme)

        plt.style.use('default')
        self._configure_matplotlib()

    def _configure_matplotlib(self):
        style = self.theme.get('style', {})
        plt.rcParams.update({
            'font.family': style.get('font_family', 'DejaVu Sans'),
            'font.size': style.get('tick_label_size', 10),
            'axes.titlesize': style.get('title_size', 16),
            'axes.labelsize': style.get('axis_label_size', 12),
            'xtick.labelsize': style.get('tick_label_size', 10),
            'ytick.labelsize': style.get('tick_label_size', 10),
            'legend.fontsize': style.get('legend_size', 10),
            'figure.facecolor': style.get('background', '#FFFFFF'),
            'axes.facecolor': style.get('background', '#FFFFFF')
        })

    def render(self, series: Series, chart_type: Optional[str] = None, title: str = "",
               measure_names: Optional[List[str]] = None) -> bytes:
        """
        Render a series.

        Args:
            series: Sampled series from the hypercube transformer
            chart_type: Engine chart type, picks pie/doughnut over the series geometry
            title: Chart title
            measure_names: Axis titles for the primary and secondary measure

        Returns:
            JPEG image as bytes

        Raises:
            ValueError: If the series is empty
        """
        if not series.labels or not series.values:
            raise ValueError("Series is empty")

        kind = render_kind(chart_type, series.geometry)
        names = list(measure_names or [])
        style = self.theme.get('style', {})

        fig, ax = plt.subplots(figsize=style.get('figure_size', (12, 7)), dpi=style.get('dpi', 120))
        try:
            if kind == 'scatter':
                self._scatter(ax, series, names)
            elif kind == 'line':
                self._line(ax, series, names)
            elif kind in ('pie', 'doughnut'):
                self._pie(ax, series, doughnut=kind == 'doughnut')
            else:
                self._bar(ax, series, names)

            if kind not in ('pie', 'doughnut'):
                apply_theme(ax, self.theme)
                ax.yaxis.set_major_formatter(FuncFormatter(_compact_tick))

            if title:
                ax.set_title(title, fontsize=style.get('title_size', 16), pad=20)

            plt.tight_layout()

            # JPEG keeps the image small enough for MCP clients
            buffer = io.BytesIO()
            fig.savefig(buffer, format='jpeg', dpi=style.get('dpi', 120),
                        bbox_inches='tight', facecolor=style.get('background', '#FFFFFF'))
            return optimize_image_size(buffer.getvalue())

        finally:
            plt.close(fig)

    def _bar(self, ax, series: Series, names: List[str]):
        style = self.theme.get('style', {})
        positions = range(len(series.labels))
        ax.bar(positions, series.values, color=get_primary_color(self.theme),
               edgecolor=style.get('bar_edge_color', 'none'),
               linewidth=style.get('bar_edge_width', 0))
        ax.set_xticks(list(positions))
        ax.set_xticklabels(format_axis_labels(series.labels))
        if names:
            ax.set_ylabel(names[0])
        if len(series.labels) > 8:
            plt.setp(ax.xaxis.get_majorticklabels(), rotation=45, ha='right')

    def _line(self, ax, series: Series, names: List[str]):
        style = self.theme.get('style', {})
        positions = list(range(len(series.labels)))
        color = get_primary_color(self.theme)
        ax.plot(positions, series.values, color=color,
                linewidth=style.get('line_width', 2),
                marker='o', markersize=style.get('marker_size', 5))
        if style.get('fill_alpha'):
            ax.fill_between(positions, series.values, alpha=style['fill_alpha'], color=color)

        # Thin out tick labels on long series
        step = max(1, len(positions) // 15)
        ax.set_xticks(positions[::step])
        ax.set_xticklabels(format_axis_labels(series.labels[::step]))
        plt.setp(ax.xaxis.get_majorticklabels(), rotation=45, ha='right')
        if names:
            ax.set_ylabel(names[0])

    def _scatter(self, ax, series: Series, names: List[str]):
        style = self.theme.get('style', {})
        ax.scatter(series.values, series.secondary_values or [0.0] * len(series.values),
                   color=get_secondary_color(self.theme), alpha=0.7,
                   s=style.get('marker_size', 5) * 10)
        ax.set_xlabel(names[0] if names else 'Measure 1')
        ax.set_ylabel(names[1] if len(names) > 1 else 'Measure 2')
        ax.xaxis.set_major_formatter(FuncFormatter(_compact_tick))

    def _pie(self, ax, series: Series, doughnut: bool = False):
        # Wedges cannot be negative
        values = [max(v, 0.0) for v in series.values]
        if not sum(values):
            raise ValueError("Pie chart needs positive values")
        colors = get_color_palette(self.theme, len(values))
        wedgeprops = {'width': 0.45} if doughnut else None

        wedges, texts, autotexts = ax.pie(values, labels=format_axis_labels(series.labels), colors=colors,
                                          autopct='%1.1f%%', startangle=90, wedgeprops=wedgeprops)

        for text in texts:
            text.set_fontsize(self.theme.get('style', {}).get('tick_label_size', 10))
        for autotext in autotexts:
            autotext.set_color('white')
            autotext.set_fontweight('bold')

        ax.set_aspect('equal')
