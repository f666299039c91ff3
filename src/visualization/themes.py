"""
Theme definitions for insight chart rendering.
"""

QLIK_THEME = {
    # Palette close to the Qlik Sense defaults
    'colors': {
        'primary': '#54A860',      # Green - primary series
        'secondary': '#4477AA',    # Blue - second measure
        'accent': '#F89C1C',       # Orange - highlights
        'neutral': '#6C757D',      # Gray - axes and text
        'palette': ['#54A860', '#4477AA', '#F89C1C', '#CC6677', '#882255', '#44AA99', '#999933', '#AA4499']
    },

    'style': {
        'figure_size': (12, 7),
        'dpi': 120,
        'background': '#FFFFFF',
        'grid': True,
        'grid_alpha': 0.3,
        'font_family': 'DejaVu Sans',
        'title_size': 16,
        'axis_label_size': 12,
        'tick_label_size': 10,
        'legend_size': 10,
        'line_width': 2,
        'marker_size': 5,
        'bar_edge_color': 'none',
        'bar_edge_width': 0,
        'fill_alpha': 0.15
    }
}

CLEAN_THEME = {
    'colors': {
        'primary': '#1f77b4',
        'secondary': '#ff7f0e',
        'accent': '#2ca02c',
        'neutral': '#7f7f7f',
        'palette': ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd', '#8c564b']
    },
    'style': {
        'figure_size': (10, 6),
        'dpi': 120,
        'background': '#FFFFFF',
        'grid': False,
        'font_family': 'DejaVu Sans',
        'title_size': 14,
        'axis_label_size': 11,
        'tick_label_size': 9,
        'legend_size': 9,
        'line_width': 1.5,
        'marker_size': 4,
        'bar_edge_color': 'none',
        'bar_edge_width': 0,
        'fill_alpha': 0.0
    }
}

THEMES = {
    'qlik': QLIK_THEME,
    'clean': CLEAN_THEME,
}


def get_theme(name: str) -> dict:
    """Theme by name; unknown names get the Qlik theme."""
    return THEMES.get(name, QLIK_THEME)


def apply_theme(ax, theme: dict):
    """
    Apply theme styling to matplotlib axes.

    Args:
        ax: matplotlib axes object
        theme: Theme dictionary
    """
    style = theme.get('style', {})

    if style.get('grid', False):
        ax.grid(True, alpha=style.get('grid_alpha', 0.3))
        ax.set_axisbelow(True)

    ax.tick_params(axis='both', which='major', labelsize=style.get('tick_label_size', 10))

    font_family = style.get('font_family', 'DejaVu Sans')
    for label in ax.get_xticklabels() + ax.get_yticklabels():
        label.set_fontfamily(font_family)

    ax.set_facecolor(style.get('background', '#FFFFFF'))
    for side in ('top', 'right'):
        ax.spines[side].set_visible(False)

    return ax


def get_color_palette(theme: dict, n_colors: int = None) -> list:
    """
    Get color palette from theme.

    Args:
        theme: Theme dictionary
        n_colors: Number of colors needed (cycles if needed)

    Returns:
        List of color codes
    """
    palette = theme.get('colors', {}).get('palette', ['#1f77b4'])

    if n_colors is None:
        return palette

    return [palette[i % len(palette)] for i in range(n_colors)]


def get_primary_color(theme: dict) -> str:
    return theme.get('colors', {}).get('primary', '#54A860')


def get_secondary_color(theme: dict) -> str:
    return theme.get('colors', {}).get('secondary', '#4477AA')
