"""
Visualization module for the Housing Quality Index project.

This module provides functions for creating charts, maps, and reports
from the merged district table and the HQI-joined district boundaries.
Renderers only consume tables; nothing they produce is fed back into
the pipeline.

Functions:
    - plot_hqi_distribution: Histogram of HQI across districts
    - ranking_title: Title sized to the ranked districts
    - plot_ranked_districts: Horizontal bar chart of ranked districts
    - plot_correlation_matrix: Annotated correlation heatmap
    - plot_state_summary: State mean HQI with min/max range
    - plot_cluster_scatter: Districts coloured by k-means cluster
    - plot_hqi_choropleth: Static district HQI map
    - plot_hqi_choropleth_interactive: Plotly district HQI map
    - build_interactive_map: Folium map with tooltips
    - generate_summary_table: Formatted district table
    - generate_pdf_report: Export the analysis to PDF
    - save_figure / export_dataframe_to_csv: Write outputs to disk
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import folium
import geopandas as gpd
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import seaborn as sns

from . import config

# Configure logging
logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Set style defaults
plt.style.use('seaborn-v0_8-whitegrid')
sns.set_palette("husl")


def _district_labels(df: pd.DataFrame) -> List[str]:
    return [
        f"{district} ({state})"
        for district, state in zip(df[config.COL_DISTRICT], df[config.COL_STATE])
    ]


def plot_hqi_distribution(
    df: pd.DataFrame,
    bins: Optional[int] = None,
    title: str = "Distribution of Housing Quality Index"
) -> plt.Figure:
    """
    Create a histogram (with KDE) of district HQI values.

    Args:
        df: DataFrame with an HQI column.
        bins: Number of histogram bins. Defaults to config.HISTOGRAM_BINS.
        title: Chart title.

    Returns:
        plt.Figure: Matplotlib figure object.

    Example:
        >>> fig = plot_hqi_distribution(merged)
        >>> fig.savefig('hqi_hist.png')
    """
    logger.info("Creating HQI distribution histogram...")

    bins = bins or config.HISTOGRAM_BINS
    hqi = df[config.COL_HQI].dropna()

    fig, ax = plt.subplots(figsize=(config.FIG_WIDTH, config.FIG_HEIGHT))

    sns.histplot(hqi, bins=bins, kde=len(hqi) > 1, color=config.COLOR_PRIMARY, ax=ax)

    if len(hqi) > 0:
        ax.axvline(hqi.mean(), color=config.COLOR_DANGER, linestyle='--',
                   label=f"Mean = {hqi.mean():.3f}")
        ax.legend()

    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xlabel('HQI')
    ax.set_ylabel('Number of districts')

    plt.tight_layout()

    return fig


def ranking_title(label: str, ranked: pd.DataFrame) -> str:
    """Chart title sized to the districts actually ranked, e.g. "Top 3 Districts by HQI"."""
    return f"{label} {len(ranked)} Districts by HQI"


def plot_ranked_districts(
    ranked: pd.DataFrame,
    title: str,
    color: Optional[str] = None
) -> plt.Figure:
    """
    Create a horizontal bar chart of ranked districts.

    Bars are drawn in the order given, first row at the top.

    Args:
        ranked: Output of rank_districts (top or bottom).
        title: Chart title.
        color: Bar color. Defaults to config.COLOR_PRIMARY.

    Returns:
        plt.Figure: Matplotlib figure object.
    """
    logger.info(f"Creating ranked bar chart: {title}")

    color = color or config.COLOR_PRIMARY
    positions = np.arange(len(ranked))

    fig, ax = plt.subplots(figsize=(config.FIG_WIDTH, max(4, len(ranked) * 0.5)))

    ax.barh(positions, ranked[config.COL_HQI], color=color)
    ax.set_yticks(positions)
    ax.set_yticklabels(_district_labels(ranked))
    ax.invert_yaxis()

    for pos, value in zip(positions, ranked[config.COL_HQI]):
        ax.text(value + 0.005, pos, f"{value:.3f}", va='center', fontsize=9)

    ax.set_xlim(0, 1.05)
    ax.set_xlabel('HQI')
    ax.set_title(title, fontsize=14, fontweight='bold')

    plt.tight_layout()

    return fig


def plot_correlation_matrix(
    corr: pd.DataFrame,
    title: str = "Correlation of HQI with Demographic Indicators"
) -> plt.Figure:
    """
    Create an annotated heatmap of a correlation matrix.

    Args:
        corr: Output of compute_correlation_matrix.
        title: Chart title.

    Returns:
        plt.Figure: Matplotlib figure object.
    """
    logger.info("Creating correlation heatmap...")

    fig, ax = plt.subplots(figsize=(config.FIG_WIDTH - 2, config.FIG_HEIGHT))

    sns.heatmap(
        corr,
        annot=True,
        fmt='.2f',
        cmap=config.CORRELATION_COLORMAP,
        vmin=-1,
        vmax=1,
        center=0,
        square=True,
        linewidths=0.5,
        ax=ax
    )

    ax.set_title(title, fontsize=14, fontweight='bold')

    plt.tight_layout()

    return fig


def plot_state_summary(
    state_summary: pd.DataFrame,
    title: str = "Mean HQI by State"
) -> go.Figure:
    """
    Create a bar chart of state mean HQI with min/max whiskers.

    Args:
        state_summary: Output of aggregate_by_state.
        title: Chart title.

    Returns:
        go.Figure: Plotly figure object.
    """
    logger.info("Creating state summary chart...")

    fig = go.Figure(go.Bar(
        x=state_summary[config.COL_STATE],
        y=state_summary['mean'],
        marker=dict(
            color=state_summary['mean'],
            colorscale=config.HQI_COLORSCALE,
            cmin=0,
            cmax=1
        ),
        error_y=dict(
            type='data',
            symmetric=False,
            array=state_summary['max'] - state_summary['mean'],
            arrayminus=state_summary['mean'] - state_summary['min']
        ),
        customdata=np.stack(
            [state_summary['median'], state_summary['count']], axis=-1
        ),
        hovertemplate='%{x}<br>Mean: %{y:.3f}<br>Median: %{customdata[0]:.3f}'
                      '<br>Districts: %{customdata[1]}<extra></extra>'
    ))

    fig.update_layout(
        title=title,
        xaxis_title='State',
        yaxis_title='HQI',
        yaxis=dict(range=[0, 1.05]),
        template=config.PLOTLY_TEMPLATE,
        height=max(500, len(state_summary) * 12)
    )

    return fig


def plot_cluster_scatter(
    df: pd.DataFrame,
    x_feature: Optional[str] = None,
    y_feature: Optional[str] = None,
    title: str = "District Clusters"
) -> go.Figure:
    """
    Create a 2D scatter plot of districts coloured by cluster.

    Args:
        df: Output of assign_clusters.
        x_feature: x-axis column. Defaults to Literacy_Rate.
        y_feature: y-axis column. Defaults to HQI.
        title: Chart title.

    Returns:
        go.Figure: Plotly figure object.
    """
    logger.info("Creating cluster scatter plot...")

    x_feature = x_feature or config.COL_LITERACY_RATE
    y_feature = y_feature or config.COL_HQI

    plot_data = df.dropna(subset=[config.COL_CLUSTER, x_feature, y_feature]).copy()
    plot_data['cluster_label'] = 'Cluster ' + plot_data[config.COL_CLUSTER].astype(str)
    plot_data = plot_data.sort_values(config.COL_CLUSTER, kind='mergesort')

    fig = px.scatter(
        plot_data,
        x=x_feature,
        y=y_feature,
        color='cluster_label',
        hover_data=[config.COL_DISTRICT, config.COL_STATE],
        title=title,
        labels={
            x_feature: x_feature.replace('_', ' '),
            y_feature: y_feature.replace('_', ' '),
            'cluster_label': 'Cluster'
        }
    )

    fig.update_layout(
        template=config.PLOTLY_TEMPLATE,
        legend=dict(orientation='h', yanchor='bottom', y=1.02)
    )

    return fig


def plot_hqi_choropleth(
    geo_df: gpd.GeoDataFrame,
    title: str = "Housing Quality Index by District"
) -> plt.Figure:
    """
    Create a static choropleth map of district HQI.

    Districts without an HQI value are drawn hatched grey.

    Args:
        geo_df: Output of resolve_geometry_hqi.
        title: Chart title.

    Returns:
        plt.Figure: Matplotlib figure object.
    """
    logger.info("Creating static HQI choropleth...")

    fig, ax = plt.subplots(figsize=(config.FIG_HEIGHT + 2, config.FIG_HEIGHT + 2))

    geo_df.plot(
        column=config.COL_HQI,
        cmap=config.HQI_COLORMAP,
        vmin=0,
        vmax=1,
        legend=True,
        legend_kwds={'label': 'HQI', 'shrink': 0.6},
        missing_kwds={
            'color': config.COLOR_MISSING,
            'hatch': '///',
            'label': 'No HQI'
        },
        edgecolor='white',
        linewidth=0.2,
        ax=ax
    )

    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_axis_off()

    plt.tight_layout()

    return fig


def _map_frame(geo_df: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Minimal WGS84 frame for web maps."""
    data = geo_df[[config.COL_DISTRICT, config.COL_STATE, config.COL_HQI,
                   config.COL_GEOMETRY]].copy()

    if data.crs is not None and data.crs != config.GEOMETRY_CRS:
        data = data.to_crs(config.GEOMETRY_CRS)

    data = data.reset_index(drop=True)
    data['map_id'] = data.index.astype(str)
    data['hqi_label'] = data[config.COL_HQI].map(
        lambda v: f"{v:.3f}" if pd.notna(v) else "No data"
    )

    return data


def plot_hqi_choropleth_interactive(
    geo_df: gpd.GeoDataFrame,
    title: str = "Housing Quality Index by District"
) -> go.Figure:
    """
    Create an interactive Plotly choropleth of district HQI.

    Args:
        geo_df: Output of resolve_geometry_hqi.
        title: Chart title.

    Returns:
        go.Figure: Plotly figure object.
    """
    logger.info("Creating interactive HQI choropleth...")

    data = _map_frame(geo_df)
    geojson = data.set_index('map_id')[[config.COL_GEOMETRY]].__geo_interface__

    fig = px.choropleth(
        data,
        geojson=geojson,
        locations='map_id',
        color=config.COL_HQI,
        color_continuous_scale=config.HQI_COLORSCALE,
        range_color=[0, 1],
        hover_name=config.COL_DISTRICT,
        hover_data={config.COL_STATE: True, 'hqi_label': True,
                    'map_id': False, config.COL_HQI: False},
        title=title,
        labels={'hqi_label': 'HQI', config.COL_STATE: 'State'}
    )

    fig.update_geos(fitbounds='locations', visible=False)
    fig.update_layout(
        template=config.PLOTLY_TEMPLATE,
        coloraxis_colorbar=dict(title="HQI"),
        margin=dict(l=0, r=0, t=50, b=0)
    )

    return fig


def build_interactive_map(
    geo_df: gpd.GeoDataFrame,
    title: str = "Housing Quality Index by District"
) -> folium.Map:
    """
    Build a Folium map of district HQI with hover tooltips.

    Args:
        geo_df: Output of resolve_geometry_hqi.
        title: Title shown above the map.

    Returns:
        folium.Map: Map ready to save as HTML.

    Example:
        >>> m = build_interactive_map(joined)
        >>> m.save('outputs/figures/hqi_map.html')
    """
    logger.info("Building interactive HQI map...")

    data = _map_frame(geo_df)

    m = folium.Map(
        location=config.MAP_CENTER,
        zoom_start=config.MAP_ZOOM_START,
        tiles=config.MAP_TILES,
        control_scale=True
    )

    title_html = f'<h3 style="text-align:center;font-size:18px"><b>{title}</b></h3>'
    m.get_root().html.add_child(folium.Element(title_html))

    folium.Choropleth(
        geo_data=data,
        data=data,
        columns=['map_id', config.COL_HQI],
        key_on='feature.properties.map_id',
        fill_color=config.HQI_COLORSCALE,
        fill_opacity=0.8,
        line_opacity=0.3,
        nan_fill_color=config.COLOR_MISSING,
        legend_name='Housing Quality Index',
        name='HQI'
    ).add_to(m)

    folium.GeoJson(
        data,
        name='Districts',
        style_function=lambda feature: {'fillOpacity': 0, 'weight': 0},
        tooltip=folium.GeoJsonTooltip(
            fields=[config.COL_DISTRICT, config.COL_STATE, 'hqi_label'],
            aliases=['District', 'State', 'HQI'],
            sticky=False
        )
    ).add_to(m)

    folium.LayerControl(collapsed=True).add_to(m)

    return m


def generate_summary_table(
    df: pd.DataFrame,
    columns: Optional[List[str]] = None,
    decimals: int = 3
) -> pd.DataFrame:
    """
    Generate a formatted district table for reports.

    Args:
        df: Input dataframe (e.g. top or bottom ranking).
        columns: Metric columns to include. Defaults to HQI and literacy rates.
        decimals: Rounding for numeric columns.

    Returns:
        pd.DataFrame: District and state names plus rounded metrics.
    """
    if columns is None:
        columns = [
            config.COL_HQI,
            config.COL_LITERACY_RATE,
            config.COL_FEMALE_LITERACY_RATE,
        ]

    available = [c for c in columns if c in df.columns]
    table = df[[config.COL_DISTRICT, config.COL_STATE] + available].copy()
    table[available] = table[available].round(decimals)

    return table.reset_index(drop=True)


def _table_page(pdf: Any, table_df: pd.DataFrame, title: str, font_size: int = 9) -> None:
    fig, ax = plt.subplots(figsize=(config.FIG_WIDTH, config.FIG_HEIGHT))
    ax.axis('off')
    table = ax.table(
        cellText=table_df.astype(str).values,
        colLabels=[str(c) for c in table_df.columns],
        loc='center',
        cellLoc='center'
    )
    table.auto_set_font_size(False)
    table.set_fontsize(font_size)
    table.scale(1.2, 1.5)
    ax.set_title(title, fontsize=14, fontweight='bold', pad=20)
    pdf.savefig(fig, bbox_inches='tight')
    plt.close(fig)


def generate_pdf_report(
    merged: pd.DataFrame,
    state_summary: pd.DataFrame,
    cluster_summary: Optional[pd.DataFrame] = None,
    regression: Optional[Dict[str, Any]] = None,
    geo_df: Optional[gpd.GeoDataFrame] = None,
    output_path: Optional[Union[str, Path]] = None,
    title: str = "Housing Quality Index Report"
) -> Path:
    """
    Generate a PDF report with the analysis tables and charts.

    Args:
        merged: Merged table (with clusters if available).
        state_summary: Output of aggregate_by_state.
        cluster_summary: Optional output of summarize_clusters.
        regression: Optional output of fit_literacy_regression.
        geo_df: Optional output of resolve_geometry_hqi for the map page.
        output_path: Path for output PDF. Defaults to outputs/hqi_report.pdf.
        title: Report title.

    Returns:
        Path: Path to generated PDF file.
    """
    from matplotlib.backends.backend_pdf import PdfPages

    from .metrics import compute_correlation_matrix, rank_districts

    logger.info("Generating PDF report...")

    output_path = Path(output_path) if output_path else config.OUTPUTS_DIR / "hqi_report.pdf"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with PdfPages(output_path) as pdf:
        # Title page
        fig, ax = plt.subplots(figsize=(config.FIG_WIDTH, config.FIG_HEIGHT))
        ax.text(0.5, 0.6, title, ha='center', va='center', fontsize=24, fontweight='bold')
        ax.text(0.5, 0.4, f"{len(merged):,} districts | "
                f"{merged[config.COL_STATE].nunique()} states",
                ha='center', va='center', fontsize=14)
        ax.axis('off')
        pdf.savefig(fig, bbox_inches='tight')
        plt.close(fig)

        fig = plot_hqi_distribution(merged)
        pdf.savefig(fig, bbox_inches='tight')
        plt.close(fig)

        top, bottom = rank_districts(merged)
        for ranked, label, color in ((top, 'Top', config.COLOR_SUCCESS),
                                     (bottom, 'Bottom', config.COLOR_DANGER)):
            if len(ranked) > 0:
                fig = plot_ranked_districts(ranked, ranking_title(label, ranked), color)
                pdf.savefig(fig, bbox_inches='tight')
                plt.close(fig)

        fig = plot_correlation_matrix(compute_correlation_matrix(merged))
        pdf.savefig(fig, bbox_inches='tight')
        plt.close(fig)

        _table_page(pdf, state_summary.round(3), 'HQI by State', font_size=7)

        if cluster_summary is not None:
            _table_page(pdf, cluster_summary.round(2), 'Cluster Profiles')

        if regression is not None:
            coef = regression['coefficients'].round(4).reset_index()
            coef = coef.rename(columns={'index': 'term'})
            _table_page(
                pdf, coef,
                f"OLS: {regression['formula']} "
                f"(R² = {regression['r_squared']:.3f}, n = {regression['n_obs']})"
            )

        if geo_df is not None:
            fig = plot_hqi_choropleth(geo_df)
            pdf.savefig(fig, bbox_inches='tight')
            plt.close(fig)

    logger.info(f"PDF report saved to: {output_path}")

    return output_path


def save_figure(
    fig: Union[go.Figure, plt.Figure, folium.Map],
    filename: str,
    formats: Optional[List[str]] = None,
    output_dir: Optional[Union[str, Path]] = None
) -> List[Path]:
    """
    Save a figure in multiple formats.

    Failures are logged and skipped so one bad format does not stop
    the remaining outputs.

    Args:
        fig: Plotly figure, Matplotlib figure, or Folium map.
        filename: Base filename (without extension).
        formats: Formats to save ('png', 'html', 'pdf', 'svg'). Defaults to
                 html for Plotly/Folium and png for Matplotlib.
        output_dir: Target directory. Defaults to config.FIGURES_DIR.

    Returns:
        List[Path]: Paths to saved files.

    Example:
        >>> paths = save_figure(fig, 'hqi_hist', ['png'])
    """
    output_dir = Path(output_dir) if output_dir else config.FIGURES_DIR

    if formats is None:
        formats = ['png'] if isinstance(fig, plt.Figure) else ['html']

    saved_paths = []

    for fmt in formats:
        output_path = output_dir / f"{filename}.{fmt}"
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            if isinstance(fig, folium.Map):
                if fmt != 'html':
                    raise ValueError("Folium maps can only be saved as html")
                fig.save(str(output_path))
            elif isinstance(fig, go.Figure):
                if fmt == 'html':
                    fig.write_html(str(output_path))
                else:
                    fig.write_image(str(output_path))
            else:
                fig.savefig(str(output_path), dpi=150, bbox_inches='tight')

            saved_paths.append(output_path)
            logger.info(f"Saved figure to: {output_path}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save figure as {fmt}: {e}")

    return saved_paths


def export_dataframe_to_csv(
    df: pd.DataFrame,
    filename: str,
    include_index: bool = False,
    output_dir: Optional[Union[str, Path]] = None
) -> Path:
    """
    Export dataframe to CSV in the tables output directory.

    Args:
        df: DataFrame to export.
        filename: Output filename (without extension).
        include_index: Whether to include index in output.
        output_dir: Target directory. Defaults to config.TABLES_DIR.

    Returns:
        Path: Path to saved CSV file.
    """
    output_dir = Path(output_dir) if output_dir else config.TABLES_DIR
    output_path = output_dir / f"{filename}.csv"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df.to_csv(output_path, index=include_index)
    logger.info(f"Exported table to: {output_path}")

    return output_path
