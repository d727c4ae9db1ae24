"""Smoke tests for charts, maps, reports and exports."""

import folium
import matplotlib.pyplot as plt
import pandas as pd
import plotly.graph_objects as go
import pytest

from hqi import config
from hqi.geo import resolve_geometry_hqi
from hqi.metrics import aggregate_by_state, compute_correlation_matrix, rank_districts
from hqi.models import assign_clusters, fit_literacy_regression, summarize_clusters
from hqi.viz import (
    build_interactive_map, export_dataframe_to_csv, generate_pdf_report,
    generate_summary_table, plot_cluster_scatter, plot_correlation_matrix,
    plot_hqi_choropleth, plot_hqi_choropleth_interactive, plot_hqi_distribution,
    plot_ranked_districts, plot_state_summary, ranking_title, save_figure
)


@pytest.fixture
def joined(geometry, housing):
    return resolve_geometry_hqi(geometry, housing)[0]


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


def test_plot_hqi_distribution(district_frame):
    fig = plot_hqi_distribution(district_frame)

    assert isinstance(fig, plt.Figure)


def test_plot_ranked_districts(merged):
    top, _ = rank_districts(merged)

    fig = plot_ranked_districts(top, "Top districts")

    labels = [t.get_text() for t in fig.axes[0].get_yticklabels()]
    assert labels[0] == "Kupwara (Jammu & Kashmir)"


def test_ranking_title_counts_ranked_districts(merged):
    top, bottom = rank_districts(merged)

    # Ludhiana has no HQI, leaving fewer districts than TOP_N_DISTRICTS
    assert len(top) < config.TOP_N_DISTRICTS
    assert ranking_title("Top", top) == "Top 3 Districts by HQI"
    assert ranking_title("Bottom", bottom) == "Bottom 3 Districts by HQI"

    fig = plot_ranked_districts(top, ranking_title("Top", top))

    assert fig.axes[0].get_title() == "Top 3 Districts by HQI"


def test_plot_correlation_matrix(district_frame):
    fig = plot_correlation_matrix(compute_correlation_matrix(district_frame))

    assert isinstance(fig, plt.Figure)


def test_plot_state_summary(merged):
    fig = plot_state_summary(aggregate_by_state(merged))

    assert isinstance(fig, go.Figure)
    assert list(fig.data[0].x) == ["Punjab", "Jammu & Kashmir"]


def test_plot_cluster_scatter(district_frame):
    fig = plot_cluster_scatter(assign_clusters(district_frame))

    assert isinstance(fig, go.Figure)
    assert sum(len(trace.x) for trace in fig.data) == len(district_frame) - 1


def test_plot_hqi_choropleth(joined):
    fig = plot_hqi_choropleth(joined)

    assert isinstance(fig, plt.Figure)


def test_plot_hqi_choropleth_interactive(joined):
    fig = plot_hqi_choropleth_interactive(joined)

    assert isinstance(fig, go.Figure)
    assert len(fig.data[0].locations) == len(joined)


def test_build_interactive_map(joined, tmp_path):
    m = build_interactive_map(joined)

    assert isinstance(m, folium.Map)

    paths = save_figure(m, "hqi_map", output_dir=tmp_path)
    assert paths == [tmp_path / "hqi_map.html"]
    assert "Kupwara" in paths[0].read_text(encoding="utf-8")


def test_save_figure_formats(district_frame, tmp_path):
    fig = plot_hqi_distribution(district_frame)

    paths = save_figure(fig, "hist", formats=["png", "svg"], output_dir=tmp_path)

    assert [p.name for p in paths] == ["hist.png", "hist.svg"]
    assert all(p.stat().st_size > 0 for p in paths)


def test_save_folium_map_as_png_is_skipped(joined, tmp_path):
    paths = save_figure(build_interactive_map(joined), "map", formats=["png"],
                        output_dir=tmp_path)

    assert paths == []


def test_save_plotly_html(merged, tmp_path):
    paths = save_figure(plot_state_summary(aggregate_by_state(merged)), "states",
                        output_dir=tmp_path)

    assert paths[0].suffix == ".html"
    assert paths[0].exists()


def test_generate_summary_table(merged):
    table = generate_summary_table(merged, columns=[config.COL_HQI, "not_a_column"])

    assert list(table.columns) == [config.COL_DISTRICT, config.COL_STATE, config.COL_HQI]
    assert table[config.COL_HQI].iloc[0] == 0.875


def test_export_dataframe_to_csv(merged, tmp_path):
    path = export_dataframe_to_csv(merged, "merged", output_dir=tmp_path)

    exported = pd.read_csv(path, dtype={config.COL_DISTRICT_CODE: str})
    assert list(exported[config.COL_DISTRICT_CODE]) == ["0001", "0002", "0003", "0004"]


def test_generate_pdf_report(district_frame, joined, tmp_path):
    clustered = assign_clusters(district_frame)

    path = generate_pdf_report(
        clustered,
        aggregate_by_state(clustered),
        cluster_summary=summarize_clusters(clustered),
        regression=fit_literacy_regression(clustered),
        geo_df=joined,
        output_path=tmp_path / "report.pdf"
    )

    assert path.exists()
    assert path.read_bytes().startswith(b"%PDF")
