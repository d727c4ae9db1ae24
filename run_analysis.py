#!/usr/bin/env python3
"""
End-to-end Housing Quality Index analysis.

Reads the input files configured in hqi/config.py, runs every analysis
stage, and writes figures, tables and a PDF report under outputs/.

Usage:
    python run_analysis.py
"""

import logging

import matplotlib.pyplot as plt

from hqi import config
from hqi.geo import resolve_geometry_hqi
from hqi.metrics import (
    aggregate_by_state, compute_correlation_matrix, rank_districts, summarize_hqi
)
from hqi.models import assign_clusters, fit_literacy_regression, summarize_clusters
from hqi.preprocessing import load_district_geometry, run_preprocessing_pipeline
from hqi.viz import (
    build_interactive_map, export_dataframe_to_csv, generate_pdf_report,
    plot_cluster_scatter, plot_correlation_matrix, plot_hqi_choropleth,
    plot_hqi_distribution, plot_ranked_districts, plot_state_summary, ranking_title,
    save_figure
)

logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
logger = logging.getLogger("run_analysis")


def main() -> None:
    housing, merged = run_preprocessing_pipeline()

    # Descriptive analytics
    summarize_hqi(merged)
    top, bottom = rank_districts(merged)
    state_summary = aggregate_by_state(merged)
    corr = compute_correlation_matrix(merged)

    logger.info(f"State HQI summary:\n{state_summary.to_string(index=False)}")

    # Models
    merged = assign_clusters(merged)
    cluster_summary = summarize_clusters(merged)
    logger.info(f"Cluster summary:\n{cluster_summary.to_string(index=False)}")

    regression = fit_literacy_regression(merged)
    logger.info(f"Regression summary:\n{regression['results'].summary()}")

    # Geo-join
    geometry = load_district_geometry()
    joined, report = resolve_geometry_hqi(geometry, housing)

    # Outputs
    export_dataframe_to_csv(merged, 'merged_districts')
    export_dataframe_to_csv(top, 'top_districts')
    export_dataframe_to_csv(bottom, 'bottom_districts')
    export_dataframe_to_csv(state_summary, 'state_hqi_summary')
    export_dataframe_to_csv(corr, 'correlation_matrix', include_index=True)
    export_dataframe_to_csv(cluster_summary, 'cluster_summary')
    export_dataframe_to_csv(regression['coefficients'], 'regression_coefficients',
                            include_index=True)

    static_figures = {
        'hqi_distribution': plot_hqi_distribution(merged),
        'top_districts': plot_ranked_districts(top, ranking_title('Top', top),
                                               config.COLOR_SUCCESS),
        'bottom_districts': plot_ranked_districts(bottom, ranking_title('Bottom', bottom),
                                                  config.COLOR_DANGER),
        'correlation_matrix': plot_correlation_matrix(corr),
        'hqi_choropleth': plot_hqi_choropleth(joined),
    }
    for name, fig in static_figures.items():
        save_figure(fig, name)
        plt.close(fig)

    save_figure(plot_state_summary(state_summary), 'state_hqi_summary')
    save_figure(plot_cluster_scatter(merged), 'district_clusters')
    save_figure(build_interactive_map(joined), 'hqi_interactive_map')

    generate_pdf_report(
        merged,
        state_summary,
        cluster_summary=cluster_summary,
        regression=regression,
        geo_df=joined
    )

    logger.info("=" * 60)
    logger.info("Analysis complete!")
    logger.info(f"  - Districts analysed: {len(merged):,}")
    logger.info(f"  - Geometries without HQI: {report.unresolved}")
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
