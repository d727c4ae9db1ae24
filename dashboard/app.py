"""
Streamlit Dashboard for the Housing Quality Index project.

Launch with: streamlit run dashboard/app.py
"""

import sys
from pathlib import Path

import pandas as pd
import streamlit as st

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from hqi import config
from hqi.geo import resolve_geometry_hqi
from hqi.metrics import aggregate_by_state, compute_correlation_matrix, rank_districts
from hqi.models import assign_clusters, fit_literacy_regression, summarize_clusters
from hqi.preprocessing import load_district_geometry, run_preprocessing_pipeline
from hqi.viz import (
    generate_summary_table, plot_cluster_scatter, plot_correlation_matrix,
    plot_hqi_choropleth_interactive, plot_hqi_distribution, plot_state_summary
)


# Page config
st.set_page_config(
    page_title="Housing Quality Index - Indian Districts",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_data(show_spinner="Processing census tables...")
def load_tables():
    """Run the preprocessing pipeline and cluster the merged table."""
    housing, merged = run_preprocessing_pipeline(save=False)
    return housing, assign_clusters(merged)


@st.cache_data(show_spinner="Joining district boundaries...")
def load_map(_housing: pd.DataFrame):
    """Load boundaries and attach HQI; returns None when no boundary file exists."""
    if not config.GEOMETRY_FILE.exists():
        return None, None
    geometry = load_district_geometry()
    return resolve_geometry_hqi(geometry, _housing)


def export_csv(df):
    """Export dataframe to CSV bytes."""
    return df.to_csv(index=False).encode('utf-8')


def main():
    st.title("🏠 Housing Quality Index - Indian Districts")
    st.markdown("---")

    missing = [p for p in (config.HOUSING_FILE, config.DEMOGRAPHIC_FILE) if not p.exists()]
    if missing:
        st.warning("⚠️ Input files not found:\n" + "\n".join(f"• {p}" for p in missing))
        st.stop()

    try:
        housing, merged = load_tables()
    except ValueError as e:
        st.error(f"Error processing input data: {e}")
        st.stop()

    # Sidebar filters
    st.sidebar.title("🎛️ Controls")
    states = sorted(merged[config.COL_STATE].dropna().unique())
    selected_state = st.sidebar.selectbox("State", ["All States"] + states)

    df_filtered = merged
    if selected_state != "All States":
        df_filtered = merged[merged[config.COL_STATE] == selected_state]

    st.sidebar.markdown("### 📥 Export")
    st.sidebar.download_button(
        label="📄 Download CSV",
        data=export_csv(df_filtered),
        file_name="hqi_districts.csv",
        mime="text/csv"
    )

    # KPI Cards
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Districts", f"{len(df_filtered):,}")
    with col2:
        st.metric("Mean HQI", f"{df_filtered[config.COL_HQI].mean():.3f}")
    with col3:
        st.metric("Mean Literacy Rate", f"{df_filtered[config.COL_LITERACY_RATE].mean():.1f}%")
    with col4:
        st.metric("Undefined HQI", f"{df_filtered[config.COL_HQI].isna().sum():,}")

    st.markdown("---")

    tab1, tab2, tab3, tab4 = st.tabs([
        "📊 Rankings", "🔗 Correlations", "🧩 Clusters", "🗺️ Map"
    ])

    with tab1:
        st.pyplot(plot_hqi_distribution(df_filtered))

        top, bottom = rank_districts(df_filtered)
        col_top, col_bottom = st.columns(2)
        with col_top:
            st.subheader("Top districts")
            st.dataframe(generate_summary_table(top), use_container_width=True)
        with col_bottom:
            st.subheader("Bottom districts")
            st.dataframe(generate_summary_table(bottom), use_container_width=True)

        st.plotly_chart(plot_state_summary(aggregate_by_state(df_filtered)),
                        use_container_width=True)

    with tab2:
        st.pyplot(plot_correlation_matrix(compute_correlation_matrix(df_filtered)))

        try:
            regression = fit_literacy_regression(df_filtered)
        except ValueError as e:
            st.info(f"Regression unavailable: {e}")
        else:
            st.subheader(f"OLS: {regression['formula']}")
            st.write(f"R² = {regression['r_squared']:.3f}, n = {regression['n_obs']}")
            st.dataframe(regression['coefficients'], use_container_width=True)

    with tab3:
        st.plotly_chart(plot_cluster_scatter(df_filtered), use_container_width=True)
        st.dataframe(summarize_clusters(df_filtered), use_container_width=True)

    with tab4:
        joined, report = load_map(housing)
        if joined is None:
            st.info(f"Boundary file not found: {config.GEOMETRY_FILE}")
        else:
            st.plotly_chart(plot_hqi_choropleth_interactive(joined), use_container_width=True)
            st.caption(
                f"{report.code_matched} matched by code, {report.fuzzy_matched} by name, "
                f"{report.unresolved} without HQI"
            )


if __name__ == "__main__":
    main()
