"""
Metrics calculation module for the Housing Quality Index project.

This module contains the descriptive analytics run over the merged
district table: HQI rankings, state-level aggregation, correlation
of HQI with demographic indicators, and summary statistics.

Functions:
    - rank_districts: Top and bottom districts by HQI
    - aggregate_by_state: Per-state HQI count/mean/median/min/max
    - compute_correlation_matrix: Pairwise Pearson correlations
    - summarize_hqi: Descriptive statistics of HQI
"""

import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd

from . import config

# Configure logging
logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def rank_districts(
    df: pd.DataFrame,
    n: Optional[int] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Rank districts by HQI and return the top and bottom n.

    Districts with undefined HQI are left out. The sort is stable
    (mergesort), so districts with equal HQI keep their input order.

    Args:
        df: Dataframe with HQI, state and district columns.
        n: Number of districts at each end. Defaults to config.TOP_N_DISTRICTS.

    Returns:
        Tuple[pd.DataFrame, pd.DataFrame]: (top, bottom). Both are in
        descending HQI order, so the worst district is the last row of
        ``bottom``. A 1-based ``hqi_rank`` column is added.

    Example:
        >>> top, bottom = rank_districts(merged, n=10)
        >>> print(top[['district_name', 'HQI']])
    """
    n = n or config.TOP_N_DISTRICTS

    logger.info(f"Ranking districts by HQI (top/bottom {n})...")

    defined = df[df[config.COL_HQI].notna()]
    skipped = len(df) - len(defined)
    if skipped:
        logger.warning(f"Skipped {skipped} districts with undefined HQI in ranking")

    ranked = defined.sort_values(
        config.COL_HQI, ascending=False, kind='mergesort'
    ).reset_index(drop=True)
    ranked['hqi_rank'] = range(1, len(ranked) + 1)

    return ranked.head(n), ranked.tail(n)


def aggregate_by_state(df: pd.DataFrame) -> pd.DataFrame:
    """
    Summarize HQI by state.

    Districts with undefined HQI do not contribute to any statistic.

    Args:
        df: Dataframe with state and HQI columns.

    Returns:
        pd.DataFrame: One row per state with count, mean, median, min and
        max HQI, sorted by mean descending.

    Example:
        >>> states = aggregate_by_state(merged)
        >>> print(states.head())
    """
    logger.info("Aggregating HQI by state...")

    defined = df.dropna(subset=[config.COL_HQI])

    state_summary = (
        defined.groupby(config.COL_STATE)[config.COL_HQI]
        .agg(['count', 'mean', 'median', 'min', 'max'])
        .reset_index()
    )

    state_summary = state_summary.sort_values(
        'mean', ascending=False, kind='mergesort'
    ).reset_index(drop=True)

    logger.info(f"Aggregated HQI for {len(state_summary)} states")

    return state_summary


def compute_correlation_matrix(
    df: pd.DataFrame,
    columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Compute the pairwise Pearson correlation matrix.

    Missing values are excluded pair by pair, not by a single global drop,
    so every coefficient uses all rows where both variables are defined.

    Args:
        df: Merged dataframe.
        columns: Columns to correlate. Defaults to config.CORRELATION_FEATURES.

    Returns:
        pd.DataFrame: Square correlation matrix.

    Raises:
        ValueError: If a requested column is missing.
    """
    columns = columns or config.CORRELATION_FEATURES

    missing_cols = [col for col in columns if col not in df.columns]
    if missing_cols:
        raise ValueError(f"Columns missing for correlation: {missing_cols}")

    logger.info(f"Computing correlation matrix over {len(columns)} variables...")

    return df[columns].astype('float64').corr(method='pearson')


def summarize_hqi(df: pd.DataFrame) -> Dict[str, float]:
    """
    Descriptive statistics of HQI across districts.

    Args:
        df: Dataframe with an HQI column.

    Returns:
        Dict[str, float]: count, mean, std, min, 25%, 50%, 75%, max and
        the number of districts with undefined HQI.
    """
    hqi = df[config.COL_HQI]

    summary = {key: float(value) for key, value in hqi.describe().items()}
    summary['undefined'] = int(hqi.isna().sum())

    logger.info(
        f"HQI summary: {summary['count']:.0f} districts, "
        f"mean {summary['mean']:.3f}, undefined {summary['undefined']}"
    )

    return summary
