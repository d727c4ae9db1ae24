"""Shared fixtures: small in-memory census tables and district polygons."""

import sys
from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
from shapely.geometry import box

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hqi import config
from hqi.preprocessing import (
    build_housing_index, calculate_derived_indicators, merge_datasets,
    normalize_demographics
)


@pytest.fixture
def raw_housing() -> pd.DataFrame:
    """Housing table with source column names, read as text."""
    rows = [
        ("1", "Jammu & Kashmir", "Kupwara", "Total", "80", "15", "5"),
        ("1", "Jammu & Kashmir", "Kupwara", "Rural", "70", "20", "10"),
        ("1", "Jammu & Kashmir", "Kupwara", "Urban", "90", "8", "2"),
        ("0002", "Jammu & Kashmir", "Badgam", "Total", "50", "30", "20"),
        ("3", "Punjab", "Amritsar", " Total ", "60", "35", "5"),
        ("4", "Punjab", "Ludhiana", "Total", "0", "0", "0"),
        ("5.0", "Kerala", "Wayanad", "Total", "45", "45", "10"),
    ]
    return pd.DataFrame(rows, columns=list(config.HOUSING_COLUMN_MAP))


@pytest.fixture
def raw_demographics() -> pd.DataFrame:
    """Demographic table with source column names, read as text."""
    rows = [
        ("0001", "Jammu & Kashmir", "Kupwara", "1000", "200", "700", "300", "100", "50"),
        ("2", "Jammu & Kashmir", "Badgam", "2000", "400", "1000", "400", "0", "20"),
        ("003", "Punjab", "Amritsar", "3000", "500", "2100", "1000", "900", "0"),
        ("4", "Punjab", "Ludhiana", "0", "0", "0", "0", "0", "0"),
        ("9", "Bihar", "Patna", "5000", "900", "3000", "1200", "700", "10"),
    ]
    return pd.DataFrame(rows, columns=list(config.DEMOGRAPHIC_COLUMN_MAP))


@pytest.fixture
def housing(raw_housing) -> pd.DataFrame:
    return build_housing_index(raw_housing)


@pytest.fixture
def demographics(raw_demographics) -> pd.DataFrame:
    return normalize_demographics(raw_demographics)


@pytest.fixture
def merged(housing, demographics) -> pd.DataFrame:
    return calculate_derived_indicators(merge_datasets(housing, demographics))


@pytest.fixture
def district_frame() -> pd.DataFrame:
    """Synthetic merged table large enough for clustering and regression."""
    rng = np.random.default_rng(7)
    n = 24

    population = rng.integers(100_000, 2_000_000, n).astype(float)
    households = np.round(population / rng.uniform(4, 6, n))
    hqi = rng.uniform(0.3, 0.95, n)
    sc = rng.uniform(0, 30, n)
    st = rng.uniform(0, 40, n)

    frame = pd.DataFrame({
        config.COL_DISTRICT_CODE: [f"{i:04d}" for i in range(1, n + 1)],
        config.COL_STATE: [f"State {i % 4}" for i in range(n)],
        config.COL_DISTRICT: [f"District {i}" for i in range(n)],
        config.COL_HQI: hqi,
        config.COL_POPULATION: population,
        config.COL_HOUSEHOLDS: households,
        config.COL_SC_PERCENT: sc,
        config.COL_ST_PERCENT: st,
        config.COL_LITERACY_RATE: 40 + 40 * hqi + rng.normal(0, 3, n),
        config.COL_FEMALE_LITERACY_RATE: 50 - 0.4 * sc - 0.3 * st + rng.normal(0, 1, n),
    })
    frame[config.COL_POPULATION_DENSITY] = population / households

    # One district cannot be clustered
    frame.loc[n - 1, config.COL_LITERACY_RATE] = np.nan

    return frame


@pytest.fixture
def geometry() -> gpd.GeoDataFrame:
    """Four unit squares: a code match, a misspelt name, an unknown, a zero-house district."""
    return gpd.GeoDataFrame(
        {
            config.COL_CENSUS_CODE: ["0001", "0099", "0000", "0004"],
            config.COL_DISTRICT: ["Kupwara", "Budgam", "Atlantis", "Ludhiana"],
            config.COL_STATE: ["Jammu & Kashmir", "Jammu & Kashmir", "Nowhere", "Punjab"],
        },
        geometry=[box(i, 0, i + 1, 1) for i in range(4)],
        crs=config.GEOMETRY_CRS,
    )
