"""
Configuration module for the Housing Quality Index (HQI) project.

Contains all constants, thresholds, file paths, and hyperparameters.
All magic numbers are centralized here for easy maintenance.
"""

from pathlib import Path
from typing import Dict, List

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Base paths - use Path for cross-platform compatibility
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
PROCESSED_DATA_DIR = DATA_DIR / "processed"
OUTPUTS_DIR = PROJECT_ROOT / "outputs"
FIGURES_DIR = OUTPUTS_DIR / "figures"
TABLES_DIR = OUTPUTS_DIR / "tables"

# Input files
HOUSING_FILE = RAW_DATA_DIR / "housing_condition.csv"
DEMOGRAPHIC_FILE = RAW_DATA_DIR / "india_districts_census_2011.csv"
GEOMETRY_FILE = RAW_DATA_DIR / "district_boundaries" / "2011_Dist.shp"
MERGED_DATA_FILE = PROCESSED_DATA_DIR / "merged_hqi.parquet"

# =============================================================================
# CANONICAL COLUMN NAMES
# =============================================================================

COL_DISTRICT_CODE = "district_code"
COL_STATE = "state_name"
COL_DISTRICT = "district_name"
COL_STRATUM = "stratum"

# Housing condition counts
COL_GOOD = "good"
COL_LIVABLE = "livable"
COL_DILAPIDATED = "dilapidated"
COL_TOTAL_HOUSES = "total_houses"
COL_PCT_GOOD = "pct_good"
COL_PCT_LIVABLE = "pct_livable"
COL_PCT_DILAPIDATED = "pct_dilapidated"
COL_HQI = "HQI"

# Demographic counts
COL_POPULATION = "Population"
COL_HOUSEHOLDS = "Households"
COL_LITERATE = "Literate"
COL_FEMALE_LITERATE = "Female_Literate"
COL_SC = "SC"
COL_ST = "ST"

# Derived demographic indicators
COL_LITERACY_RATE = "Literacy_Rate"
COL_FEMALE_LITERACY_RATE = "Female_Literacy_Rate"
COL_SC_PERCENT = "SC_Percent"
COL_ST_PERCENT = "ST_Percent"
COL_POPULATION_DENSITY = "Population_Density"
COL_LITERACY_GENDER_GAP = "Literacy_Gender_Gap"

# Clustering output
COL_CLUSTER = "Cluster"

# Geometry
COL_CENSUS_CODE = "census_code"
COL_GEOMETRY = "geometry"
COL_MATCH_METHOD = "match_method"
COL_MATCH_SCORE = "match_score"

# =============================================================================
# SOURCE COLUMN MAPPINGS (source name -> canonical name)
# =============================================================================

# Census 2011 HH-series table: condition of census houses
HOUSING_COLUMN_MAP: Dict[str, str] = {
    "District Code": COL_DISTRICT_CODE,
    "State Name": COL_STATE,
    "District Name": COL_DISTRICT,
    "Total/Rural/Urban": COL_STRATUM,
    "Good": COL_GOOD,
    "Livable": COL_LIVABLE,
    "Dilapidated": COL_DILAPIDATED,
}

# Census 2011 district primary census abstract
DEMOGRAPHIC_COLUMN_MAP: Dict[str, str] = {
    "District code": COL_DISTRICT_CODE,
    "State name": COL_STATE,
    "District name": COL_DISTRICT,
    "Population": COL_POPULATION,
    "Households": COL_HOUSEHOLDS,
    "Literate": COL_LITERATE,
    "Female_Literate": COL_FEMALE_LITERATE,
    "SC": COL_SC,
    "ST": COL_ST,
}

# District boundary shapefile attributes
GEOMETRY_COLUMN_MAP: Dict[str, str] = {
    "censuscode": COL_CENSUS_CODE,
    "DISTRICT": COL_DISTRICT,
    "ST_NM": COL_STATE,
}

HOUSING_COUNT_COLUMNS: List[str] = [COL_GOOD, COL_LIVABLE, COL_DILAPIDATED]

DEMOGRAPHIC_COUNT_COLUMNS: List[str] = [
    COL_POPULATION,
    COL_HOUSEHOLDS,
    COL_LITERATE,
    COL_FEMALE_LITERATE,
    COL_SC,
    COL_ST,
]

# =============================================================================
# HOUSING QUALITY INDEX
# =============================================================================

# Stratum value kept from the housing table
TOTAL_STRATUM: str = "Total"

# Credit given to each housing condition share
HQI_WEIGHTS: Dict[str, float] = {
    COL_GOOD: 1.0,
    COL_LIVABLE: 0.5,
    COL_DILAPIDATED: 0.0,
}

# Width of zero-padded district codes ("12" -> "0012")
DISTRICT_CODE_WIDTH: int = 4

# Tolerance for pct_good + pct_livable + pct_dilapidated == 100
PERCENT_SUM_TOLERANCE: float = 1e-6

# =============================================================================
# ANALYTICS CONFIGURATION
# =============================================================================

TOP_N_DISTRICTS: int = 10

CORRELATION_FEATURES: List[str] = [
    COL_HQI,
    COL_LITERACY_RATE,
    COL_FEMALE_LITERACY_RATE,
    COL_SC_PERCENT,
    COL_ST_PERCENT,
    COL_HOUSEHOLDS,
    COL_POPULATION,
]

# K-means parameters
CLUSTER_FEATURES: List[str] = [
    COL_HQI,
    COL_LITERACY_RATE,
    COL_SC_PERCENT,
    COL_ST_PERCENT,
    COL_POPULATION_DENSITY,
]
CLUSTER_COUNT: int = 4
CLUSTER_RANDOM_STATE: int = 42
CLUSTER_N_INIT: int = 10

# OLS regression
REGRESSION_TARGET: str = COL_FEMALE_LITERACY_RATE
REGRESSION_PREDICTORS: List[str] = [COL_SC_PERCENT, COL_ST_PERCENT]
REGRESSION_ALPHA: float = 0.05
REGRESSION_MIN_ROWS: int = 4

# =============================================================================
# GEO-JOIN CONFIGURATION
# =============================================================================

# Minimum rapidfuzz similarity (0-100) for accepting a name match
FUZZY_MATCH_CUTOFF: float = 85.0

GEOMETRY_CRS: str = "EPSG:4326"

# =============================================================================
# VISUALIZATION CONFIGURATION
# =============================================================================

# Figure sizes
FIG_WIDTH: int = 12
FIG_HEIGHT: int = 8

# Color palettes
COLOR_PRIMARY: str = "#1f77b4"
COLOR_SECONDARY: str = "#ff7f0e"
COLOR_DANGER: str = "#d62728"
COLOR_SUCCESS: str = "#2ca02c"
COLOR_MISSING: str = "#d9d9d9"

# HQI color scale (green = better housing)
HQI_COLORMAP: str = "RdYlGn"
HQI_COLORSCALE: str = "RdYlGn"

# Correlation heatmap
CORRELATION_COLORMAP: str = "coolwarm"

# Plotly template
PLOTLY_TEMPLATE: str = "plotly_white"

# Interactive map defaults (centre of India)
MAP_CENTER: List[float] = [22.5, 80.0]
MAP_ZOOM_START: int = 5
MAP_TILES: str = "cartodbpositron"

HISTOGRAM_BINS: int = 30

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL: str = "INFO"

# =============================================================================
# EXPECTED SCHEMAS FOR VALIDATION (canonical names, after renaming)
# =============================================================================

HOUSING_SCHEMA: Dict[str, str] = {
    COL_DISTRICT_CODE: 'string',
    COL_STATE: 'string',
    COL_DISTRICT: 'string',
    COL_STRATUM: 'string',
    COL_GOOD: 'int64',
    COL_LIVABLE: 'int64',
    COL_DILAPIDATED: 'int64',
}

DEMOGRAPHIC_SCHEMA: Dict[str, str] = {
    COL_DISTRICT_CODE: 'string',
    COL_STATE: 'string',
    COL_DISTRICT: 'string',
    COL_POPULATION: 'int64',
    COL_HOUSEHOLDS: 'int64',
    COL_LITERATE: 'int64',
    COL_FEMALE_LITERATE: 'int64',
    COL_SC: 'int64',
    COL_ST: 'int64',
}
