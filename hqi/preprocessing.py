"""
Data preprocessing module for the Housing Quality Index project.

This module handles data loading, district code normalization, HQI
derivation, demographic normalization, and merging of the census tables.

Functions:
    - validate_schema: Validate dataframe against expected schema
    - normalize_district_code: Normalize a single district code ("12" -> "0012")
    - normalize_district_codes: Vectorized district code normalization
    - load_housing: Load the housing condition table
    - load_demographics: Load the district demographic table
    - load_district_geometry: Load district boundary polygons
    - build_housing_index: Filter to "Total" rows and compute the HQI
    - check_percentage_consistency: Find rows violating HQI invariants
    - normalize_demographics: Canonical names, codes and numeric counts
    - merge_datasets: Inner join on district_code
    - calculate_derived_indicators: Literacy, SC/ST, density and gap metrics
    - save_processed / load_processed: Parquet cache of the merged table
    - run_preprocessing_pipeline: Orchestrate all of the above
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import geopandas as gpd
import numpy as np
import pandas as pd

from . import config

# Configure logging
logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")
_INTEGRAL_DECIMAL = re.compile(r"([0-9]+)\.0*")


def validate_schema(
    df: pd.DataFrame,
    expected_schema: Dict[str, str],
    dataset_name: str = "dataset"
) -> Tuple[bool, List[str]]:
    """
    Validate dataframe against expected schema.

    Checks that all required columns exist and have compatible types.
    Type mismatches are only logged, since counts are coerced later.

    Args:
        df: Dataframe to validate.
        expected_schema: Dictionary mapping column names to expected dtypes.
        dataset_name: Name of dataset for error messages.

    Returns:
        Tuple[bool, List[str]]: (is_valid, list of error messages)

    Example:
        >>> is_valid, errors = validate_schema(df, config.HOUSING_SCHEMA, 'housing')
        >>> if not is_valid:
        ...     print(f"Validation errors: {errors}")
    """
    errors = []

    # Check for missing columns
    missing_cols = set(expected_schema.keys()) - set(df.columns)
    if missing_cols:
        errors.append(f"Missing columns in {dataset_name}: {sorted(missing_cols)}")

    # Check column types (for columns that exist)
    for col, expected_type in expected_schema.items():
        if col not in df.columns:
            continue

        actual_type = str(df[col].dtype)

        # Flexible type matching
        if expected_type == 'string':
            type_compatible = actual_type in ('object', 'string')
        elif expected_type == 'int64':
            type_compatible = 'int' in actual_type or 'float' in actual_type
        else:
            type_compatible = actual_type == expected_type

        if not type_compatible:
            logger.warning(
                f"Column '{col}' in {dataset_name} has type '{actual_type}', "
                f"expected '{expected_type}' (will attempt conversion)"
            )

    is_valid = len(errors) == 0

    if is_valid:
        logger.info(f"Schema validation passed for {dataset_name}")
    else:
        logger.error(f"Schema validation failed for {dataset_name}: {errors}")

    return is_valid, errors


def normalize_district_code(value: Any, width: Optional[int] = None) -> Optional[str]:
    """
    Normalize a district code to a fixed-width, zero-padded string.

    Numeric and text inputs normalize identically, and normalizing an
    already-normalized code returns it unchanged. Codes wider than
    ``width`` are kept as-is (never truncated).

    Args:
        value: Raw code (int, float such as 12.0, or text such as " 12 ").
        width: Target width. Defaults to config.DISTRICT_CODE_WIDTH.

    Returns:
        Optional[str]: Normalized code, or None if the value is missing.

    Raises:
        ValueError: If the value is not a non-negative whole number.

    Example:
        >>> normalize_district_code(12)
        '0012'
        >>> normalize_district_code("0012")
        '0012'
    """
    width = width or config.DISTRICT_CODE_WIDTH

    if value is None:
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        # CSV exports sometimes carry codes as "12.0"
        decimal_match = _INTEGRAL_DECIMAL.fullmatch(text)
        if decimal_match:
            text = decimal_match.group(1)
        if not _DIGITS.fullmatch(text):
            raise ValueError(f"District code {value!r} is not a whole number")
        return text.zfill(width)

    if pd.isna(value):
        return None

    if isinstance(value, (bool, np.bool_)):
        raise ValueError(f"District code {value!r} is not a whole number")

    if isinstance(value, (int, np.integer)):
        number = int(value)
    elif isinstance(value, (float, np.floating)):
        if not float(value).is_integer():
            raise ValueError(f"District code {value!r} is not a whole number")
        number = int(value)
    else:
        raise ValueError(f"Unsupported district code type: {type(value).__name__}")

    if number < 0:
        raise ValueError(f"District code {value!r} is negative")

    return str(number).zfill(width)


def normalize_district_codes(
    codes: pd.Series,
    width: Optional[int] = None
) -> pd.Series:
    """
    Vectorized form of normalize_district_code.

    Args:
        codes: Series of raw district codes.
        width: Target width. Defaults to config.DISTRICT_CODE_WIDTH.

    Returns:
        pd.Series: Object series of normalized codes (None where missing).

    Raises:
        ValueError: If any code is malformed; the message names the row.
    """
    normalized = []
    for idx, value in codes.items():
        try:
            normalized.append(normalize_district_code(value, width))
        except ValueError as e:
            raise ValueError(
                f"Invalid district code in column '{codes.name}' at row {idx!r}: {e}"
            ) from e

    return pd.Series(normalized, index=codes.index, name=codes.name, dtype="object")


def _read_table(
    filepath: Path,
    column_map: Dict[str, str],
    dataset_name: str
) -> pd.DataFrame:
    """Read a delimited file as text and check the expected source columns."""
    if not filepath.exists():
        raise FileNotFoundError(f"{dataset_name.title()} file not found: {filepath}")

    # Read everything as text so district codes keep their padding;
    # numeric columns are coerced strictly later on.
    try:
        df = pd.read_csv(filepath, dtype=str)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ValueError(f"Error reading {dataset_name} file {filepath}: {e}") from e

    df.columns = df.columns.str.strip()

    missing_cols = [col for col in column_map if col not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns in {dataset_name} data: {missing_cols}")

    return df


def _to_canonical(
    df: pd.DataFrame,
    column_map: Dict[str, str],
    dataset_name: str
) -> pd.DataFrame:
    """Rename source columns to canonical names and keep only those."""
    rename = {src: dst for src, dst in column_map.items() if src in df.columns}
    df = df.rename(columns=rename)

    canonical = list(dict.fromkeys(column_map.values()))
    missing_cols = [col for col in canonical if col not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns in {dataset_name} data: {missing_cols}")

    return df[canonical].copy()


def _coerce_counts(
    df: pd.DataFrame,
    columns: List[str],
    dataset_name: str
) -> pd.DataFrame:
    """
    Convert count columns to numbers, failing loudly on bad input.

    Blank cells become NaN. Anything that is not a finite,
    whole number of houses or people (non-numeric, infinite, negative or
    fractional) raises ValueError naming the column and the offending rows.
    """
    df = df.copy()

    for col in columns:
        raw = df[col].map(lambda v: v.strip() if isinstance(v, str) else v)
        raw = raw.map(lambda v: np.nan if isinstance(v, str) and not v else v)
        values = pd.to_numeric(raw, errors='coerce')

        bad_mask = values.isna() & raw.notna()
        if bad_mask.any():
            bad_rows = raw[bad_mask]
            examples = {idx: val for idx, val in list(bad_rows.items())[:5]}
            raise ValueError(
                f"Non-numeric values in column '{col}' of {dataset_name} data "
                f"({bad_mask.sum()} rows), e.g. {examples}"
            )

        values = values.astype('float64')

        non_finite_mask = values.notna() & ~np.isfinite(values)
        if non_finite_mask.any():
            bad_rows = raw[non_finite_mask]
            examples = {idx: val for idx, val in list(bad_rows.items())[:5]}
            raise ValueError(
                f"Non-finite counts in column '{col}' of {dataset_name} data "
                f"({non_finite_mask.sum()} rows), e.g. {examples}"
            )

        negative_mask = values < 0
        if negative_mask.any():
            bad_rows = values[negative_mask]
            examples = {idx: val for idx, val in list(bad_rows.items())[:5]}
            raise ValueError(
                f"Negative counts in column '{col}' of {dataset_name} data "
                f"({negative_mask.sum()} rows), e.g. {examples}"
            )

        fractional_mask = values.notna() & (values != np.floor(values))
        if fractional_mask.any():
            bad_rows = raw[fractional_mask]
            examples = {idx: val for idx, val in list(bad_rows.items())[:5]}
            raise ValueError(
                f"Fractional counts in column '{col}' of {dataset_name} data "
                f"({fractional_mask.sum()} rows), e.g. {examples}"
            )

        df[col] = values

    return df


def _clean_names(series: pd.Series) -> pd.Series:
    return series.map(lambda v: " ".join(v.split()) if isinstance(v, str) else v)


def _dedupe_codes(df: pd.DataFrame, dataset_name: str) -> pd.DataFrame:
    """Drop rows without a district code and keep the first row per code."""
    code_col = config.COL_DISTRICT_CODE

    missing_code = df[code_col].isna()
    if missing_code.any():
        logger.warning(
            f"Dropped {missing_code.sum()} {dataset_name} rows without a district code"
        )
        df = df[~missing_code]

    duplicated = df.duplicated(subset=[code_col], keep='first')
    if duplicated.any():
        dup_codes = sorted(df.loc[duplicated, code_col].unique())
        logger.warning(
            f"Dropped {duplicated.sum()} duplicate {dataset_name} rows "
            f"for district codes {dup_codes[:10]}"
        )
        df = df[~duplicated]

    return df


def load_housing(filepath: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    """
    Load the census housing condition table.

    Args:
        filepath: Path to the housing CSV file. Defaults to config.HOUSING_FILE.

    Returns:
        pd.DataFrame: Raw table (all columns as text).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be parsed or required columns are missing.

    Example:
        >>> raw = load_housing('data/raw/housing_condition.csv')
        >>> housing = build_housing_index(raw)
    """
    filepath = Path(filepath) if filepath else config.HOUSING_FILE

    logger.info(f"Loading housing data from {filepath}")

    df = _read_table(filepath, config.HOUSING_COLUMN_MAP, 'housing')

    logger.info(f"Loaded {len(df):,} housing records")

    return df


def load_demographics(filepath: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    """
    Load the district demographic table.

    Args:
        filepath: Path to the demographic CSV file. Defaults to config.DEMOGRAPHIC_FILE.

    Returns:
        pd.DataFrame: Raw table (all columns as text).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be parsed or required columns are missing.
    """
    filepath = Path(filepath) if filepath else config.DEMOGRAPHIC_FILE

    logger.info(f"Loading demographic data from {filepath}")

    df = _read_table(filepath, config.DEMOGRAPHIC_COLUMN_MAP, 'demographic')

    logger.info(f"Loaded {len(df):,} demographic records")

    return df


def load_district_geometry(
    filepath: Optional[Union[str, Path]] = None
) -> gpd.GeoDataFrame:
    """
    Load district boundary polygons (shapefile or GeoJSON).

    Attributes are renamed to canonical names, the layer is reprojected to
    config.GEOMETRY_CRS, and census codes are normalized like district codes.

    Args:
        filepath: Path to the boundary dataset. Defaults to config.GEOMETRY_FILE.

    Returns:
        gpd.GeoDataFrame: census_code, district_name, state_name, geometry.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be read or attributes are missing.
    """
    filepath = Path(filepath) if filepath else config.GEOMETRY_FILE

    logger.info(f"Loading district geometry from {filepath}")

    if not filepath.exists():
        raise FileNotFoundError(f"Geometry file not found: {filepath}")

    try:
        gdf = gpd.read_file(filepath)
    except Exception as e:
        raise ValueError(f"Error reading geometry file {filepath}: {e}") from e

    gdf = gdf.rename(columns=config.GEOMETRY_COLUMN_MAP)

    required = [config.COL_CENSUS_CODE, config.COL_DISTRICT, config.COL_STATE]
    missing_cols = [col for col in required if col not in gdf.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns in geometry data: {missing_cols}")

    if gdf.crs is not None and gdf.crs != config.GEOMETRY_CRS:
        logger.info(f"Reprojecting geometry from {gdf.crs} to {config.GEOMETRY_CRS}")
        gdf = gdf.to_crs(config.GEOMETRY_CRS)

    gdf[config.COL_CENSUS_CODE] = normalize_district_codes(gdf[config.COL_CENSUS_CODE])
    gdf[config.COL_DISTRICT] = _clean_names(gdf[config.COL_DISTRICT])
    gdf[config.COL_STATE] = _clean_names(gdf[config.COL_STATE])

    logger.info(f"Loaded {len(gdf):,} district geometries")

    return gdf[required + [config.COL_GEOMETRY]]


def _validate_weights(weights: Dict[str, float]) -> Dict[str, float]:
    missing = [key for key in config.HOUSING_COUNT_COLUMNS if key not in weights]
    if missing:
        raise ValueError(f"HQI weights missing for: {missing}")

    out_of_range = {k: v for k, v in weights.items() if not 0.0 <= v <= 1.0}
    if out_of_range:
        raise ValueError(f"HQI weights must lie in [0, 1], got {out_of_range}")

    return {key: float(weights[key]) for key in config.HOUSING_COUNT_COLUMNS}


def build_housing_index(
    df: pd.DataFrame,
    weights: Optional[Dict[str, float]] = None
) -> pd.DataFrame:
    """
    Build the Housing Quality Index from the housing condition table.

    Steps:
        1. Keep only the "Total" stratum rows
        2. Normalize district codes, one row per district
        3. Coerce condition counts to numbers (loud failure on bad input)
        4. total_houses, pct_good, pct_livable, pct_dilapidated
        5. HQI = sum(weight * pct) / 100

    Districts with no houses counted get NaN percentages and HQI, and are
    reported in a warning rather than treated as zero.

    Args:
        df: Housing table with source or canonical column names.
        weights: Credit per condition. Defaults to config.HQI_WEIGHTS
                 (good=1.0, livable=0.5, dilapidated=0.0).

    Returns:
        pd.DataFrame: One row per district with the HQI columns.

    Raises:
        ValueError: On missing columns, malformed codes, counts that are
            not finite non-negative whole numbers, or weights outside [0, 1].

    Example:
        >>> housing = build_housing_index(load_housing())
        >>> print(housing['HQI'].describe())
    """
    weights = _validate_weights(weights or config.HQI_WEIGHTS)

    logger.info("Building housing quality index...")

    df = _to_canonical(df, config.HOUSING_COLUMN_MAP, 'housing')
    validate_schema(df, config.HOUSING_SCHEMA, 'housing')

    # Keep only the aggregate stratum
    stratum = df[config.COL_STRATUM].astype('string').str.strip().str.casefold()
    df = df[(stratum == config.TOTAL_STRATUM.casefold()).fillna(False)].copy()
    logger.info(f"Kept {len(df):,} '{config.TOTAL_STRATUM}' rows")

    df[config.COL_DISTRICT_CODE] = normalize_district_codes(df[config.COL_DISTRICT_CODE])
    df = _dedupe_codes(df, 'housing')

    df = _coerce_counts(df, config.HOUSING_COUNT_COLUMNS, 'housing')
    df[config.COL_STATE] = _clean_names(df[config.COL_STATE])
    df[config.COL_DISTRICT] = _clean_names(df[config.COL_DISTRICT])

    total = df[config.COL_GOOD] + df[config.COL_LIVABLE] + df[config.COL_DILAPIDATED]
    df[config.COL_TOTAL_HOUSES] = total

    # NaN denominator where nothing was counted
    valid_total = total.where(total > 0)

    df[config.COL_PCT_GOOD] = df[config.COL_GOOD] * 100 / valid_total
    df[config.COL_PCT_LIVABLE] = df[config.COL_LIVABLE] * 100 / valid_total
    df[config.COL_PCT_DILAPIDATED] = df[config.COL_DILAPIDATED] * 100 / valid_total

    df[config.COL_HQI] = (
        weights[config.COL_GOOD] * df[config.COL_PCT_GOOD] +
        weights[config.COL_LIVABLE] * df[config.COL_PCT_LIVABLE] +
        weights[config.COL_DILAPIDATED] * df[config.COL_PCT_DILAPIDATED]
    ) / 100

    undefined = df[config.COL_HQI].isna()
    no_houses = undefined & (total == 0)
    missing_counts = undefined & total.isna()

    if no_houses.any():
        codes = df.loc[no_houses, config.COL_DISTRICT_CODE].tolist()
        logger.warning(
            f"HQI undefined for {no_houses.sum()} districts with no houses counted: "
            f"{codes[:10]}"
        )
    if missing_counts.any():
        codes = df.loc[missing_counts, config.COL_DISTRICT_CODE].tolist()
        logger.warning(
            f"HQI undefined for {missing_counts.sum()} districts with missing "
            f"housing counts: {codes[:10]}"
        )

    df = df.drop(columns=[config.COL_STRATUM]).reset_index(drop=True)

    logger.info(
        f"Built HQI for {len(df):,} districts "
        f"(mean HQI {df[config.COL_HQI].mean():.3f})"
    )

    return df


def check_percentage_consistency(
    df: pd.DataFrame,
    tolerance: Optional[float] = None
) -> pd.DataFrame:
    """
    Find rows that violate the housing share invariants.

    For every district with houses counted, the three percentages must
    sum to 100 (within tolerance) and HQI must lie in [0, 1].

    Args:
        df: Output of build_housing_index.
        tolerance: Allowed deviation from 100. Defaults to config value.

    Returns:
        pd.DataFrame: Offending rows (empty when the table is consistent).
    """
    tolerance = tolerance if tolerance is not None else config.PERCENT_SUM_TOLERANCE

    counted = df[config.COL_TOTAL_HOUSES] > 0
    pct_sum = (
        df[config.COL_PCT_GOOD] +
        df[config.COL_PCT_LIVABLE] +
        df[config.COL_PCT_DILAPIDATED]
    )
    bad_sum = (pct_sum - 100).abs() > tolerance
    bad_range = ~df[config.COL_HQI].between(0, 1)

    violations = df[counted & (bad_sum | bad_range)]

    if len(violations) > 0:
        logger.warning(f"{len(violations)} districts violate housing share invariants")

    return violations


def normalize_demographics(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize the district demographic table.

    Renames source columns to canonical names, normalizes district codes
    exactly like build_housing_index, and coerces the count columns to
    numbers. Blank cells stay NaN; non-numeric cells raise.

    Args:
        df: Demographic table with source or canonical column names.

    Returns:
        pd.DataFrame: One row per district with canonical columns.

    Raises:
        ValueError: On missing columns, malformed codes, or counts that
            are not finite non-negative whole numbers.
    """
    logger.info("Normalizing demographic data...")

    df = _to_canonical(df, config.DEMOGRAPHIC_COLUMN_MAP, 'demographic')
    validate_schema(df, config.DEMOGRAPHIC_SCHEMA, 'demographic')

    df[config.COL_DISTRICT_CODE] = normalize_district_codes(df[config.COL_DISTRICT_CODE])
    df = _dedupe_codes(df, 'demographic')

    df = _coerce_counts(df, config.DEMOGRAPHIC_COUNT_COLUMNS, 'demographic')
    df[config.COL_STATE] = _clean_names(df[config.COL_STATE])
    df[config.COL_DISTRICT] = _clean_names(df[config.COL_DISTRICT])

    logger.info(f"Normalized {len(df):,} demographic records")

    return df.reset_index(drop=True)


def merge_datasets(
    housing_df: pd.DataFrame,
    demo_df: pd.DataFrame
) -> pd.DataFrame:
    """
    Merge housing and demographic tables using INNER JOIN on district_code.

    Districts present in only one table are excluded; the counts dropped
    from each side are logged. Demographic name columns are kept with a
    ``_demo`` suffix.

    Args:
        housing_df: Output of build_housing_index.
        demo_df: Output of normalize_demographics.

    Returns:
        pd.DataFrame: One row per district present in both tables.

    Example:
        >>> merged = merge_datasets(housing, demographics)
        >>> assert len(merged) <= min(len(housing), len(demographics))
    """
    logger.info("Merging datasets on district_code")

    code_col = config.COL_DISTRICT_CODE

    # Normalization is idempotent, so re-applying guarantees both keys match
    housing_df = housing_df.assign(**{code_col: normalize_district_codes(housing_df[code_col])})
    demo_df = demo_df.assign(**{code_col: normalize_district_codes(demo_df[code_col])})

    merged = housing_df.merge(
        demo_df,
        on=code_col,
        how='inner',
        suffixes=('', '_demo'),
        validate='one_to_one'
    )

    housing_only = (~housing_df[code_col].isin(demo_df[code_col])).sum()
    demo_only = (~demo_df[code_col].isin(housing_df[code_col])).sum()
    if housing_only or demo_only:
        logger.info(
            f"Excluded {housing_only} housing-only and {demo_only} "
            f"demographic-only districts"
        )

    merged = merged.sort_values(code_col, kind='mergesort').reset_index(drop=True)

    logger.info(f"Merged dataset has {len(merged):,} districts")

    return merged


def calculate_derived_indicators(df: pd.DataFrame) -> pd.DataFrame:
    """
    Calculate the demographic indicators used by the analytics.

    Indicators calculated:
        1. SC_Percent = SC / Population * 100
        2. ST_Percent = ST / Population * 100
        3. Literacy_Rate = Literate / Population * 100
        4. Female_Literacy_Rate = Female_Literate / Population * 100
        5. Population_Density = Population / Households
        6. Literacy_Gender_Gap = Literacy_Rate - Female_Literacy_Rate

    Population and Households must both be positive; otherwise every
    indicator for that row is NaN.

    Args:
        df: Merged dataframe.

    Returns:
        pd.DataFrame: Copy of the input with the indicator columns added.
    """
    logger.info("Calculating derived indicators...")

    df = df.copy()

    population = df[config.COL_POPULATION]
    households = df[config.COL_HOUSEHOLDS]
    valid = (population > 0) & (households > 0)

    safe_population = population.where(valid)
    safe_households = households.where(valid)

    df[config.COL_SC_PERCENT] = df[config.COL_SC] / safe_population * 100
    df[config.COL_ST_PERCENT] = df[config.COL_ST] / safe_population * 100
    df[config.COL_LITERACY_RATE] = df[config.COL_LITERATE] / safe_population * 100
    df[config.COL_FEMALE_LITERACY_RATE] = (
        df[config.COL_FEMALE_LITERATE] / safe_population * 100
    )
    df[config.COL_POPULATION_DENSITY] = safe_population / safe_households
    df[config.COL_LITERACY_GENDER_GAP] = (
        df[config.COL_LITERACY_RATE] - df[config.COL_FEMALE_LITERACY_RATE]
    )

    invalid_count = (~valid).sum()
    if invalid_count:
        logger.warning(
            f"{invalid_count} districts lack a positive population or household "
            f"count; their derived indicators are undefined"
        )

    logger.info("Derived indicator calculation complete")

    return df


def save_processed(
    df: pd.DataFrame,
    filepath: Optional[Union[str, Path]] = None
) -> Path:
    """
    Save the merged dataframe to parquet format.

    Args:
        df: Merged dataframe to save.
        filepath: Output path. Defaults to config.MERGED_DATA_FILE.

    Returns:
        Path: Path where file was saved.

    Raises:
        IOError: If file cannot be written.
    """
    filepath = Path(filepath) if filepath else config.MERGED_DATA_FILE

    # Ensure directory exists
    filepath.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Saving processed data to {filepath}")

    try:
        df.to_parquet(filepath, index=False, engine='pyarrow')
    except (OSError, ValueError) as e:
        raise IOError(f"Failed to save parquet file: {e}") from e

    logger.info(f"Saved {len(df):,} rows to {filepath}")

    return filepath


def load_processed(
    filepath: Optional[Union[str, Path]] = None
) -> pd.DataFrame:
    """
    Load a previously saved merged table from parquet.

    Args:
        filepath: Path to parquet file. Defaults to config.MERGED_DATA_FILE.

    Returns:
        pd.DataFrame: Loaded merged dataframe.

    Raises:
        FileNotFoundError: If file does not exist.
    """
    filepath = Path(filepath) if filepath else config.MERGED_DATA_FILE

    if not filepath.exists():
        raise FileNotFoundError(f"Processed data file not found: {filepath}")

    logger.info(f"Loading processed data from {filepath}")

    df = pd.read_parquet(filepath, engine='pyarrow')

    logger.info(f"Loaded {len(df):,} rows")

    return df


def run_preprocessing_pipeline(
    housing_path: Optional[Union[str, Path]] = None,
    demo_path: Optional[Union[str, Path]] = None,
    output_path: Optional[Union[str, Path]] = None,
    weights: Optional[Dict[str, float]] = None,
    save: bool = True
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Run the complete preprocessing pipeline.

    This function orchestrates the data preparation workflow:
    1. Load the housing and demographic tables
    2. Build the HQI and normalize the demographics
    3. Inner join on district_code
    4. Calculate derived indicators
    5. Optionally save the merged table

    Args:
        housing_path: Path to housing CSV.
        demo_path: Path to demographic CSV.
        output_path: Path for output parquet file.
        weights: Optional HQI weights.
        save: Whether to write the parquet cache.

    Returns:
        Tuple[pd.DataFrame, pd.DataFrame]: (housing index, merged table).
        The housing index feeds the geo-join; the merged table feeds
        the analytics.

    Example:
        >>> housing, merged = run_preprocessing_pipeline(save=False)
        >>> print(f"{len(merged)} districts merged")
    """
    logger.info("=" * 60)
    logger.info("Starting preprocessing pipeline")
    logger.info("=" * 60)

    housing = build_housing_index(load_housing(housing_path), weights=weights)
    check_percentage_consistency(housing)

    demographics = normalize_demographics(load_demographics(demo_path))

    merged = merge_datasets(housing, demographics)
    merged = calculate_derived_indicators(merged)

    if save:
        save_processed(merged, output_path)

    logger.info("=" * 60)
    logger.info("Preprocessing pipeline complete!")
    logger.info(f"  - Housing districts: {len(housing):,}")
    logger.info(f"  - Demographic districts: {len(demographics):,}")
    logger.info(f"  - Merged districts: {len(merged):,}")
    logger.info(f"  - States: {merged[config.COL_STATE].nunique()}")
    logger.info("=" * 60)

    return housing, merged
