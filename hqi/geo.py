"""
Geospatial join of district boundaries to HQI values.

Handles:
- District/state name normalization for matching
- Exact join of boundaries to HQI by normalized census code
- Fuzzy (district, state) name fallback for boundaries without a code match
- Reporting of boundaries left without an HQI value
"""

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import geopandas as gpd
import numpy as np
import pandas as pd
from rapidfuzz import fuzz, process

from . import config

# Configure logging
logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

MATCH_CODE = "code"
MATCH_FUZZY = "fuzzy"


@dataclass
class GeoJoinReport:
    """Outcome counts of one geometry-to-HQI join."""
    total: int
    code_matched: int
    fuzzy_matched: int
    unresolved: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "code_matched": self.code_matched,
            "fuzzy_matched": self.fuzzy_matched,
            "unresolved": self.unresolved,
        }


def normalize_place_name(name: Any) -> str:
    """
    Normalize a district or state name for matching.

    Rules:
    1. Unicode normalize (NFKD) and drop accents
    2. Convert to UPPERCASE
    3. Drop a trailing "DISTRICT"/"DIST"
    4. Replace punctuation with spaces, collapse whitespace

    Args:
        name: Raw name

    Returns:
        Normalized name ("" for missing or non-string input)
    """
    if not isinstance(name, str) or not name.strip():
        return ""

    name = unicodedata.normalize('NFKD', name)
    name = name.encode('ascii', 'ignore').decode('ascii')
    name = name.upper()

    # Replace special characters with space
    name = re.sub(r'[-_./(),&]', ' ', name)
    name = re.sub(r'[^A-Z0-9\s]', '', name)
    name = re.sub(r'\s+', ' ', name).strip()

    name = re.sub(r'\s+(DISTRICT|DIST)$', '', name)

    return name


def build_match_key(district: Any, state: Any) -> str:
    """Combine normalized district and state names into one match key."""
    return f"{normalize_place_name(district)} | {normalize_place_name(state)}"


def find_best_match(
    query: str,
    choices: Sequence[str],
    cutoff: Optional[float] = None
) -> Optional[Tuple[str, float]]:
    """
    Find the most similar choice to a query string.

    Similarity is rapidfuzz's normalized Indel ratio (0-100). Only the
    single best candidate at or above the cutoff is returned; equally
    good candidates are resolved by taking the lexicographically
    smallest choice.

    Args:
        query: Match key to look up.
        choices: Candidate match keys.
        cutoff: Minimum similarity. Defaults to config.FUZZY_MATCH_CUTOFF.

    Returns:
        Optional[Tuple[str, float]]: (choice, score), or None if nothing
        reaches the cutoff.

    Example:
        >>> find_best_match("BANGALORE | KARNATAKA", ["BANGALOR | KARNATAKA"])
        ('BANGALOR | KARNATAKA', 97.6...)
    """
    cutoff = cutoff if cutoff is not None else config.FUZZY_MATCH_CUTOFF

    if not query or not choices:
        return None

    candidates = process.extract(
        query,
        choices,
        scorer=fuzz.ratio,
        score_cutoff=cutoff,
        limit=None
    )

    if not candidates:
        return None

    choice, score, _ = min(candidates, key=lambda c: (-c[1], c[0]))

    return choice, float(score)


def _housing_lookup(housing_df: pd.DataFrame) -> Dict[str, Tuple[float, str]]:
    """Map match key -> (HQI, district_code); first row wins on key clashes."""
    lookup: Dict[str, Tuple[float, str]] = {}

    for row in housing_df.itertuples(index=False):
        key = build_match_key(
            getattr(row, config.COL_DISTRICT), getattr(row, config.COL_STATE)
        )
        if key not in lookup:
            lookup[key] = (getattr(row, config.COL_HQI), getattr(row, config.COL_DISTRICT_CODE))

    return lookup


def resolve_geometry_hqi(
    geo_df: gpd.GeoDataFrame,
    housing_df: pd.DataFrame,
    cutoff: Optional[float] = None
) -> Tuple[gpd.GeoDataFrame, GeoJoinReport]:
    """
    Attach HQI values to district boundaries.

    Boundaries are first LEFT JOINED to the housing index on
    census_code == district_code. Boundaries without a code match are then
    matched by (district_name, state_name) with find_best_match against the
    housing districts no boundary claimed by code. Districts claimed by
    more than one name match are logged. Boundaries that still have no HQI
    keep NaN and are counted in the report.

    Args:
        geo_df: Output of load_district_geometry.
        housing_df: Output of build_housing_index.
        cutoff: Minimum name similarity. Defaults to config.FUZZY_MATCH_CUTOFF.

    Returns:
        Tuple[gpd.GeoDataFrame, GeoJoinReport]: Boundaries with HQI,
        match_method ("code", "fuzzy" or missing), match_score and the
        matched district_code; plus the join report.

    Example:
        >>> joined, report = resolve_geometry_hqi(geometry, housing)
        >>> print(f"{report.unresolved} districts without HQI")
    """
    cutoff = cutoff if cutoff is not None else config.FUZZY_MATCH_CUTOFF

    logger.info(f"Joining {len(geo_df):,} district geometries to HQI...")

    # Only districts with a defined HQI can resolve a geometry
    housing_df = housing_df.dropna(subset=[config.COL_HQI])

    hqi_by_code = housing_df.set_index(config.COL_DISTRICT_CODE)[config.COL_HQI]
    hqi_by_code = hqi_by_code[~hqi_by_code.index.duplicated(keep='first')]

    joined = geo_df.copy()
    joined[config.COL_DISTRICT_CODE] = joined[config.COL_CENSUS_CODE].where(
        joined[config.COL_CENSUS_CODE].isin(hqi_by_code.index)
    )
    joined[config.COL_HQI] = joined[config.COL_DISTRICT_CODE].map(hqi_by_code).astype('float64')

    code_matched = joined[config.COL_DISTRICT_CODE].notna()
    joined[config.COL_MATCH_METHOD] = np.where(code_matched, MATCH_CODE, None)
    joined[config.COL_MATCH_SCORE] = np.where(code_matched, 100.0, np.nan)

    # Fuzzy fallback for geometries without a code match, restricted to
    # districts not already claimed by a code match
    claimed_codes = set(joined.loc[code_matched, config.COL_DISTRICT_CODE])
    lookup = _housing_lookup(
        housing_df[~housing_df[config.COL_DISTRICT_CODE].isin(claimed_codes)]
    )
    choices: List[str] = sorted(lookup)

    fuzzy_claims: Dict[str, List[Any]] = {}
    fuzzy_count = 0
    for idx in joined.index[~code_matched]:
        query = build_match_key(
            joined.at[idx, config.COL_DISTRICT], joined.at[idx, config.COL_STATE]
        )
        match = find_best_match(query, choices, cutoff)
        if match is None:
            continue

        key, score = match
        hqi, code = lookup[key]
        joined.at[idx, config.COL_HQI] = hqi
        joined.at[idx, config.COL_DISTRICT_CODE] = code
        joined.at[idx, config.COL_MATCH_METHOD] = MATCH_FUZZY
        joined.at[idx, config.COL_MATCH_SCORE] = score
        fuzzy_count += 1
        fuzzy_claims.setdefault(code, []).append(joined.at[idx, config.COL_CENSUS_CODE])

        if score < 100:
            logger.debug(f"Fuzzy match: '{query}' -> '{key}' (score: {score:.1f})")

    shared = {code: geoms for code, geoms in fuzzy_claims.items() if len(geoms) > 1}
    if shared:
        logger.warning(
            f"{len(shared)} districts matched by name to more than one geometry: "
            f"{dict(list(shared.items())[:10])}"
        )

    report = GeoJoinReport(
        total=len(joined),
        code_matched=int(code_matched.sum()),
        fuzzy_matched=fuzzy_count,
        unresolved=int(joined[config.COL_HQI].isna().sum()),
    )

    logger.info(
        f"Geo-join: {report.code_matched} by code, "
        f"{report.fuzzy_matched} by name, of {report.total} geometries"
    )
    logger.warning(f"{report.unresolved} district geometries have no HQI value")

    return joined, report
