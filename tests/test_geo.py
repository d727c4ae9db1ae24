"""Tests for joining district boundaries to HQI."""

import logging

import numpy as np
import pandas as pd
import pytest

from hqi import config
from hqi.geo import (
    MATCH_CODE, MATCH_FUZZY, build_match_key, find_best_match,
    normalize_place_name, resolve_geometry_hqi
)


@pytest.mark.parametrize("raw, expected", [
    ("Kupwara", "KUPWARA"),
    ("  kupwara   district ", "KUPWARA"),
    ("Leh (Ladakh)", "LEH LADAKH"),
    ("Jammu & Kashmir", "JAMMU KASHMIR"),
    ("North-East", "NORTH EAST"),
    ("Kōraput", "KORAPUT"),
    ("Dist", "DIST"),
    (None, ""),
    (np.nan, ""),
])
def test_normalize_place_name(raw, expected):
    assert normalize_place_name(raw) == expected


def test_build_match_key():
    assert build_match_key("Badgam", "Jammu & Kashmir") == "BADGAM | JAMMU KASHMIR"


class TestFindBestMatch:
    """Tests for find_best_match."""

    def test_exact_match_scores_100(self):
        match = find_best_match("BADGAM | PUNJAB", ["AMRITSAR | PUNJAB", "BADGAM | PUNJAB"])

        assert match == ("BADGAM | PUNJAB", 100.0)

    def test_no_candidate_above_cutoff(self):
        assert find_best_match("ATLANTIS | NOWHERE", ["KUPWARA | JAMMU KASHMIR"]) is None

    def test_empty_inputs(self):
        assert find_best_match("", ["A"]) is None
        assert find_best_match("A", []) is None

    def test_ties_resolve_to_smallest_choice(self):
        # "ab" and "ac" are equally similar to "aa"
        assert find_best_match("aa", ["ac", "ab"], cutoff=0)[0] == "ab"
        assert find_best_match("aa", ["ab", "ac"], cutoff=0)[0] == "ab"

    def test_score_respects_cutoff(self):
        choice, score = find_best_match(
            "BUDGAM | JAMMU KASHMIR", ["BADGAM | JAMMU KASHMIR"], cutoff=90
        )

        assert choice == "BADGAM | JAMMU KASHMIR"
        assert 90 <= score < 100


class TestResolveGeometryHqi:
    """Tests for resolve_geometry_hqi."""

    def test_code_match(self, geometry, housing):
        joined, _ = resolve_geometry_hqi(geometry, housing)

        row = joined.set_index(config.COL_CENSUS_CODE).loc["0001"]
        assert row[config.COL_HQI] == pytest.approx(0.875)
        assert row[config.COL_MATCH_METHOD] == MATCH_CODE
        assert row[config.COL_MATCH_SCORE] == 100

    def test_fuzzy_fallback(self, geometry, housing):
        joined, _ = resolve_geometry_hqi(geometry, housing)

        row = joined.set_index(config.COL_CENSUS_CODE).loc["0099"]
        assert row[config.COL_HQI] == pytest.approx(0.65)
        assert row[config.COL_DISTRICT_CODE] == "0002"
        assert row[config.COL_MATCH_METHOD] == MATCH_FUZZY
        assert row[config.COL_MATCH_SCORE] >= config.FUZZY_MATCH_CUTOFF

    def test_undefined_hqi_left_unresolved(self, geometry, housing):
        joined, _ = resolve_geometry_hqi(geometry, housing)

        # Ludhiana has a code match but no houses counted
        row = joined.set_index(config.COL_CENSUS_CODE).loc["0004"]
        assert np.isnan(row[config.COL_HQI])
        assert pd.isna(row[config.COL_MATCH_METHOD])

    def test_report(self, geometry, housing, caplog):
        with caplog.at_level(logging.WARNING):
            joined, report = resolve_geometry_hqi(geometry, housing)

        assert report.to_dict() == {
            "total": 4, "code_matched": 1, "fuzzy_matched": 1, "unresolved": 2
        }
        assert report.unresolved == joined[config.COL_HQI].isna().sum()
        assert "2 district geometries have no HQI value" in caplog.text

    def test_unresolved_bounded_by_code_misses(self, geometry, housing):
        joined, report = resolve_geometry_hqi(geometry, housing)

        defined_codes = set(housing.dropna(subset=[config.COL_HQI])[config.COL_DISTRICT_CODE])
        code_misses = (~geometry[config.COL_CENSUS_CODE].isin(defined_codes)).sum()
        assert report.unresolved <= code_misses

    def test_strict_cutoff_disables_fuzzy_matches(self, geometry, housing):
        _, report = resolve_geometry_hqi(geometry, housing, cutoff=100)

        assert report.fuzzy_matched == 0
        assert report.unresolved == 3

    def test_code_matched_district_not_reused_by_name(self, geometry, housing):
        boundaries = geometry.iloc[:2].copy()
        boundaries[config.COL_CENSUS_CODE] = ["0002", "0077"]
        boundaries[config.COL_DISTRICT] = ["Badgam", "Badgam"]

        joined, report = resolve_geometry_hqi(boundaries, housing)

        by_census = joined.set_index(config.COL_CENSUS_CODE)
        assert by_census.loc["0002", config.COL_MATCH_METHOD] == MATCH_CODE
        assert pd.isna(by_census.loc["0077", config.COL_DISTRICT_CODE])
        assert np.isnan(by_census.loc["0077", config.COL_HQI])
        assert report.fuzzy_matched == 0
        assert report.unresolved == 1

    def test_district_claimed_by_two_names_is_logged(self, geometry, housing, caplog):
        boundaries = geometry.iloc[:2].copy()
        boundaries[config.COL_CENSUS_CODE] = ["0088", "0099"]
        boundaries[config.COL_DISTRICT] = ["Badgam", "Budgam"]

        with caplog.at_level(logging.WARNING):
            joined, report = resolve_geometry_hqi(boundaries, housing)

        assert list(joined[config.COL_DISTRICT_CODE]) == ["0002", "0002"]
        assert report.fuzzy_matched == 2
        assert "1 districts matched by name to more than one geometry" in caplog.text
        assert "'0002': ['0088', '0099']" in caplog.text

    def test_geometry_preserved(self, geometry, housing):
        joined, _ = resolve_geometry_hqi(geometry, housing)

        assert len(joined) == len(geometry)
        assert joined.crs == geometry.crs
        assert joined.geometry.geom_equals(geometry.geometry).all()
