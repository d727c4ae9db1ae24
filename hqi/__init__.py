"""
Housing Quality Index (HQI) analytics for Indian districts.

This package builds a district-level Housing Quality Index from Census 2011
housing-condition tables, merges it with demographic indicators, and
produces rankings, correlations, clusters, regressions, and maps.

Modules:
    - config: Configuration constants and thresholds
    - preprocessing: Data loading, code normalization, HQI and merging
    - metrics: Rankings, state aggregation, correlations
    - models: K-means clustering and OLS regression
    - geo: Joining district boundaries to HQI (code + fuzzy name fallback)
    - viz: Charts, maps and reports
"""

from . import config
from . import preprocessing
from . import metrics
from . import models
from . import geo
from . import viz

__version__ = "1.0.0"
__all__ = ["config", "preprocessing", "metrics", "models", "geo", "viz"]
