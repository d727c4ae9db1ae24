"""
Machine Learning models module for the Housing Quality Index project.

This module provides the district clustering model (standardized
k-means) and the OLS regression of female literacy on SC/ST shares.

Classes:
    - DistrictClusterer: StandardScaler + KMeans wrapper

Functions:
    - assign_clusters: Cluster complete rows and join labels back
    - summarize_clusters: Per-cluster size and feature means
    - fit_literacy_regression: OLS Female_Literacy_Rate ~ SC_Percent + ST_Percent
"""

import logging
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from sklearn.cluster import KMeans
from sklearn.preprocessing import StandardScaler

from . import config

# Configure logging
logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


class DistrictClusterer:
    """
    District segmentation using k-means on standardized features.

    This class wraps sklearn's KMeans with feature standardization
    (zero mean, unit variance) and 1-based cluster labels. With a fixed
    random_state and the same input order, labels are reproducible;
    label numbers carry no ordering meaning.

    Attributes:
        n_clusters: Number of clusters (k).
        random_state: Seed for centroid initialization.
        model: Fitted KMeans model.
        scaler: StandardScaler for feature normalization.
        feature_names: List of feature column names.

    Example:
        >>> clusterer = DistrictClusterer(n_clusters=4)
        >>> labels = clusterer.fit_predict(df[config.CLUSTER_FEATURES])
        >>> centers = clusterer.cluster_centers()
    """

    def __init__(
        self,
        n_clusters: int = None,
        random_state: int = None,
        n_init: int = None
    ):
        """
        Initialize DistrictClusterer.

        Args:
            n_clusters: Number of clusters. Defaults to config value.
            random_state: Random seed for reproducibility. Defaults to config value.
            n_init: Number of k-means restarts. Defaults to config value.
        """
        self.n_clusters = n_clusters or config.CLUSTER_COUNT
        self.random_state = (
            random_state if random_state is not None else config.CLUSTER_RANDOM_STATE
        )
        self.n_init = n_init or config.CLUSTER_N_INIT

        self.model = KMeans(
            n_clusters=self.n_clusters,
            random_state=self.random_state,
            n_init=self.n_init
        )

        self.scaler = StandardScaler()
        self.feature_names: List[str] = []
        self._is_fitted = False

    def _to_matrix(self, features: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        X = features.values if isinstance(features, pd.DataFrame) else np.asarray(features)
        X = X.astype('float64')

        if np.isnan(X).any():
            raise ValueError("Features contain missing values; drop incomplete rows first")

        return X

    def fit(
        self,
        features: Union[pd.DataFrame, np.ndarray],
        feature_names: Optional[List[str]] = None
    ) -> 'DistrictClusterer':
        """
        Fit the clustering model.

        Args:
            features: Feature matrix (n_samples, n_features) without NaN.
            feature_names: Optional list of feature names.

        Returns:
            self: Fitted clusterer instance.

        Raises:
            ValueError: If features contain NaN or there are fewer
                samples than clusters.
        """
        logger.info(f"Fitting k-means model with k={self.n_clusters}...")

        if isinstance(features, pd.DataFrame):
            self.feature_names = features.columns.tolist()
        else:
            n_features = np.asarray(features).shape[1]
            self.feature_names = feature_names or [f"feature_{i}" for i in range(n_features)]

        X = self._to_matrix(features)

        if X.shape[0] < self.n_clusters:
            raise ValueError(
                f"Need at least {self.n_clusters} complete rows to form "
                f"{self.n_clusters} clusters, got {X.shape[0]}"
            )

        X_scaled = self.scaler.fit_transform(X)
        self.model.fit(X_scaled)

        self._is_fitted = True
        logger.info(f"Model fitted on {X.shape[0]:,} samples with {X.shape[1]} features")

        return self

    def predict(self, features: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """
        Predict 1-based cluster labels.

        Raises:
            RuntimeError: If model has not been fitted.
        """
        if not self._is_fitted:
            raise RuntimeError("Model must be fitted before prediction. Call fit() first.")

        X_scaled = self.scaler.transform(self._to_matrix(features))

        return self.model.predict(X_scaled) + 1

    def fit_predict(self, features: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """Fit model and return labels in one step."""
        self.fit(features)
        return self.predict(features)

    def cluster_centers(self) -> pd.DataFrame:
        """
        Cluster centroids in original feature units.

        Returns:
            pd.DataFrame: One row per cluster label (1..k).
        """
        if not self._is_fitted:
            raise RuntimeError("Model must be fitted first.")

        centers = self.scaler.inverse_transform(self.model.cluster_centers_)

        return pd.DataFrame(
            centers,
            columns=self.feature_names,
            index=pd.Index(range(1, self.n_clusters + 1), name=config.COL_CLUSTER)
        )


def assign_clusters(
    df: pd.DataFrame,
    features: Optional[List[str]] = None,
    n_clusters: Optional[int] = None,
    random_state: Optional[int] = None
) -> pd.DataFrame:
    """
    Cluster districts and add a ``Cluster`` column to the merged table.

    Only rows with every feature defined are clustered. Labels are joined
    back on district_code; excluded rows get <NA>.

    Args:
        df: Merged dataframe with derived indicators.
        features: Feature columns. Defaults to config.CLUSTER_FEATURES.
        n_clusters: Number of clusters. Defaults to config.CLUSTER_COUNT.
        random_state: Seed. Defaults to config.CLUSTER_RANDOM_STATE.

    Returns:
        pd.DataFrame: Copy of the input with a nullable-integer Cluster column.

    Example:
        >>> clustered = assign_clusters(merged)
        >>> print(clustered['Cluster'].value_counts())
    """
    features = features or config.CLUSTER_FEATURES
    code_col = config.COL_DISTRICT_CODE

    complete = df.dropna(subset=features)
    excluded = len(df) - len(complete)
    if excluded:
        logger.warning(f"Excluded {excluded} districts with missing features from clustering")

    clusterer = DistrictClusterer(n_clusters=n_clusters, random_state=random_state)
    labels = clusterer.fit_predict(complete[features])

    assignments = pd.DataFrame({
        code_col: complete[code_col].values,
        config.COL_CLUSTER: pd.array(labels, dtype='Int64'),
    })

    result = df.drop(columns=[config.COL_CLUSTER], errors='ignore').merge(
        assignments, on=code_col, how='left', validate='one_to_one'
    )

    counts = result[config.COL_CLUSTER].value_counts().sort_index()
    logger.info(f"Cluster sizes: {counts.to_dict()}")

    return result


def summarize_clusters(
    df: pd.DataFrame,
    features: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Size and mean feature values of each cluster.

    Args:
        df: Output of assign_clusters.
        features: Feature columns. Defaults to config.CLUSTER_FEATURES.

    Returns:
        pd.DataFrame: One row per cluster with a district count and means.
    """
    features = features or config.CLUSTER_FEATURES

    clustered = df.dropna(subset=[config.COL_CLUSTER])
    grouped = clustered.groupby(config.COL_CLUSTER)

    summary = grouped[features].mean()
    summary.insert(0, 'districts', grouped.size())

    return summary.reset_index()


def fit_literacy_regression(
    df: pd.DataFrame,
    target: Optional[str] = None,
    predictors: Optional[List[str]] = None,
    alpha: Optional[float] = None
) -> Dict[str, Any]:
    """
    Fit an OLS model of female literacy on SC and ST population shares.

    Model:
        Female_Literacy_Rate ~ SC_Percent + ST_Percent

    Rows with any of the model variables undefined are dropped.

    Args:
        df: Merged dataframe with derived indicators.
        target: Response column. Defaults to config.REGRESSION_TARGET.
        predictors: Predictor columns. Defaults to config.REGRESSION_PREDICTORS.
        alpha: Significance level. Defaults to config.REGRESSION_ALPHA.

    Returns:
        Dict[str, Any]: 'results' (statsmodels results), 'coefficients'
        (coef, std_err, t_value, p_value, significant per term),
        'r_squared', 'adj_r_squared', 'n_obs', 'formula'.

    Raises:
        ValueError: If too few complete rows remain to fit the model.

    Example:
        >>> reg = fit_literacy_regression(merged)
        >>> print(reg['coefficients'])
    """
    target = target or config.REGRESSION_TARGET
    predictors = predictors or config.REGRESSION_PREDICTORS
    alpha = alpha if alpha is not None else config.REGRESSION_ALPHA

    data = df[[target] + predictors].astype('float64').dropna()

    if len(data) < config.REGRESSION_MIN_ROWS:
        raise ValueError(
            f"Need at least {config.REGRESSION_MIN_ROWS} complete rows for "
            f"regression, got {len(data)}"
        )

    formula = f"{target} ~ {' + '.join(predictors)}"
    logger.info(f"Fitting OLS: {formula} on {len(data):,} districts")

    results = smf.ols(formula, data=data).fit()

    coefficients = pd.DataFrame({
        'coef': results.params,
        'std_err': results.bse,
        't_value': results.tvalues,
        'p_value': results.pvalues,
    })
    coefficients['significant'] = coefficients['p_value'] < alpha

    logger.info(f"Regression R^2 = {results.rsquared:.3f} (n={int(results.nobs)})")

    return {
        'results': results,
        'coefficients': coefficients,
        'r_squared': float(results.rsquared),
        'adj_r_squared': float(results.rsquared_adj),
        'n_obs': int(results.nobs),
        'formula': formula,
    }
