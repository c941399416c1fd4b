"""
ML predictor placeholder.

The predictor accepts URLFeatures and returns a score contribution. No
model is trained yet, so predict() returns a constant 0.0. It is not part
of the final score: AnalysisPipeline does not call it.
"""

from typing import List

import numpy as np

from hades.models import URLFeatures

# Column order of the feature vector
FEATURE_ORDER: List[str] = [
    "domain_length",
    "url_length",
    "has_suspicious_words",
    "num_subdomains",
    "uses_ip_address",
    "uses_insecure_protocol",
    "domain_age_days",
]

PLACEHOLDER_SCORE = 0.0


def to_feature_vector(features: URLFeatures) -> np.ndarray:
    """Shape (1, n_features) float vector in FEATURE_ORDER."""
    values = [float(getattr(features, name)) for name in FEATURE_ORDER]
    return np.array(values, dtype=float).reshape(1, -1)


class URLPredictor:
    """Scores URLFeatures; constant until a model is available."""

    def predict(self, features: URLFeatures) -> float:
        X = to_feature_vector(features)
        if not np.isfinite(X).all():
            raise ValueError("Feature vector contains non-finite values")
        # TODO: load a trained classifier and return predict_proba(X) once labelled data exists
        return PLACEHOLDER_SCORE
