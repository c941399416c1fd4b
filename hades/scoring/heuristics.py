"""
Heuristic Scoring Engine.

URL-level score: additive rule weights over URLFeatures, unclamped.
Final score: 40/60 blend of URL-level and HTML-level scores, capped at 100.
Live page content is weighted above URL shape.
"""

from hades.models import URLFeatures

# URL rule weights
INSECURE_PROTOCOL_WEIGHT = 10
SUSPICIOUS_WORDS_WEIGHT = 20
MANY_SUBDOMAINS_WEIGHT = 5
IP_ADDRESS_WEIGHT = 25
NEW_DOMAIN_WEIGHT = 50

# More than this many subdomains is suspicious
SUBDOMAIN_THRESHOLD = 3

# Domains younger than this (in days) are "newly registered"
NEW_DOMAIN_MAX_AGE_DAYS = 30

URL_SCORE_WEIGHT = 0.4
HTML_SCORE_WEIGHT = 0.6
MAX_FINAL_SCORE = 100


def evaluate_heuristics(features: URLFeatures) -> int:
    """Score a URL from its features alone."""
    score = 0

    if features.uses_insecure_protocol:
        score += INSECURE_PROTOCOL_WEIGHT
    if features.has_suspicious_words:
        score += SUSPICIOUS_WORDS_WEIGHT
    if features.num_subdomains > SUBDOMAIN_THRESHOLD:
        score += MANY_SUBDOMAINS_WEIGHT
    if features.uses_ip_address:
        score += IP_ADDRESS_WEIGHT
    # Unknown age (-1) contributes nothing
    if features.domain_age_known and features.domain_age_days < NEW_DOMAIN_MAX_AGE_DAYS:
        score += NEW_DOMAIN_WEIGHT

    return score


def combine_scores(url_score: int, html_score: int) -> int:
    """Blend URL and HTML scores into the final 0-100 risk score."""
    blended = round(url_score * URL_SCORE_WEIGHT + html_score * HTML_SCORE_WEIGHT)
    return min(int(blended), MAX_FINAL_SCORE)


def risk_level(final_score: int) -> str:
    """Human-readable band for a final score."""
    if final_score >= 70:
        return "High Risk"
    elif final_score >= 40:
        return "Elevated Risk"
    elif final_score >= 20:
        return "Low Risk"
    else:
        return "Minimal Risk"
