"""
Analysis Pipeline - orchestrates the scoring of a single URL.

PIPELINE ORDER (per URL):
1. URL feature extraction (includes the WHOIS domain age lookup)
2. URL-level heuristic score
3. HTML fetch and signal analysis (always runs, never gated on step 2)
4. Score combination

Lookups inside the steps degrade to sentinel values instead of raising,
so one unreachable domain never affects another URL of the same batch.
Nothing is cached between calls.
"""

import logging
import time
from typing import Callable, List, Optional

from hades.config import Settings
from hades.features.domain_age import DomainAgeResolver
from hades.features.html_analyzer import HTMLAnalyzer
from hades.features.url_features import URLFeatureExtractor
from hades.models import HTMLFeatures, URLAnalysisResult
from hades.observability import get_metrics
from hades.scoring.heuristics import combine_scores, evaluate_heuristics, risk_level

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """
    Runs extractor, URL scoring, HTML analysis and score combination.

    Args:
        extractor: URL feature extractor
        html_analyzer: Callable mapping a URL to HTMLFeatures
    """

    def __init__(
        self,
        extractor: Optional[URLFeatureExtractor] = None,
        html_analyzer: Optional[Callable[[str], HTMLFeatures]] = None
    ):
        self.extractor = extractor or URLFeatureExtractor()
        self.html_analyzer = html_analyzer or HTMLAnalyzer()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalysisPipeline":
        """Build a pipeline with timeouts and user agent from configuration."""
        resolver = DomainAgeResolver(timeout=settings.whois_timeout)
        return cls(
            extractor=URLFeatureExtractor(domain_age=resolver),
            html_analyzer=HTMLAnalyzer(
                timeout=settings.html_fetch_timeout,
                user_agent=settings.user_agent
            )
        )

    def analyze(self, url: str) -> URLAnalysisResult:
        """Analyze a single URL."""
        start_time = time.time()

        url_features = self.extractor.extract(url)
        url_score = evaluate_heuristics(url_features)

        html_features = self.html_analyzer(url)

        final_score = combine_scores(url_score, html_features.html_score)

        result = URLAnalysisResult(
            url=url,
            url_score=url_score,
            url_details=url_features,
            html_details=html_features,
            final_score=final_score
        )

        latency = time.time() - start_time
        level = risk_level(final_score)
        get_metrics().record_analysis(level, latency)
        logger.info(
            f"[PIPELINE] {url} -> {final_score} ({level}; url={url_score}, "
            f"html={html_features.html_score}, age={url_features.domain_age_days})",
            extra={"url": url, "final_score": final_score, "latency_ms": round(latency * 1000, 2)}
        )

        return result

    def analyze_batch(self, urls: List[str]) -> List[URLAnalysisResult]:
        """Analyze URLs sequentially; results keep input order."""
        get_metrics().record_batch(len(urls))
        return [self.analyze(url) for url in urls]
