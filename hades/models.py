"""
Data model for URL analysis requests and results.

Every record here is created fresh per analyzed URL and discarded once the
response has been serialized. The to_dict() methods define the JSON shape
returned by the API.
"""

import json
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List

from hades.errors import RequestDecodeError

# Domain age sentinel: registration age could not be determined
UNKNOWN_DOMAIN_AGE = -1

# HTML score used when the page could not be fetched at all
FETCH_FAILURE_HTML_SCORE = 30


@dataclass
class URLFeatures:
    """Structural and lexical features of a single URL."""
    domain_length: int = 0
    url_length: int = 0
    has_suspicious_words: bool = False
    num_subdomains: int = 0
    uses_ip_address: bool = False
    uses_insecure_protocol: bool = False
    domain_age_days: int = UNKNOWN_DOMAIN_AGE

    @property
    def domain_age_known(self) -> bool:
        return self.domain_age_days != UNKNOWN_DOMAIN_AGE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HTMLFeatures:
    """Phishing signals derived from a page's HTML content."""
    content_fetched: bool = False
    has_suspicious_title: bool = False
    has_phishing_keywords: bool = False
    has_suspicious_forms: bool = False
    has_external_redirects: bool = False
    has_obfuscated_code: bool = False
    missing_ssl_indicators: bool = False
    html_score: int = 0

    @classmethod
    def fetch_failed(cls) -> "HTMLFeatures":
        """Default for unreachable pages: no signals, fixed penalty score."""
        return cls(content_fetched=False, html_score=FETCH_FAILURE_HTML_SCORE)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class URLAnalysisResult:
    """Complete analysis of one URL."""
    url: str
    url_score: int
    url_details: URLFeatures
    html_details: HTMLFeatures
    final_score: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "url": self.url,
            "score": self.url_score,
            "url_details": self.url_details.to_dict(),
            "html_details": self.html_details.to_dict(),
            "final_score": self.final_score,
        }


@dataclass
class AnalyzeRequest:
    """Decoded batch analyze request."""
    urls: List[str] = field(default_factory=list)

    @classmethod
    def from_body(cls, body: bytes) -> "AnalyzeRequest":
        """
        Decode a raw request body.

        A JSON object without a "urls" key, or a bare null, is an empty
        batch, not an error.

        Raises:
            RequestDecodeError: Body is not JSON, not an object, or "urls"
                is not a list of strings.
        """
        if not body or not body.strip():
            raise RequestDecodeError("Request body is empty")

        try:
            payload = json.loads(body)
        except (ValueError, UnicodeDecodeError) as e:
            raise RequestDecodeError(f"Malformed JSON: {e}") from e

        if payload is None:
            return cls(urls=[])

        if not isinstance(payload, dict):
            raise RequestDecodeError("Request body must be a JSON object")

        urls = payload.get("urls")
        if urls is None:
            return cls(urls=[])
        if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
            raise RequestDecodeError("urls must be an array of strings")

        return cls(urls=list(urls))
