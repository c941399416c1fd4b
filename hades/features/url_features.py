"""
URL Feature Extractor - lexical and structural URL features.

Everything except domain age is a pure function of the input string.
Extraction never raises: an unparseable URL yields empty hostname/scheme
and the remaining fields are computed from those.
"""

import ipaddress
import logging
from typing import Callable, Optional, Tuple
from urllib.parse import urlsplit

from hades.features.domain_age import get_domain_age_days
from hades.models import URLFeatures

logger = logging.getLogger(__name__)

# Substring match against the full URL, not word boundaries
SUSPICIOUS_WORDS = ('login', 'verify', 'update', 'secure', 'bank')


def split_url(raw_url: str) -> Tuple[str, str]:
    """Return (scheme, hostname); empty strings if the URL cannot be parsed."""
    try:
        parsed = urlsplit(raw_url)
        return parsed.scheme, parsed.hostname or ''
    except ValueError as e:
        logger.debug(f"[URL] Unparseable URL {raw_url!r}: {e}")
        return '', ''


def contains_suspicious_word(url: str) -> bool:
    lowered = url.lower()
    return any(word in lowered for word in SUSPICIOUS_WORDS)


def is_ip_address(host: str) -> bool:
    """Strict IPv4/IPv6 literal check (no ports, no brackets)."""
    if not host:
        return False
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return False


def count_subdomains(host: str) -> int:
    """
    Labels minus two (registered name + TLD).

    Negative for dot-free hosts and inflated for IP literals; both are
    known imprecisions of this heuristic.
    """
    return len(host.split('.')) - 2


class URLFeatureExtractor:
    """
    Extracts URLFeatures from raw URL strings.

    Args:
        domain_age: Callable mapping a hostname to its age in days or -1
    """

    def __init__(self, domain_age: Optional[Callable[[str], int]] = None):
        self.domain_age = domain_age or get_domain_age_days

    def extract(self, raw_url: str) -> URLFeatures:
        scheme, hostname = split_url(raw_url)

        return URLFeatures(
            domain_length=len(hostname),
            url_length=len(raw_url),
            has_suspicious_words=contains_suspicious_word(raw_url),
            num_subdomains=count_subdomains(hostname),
            uses_ip_address=is_ip_address(hostname),
            uses_insecure_protocol=scheme == 'http',
            domain_age_days=self.domain_age(hostname),
        )
