"""
URL Feature Extractor Tests

PURPOSE:
    Lock the lexical URL features used by the URL-level score.

WHAT THIS FILE PROTECTS AGAINST:
    - Suspicious word matching becoming case-sensitive or word-bounded
    - Pattern-based IP detection accepting ports or malformed octets
    - Subdomain counting being "fixed" for IP literals without notice
    - Extraction raising on malformed URLs

MOCKING STRATEGY:
    Domain age is injected as a plain callable; no WHOIS traffic.
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hades.features.url_features import (
    URLFeatureExtractor,
    contains_suspicious_word,
    count_subdomains,
    is_ip_address,
    split_url,
)
from hades.models import UNKNOWN_DOMAIN_AGE


@pytest.fixture
def extractor():
    """Extractor whose domain age lookup always fails."""
    return URLFeatureExtractor(domain_age=lambda hostname: UNKNOWN_DOMAIN_AGE)


# ============================================================================
# TEST CLASS 1: FULL EXTRACTION
# ============================================================================

class TestExtractFeatures:

    @pytest.mark.parametrize("url,domain_length,url_length,words,subdomains,ip,insecure", [
        ("https://example.com", 11, 19, False, 0, False, False),
        ("http://login.example.com/verify", 17, 31, True, 1, False, True),
        ("https://sub1.sub2.sub3.example.com", 26, 34, False, 3, False, False),
        ("https://secure-bank-login.com", 21, 29, True, 0, False, False),
        ("http://update.example.org/secure", 18, 32, True, 1, False, True),
        ("http://192.168.1.1/login", 11, 24, True, 2, True, True),
        ("https://[2001:db8::1]/secure", 11, 28, True, -1, True, False),
    ])
    def test_feature_table(self, extractor, url, domain_length, url_length,
                           words, subdomains, ip, insecure):
        features = extractor.extract(url)

        assert features.domain_length == domain_length
        assert features.url_length == url_length
        assert features.has_suspicious_words is words
        assert features.num_subdomains == subdomains
        assert features.uses_ip_address is ip
        assert features.uses_insecure_protocol is insecure
        assert features.domain_age_days == UNKNOWN_DOMAIN_AGE

    def test_domain_age_receives_hostname(self):
        seen = []

        def fake_age(hostname):
            seen.append(hostname)
            return 42

        features = URLFeatureExtractor(domain_age=fake_age).extract("https://shop.example.com:8443/a?b=c")

        assert seen == ["shop.example.com"]
        assert features.domain_age_days == 42

    def test_url_length_uses_raw_input(self, extractor):
        raw = "  https://example.com  "
        assert extractor.extract(raw).url_length == len(raw)

    def test_malformed_url_does_not_raise(self, extractor):
        features = extractor.extract("http://[not-an-ip/path")

        assert features.domain_length == 0
        assert features.num_subdomains == -1
        assert features.uses_ip_address is False
        assert features.uses_insecure_protocol is False

    def test_empty_string(self, extractor):
        features = extractor.extract("")

        assert features.domain_length == 0
        assert features.url_length == 0
        assert features.has_suspicious_words is False

    def test_extraction_is_idempotent_apart_from_age(self):
        ages = iter([10, 11])
        extractor = URLFeatureExtractor(domain_age=lambda hostname: next(ages))

        first = extractor.extract("http://secure.login.example.net/update").to_dict()
        second = extractor.extract("http://secure.login.example.net/update").to_dict()

        first.pop("domain_age_days")
        second.pop("domain_age_days")
        assert first == second

    def test_scheme_must_be_http_for_insecure_flag(self, extractor):
        assert extractor.extract("ftp://example.com").uses_insecure_protocol is False
        assert extractor.extract("https://example.com").uses_insecure_protocol is False


# ============================================================================
# TEST CLASS 2: SUSPICIOUS WORDS
# ============================================================================

class TestSuspiciousWords:

    @pytest.mark.parametrize("url,expected", [
        ("https://example.com", False),
        ("https://login.example.com", True),
        ("https://example.com/verify", True),
        ("https://update.example.com", True),
        ("https://secure.example.com", True),
        ("https://bank.example.com", True),
        ("https://secure-bank-login.com/verify", True),
        ("https://LOGIN.example.com", True),
        ("https://BANK.example.com", True),
        ("https://blogin.example.com", True),
    ])
    def test_contains_suspicious_word(self, url, expected):
        assert contains_suspicious_word(url) is expected


# ============================================================================
# TEST CLASS 3: IP LITERALS
# ============================================================================

class TestIsIPAddress:

    @pytest.mark.parametrize("host,expected", [
        ("example.com", False),
        ("192.168.1.1", True),
        ("2001:db8::1", True),
        ("2001:0db8:85a3:0000:0000:8a2e:0370:7334", True),
        ("::1", True),
        ("127.0.0.1", True),
        ("8.8.8.8", True),
        ("192.168.1.1:8080", False),
        ("localhost", False),
        ("test123.com", False),
        ("192.168.1.1.1", False),
        ("192.168.256.1", False),
        ("2001:db8::1::2", False),
        ("", False),
        ("sub.example.com", False),
    ])
    def test_is_ip_address(self, host, expected):
        assert is_ip_address(host) is expected


# ============================================================================
# TEST CLASS 4: SUBDOMAINS AND PARSING
# ============================================================================

class TestSubdomainsAndParsing:

    def test_two_labels_is_zero(self):
        assert count_subdomains("example.com") == 0

    def test_n_labels(self):
        assert count_subdomains("a.b.c.d.example.com") == 4

    def test_dot_free_host_is_negative(self):
        assert count_subdomains("2001:db8::1") == -1
        assert count_subdomains("localhost") == -1

    def test_split_url_strips_brackets_and_port(self):
        assert split_url("https://[::1]:8443/x") == ("https", "::1")
        assert split_url("http://Example.COM:80") == ("http", "example.com")

    def test_split_url_unparseable(self):
        assert split_url("http://[::1/") == ("", "")
