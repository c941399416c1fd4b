"""
HTML Content Analyzer - fetches a page and derives phishing signals.

Each signal is an independent predicate over the page body, registered in
HTML_SIGNALS together with its score weight. Adding a signal means adding
a detector and a registry entry; the scoring loop does not change.

Fetch failures (connection error, timeout, non-200 status, body read
error) never raise. They produce HTMLFeatures.fetch_failed(): every flag
false and a fixed html_score of 30, since an unreachable page is itself
suspicious.
"""

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, Optional, Tuple
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from hades.config import DEFAULT_HTML_FETCH_TIMEOUT, DEFAULT_USER_AGENT
from hades.models import HTMLFeatures
from hades.observability import get_metrics

logger = logging.getLogger(__name__)

# Pages larger than this are truncated before analysis
MAX_BODY_BYTES = 5 * 1024 * 1024

READ_CHUNK_BYTES = 8 * 1024

MAX_REDIRECTS = 10

SUSPICIOUS_TITLES = (
    'verify your account',
    'account suspended',
    'urgent action required',
    'security alert',
    'confirm your identity',
    'update payment',
    'expired session',
    'login verification',
)

PHISHING_KEYWORDS = (
    'click here to verify',
    'account will be closed',
    'immediate action required',
    'suspended account',
    'confirm your password',
    'update your information',
    'verify identity',
    'security breach',
    'unauthorized access',
    'click here immediately',
)

SUSPICIOUS_FORM_ACTIONS = ('login', 'signin', 'verify', 'confirm', 'update', 'secure')

META_REFRESH_URL = re.compile(r'url\s*=\s*["\']?([^"\';\s]+)', re.IGNORECASE)

JS_REDIRECT_PATTERNS = (
    re.compile(r'window\.location\.href\s*=\s*["\']http'),
    re.compile(r'window\.location\s*=\s*["\']http'),
    re.compile(r'location\.href\s*=\s*["\']http'),
)

OBFUSCATION_PATTERNS = (
    re.compile(r'eval\s*\('),
    re.compile(r'document\.write\s*\(\s*unescape'),
    re.compile(r'String\.fromCharCode'),
    re.compile(r'\\x[0-9a-fA-F]{2}'),
    re.compile(r'\\u[0-9a-fA-F]{4}'),
    re.compile(r'atob\s*\('),
    re.compile(r'btoa\s*\('),
)

INSECURE_RESOURCE_PATTERNS = (
    re.compile(r'src=["\']http://', re.IGNORECASE),
    re.compile(r'href=["\']http://', re.IGNORECASE),
    re.compile(r'action=["\']http://', re.IGNORECASE),
)


class PageContent:
    """Fetched HTML with lazily derived views shared by all detectors."""

    def __init__(self, html: str):
        self.html = html

    @cached_property
    def lowered(self) -> str:
        return self.html.lower()

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, 'html.parser')


# ========== SIGNAL DETECTORS ==========

def detect_suspicious_title(page: PageContent) -> bool:
    """First <title> contains an alarm phrase."""
    title = page.soup.title
    if title is None:
        return False
    text = title.get_text().lower()
    return any(phrase in text for phrase in SUSPICIOUS_TITLES)


def detect_phishing_keywords(page: PageContent) -> bool:
    return any(keyword in page.lowered for keyword in PHISHING_KEYWORDS)


def _is_password_type(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() == 'password'


def detect_suspicious_forms(page: PageContent) -> bool:
    """
    Password form AND a credential-flavored action somewhere on the page.

    Either condition alone is common on legitimate sites.
    """
    has_password_form = any(
        form.find('input', attrs={'type': _is_password_type}) is not None
        for form in page.soup.find_all('form')
    )
    if not has_password_form:
        return False

    for tag in page.soup.find_all(action=True):
        action = str(tag.get('action', '')).lower()
        if any(keyword in action for keyword in SUSPICIOUS_FORM_ACTIONS):
            return True
    return False


def _is_refresh(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() == 'refresh'


def detect_external_redirects(page: PageContent) -> bool:
    """Meta refresh or script location assignment to an absolute http(s) URL."""
    for meta in page.soup.find_all('meta', attrs={'http-equiv': _is_refresh}):
        match = META_REFRESH_URL.search(str(meta.get('content', '')))
        if match and match.group(1).lower().startswith(('http://', 'https://')):
            return True

    return any(pattern.search(page.html) for pattern in JS_REDIRECT_PATTERNS)


def detect_obfuscated_code(page: PageContent) -> bool:
    return any(pattern.search(page.html) for pattern in OBFUSCATION_PATTERNS)


def detect_missing_ssl_indicators(page: PageContent) -> bool:
    """Mixed content: resources or form targets referenced over plain http."""
    return any(pattern.search(page.html) for pattern in INSECURE_RESOURCE_PATTERNS)


@dataclass(frozen=True)
class HTMLSignal:
    """A named boolean predicate and its contribution to html_score."""
    flag: str
    weight: int
    detect: Callable[[PageContent], bool]


# Flags are independent and additive; maximum total is 165
HTML_SIGNALS: Tuple[HTMLSignal, ...] = (
    HTMLSignal('has_suspicious_title', 25, detect_suspicious_title),
    HTMLSignal('has_phishing_keywords', 30, detect_phishing_keywords),
    HTMLSignal('has_suspicious_forms', 35, detect_suspicious_forms),
    HTMLSignal('has_external_redirects', 20, detect_external_redirects),
    HTMLSignal('has_obfuscated_code', 40, detect_obfuscated_code),
    HTMLSignal('missing_ssl_indicators', 15, detect_missing_ssl_indicators),
)


def calculate_html_score(features: HTMLFeatures, signals: Tuple[HTMLSignal, ...] = HTML_SIGNALS) -> int:
    """Sum the weights of triggered flags; fixed penalty if nothing was fetched."""
    if not features.content_fetched:
        return HTMLFeatures.fetch_failed().html_score
    return sum(signal.weight for signal in signals if getattr(features, signal.flag))


def analyze_html(html: str, signals: Tuple[HTMLSignal, ...] = HTML_SIGNALS) -> HTMLFeatures:
    """Run every detector over already-fetched HTML."""
    page = PageContent(html)
    features = HTMLFeatures(content_fetched=True)

    for signal in signals:
        try:
            triggered = bool(signal.detect(page))
        except Exception as e:
            # Treat a detector crash on hostile markup as "not triggered"
            logger.warning(f"[HTML] Detector {signal.flag} failed: {e!r}")
            triggered = False
        setattr(features, signal.flag, triggered)

    features.html_score = calculate_html_score(features, signals)
    return features


class HTMLAnalyzer:
    """
    Fetches pages and analyzes their HTML.

    Args:
        timeout: Total seconds for the whole fetch (redirects, connect, body)
        user_agent: User-Agent header for page fetches
        session: Optional requests session; plain requests.get otherwise
        signals: Signal registry to evaluate
    """

    def __init__(
        self,
        timeout: float = DEFAULT_HTML_FETCH_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
        signals: Tuple[HTMLSignal, ...] = HTML_SIGNALS
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session
        self.signals = signals

    def fetch(self, url: str) -> Optional[str]:
        """
        Download a page body within timeout seconds, redirects included.

        The download runs on a worker thread. When the deadline passes the
        caller gets None immediately and the worker's socket is shut down,
        which ends any read that is still trickling in.

        Returns:
            The decoded HTML, or None on any failure.
        """
        deadline = time.monotonic() + self.timeout
        in_flight = {}

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='html-fetch')
        future = executor.submit(self._download, url, deadline, in_flight)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning(f"[HTML] Fetch of {url} exceeded {self.timeout}s")
            get_metrics().record_lookup_failure("html")
            self._abort(in_flight.get('response'))
            return None
        finally:
            executor.shutdown(wait=False)

    @staticmethod
    def _abort(resp: Optional[requests.Response]) -> None:
        raw = getattr(resp, 'raw', None)
        if raw is None:
            return
        try:
            raw.shutdown()
        except (OSError, ValueError) as e:
            logger.debug(f"[HTML] Socket shutdown skipped: {e!r}")

    def _get(self, url: str, deadline: float, in_flight: dict) -> requests.Response:
        """GET with redirects followed by hand, each hop limited to the time left."""
        http = self.session or requests

        for _ in range(MAX_REDIRECTS + 1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise requests.Timeout(f"fetch exceeded {self.timeout}s")

            resp = http.get(
                url,
                timeout=remaining,
                headers={'User-Agent': self.user_agent},
                allow_redirects=False,
                stream=True
            )
            in_flight['response'] = resp
            if not resp.is_redirect:
                return resp

            url = urljoin(resp.url or url, resp.headers['location'])
            resp.close()

        raise requests.TooManyRedirects(f"more than {MAX_REDIRECTS} redirects")

    def _download(self, url: str, deadline: float, in_flight: dict) -> Optional[str]:
        try:
            resp = self._get(url, deadline, in_flight)
        except Exception as e:
            logger.warning(f"[HTML] Fetch failed for {url}: {e!r}")
            get_metrics().record_lookup_failure("html")
            return None

        try:
            if resp.status_code != 200:
                logger.info(f"[HTML] {url} returned HTTP {resp.status_code}")
                get_metrics().record_lookup_failure("html")
                return None

            chunks = []
            size = 0
            for chunk in resp.iter_content(chunk_size=READ_CHUNK_BYTES):
                if time.monotonic() > deadline:
                    raise requests.Timeout(f"body read exceeded {self.timeout}s")
                chunks.append(chunk)
                size += len(chunk)
                if size >= MAX_BODY_BYTES:
                    logger.debug(f"[HTML] Truncating body of {url} at {size} bytes")
                    break

            body = b''.join(chunks)
            return body.decode(resp.encoding or 'utf-8', errors='replace')
        except Exception as e:
            logger.warning(f"[HTML] Body read failed for {url}: {e!r}")
            get_metrics().record_lookup_failure("html")
            return None
        finally:
            resp.close()

    def analyze(self, url: str) -> HTMLFeatures:
        html = self.fetch(url)
        if html is None:
            return HTMLFeatures.fetch_failed()
        return analyze_html(html, self.signals)

    __call__ = analyze
