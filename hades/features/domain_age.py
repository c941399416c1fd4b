"""
Domain Age Resolver - WHOIS-based registration age lookup.

Registries format creation dates in many different ways, so the resolver
tries a fixed sequence of layouts and falls back to scanning the raw record
text. Any failure (transport error, timeout, unparseable record, missing
creation date) resolves to "unknown" instead of raising: domain age is one
signal among several and its absence must only weaken the score.

resolve() returns Optional[int] (None = unknown). get_age_days() maps
unknown to the UNKNOWN_DOMAIN_AGE sentinel used in URLFeatures.
"""

import ipaddress
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import date, datetime, timedelta, timezone
from functools import partial
from typing import Any, Callable, Optional

import whois

from hades.config import DEFAULT_WHOIS_TIMEOUT
from hades.models import UNKNOWN_DOMAIN_AGE
from hades.observability import get_metrics

logger = logging.getLogger(__name__)

# Raw-record fallback, e.g. "created: 20010115 #4444540"
RAW_CREATED_PATTERN = re.compile(r'created:\s*([0-9]{8})', re.IGNORECASE)

# Tried in order, first match wins
CREATION_DATE_LAYOUTS = (
    '%Y-%m-%d',
    '%Y-%m-%dT%H:%M:%SZ',
    '%Y.%m.%d %H:%M:%S',
)


def whois_lookup(hostname: str, timeout: float = DEFAULT_WHOIS_TIMEOUT) -> Any:
    """
    Query WHOIS for a hostname; returns a python-whois WhoisEntry.

    timeout bounds each socket operation of the WHOIS client, so a lookup
    abandoned by the resolver still ends on its own.
    """
    return whois.whois(hostname, timeout=timeout)


def _expand_compact_date(value: str) -> str:
    """YYYYMMDD -> YYYY-MM-DD."""
    return f"{value[:4]}-{value[4:6]}-{value[6:8]}"


def normalize_creation_date(created: str) -> str:
    """
    Clean a raw creation date string before layout parsing.

    Drops registry suffix annotations ("20010115 #4444540") and expands
    bare 8-digit dates.
    """
    if '#' in created:
        created = created.split(' ')[0].strip()

    if len(created) == 8 and '-' not in created:
        created = _expand_compact_date(created)

    return created


def parse_creation_date(created: str) -> Optional[datetime]:
    """Parse a normalized creation date string against the known layouts."""
    created = normalize_creation_date(created.strip())
    if not created:
        return None

    for layout in CREATION_DATE_LAYOUTS:
        try:
            return datetime.strptime(created, layout)
        except ValueError:
            continue
    return None


def extract_creation_date(record: Any) -> Optional[datetime]:
    """
    Pull the creation date out of a WHOIS record.

    python-whois already converts most dates into datetime objects; values
    it could not convert stay strings and go through parse_creation_date().
    """
    created = record.get('creation_date') if hasattr(record, 'get') else None
    if isinstance(created, (list, tuple)):
        created = created[0] if created else None

    if isinstance(created, datetime):
        return created
    if isinstance(created, date):
        return datetime(created.year, created.month, created.day)

    if not created:
        raw_text = getattr(record, 'text', '') or ''
        match = RAW_CREATED_PATTERN.search(raw_text)
        if not match:
            return None
        created = _expand_compact_date(match.group(1))

    return parse_creation_date(str(created))


def age_in_days(created: datetime, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since creation; None for dates in the future."""
    if now is None:
        now = datetime.now(timezone.utc)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)

    days = (now - created) // timedelta(days=1)
    if days < 0:
        return None
    return days


class DomainAgeResolver:
    """
    Resolves a hostname's registration age in days.

    Args:
        timeout: Seconds to wait for a single WHOIS lookup
        lookup: WHOIS lookup callable (hostname -> record); defaults to
            python-whois with the same socket timeout
        clock: Returns the current aware datetime
    """

    def __init__(
        self,
        timeout: float = DEFAULT_WHOIS_TIMEOUT,
        lookup: Optional[Callable[[str], Any]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.timeout = timeout
        self.lookup = lookup or partial(whois_lookup, timeout=timeout)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _run_lookup(self, hostname: str) -> Any:
        """
        Run the blocking lookup on its own worker thread, bounded by timeout.

        Every lookup gets a fresh single-thread executor, so a hung lookup
        never queues behind or in front of another host's lookup.
        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='whois')
        future = executor.submit(self.lookup, hostname)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            raise
        finally:
            executor.shutdown(wait=False)

    def resolve(self, hostname: str) -> Optional[int]:
        """Return the domain age in days, or None when it cannot be determined."""
        if not hostname:
            return None

        # IP literals have no registration record
        try:
            ipaddress.ip_address(hostname)
            return None
        except ValueError:
            pass

        try:
            record = self._run_lookup(hostname)
        except Exception as e:
            logger.warning(f"[WHOIS] Lookup failed for {hostname}: {e!r}")
            get_metrics().record_lookup_failure("whois")
            return None

        if not record:
            logger.debug(f"[WHOIS] Empty record for {hostname}")
            return None

        try:
            created = extract_creation_date(record)
        except Exception as e:
            logger.warning(f"[WHOIS] Could not parse record for {hostname}: {e!r}")
            return None

        if created is None:
            logger.debug(f"[WHOIS] No creation date for {hostname}")
            return None

        return age_in_days(created, self.clock())

    def get_age_days(self, hostname: str) -> int:
        """Return the domain age in days, or UNKNOWN_DOMAIN_AGE (-1)."""
        age = self.resolve(hostname)
        return UNKNOWN_DOMAIN_AGE if age is None else age

    __call__ = get_age_days


_resolver: Optional[DomainAgeResolver] = None


def get_domain_age_days(hostname: str) -> int:
    """Resolve a hostname's age with the shared default resolver."""
    global _resolver
    if _resolver is None:
        _resolver = DomainAgeResolver()
    return _resolver.get_age_days(hostname)
