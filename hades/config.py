"""
Configuration - Environment-driven service settings.

All knobs are read once from environment variables into an immutable
Settings object. The scoring core only receives the values it needs
(timeouts, user agent); nothing reads os.environ at request time.

Environment Variables:
    DATABASE_URL: Backing store DSN (required by the production entry point)
    PORT: Server port (default: 8080)
    FLASK_DEBUG: 'true' enables Flask debug mode (default: false)
    LOG_LEVEL: Root log level name (default: INFO)
    LOG_JSON: 'true' switches to JSON log lines (default: false)
    LOG_FILE: Optional log file path
    HTML_FETCH_TIMEOUT: Page fetch timeout in seconds (default: 10)
    WHOIS_TIMEOUT: WHOIS lookup timeout in seconds (default: 8)
    MAX_BATCH_SIZE: Maximum URLs per analyze request, 0 for no limit (default: 0)
    CORS_ORIGINS: Comma separated allowed origins (default: *)
    HADES_USER_AGENT: User-Agent header sent with page fetches
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_HTML_FETCH_TIMEOUT = 10.0
DEFAULT_WHOIS_TIMEOUT = 8.0
# 0 means no limit
DEFAULT_MAX_BATCH_SIZE = 0
DEFAULT_USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0.0.0'


@dataclass(frozen=True)
class Settings:
    """Immutable service configuration."""
    database_url: Optional[str] = None
    port: int = DEFAULT_PORT
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None
    html_fetch_timeout: float = DEFAULT_HTML_FETCH_TIMEOUT
    whois_timeout: float = DEFAULT_WHOIS_TIMEOUT
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    cors_origins: Tuple[str, ...] = ("*",)
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_number(name: str, default, cast, allow_zero=False):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = cast(value)
    except ValueError:
        logger.warning(f"[CONFIG] Invalid {name}={value!r}, using default {default}")
        return default
    if parsed < 0 or (parsed == 0 and not allow_zero):
        logger.warning(f"[CONFIG] Out of range {name}={value!r}, using default {default}")
        return default
    return parsed


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    origins = os.getenv('CORS_ORIGINS', '*')
    return Settings(
        database_url=os.getenv('DATABASE_URL') or None,
        port=_env_number('PORT', DEFAULT_PORT, int),
        debug=_env_bool('FLASK_DEBUG'),
        log_level=os.getenv('LOG_LEVEL', 'INFO'),
        log_json=_env_bool('LOG_JSON'),
        log_file=os.getenv('LOG_FILE') or None,
        html_fetch_timeout=_env_number('HTML_FETCH_TIMEOUT', DEFAULT_HTML_FETCH_TIMEOUT, float),
        whois_timeout=_env_number('WHOIS_TIMEOUT', DEFAULT_WHOIS_TIMEOUT, float),
        max_batch_size=_env_number('MAX_BATCH_SIZE', DEFAULT_MAX_BATCH_SIZE, int, allow_zero=True),
        cors_origins=tuple(o.strip() for o in origins.split(',') if o.strip()) or ("*",),
        user_agent=os.getenv('HADES_USER_AGENT', DEFAULT_USER_AGENT),
    )
