"""
JuriSync Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from urllib.parse import urlparse
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

_LOCAL_HOSTS = {'localhost', '127.0.0.1', '::1'}


def _parse_days(raw: str) -> tuple:
    """Parse a comma-separated list of day offsets, e.g. '7,0'."""
    return tuple(int(part) for part in raw.split(',') if part.strip())


class Config:
    """Application configuration."""

    # REST API
    API_URL = os.getenv('JURISYNC_API_URL', 'http://localhost:3000').rstrip('/')
    API_TOKEN = os.getenv('JURISYNC_API_TOKEN', '')
    API_TIMEOUT_SECONDS = float(os.getenv('API_TIMEOUT_SECONDS', '30'))

    _api_parts = urlparse(API_URL)
    if _api_parts.scheme == 'http' and _api_parts.hostname not in _LOCAL_HOSTS:
        _logger.warning(
            f"JURISYNC_API_URL uses plain HTTP for remote host {_api_parts.hostname}; "
            "bearer tokens and contract data travel unencrypted. Use HTTPS."
        )

    # Days before end date at which a contract counts as "expiring soon"
    REMINDER_WINDOW_DAYS = int(os.getenv('REMINDER_WINDOW_DAYS', '30'))
    if REMINDER_WINDOW_DAYS < 0:
        _logger.critical(f"REMINDER_WINDOW_DAYS={REMINDER_WINDOW_DAYS} is negative, cannot start.")
        raise ValueError("REMINDER_WINDOW_DAYS must be zero or positive.")

    # Months covered by the monthly chart series
    CHART_WINDOW_MONTHS = int(os.getenv('CHART_WINDOW_MONTHS', '12'))
    if CHART_WINDOW_MONTHS < 1:
        _logger.critical(f"CHART_WINDOW_MONTHS={CHART_WINDOW_MONTHS} is below 1, cannot start.")
        raise ValueError("CHART_WINDOW_MONTHS must be at least 1.")

    # Expiry notices go out this many days before the end date
    NOTIFY_DAYS_BEFORE = _parse_days(os.getenv('NOTIFY_DAYS_BEFORE', '7,0'))

    # Display
    CURRENCY = os.getenv('CURRENCY', 'BRL')
    TIMEZONE = os.getenv('TIMEZONE', 'America/Sao_Paulo')


# Singleton instance
config = Config()
