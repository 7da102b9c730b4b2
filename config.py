"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

from models.subscription import CURRENCIES, DEFAULT_EXCHANGE_RATES

load_dotenv()


# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "substrack")
DB_USER: str = os.getenv("DB_USER", "substrack_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "5"))

# ── Defaults for new users ────────────────────────────────
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "INR").upper()
DEFAULT_REMINDER_DAYS: int = int(os.getenv("DEFAULT_REMINDER_DAYS", "3"))

# ── Summary windows ───────────────────────────────────────
UPCOMING_WINDOW_DAYS: int = int(os.getenv("UPCOMING_WINDOW_DAYS", "7"))
MONTH_WINDOW_DAYS: int = int(os.getenv("MONTH_WINDOW_DAYS", "30"))


# ── Exchange rates ────────────────────────────────────────
def parse_rate_overrides(raw: str) -> dict[str, float]:
    """
    Parse "INR=84.1,EUR=0.93" into {'INR': 84.1, 'EUR': 0.93}.

    Raises:
        ValueError: On an unknown currency, a malformed pair,
            or a rate that is not a positive number.
    """
    overrides: dict[str, float] = {}
    for pair in raw.split(","):
        if not pair.strip():
            continue
        code, sep, value = pair.partition("=")
        code = code.strip().upper()
        if not sep:
            raise ValueError(f"Malformed exchange rate override: {pair!r}")
        if code not in CURRENCIES:
            raise ValueError(f"Unknown currency in exchange rate override: {code}")
        rate = float(value)
        if rate <= 0:
            raise ValueError(f"Exchange rate for {code} must be positive, got {rate}")
        overrides[code] = rate
    return overrides


EXCHANGE_RATES: dict[str, float] = {
    **DEFAULT_EXCHANGE_RATES,
    **parse_rate_overrides(os.getenv("EXCHANGE_RATE_OVERRIDES", "")),
}

if DEFAULT_CURRENCY not in CURRENCIES:
    raise ValueError(f"DEFAULT_CURRENCY must be one of {CURRENCIES}, got {DEFAULT_CURRENCY}")
