"""
Utility functions for TripLedger application
"""
from __future__ import annotations
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

# Currencies displayed without fractional digits
ZERO_DECIMAL_CURRENCIES = {"IDR", "JPY", "KRW", "VND", "CLP", "ISK", "HUF", "TWD"}


def now_millis() -> int:
    """Current time as epoch milliseconds"""
    return int(time.time() * 1000)


def parse_date(s: str) -> int:
    """Parse YYYY-MM-DD date string into epoch millis (UTC midnight)"""
    d = datetime.strptime(s.strip(), "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return int(d.timestamp() * 1000)


def format_date(ms: int) -> str:
    """Format epoch millis as YYYY-MM-DD (UTC)"""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def today_millis() -> int:
    """Today's date (UTC midnight) as epoch millis"""
    return parse_date(datetime.now(timezone.utc).strftime("%Y-%m-%d"))


def safe_float(x, default: Optional[float] = 0.0) -> Optional[float]:
    """Convert value to float safely, returning default on error"""
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def new_id() -> str:
    return str(uuid.uuid4())


def app_dir() -> str:
    """
    Get application data directory: $TRIP_LEDGER_HOME or ~/.trip_ledger
    Creates directory if it doesn't exist.
    """
    path = os.environ.get("TRIP_LEDGER_HOME") or os.path.expanduser("~/.trip_ledger")
    os.makedirs(path, exist_ok=True)
    return path


# ---------- Amounts ----------

def is_negligible(value: float, eps: float) -> bool:
    """True when value lies within eps of zero"""
    return abs(value) < eps


def to_base(amount: float, exchange_rate: float) -> Optional[float]:
    """Convert a destination-currency amount to the base currency.

    Returns None when the rate is unusable (not > 0).
    """
    if not exchange_rate or exchange_rate <= 0:
        return None
    return amount / exchange_rate


def currency_decimals(code: str) -> int:
    return 0 if (code or "").upper() in ZERO_DECIMAL_CURRENCIES else 2


def format_money(value: float, code: str) -> str:
    """Format amount with thousands separator and currency code, e.g. 'IDR 1,200,000'"""
    decimals = currency_decimals(code)
    value = round(value, decimals) + 0.0  # no "-0"
    return f"{code} {value:,.{decimals}f}"
