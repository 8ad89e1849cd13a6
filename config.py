"""
Configuration and data loading/saving for TripLedger
"""
from __future__ import annotations
import json
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models import Category, Expense, Group, Ledger
from utils import app_dir, new_id, now_millis, safe_float

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2
MIN_GROUPS = 2
MAX_GROUPS = 5
DEFAULT_RATE = 2200.0
DEFAULT_EPSILON = 0.01
DEFAULT_LEDGER_NAME = "New Ledger"
DEFAULT_DESTINATION_CURRENCY = "IDR"
DEFAULT_BASE_CURRENCY = "CNY"
DEFAULT_RATE_URL = "https://api.exchangerate-api.com/v4/latest/{base}"

# destination -> currency code
DESTINATIONS: Dict[str, str] = {
    "Indonesia": "IDR",
    "Thailand": "THB",
    "Japan": "JPY",
    "South Korea": "KRW",
    "Vietnam": "VND",
    "Malaysia": "MYR",
    "Singapore": "SGD",
    "United States": "USD",
    "United Kingdom": "GBP",
    "Eurozone": "EUR",
    "Australia": "AUD",
    "China": "CNY",
}

# old records stored the payer as a label instead of a group id
LEGACY_PAYERS = {"Family 1": "f1", "Family 2": "f2"}

CATEGORY_CHOICES = [c.value for c in Category]

LEGACY_CATEGORIES = {
    "住宿": Category.ACCOMMODATION,
    "交通": Category.TRANSPORT,
    "餐饮": Category.FOOD,
    "娱乐": Category.ENTERTAINMENT,
    "购物": Category.SHOPPING,
    "其他": Category.OTHER,
}


@dataclass
class Settings:
    """Runtime settings, overridable through environment variables"""

    home: str = field(default_factory=lambda: os.getenv("TRIP_LEDGER_HOME", ""))
    settlement_epsilon: float = field(
        default_factory=lambda: safe_float(os.getenv("TRIP_LEDGER_EPSILON"), DEFAULT_EPSILON)
    )
    rate_url: str = field(default_factory=lambda: os.getenv("TRIP_LEDGER_RATE_URL", DEFAULT_RATE_URL))
    log_level: str = field(default_factory=lambda: os.getenv("TRIP_LEDGER_LOG_LEVEL", "INFO"))

    def data_dir(self) -> str:
        if self.home:
            os.makedirs(self.home, exist_ok=True)
            return self.home
        return app_dir()


def load_settings() -> Settings:
    settings = Settings()
    if settings.settlement_epsilon is None or settings.settlement_epsilon <= 0:
        logger.warning("Ignoring invalid TRIP_LEDGER_EPSILON, using %s", DEFAULT_EPSILON)
        settings.settlement_epsilon = DEFAULT_EPSILON
    return settings


def default_groups() -> List[Group]:
    return [Group("f1", "Family 1", 4), Group("f2", "Family 2", 2)]


def load_groups(path: str) -> List[Group]:
    """Load groups list from JSON file"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object")
        return [_upgrade_group(g, i) for i, g in enumerate(_objects(data.get("groups"), "groups"))]
    except FileNotFoundError:
        return []


def get_default_ledger(name: str = DEFAULT_LEDGER_NAME, base: Optional[str] = None) -> Ledger:
    """Create default ledger with groups loaded from the app directory"""
    base = base or app_dir()
    groups = load_groups(os.path.join(base, "groups.json"))
    if len(groups) < MIN_GROUPS:
        groups = default_groups()

    return Ledger(
        name=name,
        groups=groups[:MAX_GROUPS],
        expenses=[],
        exchange_rate=DEFAULT_RATE,
        destination_currency=DEFAULT_DESTINATION_CURRENCY,
        base_currency=DEFAULT_BASE_CURRENCY,
        last_updated=now_millis(),
    )


def ledger_to_dict(ledger: Ledger) -> dict:
    """Convert Ledger object to dictionary for JSON serialization"""
    return {
        "version": ledger.version,
        "name": ledger.name,
        "destination": ledger.destination,
        "destination_currency": ledger.destination_currency,
        "base_currency": ledger.base_currency,
        "exchange_rate": ledger.exchange_rate,
        "last_updated": ledger.last_updated,
        "groups": [{"id": g.id, "name": g.name, "count": g.count} for g in ledger.groups],
        "expenses": [
            {
                "id": e.id,
                "date": e.date,
                "description": e.description,
                "amount": e.amount,
                "category": e.category.value,
                "payer_id": e.payer_id,
            } for e in ledger.expenses
        ],
    }


def _first(d: dict, *keys, default=None):
    """Value of the first key present (and not None) in d"""
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return default


def parse_category(value) -> Category:
    """Map a stored category (current or legacy spelling) onto Category"""
    if isinstance(value, Category):
        return value
    s = str(value or "").strip()
    if s in LEGACY_CATEGORIES:
        return LEGACY_CATEGORIES[s]
    for c in Category:
        if s.lower() in (c.value.lower(), c.name.lower()):
            return c
    return Category.OTHER


def _safe_int(x, default: int) -> int:
    value = safe_float(x, None)
    if value is None or not math.isfinite(value):
        return default
    return int(value)


def _objects(value, label: str) -> list:
    """A list of JSON objects, or ValueError"""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise ValueError(f"Ledger document: {label} must be a list of objects")
    return value


def _upgrade_group(raw: dict, index: int) -> Group:
    return Group(
        id=str(raw.get("id") or f"f{index + 1}"),
        name=str(raw.get("name") or f"Family {index + 1}"),
        count=max(0, _safe_int(raw.get("count"), 0)),
    )


def _upgrade_expense(raw: dict) -> Expense:
    amount = _first(raw, "amount", "amountIDR", default=0.0)
    payer_id = _first(raw, "payer_id", "payerId")
    if not payer_id:
        payer_id = LEGACY_PAYERS.get(raw.get("payer"), raw.get("payer") or "")
    return Expense(
        id=str(raw.get("id") or new_id()),
        date=_safe_int(raw.get("date"), 0),
        description=str(raw.get("description") or ""),
        amount=float(safe_float(amount, 0.0)),
        category=parse_category(raw.get("category")),
        payer_id=str(payer_id),
    )


def upgrade(raw: dict) -> Ledger:
    """
    Convert a stored ledger document of any known layout into a Ledger.
    Older documents used camelCase keys, `amountIDR`, payer labels instead of
    group ids and two fixed family headcounts instead of a groups list.
    """
    if not isinstance(raw, dict):
        raise ValueError("Ledger document must be a JSON object")

    raw_groups = _first(raw, "groups", "families")
    if raw_groups is not None:
        groups = [_upgrade_group(g, i) for i, g in enumerate(_objects(raw_groups, "groups"))]
    else:
        c1 = _safe_int(raw.get("family1Count"), 4)
        c2 = _safe_int(raw.get("family2Count"), 2)
        groups = [Group("f1", "Family 1", max(0, c1)), Group("f2", "Family 2", max(0, c2))]

    rate = safe_float(_first(raw, "exchange_rate", "exchangeRate"), None)
    if rate is None:
        rate = DEFAULT_RATE

    ledger = Ledger(
        name=str(_first(raw, "name", "ledgerName", default=DEFAULT_LEDGER_NAME)),
        groups=groups,
        expenses=[_upgrade_expense(e) for e in _objects(raw.get("expenses"), "expenses")],
        exchange_rate=float(rate),
        destination_currency=str(_first(raw, "destination_currency", "currencyCode",
                                         default=DEFAULT_DESTINATION_CURRENCY)),
        base_currency=str(_first(raw, "base_currency", "baseCurrencyCode", default=DEFAULT_BASE_CURRENCY)),
        destination=str(_first(raw, "destination", "destinationLabel", default="")),
        last_updated=_safe_int(_first(raw, "last_updated", "lastUpdated"), 0),
        version=SCHEMA_VERSION,
    )
    if _safe_int(raw.get("version"), 1) < SCHEMA_VERSION:
        logger.debug("Upgraded ledger %r to schema version %d", ledger.name, SCHEMA_VERSION)
    return ledger


def load_ledger_file(path: str) -> Ledger:
    """Read a ledger JSON file (backup or store entry)"""
    with open(path, "r", encoding="utf-8") as f:
        try:
            d = json.load(f)
        except json.JSONDecodeError as ex:
            raise ValueError(f"Invalid ledger file {path}: {ex}") from ex
    return upgrade(d)


def save_ledger_file(ledger: Ledger, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(ledger_to_dict(ledger), f, ensure_ascii=False, indent=2)
