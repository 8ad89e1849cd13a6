"""
Exchange rate lookup (1 base = X destination)
"""
from __future__ import annotations
import logging
from typing import Optional

import requests

from config import DEFAULT_RATE_URL

logger = logging.getLogger(__name__)


def fetch_rate(
    base_currency: str,
    destination_currency: str,
    url: str = DEFAULT_RATE_URL,
    timeout: float = 10,
) -> Optional[float]:
    """
    Fetch the latest rate from the exchange rate API.
    Returns None when the service is unreachable or the answer is unusable.
    """
    base_currency = base_currency.upper()
    destination_currency = destination_currency.upper()
    if base_currency == destination_currency:
        return 1.0

    try:
        response = requests.get(url.format(base=base_currency), timeout=timeout)
        response.raise_for_status()
        data = response.json()
        rate = float(data["rates"][destination_currency])
    except requests.exceptions.RequestException as ex:
        logger.warning("Failed to fetch exchange rate %s->%s: %s", base_currency, destination_currency, ex)
        return None
    except (ValueError, KeyError, TypeError) as ex:
        logger.warning("Unexpected exchange rate response for %s->%s: %s", base_currency, destination_currency, ex)
        return None

    if rate <= 0:
        logger.warning("Ignoring non-positive exchange rate %s for %s", rate, destination_currency)
        return None
    return rate
