"""
Remaining-debt lookups for stored properties.

Bridges persisted mortgage rows and the pure amortization engine. Corrupt
stored terms degrade to "no figure" so one bad record cannot break a
portfolio listing.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from app.calculations.mortgage import (
    InvalidTermsError,
    calculate_remaining_balance,
)
from app.config import get_settings
from app.db.models import Property

logger = logging.getLogger(__name__)


def local_today(tz_name: Optional[str] = None) -> date:
    """Today's calendar date in the configured local timezone."""
    tz = ZoneInfo(tz_name or get_settings().local_timezone)
    return datetime.now(tz).date()


def remaining_debt(prop: Property, as_of: Optional[date] = None) -> Optional[Decimal]:
    """
    Remaining mortgage balance of a property.

    Args:
        prop: Property with an optional mortgage
        as_of: Reference date, defaults to local today

    Returns:
        Full-precision balance, or None when the property is mortgage-free
        or its stored terms are invalid
    """
    if prop.mortgage is None:
        return None

    if as_of is None:
        as_of = local_today()

    try:
        return calculate_remaining_balance(prop.mortgage.to_terms(), as_of)
    except InvalidTermsError as e:
        logger.warning(f"Mortgage data corrupt for property {prop.id}: {e}")
        return None
