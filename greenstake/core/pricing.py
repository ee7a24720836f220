"""
Oracle price handling and settlement quotes.

Converts the contract's fixed-point energy price into decimals and
quotes PYUSD settlement amounts for ETK trades.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_DOWN

PYUSD_QUANTUM = Decimal("0.01")
DEFAULT_MAX_PRICE_AGE = 60  # seconds


@dataclass(frozen=True)
class OraclePrice:
    """Price as returned by getCurrentEnergyPrice: price * 10**expo."""
    price: int
    expo: int
    publish_time: int  # unix seconds

    def __post_init__(self):
        """Validate the price is positive."""
        if self.price <= 0:
            raise ValueError("oracle price must be > 0")

    @property
    def value(self) -> Decimal:
        return Decimal(self.price).scaleb(self.expo)

    def is_stale(self, now: datetime, max_age: int = DEFAULT_MAX_PRICE_AGE) -> bool:
        """Whether the price was published more than max_age seconds before now."""
        published = datetime.fromtimestamp(self.publish_time, tz=timezone.utc)
        return (now - published).total_seconds() > max_age


def quote_settlement(etk_amount: Decimal, price: OraclePrice) -> Decimal:
    """Quote the PYUSD amount for an ETK amount at the oracle price.

    Args:
        etk_amount: Amount of ETK being traded
        price: Current oracle price

    Returns:
        PYUSD amount rounded DOWN to 2 decimal places

    Raises:
        ValueError: If etk_amount is not positive
    """
    if etk_amount <= 0:
        raise ValueError("etk_amount must be > 0")
    return (etk_amount * price.value).quantize(PYUSD_QUANTUM, rounding=ROUND_DOWN)
