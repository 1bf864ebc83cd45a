"""Rate Conversion: currency amount -> native ledger units via a trustline limit used as rate.

Invariants:
    - native = round(amount * rate, 2), then scaled by 10^decimals to the smallest unit
    - Missing, blank, non-numeric, non-finite or negative rates raise RateConversionError
    - Decimal arithmetic only: no float rounding drift

Design Decisions:
    - The rate direction (currency-per-native vs native-per-currency) is taken literally
      from the trustline limit; no inversion is applied
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from vanity_custody.core.errors import RateConversionError

_TWO_PLACES = Decimal("0.01")


def parse_rate(raw: object) -> Decimal:
    """Parse a trustline limit into a Decimal rate or raise."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise RateConversionError("Exchange rate unavailable")
    try:
        rate = Decimal(str(raw).strip())
    except InvalidOperation:
        raise RateConversionError(f"Exchange rate is not numeric: {raw!r}")
    if not rate.is_finite() or rate < 0:
        raise RateConversionError(f"Exchange rate is not usable: {raw!r}")
    return rate


def to_native_units(amount: object, rate: object, decimals: int = 6) -> int:
    """Convert `amount` at `rate` into the ledger's smallest native unit.

    >>> to_native_units(10, "0.5")
    5000000
    """
    parsed_rate = parse_rate(rate)
    try:
        parsed_amount = Decimal(str(amount))
    except InvalidOperation:
        raise RateConversionError(f"Amount is not numeric: {amount!r}")
    if not parsed_amount.is_finite():
        raise RateConversionError(f"Amount is not usable: {amount!r}")

    native = (parsed_amount * parsed_rate).quantize(
        _TWO_PLACES, rounding=ROUND_HALF_UP,
    )
    return int(native.scaleb(decimals).to_integral_value(rounding=ROUND_HALF_UP))
