"""
Display formatting for indicator values.

All strings are produced with a fixed convention (``,`` grouping, ``.`` decimal
point) so the same ``(value, kind, small_sample)`` triple always renders the
same way regardless of the host locale. Values are rounded half-up to the
indicator's precision and trailing zeros are dropped (``82.0`` -> ``82%``),
matching the tables published alongside the map.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

MISSING_VALUE = "n/a"
SMALL_SAMPLE_SUFFIX = " *"


@dataclass(frozen=True)
class IndicatorFormat:
    """How one kind of indicator is rendered."""

    name: str
    decimals: int
    percent: bool = False
    small_sample_suffix: bool = False  # flag " *" when the town's sample is small


COUNT = IndicatorFormat("count", decimals=0)
DECIMAL_1DP = IndicatorFormat("decimal-1dp", decimals=1)
RATE_2DP = IndicatorFormat("rate-2dp", decimals=2)
PERCENT_1DP = IndicatorFormat("percent-1dp", decimals=1, percent=True)
# Journey-to-Work resident walk and bike shares
RESIDENT_SHARE_PCT = IndicatorFormat(
    "resident-share-pct", decimals=1, percent=True, small_sample_suffix=True
)


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a raw attribute to a float.

    Strings may carry grouping commas or a percent sign. Returns None for
    missing, blank, non-numeric or non-finite values.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.replace(",", "").replace("%", "").strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def format_number(number: float, decimals: int) -> str:
    """Round half-up to ``decimals`` places, group thousands, drop trailing zeros."""
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(repr(float(number))).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = rounded.copy_abs()

    text = f"{rounded:,.{decimals}f}"
    if decimals > 0:
        text = text.rstrip("0").rstrip(".")
    return text


def format_value(value: Any, kind: IndicatorFormat, small_sample: bool = False) -> str:
    """
    Format a raw indicator value for display.

    Args:
        value: Raw value (number, numeric string, None or NaN)
        kind: Indicator format
        small_sample: Whether the town's small-sample flag is set

    Returns:
        Display string, or ``MISSING_VALUE`` when the value is not numeric
    """
    number = to_number(value)
    if number is None:
        return MISSING_VALUE

    text = format_number(number, kind.decimals)
    if kind.percent:
        text += "%"
    if small_sample and kind.small_sample_suffix:
        text += SMALL_SAMPLE_SUFFIX
    return text
