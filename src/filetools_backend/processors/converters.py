"""Unit, currency, number-base, timezone and text-encoding conversions."""

from __future__ import annotations

import base64
import binascii
import string
from datetime import datetime, timezone
from typing import Any, Callable, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Factors to the base unit of each family (metre, gram, litre, square metre)
UNIT_FACTORS: Dict[str, Dict[str, float]] = {
    "length": {
        "mm": 0.001,
        "cm": 0.01,
        "m": 1,
        "km": 1000,
        "inch": 0.0254,
        "ft": 0.3048,
        "yard": 0.9144,
        "mile": 1609.34,
    },
    "weight": {
        "mg": 0.001,
        "g": 1,
        "kg": 1000,
        "oz": 28.3495,
        "lb": 453.592,
        "ton": 1_000_000,
    },
    "volume": {
        "ml": 0.001,
        "l": 1,
        "gallon": 3.78541,
        "quart": 0.946353,
        "pint": 0.473176,
        "cup": 0.236588,
        "floz": 0.0295735,
    },
    "area": {
        "sqmm": 0.000001,
        "sqcm": 0.0001,
        "sqm": 1,
        "sqkm": 1_000_000,
        "sqin": 0.00064516,
        "sqft": 0.092903,
        "sqyard": 0.836127,
        "acre": 4046.86,
        "hectare": 10000,
    },
}

_TO_CELSIUS: Dict[str, Callable[[float], float]] = {
    "celsius": lambda value: value,
    "fahrenheit": lambda value: (value - 32) * 5 / 9,
    "kelvin": lambda value: value - 273.15,
}
_FROM_CELSIUS: Dict[str, Callable[[float], float]] = {
    "celsius": lambda value: value,
    "fahrenheit": lambda value: value * 9 / 5 + 32,
    "kelvin": lambda value: value + 273.15,
}

# Fixed reference rates against USD; no live rate source is consulted
EXCHANGE_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.85,
    "GBP": 0.73,
    "JPY": 110.0,
    "CNY": 6.45,
    "CAD": 1.25,
    "AUD": 1.35,
    "CHF": 0.92,
    "SEK": 8.5,
    "NOK": 8.8,
}

DIGITS = string.digits + string.ascii_uppercase
ENCODINGS = ("utf8", "base64", "hex", "ascii")
TIME_FORMAT = "%m/%d/%Y, %H:%M:%S"


def convert_unit(value: float, from_unit: str, to_unit: str, unit_type: str) -> float:
    """
    Convert ``value`` between two units of the same family.

    Raises:
        ValueError: For an unknown family or unit

    Example:
        >>> convert_unit(1, "km", "m", "length")
        1000.0
        >>> convert_unit(100, "celsius", "fahrenheit", "temperature")
        212.0
    """
    if unit_type == "temperature":
        if from_unit not in _TO_CELSIUS or to_unit not in _FROM_CELSIUS:
            raise ValueError(f"Unsupported temperature conversion: {from_unit} to {to_unit}")
        return float(_FROM_CELSIUS[to_unit](_TO_CELSIUS[from_unit](value)))

    factors = UNIT_FACTORS.get(unit_type)
    if factors is None:
        raise ValueError(f"Unsupported unit type: {unit_type}")
    if from_unit not in factors or to_unit not in factors:
        raise ValueError(f"Unsupported unit conversion: {from_unit} to {to_unit}")
    return value * factors[from_unit] / factors[to_unit]


def convert_currency(amount: float, from_currency: str, to_currency: str) -> Dict[str, Any]:
    if from_currency not in EXCHANGE_RATES or to_currency not in EXCHANGE_RATES:
        raise ValueError(f"Unsupported currency: {from_currency} or {to_currency}")
    rate = EXCHANGE_RATES[to_currency] / EXCHANGE_RATES[from_currency]
    return {
        "originalAmount": amount,
        "convertedAmount": round(amount * rate, 2),
        "fromCurrency": from_currency,
        "toCurrency": to_currency,
        "exchangeRate": round(rate, 4),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _to_base(value: int, base: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, remainder = divmod(value, base)
        digits.append(DIGITS[remainder])
    return sign + "".join(reversed(digits))


def convert_number_base(number: str, from_base: int, to_base: int) -> str:
    """
    Re-express an integer in another base (2-36), upper-case digits.

    Raises:
        ValueError: For a base outside 2-36 or digits invalid in ``from_base``

    Example:
        >>> convert_number_base("255", 10, 16)
        "FF"
    """
    if not (2 <= from_base <= 36 and 2 <= to_base <= 36):
        raise ValueError("Base must be between 2 and 36")
    try:
        value = int(number.strip(), from_base)
    except ValueError as exc:
        raise ValueError("Invalid number for the specified base") from exc
    return _to_base(value, to_base)


def convert_timezone(moment: datetime, from_timezone: str, to_timezone: str) -> Dict[str, str]:
    """
    Express ``moment`` in another IANA timezone.

    A naive ``moment`` is wall-clock time in ``from_timezone``; an aware one
    is used as-is.
    """
    try:
        source_zone, target_zone = ZoneInfo(from_timezone), ZoneInfo(to_timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {exc}") from exc
    localized = moment.replace(tzinfo=source_zone) if moment.tzinfo is None else moment.astimezone(source_zone)
    converted = localized.astimezone(target_zone)
    return {
        "originalDateTime": localized.strftime(TIME_FORMAT),
        "convertedDateTime": converted.strftime(TIME_FORMAT),
        "fromTimezone": from_timezone,
        "toTimezone": to_timezone,
    }


def _decode(text: str, encoding: str) -> bytes:
    try:
        if encoding == "utf8":
            return text.encode("utf-8")
        if encoding == "ascii":
            return text.encode("ascii", errors="replace")
        if encoding == "base64":
            return base64.b64decode(text.strip())
        if encoding == "hex":
            return bytes.fromhex(text.strip())
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Input is not valid {encoding}") from exc
    raise ValueError(f"Unsupported encoding: {encoding}")


def convert_encoding(text: str, from_encoding: str, to_encoding: str) -> str:
    """
    Re-encode text between UTF-8, ASCII, Base64 and hex representations.

    Example:
        >>> convert_encoding("hi", "utf8", "hex")
        "6869"
    """
    from_encoding, to_encoding = from_encoding.lower().replace("-", ""), to_encoding.lower().replace("-", "")
    raw = _decode(text, from_encoding)
    if to_encoding == "utf8":
        return raw.decode("utf-8", errors="replace")
    if to_encoding == "ascii":
        return raw.decode("ascii", errors="replace")
    if to_encoding == "base64":
        return base64.b64encode(raw).decode("ascii")
    if to_encoding == "hex":
        return raw.hex()
    raise ValueError(f"Unsupported encoding: {to_encoding}")
