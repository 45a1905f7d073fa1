"""Text formatting shared by both renderers and the email body."""

import math
from typing import Any, Optional

from reportlab.lib.colors import Color

DEFAULT_BRAND = Color(0.23, 0.42, 0.36)


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def format_money(value: Any, currency: Optional[str] = None) -> str:
    """Two decimals plus an optional currency code: ``1234.5, "EUR"`` -> ``"1234.50 EUR"``.

    Missing or unparsable values (None, NaN, "abc") render as "".
    """
    number = _to_float(value)
    if number is None:
        return ""
    text = f"{number:.2f}"
    if currency:
        text = f"{text} {currency}"
    return text


def format_quantity(value: Any) -> str:
    """Whole numbers without decimals, otherwise at most six places: ``0.1 + 0.2`` -> ``"0.3"``."""
    number = _to_float(value)
    if number is None:
        return ""
    if number.is_integer():
        return str(int(number))
    text = f"{number:.6f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_rate(value: Any) -> str:
    """Tax rate as a percentage label; a missing rate reads as 0%."""
    number = _to_float(value)
    return f"{format_quantity(number or 0)}%"


def parse_hex_color(value: Optional[str], fallback: Color = DEFAULT_BRAND) -> Color:
    """`#rgb` or `#rrggbb` to a reportlab Color; anything else yields `fallback`."""
    if not value:
        return fallback
    digits = str(value).strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6:
        return fallback
    try:
        r, g, b = (int(digits[i:i + 2], 16) / 255 for i in (0, 2, 4))
    except ValueError:
        return fallback
    return Color(r, g, b)


def css_color(value: Optional[str], fallback: str = "#111111") -> str:
    """Normalised `#rrggbb` for HTML, or `fallback` when `value` is not a hex colour."""
    if not value:
        return fallback
    digits = str(value).strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6 or any(ch not in "0123456789abcdefABCDEF" for ch in digits):
        return fallback
    return f"#{digits.lower()}"
