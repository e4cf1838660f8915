"""
Number, currency, date and text formatting for es-AR users.

Amounts use "." for thousands and "," for decimals; currency is shown as
``$`` followed by a non-breaking space, matching browser es-AR output.
"""

import math
import re
import unicodedata
from datetime import date, datetime
from typing import Optional, Union

NBSP = "\u00a0"
SPANISH_MONTHS = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]
QUARTER_FRACTIONS = {0.25: "1/4", 0.5: "1/2", 0.75: "3/4"}
PHONE_MAX_DIGITS = 14
MOBILE_PREFIX = "+54 9 "


def _es_ar_number(value: float, decimals: int) -> str:
    text = f"{abs(value):,.{decimals}f}"
    # 1,234.50 -> 1.234,50
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    # No sign when the value rounds to zero
    if value < 0 and round(abs(value), decimals) != 0:
        return f"-{text}"
    return text


def format_currency(price: float, minimum_fraction_digits: int = 2) -> str:
    number = _es_ar_number(price, minimum_fraction_digits)
    if number.startswith("-"):
        return f"-${NBSP}{number[1:]}"
    return f"${NBSP}{number}"


def format_to_million(price: float) -> str:
    return format_currency(price / 1_000_000) + "M"


def format_quantity(quantity: float) -> str:
    """Whole part plus a quarter fraction, e.g. ``2 + 1/2``; other fractions are dropped."""
    whole = math.trunc(quantity)
    fraction = QUARTER_FRACTIONS.get(abs(quantity - whole))
    if fraction is None:
        return str(whole)
    if whole != 0:
        sign = "-" if whole < 0 else "+"
        return f"{whole} {sign} {fraction}"
    return f"{'-' if quantity < 0 else ''}{fraction}"


def formatted_date(value: Union[str, date, datetime]) -> str:
    """``2024-03-05`` -> ``Mar 5, 2024``."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return f"{SPANISH_MONTHS[value.month - 1]} {value.day}, {value.year}"


def format_status(status: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), status.replace("-", " "))


def calculate_ratio(total: float, part: float) -> float:
    if total == 0:
        return 0
    return part * 100 / total


def format_phone_number(phone: Optional[str] = "") -> str:
    """Normalise an Argentinian phone number to ``+54 9 (111) 111-1111``."""
    phone = phone or ""
    if phone == "+54 9":
        return ""

    has_mobile_nine = " 9 " in phone
    clean = re.sub(r"[^\d+]", "", phone)

    prefix = ""
    if clean.startswith("+54") and not has_mobile_nine:
        prefix = MOBILE_PREFIX
        clean = clean[3:]
    elif clean.startswith("+549") and has_mobile_nine:
        prefix = MOBILE_PREFIX
        clean = clean[4:]

    if len(clean) >= 3 and not clean.startswith("+54"):
        clean = re.sub(r"^(\d{3})(\d)", r"(\1) \2", clean)
    if len(clean) >= 9:
        clean = re.sub(r"^(\(\d{3}\) \d{3})(\d{1,4})", r"\1-\2", clean)

    return prefix + clean[:PHONE_MAX_DIGITS]


def slugify(text: str) -> str:
    text = unicodedata.normalize("NFD", str(text).lower())
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"[^a-z0-9 \-]", "", text)
    return re.sub(r"\s+", "-", text)


def codify_code(code: str) -> str:
    """Payment method codes: upper case, spaces to underscores."""
    code = re.sub(r"\s+", "_", code.upper())
    return re.sub(r"[^A-Z0-9_]", "", code)


def parse_decimal(value: Union[str, float, int, None]) -> Union[float, str]:
    """
    Parse user input that may use "," or "." as decimal separator.

    Partial input is returned as a string so typing is not disrupted:
    ``"3,"`` stays ``"3."`` and ``"3.0"`` stays ``"3.0"``.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, (int, float)):
        return 0 if isinstance(value, float) and math.isnan(value) else value

    normalized = str(value).replace(",", ".", 1)
    if normalized.endswith("."):
        return normalized
    try:
        parsed = float(normalized)
    except ValueError:
        return 0
    if math.isnan(parsed):
        return 0

    shown = str(int(parsed)) if parsed.is_integer() else repr(parsed)
    if "." in normalized and shown != normalized:
        return normalized
    return parsed


def format_for_input(value: Optional[float], decimals: int = 2) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.{decimals}f}"


def format_for_display(value: Optional[float], decimals: int = 2) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "0"
    text = _es_ar_number(value, decimals)
    if "," in text:
        text = text.rstrip("0").rstrip(",")
    return text
