"""
Lenient value parsing shared by the catalog loader, the profile normalizer and the API.
Lender catalogs and form payloads carry numbers as "$1.5mm", "80%", "720+" or camelCase keys;
everything here degrades to None instead of raising.
"""
import math
import re
from typing import Any, Optional

from pydantic.alias_generators import to_camel, to_snake

_THREE_DIGITS = re.compile(r"\d{3}")
_MILLIONS = re.compile(r"\d\s*(?:mm|m|million)\b", re.IGNORECASE)
_THOUSANDS = re.compile(r"\d\s*k\b", re.IGNORECASE)


def dict_keys_to_snake(obj: Any) -> Any:
    """Recursively convert dict keys from camelCase to snake_case for input normalization."""
    if isinstance(obj, dict):
        return {to_snake(k) if isinstance(k, str) else k: dict_keys_to_snake(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [dict_keys_to_snake(x) for x in obj]
    return obj


def names_to_camel(names: list[str]) -> list[str]:
    """Field names as the frontend spells them (credit_score -> creditScore)."""
    return [to_camel(n) for n in names]


def safe_number(value: Any) -> Optional[float]:
    """
    Native numbers pass through; strings keep only digits and dots, then parse.
    bools, NaN, infinities and unparseable text become None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.]", "", value)
        if not cleaned:
            return None
        try:
            parsed = float(cleaned)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() else parsed
    return None


def clean_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _leading_float(text: str) -> Optional[float]:
    m = re.search(r"\d+(?:\.\d+)?|\.\d+", text)
    return float(m.group(0)) if m else None


def parse_percent(value: Any) -> Optional[float]:
    """A bare value <= 1 is a fraction (0.8 -> 80); anything larger is already a percent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return value if value > 1 else value * 100
    if isinstance(value, str):
        # "Up to 80% LTV" and "75-80%" both resolve to their first number
        numeric = _leading_float(value)
        if numeric is None:
            return None
        return numeric * 100 if numeric <= 1 else numeric
    return None


def parse_currency(value: Any) -> Optional[float]:
    """Handles "$", thousands separators and the k / m / mm / million suffixes."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    cleaned = value.replace("$", "").replace(",", "")
    numeric = _leading_float(cleaned)
    if numeric is None:
        return None
    # Suffix must follow the number, so "Maximum 2000000" stays two million
    if _MILLIONS.search(cleaned):
        return numeric * 1_000_000
    if _THOUSANDS.search(cleaned):
        return numeric * 1_000
    return numeric


def first_credit_score(text: str) -> Optional[int]:
    """First 3-digit run in free text ("680+ FICO" -> 680)."""
    m = _THREE_DIGITS.search(text)
    return int(m.group(0)) if m else None
