"""
Coerces raw buyer-profile payloads into BuyerProfile.
Accepts camelCase or snake_case keys; malformed values become None, nothing raises.
"""
from __future__ import annotations

from typing import Any

from schemas.profile import BuyerProfile
from utils.parsing import clean_string, dict_keys_to_snake, safe_number

NUMERIC_FIELDS = ("property_value", "down_payment_percent", "current_rent", "credit_score")
TEXT_FIELDS = (
    "property_type",
    "property_location",
    "property_vacant",
    "investment_experience",
    "help_query",
    "additional_details",
)


def normalize_profile(raw: Any) -> BuyerProfile:
    if isinstance(raw, BuyerProfile):
        raw = raw.model_dump()
    data = dict_keys_to_snake(raw) if isinstance(raw, dict) else {}

    values: dict[str, Any] = {}
    for field in NUMERIC_FIELDS:
        values[field] = safe_number(data.get(field))
    for field in TEXT_FIELDS:
        values[field] = clean_string(data.get(field))
    return BuyerProfile(**values)
