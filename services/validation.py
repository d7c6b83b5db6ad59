"""
Missing-field gate in front of the scoring engine.
A non-empty result means scoring must not run; the caller asks the user for exactly those fields.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

from schemas.profile import BuyerProfile

logger = logging.getLogger(__name__)

# Match endpoint / form submission
REQUIRED_FIELDS: tuple[str, ...] = (
    "property_value",
    "property_type",
    "property_location",
    "down_payment_percent",
    "credit_score",
)

# Chat-side submission: experience matters for the conversation, location does not
CHAT_REQUIRED_FIELDS: tuple[str, ...] = (
    "property_value",
    "property_type",
    "down_payment_percent",
    "credit_score",
    "investment_experience",
)

# Zero is a real answer for these ("0% down"), so only None counts as missing
ZERO_ALLOWED_FIELDS = frozenset({"down_payment_percent"})

FIELD_LABELS = {
    "property_value": "Property Value",
    "property_type": "Property Type",
    "property_location": "Location",
    "down_payment_percent": "Down Payment Percentage",
    "credit_score": "Credit Score",
    "investment_experience": "Investment Experience",
    "current_rent": "Current Rent",
    "property_vacant": "Property Vacancy",
}


def _is_missing(field: str, value: Any) -> bool:
    if field in ZERO_ALLOWED_FIELDS:
        return value is None
    if isinstance(value, str):
        return not value.strip()
    return not value


def find_missing_fields(
    profile: BuyerProfile,
    required: Sequence[str] = REQUIRED_FIELDS,
) -> list[str]:
    """Required field names absent from the profile, in the order of `required`."""
    missing = [f for f in required if _is_missing(f, getattr(profile, f, None))]
    if missing:
        logger.info("Profile incomplete for matching; missing: %s", ", ".join(missing))
    return missing


def missing_fields_message(missing: Sequence[str]) -> str:
    """Itemized prompt for the user; never a generic error."""
    labels = [FIELD_LABELS.get(f, f) for f in missing]
    return f"Please provide the following information to get lender recommendations: {', '.join(labels)}."
