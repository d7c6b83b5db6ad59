"""
Pattern heuristics that pull deal parameters out of free-text chat messages.
Each parameter is first-match-wins over a fixed, ordered pattern list; the order is part of the
contract and must not be "improved" without updating the scenario tests.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from schemas.chat import ParameterChangeSet

logger = logging.getLogger(__name__)

HYPOTHETICAL_PATTERNS = [
    re.compile(r"what\s+if", re.I),
    re.compile(r"suppose\s+(?:i|my|we)", re.I),
    re.compile(r"imagine\s+(?:i|my|we)", re.I),
    re.compile(r"if\s+(?:i|my|we)\s+(?:had|was|were|could)", re.I),
    re.compile(r"hypothetically", re.I),
    re.compile(r"assuming", re.I),
    re.compile(r"let['’]?s\s+say", re.I),
]

CREDIT_PATTERNS = [
    re.compile(r"credit score.*?(\d{3})", re.I),
    re.compile(r"credit.*?(\d{3})", re.I),
    re.compile(r"score.*?(\d{3})", re.I),
    re.compile(r"(\d{3}).*?credit", re.I),
    re.compile(r"actually.*?(\d{3})", re.I),
    re.compile(r"my.*?credit.*?(\d{3})", re.I),
    re.compile(r"(\d+)\s*points?\s+(?:lower|higher|less|more|better|worse)", re.I),
    re.compile(r"if.*?credit.*?(?:was|were|is)\s*(\d{3})", re.I),
    re.compile(r"what.*?if.*?credit.*?(\d{3})", re.I),
]
_POINTS_DOWN = re.compile(r"points?\s+(?:lower|less|worse)", re.I)
_POINTS_UP = re.compile(r"points?\s+(?:higher|more|better)", re.I)

DOWN_PAYMENT_PATTERNS = [
    re.compile(r"down.*?payment.*?(\d+)%", re.I),
    re.compile(r"put.*?down.*?(\d+)%", re.I),
    re.compile(r"(\d+)%.*?down", re.I),
    re.compile(r"down.*?(\d+)%", re.I),
    re.compile(r"(\d+).*?percent.*?down", re.I),
]

_AMOUNT = r"(\d+(?:,\d{3})*(?:\.\d{2})?)"
_PROPERTY_NOUNS = r"(?:property|home|house|condo|single family|duplex|triplex|fourplex|townhouse)"
PROPERTY_VALUE_PATTERNS = [
    re.compile(rf"property.*?value.*?\$?{_AMOUNT}", re.I),
    re.compile(rf"property.*?worth.*?\$?{_AMOUNT}", re.I),
    re.compile(rf"valued.*?at.*?\$?{_AMOUNT}", re.I),
    re.compile(rf"\${_AMOUNT}.*?{_PROPERTY_NOUNS}", re.I),
    re.compile(rf"worth.*?\${_AMOUNT}", re.I),
    re.compile(rf"{_AMOUNT}k?\s*{_PROPERTY_NOUNS}", re.I),
]
_K_SUFFIX = re.compile(r"k\b", re.I)

# Phrase -> form value; dict order is match priority
PROPERTY_TYPE_PHRASES = {
    "single family": "single_family",
    "single-family": "single_family",
    "duplex": "duplex",
    "triplex": "triplex",
    "fourplex": "fourplex",
    "condo": "condo",
    "townhouse": "townhouse",
    "town home": "townhouse",
}

EXPERIENCE_PHRASES = {
    "first-time": "first_time",
    "first time": "first_time",
    "some experience": "some_experience",
    "experienced": "experienced",
    "professional": "professional",
}

_CITY = r"([A-Za-z]+(?:\s+[A-Za-z]+)*)"
_STATE_ABBR = r"([A-Z]{2})\b"
_STATE_NAME = r"([A-Za-z]+(?:\s+[A-Za-z]+){0,2})\b"
_PREP = r"(?:in|at|near|around|for)"
LOCATION_PATTERNS = [
    re.compile(rf"property\s+{_PREP}\s+{_CITY},\s*{_STATE_ABBR}", re.I),
    re.compile(rf"property\s+{_PREP}\s+{_CITY},\s*{_STATE_NAME}", re.I),
    re.compile(rf"loan.*?{_PREP}\s+{_CITY},\s*{_STATE_ABBR}", re.I),
    re.compile(rf"loan.*?{_PREP}\s+{_CITY},\s*{_STATE_NAME}", re.I),
    re.compile(rf"{_PREP}\s+{_CITY},\s*{_STATE_ABBR}", re.I),
    re.compile(rf"{_PREP}\s+{_CITY},\s*{_STATE_NAME}", re.I),
    re.compile(rf"{_CITY},\s*{_STATE_NAME}", re.I),
    re.compile(rf",\s*{_CITY},\s*{_STATE_ABBR}", re.I),
]
_ABBREVIATION = re.compile(r"^[A-Z]{2}$")

US_STATES = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "florida": "FL", "georgia": "GA", "hawaii": "HI", "idaho": "ID",
    "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
    "missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV",
    "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM", "new york": "NY",
    "north carolina": "NC", "north dakota": "ND", "ohio": "OH", "oklahoma": "OK",
    "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT",
    "vermont": "VT", "virginia": "VA", "washington": "WA", "west virginia": "WV",
    "wisconsin": "WI", "wyoming": "WY",
}

RECOMMENDATION_KEYWORDS = (
    "recommend",
    "suggest",
    "other lenders",
    "better options",
    "alternative",
    "different lender",
    "more options",
    "other choices",
    "what about",
    "what else",
    "any other",
)


def is_hypothetical(message: str) -> bool:
    return any(p.search(message) for p in HYPOTHETICAL_PATTERNS)


def is_recommendation_request(message: str) -> bool:
    lowered = message.lower()
    return any(k in lowered for k in RECOMMENDATION_KEYWORDS)


def detect_credit_score(message: str, current_credit_score: Optional[float] = None) -> Optional[int]:
    """
    Absolute score in 300-850. "N points lower/higher" is resolved against the current score
    when N is small enough to be a delta rather than a score.
    """
    for pattern in CREDIT_PATTERNS:
        m = pattern.search(message)
        if not m:
            continue
        score = int(m.group(1))
        if current_credit_score and score < 500:
            if _POINTS_DOWN.search(message):
                score = int(current_credit_score) - score
            elif _POINTS_UP.search(message):
                score = int(current_credit_score) + score
        if 300 <= score <= 850:
            return score
    return None


def detect_down_payment(message: str) -> Optional[int]:
    for pattern in DOWN_PAYMENT_PATTERNS:
        m = pattern.search(message)
        if m:
            percent = int(m.group(1))
            if 0 <= percent <= 50:
                return percent
    return None


def detect_property_value(message: str) -> Optional[float]:
    for pattern in PROPERTY_VALUE_PATTERNS:
        m = pattern.search(message)
        if not m:
            continue
        value = float(m.group(1).replace(",", ""))
        if value < 10000 and _K_SUFFIX.match(message, m.end(1)):
            value *= 1000
        if 50000 <= value <= 10000000:
            return value
    return None


def _first_phrase(message: str, phrases: dict[str, str]) -> Optional[str]:
    lowered = message.lower()
    for phrase, value in phrases.items():
        if phrase in lowered:
            return value
    return None


def resolve_state(state: str) -> Optional[str]:
    """2-letter code for an uppercase abbreviation or a (possibly multi-word) full state name."""
    state = state.strip()
    if len(state) == 2:
        return state if _ABBREVIATION.match(state) else None
    words = state.lower().split()
    # "New York", "North Carolina" before falling back to the first word
    for n in range(len(words), 0, -1):
        code = US_STATES.get(" ".join(words[:n]))
        if code:
            return code
    return None


def detect_location(message: str) -> Optional[str]:
    for pattern in LOCATION_PATTERNS:
        m = pattern.search(message)
        if not m:
            continue
        city = m.group(1).strip()
        state = resolve_state(m.group(2))
        if 2 <= len(city) <= 50 and state:
            return f"{city}, {state}"
    return None


def detect_parameter_changes(
    message: str,
    current_credit_score: Optional[float] = None,
) -> ParameterChangeSet:
    """Scan one chat message. No match for anything is a normal outcome (has_changes=False)."""
    message = message or ""
    changes = ParameterChangeSet(
        is_hypothetical=is_hypothetical(message),
        credit_score=detect_credit_score(message, current_credit_score),
        down_payment_percent=detect_down_payment(message),
        property_value=detect_property_value(message),
        property_type=_first_phrase(message, PROPERTY_TYPE_PHRASES),
        investment_experience=_first_phrase(message, EXPERIENCE_PHRASES),
        property_location=detect_location(message),
    )
    changes.has_changes = bool(changes.changed_parameters())
    if changes.has_changes:
        logger.debug(
            "Detected %s%s",
            changes.changed_parameters(),
            " (hypothetical)" if changes.is_hypothetical else "",
        )
    return changes
