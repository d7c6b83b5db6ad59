"""
Property-insights collaborator. The payload is opaque: it is passed through to the LLM prompt
and the API response, never interpreted here.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from config import settings
from schemas.profile import BuyerProfile
from services.errors import (
    CollaboratorAuthError,
    CollaboratorError,
    CollaboratorRequestError,
    CollaboratorTimeoutError,
    CollaboratorUnavailableError,
)
from services.retry import retry_call

logger = logging.getLogger(__name__)


def split_location(location: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """'Phoenix, AZ' -> ('Phoenix', 'AZ'); anything without a comma yields (None, None)."""
    if not location or "," not in location:
        return None, None
    city, _, state = location.rpartition(",")
    city, state = city.strip(), state.strip()
    if not city or not state:
        return None, None
    return city, state


def translate_http_error(e: Exception) -> CollaboratorError:
    if isinstance(e, httpx.TimeoutException):
        return CollaboratorTimeoutError(f"Property insights timed out: {e}")
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        if status in (401, 403):
            return CollaboratorAuthError(f"Property insights rejected credentials ({status})", status=status)
        if status == 503:
            return CollaboratorUnavailableError("Property insights service unavailable", status=status)
        return CollaboratorRequestError(f"Property insights returned {status}", status=status)
    return CollaboratorRequestError(f"Property insights request failed: {e}")


async def fetch_property_insights(
    city: str,
    state: str,
    property_value: Optional[float] = None,
    property_type: Optional[str] = None,
    *,
    down_payment_percent: Optional[float] = None,
    current_rent: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[dict[str, Any]]:
    """
    Market context for a city/state, or None when the service is not configured.
    Failures surface as CollaboratorError subclasses after retries.
    """
    if not settings.insights_enabled:
        return None

    payload = {
        "city": city,
        "state": state,
        "propertyValue": property_value,
        "propertyType": property_type,
        "downPaymentPercent": down_payment_percent,
        "currentRent": current_rent,
    }
    headers = {}
    if settings.property_insights_api_key:
        headers["Authorization"] = f"Bearer {settings.property_insights_api_key}"

    async def call() -> dict[str, Any]:
        if client is not None:
            response = await client.post(settings.property_insights_url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds) as http:
                response = await http.post(settings.property_insights_url, json=payload, headers=headers)
        response.raise_for_status()
        return response.json()

    data = await retry_call(
        call,
        max_retries=settings.collaborator_max_retries,
        delay_seconds=settings.collaborator_retry_delay_seconds,
        timeout_seconds=settings.llm_timeout_seconds,
        translate=translate_http_error,
        label="property-insights",
    )
    if isinstance(data, dict) and isinstance(data.get("insights"), dict):
        return data["insights"]
    return data if isinstance(data, dict) else None


async def insights_for_profile(profile: BuyerProfile) -> Optional[dict[str, Any]]:
    """Best-effort lookup for a profile's location; any collaborator failure yields None."""
    city, state = split_location(profile.property_location)
    if not city or not settings.insights_enabled:
        return None
    try:
        return await fetch_property_insights(
            city,
            state,
            profile.property_value,
            profile.property_type,
            down_payment_percent=profile.down_payment_percent,
            current_rent=profile.current_rent,
        )
    except CollaboratorError as e:
        logger.warning("Property insights unavailable for %s, %s: %s", city, state, e)
        return None
