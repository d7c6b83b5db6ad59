"""
Hosted-LLM collaborator (OpenAI-compatible chat completions).
Used for the conversational reply and the optional match summary; scoring never depends on it.
"""
from __future__ import annotations

import json
import logging
import re
import threading
from typing import Any, Optional, Sequence

import openai
from openai import AsyncOpenAI

from config import settings
from services.errors import (
    CollaboratorAuthError,
    CollaboratorError,
    CollaboratorRequestError,
    CollaboratorTimeoutError,
    CollaboratorUnavailableError,
    LLMNotConfiguredError,
)
from services.retry import retry_call

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = (
    "You are Deal Desk, an expert AI analyst that helps investors understand lending options. "
    "Provide concise, actionable responses grounded in the borrower profile, current lender matches, "
    "and any property insights that are provided. Offer to explain lending concepts or next steps."
)
SUMMARY_SYSTEM_PROMPT = (
    "You are Deal Desk, an AI that summarizes lender matches for internal analysts. "
    'Respond in JSON with keys "summary" (string) and "talkingPoints" (array of short bullet strings).'
)
EMPTY_REPLY = "I reviewed your information but could not draft a reply. Please try again."
HISTORY_WINDOW = 10
CONTEXT_MATCHES = 3

_client: Optional[AsyncOpenAI] = None
_client_lock = threading.Lock()


def get_openai_client() -> AsyncOpenAI:
    """Process-wide client, created on first use. Raises LLMNotConfiguredError without an API key."""
    global _client
    if not settings.openai_api_key:
        raise LLMNotConfiguredError("OPENAI_API_KEY is not configured")
    if _client is None:
        with _client_lock:
            if _client is None:
                kwargs: dict[str, Any] = {"api_key": settings.openai_api_key, "max_retries": 0}
                if settings.openai_base_url:
                    kwargs["base_url"] = settings.openai_base_url
                _client = AsyncOpenAI(**kwargs)
                logger.info("OpenAI client initialized (model=%s)", settings.openai_model)
    return _client


def reset_openai_client() -> None:
    global _client
    with _client_lock:
        _client = None


def translate_openai_error(e: Exception) -> CollaboratorError:
    if isinstance(e, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return CollaboratorAuthError(f"LLM rejected credentials: {e}", status=getattr(e, "status_code", None))
    if isinstance(e, openai.APITimeoutError):
        return CollaboratorTimeoutError(f"LLM request timed out: {e}")
    if isinstance(e, openai.APIStatusError) and e.status_code == 503:
        return CollaboratorUnavailableError(f"LLM service unavailable: {e}", status=503)
    return CollaboratorRequestError(f"LLM request failed: {e}", status=getattr(e, "status_code", None))


def extract_response_text(response: Any) -> str:
    """Assistant text from a chat completion; content may be a string or a list of parts."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict):
                parts.append(part.get("text") or part.get("content") or "")
            else:
                parts.append(getattr(part, "text", "") or "")
        return "".join(parts).strip()
    if isinstance(content, str):
        return content.strip()
    return ""


def parse_summary(raw: str) -> Optional[dict[str, Any]]:
    """{"summary", "talking_points"} from model output; fenced or wrapped JSON tolerated, plain text becomes the summary."""
    if not raw:
        return None
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        m = re.search(r"```(?:json)?\s*([\s\S]*?)```", cleaned)
        if m:
            cleaned = m.group(1).strip()
    if not cleaned.startswith("{"):
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start != -1 and end != -1 and end > start:
            cleaned = cleaned[start : end + 1].strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Match summary was not JSON; using raw text")
        return {"summary": raw.strip(), "talking_points": []}
    if not isinstance(data, dict):
        return {"summary": raw.strip(), "talking_points": []}
    points = data.get("talkingPoints", data.get("talking_points")) or []
    return {
        "summary": str(data.get("summary") or ""),
        "talking_points": [str(p) for p in points] if isinstance(points, list) else [],
    }


def sanitize_history(history: Sequence[Any]) -> list[dict[str, str]]:
    """Last HISTORY_WINDOW non-empty turns as OpenAI messages."""
    cleaned = []
    for entry in history or []:
        role = entry.get("role") if isinstance(entry, dict) else getattr(entry, "role", None)
        content = entry.get("content") if isinstance(entry, dict) else getattr(entry, "content", None)
        if not isinstance(content, str) or not content.strip():
            continue
        cleaned.append({"role": "assistant" if role == "assistant" else "user", "content": content.strip()})
    return cleaned[-HISTORY_WINDOW:]


def build_context_snippet(context: Optional[dict[str, Any]]) -> str:
    if not context:
        return ""
    parts = []
    if context.get("form_data"):
        parts.append(f"Borrower profile: {json.dumps(context['form_data'], default=str)}")
    matches = context.get("lender_matches") or []
    if matches:
        top = ", ".join(
            f"{m.get('lenderName')} ({round((m.get('confidence') or 0) * 100)}%)" for m in matches[:CONTEXT_MATCHES]
        )
        parts.append(f"Current lender matches: {top}")
    if context.get("conversation_changes"):
        parts.append(context["conversation_changes"])
    if context.get("property_insights"):
        parts.append(f"Property insights: {json.dumps(context['property_insights'], default=str)}")
    return "\n".join(parts)


async def _complete(messages: list[dict[str, str]], *, temperature: float, label: str) -> str:
    client = get_openai_client()

    async def call() -> Any:
        return await client.chat.completions.create(
            model=settings.openai_model,
            temperature=temperature,
            max_tokens=settings.openai_max_tokens,
            messages=messages,
        )

    response = await retry_call(
        call,
        max_retries=settings.collaborator_max_retries,
        delay_seconds=settings.collaborator_retry_delay_seconds,
        timeout_seconds=settings.llm_timeout_seconds,
        translate=translate_openai_error,
        label=label,
    )
    return extract_response_text(response)


async def generate_chat_reply(
    message: str,
    history: Sequence[Any],
    context: Optional[dict[str, Any]] = None,
) -> str:
    """Assistant reply for one chat turn. Raises CollaboratorError subclasses on failure."""
    snippet = build_context_snippet(context)
    user_message = f"{snippet}\n\nClient question: {message.strip()}" if snippet else message.strip()
    messages = [
        {"role": "system", "content": CHAT_SYSTEM_PROMPT},
        *sanitize_history(history),
        {"role": "user", "content": user_message},
    ]
    text = await _complete(messages, temperature=settings.openai_temperature, label="llm-chat")
    return text or EMPTY_REPLY


async def generate_match_summary(payload: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Analyst summary of a match run, or None when the LLM is unconfigured or fails."""
    if not settings.llm_enabled:
        return None
    messages = [
        {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
        {"role": "user", "content": json.dumps(payload, default=str)},
    ]
    try:
        text = await _complete(messages, temperature=0.3, label="llm-summary")
    except CollaboratorError as e:
        logger.warning("Match summary generation failed: %s", e)
        return None
    return parse_summary(text)
