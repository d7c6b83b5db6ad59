"""
Tests for the collaborator plumbing: retry/timeout policy, LLM output parsing and the
property-insights helpers. No network access is needed.
Run from the repo root: python -m pytest tests/test_collaborators.py -v
"""
import asyncio
import unittest
from types import SimpleNamespace

import httpx

from services.errors import (
    CollaboratorAuthError,
    CollaboratorRequestError,
    CollaboratorTimeoutError,
    CollaboratorUnavailableError,
)
from services.llm import build_context_snippet, extract_response_text, parse_summary, sanitize_history
from services.property_insights import split_location, translate_http_error
from services.retry import retry_call


class TestRetryCall(unittest.IsolatedAsyncioTestCase):
    async def test_retries_then_succeeds(self):
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("reset")
            return "ok"

        result = await retry_call(flaky, max_retries=2, delay_seconds=0)
        self.assertEqual(result, "ok")
        self.assertEqual(len(attempts), 3)

    async def test_gives_up_with_translated_error(self):
        async def broken():
            raise ConnectionError("reset")

        with self.assertRaises(CollaboratorRequestError):
            await retry_call(broken, max_retries=1, delay_seconds=0)

    async def test_negative_retries_still_attempt_once(self):
        attempts = []

        async def broken():
            attempts.append(1)
            raise ConnectionError("reset")

        with self.assertRaises(CollaboratorRequestError):
            await retry_call(broken, max_retries=-1, delay_seconds=0)
        self.assertEqual(len(attempts), 1)

    async def test_auth_error_is_not_retried(self):
        attempts = []

        async def denied():
            attempts.append(1)
            raise CollaboratorAuthError("bad key", status=401)

        with self.assertRaises(CollaboratorAuthError):
            await retry_call(denied, max_retries=2, delay_seconds=0)
        self.assertEqual(len(attempts), 1)

    async def test_timeout_is_typed(self):
        async def slow():
            await asyncio.sleep(1)

        with self.assertRaises(CollaboratorTimeoutError):
            await retry_call(slow, max_retries=0, delay_seconds=0, timeout_seconds=0.01)

    async def test_custom_translation(self):
        async def unavailable():
            raise RuntimeError("503")

        with self.assertRaises(CollaboratorUnavailableError):
            await retry_call(
                unavailable,
                max_retries=2,
                delay_seconds=0,
                translate=lambda e: CollaboratorUnavailableError(str(e), status=503),
            )


class TestLLMParsing(unittest.TestCase):
    def _response(self, content):
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    def test_extract_response_text(self):
        self.assertEqual(extract_response_text(self._response("  hello ")), "hello")
        self.assertEqual(extract_response_text(self._response([{"text": "a"}, "b"])), "ab")
        self.assertEqual(extract_response_text(SimpleNamespace(choices=[])), "")

    def test_parse_summary_fenced_json(self):
        raw = '```json\n{"summary": "Two strong fits.", "talkingPoints": ["DSCR", "Bank statement"]}\n```'
        self.assertEqual(parse_summary(raw), {"summary": "Two strong fits.", "talking_points": ["DSCR", "Bank statement"]})

    def test_parse_summary_plain_text(self):
        self.assertEqual(parse_summary("Alpha looks best."), {"summary": "Alpha looks best.", "talking_points": []})
        self.assertIsNone(parse_summary(""))

    def test_sanitize_history(self):
        history = [{"role": "bot", "content": " hi "}, {"role": "user", "content": ""}]
        history += [{"role": "user", "content": f"m{i}"} for i in range(12)]
        cleaned = sanitize_history(history)
        self.assertEqual(len(cleaned), 10)
        self.assertEqual(cleaned[-1], {"role": "user", "content": "m11"})
        self.assertEqual(sanitize_history(history[:1]), [{"role": "user", "content": "hi"}])

    def test_context_snippet(self):
        snippet = build_context_snippet(
            {
                "form_data": {"creditScore": 720},
                "lender_matches": [{"lenderName": "Alpha", "confidence": 0.8}],
                "conversation_changes": "User mentioned in conversation: Credit Score: 720",
            }
        )
        self.assertIn('Borrower profile: {"creditScore": 720}', snippet)
        self.assertIn("Current lender matches: Alpha (80%)", snippet)
        self.assertIn("Credit Score: 720", snippet)
        self.assertEqual(build_context_snippet(None), "")


class TestPropertyInsightsHelpers(unittest.TestCase):
    def test_split_location(self):
        self.assertEqual(split_location("Phoenix, AZ"), ("Phoenix", "AZ"))
        self.assertEqual(split_location("Brooklyn, New York, NY"), ("Brooklyn, New York", "NY"))
        self.assertEqual(split_location("Phoenix"), (None, None))
        self.assertEqual(split_location(None), (None, None))

    def test_translate_http_error(self):
        request = httpx.Request("POST", "https://insights.example.com")

        def status_error(code):
            return httpx.HTTPStatusError("err", request=request, response=httpx.Response(code, request=request))

        self.assertIsInstance(translate_http_error(status_error(401)), CollaboratorAuthError)
        self.assertIsInstance(translate_http_error(status_error(503)), CollaboratorUnavailableError)
        self.assertIsInstance(translate_http_error(status_error(500)), CollaboratorRequestError)
        self.assertIsInstance(translate_http_error(httpx.ReadTimeout("slow")), CollaboratorTimeoutError)


if __name__ == "__main__":
    unittest.main()
