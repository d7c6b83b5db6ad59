"""
HTTP tests for /api/match-lenders, /api/chat and /api/health.
The catalog and collaborators are overridden so no file, key or network is needed.
Run from the repo root: python -m pytest tests/test_api.py -v
"""
import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from catalog_store import get_catalog, get_reply_fn
from main import app
from services.catalog import build_catalog

CATALOG = build_catalog(
    {
        "lenders": {
            "alpha": {
                "company_name": "Alpha Lending",
                "website": "https://alpha.example.com",
                "loan_programs": [
                    {
                        "program_type": "DSCR 30yr",
                        "max_ltv": 80,
                        "max_loan_amount": "$2,000,000",
                        "credit_requirements": {"min_fico": 680},
                        "property_types": ["Single Family"],
                    }
                ],
            },
            "bravo": {"company_name": "Bravo Bank", "loan_programs": []},
        }
    }
)

PROFILE = {
    "propertyValue": 1000000,
    "propertyType": "single_family",
    "propertyLocation": "Phoenix, AZ",
    "downPaymentPercent": 20,
    "creditScore": 630,
    "investmentExperience": "first_time",
}


async def _reply(message, history, context):
    return f"echo: {message}"


class APITestCase(unittest.TestCase):
    def setUp(self):
        app.dependency_overrides[get_catalog] = lambda: CATALOG
        app.dependency_overrides[get_reply_fn] = lambda: _reply
        self.client = TestClient(app)
        summary = patch("api.matching.generate_match_summary", new=AsyncMock(return_value=None))
        insights = patch("api.matching.insights_for_profile", new=AsyncMock(return_value=None))
        self.summary_mock = summary.start()
        insights.start()
        self.addCleanup(summary.stop)
        self.addCleanup(insights.stop)
        self.addCleanup(app.dependency_overrides.clear)


class TestMatchLenders(APITestCase):
    def test_scores_complete_profile(self):
        resp = self.client.post("/api/match-lenders", json={"buyerProfile": PROFILE})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertFalse(data["requiresMoreInfo"])
        self.assertEqual(len(data["matches"]), 2)
        alpha = next(m for m in data["matches"] if m["lenderName"] == "Alpha Lending")
        self.assertFalse(alpha["isMatch"])
        self.assertIn("below minimum requirement (630 < 680)", alpha["rationale"])
        self.assertEqual(alpha["website"], "https://alpha.example.com")
        self.assertIsNone(data["analysis"])

    def test_higher_credit_is_a_match(self):
        resp = self.client.post("/api/match-lenders", json={"buyerProfile": {**PROFILE, "creditScore": 770}})
        top = resp.json()["matches"][0]
        self.assertEqual(top["lenderName"], "Alpha Lending")
        self.assertTrue(top["isMatch"])
        self.assertAlmostEqual(top["confidence"], 0.8)

    def test_missing_fields_short_circuit(self):
        profile = {k: v for k, v in PROFILE.items() if k != "creditScore"}
        resp = self.client.post("/api/match-lenders", json={"buyerProfile": profile})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data["requiresMoreInfo"])
        self.assertEqual(data["missingFields"], ["creditScore"])
        self.assertEqual(data["matches"], [])
        self.assertIn("Credit Score", data["message"])
        self.summary_mock.assert_not_called()

    def test_analysis_and_insights_pass_through(self):
        self.summary_mock.return_value = {"summary": "Alpha is close.", "talking_points": ["Raise credit"]}
        insights = {"market": "Phoenix, AZ", "marketOutlook": "Stable"}
        resp = self.client.post("/api/match-lenders", json={"buyerProfile": PROFILE, "propertyInsights": insights})
        data = resp.json()
        self.assertEqual(data["analysis"], {"summary": "Alpha is close.", "talkingPoints": ["Raise credit"]})
        self.assertEqual(data["propertyInsights"], insights)


class TestChat(APITestCase):
    def test_correction_round_trip(self):
        body = {
            "message": "My credit score is actually 720",
            "formSnapshot": {**PROFILE, "creditScore": 680},
            "sessionState": {"mentionedParameters": {"creditScore": 680}},
        }
        resp = self.client.post("/api/chat", json=body)
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["response"], "echo: My credit score is actually 720")
        self.assertFalse(data["fallback"])
        self.assertTrue(data["changeSet"]["hasChanges"])
        self.assertEqual(data["changeSet"]["creditScore"], 720)
        self.assertEqual(data["formSnapshot"]["creditScore"], 720)
        correction = data["sessionState"]["corrections"][0]
        self.assertEqual(
            (correction["parameter"], correction["oldValue"], correction["newValue"]),
            ("creditScore", 680, 720),
        )
        self.assertEqual(len(data["matches"]), 2)
        self.assertEqual([m["role"] for m in data["conversationHistory"]], ["user", "assistant"])

    def test_hypothetical_is_not_persisted(self):
        body = {
            "message": "What if my credit score was 100 points lower?",
            "formSnapshot": {**PROFILE, "creditScore": 750},
        }
        data = self.client.post("/api/chat", json=body).json()
        self.assertTrue(data["changeSet"]["isHypothetical"])
        self.assertEqual(data["changeSet"]["creditScore"], 650)
        self.assertEqual(data["formSnapshot"]["creditScore"], 750)
        self.assertEqual(data["sessionState"]["mentionedParameters"], {})

    def test_location_detection(self):
        body = {"message": "It's a property in Los Angeles, California", "formSnapshot": PROFILE}
        data = self.client.post("/api/chat", json=body).json()
        self.assertEqual(data["changeSet"]["propertyLocation"], "Los Angeles, CA")
        self.assertEqual(data["formSnapshot"]["propertyLocation"], "Los Angeles, CA")

    def test_fallback_without_llm(self):
        app.dependency_overrides[get_reply_fn] = lambda: None
        data = self.client.post("/api/chat", json={"message": "hello"}).json()
        self.assertTrue(data["fallback"])
        self.assertIn('I received your message: "hello"', data["response"])

    def test_empty_message_rejected(self):
        resp = self.client.post("/api/chat", json={"message": "   "})
        self.assertEqual(resp.status_code, 400)


class TestHealth(APITestCase):
    def test_health(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertEqual(resp.json()["lenders"], 2)


class TestBundledCatalogStartup(unittest.TestCase):
    """Runs the real lifespan so the bundled catalog is loaded from disk."""

    def setUp(self):
        app.dependency_overrides.clear()
        summary = patch("api.matching.generate_match_summary", new=AsyncMock(return_value=None))
        insights = patch("api.matching.insights_for_profile", new=AsyncMock(return_value=None))
        summary.start()
        insights.start()
        self.addCleanup(summary.stop)
        self.addCleanup(insights.stop)

    def test_health_reports_bundled_lenders(self):
        with TestClient(app) as client:
            resp = client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["lenders"], 5)

    def test_one_entry_per_bundled_lender(self):
        with TestClient(app) as client:
            resp = client.post("/api/match-lenders", json={"buyerProfile": PROFILE})
        self.assertEqual(resp.status_code, 200)
        names = [m["lenderName"] for m in resp.json()["matches"]]
        self.assertEqual(len(names), 5)
        self.assertEqual(len(set(names)), 5)
        for match in resp.json()["matches"]:
            self.assertGreaterEqual(match["confidence"], 0.05)
            self.assertLessEqual(match["confidence"], 0.99)


if __name__ == "__main__":
    unittest.main()
