"""
Tests for session reconciliation: mention history, corrections and hypothetical isolation.
Run from the repo root: python -m pytest tests/test_session.py -v
"""
import unittest

from schemas.chat import ParameterChangeSet
from services.session import SessionState, apply_changes_to_profile


def _changes(**values):
    hypothetical = values.pop("is_hypothetical", False)
    return ParameterChangeSet(has_changes=bool(values), is_hypothetical=hypothetical, **values)


class TestSessionState(unittest.TestCase):
    def test_first_mention_is_not_a_correction(self):
        state = SessionState()
        self.assertTrue(state.apply(_changes(credit_score=700)))
        self.assertEqual(state.mentioned_parameters, {"creditScore": 700})
        self.assertEqual(len(state.parameter_history), 1)
        self.assertFalse(state.parameter_history[0].is_correction)
        self.assertEqual(state.corrections, [])

    def test_changed_value_logs_one_correction(self):
        state = SessionState()
        state.apply(_changes(credit_score=700))
        state.apply(_changes(credit_score=650))
        self.assertEqual(len(state.corrections), 1)
        correction = state.corrections[0]
        self.assertEqual(
            (correction.parameter, correction.old_value, correction.new_value),
            ("creditScore", 700, 650),
        )
        self.assertEqual(state.mentioned_parameters["creditScore"], 650)
        self.assertEqual(len(state.parameter_history), 2)
        self.assertTrue(state.parameter_history[1].is_correction)

    def test_repeated_value_is_history_only(self):
        state = SessionState()
        state.apply(_changes(down_payment_percent=20))
        state.apply(_changes(down_payment_percent=20))
        self.assertEqual(len(state.parameter_history), 2)
        self.assertEqual(state.corrections, [])

    def test_hypothetical_changes_nothing(self):
        state = SessionState()
        state.apply(_changes(credit_score=750))
        before = state.to_schema()
        self.assertFalse(state.apply(_changes(credit_score=650, is_hypothetical=True)))
        self.assertEqual(state.to_schema(), before)

    def test_one_history_entry_per_parameter(self):
        state = SessionState()
        state.apply(_changes(credit_score=720, property_type="duplex", property_location="Austin, TX"))
        self.assertEqual(
            [m.parameter for m in state.parameter_history],
            ["creditScore", "propertyType", "propertyLocation"],
        )

    def test_conversation_context(self):
        state = SessionState()
        self.assertIsNone(state.conversation_context())
        state.apply(_changes(credit_score=680, property_value=450000.0))
        state.apply(_changes(credit_score=720))
        self.assertEqual(
            state.conversation_context(),
            "User mentioned in conversation: Credit Score: 720, Property Value: 450000. "
            "Corrections: creditScore corrected from 680 to 720",
        )

    def test_schema_round_trip_and_clear(self):
        state = SessionState()
        state.apply(_changes(credit_score=680))
        state.apply(_changes(credit_score=720))
        restored = SessionState.from_schema(state.to_schema())
        self.assertEqual(restored.mentioned_parameters, {"creditScore": 720})
        self.assertEqual(len(restored.corrections), 1)
        restored.clear()
        self.assertEqual(restored.to_schema().model_dump(), SessionState().to_schema().model_dump())


class TestApplyChangesToProfile(unittest.TestCase):
    def test_merge_returns_copy(self):
        snapshot = {"creditScore": 680, "propertyType": "condo"}
        merged = apply_changes_to_profile(snapshot, _changes(credit_score=720, down_payment_percent=25))
        self.assertEqual(merged, {"creditScore": 720, "propertyType": "condo", "downPaymentPercent": 25})
        self.assertEqual(snapshot, {"creditScore": 680, "propertyType": "condo"})

    def test_snake_case_keys_are_replaced(self):
        merged = apply_changes_to_profile({"credit_score": 680}, _changes(credit_score=720))
        self.assertEqual(merged, {"creditScore": 720})


if __name__ == "__main__":
    unittest.main()
