"""
Tests for chat parameter extraction. Pattern priority is part of the contract, so these pin
exact outcomes for representative messages.
Run from the repo root: python -m pytest tests/test_parameter_extractor.py -v
"""
import unittest

from services.parameter_extractor import (
    detect_credit_score,
    detect_location,
    detect_parameter_changes,
    detect_property_value,
    is_hypothetical,
    is_recommendation_request,
    resolve_state,
)


class TestCreditScore(unittest.TestCase):
    def test_absolute_correction(self):
        changes = detect_parameter_changes("My credit score is actually 720")
        self.assertTrue(changes.has_changes)
        self.assertFalse(changes.is_hypothetical)
        self.assertEqual(changes.credit_score, 720)

    def test_relative_lower_is_hypothetical(self):
        changes = detect_parameter_changes("What if my credit score was 100 points lower?", current_credit_score=750)
        self.assertTrue(changes.is_hypothetical)
        self.assertTrue(changes.has_changes)
        self.assertEqual(changes.credit_score, 650)

    def test_relative_higher(self):
        self.assertEqual(detect_credit_score("Say my score were 50 points higher", 700), 750)

    def test_relative_without_current_score_is_ignored(self):
        self.assertIsNone(detect_credit_score("What if it was 100 points lower?"))

    def test_out_of_range_is_ignored(self):
        self.assertIsNone(detect_credit_score("My credit score is 900"))
        self.assertEqual(detect_credit_score("I think 680 is my credit"), 680)


class TestDownPaymentAndValue(unittest.TestCase):
    def test_down_payment(self):
        self.assertEqual(detect_parameter_changes("I can put 25% down").down_payment_percent, 25)
        self.assertEqual(detect_parameter_changes("down payment will be 10%").down_payment_percent, 10)
        self.assertIsNone(detect_parameter_changes("I can put 80% down").down_payment_percent)

    def test_property_value(self):
        self.assertEqual(detect_property_value("The property value is $450,000"), 450000)
        self.assertEqual(detect_property_value("It's a $1,200,000 home"), 1200000)
        self.assertEqual(detect_property_value("looking at a 300k house"), 300000)
        self.assertEqual(detect_property_value("property valued at 300k"), 300000)
        self.assertIsNone(detect_property_value("The property value is $20,000"))

    def test_small_number_without_k_is_rejected(self):
        self.assertIsNone(detect_property_value("2 house lots"))


class TestPhraseMaps(unittest.TestCase):
    def test_property_type(self):
        self.assertEqual(detect_parameter_changes("It's a single-family rental").property_type, "single_family")
        self.assertEqual(detect_parameter_changes("Actually it is a town home").property_type, "townhouse")

    def test_experience(self):
        self.assertEqual(detect_parameter_changes("I'm a first time investor").investment_experience, "first_time")
        self.assertEqual(
            detect_parameter_changes("I have some experience with rentals").investment_experience,
            "some_experience",
        )

    def test_nothing_detected(self):
        changes = detect_parameter_changes("Thanks, that helps a lot")
        self.assertFalse(changes.has_changes)
        self.assertEqual(changes.changed_parameters(), {})


class TestLocation(unittest.TestCase):
    def test_full_state_name(self):
        self.assertEqual(detect_location("property in Los Angeles, California"), "Los Angeles, CA")

    def test_abbreviation(self):
        self.assertEqual(detect_location("Looking for a loan on a property in Phoenix, AZ"), "Phoenix, AZ")

    def test_multi_word_state(self):
        self.assertEqual(detect_location("a duplex in Buffalo, New York"), "Buffalo, NY")

    def test_lowercase_abbreviation_rejected(self):
        self.assertIsNone(detect_location("property in Phoenix, az"))

    def test_resolve_state(self):
        self.assertEqual(resolve_state("TX"), "TX")
        self.assertEqual(resolve_state("north carolina soon"), "NC")
        self.assertIsNone(resolve_state("Narnia"))


class TestMarkers(unittest.TestCase):
    def test_hypothetical_markers(self):
        for message in (
            "what if I had 30% down",
            "Suppose my score drops",
            "Hypothetically, a condo",
            "Let's say 700",
            "Assuming rates fall",
            "If we were to buy a duplex",
        ):
            self.assertTrue(is_hypothetical(message), message)
        self.assertFalse(is_hypothetical("My score is 700"))

    def test_recommendation_keywords(self):
        self.assertTrue(is_recommendation_request("Can you recommend other lenders?"))
        self.assertTrue(is_recommendation_request("Any alternative options?"))
        self.assertFalse(is_recommendation_request("How does DSCR work?"))


if __name__ == "__main__":
    unittest.main()
