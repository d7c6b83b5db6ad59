"""
Score a buyer profile against the bundled lender catalog and print the ranking.
Run: python -m scripts.preview_matches [profile.json] [--all-programs] (from the repo root).
"""
import argparse
import json
import os
import sys

# Add parent so we can import from the repo root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from services.catalog import load_catalog
from services.matching_engine import find_top_matches
from services.normalizer import normalize_profile
from services.validation import REQUIRED_FIELDS, find_missing_fields, missing_fields_message

SAMPLE_PROFILE = {
    "propertyValue": 1000000,
    "propertyType": "single_family",
    "propertyLocation": "Phoenix, AZ",
    "downPaymentPercent": 20,
    "propertyVacant": "no",
    "currentRent": 5000,
    "creditScore": 630,
    "investmentExperience": "first_time",
}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("profile", nargs="?", help="JSON file with a buyer profile (camelCase keys)")
    parser.add_argument("--catalog", default=settings.catalog_path)
    parser.add_argument("--all-programs", action="store_true", help="list every qualifying program, not one per lender")
    args = parser.parse_args(argv)

    raw = SAMPLE_PROFILE
    if args.profile:
        with open(args.profile, encoding="utf-8") as f:
            raw = json.load(f)
    profile = normalize_profile(raw)
    print("Buyer profile:", json.dumps(profile.model_dump(by_alias=True, exclude_none=True), indent=2))

    missing = find_missing_fields(profile, REQUIRED_FIELDS)
    if missing:
        print(missing_fields_message(missing))
        return 1

    catalog = load_catalog(args.catalog)
    results = find_top_matches(catalog, profile, best_per_lender=not args.all_programs)
    matches = [r for r in results if r.is_match]
    non_matches = [r for r in results if not r.is_match]
    print(f"\nEvaluated {len(catalog)} lenders: {len(matches)} matches, {len(non_matches)} non-matches")

    for title, group in (("MATCHES", matches), ("NON-MATCHES", non_matches)):
        if not group:
            continue
        print(f"\n{title} ({len(group)}):")
        for i, r in enumerate(group, 1):
            print(f"  {i}. {r.lender_name} - {r.program_name}: {r.confidence * 100:.0f}%")
            print(f"     {r.rationale}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
