"""
Lender catalog ingestion.
The JSON catalog grew three program shapes over time:
  - flat:   lender["loan_programs"] = [{program_type, max_ltv, credit_requirements, ...}]
  - keyed:  lender["programs"] = {key: {program_name, credit_requirements: {investment_properties: {...}}, ...}}
  - tiered: any program carrying "tiers": [{min_credit_score, max_ltv, max_loan_amount}]
All of them are normalized here into ProgramRecord so the scoring engine sees one shape.
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

from schemas.lender import LenderCatalog, LenderRecord, ProgramRecord, ProgramTier
from services.errors import CatalogLoadError
from utils.parsing import first_credit_score, parse_currency, parse_percent

logger = logging.getLogger(__name__)

_MIN_FICO_KEY = re.compile(r"min_fico_(\d+)")
_CREDIT_KEY = re.compile(r"fico|credit|score", re.IGNORECASE)

# credit_requirements keys that say which occupancy a tier applies to
_INVESTMENT_KEYS = ("investment", "rental", "dscr", "non_owner")
_PRIMARY_KEYS = ("primary", "owner_occupied", "residence")


def extract_min_credit_score(requirement: Any) -> Optional[int]:
    """
    Resolve a polymorphic minimum-credit requirement:
    numbers pass through, strings yield their first 3-digit run, lists and mappings
    recurse and keep the lowest leaf; "min_fico_640" style keys contribute their digits.
    """
    if requirement is None or isinstance(requirement, bool):
        return None
    if isinstance(requirement, (int, float)):
        return int(requirement) if requirement else None
    if isinstance(requirement, str):
        return first_credit_score(requirement)
    if isinstance(requirement, list):
        scores = [s for s in (extract_min_credit_score(x) for x in requirement) if s is not None]
        return min(scores) if scores else None
    if isinstance(requirement, dict):
        for direct in ("min_fico", "min_credit_score"):
            if requirement.get(direct):
                return extract_min_credit_score(requirement[direct])
        scores: list[int] = []
        for key, value in requirement.items():
            m = _MIN_FICO_KEY.search(str(key))
            if m:
                scores.append(int(m.group(1)))
                continue
            if not isinstance(value, (dict, list)) and not _CREDIT_KEY.search(str(key)):
                # max_ltv, reserves and the like sit beside credit keys
                continue
            nested = extract_min_credit_score(value)
            if nested is not None:
                scores.append(nested)
        return min(scores) if scores else None
    return None


def find_max_ltv(requirements: Any) -> Optional[float]:
    """Highest max_ltv anywhere inside a requirements structure."""
    if isinstance(requirements, list):
        children = requirements
    elif isinstance(requirements, dict):
        if requirements.get("max_ltv"):
            return parse_percent(requirements["max_ltv"])
        children = list(requirements.values())
    else:
        return None
    values = [v for v in (find_max_ltv(x) for x in children) if v is not None]
    return max(values) if values else None


def find_max_loan_amount(program: Any) -> Optional[float]:
    """Program-wide loan cap: max_loan_amount, else the largest loan_amounts entry."""
    if not isinstance(program, dict):
        return None
    if program.get("max_loan_amount"):
        return parse_currency(program["max_loan_amount"])
    loan_amounts = program.get("loan_amounts")
    if isinstance(loan_amounts, dict):
        values = [
            parse_currency(v.get("max") if isinstance(v, dict) else v)
            for v in loan_amounts.values()
        ]
        values = [v for v in values if v is not None]
        return max(values) if values else None
    return None


def _occupancy_for(key: str) -> Optional[str]:
    lowered = key.lower()
    if any(k in lowered for k in _INVESTMENT_KEYS):
        return "investment"
    if any(k in lowered for k in _PRIMARY_KEYS):
        return "primary"
    return None


def _valid_credit(score: Optional[int]) -> Optional[int]:
    return score if score is not None and 300 <= score <= 850 else None


def _valid_ltv(ltv: Optional[float]) -> Optional[float]:
    return ltv if ltv is not None and 0 < ltv <= 100 else None


def _property_types(raw: Any) -> Optional[list[str]]:
    if isinstance(raw, list):
        return [str(t) for t in raw if t is not None]
    if isinstance(raw, str) and raw.strip():
        return [t.strip() for t in raw.split(",") if t.strip()]
    return None


def _explicit_tiers(raw: Any) -> list[ProgramTier]:
    if not isinstance(raw, list):
        return []
    tiers: list[ProgramTier] = []
    for i, t in enumerate(raw):
        if not isinstance(t, dict):
            continue
        tiers.append(
            ProgramTier(
                label=str(t.get("name") or t.get("tier") or f"Tier {i + 1}"),
                occupancy=_occupancy_for(str(t.get("occupancy") or "")),
                min_credit_score=_valid_credit(
                    extract_min_credit_score(t.get("min_credit_score", t.get("credit_requirements")))
                ),
                max_ltv=_valid_ltv(parse_percent(t.get("max_ltv"))),
                max_loan_amount=parse_currency(t.get("max_loan_amount")),
            )
        )
    return tiers


def _flat_program(raw: dict[str, Any]) -> ProgramRecord:
    tiers = _explicit_tiers(raw.get("tiers"))
    return ProgramRecord(
        name=str(raw.get("program_type") or raw.get("program_name") or "Program"),
        source="tiered" if tiers else "flat",
        max_ltv=_valid_ltv(parse_percent(raw.get("max_ltv"))),
        max_loan_amount=parse_currency(raw.get("max_loan_amount")),
        min_credit_score=_valid_credit(extract_min_credit_score(raw.get("credit_requirements"))),
        property_types=_property_types(raw.get("property_types")),
        purpose=raw.get("purpose") if isinstance(raw.get("purpose"), str) else None,
        tiers=tiers,
    )


def _keyed_program(key: str, raw: dict[str, Any]) -> ProgramRecord:
    program_max_loan = find_max_loan_amount(raw)
    loan_amounts = raw.get("loan_amounts") if isinstance(raw.get("loan_amounts"), dict) else {}
    tiers = _explicit_tiers(raw.get("tiers"))
    source = "tiered" if tiers else "keyed"

    requirements = raw.get("credit_requirements")
    if not tiers and isinstance(requirements, dict):
        for req_key, req in requirements.items():
            tier_loan = loan_amounts.get(req_key)
            max_loan = parse_currency(tier_loan.get("max") if isinstance(tier_loan, dict) else tier_loan)
            tiers.append(
                ProgramTier(
                    label=str(req_key),
                    occupancy=_occupancy_for(str(req_key)),
                    min_credit_score=_valid_credit(extract_min_credit_score({req_key: req})),
                    max_ltv=_valid_ltv(find_max_ltv(req)),
                    max_loan_amount=max_loan or program_max_loan,
                )
            )
    elif requirements is not None and not isinstance(requirements, dict) and not tiers:
        # A bare number or list on a keyed program: a single band
        tiers.append(
            ProgramTier(
                label=str(key),
                min_credit_score=_valid_credit(extract_min_credit_score(requirements)),
                max_ltv=_valid_ltv(parse_percent(raw.get("max_ltv"))),
                max_loan_amount=program_max_loan,
            )
        )

    purpose = raw.get("specialty") or raw.get("purpose")
    return ProgramRecord(
        name=str(raw.get("program_name") or key),
        source=source,
        max_ltv=_valid_ltv(parse_percent(raw.get("max_ltv"))),
        max_loan_amount=program_max_loan,
        min_credit_score=None,
        property_types=_property_types(raw.get("property_types")),
        purpose=purpose if isinstance(purpose, str) else None,
        tiers=tiers,
    )


def normalize_lender(key: str, raw: dict[str, Any]) -> LenderRecord:
    """Build a LenderRecord from one catalog entry, collecting programs of every shape."""
    programs: list[ProgramRecord] = []
    flat = raw.get("loan_programs")
    if isinstance(flat, list):
        programs.extend(_flat_program(p) for p in flat if isinstance(p, dict))
    keyed = raw.get("programs")
    if isinstance(keyed, dict):
        programs.extend(_keyed_program(str(k), p) for k, p in keyed.items() if isinstance(p, dict))
    elif isinstance(keyed, list):
        programs.extend(_flat_program(p) for p in keyed if isinstance(p, dict))

    contacts = raw.get("department_contacts")
    return LenderRecord(
        id=str(raw.get("id") or key),
        display_name=str(raw.get("company_name") or raw.get("display_name") or raw.get("name") or key),
        website=raw.get("website") or None,
        phone=raw.get("contact_phone") or raw.get("phone") or None,
        department_contacts=contacts if isinstance(contacts, dict) and contacts else None,
        programs=programs,
    )


def build_catalog(raw: Any) -> LenderCatalog:
    """Normalize an already-parsed catalog payload; the top-level "lenders" collection is mandatory."""
    if not isinstance(raw, dict) or "lenders" not in raw:
        raise CatalogLoadError("Lender catalog has no top-level 'lenders' collection")
    lenders_raw = raw["lenders"]
    if isinstance(lenders_raw, dict):
        entries = [(str(k), v) for k, v in lenders_raw.items()]
    elif isinstance(lenders_raw, list):
        entries = [(str(v.get("id") or f"lender-{i}"), v) for i, v in enumerate(lenders_raw) if isinstance(v, dict)]
    else:
        raise CatalogLoadError("Lender catalog 'lenders' must be a mapping or a list")

    lenders = [normalize_lender(key, data) for key, data in entries if isinstance(data, dict)]
    return LenderCatalog(lenders=lenders)


def load_catalog(path: str | Path) -> LenderCatalog:
    """Read and normalize the catalog file; any failure is a CatalogLoadError."""
    catalog_path = Path(path)
    try:
        raw = json.loads(catalog_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to load lender catalog from %s: %s", catalog_path, e)
        raise CatalogLoadError(f"Failed to load lender catalog from {catalog_path}: {e}") from e
    catalog = build_catalog(raw)
    logger.info(
        "Lender catalog loaded from %s: %d lenders, %d programs",
        catalog_path,
        len(catalog.lenders),
        sum(len(l.programs) for l in catalog.lenders),
    )
    return catalog
