"""
Scores lender programs against a normalized buyer profile.
Additive point system starting from a base confidence; each rule that fires appends a clause to the
rationale. Every lender is represented: when none of its programs clears the inclusion floor a
synthetic low-confidence entry is emitted instead.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from config import settings
from schemas.lender import LenderCatalog, LenderRecord, MatchResultSchema, ProgramRecord, ProgramTier
from schemas.profile import BuyerProfile
from services.normalizer import normalize_profile
from services.validation import REQUIRED_FIELDS, find_missing_fields

logger = logging.getLogger(__name__)

# Raw form values -> tokens matched as substrings of a program's property-type list
PROPERTY_TYPE_TOKENS = {
    "single_family": "single",
    "duplex": "duplex",
    "triplex": "triplex",
    "fourplex": "four",
    "condo": "condo",
    "townhouse": "town",
    "investment": "investment",
}

TYPICAL_MIN_CREDIT = 620


@dataclass(frozen=True)
class ScoringConfig:
    """
    Tunables that differed between historical call sites.
    The lenient default keeps penalized programs visible; STRICT_SCORING reproduces the
    0.5 base / 0.5 floor variant.
    """
    base_confidence: float = 0.25
    inclusion_floor: float = 0.1
    match_threshold: float = 0.6
    min_confidence: float = 0.05
    max_confidence: float = 0.99

    @classmethod
    def from_settings(cls) -> "ScoringConfig":
        return cls(
            base_confidence=settings.base_confidence,
            inclusion_floor=settings.inclusion_floor,
            match_threshold=settings.match_threshold,
        )


STRICT_SCORING = ScoringConfig(base_confidence=0.5, inclusion_floor=0.5)


@dataclass
class ProgramScore:
    program_name: str
    confidence: float
    rationale: str
    max_ltv: Optional[float] = None
    min_credit_score: Optional[int] = None
    max_loan_amount: Optional[float] = None
    is_default: bool = False


@dataclass
class MatchOutcome:
    profile: BuyerProfile
    missing_fields: list[str] = field(default_factory=list)
    matches: list[MatchResultSchema] = field(default_factory=list)

    @property
    def requires_more_info(self) -> bool:
        return bool(self.missing_fields)


def _num(value: float) -> Any:
    """Render 630.0 as 630 in rationale text."""
    return int(value) if float(value).is_integer() else round(value, 2)


def normalize_property_type(property_type: Optional[str]) -> str:
    if not property_type:
        return ""
    return PROPERTY_TYPE_TOKENS.get(property_type, property_type).lower()


def _experience(profile: BuyerProfile) -> str:
    return (profile.investment_experience or "").lower()


def _is_investment_purchase(profile: BuyerProfile) -> bool:
    if profile.current_rent and profile.current_rent > 0:
        return True
    ptype = (profile.property_type or "").lower()
    return "investment" in ptype or "rental" in ptype


def score_terms(
    program_name: str,
    profile: BuyerProfile,
    loan_amount: Optional[float],
    *,
    min_credit_score: Optional[int],
    max_ltv: Optional[float],
    max_loan_amount: Optional[float],
    property_types: Optional[list[str]],
    purpose: Optional[str],
    config: ScoringConfig,
) -> ProgramScore:
    """Score one set of program terms. Order of rules fixes the order of rationale clauses."""
    confidence = config.base_confidence
    clauses = [f"{program_name} available."]
    credit = profile.credit_score
    down = profile.down_payment_percent

    if credit and min_credit_score:
        if credit >= min_credit_score:
            confidence += 0.30
            clauses.append(f"Credit score {_num(credit)} meets {min_credit_score}.")
        else:
            shortfall = (min_credit_score - credit) / min_credit_score
            confidence = max(0.0, confidence - 0.30 * shortfall)
            clauses.append(f"Credit score below minimum requirement ({_num(credit)} < {min_credit_score}).")
    elif credit and credit >= TYPICAL_MIN_CREDIT:
        confidence += 0.20
        clauses.append(f"Documented credit score of {_num(credit)}.")
    elif credit:
        confidence = max(0.0, confidence - 0.20)
        clauses.append(f"Credit score {_num(credit)} is below typical lender minimums.")

    if down and max_ltv is not None:
        required_down = 100 - max_ltv
        if down >= required_down:
            confidence += 0.20
            clauses.append(f"Down payment of {_num(down)}% satisfies {_num(required_down)}%+.")
        else:
            confidence += 0.10 * (down / required_down)
            clauses.append(f"Consider increasing down payment to {_num(required_down)}%+.")
    elif down and down >= 20:
        confidence += 0.15
        clauses.append(f"{_num(down)}% down payment improves terms.")

    if loan_amount and max_loan_amount:
        if loan_amount <= max_loan_amount:
            confidence += 0.10
            clauses.append(f"Loan amount ~${round(loan_amount):,} within program limits.")
        else:
            confidence += 0.05
            clauses.append(f"Loan amount may exceed program cap of ${round(max_loan_amount):,}.")

    if profile.property_type and property_types:
        token = normalize_property_type(profile.property_type)
        if any(token in t.lower() for t in property_types):
            confidence += 0.10
            clauses.append(f"Property type supported ({profile.property_type}).")
    elif purpose and "investment" in purpose.lower():
        confidence += 0.05
        clauses.append("Designed for investment properties.")

    experience = _experience(profile)
    if "first" in experience:
        confidence = max(0.0, confidence - 0.15)
        clauses.append("First-time investor may face additional requirements.")
    elif "experienced" in experience:
        confidence += 0.10
        clauses.append("Experienced investor.")

    confidence = max(config.min_confidence, min(config.max_confidence, confidence))
    return ProgramScore(
        program_name=program_name,
        confidence=round(confidence, 2),
        rationale=" ".join(clauses),
        max_ltv=max_ltv,
        min_credit_score=min_credit_score,
        max_loan_amount=max_loan_amount,
    )


def _candidate_tiers(program: ProgramRecord, profile: BuyerProfile) -> list[ProgramTier]:
    """Occupancy-specific tiers win when they fit the purchase; otherwise every tier competes."""
    investment = [t for t in program.tiers if t.occupancy == "investment"]
    primary = [t for t in program.tiers if t.occupancy == "primary"]
    if _is_investment_purchase(profile):
        return investment or program.tiers
    return primary or program.tiers


def score_program(
    program: ProgramRecord,
    profile: BuyerProfile,
    loan_amount: Optional[float],
    config: ScoringConfig,
) -> ProgramScore:
    """Score a program; tiered programs are scored on the tier the buyer most nearly qualifies for."""
    base_terms = {
        "property_types": program.property_types,
        "purpose": program.purpose,
        "config": config,
    }
    if not program.tiers:
        return score_terms(
            program.name,
            profile,
            loan_amount,
            min_credit_score=program.min_credit_score,
            max_ltv=program.max_ltv,
            max_loan_amount=program.max_loan_amount,
            **base_terms,
        )

    scores = [
        score_terms(
            program.name,
            profile,
            loan_amount,
            min_credit_score=tier.min_credit_score if tier.min_credit_score is not None else program.min_credit_score,
            max_ltv=tier.max_ltv if tier.max_ltv is not None else program.max_ltv,
            max_loan_amount=tier.max_loan_amount if tier.max_loan_amount is not None else program.max_loan_amount,
            **base_terms,
        )
        for tier in _candidate_tiers(program, profile)
    ]
    # max() keeps the first tier on ties
    return max(scores, key=lambda s: s.confidence)


def _default_score(lender: LenderRecord, profile: BuyerProfile, config: ScoringConfig) -> ProgramScore:
    confidence = config.base_confidence
    rationale = f"{lender.display_name} offers programs available for review once more details are provided."
    if "first" in _experience(profile):
        confidence -= 0.15
        rationale += " First-time investor may face additional requirements."
    confidence = max(config.min_confidence, min(config.max_confidence, confidence))
    return ProgramScore(
        program_name=lender.display_name,
        confidence=round(confidence, 2),
        rationale=rationale,
        is_default=True,
    )


def score_lender(
    lender: LenderRecord,
    profile: BuyerProfile,
    config: Optional[ScoringConfig] = None,
) -> list[ProgramScore]:
    """
    Every program score at or above the inclusion floor, in catalog order.
    Never empty: a lender with no qualifying program gets exactly one default score.
    """
    config = config or ScoringConfig.from_settings()
    loan_amount = profile.loan_amount
    scores = [score_program(p, profile, loan_amount, config) for p in lender.programs]
    qualifying = [s for s in scores if s.confidence >= config.inclusion_floor]
    if qualifying:
        return qualifying
    return [_default_score(lender, profile, config)]


def _to_result(lender: LenderRecord, score: ProgramScore, config: ScoringConfig) -> MatchResultSchema:
    is_match = score.confidence >= config.match_threshold
    rationale = score.rationale.strip() or "Program available for review."
    return MatchResultSchema(
        lender_id=lender.id,
        lender_name=lender.display_name,
        program_name=score.program_name or lender.display_name,
        confidence=score.confidence,
        is_match=is_match,
        rationale=rationale,
        match_summary=rationale,
        non_match_reason=None if is_match else rationale,
        max_ltv=score.max_ltv,
        min_credit_score=score.min_credit_score,
        max_loan_amount=score.max_loan_amount,
        website=lender.website,
        phone=lender.phone,
        department_contacts=lender.department_contacts,
        is_default=score.is_default,
    )


def rank_matches(results: Sequence[MatchResultSchema]) -> list[MatchResultSchema]:
    """Matches first by descending confidence, then non-matches alphabetically by lender."""
    matches = sorted((r for r in results if r.is_match), key=lambda r: (-r.confidence, r.lender_name))
    non_matches = sorted((r for r in results if not r.is_match), key=lambda r: (r.lender_name, -r.confidence))
    return matches + non_matches


def find_top_matches(
    catalog: LenderCatalog,
    profile: BuyerProfile,
    limit: Optional[int] = None,
    config: Optional[ScoringConfig] = None,
    best_per_lender: bool = True,
) -> list[MatchResultSchema]:
    """
    Rank the catalog for a profile. By default each lender contributes its best program;
    best_per_lender=False returns every qualifying (lender, program) pair.
    """
    if catalog is None or catalog.lenders is None:
        raise ValueError("Lender catalog not loaded")
    config = config or ScoringConfig.from_settings()

    results: list[MatchResultSchema] = []
    for lender in catalog.lenders:
        scores = score_lender(lender, profile, config)
        if best_per_lender:
            # max() keeps the first of equal scores, i.e. catalog order
            scores = [max(scores, key=lambda s: s.confidence)]
        results.extend(_to_result(lender, s, config) for s in scores)

    ranked = rank_matches(results)
    if limit is not None:
        ranked = ranked[: max(0, limit)]
    logger.debug(
        "Scored %d lenders: %d matches", len(catalog.lenders), sum(1 for r in ranked if r.is_match)
    )
    return ranked


def run_match(
    catalog: LenderCatalog,
    raw_profile: Any,
    required: Sequence[str] = REQUIRED_FIELDS,
    limit: Optional[int] = None,
    config: Optional[ScoringConfig] = None,
) -> MatchOutcome:
    """Normalize, gate on required fields, then score. A gated outcome carries no matches."""
    profile = normalize_profile(raw_profile)
    missing = find_missing_fields(profile, required)
    if missing:
        return MatchOutcome(profile=profile, missing_fields=missing)
    return MatchOutcome(profile=profile, matches=find_top_matches(catalog, profile, limit, config))
