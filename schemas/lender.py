from typing import Any, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ProgramTier(BaseModel):
    """One credit/LTV/amount band of a program (or one occupancy variant of a keyed program)."""
    label: Optional[str] = None
    occupancy: Optional[Literal["investment", "primary"]] = None
    min_credit_score: Optional[int] = None
    max_ltv: Optional[float] = None
    max_loan_amount: Optional[float] = None


class ProgramRecord(BaseModel):
    """
    A lending program after ingestion. Every legacy catalog shape (flat list,
    keyed map, tier list) is normalized into this one shape before scoring.
    """
    name: str
    source: Literal["flat", "keyed", "tiered"] = "flat"
    max_ltv: Optional[float] = None
    max_loan_amount: Optional[float] = None
    min_credit_score: Optional[int] = None
    property_types: Optional[list[str]] = None
    purpose: Optional[str] = None
    tiers: list[ProgramTier] = Field(default_factory=list)


class LenderRecord(BaseModel):
    id: str
    display_name: str
    website: Optional[str] = None
    phone: Optional[str] = None
    department_contacts: Optional[dict[str, Any]] = None
    programs: list[ProgramRecord] = Field(default_factory=list)


class LenderCatalog(BaseModel):
    """Loaded once at startup and read-only afterwards."""
    lenders: list[LenderRecord] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.lenders)


class MatchResultSchema(BaseModel):
    lender_id: str
    lender_name: str
    program_name: str
    confidence: float = Field(..., ge=0, le=1)
    is_match: bool
    rationale: str
    match_summary: str
    non_match_reason: Optional[str] = None
    max_ltv: Optional[float] = None
    min_credit_score: Optional[int] = None
    max_loan_amount: Optional[float] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    department_contacts: Optional[dict[str, Any]] = None
    is_default: bool = False

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
