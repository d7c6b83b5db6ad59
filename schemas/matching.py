from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from schemas.lender import MatchResultSchema


class MatchRequest(BaseModel):
    # Raw form payload; the normalizer coerces it, so no field-level validation here
    buyer_profile: Any = Field(default_factory=dict)
    property_insights: Optional[dict[str, Any]] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class MatchAnalysis(BaseModel):
    summary: str
    talking_points: list[str] = Field(default_factory=list)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class MatchResponse(BaseModel):
    requires_more_info: bool
    missing_fields: list[str] = Field(default_factory=list)
    message: Optional[str] = None
    matches: list[MatchResultSchema] = Field(default_factory=list)
    analysis: Optional[MatchAnalysis] = None
    property_insights: Optional[dict[str, Any]] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
