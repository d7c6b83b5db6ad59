import logging

from fastapi import APIRouter, Depends

from catalog_store import get_catalog
from config import settings
from schemas.lender import LenderCatalog
from schemas.matching import MatchAnalysis, MatchRequest, MatchResponse
from services.llm import generate_match_summary
from services.matching_engine import run_match
from services.property_insights import insights_for_profile
from services.validation import REQUIRED_FIELDS, missing_fields_message
from utils.parsing import names_to_camel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["matching"])

SUMMARY_MATCHES = 3


@router.post("/match-lenders", response_model=MatchResponse)
async def match_lenders(body: MatchRequest, catalog: LenderCatalog = Depends(get_catalog)):
    outcome = run_match(catalog, body.buyer_profile, REQUIRED_FIELDS, limit=settings.match_limit)
    if outcome.requires_more_info:
        return MatchResponse(
            requires_more_info=True,
            missing_fields=names_to_camel(outcome.missing_fields),
            message=missing_fields_message(outcome.missing_fields),
        )

    insights = body.property_insights
    if insights is None:
        insights = await insights_for_profile(outcome.profile)

    summary = await generate_match_summary(
        {
            "buyerProfile": outcome.profile.model_dump(by_alias=True, exclude_none=True),
            "matches": [m.model_dump(by_alias=True) for m in outcome.matches[:SUMMARY_MATCHES]],
            "propertyInsights": insights,
        }
    )
    logger.info(
        "Matched profile against %d lenders: %d returned, %d matches",
        len(catalog),
        len(outcome.matches),
        sum(1 for m in outcome.matches if m.is_match),
    )
    return MatchResponse(
        requires_more_info=False,
        matches=outcome.matches,
        analysis=MatchAnalysis(**summary) if summary else None,
        property_insights=insights,
    )
