from fastapi import APIRouter, Depends

from catalog_store import get_catalog
from config import settings
from schemas.lender import LenderCatalog

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=dict)
async def health(catalog: LenderCatalog = Depends(get_catalog)):
    return {
        "status": "ok",
        "lenders": len(catalog),
        "llmEnabled": settings.llm_enabled,
        "propertyInsightsEnabled": settings.insights_enabled,
    }
