"""Process-wide lender catalog: loaded once at startup, read-only afterwards."""
import logging
from typing import Optional

from fastapi import HTTPException

from config import settings
from schemas.lender import LenderCatalog
from services.catalog import load_catalog
from services.llm import generate_chat_reply

logger = logging.getLogger(__name__)

_catalog: Optional[LenderCatalog] = None


def init_catalog(path: Optional[str] = None) -> LenderCatalog:
    """Load the catalog; a CatalogLoadError propagates so startup fails loudly."""
    global _catalog
    _catalog = load_catalog(path or settings.catalog_path)
    return _catalog


def get_catalog() -> LenderCatalog:
    if _catalog is None:
        raise HTTPException(status_code=503, detail="Lender catalog not loaded")
    return _catalog


def get_reply_fn():
    """Chat reply collaborator, or None to use the fallback reply."""
    return generate_chat_reply if settings.llm_enabled else None
