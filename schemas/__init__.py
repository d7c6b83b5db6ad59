from schemas.chat import (
    ChatRequest,
    ChatResponse,
    ConversationMessage,
    ParameterChangeSet,
    ParameterCorrection,
    ParameterMention,
    SessionStateSchema,
)
from schemas.lender import (
    LenderCatalog,
    LenderRecord,
    MatchResultSchema,
    ProgramRecord,
    ProgramTier,
)
from schemas.matching import MatchAnalysis, MatchRequest, MatchResponse
from schemas.profile import BuyerProfile

__all__ = [
    "BuyerProfile",
    "ChatRequest",
    "ChatResponse",
    "ConversationMessage",
    "LenderCatalog",
    "LenderRecord",
    "MatchAnalysis",
    "MatchRequest",
    "MatchResponse",
    "MatchResultSchema",
    "ParameterChangeSet",
    "ParameterCorrection",
    "ParameterMention",
    "ProgramRecord",
    "ProgramTier",
    "SessionStateSchema",
]
