from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from catalog_store import get_catalog, get_reply_fn
from config import settings
from schemas.chat import ChatRequest, ChatResponse, ConversationMessage
from schemas.lender import LenderCatalog
from services.chat import ChatSession
from services.errors import ChatSessionBusyError
from services.session import SessionState
from utils.parsing import names_to_camel

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    catalog: LenderCatalog = Depends(get_catalog),
    reply_fn=Depends(get_reply_fn),
):
    """
    Stateless turn: the client sends its form snapshot, session state and history and gets the
    updated versions back. Hypothetical changes never appear in the returned snapshot or state.
    """
    if not body.message or not body.message.strip():
        raise HTTPException(status_code=400, detail="A message is required.")

    session = ChatSession(
        catalog,
        form_snapshot=body.form_snapshot,
        state=SessionState.from_schema(body.session_state),
        history=[m.model_dump() for m in body.conversation_history],
        reply_fn=reply_fn,
        limit=settings.match_limit,
        property_insights=body.property_insights,
    )
    try:
        turn = await session.send(body.message)
    except ChatSessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ChatResponse(
        response=turn.reply,
        fallback=turn.fallback,
        change_set=turn.change_set,
        matches=turn.matches,
        requires_more_info=turn.requires_more_info,
        missing_fields=names_to_camel(turn.missing_fields),
        form_snapshot=session.form_snapshot,
        session_state=session.state.to_schema(),
        conversation_history=[ConversationMessage(**h) for h in session.history],
        timestamp=datetime.now(timezone.utc),
    )
