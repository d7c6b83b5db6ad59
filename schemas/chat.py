from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from schemas.lender import MatchResultSchema

ParameterValue = Union[float, int, str]

TRACKED_PARAMETERS = (
    "credit_score",
    "down_payment_percent",
    "property_value",
    "property_type",
    "investment_experience",
    "property_location",
)


class _CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ParameterChangeSet(_CamelModel):
    """What one chat message revealed; at most one value per parameter."""
    has_changes: bool = False
    is_hypothetical: bool = False
    credit_score: Optional[int] = None
    down_payment_percent: Optional[int] = None
    property_value: Optional[float] = None
    property_type: Optional[str] = None
    investment_experience: Optional[str] = None
    property_location: Optional[str] = None

    def changed_parameters(self) -> dict[str, ParameterValue]:
        """Non-null tracked parameters in their fixed order."""
        return {name: getattr(self, name) for name in TRACKED_PARAMETERS if getattr(self, name) is not None}


class ParameterMention(_CamelModel):
    parameter: str
    value: ParameterValue
    timestamp: datetime
    is_correction: bool = False


class ParameterCorrection(_CamelModel):
    parameter: str
    old_value: ParameterValue
    new_value: ParameterValue
    timestamp: datetime


class SessionStateSchema(_CamelModel):
    """Wire form of services.session.SessionState (the client holds it between turns)."""
    mentioned_parameters: dict[str, ParameterValue] = Field(default_factory=dict)
    parameter_history: list[ParameterMention] = Field(default_factory=list)
    corrections: list[ParameterCorrection] = Field(default_factory=list)


class ConversationMessage(_CamelModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(_CamelModel):
    message: str
    form_snapshot: dict[str, Any] = Field(default_factory=dict)
    session_state: SessionStateSchema = Field(default_factory=SessionStateSchema)
    conversation_history: list[ConversationMessage] = Field(default_factory=list)
    property_insights: Optional[dict[str, Any]] = None


class ChatResponse(_CamelModel):
    response: str
    fallback: bool = False
    change_set: ParameterChangeSet
    matches: Optional[list[MatchResultSchema]] = None
    requires_more_info: bool = False
    missing_fields: list[str] = Field(default_factory=list)
    form_snapshot: dict[str, Any]
    session_state: SessionStateSchema
    conversation_history: list[ConversationMessage]
    timestamp: datetime
