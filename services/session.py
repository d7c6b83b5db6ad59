"""
Per-conversation memory of what the user has said about their deal.
Owned by exactly one conversation; the HTTP layer round-trips it through SessionStateSchema.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic.alias_generators import to_camel

from schemas.chat import (
    ParameterChangeSet,
    ParameterCorrection,
    ParameterMention,
    ParameterValue,
    SessionStateSchema,
)

CONTEXT_LABELS = {
    "creditScore": "Credit Score",
    "downPaymentPercent": "Down Payment",
    "propertyValue": "Property Value",
    "propertyType": "Property Type",
    "investmentExperience": "Investment Experience",
    "propertyLocation": "Location",
}


def _display(value: ParameterValue) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class SessionState:
    """
    mentioned_parameters holds the latest value per parameter (camelCase names, as the client sends them).
    parameter_history gets one entry per applied value; corrections only when a value actually changed.
    """

    def __init__(
        self,
        mentioned_parameters: Optional[dict[str, ParameterValue]] = None,
        parameter_history: Optional[list[ParameterMention]] = None,
        corrections: Optional[list[ParameterCorrection]] = None,
    ):
        self.mentioned_parameters: dict[str, ParameterValue] = dict(mentioned_parameters or {})
        self.parameter_history: list[ParameterMention] = list(parameter_history or [])
        self.corrections: list[ParameterCorrection] = list(corrections or [])

    @classmethod
    def from_schema(cls, schema: Optional[SessionStateSchema]) -> "SessionState":
        if schema is None:
            return cls()
        return cls(schema.mentioned_parameters, schema.parameter_history, schema.corrections)

    def to_schema(self) -> SessionStateSchema:
        return SessionStateSchema(
            mentioned_parameters=dict(self.mentioned_parameters),
            parameter_history=list(self.parameter_history),
            corrections=list(self.corrections),
        )

    def apply(self, change_set: ParameterChangeSet, now: Optional[datetime] = None) -> bool:
        """Record a non-hypothetical change set. Returns False (and touches nothing) for hypotheticals."""
        if change_set.is_hypothetical:
            return False
        timestamp = now or datetime.now(timezone.utc)
        for name, value in change_set.changed_parameters().items():
            parameter = to_camel(name)
            previously_mentioned = parameter in self.mentioned_parameters
            old_value = self.mentioned_parameters.get(parameter)
            self.mentioned_parameters[parameter] = value
            self.parameter_history.append(
                ParameterMention(
                    parameter=parameter,
                    value=value,
                    timestamp=timestamp,
                    is_correction=previously_mentioned,
                )
            )
            if previously_mentioned and old_value != value:
                self.corrections.append(
                    ParameterCorrection(
                        parameter=parameter,
                        old_value=old_value,
                        new_value=value,
                        timestamp=timestamp,
                    )
                )
        return True

    def clear(self) -> None:
        self.mentioned_parameters = {}
        self.parameter_history = []
        self.corrections = []

    def conversation_context(self) -> Optional[str]:
        """Summary line for the LLM prompt, or None before anything was mentioned."""
        if not self.parameter_history or not self.mentioned_parameters:
            return None
        mentioned = ", ".join(
            f"{CONTEXT_LABELS.get(param, param)}: {_display(value)}"
            for param, value in self.mentioned_parameters.items()
        )
        context = f"User mentioned in conversation: {mentioned}"
        if self.corrections:
            corrections = "; ".join(
                f"{c.parameter} corrected from {_display(c.old_value)} to {_display(c.new_value)}"
                for c in self.corrections
            )
            context += f". Corrections: {corrections}"
        return context


def apply_changes_to_profile(snapshot: dict[str, Any], change_set: ParameterChangeSet) -> dict[str, Any]:
    """Copy of a camelCase form snapshot with the change set's non-null values merged in."""
    merged = dict(snapshot or {})
    for name, value in change_set.changed_parameters().items():
        merged.pop(name, None)
        merged[to_camel(name)] = value
    return merged
