"""
UserSnapshot: the single pre-fetched read the engine runs over.
"""

from pydantic import BaseModel, Field

from .action import Action
from .relationship import EmailSignal, Relationship


class UserSnapshot(BaseModel):
    """
    Everything the engine needs for one user, loaded once before a run.

    ``actions`` holds actions in every state: terminal actions feed the
    response rate and the last-contact fallback but are never ranked.
    """

    user_id: str
    relationships: list[Relationship] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    email_signals: list[EmailSignal] = Field(default_factory=list)

    def actions_by_relationship(self) -> dict[str, list[Action]]:
        """Group actions by relationship ID, skipping unattached actions."""
        grouped: dict[str, list[Action]] = {}
        for action in self.actions:
            if action.relationship_id:
                grouped.setdefault(action.relationship_id, []).append(action)
        return grouped

    def signals_by_relationship(self) -> dict[str, list[EmailSignal]]:
        """Group email signals by relationship ID."""
        grouped: dict[str, list[EmailSignal]] = {}
        for signal in self.email_signals:
            grouped.setdefault(signal.relationship_id, []).append(signal)
        return grouped
