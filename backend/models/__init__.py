"""
Pydantic models for coLoc.

Wire shapes only. No imports from services or routes.
"""

from backend.models.actions import (
    AckMessage,
    ActionEnvelope,
    ActionResponse,
    StateMessage,
    StateResponse,
    StateSnapshot,
)

__all__ = [
    # Client → server
    "ActionEnvelope",
    # Server → client
    "StateSnapshot",
    "StateMessage",
    "AckMessage",
    # HTTP responses
    "ActionResponse",
    "StateResponse",
]
