"""Wire models for the action relay: envelopes in, state and acks out."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ActionEnvelope(BaseModel):
    """
    What a client sends, over the websocket or to POST /api/actions.

    `type` stays optional here so that a missing type can be answered with an
    error ack instead of a validation failure.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str | None = None
    payload: dict[str, Any] | None = None
    request_id: str | int | None = Field(default=None, alias="requestId")


class StateSnapshot(BaseModel):
    """The full {sessions, teams} tree every client mirrors."""

    sessions: dict[str, Any] = Field(default_factory=dict)
    teams: dict[str, Any] = Field(default_factory=dict)


class StateMessage(BaseModel):
    """Server → client push after connect and after every action."""

    event: Literal["state"] = "state"
    data: StateSnapshot
    hash: str


class AckMessage(BaseModel):
    """Server → sender reply to one action. Never broadcast."""

    model_config = ConfigDict(populate_by_name=True)

    event: Literal["ack"] = "ack"
    request_id: str | int | None = Field(default=None, alias="requestId")
    data: dict[str, Any] = Field(default_factory=dict)


class ActionResponse(BaseModel):
    """What POST /api/actions returns: the ack plus the snapshot it produced."""

    ack: dict[str, Any] = Field(default_factory=dict)
    state: StateSnapshot
    hash: str


class StateResponse(BaseModel):
    """What GET /api/state returns."""

    state: StateSnapshot
    hash: str
