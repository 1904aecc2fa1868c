"""
Pydantic schemas mirroring the WebSocket signaling contract.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Envelope(BaseModel):
    type: str
    from_: str = Field(alias="from", min_length=1)
    to: str = ""
    data: Optional[Dict[str, Any]] = None
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("to", mode="before")
    @classmethod
    def _none_is_broadcast(cls, value: object) -> object:
        return "" if value is None else value


class SessionDescriptionData(BaseModel):
    sdp: str
    connection_id: str = Field(alias="connectionId", min_length=1)
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CandidateData(BaseModel):
    candidate: str
    sdp_mline_index: Optional[int] = Field(default=None, alias="sdpMLineIndex")
    sdp_mid: Optional[str] = Field(default=None, alias="sdpMid")
    connection_id: str = Field(alias="connectionId", min_length=1)
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


__all__ = ["CandidateData", "Envelope", "SessionDescriptionData"]
