"""Pydantic models for recorded actions."""

import struct

from pydantic import BaseModel, Field, field_validator


def to_float32(value: float) -> float:
    """Narrow a Python float to IEEE-754 single precision.

    NaN and infinities pass through; finite values beyond the float32 range
    become signed infinities.
    """
    value = float(value)
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return float("inf") if value > 0 else float("-inf")


class ActionRequest(BaseModel):
    """Caller-supplied record for a batch write."""

    trust: float = Field(description="Signed trust score (float32, unvalidated)")
    performance: float = Field(description="Signed performance score (float32, unvalidated)")
    action_type: str = Field(description="Opaque action type, e.g. 'reaction'")
    action_date: str = Field(description="Caller-supplied date, not validated")
    account_did: str = Field(description="Subject DID the action is about")
    identifier: str = Field(description="Caller correlation id, not required unique")

    model_config = {"frozen": True}

    @field_validator("trust", "performance")
    @classmethod
    def _narrow(cls, v: float) -> float:
        return to_float32(v)


class Action(BaseModel):
    """Immutable ledger record.

    Built by the ledger at append time; never updated or deleted.
    """

    trust: float = Field(description="Signed trust score (float32)")
    performance: float = Field(description="Signed performance score (float32)")
    action_type: str = Field(description="Opaque action type")
    action_date: str = Field(description="Caller-supplied date, opaque")
    block_date: str = Field(description="Clock timestamp captured at append time")
    source_label: str = Field(description="Writer's label at append time")
    source: str = Field(description="Authenticated writer identity")
    identifier: str = Field(description="Caller correlation id")

    model_config = {"frozen": True}

    @field_validator("trust", "performance")
    @classmethod
    def _narrow(cls, v: float) -> float:
        return to_float32(v)
