"""Pydantic model for registered sources."""

from pydantic import BaseModel, Field


class Source(BaseModel):
    """A registered writer identity and its display label."""

    identity: str = Field(description="Opaque caller identity (unique)")
    label: str = Field(description="Display label, not required unique")

    model_config = {"frozen": True}
