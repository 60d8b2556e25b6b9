"""Pydantic models for tpledger."""

from .action import Action, ActionRequest, to_float32
from .source import Source

__all__ = [
    "Action",
    "ActionRequest",
    "Source",
    "to_float32",
]
