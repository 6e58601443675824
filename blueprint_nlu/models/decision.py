"""Slot decisions: what the dialogue controller should do about each slot."""

from enum import Enum
from typing import List

from pydantic import BaseModel


class SlotDecision(str, Enum):
    ASSUME = "assume"       # Commit silently
    CONFIRM = "confirm"     # Verify the inference with the user
    ASK = "ask"             # Critical and unknown; ask outright
    SKIP = "skip"           # Not needed right now


class SlotDecisionSummary(BaseModel):
    assumed: List[str] = []
    to_confirm: List[str] = []
    to_ask: List[str] = []
    skipped: List[str] = []
    can_proceed: bool = True
