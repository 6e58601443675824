"""Discovery Session: one user's sequence of ledgers across turns."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from blueprint_nlu.models.ledger import CertaintyLedger


class DiscoverySession(BaseModel):
    """
    History is append-only from the caller's point of view: each turn adds a
    ledger, undo drops the newest. The first entry is always the empty ledger.
    """

    id: str
    created_at: datetime
    updated_at: datetime
    history: List[CertaintyLedger] = Field(default_factory=lambda: [CertaintyLedger()])

    @property
    def ledger(self) -> CertaintyLedger:
        return self.history[-1]
