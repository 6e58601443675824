"""
Discovery Session Store: holds the ledger history of every live discovery
conversation.

Updated by: API turns (utterances, slot overrides, undo)
Queried by: API readers and the dialogue controller
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from blueprint_nlu.ledger.certainty import (
    create_empty_ledger,
    update_ledger_from_input,
    update_slot,
)
from blueprint_nlu.models.config import LedgerConfig
from blueprint_nlu.models.ledger import CertaintyLedger, IndustryKit, SlotSource
from blueprint_nlu.models.session import DiscoverySession

logger = logging.getLogger(__name__)


class DiscoverySessionStore:
    """
    In-memory session store for the prototype.
    Production would use a persistent database.

    Ledgers are immutable values, so keeping the history is just keeping
    references; nothing is copied.
    """

    def __init__(self, ledger_config: Optional[LedgerConfig] = None):
        self._sessions: Dict[str, DiscoverySession] = {}
        self._ledger_config = ledger_config or LedgerConfig()

    def create_session(self) -> DiscoverySession:
        now = datetime.utcnow()
        session = DiscoverySession(
            id=f"session_{uuid4().hex[:12]}",
            created_at=now,
            updated_at=now,
            history=[create_empty_ledger()],
        )
        self._sessions[session.id] = session
        logger.info(f"Created discovery session {session.id}")
        return session

    def get_session(self, session_id: str) -> Optional[DiscoverySession]:
        return self._sessions.get(session_id)

    def get_ledger(self, session_id: str) -> Optional[CertaintyLedger]:
        """Current ledger of a session."""
        session = self._sessions.get(session_id)
        return session.ledger if session else None

    def history(self, session_id: str) -> Optional[List[CertaintyLedger]]:
        """Every ledger of a session, oldest first."""
        session = self._sessions.get(session_id)
        return list(session.history) if session else None

    def apply_utterance(
        self,
        session_id: str,
        utterance: str,
        industry_kit: Optional[IndustryKit] = None,
    ) -> Optional[CertaintyLedger]:
        """Fold one user turn into the session and return the new ledger."""
        session = self._sessions.get(session_id)
        if session is None:
            return None

        ledger = update_ledger_from_input(
            session.ledger, utterance, industry_kit, self._ledger_config
        )
        session.history.append(ledger)
        session.updated_at = datetime.utcnow()

        logger.debug(
            f"Session {session_id} turn {len(session.history) - 1}: "
            f"readiness={ledger.overall_readiness:.2f}, gaps={ledger.gaps}"
        )
        return ledger

    def set_slot(
        self,
        session_id: str,
        slot_id: str,
        value: Any,
        confidence: float,
        source: SlotSource = SlotSource.EXPLICIT,
        evidence: Optional[List[str]] = None,
    ) -> Optional[CertaintyLedger]:
        """
        Override one slot directly, e.g. when the user answers a question.
        Raises UnknownSlotError for an unknown slot id.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return None

        ledger = update_slot(session.ledger, slot_id, value, confidence, source, evidence)
        session.history.append(ledger)
        session.updated_at = datetime.utcnow()
        return ledger

    def undo(self, session_id: str) -> Optional[CertaintyLedger]:
        """Drop the newest ledger. The initial empty ledger is never dropped."""
        session = self._sessions.get(session_id)
        if session is None:
            return None

        if len(session.history) > 1:
            session.history.pop()
            session.updated_at = datetime.utcnow()
            logger.info(f"Session {session_id} rolled back to turn {len(session.history) - 1}")
        return session.ledger

    def remove_session(self, session_id: str) -> bool:
        if session_id in self._sessions:
            del self._sessions[session_id]
            return True
        return False

    def list_sessions(self) -> List[DiscoverySession]:
        return list(self._sessions.values())
