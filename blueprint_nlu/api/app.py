"""
Blueprint NLU API: FastAPI endpoints.

Exposes the pipeline via a REST API for:
- Utterance parsing
- Discovery sessions (ledger updates, slot overrides, undo)
- Workflow inference
- Revision planning and application
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from blueprint_nlu import settings
from blueprint_nlu.classifier.engine import IntentClassifier
from blueprint_nlu.ledger.certainty import format_ledger_as_context, is_ready_to_build
from blueprint_nlu.ledger.decisions import get_decision_summary
from blueprint_nlu.models.config import LedgerConfig, RevisionConfig, WorkflowInferenceConfig
from blueprint_nlu.models.ledger import CertaintyLedger, IndustryKit, SlotSource, UnknownSlotError
from blueprint_nlu.models.revision import AppContext, RevisionChange
from blueprint_nlu.models.workflow import DetectedFeature, KnownEntity
from blueprint_nlu.revision.engine import VoiceRevisionEngine
from blueprint_nlu.session.store import DiscoverySessionStore
from blueprint_nlu.workflows.inference import WorkflowInferenceEngine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Root logging belongs to the serving process, not to importers
    settings.setup_logging()
    logger.info(f"{settings.API_TITLE} {settings.API_VERSION} starting")
    yield


# --- Request/Response Models ---

class ParseRequest(BaseModel):
    text: str


class UtteranceRequest(BaseModel):
    utterance: str
    industry_kit: Optional[IndustryKit] = None


class SlotUpdateRequest(BaseModel):
    value: Any = None
    confidence: float
    source: SlotSource = SlotSource.EXPLICIT
    evidence: List[str] = []


class WorkflowInferRequest(BaseModel):
    text: str
    entities: List[KnownEntity] = []
    features: List[DetectedFeature] = []


class RevisionRequest(BaseModel):
    utterance: str
    context: AppContext


class ApplyChangesRequest(BaseModel):
    context: AppContext
    changes: List[RevisionChange]


# --- Application Factory ---

def create_app(
    session_store: Optional[DiscoverySessionStore] = None,
    classifier: Optional[IntentClassifier] = None,
    ledger_config: Optional[LedgerConfig] = None,
    workflow_config: Optional[WorkflowInferenceConfig] = None,
    revision_config: Optional[RevisionConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title=settings.API_TITLE,
        description="Intent, ledger, workflow and revision pipeline",
        version=settings.API_VERSION,
        lifespan=lifespan,
    )

    # Initialize components
    lc = ledger_config or LedgerConfig()
    ss = session_store or DiscoverySessionStore(ledger_config=lc)
    ic = classifier or IntentClassifier()
    we = WorkflowInferenceEngine(config=workflow_config)
    rv = VoiceRevisionEngine(classifier=ic, config=revision_config)

    # Store components on app state for access in endpoints
    app.state.session_store = ss
    app.state.classifier = ic
    app.state.workflow_engine = we
    app.state.revision_engine = rv

    def ledger_view(session_id: str, ledger: CertaintyLedger) -> dict:
        return {
            "session_id": session_id,
            "ledger": ledger.model_dump(mode="json"),
            "readiness": ledger.overall_readiness,
            "gaps": ledger.gaps,
            "ready_to_build": is_ready_to_build(ledger, lc),
            "decisions": get_decision_summary(ledger).model_dump(mode="json"),
            "context": format_ledger_as_context(ledger),
        }

    def require_ledger(ledger: Optional[CertaintyLedger]) -> CertaintyLedger:
        if ledger is None:
            raise HTTPException(404, "Session not found")
        return ledger

    # === PARSING ===

    @app.post("/parse")
    def parse(req: ParseRequest):
        """Parse one utterance."""
        return ic.parse(req.text).model_dump(mode="json")

    # === DISCOVERY SESSIONS ===

    @app.post("/sessions")
    def create_session():
        """Start a discovery session with an empty ledger."""
        session = ss.create_session()
        return ledger_view(session.id, session.ledger)

    @app.get("/sessions")
    def list_sessions():
        return [
            {
                "session_id": s.id,
                "created_at": s.created_at.isoformat(),
                "updated_at": s.updated_at.isoformat(),
                "turns": len(s.history) - 1,
            }
            for s in ss.list_sessions()
        ]

    @app.get("/sessions/{session_id}")
    def get_session(session_id: str):
        ledger = require_ledger(ss.get_ledger(session_id))
        return ledger_view(session_id, ledger)

    @app.delete("/sessions/{session_id}")
    def delete_session(session_id: str):
        if not ss.remove_session(session_id):
            raise HTTPException(404, "Session not found")
        return {"status": "deleted", "session_id": session_id}

    @app.get("/sessions/{session_id}/history")
    def get_history(session_id: str):
        history = ss.history(session_id)
        if history is None:
            raise HTTPException(404, "Session not found")
        return [ledger.model_dump(mode="json") for ledger in history]

    @app.post("/sessions/{session_id}/utterances")
    def add_utterance(session_id: str, req: UtteranceRequest):
        """Fold one user turn into the session ledger."""
        ledger = require_ledger(ss.apply_utterance(session_id, req.utterance, req.industry_kit))
        return ledger_view(session_id, ledger)

    @app.put("/sessions/{session_id}/slots/{slot_id}")
    def set_slot(session_id: str, slot_id: str, req: SlotUpdateRequest):
        """Override one slot, e.g. with the user's answer to a question."""
        try:
            ledger = ss.set_slot(
                session_id, slot_id, req.value, req.confidence, req.source, req.evidence
            )
        except UnknownSlotError as e:
            raise HTTPException(422, str(e))
        return ledger_view(session_id, require_ledger(ledger))

    @app.post("/sessions/{session_id}/undo")
    def undo(session_id: str):
        ledger = require_ledger(ss.undo(session_id))
        return ledger_view(session_id, ledger)

    # === WORKFLOWS ===

    @app.post("/workflows/infer")
    def infer_workflows(req: WorkflowInferRequest):
        """Infer workflows for an utterance against known entities and features."""
        parsed = ic.parse(req.text)
        workflows = we.infer(parsed, req.entities, req.features)
        return [w.model_dump(mode="json") for w in workflows]

    # === REVISIONS ===

    @app.post("/revisions")
    def plan_revision(req: RevisionRequest):
        """Plan changes for a revision request. Nothing is applied."""
        result = rv.process_revision(req.utterance, req.context)
        return result.model_dump(mode="json")

    @app.post("/revisions/apply")
    def apply_revision(req: ApplyChangesRequest):
        """Apply previously planned changes and return the new context."""
        return rv.apply_changes(req.context, req.changes).model_dump(mode="json")

    return app


# Default application instance
app = create_app()
