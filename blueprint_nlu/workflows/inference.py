"""
Workflow Inference Engine: infers automation workflows from a parsed utterance.

Four passes, merged first-writer-wins by workflow id, in this order:
  1. Pattern library: keyword-scored templates bound to the first entity
  2. Standard CRUD + navigation workflows for every known entity
  3. Feature-gated workflows (booking, invoicing, quotes, reminders)
  4. Causal "when X then Y" workflows parsed straight from the text

Every pass is deterministic except the id of a causal workflow.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict

from blueprint_nlu.models.config import WorkflowInferenceConfig
from blueprint_nlu.models.parsed import ParsedInput, SemanticIntent
from blueprint_nlu.models.workflow import (
    DetectedFeature,
    InferredWorkflow,
    KnownEntity,
    WorkflowCondition,
    WorkflowStep,
    WorkflowStepType,
    WorkflowTrigger,
    WorkflowTriggerType,
)

logger = logging.getLogger(__name__)

_I = re.IGNORECASE


class WorkflowPattern(BaseModel):
    """A reusable workflow template keyed by trigger phrases."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    triggers: Tuple[str, ...]
    entity_based: bool
    description: str
    trigger: Dict[str, Any]
    steps: Tuple[Dict[str, Any], ...]
    conditions: Tuple[Dict[str, Any], ...] = ()

    @property
    def is_scheduled(self) -> bool:
        return self.trigger["type"] == WorkflowTriggerType.SCHEDULE.value

    @property
    def communicates(self) -> bool:
        return any(s["type"] in ("email", "notify") for s in self.steps)


WORKFLOW_PATTERNS: Tuple[WorkflowPattern, ...] = (
    # CRUD
    WorkflowPattern(
        id="create-record",
        name="Create Record",
        triggers=("create", "add", "new", "submit", "save"),
        entity_based=True,
        description="Create a new record from form submission",
        trigger={"type": "form_submit", "component_id": "{entity}-form"},
        steps=(
            {"id": "create", "type": "create", "config": {"entity_id": "{entity}", "source": "form_data"}},
            {"id": "notify", "type": "notify", "config": {"message": "{Entity} created successfully!", "type": "success"}},
            {"id": "navigate", "type": "navigate", "config": {"page_id": "{entity}-list"}},
        ),
    ),
    WorkflowPattern(
        id="update-record",
        name="Update Record",
        triggers=("update", "edit", "modify", "change", "save"),
        entity_based=True,
        description="Update an existing record",
        trigger={"type": "form_submit", "component_id": "{entity}-edit-form"},
        steps=(
            {"id": "update", "type": "update", "config": {"entity_id": "{entity}", "source": "form_data"}},
            {"id": "notify", "type": "notify", "config": {"message": "{Entity} updated!", "type": "success"}},
            {"id": "navigate", "type": "navigate", "config": {"page_id": "{entity}-detail"}},
        ),
    ),
    WorkflowPattern(
        id="delete-record",
        name="Delete Record",
        triggers=("delete", "remove", "trash"),
        entity_based=True,
        description="Delete a record with confirmation",
        trigger={"type": "button_click", "component_id": "{entity}-delete-btn"},
        steps=(
            {"id": "delete", "type": "delete", "config": {"entity_id": "{entity}"}},
            {"id": "notify", "type": "notify", "config": {"message": "{Entity} deleted", "type": "info"}},
            {"id": "navigate", "type": "navigate", "config": {"page_id": "{entity}-list"}},
        ),
    ),

    # Status
    WorkflowPattern(
        id="change-status",
        name="Change Status",
        triggers=("complete", "finish", "done", "close", "approve", "reject", "cancel"),
        entity_based=True,
        description="Change the status of a record",
        trigger={"type": "button_click", "component_id": "{entity}-status-btn"},
        steps=(
            {"id": "update-status", "type": "update", "config": {"entity_id": "{entity}", "field": "status", "value": "{newStatus}"}},
            {"id": "notify", "type": "notify", "config": {"message": "Status updated to {newStatus}", "type": "success"}},
        ),
    ),

    # Notifications
    WorkflowPattern(
        id="send-email",
        name="Send Email Notification",
        triggers=("email", "send email", "notify by email", "email notification"),
        entity_based=True,
        description="Send an email when something happens",
        trigger={"type": "record_create", "entity_id": "{entity}"},
        steps=(
            {"id": "email", "type": "email", "config": {"to": "{recipient}", "subject": "New {Entity}", "body": "A new {entity} has been created."}},
        ),
    ),
    WorkflowPattern(
        id="send-reminder",
        name="Send Reminder",
        triggers=("remind", "reminder", "alert", "notify before"),
        entity_based=True,
        description="Send a reminder before a scheduled event",
        trigger={"type": "schedule", "schedule": "0 9 * * *"},
        steps=(
            {"id": "notify", "type": "notify", "config": {"message": "Reminder: {entity} is coming up", "type": "info"}},
        ),
    ),

    # Assignment
    WorkflowPattern(
        id="assign-to",
        name="Assign To Team Member",
        triggers=("assign", "delegate", "give to", "hand off"),
        entity_based=True,
        description="Assign a record to a team member",
        trigger={"type": "button_click", "component_id": "{entity}-assign-btn"},
        steps=(
            {"id": "assign", "type": "update", "config": {"entity_id": "{entity}", "field": "assigned_to", "value": "{userId}"}},
            {"id": "notify-assignee", "type": "notify", "config": {"message": "You have been assigned a new {entity}", "type": "info", "user_id": "{userId}"}},
        ),
    ),

    # Scheduling
    WorkflowPattern(
        id="book-appointment",
        name="Book Appointment",
        triggers=("book", "schedule", "reserve", "make appointment"),
        entity_based=False,
        description="Book a new appointment",
        trigger={"type": "form_submit", "component_id": "booking-form"},
        steps=(
            {"id": "create-appointment", "type": "create", "config": {"entity_id": "appointment", "source": "form_data"}},
            {"id": "send-confirmation", "type": "email", "config": {"to": "{clientEmail}", "subject": "Appointment Confirmed", "body": "Your appointment is confirmed for {date}"}},
            {"id": "notify", "type": "notify", "config": {"message": "Appointment booked!", "type": "success"}},
        ),
    ),

    # Billing
    WorkflowPattern(
        id="create-invoice",
        name="Create Invoice",
        triggers=("invoice", "bill", "charge"),
        entity_based=False,
        description="Create an invoice from a job or project",
        trigger={"type": "button_click", "component_id": "create-invoice-btn"},
        steps=(
            {"id": "create-invoice", "type": "create", "config": {"entity_id": "invoice", "source": "job_data"}},
            {"id": "navigate", "type": "navigate", "config": {"page_id": "invoice-detail"}},
        ),
    ),
    WorkflowPattern(
        id="send-invoice",
        name="Send Invoice",
        triggers=("send invoice", "email invoice"),
        entity_based=False,
        description="Email an invoice to the client",
        trigger={"type": "button_click", "component_id": "send-invoice-btn"},
        steps=(
            {"id": "update-status", "type": "update", "config": {"entity_id": "invoice", "field": "status", "value": "sent"}},
            {"id": "email", "type": "email", "config": {"to": "{clientEmail}", "subject": "Invoice #{invoiceNumber}", "attachment": "invoice_pdf"}},
            {"id": "notify", "type": "notify", "config": {"message": "Invoice sent!", "type": "success"}},
        ),
    ),
    WorkflowPattern(
        id="mark-paid",
        name="Mark as Paid",
        triggers=("paid", "payment received", "mark paid"),
        entity_based=False,
        description="Mark an invoice as paid",
        trigger={"type": "button_click", "component_id": "mark-paid-btn"},
        steps=(
            {"id": "update-status", "type": "update", "config": {"entity_id": "invoice", "field": "status", "value": "paid"}},
            {"id": "create-payment", "type": "create", "config": {"entity_id": "payment", "data": {"invoice_id": "{invoiceId}", "amount": "{amount}"}}},
            {"id": "notify", "type": "notify", "config": {"message": "Payment recorded!", "type": "success"}},
        ),
    ),

    # Quotes
    WorkflowPattern(
        id="convert-quote",
        name="Convert Quote to Job",
        triggers=("accept quote", "approve quote", "convert quote"),
        entity_based=False,
        description="Convert an approved quote into a job",
        trigger={"type": "button_click", "component_id": "accept-quote-btn"},
        steps=(
            {"id": "update-quote", "type": "update", "config": {"entity_id": "quote", "field": "status", "value": "accepted"}},
            {"id": "create-job", "type": "create", "config": {"entity_id": "job", "source": "quote_data"}},
            {"id": "notify", "type": "notify", "config": {"message": "Quote converted to job!", "type": "success"}},
            {"id": "navigate", "type": "navigate", "config": {"page_id": "job-detail"}},
        ),
    ),

    # Scheduled alerts
    WorkflowPattern(
        id="on-overdue",
        name="Overdue Alert",
        triggers=("overdue", "past due", "late"),
        entity_based=True,
        description="Alert when something is overdue",
        trigger={"type": "schedule", "schedule": "0 8 * * *"},
        steps=(
            {"id": "notify", "type": "notify", "config": {"message": "You have overdue {entities}", "type": "warning"}},
        ),
        conditions=(
            {"field": "due_date", "operator": "less_than", "value": "now", "then_step": "notify"},
        ),
    ),
)

# (condition group, action group); tried in order, first match wins
CAUSAL_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"when\s+(?P<condition>.+?)(?:\s*,\s*(?:then\s+)?|\s+(?:then|do)\s+)(?P<action>.+)", _I),
    re.compile(r"when\s+user\s+(?P<condition>.+?)\s*,?\s*(?:then|do)\s+(?P<action>.+)", _I),
    re.compile(r"when\s+(?P<condition>.+?)\s*,?\s*[a-z]+\s+(?P<action>.+)", _I),
)

_CREATE_WORDS = re.compile(r"book|create|add|new|submit|save", _I)
_UPDATE_WORDS = re.compile(r"update|change|modify|edit", _I)
_DELETE_WORDS = re.compile(r"delete|remove|trash", _I)

_EMAIL_ACTION = re.compile(r"send\s+confirmation|send\s+email|email|notify|notification", _I)
_INVOICE_ACTION = re.compile(r"create\s+invoice|generate\s+invoice|invoice", _I)
_SCHEDULE_ACTION = re.compile(r"schedule|book\s+event|create\s+event|add\s+to\s+calendar", _I)
_UPDATE_ACTION = re.compile(r"update|change|set|mark", _I)
_NAVIGATE_ACTION = re.compile(r"navigate|go\s+to|show|view", _I)
_NOTIFY_ACTION = re.compile(r"show\s+notification|display\s+message|alert", _I)
_WEBHOOK_ACTION = re.compile(r"trigger\s+webhook|call\s+webhook|webhook", _I)
_NOTIFY_MESSAGE = re.compile(r"(?:show|display|alert)\s+(.+)", _I)
_CONFIRM = re.compile(r"confirmation|confirm", _I)

# First field named in the action text wins
UPDATE_FIELDS = ("status", "state", "complete", "approved")

# Standard CRUD + navigation workflow confidences
CRUD_CONFIDENCE = 0.9
COMPLETE_CONFIDENCE = 0.7
NAVIGATION_CONFIDENCE = 0.95


def substitute_placeholders(node: Any, entity_id: str, entity_name: str) -> Any:
    """
    Replace {entity}, {Entity} and {entities} in every string of a nested
    dict/list/tuple structure. Non-string leaves are returned unchanged.
    """
    if isinstance(node, str):
        return (
            node.replace("{entity}", entity_id)
            .replace("{Entity}", entity_name)
            .replace("{entities}", f"{entity_id}s")
        )
    if isinstance(node, dict):
        return {k: substitute_placeholders(v, entity_id, entity_name) for k, v in node.items()}
    if isinstance(node, (list, tuple)):
        return [substitute_placeholders(v, entity_id, entity_name) for v in node]
    return node


def _title_words(text: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in text.split())


def _mentioned_entity(text: str, entities: List[KnownEntity]) -> Optional[KnownEntity]:
    """Entity whose name or id appears in ``text``, else the first one."""
    lower = text.lower()
    for entity in entities:
        if entity.name.lower() in lower or entity.id.lower() in lower:
            return entity
    return entities[0] if entities else None


class WorkflowInferenceEngine:
    """
    Rule-based workflow inference.

    Causal action steps are produced by an ordered registry of step rules;
    every rule that fires contributes one step.
    """

    def __init__(self, config: Optional[WorkflowInferenceConfig] = None):
        self.config = config or WorkflowInferenceConfig()
        self._step_rules: List[Callable] = []
        self._register_default_step_rules()

    def _register_default_step_rules(self) -> None:
        self._step_rules = [
            self._step_send_email,
            self._step_create_invoice,
            self._step_schedule_event,
            self._step_update_record,
            self._step_navigate,
            self._step_show_notification,
            self._step_webhook,
        ]

    def infer(
        self,
        parsed: ParsedInput,
        entities: List[KnownEntity],
        features: List[DetectedFeature],
    ) -> List[InferredWorkflow]:
        """Run all four passes and merge them by id, earliest pass first."""
        merged: Dict[str, InferredWorkflow] = {}

        def merge(workflows: List[InferredWorkflow]) -> None:
            for workflow in workflows:
                merged.setdefault(workflow.id, workflow)

        for pattern, confidence in self.detect_patterns(parsed):
            workflow = self.pattern_to_workflow(pattern, entities, confidence)
            if workflow:
                merge([workflow])

        for entity in entities:
            merge(self.generate_crud_workflows(entity))

        merge(self.get_feature_workflows(features))
        merge(self.infer_causal_workflows(parsed, entities))

        logger.debug(
            f"Inferred {len(merged)} workflows for {len(entities)} entities "
            f"and {len(features)} features"
        )
        return list(merged.values())

    # --- Pass 1: pattern library ---

    def detect_patterns(self, parsed: ParsedInput) -> List[Tuple[WorkflowPattern, float]]:
        """Score every pattern; keep those above the threshold, best first."""
        text = parsed.normalized
        automating = SemanticIntent.AUTOMATING in parsed.semantic_intents
        communicating = SemanticIntent.COMMUNICATING in parsed.semantic_intents

        matches = []
        for pattern in WORKFLOW_PATTERNS:
            score = 0.0

            for trigger in pattern.triggers:
                if trigger in text:
                    score += 0.3

            for action in parsed.actions:
                if any(action in trigger for trigger in pattern.triggers):
                    score += 0.2

            if automating and pattern.is_scheduled:
                score += 0.15
            if communicating and pattern.communicates:
                score += 0.15

            if score > self.config.pattern_score_threshold:
                matches.append((pattern, min(score, 1.0)))

        # sorted() is stable so equal scores keep table order
        return sorted(matches, key=lambda m: m[1], reverse=True)

    def pattern_to_workflow(
        self,
        pattern: WorkflowPattern,
        entities: List[KnownEntity],
        confidence: float,
    ) -> Optional[InferredWorkflow]:
        """Bind a pattern to the first entity. No entity, no workflow."""
        if not entities:
            return None

        entity = entities[0]

        def bind(node: Any) -> Any:
            return substitute_placeholders(node, entity.id, entity.name)

        conditions = None
        if pattern.conditions:
            conditions = [WorkflowCondition(**bind(c)) for c in pattern.conditions]

        return InferredWorkflow(
            id=f"{pattern.id}-{entity.id}",
            name=bind(pattern.name),
            description=bind(pattern.description),
            confidence=confidence,
            trigger=WorkflowTrigger(**bind(pattern.trigger)),
            steps=[WorkflowStep(**bind(step)) for step in pattern.steps],
            conditions=conditions,
        )

    # --- Pass 2: CRUD + navigation ---

    def generate_crud_workflows(self, entity: KnownEntity) -> List[InferredWorkflow]:
        eid = entity.id
        name = entity.name
        lower = name.lower()

        workflows = [
            InferredWorkflow(
                id=f"create-{eid}",
                name=f"Create {name}",
                description=f"Create a new {lower}",
                confidence=CRUD_CONFIDENCE,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.FORM_SUBMIT, component_id=f"{eid}-form"),
                steps=[
                    WorkflowStep(id="create", type=WorkflowStepType.CREATE, config={"entity_id": eid, "source": "form_data"}),
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": f"{name} created!", "type": "success"}),
                    WorkflowStep(id="navigate", type=WorkflowStepType.NAVIGATE, config={"page_id": f"{eid}-list"}),
                ],
            ),
            InferredWorkflow(
                id=f"update-{eid}",
                name=f"Update {name}",
                description=f"Update an existing {lower}",
                confidence=CRUD_CONFIDENCE,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.FORM_SUBMIT, component_id=f"{eid}-edit-form"),
                steps=[
                    WorkflowStep(id="update", type=WorkflowStepType.UPDATE, config={"entity_id": eid, "source": "form_data"}),
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": f"{name} updated!", "type": "success"}),
                    WorkflowStep(id="navigate", type=WorkflowStepType.NAVIGATE, config={"page_id": f"{eid}-detail"}),
                ],
            ),
            InferredWorkflow(
                id=f"delete-{eid}",
                name=f"Delete {name}",
                description=f"Delete a {lower}",
                confidence=CRUD_CONFIDENCE,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.BUTTON_CLICK, component_id=f"{eid}-delete-btn"),
                steps=[
                    WorkflowStep(id="delete", type=WorkflowStepType.DELETE, config={"entity_id": eid}),
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": f"{name} deleted", "type": "info"}),
                    WorkflowStep(id="navigate", type=WorkflowStepType.NAVIGATE, config={"page_id": f"{eid}-list"}),
                ],
            ),
        ]

        if "trackable" in entity.behaviors:
            workflows.append(InferredWorkflow(
                id=f"complete-{eid}",
                name=f"Complete {name}",
                description=f"Mark {lower} as complete",
                confidence=COMPLETE_CONFIDENCE,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.BUTTON_CLICK, component_id=f"{eid}-complete-btn"),
                steps=[
                    WorkflowStep(id="update", type=WorkflowStepType.UPDATE, config={"entity_id": eid, "field": "status", "value": "completed"}),
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": f"{name} completed!", "type": "success"}),
                ],
            ))

        workflows.append(InferredWorkflow(
            id=f"navigate-{eid}-list",
            name=f"View {entity.plural_name}",
            description=f"Navigate to {entity.plural_name.lower()} list",
            confidence=NAVIGATION_CONFIDENCE,
            trigger=WorkflowTrigger(type=WorkflowTriggerType.BUTTON_CLICK, component_id=f"{eid}-back-btn"),
            steps=[WorkflowStep(id="navigate", type=WorkflowStepType.NAVIGATE, config={"page_id": f"{eid}-list"})],
        ))
        workflows.append(InferredWorkflow(
            id=f"navigate-{eid}-form",
            name=f"Add {name}",
            description=f"Navigate to add {lower} form",
            confidence=NAVIGATION_CONFIDENCE,
            trigger=WorkflowTrigger(type=WorkflowTriggerType.BUTTON_CLICK, component_id=f"{eid}-add-btn"),
            steps=[WorkflowStep(id="navigate", type=WorkflowStepType.NAVIGATE, config={"page_id": f"{eid}-form"})],
        ))

        return workflows

    # --- Pass 3: feature-gated ---

    def get_feature_workflows(self, features: List[DetectedFeature]) -> List[InferredWorkflow]:
        feature_ids = {f.id for f in features}
        workflows = []

        if "appointments" in feature_ids or "calendar" in feature_ids:
            workflows.append(InferredWorkflow(
                id="book-appointment",
                name="Book Appointment",
                description="Book a new appointment and send confirmation",
                confidence=0.8,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.FORM_SUBMIT, component_id="booking-form"),
                steps=[
                    WorkflowStep(id="create", type=WorkflowStepType.CREATE, config={"entity_id": "appointment", "source": "form_data"}),
                    WorkflowStep(id="email", type=WorkflowStepType.EMAIL, config={"to": "{clientEmail}", "subject": "Appointment Confirmed"}),
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": "Appointment booked!", "type": "success"}),
                ],
            ))

        if "invoicing" in feature_ids:
            workflows.append(InferredWorkflow(
                id="create-invoice-from-job",
                name="Create Invoice from Job",
                description="Create an invoice from a completed job",
                confidence=0.8,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.BUTTON_CLICK, component_id="create-invoice-btn"),
                steps=[
                    WorkflowStep(id="create", type=WorkflowStepType.CREATE, config={"entity_id": "invoice", "source": "job_data"}),
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": "Invoice created!", "type": "success"}),
                    WorkflowStep(id="navigate", type=WorkflowStepType.NAVIGATE, config={"page_id": "invoice-detail"}),
                ],
            ))
            workflows.append(InferredWorkflow(
                id="send-invoice",
                name="Send Invoice",
                description="Email invoice to client",
                confidence=0.8,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.BUTTON_CLICK, component_id="send-invoice-btn"),
                steps=[
                    WorkflowStep(id="update", type=WorkflowStepType.UPDATE, config={"entity_id": "invoice", "field": "status", "value": "sent"}),
                    WorkflowStep(id="email", type=WorkflowStepType.EMAIL, config={"to": "{clientEmail}", "subject": "Invoice"}),
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": "Invoice sent!", "type": "success"}),
                ],
            ))

        if "quotes" in feature_ids:
            workflows.append(InferredWorkflow(
                id="accept-quote",
                name="Accept Quote",
                description="Accept quote and create job",
                confidence=0.7,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.BUTTON_CLICK, component_id="accept-quote-btn"),
                steps=[
                    WorkflowStep(id="update", type=WorkflowStepType.UPDATE, config={"entity_id": "quote", "field": "status", "value": "accepted"}),
                    WorkflowStep(id="create", type=WorkflowStepType.CREATE, config={"entity_id": "job", "source": "quote_data"}),
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": "Quote accepted!", "type": "success"}),
                ],
            ))

        if "reminders" in feature_ids:
            workflows.append(InferredWorkflow(
                id="send-reminder",
                name="Send Appointment Reminder",
                description="Send reminder before appointments",
                confidence=0.7,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.SCHEDULE, schedule="0 9 * * *"),
                steps=[
                    WorkflowStep(id="notify", type=WorkflowStepType.NOTIFY, config={"message": "Reminder: You have an appointment today", "type": "info"}),
                ],
            ))

        return workflows

    # --- Pass 4: causal "when X then Y" ---

    def infer_causal_workflows(
        self, parsed: ParsedInput, entities: List[KnownEntity]
    ) -> List[InferredWorkflow]:
        clause = self.split_causal_clause(parsed.normalized)
        if clause is None:
            return []

        condition, action = clause
        trigger = self.parse_trigger_from_condition(condition, entities)
        if trigger is None:
            logger.debug(f"No trigger for causal condition {condition!r}")
            return []

        steps = self.parse_steps_from_action(action, condition, entities)
        if not steps:
            return []

        return [InferredWorkflow(
            id=f"workflow-{uuid4().hex[:12]}",
            name=f"When {_title_words(condition)}, {_title_words(action)}",
            description=f"When {condition}, {action}",
            confidence=self.config.causal_confidence,
            trigger=trigger,
            steps=steps,
        )]

    def split_causal_clause(self, text: str) -> Optional[Tuple[str, str]]:
        """(condition, action) from the first matching "when" shape."""
        for pattern in CAUSAL_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group("condition").strip(), match.group("action").strip()
        return None

    def parse_trigger_from_condition(
        self, condition: str, entities: List[KnownEntity]
    ) -> Optional[WorkflowTrigger]:
        lower = condition.lower()
        entity = _mentioned_entity(condition, entities)

        # Record lifecycle triggers need an entity to bind to
        if entity is not None:
            if _CREATE_WORDS.search(condition):
                return WorkflowTrigger(
                    type=WorkflowTriggerType.RECORD_CREATE,
                    entity_id=entity.id,
                    component_id=f"{entity.id}-form",
                )
            if _UPDATE_WORDS.search(condition):
                return WorkflowTrigger(type=WorkflowTriggerType.RECORD_UPDATE, entity_id=entity.id)
            if _DELETE_WORDS.search(condition):
                return WorkflowTrigger(type=WorkflowTriggerType.RECORD_DELETE, entity_id=entity.id)

        if "job" in lower and "book" in lower:
            return WorkflowTrigger(
                type=WorkflowTriggerType.FORM_SUBMIT,
                component_id="job-form",
                entity_id=entity.id if entity else "job",
            )
        if "book" in lower:
            return WorkflowTrigger(
                type=WorkflowTriggerType.FORM_SUBMIT,
                component_id="booking-form",
                entity_id=entity.id if entity else "booking",
            )

        if entity is not None:
            return WorkflowTrigger(
                type=WorkflowTriggerType.FORM_SUBMIT,
                component_id=f"{entity.id}-form",
                entity_id=entity.id,
            )

        return None

    def parse_steps_from_action(
        self, action: str, condition: str, entities: List[KnownEntity]
    ) -> List[WorkflowStep]:
        entity = _mentioned_entity(condition, entities)

        steps = []
        for rule in self._step_rules:
            step = rule(action, condition, entity, entities)
            if step is not None:
                steps.append(step)

        if not steps and condition:
            steps.append(WorkflowStep(
                id="notify",
                type=WorkflowStepType.NOTIFY,
                config={"message": "Workflow executed", "type": "success"},
            ))

        return steps

    # --- Step rules: (action, condition, entity, entities) -> step or None ---

    def _step_send_email(self, action, condition, entity, entities) -> Optional[WorkflowStep]:
        if not _EMAIL_ACTION.search(action):
            return None

        if _CONFIRM.search(action):
            subject = "Confirmation"
        elif re.search(r"invoice", action, _I):
            subject = "Invoice"
        elif re.search(r"booking|appointment", condition, _I):
            subject = "Booking Confirmation"
        else:
            subject = "Notification"

        if _CONFIRM.search(action):
            body = "Your request has been confirmed."
        else:
            body = "Thank you for your request."

        return WorkflowStep(
            id="send-email",
            type=WorkflowStepType.EMAIL,
            config={"to": "{email}", "subject": subject, "body": body},
        )

    def _step_create_invoice(self, action, condition, entity, entities) -> Optional[WorkflowStep]:
        if not _INVOICE_ACTION.search(action):
            return None
        return WorkflowStep(
            id="create-invoice",
            type=WorkflowStepType.CREATE,
            config={"entity_id": "invoice", "source": "current_data"},
        )

    def _step_schedule_event(self, action, condition, entity, entities) -> Optional[WorkflowStep]:
        if not _SCHEDULE_ACTION.search(action):
            return None
        return WorkflowStep(
            id="schedule-event",
            type=WorkflowStepType.CREATE,
            config={"entity_id": "event", "source": "form_data"},
        )

    def _step_update_record(self, action, condition, entity, entities) -> Optional[WorkflowStep]:
        if not _UPDATE_ACTION.search(action) or entity is None:
            return None

        lower = action.lower()
        field = next((f for f in UPDATE_FIELDS if f in lower), None)
        if field is None:
            return None

        if re.search(r"complete", action, _I):
            value = "completed"
        elif re.search(r"approve", action, _I):
            value = "approved"
        elif re.search(r"reject", action, _I):
            value = "rejected"
        else:
            value = "updated"

        return WorkflowStep(
            id="update-record",
            type=WorkflowStepType.UPDATE,
            config={"entity_id": entity.id, "field": field, "value": value},
        )

    def _step_navigate(self, action, condition, entity, entities) -> Optional[WorkflowStep]:
        if not _NAVIGATE_ACTION.search(action):
            return None

        lower = action.lower()
        target = next((e for e in entities if e.name.lower() in lower), None)
        if target is None and entities:
            target = entities[0]
        if target is None:
            return None

        return WorkflowStep(
            id="navigate",
            type=WorkflowStepType.NAVIGATE,
            config={"page_id": f"{target.id}-list"},
        )

    def _step_show_notification(self, action, condition, entity, entities) -> Optional[WorkflowStep]:
        if not _NOTIFY_ACTION.search(action):
            return None

        match = _NOTIFY_MESSAGE.search(action)
        message = match.group(1) if match else "Action completed successfully"
        return WorkflowStep(
            id="notify",
            type=WorkflowStepType.NOTIFY,
            config={"message": message, "type": "success"},
        )

    def _step_webhook(self, action, condition, entity, entities) -> Optional[WorkflowStep]:
        if not _WEBHOOK_ACTION.search(action):
            return None
        return WorkflowStep(
            id="webhook",
            type=WorkflowStepType.WEBHOOK,
            config={"url": "{webhook_url}"},
        )
