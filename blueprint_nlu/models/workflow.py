"""Inferred Workflow: automation specs handed to the materializer."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from croniter import croniter
from pydantic import BaseModel, Field, field_validator, model_validator


class WorkflowTriggerType(str, Enum):
    FORM_SUBMIT = "form_submit"
    BUTTON_CLICK = "button_click"
    RECORD_CREATE = "record_create"
    RECORD_UPDATE = "record_update"
    RECORD_DELETE = "record_delete"
    SCHEDULE = "schedule"
    WEBHOOK = "webhook"


class WorkflowStepType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    NOTIFY = "notify"
    EMAIL = "email"
    SMS = "sms"
    NAVIGATE = "navigate"
    SET_VARIABLE = "set_variable"
    LOOP = "loop"
    CONDITION = "condition"
    WAIT = "wait"
    WEBHOOK = "webhook"
    CALL_API = "call_api"


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class WorkflowTrigger(BaseModel):
    """What starts a workflow, plus its optional binding."""

    type: WorkflowTriggerType
    entity_id: Optional[str] = None
    component_id: Optional[str] = None
    schedule: Optional[str] = None          # Cron expression
    condition: Optional[str] = None         # Boolean expression

    @field_validator("schedule")
    @classmethod
    def _valid_cron(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not croniter.is_valid(value):
            raise ValueError(f"Invalid cron schedule: {value!r}")
        return value

    @model_validator(mode="after")
    def _schedule_required(self) -> "WorkflowTrigger":
        if self.type == WorkflowTriggerType.SCHEDULE and not self.schedule:
            raise ValueError("Schedule triggers need a cron schedule")
        return self

    def next_fire(self, after: Optional[datetime] = None) -> Optional[datetime]:
        """Next time a schedule trigger fires; None for event triggers."""
        if self.type != WorkflowTriggerType.SCHEDULE:
            return None
        start = after or datetime.utcnow()
        return croniter(self.schedule, start).get_next(datetime)


class WorkflowStep(BaseModel):
    id: str
    type: WorkflowStepType
    config: Dict[str, Any] = {}
    next_step: Optional[str] = None


class WorkflowCondition(BaseModel):
    field: str
    operator: ConditionOperator
    value: Any = None
    then_step: str
    else_step: Optional[str] = None


class InferredWorkflow(BaseModel):
    """Generated, never hand-edited. Consumers may reject low confidence."""

    id: str
    name: str
    description: str
    confidence: float = Field(ge=0.0, le=1.0)
    trigger: WorkflowTrigger
    steps: List[WorkflowStep]
    conditions: Optional[List[WorkflowCondition]] = None


class KnownEntity(BaseModel):
    """An entity the blueprint layer has already settled on."""

    id: str
    name: str
    plural_name: str = ""
    behaviors: List[str] = []               # e.g. "trackable", "billable"

    @model_validator(mode="after")
    def _default_plural(self) -> "KnownEntity":
        if not self.plural_name:
            self.plural_name = f"{self.name}s"
        return self


class DetectedFeature(BaseModel):
    id: str
    name: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0, default=1.0)
