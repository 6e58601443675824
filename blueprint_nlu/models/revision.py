"""Revision models: atomic, reversible edits to a live app description."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RevisionIntent(str, Enum):
    STYLE_CHANGE = "style_change"           # "make it more modern"
    ADD_FEATURE = "add_feature"             # "add invoicing"
    REMOVE_FEATURE = "remove_feature"       # "remove the calendar"
    MODIFY_ENTITY = "modify_entity"         # "add a status field to jobs"
    MODIFY_PAGE = "modify_page"             # "rename the dashboard to home"
    MODIFY_WORKFLOW = "modify_workflow"
    ADD_PAGE = "add_page"                   # "add a reports page"
    REMOVE_PAGE = "remove_page"
    REORGANIZE = "reorganize"               # "move invoices to the sidebar"
    MODIFY_APP = "modify_app"               # Fallback when nothing matched


class ChangeType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"
    REORDER = "reorder"


class ChangeTarget(str, Enum):
    PAGE = "page"
    ENTITY = "entity"
    FIELD = "field"
    COMPONENT = "component"
    WORKFLOW = "workflow"
    STYLE = "style"


class RevisionChange(BaseModel):
    """One edit. Replaying ``before`` undoes it."""

    model_config = ConfigDict(frozen=True)

    type: ChangeType
    target: ChangeTarget
    target_id: str
    before: Optional[Any] = None
    after: Optional[Any] = None
    description: str


class RevisionResult(BaseModel):
    intent: RevisionIntent
    confidence: float = Field(ge=0.0, le=1.0)
    changes: List[RevisionChange] = []
    affected_component_ids: List[str] = []
    requires_confirmation: bool
    confirmation_message: Optional[str] = None
    rollback_possible: bool = True


class AppPage(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    type: Optional[str] = None
    route: Optional[str] = None
    show_in_sidebar: Optional[bool] = None
    order: Optional[int] = None


class AppEntity(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    fields: List[Any] = []


class AppWorkflow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""


class AppContext(BaseModel):
    """The live app being revised. Read-only to the revision engine."""

    app_id: Optional[str] = None
    app_name: Optional[str] = None
    pages: List[AppPage] = []
    entities: List[AppEntity] = []
    workflows: List[AppWorkflow] = []
    current_page_id: Optional[str] = None
