"""Blueprint NLU data models."""

from blueprint_nlu.models.config import (
    LedgerConfig,
    RevisionConfig,
    WorkflowInferenceConfig,
)
from blueprint_nlu.models.decision import SlotDecision, SlotDecisionSummary
from blueprint_nlu.models.ledger import (
    CertaintyLedger,
    Detection,
    FeatureBundle,
    IndustryKit,
    KitEntity,
    KitIntegration,
    SlotSource,
    SlotValue,
    UnknownSlotError,
)
from blueprint_nlu.models.parsed import (
    IntentMatch,
    IntentType,
    Modifier,
    ModifierType,
    NamedEntity,
    NamedEntityType,
    ParsedInput,
    PartOfSpeech,
    SemanticIntent,
    Token,
)
from blueprint_nlu.models.revision import (
    AppContext,
    AppEntity,
    AppPage,
    AppWorkflow,
    ChangeTarget,
    ChangeType,
    RevisionChange,
    RevisionIntent,
    RevisionResult,
)
from blueprint_nlu.models.session import DiscoverySession
from blueprint_nlu.models.workflow import (
    ConditionOperator,
    DetectedFeature,
    InferredWorkflow,
    KnownEntity,
    WorkflowCondition,
    WorkflowStep,
    WorkflowStepType,
    WorkflowTrigger,
    WorkflowTriggerType,
)

__all__ = [
    "AppContext",
    "AppEntity",
    "AppPage",
    "AppWorkflow",
    "CertaintyLedger",
    "Detection",
    "ChangeTarget",
    "ChangeType",
    "ConditionOperator",
    "DetectedFeature",
    "DiscoverySession",
    "FeatureBundle",
    "IndustryKit",
    "InferredWorkflow",
    "IntentMatch",
    "IntentType",
    "KitEntity",
    "KitIntegration",
    "KnownEntity",
    "LedgerConfig",
    "Modifier",
    "ModifierType",
    "NamedEntity",
    "NamedEntityType",
    "ParsedInput",
    "PartOfSpeech",
    "RevisionChange",
    "RevisionConfig",
    "RevisionIntent",
    "RevisionResult",
    "SemanticIntent",
    "SlotDecision",
    "SlotDecisionSummary",
    "SlotSource",
    "SlotValue",
    "Token",
    "UnknownSlotError",
    "WorkflowCondition",
    "WorkflowInferenceConfig",
    "WorkflowStep",
    "WorkflowStepType",
    "WorkflowTrigger",
    "WorkflowTriggerType",
]
