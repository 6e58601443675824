"""
Certainty Ledger: per-slot confidence bookkeeping for app discovery.

The ledger is a frozen value. Every slot write goes through
``CertaintyLedger.with_slot`` which returns a new ledger whose ``gaps`` and
``overall_readiness`` have been recomputed from the slots.
"""

from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class SlotSource(str, Enum):
    EXPLICIT = "explicit"   # User said it outright
    INFERRED = "inferred"   # Derived from keywords or a kit
    ASSUMED = "assumed"     # Filled in from defaults, not mentioned
    DEFAULT = "default"     # Never touched


class UnknownSlotError(ValueError):
    """Raised when a caller names a slot the ledger does not have."""
    pass


SLOT_IDS: Tuple[str, ...] = (
    "industry",
    "sub_vertical",
    "primary_entities",
    "workflows",
    "integrations",
    "scale",
    "team_size",
    "customer_facing",
    "complexity",
)

# Must be filled before anything can be built
CRITICAL_SLOTS: Tuple[str, ...] = ("industry", "primary_entities")

# Nice to have; refine the generated app
REFINEMENT_SLOTS: Tuple[str, ...] = (
    "scale",
    "team_size",
    "integrations",
    "complexity",
    "sub_vertical",
)

# Industries whose sub-vertical changes the app structure
SUB_VERTICAL_INDUSTRIES: Tuple[str, ...] = ("real-estate", "fitness-coach", "cleaning")

GAP_CONFIDENCE_THRESHOLD = 0.5
CRITICAL_SHARE = 0.7
REFINEMENT_SHARE = 0.3


class SlotValue(BaseModel):
    """The atomic unit of the ledger."""

    model_config = ConfigDict(frozen=True)

    value: Any = None
    confidence: float = Field(ge=0.0, le=1.0, default=0.0)
    source: SlotSource = SlotSource.DEFAULT
    evidence: List[str] = []


class Detection(BaseModel):
    """Outcome of one detector. ``value`` is None when nothing was found."""

    model_config = ConfigDict(frozen=True)

    value: Any = None
    confidence: float = 0.0
    source: SlotSource = SlotSource.DEFAULT

    @property
    def found(self) -> bool:
        return self.value is not None


def _empty_slot(default: Any = None) -> SlotValue:
    return SlotValue(value=default)


class CertaintyLedger(BaseModel):
    """What the system knows, suspects and still needs to ask about."""

    model_config = ConfigDict(frozen=True)

    # Core identification
    industry: SlotValue = Field(default_factory=_empty_slot)
    sub_vertical: SlotValue = Field(default_factory=_empty_slot)

    # App structure
    primary_entities: SlotValue = Field(default_factory=lambda: _empty_slot([]))
    workflows: SlotValue = Field(default_factory=lambda: _empty_slot([]))
    integrations: SlotValue = Field(default_factory=lambda: _empty_slot([]))

    # Context
    scale: SlotValue = Field(default_factory=_empty_slot)
    team_size: SlotValue = Field(default_factory=_empty_slot)
    customer_facing: SlotValue = Field(default_factory=_empty_slot)
    complexity: SlotValue = Field(default_factory=_empty_slot)

    # Derived; only ever written by _recomputed()
    gaps: List[str] = Field(default_factory=lambda: list(CRITICAL_SLOTS))
    suggestions: List[str] = []
    overall_readiness: float = Field(ge=0.0, le=1.0, default=0.0)

    def slot(self, slot_id: str) -> SlotValue:
        if slot_id not in SLOT_IDS:
            raise UnknownSlotError(f"Unknown ledger slot: {slot_id}")
        return getattr(self, slot_id)

    def with_slot(self, slot_id: str, slot: SlotValue) -> "CertaintyLedger":
        """Return a new ledger with one slot replaced."""
        if slot_id not in SLOT_IDS:
            raise UnknownSlotError(f"Unknown ledger slot: {slot_id}")
        return self._recomputed(**{slot_id: slot})

    def with_suggestions(self, suggestions: List[str]) -> "CertaintyLedger":
        return self._recomputed(suggestions=list(suggestions))

    def _recomputed(self, **updates) -> "CertaintyLedger":
        draft = self.model_copy(update=updates)
        return draft.model_copy(update={
            "gaps": compute_gaps(draft),
            "overall_readiness": compute_readiness(draft),
        })


def requires_sub_vertical(industry: Optional[str]) -> bool:
    return industry in SUB_VERTICAL_INDUSTRIES


def compute_gaps(ledger: CertaintyLedger) -> List[str]:
    """Slots that still block generation, in a stable order."""
    gaps = []

    for slot_id in CRITICAL_SLOTS:
        slot = getattr(ledger, slot_id)
        if not slot.value or slot.confidence < GAP_CONFIDENCE_THRESHOLD:
            gaps.append(slot_id)

    # A confidently known industry may still need disambiguation
    industry = ledger.industry
    if industry.value and industry.confidence >= GAP_CONFIDENCE_THRESHOLD:
        sub_vertical = ledger.sub_vertical
        if requires_sub_vertical(industry.value) and (
            not sub_vertical.value or sub_vertical.confidence < GAP_CONFIDENCE_THRESHOLD
        ):
            gaps.append("sub_vertical")

    return gaps


def compute_readiness(ledger: CertaintyLedger) -> float:
    """
    Blend slot confidences into a single [0, 1] score.

    Critical slots share 70% of the weight, refinement slots the other 30%.
    A slot only contributes when it holds a value.
    """
    score = 0.0
    max_score = 0.0

    critical_weight = CRITICAL_SHARE / len(CRITICAL_SLOTS)
    for slot_id in CRITICAL_SLOTS:
        slot = getattr(ledger, slot_id)
        max_score += critical_weight
        if slot.value is not None:
            score += slot.confidence * critical_weight

    refinement_weight = REFINEMENT_SHARE / len(REFINEMENT_SLOTS)
    for slot_id in REFINEMENT_SLOTS:
        slot = getattr(ledger, slot_id)
        max_score += refinement_weight
        if slot.value is not None:
            score += slot.confidence * refinement_weight

    return min(1.0, score / max_score)


class KitEntity(BaseModel):
    id: str
    name: str


class KitIntegration(BaseModel):
    id: str
    name: str
    purpose: str = ""


class FeatureBundle(BaseModel):
    recommended: List[str] = []


class IndustryKit(BaseModel):
    """Catalog entry describing defaults for one business vertical."""

    id: str
    name: str
    entities: List[KitEntity] = []
    workflows: List[str] = []
    suggested_integrations: List[KitIntegration] = []
    feature_bundle: Optional[FeatureBundle] = None
