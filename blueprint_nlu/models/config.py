"""Tunable thresholds for the ledger, workflow inference and revision engines."""

from pydantic import BaseModel, Field


class LedgerConfig(BaseModel):
    """Gates used when deciding whether discovery can hand off to generation."""

    build_industry_confidence: float = Field(ge=0.0, le=1.0, default=0.7)
    build_readiness: float = Field(ge=0.0, le=1.0, default=0.6)
    max_suggestions: int = Field(ge=0, default=5)


class WorkflowInferenceConfig(BaseModel):
    pattern_score_threshold: float = 0.15   # Patterns must score strictly above this
    causal_confidence: float = Field(ge=0.0, le=1.0, default=0.75)


class RevisionConfig(BaseModel):
    max_silent_changes: int = 3             # More changes than this always confirm
    summary_change_limit: int = 3           # Descriptions quoted in a confirmation
