"""
Certainty Ledger operations: central record of what discovery knows,
suspects, and still needs to clarify.

Behavioral Contract:
- Pure: every function returns a new ledger and never mutates its input
- Confidence is clamped to [0, 1] on every write
- gaps / overall_readiness are recomputed on every write
- Detectors run over the raw utterance only; no classifier output needed
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from blueprint_nlu.models.config import LedgerConfig
from blueprint_nlu.models.ledger import (
    CRITICAL_SLOTS,
    REFINEMENT_SLOTS,
    SLOT_IDS,
    CertaintyLedger,
    Detection,
    IndustryKit,
    SlotSource,
    SlotValue,
    UnknownSlotError,
    compute_gaps,
    compute_readiness,
    requires_sub_vertical,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CRITICAL_SLOTS",
    "REFINEMENT_SLOTS",
    "SLOT_IDS",
    "UnknownSlotError",
    "compute_gaps",
    "compute_readiness",
    "create_empty_ledger",
    "format_ledger_as_context",
    "generate_suggestions_from_kit",
    "is_ready_to_build",
    "update_ledger_from_input",
    "update_slot",
]

_I = re.IGNORECASE


NOTHING = Detection()


# --- Pattern tables (ordered; first entry wins ties) ---

INDUSTRY_PATTERNS: Tuple[Tuple[str, float, Tuple[re.Pattern, ...]], ...] = tuple(
    (industry, weight, tuple(re.compile(p, _I) for p in patterns))
    for industry, weight, patterns in (
        ("property-management", 2, (
            r"property\s*management", r"landlord", r"\btenant", r"\blease",
            r"rent\s*collection", r"rental\s*property", r"apartment\s*manager",
        )),
        ("real-estate", 1.5, (
            r"real\s*estate", r"realtor", r"\blisting", r"\bbroker", r"home\s*sale",
        )),
        ("gym", 2, (
            r"\bgym\b", r"fitness\s*studio", r"\bmembership", r"fitness\s*class", r"workout\s*class",
        )),
        ("fitness-coach", 2, (
            r"personal\s*trainer", r"fitness\s*coach", r"1-on-1\s*training", r"workout\s*coach",
        )),
        ("plumber", 1, (
            r"plumber", r"plumbing", r"\bpipe", r"\bleak", r"\bdrain", r"water\s*heater",
        )),
        ("electrician", 1, (
            r"electrician", r"electrical", r"\bwiring", r"\bcircuit", r"\bpanel",
        )),
        ("restaurant", 1, (
            r"restaurant", r"\bcafe\b", r"\bdining", r"\bmenu\b", r"takeout", r"reservation",
        )),
        ("salon", 1, (
            r"salon", r"beauty", r"\bhair\b", r"\bspa\b", r"\bnail", r"barber", r"stylist",
        )),
        ("cleaning", 1, (
            r"cleaning", r"\bcleaner", r"\bmaid", r"housekeeping", r"home\s*cleaning",
        )),
        ("commercial-cleaning", 2, (
            r"commercial\s*cleaning", r"janitorial", r"office\s*cleaning", r"facility\s*cleaning",
        )),
        ("medical", 1, (
            r"medical", r"clinic", r"doctor", r"patient", r"health", r"dental", r"therapy",
        )),
        ("tutor", 1, (
            r"tutor", r"tutoring", r"\blesson", r"student", r"teaching", r"education",
        )),
        ("ecommerce", 1, (
            r"\bshop\b", r"ecommerce", r"\bstore\b", r"online\s*store", r"sell\s*products",
        )),
        ("mechanic", 1, (
            r"mechanic", r"auto\s*repair", r"car\s*repair", r"\bvehicle", r"automotive",
        )),
        ("contractor", 1, (
            r"contractor", r"construction", r"renovation", r"\bbuilder", r"remodel",
        )),
        ("bakery", 1, (
            r"bakery", r"\bbaker", r"pastry", r"\bbread", r"\bcake",
        )),
        ("photographer", 1, (
            r"photographer", r"photo", r"\bshoot", r"photography",
        )),
        ("landscaping", 1, (
            r"landscaping", r"\blawn", r"\bgarden", r"\byard", r"lawn\s*care",
        )),
        ("hvac", 1, (
            r"\bhvac\b", r"heating", r"cooling", r"air\s*conditioning", r"furnace",
        )),
        ("roofing", 1, (
            r"roofing", r"\broof\b", r"shingle", r"gutter",
        )),
        ("handyman", 1, (
            r"handyman", r"home\s*repair", r"odd\s*jobs",
        )),
        ("home-health", 1.5, (
            r"home\s*health", r"caregiver", r"senior\s*care", r"elderly\s*care", r"home\s*aide",
        )),
    )
)

SUB_VERTICAL_PATTERNS: Dict[str, Tuple[Tuple[str, Tuple[re.Pattern, ...]], ...]] = {
    industry: tuple(
        (sub_vertical, tuple(re.compile(p, _I) for p in patterns))
        for sub_vertical, patterns in table
    )
    for industry, table in (
        ("real-estate", (
            ("rentals", (r"rental", r"\brent", r"lease", r"tenant")),
            ("sales", (r"\bsale", r"\bbuy", r"\bsell", r"listing", r"commission")),
            ("commercial", (r"commercial", r"office\s*space", r"retail\s*space")),
        )),
        ("fitness-coach", (
            ("personal-training", (r"personal", r"1-on-1", r"individual")),
            ("group-training", (r"group", r"class", r"bootcamp")),
            ("online", (r"online", r"virtual", r"remote")),
        )),
        ("cleaning", (
            ("residential", (r"home", r"house", r"residential", r"apartment")),
            ("commercial", (r"commercial", r"office", r"business")),
            ("specialized", (r"deep\s*clean", r"move-out", r"post-construction")),
        )),
    )
}

TEAM_SIZE_RULES: Tuple[Tuple[re.Pattern, str, float, SlotSource], ...] = (
    (re.compile(r"\b(solo|myself|just me|one person|freelance|independent)\b", _I), "solo", 0.9, SlotSource.EXPLICIT),
    (re.compile(r"\b(small team|2-5|few people|couple of|partner)\b", _I), "small", 0.85, SlotSource.INFERRED),
    (re.compile(r"\b(team|staff|employees|crew|workers)\b", _I), "small", 0.6, SlotSource.INFERRED),
    (re.compile(r"\b(6-20|medium|growing team|department)\b", _I), "medium", 0.8, SlotSource.INFERRED),
    (re.compile(r"\b(large|enterprise|20\+|company-wide|organization)\b", _I), "large", 0.8, SlotSource.INFERRED),
)

# Unit-qualified counts outrank the bare-number fallback
SCALE_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"(\d+)\s*(?:units?|properties|apartments)", _I), "properties"),
    (re.compile(r"(\d+)\s*(?:members?|clients?|customers?)", _I), "clients"),
    (re.compile(r"(\d+)\s*(?:employees?|staff|workers)", _I), "employees"),
    (re.compile(r"(\d+)\s*(?:locations?|offices?|branches)", _I), "locations"),
)
_BARE_NUMBER = re.compile(r"\b(\d+)\b")

CUSTOMER_FACING_RULES: Tuple[Tuple[re.Pattern, bool, float], ...] = (
    (re.compile(r"\b(customer portal|client portal|booking|appointments?|reservations?|customer-facing)\b", _I), True, 0.85),
    (re.compile(r"\b(internal|back-?office|operations|admin only|staff only)\b", _I), False, 0.85),
    (re.compile(r"\b(both|hybrid|full|end-to-end)\b", _I), True, 0.7),
)

INTEGRATION_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("stripe", ("stripe", "payment", "credit card", "charge")),
    ("twilio", ("twilio", "sms", "text message")),
    ("email", ("email", "notification")),
    ("google-calendar", ("calendar", "scheduling", "google calendar")),
    ("zapier", ("zapier", "automation", "integrate")),
)

KIT_CONFIDENCE = 0.95
KIT_ENTITY_DISCOUNT = 0.9
KIT_WORKFLOW_DISCOUNT = 0.85
EXPLICIT_INTEGRATION_CONFIDENCE = 0.85
ASSUMED_INTEGRATION_CONFIDENCE = 0.5
SUB_VERTICAL_CONFIDENCE = 0.8
SUB_VERTICAL_MIN_INDUSTRY_CONFIDENCE = 0.5


# --- Ledger operations ---

def create_empty_ledger() -> CertaintyLedger:
    """Fresh ledger: nothing known, every critical slot is a gap."""
    return CertaintyLedger()


def update_slot(
    ledger: CertaintyLedger,
    slot_id: str,
    value: Any,
    confidence: float,
    source: SlotSource,
    evidence: Optional[List[str]] = None,
) -> CertaintyLedger:
    """Replace one slot, clamping confidence. Returns a new ledger."""
    if slot_id not in SLOT_IDS:
        raise UnknownSlotError(f"Unknown ledger slot: {slot_id}")

    slot = SlotValue(
        value=value,
        confidence=max(0.0, min(1.0, confidence)),
        source=source,
        evidence=list(evidence or []),
    )
    return ledger.with_slot(slot_id, slot)


def update_ledger_from_input(
    ledger: CertaintyLedger,
    utterance: str,
    industry_kit: Optional[IndustryKit] = None,
    config: Optional[LedgerConfig] = None,
) -> CertaintyLedger:
    """
    Fold one user turn into the ledger.

    Detectors run in a fixed order; each successful detection is one
    ``update_slot`` call. Suggestions are generated after every slot write.
    """
    config = config or LedgerConfig()
    lower = utterance.lower()
    evidence = [utterance]
    updated = ledger

    industry = detect_industry(lower, industry_kit)
    if industry.found:
        updated = update_slot(
            updated, "industry", industry.value, industry.confidence, industry.source, evidence
        )

    # Gated on the ledger's industry so a later turn can refine an earlier one
    if updated.industry.confidence >= SUB_VERTICAL_MIN_INDUSTRY_CONFIDENCE:
        sub_vertical = detect_sub_vertical(lower, updated.industry.value)
        if sub_vertical.found:
            updated = update_slot(
                updated, "sub_vertical", sub_vertical.value,
                sub_vertical.confidence, sub_vertical.source, evidence,
            )

    team_size = detect_team_size(lower)
    if team_size.found:
        updated = update_slot(
            updated, "team_size", team_size.value, team_size.confidence, team_size.source, evidence
        )

    scale = detect_scale(lower)
    if scale.found:
        updated = update_slot(
            updated, "scale", scale.value, scale.confidence, scale.source, evidence
        )

    customer_facing = detect_customer_facing(lower)
    if customer_facing.found:
        updated = update_slot(
            updated, "customer_facing", customer_facing.value,
            customer_facing.confidence, customer_facing.source, evidence,
        )

    if industry_kit and industry_kit.entities:
        updated = update_slot(
            updated,
            "primary_entities",
            [e.name for e in industry_kit.entities],
            industry.confidence * KIT_ENTITY_DISCOUNT,
            SlotSource.INFERRED,
            [f"Derived from {industry_kit.name} kit"],
        )

    if industry_kit and industry_kit.workflows:
        updated = update_slot(
            updated,
            "workflows",
            list(industry_kit.workflows),
            industry.confidence * KIT_WORKFLOW_DISCOUNT,
            SlotSource.INFERRED,
            [f"Derived from {industry_kit.name} kit"],
        )

    integrations = detect_integrations(lower)
    if integrations:
        updated = update_slot(
            updated, "integrations", integrations,
            EXPLICIT_INTEGRATION_CONFIDENCE, SlotSource.EXPLICIT, evidence,
        )
    elif industry_kit and industry_kit.suggested_integrations:
        updated = update_slot(
            updated,
            "integrations",
            [i.id for i in industry_kit.suggested_integrations],
            ASSUMED_INTEGRATION_CONFIDENCE,
            SlotSource.ASSUMED,
            [f"Suggested for {industry_kit.name}"],
        )

    if industry_kit:
        suggestions = generate_suggestions_from_kit(industry_kit, updated, config.max_suggestions)
        updated = updated.with_suggestions(suggestions)

    logger.debug(
        f"Ledger updated: gaps={updated.gaps}, "
        f"readiness={updated.overall_readiness:.2f}"
    )
    return updated


def is_ready_to_build(
    ledger: CertaintyLedger, config: Optional[LedgerConfig] = None
) -> bool:
    """Three independent gates; all must pass."""
    config = config or LedgerConfig()

    if not ledger.industry.value or ledger.industry.confidence < config.build_industry_confidence:
        return False

    if not ledger.primary_entities.value:
        return False

    return ledger.overall_readiness >= config.build_readiness


def generate_suggestions_from_kit(
    kit: IndustryKit, ledger: CertaintyLedger, limit: int = 5
) -> List[str]:
    """Non-blocking hints: kit integrations not yet present, then recommended features."""
    suggestions = []

    current = ledger.integrations.value or []
    for integration in kit.suggested_integrations:
        if integration.id not in current:
            suggestions.append(f"{integration.name}: {integration.purpose}")

    if kit.feature_bundle:
        suggestions.extend(kit.feature_bundle.recommended)

    return suggestions[:limit]


def format_ledger_as_context(ledger: CertaintyLedger) -> str:
    """Human-readable summary of the known slots."""

    def fmt(label: str, slot: SlotValue) -> str:
        if slot.value is None or slot.value == []:
            return f"- {label}: Unknown"
        confidence = round(slot.confidence * 100)
        value = json.dumps(slot.value, separators=(",", ":"))
        return f"- {label}: {value} ({confidence}% confidence, {slot.source.value})"

    lines = [fmt("Industry", ledger.industry)]
    if ledger.sub_vertical.value:
        lines.append(fmt("Sub-vertical", ledger.sub_vertical))
    lines.append(fmt("Primary Entities", ledger.primary_entities))
    if ledger.team_size.value:
        lines.append(fmt("Team Size", ledger.team_size))
    if ledger.scale.value:
        lines.append(fmt("Scale", ledger.scale))
    if ledger.customer_facing.value is not None:
        lines.append(fmt("Customer Facing", ledger.customer_facing))
    if ledger.integrations.value:
        lines.append(fmt("Integrations", ledger.integrations))

    return "\n".join(lines)


# --- Detectors ---

def detect_industry(text: str, kit: Optional[IndustryKit] = None) -> Detection:
    """Score every industry; the highest strictly-greater score wins."""
    if kit:
        return Detection(value=kit.id, confidence=KIT_CONFIDENCE, source=SlotSource.EXPLICIT)

    best_industry = None
    best_score = 0.0
    for industry, weight, patterns in INDUSTRY_PATTERNS:
        score = sum(weight for p in patterns if p.search(text))
        if score > best_score:
            best_industry, best_score = industry, score

    if best_industry is None:
        return NOTHING

    return Detection(
        value=best_industry,
        confidence=min(0.95, 0.6 + best_score * 0.1),
        source=SlotSource.EXPLICIT if best_score >= 2 else SlotSource.INFERRED,
    )


def detect_sub_vertical(text: str, industry: Optional[str]) -> Detection:
    if not requires_sub_vertical(industry):
        return NOTHING

    for sub_vertical, patterns in SUB_VERTICAL_PATTERNS[industry]:
        if any(p.search(text) for p in patterns):
            return Detection(
                value=sub_vertical, confidence=SUB_VERTICAL_CONFIDENCE, source=SlotSource.INFERRED
            )

    return NOTHING


def detect_team_size(text: str) -> Detection:
    for pattern, size, confidence, source in TEAM_SIZE_RULES:
        if pattern.search(text):
            return Detection(value=size, confidence=confidence, source=source)
    return NOTHING


def detect_scale(text: str) -> Detection:
    for pattern, unit in SCALE_PATTERNS:
        match = pattern.search(text)
        if match:
            return Detection(
                value=f"{int(match.group(1))} {unit}", confidence=0.9, source=SlotSource.EXPLICIT
            )

    match = _BARE_NUMBER.search(text)
    if match:
        return Detection(value=int(match.group(1)), confidence=0.5, source=SlotSource.INFERRED)

    return NOTHING


def detect_customer_facing(text: str) -> Detection:
    for pattern, facing, confidence in CUSTOMER_FACING_RULES:
        if pattern.search(text):
            return Detection(value=facing, confidence=confidence, source=SlotSource.INFERRED)
    return NOTHING


def detect_integrations(text: str) -> List[str]:
    """Integration ids whose keywords appear in the text, in table order."""
    return [
        integration for integration, keywords in INTEGRATION_KEYWORDS
        if any(keyword in text for keyword in keywords)
    ]
