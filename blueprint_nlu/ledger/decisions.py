"""
Slot decisions: turn ledger confidence into a dialogue move per slot.

Rules are evaluated in order; the first that applies wins:
  1. explicit and >= 0.9          -> assume
  2. >= 0.75                      -> assume
  3. >= 0.5                       -> confirm
  4. non-critical and >= 0.3      -> assume
  5. critical                     -> ask
  6. otherwise                    -> skip
"""

import json
from typing import Dict, List, Optional

from blueprint_nlu.models.decision import SlotDecision, SlotDecisionSummary
from blueprint_nlu.models.ledger import SLOT_IDS, CertaintyLedger, SlotSource, SlotValue

# Only these ever produce "ask"
DECISION_CRITICAL_SLOTS = ("industry", "sub_vertical")

SUB_VERTICAL_OPTIONS: Dict[str, List[Dict[str, str]]] = {
    "real-estate": [
        {"value": "rentals", "label": "Rental property management"},
        {"value": "sales", "label": "Buying and selling homes"},
        {"value": "commercial", "label": "Commercial real estate"},
    ],
    "fitness-coach": [
        {"value": "personal-training", "label": "Personal training (1-on-1)"},
        {"value": "group-training", "label": "Group classes and bootcamps"},
        {"value": "online", "label": "Online/virtual coaching"},
    ],
    "cleaning": [
        {"value": "residential", "label": "Home cleaning"},
        {"value": "commercial", "label": "Office and commercial spaces"},
        {"value": "specialized", "label": "Specialized (move-out, deep clean)"},
    ],
}


def is_critical_slot(slot_id: str) -> bool:
    return slot_id in DECISION_CRITICAL_SLOTS


def decide_for_slot(slot: SlotValue, slot_id: str) -> SlotDecision:
    if slot.confidence >= 0.9 and slot.source == SlotSource.EXPLICIT:
        return SlotDecision.ASSUME

    if slot.confidence >= 0.75:
        return SlotDecision.ASSUME

    if slot.confidence >= 0.5:
        return SlotDecision.CONFIRM

    critical = is_critical_slot(slot_id)
    if not critical and slot.confidence >= 0.3:
        return SlotDecision.ASSUME

    if critical:
        return SlotDecision.ASK

    return SlotDecision.SKIP


def get_all_decisions(ledger: CertaintyLedger) -> Dict[str, SlotDecision]:
    """Decision for every slot, in ledger slot order."""
    return {slot_id: decide_for_slot(ledger.slot(slot_id), slot_id) for slot_id in SLOT_IDS}


def _slots_with(ledger: CertaintyLedger, decision: SlotDecision) -> List[str]:
    return [s for s, d in get_all_decisions(ledger).items() if d == decision]


def get_slots_to_confirm(ledger: CertaintyLedger) -> List[str]:
    return _slots_with(ledger, SlotDecision.CONFIRM)


def get_slots_to_ask(ledger: CertaintyLedger) -> List[str]:
    return _slots_with(ledger, SlotDecision.ASK)


def get_assumed_slots(ledger: CertaintyLedger) -> List[str]:
    return _slots_with(ledger, SlotDecision.ASSUME)


def get_decision_summary(ledger: CertaintyLedger) -> SlotDecisionSummary:
    """Bucket every slot by decision. Any "ask" blocks progress."""
    buckets: Dict[SlotDecision, List[str]] = {d: [] for d in SlotDecision}
    for slot_id, decision in get_all_decisions(ledger).items():
        buckets[decision].append(slot_id)

    return SlotDecisionSummary(
        assumed=buckets[SlotDecision.ASSUME],
        to_confirm=buckets[SlotDecision.CONFIRM],
        to_ask=buckets[SlotDecision.ASK],
        skipped=buckets[SlotDecision.SKIP],
        can_proceed=not buckets[SlotDecision.ASK],
    )


def should_ask_sub_vertical(industry: Optional[str]) -> bool:
    if not industry:
        return False
    return industry in SUB_VERTICAL_OPTIONS


def get_sub_vertical_options(industry: str) -> List[Dict[str, str]]:
    return [dict(option) for option in SUB_VERTICAL_OPTIONS.get(industry, [])]


def format_decision(slot_id: str, slot: SlotValue, decision: SlotDecision) -> str:
    confidence = round(slot.confidence * 100)
    value = json.dumps(slot.value, separators=(",", ":")) if slot.value else "null"
    return f"{slot_id}: {decision.value} ({value}, {confidence}% confidence, {slot.source.value})"
