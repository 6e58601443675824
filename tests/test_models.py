"""Tests for core data models."""

from datetime import datetime

import pytest

from blueprint_nlu.models import (
    CertaintyLedger,
    DetectedFeature,
    InferredWorkflow,
    KnownEntity,
    ParsedInput,
    IntentType,
    RevisionChange,
    ChangeTarget,
    ChangeType,
    SlotSource,
    SlotValue,
    UnknownSlotError,
    WorkflowStep,
    WorkflowStepType,
    WorkflowTrigger,
    WorkflowTriggerType,
)


class TestSlotValue:
    def test_defaults(self):
        slot = SlotValue()
        assert slot.value is None
        assert slot.confidence == 0.0
        assert slot.source == SlotSource.DEFAULT
        assert slot.evidence == []

    def test_confidence_bounds(self):
        with pytest.raises(Exception):
            SlotValue(value="gym", confidence=1.5)
        with pytest.raises(Exception):
            SlotValue(value="gym", confidence=-0.1)

    def test_frozen(self):
        slot = SlotValue(value="gym", confidence=0.8)
        with pytest.raises(Exception):
            slot.confidence = 0.1


class TestCertaintyLedger:
    def test_empty_ledger_gaps(self):
        ledger = CertaintyLedger()
        assert ledger.gaps == ["industry", "primary_entities"]
        assert ledger.overall_readiness == 0.0
        assert ledger.suggestions == []

    def test_list_slots_start_empty(self):
        ledger = CertaintyLedger()
        assert ledger.primary_entities.value == []
        assert ledger.workflows.value == []
        assert ledger.integrations.value == []

    def test_with_slot_returns_new_ledger(self):
        ledger = CertaintyLedger()
        updated = ledger.with_slot(
            "industry", SlotValue(value="plumber", confidence=0.8, source=SlotSource.INFERRED)
        )
        assert updated is not ledger
        assert updated.industry.value == "plumber"
        assert ledger.industry.value is None

    def test_with_slot_recomputes_derived_fields(self):
        ledger = CertaintyLedger().with_slot(
            "industry", SlotValue(value="plumber", confidence=0.8)
        )
        assert ledger.gaps == ["primary_entities"]
        # Two critical slots share 0.7 of the weight
        assert ledger.overall_readiness == pytest.approx(0.8 * 0.35)

    def test_unknown_slot(self):
        ledger = CertaintyLedger()
        with pytest.raises(UnknownSlotError):
            ledger.slot("favorite_color")
        with pytest.raises(ValueError):
            ledger.with_slot("favorite_color", SlotValue())

    def test_ledger_is_frozen(self):
        ledger = CertaintyLedger()
        with pytest.raises(Exception):
            ledger.gaps = []


class TestWorkflowTrigger:
    def test_schedule_requires_cron(self):
        with pytest.raises(Exception):
            WorkflowTrigger(type=WorkflowTriggerType.SCHEDULE)

    def test_invalid_cron_rejected(self):
        with pytest.raises(Exception):
            WorkflowTrigger(type=WorkflowTriggerType.SCHEDULE, schedule="every morning")

    def test_next_fire(self):
        trigger = WorkflowTrigger(type=WorkflowTriggerType.SCHEDULE, schedule="0 9 * * *")
        fire = trigger.next_fire(datetime(2026, 3, 2, 8, 0))
        assert fire == datetime(2026, 3, 2, 9, 0)

    def test_event_trigger_has_no_fire_time(self):
        trigger = WorkflowTrigger(
            type=WorkflowTriggerType.FORM_SUBMIT, component_id="job-form"
        )
        assert trigger.next_fire() is None


class TestWorkflowModels:
    def test_inferred_workflow(self):
        workflow = InferredWorkflow(
            id="create-job",
            name="Create Job",
            description="Create a new job",
            confidence=0.9,
            trigger=WorkflowTrigger(type=WorkflowTriggerType.FORM_SUBMIT, component_id="job-form"),
            steps=[WorkflowStep(id="create", type=WorkflowStepType.CREATE, config={"entity_id": "job"})],
        )
        assert workflow.conditions is None
        assert workflow.steps[0].next_step is None

    def test_confidence_bounds(self):
        with pytest.raises(Exception):
            InferredWorkflow(
                id="x",
                name="x",
                description="x",
                confidence=1.2,
                trigger=WorkflowTrigger(type=WorkflowTriggerType.WEBHOOK),
                steps=[],
            )

    def test_known_entity_plural_default(self):
        assert KnownEntity(id="job", name="Job").plural_name == "Jobs"
        assert KnownEntity(id="person", name="Person", plural_name="People").plural_name == "People"

    def test_detected_feature_defaults(self):
        feature = DetectedFeature(id="invoicing")
        assert feature.confidence == 1.0


class TestParsedInput:
    def test_frozen(self):
        parsed = ParsedInput(
            original="Help",
            normalized="help",
            intent=IntentType.HELP,
            confidence=1.0,
        )
        with pytest.raises(Exception):
            parsed.intent = IntentType.QUERY


class TestRevisionChange:
    def test_change_is_frozen(self):
        change = RevisionChange(
            type=ChangeType.REMOVE,
            target=ChangeTarget.PAGE,
            target_id="calendar",
            description="Remove Calendar page",
        )
        assert change.before is None
        with pytest.raises(Exception):
            change.target_id = "other"
