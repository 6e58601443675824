"""Tests for the Workflow Inference Engine."""

import pytest

from blueprint_nlu.classifier.engine import IntentClassifier
from blueprint_nlu.models.config import WorkflowInferenceConfig
from blueprint_nlu.models.workflow import (
    ConditionOperator,
    DetectedFeature,
    KnownEntity,
    WorkflowStepType,
    WorkflowTriggerType,
)
from blueprint_nlu.workflows.inference import (
    WORKFLOW_PATTERNS,
    WorkflowInferenceEngine,
    substitute_placeholders,
)


def _make_job(behaviors=None) -> KnownEntity:
    return KnownEntity(id="job", name="Job", behaviors=behaviors or [])


class TestInfer:
    def setup_method(self):
        self.classifier = IntentClassifier()
        self.engine = WorkflowInferenceEngine()
        self.job = _make_job()

    def test_crud_for_entity(self):
        parsed = self.classifier.parse("I run a plumbing business")
        workflows = self.engine.infer(parsed, [self.job], [])
        assert [w.id for w in workflows] == [
            "create-job",
            "update-job",
            "delete-job",
            "navigate-job-list",
            "navigate-job-form",
        ]
        assert workflows[0].trigger.component_id == "job-form"
        assert workflows[3].name == "View Jobs"

    def test_trackable_entity_gets_complete(self):
        job = _make_job(behaviors=["trackable"])
        workflows = self.engine.infer(self.classifier.parse("I run a plumbing business"), [job], [])
        ids = [w.id for w in workflows]
        assert ids.index("complete-job") == ids.index("delete-job") + 1
        complete = workflows[ids.index("complete-job")]
        assert complete.confidence == 0.7
        assert complete.steps[0].config == {"entity_id": "job", "field": "status", "value": "completed"}

    def test_feature_workflows(self):
        features = [DetectedFeature(id="invoicing"), DetectedFeature(id="reminders")]
        workflows = self.engine.infer(self.classifier.parse("I run a plumbing business"), [], features)
        assert [w.id for w in workflows] == ["create-invoice-from-job", "send-invoice", "send-reminder"]
        reminder = workflows[-1]
        assert reminder.trigger.type == WorkflowTriggerType.SCHEDULE
        assert reminder.trigger.schedule == "0 9 * * *"

    def test_pattern_bound_to_first_entity(self):
        parsed = self.classifier.parse("assign the job to a technician")
        workflows = self.engine.infer(parsed, [self.job, KnownEntity(id="client", name="Client")], [])
        first = workflows[0]
        assert first.id == "assign-to-job"
        assert first.confidence == pytest.approx(0.5)
        assert first.steps[0].config["field"] == "assigned_to"

    def test_overdue_pattern_conditions(self):
        workflows = self.engine.infer(self.classifier.parse("flag overdue jobs"), [self.job], [])
        overdue = next(w for w in workflows if w.id == "on-overdue-job")
        assert overdue.trigger.schedule == "0 8 * * *"
        condition = overdue.conditions[0]
        assert condition.field == "due_date"
        assert condition.operator == ConditionOperator.LESS_THAN
        assert condition.value == "now"
        assert condition.then_step == "notify"
        assert overdue.steps[0].config["message"] == "You have overdue jobs"

    def test_patterns_need_an_entity(self):
        assert self.engine.infer(self.classifier.parse("flag overdue jobs"), [], []) == []

    def test_ids_unique(self):
        parsed = self.classifier.parse("when a job is booked, send confirmation email")
        features = [DetectedFeature(id="appointments"), DetectedFeature(id="invoicing")]
        workflows = self.engine.infer(parsed, [self.job], features)
        ids = [w.id for w in workflows]
        assert len(ids) == len(set(ids))

    def test_threshold_is_configurable(self):
        strict = WorkflowInferenceEngine(WorkflowInferenceConfig(pattern_score_threshold=0.9))
        assert strict.detect_patterns(self.classifier.parse("assign the job to a technician")) == []


class TestPatternHelpers:
    def test_substitute_placeholders(self):
        node = {"a": 1, "b": ["{entity}", True], "c": {"d": "{Entity} {entities}"}}
        assert substitute_placeholders(node, "job", "Job") == {
            "a": 1,
            "b": ["job", True],
            "c": {"d": "Job jobs"},
        }

    def test_pattern_table(self):
        ids = [p.id for p in WORKFLOW_PATTERNS]
        assert len(ids) == 13
        assert len(set(ids)) == 13


class TestCausalWorkflows:
    def setup_method(self):
        self.classifier = IntentClassifier()
        self.engine = WorkflowInferenceEngine()
        self.job = _make_job()

    def test_booked_sends_confirmation(self):
        parsed = self.classifier.parse("When a job is booked, send confirmation email")
        workflows = self.engine.infer_causal_workflows(parsed, [self.job])
        assert len(workflows) == 1
        workflow = workflows[0]
        assert workflow.id.startswith("workflow-")
        assert workflow.name == "When A Job Is Booked, Send Confirmation Email"
        assert workflow.confidence == 0.75
        assert workflow.trigger.type == WorkflowTriggerType.RECORD_CREATE
        assert workflow.trigger.entity_id == "job"
        assert workflow.trigger.component_id == "job-form"
        assert len(workflow.steps) == 1
        step = workflow.steps[0]
        assert step.type == WorkflowStepType.EMAIL
        assert step.config["subject"] == "Confirmation"
        assert step.config["body"] == "Your request has been confirmed."

    def test_mark_status_complete(self):
        parsed = self.classifier.parse("when a job is completed then mark status complete")
        workflow = self.engine.infer_causal_workflows(parsed, [self.job])[0]
        assert [s.config for s in workflow.steps] == [
            {"entity_id": "job", "field": "status", "value": "completed"}
        ]

    def test_booking_without_entities(self):
        workflows = self.engine.infer(self.classifier.parse("when someone books, send an email"), [], [])
        assert len(workflows) == 1
        workflow = workflows[0]
        assert workflow.trigger.type == WorkflowTriggerType.FORM_SUBMIT
        assert workflow.trigger.component_id == "booking-form"
        assert workflow.trigger.entity_id == "booking"
        assert workflow.steps[0].config["subject"] == "Notification"

    def test_fallback_step(self):
        client = KnownEntity(id="client", name="Client")
        parsed = self.classifier.parse("when a client signs up do something nice")
        workflow = self.engine.infer_causal_workflows(parsed, [client])[0]
        assert workflow.trigger.component_id == "client-form"
        assert [s.config["message"] for s in workflow.steps] == ["Workflow executed"]

    def test_no_causal_clause(self):
        assert self.engine.infer_causal_workflows(self.classifier.parse("track my jobs"), [self.job]) == []

    def test_no_trigger_without_entities(self):
        parsed = self.classifier.parse("when it rains, send an email")
        assert self.engine.infer_causal_workflows(parsed, []) == []

    def test_split_clause(self):
        assert self.engine.split_causal_clause("when a job is done then email the client") == (
            "a job is done",
            "email the client",
        )
        assert self.engine.split_causal_clause("no causal words here") is None
