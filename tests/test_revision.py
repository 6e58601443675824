"""Tests for the Voice Revision Engine."""

import pytest

from blueprint_nlu.models.config import RevisionConfig
from blueprint_nlu.models.revision import (
    AppContext,
    AppEntity,
    AppPage,
    AppWorkflow,
    ChangeTarget,
    ChangeType,
    RevisionChange,
    RevisionIntent,
)
from blueprint_nlu.revision.engine import CLARIFICATION_MESSAGE, VoiceRevisionEngine


def _make_context() -> AppContext:
    return AppContext(
        app_id="app_1",
        app_name="Plumbing Pro",
        pages=[
            AppPage(id="dashboard", name="Dashboard"),
            AppPage(id="calendar", name="Calendar"),
            AppPage(id="jobs", name="Jobs"),
        ],
        entities=[AppEntity(id="job", name="Job")],
    )


class TestProcessRevision:
    def setup_method(self):
        self.engine = VoiceRevisionEngine()
        self.context = _make_context()

    def test_remove_feature(self):
        result = self.engine.process_revision("remove the calendar", self.context)
        assert result.intent == RevisionIntent.REMOVE_FEATURE
        assert result.confidence == pytest.approx(0.9)
        assert len(result.changes) == 1
        change = result.changes[0]
        assert (change.type, change.target, change.target_id) == (
            ChangeType.REMOVE, ChangeTarget.PAGE, "calendar"
        )
        assert change.before["name"] == "Calendar"
        assert result.requires_confirmation is True
        assert result.confirmation_message.startswith("This will remove: Remove Calendar page")
        assert result.affected_component_ids == ["calendar"]

    def test_style_change_applies_silently(self):
        result = self.engine.process_revision("make it more modern", self.context)
        assert result.intent == RevisionIntent.STYLE_CHANGE
        assert result.confidence == pytest.approx(1.0)
        assert result.changes[0].target == ChangeTarget.STYLE
        assert result.changes[0].after == {"border_radius": "lg", "shadows": True, "animations": True}
        assert result.requires_confirmation is False
        assert result.confirmation_message is None

    def test_dark_mode(self):
        result = self.engine.process_revision("switch to dark mode", self.context)
        assert result.intent == RevisionIntent.STYLE_CHANGE
        assert result.changes[0].after == {"mode": "dark"}

    def test_add_feature_summarizes_changes(self):
        result = self.engine.process_revision("add invoicing", self.context)
        assert result.intent == RevisionIntent.ADD_FEATURE
        assert len(result.changes) == 6
        assert result.requires_confirmation is True
        assert result.confirmation_message == (
            "I'll add the following: Add invoice entity for invoicing, "
            "Add invoices page for invoicing, Add invoice-form page for invoicing "
            "and 3 more changes. Should I proceed?"
        )

    def test_add_field(self):
        result = self.engine.process_revision("add a priority field to job", self.context)
        assert result.intent == RevisionIntent.MODIFY_ENTITY
        assert [c.target_id for c in result.changes] == ["job.priority"]

        updated = self.engine.apply_changes(self.context, result.changes)
        assert updated.entities[0].fields == [{"id": "priority", "name": "priority", "type": "string"}]

    def test_add_field_to_unknown_entity(self):
        result = self.engine.process_revision("add a priority field to widget", self.context)
        assert result.changes == []
        assert result.confirmation_message == "I didn't find any changes to make. Could you be more specific?"

    def test_add_page(self):
        result = self.engine.process_revision("add a billing page", self.context)
        assert result.intent == RevisionIntent.ADD_PAGE
        assert result.changes[0].after == {"id": "billing", "name": "Billing", "route": "/billing"}

    def test_rename_page(self):
        result = self.engine.process_revision("rename the dashboard to home", self.context)
        assert result.intent == RevisionIntent.MODIFY_PAGE
        change = result.changes[0]
        assert change.target_id == "dashboard"
        assert change.before == {"name": "Dashboard"}
        assert change.after == {"name": "home"}

    def test_move_to_sidebar(self):
        result = self.engine.process_revision("move jobs to the sidebar", self.context)
        assert result.intent == RevisionIntent.REORGANIZE
        change = result.changes[0]
        assert change.after == {"show_in_sidebar": True, "order": 0}
        assert change.description == "Move Jobs to sidebar"

    def test_make_default_page(self):
        result = self.engine.process_revision("make the jobs the default page", self.context)
        assert result.intent == RevisionIntent.REORGANIZE
        assert result.changes[0].after == {"route": "/", "order": 0}

    def test_unrecognized(self):
        result = self.engine.process_revision("hmm what", self.context)
        assert result.intent == RevisionIntent.MODIFY_APP
        assert result.confidence == 0.3
        assert result.changes == []
        assert result.requires_confirmation is True
        assert result.confirmation_message == CLARIFICATION_MESSAGE


class TestShouldConfirm:
    def setup_method(self):
        self.engine = VoiceRevisionEngine()

    def test_many_changes_need_confirmation(self):
        engine = VoiceRevisionEngine(config=RevisionConfig(max_silent_changes=0))
        change = RevisionChange(
            type=ChangeType.MODIFY, target=ChangeTarget.STYLE, target_id="theme", description="x"
        )
        assert engine.should_confirm(RevisionIntent.STYLE_CHANGE, [change]) is True

    def test_removals_always_confirm(self):
        assert self.engine.should_confirm(RevisionIntent.REMOVE_PAGE, []) is True


class TestApplyChanges:
    def setup_method(self):
        self.engine = VoiceRevisionEngine()
        self.context = _make_context()

    def test_does_not_mutate_input(self):
        result = self.engine.process_revision("remove the calendar", self.context)
        updated = self.engine.apply_changes(self.context, result.changes)
        assert [p.id for p in updated.pages] == ["dashboard", "jobs"]
        assert [p.id for p in self.context.pages] == ["dashboard", "calendar", "jobs"]

    def test_modify_merges_page(self):
        result = self.engine.process_revision("rename the dashboard to home", self.context)
        updated = self.engine.apply_changes(self.context, result.changes)
        assert updated.pages[0].name == "home"
        assert updated.pages[0].id == "dashboard"
        assert self.context.pages[0].name == "Dashboard"

    def test_add_feature_applies_everything(self):
        result = self.engine.process_revision("add invoicing", self.context)
        updated = self.engine.apply_changes(self.context, result.changes)
        assert [e.id for e in updated.entities] == ["job", "invoice"]
        assert [p.id for p in updated.pages][-3:] == ["invoices", "invoice-form", "invoice-detail"]
        assert [w.id for w in updated.workflows] == ["create-invoice", "send-invoice"]

    def test_remove_workflow(self):
        context = AppContext(workflows=[AppWorkflow(id="send-invoice", name="Send Invoice")])
        change = RevisionChange(
            type=ChangeType.REMOVE,
            target=ChangeTarget.WORKFLOW,
            target_id="send-invoice",
            description="Remove Send Invoice workflow",
        )
        assert self.engine.apply_changes(context, [change]).workflows == []

    def test_add_without_payload_is_skipped(self):
        change = RevisionChange(
            type=ChangeType.ADD, target=ChangeTarget.PAGE, target_id="reports", description="Add reports"
        )
        updated = self.engine.apply_changes(self.context, [change])
        assert [p.id for p in updated.pages] == ["dashboard", "calendar", "jobs"]

    @pytest.mark.parametrize("target", [ChangeTarget.PAGE, ChangeTarget.ENTITY, ChangeTarget.WORKFLOW])
    def test_add_without_id_is_skipped(self, target):
        change = RevisionChange(
            type=ChangeType.ADD, target=target, target_id="x", after={"name": "X"}, description="Add X"
        )
        updated = self.engine.apply_changes(self.context, [change])
        assert updated == self.context

    def test_modify_with_non_dict_payload_is_skipped(self):
        bad = RevisionChange(
            type=ChangeType.MODIFY, target=ChangeTarget.PAGE, target_id="dashboard",
            after="home", description="Rename Dashboard",
        )
        good = RevisionChange(
            type=ChangeType.REMOVE, target=ChangeTarget.PAGE, target_id="calendar",
            description="Remove Calendar page",
        )
        updated = self.engine.apply_changes(self.context, [bad, good])
        assert [p.name for p in updated.pages] == ["Dashboard", "Jobs"]

    def test_field_without_payload_is_skipped(self):
        change = RevisionChange(
            type=ChangeType.ADD, target=ChangeTarget.FIELD, target_id="job.priority", description="Add priority"
        )
        assert self.engine.apply_changes(self.context, [change]).entities[0].fields == []
