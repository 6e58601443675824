"""Tests for the Discovery Session Store."""

import pytest

from blueprint_nlu.models.ledger import SlotSource, UnknownSlotError
from blueprint_nlu.session.store import DiscoverySessionStore


class TestDiscoverySessionStore:
    def setup_method(self):
        self.store = DiscoverySessionStore()

    def test_create_session(self):
        session = self.store.create_session()
        assert session.id.startswith("session_")
        assert len(session.history) == 1
        assert session.ledger.gaps == ["industry", "primary_entities"]
        assert self.store.get_session(session.id) is session

    def test_apply_utterance_appends_history(self):
        session = self.store.create_session()
        ledger = self.store.apply_utterance(session.id, "I need an app for my plumbing business")
        assert ledger.industry.value == "plumber"
        assert self.store.get_ledger(session.id) is ledger
        assert len(self.store.history(session.id)) == 2
        # Earlier ledgers are untouched
        assert self.store.history(session.id)[0].industry.value is None

    def test_set_slot(self):
        session = self.store.create_session()
        self.store.apply_utterance(session.id, "I need an app for my plumbing business")
        ledger = self.store.set_slot(session.id, "primary_entities", ["Job"], 0.9)
        assert ledger.primary_entities.source == SlotSource.EXPLICIT
        assert ledger.gaps == []

    def test_set_unknown_slot(self):
        session = self.store.create_session()
        with pytest.raises(UnknownSlotError):
            self.store.set_slot(session.id, "budget", 100, 0.9)
        assert len(self.store.history(session.id)) == 1

    def test_undo(self):
        session = self.store.create_session()
        self.store.apply_utterance(session.id, "I run a gym")
        ledger = self.store.undo(session.id)
        assert ledger.industry.value is None
        # The initial ledger is never dropped
        assert self.store.undo(session.id) is ledger
        assert len(self.store.history(session.id)) == 1

    def test_unknown_session(self):
        assert self.store.get_ledger("nope") is None
        assert self.store.history("nope") is None
        assert self.store.apply_utterance("nope", "hello") is None
        assert self.store.set_slot("nope", "industry", "gym", 0.9) is None
        assert self.store.undo("nope") is None

    def test_remove_and_list(self):
        first = self.store.create_session()
        second = self.store.create_session()
        assert {s.id for s in self.store.list_sessions()} == {first.id, second.id}
        assert self.store.remove_session(first.id) is True
        assert self.store.remove_session(first.id) is False
        assert [s.id for s in self.store.list_sessions()] == [second.id]
