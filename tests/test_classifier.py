"""Tests for the Intent & Semantic Classifier."""

from blueprint_nlu.classifier.engine import IntentClassifier
from blueprint_nlu.models.parsed import (
    IntentType,
    ModifierType,
    NamedEntityType,
    SemanticIntent,
)


class TestDetectIntent:
    def setup_method(self):
        self.classifier = IntentClassifier()

    def test_add_feature(self):
        match = self.classifier.detect_intent("Add a calendar feature")
        assert match.type == IntentType.ADD_FEATURE
        assert match.confidence == 1.0

    def test_create_app(self):
        parsed = self.classifier.parse("Build me an app for my plumbing business")
        assert parsed.intent == IntentType.CREATE_APP
        assert parsed.confidence == 1.0

    def test_change_design(self):
        match = self.classifier.detect_intent("Make it more modern")
        assert match.type == IntentType.CHANGE_DESIGN
        assert match.confidence == 1.0

    def test_remove_feature(self):
        match = self.classifier.detect_intent("remove the calendar")
        assert match.type == IntentType.REMOVE_FEATURE
        assert match.confidence == 0.9

    def test_query_and_help(self):
        assert self.classifier.detect_intent("what can you do").type == IntentType.QUERY
        assert self.classifier.detect_intent("help me out").type == IntentType.HELP

    def test_verb_fallback(self):
        match = self.classifier.detect_intent("please update stuff")
        assert match.type == IntentType.MODIFY_APP
        assert match.confidence == 0.6

    def test_default_intent(self):
        match = self.classifier.detect_intent("something else entirely")
        assert match.type == IntentType.CREATE_APP
        assert match.confidence == 0.5

    def test_empty_input_does_not_raise(self):
        parsed = self.classifier.parse("")
        assert parsed.tokens == []
        assert parsed.semantic_intents == []


class TestSemanticIntents:
    def setup_method(self):
        self.classifier = IntentClassifier()

    def test_multi_label_in_table_order(self):
        parsed = self.classifier.parse("I need to schedule appointments and send invoices")
        assert parsed.semantic_intents == [
            SemanticIntent.SCHEDULING,
            SemanticIntent.COMMUNICATING,
            SemanticIntent.BILLING,
        ]

    def test_no_duplicates(self):
        # "organize" fires both managing and organizing, each once
        intents = self.classifier.detect_semantic_intents("organize and organize again")
        assert intents.count(SemanticIntent.ORGANIZING) == 1
        assert SemanticIntent.MANAGING in intents

    def test_automating(self):
        intents = self.classifier.detect_semantic_intents("when a job is done then email the client")
        assert SemanticIntent.AUTOMATING in intents
        assert SemanticIntent.COMMUNICATING in intents


class TestExtraction:
    def setup_method(self):
        self.classifier = IntentClassifier()

    def test_named_entities(self):
        text = "Invoice $1,250.00 for John Smith on 12/05/2025 at 3:30 pm"
        entities = self.classifier.extract_named_entities(text)
        assert [(e.type, e.text) for e in entities] == [
            (NamedEntityType.MONEY, "$1,250.00"),
            (NamedEntityType.DATE, "12/05/2025"),
            (NamedEntityType.TIME, "3:30 pm"),
            (NamedEntityType.PERSON, "John Smith"),
        ]
        money = entities[0]
        assert (money.start, money.end) == (8, 17)
        assert money.confidence == 0.8

    def test_person_uses_original_casing(self):
        parsed = self.classifier.parse("Send reports to Jane Doe")
        assert any(e.type == NamedEntityType.PERSON for e in parsed.named_entities)

    def test_modifiers(self):
        parsed = self.classifier.parse("track all urgent jobs daily")
        assert [(m.type, m.target) for m in parsed.modifiers] == [
            (ModifierType.QUANTITY, "urgent"),
            (ModifierType.PRIORITY, "jobs"),
            (ModifierType.QUANTITY, None),
        ]

    def test_phrases(self):
        parsed = self.classifier.parse("manage customer invoices for the team")
        assert parsed.phrases == ["manage customer invoices"]

    def test_actions(self):
        parsed = self.classifier.parse("create and send invoices")
        assert parsed.actions == ["create", "send", "invoice"]

    def test_original_preserved(self):
        parsed = self.classifier.parse("  Build an APP  ")
        assert parsed.original == "  Build an APP  "
        assert parsed.normalized == "build an app"
