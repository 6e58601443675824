"""
Intent & Semantic Classifier: turns one utterance into a ParsedInput.

Two-tier primary intent detection:
  Tier 1: ordered regex library, highest weight wins (first seen on ties)
  Tier 2: if the best weight is below 0.6, fall back to verb lemmas

The fallback thresholds are shared with every caller that thresholds on
``ParsedInput.confidence``; keep them aligned.
"""

import logging
import re
from typing import List, Optional, Tuple

from blueprint_nlu.lexical.analyzer import (
    ACTION_VERBS,
    PRIORITY_WORDS,
    QUANTITY_WORDS,
    STATUS_WORDS,
    STOP_WORDS,
    STYLE_ADJECTIVES,
    TIME_WORDS,
    normalize,
    tokenize,
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

logger = logging.getLogger(__name__)

_I = re.IGNORECASE

INTENT_PATTERNS: Tuple[Tuple[re.Pattern, IntentType, float], ...] = (
    # Create app
    (re.compile(r"^(build|create|make|design|develop)\s+(me\s+)?(an?\s+)?(app|application|system|tool)", _I), IntentType.CREATE_APP, 1.0),
    (re.compile(r"^i\s+(want|need|would like)\s+(an?\s+)?(app|application)", _I), IntentType.CREATE_APP, 0.9),
    (re.compile(r"(app|application|system|tool)\s+(for|to)", _I), IntentType.CREATE_APP, 0.7),

    # Add feature
    (re.compile(r"^add\s+(a\s+)?(.+?)\s+(feature|functionality|capability)", _I), IntentType.ADD_FEATURE, 1.0),
    (re.compile(r"^include\s+(a\s+)?(.+)", _I), IntentType.ADD_FEATURE, 0.8),
    (re.compile(r"^i\s+also\s+(want|need)", _I), IntentType.ADD_FEATURE, 0.7),

    # Change design
    (re.compile(r"^(make|change|update)\s+(it|this|the\s+design|the\s+app)\s+(more\s+)?(modern|minimal|colorful|professional)", _I), IntentType.CHANGE_DESIGN, 1.0),
    (re.compile(r"^(change|update)\s+(the\s+)?(color|theme|style|look)", _I), IntentType.CHANGE_DESIGN, 0.9),
    (re.compile(r"(more\s+)?(modern|minimal|clean|professional|colorful)", _I), IntentType.CHANGE_DESIGN, 0.5),

    # Add page
    (re.compile(r"^add\s+(a\s+)?(new\s+)?page", _I), IntentType.ADD_PAGE, 1.0),
    (re.compile(r"^(create|add)\s+(a\s+)?(.+?)\s+page", _I), IntentType.ADD_PAGE, 0.9),

    # Add entity
    (re.compile(r"^add\s+(a\s+)?(.+?)\s+(table|model|entity|data\s+type)", _I), IntentType.ADD_ENTITY, 1.0),
    (re.compile(r"^i\s+(want|need)\s+to\s+track\s+(.+)", _I), IntentType.ADD_ENTITY, 0.8),

    # Modify app
    (re.compile(r"^(change|modify|update|edit)\s+(the\s+)?(.+)", _I), IntentType.MODIFY_APP, 0.7),
    (re.compile(r"^(rename|move|reorganize)", _I), IntentType.MODIFY_APP, 0.8),

    # Remove feature
    (re.compile(r"^(remove|delete|hide|disable)\s+(the\s+)?(.+)", _I), IntentType.REMOVE_FEATURE, 0.9),

    # Query / help
    (re.compile(r"^(what|how|why|can\s+you|show\s+me)", _I), IntentType.QUERY, 0.8),
    (re.compile(r"^help", _I), IntentType.HELP, 1.0),
)

# Tier 2: (verb lemmas, intent, confidence), first hit wins
VERB_FALLBACKS: Tuple[Tuple[frozenset, IntentType, float], ...] = (
    (frozenset(["create", "build", "make", "design", "develop"]), IntentType.CREATE_APP, 0.7),
    (frozenset(["add", "include", "integrate"]), IntentType.ADD_FEATURE, 0.6),
    (frozenset(["change", "modify", "update", "edit"]), IntentType.MODIFY_APP, 0.6),
    (frozenset(["remove", "delete", "hide"]), IntentType.REMOVE_FEATURE, 0.6),
)

DEFAULT_INTENT = IntentMatch(type=IntentType.CREATE_APP, confidence=0.5)
FALLBACK_THRESHOLD = 0.6

SEMANTIC_PATTERNS: Tuple[Tuple[re.Pattern, SemanticIntent], ...] = (
    (re.compile(r"track(ing)?|monitor(ing)?|follow|watch|log(ging)?", _I), SemanticIntent.TRACKING),
    (re.compile(r"schedul(e|ing)|appoint(ment)?|book(ing)?|calendar|plan(ning)?", _I), SemanticIntent.SCHEDULING),
    (re.compile(r"manag(e|ing|ement)|organiz(e|ing)|handle|control", _I), SemanticIntent.MANAGING),
    (re.compile(r"organiz(e|ing)|sort(ing)?|categor(y|ize)|group(ing)?", _I), SemanticIntent.ORGANIZING),
    (re.compile(r"send|message|notify|alert|communicate|email|sms", _I), SemanticIntent.COMMUNICATING),
    (re.compile(r"invoice|bill(ing)?|payment|charge|price|cost|money", _I), SemanticIntent.BILLING),
    (re.compile(r"report(ing)?|analyz(e|ing)|analytic|statistic|dashboard|metric", _I), SemanticIntent.REPORTING),
    (re.compile(r"team|collaborat(e|ion)|share|together|assign|delegate", _I), SemanticIntent.COLLABORATING),
    (re.compile(r"automat(e|ion)|workflow|trigger|when.*then|if.*then", _I), SemanticIntent.AUTOMATING),
    (re.compile(r"monitor(ing)?|watch|observ(e|ing)|check|status", _I), SemanticIntent.MONITORING),
)

ENTITY_PATTERNS: Tuple[Tuple[re.Pattern, NamedEntityType], ...] = (
    (re.compile(r"\$[\d,]+(\.\d{2})?"), NamedEntityType.MONEY),
    (re.compile(r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}"), NamedEntityType.DATE),
    (re.compile(r"\d{1,2}:\d{2}\s*(am|pm)?", _I), NamedEntityType.TIME),
    (re.compile(r"\d+\s*(hours?|days?|weeks?|months?|years?)", _I), NamedEntityType.QUANTITY),
    (re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+\b"), NamedEntityType.PERSON),
)

NAMED_ENTITY_CONFIDENCE = 0.8


class IntentClassifier:
    """Rule-based classifier. Stateless; one instance can serve every caller."""

    def parse(self, text: str) -> ParsedInput:
        """Parse one utterance into its structured representation."""
        normalized = normalize(text)
        tokens = tokenize(normalized)
        intent = self.detect_intent(normalized, tokens)

        actions = [
            t.lemma for t in tokens
            if t.part_of_speech == PartOfSpeech.VERB and t.lemma in ACTION_VERBS
        ]
        nouns = [
            t.lemma for t in tokens
            if t.part_of_speech == PartOfSpeech.NOUN and t.lemma not in STOP_WORDS
        ]
        adjectives = [
            t.lemma for t in tokens if t.part_of_speech == PartOfSpeech.ADJECTIVE
        ]

        parsed = ParsedInput(
            original=text,
            normalized=normalized,
            intent=intent.type,
            confidence=intent.confidence,
            tokens=tokens,
            actions=actions,
            nouns=nouns,
            adjectives=adjectives,
            phrases=self.extract_phrases(tokens),
            semantic_intents=self.detect_semantic_intents(normalized),
            # Person names need the original capitalisation
            named_entities=self.extract_named_entities(text),
            modifiers=self.extract_modifiers(tokens),
        )
        logger.debug(
            f"Parsed {text!r}: intent={intent.type.value}@{intent.confidence}, "
            f"semantic={[i.value for i in parsed.semantic_intents]}"
        )
        return parsed

    def detect_intent(
        self, text: str, tokens: Optional[List[Token]] = None
    ) -> IntentMatch:
        """Pick the primary intent. Tokens are derived from ``text`` if omitted."""
        best = DEFAULT_INTENT

        for pattern, intent, weight in INTENT_PATTERNS:
            if pattern.search(text) and weight > best.confidence:
                best = IntentMatch(type=intent, confidence=weight)

        if best.confidence < FALLBACK_THRESHOLD:
            if tokens is None:
                tokens = tokenize(normalize(text))
            verbs = {t.lemma for t in tokens if t.part_of_speech == PartOfSpeech.VERB}
            for lemmas, intent, confidence in VERB_FALLBACKS:
                if verbs & lemmas:
                    best = IntentMatch(type=intent, confidence=confidence)
                    break

        return best

    def detect_semantic_intents(self, text: str) -> List[SemanticIntent]:
        intents: List[SemanticIntent] = []
        for pattern, intent in SEMANTIC_PATTERNS:
            if pattern.search(text) and intent not in intents:
                intents.append(intent)
        return intents

    def extract_named_entities(self, text: str) -> List[NamedEntity]:
        entities = []
        for pattern, entity_type in ENTITY_PATTERNS:
            for match in pattern.finditer(text):
                entities.append(NamedEntity(
                    text=match.group(0),
                    type=entity_type,
                    start=match.start(),
                    end=match.end(),
                    confidence=NAMED_ENTITY_CONFIDENCE,
                ))
        return entities

    def extract_modifiers(self, tokens: List[Token]) -> List[Modifier]:
        """Quantity, priority and status modifiers bind the following token."""
        modifiers = []

        for i, token in enumerate(tokens):
            next_text = tokens[i + 1].text if i + 1 < len(tokens) else None
            lemma = token.lemma

            if lemma in QUANTITY_WORDS:
                modifiers.append(Modifier(text=token.text, type=ModifierType.QUANTITY, target=next_text))
            elif lemma in PRIORITY_WORDS:
                modifiers.append(Modifier(text=token.text, type=ModifierType.PRIORITY, target=next_text))
            elif lemma in TIME_WORDS:
                modifiers.append(Modifier(text=token.text, type=ModifierType.TIME))
            elif lemma in STATUS_WORDS:
                modifiers.append(Modifier(text=token.text, type=ModifierType.STATUS, target=next_text))
            elif lemma in STYLE_ADJECTIVES:
                modifiers.append(Modifier(text=token.text, type=ModifierType.STYLE))

        return modifiers

    def extract_phrases(self, tokens: List[Token]) -> List[str]:
        """Runs of two or more salient, non-stop-word tokens."""
        phrases = []
        current: List[str] = []

        for token in tokens:
            if token.importance > 0.5 and token.lemma not in STOP_WORDS:
                current.append(token.text)
            elif current:
                if len(current) >= 2:
                    phrases.append(" ".join(current))
                current = []

        if len(current) >= 2:
            phrases.append(" ".join(current))

        return phrases
