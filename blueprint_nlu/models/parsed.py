"""Parsed Input: the classifier's structured reading of one utterance."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PartOfSpeech(str, Enum):
    NOUN = "noun"
    VERB = "verb"
    ADJECTIVE = "adjective"
    ADVERB = "adverb"
    PREPOSITION = "preposition"
    CONJUNCTION = "conjunction"
    DETERMINER = "determiner"
    PRONOUN = "pronoun"
    NUMBER = "number"
    PUNCTUATION = "punctuation"
    UNKNOWN = "unknown"


class IntentType(str, Enum):
    """Primary intent: what the user wants done to the app."""
    CREATE_APP = "create_app"
    MODIFY_APP = "modify_app"
    ADD_FEATURE = "add_feature"
    REMOVE_FEATURE = "remove_feature"
    CHANGE_DESIGN = "change_design"
    ADD_PAGE = "add_page"
    ADD_ENTITY = "add_entity"
    ADD_WORKFLOW = "add_workflow"
    QUERY = "query"
    HELP = "help"
    UNKNOWN = "unknown"


class SemanticIntent(str, Enum):
    """What the user conceptually wants the app to do. Multi-label."""
    TRACKING = "tracking"
    SCHEDULING = "scheduling"
    MANAGING = "managing"
    ORGANIZING = "organizing"
    COMMUNICATING = "communicating"
    BILLING = "billing"
    REPORTING = "reporting"
    COLLABORATING = "collaborating"
    AUTOMATING = "automating"
    MONITORING = "monitoring"


class NamedEntityType(str, Enum):
    PERSON = "person"
    ORGANIZATION = "organization"
    LOCATION = "location"
    DATE = "date"
    TIME = "time"
    MONEY = "money"
    QUANTITY = "quantity"
    CUSTOM = "custom"


class ModifierType(str, Enum):
    QUANTITY = "quantity"
    FREQUENCY = "frequency"
    PRIORITY = "priority"
    STATUS = "status"
    TIME = "time"
    STYLE = "style"
    SIZE = "size"


class Token(BaseModel):
    """A single word with its lemma, part of speech and salience."""

    model_config = ConfigDict(frozen=True)

    text: str                               # Surface form, punctuation included
    lemma: str
    part_of_speech: PartOfSpeech
    position_index: int
    importance: float = Field(ge=0.0, le=1.0)


class NamedEntity(BaseModel):
    """A typed span of the original (un-normalized) text."""

    model_config = ConfigDict(frozen=True)

    text: str
    type: NamedEntityType
    start: int
    end: int
    confidence: float = Field(ge=0.0, le=1.0)


class Modifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    type: ModifierType
    target: Optional[str] = None            # Surface text of the following token


class IntentMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: IntentType
    confidence: float = Field(ge=0.0, le=1.0)


class ParsedInput(BaseModel):
    """Produced once per utterance by the classifier. Never mutated."""

    model_config = ConfigDict(frozen=True)

    original: str
    normalized: str
    intent: IntentType
    confidence: float = Field(ge=0.0, le=1.0)
    tokens: List[Token] = []
    actions: List[str] = []                 # Lemmas of action verbs
    nouns: List[str] = []
    adjectives: List[str] = []
    phrases: List[str] = []
    semantic_intents: List[SemanticIntent] = []
    named_entities: List[NamedEntity] = []
    modifiers: List[Modifier] = []
