"""
Lexical Analyzer: normalization, tokenization and part-of-speech tagging.

Tagging is a fixed cascade and the order is behaviorally significant:
  1. Closed-class lexicons (action verbs, style/quantity/priority/time/status
     words, stop words)
  2. Numeric literals
  3. Local context (previous word)
  4. Suffix heuristics
  5. Default: noun for longer non-stop words, otherwise unknown
"""

import re
from typing import List, Sequence

from blueprint_nlu.models.parsed import PartOfSpeech, Token

# --- Lexicons ---

ACTION_VERBS = frozenset([
    "create", "build", "make", "design", "develop",
    "add", "include", "integrate", "connect",
    "track", "manage", "organize", "handle",
    "schedule", "book", "reserve", "plan",
    "send", "notify", "alert", "remind",
    "invoice", "bill", "charge", "pay",
    "report", "analyze", "monitor", "measure",
    "assign", "delegate", "share", "collaborate",
    "automate", "streamline", "simplify", "optimize",
    "change", "modify", "update", "edit", "fix",
    "remove", "delete", "hide", "disable",
    "show", "display", "view", "see",
])

STYLE_ADJECTIVES = frozenset([
    "modern", "minimal", "clean", "simple", "sleek",
    "professional", "corporate", "business", "formal",
    "colorful", "vibrant", "bold", "bright", "dark",
    "friendly", "playful", "fun", "casual",
    "elegant", "sophisticated", "premium", "luxurious",
    "compact", "spacious", "dense", "airy",
])

QUANTITY_WORDS = frozenset([
    "all", "every", "each", "some", "many", "few",
    "multiple", "several", "single", "one", "two",
    "daily", "weekly", "monthly", "yearly", "annual",
])

PRIORITY_WORDS = frozenset([
    "important", "critical", "urgent", "priority",
    "essential", "required", "necessary", "optional",
    "main", "primary", "secondary", "minor",
])

TIME_WORDS = frozenset([
    "today", "tomorrow", "yesterday", "now", "later",
    "morning", "afternoon", "evening", "night",
    "before", "after", "during", "while",
    "immediately", "soon", "eventually", "always", "never",
])

STATUS_WORDS = frozenset([
    "active", "inactive", "pending", "completed", "done",
    "open", "closed", "new", "old", "archived",
    "approved", "rejected", "cancelled", "draft",
])

STOP_WORDS = frozenset([
    "a", "an", "the", "and", "or", "but", "is", "are", "was", "were",
    "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should", "may", "might", "must", "shall",
    "can", "to", "of", "in", "for", "on", "with", "at", "by", "from",
    "as", "into", "through", "during", "before", "after", "above", "below",
    "between", "under", "again", "further", "then", "once", "here", "there",
    "when", "where", "why", "how", "all", "each", "few", "more", "most",
    "other", "some", "such", "no", "nor", "not", "only", "own", "same",
    "so", "than", "too", "very", "just", "also", "now", "me", "my", "i",
    "we", "our", "you", "your", "it", "its", "that", "this", "these", "those",
])

IRREGULAR_VERBS = {
    "built": "build",
    "made": "make",
    "sent": "send",
    "paid": "pay",
    "set": "set",
    "put": "put",
}

# Stop-word subclasses
_DETERMINERS = frozenset(["a", "an", "the"])
_CONJUNCTIONS = frozenset(["and", "or", "but"])
_PREPOSITIONS = frozenset(["in", "on", "at", "to", "for", "with", "by", "from"])
_PRONOUNS = frozenset(["i", "me", "my", "we", "our", "you", "your", "it", "they"])

# Context cues (previous word)
_INTENSIFIERS = frozenset(["more", "very", "really", "quite", "so"])
_VERB_CUES = frozenset(["to", "can", "will", "would", "should", "could", "must", "please"])
_NOUN_CUES = frozenset(["a", "an", "the", "my", "your", "our", "their"])

_NOUN_SUFFIX = re.compile(r"(tion|ment|ness|ity|er|or|ist|ism)$")
_ADJECTIVE_SUFFIX = re.compile(r"(ful|less|ous|ive|able|ible|al|ical)$")
_INTEGER = re.compile(r"^\d+$")
_MONEY = re.compile(r"^\$[\d,]+")

_CURLY_SINGLE = re.compile("[‘’‚′]")
_CURLY_DOUBLE = re.compile("[“”„″]")
_UNSAFE_CHARS = re.compile(r"[^\w\s'\"$.,!?-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+", re.ASCII)
_TOKEN_PUNCTUATION = re.compile(r"[.,!?'\"]")


def normalize(text: str) -> str:
    """Lowercase, unify quotes, drop unsafe characters and collapse whitespace."""
    text = text.lower()
    text = _CURLY_SINGLE.sub("'", text)
    text = _CURLY_DOUBLE.sub('"', text)
    # Strip before collapsing so a removed character never leaves a double space
    text = _UNSAFE_CHARS.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def lemmatize(word: str) -> str:
    """Suffix-stripping lemmatizer with a small irregular-verb table."""
    lower = word.lower()

    if lower in IRREGULAR_VERBS:
        return IRREGULAR_VERBS[lower]

    if lower.endswith("ing"):
        base = lower[:-3]
        if base.endswith(("t", "n", "d")):
            return base
        return base + "e"
    if lower.endswith("ed"):
        return lower[:-2]
    if lower.endswith("ies"):
        return lower[:-3] + "y"
    if lower.endswith("s") and not lower.endswith("ss"):
        return lower[:-1]

    return lower


def tag_part_of_speech(
    word: str,
    lemma: str,
    context: Sequence[str],
    index: int,
) -> PartOfSpeech:
    """Coarse POS tag for ``word`` at ``context[index]``."""
    lower = word.lower()

    # 1. Lexicons
    if lemma in ACTION_VERBS:
        return PartOfSpeech.VERB
    if lemma in STYLE_ADJECTIVES:
        return PartOfSpeech.ADJECTIVE
    if lemma in QUANTITY_WORDS or lemma in PRIORITY_WORDS:
        return PartOfSpeech.ADJECTIVE
    if lemma in TIME_WORDS:
        return PartOfSpeech.ADVERB
    if lemma in STATUS_WORDS:
        return PartOfSpeech.ADJECTIVE
    if lower in STOP_WORDS:
        if lower in _DETERMINERS:
            return PartOfSpeech.DETERMINER
        if lower in _CONJUNCTIONS:
            return PartOfSpeech.CONJUNCTION
        if lower in _PREPOSITIONS:
            return PartOfSpeech.PREPOSITION
        if lower in _PRONOUNS:
            return PartOfSpeech.PRONOUN

    # 2. Numbers
    if _INTEGER.match(word) or _MONEY.match(word):
        return PartOfSpeech.NUMBER

    # 3. Context
    prev_word = context[index - 1].lower() if index > 0 else ""
    if prev_word in _INTENSIFIERS:
        return PartOfSpeech.ADJECTIVE
    if prev_word in _VERB_CUES:
        return PartOfSpeech.VERB
    if prev_word in _NOUN_CUES:
        return PartOfSpeech.NOUN

    # 4. Suffixes
    if _NOUN_SUFFIX.search(lower):
        return PartOfSpeech.NOUN
    if _ADJECTIVE_SUFFIX.search(lower):
        return PartOfSpeech.ADJECTIVE

    # 5. Default
    if len(lower) > 2 and lower not in STOP_WORDS:
        return PartOfSpeech.NOUN
    return PartOfSpeech.UNKNOWN


def score_importance(word: str, lemma: str, pos: PartOfSpeech) -> float:
    score = 0.5

    if pos == PartOfSpeech.NOUN:
        score += 0.3
    elif pos == PartOfSpeech.VERB:
        score += 0.2
    elif pos == PartOfSpeech.ADJECTIVE:
        score += 0.1

    if lemma in ACTION_VERBS:
        score += 0.2
    if lemma in STOP_WORDS:
        score -= 0.4

    # Longer words tend to carry more meaning
    if len(word) > 6:
        score += 0.1

    return min(max(score, 0.0), 1.0)


def tokenize(text: str) -> List[Token]:
    """Split already-normalized text into tagged tokens."""
    words = text.split()
    tokens = []

    for index, word in enumerate(words):
        cleaned = _TOKEN_PUNCTUATION.sub("", word)
        lemma = lemmatize(cleaned)
        pos = tag_part_of_speech(cleaned, lemma, words, index)
        tokens.append(Token(
            text=word,
            lemma=lemma,
            part_of_speech=pos,
            position_index=index,
            importance=score_importance(cleaned, lemma, pos),
        ))

    return tokens
