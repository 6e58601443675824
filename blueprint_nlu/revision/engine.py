"""
Voice Revision Engine: turns a spoken or typed edit request into atomic,
reversible changes against a live app description.

"Make this page more modern", "Add invoicing", "Remove the calendar"

Behavioral Contract:
- Never mutates the AppContext it is given
- Removals always require confirmation
- No recognizable target yields a zero-change clarification result
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError

from blueprint_nlu.classifier.engine import IntentClassifier
from blueprint_nlu.models.config import RevisionConfig
from blueprint_nlu.models.parsed import IntentType, ParsedInput
from blueprint_nlu.models.revision import (
    AppContext,
    AppEntity,
    AppPage,
    AppWorkflow,
    ChangeTarget,
    ChangeType,
    RevisionChange,
    RevisionIntent,
    RevisionResult,
)

logger = logging.getLogger(__name__)

_I = re.IGNORECASE
_FEATURES = r"(invoicing|calendar|scheduling|messaging|payments?|dashboard|reports?|inventory)"


class RevisionPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    intent: RevisionIntent
    patterns: Tuple[re.Pattern, ...]
    keywords: Tuple[str, ...]


# Evaluation order matters: the first pattern wins confidence ties
REVISION_PATTERNS: Tuple[RevisionPattern, ...] = (
    RevisionPattern(
        intent=RevisionIntent.STYLE_CHANGE,
        patterns=(
            re.compile(r"make\s+(it|this|the\s+\w+)\s+(more\s+)?(modern|minimal|professional|bold|playful|colorful|clean|sleek)", _I),
            re.compile(r"change\s+(the\s+)?(style|design|look|theme)\s+to\s+(\w+)", _I),
            re.compile(r"use\s+(a\s+)?(dark|light)\s*(mode|theme)?", _I),
            re.compile(r"(dark|light)\s*mode", _I),
        ),
        keywords=("modern", "minimal", "professional", "colorful", "dark", "light", "clean", "sleek", "bold"),
    ),
    RevisionPattern(
        intent=RevisionIntent.ADD_FEATURE,
        patterns=(
            re.compile(rf"add\s+(a\s+)?{_FEATURES}", _I),
            re.compile(rf"include\s+(a\s+)?{_FEATURES}", _I),
            re.compile(rf"i\s+(want|need)\s+(to\s+)?(add\s+)?{_FEATURES}", _I),
            re.compile(rf"enable\s+{_FEATURES}", _I),
        ),
        keywords=("add", "include", "enable", "invoicing", "calendar", "scheduling",
                  "messaging", "payments", "dashboard", "reports", "inventory"),
    ),
    RevisionPattern(
        intent=RevisionIntent.REMOVE_FEATURE,
        patterns=(
            re.compile(rf"remove\s+(the\s+)?{_FEATURES}", _I),
            re.compile(rf"delete\s+(the\s+)?{_FEATURES}", _I),
            re.compile(rf"hide\s+(the\s+)?{_FEATURES}", _I),
            re.compile(rf"i\s+don'?t\s+(need|want)\s+(the\s+)?{_FEATURES}", _I),
        ),
        keywords=("remove", "delete", "hide", "dont need", "dont want"),
    ),
    RevisionPattern(
        intent=RevisionIntent.MODIFY_ENTITY,
        patterns=(
            re.compile(r"add\s+(a\s+)?(\w+)\s+field\s+to\s+(\w+)", _I),
            re.compile(r"(\w+)\s+should\s+have\s+(a\s+)?(\w+)\s+(field)?", _I),
            re.compile(r"add\s+(\w+)\s+to\s+the\s+(\w+)\s+(form|entity|model|table)", _I),
        ),
        keywords=("add field", "should have", "add to"),
    ),
    RevisionPattern(
        intent=RevisionIntent.ADD_PAGE,
        patterns=(
            re.compile(r"add\s+(a\s+)?(new\s+)?(\w+)\s+page", _I),
            re.compile(r"create\s+(a\s+)?(\w+)\s+page", _I),
            re.compile(r"i\s+(need|want)\s+(a\s+)?(\w+)\s+page", _I),
        ),
        keywords=("add page", "create page", "new page"),
    ),
    RevisionPattern(
        intent=RevisionIntent.MODIFY_PAGE,
        patterns=(
            re.compile(r"rename\s+(the\s+)?(\w+)\s+(page\s+)?to\s+(\w+)", _I),
            re.compile(r"change\s+(the\s+)?(\w+)\s+(page\s+)?name\s+to\s+(\w+)", _I),
            re.compile(r"call\s+(the\s+)?(\w+)\s+(page\s+)?(\w+)\s+instead", _I),
        ),
        keywords=("rename", "change name", "call instead"),
    ),
    RevisionPattern(
        intent=RevisionIntent.REORGANIZE,
        patterns=(
            re.compile(r"move\s+(the\s+)?(\w+)\s+to\s+(the\s+)?(main\s+menu|sidebar|top)", _I),
            re.compile(r"put\s+(the\s+)?(\w+)\s+in\s+(the\s+)?(main\s+menu|sidebar|navigation)", _I),
            re.compile(r"make\s+(the\s+)?(\w+)\s+(the\s+)?(first|main|default)\s+(page)?", _I),
        ),
        keywords=("move", "put", "reorganize", "main menu", "sidebar"),
    ),
)

STYLE_WORDS = ("modern", "minimal", "professional", "bold", "playful", "colorful",
               "clean", "sleek", "dark", "light")

STYLE_MAP: Dict[str, Dict[str, Any]] = {
    "modern": {"border_radius": "lg", "shadows": True, "animations": True},
    "minimal": {"border_radius": "sm", "shadows": False, "dense": True},
    "professional": {"border_radius": "md", "formal": True},
    "bold": {"colors": "vibrant", "font_size": "large"},
    "colorful": {"colors": "vibrant", "gradients": True},
    "dark": {"mode": "dark"},
    "light": {"mode": "light"},
    "clean": {"whitespace": "generous", "shadows": False},
}

ADDABLE_FEATURES = ("invoicing", "calendar", "scheduling", "messaging", "payments",
                    "payment", "dashboard", "reports", "report", "inventory")
REMOVABLE_FEATURES = ("invoicing", "calendar", "scheduling", "messaging", "payments",
                      "dashboard", "reports", "inventory")

# feature -> (entities, pages, workflows)
FEATURE_MAP: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...], Tuple[str, ...]]] = {
    "invoicing": (("invoice",), ("invoices", "invoice-form", "invoice-detail"), ("create-invoice", "send-invoice")),
    "calendar": (("event",), ("calendar",), ()),
    "scheduling": (("appointment",), ("appointments", "booking-form"), ("book-appointment", "send-reminder")),
    "messaging": (("message",), ("messages",), ("send-message",)),
    "payments": (("payment",), ("payments",), ("record-payment",)),
    "payment": (("payment",), ("payments",), ("record-payment",)),
    "dashboard": ((), ("dashboard",), ()),
    "reports": ((), ("reports",), ()),
    "report": ((), ("reports",), ()),
    "inventory": (("material", "product"), ("inventory",), ("update-stock",)),
}

# Parsed intents that make any revision reading more plausible
CLEAR_INTENTS = (IntentType.MODIFY_APP, IntentType.CHANGE_DESIGN, IntentType.ADD_FEATURE)

ADD_FIELD = re.compile(r"add\s+(a\s+)?(\w+)\s+field\s+to\s+(\w+)", _I)
ADD_PAGE = re.compile(r"(?:add|create)\s+(?:a\s+)?(?:new\s+)?(\w+)\s+page", _I)
RENAME_PAGE = re.compile(r"rename\s+(?:the\s+)?(\w+)\s+(?:page\s+)?to\s+(\w+)", _I)
MOVE_PAGE = re.compile(r"move\s+(?:the\s+)?(\w+)\s+to\s+(?:the\s+)?(main\s+menu|sidebar)", _I)
DEFAULT_PAGE = re.compile(r"make\s+(?:the\s+)?(\w+)\s+(?:the\s+)?(first|main|default)", _I)

CLARIFICATION_MESSAGE = "I'm not sure what change you'd like to make. Could you be more specific?"
NO_CHANGES_MESSAGE = "I didn't find any changes to make. Could you be more specific?"

CONFIRMATION_TEMPLATES: Dict[RevisionIntent, str] = {
    RevisionIntent.STYLE_CHANGE: "I'll update the style: {changes}. Sound good?",
    RevisionIntent.ADD_FEATURE: "I'll add the following: {changes}. Should I proceed?",
    RevisionIntent.REMOVE_FEATURE: "This will remove: {changes}. This cannot be undone. Are you sure?",
    RevisionIntent.REMOVE_PAGE: "This will remove: {changes}. This cannot be undone. Are you sure?",
    RevisionIntent.MODIFY_ENTITY: "I'll modify the data structure: {changes}. Proceed?",
    RevisionIntent.ADD_PAGE: "I'll add a new page: {changes}. Should I continue?",
    RevisionIntent.MODIFY_PAGE: "I'll update the page: {changes}. Is that correct?",
    RevisionIntent.REORGANIZE: "I'll reorganize: {changes}. Shall I make these changes?",
}
DEFAULT_CONFIRMATION = "I'll make the following changes: {changes}. Continue?"


def _find_page(pages: List[AppPage], name: str, exact: bool = True) -> Optional[AppPage]:
    needle = name.lower()
    for page in pages:
        if exact and (page.id.lower() == needle or page.name.lower() == needle):
            return page
        if not exact and (needle in page.id.lower() or needle in page.name.lower()):
            return page
    return None


_RECORD_MODELS: Dict[ChangeTarget, type] = {
    ChangeTarget.PAGE: AppPage,
    ChangeTarget.ENTITY: AppEntity,
    ChangeTarget.WORKFLOW: AppWorkflow,
}


def _is_usable(change: RevisionChange) -> bool:
    """Removals always apply; adds and modifies need a dict payload, adds a valid record."""
    if change.type == ChangeType.REMOVE:
        return True
    if not isinstance(change.after, dict):
        return False

    model = _RECORD_MODELS.get(change.target)
    if change.type == ChangeType.ADD and model is not None:
        try:
            model.model_validate(change.after)
        except ValidationError:
            return False
    return True


class VoiceRevisionEngine:
    """
    Pattern-matched revision engine.

    Each revision intent owns a target extractor and a change generator,
    registered by intent in ``_register_default_handlers``.
    """

    def __init__(
        self,
        classifier: Optional[IntentClassifier] = None,
        config: Optional[RevisionConfig] = None,
    ):
        self.classifier = classifier or IntentClassifier()
        self.config = config or RevisionConfig()
        self._extractors: Dict[RevisionIntent, Callable] = {}
        self._generators: Dict[RevisionIntent, Callable] = {}
        self._register_default_handlers()

    def _register_default_handlers(self) -> None:
        self._extractors = {
            RevisionIntent.STYLE_CHANGE: self._target_style,
            RevisionIntent.ADD_FEATURE: self._target_added_feature,
            RevisionIntent.REMOVE_FEATURE: self._target_removed_feature,
            RevisionIntent.MODIFY_ENTITY: self._target_entity,
            RevisionIntent.ADD_PAGE: self._target_new_page,
            RevisionIntent.MODIFY_PAGE: self._target_rename,
            RevisionIntent.REORGANIZE: self._target_reorganize,
        }
        self._generators = {
            RevisionIntent.STYLE_CHANGE: self._changes_style,
            RevisionIntent.ADD_FEATURE: self._changes_add_feature,
            RevisionIntent.REMOVE_FEATURE: self._changes_remove_feature,
            RevisionIntent.MODIFY_ENTITY: self._changes_modify_entity,
            RevisionIntent.ADD_PAGE: self._changes_add_page,
            RevisionIntent.MODIFY_PAGE: self._changes_rename_page,
            RevisionIntent.REORGANIZE: self._changes_reorganize,
        }

    def process_revision(self, utterance: str, context: AppContext) -> RevisionResult:
        parsed = self.classifier.parse(utterance)
        matched = self.match_pattern(utterance, parsed)

        if matched is None:
            logger.debug(f"No revision pattern matched {utterance!r}")
            return RevisionResult(
                intent=RevisionIntent.MODIFY_APP,
                confidence=0.3,
                changes=[],
                affected_component_ids=[],
                requires_confirmation=True,
                confirmation_message=CLARIFICATION_MESSAGE,
            )

        pattern, target, confidence = matched
        changes = self.generate_changes(pattern.intent, target, context, parsed)
        requires_confirmation = self.should_confirm(pattern.intent, changes)

        logger.info(
            f"Revision {pattern.intent.value} on {target!r}: "
            f"{len(changes)} changes, confidence={confidence:.2f}"
        )
        return RevisionResult(
            intent=pattern.intent,
            confidence=confidence,
            changes=changes,
            affected_component_ids=[c.target_id for c in changes],
            requires_confirmation=requires_confirmation,
            confirmation_message=(
                self.generate_confirmation(pattern.intent, changes)
                if requires_confirmation else None
            ),
        )

    def match_pattern(
        self, text: str, parsed: ParsedInput
    ) -> Optional[Tuple[RevisionPattern, str, float]]:
        """Best (pattern, target, confidence); only a strictly higher score replaces it."""
        best: Optional[Tuple[RevisionPattern, str, float]] = None
        lower = text.lower()

        for pattern in REVISION_PATTERNS:
            extract = self._extractors[pattern.intent]

            for regex in pattern.patterns:
                match = regex.search(text)
                if not match:
                    continue
                target = extract(text, match)
                if target:
                    confidence = self.calculate_confidence(pattern, text, parsed)
                    if best is None or confidence > best[2]:
                        best = (pattern, target, confidence)

            hits = sum(1 for kw in pattern.keywords if kw.lower() in lower)
            if hits:
                target = extract(text, None)
                if target:
                    confidence = min(hits * 0.2, 0.8)
                    if best is None or confidence > best[2]:
                        best = (pattern, target, confidence)

        return best

    def calculate_confidence(
        self, pattern: RevisionPattern, text: str, parsed: ParsedInput
    ) -> float:
        confidence = 0.5

        if any(regex.search(text) for regex in pattern.patterns):
            confidence += 0.3

        lower = text.lower()
        hits = sum(1 for kw in pattern.keywords if kw.lower() in lower)
        confidence += min(hits * 0.1, 0.3)

        if parsed.intent in CLEAR_INTENTS:
            confidence += 0.1

        return min(confidence, 1.0)

    def generate_changes(
        self,
        intent: RevisionIntent,
        target: str,
        context: AppContext,
        parsed: ParsedInput,
    ) -> List[RevisionChange]:
        generator = self._generators.get(intent)
        if generator is None:
            return []
        return generator(target, context, parsed)

    def should_confirm(self, intent: RevisionIntent, changes: List[RevisionChange]) -> bool:
        if intent in (RevisionIntent.REMOVE_FEATURE, RevisionIntent.REMOVE_PAGE):
            return True
        if len(changes) > self.config.max_silent_changes:
            return True
        if intent == RevisionIntent.STYLE_CHANGE and len(changes) == 1:
            return False
        return True

    def generate_confirmation(self, intent: RevisionIntent, changes: List[RevisionChange]) -> str:
        if not changes:
            return NO_CHANGES_MESSAGE

        limit = self.config.summary_change_limit
        summary = ", ".join(c.description for c in changes[:limit])
        if len(changes) > limit:
            summary += f" and {len(changes) - limit} more changes"

        template = CONFIRMATION_TEMPLATES.get(intent, DEFAULT_CONFIRMATION)
        return template.format(changes=summary)

    def apply_changes(self, context: AppContext, changes: List[RevisionChange]) -> AppContext:
        """Return a new context with every usable change applied, in order."""
        pages = list(context.pages)
        entities = list(context.entities)
        workflows = list(context.workflows)

        for change in changes:
            target, kind = change.target, change.type

            if not _is_usable(change):
                logger.warning(
                    f"Skipping unusable {kind.value} {target.value} change "
                    f"for {change.target_id!r}"
                )
                continue

            if target == ChangeTarget.PAGE:
                if kind == ChangeType.ADD:
                    pages.append(AppPage(**change.after))
                elif kind == ChangeType.REMOVE:
                    pages = [p for p in pages if p.id != change.target_id]
                elif kind == ChangeType.MODIFY:
                    pages = [
                        p.model_copy(update=change.after) if p.id == change.target_id else p
                        for p in pages
                    ]

            elif target == ChangeTarget.ENTITY:
                if kind == ChangeType.ADD:
                    entities.append(AppEntity(**change.after))
                elif kind == ChangeType.REMOVE:
                    entities = [e for e in entities if e.id != change.target_id]

            elif target == ChangeTarget.FIELD and kind == ChangeType.ADD:
                entity_id = change.target_id.split(".", 1)[0]
                entities = [
                    e.model_copy(update={"fields": [*e.fields, change.after]})
                    if e.id == entity_id else e
                    for e in entities
                ]

            elif target == ChangeTarget.WORKFLOW:
                if kind == ChangeType.ADD:
                    workflows.append(AppWorkflow(**change.after))
                elif kind == ChangeType.REMOVE:
                    workflows = [w for w in workflows if w.id != change.target_id]

        return context.model_copy(update={
            "pages": pages,
            "entities": entities,
            "workflows": workflows,
        })

    # --- Target extractors: (text, match or None) -> target or None ---

    def _target_style(self, text: str, match) -> Optional[str]:
        if match is None:
            return None
        lower = text.lower()
        return next((w for w in STYLE_WORDS if w in lower), None)

    def _target_added_feature(self, text: str, match) -> Optional[str]:
        lower = text.lower()
        return next((f for f in ADDABLE_FEATURES if f in lower), None)

    def _target_removed_feature(self, text: str, match) -> Optional[str]:
        lower = text.lower()
        return next((f for f in REMOVABLE_FEATURES if f in lower), None)

    def _target_entity(self, text: str, match) -> Optional[str]:
        return match.group(0) if match else None

    def _target_new_page(self, text: str, match) -> Optional[str]:
        found = ADD_PAGE.search(text)
        return found.group(1) if found else None

    def _target_rename(self, text: str, match) -> Optional[str]:
        found = RENAME_PAGE.search(text)
        return f"{found.group(1)}:{found.group(2)}" if found else None

    def _target_reorganize(self, text: str, match) -> Optional[str]:
        return text

    # --- Change generators: (target, context, parsed) -> changes ---

    def _changes_style(self, target, context, parsed) -> List[RevisionChange]:
        return [RevisionChange(
            type=ChangeType.MODIFY,
            target=ChangeTarget.STYLE,
            target_id="theme",
            after=dict(STYLE_MAP.get(target.lower(), {})),
            description=f"Update theme to {target} style",
        )]

    def _changes_add_feature(self, target, context, parsed) -> List[RevisionChange]:
        bundle = FEATURE_MAP.get(target.lower())
        if bundle is None:
            return []

        entities, pages, workflows = bundle
        changes = []
        for kind, ids in (
            (ChangeTarget.ENTITY, entities),
            (ChangeTarget.PAGE, pages),
            (ChangeTarget.WORKFLOW, workflows),
        ):
            for item_id in ids:
                changes.append(RevisionChange(
                    type=ChangeType.ADD,
                    target=kind,
                    target_id=item_id,
                    after={"id": item_id},
                    description=f"Add {item_id} {kind.value} for {target}",
                ))
        return changes

    def _changes_remove_feature(self, target, context, parsed) -> List[RevisionChange]:
        return [
            RevisionChange(
                type=ChangeType.REMOVE,
                target=ChangeTarget.PAGE,
                target_id=page.id,
                before=page.model_dump(),
                description=f"Remove {page.name} page",
            )
            for page in context.pages
            if target in page.id or target in page.name.lower()
        ]

    def _changes_modify_entity(self, target, context, parsed) -> List[RevisionChange]:
        found = ADD_FIELD.search(target)
        if not found:
            return []

        field_name, entity_name = found.group(2), found.group(3).lower()
        entity = next(
            (e for e in context.entities
             if e.id.lower() == entity_name or e.name.lower() == entity_name),
            None,
        )
        if entity is None:
            return []

        return [RevisionChange(
            type=ChangeType.ADD,
            target=ChangeTarget.FIELD,
            target_id=f"{entity.id}.{field_name}",
            after={"id": field_name, "name": field_name, "type": "string"},
            description=f"Add {field_name} field to {entity.name}",
        )]

    def _changes_add_page(self, target, context, parsed) -> List[RevisionChange]:
        page_id = re.sub(r"\s+", "-", target.lower())
        page_name = target[:1].upper() + target[1:]
        return [RevisionChange(
            type=ChangeType.ADD,
            target=ChangeTarget.PAGE,
            target_id=page_id,
            after={"id": page_id, "name": page_name, "route": f"/{page_id}"},
            description=f"Add {page_name} page",
        )]

    def _changes_rename_page(self, target, context, parsed) -> List[RevisionChange]:
        old_name, new_name = target.split(":", 1)
        page = _find_page(context.pages, old_name)
        if page is None:
            return []

        return [RevisionChange(
            type=ChangeType.MODIFY,
            target=ChangeTarget.PAGE,
            target_id=page.id,
            before={"name": page.name},
            after={"name": new_name},
            description=f"Rename {page.name} to {new_name}",
        )]

    def _changes_reorganize(self, target, context, parsed) -> List[RevisionChange]:
        # Both shapes may apply to one utterance
        changes = []

        moved = MOVE_PAGE.search(target)
        if moved:
            page = _find_page(context.pages, moved.group(1), exact=False)
            if page:
                changes.append(RevisionChange(
                    type=ChangeType.MODIFY,
                    target=ChangeTarget.PAGE,
                    target_id=page.id,
                    after={"show_in_sidebar": True, "order": 0},
                    description=f"Move {page.name} to {moved.group(2)}",
                ))

        default = DEFAULT_PAGE.search(target)
        if default:
            page = _find_page(context.pages, default.group(1), exact=False)
            if page:
                changes.append(RevisionChange(
                    type=ChangeType.MODIFY,
                    target=ChangeTarget.PAGE,
                    target_id=page.id,
                    after={"route": "/", "order": 0},
                    description=f"Make {page.name} the default page",
                ))

        return changes
