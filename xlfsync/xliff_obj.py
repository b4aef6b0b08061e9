import copy
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Union


class TargetState(str, Enum):
    NEW = "new"
    NEEDS_TRANSLATION = "needs-translation"
    NEEDS_ADAPTATION = "needs-adaptation"
    NEEDS_L10N = "needs-l10n"
    NEEDS_REVIEW_ADAPTATION = "needs-review-adaptation"
    NEEDS_REVIEW_L10N = "needs-review-l10n"
    NEEDS_REVIEW_TRANSLATION = "needs-review-translation"
    TRANSLATED = "translated"
    SIGNED_OFF = "signed-off"
    FINAL = "final"


TRANSLATED_STATES = (TargetState.TRANSLATED, TargetState.SIGNED_OFF, TargetState.FINAL)

REVIEW_STATES = (
    TargetState.NEEDS_ADAPTATION,
    TargetState.NEEDS_L10N,
    TargetState.NEEDS_REVIEW_ADAPTATION,
    TargetState.NEEDS_REVIEW_L10N,
    TargetState.NEEDS_REVIEW_TRANSLATION,
)


class StateQualifier(str, Enum):
    EXACT_MATCH = "exact-match"
    MS_EXACT_MATCH = "x-microsoft-exact-match"
    FUZZY_MATCH = "fuzzy-match"
    ID_MATCH = "id-match"
    LEVERAGED_GLOSSARY = "leveraged-glossary"
    LEVERAGED_INHERITED = "leveraged-inherited"
    LEVERAGED_MT = "leveraged-mt"
    LEVERAGED_REPOSITORY = "leveraged-repository"
    LEVERAGED_TM = "leveraged-tm"
    MT_SUGGESTION = "mt-suggestion"
    REJECTED_GRAMMAR = "rejected-grammar"
    REJECTED_INACCURATE = "rejected-inaccurate"
    REJECTED_LENGTH = "rejected-length"
    REJECTED_SPELLING = "rejected-spelling"
    TM_SUGGESTION = "tm-suggestion"


EXACT_MATCH_QUALIFIERS = (StateQualifier.EXACT_MATCH, StateQualifier.MS_EXACT_MATCH)


class TranslationToken(str, Enum):
    NOT_TRANSLATED = "[NAB: NOT TRANSLATED]"
    REVIEW = "[NAB: REVIEW]"
    SUGGESTION = "[NAB: SUGGESTION]"


class CustomNoteType(str, Enum):
    # The value is written to the note's "from" attribute
    REFRESH_XLF_HINT = "NAB AL Tool Refresh Xlf"


class RefreshXlfHint(str, Enum):
    NEW_COPIED_SOURCE = "New translation. Target copied from source."
    MODIFIED_SOURCE = "Source has been modified."
    NEW = "New translation."
    SUGGESTION = "Suggested translation inserted."


DEVELOPER_NOTE_FROM = "Developer"
DESCRIPTION_NOTE_FROM = "Xliff Generator"


def is_translated_state(state) -> bool:
    return state is not None and state in TRANSLATED_STATES


def is_exact_match(qualifier) -> bool:
    return qualifier is not None and qualifier in EXACT_MATCH_QUALIFIERS


def _enum_or_raw(enum_cls, value: Optional[str]):
    """Maps a persisted attribute to its enum member, keeping unknown values as plain strings."""
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return value


@dataclass
class Note:
    from_: str
    text: str = ""
    annotates: str = "general"
    priority: str = "2"

    @classmethod
    def developer(cls, text: str) -> "Note":
        return cls(DEVELOPER_NOTE_FROM, text, "general", "2")

    @classmethod
    def description(cls, text: str) -> "Note":
        return cls(DESCRIPTION_NOTE_FROM, text, "general", "3")

    @classmethod
    def custom(cls, kind: CustomNoteType, text: str) -> "Note":
        return cls(kind.value, text, "general", "3")


@dataclass
class Target:
    """
    One candidate or actual translation.
    In nab-tags mode the status lives in translation_token, which is written
    as a literal prefix of the text; state and state_qualifier belong to the
    two status-bearing modes.
    """
    text: str = ""
    state: Optional[Union[TargetState, str]] = None
    state_qualifier: Optional[Union[StateQualifier, str]] = None
    translation_token: Optional[TranslationToken] = None

    @classmethod
    def from_persisted(cls, raw_text: str, state: str = None, state_qualifier: str = None) -> "Target":
        """Splits a leading [NAB: ...] token off the persisted text."""
        raw_text = raw_text or ""
        token = None
        for candidate in TranslationToken:
            if raw_text.startswith(candidate.value):
                token = candidate
                raw_text = raw_text[len(candidate.value):]
                break
        return cls(
            text=raw_text,
            state=_enum_or_raw(TargetState, state),
            state_qualifier=_enum_or_raw(StateQualifier, state_qualifier),
            translation_token=token,
        )

    @property
    def persisted_text(self) -> str:
        if self.translation_token is not None:
            return self.translation_token.value + self.text
        return self.text

    def has_content(self) -> bool:
        return self.text != ""


@dataclass
class TranslationUnit:
    """
    Represents a single trans-unit of an XLIFF file.
    """
    id: str
    source: str = ""
    targets: List[Target] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)
    translate: bool = True
    max_width: Optional[int] = None
    size_unit: Optional[str] = None
    xml_space: Optional[str] = "preserve"
    al_object_target: Optional[str] = None

    @property
    def target(self) -> Optional[Target]:
        return self.targets[0] if self.targets else None

    @target.setter
    def target(self, value: Optional[Target]):
        self.targets = [value] if value is not None else []

    def has_targets(self) -> bool:
        return len(self.targets) > 0

    def has_content(self) -> bool:
        return any(t.has_content() for t in self.targets)

    def single_target(self) -> Target:
        if len(self.targets) != 1:
            raise ValueError(f"Trans-unit {self.id} has {len(self.targets)} targets, expected one")
        return self.targets[0]

    def has_multiple_targets(self) -> bool:
        return len(self.targets) > 1

    def add_target(self, target: Target):
        self.targets.append(target)

    # --- Notes ---

    def _note_from(self, from_: str) -> Optional[Note]:
        for note in self.notes:
            if note.from_ == from_:
                return note
        return None

    def developer_note(self) -> Optional[Note]:
        return self._note_from(DEVELOPER_NOTE_FROM)

    def developer_note_content(self) -> str:
        note = self.developer_note()
        return note.text if note else ""

    def description_note(self) -> Optional[Note]:
        return self._note_from(DESCRIPTION_NOTE_FROM)

    def has_custom_note(self, kind: CustomNoteType) -> bool:
        return self._note_from(kind.value) is not None

    def custom_note_content(self, kind: CustomNoteType) -> str:
        note = self._note_from(kind.value)
        return note.text if note else ""

    def insert_custom_note(self, kind: CustomNoteType, text: str):
        """Adds the note, replacing any existing note of the same kind."""
        self.remove_custom_note(kind)
        self.notes.append(Note.custom(kind, text))

    def remove_custom_note(self, kind: CustomNoteType) -> bool:
        before = len(self.notes)
        self.notes = [n for n in self.notes if n.from_ != kind.value]
        return len(self.notes) != before

    def clone(self) -> "TranslationUnit":
        return copy.deepcopy(self)


@dataclass
class LocalizationDocument:
    """
    In-memory XLIFF 1.2 document: header attributes plus ordered trans-units.
    """
    target_language: str = ""
    source_language: str = "en-US"
    original: str = ""
    datatype: str = "xml"
    units: List[TranslationUnit] = field(default_factory=list)
    version: str = "1.2"
    group_id: Optional[str] = "body"
    path: Optional[str] = None
    line_ending: str = "\n"
    utf8_bom: bool = False

    _index: Dict[str, TranslationUnit] = field(default_factory=dict, init=False, repr=False, compare=False)

    def _rebuild_index(self):
        self._index = {u.id: u for u in self.units}

    def get_unit(self, unit_id: str) -> Optional[TranslationUnit]:
        if len(self._index) != len(self.units):
            self._rebuild_index()
        unit = self._index.get(unit_id)
        if unit is not None and unit.id == unit_id:
            return unit
        # The unit list may have been edited directly
        self._rebuild_index()
        return self._index.get(unit_id)

    def add_unit(self, unit: TranslationUnit):
        self.units.append(unit)
        self._index[unit.id] = unit

    def __iter__(self):
        return iter(self.units)

    def __len__(self):
        return len(self.units)

    def clone_without_units(self) -> "LocalizationDocument":
        return LocalizationDocument(
            target_language=self.target_language,
            source_language=self.source_language,
            original=self.original,
            datatype=self.datatype,
            version=self.version,
            group_id=self.group_id,
            path=self.path,
            line_ending=self.line_ending,
            utf8_bom=self.utf8_bom,
        )

    def units_with_multiple_targets(self) -> List[TranslationUnit]:
        return [u for u in self.units if u.has_multiple_targets()]

    def custom_notes_exist(self, kind: CustomNoteType) -> bool:
        return any(u.has_custom_note(kind) for u in self.units)

    def remove_all_custom_notes(self, kind: CustomNoteType) -> int:
        removed = 0
        for unit in self.units:
            if unit.remove_custom_note(kind):
                removed += 1
        return removed

    def translation_tokens_exist(self) -> bool:
        return any(t.translation_token is not None for u in self.units for t in u.targets)
