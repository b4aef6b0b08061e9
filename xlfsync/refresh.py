import os
from dataclasses import dataclass, fields
from typing import Iterable, Optional, Tuple

from xlfsync.xliff_obj import (
    LocalizationDocument, TranslationUnit, Note, CustomNoteType, RefreshXlfHint, TargetState,
)
from xlfsync.translation_mode import get_adapter, ModeAdapter
from xlfsync.suggestions import SuggestionCorpus, get_match_map
from xlfsync.matching import match_translations_from_corpus
from xlfsync.validator import detect_invalid_values
from xlfsync.logger import get_logger

logger = get_logger(__name__)

HINT = CustomNoteType.REFRESH_XLF_HINT


@dataclass
class RefreshResult:
    checked_files: int = 0
    added_units: int = 0
    updated_notes: int = 0
    updated_max_widths: int = 0
    updated_sources: int = 0
    removed_units: int = 0
    removed_notes: int = 0
    suggestions_added: int = 0
    file_name: Optional[str] = None

    def merge(self, other: "RefreshResult") -> "RefreshResult":
        for f in fields(self):
            if f.name != "file_name":
                setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))
        return self

    def message(self) -> str:
        parts = []
        if self.added_units:
            parts.append(f"{self.added_units} inserted translations")
        if self.updated_max_widths:
            parts.append(f"{self.updated_max_widths} updated maxwidth")
        if self.updated_notes:
            parts.append(f"{self.updated_notes} updated notes")
        if self.removed_notes:
            parts.append(f"{self.removed_notes} removed notes")
        if self.updated_sources:
            parts.append(f"{self.updated_sources} updated sources")
        if self.removed_units:
            parts.append(f"{self.removed_units} removed translations")
        if self.suggestions_added:
            parts.append(f"{self.suggestions_added} added suggestions")

        msg = ", ".join(parts) if parts else "Nothing changed"
        if self.checked_files:
            msg += f" in {self.checked_files} XLF files"
        elif self.file_name:
            msg += f" in {self.file_name}"
        return msg


def _master_file_name(master: LocalizationDocument) -> str:
    return os.path.basename(master.path) if master.path else master.original


def _new_unit(master_unit: TranslationUnit, adapter: ModeAdapter, same_language: bool) -> TranslationUnit:
    unit = master_unit.clone()
    unit.remove_custom_note(HINT)
    unit.target = adapter.seed_target(master_unit.source, same_language)
    unit.insert_custom_note(HINT, adapter.seed_hint(same_language))
    return unit


def _sync_developer_note(unit: TranslationUnit, master_unit: TranslationUnit):
    master_note = master_unit.developer_note()
    note = unit.developer_note()
    if master_note is None:
        unit.notes.remove(note)
    elif note is None:
        unit.notes.insert(0, Note.developer(master_note.text))
    else:
        note.text = master_note.text


def _sync_unit(unit: TranslationUnit, master_unit: TranslationUnit, adapter: ModeAdapter,
               same_language: bool, result: RefreshResult):
    if not unit.has_targets():
        unit.target = adapter.seed_target(master_unit.source, same_language)
        unit.insert_custom_note(HINT, adapter.seed_hint(same_language))
        result.added_units += 1

    if unit.source != master_unit.source:
        # An untouched copy of the old source follows the new source
        if same_language and not unit.has_multiple_targets():
            copy = unit.single_target()
            if copy.text == unit.source:
                copy.text = master_unit.source
        if master_unit.source != "":
            adapter.mark_source_changed(unit.target)
            unit.insert_custom_note(HINT, RefreshXlfHint.MODIFIED_SOURCE.value)
        logger.debug(f"Source changed for {unit.id}")
        unit.source = master_unit.source
        result.updated_sources += 1

    if adapter.tracks_max_width and unit.max_width != master_unit.max_width:
        unit.max_width = master_unit.max_width
        result.updated_max_widths += 1

    if unit.developer_note_content() != master_unit.developer_note_content():
        _sync_developer_note(unit, master_unit)
        result.updated_notes += 1

    if master_unit.size_unit is not None:
        unit.size_unit = master_unit.size_unit


def refresh_document(master: LocalizationDocument, language_doc: LocalizationDocument, settings,
                     corpus: SuggestionCorpus = None, sort_only: bool = False,
                     result: RefreshResult = None) -> Tuple[LocalizationDocument, RefreshResult]:
    """
    Rebuilds a language document from the master document.

    The output holds every translatable master unit exactly once, in master
    order. Units only found in the language document are dropped. Units that
    are new or whose source changed get a status asking for (re)translation
    and a refresh hint note explaining why. Finally untranslated units are
    filled from the suggestion corpus and hints on finished units are removed.

    Args:
        master: The generated g.xlf document.
        language_doc: The language document to refresh. Its units are reused.
        settings: Active Settings.
        corpus: Suggestion corpus for this run; it is not modified.
        sort_only: Only reorder existing units, no syncing.
        result: Counters to add to; a new RefreshResult when omitted.

    Returns:
        (new language document, result)
    """
    adapter = get_adapter(settings.translation_mode)
    result = result if result is not None else RefreshResult()
    same_language = (language_doc.target_language or "").lower() == (master.target_language or "").lower()
    self_match_map = get_match_map(language_doc) if settings.use_matching else None

    new_doc = language_doc.clone_without_units()
    new_doc.original = _master_file_name(master)

    remaining = {}
    for unit in language_doc.units:
        remaining.setdefault(unit.id, unit)
    consumed = 0

    for master_unit in master.units:
        if not master_unit.translate:
            continue

        unit = remaining.pop(master_unit.id, None)
        if unit is None:
            if sort_only:
                continue
            unit = _new_unit(master_unit, adapter, same_language)
            adapter.normalize(unit)
            detect_invalid_values(unit, settings, adapter)
            new_doc.add_unit(unit)
            result.added_units += 1
            continue

        consumed += 1
        if not sort_only:
            _sync_unit(unit, master_unit, adapter, same_language, result)
            adapter.normalize(unit)
            detect_invalid_values(unit, settings, adapter)
        new_doc.add_unit(unit)

    removed = len(language_doc.units) - consumed
    if removed:
        logger.debug(f"Dropping {removed} trans-units missing from {new_doc.original}")
    result.removed_units += removed

    if sort_only:
        return new_doc, result

    file_corpus = corpus.copy() if corpus is not None else SuggestionCorpus()
    if self_match_map is not None:
        file_corpus.add_map(language_doc.target_language, self_match_map)
    result.suggestions_added += match_translations_from_corpus(new_doc, file_corpus, settings)

    for unit in new_doc.units:
        if unit.has_custom_note(HINT) and adapter.is_resolved(unit):
            unit.remove_custom_note(HINT)
            adapter.on_hint_resolved(unit.target)
            result.removed_notes += 1

    return new_doc, result


def update_master(master: LocalizationDocument, units: Iterable[TranslationUnit]) -> RefreshResult:
    """
    Merges freshly extracted trans-units into the master document in place.
    Units marked translate=no are removed from the master.
    """
    result = RefreshResult(file_name=_master_file_name(master))
    for unit in units:
        master_unit = master.get_unit(unit.id)
        if master_unit is None:
            if unit.translate:
                master.add_unit(unit)
                result.added_units += 1
            continue

        if not unit.translate:
            master.units = [u for u in master.units if u.id != unit.id]
            result.removed_units += 1
            continue

        if master_unit.source != unit.source:
            master_unit.source = unit.source
            result.updated_sources += 1
        if master_unit.max_width != unit.max_width:
            master_unit.max_width = unit.max_width
            result.updated_max_widths += 1
        if unit.notes:
            if master_unit.developer_note_content() != unit.developer_note_content():
                result.updated_notes += 1
            master_unit.notes = list(unit.notes)
        master_unit.size_unit = unit.size_unit
        master_unit.translate = unit.translate
    return result


def set_unit_translated(document: LocalizationDocument, unit_id: str, settings,
                        state: TargetState = TargetState.TRANSLATED) -> TranslationUnit:
    """Marks one unit as translated in the active mode and drops its refresh hint."""
    unit = document.get_unit(unit_id)
    if unit is None:
        raise KeyError(f"Could not find trans-unit {unit_id}")
    get_adapter(settings.translation_mode).set_translated(unit, state)
    return unit
