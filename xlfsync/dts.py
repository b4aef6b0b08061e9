import os
import zipfile
from typing import List

from xlfsync.xliff_obj import LocalizationDocument, StateQualifier, is_translated_state
from xlfsync.translation_mode import TranslationMode, get_adapter
from xlfsync.parser import XliffParser, load_document
from xlfsync.validator import detect_invalid_values
from xlfsync.errors import PreconditionError
from xlfsync.logger import get_logger

logger = get_logger(__name__)

DTS_NOT_ACTIVE = "The setting NAB.UseDTS is not active, this function cannot be executed."


def _require_dts(settings):
    if settings.translation_mode != TranslationMode.DTS:
        raise PreconditionError(DTS_NOT_ACTIVE)


def import_translated_document(source: LocalizationDocument, target: LocalizationDocument, settings) -> int:
    """
    Merges a batch returned by the translation service into a language document.
    Units already translated, signed off or final are left alone. Returns the
    number of units imported.
    """
    _require_dts(settings)
    adapter = get_adapter(settings.translation_mode)
    imported = 0

    for incoming in source.units:
        unit = target.get_unit(incoming.id)
        if unit is None:
            unit = incoming
            target.add_unit(unit)
            imported += 1
        elif incoming.target is not None and not is_translated_state(unit.target.state if unit.target else None):
            if not unit.has_targets():
                unit.target = incoming.target
            elif incoming.target.state_qualifier == StateQualifier.ID_MATCH:
                # Unchanged by the service, the existing target is correct
                unit.target.state_qualifier = None
            else:
                unit.target.state = incoming.target.state
                unit.target.state_qualifier = incoming.target.state_qualifier
                unit.target.text = incoming.target.text
            imported += 1

        if unit.target is not None:
            adapter.apply_exact_match_override(unit.target, settings)
            detect_invalid_values(unit, settings, adapter)

    logger.info(f"Imported {imported} trans-units into {target.target_language}")
    return imported


def read_dts_output(file_path: str) -> LocalizationDocument:
    """Reads a service output file: an .xlf, or a .zip holding one."""
    if not zipfile.is_zipfile(file_path):
        return load_document(file_path)

    with zipfile.ZipFile(file_path) as archive:
        entries = [name for name in archive.namelist() if name.endswith(".xlf")]
        if not entries:
            raise PreconditionError(f"No .xlf file found in {os.path.basename(file_path)}")
        data = archive.read(entries[0])
    return XliffParser.from_bytes(data, entries[0])


def import_dts_file(file_path: str, language_docs: List[LocalizationDocument], settings) -> LocalizationDocument:
    """Imports a service output file into the language document with the same target language."""
    _require_dts(settings)
    source = read_dts_output(file_path)
    matches = [d for d in language_docs if d.target_language.lower() == source.target_language.lower()]
    if not matches:
        raise PreconditionError(
            f'There are no xlf file with target-language "{source.target_language}" in the translation folder.'
        )
    target = matches[0]
    import_translated_document(source, target, settings)
    return target


def format_document_for_dts(document: LocalizationDocument, master_name: str):
    """Rewrites [NAB: ...] tokens as state attributes so the file can be sent to the service."""
    if document.path and os.path.basename(document.path) == master_name:
        raise PreconditionError("You cannot run this function on the g.xlf file.")
    adapter = get_adapter(TranslationMode.DTS)
    document.original = master_name
    for unit in document.units:
        adapter.normalize(unit)
