import os
from typing import List, Optional

from xlfsync.config.settings import Settings
from xlfsync.parser import load_document, save_document
from xlfsync.refresh import RefreshResult, refresh_document
from xlfsync.suggestions import SuggestionCorpus, build_suggestion_corpus
from xlfsync.matching import match_translations
from xlfsync.dts import import_dts_file
from xlfsync.xliff_obj import CustomNoteType, LocalizationDocument
from xlfsync.translation_mode import TranslationMode
from xlfsync.errors import PreconditionError
from xlfsync import workspace
from xlfsync.logger import get_logger

logger = get_logger(__name__)


class RefreshService:
    """
    Runs the refresh, match and import operations over files on disk.
    Each language file is read, processed and written back on its own; a
    failure stops the run but files already written stay written.
    """

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()

    def _warn_multiple_targets(self, document: LocalizationDocument):
        if self.settings.translation_mode == TranslationMode.NAB_TAGS:
            return
        units = document.units_with_multiple_targets()
        if units:
            logger.warning(
                f"{os.path.basename(document.path or '')} has trans-units with more than one target, "
                f"only the first is kept up to date: {', '.join(u.id for u in units)}"
            )

    def _save(self, document: LocalizationDocument, path: str):
        save_document(document, path, self.settings.replace_self_closing_xlf_tags)

    def build_corpus(self, language_codes: List[str], match_file: Optional[str] = None) -> SuggestionCorpus:
        return build_suggestion_corpus(self.settings, language_codes, match_file)

    def refresh_files(self, master_path: str, language_paths: List[str], match_file: Optional[str] = None,
                      sort_only: bool = False) -> RefreshResult:
        """
        Refreshes every language file from the master file.

        The master is parsed once and the suggestion corpus is built once,
        before the first file is touched.
        """
        master = load_document(master_path)
        corpus = SuggestionCorpus()
        if not sort_only:
            corpus = self.build_corpus(workspace.existing_target_languages(language_paths), match_file)

        total = RefreshResult()
        for path in language_paths:
            language_doc = load_document(path)
            self._warn_multiple_targets(language_doc)
            new_doc, result = refresh_document(master, language_doc, self.settings, corpus, sort_only)
            self._save(new_doc, path)
            result.file_name = os.path.basename(path)
            logger.info(result.message())
            total.merge(result)
            total.checked_files += 1
        return total

    def refresh_folder(self, folder: str, match_file: Optional[str] = None,
                       sort_only: bool = False) -> RefreshResult:
        master_path = workspace.find_master_file(folder)
        language_paths = workspace.find_language_files(folder)
        if not language_paths:
            logger.warning(f"No language files next to {os.path.basename(master_path)}")
        return self.refresh_files(master_path, language_paths, match_file, sort_only)

    def match_files(self, language_paths: List[str]) -> int:
        """Fills untranslated units of each file from the file's own translations."""
        total = 0
        for path in language_paths:
            document = load_document(path)
            matched = match_translations(document, self.settings)
            if matched:
                self._save(document, path)
            logger.info(f"Matched {matched} trans-units in {os.path.basename(path)}")
            total += matched
        return total

    def import_dts(self, file_path: str, folder: str) -> LocalizationDocument:
        language_docs = [load_document(p) for p in workspace.find_language_files(folder)]
        document = import_dts_file(file_path, language_docs, self.settings)
        self._save(document, document.path)
        return document

    def remove_custom_notes(self, path: str) -> int:
        """
        Drops the refresh hint notes from a file. Refused while the file still
        carries [NAB: ...] tokens, since the hints explain those.
        """
        document = load_document(path)
        if document.translation_tokens_exist():
            raise PreconditionError(
                f"{os.path.basename(path)} still has translation tokens, "
                f"resolve them before removing the notes."
            )
        removed = document.remove_all_custom_notes(CustomNoteType.REFRESH_XLF_HINT)
        if removed:
            self._save(document, path)
        logger.info(f"Removed {removed} notes from {os.path.basename(path)}")
        return removed
