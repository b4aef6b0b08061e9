import os
from typing import Dict, List, Iterable, Optional

from xlfsync.xliff_obj import LocalizationDocument
from xlfsync.parser import load_document
from xlfsync.base_app import BaseAppTranslations
from xlfsync.errors import PreconditionError
from xlfsync.logger import get_logger

logger = get_logger(__name__)

MatchMap = Dict[str, List[str]]


def get_match_map(document: LocalizationDocument) -> MatchMap:
    """
    source -> [target, ...] for every finished translation in the document.
    Targets still carrying a [NAB: ...] token are not finished and are skipped.
    """
    match_map: MatchMap = {}
    for unit in document.units:
        if not unit.source:
            continue
        for target in unit.targets:
            if not target.has_content() or target.translation_token is not None:
                continue
            targets = match_map.setdefault(unit.source, [])
            if target.text not in targets:
                targets.append(target.text)
    return match_map


class SuggestionCorpus:
    """
    Per language, an ordered list of match maps, lowest priority first.
    """

    def __init__(self):
        self._maps: Dict[str, List[MatchMap]] = {}

    def add_map(self, language: str, match_map: MatchMap):
        self._maps.setdefault(language.lower(), []).append(match_map)

    def maps_for(self, language: str) -> List[MatchMap]:
        return self._maps.get((language or "").lower(), [])

    def languages(self) -> List[str]:
        return list(self._maps.keys())

    def copy(self) -> "SuggestionCorpus":
        """Copies the per-language lists; the maps themselves are shared."""
        clone = SuggestionCorpus()
        clone._maps = {lang: list(maps) for lang, maps in self._maps.items()}
        return clone

    def __len__(self):
        return sum(len(maps) for maps in self._maps.values())


def add_document_to_corpus(corpus: SuggestionCorpus, file_path: str, language_codes: Iterable[str]) -> bool:
    document = load_document(file_path)
    language = document.target_language.lower()
    if language not in {c.lower() for c in language_codes}:
        logger.debug(f"Skipping {file_path}: target language {language} is not in use")
        return False
    corpus.add_map(language, get_match_map(document))
    return True


def _suggestion_files(folder: str) -> List[str]:
    return [
        os.path.join(folder, name)
        for name in sorted(os.listdir(folder))
        if name.endswith(".xlf") and not name.endswith("g.xlf")
    ]


def build_suggestion_corpus(settings, language_codes: Iterable[str], match_file: Optional[str] = None,
                            base_app: BaseAppTranslations = None) -> SuggestionCorpus:
    """
    Builds the corpus in priority order, lowest first:
    base application translations, configured suggestion folders, the selected match file.
    """
    language_codes = [c.lower() for c in language_codes]
    corpus = SuggestionCorpus()

    if settings.match_base_app_translation:
        base_app = base_app or BaseAppTranslations(settings.base_app_cache_dir, settings.base_app_url)
        for language in language_codes:
            base_map = base_app.get_map(language)
            if base_map:
                corpus.add_map(language, base_map)

    for rel_folder in settings.translation_suggestion_paths:
        folder = os.path.join(settings.workspace_folder, rel_folder)
        for file_path in _suggestion_files(folder):
            add_document_to_corpus(corpus, file_path, language_codes)

    if match_file is not None:
        if match_file == "":
            raise PreconditionError("No xlf selected for matching")
        add_document_to_corpus(corpus, match_file, language_codes)

    logger.info(f"Suggestion corpus built: {len(corpus)} maps for {', '.join(corpus.languages()) or 'no languages'}")
    return corpus
