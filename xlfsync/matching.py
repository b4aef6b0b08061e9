from xlfsync.xliff_obj import LocalizationDocument
from xlfsync.suggestions import SuggestionCorpus, MatchMap, get_match_map
from xlfsync.translation_mode import get_adapter, TranslationMode
from xlfsync.validator import detect_invalid_values
from xlfsync.logger import get_logger

logger = get_logger(__name__)


def match_translations_from_map(document: LocalizationDocument, match_map: MatchMap, settings) -> int:
    """
    Fills untranslated units whose source is a key of match_map.
    Returns the number of targets applied.
    """
    adapter = get_adapter(settings.translation_mode)
    matched = 0
    for unit in document.units:
        if not adapter.is_untranslated(unit):
            continue
        candidates = match_map.get(unit.source)
        if not candidates:
            continue
        applied = adapter.apply_match(unit, candidates, settings)
        if applied and adapter.mode != TranslationMode.NAB_TAGS:
            detect_invalid_values(unit, settings, adapter)
        matched += applied
    return matched


def match_translations_from_corpus(document: LocalizationDocument, corpus: SuggestionCorpus, settings) -> int:
    """
    Applies the corpus maps for the document's language, highest priority first.
    A unit matched by one map is no longer untranslated, so lower maps never override it.
    """
    maps = corpus.maps_for(document.target_language)
    matched = 0
    for match_map in reversed(maps):
        matched += match_translations_from_map(document, match_map, settings)
    if matched:
        logger.debug(f"{matched} suggestions applied to {document.target_language}")
    return matched


def match_translations(document: LocalizationDocument, settings) -> int:
    """One-off match of a document against its own finished translations."""
    return match_translations_from_map(document, get_match_map(document), settings)


def match_from_document(document: LocalizationDocument, match_document: LocalizationDocument, settings) -> int:
    """One-off match of a document against another document's translations."""
    return match_translations_from_map(document, get_match_map(match_document), settings)
