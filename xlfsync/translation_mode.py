from enum import Enum
from typing import List, Optional

from xlfsync.xliff_obj import (
    TranslationUnit, Target, TargetState, StateQualifier, TranslationToken,
    CustomNoteType, RefreshXlfHint, TRANSLATED_STATES, REVIEW_STATES,
    is_translated_state, is_exact_match,
)


class TranslationMode(str, Enum):
    NAB_TAGS = "nab-tags"
    EXTERNAL = "external"
    DTS = "dts"


class ModeAdapter:
    """
    How "needs translation / needs review / translated" is written in a document.
    The refresh engine talks to the active mode only through this interface.
    """
    mode: TranslationMode = None
    tracks_max_width: bool = True

    # --- Statuses the engine asks for ---

    def seed_target(self, source: str, same_language: bool) -> Target:
        raise NotImplementedError

    def seed_hint(self, same_language: bool) -> str:
        return (RefreshXlfHint.NEW_COPIED_SOURCE if same_language else RefreshXlfHint.NEW).value

    def mark_source_changed(self, target: Target):
        raise NotImplementedError

    def mark_invalid(self, target: Target):
        raise NotImplementedError

    def normalize(self, unit: TranslationUnit):
        raise NotImplementedError

    def on_hint_resolved(self, target: Target):
        pass

    # --- Queries ---

    def needs_review(self, unit: TranslationUnit) -> bool:
        raise NotImplementedError

    def is_untranslated(self, unit: TranslationUnit) -> bool:
        target = unit.target
        return (
            target is None
            or target.translation_token == TranslationToken.NOT_TRANSLATED
            or target.state == TargetState.NEEDS_TRANSLATION
        )

    def is_resolved(self, unit: TranslationUnit) -> bool:
        target = unit.target
        if target is None:
            return False
        if target.translation_token is None and target.state is None:
            return True
        return is_translated_state(target.state)

    # --- Matching ---

    def apply_match(self, unit: TranslationUnit, candidates: List[str], settings) -> int:
        raise NotImplementedError

    def set_translated(self, unit: TranslationUnit, state: Optional[TargetState] = None):
        """Marks the unit as done and drops its refresh hint."""
        target = unit.target
        if target is not None:
            target.translation_token = None
        unit.remove_custom_note(CustomNoteType.REFRESH_XLF_HINT)

    @staticmethod
    def apply_exact_match_override(target: Target, settings):
        if settings is None or settings.exact_match_state is None:
            return
        if is_exact_match(target.state_qualifier):
            target.state = settings.exact_match_state
            target.state_qualifier = None


class NabTagsAdapter(ModeAdapter):
    """Status is a [NAB: ...] prefix on the target text; state attributes are never written."""
    mode = TranslationMode.NAB_TAGS

    def seed_target(self, source: str, same_language: bool) -> Target:
        if source == "":
            return Target("")
        if same_language:
            return Target(source, translation_token=TranslationToken.REVIEW)
        return Target("", translation_token=TranslationToken.NOT_TRANSLATED)

    def mark_source_changed(self, target: Target):
        target.state = None
        target.state_qualifier = None
        target.translation_token = TranslationToken.REVIEW

    def mark_invalid(self, target: Target):
        target.translation_token = TranslationToken.REVIEW

    def normalize(self, unit: TranslationUnit):
        for target in unit.targets:
            if target.translation_token is None:
                if target.state in (TargetState.NEW, TargetState.NEEDS_TRANSLATION):
                    target.translation_token = TranslationToken.NOT_TRANSLATED
                elif target.state in REVIEW_STATES:
                    target.translation_token = TranslationToken.REVIEW
                elif target.state in TRANSLATED_STATES and is_exact_match(target.state_qualifier):
                    target.translation_token = TranslationToken.SUGGESTION
            target.state = None
            target.state_qualifier = None

    def needs_review(self, unit: TranslationUnit) -> bool:
        return any(t.translation_token is not None for t in unit.targets)

    def apply_match(self, unit: TranslationUnit, candidates: List[str], settings) -> int:
        added = 0
        for candidate in candidates:
            unit.add_target(Target(candidate, translation_token=TranslationToken.SUGGESTION))
            added += 1
        if added:
            unit.targets = [t for t in unit.targets if t.translation_token != TranslationToken.NOT_TRANSLATED]
            unit.insert_custom_note(CustomNoteType.REFRESH_XLF_HINT, RefreshXlfHint.SUGGESTION.value)
        return added


class ExternalAdapter(ModeAdapter):
    """Status lives in the XLIFF state / state-qualifier attributes."""
    mode = TranslationMode.EXTERNAL

    same_language_state = TargetState.NEEDS_ADAPTATION
    same_language_qualifier = None
    invalid_state = TargetState.NEEDS_REVIEW_TRANSLATION
    invalid_qualifier = None

    def seed_target(self, source: str, same_language: bool) -> Target:
        if source == "":
            return Target("")
        if same_language:
            return Target(source, self.same_language_state, self.same_language_qualifier)
        return Target("", TargetState.NEEDS_TRANSLATION)

    def mark_source_changed(self, target: Target):
        target.translation_token = None
        target.state = TargetState.NEEDS_REVIEW_TRANSLATION
        target.state_qualifier = None

    def mark_invalid(self, target: Target):
        target.state = self.invalid_state
        if self.invalid_qualifier is not None:
            target.state_qualifier = self.invalid_qualifier

    def normalize(self, unit: TranslationUnit):
        for target in unit.targets:
            if target.state is None:
                token = target.translation_token
                if token == TranslationToken.NOT_TRANSLATED:
                    target.state, target.state_qualifier = TargetState.NEEDS_TRANSLATION, None
                elif token == TranslationToken.REVIEW:
                    target.state, target.state_qualifier = TargetState.NEEDS_REVIEW_TRANSLATION, None
                elif token == TranslationToken.SUGGESTION:
                    target.state, target.state_qualifier = TargetState.TRANSLATED, StateQualifier.EXACT_MATCH
                else:
                    target.state, target.state_qualifier = TargetState.TRANSLATED, None
            target.translation_token = None

    def needs_review(self, unit: TranslationUnit) -> bool:
        target = unit.target
        return target is not None and target.state is not None and not is_translated_state(target.state)

    def apply_match(self, unit: TranslationUnit, candidates: List[str], settings) -> int:
        if not candidates:
            return 0
        unit.remove_custom_note(CustomNoteType.REFRESH_XLF_HINT)
        unit.target = Target(candidates[0], TargetState.TRANSLATED, StateQualifier.EXACT_MATCH)
        self.apply_exact_match_override(unit.target, settings)
        return 1

    def set_translated(self, unit: TranslationUnit, state: Optional[TargetState] = None):
        target = unit.target
        if target is not None:
            target.state = state or TargetState.TRANSLATED
            target.state_qualifier = None
        super().set_translated(unit, state)


class DtsAdapter(ExternalAdapter):
    """
    Status attributes with the vocabulary used for round trips through the
    external translation service. maxwidth is left alone in this mode.
    """
    mode = TranslationMode.DTS
    tracks_max_width = False

    same_language_state = TargetState.NEEDS_REVIEW_TRANSLATION
    same_language_qualifier = StateQualifier.EXACT_MATCH
    invalid_state = TargetState.NEEDS_REVIEW_L10N
    invalid_qualifier = StateQualifier.REJECTED_INACCURATE

    def on_hint_resolved(self, target: Target):
        target.state = TargetState.TRANSLATED
        target.state_qualifier = None


_ADAPTERS = {
    TranslationMode.NAB_TAGS: NabTagsAdapter(),
    TranslationMode.EXTERNAL: ExternalAdapter(),
    TranslationMode.DTS: DtsAdapter(),
}


def get_adapter(mode: TranslationMode) -> ModeAdapter:
    return _ADAPTERS[TranslationMode(mode)]
