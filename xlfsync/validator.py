from collections import Counter
from dataclasses import dataclass
from typing import Optional
import re

from xlfsync.xliff_obj import TranslationUnit, CustomNoteType
from xlfsync.xliff_id import last_token
from xlfsync.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationIssue:
    type: str  # 'option_count', 'option_blank', 'dialog_placeholder', 'placeholder_count', 'extra_placeholder'
    message: str
    placeholder: Optional[str] = None


class Validator:
    """
    Checks a translated target against its source for the two unit kinds
    where the runtime depends on structure: option captions and labels.
    Only the first problem found is reported.
    """

    # @1@@@@@@ and #1####### run-length placeholders in dialog labels
    DIALOG_PLACEHOLDER_PATTERN = re.compile(r"(@\d+@@+|#\d+##+)")
    # %1, %2 substitution placeholders
    PLACEHOLDER_PATTERN = re.compile(r"%\d+")

    def check(self, unit: TranslationUnit) -> Optional[ValidationIssue]:
        if unit.target is None:
            return None
        token = last_token(unit)
        if token is None:
            return None

        target_text = unit.target.text
        if token.is_option_caption():
            return self.check_option_caption(unit.source, target_text)
        if token.is_label():
            return self.check_label(unit.source, target_text)
        return None

    def check_option_caption(self, source: str, target: str) -> Optional[ValidationIssue]:
        source_options = source.split(",")
        target_options = target.split(",")
        if len(source_options) != len(target_options):
            return ValidationIssue("option_count", "source and target has different number of option captions.")

        for index, (source_option, target_option) in enumerate(zip(source_options, target_options)):
            if (source_option == "") != (target_option == ""):
                return ValidationIssue(
                    "option_blank",
                    f'Option no. {index} of source is "{source_option}", but the same option in target is '
                    f'"{target_option}". Empty Options must be empty in both source and target.',
                )
        return None

    def check_label(self, source: str, target: str) -> Optional[ValidationIssue]:
        for match in self.DIALOG_PLACEHOLDER_PATTERN.findall(source):
            if match not in target:
                return ValidationIssue(
                    "dialog_placeholder",
                    f'The placeholder "{match}" was found in source, but not in target.',
                    match,
                )
        for match in self.DIALOG_PLACEHOLDER_PATTERN.findall(target):
            if match not in source:
                return ValidationIssue(
                    "dialog_placeholder",
                    f'The placeholder "{match}" was found in target, but not in source.',
                    match,
                )

        source_counts = Counter(self.PLACEHOLDER_PATTERN.findall(source))
        target_counts = Counter(self.PLACEHOLDER_PATTERN.findall(target))

        for placeholder, count in source_counts.items():
            if target_counts[placeholder] == 0:
                return ValidationIssue(
                    "placeholder_count",
                    f'The placeholder "{placeholder}" was found in source, but not in target.',
                    placeholder,
                )
            if target_counts[placeholder] != count:
                return ValidationIssue(
                    "placeholder_count",
                    f'The placeholder "{placeholder}" was found in source {count} times, '
                    f'but {target_counts[placeholder]} times in target.',
                    placeholder,
                )

        for placeholder, count in target_counts.items():
            if source_counts[placeholder] == 0:
                return ValidationIssue(
                    "extra_placeholder",
                    f'The placeholder "{placeholder}" was found in target {count} times, but was not found in source.',
                    placeholder,
                )
        return None


_validator = Validator()


def detect_invalid_values(unit: TranslationUnit, settings, adapter) -> bool:
    """
    Flags the unit for review when its target breaks an option list or a
    placeholder. Returns True when a problem was found.
    """
    if not settings.detect_invalid_targets or unit.target is None:
        return False
    if unit.target.text == "" and adapter.needs_review(unit):
        return False

    issue = _validator.check(unit)
    if issue is None:
        return False

    adapter.mark_invalid(unit.target)
    unit.insert_custom_note(CustomNoteType.REFRESH_XLF_HINT, issue.message)
    logger.debug(f"Trans-unit {unit.id} flagged: {issue.message}")
    return True
