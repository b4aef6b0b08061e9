import os
import json
import dataclasses
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple

from xlfsync.xliff_obj import TargetState
from xlfsync.translation_mode import TranslationMode
from xlfsync.errors import PreconditionError
from xlfsync.logger import get_logger

logger = get_logger(__name__)

CONFIG_FILE = "xlfsync.json"

DEFAULT_BASE_APP_URL = "https://nabaltools.file.core.windows.net/shared/base_app_lang_files/"
DEFAULT_BASE_APP_CACHE_DIR = os.path.join(os.path.expanduser("~"), ".xlfsync", "baseapp")

# Editor setting names, mapped to field names
SETTING_ALIASES = {
    "NAB.UseDTS": "use_dts",
    "NAB.UseExternalTranslationTool": "use_external_translation_tool",
    "NAB.DetectInvalidTargets": "detect_invalid_targets",
    "NAB.MatchTranslation": "use_matching",
    "NAB.MatchBaseAppTranslation": "match_base_app_translation",
    "NAB.TranslationSuggestionPaths": "translation_suggestion_paths",
    "NAB.ReplaceSelfClosingXlfTags": "replace_self_closing_xlf_tags",
    "NAB.SetDtsExactMatchToState": "exact_match_state",
}

KEEP_STATE = "(keep)"


@dataclass(frozen=True)
class Settings:
    """
    Immutable run configuration. Built once and passed to every entry point.
    """
    use_dts: bool = False
    use_external_translation_tool: bool = False
    detect_invalid_targets: bool = True
    use_matching: bool = True
    match_base_app_translation: bool = False
    translation_suggestion_paths: Tuple[str, ...] = field(default_factory=tuple)
    replace_self_closing_xlf_tags: bool = False
    exact_match_state: Optional[TargetState] = None
    base_app_cache_dir: str = DEFAULT_BASE_APP_CACHE_DIR
    base_app_url: str = DEFAULT_BASE_APP_URL
    workspace_folder: str = "."

    @property
    def translation_mode(self) -> TranslationMode:
        if self.use_dts:
            return TranslationMode.DTS
        if self.use_external_translation_tool:
            return TranslationMode.EXTERNAL
        return TranslationMode.NAB_TAGS

    def replace(self, **changes) -> "Settings":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        known = {f.name for f in dataclasses.fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = SETTING_ALIASES.get(key, key)
            if name not in known:
                logger.debug(f"Ignoring unknown setting '{key}'")
                continue
            values[name] = value

        if "translation_suggestion_paths" in values:
            values["translation_suggestion_paths"] = tuple(values["translation_suggestion_paths"] or ())

        state = values.get("exact_match_state")
        if state is None or str(state).lower() == KEEP_STATE:
            values["exact_match_state"] = None
        else:
            try:
                values["exact_match_state"] = TargetState(state)
            except ValueError:
                raise PreconditionError(
                    f"'{state}' is not a valid value for NAB.SetDtsExactMatchToState, "
                    f"expected (keep) or one of: {', '.join(s.value for s in TargetState)}"
                )

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["translation_suggestion_paths"] = list(self.translation_suggestion_paths)
        data["exact_match_state"] = self.exact_match_state.value if self.exact_match_state else KEEP_STATE
        return data


def load_settings(path: str = None) -> Settings:
    """
    Reads settings from a JSON file. A missing or unreadable file yields the defaults.
    The workspace folder defaults to the folder holding the config file.
    """
    path = path or CONFIG_FILE
    if not os.path.exists(path):
        logger.debug(f"No config file at {path}, using defaults")
        return Settings()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load config {path}: {e}")
        return Settings()

    data.setdefault("workspace_folder", os.path.dirname(os.path.abspath(path)))
    return Settings.from_dict(data)


def save_settings(settings: Settings, path: str = None):
    path = path or CONFIG_FILE
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(settings.to_dict(), f, indent=2)
