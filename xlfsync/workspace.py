import os
from typing import Iterable, List

from lxml import etree

from xlfsync.errors import PreconditionError
from xlfsync.logger import get_logger

logger = get_logger(__name__)

MASTER_SUFFIX = ".g.xlf"


def find_master_file(folder: str) -> str:
    """Returns the path of the single generated *.g.xlf file in folder."""
    if not os.path.isdir(folder):
        raise FileNotFoundError(f"Translation folder not found: {folder}")
    masters = sorted(f for f in os.listdir(folder) if f.endswith(MASTER_SUFFIX))
    if not masters:
        raise FileNotFoundError(f"No {MASTER_SUFFIX} file found in {folder}")
    if len(masters) > 1:
        raise PreconditionError(f"Only one {MASTER_SUFFIX} file is supported, found: {', '.join(masters)}")
    return os.path.join(folder, masters[0])


def find_language_files(folder: str) -> List[str]:
    """Every *.xlf in folder except the master, sorted by name."""
    if not os.path.isdir(folder):
        raise FileNotFoundError(f"Translation folder not found: {folder}")
    return [
        os.path.join(folder, f)
        for f in sorted(os.listdir(folder))
        if f.endswith(".xlf") and not f.endswith(MASTER_SUFFIX)
    ]


def read_target_language(file_path: str) -> str:
    """Reads target-language from the <file> element without loading the trans-units."""
    with open(file_path, "rb") as f:
        try:
            for _, elem in etree.iterparse(f, events=("start",)):
                if etree.QName(elem).localname == "file":
                    return elem.get("target-language", "")
        except etree.XMLSyntaxError as e:
            # Reported with its offset when the file itself is loaded
            logger.warning(f"Could not read target-language from {os.path.basename(file_path)}: {e}")
    return ""


def existing_target_languages(paths: Iterable[str]) -> List[str]:
    languages = []
    for path in paths:
        language = read_target_language(path)
        if language and language not in languages:
            languages.append(language)
    return languages
