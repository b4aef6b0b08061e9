import os
import json
from typing import Dict, List, Optional

import requests

from xlfsync.logger import get_logger

logger = get_logger(__name__)

DOWNLOAD_TIMEOUT = 60


class BaseAppTranslations:
    """
    Local cache of the shared base corpus: one <lang>.json file per language,
    each a JSON object mapping source text to a list of translations.
    Missing files are downloaded from base_url on first use.
    """

    def __init__(self, cache_dir: str, base_url: str, session: requests.Session = None):
        self.cache_dir = cache_dir
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.session = session or requests.Session()

    @staticmethod
    def file_name(language: str) -> str:
        return f"{language.lower()}.json"

    def local_path(self, language: str) -> str:
        return os.path.join(self.cache_dir, self.file_name(language))

    def local_files(self) -> Dict[str, str]:
        if not os.path.isdir(self.cache_dir):
            return {}
        return {
            name: os.path.join(self.cache_dir, name)
            for name in sorted(os.listdir(self.cache_dir))
            if name.endswith(".json")
        }

    def download(self, language: str) -> str:
        """Fetches <lang>.json into the cache and returns its path. Raises on HTTP errors."""
        url = self.base_url + self.file_name(language)
        logger.info(f"Downloading base translations for {language} from {url}")
        response = self.session.get(url, timeout=DOWNLOAD_TIMEOUT)
        response.raise_for_status()

        os.makedirs(self.cache_dir, exist_ok=True)
        path = self.local_path(language)
        tmp_path = path + ".tmp"
        with open(tmp_path, "wb") as f:
            f.write(response.content)
        os.replace(tmp_path, path)
        return path

    def get_map(self, language: str) -> Optional[Dict[str, List[str]]]:
        """
        Returns the source -> targets map for a language, downloading it if needed.
        None when the file is not available.
        """
        path = self.local_path(language)
        if not os.path.exists(path):
            try:
                path = self.download(language)
            except requests.RequestException as e:
                logger.warning(f"Base translations for {language} not available: {e}")
                return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Base translations for {language} in {path} could not be read: {e}")
            return None
        return {source: list(targets) for source, targets in data.items()}
