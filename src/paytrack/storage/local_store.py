import json
import os
import re
from typing import Any

from paytrack.logger import get_logger

logger = get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalStore:
    """
    String-keyed JSON blobs, one file per key under ``data_dir``.

    Every write replaces the whole snapshot for its key, so a failed write for one
    key never touches another.
    """

    def __init__(self, data_dir: str = ".") -> None:
        self.data_dir = data_dir

    def _path_for(self, key: str) -> str:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return os.path.join(self.data_dir, f"{key}.json")

    def get(self, key: str) -> Any | None:
        path = self._path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("[STORE] Could not read %s (%s); treating as empty.", path, exc)
            return None

    def set(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        if self.data_dir not in {"", ".", "./"}:
            os.makedirs(self.data_dir, exist_ok=True)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(value, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
        logger.debug("[STORE] Wrote %s.", path)
