"""
JSON file KeyValueStore

Local-storage style persistence: every key lives in one JSON object on disk.
Writes go to a temporary file that then replaces the original, so a crash
never leaves a half-written file behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from core.observation.logger import get_logger
from insight_layer.cache.protocol import KeyValueStore
from insight_layer.errors import CacheReadError, CacheWriteError

logger = get_logger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load_for_write()
        data[key] = value
        self._dump(data)

    def remove(self, key: str) -> None:
        data = self._load_for_write()
        if data.pop(key, None) is not None:
            self._dump(data)

    def keys(self) -> List[str]:
        return list(self._load().keys())

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CacheReadError(f"cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise CacheReadError(f"{self.path} does not hold a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _load_for_write(self) -> Dict[str, str]:
        try:
            return self._load()
        except CacheReadError as e:
            # A corrupt file is replaced rather than blocking every write
            logger.warning("Discarding unreadable store file %s: %s", self.path, e)
            return {}

    def _dump(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, ValueError) as e:
            raise CacheWriteError(f"cannot write {self.path}: {e}") from e
