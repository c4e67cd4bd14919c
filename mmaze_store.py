"""Key-value blob stores the mouse uses to remember solved mazes."""

import logging
import os
import re
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store, handy for tests and one-off sessions."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """One `<key>.json` file per key inside `directory`."""

    _UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")

    def __init__(self, *, directory: str):
        self.directory = directory
        os.makedirs(directory, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{self._UNSAFE.sub('_', key)}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r') as json_file:
            return json_file.read()

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        with open(path, 'w') as json_file:
            json_file.write(value)
        logger.debug(f"... wrote '{path}'")

    def remove(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)
            logger.debug(f"... removed '{path}'")
