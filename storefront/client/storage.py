"""
Persistent key/value storage for the session credentials.

Three keys are used: ``token`` (access token), ``refreshToken`` and
``user`` (the JSON-serialized user).
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

TOKEN_KEY = 'token'
REFRESH_TOKEN_KEY = 'refreshToken'
USER_KEY = 'user'
CART_SESSION_KEY = 'cartSessionId'

CREDENTIAL_KEYS = (TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY)


class TokenStore(ABC):
    """String values by key. Subclasses provide get, set and remove."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    def clear_credentials(self) -> None:
        for key in CREDENTIAL_KEYS:
            self.remove(key)

    def get_user(self) -> Optional[dict]:
        raw = self.get(USER_KEY)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Stored user is not valid JSON, ignoring it")
            return None

    def set_user(self, user: dict) -> None:
        self.set(USER_KEY, json.dumps(user))


class MemoryTokenStore(TokenStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            return self._values.get(key)

    def set(self, key, value):
        with self._lock:
            self._values[key] = value

    def remove(self, key):
        with self._lock:
            self._values.pop(key, None)


class FileTokenStore(TokenStore):
    """Keeps the values in a JSON file, rewritten on every change"""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding='utf-8'))
        except ValueError:
            logger.warning(f"Token file {self.path} is corrupt, starting empty")
            return {}

    def _write(self, values: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(values), encoding='utf-8')

    def get(self, key):
        with self._lock:
            return self._read().get(key)

    def set(self, key, value):
        with self._lock:
            values = self._read()
            values[key] = value
            self._write(values)

    def remove(self, key):
        with self._lock:
            values = self._read()
            if key in values:
                del values[key]
                self._write(values)
