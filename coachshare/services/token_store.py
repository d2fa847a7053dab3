"""
SessionStore - Owns the single live bearer token.

The token is kept in memory and mirrored to a TokenStorage backend so it
survives process restarts. Reads and writes are synchronous: the transport
stages that attach, capture and clear the token never suspend.
"""

import json
from pathlib import Path
from typing import Protocol

from loguru import logger


class TokenStorage(Protocol):
    """Durable storage for a single string value."""

    def load(self) -> str | None: ...

    def save(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStorage:
    """Non-durable storage, used by tests and throwaway clients."""

    def __init__(self, token: str | None = None):
        self._token = token

    def load(self) -> str | None:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStorage:
    """
    JSON file storage keyed by a well-known storage key.

    Other keys present in the file are left untouched.
    """

    def __init__(self, path: str | Path, key: str = "token"):
        self.path = Path(path).expanduser()
        self.key = key

    def load(self) -> str | None:
        data = self._read()
        token = data.get(self.key)
        return token if isinstance(token, str) and token else None

    def save(self, token: str) -> None:
        data = self._read()
        data[self.key] = token
        self._write(data)

    def clear(self) -> None:
        data = self._read()
        if self.key in data:
            del data[self.key]
            self._write(data)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")


class SessionStore:
    """
    Process-wide token holder with exactly one live value at a time.

    Usage:
        store = SessionStore(FileTokenStorage("~/.coachshare/session.json"))

        if store.has_token():
            headers["Authorization"] = f"Bearer {store.token}"
    """

    def __init__(self, storage: TokenStorage | None = None):
        self._storage = storage or MemoryTokenStorage()
        self._token = self._storage.load()

    @property
    def token(self) -> str | None:
        return self._token

    def has_token(self) -> bool:
        return bool(self._token)

    def set_token(self, token: str) -> None:
        if not token:
            raise ValueError("Refusing to store an empty token")
        if token == self._token:
            return
        self._token = token
        self._storage.save(token)
        logger.debug("Session token stored")

    def clear_token(self) -> None:
        if self._token is None:
            return
        self._token = None
        self._storage.clear()
        logger.debug("Session token cleared")
