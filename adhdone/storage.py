#!/usr/bin/env python3
"""
Local persistence for ADHDone.

A small key-value port sits underneath everything. Backends never raise:
each call returns a StorageResult, and the layers above decide what a
failure means. For the app state and the API key a failure only means
"not persisted", so it is logged and otherwise ignored.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sqlalchemy import String, Text, create_engine, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from .config import API_KEY_STORAGE_KEY, STATE_STORAGE_KEY
from .errors import StorageFailure
from .models import AppState


@dataclass
class StorageResult:
    """Outcome of a key-value operation."""
    ok: bool
    value: Optional[str] = None
    error: Optional[StorageFailure] = None

    @classmethod
    def success(cls, value: Optional[str] = None) -> "StorageResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, message: str) -> "StorageResult":
        return cls(ok=False, error=StorageFailure(message))


class KeyValueStore(ABC):
    """Storage port: string keys to string values."""

    @abstractmethod
    def get(self, key: str) -> StorageResult:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> StorageResult:
        pass

    @abstractmethod
    def delete(self, key: str) -> StorageResult:
        pass


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, handy for isolated instances and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> StorageResult:
        return StorageResult.success(self._data.get(key))

    def set(self, key: str, value: str) -> StorageResult:
        self._data[key] = value
        return StorageResult.success(value)

    def delete(self, key: str) -> StorageResult:
        self._data.pop(key, None)
        return StorageResult.success()


class Base(DeclarativeBase):
    pass


class KeyValueEntry(Base):
    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)


class SQLAlchemyKeyValueStore(KeyValueStore):
    """
    Key-value store kept in a single SQLite table.

    If the database cannot be opened the store stays usable but every call
    reports a failure, mirroring a host where local storage is disabled.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path).expanduser()
        self.logger = logging.getLogger("adhdone.storage")
        self._session = None
        self._init_error: Optional[str] = None

        try:
            engine = create_engine(f"sqlite:///{self.db_path}")
            Base.metadata.create_all(engine)
            self._session = sessionmaker(bind=engine, expire_on_commit=False)
            self.logger.info(f"Key-value store ready at {self.db_path}")
        except SQLAlchemyError as e:
            self._init_error = f"Could not open key-value store at {self.db_path}: {e}"
            self.logger.warning(self._init_error)

    def _unavailable(self) -> Optional[StorageResult]:
        if self._session is None:
            return StorageResult.failure(self._init_error or "Key-value store unavailable")
        return None

    def get(self, key: str) -> StorageResult:
        unavailable = self._unavailable()
        if unavailable:
            return unavailable
        try:
            with self._session() as session:
                entry = session.get(KeyValueEntry, key)
                return StorageResult.success(entry.value if entry else None)
        except SQLAlchemyError as e:
            return StorageResult.failure(f"Error reading {key}: {e}")

    def set(self, key: str, value: str) -> StorageResult:
        unavailable = self._unavailable()
        if unavailable:
            return unavailable
        try:
            with self._session() as session, session.begin():
                session.merge(KeyValueEntry(key=key, value=value))
            return StorageResult.success(value)
        except SQLAlchemyError as e:
            return StorageResult.failure(f"Error writing {key}: {e}")

    def delete(self, key: str) -> StorageResult:
        unavailable = self._unavailable()
        if unavailable:
            return unavailable
        try:
            with self._session() as session, session.begin():
                session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            return StorageResult.success()
        except SQLAlchemyError as e:
            return StorageResult.failure(f"Error deleting {key}: {e}")


class StateStore:
    """JSON documents on top of a KeyValueStore."""

    def __init__(self, backend: KeyValueStore, state_key: str = STATE_STORAGE_KEY):
        self.backend = backend
        self.state_key = state_key
        self.logger = logging.getLogger("adhdone.storage")

    def load(self, key: str, fallback: Any = None) -> Any:
        """
        Load and parse the JSON value stored under ``key``.

        Args:
            key: Storage key
            fallback: Returned when the key is absent, unparseable or storage fails

        Returns:
            The parsed value or ``fallback``
        """
        result = self.backend.get(key)
        if not result.ok:
            self.logger.warning(f"Could not load {key}: {result.error}")
            return fallback
        if not result.value:
            return fallback
        try:
            return json.loads(result.value)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Stored value for {key} is not valid JSON: {e}")
            return fallback

    def save(self, key: str, value: Any) -> bool:
        """Serialize ``value`` and write it. Returns False instead of raising on failure."""
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Could not serialize {key}: {e}")
            return False

        result = self.backend.set(key, payload)
        if not result.ok:
            self.logger.warning(f"Could not save {key}: {result.error}")
        return result.ok

    def load_app_state(self) -> AppState:
        state = AppState.from_dict(self.load(self.state_key, {}))
        self.logger.info(
            f"Loaded state: {len(state.tasks)} tasks, "
            f"{len(state.brain_dump_history)} brain dumps"
        )
        return state

    def save_app_state(self, state: AppState) -> bool:
        return self.save(self.state_key, state.to_dict())


class CredentialStore:
    """Single string slot holding the completion service API key."""

    def __init__(self, backend: KeyValueStore, key: str = API_KEY_STORAGE_KEY):
        self.backend = backend
        self.key = key
        self.logger = logging.getLogger("adhdone.storage")

    def get(self) -> str:
        result = self.backend.get(self.key)
        if not result.ok:
            self.logger.warning(f"Could not read API key: {result.error}")
            return ""
        return result.value or ""

    def set(self, value: Optional[str]) -> bool:
        """Store the key; an empty or None value clears the slot."""
        if not value:
            result = self.backend.delete(self.key)
        else:
            result = self.backend.set(self.key, value)
        if not result.ok:
            self.logger.warning(f"Could not update API key: {result.error}")
        return result.ok
