import json
import logging
import os
from typing import Dict, Optional, Protocol, Sequence

from mio_dashboard.errors import NoProjectSelectedError
from mio_dashboard.models import Project

logger = logging.getLogger(__name__)

PROJECT_STORAGE_KEY = "mio-selected-project-id"


class StoragePort(Protocol):
    """Persistent string key-value storage."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileStorage:
    """Keeps the values in a small JSON object on disk, rewritten on every change."""

    def __init__(self, path: str) -> None:
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable state file '%s': %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring state file '%s': expected a JSON object.", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _save(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class ProjectSelection:
    """
    The project the operator is working in.

    The stored id is read once at construction; every change is written
    through to the storage port, and clearing the selection removes the entry.
    """

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage
        stored = storage.get(PROJECT_STORAGE_KEY)
        self._project_id: Optional[str] = stored if stored and stored != "null" else None

    @property
    def project_id(self) -> Optional[str]:
        return self._project_id

    def select(self, project_id: Optional[str]) -> None:
        self._project_id = project_id or None
        if self._project_id:
            self._storage.set(PROJECT_STORAGE_KEY, self._project_id)
            logger.info("Selected project %s", self._project_id)
        else:
            self._storage.remove(PROJECT_STORAGE_KEY)
            logger.info("Cleared project selection")

    def clear(self) -> None:
        self.select(None)

    def auto_select(self, projects: Sequence[Project]) -> Optional[str]:
        """Select the only project when exactly one exists and nothing is selected."""
        if len(projects) == 1 and not self._project_id:
            self.select(projects[0].id)
        return self._project_id

    def require(self) -> str:
        if not self._project_id:
            raise NoProjectSelectedError(
                "No project selected. Run 'mio-dashboard projects select <id>' first."
            )
        return self._project_id
