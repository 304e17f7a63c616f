"""Document persistence for exploration and navigation state."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Protocol

from mc_scout.errors import CollaboratorFailure

EXPLORED_AREAS = "explored_areas"
RESOURCE_LOCATIONS = "resource_locations"
DANGER_ZONES = "danger_zones"
WAYPOINTS = "waypoints"
ROADS = "roads"
TELEPORT_HUBS = "teleport_hubs"

DOCUMENT_KEYS = (EXPLORED_AREAS, RESOURCE_LOCATIONS, DANGER_ZONES, WAYPOINTS, ROADS, TELEPORT_HUBS)


class PersistenceAdapter(Protocol):
    """Keyed JSON-document storage."""

    def load(self, key: str) -> dict[str, Any] | None:
        """Return the stored document, or ``None`` when nothing was saved under ``key``."""

    def save(self, key: str, document: dict[str, Any]) -> None:
        """Replace the document stored under ``key``."""


class InMemoryStore:
    """Dictionary-backed store for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    def load(self, key: str) -> dict[str, Any] | None:
        document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    def save(self, key: str, document: dict[str, Any]) -> None:
        self._documents[key] = copy.deepcopy(document)

    def keys(self) -> list[str]:
        return sorted(self._documents)


class JsonFileStore:
    """One ``<key>.json`` file per document inside ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def load(self, key: str) -> dict[str, Any] | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as exc:
            raise CollaboratorFailure(f"Unable to read {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise CollaboratorFailure(f"Expected a JSON object in {path}")
        return payload

    def save(self, key: str, document: dict[str, Any]) -> None:
        path = self._path_for(key)
        temp_path = path.with_name(f"{path.name}.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, sort_keys=True)
            temp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            raise CollaboratorFailure(f"Unable to write {path}: {exc}") from exc

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid document key: {key!r}")
        return self._directory / f"{key}.json"
