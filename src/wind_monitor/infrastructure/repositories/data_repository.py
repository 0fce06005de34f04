"""
History repository implementations.

``JsonFileHistoryRepository`` keeps one JSON document per owner; the
in-memory variant backs tests and throwaway runs.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Sequence
from urllib.parse import quote

from wind_monitor.domain.models import WindObservation
from wind_monitor.logger.app_logger import get_logger

from .data_interfaces import HistoryRepository

logger = get_logger(__name__)


class InMemoryHistoryRepository(HistoryRepository):
    """Dictionary-backed repository."""

    def __init__(self) -> None:
        self._store: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def load(self, owner_id: str) -> List[WindObservation]:
        with self._lock:
            payload = list(self._store.get(owner_id, []))
        return [WindObservation.from_dict(item) for item in payload]

    def save(self, owner_id: str, records: Sequence[WindObservation]) -> bool:
        with self._lock:
            self._store[owner_id] = [record.to_dict() for record in records]
        return True


class JsonFileHistoryRepository(HistoryRepository):
    """Store each owner's history as ``windData_<owner>.json`` under ``base_dir``."""

    def __init__(self, base_dir: str | Path) -> None:
        # created on first save()
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def path_for(self, owner_id: str) -> Path:
        # percent-encoded: one file per distinct owner id
        safe_owner = quote(owner_id, safe="")
        return self._base_dir / f'windData_{safe_owner}.json'

    def load(self, owner_id: str) -> List[WindObservation]:
        path = self.path_for(owner_id)
        if not path.exists():
            return []
        try:
            payload = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as exc:
            logger.warning('Failed to read history file %s: %s', path, exc)
            return []
        if not isinstance(payload, list):
            logger.warning('Unexpected history payload in %s, ignoring', path)
            return []

        records: List[WindObservation] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            try:
                records.append(WindObservation.from_dict(item))
            except (TypeError, ValueError) as exc:
                logger.warning('Dropping malformed record in %s: %s', path, exc)
        return records

    def save(self, owner_id: str, records: Sequence[WindObservation]) -> bool:
        path = self.path_for(owner_id)
        payload = json.dumps([record.to_dict() for record in records], ensure_ascii=False)
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._base_dir, prefix=path.stem, suffix='.tmp')
        except OSError as exc:
            logger.error('Failed to save history for %s to %s: %s', owner_id, path, exc)
            return False
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fp:
                fp.write(payload)
            os.replace(tmp_name, path)
        except OSError as exc:
            logger.error('Failed to save history for %s to %s: %s', owner_id, path, exc)
            Path(tmp_name).unlink(missing_ok=True)
            return False
        logger.debug('Saved %s records for %s to %s', len(records), owner_id, path)
        return True
