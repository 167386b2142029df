# =============================================================================
# core/dataset_store.py - Current risk dataset and role file kept for reuse
# =============================================================================

import json
import logging
import os
import shutil
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from core.errors import IngestionError

RISK_DATASET = 'risk'
ROLE_FILE = 'role'
DATASET_KINDS = (RISK_DATASET, ROLE_FILE)


class DatasetStore:
    """
    Keeps the last saved risk dataset and role assignment file on disk.

    Each kind holds at most one file; saving replaces it. Metadata (original
    file name, who saved it and when) is kept in an index file beside them.
    """

    INDEX_FILE = 'datasets.json'

    def __init__(self, folder: str):
        self.folder = Path(folder)
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()

    def _index_path(self) -> Path:
        return self.folder / self.INDEX_FILE

    def _read_index(self) -> Dict[str, Dict[str, Any]]:
        path = self._index_path()
        if not path.exists():
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to read dataset index {path}: {e}")
            raise IngestionError(f"Dataset index {path} is unreadable") from e

    def _write_index(self, index: Dict[str, Dict[str, Any]]) -> None:
        self.folder.mkdir(parents=True, exist_ok=True)
        with open(self._index_path(), 'w', encoding='utf-8') as file:
            json.dump(index, file, indent=2)

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in DATASET_KINDS:
            raise ValueError(f"Unknown dataset kind: {kind}")

    def save(self, kind: str, source_path: str, filename: str, saved_by: str = '') -> Dict[str, Any]:
        """Copy an uploaded file in as the current dataset of its kind"""
        self._check_kind(kind)
        extension = os.path.splitext(filename)[1].lower()
        stored_name = f"{kind}{extension}"

        with self._lock:
            index = self._read_index()
            previous = index.get(kind)
            self.folder.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, self.folder / stored_name)
            if previous and previous['stored_name'] != stored_name:
                (self.folder / previous['stored_name']).unlink(missing_ok=True)

            entry = {
                'kind': kind,
                'filename': filename,
                'stored_name': stored_name,
                'saved_by': saved_by,
                'saved_at': datetime.now().isoformat(timespec='seconds'),
            }
            index[kind] = entry
            self._write_index(index)

        self.logger.info(f"Saved {filename} as current {kind} dataset")
        return entry

    def path(self, kind: str) -> Optional[str]:
        """Path of the current dataset of a kind, None when nothing is saved"""
        self._check_kind(kind)
        with self._lock:
            entry = self._read_index().get(kind)
        if not entry:
            return None
        path = self.folder / entry['stored_name']
        return str(path) if path.exists() else None

    def info(self) -> Dict[str, Optional[Dict[str, Any]]]:
        """Metadata of every kind; None for kinds with nothing saved"""
        with self._lock:
            index = self._read_index()
        return {kind: index.get(kind) for kind in DATASET_KINDS}

    def clear(self, kind: str) -> bool:
        """Remove the current dataset of a kind; False when there was none"""
        self._check_kind(kind)
        with self._lock:
            index = self._read_index()
            entry = index.pop(kind, None)
            if entry is None:
                return False
            (self.folder / entry['stored_name']).unlink(missing_ok=True)
            self._write_index(index)

        self.logger.info(f"Cleared current {kind} dataset")
        return True
