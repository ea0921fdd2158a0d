"""
Snapshot Store - Persisted map snapshot for "save / load experience"
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from ..errors import PersistenceError

logger = logging.getLogger(__name__)


class SnapshotStore(ABC):
    """Storage for a single encoded map snapshot"""

    @abstractmethod
    def load_snapshot_bytes(self) -> Optional[bytes]:
        """Saved payload, or None when nothing has been saved"""

    @abstractmethod
    def save_snapshot_bytes(self, data: bytes) -> None:
        """Persist a payload; raises PersistenceError on failure"""

    def has_saved_snapshot(self) -> bool:
        return self.load_snapshot_bytes() is not None


class FileSnapshotStore(SnapshotStore):
    """Keeps the saved map in one file, replaced atomically on save"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def has_saved_snapshot(self) -> bool:
        return self.path.is_file()

    def load_snapshot_bytes(self) -> Optional[bytes]:
        if not self.path.is_file():
            return None

        try:
            return self.path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Can't read saved map: {e}", {"path": str(self.path)}) from e

    def save_snapshot_bytes(self, data: bytes) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            with tempfile.NamedTemporaryFile(dir=self.path.parent, prefix=f".{self.path.name}.",
                                             delete=False) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())

            os.replace(tmp_name, self.path)
            tmp_name = None

            logger.info(f"Saved map ({len(data)} bytes) to {self.path}")

        except OSError as e:
            raise PersistenceError(f"Can't save map: {e}", {"path": str(self.path)}) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
