from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional

from gatekeeper.settings import APP_DIR

log = logging.getLogger(__name__)

LOCK_FILENAME = "state.json"
LOCK_KEY = "gatekeeper_app_locked"


class LocalLockStore:
    """
    Persists the "locally locked" flag under a fixed key. Writes go to a
    temp file that is fsynced and atomically swapped in, so a crash right
    after locking can't lose the write.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else APP_DIR / LOCK_FILENAME
        self._lock = threading.Lock()

    def _read(self) -> dict:
        try:
            if self.path.exists():
                data = json.loads(self.path.read_text(encoding="utf-8"))
                if isinstance(data, dict):
                    return data
        except (OSError, ValueError) as e:
            log.warning("Lock store unreadable (%s): %s", self.path, e)
        return {}

    def is_locally_locked(self) -> bool:
        with self._lock:
            return self._read().get(LOCK_KEY, 0) == 1

    def set_locally_locked(self, value: bool) -> None:
        with self._lock:
            data = self._read()
            data[LOCK_KEY] = 1 if value else 0
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        log.debug("Local lock persisted: %s", value)
