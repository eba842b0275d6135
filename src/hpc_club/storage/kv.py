"""Per-user key-value store (JSON + fcntl.flock + atomic write).

Keys are namespaced as ``{base}_{user_id}`` like the browser cache they
replace. Values are plain JSON with no schema versioning.
"""

import fcntl
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

# Base keys used by the feature panels
METRICS_KEY = "hpc_metrics"
TUTOR_HISTORY_KEY = "hpc_tutor_history"
ERROR_LIST_KEY = "hpc_error_list"
MATERIALS_KEY = "hpc_materials"
NOTES_WORKSPACE_KEY = "hpc_notes_workspace"
PREFERENCES_KEY = "hpc_preferences"
GAMIFICATION_KEY = "hpc_gamification"

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


def user_storage_key(base_key: str, user_id: str | None) -> str:
    """Namespace a base key for a user; anonymous callers get the bare key."""
    if not user_id:
        return base_key
    return f"{base_key}_{user_id}"


class KeyValueStore:
    """JSON values keyed by string, one file per key.

    Args:
        kv_dir: Directory holding the value files.
    """

    def __init__(self, kv_dir: Path):
        self.kv_dir = Path(kv_dir)
        self.kv_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.kv_dir / f"{_SAFE_KEY.sub('_', key)}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with open(path, encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                data = json.load(f)
                fcntl.flock(f, fcntl.LOCK_UN)
        except json.JSONDecodeError:
            logger.warning("kv_parse_error", key=key)
            return default
        return data

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.kv_dir, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(value, tmp, default=str, ensure_ascii=False)
        os.replace(tmp.name, path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def for_user(self, user_id: str) -> "UserKeyValue":
        return UserKeyValue(self, user_id)


class UserKeyValue:
    """View of a KeyValueStore bound to one user's namespace."""

    def __init__(self, store: KeyValueStore, user_id: str):
        self.store = store
        self.user_id = user_id

    def get(self, base_key: str, default: Any = None) -> Any:
        return self.store.get(user_storage_key(base_key, self.user_id), default)

    def set(self, base_key: str, value: Any) -> None:
        self.store.set(user_storage_key(base_key, self.user_id), value)

    def remove(self, base_key: str) -> None:
        self.store.remove(user_storage_key(base_key, self.user_id))
