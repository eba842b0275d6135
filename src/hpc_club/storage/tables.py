"""Per-user row store (JSON file per table + fcntl.flock + atomic write).

Every read and write is scoped by ``user_id``; a row belonging to another
user is invisible to select/update/delete.
"""

import fcntl
import json
import os
import tempfile
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

Row = dict[str, Any]


def _sort_key(row: Row, column: str) -> tuple:
    value = row.get(column)
    # missing values sort last in ascending order
    return (value is None, "" if value is None else value)


class TableStore:
    """Row CRUD over JSON table files in ``tables_dir``.

    Args:
        tables_dir: Directory holding one ``<table>.json`` file per table.
    """

    def __init__(self, tables_dir: Path):
        self.tables_dir = Path(tables_dir)
        self.tables_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, table: str) -> Path:
        return self.tables_dir / f"{table}.json"

    def _read(self, table: str) -> list[Row]:
        path = self._path(table)
        if not path.exists():
            return []
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            data = json.load(f)
            fcntl.flock(f, fcntl.LOCK_UN)
        return data.get("rows", [])

    def _write(self, table: str, rows: list[Row]) -> None:
        path = self._path(table)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.tables_dir, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump({"rows": rows}, tmp, default=str, ensure_ascii=False)
        os.replace(tmp.name, path)

    @contextmanager
    def _locked(self, table: str) -> Iterator[list[Row]]:
        """Hold the table's write lock; rows mutated in the block are persisted."""
        lock_path = self.tables_dir / f"{table}.json.lock"
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            rows = self._read(table)
            yield rows
            self._write(table, rows)

    def select(
        self,
        table: str,
        user_id: str,
        order_by: str | None = "created_at",
        descending: bool = False,
        where: Callable[[Row], bool] | None = None,
    ) -> list[Row]:
        """Return the user's rows, optionally filtered and ordered."""
        rows = [r for r in self._read(table) if r.get("user_id") == user_id]
        if where is not None:
            rows = [r for r in rows if where(r)]
        if order_by:
            rows.sort(key=lambda r: _sort_key(r, order_by), reverse=descending)
        return rows

    def get(self, table: str, user_id: str, row_id: str) -> Row | None:
        for row in self._read(table):
            if row.get("id") == row_id and row.get("user_id") == user_id:
                return row
        return None

    def insert(self, table: str, user_id: str, values: Row) -> Row:
        """Insert a row, assigning ``id`` and ``created_at`` when absent."""
        row = dict(values)
        row["user_id"] = user_id
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.now().isoformat())
        with self._locked(table) as rows:
            rows.append(json.loads(json.dumps(row, default=str)))
        logger.debug("row_inserted", table=table, row_id=row["id"])
        return self.get(table, user_id, row["id"])

    def update(self, table: str, user_id: str, row_id: str, changes: Row) -> Row | None:
        """Apply ``changes`` to one row. Returns the updated row or None if absent."""
        updated = None
        with self._locked(table) as rows:
            for row in rows:
                if row.get("id") == row_id and row.get("user_id") == user_id:
                    row.update(json.loads(json.dumps(changes, default=str)))
                    updated = dict(row)
                    break
        if updated is None:
            logger.warning("row_update_missing", table=table, row_id=row_id)
        return updated

    def delete(self, table: str, user_id: str, row_id: str) -> bool:
        return self.delete_many(table, user_id, {row_id}) > 0

    def delete_many(self, table: str, user_id: str, row_ids: set[str]) -> int:
        """Delete the given rows. Returns the number removed."""
        with self._locked(table) as rows:
            before = len(rows)
            rows[:] = [
                r for r in rows
                if not (r.get("user_id") == user_id and r.get("id") in row_ids)
            ]
            removed = before - len(rows)
        logger.debug("rows_deleted", table=table, count=removed)
        return removed

    def find_one(self, table: str, where: Callable[[Row], bool]) -> Row | None:
        """Unscoped lookup, for account tables keyed by something other than user_id."""
        for row in self._read(table):
            if where(row):
                return row
        return None
