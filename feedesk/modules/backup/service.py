"""Backup and restore of every domain table as JSON snapshots."""

import json
import logging
import re
import shutil
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Table, delete, insert, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.audit.service import AuditAction, AuditService
from feedesk.core.auth.models import User
from feedesk.core.config import settings
from feedesk.core.counters.models import Counter
from feedesk.core.exceptions import NotFoundError, SnapshotError
from feedesk.modules.courses.models import Course
from feedesk.modules.expenses.models import Expense
from feedesk.modules.students.models import Student
from feedesk.modules.transactions.models import Transaction

logger = logging.getLogger(__name__)

# Dependency order: parents before the rows that point at them
SNAPSHOT_TABLES: list[tuple[str, Table]] = [
    ("users", User.__table__),
    ("courses", Course.__table__),
    ("students", Student.__table__),
    ("transactions", Transaction.__table__),
    ("expenses", Expense.__table__),
    ("counters", Counter.__table__),
]

FULL_BACKUP_FILE = "full_backup.json"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"
TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z$")


def backup_timestamp(moment: datetime | None = None) -> str:
    """UTC ISO timestamp safe for directory names: 2026-01-05T00-00-00-000Z."""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    iso = moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def parse_backup_timestamp(name: str) -> datetime | None:
    if not TIMESTAMP_PATTERN.match(name):
        return None
    return datetime.strptime(name, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def _to_json(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _from_json(column, value: Any) -> Any:
    """Convert a snapshot value back to the column's Python type."""
    if value is None:
        return None
    if isinstance(column.type, DateTime) and isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(column.type, Date) and isinstance(value, str):
        return date.fromisoformat(value[:10])
    if isinstance(column.type, Boolean):
        if isinstance(value, bool):
            return value
        if value in (0, 1) and isinstance(value, int):
            return bool(value)
        raise ValueError(f"{column.name} must be true or false, got {value!r}")
    return value


def _decode_rows(key: str, table: Table, rows: Any) -> list[dict[str, Any]]:
    if not isinstance(rows, list):
        raise SnapshotError(f"'{key}' must be a list of rows")
    decoded = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise SnapshotError(f"'{key}' row {index} is not an object")
        unknown = set(row) - set(table.columns.keys())
        if unknown:
            raise SnapshotError(f"'{key}' row {index} has unknown columns: {sorted(unknown)}")
        try:
            decoded.append({name: _from_json(table.columns[name], v) for name, v in row.items()})
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"'{key}' row {index}: {e}") from e
    return decoded


class BackupService:
    """
    Snapshot and restore the domain tables.

    A snapshot is a dict keyed by table name (courses, students,
    transactions, expenses, counters, users) plus a timestamp. Rows are
    column-name dicts with dates as ISO strings. Restore replaces every
    table present in the snapshot, ids included, in one database
    transaction; tables absent from the snapshot are left untouched.
    Restore assumes nobody else is writing while it runs.
    """

    def __init__(self, db: AsyncSession, backup_dir: str | Path | None = None):
        self.db = db
        self.backup_dir = Path(backup_dir or settings.backup_dir)
        self.audit = AuditService(db)

    async def snapshot(self) -> dict[str, Any]:
        """Read every domain table into a JSON-compatible dict."""
        data: dict[str, Any] = {}
        for key, table in SNAPSHOT_TABLES:
            result = await self.db.execute(select(table).order_by(table.c.id))
            data[key] = [
                {name: _to_json(value) for name, value in row._mapping.items()}
                for row in result
            ]
        data["timestamp"] = datetime.now(timezone.utc).isoformat()
        return {
            key: data[key]
            for key in ("courses", "students", "transactions", "expenses", "counters", "users", "timestamp")
        }

    async def restore(
        self, snapshot: Any, restored_by_id: int | None = None, source: str = "import"
    ) -> dict[str, int]:
        """
        Replace the tables present in `snapshot` with its rows.

        Returns the number of rows restored per table. Raises SnapshotError
        and leaves the database unchanged when the snapshot is malformed or
        violates a constraint.
        """
        if not isinstance(snapshot, dict):
            raise SnapshotError("snapshot must be a JSON object")

        present = [
            (key, table, _decode_rows(key, table, snapshot[key]))
            for key, table in SNAPSHOT_TABLES
            if key in snapshot and snapshot[key] is not None
        ]
        if not present:
            raise SnapshotError("no known tables in snapshot")

        counts: dict[str, int] = {}
        try:
            for key, table, _ in reversed(present):
                await self.db.execute(delete(table))
            for key, table, rows in present:
                if rows:
                    await self.db.execute(insert(table), rows)
                counts[key] = len(rows)

            if self.db.get_bind().dialect.name == "postgresql":
                for _, table, _ in present:
                    await self._resync_sequence(table)

            await self.audit.log(
                action=AuditAction.RESTORE,
                entity_type="System",
                entity_identifier="Restore",
                user_id=restored_by_id,
                new_values={"source": source, "rows": counts},
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Restore from %s failed, nothing changed: %s", source, e)
            raise SnapshotError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e

        # Cached ORM objects no longer match the tables
        self.db.expunge_all()
        logger.info("Restore from %s completed: %s", source, counts)
        return counts

    async def _resync_sequence(self, table: Table) -> None:
        """Move the id sequence past the restored ids (PostgreSQL only)."""
        await self.db.execute(
            text(
                f"SELECT setval(pg_get_serial_sequence('{table.name}', 'id'), "
                f"COALESCE(MAX(id), 1), MAX(id) IS NOT NULL) FROM {table.name}"
            )
        )

    async def write_backup(self, created_by_id: int | None = None) -> Path:
        """Write a snapshot to <backup_dir>/<timestamp>/, one file per table plus the full snapshot."""
        data = await self.snapshot()
        backup_path = self.backup_dir / backup_timestamp()
        backup_path.mkdir(parents=True, exist_ok=False)

        for key, _ in SNAPSHOT_TABLES:
            (backup_path / f"{key}.json").write_text(
                json.dumps(data[key], indent=2), encoding="utf-8"
            )
        (backup_path / FULL_BACKUP_FILE).write_text(json.dumps(data, indent=2), encoding="utf-8")

        await self.audit.log(
            action=AuditAction.BACKUP,
            entity_type="System",
            entity_identifier="Backup",
            user_id=created_by_id,
            new_values={"path": str(backup_path)},
        )
        await self.db.commit()

        logger.info("Backup completed successfully at %s", backup_path)
        self.prune_backups()
        return backup_path

    def list_backups(self) -> list[dict[str, Any]]:
        """Stored backups, newest first."""
        if not self.backup_dir.is_dir():
            return []
        backups = []
        for path in self.backup_dir.iterdir():
            created_at = parse_backup_timestamp(path.name)
            full = path / FULL_BACKUP_FILE
            if created_at is None or not full.is_file():
                continue
            backups.append(
                {
                    "timestamp": path.name,
                    "created_at": created_at,
                    "files": sorted(p.name for p in path.iterdir() if p.is_file()),
                    "size_bytes": sum(p.stat().st_size for p in path.iterdir() if p.is_file()),
                }
            )
        backups.sort(key=lambda b: b["created_at"], reverse=True)
        return backups

    def prune_backups(self, now: datetime | None = None) -> list[str]:
        """Delete backups older than backup_retention_days. Keeps everything when unset."""
        days = settings.backup_retention_days
        if days is None or not self.backup_dir.is_dir():
            return []
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        removed = []
        for path in self.backup_dir.iterdir():
            created_at = parse_backup_timestamp(path.name)
            if path.is_dir() and created_at is not None and created_at < cutoff:
                shutil.rmtree(path)
                removed.append(path.name)
        if removed:
            logger.info("Pruned %d backups older than %d days", len(removed), days)
        return removed

    def read_backup(self, timestamp: str) -> Any:
        """Load the full snapshot of a stored backup."""
        if parse_backup_timestamp(timestamp) is None:
            raise NotFoundError("Backup", timestamp)
        full = self.backup_dir / timestamp / FULL_BACKUP_FILE
        if not full.is_file():
            raise NotFoundError("Backup", timestamp)
        try:
            return json.loads(full.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise SnapshotError(f"{timestamp}/{FULL_BACKUP_FILE} is not valid JSON") from e

    async def restore_from_backup(
        self, timestamp: str, restored_by_id: int | None = None
    ) -> dict[str, int]:
        """Restore a stored backup by its timestamp directory name."""
        snapshot = self.read_backup(timestamp)
        return await self.restore(snapshot, restored_by_id=restored_by_id, source=timestamp)
