"""
Instance store — durable table of ToolInstances.

Instances are stored as JSON in ``<data_dir>/tool_instances.json``.
Writes are atomic (write to temp file, then rename) so a crash
mid-write never leaves a truncated table behind.

The store itself is not locked; the ToolRegistry serialises access
with a single lock.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from toolhub.core.errors import ConflictError, NotFoundError, StoreError
from toolhub.core.models import ToolInstance, ToolType

logger = logging.getLogger(__name__)

DEFAULT_STORE_FILE = "tool_instances.json"
SCHEMA_VERSION = 1


class InstanceTable(BaseModel):
    """On-disk layout of the instance store."""

    schema_version: int = SCHEMA_VERSION
    instances: list[ToolInstance] = Field(default_factory=list)


class InstanceStore:
    """File-backed CRUD over ToolInstances, keyed by instance ID.

    Rows are kept in memory after the first load and written through on
    every mutation.
    """

    def __init__(self, path: Path):
        self._path = path
        self._rows: dict[str, ToolInstance] | None = None

    @property
    def path(self) -> Path:
        return self._path

    # ── Table lifecycle ──────────────────────────────────────────

    def init_tables(self) -> None:
        """Create the store file if missing and load it."""
        if not self._path.is_file():
            logger.info("No instance store at %s — creating empty table", self._path)
            self._rows = {}
            self._save()
            return
        self._load()

    def _load(self) -> dict[str, ToolInstance]:
        if self._rows is not None:
            return self._rows

        if not self._path.is_file():
            self._rows = {}
            return self._rows

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Cannot read instance store {self._path}: {e}") from e

        try:
            table = InstanceTable.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            backup = self._path.with_suffix(self._path.suffix + ".corrupt")
            logger.warning(
                "Corrupt instance store %s: %s — moved to %s, starting fresh",
                self._path, e, backup.name,
            )
            try:
                self._path.replace(backup)
            except OSError as move_err:
                raise StoreError(f"Cannot move corrupt store aside: {move_err}") from move_err
            table = InstanceTable()

        self._rows = {inst.instance_id: inst for inst in table.instances}
        logger.debug("Loaded %d instances from %s", len(self._rows), self._path)
        return self._rows

    def _save(self) -> None:
        rows = self._rows or {}
        table = InstanceTable(instances=list(rows.values()))
        content = json.dumps(table.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=".instances_",
                suffix=".tmp",
            )
            tmp = Path(tmp_path)
            try:
                with open(fd, "w", encoding="utf-8") as fh:
                    fh.write(content)
                tmp.replace(self._path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to save instance store to %s: %s", self._path, e)
            raise StoreError(f"Cannot write instance store {self._path}: {e}") from e
        logger.debug("Instance store saved to %s", self._path)

    # ── Queries ──────────────────────────────────────────────────

    def has_local_tools(self) -> bool:
        return any(inst.tool_type is ToolType.LOCAL for inst in self._load().values())

    def get_all_instances(self) -> list[ToolInstance]:
        return list(self._load().values())

    def get_local_instances(self) -> list[ToolInstance]:
        return [i for i in self._load().values() if i.tool_type is ToolType.LOCAL]

    def get_instance(self, instance_id: str) -> ToolInstance | None:
        return self._load().get(instance_id)

    def instance_exists(self, instance_id: str) -> bool:
        return instance_id in self._load()

    # ── Mutations ────────────────────────────────────────────────

    def add_instance(self, instance: ToolInstance) -> None:
        """Insert a new row. Raises ConflictError on a duplicate ID."""
        rows = self._load()
        if instance.instance_id in rows:
            raise ConflictError(f"Instance already exists: {instance.instance_id}")
        rows[instance.instance_id] = instance
        self._commit(instance.instance_id, previous=None)

    def upsert_instance(self, instance: ToolInstance) -> None:
        """Insert or replace a row by ID."""
        rows = self._load()
        previous = rows.get(instance.instance_id)
        rows[instance.instance_id] = instance
        self._commit(instance.instance_id, previous=previous)

    def update_instance(self, instance: ToolInstance) -> None:
        """Replace an existing row. Raises NotFoundError if absent."""
        rows = self._load()
        previous = rows.get(instance.instance_id)
        if previous is None:
            raise NotFoundError(f"Instance not found: {instance.instance_id}")
        rows[instance.instance_id] = instance
        self._commit(instance.instance_id, previous=previous)

    def delete_instance(self, instance_id: str) -> None:
        """Remove a row. Deleting a missing ID is a no-op."""
        rows = self._load()
        previous = rows.pop(instance_id, None)
        if previous is None:
            return
        try:
            self._save()
        except StoreError:
            rows[instance_id] = previous
            raise

    def _commit(self, instance_id: str, previous: ToolInstance | None) -> None:
        """Persist, rolling the in-memory row back if the write fails."""
        try:
            self._save()
        except StoreError:
            rows = self._load()
            if previous is None:
                rows.pop(instance_id, None)
            else:
                rows[instance_id] = previous
            raise


def default_store_path(data_dir: Path) -> Path:
    """Default instance store path inside a data directory."""
    return data_dir / DEFAULT_STORE_FILE
