"""
Place Persistence Layer
=======================

Read/write of Place documents for the curation service.

Backends:
- File system (one JSON file per place, atomic writes, .backup copy)
- PostgreSQL (JSONB document per place)

``PlacePersistence`` pairs a primary backend with an optional best-effort
backup backend. Save and delete never raise: failures are logged and
reported through ``SaveOutcome`` so an in-memory edit that already happened
is never rolled back by a storage problem.
"""

from typing import Optional, Protocol, Dict, Any
from pathlib import Path
import json

from loguru import logger
from pydantic import BaseModel

from curation.models.place import PlaceRecord


# ============================================================================
# EXCEPTIONS
# ============================================================================

class PersistenceError(Exception):
    """Base exception for persistence errors"""
    pass


class PlaceNotFoundError(PersistenceError):
    """Raised when a place document doesn't exist"""
    pass


class PlaceCorruptedError(PersistenceError):
    """Raised when a stored document cannot be read or fails validation"""
    pass


# ============================================================================
# STORAGE BACKEND INTERFACE
# ============================================================================

class StorageBackend(Protocol):
    """Interface that all storage backends must implement"""

    name: str

    async def read(self, place_id: str) -> Dict[str, Any]:
        """Read raw document"""
        ...

    async def write(self, place_id: str, document: Dict[str, Any]) -> None:
        """Write raw document"""
        ...

    async def exists(self, place_id: str) -> bool:
        ...

    async def delete(self, place_id: str) -> None:
        ...

    async def list_place_ids(self) -> list[str]:
        ...


# ============================================================================
# FILE SYSTEM BACKEND
# ============================================================================

class FileSystemBackend:
    """
    File-based storage backend using JSON files.

    Structure:
        storage_path/
            {place_id}.json
            {place_id}.json.backup
    """

    def __init__(self, storage_path: str = "./place_states", name: str = "filesystem"):
        self.name = name
        self.storage_path = Path(storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"FileSystemBackend initialized: {self.storage_path}")

    def _get_file_path(self, place_id: str) -> Path:
        return self.storage_path / f"{place_id}.json"

    def _get_backup_path(self, place_id: str) -> Path:
        return self.storage_path / f"{place_id}.json.backup"

    async def read(self, place_id: str) -> Dict[str, Any]:
        """Read document from file, falling back to the .backup copy if corrupted"""
        file_path = self._get_file_path(place_id)

        if not file_path.exists():
            raise PlaceNotFoundError(f"Place not found: {place_id}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            logger.debug(f"Loaded place from file: {place_id}")
            return data

        except json.JSONDecodeError:
            logger.error(f"Place file corrupted: {place_id}, attempting backup recovery")
            return await self._read_backup(place_id)
        except OSError as e:
            raise PersistenceError(f"Failed to read place {place_id}: {e}") from e

    async def _read_backup(self, place_id: str) -> Dict[str, Any]:
        backup_path = self._get_backup_path(place_id)

        if not backup_path.exists():
            raise PlaceCorruptedError(
                f"Place file corrupted and no backup available: {place_id}"
            )

        try:
            with open(backup_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            logger.warning(f"Recovered place from backup file: {place_id}")
            return data

        except (OSError, json.JSONDecodeError) as e:
            raise PlaceCorruptedError(
                f"Both place file and backup are corrupted: {place_id}"
            ) from e

    async def write(self, place_id: str, document: Dict[str, Any]) -> None:
        """Write document to file (atomic)"""
        file_path = self._get_file_path(place_id)
        backup_path = self._get_backup_path(place_id)
        temp_path = self.storage_path / f"{place_id}.json.tmp"

        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, ensure_ascii=False, default=str)

            if file_path.exists():
                file_path.replace(backup_path)

            temp_path.replace(file_path)

            logger.debug(f"Saved place to file: {place_id}")

        except (OSError, TypeError, ValueError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise PersistenceError(f"Failed to write place {place_id}: {e}") from e

    async def exists(self, place_id: str) -> bool:
        return self._get_file_path(place_id).exists()

    async def delete(self, place_id: str) -> None:
        """Delete document file and its backup copy"""
        for path in (self._get_file_path(place_id), self._get_backup_path(place_id)):
            if path.exists():
                path.unlink()

        logger.info(f"Deleted place file: {place_id}")

    async def list_place_ids(self) -> list[str]:
        return sorted(p.stem for p in self.storage_path.glob("*.json"))


# ============================================================================
# DATABASE BACKEND (PostgreSQL)
# ============================================================================

class DatabaseBackend:
    """
    PostgreSQL storage backend.

    Table schema:
        places (
            place_id VARCHAR PRIMARY KEY,
            creator_id VARCHAR,
            document JSONB NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL
        )
    """

    def __init__(self, db_manager, name: str = "postgres"):
        """
        Args:
            db_manager: Database connection manager (from curation.core.database)
        """
        self.name = name
        self.db = db_manager
        logger.info("DatabaseBackend initialized")

    async def read(self, place_id: str) -> Dict[str, Any]:
        query = "SELECT document FROM places WHERE place_id = $1"

        row = await self.db.fetch_one(query, place_id)

        if not row:
            raise PlaceNotFoundError(f"Place not found: {place_id}")

        document = row['document']
        if isinstance(document, str):
            document = json.loads(document)

        logger.debug(f"Loaded place from database: {place_id}")
        return document

    async def write(self, place_id: str, document: Dict[str, Any]) -> None:
        """Write document (upsert)"""
        query = """
            INSERT INTO places (place_id, creator_id, document, updated_at)
            VALUES ($1, $2, $3::jsonb, NOW())
            ON CONFLICT (place_id) DO UPDATE
            SET
                creator_id = EXCLUDED.creator_id,
                document = EXCLUDED.document,
                updated_at = EXCLUDED.updated_at
        """

        await self.db.execute(
            query,
            place_id,
            document.get('creator_id'),
            json.dumps(document, ensure_ascii=False, default=str),
        )

        logger.debug(f"Saved place to database: {place_id}")

    async def exists(self, place_id: str) -> bool:
        row = await self.db.fetch_one("SELECT 1 FROM places WHERE place_id = $1", place_id)
        return row is not None

    async def delete(self, place_id: str) -> None:
        await self.db.execute("DELETE FROM places WHERE place_id = $1", place_id)
        logger.info(f"Deleted place from database: {place_id}")

    async def list_place_ids(self) -> list[str]:
        rows = await self.db.fetch_all("SELECT place_id FROM places ORDER BY place_id")
        return [row['place_id'] for row in rows]


# ============================================================================
# PLACE PERSISTENCE MANAGER
# ============================================================================

class SaveOutcome(BaseModel):
    """Result of a save/delete hand-off"""
    place_id: str
    primary_ok: bool
    backup_ok: Optional[bool] = None  # None when no backup backend is configured
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.primary_ok


class PlacePersistence:
    """
    High-level persistence manager: primary backend plus optional backup.

    This is the persistence collaborator handed updated records by the
    curation service.
    """

    def __init__(self, primary: StorageBackend, backup: Optional[StorageBackend] = None):
        self.primary = primary
        self.backup = backup

    async def save(self, record: PlaceRecord) -> SaveOutcome:
        """
        Save a place to the primary backend, then (best effort) the backup.

        Never raises; failures are logged and reported in the outcome.
        """
        place_id = record.place_id

        try:
            document = record.to_document()
        except Exception as e:
            logger.error("Place serialization failed", extra={"place_id": place_id, "error": str(e)})
            return SaveOutcome(place_id=place_id, primary_ok=False, error=str(e))

        outcome = SaveOutcome(place_id=place_id, primary_ok=True)

        try:
            await self.primary.write(place_id, document)
        except Exception as e:
            logger.error(
                "Primary save failed",
                extra={"place_id": place_id, "backend": self.primary.name, "error": str(e)},
            )
            outcome.primary_ok = False
            outcome.error = str(e)

        if self.backup is not None:
            try:
                await self.backup.write(place_id, document)
                outcome.backup_ok = True
            except Exception as e:
                logger.warning(
                    "Backup save failed",
                    extra={"place_id": place_id, "backend": self.backup.name, "error": str(e)},
                )
                outcome.backup_ok = False

        if outcome.primary_ok:
            logger.info(
                "Saved place",
                extra={
                    "place_id": place_id,
                    "edits": len(record.edit_history),
                    "backup_ok": outcome.backup_ok,
                },
            )
        return outcome

    async def delete(self, place_id: str) -> SaveOutcome:
        """Delete from both backends. Never raises."""
        outcome = SaveOutcome(place_id=place_id, primary_ok=True)

        try:
            await self.primary.delete(place_id)
        except Exception as e:
            logger.error(
                "Primary delete failed",
                extra={"place_id": place_id, "backend": self.primary.name, "error": str(e)},
            )
            outcome.primary_ok = False
            outcome.error = str(e)

        if self.backup is not None:
            try:
                await self.backup.delete(place_id)
                outcome.backup_ok = True
            except Exception as e:
                logger.warning(
                    "Backup delete failed",
                    extra={"place_id": place_id, "backend": self.backup.name, "error": str(e)},
                )
                outcome.backup_ok = False

        return outcome

    async def load(self, place_id: str) -> PlaceRecord:
        """
        Load a place, falling back to the backup backend.

        Raises:
            PlaceNotFoundError: neither backend has the place
            PlaceCorruptedError: the document exists but cannot be validated
        """
        try:
            document = await self.primary.read(place_id)
        except Exception as primary_error:
            if self.backup is None:
                raise
            logger.warning(
                "Primary load failed, trying backup",
                extra={"place_id": place_id, "error": str(primary_error)},
            )
            document = await self.backup.read(place_id)

        try:
            return PlaceRecord.from_document(document)
        except Exception as e:
            raise PlaceCorruptedError(f"Place {place_id} failed validation: {e}") from e

    async def exists(self, place_id: str) -> bool:
        if await self.primary.exists(place_id):
            return True
        return self.backup is not None and await self.backup.exists(place_id)

    async def list_place_ids(self) -> list[str]:
        return await self.primary.list_place_ids()


def build_persistence(settings, db_manager=None) -> PlacePersistence:
    """Wire backends from settings."""
    if settings.storage_backend == "postgres":
        if db_manager is None:
            from curation.core.database import db_manager
        primary: StorageBackend = DatabaseBackend(db_manager)
    else:
        primary = FileSystemBackend(settings.storage_path)

    backup = None
    if settings.backup_enabled:
        backup = FileSystemBackend(settings.backup_storage_path, name="filesystem-backup")

    return PlacePersistence(primary, backup)
