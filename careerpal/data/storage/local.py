"""
Local storage adapter.

Keeps all records in process memory and, when a persist path is set,
mirrors them to a JSON snapshot on disk. No server contact.

Every mutation works on a copy of the tables; the copy replaces the live
tables only after the snapshot write succeeds, so a failed write leaves
the previous state intact and readers never see a partially applied change.
"""

import asyncio
import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from careerpal.data.models import (
    CreateApplicationInput,
    CreateCVInput,
    CreateEmbeddingInput,
    CreateProfileInput,
    EmbeddingRecord,
    ExportedData,
    StorageStats,
    StoredApplication,
    StoredCV,
    StoredProfile,
    UpdateApplicationInput,
    UpdateCVInput,
    UpdateProfileInput,
    utc_now,
)
from careerpal.utils.constants import EXPORT_SCHEMA_VERSION, EmbeddingSourceType
from careerpal.utils.exceptions import RecordNotFoundError, StorageError
from careerpal.utils.logger import get_logger

from .base import StorageAdapter

logger = get_logger(__name__)

EmbeddingKey = tuple[EmbeddingSourceType, str]


@dataclass
class _Tables:
    """In-memory tables. Records are replaced, never mutated."""

    profile: Optional[StoredProfile] = None
    cvs: dict[str, StoredCV] = field(default_factory=dict)
    applications: dict[str, StoredApplication] = field(default_factory=dict)
    embeddings: dict[EmbeddingKey, EmbeddingRecord] = field(default_factory=dict)

    def copy(self) -> "_Tables":
        return _Tables(
            profile=self.profile,
            cvs=dict(self.cvs),
            applications=dict(self.applications),
            embeddings=dict(self.embeddings),
        )

    def to_json(self) -> str:
        payload = {
            "version": EXPORT_SCHEMA_VERSION,
            "profile": self.profile.to_document() if self.profile else None,
            "cvs": [cv.to_document() for cv in self.cvs.values()],
            "applications": [app.to_document() for app in self.applications.values()],
            "embeddings": [emb.to_document() for emb in self.embeddings.values()],
        }
        return json.dumps(payload)

    @classmethod
    def from_json(cls, raw: str) -> "_Tables":
        payload: dict[str, Any] = json.loads(raw)
        profile = payload.get("profile")
        cvs = [StoredCV.model_validate(d) for d in payload.get("cvs", [])]
        apps = [StoredApplication.model_validate(d) for d in payload.get("applications", [])]
        embs = [EmbeddingRecord.model_validate(d) for d in payload.get("embeddings", [])]
        return cls(
            profile=StoredProfile.model_validate(profile) if profile else None,
            cvs={cv.id: cv for cv in cvs},
            applications={app.id: app for app in apps},
            embeddings={emb.key: emb for emb in embs},
        )


def _newest_first(records: list) -> list:
    return sorted(records, key=lambda r: r.created_at, reverse=True)


class LocalStorageAdapter(StorageAdapter):
    """
    Local-only storage backend.

    Usage:
        storage = LocalStorageAdapter(persist_path=Path("data/careerpal.json"))
        await storage.save_embedding(payload)
    """

    def __init__(
        self,
        persist_path: Optional[Path] = None,
        dimension: Optional[int] = None,
    ):
        """
        Initialize the local store.

        Args:
            persist_path: JSON snapshot file. None keeps data in memory only.
            dimension: Required embedding length (None infers it from the first save).
        """
        super().__init__(dimension=dimension)
        self.persist_path = persist_path
        self._tables = _Tables()
        self._loaded = persist_path is None
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Snapshot I/O
    # -------------------------------------------------------------------------

    async def _ensure_loaded(self) -> None:
        """Load the snapshot on first use."""
        if self._loaded:
            return

        path = self.persist_path
        raw = None
        if path is not None:
            try:
                raw = await asyncio.to_thread(self._read_snapshot)
            except OSError as e:
                logger.error(f"Failed to load local store from {path}: {e}")
                raise StorageError(f"Failed to load local store from {path}: {e}") from e
        if raw is not None:
            try:
                self._tables = _Tables.from_json(raw)
            except (ValueError, ValidationError) as e:
                logger.error(f"Failed to load local store from {path}: {e}")
                raise StorageError(f"Failed to load local store from {path}: {e}") from e
            logger.info(
                f"Loaded local store from {path} "
                f"({len(self._tables.applications)} applications, "
                f"{len(self._tables.embeddings)} embeddings)"
            )
        self._loaded = True

    def _read_snapshot(self) -> Optional[str]:
        try:
            return self.persist_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_snapshot(self, payload: str) -> None:
        """Write the snapshot atomically (temp file + rename)."""
        path = self.persist_path
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _snapshot_size(self) -> Optional[int]:
        """Size of the snapshot file in bytes, or None if it was never written."""
        try:
            return self.persist_path.stat().st_size
        except FileNotFoundError:
            return None

    async def _commit(self, tables: _Tables) -> None:
        """Persist the new tables, then make them live."""
        if self.persist_path is not None:
            payload = tables.to_json()
            try:
                await asyncio.to_thread(self._write_snapshot, payload)
            except OSError as e:
                logger.error(f"Failed to write local store to {self.persist_path}: {e}")
                raise StorageError(f"Failed to write local store: {e}") from e
        self._tables = tables

    async def _read(self) -> _Tables:
        if not self._loaded:
            async with self._lock:
                await self._ensure_loaded()
        return self._tables

    # -------------------------------------------------------------------------
    # Profile Operations
    # -------------------------------------------------------------------------

    async def get_profile(self) -> Optional[StoredProfile]:
        return (await self._read()).profile

    async def save_profile(
        self,
        data: Union[CreateProfileInput, UpdateProfileInput],
    ) -> StoredProfile:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            existing = tables.profile

            if existing is None:
                if not isinstance(data, CreateProfileInput):
                    raise RecordNotFoundError("No profile to update")
                profile = StoredProfile(**data.model_dump())
            else:
                profile = existing.model_copy(
                    update={**data.changes(), "updated_at": utc_now()}
                )

            tables.profile = profile
            await self._commit(tables)
            return profile

    # -------------------------------------------------------------------------
    # CV Operations
    # -------------------------------------------------------------------------

    async def get_cvs(self) -> list[StoredCV]:
        return _newest_first(list((await self._read()).cvs.values()))

    async def get_cv(self, cv_id: str) -> Optional[StoredCV]:
        return (await self._read()).cvs.get(cv_id)

    async def get_active_cv(self) -> Optional[StoredCV]:
        for cv in await self.get_cvs():
            if cv.is_active:
                return cv
        return None

    @staticmethod
    def _activate(tables: _Tables, cv_id: str) -> None:
        now = utc_now()
        for other_id, cv in list(tables.cvs.items()):
            should_be_active = other_id == cv_id
            if cv.is_active != should_be_active:
                tables.cvs[other_id] = cv.model_copy(
                    update={"is_active": should_be_active, "updated_at": now}
                )

    async def create_cv(self, data: CreateCVInput) -> StoredCV:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            cv = StoredCV(**data.model_dump())
            tables.cvs[cv.id] = cv
            if cv.is_active:
                self._activate(tables, cv.id)
            await self._commit(tables)
            logger.debug(f"Created CV: {cv.id}")
            return tables.cvs[cv.id]

    async def update_cv(self, cv_id: str, data: UpdateCVInput) -> StoredCV:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            existing = tables.cvs.get(cv_id)
            if existing is None:
                raise RecordNotFoundError(f"CV not found: {cv_id}")

            tables.cvs[cv_id] = existing.model_copy(
                update={**data.changes(), "updated_at": utc_now()}
            )
            if data.is_active:
                self._activate(tables, cv_id)
            await self._commit(tables)
            return tables.cvs[cv_id]

    async def delete_cv(self, cv_id: str) -> None:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            tables.cvs.pop(cv_id, None)
            tables.embeddings.pop((EmbeddingSourceType.CV, cv_id), None)
            await self._commit(tables)
            logger.debug(f"Deleted CV: {cv_id}")

    async def set_active_cv(self, cv_id: str) -> None:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            if cv_id not in tables.cvs:
                raise RecordNotFoundError(f"CV not found: {cv_id}")
            self._activate(tables, cv_id)
            await self._commit(tables)

    # -------------------------------------------------------------------------
    # Application Operations
    # -------------------------------------------------------------------------

    async def get_applications(self) -> list[StoredApplication]:
        return _newest_first(list((await self._read()).applications.values()))

    async def get_application(self, application_id: str) -> Optional[StoredApplication]:
        return (await self._read()).applications.get(application_id)

    async def create_application(self, data: CreateApplicationInput) -> StoredApplication:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            application = StoredApplication(**data.model_dump())
            tables.applications[application.id] = application
            await self._commit(tables)
            logger.debug(f"Created application: {application.id}")
            return application

    async def update_application(
        self,
        application_id: str,
        data: UpdateApplicationInput,
    ) -> StoredApplication:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            existing = tables.applications.get(application_id)
            if existing is None:
                raise RecordNotFoundError(f"Application not found: {application_id}")

            updated = existing.model_copy(update={**data.changes(), "updated_at": utc_now()})
            tables.applications[application_id] = updated
            await self._commit(tables)
            return updated

    async def delete_application(self, application_id: str) -> None:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            tables.applications.pop(application_id, None)
            tables.embeddings.pop((EmbeddingSourceType.APPLICATION, application_id), None)
            await self._commit(tables)
            logger.debug(f"Deleted application: {application_id}")

    # -------------------------------------------------------------------------
    # Embedding Operations
    # -------------------------------------------------------------------------

    async def save_embedding(self, data: CreateEmbeddingInput) -> EmbeddingRecord:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            key = (data.source_type, data.source_id)

            known_dimension = next(
                (rec.dimension for k, rec in tables.embeddings.items() if k != key),
                None,
            )
            self._validate_embedding(data, known_dimension)

            existing = tables.embeddings.get(key)
            if existing is not None:
                record = existing.model_copy(
                    update={
                        "embedding": list(data.embedding),
                        "text_hash": data.text_hash,
                        "updated_at": utc_now(),
                    }
                )
            else:
                record = EmbeddingRecord(
                    source_type=data.source_type,
                    source_id=data.source_id,
                    embedding=data.embedding,
                    text_hash=data.text_hash,
                )

            tables.embeddings[key] = record
            await self._commit(tables)
            logger.debug(
                f"Saved embedding {record.id} for {data.source_type.value}:{data.source_id}"
            )
            return record

    async def get_embedding(
        self,
        source_type: EmbeddingSourceType,
        source_id: str,
    ) -> Optional[EmbeddingRecord]:
        tables = await self._read()
        return tables.embeddings.get((EmbeddingSourceType(source_type), source_id))

    async def delete_embedding(
        self,
        source_type: EmbeddingSourceType,
        source_id: str,
    ) -> None:
        key = (EmbeddingSourceType(source_type), source_id)
        async with self._lock:
            await self._ensure_loaded()
            if key not in self._tables.embeddings:
                return
            tables = self._tables.copy()
            del tables.embeddings[key]
            await self._commit(tables)

    async def get_all_embeddings(
        self,
        source_type: Optional[EmbeddingSourceType] = None,
    ) -> list[EmbeddingRecord]:
        records = list((await self._read()).embeddings.values())
        if source_type is None:
            return records
        wanted = EmbeddingSourceType(source_type)
        return [r for r in records if r.source_type == wanted]

    async def clear_embeddings(self) -> None:
        async with self._lock:
            await self._ensure_loaded()
            tables = self._tables.copy()
            tables.embeddings = {}
            await self._commit(tables)
            logger.info("Cleared all embeddings")

    # -------------------------------------------------------------------------
    # Data Management
    # -------------------------------------------------------------------------

    async def export_all(self) -> ExportedData:
        tables = await self._read()
        return ExportedData(
            profile=tables.profile,
            cvs=_newest_first(list(tables.cvs.values())),
            applications=_newest_first(list(tables.applications.values())),
        )

    async def import_all(self, data: ExportedData) -> None:
        async with self._lock:
            await self._ensure_loaded()
            tables = _Tables(
                profile=data.profile,
                cvs={cv.id: cv for cv in data.cvs},
                applications={app.id: app for app in data.applications},
            )
            await self._commit(tables)
            logger.info(
                f"Imported {len(data.cvs)} CVs and {len(data.applications)} applications"
            )

    async def clear_all(self) -> None:
        async with self._lock:
            await self._ensure_loaded()
            await self._commit(_Tables())
            logger.info("Cleared all local data")

    async def get_storage_stats(self) -> StorageStats:
        tables = await self._read()
        used = None
        if self.persist_path is not None:
            used = await asyncio.to_thread(self._snapshot_size)
        if used is None:
            used = len(tables.to_json().encode("utf-8"))
        return StorageStats(
            cv_count=len(tables.cvs),
            application_count=len(tables.applications),
            embedding_count=len(tables.embeddings),
            used_bytes=used,
        )
