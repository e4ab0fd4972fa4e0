"""
MongoDB storage adapter (server mode).

Stores records in MongoDB through Motor. Each embedding save is a single
atomic upsert on the unique (source_type, source_id) index.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional, Union

from pydantic import TypeAdapter
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from careerpal.data.database import (
    APPLICATIONS_COLLECTION,
    CVS_COLLECTION,
    EMBEDDINGS_COLLECTION,
    PROFILES_COLLECTION,
    DatabaseManager,
)
from careerpal.data.models import (
    CreateApplicationInput,
    CreateCVInput,
    CreateEmbeddingInput,
    CreateProfileInput,
    EmbeddingRecord,
    ExportedData,
    InputModel,
    StorageStats,
    StoredApplication,
    StoredCV,
    StoredModel,
    StoredProfile,
    UpdateApplicationInput,
    UpdateCVInput,
    UpdateProfileInput,
    utc_now,
)
from careerpal.utils.constants import EmbeddingSourceType
from careerpal.utils.exceptions import RecordNotFoundError, StorageError
from careerpal.utils.logger import get_logger

from .base import StorageAdapter

logger = get_logger(__name__)


def _to_document(model: StoredModel) -> dict[str, Any]:
    """Convert a stored model to a MongoDB document."""
    document = model.to_document()
    document["_id"] = document.pop("id")
    return document


def _to_model(model_class: type, document: Optional[dict[str, Any]]) -> Any:
    """Convert a MongoDB document to a stored model."""
    if document is None:
        return None
    data = dict(document)
    data["id"] = data.pop("_id")
    return model_class.model_validate(data)


def _json_changes(data: InputModel) -> dict[str, Any]:
    """Explicitly set fields of an update payload, JSON-serialized."""
    return data.model_dump(mode="json", exclude_none=True, exclude_unset=True)


_DATETIME = TypeAdapter(datetime)


def _now_json() -> str:
    """Current UTC time serialized the way stored models serialize timestamps."""
    return _DATETIME.dump_python(utc_now(), mode="json")


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    """Translate driver errors into StorageError."""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"MongoDB {action} failed: {e}")
        raise StorageError(f"MongoDB {action} failed: {e}") from e


class MongoStorageAdapter(StorageAdapter):
    """MongoDB-backed storage for server mode."""

    def __init__(
        self,
        database: Optional[Any] = None,
        db_manager: Optional[DatabaseManager] = None,
        dimension: Optional[int] = None,
    ):
        """
        Initialize the adapter.

        Args:
            database: Motor database to use. Defaults to the manager's database.
            db_manager: Connection manager, created from settings when omitted.
            dimension: Required embedding length (None infers it from the stored embeddings).
        """
        super().__init__(dimension=dimension)
        self._db_manager = db_manager
        self._database = database

    @property
    def database(self) -> Any:
        if self._database is None:
            if self._db_manager is None:
                self._db_manager = DatabaseManager()
            self._database = self._db_manager.get_database()
        return self._database

    def _collection(self, name: str) -> Any:
        return self.database[name]

    async def _find_sorted(self, name: str, model_class: type, query: dict) -> list:
        cursor = self._collection(name).find(query).sort("created_at", DESCENDING)
        documents = await cursor.to_list(length=None)
        return [_to_model(model_class, doc) for doc in documents]

    # -------------------------------------------------------------------------
    # Profile Operations
    # -------------------------------------------------------------------------

    async def get_profile(self) -> Optional[StoredProfile]:
        with _storage_errors("get_profile"):
            document = await self._collection(PROFILES_COLLECTION).find_one({})
        return _to_model(StoredProfile, document)

    async def save_profile(
        self,
        data: Union[CreateProfileInput, UpdateProfileInput],
    ) -> StoredProfile:
        collection = self._collection(PROFILES_COLLECTION)
        with _storage_errors("save_profile"):
            existing = await collection.find_one({})
            if existing is None:
                if not isinstance(data, CreateProfileInput):
                    raise RecordNotFoundError("No profile to update")
                profile = StoredProfile(**data.model_dump())
                await collection.insert_one(_to_document(profile))
                return profile

            document = await collection.find_one_and_update(
                {"_id": existing["_id"]},
                {"$set": {**_json_changes(data), "updated_at": _now_json()}},
                return_document=ReturnDocument.AFTER,
            )
        return _to_model(StoredProfile, document)

    # -------------------------------------------------------------------------
    # CV Operations
    # -------------------------------------------------------------------------

    async def get_cvs(self) -> list[StoredCV]:
        with _storage_errors("get_cvs"):
            return await self._find_sorted(CVS_COLLECTION, StoredCV, {})

    async def get_cv(self, cv_id: str) -> Optional[StoredCV]:
        with _storage_errors("get_cv"):
            document = await self._collection(CVS_COLLECTION).find_one({"_id": cv_id})
        return _to_model(StoredCV, document)

    async def get_active_cv(self) -> Optional[StoredCV]:
        with _storage_errors("get_active_cv"):
            document = await self._collection(CVS_COLLECTION).find_one({"is_active": True})
        return _to_model(StoredCV, document)

    async def create_cv(self, data: CreateCVInput) -> StoredCV:
        cv = StoredCV(**data.model_dump())
        with _storage_errors("create_cv"):
            await self._collection(CVS_COLLECTION).insert_one(_to_document(cv))
        if cv.is_active:
            await self.set_active_cv(cv.id)
        return cv

    async def update_cv(self, cv_id: str, data: UpdateCVInput) -> StoredCV:
        with _storage_errors("update_cv"):
            document = await self._collection(CVS_COLLECTION).find_one_and_update(
                {"_id": cv_id},
                {"$set": {**_json_changes(data), "updated_at": _now_json()}},
                return_document=ReturnDocument.AFTER,
            )
        if document is None:
            raise RecordNotFoundError(f"CV not found: {cv_id}")
        if data.is_active:
            await self.set_active_cv(cv_id)
            document = {**document, "is_active": True}
        return _to_model(StoredCV, document)

    async def delete_cv(self, cv_id: str) -> None:
        with _storage_errors("delete_cv"):
            await self._collection(CVS_COLLECTION).delete_one({"_id": cv_id})
        await self.delete_embedding(EmbeddingSourceType.CV, cv_id)

    async def set_active_cv(self, cv_id: str) -> None:
        collection = self._collection(CVS_COLLECTION)
        with _storage_errors("set_active_cv"):
            result = await collection.update_one({"_id": cv_id}, {"$set": {"is_active": True}})
            if result.matched_count == 0:
                raise RecordNotFoundError(f"CV not found: {cv_id}")
            await collection.update_many(
                {"_id": {"$ne": cv_id}, "is_active": True},
                {"$set": {"is_active": False}},
            )

    # -------------------------------------------------------------------------
    # Application Operations
    # -------------------------------------------------------------------------

    async def get_applications(self) -> list[StoredApplication]:
        with _storage_errors("get_applications"):
            return await self._find_sorted(APPLICATIONS_COLLECTION, StoredApplication, {})

    async def get_application(self, application_id: str) -> Optional[StoredApplication]:
        with _storage_errors("get_application"):
            document = await self._collection(APPLICATIONS_COLLECTION).find_one(
                {"_id": application_id}
            )
        return _to_model(StoredApplication, document)

    async def create_application(self, data: CreateApplicationInput) -> StoredApplication:
        application = StoredApplication(**data.model_dump())
        with _storage_errors("create_application"):
            await self._collection(APPLICATIONS_COLLECTION).insert_one(
                _to_document(application)
            )
        logger.debug(f"Created application: {application.id}")
        return application

    async def update_application(
        self,
        application_id: str,
        data: UpdateApplicationInput,
    ) -> StoredApplication:
        with _storage_errors("update_application"):
            document = await self._collection(APPLICATIONS_COLLECTION).find_one_and_update(
                {"_id": application_id},
                {"$set": {**_json_changes(data), "updated_at": _now_json()}},
                return_document=ReturnDocument.AFTER,
            )
        if document is None:
            raise RecordNotFoundError(f"Application not found: {application_id}")
        return _to_model(StoredApplication, document)

    async def delete_application(self, application_id: str) -> None:
        with _storage_errors("delete_application"):
            await self._collection(APPLICATIONS_COLLECTION).delete_one({"_id": application_id})
        await self.delete_embedding(EmbeddingSourceType.APPLICATION, application_id)

    # -------------------------------------------------------------------------
    # Embedding Operations
    # -------------------------------------------------------------------------

    async def save_embedding(self, data: CreateEmbeddingInput) -> EmbeddingRecord:
        key = {"source_type": data.source_type.value, "source_id": data.source_id}
        known_dimension = None
        if self.dimension is None:
            with _storage_errors("save_embedding"):
                other = await self._collection(EMBEDDINGS_COLLECTION).find_one(
                    {"$nor": [key]}, {"embedding": 1}
                )
            if other is not None:
                known_dimension = len(other["embedding"])
        self._validate_embedding(data, known_dimension)

        # Built locally so ids and timestamps follow the model defaults
        candidate = _to_document(
            EmbeddingRecord(
                source_type=data.source_type,
                source_id=data.source_id,
                embedding=data.embedding,
                text_hash=data.text_hash,
            )
        )

        with _storage_errors("save_embedding"):
            document = await self._collection(EMBEDDINGS_COLLECTION).find_one_and_update(
                key,
                {
                    "$set": {
                        "embedding": candidate["embedding"],
                        "text_hash": candidate["text_hash"],
                        "updated_at": candidate["updated_at"],
                    },
                    "$setOnInsert": {
                        "_id": candidate["_id"],
                        "created_at": candidate["created_at"],
                    },
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )

        record = _to_model(EmbeddingRecord, document)
        logger.debug(
            f"Saved embedding {record.id} for {data.source_type.value}:{data.source_id}"
        )
        return record

    async def get_embedding(
        self,
        source_type: EmbeddingSourceType,
        source_id: str,
    ) -> Optional[EmbeddingRecord]:
        with _storage_errors("get_embedding"):
            document = await self._collection(EMBEDDINGS_COLLECTION).find_one(
                {"source_type": EmbeddingSourceType(source_type).value, "source_id": source_id}
            )
        return _to_model(EmbeddingRecord, document)

    async def delete_embedding(
        self,
        source_type: EmbeddingSourceType,
        source_id: str,
    ) -> None:
        with _storage_errors("delete_embedding"):
            await self._collection(EMBEDDINGS_COLLECTION).delete_one(
                {"source_type": EmbeddingSourceType(source_type).value, "source_id": source_id}
            )

    async def get_all_embeddings(
        self,
        source_type: Optional[EmbeddingSourceType] = None,
    ) -> list[EmbeddingRecord]:
        query = {}
        if source_type is not None:
            query["source_type"] = EmbeddingSourceType(source_type).value
        with _storage_errors("get_all_embeddings"):
            documents = await self._collection(EMBEDDINGS_COLLECTION).find(query).to_list(
                length=None
            )
        return [_to_model(EmbeddingRecord, doc) for doc in documents]

    async def clear_embeddings(self) -> None:
        with _storage_errors("clear_embeddings"):
            await self._collection(EMBEDDINGS_COLLECTION).delete_many({})
        logger.info("Cleared all embeddings")

    # -------------------------------------------------------------------------
    # Data Management
    # -------------------------------------------------------------------------

    async def export_all(self) -> ExportedData:
        return ExportedData(
            profile=await self.get_profile(),
            cvs=await self.get_cvs(),
            applications=await self.get_applications(),
        )

    async def import_all(self, data: ExportedData) -> None:
        await self.clear_all()
        with _storage_errors("import_all"):
            if data.profile:
                await self._collection(PROFILES_COLLECTION).insert_one(_to_document(data.profile))
            if data.cvs:
                await self._collection(CVS_COLLECTION).insert_many(
                    [_to_document(cv) for cv in data.cvs]
                )
            if data.applications:
                await self._collection(APPLICATIONS_COLLECTION).insert_many(
                    [_to_document(app) for app in data.applications]
                )
        logger.info(f"Imported {len(data.cvs)} CVs and {len(data.applications)} applications")

    async def clear_all(self) -> None:
        with _storage_errors("clear_all"):
            for name in (
                PROFILES_COLLECTION,
                CVS_COLLECTION,
                APPLICATIONS_COLLECTION,
                EMBEDDINGS_COLLECTION,
            ):
                await self._collection(name).delete_many({})
        logger.info("Cleared all server data")

    async def get_storage_stats(self) -> StorageStats:
        with _storage_errors("get_storage_stats"):
            cv_count = await self._collection(CVS_COLLECTION).count_documents({})
            application_count = await self._collection(APPLICATIONS_COLLECTION).count_documents({})
            embedding_count = await self._collection(EMBEDDINGS_COLLECTION).count_documents({})
            db_stats = await self.database.command("dbStats")
        return StorageStats(
            cv_count=cv_count,
            application_count=application_count,
            embedding_count=embedding_count,
            used_bytes=int(db_stats.get("dataSize", 0)),
        )

    async def close(self) -> None:
        if self._db_manager is not None:
            self._db_manager.close()
