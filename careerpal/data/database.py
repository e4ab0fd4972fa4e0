"""
Database connection manager for CareerPal server mode.

Provides asynchronous MongoDB connection management through Motor.
"""

from typing import Any, Optional
from urllib.parse import quote_plus

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from careerpal.utils.config import DatabaseSettings, get_settings
from careerpal.utils.logger import get_logger

logger = get_logger(__name__)

# Collection names
PROFILES_COLLECTION = "profiles"
CVS_COLLECTION = "cvs"
APPLICATIONS_COLLECTION = "applications"
EMBEDDINGS_COLLECTION = "embeddings"


class DatabaseManager:
    """
    Manages the MongoDB connection.

    One client per manager; the client is created on first use.
    """

    def __init__(self, db_settings: Optional[DatabaseSettings] = None) -> None:
        """Initialize database manager with settings."""
        self._settings = db_settings or get_settings().database
        self._db_name = self._settings.name
        self._uri = self._build_uri()
        self._client: Optional[AsyncIOMotorClient] = None

    def _build_uri(self) -> str:
        """
        Build MongoDB connection URI from settings.

        Credentials are URL-encoded.
        """
        db_settings = self._settings

        host = db_settings.host.strip()
        if not host or any(c in host for c in [";", "&", "|", "$", "`"]):
            raise ValueError(f"Invalid database host: {host}")

        auth = ""
        if db_settings.username and db_settings.password:
            encoded_user = quote_plus(db_settings.username)
            encoded_pass = quote_plus(db_settings.password)
            auth = f"{encoded_user}:{encoded_pass}@"

        return f"mongodb://{auth}{host}:{db_settings.port}"

    def get_client(self) -> AsyncIOMotorClient:
        """Get or create the MongoDB client."""
        if self._client is None:
            logger.info("Creating asynchronous MongoDB client")
            self._client = AsyncIOMotorClient(
                self._uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                maxPoolSize=50,
                minPoolSize=1,
            )
        return self._client

    def get_database(self) -> AsyncIOMotorDatabase:
        """Get the application database."""
        return self.get_client()[self._db_name]

    def get_collection(self, collection_name: str) -> Any:
        """Get a collection by name."""
        return self.get_database()[collection_name]

    async def check_connection(self) -> bool:
        """Check if the connection is healthy."""
        try:
            await self.get_client().admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"Connection check failed: {e}")
            return False

    def close(self) -> None:
        """Close the client connection."""
        if self._client:
            logger.info("Closing MongoDB client")
            self._client.close()
            self._client = None

    async def ensure_indexes(self) -> None:
        """Create indexes for all collections."""
        logger.info("Ensuring database indexes")

        cvs = self.get_collection(CVS_COLLECTION)
        await cvs.create_index("is_active")
        await cvs.create_index([("created_at", DESCENDING)])

        applications = self.get_collection(APPLICATIONS_COLLECTION)
        await applications.create_index("status")
        await applications.create_index("company")
        await applications.create_index([("created_at", DESCENDING)])

        # At most one embedding per source
        embeddings = self.get_collection(EMBEDDINGS_COLLECTION)
        await embeddings.create_index(
            [("source_type", ASCENDING), ("source_id", ASCENDING)], unique=True
        )

        logger.info("Database indexes created successfully")
