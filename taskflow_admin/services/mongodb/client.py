"""MongoDB client service."""
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional

from taskflow_admin.config.settings import (
    MONGODB_URI,
    MONGODB_DB_NAME,
    MONGODB_MAX_POOL_SIZE,
    MONGODB_MIN_POOL_SIZE,
    MONGODB_SERVER_SELECTION_TIMEOUT_MS,
)


def create_mongodb_client(uri: Optional[str] = None) -> AsyncIOMotorClient:
    """
    Create a MongoDB client with the configured pool.

    The client is created once per process by the app factory and shared by
    every request; services never open or close connections themselves.
    """
    return AsyncIOMotorClient(
        uri or MONGODB_URI,
        maxPoolSize=MONGODB_MAX_POOL_SIZE,
        minPoolSize=MONGODB_MIN_POOL_SIZE,
        serverSelectionTimeoutMS=MONGODB_SERVER_SELECTION_TIMEOUT_MS,
    )


def get_client_database(client: AsyncIOMotorClient, db_name: Optional[str] = None) -> AsyncIOMotorDatabase:
    """Get the admin database from a client, defaulting to MONGODB_DB_NAME."""
    return client[db_name or MONGODB_DB_NAME]


async def get_database(request: Request) -> AsyncIOMotorDatabase:
    """
    Get MongoDB database as a dependency.

    Reads the client owned by the running application.
    """
    return get_client_database(request.app.state.mongodb_client)
