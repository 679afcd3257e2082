"""Tenant collection catalog.

Live enumeration of the database is the source of truth for which collections
a tenant owns. The per-tenant metadata record is only a display hint; it is
updated after create/delete in a separate write and can drift.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional

from pymongo.errors import CollectionInvalid, PyMongoError

from taskflow_admin.config.settings import TENANT_METADATA_COLLECTION
from taskflow_admin.schemas.response.collection_response import CollectionSummary, TenantMetadata
from taskflow_admin.services.errors import DuplicateError
from taskflow_admin.services.mongodb.schema_service import infer_collection_schema
from taskflow_admin.services.mongodb.tenant_namespace import (
    PhysicalCollectionName,
    physical_from_existing,
    resolve_physical_name,
    validate_tenant_id,
)

logger = logging.getLogger(__name__)


async def get_storage_size(db, physical: PhysicalCollectionName) -> int:
    """
    Best-effort storage size of a collection in bytes.

    A failing collStats call yields 0 so one bad collection can't break the
    whole listing.
    """
    try:
        stats = await db.command("collStats", physical.name)
    except PyMongoError as e:
        logger.warning(f"collStats failed for {physical}: {str(e)}")
        return 0
    return int(stats.get("size") or 0)


async def summarize_collection(db, physical: PhysicalCollectionName, include_schema: bool = False) -> CollectionSummary:
    """Build the summary for one collection: exact count, size and optional schema."""
    count = await db[physical.name].count_documents({})
    size = await get_storage_size(db, physical)

    schema = None
    if include_schema:
        schema = (await infer_collection_schema(db, physical)).fields

    return CollectionSummary(
        name=physical.logical_name,
        full_name=physical.name,
        count=count,
        size=size,
        collection_schema=schema
    )


async def list_tenant_collections(db, tenant_id: str, include_schema: bool = False) -> List[CollectionSummary]:
    """
    List every collection belonging to a tenant.

    Args:
        db: MongoDB database client
        tenant_id: Tenant (organization) id
        include_schema: Also infer each collection's schema

    Returns:
        Collection summaries sorted by logical name
    """
    tenant_id = validate_tenant_id(tenant_id)

    collection_names = await db.list_collection_names()
    owned = [
        physical
        for physical in (physical_from_existing(name, tenant_id) for name in collection_names)
        if physical is not None
    ]

    summaries = await asyncio.gather(
        *(summarize_collection(db, physical, include_schema) for physical in owned)
    )
    return sorted(summaries, key=lambda summary: summary.name)


async def collection_exists(db, physical: PhysicalCollectionName) -> bool:
    names = await db.list_collection_names(filter={"name": physical.name})
    return physical.name in names


async def create_collection(
    db,
    tenant_id: str,
    logical_name: str,
    initial_documents: Optional[List[Dict[str, Any]]] = None
) -> PhysicalCollectionName:
    """
    Create a tenant collection, optionally seeding it with documents.

    Args:
        db: MongoDB database client
        tenant_id: Tenant (organization) id
        logical_name: User-facing collection name
        initial_documents: Documents to insert after creation

    Returns:
        The physical collection name
    """
    physical = resolve_physical_name(tenant_id, logical_name)

    if await collection_exists(db, physical):
        raise DuplicateError("Collection already exists")

    try:
        await db.create_collection(physical.name)
    except CollectionInvalid:
        # created concurrently between the check and the create
        raise DuplicateError("Collection already exists")

    if initial_documents:
        await db[physical.name].insert_many([dict(doc) for doc in initial_documents])

    now = datetime.now(timezone.utc)
    await db[TENANT_METADATA_COLLECTION].update_one(
        {"orgId": physical.tenant_id},
        {
            "$addToSet": {"collections": physical.logical_name},
            "$set": {"updatedAt": now},
            "$setOnInsert": {"createdAt": now},
        },
        upsert=True
    )

    logger.info(f"Created collection {physical} with {len(initial_documents or [])} initial documents")
    return physical


async def delete_collection(db, tenant_id: str, logical_name: str) -> bool:
    """
    Drop a tenant collection. Dropping a collection that does not exist is
    not an error.

    Returns:
        True
    """
    physical = resolve_physical_name(tenant_id, logical_name)

    await db.drop_collection(physical.name)
    await db[TENANT_METADATA_COLLECTION].update_one(
        {"orgId": physical.tenant_id},
        {
            "$pull": {"collections": physical.logical_name},
            "$set": {"updatedAt": datetime.now(timezone.utc)},
        }
    )

    logger.info(f"Dropped collection {physical}")
    return True


async def get_tenant_metadata(db, tenant_id: str) -> TenantMetadata:
    """Read the tenant's metadata record, or an empty one if none exists."""
    tenant_id = validate_tenant_id(tenant_id)
    record = await db[TENANT_METADATA_COLLECTION].find_one({"orgId": tenant_id})
    if not record:
        return TenantMetadata(org_id=tenant_id)
    return TenantMetadata(org_id=tenant_id, collections=list(record.get("collections") or []))
