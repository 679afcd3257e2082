"""MongoDB mutation service.

Single-document writes match on _id only. The bulk variants are called only
from the explicit bulk routes and refuse an empty filter.
"""
import logging
from typing import Dict, List, Any

from taskflow_admin.services.errors import InvalidPayloadError
from taskflow_admin.services.mongodb.query_service import parse_query_object_ids
from taskflow_admin.services.mongodb.tenant_namespace import PhysicalCollectionName
from taskflow_admin.utils.bson_helpers import normalize_document_id

logger = logging.getLogger(__name__)

ID_FIELD = "_id"


def _strip_id(patch: Dict[str, Any]) -> Dict[str, Any]:
    """Drop the identifier from an update payload; ids are immutable."""
    update = {k: v for k, v in (patch or {}).items() if k != ID_FIELD}
    if not update:
        raise InvalidPayloadError("Update payload is empty")
    return update


def _require_bulk_filter(filter_query: Dict[str, Any]) -> Dict[str, Any]:
    if not filter_query or not isinstance(filter_query, dict):
        raise InvalidPayloadError("Bulk operations require a non-empty filter")
    return parse_query_object_ids(filter_query)


async def insert_document(db, physical: PhysicalCollectionName, document: Dict[str, Any]) -> Any:
    """
    Insert one document.

    Returns:
        The id generated (or supplied) for the document
    """
    if not isinstance(document, dict):
        raise InvalidPayloadError("Document must be an object")

    # insert_one adds _id to the dict it is given
    result = await db[physical.name].insert_one(dict(document))
    return result.inserted_id


async def update_document(db, physical: PhysicalCollectionName, document_id: Any, patch: Dict[str, Any]) -> int:
    """
    Apply a patch to the document with the given id.

    Args:
        db: MongoDB database client
        physical: Collection to update
        document_id: Document id, canonical ObjectId hex or an opaque value
        patch: Fields to set; any _id key is ignored

    Returns:
        Number of documents matched (0 or 1)
    """
    update = _strip_id(patch)
    result = await db[physical.name].update_one(
        {ID_FIELD: normalize_document_id(document_id)},
        {"$set": update}
    )
    return result.matched_count


async def update_documents(db, physical: PhysicalCollectionName, filter_query: Dict[str, Any], patch: Dict[str, Any]) -> int:
    """
    Apply a patch to every document matching a filter.

    Returns:
        Number of documents modified
    """
    filter_query = _require_bulk_filter(filter_query)
    update = _strip_id(patch)
    result = await db[physical.name].update_many(filter_query, {"$set": update})
    logger.info(f"Bulk update on {physical}: matched={result.matched_count} modified={result.modified_count}")
    return result.modified_count


async def delete_document(db, physical: PhysicalCollectionName, document_id: Any) -> int:
    """Delete the document with the given id. Returns the deleted count (0 or 1)."""
    result = await db[physical.name].delete_one({ID_FIELD: normalize_document_id(document_id)})
    return result.deleted_count


async def delete_documents(db, physical: PhysicalCollectionName, filter_query: Dict[str, Any]) -> int:
    """Delete every document matching a filter. Returns the deleted count."""
    filter_query = _require_bulk_filter(filter_query)
    result = await db[physical.name].delete_many(filter_query)
    logger.info(f"Bulk delete on {physical}: deleted={result.deleted_count}")
    return result.deleted_count


async def import_documents(db, physical: PhysicalCollectionName, documents: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Insert a batch of documents.

    Returns:
        Dict with inserted_count and inserted_ids
    """
    if not documents or not isinstance(documents, list):
        raise InvalidPayloadError("Data array is required and must not be empty")
    if not all(isinstance(doc, dict) for doc in documents):
        raise InvalidPayloadError("Every imported item must be an object")

    result = await db[physical.name].insert_many([dict(doc) for doc in documents])
    inserted_ids = list(result.inserted_ids)
    logger.info(f"Imported {len(inserted_ids)} documents into {physical}")

    return {
        "inserted_count": len(inserted_ids),
        "inserted_ids": inserted_ids,
    }
