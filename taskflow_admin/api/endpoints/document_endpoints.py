"""Document endpoints for a tenant collection."""
import json
from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import StreamingResponse
from typing import Any, Dict, Optional

from taskflow_admin.api.dependencies import get_physical_collection
from taskflow_admin.config.settings import DEFAULT_PAGE_SIZE, TABLE_PAGE_SIZE, EXPORT_BATCH_SIZE
from taskflow_admin.schemas.request.collection_request import AggregateRequest, BulkUpdateRequest, ImportRequest
from taskflow_admin.schemas.response.collection_response import (
    AggregateResponse,
    DeleteResultResponse,
    DocumentPageResponse,
    DocumentResponse,
    ImportResponse,
    InsertDocumentResponse,
    UpdateResultResponse,
)
from taskflow_admin.services.errors import InvalidPayloadError, NotFoundError
from taskflow_admin.services.mongodb.aggregation_service import aggregate_documents
from taskflow_admin.services.mongodb.client import get_database
from taskflow_admin.services.mongodb.mutation_service import (
    delete_document,
    delete_documents,
    import_documents,
    insert_document,
    update_document,
    update_documents,
)
from taskflow_admin.services.mongodb.query_service import (
    build_query,
    find_document,
    find_page,
    parse_query_object_ids,
)
from taskflow_admin.services.mongodb.tenant_namespace import PhysicalCollectionName
from taskflow_admin.services.streaming.sse_service import (
    SSE_HEADERS,
    document_generator,
    format_sse_event,
    stream_mongo_results,
)
from taskflow_admin.utils.bson_helpers import parse_bson_to_json

router = APIRouter()


@router.get("/{collection}/documents", response_model=DocumentPageResponse)
async def get_documents(
    request: Request,
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """
    Get a page of documents.

    - page, limit: pagination (defaults 1 and 20)
    - sortBy, sortOrder: single-field sort ("asc" or "desc")
    - sort: raw JSON sort object, used when sortBy/sortOrder are absent
    - search: full-text search term (needs a text index)
    - filter: raw JSON filter object, used when search is absent

    Malformed sort and filter values are ignored.
    """
    plan = build_query(request.query_params, default_limit=DEFAULT_PAGE_SIZE)
    return await find_page(db, physical, plan)


@router.get("/{collection}/data", response_model=DocumentPageResponse)
async def get_table_data(
    request: Request,
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Same as the documents listing, with the table view's page size of 25."""
    plan = build_query(request.query_params, default_limit=TABLE_PAGE_SIZE)
    return await find_page(db, physical, plan)


@router.get("/{collection}/documents/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Get one document by id."""
    document = await find_document(db, physical, document_id)
    if document is None:
        raise NotFoundError("Document not found")
    return DocumentResponse(document=document)


@router.post("/{collection}/documents", response_model=InsertDocumentResponse)
async def create_document(
    document: Dict[str, Any] = Body(...),
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Insert a document."""
    inserted_id = await insert_document(db, physical, document)
    return InsertDocumentResponse(id=parse_bson_to_json(inserted_id))


@router.put("/{collection}/documents/{document_id}", response_model=UpdateResultResponse)
async def update_single_document(
    document_id: str,
    patch: Dict[str, Any] = Body(...),
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Update one document. Any _id in the body is ignored."""
    matched_count = await update_document(db, physical, document_id, patch)
    if matched_count == 0:
        raise NotFoundError("Document not found")
    return UpdateResultResponse(matched_count=matched_count)


@router.put("/{collection}/documents", response_model=UpdateResultResponse)
async def bulk_update_documents(
    request: BulkUpdateRequest,
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Update every document matching a filter. The body must set bulk to true."""
    if not request.bulk:
        raise InvalidPayloadError("Bulk updates require bulk=true and a filter")

    modified_count = await update_documents(db, physical, request.filter, request.update)
    return UpdateResultResponse(modified_count=modified_count)


@router.delete("/{collection}/documents/{document_id}", response_model=DeleteResultResponse)
async def delete_single_document(
    document_id: str,
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Delete one document."""
    deleted_count = await delete_document(db, physical, document_id)
    if deleted_count == 0:
        raise NotFoundError("Document not found")
    return DeleteResultResponse(deleted_count=deleted_count)


@router.delete("/{collection}/documents", response_model=DeleteResultResponse)
async def bulk_delete_documents(
    bulk: bool = Query(False, description="Must be true to run a bulk delete"),
    filter: Optional[str] = Query(None, description="JSON filter selecting the documents to delete"),
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Delete every document matching a filter."""
    if not bulk or not filter:
        raise InvalidPayloadError("Missing id or filter parameter")

    try:
        filter_query = json.loads(filter)
    except ValueError:
        raise InvalidPayloadError("Filter must be valid JSON")

    deleted_count = await delete_documents(db, physical, filter_query)
    return DeleteResultResponse(deleted_count=deleted_count)


@router.post("/{collection}/import", response_model=ImportResponse)
async def import_collection_documents(
    request: ImportRequest,
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Import an array of documents into a collection."""
    result = await import_documents(db, physical, request.data)

    return ImportResponse(
        inserted_count=result["inserted_count"],
        inserted_ids=parse_bson_to_json(result["inserted_ids"]),
        message=f"Successfully imported {result['inserted_count']} documents"
    )


@router.post("/{collection}/aggregate", response_model=AggregateResponse)
async def aggregate_collection(
    request: AggregateRequest,
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Run an aggregation pipeline against the collection (KPI and chart blocks)."""
    results = await aggregate_documents(db, physical, request.pipeline, request.limit)
    return AggregateResponse(results=results, count=len(results))


@router.get("/{collection}/export")
async def export_collection(
    request: Request,
    batch_size: int = Query(EXPORT_BATCH_SIZE, ge=1, le=1000),
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """
    Stream every document of a collection using Server-Sent Events.

    Accepts the same sort, search and filter parameters as the documents
    listing; pagination parameters are ignored.
    """
    plan = build_query(request.query_params)
    total_count = await db[physical.name].count_documents(parse_query_object_ids(plan.filter))

    async def event_generator():
        metadata = {
            "status": "started",
            "total_count": total_count,
            "collection": physical.logical_name
        }
        yield format_sse_event(data=metadata, event="metadata")

        async for event_text in stream_mongo_results(document_generator(db, physical, plan), batch_size):
            yield event_text

    return StreamingResponse(
        content=event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS
    )
