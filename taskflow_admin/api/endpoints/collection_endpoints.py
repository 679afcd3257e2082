"""Tenant collection endpoints."""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from taskflow_admin.api.dependencies import get_physical_collection, get_tenant_id
from taskflow_admin.schemas.request.collection_request import CreateCollectionRequest
from taskflow_admin.schemas.response.collection_response import (
    CollectionListResponse,
    CollectionSchema,
    CreateCollectionResponse,
    DeleteCollectionResponse,
)
from taskflow_admin.services.mongodb.catalog_service import (
    create_collection,
    delete_collection,
    get_tenant_metadata,
    list_tenant_collections,
)
from taskflow_admin.services.mongodb.client import get_database
from taskflow_admin.services.mongodb.schema_service import infer_collection_schema
from taskflow_admin.services.mongodb.tenant_namespace import PhysicalCollectionName

router = APIRouter()


@router.get("", response_model=CollectionListResponse)
async def list_collections(
    include_schema: bool = Query(False, description="Infer a schema for every collection"),
    tenant_id: str = Depends(get_tenant_id),
    db=Depends(get_database)
):
    """
    List the organization's collections with document count and storage size.

    - include_schema: also sample each collection and return its inferred schema
    """
    collections = await list_tenant_collections(db, tenant_id, include_schema=include_schema)
    metadata = await get_tenant_metadata(db, tenant_id)

    return CollectionListResponse(collections=collections, metadata=metadata)


@router.post("", response_model=CreateCollectionResponse)
async def create_tenant_collection(
    request: CreateCollectionRequest,
    tenant_id: str = Depends(get_tenant_id),
    db=Depends(get_database)
):
    """Create a new collection for the organization."""
    physical = await create_collection(db, tenant_id, request.collection_name, request.initial_data)

    return CreateCollectionResponse(
        collection_name=physical.name,
        message=f"Collection {physical.logical_name} created successfully"
    )


@router.delete("/{collection}", response_model=DeleteCollectionResponse)
async def delete_tenant_collection(
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Delete one of the organization's collections. Succeeds if it is already gone."""
    await delete_collection(db, physical.tenant_id, physical.logical_name)

    return DeleteCollectionResponse(message=f"Collection {physical.logical_name} deleted successfully")


@router.get("/{collection}/schema", response_model=CollectionSchema)
async def get_collection_schema(
    sample_size: Optional[int] = Query(None, ge=1, le=1000, description="Number of documents to sample"),
    physical: PhysicalCollectionName = Depends(get_physical_collection),
    db=Depends(get_database)
):
    """Infer the schema of a collection by sampling documents."""
    return await infer_collection_schema(db, physical, sample_size)
