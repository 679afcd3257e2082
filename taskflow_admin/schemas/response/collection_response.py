"""Collection admin response schemas."""
from pydantic import BaseModel, Field, field_serializer
from typing import Dict, Any, List, Optional

from taskflow_admin.utils.bson_helpers import parse_bson_to_json


class FieldSchema(BaseModel):
    """Inferred type profile of one field across a document sample."""
    field_name: str
    types: List[str] = Field(default_factory=list, description="Observed type tags, in first-seen order")
    nullable: bool = False
    examples: List[Any] = Field(default_factory=list, description="Up to 3 non-null sample values")

    @field_serializer("examples")
    def serialize_examples(self, examples: List[Any]) -> List[Any]:
        return parse_bson_to_json(examples)


class CollectionSchema(BaseModel):
    """Inferred schema of a tenant collection."""
    collection_name: str
    fields: Dict[str, FieldSchema]
    sample_size: int
    documents_sampled: int


class CollectionSummary(BaseModel):
    """A tenant collection with live document count and storage size."""
    name: str = Field(..., description="Logical collection name")
    full_name: str = Field(..., description="Physical collection name")
    count: int = 0
    size: int = 0
    collection_schema: Optional[Dict[str, FieldSchema]] = Field(None, alias="schema")

    model_config = {"populate_by_name": True}


class TenantMetadata(BaseModel):
    """Denormalized list of collections a tenant has created."""
    org_id: str
    collections: List[str] = Field(default_factory=list)


class CollectionListResponse(BaseModel):
    """Response schema for listing tenant collections."""
    collections: List[CollectionSummary]
    metadata: TenantMetadata


class CreateCollectionResponse(BaseModel):
    """Response schema for collection creation."""
    success: bool = True
    collection_name: str
    message: str


class DeleteCollectionResponse(BaseModel):
    """Response schema for collection deletion."""
    success: bool = True
    message: str


class Pagination(BaseModel):
    """Pagination metadata for a page of documents."""
    page: int
    limit: int
    total: int
    pages: int


class DocumentPageResponse(BaseModel):
    """Response schema for a paginated document read."""
    data: List[Dict[str, Any]]
    pagination: Pagination


class DocumentResponse(BaseModel):
    """Response schema for a single document read."""
    document: Dict[str, Any]


class InsertDocumentResponse(BaseModel):
    """Response schema for a document insert."""
    success: bool = True
    id: Any


class UpdateResultResponse(BaseModel):
    """Response schema for single and bulk updates."""
    success: bool = True
    matched_count: Optional[int] = None
    modified_count: Optional[int] = None


class DeleteResultResponse(BaseModel):
    """Response schema for single and bulk deletes."""
    success: bool = True
    deleted_count: int


class ImportResponse(BaseModel):
    """Response schema for a bulk import."""
    success: bool = True
    inserted_count: int
    inserted_ids: List[Any]
    message: str


class AggregateResponse(BaseModel):
    """Response schema for an aggregation pipeline run."""
    results: List[Dict[str, Any]]
    count: int
