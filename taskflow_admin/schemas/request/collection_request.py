"""Collection admin request schemas."""
from pydantic import BaseModel, Field
from typing import Dict, Any, Optional, List


class CreateCollectionRequest(BaseModel):
    """Request schema for creating a tenant collection."""
    # checked by validate_collection_name
    collection_name: Any = Field(None, alias="collectionName", description="Logical collection name")
    initial_data: Optional[List[Dict[str, Any]]] = Field(
        None, alias="initialData", description="Documents to insert after creation"
    )

    model_config = {"populate_by_name": True}


class BulkUpdateRequest(BaseModel):
    """Request schema for a filtered bulk update."""
    bulk: bool = Field(False, description="Must be true to run a bulk update")
    filter: Optional[Dict[str, Any]] = Field(None, description="MongoDB filter query document")
    update: Dict[str, Any] = Field(default_factory=dict, description="Fields to set on every match")


class ImportRequest(BaseModel):
    """Request schema for importing documents into a collection."""
    data: List[Dict[str, Any]] = Field(default_factory=list, description="Documents to insert")


class AggregateRequest(BaseModel):
    """Request schema for running an aggregation pipeline."""
    pipeline: List[Dict[str, Any]] = Field(default_factory=list, description="MongoDB aggregation pipeline")
    limit: Optional[int] = Field(None, ge=1, description="Maximum number of results to return")
