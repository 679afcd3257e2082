"""Aggregation over a single tenant collection, used by KPI and chart blocks."""
import logging
from typing import Dict, List, Any, Optional

from taskflow_admin.config.settings import MAX_PAGE_SIZE
from taskflow_admin.services.errors import InvalidPayloadError
from taskflow_admin.services.mongodb.query_service import serialize_mongo_doc
from taskflow_admin.services.mongodb.tenant_namespace import PhysicalCollectionName

logger = logging.getLogger(__name__)

# Stages that read from or write to another collection
CROSS_COLLECTION_STAGES = {"$lookup", "$graphLookup", "$unionWith", "$out", "$merge"}


def validate_pipeline(pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reject pipelines that could reach outside the tenant's collection."""
    if not isinstance(pipeline, list):
        raise InvalidPayloadError("Pipeline must be an array of aggregation stages")

    for stage in pipeline:
        if not isinstance(stage, dict) or len(stage) != 1:
            raise InvalidPayloadError("Each pipeline stage must be an object with a single operator")
        operator = next(iter(stage))
        if operator in CROSS_COLLECTION_STAGES:
            raise InvalidPayloadError(f"Pipeline stage {operator} is not allowed")
        # $facet nests whole sub-pipelines
        if operator == "$facet" and isinstance(stage[operator], dict):
            for sub_pipeline in stage[operator].values():
                validate_pipeline(sub_pipeline)

    return pipeline


async def aggregate_documents(
    db,
    physical: PhysicalCollectionName,
    pipeline: List[Dict[str, Any]],
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Run an aggregation pipeline against one tenant collection.

    Args:
        db: MongoDB database client
        physical: Collection to aggregate
        pipeline: Aggregation stages
        limit: Maximum number of results, capped at MAX_PAGE_SIZE

    Returns:
        Serialized aggregation results
    """
    stages = list(validate_pipeline(pipeline))
    stages.append({"$limit": min(limit or MAX_PAGE_SIZE, MAX_PAGE_SIZE)})

    logger.debug(f"Aggregating {physical} with {len(stages)} stages")

    results = []
    async for doc in db[physical.name].aggregate(stages):
        results.append(serialize_mongo_doc(doc))
    return results
