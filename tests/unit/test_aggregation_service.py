"""Tests for tenant-scoped aggregation."""
import pytest

from taskflow_admin.services.errors import InvalidPayloadError
from taskflow_admin.services.mongodb.aggregation_service import aggregate_documents, validate_pipeline


async def test_aggregate_counts(fake_db, tasks):
    await fake_db[tasks.name].insert_many([{"done": True}, {"done": True}, {"done": False}])

    results = await aggregate_documents(fake_db, tasks, [{"$match": {"done": True}}, {"$count": "total"}])

    assert results == [{"total": 2}]


async def test_aggregate_limit(fake_db, tasks):
    await fake_db[tasks.name].insert_many([{"n": i} for i in range(5)])

    results = await aggregate_documents(fake_db, tasks, [{"$match": {}}], limit=2)

    assert len(results) == 2


@pytest.mark.parametrize("stage", [
    {"$lookup": {"from": "org2_secrets", "localField": "a", "foreignField": "b", "as": "c"}},
    {"$unionWith": "org2_tasks"},
    {"$out": "org2_tasks"},
    {"$merge": {"into": "org2_tasks"}},
    {"$graphLookup": {"from": "org2_tasks"}},
    {"$facet": {"leak": [{"$lookup": {"from": "org2_tasks"}}]}},
])
def test_cross_collection_stages_rejected(stage):
    with pytest.raises(InvalidPayloadError):
        validate_pipeline([{"$match": {}}, stage])


@pytest.mark.parametrize("pipeline", [{"$match": {}}, [{"$match": {}, "$limit": 1}], ["$match"]])
def test_malformed_pipeline_rejected(pipeline):
    with pytest.raises(InvalidPayloadError):
        validate_pipeline(pipeline)
