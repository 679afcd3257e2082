"""MongoDB query service.

Turns raw request parameters into a bounded query plan and runs it against a
single tenant collection. The page read and the total count are two separate
round-trips, so under concurrent writes the total is approximate.
"""
import asyncio
import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Tuple

import pymongo

from taskflow_admin.config.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from taskflow_admin.services.mongodb.tenant_namespace import PhysicalCollectionName
from taskflow_admin.utils.bson_helpers import is_object_id_hex, normalize_document_id, parse_bson_to_json

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_SORT = {"_id": pymongo.DESCENDING}
# skip is sent as a BSON int64
MAX_SKIP = 2 ** 63 - 1


@dataclass
class QueryPlan:
    """A bounded find: pagination, sort spec and filter predicate."""
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_SIZE
    sort: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_SORT))
    filter: Dict[str, Any] = field(default_factory=dict)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def sort_list(self) -> List[Tuple[str, Any]]:
        """Sort spec as the (field, direction) pairs the driver expects."""
        return list(self.sort.items())


def serialize_mongo_doc(doc):
    """
    Serialize MongoDB document to JSON-compatible format.
    Handles BSON types like ObjectId and datetime.
    """
    return parse_bson_to_json(doc)


def _coerce_positive_int(value: Any, default: int) -> int:
    """Coerce a page/limit parameter, falling back to the default if unusable."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
    try:
        number = int(value)
    except (TypeError, ValueError):
        # fractional input is truncated: "2.5" -> 2
        try:
            number = float(value)
        except (TypeError, ValueError):
            return default
        if not math.isfinite(number):
            return default
        number = int(number)
    return number if number >= 1 else default


def _is_sort_direction(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value in (pymongo.ASCENDING, pymongo.DESCENDING)
    return isinstance(value, Mapping) and "$meta" in value


def _parse_structured(raw: Any, param_name: str) -> Optional[Dict[str, Any]]:
    """
    Parse a raw sort/filter parameter.

    Returns None when the value is absent or malformed; malformed input is
    treated the same as no input at all.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, Mapping):
        return dict(raw)
    if not isinstance(raw, str):
        logger.debug(f"Ignoring {param_name} parameter of type {type(raw).__name__}")
        return None

    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.debug(f"Ignoring malformed {param_name} parameter: {raw!r}")
        return None

    if not isinstance(parsed, dict):
        logger.debug(f"Ignoring non-object {param_name} parameter: {raw!r}")
        return None
    return parsed


def resolve_sort(params: Mapping) -> Dict[str, Any]:
    """
    Resolve the sort spec.

    Precedence: sortBy + sortOrder, then a raw JSON ``sort`` object, then
    newest-first by ``_id`` so paging is deterministic.
    """
    sort_by = params.get("sortBy")
    sort_order = params.get("sortOrder")
    if sort_by and sort_order:
        direction = pymongo.ASCENDING if str(sort_order).lower() == "asc" else pymongo.DESCENDING
        return {str(sort_by): direction}

    raw_sort = _parse_structured(params.get("sort"), "sort")
    if raw_sort and all(_is_sort_direction(v) for v in raw_sort.values()):
        return raw_sort
    if raw_sort:
        logger.debug(f"Ignoring sort parameter with invalid directions: {raw_sort!r}")

    return dict(DEFAULT_SORT)


def resolve_filter(params: Mapping) -> Dict[str, Any]:
    """
    Resolve the filter predicate.

    Precedence: a full-text ``search`` term, then a raw JSON ``filter``
    object, then match-all.
    """
    search = params.get("search")
    if isinstance(search, str) and search.strip():
        return {"$text": {"$search": search.strip()}}

    raw_filter = _parse_structured(params.get("filter"), "filter")
    if raw_filter is not None:
        return raw_filter

    return {}


def build_query(params: Optional[Mapping] = None, default_limit: int = DEFAULT_PAGE_SIZE) -> QueryPlan:
    """
    Build a bounded query plan from raw request parameters.

    Args:
        params: Raw parameters (page, limit, sortBy, sortOrder, sort, filter, search)
        default_limit: Page size used when limit is absent or unusable

    Returns:
        QueryPlan with skip, limit, sort and filter resolved
    """
    params = params or {}
    page = _coerce_positive_int(params.get("page"), DEFAULT_PAGE)
    limit = min(_coerce_positive_int(params.get("limit"), default_limit), MAX_PAGE_SIZE)
    if (page - 1) * limit > MAX_SKIP:
        logger.debug(f"Ignoring out-of-range page parameter: {page}")
        page = DEFAULT_PAGE

    return QueryPlan(
        page=page,
        limit=limit,
        sort=resolve_sort(params),
        filter=resolve_filter(params)
    )


def parse_query_object_ids(query: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse string ObjectIds in a query document into actual ObjectId objects.
    This allows clients to send ObjectIds as strings in their queries.

    Args:
        query: MongoDB query document

    Returns:
        Query with string ObjectIds converted to ObjectId objects
    """
    if not query:
        return {}

    result = {}

    for key, value in query.items():
        # Handle ObjectId in _id field
        if key == '_id' and is_object_id_hex(value):
            result[key] = normalize_document_id(value)

        # Handle operator expressions like $in, $nin, etc.
        elif isinstance(value, dict) and value and all(k.startswith('$') for k in value.keys()):
            result[key] = {}
            for op, op_value in value.items():
                if key == '_id' and op in ('$in', '$nin') and isinstance(op_value, list):
                    result[key][op] = [normalize_document_id(v) for v in op_value]
                elif key == '_id' and op in ('$eq', '$ne'):
                    result[key][op] = normalize_document_id(op_value)
                else:
                    result[key][op] = op_value

        # Logical operators hold lists of sub-queries
        elif key in ('$and', '$or', '$nor') and isinstance(value, list):
            result[key] = [
                parse_query_object_ids(item) if isinstance(item, dict) else item
                for item in value
            ]

        # Regular field
        else:
            result[key] = value

    return result


async def _read_cursor(cursor) -> List[Dict[str, Any]]:
    documents = []
    async for doc in cursor:
        documents.append(serialize_mongo_doc(doc))
    return documents


async def find_page(db, physical: PhysicalCollectionName, plan: QueryPlan) -> Dict[str, Any]:
    """
    Read one page of a tenant collection plus the total matching count.

    Args:
        db: MongoDB database client
        physical: Collection to query
        plan: Query plan from build_query

    Returns:
        Dict with the serialized documents and pagination metadata
    """
    collection = db[physical.name]
    filter_query = parse_query_object_ids(plan.filter)

    cursor = (
        collection.find(filter_query)
        .sort(plan.sort_list())
        .skip(plan.skip)
        .limit(plan.limit)
    )

    documents, total = await asyncio.gather(
        _read_cursor(cursor),
        collection.count_documents(filter_query)
    )

    return {
        "data": documents,
        "pagination": {
            "page": plan.page,
            "limit": plan.limit,
            "total": total,
            "pages": math.ceil(total / plan.limit) if plan.limit else 0,
        },
    }


async def find_document(db, physical: PhysicalCollectionName, document_id: Any) -> Optional[Dict[str, Any]]:
    """
    Fetch a single document by id.

    Returns:
        The serialized document, or None when no document has that id
    """
    doc = await db[physical.name].find_one({"_id": normalize_document_id(document_id)})
    if doc is None:
        return None
    return serialize_mongo_doc(doc)
