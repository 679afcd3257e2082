"""Schema inference for tenant collections.

Each field of a bounded document sample gets the union of its observed type
tags. Nullability and example values are tracked alongside.
"""
from collections.abc import Mapping
from decimal import Decimal
from typing import Dict, List, Any, Iterable, Optional
from datetime import datetime, date

import bson
from bson import ObjectId

from taskflow_admin.config.settings import MONGODB_SCHEMA_SAMPLE_SIZE
from taskflow_admin.schemas.response.collection_response import CollectionSchema, FieldSchema
from taskflow_admin.services.mongodb.tenant_namespace import PhysicalCollectionName

MAX_EXAMPLES = 3


class TypeTag:
    """Structural type categories reported by schema inference."""
    NULL = "null"
    UNDEFINED = "undefined"
    ARRAY = "array"
    DATE = "date"
    OBJECT_ID = "object-id"
    OBJECT = "object"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


class _Missing:
    """Marker for a field with no value at all (BSON undefined)."""

    def __repr__(self):
        return "MISSING"


MISSING = _Missing()

NUMBER_TYPES = (int, float, Decimal, bson.Decimal128, bson.Int64)


def get_type_tag(value: Any) -> str:
    """
    Get the type tag for a document value.

    Args:
        value: The value to get the type for

    Returns:
        One of the TypeTag values, or the lower-cased Python type name for
        BSON types outside that set (binary, regex, ...)
    """
    if value is None:
        return TypeTag.NULL
    elif value is MISSING:
        return TypeTag.UNDEFINED
    elif isinstance(value, (list, tuple)):
        return TypeTag.ARRAY
    elif isinstance(value, (datetime, date)):
        return TypeTag.DATE
    elif isinstance(value, ObjectId):
        return TypeTag.OBJECT_ID
    elif isinstance(value, Mapping):
        return TypeTag.OBJECT
    elif isinstance(value, str):
        return TypeTag.STRING
    # bool is an int subclass, so it has to come first
    elif isinstance(value, bool):
        return TypeTag.BOOLEAN
    elif isinstance(value, NUMBER_TYPES):
        return TypeTag.NUMBER
    else:
        return type(value).__name__.lower()


def infer_schema(samples: Iterable[Mapping]) -> Dict[str, FieldSchema]:
    """
    Infer a field-level schema from a sample of documents.

    Fields are the union of every key seen in the sample. A field's types are
    every tag observed for it, and it is nullable once any document holds it
    as null. The first three non-null values are kept as examples.

    Args:
        samples: Documents already fetched from the store

    Returns:
        Dict mapping field names to their FieldSchema, in first-seen order
    """
    fields: Dict[str, Dict[str, Any]] = {}

    for doc in samples:
        for field_name, value in doc.items():
            type_tag = get_type_tag(value)

            field = fields.get(field_name)
            if field is None:
                field = fields[field_name] = {"types": [], "nullable": False, "examples": []}

            if type_tag not in field["types"]:
                field["types"].append(type_tag)

            if value is None or value is MISSING:
                field["nullable"] = True
            elif len(field["examples"]) < MAX_EXAMPLES:
                field["examples"].append(value)

    return {
        field_name: FieldSchema(field_name=field_name, **info)
        for field_name, info in fields.items()
    }


async def infer_collection_schema(
    db,
    physical: PhysicalCollectionName,
    sample_size: Optional[int] = None
) -> CollectionSchema:
    """
    Infer the schema of a tenant collection by sampling documents.

    Args:
        db: MongoDB database client
        physical: Collection to infer schema for
        sample_size: Maximum number of documents to sample

    Returns:
        CollectionSchema with the logical collection name and inferred fields
    """
    sample_size = sample_size or MONGODB_SCHEMA_SAMPLE_SIZE
    collection = db[physical.name]

    samples: List[Dict[str, Any]] = []
    async for doc in collection.find().limit(sample_size):
        samples.append(doc)

    return CollectionSchema(
        collection_name=physical.logical_name,
        fields=infer_schema(samples),
        sample_size=sample_size,
        documents_sampled=len(samples)
    )
