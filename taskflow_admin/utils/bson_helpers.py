"""BSON helper utilities."""
import json
import re
from decimal import Decimal
from typing import Any

from bson import ObjectId
from datetime import datetime, date
import bson

OBJECT_ID_HEX = re.compile(r"^[0-9a-fA-F]{24}$")


class BSONEncoder(json.JSONEncoder):
    """JSON encoder that handles BSON types like ObjectId and datetime."""
    def default(self, obj):
        if isinstance(obj, ObjectId):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, bson.Binary):
            return str(obj)
        if isinstance(obj, bson.Decimal128):
            return float(obj.to_decimal())
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, bson.Int64):
            return int(obj)
        if isinstance(obj, bson.MaxKey):
            return "MaxKey"
        if isinstance(obj, bson.MinKey):
            return "MinKey"
        if isinstance(obj, bson.Timestamp):
            return {"t": obj.time, "i": obj.inc}
        if isinstance(obj, bson.Regex):
            return obj.pattern
        return super().default(obj)


def parse_bson_to_json(bson_data: Any) -> Any:
    """Convert BSON data to JSON-serializable format."""
    return json.loads(json.dumps(bson_data, cls=BSONEncoder))


def is_object_id_hex(value: Any) -> bool:
    """True for the canonical 24-hex-character ObjectId string form."""
    return isinstance(value, str) and bool(OBJECT_ID_HEX.match(value))


def normalize_document_id(document_id: Any) -> Any:
    """
    Convert a canonical ObjectId string to an ObjectId.

    Anything else is returned unchanged and matched as an opaque value, since
    imported collections often carry string or numeric ids.
    """
    if is_object_id_hex(document_id):
        return ObjectId(document_id)
    return document_id
