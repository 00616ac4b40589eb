# app/utils/object_id.py
from bson import ObjectId, errors

from app.errors import InvalidDriverId


def parse_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (errors.InvalidId, TypeError):
        raise InvalidDriverId(value)
