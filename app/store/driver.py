# app/store/driver.py
import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from app.database import DRIVERS_COLLECTION
from app.errors import (
    DriverNotFound,
    DuplicatePlateNumber,
    InvalidRecord,
    StoreConnectionError,
    StoreError,
    describe_validation_error,
)
from app.schemas.driver import DriverCreate, DriverOut, DriverUpdate
from app.utils.object_id import parse_object_id

logger = logging.getLogger(__name__)

DOCUMENT_FIELDS = ("driverName", "plateNumber", "kirExpiration", "busYear")


def to_driver_out(document: Mapping[str, Any]) -> DriverOut:
    return DriverOut(id=str(document["_id"]), **{k: v for k, v in document.items() if k != "_id"})


@contextmanager
def translate_errors():
    try:
        yield
    except DuplicateKeyError as e:
        plate_number = (e.details or {}).get("keyValue", {}).get("plateNumber", "")
        raise DuplicatePlateNumber(plate_number) from e
    except ConnectionFailure as e:
        raise StoreConnectionError("Database unavailable", str(e)) from e
    except PyMongoError as e:
        raise StoreError("Database operation failed", str(e)) from e


class DriverStore:
    """Driver records kept in the ``drivers`` collection."""

    def __init__(self, connections):
        self._connections = connections

    async def _collection(self):
        db = await self._connections.get_connection()
        return db[DRIVERS_COLLECTION]

    async def _ensure_unique_plate(self, collection, plate_number: str, exclude_id=None) -> None:
        query: Dict[str, Any] = {"plateNumber": plate_number}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if await collection.find_one(query):
            raise DuplicatePlateNumber(plate_number)

    async def list(self, query: Optional[str] = None) -> List[DriverOut]:
        collection = await self._collection()
        mongo_filter: Dict[str, Any] = {}
        if query:
            pattern = re.escape(query)
            mongo_filter = {
                "$or": [
                    {"driverName": {"$regex": pattern, "$options": "i"}},
                    {"plateNumber": {"$regex": pattern, "$options": "i"}},
                ]
            }
        with translate_errors():
            documents = await collection.find(mongo_filter).to_list(length=None)
        return [to_driver_out(document) for document in documents]

    async def get_by_id(self, driver_id: str) -> DriverOut:
        driver_oid = parse_object_id(driver_id)
        collection = await self._collection()
        with translate_errors():
            document = await collection.find_one({"_id": driver_oid})
        if not document:
            raise DriverNotFound(driver_id)
        return to_driver_out(document)

    async def create(self, fields: Union[DriverCreate, Mapping[str, Any]]) -> DriverOut:
        if not isinstance(fields, DriverCreate):
            try:
                fields = DriverCreate.model_validate(fields)
            except ValidationError as e:
                raise InvalidRecord("Invalid driver data", describe_validation_error(e)) from e

        collection = await self._collection()
        document = fields.to_document()
        with translate_errors():
            await self._ensure_unique_plate(collection, fields.plate_number)
            result = await collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info("Created driver %s (%s)", result.inserted_id, fields.plate_number)
        return to_driver_out(document)

    async def update(self, driver_id: str, fields: Union[DriverUpdate, Mapping[str, Any]]) -> DriverOut:
        driver_oid = parse_object_id(driver_id)
        collection = await self._collection()
        with translate_errors():
            existing = await collection.find_one({"_id": driver_oid})
        if not existing:
            raise DriverNotFound(driver_id)

        if not isinstance(fields, DriverUpdate):
            try:
                fields = DriverUpdate.model_validate(fields)
            except ValidationError as e:
                raise InvalidRecord("Invalid driver data", describe_validation_error(e)) from e

        changes = fields.changes()
        if not changes:
            raise InvalidRecord("Request body is empty or invalid", "Provide at least one field to update")

        merged = {k: v for k, v in existing.items() if k != "_id"}
        merged.update(changes)
        try:
            validated = DriverCreate.model_validate({k: merged.get(k) for k in DOCUMENT_FIELDS})
        except ValidationError as e:
            raise InvalidRecord("Invalid driver data", describe_validation_error(e)) from e

        document = validated.to_document()
        with translate_errors():
            if validated.plate_number != existing.get("plateNumber"):
                await self._ensure_unique_plate(collection, validated.plate_number, exclude_id=driver_oid)
            updated = await collection.find_one_and_update(
                {"_id": driver_oid},
                {"$set": document},
                return_document=ReturnDocument.AFTER,
            )
        if not updated:
            raise DriverNotFound(driver_id)
        logger.info("Updated driver %s", driver_id)
        return to_driver_out(updated)

    async def delete(self, driver_id: str) -> Dict[str, str]:
        driver_oid = parse_object_id(driver_id)
        collection = await self._collection()
        with translate_errors():
            result = await collection.delete_one({"_id": driver_oid})
        if result.deleted_count == 0:
            raise DriverNotFound(driver_id)
        logger.info("Deleted driver %s", driver_id)
        return {"message": "Driver deleted successfully", "id": driver_id}
