# app/routes/driver.py
import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends
from app.database import ConnectionManager, get_connection_manager
from app.errors import (
    DriverNotFound,
    DuplicatePlateNumber,
    InvalidDriverId,
    InvalidRecord,
    StoreError,
    create_error_response,
)
from app.schemas.driver import DriverCreate, DriverUpdate, DriverOut
from app.store import DriverStore

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_EXAMPLES = {
    DriverNotFound: (404, "Please ensure you're using a valid driver ID"),
    InvalidDriverId: (400, "Expected format: '507f1f77bcf86cd799439011' (24 characters, hexadecimal)"),
    DuplicatePlateNumber: (400, "Please provide a unique plate number"),
    InvalidRecord: (
        400,
        "Example: {'driverName': 'John Doe', 'plateNumber': 'B 1234 XYZ', "
        "'kirExpiration': '2025-03-01T00:00:00.000Z', 'busYear': 2019}",
    ),
}


def get_driver_store(connections: ConnectionManager = Depends(get_connection_manager)) -> DriverStore:
    return DriverStore(connections)


def to_http_exception(error: StoreError) -> HTTPException:
    """Map a store failure to a response; internal causes are logged, not returned."""
    if type(error) in ERROR_EXAMPLES:
        status_code, example = ERROR_EXAMPLES[type(error)]
        return HTTPException(
            status_code=status_code,
            detail=create_error_response(message=error.message, details=error.details, example=example),
        )

    logger.error("Driver store failure: %s", error.details, exc_info=error)
    return HTTPException(
        status_code=500,
        detail=create_error_response(
            message="Internal server error",
            example="Please try again or contact support if the problem persists"
        )
    )


@router.get("/drivers", response_model=List[DriverOut])
async def get_drivers(query: Optional[str] = None, store: DriverStore = Depends(get_driver_store)):
    try:
        return await store.list(query)
    except StoreError as e:
        raise to_http_exception(e) from e


@router.post("/drivers", response_model=DriverOut, status_code=201)
async def create_driver(driver: DriverCreate, store: DriverStore = Depends(get_driver_store)):
    try:
        return await store.create(driver)
    except StoreError as e:
        raise to_http_exception(e) from e


@router.get("/drivers/{driver_id}", response_model=DriverOut)
async def get_driver(driver_id: str, store: DriverStore = Depends(get_driver_store)):
    try:
        return await store.get_by_id(driver_id)
    except StoreError as e:
        raise to_http_exception(e) from e


@router.put("/drivers/{driver_id}", response_model=DriverOut)
async def update_driver(driver_id: str, driver: DriverUpdate, store: DriverStore = Depends(get_driver_store)):
    try:
        return await store.update(driver_id, driver)
    except StoreError as e:
        raise to_http_exception(e) from e


@router.delete("/drivers/{driver_id}")
async def delete_driver(driver_id: str, store: DriverStore = Depends(get_driver_store)):
    try:
        return await store.delete(driver_id)
    except StoreError as e:
        raise to_http_exception(e) from e
