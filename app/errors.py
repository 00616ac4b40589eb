# app/errors.py
from typing import Any, Dict, Iterable, Optional


class StoreError(Exception):
    """Base class for driver store failures; raised as-is for unexpected database errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details if details else message


class InvalidRecord(StoreError):
    """A required field is missing or has the wrong shape."""


class DuplicatePlateNumber(StoreError):
    def __init__(self, plate_number: str):
        super().__init__(
            "Plate number already registered",
            f"Driver with plate number '{plate_number}' already exists",
        )
        self.plate_number = plate_number


class DriverNotFound(StoreError):
    def __init__(self, driver_id: str):
        super().__init__("Driver not found", f"No driver found with ID: {driver_id}")
        self.driver_id = driver_id


class InvalidDriverId(StoreError):
    def __init__(self, driver_id: str):
        super().__init__(
            "Invalid driver ID format",
            f"The provided ID '{driver_id}' is not a valid MongoDB ObjectId",
        )
        self.driver_id = driver_id


class StoreConnectionError(StoreError):
    """The database could not be reached."""


def create_error_response(
    message: str,
    details: Optional[str] = None,
    example: Optional[str] = None
) -> Dict[str, Any]:
    """Create a detailed error response"""
    response = {
        "message": message,
        "details": details if details else message
    }
    if example:
        response["example"] = example
    return response


def describe_validation_error(error, skip: Iterable[str] = ()) -> str:
    """Flatten pydantic or request validation errors into ``field: message`` pairs.

    Loc parts listed in ``skip`` are left out of the field path.
    """
    skip = set(skip)
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"] if part not in skip) or "body"
        problems.append(f"{field}: {item['msg']}")
    return "; ".join(problems)
