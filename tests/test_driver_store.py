from datetime import datetime, timezone

import pytest
from pymongo.errors import ServerSelectionTimeoutError
from unittest.mock import AsyncMock, Mock

from app.errors import (
    DriverNotFound,
    DuplicatePlateNumber,
    InvalidDriverId,
    InvalidRecord,
    StoreConnectionError,
    StoreError,
)
from app.schemas.driver import DriverCreate
from app.store import DriverStore

MISSING_ID = "507f1f77bcf86cd799439011"


def make_driver(name, plate, year=2018):
    return {
        "driverName": name,
        "plateNumber": plate,
        "kirExpiration": "2025-03-01T00:00:00.000Z",
        "busYear": year,
    }


@pytest.mark.asyncio
async def test_create_assigns_id(store, driver_payload):
    """Returns the created record with a store-assigned id."""
    created = await store.create(driver_payload)

    assert created.id
    assert created.driver_name == "Budi Santoso"
    assert created.plate_number == "B 7012 TGA"
    assert created.bus_year == 2018


@pytest.mark.asyncio
async def test_create_accepts_schema_instance(store, driver_payload):
    created = await store.create(DriverCreate.model_validate(driver_payload))

    fetched = await store.get_by_id(created.id)
    assert fetched == created


@pytest.mark.asyncio
async def test_create_duplicate_plate_fails(store, driver_payload):
    """Rejects a second record with the same plate number."""
    await store.create(driver_payload)

    with pytest.raises(DuplicatePlateNumber):
        await store.create(make_driver("Someone Else", driver_payload["plateNumber"]))


@pytest.mark.asyncio
async def test_create_unique_plate_succeeds(store, driver_payload):
    first = await store.create(driver_payload)
    second = await store.create(make_driver("Siti Rahmawati", "D 7455 AB"))

    assert first.id != second.id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "override",
    [
        {"driverName": None},
        {"driverName": "   "},
        {"plateNumber": ""},
        {"kirExpiration": "not a date"},
        {"busYear": "nineteen"},
        {"busYear": True},
        {"busYear": -5},
        {"busYear": 10**20},
        {"busYear": 2018.5},
        {"unexpected": "field"},
    ],
)
async def test_create_invalid_fields_fail(store, driver_payload, override):
    payload = {**driver_payload, **override}

    with pytest.raises(InvalidRecord):
        await store.create(payload)


@pytest.mark.asyncio
async def test_create_missing_field_fails(store, driver_payload):
    del driver_payload["busYear"]

    with pytest.raises(InvalidRecord) as exc_info:
        await store.create(driver_payload)

    assert "busYear" in exc_info.value.details


@pytest.mark.asyncio
async def test_kir_expiration_round_trip(store, driver_payload):
    """Returns the stored expiration unchanged."""
    created = await store.create(driver_payload)

    fetched = await store.get_by_id(created.id)

    assert fetched.kir_expiration == datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert fetched.model_dump(mode="json", by_alias=True)["kirExpiration"] == "2025-03-01T00:00:00.000Z"


@pytest.mark.asyncio
async def test_list_without_filter_returns_all(store):
    await store.create(make_driver("Budi Santoso", "B 7012 TGA"))
    await store.create(make_driver("Siti Rahmawati", "D 7455 AB"))

    drivers = await store.list()

    assert {d.plate_number for d in drivers} == {"B 7012 TGA", "D 7455 AB"}


@pytest.mark.asyncio
async def test_list_filters_name_or_plate_case_insensitively(store):
    await store.create(make_driver("Toyota Hartono", "B 1111 AA"))
    await store.create(make_driver("Siti Rahmawati", "TOYOTA 22"))
    await store.create(make_driver("Agus Wijaya", "L 7890 UZ"))

    drivers = await store.list("toyota")

    assert {d.driver_name for d in drivers} == {"Toyota Hartono", "Siti Rahmawati"}


@pytest.mark.asyncio
async def test_list_treats_query_as_literal_text(store):
    await store.create(make_driver("Budi Santoso", "B 7012 TGA"))

    assert await store.list(".*") == []


@pytest.mark.asyncio
async def test_get_by_id_invalid_identifier(store):
    with pytest.raises(InvalidDriverId):
        await store.get_by_id("not-an-object-id")


@pytest.mark.asyncio
async def test_get_by_id_missing(store):
    with pytest.raises(DriverNotFound):
        await store.get_by_id(MISSING_ID)


@pytest.mark.asyncio
async def test_update_merges_partial_fields(store, driver_payload):
    """Applies only the given fields and keeps the id."""
    created = await store.create(driver_payload)

    updated = await store.update(created.id, {"busYear": 2020})

    assert updated.id == created.id
    assert updated.bus_year == 2020
    assert updated.driver_name == created.driver_name
    assert updated.kir_expiration == created.kir_expiration


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"driverName": "New Name"},
        {"plateNumber": "Z 1 Z"},
        {"busYear": 2020, "kirExpiration": "2026-01-01T00:00:00.000Z"},
        {"driverName": None},
        {"unknown": 1},
    ],
)
async def test_update_missing_id_fails_for_any_fields(store, fields):
    with pytest.raises(DriverNotFound):
        await store.update(MISSING_ID, fields)


@pytest.mark.asyncio
async def test_update_duplicate_plate_fails(store):
    await store.create(make_driver("Budi Santoso", "B 7012 TGA"))
    other = await store.create(make_driver("Siti Rahmawati", "D 7455 AB"))

    with pytest.raises(DuplicatePlateNumber):
        await store.update(other.id, {"plateNumber": "B 7012 TGA"})


@pytest.mark.asyncio
async def test_update_keeping_own_plate_succeeds(store, driver_payload):
    created = await store.create(driver_payload)

    updated = await store.update(created.id, {"plateNumber": driver_payload["plateNumber"], "busYear": 2019})

    assert updated.plate_number == driver_payload["plateNumber"]


@pytest.mark.asyncio
async def test_update_rejects_null_and_empty(store, driver_payload):
    created = await store.create(driver_payload)

    with pytest.raises(InvalidRecord):
        await store.update(created.id, {"driverName": None})
    with pytest.raises(InvalidRecord):
        await store.update(created.id, {})


@pytest.mark.asyncio
async def test_delete_then_get_fails(store, driver_payload):
    created = await store.create(driver_payload)

    result = await store.delete(created.id)

    assert result["id"] == created.id
    with pytest.raises(DriverNotFound):
        await store.get_by_id(created.id)


@pytest.mark.asyncio
async def test_delete_missing(store):
    with pytest.raises(DriverNotFound):
        await store.delete(MISSING_ID)


@pytest.mark.asyncio
async def test_connection_failure_is_translated():
    collection = Mock()
    collection.find_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
    connections = Mock()
    connections.get_connection = AsyncMock(return_value={"drivers": collection})

    with pytest.raises(StoreConnectionError):
        await DriverStore(connections).get_by_id(MISSING_ID)


@pytest.mark.asyncio
async def test_connection_error_propagates_from_manager():
    connections = Mock()
    connections.get_connection = AsyncMock(side_effect=StoreConnectionError("Database unavailable"))

    with pytest.raises(StoreError):
        await DriverStore(connections).list()


@pytest.mark.asyncio
@pytest.mark.parametrize("bus_year", [True, -5, 10**20])
async def test_update_rejects_out_of_shape_bus_year(store, driver_payload, bus_year):
    created = await store.create(driver_payload)

    with pytest.raises(InvalidRecord):
        await store.update(created.id, {"busYear": bus_year})

    assert (await store.get_by_id(created.id)).bus_year == driver_payload["busYear"]
