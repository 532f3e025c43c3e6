import pytest

from conftest import OTHER_USER
from services.exceptions import ValidationError
from storage.factory import cloud_registries


@pytest.mark.asyncio
async def test_upsert_then_get_normalizes_registration(registries):
    saved = await registries.vehicles.upsert(" abc123 ", "Toyota", "Corolla", 50000)

    assert saved.registration == "ABC123"
    fetched = await registries.vehicles.get("abc123")
    assert fetched is not None
    assert (fetched.make, fetched.model, fetched.mileage) == ("Toyota", "Corolla", 50000)


@pytest.mark.asyncio
async def test_upsert_overwrites_but_keeps_created_at(registries):
    first = await registries.vehicles.upsert("ABC123", "Toyota", "Corolla", 50000)
    second = await registries.vehicles.upsert("ABC123", "Toyota", "Corolla Hybrid", 61000)

    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at

    vehicles = await registries.vehicles.list()
    assert len(vehicles) == 1
    assert vehicles[0].model == "Corolla Hybrid"
    assert vehicles[0].mileage == 61000


@pytest.mark.asyncio
async def test_list_is_ordered_by_registration(registries):
    for registration in ("XY99 ZZZ", "AB12 CDE", "KX19 LMN"):
        await registries.vehicles.upsert(registration, "Ford", "Transit", 1000)

    assert [v.registration for v in await registries.vehicles.list()] == [
        "AB12 CDE",
        "KX19 LMN",
        "XY99 ZZZ",
    ]


@pytest.mark.asyncio
async def test_search(registries):
    await registries.vehicles.upsert("AB12 CDE", "Ford", "Transit", 1000)
    await registries.vehicles.upsert("KX19 LMN", "Ford", "Transit", 1000)

    assert [v.registration for v in await registries.vehicles.search("x19")] == ["KX19 LMN"]
    assert await registries.vehicles.search("nothing-like-this") == []
    assert await registries.vehicles.search("") == await registries.vehicles.list()


@pytest.mark.asyncio
async def test_get_unknown_returns_none(registries):
    assert await registries.vehicles.get("NOPE") is None


@pytest.mark.asyncio
async def test_remove_missing_vehicle_is_noop(registries):
    await registries.vehicles.upsert("ABC123", "Toyota", "Corolla", 50000)

    await registries.vehicles.remove("ZZZ999")
    assert len(await registries.vehicles.list()) == 1

    await registries.vehicles.remove("abc123")
    assert await registries.vehicles.list() == []


@pytest.mark.asyncio
async def test_set_mileage(registries):
    await registries.vehicles.upsert("ABC123", "Toyota", "Corolla", 50000)

    updated = await registries.vehicles.set_mileage("ABC123", 52000)
    assert updated.mileage == 52000
    assert updated.make == "Toyota"
    assert (await registries.vehicles.get("ABC123")).mileage == 52000

    assert await registries.vehicles.set_mileage("UNKNOWN1", 10) is None


@pytest.mark.asyncio
async def test_negative_mileage_rejected(registries):
    with pytest.raises(ValidationError):
        await registries.vehicles.upsert("ABC123", "Toyota", "Corolla", -1)


@pytest.mark.asyncio
async def test_cloud_vehicles_are_scoped_per_user(cloud_regs, async_db_session):
    other = cloud_registries(async_db_session, OTHER_USER)

    await cloud_regs.vehicles.upsert("ABC123", "Toyota", "Corolla", 50000)
    await other.vehicles.upsert("ABC123", "Ford", "Focus", 7000)

    assert (await cloud_regs.vehicles.get("ABC123")).make == "Toyota"
    assert (await other.vehicles.get("ABC123")).make == "Ford"

    await other.vehicles.remove("ABC123")
    assert await other.vehicles.list() == []
    assert len(await cloud_regs.vehicles.list()) == 1
