from urllib.parse import unquote

import pytest

from conftest import png_data_url


def _payload(**overrides):
    data = {
        "inspection_type": "Initial",
        "vehicle": {"registration": "abc 123", "make": "Toyota", "model": "Corolla", "mileage": 50000},
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_checklist_endpoints(test_async_client):
    definition = await test_async_client.get("/checklist/definition")
    assert definition.status_code == 200
    assert definition.json()["inspectionTypes"] == ["Initial", "Second", "Final"]

    initial = await test_async_client.get("/checklist/initial")
    assert initial.status_code == 200
    assert initial.json() == {
        "lights": {
            "headlights": {"status": "unset", "comment": ""},
            "indicators": {"status": "unset", "comment": ""},
        },
        "tyres": {
            "tread_depth": {"status": "unset", "comment": ""},
            "pressure": {"status": "unset", "comment": ""},
        },
    }


@pytest.mark.asyncio
async def test_vehicle_crud_flow(test_async_client):
    response = await test_async_client.post(
        "/vehicles", json={"registration": "kx19 lmn", "make": "Ford", "model": "Transit", "mileage": 1000}
    )
    assert response.status_code == 200
    assert response.json()["registration"] == "KX19 LMN"

    response = await test_async_client.patch("/vehicles/KX19 LMN/mileage", json={"mileage": 2500})
    assert response.status_code == 200
    assert response.json()["mileage"] == 2500

    response = await test_async_client.get("/vehicles/search", params={"q": "x19"})
    assert [v["registration"] for v in response.json()] == ["KX19 LMN"]

    response = await test_async_client.delete("/vehicles/KX19 LMN")
    assert response.status_code == 204

    response = await test_async_client.get("/vehicles/KX19 LMN")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_vehicle_missing_make_is_domain_validation_error(test_async_client):
    response = await test_async_client.post(
        "/vehicles", json={"registration": "AB12 CDE", "make": " ", "model": "Transit"}
    )

    assert response.status_code == 422
    assert response.json() == {
        "error": "Validation Error",
        "message": "Vehicle make is required.",
        "field": "vehicle.make",
    }


@pytest.mark.asyncio
async def test_driver_flow(test_async_client):
    response = await test_async_client.post("/drivers", json={"name": "Sam Patel", "phone": "07700 900123"})
    assert response.status_code == 201
    driver_id = response.json()["id"]

    response = await test_async_client.patch(f"/drivers/{driver_id}", json={"license": "LIC-1"})
    assert response.status_code == 200
    assert response.json()["license"] == "LIC-1"
    assert response.json()["phone"] == "07700 900123"

    response = await test_async_client.get("/drivers")
    assert [d["name"] for d in response.json()] == ["Sam Patel"]

    response = await test_async_client.delete(f"/drivers/{driver_id}")
    assert response.status_code == 204
    assert (await test_async_client.get("/drivers")).json() == []


@pytest.mark.asyncio
async def test_driver_blank_name_and_unknown_id(test_async_client):
    response = await test_async_client.post("/drivers", json={"name": "   "})
    assert response.status_code == 422
    assert response.json()["field"] == "name"

    response = await test_async_client.patch("/drivers/missing", json={"name": "Someone"})
    assert response.status_code == 404
    assert response.json()["error"] == "Not Found"


@pytest.mark.asyncio
async def test_inspection_lifecycle(test_async_client):
    response = await test_async_client.post("/inspections", json=_payload(general_comments="Clean"))
    assert response.status_code == 201
    body = response.json()
    assert body["service_due"] is False
    record = body["record"]
    assert record["synced"] is False
    assert record["vehicle"]["registration"] == "ABC 123"
    inspection_id = record["id"]

    listed = await test_async_client.get("/inspections")
    assert [r["id"] for r in listed.json()] == [inspection_id]

    vehicle = await test_async_client.get("/vehicles/abc 123")
    assert vehicle.status_code == 200
    assert vehicle.json()["mileage"] == 50000

    synced = await test_async_client.post(f"/inspections/{inspection_id}/synced")
    assert synced.status_code == 200
    assert synced.json()["synced"] is True

    deleted = await test_async_client.delete(f"/inspections/{inspection_id}")
    assert deleted.status_code == 204
    missing = await test_async_client.get(f"/inspections/{inspection_id}")
    assert missing.status_code == 404
    assert missing.json()["field"] == "id"


@pytest.mark.asyncio
async def test_save_reports_service_due(test_async_client):
    await test_async_client.post(
        "/vehicles", json={"registration": "ABC 123", "make": "Toyota", "model": "Corolla", "mileage": 38000}
    )

    response = await test_async_client.post("/inspections", json=_payload())

    assert response.status_code == 201
    assert response.json()["service_due"] is True


@pytest.mark.asyncio
async def test_save_rejects_missing_registration(test_async_client):
    payload = _payload()
    payload["vehicle"]["registration"] = ""

    response = await test_async_client.post("/inspections", json=payload)

    assert response.status_code == 422
    assert response.json()["field"] == "vehicle.registration"
    assert (await test_async_client.get("/inspections")).json() == []


@pytest.mark.asyncio
async def test_export_saved_inspection(test_async_client):
    driver = (await test_async_client.post("/drivers", json={"name": "Jane Doe"})).json()
    saved = await test_async_client.post(
        "/inspections",
        json=_payload(driver_id=driver["id"], signature_data_url=png_data_url()),
    )
    inspection_id = saved.json()["record"]["id"]

    response = await test_async_client.get(f"/inspections/{inspection_id}/export")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment; filename=")
    assert "_JANEDOE_UNKNOWN_ABC123.pdf" in disposition


@pytest.mark.asyncio
async def test_export_unsaved_form(test_async_client):
    response = await test_async_client.post("/inspections/export", json=_payload())

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")
    assert (await test_async_client.get("/inspections")).json() == []


@pytest.mark.asyncio
async def test_export_unknown_inspection(test_async_client):
    response = await test_async_client.get("/inspections/missing/export")

    assert response.status_code == 404
    assert response.json()["error"] == "Not Found"


def _utf8_filename(disposition: str) -> str:
    _, _, encoded = disposition.partition("filename*=UTF-8''")
    return unquote(encoded)


@pytest.mark.asyncio
async def test_export_filename_with_non_latin_driver_name(test_async_client):
    response = await test_async_client.post("/inspections/export", json=_payload(driver_name="Łukasz Nowak"))

    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    disposition.encode("ascii")
    assert '_UKASZNOWAK_UNKNOWN_ABC123.pdf"' in disposition
    assert _utf8_filename(disposition).endswith("_ŁUKASZNOWAK_UNKNOWN_ABC123.pdf")


@pytest.mark.asyncio
async def test_export_filename_with_quoted_driver_name(test_async_client):
    response = await test_async_client.post("/inspections/export", json=_payload(driver_name='Jo "JJ" Smith'))

    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert disposition.count('"') == 2
    assert '_JO_JJ_SMITH_UNKNOWN_ABC123.pdf"' in disposition
    assert _utf8_filename(disposition).endswith('_JO"JJ"SMITH_UNKNOWN_ABC123.pdf')
