"""
API endpoint tests.
"""

import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

from trialops.dependencies.auth import get_current_user
from trialops.main import app

from conftest import STAFF


async def enrol_and_randomize(client: AsyncClient) -> dict:
    """Enrol a participant, conclude screening on 2024-01-05 and return the ids."""
    response = await client.post("/api/participants/", json={"first_name": "Asha", "last_name": "Rao"})
    assert response.status_code == 201
    participant = response.json()

    response = await client.post(
        "/api/visits/", json={"participant_id": participant["id"], "visit_number": 1}
    )
    assert response.status_code == 201
    screening = response.json()

    response = await client.post(
        f"/api/visits/{screening['id']}/screening/conclude",
        json={"voucher_status": "given", "screening_outcome": "success", "visit_date": "2024-01-05"},
    )
    assert response.status_code == 200
    result = response.json()
    return {
        "participant_id": participant["id"],
        "screening_visit_id": screening["id"],
        "result": result,
    }


async def get_visit_two(client: AsyncClient, participant_id: str) -> dict:
    response = await client.get(f"/api/participants/{participant_id}")
    assert response.status_code == 200
    [visit] = [v for v in response.json()["visits"] if v["visit_number"] == 2]
    return visit


class TestHealthEndpoints:
    @pytest.mark.asyncio
    async def test_root_endpoint(self, async_client: AsyncClient):
        response = await async_client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_openapi_schema(self, async_client: AsyncClient):
        response = await async_client.get("/openapi.json")
        assert response.status_code == 200
        assert "/api/visits/{visit_id}/schedule" in response.json()["paths"]


class TestAuthEndpoints:
    @pytest.mark.asyncio
    async def test_me_returns_role(self, async_client: AsyncClient):
        response = await async_client.get("/auth/me")
        assert response.status_code == 200
        assert response.json()["role"] == "admin"


class TestParticipantEndpoints:
    @pytest.mark.asyncio
    async def test_enrolment_assigns_screening_ids(self, async_client: AsyncClient):
        first = await async_client.post("/api/participants/", json={"first_name": "Asha", "last_name": "Rao"})
        second = await async_client.post("/api/participants/", json={"first_name": "Ravi"})
        assert first.json()["screening_id"] == "S1"
        assert first.json()["initials"] == "AR"
        assert second.json()["screening_id"] == "S2"

        listing = await async_client.get("/api/participants/")
        assert [p["screening_id"] for p in listing.json()] == ["S2", "S1"]

    @pytest.mark.asyncio
    async def test_negative_age_is_rejected(self, async_client: AsyncClient):
        response = await async_client.post("/api/participants/", json={"first_name": "Asha", "age": -3})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_participant(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/participants/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    @pytest.mark.asyncio
    async def test_master_chart(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        response = await async_client.get("/api/participants/master-chart")
        assert response.status_code == 200
        [row] = response.json()
        assert row["participant_id"] == ids["participant_id"]
        assert row["randomization_id"] == "R1"
        assert row["name"] == "Asha Rao"
        assert [v["visit_number"] for v in row["visits"]] == [1, 2]

    @pytest.mark.asyncio
    async def test_randomization_code_needs_admin(self, async_client: AsyncClient):
        participant = (await async_client.post("/api/participants/", json={"first_name": "Asha"})).json()
        url = f"/api/participants/{participant['id']}/randomization-code"

        response = await async_client.put(url, json={"randomization_code": "A"})
        assert response.status_code == 200
        assert response.json()["randomization_code"] == "A"

        app.dependency_overrides[get_current_user] = lambda: STAFF
        response = await async_client.put(url, json={"randomization_code": "B"})
        assert response.status_code == 403
        assert response.json()["code"] == "permission_denied"


class TestVisitEndpoints:
    @pytest.mark.asyncio
    async def test_screening_success_randomizes_and_creates_visit_two(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        result = ids["result"]
        assert result["concluded"] is True
        assert result["screening_outcome"] == "success"
        assert result["randomization_id"] == "R1"
        assert result["visit_date"] == "2024-01-05"
        assert result["next_visit"] == {"created": True, "visit_number": 2}

        visit_two = await get_visit_two(async_client, ids["participant_id"])
        assert visit_two["scheduled_on"] == "2024-01-06"
        assert visit_two["due_date"] == "2024-01-13"

    @pytest.mark.asyncio
    async def test_screening_without_outcome(self, async_client: AsyncClient):
        participant = (await async_client.post("/api/participants/", json={"first_name": "Asha"})).json()
        screening = (
            await async_client.post("/api/visits/", json={"participant_id": participant["id"], "visit_number": 1})
        ).json()

        response = await async_client.post(
            f"/api/visits/{screening['id']}/screening/conclude", json={"voucher_status": "given"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "outcome_required"

    @pytest.mark.asyncio
    async def test_visit_two_needs_completed_screening(self, async_client: AsyncClient):
        participant = (await async_client.post("/api/participants/", json={"first_name": "Asha"})).json()
        await async_client.post("/api/visits/", json={"participant_id": participant["id"], "visit_number": 1})

        response = await async_client.post(
            "/api/visits/", json={"participant_id": participant["id"], "visit_number": 2}
        )
        assert response.status_code == 409
        assert response.json()["code"] == "predecessor_incomplete"

    @pytest.mark.asyncio
    async def test_visit_number_out_of_range(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/visits/", json={"participant_id": str(uuid.uuid4()), "visit_number": 9}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_visit_detail_lists_opd_options(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        visit_two = await get_visit_two(async_client, ids["participant_id"])

        response = await async_client.get(f"/api/visits/{visit_two['id']}")
        assert response.status_code == 200
        data = response.json()
        assert (data["window_start"], data["window_end"]) == ("2024-01-02", "2024-01-13")
        assert data["opd_options"] == [
            "2024-01-02", "2024-01-03", "2024-01-05", "2024-01-09", "2024-01-10", "2024-01-12",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "proposed, code",
        [("2024-01-08", "weekday_not_allowed"), ("2024-01-16", "outside_window")],
    )
    async def test_schedule_rejections(self, async_client: AsyncClient, proposed, code):
        ids = await enrol_and_randomize(async_client)
        visit_two = await get_visit_two(async_client, ids["participant_id"])

        response = await async_client.post(
            f"/api/visits/{visit_two['id']}/schedule", json={"scheduled_on": proposed}
        )
        assert response.status_code == 400
        assert response.json()["code"] == code
        assert response.json()["detail"]

    @pytest.mark.asyncio
    async def test_schedule_on_open_day(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        visit_two = await get_visit_two(async_client, ids["participant_id"])

        response = await async_client.post(
            f"/api/visits/{visit_two['id']}/schedule", json={"scheduled_on": "2024-01-09"}
        )
        assert response.status_code == 200
        assert response.json()["scheduled_on"] == "2024-01-09"
        assert response.json()["due_date"] == "2024-01-13"

    @pytest.mark.asyncio
    async def test_conclude_creates_successor(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        visit_two = await get_visit_two(async_client, ids["participant_id"])

        response = await async_client.post(
            f"/api/visits/{visit_two['id']}/conclude", json={"visit_date": "2024-01-10", "create_next": 3}
        )
        assert response.status_code == 200
        assert response.json() == {
            "visit_id": visit_two["id"],
            "visit_date": "2024-01-10",
            "already_completed": False,
            "next_visit": {"created": True, "visit_number": 3},
        }

    @pytest.mark.asyncio
    async def test_conclude_unknown_visit(self, async_client: AsyncClient):
        response = await async_client.post(f"/api/visits/{uuid.uuid4()}/conclude", json={})
        assert response.status_code == 404
        assert set(response.json()) == {"detail", "code"}

    @pytest.mark.asyncio
    async def test_staff_cannot_delete_visit(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        visit_two = await get_visit_two(async_client, ids["participant_id"])

        app.dependency_overrides[get_current_user] = lambda: STAFF
        response = await async_client.delete(f"/api/visits/{visit_two['id']}")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_delete_reopens_screening(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        visit_two = await get_visit_two(async_client, ids["participant_id"])

        response = await async_client.delete(
            f"/api/visits/{visit_two['id']}", params={"participant_id": ids["participant_id"]}
        )
        assert response.status_code == 204

        detail = (await async_client.get(f"/api/participants/{ids['participant_id']}")).json()
        [screening] = detail["visits"]
        assert screening["visit_date"] is None

        response = await async_client.post(
            f"/api/visits/{ids['screening_visit_id']}/screening/conclude",
            json={"voucher_status": "given", "visit_date": "2024-01-09"},
        )
        assert response.status_code == 200
        result = response.json()
        assert result["concluded"] is True
        assert result["randomization_id"] == "R1"
        assert result["next_visit"] == {"created": True, "visit_number": 2}

        visit_two = await get_visit_two(async_client, ids["participant_id"])
        assert visit_two["scheduled_on"] == "2024-01-10"

    @pytest.mark.asyncio
    async def test_manual_clinical_data_entry(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        url = f"/api/visits/{ids['screening_visit_id']}/clinical-data"

        response = await async_client.patch(url, json={"values": {"hb": 12.5, "bun": 18}})
        assert response.status_code == 200
        assert response.json()["clinical_data"] == {"hb": 12.5, "bun": 18.0}

        response = await async_client.patch(url, json={"values": {"bun": None}})
        assert response.json()["clinical_data"] == {"hb": 12.5, "bun": None}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("values", [{}, {"hb": -1}, {" ": 3}])
    async def test_manual_clinical_data_validation(self, async_client: AsyncClient, values):
        response = await async_client.patch(
            f"/api/visits/{uuid.uuid4()}/clinical-data", json={"values": values}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_manual_clinical_data_unknown_visit(self, async_client: AsyncClient):
        response = await async_client.patch(
            f"/api/visits/{uuid.uuid4()}/clinical-data", json={"values": {"hb": 12.0}}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_voucher_and_documents(self, async_client: AsyncClient):
        ids = await enrol_and_randomize(async_client)
        visit_two = await get_visit_two(async_client, ids["participant_id"])

        response = await async_client.post(
            f"/api/visits/{visit_two['id']}/voucher", json={"voucher_status": "not_given"}
        )
        assert response.json()["voucher_given"] is False

        key = f"visits/{visit_two['id']}/ecg/ecg.pdf"
        response = await async_client.post(
            f"/api/visits/{visit_two['id']}/documents", json={"field": "ecg", "object_key": key}
        )
        assert response.status_code == 200
        assert response.json()["documents"] == {"ecg": key}

    @pytest.mark.asyncio
    async def test_extract_panel(self, async_client: AsyncClient, fake_vision):
        ids = await enrol_and_randomize(async_client)
        fake_vision.response = {"echo_lvef": "42%"}

        response = await async_client.post(
            f"/api/visits/{ids['screening_visit_id']}/extract/echo",
            files={"file": ("echo.png", b"\x89PNG", "image/png")},
        )
        assert response.status_code == 200
        assert response.json()["saved"] is True
        assert response.json()["updated"] == {"echo_lvef": 42.0}
        assert fake_vision.calls[0][1] == "image/png"

    @pytest.mark.asyncio
    async def test_extract_unknown_panel(self, async_client: AsyncClient):
        response = await async_client.post(
            f"/api/visits/{uuid.uuid4()}/extract/lipids",
            files={"file": ("a.pdf", b"%PDF", "application/pdf")},
        )
        assert response.status_code == 422


class TestFinanceEndpoints:
    @pytest.mark.asyncio
    async def test_funds_and_expenses(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/finances/funds", json={"amount": "500", "category": "Travel", "date_received": "2024-01-01"}
        )
        assert response.status_code == 201

        response = await async_client.post(
            "/api/finances/expenses",
            json={"category": "travel", "amount": "120", "date": "2024-01-02", "paid_by": "funds"},
        )
        assert response.status_code == 201
        assert response.json()["settled"] is True

        await async_client.post(
            "/api/finances/expenses",
            json={"category": "travel", "amount": "30", "date": "2024-01-03", "paid_by": "out of pocket"},
        )

        summary = (await async_client.get("/api/finances/")).json()
        assert Decimal(summary["available_travel_funds"]) == Decimal("380")
        assert Decimal(summary["available_stationary_funds"]) == Decimal("0")
        assert [e["date"] for e in summary["expenses"]] == ["2024-01-03", "2024-01-02"]

    @pytest.mark.asyncio
    async def test_invalid_amount(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/finances/funds", json={"amount": "0", "category": "travel", "date_received": "2024-01-01"}
        )
        assert response.status_code == 422


class TestLeadEndpoints:
    @pytest.mark.asyncio
    async def test_create_and_update(self, async_client: AsyncClient):
        response = await async_client.post("/api/leads/", json={"name": " Ravi Kumar ", "phone": "98450"})
        assert response.status_code == 201
        lead = response.json()
        assert lead["name"] == "Ravi Kumar"
        assert lead["was_called"] is False

        response = await async_client.put(
            f"/api/leads/{lead['id']}", json={"was_called": True, "patient_willing": True}
        )
        assert response.status_code == 200
        assert response.json()["patient_willing"] is True

        listing = (await async_client.get("/api/leads/")).json()
        assert [item["id"] for item in listing] == [lead["id"]]

    @pytest.mark.asyncio
    async def test_extract_prefill(self, async_client: AsyncClient, fake_storage, fake_vision):
        fake_storage.upload_file("leads/referral.pdf", b"%PDF", "application/pdf")
        fake_vision.response = {"firstName": "Ravi", "lastName": "Kumar", "lvef": 30}

        response = await async_client.post("/api/leads/extract", json={"object_key": "leads/referral.pdf"})
        assert response.status_code == 200
        assert response.json() == {"first_name": "Ravi", "middle_name": None, "last_name": "Kumar", "lvef": 30.0}

    @pytest.mark.asyncio
    async def test_extract_without_name(self, async_client: AsyncClient, fake_storage, fake_vision):
        fake_storage.upload_file("leads/echo.pdf", b"%PDF", "application/pdf")
        fake_vision.response = {"lvef": 30}

        response = await async_client.post("/api/leads/extract", json={"object_key": "leads/echo.pdf"})
        assert response.status_code == 502
        assert response.json()["code"] == "name_not_detected"


class TestStorageEndpoints:
    @pytest.mark.asyncio
    async def test_presign_builds_visit_key(self, async_client: AsyncClient):
        visit_id = str(uuid.uuid4())
        response = await async_client.post(
            "/storage/presign", json={"visit_id": visit_id, "field": "echo", "filename": "echo.pdf"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["object_key"] == f"visits/{visit_id}/echo/echo.pdf"
        assert data["url"].endswith("?method=PUT")

    @pytest.mark.asyncio
    async def test_download_url(self, async_client: AsyncClient):
        response = await async_client.get("/storage/download", params={"key": "visits/a/ecg/x.pdf"})
        assert response.status_code == 200
        assert response.json()["signed_url"] == "https://storage.test/visits/a/ecg/x.pdf?method=GET"

    @pytest.mark.asyncio
    async def test_delete(self, async_client: AsyncClient, fake_storage):
        fake_storage.upload_file("visits/a/ecg/x.pdf", b"%PDF")
        response = await async_client.delete("/storage/visits/a/ecg/x.pdf")
        assert response.status_code == 204
        assert fake_storage.deleted == ["visits/a/ecg/x.pdf"]
