"""
TaxDesk NG - API Integration Tests

Integration tests for REST API endpoints.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        """Test health check returns 200."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSummaryAPI:
    """Tax summary endpoints."""

    @pytest.mark.asyncio
    async def test_cit_summary(self, client: AsyncClient, large_company, add_invoice, add_expense):
        await add_invoice(large_company, "500000")
        await add_expense(large_company, "200000")

        response = await client.get(
            "/api/v1/tax/cit/summary",
            params={"entity_id": str(large_company.id), "tax_year": 2026},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["liability_before_credits"] == "90000.00"
        assert data["classification"] == "large"
        assert data["status"] == "pending"
        assert data["period_key"] == "2026"

    @pytest.mark.asyncio
    async def test_recalculate(self, client: AsyncClient, large_company, add_invoice):
        await add_invoice(large_company, "100000")
        params = {"entity_id": str(large_company.id), "tax_year": 2026}

        first = await client.post("/api/v1/tax/cit/summary/recalculate", params=params)
        second = await client.post("/api/v1/tax/cit/summary/recalculate", params=params)

        assert first.status_code == 200
        assert first.json() == second.json()

    @pytest.mark.asyncio
    async def test_invalid_year(self, client: AsyncClient, company):
        response = await client.get(
            "/api/v1/tax/cit/summary",
            params={"entity_id": str(company.id), "tax_year": 2025},
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "INVALID_TAX_PERIOD"
        assert detail["field"] == "tax_year"

    @pytest.mark.asyncio
    async def test_invalid_month(self, client: AsyncClient, company):
        response = await client.get(
            "/api/v1/tax/vat/summary",
            params={"entity_id": str(company.id), "tax_year": 2026, "month": 13},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_TAX_PERIOD"

    @pytest.mark.asyncio
    async def test_unknown_entity(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/tax/cit/summary",
            params={"entity_id": str(uuid4()), "tax_year": 2026},
        )

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unknown_tax_type(self, client: AsyncClient, company):
        response = await client.get(
            "/api/v1/tax/stamp_duty/summary",
            params={"entity_id": str(company.id), "tax_year": 2026},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_tax_tables(self, client: AsyncClient):
        response = await client.get("/api/v1/tax/tables/2027")

        assert response.status_code == 200
        data = response.json()
        assert data["year"] == 2027
        assert data["cit"]["development_levy_rate"] == "3.5"

    @pytest.mark.asyncio
    async def test_tax_tables_unsupported_year(self, client: AsyncClient):
        response = await client.get("/api/v1/tax/tables/2025")

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "UNSUPPORTED_TAX_YEAR"


class TestRemittanceAPI:
    """Remittance endpoints."""

    @pytest.mark.asyncio
    async def test_remittance_settles_liability(self, client: AsyncClient, large_company, add_invoice):
        await add_invoice(large_company, "100000")
        params = {"entity_id": str(large_company.id), "tax_year": 2026}
        assert (await client.get("/api/v1/tax/cit/summary", params=params)).json()["pending"] == "30000.00"

        response = await client.post(
            "/api/v1/tax/remittances",
            json={
                "entity_id": str(large_company.id),
                "tax_type": "cit",
                "tax_year": 2026,
                "amount": "30000",
                "remittance_date": "2027-02-01",
                "reference": "FIRS-0001",
            },
        )
        assert response.status_code == 201
        remittance_id = response.json()["id"]

        summary = (await client.get("/api/v1/tax/cit/summary", params=params)).json()
        assert summary["pending"] == "0.00"
        assert summary["status"] == "compliant"

        listed = await client.get("/api/v1/tax/remittances", params={"entity_id": str(large_company.id)})
        assert [r["id"] for r in listed.json()] == [remittance_id]

        deleted = await client.delete(f"/api/v1/tax/remittances/{remittance_id}")
        assert deleted.status_code == 204

        summary = (await client.get("/api/v1/tax/cit/summary", params=params)).json()
        assert summary["pending"] == "30000.00"

    @pytest.mark.asyncio
    async def test_duplicate_reference(self, client: AsyncClient, company):
        payload = {
            "entity_id": str(company.id),
            "tax_type": "vat",
            "tax_year": 2026,
            "month": 3,
            "amount": "1000",
            "remittance_date": "2026-04-20",
            "reference": "VAT-MAR",
        }
        assert (await client.post("/api/v1/tax/remittances", json=payload)).status_code == 201

        response = await client.post("/api/v1/tax/remittances", json=payload)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "DUPLICATE_ENTRY"

    @pytest.mark.asyncio
    async def test_negative_amount(self, client: AsyncClient, company):
        response = await client.post(
            "/api/v1/tax/remittances",
            json={
                "entity_id": str(company.id),
                "tax_type": "vat",
                "tax_year": 2026,
                "month": 3,
                "amount": "-10",
                "remittance_date": "2026-04-20",
                "reference": "VAT-NEG",
            },
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_missing_remittance(self, client: AsyncClient):
        response = await client.get(f"/api/v1/tax/remittances/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "REMITTANCE_NOT_FOUND"


class TestWHTAPI:
    """WHT deduction endpoint."""

    @pytest.mark.asyncio
    async def test_record_deduction(self, client: AsyncClient, company):
        response = await client.post(
            "/api/v1/tax/wht/deductions",
            json={
                "entity_id": str(company.id),
                "transaction_type": "expense",
                "wht_type": "construction",
                "gross_amount": "2000000",
                "payment_date": "2026-07-04",
                "payee_name": "BuildRight Ltd",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["wht_amount"] == "40000.00"
        assert data["month"] == 7

        summary = await client.get(
            "/api/v1/tax/wht/summary",
            params={"entity_id": str(company.id), "tax_year": 2026, "month": 7},
        )
        assert summary.json()["liability_after_credits"] == "40000.00"

    @pytest.mark.asyncio
    async def test_unknown_wht_type(self, client: AsyncClient, company):
        response = await client.post(
            "/api/v1/tax/wht/deductions",
            json={
                "entity_id": str(company.id),
                "transaction_type": "expense",
                "wht_type": "lottery",
                "gross_amount": "1000",
                "payment_date": "2026-07-04",
                "payee_name": "Someone",
            },
        )

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "wht_type"


class TestComplianceAPI:
    """Compliance dashboard endpoint."""

    @pytest.mark.asyncio
    async def test_compliance_report(self, client: AsyncClient, company, add_invoice):
        await add_invoice(company, "1000000", vat_amount="75000")

        response = await client.get(
            "/api/v1/tax/compliance",
            params={"entity_id": str(company.id), "tax_year": 2026, "month": 3},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["period_key"] == "2026-03"
        assert data["score"] == 60
        assert data["rating"] == "at_risk"
        assert [a["severity"] for a in data["alerts"]] == ["critical", "medium"]
        assert data["alerts"][0]["tax_type"] == "vat"
        assert [o["tax_type"] for o in data["obligations"]][-1] == "cit"

    @pytest.mark.asyncio
    async def test_compliance_unknown_entity(self, client: AsyncClient):
        response = await client.get("/api/v1/tax/compliance", params={"entity_id": str(uuid4())})

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_compliance_invalid_month(self, client: AsyncClient, company):
        response = await client.get(
            "/api/v1/tax/compliance",
            params={"entity_id": str(company.id), "tax_year": 2026, "month": 13},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_TAX_PERIOD"


class TestIncomeAPI:
    """Income endpoints."""

    @pytest.mark.asyncio
    async def test_income_feeds_pit(self, client: AsyncClient, individual):
        response = await client.put(
            "/api/v1/income",
            json={"entity_id": str(individual.id), "tax_year": 2026, "amount": "5000000"},
        )
        assert response.status_code == 200

        params = {"entity_id": str(individual.id), "tax_year": 2026}
        summary = (await client.get("/api/v1/tax/pit/summary", params=params)).json()
        assert summary["liability_before_credits"] == "690000.00"

        deductions = await client.put(
            "/api/v1/income/deductions",
            json={"entity_id": str(individual.id), "tax_year": 2026, "annual_rent": "3000000"},
        )
        assert deductions.status_code == 200

        summary = (await client.get("/api/v1/tax/pit/summary", params=params)).json()
        assert summary["liability_before_credits"] == "600000.00"

        deleted = await client.delete("/api/v1/income", params=params)
        assert deleted.status_code == 204

        summary = (await client.get("/api/v1/tax/pit/summary", params=params)).json()
        assert summary["data_status"] == "no_data"
        assert summary["exemption_reason"] == "no_income"

    @pytest.mark.asyncio
    async def test_list_income(self, client: AsyncClient, individual):
        for month in (1, 2):
            await client.put(
                "/api/v1/income",
                json={"entity_id": str(individual.id), "tax_year": 2026, "month": month, "amount": "250000"},
            )

        response = await client.get(
            "/api/v1/income",
            params={"entity_id": str(individual.id), "tax_year": 2026},
        )

        assert response.status_code == 200
        assert [r["month"] for r in response.json()] == [1, 2]
