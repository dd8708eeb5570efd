import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient
from tortoise.exceptions import OperationalError

from ops_reports.features.documents.models import Document
from ops_reports.features.reports import service as report_service


@pytest.mark.asyncio
async def test_advanced_report_from_document_store(async_client: httpx.AsyncClient, seed_documents):
    await seed_documents(
        orders=[
            {
                "id": "o1", "vendorId": "V1", "customerId": "C1", "status": "Delivered", "total": 500,
                "deliveryAddress": "12 Lane, Koramangala, 560034",
                "createdAt": "2024-01-01T10:00:00Z", "deliveredAt": "2024-01-01T10:25:00Z",
            },
            {
                "id": "o2", "vendorId": "V2", "customerId": "C2", "status": "Cancelled",
                "cancellationReason": "Vendor too busy", "createdAt": {"_seconds": 1707156000, "_nanoseconds": 0},
            },
        ],
        vendors=[{"id": "V1", "shopName": "Spice Hub"}, {"id": "V2", "fullName": "Ravi Kumar"}],
        customers=[{"id": "C1", "fullName": "Meera Iyer"}, {"id": "C2"}, {"id": "C3"}],
    )

    response = await async_client.get("/api/v1/reports/advanced")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    data = body["data"]

    assert [v["vendorName"] for v in data["revenueByVendor"]] == ["Spice Hub", "Ravi Kumar"]
    assert data["revenueByVendor"][0]["totalRevenue"] == 500
    assert data["revenueByArea"][0]["area"] == "Koramangala"
    assert len(data["peakHours"]) == 24
    assert len(data["ordersByDayOfWeek"]) == 7
    assert data["customerRetention"]["totalCustomers"] == 3
    assert data["customerRetention"]["topCustomers"][0]["customerName"] == "Meera Iyer"
    assert data["deliveryTimeAnalysis"]["averageDeliveryTime"] == 25

    cancellations = data["cancellationAnalysis"]
    assert cancellations["totalCancellations"] == 1
    assert cancellations["cancellationRate"] == 50.0
    assert cancellations["cancellationsByReason"] == [{"reason": "Vendor too busy", "count": 1, "percentage": 100.0}]
    assert cancellations["cancellationsByHour"][18]["count"] == 1
    assert set(data["dateRange"]) == {"start", "end"}


@pytest.mark.asyncio
async def test_advanced_report_with_empty_store(async_client: httpx.AsyncClient, initialize_test_db):
    response = await async_client.get("/api/v1/reports/advanced")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["revenueByVendor"] == []
    assert data["customerRetention"]["retentionRate"] == 0
    assert all(hour["orderCount"] == 0 for hour in data["peakHours"])


def test_advanced_report_reports_upstream_failure(client: TestClient, monkeypatch):
    async def unavailable(collection):
        raise OperationalError(f"no such table: {collection}")

    monkeypatch.setattr(report_service, "fetch_collection", unavailable)

    response = client.get("/api/v1/reports/advanced")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"success": False, "error": "Failed to fetch reports data"}


def test_read_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Welcome to the Ops Reports API!"}


@pytest.mark.asyncio
async def test_advanced_report_skips_documents_that_are_not_objects(async_client: httpx.AsyncClient, seed_documents):
    await seed_documents(orders=[{
        "id": "o1", "vendorId": "V1", "customerId": "C1", "status": "Delivered", "total": 500,
        "createdAt": "2024-01-01T10:00:00Z",
    }])
    await Document.create(collection="orders", doc_id="broken", data=["not", "a", "mapping"])

    response = await async_client.get("/api/v1/reports/advanced")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert [(v["vendorId"], v["totalOrders"]) for v in data["revenueByVendor"]] == [("V1", 1)]
    assert data["cancellationAnalysis"]["cancellationTrend"][0]["totalOrders"] == 1


def test_advanced_report_wraps_unexpected_errors(client: TestClient, monkeypatch):
    async def broken(today=None):
        raise RuntimeError("assembler exploded")

    monkeypatch.setattr(report_service, "generate_advanced_report", broken)

    response = client.get("/api/v1/reports/advanced")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"success": False, "error": "Failed to fetch reports data"}


@pytest.mark.asyncio
async def test_load_report_documents_reads_all_collections(monkeypatch):
    requested = []

    async def fake_fetch(collection):
        requested.append(collection)
        return [{"id": f"{collection}-1"}]

    monkeypatch.setattr(report_service, "fetch_collection", fake_fetch)

    orders, vendors, customers = await report_service.load_report_documents()

    assert sorted(requested) == ["customers", "orders", "vendors"]
    assert (orders, vendors, customers) == (
        [{"id": "orders-1"}], [{"id": "vendors-1"}], [{"id": "customers-1"}]
    )
