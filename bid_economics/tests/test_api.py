"""
Tests: HTTP surface.

Run with:
    pytest bid_economics/tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from bid_economics.api import create_app
from bid_economics.config import Settings
from bid_economics.services.evaluation_service import EvaluationService

BANK = {
    "id": "T-REF",
    "title": "Core banking data platform",
    "budget": 2000000,
    "purchaser": "City Commercial Bank",
}
PLAIN = {"id": "T-PLAIN", "title": "Warehouse tracking", "budget": 1000000, "purchaser": "Eastern Logistics"}


@pytest.fixture
def client():
    service = EvaluationService(Settings(persistence_backend="memory", batch_max_size=3))
    client = TestClient(create_app(service))
    assert client.post("/api/tenders", json=BANK).status_code == 201
    assert client.post("/api/tenders", json=PLAIN).status_code == 201
    return client


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestTenders:
    def test_list(self, client):
        ids = [t["id"] for t in client.get("/api/tenders").json()]
        assert ids == ["T-REF", "T-PLAIN"]

    def test_delete_cascades(self, client):
        client.post("/api/cost-benefit/analyze/T-REF")
        resp = client.delete("/api/tenders/T-REF")
        assert resp.status_code == 200
        assert resp.json() == {"tenderId": "T-REF", "reportsRemoved": 1}
        assert client.get("/api/cost-benefit/result/T-REF").status_code == 404

    def test_delete_unknown(self, client):
        assert client.delete("/api/tenders/T-NOPE").status_code == 404


class TestAnalyze:
    def test_analyze_reference(self, client, reference_overrides):
        resp = client.post("/api/cost-benefit/analyze/T-REF", json={"customParameters": reference_overrides})
        assert resp.status_code == 200
        body = resp.json()
        assert body["tenderId"] == "T-REF"
        assert body["costAnalysis"]["totalCost"] == pytest.approx(1_993_305.6)
        assert body["roiAnalysis"]["breakEvenPoint"] == 8
        assert "adjustedROI" in body["roiPrediction"]
        assert body["warnings"] == []

    def test_analyze_without_body(self, client):
        assert client.post("/api/cost-benefit/analyze/T-PLAIN").status_code == 200

    def test_validation_error_shape(self, client):
        resp = client.post(
            "/api/cost-benefit/analyze/T-REF",
            json={"customParameters": {"marketConditions": {"competitionLevel": "FIERCE"}}},
        )
        assert resp.status_code == 422
        assert resp.json()["field"] == "marketConditions.competitionLevel"
        assert resp.json()["message"]

    def test_unknown_tender(self, client):
        assert client.post("/api/cost-benefit/analyze/T-NOPE").status_code == 404

    def test_result_and_history(self, client):
        first = client.post("/api/cost-benefit/analyze/T-REF").json()
        second = client.post("/api/cost-benefit/analyze/T-REF").json()
        latest = client.get("/api/cost-benefit/result/T-REF").json()
        assert latest["reportId"] == second["reportId"]
        history = client.get("/api/cost-benefit/history/T-REF").json()
        assert [r["reportId"] for r in history] == [second["reportId"], first["reportId"]]

    def test_result_missing(self, client):
        assert client.get("/api/cost-benefit/result/T-PLAIN").status_code == 404


class TestBatchAndCompare:
    def test_batch(self, client):
        client.post("/api/tenders", json={"id": "T-NEG", "budget": -1})
        resp = client.post(
            "/api/cost-benefit/batch-analyze",
            json={"tenderIds": ["T-REF", "T-NEG", "T-NOPE"]},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["summary"] == {"success": 1, "failure": 2, "total": 3}
        assert body["results"]["T-NEG"]["field"] == "budget"
        assert body["results"]["T-NOPE"]["errorType"] == "TenderNotFoundError"
        assert body["results"]["T-REF"]["tenderId"] == "T-REF"

    def test_batch_too_large(self, client):
        resp = client.post("/api/cost-benefit/batch-analyze", json={"tenderIds": ["A", "B", "C", "D"]})
        assert resp.status_code == 400

    def test_batch_bad_overrides(self, client):
        resp = client.post(
            "/api/cost-benefit/batch-analyze",
            json={"tenderIds": ["T-REF"], "customParameters": {"teamSize": 0}},
        )
        assert resp.status_code == 422
        assert resp.json()["field"] == "teamSize"

    def test_compare(self, client):
        resp = client.post("/api/cost-benefit/compare", json={"tenderIds": ["T-PLAIN", "T-REF"]})
        assert resp.status_code == 200
        ranking = resp.json()
        assert [e["rank"] for e in ranking] == [1, 2]
        assert ranking[0]["roi"] >= ranking[1]["roi"]
        assert {"tenderId", "title", "roi", "totalCost"} <= set(ranking[0])
