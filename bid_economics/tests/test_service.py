"""
Tests: EvaluationService, repositories and the policy store.

Run with:
    pytest bid_economics/tests/test_service.py -v
"""

import json

import pytest

from bid_economics.config import Settings
from bid_economics.errors import BatchLimitError, TenderNotFoundError, ValidationError
from bid_economics.models.schemas import BatchItemError, CostBenefitReport, Tender
from bid_economics.persistence.report_repository import (
    MongoReportRepository,
    ReportRepository,
    get_report_repository,
)
from bid_economics.persistence.tender_repository import TenderRepository
from bid_economics.rules.policy_config import EconomicsPolicy, PolicyStore
from bid_economics.services.evaluation_service import EvaluationService


class FakeCollection:
    """Just enough of a pymongo collection for the repository and store."""

    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(k) == v for k, v in query.items())

    def find_one(self, query, sort=None):
        found = [d for d in self.docs if self._matches(d, query)]
        if sort:
            key, direction = sort[0]
            found.sort(key=lambda d: d[key], reverse=direction < 0)
        return found[0] if found else None

    def find(self, query):
        return FakeCursor([d for d in self.docs if self._matches(d, query)])

    def insert_one(self, doc):
        self.docs.append(dict(doc))

    def update_one(self, query, update, upsert=False):
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(update["$set"])
                return
        if upsert:
            self.docs.append(dict(update["$set"]))

    def count_documents(self, query):
        return sum(1 for d in self.docs if self._matches(d, query))

    def delete_many(self, query):
        before = len(self.docs)
        self.docs = [d for d in self.docs if not self._matches(d, query)]
        return type("DeleteResult", (), {"deleted_count": before - len(self.docs)})()

    def distinct(self, key):
        return list(dict.fromkeys(d[key] for d in self.docs))


class FakeCursor(list):
    def sort(self, key, direction):
        return sorted(self, key=lambda d: d[key], reverse=direction < 0)


@pytest.fixture
def settings():
    return Settings(persistence_backend="memory", batch_max_size=3, batch_max_workers=2)


@pytest.fixture
def service(settings, bank_tender, plain_tender):
    svc = EvaluationService(settings)
    svc.add_tender(bank_tender)
    svc.add_tender(plain_tender)
    return svc


class TestEvaluationService:
    def test_analyze_stores_report(self, service):
        report = service.analyze("T-REF")
        assert service.latest_report("T-REF") == report

    def test_reanalysis_appends_history(self, service):
        first = service.analyze("T-REF")
        second = service.analyze("T-REF", {"teamSize": 8})
        history = service.report_history("T-REF")
        assert [r.report_id for r in history] == [second.report_id, first.report_id]

    def test_unknown_tender(self, service):
        with pytest.raises(TenderNotFoundError) as exc:
            service.analyze("T-MISSING")
        assert exc.value.tender_id == "T-MISSING"

    def test_batch_unknown_id_fails_that_item_only(self, service):
        result = service.analyze_batch(["T-REF", "T-MISSING", "T-PLAIN"])
        assert list(result.results) == ["T-REF", "T-MISSING", "T-PLAIN"]
        assert result.summary.success == 2
        assert result.summary.failure == 1
        missing = result.results["T-MISSING"]
        assert isinstance(missing, BatchItemError)
        assert missing.error_type == "TenderNotFoundError"
        assert service.latest_report("T-PLAIN") is not None

    def test_batch_bad_budget(self, service):
        service.add_tender(Tender(id="T-NEG", budget=-1))
        result = service.analyze_batch(["T-REF", "T-NEG"])
        assert result.summary.success == 1
        assert result.results["T-NEG"].field == "budget"

    def test_batch_size_capped(self, service):
        with pytest.raises(BatchLimitError):
            service.analyze_batch(["A", "B", "C", "D"])

    def test_batch_bad_overrides_refused(self, service):
        with pytest.raises(ValidationError):
            service.analyze_batch(["T-REF"], {"laborRatePerDay": -1})

    def test_compare_reuses_latest_report(self, service):
        stored = service.analyze("T-REF")
        ranking = service.compare(["T-REF", "T-PLAIN"])
        entry = next(e for e in ranking if e.tender_id == "T-REF")
        assert entry.roi == stored.roi_analysis.realistic
        assert service.reports.get_version_count("T-REF") == 1
        assert service.reports.get_version_count("T-PLAIN") == 1

    def test_compare_unknown_tender(self, service):
        with pytest.raises(TenderNotFoundError):
            service.compare(["T-REF", "T-MISSING"])

    def test_delete_cascades(self, service):
        service.analyze("T-REF")
        service.analyze("T-REF")
        assert service.delete_tender("T-REF") == 2
        assert service.latest_report("T-REF") is None
        with pytest.raises(TenderNotFoundError):
            service.delete_tender("T-REF")


class TestReportRepository:
    def test_versions_and_delete(self, engine, bank_tender):
        repo = ReportRepository()
        r1 = engine.analyze(bank_tender)
        r2 = engine.analyze(bank_tender)
        assert repo.save(r1) == 1
        assert repo.save(r2) == 2
        assert repo.latest("T-REF") == r2
        assert repo.list_tenders() == ["T-REF"]
        assert repo.delete_for_tender("T-REF") == 2
        assert repo.history("T-REF") == []

    def test_mongo_round_trip(self, engine, bank_tender, reference_overrides):
        repo = MongoReportRepository(collection=FakeCollection())
        report = engine.analyze(bank_tender, reference_overrides)
        assert repo.save(report) == 1
        loaded = repo.latest("T-REF")
        assert isinstance(loaded, CostBenefitReport)
        assert loaded.report_id == report.report_id
        assert loaded.cost_analysis.total_cost == pytest.approx(report.cost_analysis.total_cost)
        assert loaded.parameters.labor_rate_per_day == 1000
        assert repo.delete_for_tender("T-REF") == 1
        assert repo.latest("T-REF") is None

    def test_factory_picks_memory(self, settings):
        assert type(get_report_repository(settings)) is ReportRepository


class TestTenderRepository:
    def test_load_json(self, tmp_path):
        path = tmp_path / "tenders.json"
        path.write_text(json.dumps([
            {"id": "T-A", "title": "A", "budget": 100000, "purchaser": "Bank"},
            {"id": "T-B", "title": "B", "publishTime": "2024-03-01T09:00:00Z"},
        ]), encoding="utf-8")
        repo = TenderRepository()
        assert repo.load_json(path) == 2
        assert repo.get("T-A").budget == 100000
        assert repo.get("T-B").publish_time is not None
        assert repo.delete("T-A")
        assert not repo.delete("T-A")
        assert [t.id for t in repo.list()] == ["T-B"]


class TestPolicyStore:
    def test_defaults_in_memory_mode(self, settings):
        store = PolicyStore(settings)
        assert store.get_policy() == EconomicsPolicy()
        assert store.update_policy({}) is False

    def test_stored_policy_wins(self, settings):
        collection = FakeCollection()
        store = PolicyStore(settings, collection=collection)
        assert store.update_policy({"cash_flow": {"front_load_share": 0.7}})
        assert store.get_policy().cash_flow.front_load_share == 0.7

    def test_stored_policy_feeds_engine(self, settings, bank_tender):
        collection = FakeCollection()
        store = PolicyStore(settings, collection=collection)
        store.update_policy({"cost": {"work_days_per_month": 20}})
        service = EvaluationService(settings, policy_store=store)
        service.add_tender(bank_tender)
        report = service.analyze("T-REF")
        assert report.cost_analysis.labor_cost == pytest.approx(6 * 20 * 5 * 800)
