"""Tests for the background processing task"""

from contextlib import contextmanager

import pytest

from menuflow.models import MenuIngestion
from menuflow.workers import processing_worker

from fixtures.pipeline import FakeConverter, FakeExtractor, menu_page


@pytest.fixture
def worker_fakes(db_session, fake_storage, monkeypatch):
    converter = FakeConverter(page_count=2)
    extractor = FakeExtractor({
        1: menu_page(("Mains", [{"name": "Pizza", "price": 10, "confidence": 0.9}])),
        2: menu_page(("Desserts", [{"name": "Tiramisu", "price": 6.5, "confidence": 0.8}])),
    })

    @contextmanager
    def session_scope():
        yield db_session

    monkeypatch.setattr(processing_worker, "get_db_session", session_scope)
    monkeypatch.setattr(processing_worker, "get_object_storage", lambda: fake_storage)
    monkeypatch.setattr(processing_worker, "HttpPageConverter", lambda config: converter)
    monkeypatch.setattr(processing_worker, "OpenAIMenuExtractor", lambda config, api_key=None: extractor)
    return converter, extractor


def test_task_runs_pipeline(db_session, make_ingestion, staff_user_id, worker_fakes):
    ingestion = make_ingestion()

    result = processing_worker.process_menu_task(str(ingestion.id), str(staff_user_id))

    assert result == {
        "ingestion_id": str(ingestion.id),
        "ok": True,
        "items_count": 2,
        "pages_processed": 2,
        "errors": [],
    }
    converter, extractor = worker_fakes
    assert sorted(extractor.pages_seen) == [1, 2]
    assert converter.closed is True
    db_session.expire_all()
    assert db_session.get(MenuIngestion, ingestion.id).status == "awaiting_review"


def test_task_reports_rejection(make_ingestion, staff_user_id, worker_fakes):
    ingestion = make_ingestion(status="awaiting_review")

    result = processing_worker.process_menu_task(str(ingestion.id), str(staff_user_id))

    assert result["ok"] is False
    assert result["errors"][0]["code"] == "rerun_required"
    converter, _ = worker_fakes
    assert converter.calls == []
    assert converter.closed is True


def test_task_rerun_flag(make_ingestion, staff_user_id, worker_fakes):
    ingestion = make_ingestion(status="failed")

    result = processing_worker.process_menu_task(str(ingestion.id), str(staff_user_id), rerun=True)

    assert result["ok"] is True
