import threading

import pytest
import requests

from core.config import get_settings
from monitoring.error_monitor import MonitoringService, log_error, log_info
from providers.shop_api.exceptions import ApiError


class FakeResponse:
    def __init__(self, ok=True, status_code=200, text=""):
        self.ok = ok
        self.status_code = status_code
        self.text = text


class FakePoster:
    """Sostituisce requests.post; le risposte vengono consumate in ordine, poi sempre ok."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []
        self.called = threading.Event()

    def __call__(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        self.called.set()
        item = self.responses.pop(0) if self.responses else FakeResponse()
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def poster(monkeypatch):
    fake = FakePoster()
    monkeypatch.setattr("monitoring.error_monitor.requests.post", fake)
    return fake


def make_service(**kwargs):
    params = {
        "endpoint": "http://api.local/api/log/error",
        "flush_interval": 60,
        "flush_timeout": 1,
        "environment": "production",
    }
    params.update(kwargs)
    return MonitoringService(**params)


def test_first_error_flushes_immediately(poster):
    svc = make_service(user_id_provider=lambda: "u1")
    svc.report_error(ApiError("Server error", 500), {"action": "cart.get"}, url="/cart")

    assert len(poster.calls) == 1
    call = poster.calls[0]
    assert call["url"] == "http://api.local/api/log/error"
    assert call["timeout"] == 1
    report = call["json"]["errors"][0]
    assert report["message"] == "Server error"
    assert report["context"] == {"action": "cart.get", "url": "/cart"}
    assert report["userId"] == "u1"
    assert "ApiError" in report["stack"]
    assert svc.pending() == 0


def test_failed_flush_requeues_batch(poster):
    poster.responses = [requests.ConnectionError("down")]
    svc = make_service()
    svc.report_error(RuntimeError("one"))
    assert svc.pending() == 1

    svc.report_error(RuntimeError("two"))
    # la coda non era vuota: nessun flush immediato
    assert len(poster.calls) == 1
    assert svc.pending() == 2

    assert svc.flush() == 2
    messages = [e["message"] for e in poster.calls[-1]["json"]["errors"]]
    assert messages == ["one", "two"]
    assert svc.pending() == 0


def test_non_ok_response_requeues(poster):
    poster.responses = [FakeResponse(ok=False, status_code=502, text="bad gateway")]
    svc = make_service()
    svc.report_error(RuntimeError("x"))
    assert svc.pending() == 1


def test_flush_empty_queue_is_noop(poster):
    assert make_service().flush() == 0
    assert poster.calls == []


def test_development_drops_batch(poster):
    svc = make_service(environment="development")
    svc.report_error(RuntimeError("dev only"))
    assert poster.calls == []
    assert svc.pending() == 0


def test_disabled_service_ignores_reports(poster):
    svc = make_service(enabled=False)
    svc.report_error(RuntimeError("x"))
    svc.start()
    assert not svc.running
    assert svc.pending() == 0
    assert poster.calls == []


def test_user_provider_failure_does_not_break_reporting(poster):
    def broken():
        raise RuntimeError("no session")

    svc = make_service(user_id_provider=broken)
    svc.report_error(RuntimeError("x"))
    assert poster.calls[0]["json"]["errors"][0]["userId"] is None


def test_background_flusher_lifecycle(poster):
    svc = make_service(flush_interval=60)
    svc.start()
    try:
        assert svc.running
        svc.report_error(RuntimeError("async"))
        # il primo errore sveglia il flusher senza attendere l'intervallo
        assert poster.called.wait(timeout=5)
    finally:
        svc.stop()
    assert not svc.running
    assert poster.calls[0]["json"]["errors"][0]["message"] == "async"


def test_stop_flushes_pending(poster):
    poster.responses = [requests.Timeout("slow")]
    svc = make_service()
    svc.report_error(RuntimeError("late"))
    assert svc.pending() == 1
    svc.stop()
    assert svc.pending() == 0
    assert len(poster.calls) == 2


def test_log_helpers(poster):
    svc = make_service()
    log_info(svc, "just info", {"a": 1})
    assert poster.calls == []
    log_error(svc, "something failed", {"b": 2})
    report = poster.calls[0]["json"]["errors"][0]
    assert report["message"] == "something failed"
    assert report["context"]["data"] == {"b": 2}


def test_from_settings_resolves_relative_endpoint(monkeypatch):
    monkeypatch.setenv("SHOP_API_URL", "http://shop.local:5000")
    monkeypatch.setenv("MONITORING_FLUSH_INTERVAL", "2.5")
    monkeypatch.setenv("ENVIRONMENT", "production")
    svc = MonitoringService.from_settings(get_settings())
    assert svc.endpoint == "http://shop.local:5000/api/log/error"
    assert svc.flush_interval == 2.5
    assert svc.environment == "production"
