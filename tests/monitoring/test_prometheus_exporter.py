from monitoring.prometheus_exporter import (
    API_ERRORS_TOTAL,
    CLIENT_RETRIES_TOTAL,
    _REGISTRY,
    generate_prometheus_text,
)


def test_counters_in_private_registry():
    before = _REGISTRY.get_sample_value("shop_client_retries_total", {"reason": "timeout"}) or 0.0
    CLIENT_RETRIES_TOTAL.labels(reason="timeout").inc()
    assert _REGISTRY.get_sample_value("shop_client_retries_total", {"reason": "timeout"}) == before + 1


def test_generate_prometheus_text():
    API_ERRORS_TOTAL.labels(status="418").inc()
    text = generate_prometheus_text().decode("utf-8")
    assert 'shop_api_errors_total{status="418"}' in text
    assert "# TYPE shop_client_retries_total counter" in text
    assert "shop_client_errors_received_total" in text
