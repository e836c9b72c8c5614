"""Tests for the Prometheus metrics exposed by the services."""

from servicehub.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics


def _operations(service, operation, status):
    value = REGISTRY.get_sample_value(
        "servicehub_service_operations_total",
        {"service": service, "operation": operation, "status": status},
    )
    return value or 0.0


def test_measured_operations_are_recorded(lifecycle, booking_payload):
    before = _operations("BookingLifecycleService", "create_booking", "success")

    lifecycle.create_booking(booking_payload())

    assert _operations("BookingLifecycleService", "create_booking", "success") == before + 1
    assert lifecycle.get_metrics()["create_booking"]["success_count"] >= 1


def test_exposition_includes_transition_counter(lifecycle, pending_booking, provider_id):
    lifecycle.assign(pending_booking, provider_id)

    payload = prometheus_metrics.get_metrics().decode()

    assert "servicehub_booking_transitions_total" in payload
    assert 'transition="assign"' in payload
    assert prometheus_metrics.get_content_type().startswith("text/plain")
