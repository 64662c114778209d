from prometheus_client import CollectorRegistry

from nftledger.core.metrics import LedgerMetrics


def test_record_operation_and_supply():
    metrics = LedgerMetrics(registry=CollectorRegistry())
    metrics.record_operation("1", "mint", "success")
    metrics.record_operation("1", "mint", "success")
    metrics.record_operation("1", "mint", "TokenExists")
    metrics.set_total_supply("1", 2)

    registry = metrics.registry
    assert registry.get_sample_value(
        "nftledger_operations_total",
        {"collection": "1", "operation": "mint", "outcome": "success"},
    ) == 2.0
    assert registry.get_sample_value(
        "nftledger_operations_total",
        {"collection": "1", "operation": "mint", "outcome": "TokenExists"},
    ) == 1.0
    assert registry.get_sample_value("nftledger_total_supply", {"collection": "1"}) == 2.0


def test_export_text_format():
    metrics = LedgerMetrics(registry=CollectorRegistry())
    metrics.record_sink_failure("9")
    exported = metrics.export().decode()
    assert "nftledger_event_sink_failures_total" in exported
    assert 'collection="9"' in exported


def test_separate_registries_do_not_collide():
    first = LedgerMetrics(registry=CollectorRegistry())
    second = LedgerMetrics(registry=CollectorRegistry())
    first.set_total_supply("1", 5)
    assert second.registry.get_sample_value("nftledger_total_supply", {"collection": "1"}) is None
