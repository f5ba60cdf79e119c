"""Unit tests for Prometheus metrics definitions."""
import pytest
from prometheus_client import Counter, Gauge, Histogram


@pytest.mark.unit
class TestMetricDefinitions:
    """Verify all metric objects are properly defined."""

    def test_trades_executed_is_counter(self):
        from aivestor.utils.metrics import TRADES_EXECUTED
        assert isinstance(TRADES_EXECUTED, Counter)

    def test_ledger_commit_conflicts_is_counter(self):
        from aivestor.utils.metrics import LEDGER_COMMIT_CONFLICTS
        assert isinstance(LEDGER_COMMIT_CONFLICTS, Counter)

    def test_ledger_commit_duration_is_histogram(self):
        from aivestor.utils.metrics import LEDGER_COMMIT_DURATION
        assert isinstance(LEDGER_COMMIT_DURATION, Histogram)

    def test_ai_service_metrics(self):
        from aivestor.utils.metrics import AI_SERVICE_DURATION, AI_SERVICE_ERRORS
        assert isinstance(AI_SERVICE_DURATION, Histogram)
        assert isinstance(AI_SERVICE_ERRORS, Counter)

    def test_ws_clients_is_gauge(self):
        from aivestor.utils.metrics import WS_CLIENTS
        assert isinstance(WS_CLIENTS, Gauge)

    def test_price_ticks_broadcast_is_counter(self):
        from aivestor.utils.metrics import PRICE_TICKS_BROADCAST
        assert isinstance(PRICE_TICKS_BROADCAST, Counter)

    def test_trade_labels_accept_outcomes(self):
        from aivestor.utils.metrics import TRADES_EXECUTED
        for outcome in ("committed", "rejected", "conflict"):
            TRADES_EXECUTED.labels(side="buy", outcome=outcome)
