"""Prometheus metrics definitions for the aivestor backend."""
from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

TRADES_EXECUTED = Counter(
    "trades_executed_total",
    "Trades processed by the position ledger",
    ["side", "outcome"],  # side=buy/sell, outcome=committed/rejected/conflict
)

LEDGER_COMMIT_CONFLICTS = Counter(
    "ledger_commit_conflicts_total",
    "Snapshot writes rejected because the version token changed",
    ["operation"],  # trade/sync
)

LEDGER_COMMIT_DURATION = Histogram(
    "ledger_commit_duration_seconds",
    "Read-compute-write cycle time including retries",
    ["operation"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

AI_SERVICE_DURATION = Histogram(
    "ai_service_request_duration_seconds",
    "Latency of calls to the AI prediction service",
    ["endpoint"],  # predict/portfolio
)

AI_SERVICE_ERRORS = Counter(
    "ai_service_errors_total",
    "Failed calls to the AI prediction service",
    ["endpoint"],
)

WS_CLIENTS = Gauge(
    "ws_price_clients",
    "WebSocket clients subscribed to price ticks",
)

PRICE_TICKS_BROADCAST = Counter(
    "price_ticks_broadcast_total",
    "Price tick batches pushed to WebSocket clients",
)
