"""OpenTelemetry メトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("k1s0_flag_overrides", version="0.1.0")

request_total = _meter.create_counter(
    name="request_total",
    description="Total number of feature flag requests",
    unit="1",
)

request_duration_seconds = _meter.create_histogram(
    name="request_duration_seconds",
    description="Feature flag request duration in seconds",
    unit="s",
)

upstream_errors_total = _meter.create_counter(
    name="upstream_errors_total",
    description="Total number of failed upstream feature flag fetches",
    unit="1",
)
