"""CloudWatch metrics for the dispatcher's external calls.

Two services are tracked: ``zuper`` (REST API) and ``anthropic`` (LLM).  Each
call produces a ``CallCount`` datum, a ``Latency`` datum when the duration is
known, and an ``ErrorCount`` datum on failure.  Data points are buffered and
published in batches by a daemon thread; with ``METRICS_ENABLED`` unset they
are only logged.

>>> from zuper_dispatch.services.metrics import metrics
>>> with metrics.track("zuper", "GET /api/jobs"):
...     ...
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "ZuperDispatch"
METRIC_PREFIX = "External"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # CloudWatch limit per PutMetricData call


def error_type_of(exc: BaseException) -> str:
    """``http_<status>`` for HTTP-level failures, else the exception class name."""
    status = getattr(exc, "status_code", None)
    return f"http_{status}" if status else type(exc).__name__


class MetricsClient:
    """Buffers metric data and ships it to CloudWatch in batches."""

    def __init__(self, enabled: bool | None = None, namespace: str = NAMESPACE) -> None:
        if enabled is None:
            enabled = os.getenv("METRICS_ENABLED", "false").lower() == "true"
        self.enabled = enabled
        self.namespace = namespace
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None

        if self.enabled:
            self._start_flush_thread()

    # ── Recording ─────────────────────────────────────────────────────

    @contextmanager
    def track(self, service: str, operation: str) -> Iterator[None]:
        """Time the enclosed block and record it as one call to *service*.

        Exceptions are recorded as failures and re-raised.
        """
        started = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.record_failure(
                service, operation,
                error_type=error_type_of(exc),
                latency_ms=(time.perf_counter() - started) * 1000,
            )
            raise
        self.record_success(service, operation, latency_ms=(time.perf_counter() - started) * 1000)

    def record_success(self, service: str, operation: str, latency_ms: float) -> None:
        now = datetime.now(UTC)
        self._extend(
            _datum("CallCount", now, 1, "Count", Service=service, Status="success"),
            _datum("Latency", now, latency_ms, "Milliseconds", Service=service, Operation=operation),
        )
        logger.debug("%s %s ok in %.1fms", service, operation, latency_ms)

    def record_failure(
        self,
        service: str,
        operation: str,
        error_type: str,
        latency_ms: float = 0,
    ) -> None:
        """Record a failed call; latency is only kept when it was measured."""
        now = datetime.now(UTC)
        data = [
            _datum("CallCount", now, 1, "Count", Service=service, Status="failure"),
            _datum("ErrorCount", now, 1, "Count", Service=service, ErrorType=error_type),
        ]
        if latency_ms > 0:
            data.append(
                _datum("Latency", now, latency_ms, "Milliseconds", Service=service, Operation=operation)
            )
        self._extend(*data)
        logger.debug("%s %s failed (%s) after %.1fms", service, operation, error_type, latency_ms)

    # ── Publishing ────────────────────────────────────────────────────

    def flush(self) -> int:
        """Drain the buffer.  Returns how many data points reached CloudWatch."""
        with self._lock:
            batch, self._buffer = self._buffer, []
        if not batch:
            return 0
        if not self.enabled:
            logger.debug("Dropping %d metric(s): publishing disabled", len(batch))
            return 0

        sent = 0
        try:
            cw = self._cloudwatch()
            for start in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[start : start + MAX_BATCH_SIZE]
                cw.put_metric_data(Namespace=self.namespace, MetricData=chunk)
                sent += len(chunk)
        except Exception:
            logger.exception("Publishing %d metric(s) to CloudWatch failed", len(batch))
            return sent
        logger.info("Published %d metric(s) to CloudWatch", sent)
        return sent

    def _cloudwatch(self):
        if self._cw_client is None:
            import boto3

            self._cw_client = boto3.client("cloudwatch")
        return self._cw_client

    def _extend(self, *data: dict[str, Any]) -> None:
        with self._lock:
            self._buffer.extend(data)

    def _start_flush_thread(self) -> None:
        def _loop() -> None:
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                try:
                    self.flush()
                except Exception:
                    logger.exception("Metrics flush thread error")

        threading.Thread(target=_loop, daemon=True, name="metrics-flush").start()
        atexit.register(self.flush)
        logger.info("Publishing metrics to %s every %ds", self.namespace, FLUSH_INTERVAL_SECONDS)


def _datum(name: str, timestamp: datetime, value: float, unit: str, **dimensions: str) -> dict[str, Any]:
    return {
        "MetricName": f"{METRIC_PREFIX}/{name}",
        "Dimensions": [{"Name": k, "Value": v} for k, v in dimensions.items()],
        "Timestamp": timestamp,
        "Value": value,
        "Unit": unit,
    }


metrics = MetricsClient()
