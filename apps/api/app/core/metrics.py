"""CloudWatch Embedded Metric Format (EMF) lines for the registry API.

Each call writes one JSON log line that CloudWatch turns into metrics.
Request and error metrics come from the middleware and the error handlers;
import pipeline counters go through ``emit_business_metric``.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)

_UUID_SEGMENT = re.compile(
    r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
_NUMERIC_SEGMENT = re.compile(r"/\d+")


class EMFMetrics:
    """Writes EMF log lines under one namespace."""

    def __init__(self, namespace: str | None = None):
        self.namespace = (
            namespace
            or settings.metrics_namespace
            or settings.church_name.replace(" ", "/")
        )

    def emit(
        self,
        values: dict[str, tuple[float, str]],
        dimensions: dict[str, str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Write one EMF line.

        Args:
            values: Metric name mapped to ``(value, unit)``
            dimensions: Dimension names and values shared by all metrics
            metadata: Extra top-level fields (job_id, request_id, ...)
        """
        # Read on every call so tests and ops can switch it at runtime
        if not settings.enable_metrics or not values:
            return

        dimensions = dimensions or {}
        line: dict[str, Any] = {
            "_aws": {
                "Timestamp": int(time.time() * 1000),
                "CloudWatchMetrics": [
                    {
                        "Namespace": self.namespace,
                        "Dimensions": [[name] for name in dimensions],
                        "Metrics": [
                            {"Name": name, "Unit": unit}
                            for name, (_, unit) in values.items()
                        ],
                    }
                ],
            },
            **(metadata or {}),
            **dimensions,
        }
        for name, (value, _) in values.items():
            line[name] = value

        logger.info(json.dumps(line, default=str))


_emf_metrics: EMFMetrics | None = None


def get_metrics() -> EMFMetrics:
    """Return the process-wide emitter, creating it on first use."""
    global _emf_metrics
    if _emf_metrics is None:
        _emf_metrics = EMFMetrics()
    return _emf_metrics


def emit_http_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    **metadata: Any,
) -> None:
    """Count a served request and record its latency."""
    get_metrics().emit(
        {
            "RequestCount": (1, "Count"),
            "RequestDuration": (duration_ms, "Milliseconds"),
        },
        dimensions={
            "Method": method,
            "Path": _normalize_path(path),
            "StatusCode": str(status_code),
        },
        metadata={"request_path": path, **metadata},
    )


def emit_error(
    error_code: str,
    status_code: int,
    path: str,
    method: str,
    **metadata: Any,
) -> None:
    """Count an error response, split into client and server errors."""
    get_metrics().emit(
        {"ErrorCount": (1, "Count")},
        dimensions={
            "ErrorCode": error_code,
            "StatusCode": str(status_code),
            "Severity": "server_error" if status_code >= 500 else "client_error",
            "Method": method,
            "Path": _normalize_path(path),
        },
        metadata={"request_path": path, **metadata},
    )


def emit_business_metric(
    metric_name: str,
    value: float,
    unit: str = "Count",
    category: str | None = None,
    **metadata: Any,
) -> None:
    """Emit an import or registry counter.

    Args:
        metric_name: A ``BusinessMetric`` name
        value: Metric value
        unit: CloudWatch unit (default: Count)
        category: Optional ``MetricCategory`` value, used as the only dimension
        **metadata: Extra fields such as job_id
    """
    get_metrics().emit(
        {metric_name: (value, unit)},
        dimensions={"Category": category} if category else None,
        metadata=metadata,
    )


def _normalize_path(path: str) -> str:
    """Collapse job ids in a path to ``{id}`` to keep the Path dimension small."""
    path = _UUID_SEGMENT.sub("/{id}", path)
    return _NUMERIC_SEGMENT.sub("/{id}", path)
