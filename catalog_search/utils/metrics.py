"""
Request metrics for the HTTP layer.

Tracks latency percentiles (p50, p95, p99), request counts and error rates
per endpoint over a sliding window of recent samples.
"""

import statistics
import threading
from collections import defaultdict, deque
from datetime import datetime
from typing import Dict, Optional

from catalog_search.data.product import utcnow


class MetricsCollector:
    """In-memory metrics collector."""

    def __init__(self, window_size: int = 1000):
        """
        Args:
            window_size: Number of recent samples to keep for percentiles
        """
        self.window_size = window_size
        self._lock = threading.Lock()

        self.latencies: Dict[str, deque] = defaultdict(lambda: deque(maxlen=window_size))
        self.request_counts: Dict[str, int] = defaultdict(int)
        self.error_counts: Dict[str, int] = defaultdict(int)

        self.start_time: datetime = utcnow()
        self.last_reset: datetime = self.start_time

    def record_latency(self, endpoint: str, latency_ms: float) -> None:
        with self._lock:
            self.latencies[endpoint].append(latency_ms)
            self.request_counts[endpoint] += 1

    def record_error(self, endpoint: str) -> None:
        with self._lock:
            self.error_counts[endpoint] += 1

    def get_percentile(self, endpoint: str, percentile: float) -> Optional[float]:
        """
        Latency percentile for an endpoint.

        Returns:
            Latency in ms, or None with fewer than 10 samples
        """
        samples = self.latencies.get(endpoint)
        if not samples or len(samples) < 10:
            return None
        values = sorted(samples)
        index = min(int(len(values) * (percentile / 100.0)), len(values) - 1)
        return values[index]

    def get_error_rate(self, endpoint: str) -> float:
        """Error rate as a percentage."""
        total = self.request_counts.get(endpoint, 0)
        if total == 0:
            return 0.0
        return self.error_counts.get(endpoint, 0) / total * 100.0

    def get_summary(self) -> Dict:
        summary = {
            "uptime_seconds": round((utcnow() - self.start_time).total_seconds(), 2),
            "endpoints": {},
        }
        with self._lock:
            endpoints = list(self.request_counts)
        for endpoint in endpoints:
            endpoint_metrics = {
                "total_requests": self.request_counts[endpoint],
                "total_errors": self.error_counts.get(endpoint, 0),
                "error_rate_pct": round(self.get_error_rate(endpoint), 2),
            }
            for label, pct in (("p50", 50), ("p95", 95), ("p99", 99)):
                value = self.get_percentile(endpoint, pct)
                if value is not None:
                    endpoint_metrics[f"latency_{label}_ms"] = round(value, 2)
            if self.latencies[endpoint]:
                endpoint_metrics["latency_avg_ms"] = round(statistics.mean(self.latencies[endpoint]), 2)
            summary["endpoints"][endpoint] = endpoint_metrics
        return summary

    def reset(self) -> None:
        with self._lock:
            self.latencies.clear()
            self.request_counts.clear()
            self.error_counts.clear()
            self.last_reset = utcnow()
