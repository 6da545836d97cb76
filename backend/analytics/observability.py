"""
Module: observability.py
Description: Logging, metrics and timing helpers for the analytics engine.

Features:
    - Structured key=value logging with context
    - Timing decorators for sync and async callables
    - In-memory metrics collection and reporting

Usage:
    from analytics.observability import logger, metrics, timed

    @timed("forecast.predict_expenses")
    def predict_expenses(transactions):
        logger.info("Forecasting", count=len(transactions))
        ...

Author: Finance Analytics Team
"""

import time
import logging
import functools
import inspect
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Callable
from collections import defaultdict
from contextlib import contextmanager

from config import get_settings


# =============================================================================
# Structured Logger
# =============================================================================

class StructuredLogger:
    """
    Structured logger writing key=value fields.

    Every message is rendered as ``message | key=value | key=value`` so log
    lines stay greppable without a JSON pipeline.
    """

    def __init__(self, name: str = "finance-analytics", level: str = "INFO"):
        """Initialize logger with given name and level."""
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level, logging.INFO))

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s | %(levelname)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def _format_message(self, message: str, **kwargs) -> str:
        if kwargs:
            field_str = " | ".join(f"{k}={v}" for k, v in kwargs.items())
            return f"{message} | {field_str}"
        return message

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, **kwargs) -> None:
        self.logger.error(self._format_message(message, **kwargs))

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(self._format_message(message, **kwargs))


# =============================================================================
# Metrics Collector
# =============================================================================

class MetricsCollector:
    """
    Simple in-memory metrics collection.

    Collects counters, gauges and timing histograms. Values live for the
    lifetime of the process only.
    """

    MAX_TIMINGS = 1000

    def __init__(self):
        self.counters: Dict[str, int] = defaultdict(int)
        self.gauges: Dict[str, float] = {}
        self.timings: Dict[str, list] = defaultdict(list)
        self._start_time = datetime.now(timezone.utc)

    def increment(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter."""
        key = self._make_key(name, tags)
        self.counters[key] += value

    def gauge(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Set a gauge value."""
        key = self._make_key(name, tags)
        self.gauges[key] = value

    def timing(self, name: str, duration_ms: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Record a timing measurement."""
        key = self._make_key(name, tags)
        self.timings[key].append(duration_ms)
        if len(self.timings[key]) > self.MAX_TIMINGS:
            self.timings[key] = self.timings[key][-self.MAX_TIMINGS:]

    def reset(self) -> None:
        """Drop all collected values."""
        self.counters.clear()
        self.gauges.clear()
        self.timings.clear()

    def _make_key(self, name: str, tags: Optional[Dict[str, str]] = None) -> str:
        if tags:
            tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
            return f"{name}:{tag_str}"
        return name

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of all metrics."""
        summary = {
            "uptime_seconds": (datetime.now(timezone.utc) - self._start_time).total_seconds(),
            "counters": dict(self.counters),
            "gauges": dict(self.gauges),
            "timings": {},
        }

        for name, values in self.timings.items():
            if values:
                ordered = sorted(values)
                summary["timings"][name] = {
                    "count": len(values),
                    "avg_ms": sum(values) / len(values),
                    "min_ms": ordered[0],
                    "max_ms": ordered[-1],
                    "p50_ms": ordered[len(values) // 2],
                    "p95_ms": ordered[int(len(values) * 0.95)] if len(values) >= 20 else None,
                }

        return summary


# =============================================================================
# Timing Decorators
# =============================================================================

def timed(name: Optional[str] = None):
    """
    Decorator to time function execution and record metrics.

    Works for both plain functions and coroutines, so engine entry points can
    be called from blocking code or from async request handlers.

    Args:
        name: Metric name (defaults to function name).
    """
    def decorator(func: Callable) -> Callable:
        metric_name = name or func.__name__

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                metrics.increment(f"{metric_name}.success")
                return result
            except Exception:
                metrics.increment(f"{metric_name}.error")
                raise
            finally:
                duration_ms = (time.perf_counter() - start) * 1000
                metrics.timing(metric_name, duration_ms)
                logger.debug(f"{metric_name} completed", duration_ms=f"{duration_ms:.2f}")

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
                metrics.increment(f"{metric_name}.success")
                return result
            except Exception:
                metrics.increment(f"{metric_name}.error")
                raise
            finally:
                duration_ms = (time.perf_counter() - start) * 1000
                metrics.timing(metric_name, duration_ms)
                logger.debug(f"{metric_name} completed", duration_ms=f"{duration_ms:.2f}")

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


@contextmanager
def timed_block(name: str):
    """
    Context manager for timing code blocks.

    Example:
        with timed_block("repository.load_transactions"):
            rows = db.query(...).all()
    """
    start = time.perf_counter()
    try:
        yield
        metrics.increment(f"{name}.success")
    except Exception:
        metrics.increment(f"{name}.error")
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        metrics.timing(name, duration_ms)


# =============================================================================
# Global Instances
# =============================================================================

logger = StructuredLogger(level=get_settings().log_level)

metrics = MetricsCollector()


# =============================================================================
# Convenience Functions
# =============================================================================

def log_forecast_complete(category_count: int, transaction_count: int) -> None:
    """Log completion of a forecast run."""
    logger.info("Forecast completed", categories=category_count, transactions=transaction_count)
    metrics.increment("forecast.completed")
    metrics.gauge("forecast.categories", category_count)


def log_anomaly_detected(category: str, z_score: float, amount: float) -> None:
    """Log a flagged transaction."""
    logger.info("Anomaly detected", category=category, z_score=f"{z_score:.2f}", amount=f"${amount:.2f}")
    metrics.increment("anomalies.detected", tags={"category": category})


def log_allocation_shortfall(shortfall: float) -> None:
    """Log minimum payments exceeding disposable income."""
    logger.warning("Minimum payments exceed disposable income", shortfall=f"${shortfall:.2f}")
    metrics.increment("allocation.shortfall")
