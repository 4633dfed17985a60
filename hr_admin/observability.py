"""
Lightweight execution tracing.

Every data-source read and workflow action runs inside ``trace_span`` so
a slow Snowflake query, a circuit breaker trip or a rejected transition
shows up as one structured latency line per operation.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager

logger = logging.getLogger("hr_admin.trace")


@contextmanager
def trace_span(name: str, **metadata):
    """
    Measure execution duration of an operation.

    Example log:
    [TRACE] leave.approve duration_ms=0.42 leave=7 reviewer=5 outcome=ok

    Guarantees
    ----------
    - Always logs completion, including when an exception escapes
    - Never suppresses exceptions
    - Produces key=value logs; ``outcome`` is ``ok`` or the exception class
    """
    start = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except Exception as e:
        outcome = type(e).__name__
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000

        meta = " ".join(f"{k}={v}" for k, v in metadata.items())
        logger.info("[TRACE] %s duration_ms=%.2f %s outcome=%s", name, duration_ms, meta, outcome)
