"""Prometheus metrics for the notes application.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# Backend call metrics
# ---------------------------------------------------------------------------

BACKEND_CALLS = Counter(
    "diary_backend_calls_total",
    "Total number of calls to the hosted backend",
    ["operation", "status"],  # status: ok, or an ErrorKind value
)

BACKEND_DURATION = Histogram(
    "diary_backend_call_duration_seconds",
    "Duration of hosted backend calls in seconds",
    ["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# ---------------------------------------------------------------------------
# Session metrics
# ---------------------------------------------------------------------------

AUTH_EVENTS = Counter(
    "diary_auth_events_total",
    "Session-change notifications emitted by the backend client",
    ["event"],
)

ACTIVE_CONTROLLERS = Gauge(
    "diary_active_session_controllers",
    "Number of running session controllers",
)

# ---------------------------------------------------------------------------
# Note metrics
# ---------------------------------------------------------------------------

NOTE_OPERATIONS = Counter(
    "diary_note_operations_total",
    "Note operations requested from the workspace",
    ["operation", "result"],  # result: ok, failed, skipped
)
