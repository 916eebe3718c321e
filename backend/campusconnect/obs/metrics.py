"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"campusconnect_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"campusconnect_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"campusconnect_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"campusconnect_socketio_events_total",
	"Socket.IO events handled per namespace",
	["namespace", "event"],
)

LOCATION_UPDATES = Counter(
	"campusconnect_location_updates_total",
	"Location updates by final outcome",
	["outcome"],
)

PROXIMITY_CANDIDATES = Histogram(
	"campusconnect_proximity_candidates",
	"Candidates gathered from the nine neighbouring buckets per update",
	buckets=(0, 1, 2, 5, 10, 25, 50, 100, 250, 500),
)

PROXIMITY_SUGGESTIONS = Counter(
	"campusconnect_proximity_suggestions_total",
	"Proximity suggestions emitted",
)

PROXIMITY_SEARCH_FAILURES = Counter(
	"campusconnect_proximity_search_failures_total",
	"Candidate searches that failed after the location was persisted",
)

GEOFENCE_FALLBACKS = Counter(
	"campusconnect_geofence_fallbacks_total",
	"Geofence settings resolved from environment/defaults",
	["reason"],
)

FANOUT_DELIVERIES = Counter(
	"campusconnect_fanout_deliveries_total",
	"Real-time payloads handed to live connections",
	["event"],
)

MATCH_RECOMMENDATIONS = Counter(
	"campusconnect_match_recommendations_total",
	"Recommendation queries served",
)

REDIS_UP = Gauge("campusconnect_redis_up", "Redis readiness (1 = ok)")
POSTGRES_UP = Gauge("campusconnect_postgres_up", "Postgres readiness (1 = ok)")
DEPENDENCY_LATENCY = Histogram(
	"campusconnect_dependency_ping_seconds",
	"Readiness ping latency per dependency",
	["dependency"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def inc_location_update(outcome: str) -> None:
	LOCATION_UPDATES.labels(outcome=outcome).inc()


def observe_candidates(count: int) -> None:
	PROXIMITY_CANDIDATES.observe(count)


def inc_suggestions(count: int = 1) -> None:
	PROXIMITY_SUGGESTIONS.inc(count)


def inc_search_failure() -> None:
	PROXIMITY_SEARCH_FAILURES.inc()


def inc_geofence_fallback(reason: str) -> None:
	GEOFENCE_FALLBACKS.labels(reason=reason).inc()


def inc_fanout_delivery(event: str, count: int = 1) -> None:
	FANOUT_DELIVERIES.labels(event=event).inc(count)


def inc_match_recommendations() -> None:
	MATCH_RECOMMENDATIONS.inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="redis").observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DEPENDENCY_LATENCY.labels(dependency="postgres").observe(latency_seconds)
