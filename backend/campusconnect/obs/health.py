"""Liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Tuple

from campusconnect.infra import postgres
from campusconnect.infra.redis import redis_client
from campusconnect.obs import metrics

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[Any]]
Marker = Callable[..., None]


async def _check(name: str, probe: Probe, mark: Marker, timeout: float) -> Dict[str, Any]:
	started = perf_counter()
	try:
		await asyncio.wait_for(probe(), timeout=timeout)
	except Exception as exc:
		mark(False)
		logger.warning("%s readiness check failed", name, exc_info=True)
		return {"ok": False, "error": str(exc) or type(exc).__name__}
	latency = perf_counter() - started
	mark(True, latency_seconds=latency)
	return {"ok": True, "latency_ms": round(latency * 1000, 2)}


async def _select_one() -> None:
	pool = await postgres.get_pool()
	async with pool.acquire() as conn:
		await conn.execute("SELECT 1")


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	return await _check("redis", redis_client.ping, metrics.mark_redis, timeout)


async def _postgres_status(timeout: float = 0.5) -> Dict[str, Any]:
	return await _check("postgres", _select_one, metrics.mark_postgres, timeout)


async def liveness() -> Dict[str, str]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	results = dict(zip(("redis", "postgres"), await asyncio.gather(_redis_status(), _postgres_status())))
	ok = all(result["ok"] for result in results.values())
	return (200 if ok else 503), {"status": "ok" if ok else "degraded", "checks": results}
