"""Fixed-window request counters kept in Redis."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from campusconnect.infra.redis import redis_client


@dataclass(frozen=True, slots=True)
class WindowHit:
	count: int
	limit: int
	reset_in: int

	@property
	def allowed(self) -> bool:
		return self.count <= self.limit


async def hit(
	kind: str,
	actor_id: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> WindowHit:
	"""Count one more operation of ``kind`` by ``actor_id`` in the current window."""
	now = time.time() if now is None else now
	window = max(1, int(window_seconds))
	window_start = int(now // window) * window
	key = f"ratelimit:{kind}:{actor_id}:{window_start}"
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window)
		count, _ = await pipe.execute()
	return WindowHit(count=int(count), limit=limit, reset_in=max(1, window_start + window - int(now)))


class RateLimitExceeded(Exception):
	def __init__(self, kind: str, retry_after: Optional[int] = None) -> None:
		super().__init__(kind)
		self.kind = kind
		self.retry_after = retry_after
