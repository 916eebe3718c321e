"""Shared Redis handle.

Modules import ``redis_client`` once; tests swap the client underneath it
(fakeredis) with ``set_redis_client`` without re-importing anything.
"""

from __future__ import annotations

from typing import Any, Optional

import redis.asyncio as redis

from campusconnect.settings import settings


class RedisProxy:
	def __init__(self, url: str) -> None:
		self._url = url
		self._client: Optional[redis.Redis] = None

	@property
	def client(self) -> redis.Redis:
		if self._client is None:
			self._client = redis.from_url(self._url, decode_responses=True)
		return self._client

	def set_client(self, client: Optional[redis.Redis]) -> None:
		self._client = client

	def __getattr__(self, item: str) -> Any:
		return getattr(self.client, item)


redis_client = RedisProxy(settings.redis_url)


def set_redis_client(client: Optional[redis.Redis]) -> None:
	redis_client.set_client(client)
