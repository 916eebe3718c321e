"""Identity-addressed real-time fan-out.

The transport layer records which connection ids belong to which identity;
the dispatcher delivers one payload to every live connection of a single
identity. An identity without live connections is simply skipped.
"""

from __future__ import annotations

import logging
import threading
from typing import Awaitable, Callable, Dict, FrozenSet, Optional, Protocol, Set

from campusconnect.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

Emitter = Callable[[str, dict, str], Awaitable[None]]


class SendToIdentity(Protocol):
	async def __call__(self, identity: str, event: str, payload: dict) -> int: ...


class ConnectionRegistry:
	"""Thread-safe identity -> set of connection ids multi-map."""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._by_identity: Dict[str, Set[str]] = {}

	def add(self, identity: str, connection_id: str) -> None:
		with self._lock:
			self._by_identity.setdefault(identity, set()).add(connection_id)

	def remove(self, identity: str, connection_id: str) -> None:
		with self._lock:
			connections = self._by_identity.get(identity)
			if not connections:
				return
			connections.discard(connection_id)
			if not connections:
				del self._by_identity[identity]

	def connections(self, identity: str) -> FrozenSet[str]:
		with self._lock:
			return frozenset(self._by_identity.get(identity, ()))

	def is_online(self, identity: str) -> bool:
		with self._lock:
			return bool(self._by_identity.get(identity))

	def __len__(self) -> int:
		with self._lock:
			return len(self._by_identity)

	def clear(self) -> None:
		with self._lock:
			self._by_identity.clear()


class FanoutDispatcher:
	"""Deliver payloads to all live connections of one identity."""

	def __init__(self, registry: ConnectionRegistry, emit: Optional[Emitter] = None) -> None:
		self.registry = registry
		self._emit = emit

	def bind(self, emit: Emitter) -> None:
		self._emit = emit

	async def send_to_identity(self, identity: str, event: str, payload: dict) -> int:
		"""Return the number of connections the payload was handed to."""
		if self._emit is None:
			return 0
		delivered = 0
		for connection_id in self.registry.connections(identity):
			try:
				await self._emit(event, payload, connection_id)
			except Exception:
				logger.warning("fanout emit failed identity=%s sid=%s", identity, connection_id, exc_info=True)
				continue
			delivered += 1
		if delivered:
			obs_metrics.inc_fanout_delivery(event, delivered)
		return delivered


registry = ConnectionRegistry()
dispatcher = FanoutDispatcher(registry)
