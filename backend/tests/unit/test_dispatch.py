from unittest.mock import AsyncMock

import pytest

from campusconnect.domain.proximity.dispatch import ConnectionRegistry, FanoutDispatcher


def test_registry_tracks_connections_per_identity():
	reg = ConnectionRegistry()
	reg.add("alice", "sid-1")
	reg.add("alice", "sid-2")
	reg.add("bob", "sid-3")
	assert reg.connections("alice") == {"sid-1", "sid-2"}
	assert len(reg) == 2

	reg.remove("alice", "sid-1")
	reg.remove("alice", "sid-2")
	assert not reg.is_online("alice")
	assert reg.connections("alice") == frozenset()
	reg.remove("nobody", "sid-9")
	assert len(reg) == 1


@pytest.mark.asyncio
async def test_send_to_identity_reaches_every_connection():
	reg = ConnectionRegistry()
	reg.add("alice", "sid-1")
	reg.add("alice", "sid-2")
	reg.add("bob", "sid-3")
	emit = AsyncMock()
	fanout = FanoutDispatcher(reg, emit)

	delivered = await fanout.send_to_identity("alice", "evt", {"x": 1})

	assert delivered == 2
	targets = sorted(call.args[2] for call in emit.await_args_list)
	assert targets == ["sid-1", "sid-2"]


@pytest.mark.asyncio
async def test_offline_identity_is_a_no_op():
	emit = AsyncMock()
	fanout = FanoutDispatcher(ConnectionRegistry(), emit)
	assert await fanout.send_to_identity("ghost", "evt", {}) == 0
	emit.assert_not_awaited()


@pytest.mark.asyncio
async def test_unbound_dispatcher_delivers_nothing():
	reg = ConnectionRegistry()
	reg.add("alice", "sid-1")
	assert await FanoutDispatcher(reg).send_to_identity("alice", "evt", {}) == 0


@pytest.mark.asyncio
async def test_failed_emit_does_not_block_other_connections():
	reg = ConnectionRegistry()
	reg.add("alice", "sid-1")
	reg.add("alice", "sid-2")

	async def flaky(event, payload, sid):
		if sid == "sid-1":
			raise RuntimeError("socket closed")

	fanout = FanoutDispatcher(reg)
	fanout.bind(flaky)
	assert await fanout.send_to_identity("alice", "evt", {}) == 1
