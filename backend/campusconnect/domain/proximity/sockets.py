"""Socket.IO namespace for proximity suggestions and live location updates."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import socketio

from campusconnect.domain.proximity import service
from campusconnect.domain.proximity.dispatch import ConnectionRegistry, FanoutDispatcher, dispatcher
from campusconnect.domain.proximity.exceptions import ProximityError, RateLimitExceeded
from campusconnect.infra.auth import AuthenticatedUser, Role, parse_socket_token
from campusconnect.obs import metrics as obs_metrics
from campusconnect.settings import settings

logger = logging.getLogger(__name__)

NAMESPACE = "/proximity"


def _header(scope: dict, name: str) -> Optional[str]:
    target = name.encode().lower()
    for key, value in scope.get("headers", []):
        if key.lower() == target:
            return value.decode()
    return None


class ProximityNamespace(socketio.AsyncNamespace):
    """Tracks which connections belong to which identity and accepts live location updates."""

    def __init__(self, fanout: FanoutDispatcher = dispatcher) -> None:
        super().__init__(NAMESPACE)
        self.fanout = fanout
        self.users: Dict[str, AuthenticatedUser] = {}

    async def trigger_event(self, event: str, *args):
        # "location:update" dispatches to on_location_update
        return await super().trigger_event((event or "").replace(":", "_"), *args)

    @property
    def registry(self) -> ConnectionRegistry:
        return self.fanout.registry

    async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
        obs_metrics.socket_connected(self.namespace)
        try:
            user = self._authorise(environ, auth)
        except Exception:
            obs_metrics.socket_disconnected(self.namespace)
            raise ConnectionRefusedError("unauthorized") from None
        self.users[sid] = user
        self.registry.add(user.id, sid)
        await self.enter_room(sid, self.user_room(user.id))
        logger.info("proximity connect sid=%s user=%s", sid, user.id)
        await self.emit("proximity:ack", {"ok": True, "me": {"id": user.id}}, room=sid)

    async def on_disconnect(self, sid: str, reason: Optional[str] = None) -> None:
        obs_metrics.socket_disconnected(self.namespace)
        user = self.users.pop(sid, None)
        if not user:
            return
        self.registry.remove(user.id, sid)
        try:
            await self.leave_room(sid, self.user_room(user.id))
        except ValueError:
            pass
        logger.info("proximity disconnect sid=%s user=%s", sid, user.id)

    async def on_location_update(self, sid: str, data: Optional[dict] = None) -> None:
        obs_metrics.socket_event(self.namespace, "location_update")
        user = self.users.get(sid)
        if not user:
            await self.emit("sys.warn", {"code": "unauthorized"}, room=sid)
            return
        data = data or {}
        try:
            await service.enforce_rate_limit(user.id)
            result = await service.update_location(
                user.id,
                data.get("lat"),
                data.get("lng"),
                send=self.fanout.send_to_identity,
            )
        except RateLimitExceeded:
            await self.emit("sys.warn", {"code": "rate_limited"}, room=sid)
            return
        except ProximityError as exc:
            await self.emit("sys.warn", {"code": exc.reason, "message": exc.message}, room=sid)
            return
        profile = result.profile
        await self.emit(
            "location:ack",
            {
                "ok": True,
                "state": result.state.value,
                "location": {
                    "lat": profile.location_lat,
                    "lng": profile.location_lng,
                    "updatedAt": profile.location_updated_at.isoformat() if profile.location_updated_at else None,
                },
            },
            room=sid,
        )

    def _authorise(self, environ: dict, auth: Optional[dict]) -> AuthenticatedUser:
        scope = environ.get("asgi.scope", environ)
        auth_payload = auth or environ.get("auth") or scope.get("auth") or {}
        token = auth_payload.get("token")
        if not token:
            header = _header(scope, "authorization")
            if header and header.lower().startswith("bearer "):
                token = header.split(" ", 1)[1]
        if token:
            return parse_socket_token(str(token))
        if settings.is_dev():
            user_id = auth_payload.get("userId") or _header(scope, "x-user-id")
            if user_id:
                return AuthenticatedUser(id=str(user_id), role=Role.STUDENT)
        raise ValueError("missing_token")

    async def deliver(self, event: str, payload: dict, sid: str) -> None:
        obs_metrics.socket_event(self.namespace, event)
        await self.emit(event, payload, room=sid)

    @staticmethod
    def user_room(user_id: str) -> str:
        return f"user:{user_id}"


def set_namespace(ns: ProximityNamespace) -> None:
    """Make ``ns`` the transport behind the shared fan-out dispatcher."""
    ns.fanout.bind(ns.deliver)
