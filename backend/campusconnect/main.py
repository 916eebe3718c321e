"""ASGI entrypoints: ``app`` (FastAPI) and ``socket_app`` (Socket.IO wrapping it)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import List

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campusconnect.api import admin, match, ops, users
from campusconnect.api.errors import install_error_handlers
from campusconnect.api.middleware_request_id import RequestIdMiddleware
from campusconnect.domain.proximity import repository
from campusconnect.domain.proximity.sockets import ProximityNamespace, set_namespace
from campusconnect.infra import postgres
from campusconnect.obs import init as obs_init
from campusconnect.settings import settings

DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"]
PROD_ORIGINS = ["https://app.campusconnect.example"]


def allowed_origins() -> List[str]:
	"""Configured origins, or the environment default.

	A wildcard cannot be combined with credentialed CORS, so ``*`` collapses
	to the default list as well.
	"""
	configured = [origin for origin in settings.cors_allow_origins if origin != "*"]
	if configured and "*" not in settings.cors_allow_origins:
		return configured
	return DEV_ORIGINS if settings.is_dev() else PROD_ORIGINS


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	await repository.ensure_schema()
	try:
		yield
	finally:
		await postgres.close_pool()


origins = allowed_origins()

app = FastAPI(title="CampusConnect Proximity", lifespan=lifespan)
install_error_handlers(app)
app.add_middleware(
	CORSMiddleware,
	allow_origins=origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
obs_init(app)
# outermost, so the id exists before logging context is bound
app.add_middleware(RequestIdMiddleware)

app.include_router(users.router, tags=["profile"])
app.include_router(match.router, tags=["match"])
app.include_router(admin.router)
app.include_router(ops.router)

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=origins)
proximity_namespace = ProximityNamespace()
sio.register_namespace(proximity_namespace)
set_namespace(proximity_namespace)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
