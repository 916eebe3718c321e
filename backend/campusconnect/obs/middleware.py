"""Request metrics and the structured access log."""

from __future__ import annotations

import time
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from campusconnect.obs import logging as obs_logging
from campusconnect.obs import metrics


def route_template(request: Request) -> str:
	"""Matched route path (``/users/{user_id}``) so metric labels stay bounded."""
	route = request.scope.get("route")
	return getattr(route, "path", None) or request.url.path


class ObservabilityMiddleware(BaseHTTPMiddleware):
	def __init__(self, app, *, access_logger: str = "campusconnect.http") -> None:
		super().__init__(app)
		self._log = obs_logging.get_logger(access_logger)

	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		request_id = getattr(request.state, "request_id", None) or uuid4().hex
		request.state.request_id = request_id
		token = obs_logging.bind_context(
			request_id=request_id,
			route=request.url.path,
			client_ip=request.client.host if request.client else None,
		)
		started = time.perf_counter()
		status_code = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
			response.headers.setdefault("X-Request-Id", request_id)
			return response
		finally:
			elapsed = time.perf_counter() - started
			template = route_template(request)
			metrics.observe_request(template, request.method, status_code, elapsed)
			self._log.info(
				"http_request",
				extra={
					"method": request.method,
					"path_template": template,
					"status": status_code,
					"latency_ms": round(elapsed * 1000, 3),
				},
			)
			obs_logging.reset_context(token)


def install(app: FastAPI) -> None:
	app.add_middleware(ObservabilityMiddleware)
