"""Observability bootstrap: JSON logging plus request metrics middleware."""

from __future__ import annotations

from fastapi import FastAPI

from campusconnect.obs import logging as obs_logging
from campusconnect.obs import middleware
from campusconnect.settings import settings


def init(app: FastAPI) -> bool:
	"""Wire observability into ``app`` once; returns False when disabled."""
	if not settings.obs_enabled:
		return False
	if getattr(app.state, "obs_installed", False):
		return True
	obs_logging.configure_logging()
	middleware.install(app)
	app.state.obs_installed = True
	return True


__all__ = ["init"]
