"""JSON logging with request-scoped context.

Request context (request id, route, user, client ip) lives in a single
ContextVar so that every record emitted while a request is being served carries
it, including records from library loggers.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from campusconnect.settings import settings

ROOT_LOGGER = "campusconnect"

_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("campusconnect_log_context", default={})

_CONTEXT_FIELDS = ("request_id", "route", "user_id", "client_ip")

# ``extra`` keys whose values never reach the log stream: secrets match by
# substring, coordinates by whole underscore-separated word
_SECRET_MARKERS = ("token", "secret", "password", "authorization", "cookie")
_COORDINATE_WORDS = frozenset({"lat", "lng", "lon", "latitude", "longitude", "coordinate", "coordinates"})

_MAX_STR = 256
_MAX_ITEMS = 10

# Attributes every LogRecord has; anything else came in through ``extra``
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def bind_context(**fields: Optional[str]) -> Token:
	"""Merge non-empty ``fields`` into the current context; pass the token to reset_context."""
	merged = dict(_CONTEXT.get())
	for key, value in fields.items():
		if key not in _CONTEXT_FIELDS:
			raise TypeError(f"unknown log context field: {key}")
		if value:
			merged[key] = value
	return _CONTEXT.set(merged)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def scrub(key: str, value: Any) -> Any:
	lowered = str(key).lower()
	words = set(lowered.replace("-", "_").split("_"))
	if words & _COORDINATE_WORDS or any(marker in lowered for marker in _SECRET_MARKERS):
		return "[redacted]"
	if isinstance(value, str) and len(value) > _MAX_STR:
		return value[:_MAX_STR] + "..."
	if isinstance(value, Mapping):
		items = list(value.items())[:_MAX_ITEMS]
		return {k: scrub(k, v) for k, v in items}
	if isinstance(value, (list, tuple, set, frozenset)):
		items = list(value)
		trimmed = [scrub("", item) for item in items[:_MAX_ITEMS]]
		if len(items) > _MAX_ITEMS:
			trimmed.append(f"+{len(items) - _MAX_ITEMS} more")
		return trimmed
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		doc: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		doc.update(_CONTEXT.get())
		for key, value in vars(record).items():
			if key in _STANDARD_ATTRS or key in doc:
				continue
			doc[key] = scrub(key, value)
		if record.exc_info:
			doc["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(doc, default=str, separators=(",", ":"))


class InfoSamplingFilter(logging.Filter):
	"""Keep a fraction of INFO records; everything else passes."""

	def __init__(self, rate: Optional[float] = None) -> None:
		super().__init__()
		self._rate = rate

	@property
	def rate(self) -> float:
		value = settings.obs_log_sampling_rate_info if self._rate is None else self._rate
		return max(0.0, min(1.0, value))

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = self.rate
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	"""Install the JSON handler on the root logger."""
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	for existing in list(root.handlers):
		if isinstance(existing.formatter, JSONLogFormatter):
			root.removeHandler(existing)
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(ROOT_LOGGER)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or ROOT_LOGGER)
