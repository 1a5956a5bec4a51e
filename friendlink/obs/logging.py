"""JSON logging for the friends client.

Every record carries the service name and environment. It also carries
whichever of the session user id and the Socket.IO sid are bound for the
current task.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from friendlink.settings import settings

_USER_ID: ContextVar[Optional[str]] = ContextVar("friendlink_user_id", default=None)
_CHANNEL_SID: ContextVar[Optional[str]] = ContextVar("friendlink_channel_sid", default=None)

_LOGGER_NAME = "friendlink"

# Session records and auth payloads pass through ``extra`` in a few places
_REDACT_MARKERS = ("token", "secret", "authorization", "password", "email", "phone")
_MAX_VALUE_CHARS = 256

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


def bind_context(*, user_id: Optional[str] = None, channel_sid: Optional[str] = None) -> None:
	if user_id is not None:
		_USER_ID.set(user_id)
	if channel_sid is not None:
		_CHANNEL_SID.set(channel_sid)


def clear_context() -> None:
	_USER_ID.set(None)
	_CHANNEL_SID.set(None)


def _scrub(key: str, value: Any) -> Any:
	if any(marker in str(key).lower() for marker in _REDACT_MARKERS):
		return "[redacted]"
	if isinstance(value, dict):
		return {nested_key: _scrub(nested_key, nested) for nested_key, nested in value.items()}
	if isinstance(value, str) and len(value) > _MAX_VALUE_CHARS:
		return value[:_MAX_VALUE_CHARS] + "…"
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line: fixed fields, bound context, then extras."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
		}
		for field, var in (("user_id", _USER_ID), ("channel_sid", _CHANNEL_SID)):
			value = var.get()
			if value:
				payload[field] = value
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key not in _RECORD_ATTRS:
				payload[key] = _scrub(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Sample info records at ``obs_log_sampling_rate_info``; other levels always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = settings.obs_log_sampling_rate_info
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers[:] = [handler]
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)
