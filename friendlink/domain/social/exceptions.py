"""Domain-level exceptions for the friends client."""

from __future__ import annotations


class SocialClientError(Exception):
	"""Base class for friends client errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class TransportError(SocialClientError):
	"""A request/response fetch failed or returned an unusable payload."""

	reason = "transport"

	def __init__(self, reason: str | None = None, *, status_code: int | None = None) -> None:
		super().__init__(reason)
		self.status_code = status_code


class ChannelUnavailable(SocialClientError):
	"""No live event-channel connection to emit on."""

	reason = "channel_unavailable"


class StaleReferenceWarning(SocialClientError):
	"""An action referenced a request id that is no longer pending locally."""

	reason = "stale_reference"

	def __init__(self, request_id: str) -> None:
		super().__init__()
		self.request_id = request_id
