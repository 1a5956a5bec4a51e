"""Read-only access to the session cached on the device at login.

The login flow stores a JSON document of string keys to values (values are
usually JSON-encoded strings, as a mobile key-value store would hold them).
The friends client only ever reads the ``userData`` entry.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from friendlink.domain.social.models import Session
from friendlink.settings import settings

logger = logging.getLogger(__name__)


class SessionStore:
	"""Contract for session lookups; ``None`` means nobody is signed in."""

	def read(self) -> Optional[Session]:  # pragma: no cover - interface
		raise NotImplementedError


class MemorySessionStore(SessionStore):
	def __init__(self, session: Optional[Session] = None) -> None:
		self._session = session

	def read(self) -> Optional[Session]:
		return self._session


class JsonFileSessionStore(SessionStore):
	"""Session store backed by a JSON key-value file."""

	def __init__(self, path: Path | str | None = None, key: Optional[str] = None) -> None:
		self.path = Path(path or settings.session_store_path).expanduser()
		self.key = key or settings.session_store_key

	def read(self) -> Optional[Session]:
		if not self.path.exists():
			return None
		try:
			storage = json.loads(self.path.read_text(encoding="utf-8"))
		except (OSError, ValueError):
			logger.warning("Error reading session storage at %s", self.path, exc_info=True)
			return None
		if not isinstance(storage, dict):
			logger.warning("Session storage at %s is not a key-value document", self.path)
			return None
		return _decode_entry(storage.get(self.key))


def _decode_entry(raw: Any) -> Optional[Session]:
	if raw is None:
		return None
	if isinstance(raw, str):
		try:
			raw = json.loads(raw)
		except ValueError:
			logger.warning("Stored session entry is not valid JSON")
			return None
	if not isinstance(raw, dict):
		logger.warning("Stored session entry is not an object")
		return None
	try:
		return Session.from_record(raw)
	except ValueError:
		logger.warning("Stored session entry has no user id")
		return None
