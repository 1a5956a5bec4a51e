"""Directory and friend-list fetches over the request/response API."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from friendlink.domain.social.exceptions import TransportError
from friendlink.domain.social.models import RelationshipStatus, UserSummary
from friendlink.domain.social.schemas import UserRecord
from friendlink.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

DIRECTORY_PATH = "/api/user"
FRIENDS_PATH = "/api/friends/{user_id}"


def _record_to_user(record: UserRecord, *, status: Optional[RelationshipStatus] = None) -> UserSummary:
	return UserSummary(
		id=record.id,
		display_name=record.name,
		avatar_ref=record.profile_picture or None,
		mutual_friend_count=max(0, record.mutual_friends),
		relationship_status=status or RelationshipStatus.from_wire(record.friendship_status),
	)


class DirectoryFetcher:
	"""Pulls immutable user snapshots; never patches a previous result."""

	def __init__(self, http: httpx.AsyncClient) -> None:
		self._http = http

	async def fetch_directory(self, session_user_id: Optional[str]) -> Tuple[UserSummary, ...]:
		"""Candidate users, minus the session user and existing friends.

		Without a session user the directory is returned unfiltered.
		"""
		records = await self._get_records(DIRECTORY_PATH, kind="directory")
		users = [_record_to_user(record) for record in records]
		if not session_user_id:
			return tuple(users)
		return tuple(
			user
			for user in users
			if user.id != session_user_id and user.relationship_status is not RelationshipStatus.FRIENDS
		)

	async def fetch_friends(self, session_user_id: Optional[str]) -> Tuple[UserSummary, ...]:
		if not session_user_id:
			return ()
		path = FRIENDS_PATH.format(user_id=quote(str(session_user_id), safe=""))
		records = await self._get_records(path, kind="friends")
		return tuple(_record_to_user(record, status=RelationshipStatus.FRIENDS) for record in records)

	async def _get_records(self, path: str, *, kind: str) -> List[UserRecord]:
		try:
			response = await self._http.get(path)
		except httpx.HTTPError as exc:
			obs_metrics.inc_fetch(kind, "network_error")
			raise TransportError("network") from exc
		if not response.is_success:
			obs_metrics.inc_fetch(kind, "bad_status")
			raise TransportError(f"status_{response.status_code}", status_code=response.status_code)
		try:
			data = response.json()
		except ValueError as exc:
			obs_metrics.inc_fetch(kind, "malformed")
			raise TransportError("malformed") from exc
		if not isinstance(data, list):
			obs_metrics.inc_fetch(kind, "malformed")
			raise TransportError("malformed")
		try:
			records = [UserRecord.model_validate(item) for item in data]
		except ValidationError as exc:
			obs_metrics.inc_fetch(kind, "malformed")
			raise TransportError("malformed") from exc
		obs_metrics.inc_fetch(kind, "ok")
		logger.debug("Fetched %d %s records", len(records), kind)
		return records
