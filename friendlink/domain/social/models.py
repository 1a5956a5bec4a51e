"""Domain models for the friends directory and friend requests."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class RelationshipStatus(str, Enum):
	"""Relationship of another user to the session user."""

	NONE = "none"
	PENDING_OUTGOING = "pending_outgoing"
	PENDING_INCOMING = "pending_incoming"
	FRIENDS = "friends"

	@classmethod
	def from_wire(cls, value: Optional[str]) -> "RelationshipStatus":
		"""Map the server's ``friendshipStatus`` vocabulary onto ours."""
		if value is None:
			return cls.NONE
		return _WIRE_STATUS.get(str(value).strip().lower(), cls.NONE)


_WIRE_STATUS = {
	"none": RelationshipStatus.NONE,
	"pending": RelationshipStatus.PENDING_OUTGOING,
	"pending_outgoing": RelationshipStatus.PENDING_OUTGOING,
	"sent": RelationshipStatus.PENDING_OUTGOING,
	"incoming": RelationshipStatus.PENDING_INCOMING,
	"pending_incoming": RelationshipStatus.PENDING_INCOMING,
	"friends": RelationshipStatus.FRIENDS,
}


class RequestStatus(str, Enum):
	"""Supported friend request statuses."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"
	CANCELLED = "cancelled"


class AffordanceAction(str, Enum):
	SEND = "send"
	VIEW_REQUESTS = "view_requests"
	NONE = "none"


DIRECTORY_ERROR_MESSAGE = "Unable to load users. Please try again later."
EMPTY_DIRECTORY_MESSAGE = "No users available to add"
NO_PENDING_MESSAGE = "No pending friend requests"
UNKNOWN_SENDER_NAME = "Unknown user"


@dataclass(slots=True, frozen=True)
class Session:
	"""Identity of the signed-in user as cached on the device."""

	user_id: str
	display_name: str

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "Session":
		user_id = record.get("_id") or record.get("id") or record.get("userId")
		if not user_id:
			raise ValueError("session record has no user id")
		return cls(user_id=str(user_id), display_name=str(record.get("name") or ""))

	def matches(self, identifier: Optional[str]) -> bool:
		"""True when ``identifier`` names this user by id or display name."""
		if not identifier:
			return False
		return identifier == self.user_id or (bool(self.display_name) and identifier == self.display_name)


@dataclass(slots=True, frozen=True)
class UserSummary:
	"""One entry of a directory or friends snapshot."""

	id: str
	display_name: str
	avatar_ref: Optional[str] = None
	mutual_friend_count: int = 0
	relationship_status: RelationshipStatus = RelationshipStatus.NONE


@dataclass(slots=True, frozen=True)
class FriendRequest:
	"""A friend request addressed to the session user."""

	id: str
	sender_id: str
	sender_name: str
	receiver_id: Optional[str]
	status: RequestStatus = RequestStatus.PENDING
	sender_avatar_ref: Optional[str] = None

	@property
	def is_pending(self) -> bool:
		return self.status is RequestStatus.PENDING


@dataclass(slots=True, frozen=True)
class Affordance:
	"""Button state derived for one directory row."""

	label: str
	style_class: str
	enabled: bool
	action: AffordanceAction
