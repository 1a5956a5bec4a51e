"""Pydantic schemas for directory records and event-channel payloads."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _as_str(value: Any) -> Any:
	if value is None or isinstance(value, str):
		return value
	if isinstance(value, (int, float)):
		return str(value)
	return value


IdStr = Annotated[str, BeforeValidator(_as_str)]
OptionalIdStr = Annotated[Optional[str], BeforeValidator(_as_str)]


class UserRecord(BaseModel):
	"""Row returned by ``GET /api/user`` and ``GET /api/friends/{id}``."""

	model_config = ConfigDict(extra="ignore", populate_by_name=True)

	id: IdStr = Field(..., validation_alias=AliasChoices("_id", "id"))
	name: str = ""
	profile_picture: Optional[str] = Field(default=None, validation_alias=AliasChoices("profilePicture", "profile_picture"))
	mutual_friends: int = Field(default=0, validation_alias=AliasChoices("mutualFriends", "mutual_friends"))
	friendship_status: Optional[str] = Field(
		default=None,
		validation_alias=AliasChoices("friendshipStatus", "friendship_status"),
	)

	@field_validator("name", mode="before")
	def _name_or_blank(cls, value):  # type: ignore[override]
		return "" if value is None else value

	@field_validator("mutual_friends", mode="before")
	def _count_or_zero(cls, value):  # type: ignore[override]
		if value is None:
			return 0
		if isinstance(value, (list, tuple)):
			return len(value)
		return value


class PartyRef(BaseModel):
	"""Sender or receiver, when the server populates the reference."""

	model_config = ConfigDict(extra="ignore", populate_by_name=True)

	id: OptionalIdStr = Field(default=None, validation_alias=AliasChoices("_id", "id"))
	name: Optional[str] = None
	profile_picture: Optional[str] = Field(default=None, validation_alias=AliasChoices("profilePicture", "profile_picture"))


class FriendRequestRecord(BaseModel):
	"""Payload of ``new_friend_request`` and items of ``pending_requests``."""

	model_config = ConfigDict(extra="ignore", populate_by_name=True)

	id: IdStr = Field(..., validation_alias=AliasChoices("_id", "id", "requestId"))
	sender: Union[str, PartyRef]
	sender_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("senderName", "sender_name"))
	receiver: Union[str, PartyRef, None] = None
	status: Literal["pending", "accepted", "rejected", "cancelled"] = "pending"

	def sender_id(self) -> str:
		if isinstance(self.sender, PartyRef):
			return self.sender.id or ""
		return self.sender

	def sender_display_name(self) -> str:
		if isinstance(self.sender, PartyRef) and self.sender.name:
			return self.sender.name
		return self.sender_name or ""

	def sender_avatar(self) -> Optional[str]:
		if isinstance(self.sender, PartyRef):
			return self.sender.profile_picture
		return None

	def receiver_keys(self) -> tuple[str, ...]:
		"""Every identifier the receiver is referenced by (id and/or name)."""
		if self.receiver is None:
			return ()
		if isinstance(self.receiver, PartyRef):
			return tuple(key for key in (self.receiver.id, self.receiver.name) if key)
		return (self.receiver,)


class GetPendingRequestsPayload(BaseModel):
	user_id: str = Field(..., serialization_alias="userId")
	user_name: str = Field(default="", serialization_alias="userName")


class SendFriendRequestPayload(BaseModel):
	sender_name: str = Field(..., serialization_alias="senderName")
	receiver_name: str = Field(..., serialization_alias="receiverName")


class AcceptFriendRequestPayload(BaseModel):
	request_id: str = Field(..., serialization_alias="requestId")
