"""Pure derivations from the relationship view for the friends screen."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from friendlink.domain.social.models import (
	NO_PENDING_MESSAGE,
	UNKNOWN_SENDER_NAME,
	Affordance,
	AffordanceAction,
	FriendRequest,
	RelationshipStatus,
	UserSummary,
)
from friendlink.settings import settings

RESPOND = Affordance(label="Respond", style_class="respond", enabled=True, action=AffordanceAction.VIEW_REQUESTS)
REQUEST_SENT = Affordance(label="Request Sent", style_class="pending", enabled=False, action=AffordanceAction.NONE)
FRIENDS = Affordance(label="Friends", style_class="friends", enabled=False, action=AffordanceAction.NONE)
ADD_FRIEND = Affordance(label="Add Friend", style_class="add", enabled=True, action=AffordanceAction.SEND)


def _has_live_request_from(user_id: str, pending_incoming: Iterable[FriendRequest]) -> bool:
	return any(request.sender_id == user_id and request.is_pending for request in pending_incoming)


def affordance_for(user: UserSummary, pending_incoming: Iterable[FriendRequest]) -> Affordance:
	"""Button state for one row; first matching rule wins.

	A live incoming request beats whatever the directory snapshot says.
	"""
	if _has_live_request_from(user.id, pending_incoming):
		return RESPOND
	status = user.relationship_status
	if status is RelationshipStatus.PENDING_OUTGOING:
		return REQUEST_SENT
	if status is RelationshipStatus.PENDING_INCOMING:
		return RESPOND
	if status is RelationshipStatus.FRIENDS:
		return FRIENDS
	return ADD_FRIEND


def affordances(
	users: Iterable[UserSummary],
	pending_incoming: Sequence[FriendRequest],
) -> List[Tuple[UserSummary, Affordance]]:
	return [(user, affordance_for(user, pending_incoming)) for user in users]


def pending_requests_summary(pending_incoming: Sequence[FriendRequest]) -> str:
	if not pending_incoming:
		return NO_PENDING_MESSAGE
	names = ", ".join(request.sender_name or UNKNOWN_SENDER_NAME for request in pending_incoming)
	return f"You have pending requests from: {names}"


def mutual_friends_caption(user: UserSummary) -> Optional[str]:
	if user.mutual_friend_count <= 0:
		return None
	return f"{user.mutual_friend_count} mutual friends"


def avatar_url(avatar_ref: Optional[str], placeholder: Optional[str] = None) -> str:
	return avatar_ref or placeholder or settings.avatar_placeholder_url
