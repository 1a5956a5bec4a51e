"""Immutable relationship view and the pure transitions applied to it.

Every input the client sees (a directory fetch, a friends fetch, an optimistic
local action, a push event) is expressed as a function from the previous
``RelationshipView`` to the next one. Transitions never mutate their input;
when nothing changes they return the same instance so callers can skip
notifying readers.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional

from friendlink.domain.social.exceptions import StaleReferenceWarning
from friendlink.domain.social.models import FriendRequest, RelationshipStatus, UserSummary


@dataclass(slots=True, frozen=True)
class RelationshipView:
	"""Canonical relationship state for the session user."""

	directory: tuple[UserSummary, ...] = ()
	friends: tuple[UserSummary, ...] = ()
	pending_incoming: tuple[FriendRequest, ...] = ()

	def pending_ids(self) -> tuple[str, ...]:
		return tuple(request.id for request in self.pending_incoming)

	def has_pending(self, request_id: str) -> bool:
		return any(request.id == request_id for request in self.pending_incoming)

	def incoming_from(self, user_id: str) -> Optional[FriendRequest]:
		for request in self.pending_incoming:
			if request.sender_id == user_id and request.is_pending:
				return request
		return None

	def find_user(self, user_id: str) -> Optional[UserSummary]:
		for user in self.directory:
			if user.id == user_id:
				return user
		return None

	def status_of(self, user_id: str) -> RelationshipStatus:
		"""Single relationship fact for ``user_id``.

		A live pending-incoming request outranks the directory snapshot, which
		may be older than the push channel. Without one, the directory entry is
		authoritative, then the friends snapshot.
		"""
		if self.incoming_from(user_id) is not None:
			return RelationshipStatus.PENDING_INCOMING
		user = self.find_user(user_id)
		if user is not None:
			return user.relationship_status
		if any(friend.id == user_id for friend in self.friends):
			return RelationshipStatus.FRIENDS
		return RelationshipStatus.NONE

	def statuses(self) -> Dict[str, RelationshipStatus]:
		known = [user.id for user in self.friends]
		known.extend(user.id for user in self.directory)
		known.extend(request.sender_id for request in self.pending_incoming if request.sender_id)
		return {user_id: self.status_of(user_id) for user_id in dict.fromkeys(known)}


def apply_directory(view: RelationshipView, users: Iterable[UserSummary]) -> RelationshipView:
	"""Replace the directory snapshot wholesale."""
	return replace(view, directory=tuple(users))


def apply_friends(view: RelationshipView, friends: Iterable[UserSummary]) -> RelationshipView:
	return replace(view, friends=tuple(friends))


def apply_send(view: RelationshipView, user_id: str) -> RelationshipView:
	"""Optimistically mark ``user_id`` as having an outgoing request.

	Only a user currently in state ``none`` moves; anything else is returned
	untouched.
	"""
	if view.status_of(user_id) is not RelationshipStatus.NONE:
		return view
	if view.find_user(user_id) is None:
		return view
	directory = tuple(
		replace(user, relationship_status=RelationshipStatus.PENDING_OUTGOING) if user.id == user_id else user
		for user in view.directory
	)
	return replace(view, directory=directory)


def apply_new_request(view: RelationshipView, request: FriendRequest) -> RelationshipView:
	"""Append one incoming request; a request id already held is ignored."""
	if view.has_pending(request.id):
		return view
	return replace(view, pending_incoming=view.pending_incoming + (request,))


def apply_pending_snapshot(view: RelationshipView, requests: Iterable[FriendRequest]) -> RelationshipView:
	"""Replace the pending-incoming set with the server's snapshot.

	Order follows the payload; a repeated id keeps its first occurrence.
	"""
	seen: set[str] = set()
	pending: list[FriendRequest] = []
	for request in requests:
		if request.id in seen:
			continue
		seen.add(request.id)
		pending.append(request)
	return replace(view, pending_incoming=tuple(pending))


def apply_accept(view: RelationshipView, request_id: str) -> RelationshipView:
	"""Drop ``request_id`` from the pending set ahead of server confirmation.

	The resulting ``friends`` state is left for the next directory fetch.
	Raises ``StaleReferenceWarning`` when the id is not held locally.
	"""
	if not view.has_pending(request_id):
		raise StaleReferenceWarning(request_id)
	pending = tuple(request for request in view.pending_incoming if request.id != request_id)
	return replace(view, pending_incoming=pending)
