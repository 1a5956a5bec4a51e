"""Single writer for the relationship view.

Fetch results, push events and local actions all funnel through one
``Reconciler`` which applies the pure transitions from ``view`` and notifies
readers. Local actions that need the event channel are silent no-ops while it
is unavailable.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, List, Optional

from friendlink.domain.social import view as transitions
from friendlink.domain.social.exceptions import ChannelUnavailable, StaleReferenceWarning
from friendlink.domain.social.models import FriendRequest, RelationshipStatus, Session, UserSummary
from friendlink.domain.social.view import RelationshipView
from friendlink.obs import metrics as obs_metrics

if TYPE_CHECKING:  # pragma: no cover
	from friendlink.domain.social.channel import EventChannelClient

logger = logging.getLogger(__name__)

ViewListener = Callable[[RelationshipView], None]
RefreshCallback = Callable[[], Awaitable[None]]


class Reconciler:
	"""Owns the current ``RelationshipView``; readers never mutate it."""

	def __init__(
		self,
		session: Optional[Session],
		channel: Optional["EventChannelClient"] = None,
		*,
		refresh: Optional[RefreshCallback] = None,
	) -> None:
		self._session = session
		self._channel = channel
		self._refresh = refresh
		self._view = RelationshipView()
		self._listeners: List[ViewListener] = []

	@property
	def view(self) -> RelationshipView:
		return self._view

	@property
	def session(self) -> Optional[Session]:
		return self._session

	def attach_channel(self, channel: Optional["EventChannelClient"]) -> None:
		self._channel = channel

	def subscribe(self, listener: ViewListener) -> Callable[[], None]:
		self._listeners.append(listener)

		def _unsubscribe() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return _unsubscribe

	def clear_listeners(self) -> None:
		self._listeners.clear()

	def _commit(self, new_view: RelationshipView) -> bool:
		if new_view is self._view:
			return False
		self._view = new_view
		for listener in list(self._listeners):
			listener(new_view)
		return True

	# Fetch results

	def apply_directory(self, users: Iterable[UserSummary]) -> None:
		self._commit(transitions.apply_directory(self._view, users))

	def apply_friends(self, friends: Iterable[UserSummary]) -> None:
		self._commit(transitions.apply_friends(self._view, friends))

	# Push events

	async def receive(self, request: FriendRequest) -> bool:
		"""Admit a ``new_friend_request`` addressed to the session user."""
		if self._session is None or not self._session.matches(request.receiver_id):
			obs_metrics.channel_dropped("new_friend_request", "not_addressed")
			logger.debug("Ignoring friend request %s addressed elsewhere", request.id)
			return False
		if not self._commit(transitions.apply_new_request(self._view, request)):
			logger.debug("Friend request %s already pending", request.id)
			return False
		logger.info("Friend request received", extra={"request_id": request.id, "sender_id": request.sender_id})
		await self._request_refresh()
		return True

	def resync(self, requests: Iterable[FriendRequest]) -> None:
		"""Replace the pending set with an authoritative snapshot."""
		before = len(self._view.pending_incoming)
		self._commit(transitions.apply_pending_snapshot(self._view, requests))
		logger.info(
			"Pending requests resynchronised",
			extra={"before": before, "after": len(self._view.pending_incoming)},
		)

	# Local actions

	async def send(self, user_id: str) -> bool:
		"""Send a friend request and mark the user ``pending_outgoing`` right away.

		There is no rollback if the server drops the request; the next
		directory fetch replaces the optimistic status.
		"""
		session = self._session
		channel = self._channel
		if session is None or channel is None or not channel.connected:
			logger.debug("Send to %s skipped: channel unavailable", user_id)
			return False
		status = self._view.status_of(user_id)
		if status is not RelationshipStatus.NONE:
			logger.debug("Send to %s skipped: status is %s", user_id, status.value)
			return False
		target = self._view.find_user(user_id)
		if target is None:
			logger.debug("Send to %s skipped: not in directory", user_id)
			return False

		self._commit(transitions.apply_send(self._view, user_id))
		obs_metrics.inc_optimistic("send")
		try:
			await channel.send_friend_request(session.display_name, target.display_name)
		except ChannelUnavailable:
			logger.debug("Channel dropped while sending to %s", user_id)
		return True

	async def accept(self, request_id: str) -> bool:
		"""Accept a pending request; unknown ids are a no-op."""
		channel = self._channel
		if self._session is None or channel is None or not channel.connected:
			logger.debug("Accept of %s skipped: channel unavailable", request_id)
			return False
		try:
			new_view = transitions.apply_accept(self._view, request_id)
		except StaleReferenceWarning as exc:
			obs_metrics.inc_stale_reference("accept")
			logger.info("Accept ignored for request no longer pending", extra={"request_id": exc.request_id})
			return False

		self._commit(new_view)
		obs_metrics.inc_optimistic("accept")
		try:
			await channel.accept_friend_request(request_id)
		except ChannelUnavailable:
			logger.debug("Channel dropped while accepting %s", request_id)
		await self._request_refresh()
		return True

	async def request_resync(self) -> bool:
		channel = self._channel
		if channel is None or not channel.connected:
			return False
		try:
			await channel.request_pending()
		except ChannelUnavailable:
			return False
		return True

	async def _request_refresh(self) -> None:
		if self._refresh is not None:
			await self._refresh()
