"""Friends screen lifecycle: mount, refresh, actions, teardown.

Owns no rendering. It reads the session once, wires the directory fetcher and
event channel into a ``Reconciler`` and exposes read-only state a view layer
can draw from.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple

from friendlink.domain.social import presentation
from friendlink.domain.social.channel import ChannelHandlers, EventChannelClient
from friendlink.domain.social.directory import DirectoryFetcher
from friendlink.domain.social.exceptions import ChannelUnavailable, TransportError
from friendlink.domain.social.models import (
	DIRECTORY_ERROR_MESSAGE,
	EMPTY_DIRECTORY_MESSAGE,
	Affordance,
	FriendRequest,
	Session,
	UserSummary,
)
from friendlink.domain.social.reconciler import Reconciler, ViewListener
from friendlink.domain.social.view import RelationshipView
from friendlink.obs import logging as obs_logging

if TYPE_CHECKING:  # pragma: no cover
	from friendlink.infra.session_store import SessionStore

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[Session, ChannelHandlers], EventChannelClient]


class FriendsScreen:
	def __init__(
		self,
		store: "SessionStore",
		fetcher: DirectoryFetcher,
		*,
		channel_factory: Optional[ChannelFactory] = None,
	) -> None:
		self._store = store
		self._fetcher = fetcher
		self._channel_factory: ChannelFactory = channel_factory or EventChannelClient
		self._session: Optional[Session] = None
		self._channel: Optional[EventChannelClient] = None
		self._reconciler = Reconciler(None)
		self._inflight = 0
		# Latest issued fetch per list; an older result landing later is dropped
		self._directory_seq = 0
		self._friends_seq = 0
		self._mounted = False
		self.error: Optional[str] = None

	@property
	def session(self) -> Optional[Session]:
		return self._session

	@property
	def channel(self) -> Optional[EventChannelClient]:
		return self._channel

	@property
	def reconciler(self) -> Reconciler:
		return self._reconciler

	@property
	def view(self) -> RelationshipView:
		return self._reconciler.view

	@property
	def loading(self) -> bool:
		return self._inflight > 0

	@property
	def mounted(self) -> bool:
		return self._mounted

	async def mount(self) -> None:
		if self._mounted:
			return
		self._mounted = True
		self._session = self._store.read()
		self._reconciler = Reconciler(self._session, refresh=self._reload)
		if self._session is not None:
			obs_logging.bind_context(user_id=self._session.user_id)
			await self._open_channel(self._session)
		else:
			logger.info("No session found; friends screen is read-only")
		await self._load(friends=True)

	async def unmount(self) -> None:
		if not self._mounted:
			return
		self._mounted = False
		channel, self._channel = self._channel, None
		self._reconciler.attach_channel(None)
		self._reconciler.clear_listeners()
		if channel is not None:
			await channel.close()
		obs_logging.clear_context()

	async def __aenter__(self) -> "FriendsScreen":
		await self.mount()
		return self

	async def __aexit__(self, exc_type, exc, tb) -> None:
		await self.unmount()

	async def _open_channel(self, session: Session) -> None:
		handlers = ChannelHandlers(
			on_pending_requests=self._on_pending_requests,
			on_new_friend_request=self._on_new_friend_request,
		)
		channel = self._channel_factory(session, handlers)
		self._channel = channel
		self._reconciler.attach_channel(channel)
		try:
			await channel.connect()
		except ChannelUnavailable:
			logger.warning("Event channel unavailable; friend actions disabled until refresh reconnects it")

	async def _reopen_channel(self) -> bool:
		channel = self._channel
		if channel is None:
			return False
		reopened = await channel.reopen()
		if reopened:
			logger.info("Event channel opened on retry")
		return reopened

	# Channel events

	async def _on_pending_requests(self, requests: List[FriendRequest]) -> None:
		if not self._mounted:
			return
		self._reconciler.resync(requests)

	async def _on_new_friend_request(self, request: FriendRequest) -> None:
		if not self._mounted:
			return
		await self._reconciler.receive(request)

	# Fetches

	async def _load_directory(self) -> None:
		self._directory_seq += 1
		seq = self._directory_seq
		user_id = self._session.user_id if self._session else None
		try:
			users = await self._fetcher.fetch_directory(user_id)
		except TransportError as exc:
			logger.warning("Error fetching users: %s", exc.reason)
			if self._mounted and seq == self._directory_seq:
				self.error = DIRECTORY_ERROR_MESSAGE
			return
		if not self._mounted:
			return
		if seq != self._directory_seq:
			logger.debug("Dropping superseded directory fetch %d", seq)
			return
		self.error = None
		self._reconciler.apply_directory(users)

	async def _load_friends(self) -> None:
		# Failures stay out of ``error``; that belongs to the directory
		self._friends_seq += 1
		seq = self._friends_seq
		user_id = self._session.user_id if self._session else None
		try:
			friends = await self._fetcher.fetch_friends(user_id)
		except TransportError as exc:
			logger.warning("Error fetching friends: %s", exc.reason)
			return
		if not self._mounted:
			return
		if seq != self._friends_seq:
			logger.debug("Dropping superseded friends fetch %d", seq)
			return
		self._reconciler.apply_friends(friends)

	async def _load(self, *, friends: bool) -> None:
		self._inflight += 1
		try:
			if friends:
				await asyncio.gather(self._load_directory(), self._load_friends())
			else:
				await self._load_directory()
		finally:
			self._inflight -= 1

	async def _reload(self) -> None:
		await self._load(friends=True)

	# User actions

	async def refresh(self) -> None:
		"""Pull-to-refresh: both lists plus a pending-request resync.

		A channel whose first connect failed is retried here; opening it
		already resyncs, so no second request is emitted.
		"""
		reopened = await self._reopen_channel()
		await self._load(friends=True)
		if not reopened:
			await self._reconciler.request_resync()

	async def retry(self) -> None:
		await self._reopen_channel()
		await self._load(friends=False)

	async def send_friend_request(self, user_id: str) -> bool:
		return await self._reconciler.send(user_id)

	async def accept_friend_request(self, request_id: str) -> bool:
		return await self._reconciler.accept(request_id)

	def subscribe(self, listener: ViewListener) -> Callable[[], None]:
		return self._reconciler.subscribe(listener)

	# Read model

	def rows(self) -> List[Tuple[UserSummary, Affordance]]:
		view = self._reconciler.view
		return presentation.affordances(view.directory, view.pending_incoming)

	def friends(self) -> Sequence[UserSummary]:
		return self._reconciler.view.friends

	def pending_requests(self) -> Sequence[FriendRequest]:
		return self._reconciler.view.pending_incoming

	def pending_summary(self) -> str:
		return presentation.pending_requests_summary(self._reconciler.view.pending_incoming)

	@property
	def badge_count(self) -> int:
		return len(self._reconciler.view.pending_incoming)

	@property
	def show_loading_screen(self) -> bool:
		view = self._reconciler.view
		return self.loading and not view.directory and not view.friends

	@property
	def show_error_screen(self) -> bool:
		return self.error is not None and not self._reconciler.view.directory

	@property
	def empty_message(self) -> Optional[str]:
		if self._reconciler.view.directory:
			return None
		return EMPTY_DIRECTORY_MESSAGE
