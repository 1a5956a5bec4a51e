"""Socket.IO client channel for friend-request events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

import socketio
from pydantic import ValidationError
from socketio.exceptions import ConnectionError as SocketConnectionError

from friendlink.domain.social.exceptions import ChannelUnavailable
from friendlink.domain.social.models import FriendRequest, RequestStatus, Session
from friendlink.domain.social.schemas import (
	AcceptFriendRequestPayload,
	FriendRequestRecord,
	GetPendingRequestsPayload,
	SendFriendRequestPayload,
)
from friendlink.obs import logging as obs_logging
from friendlink.obs import metrics as obs_metrics
from friendlink.settings import settings

logger = logging.getLogger(__name__)

EVENT_PENDING_REQUESTS = "pending_requests"
EVENT_NEW_FRIEND_REQUEST = "new_friend_request"
CMD_GET_PENDING_REQUESTS = "get_pending_requests"
CMD_SEND_FRIEND_REQUEST = "send_friend_request"
CMD_ACCEPT_FRIEND_REQUEST = "accept_friend_request"


@dataclass(slots=True, frozen=True)
class ChannelHandlers:
	"""Callbacks the channel dispatches decoded events to."""

	on_pending_requests: Callable[[List[FriendRequest]], Awaitable[None]]
	on_new_friend_request: Callable[[FriendRequest], Awaitable[None]]
	on_connect: Optional[Callable[[], Awaitable[None]]] = None
	on_disconnect: Optional[Callable[[], Awaitable[None]]] = None


def _record_to_request(record: FriendRequestRecord) -> FriendRequest:
	receiver_keys = record.receiver_keys()
	return FriendRequest(
		id=record.id,
		sender_id=record.sender_id(),
		sender_name=record.sender_display_name(),
		receiver_id=receiver_keys[0] if receiver_keys else None,
		status=RequestStatus(record.status),
		sender_avatar_ref=record.sender_avatar(),
	)


def decode_request(data: Any) -> FriendRequest:
	"""Validate one wire request; raises ``ValidationError`` when malformed."""
	return _record_to_request(FriendRequestRecord.model_validate(data))


def decode_requests(data: Sequence[Any]) -> List[FriendRequest]:
	requests: List[FriendRequest] = []
	for item in data:
		try:
			requests.append(decode_request(item))
		except ValidationError:
			obs_metrics.channel_dropped(EVENT_PENDING_REQUESTS, "malformed_item")
			logger.warning("Skipping malformed pending request entry")
	return requests


class FriendsNamespace(socketio.AsyncClientNamespace):
	"""Dispatch table for one connection: one handler per event kind."""

	def __init__(self, session: Session, handlers: ChannelHandlers, namespace: str = "/") -> None:
		super().__init__(namespace)
		self._session = session
		self._handlers: Optional[ChannelHandlers] = handlers
		self.active = False

	def detach(self) -> None:
		"""Stop dispatching; events arriving after teardown are dropped."""
		self._handlers = None
		self.active = False

	def resync_payload(self) -> dict:
		return GetPendingRequestsPayload(
			user_id=self._session.user_id,
			user_name=self._session.display_name,
		).model_dump(by_alias=True)

	async def on_connect(self) -> None:
		handlers = self._handlers
		if handlers is None:
			return
		self.active = True
		obs_metrics.channel_connected(self.namespace)
		logger.info("Event channel connected", extra={"namespace": self.namespace})
		# Anything pushed while we were away is only recoverable through a resync
		obs_metrics.channel_command(self.namespace, CMD_GET_PENDING_REQUESTS)
		await self.emit(CMD_GET_PENDING_REQUESTS, self.resync_payload())
		if handlers.on_connect is not None:
			await handlers.on_connect()

	async def on_disconnect(self, *args: Any) -> None:
		was_connected = self.active
		self.active = False
		obs_metrics.channel_disconnected(self.namespace)
		if was_connected:
			logger.info("Event channel disconnected", extra={"namespace": self.namespace})
		handlers = self._handlers
		if handlers is not None and handlers.on_disconnect is not None:
			await handlers.on_disconnect()

	async def on_pending_requests(self, data: Any = None) -> None:
		obs_metrics.channel_event(self.namespace, EVENT_PENDING_REQUESTS)
		handlers = self._handlers
		if handlers is None:
			obs_metrics.channel_dropped(EVENT_PENDING_REQUESTS, "closed")
			return
		if not isinstance(data, (list, tuple)):
			obs_metrics.channel_dropped(EVENT_PENDING_REQUESTS, "malformed")
			logger.warning("Dropping pending_requests payload that is not a list")
			return
		await handlers.on_pending_requests(decode_requests(data))

	async def on_new_friend_request(self, data: Any = None) -> None:
		obs_metrics.channel_event(self.namespace, EVENT_NEW_FRIEND_REQUEST)
		handlers = self._handlers
		if handlers is None:
			obs_metrics.channel_dropped(EVENT_NEW_FRIEND_REQUEST, "closed")
			return
		try:
			request = decode_request(data)
		except ValidationError:
			obs_metrics.channel_dropped(EVENT_NEW_FRIEND_REQUEST, "malformed")
			logger.warning("Dropping malformed new_friend_request payload")
			return
		await handlers.on_new_friend_request(request)


class EventChannelClient:
	"""One long-lived event connection per session.

	Usable as an async context manager; ``close`` detaches the handler table
	before disconnecting so nothing fires after teardown.
	"""

	def __init__(
		self,
		session: Session,
		handlers: ChannelHandlers,
		*,
		client: Optional[socketio.AsyncClient] = None,
		url: Optional[str] = None,
		namespace: Optional[str] = None,
		transports: Optional[Sequence[str]] = None,
	) -> None:
		self._session = session
		self._url = url or settings.resolved_socket_url()
		self._transports = list(transports or settings.transports())
		self._client = client or socketio.AsyncClient(reconnection=True, logger=False)
		self._namespace = FriendsNamespace(session, handlers, namespace or settings.socket_namespace)
		self._client.register_namespace(self._namespace)
		self._closed = False
		self._established = False

	@property
	def namespace(self) -> str:
		return self._namespace.namespace

	@property
	def connected(self) -> bool:
		return not self._closed and bool(self._client.connected) and self._namespace.active

	@property
	def closed(self) -> bool:
		return self._closed

	@property
	def established(self) -> bool:
		"""True once a connect succeeded; later drops are the client's to reconnect."""
		return self._established

	async def connect(self) -> None:
		if self._closed:
			raise ChannelUnavailable("closed")
		if self._established:
			raise ChannelUnavailable("already_established")
		try:
			await self._client.connect(
				self._url,
				namespaces=[self.namespace],
				transports=self._transports,
				auth={"userId": self._session.user_id, "userName": self._session.display_name},
			)
		except SocketConnectionError as exc:
			logger.warning("Event channel connect failed: %s", exc)
			raise ChannelUnavailable("connect_failed") from exc
		self._established = True
		sid = self._client.get_sid(self.namespace)
		if sid:
			obs_logging.bind_context(channel_sid=str(sid))

	async def reopen(self) -> bool:
		"""Retry a first connect that never succeeded.

		Returns True only when this call opened the connection. A channel that
		was established once is left to the client's own reconnect loop.
		"""
		if self._closed or self._established:
			return False
		try:
			await self.connect()
		except ChannelUnavailable:
			return False
		return True

	async def close(self) -> None:
		if self._closed:
			return
		self._closed = True
		self._namespace.detach()
		# shutdown() also aborts a reconnect loop that is between attempts
		await self._client.shutdown()
		obs_metrics.channel_disconnected(self.namespace)

	async def __aenter__(self) -> "EventChannelClient":
		await self.connect()
		return self

	async def __aexit__(self, exc_type, exc, tb) -> None:
		await self.close()

	async def request_pending(self) -> None:
		await self._emit(CMD_GET_PENDING_REQUESTS, self._namespace.resync_payload())

	async def send_friend_request(self, sender_name: str, receiver_name: str) -> None:
		payload = SendFriendRequestPayload(sender_name=sender_name, receiver_name=receiver_name)
		await self._emit(CMD_SEND_FRIEND_REQUEST, payload.model_dump(by_alias=True))

	async def accept_friend_request(self, request_id: str) -> None:
		payload = AcceptFriendRequestPayload(request_id=request_id)
		await self._emit(CMD_ACCEPT_FRIEND_REQUEST, payload.model_dump(by_alias=True))

	async def _emit(self, command: str, payload: dict) -> None:
		if not self.connected:
			raise ChannelUnavailable()
		obs_metrics.channel_command(self.namespace, command)
		await self._client.emit(command, payload, namespace=self.namespace)
