from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from socketio.exceptions import ConnectionError as SocketConnectionError

from friendlink.domain.social.directory import DirectoryFetcher
from friendlink.domain.social.models import Session
from friendlink.infra.http import create_http_client
from friendlink.infra.session_store import MemorySessionStore


class FakeSocketClient:
	"""Stands in for socketio.AsyncClient and drives namespace handlers directly."""

	def __init__(self, *, fail_connect: bool = False) -> None:
		self.connected = False
		self.namespaces: Dict[str, str] = {}
		self.registered: Dict[str, Any] = {}
		self.emitted: List[Tuple[str, Any, str]] = []
		self.connect_calls: List[Dict[str, Any]] = []
		self.fail_connect = fail_connect
		self.reconnecting = False
		self.reconnect_aborted = False
		self.shutdown_calls = 0
		self._connections = 0

	def register_namespace(self, namespace) -> None:
		namespace.client = self
		self.registered[namespace.namespace] = namespace

	async def connect(self, url, namespaces=None, transports=None, auth=None, **kwargs) -> None:
		self.connect_calls.append({"url": url, "namespaces": namespaces, "transports": transports, "auth": auth})
		if self.fail_connect:
			raise SocketConnectionError("Connection refused by the server")
		await self._open(namespaces or ["/"])

	async def _open(self, names) -> None:
		self._connections += 1
		self.connected = True
		for name in names:
			self.namespaces[name] = f"sid-{self._connections}"
			await self.registered[name].trigger_event("connect")

	async def disconnect(self) -> None:
		await self.drop()
		self.reconnecting = False

	async def shutdown(self) -> None:
		self.shutdown_calls += 1
		if self.connected:
			await self.disconnect()
		elif self.reconnecting:
			self.reconnecting = False
			self.reconnect_aborted = True

	async def drop(self) -> None:
		"""Simulate the transport going away; the client starts reconnecting."""
		self.connected = False
		self.reconnecting = True
		for name in list(self.namespaces):
			self.namespaces.pop(name)
			await self.registered[name].trigger_event("disconnect")

	async def reconnect(self) -> None:
		if not self.reconnecting:
			raise AssertionError("reconnect loop was aborted")
		self.reconnecting = False
		await self._open(list(self.registered))

	def get_sid(self, namespace: Optional[str] = None) -> Optional[str]:
		return self.namespaces.get(namespace or "/")

	async def emit(self, event, data=None, namespace=None, callback=None) -> None:
		self.emitted.append((event, data, namespace or "/"))

	async def push(self, event: str, data: Any, namespace: str = "/") -> None:
		await self.registered[namespace].trigger_event(event, data)

	def commands(self, event: str) -> List[Any]:
		return [data for name, data, _ns in self.emitted if name == event]


class FakeApi:
	"""Route table served through httpx.MockTransport; tests edit it between fetches."""

	def __init__(self) -> None:
		self.routes: Dict[str, Any] = {}
		self.calls: List[str] = []

	def handler(self, request: httpx.Request) -> httpx.Response:
		self.calls.append(request.url.path)
		route = self.routes.get(request.url.path)
		if route is None:
			return httpx.Response(404, json={"message": "not found"})
		if callable(route):
			return route(request)
		status, body = route
		if isinstance(body, (bytes, str)):
			return httpx.Response(status, content=body)
		return httpx.Response(status, json=body)


@pytest.fixture
def session() -> Session:
	return Session(user_id="me", display_name="Alice")


@pytest.fixture
def session_store(session):
	return MemorySessionStore(session)


@pytest.fixture
def socket_client() -> FakeSocketClient:
	return FakeSocketClient()


@pytest.fixture
def api() -> FakeApi:
	return FakeApi()


@pytest_asyncio.fixture
async def http_client(api):
	client = create_http_client("http://testserver", transport=httpx.MockTransport(api.handler))
	try:
		yield client
	finally:
		await client.aclose()


@pytest.fixture
def fetcher(http_client) -> DirectoryFetcher:
	return DirectoryFetcher(http_client)


def user_record(
	user_id: str,
	name: Optional[str] = None,
	status: Optional[str] = "none",
	**extra: Any,
) -> Dict[str, Any]:
	record: Dict[str, Any] = {"_id": user_id, "name": name or user_id.upper()}
	if status is not None:
		record["friendshipStatus"] = status
	record.update(extra)
	return record


@pytest.fixture
def make_user_record() -> Callable[..., Dict[str, Any]]:
	return user_record
