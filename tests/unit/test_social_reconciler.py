from unittest.mock import AsyncMock

import pytest

from friendlink.domain.social.exceptions import ChannelUnavailable
from friendlink.domain.social.models import FriendRequest, RelationshipStatus, Session, UserSummary
from friendlink.domain.social.presentation import affordance_for
from friendlink.domain.social.reconciler import Reconciler


class StubChannel:
    def __init__(self, connected: bool = True) -> None:
        self.connected = connected
        self.send_friend_request = AsyncMock()
        self.accept_friend_request = AsyncMock()
        self.request_pending = AsyncMock()


def _user(user_id: str, name: str, status: RelationshipStatus = RelationshipStatus.NONE) -> UserSummary:
    return UserSummary(id=user_id, display_name=name, relationship_status=status)


def _request(request_id: str, sender_id: str = "u2", receiver_id: str = "me") -> FriendRequest:
    return FriendRequest(id=request_id, sender_id=sender_id, sender_name="Bob", receiver_id=receiver_id)


@pytest.fixture
def channel() -> StubChannel:
    return StubChannel()


@pytest.fixture
def refresh() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def reconciler(session, channel, refresh) -> Reconciler:
    return Reconciler(session, channel, refresh=refresh)


@pytest.mark.asyncio
async def test_send_is_optimistic_and_emits_names(reconciler, channel):
    reconciler.apply_directory([_user("u1", "Bob")])

    async def _assert_already_pending(sender_name, receiver_name):
        # The optimistic status is visible before the emit completes
        assert reconciler.view.status_of("u1") is RelationshipStatus.PENDING_OUTGOING

    channel.send_friend_request.side_effect = _assert_already_pending

    assert await reconciler.send("u1") is True

    channel.send_friend_request.assert_awaited_once_with("Alice", "Bob")
    user = reconciler.view.find_user("u1")
    affordance = affordance_for(user, reconciler.view.pending_incoming)
    assert (affordance.label, affordance.enabled) == ("Request Sent", False)


@pytest.mark.asyncio
async def test_send_without_channel_is_silent_noop(session):
    reconciler = Reconciler(session, StubChannel(connected=False))
    reconciler.apply_directory([_user("u1", "Bob")])

    assert await reconciler.send("u1") is False
    assert reconciler.view.status_of("u1") is RelationshipStatus.NONE


@pytest.mark.asyncio
async def test_send_without_session_is_noop(channel):
    reconciler = Reconciler(None, channel)
    reconciler.apply_directory([_user("u1", "Bob")])

    assert await reconciler.send("u1") is False
    channel.send_friend_request.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_requires_none_status(reconciler, channel):
    reconciler.apply_directory([_user("u1", "Bob", RelationshipStatus.PENDING_OUTGOING)])

    assert await reconciler.send("u1") is False
    assert await reconciler.send("unknown") is False
    channel.send_friend_request.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_keeps_optimistic_state_when_channel_drops_mid_emit(reconciler, channel):
    reconciler.apply_directory([_user("u1", "Bob")])
    channel.send_friend_request.side_effect = ChannelUnavailable()

    assert await reconciler.send("u1") is True
    assert reconciler.view.status_of("u1") is RelationshipStatus.PENDING_OUTGOING


@pytest.mark.asyncio
async def test_receive_filters_by_recipient(reconciler, refresh):
    assert await reconciler.receive(_request("r1", receiver_id="someone-else")) is False
    assert reconciler.view.pending_incoming == ()
    refresh.assert_not_awaited()


@pytest.mark.asyncio
async def test_receive_matches_display_name(reconciler):
    assert await reconciler.receive(_request("r1", receiver_id="Alice")) is True
    assert reconciler.view.pending_ids() == ("r1",)


@pytest.mark.asyncio
async def test_receive_is_idempotent_and_refreshes_once(reconciler, refresh):
    assert await reconciler.receive(_request("r1")) is True
    assert await reconciler.receive(_request("r1")) is False

    assert reconciler.view.pending_ids() == ("r1",)
    refresh.assert_awaited_once()


@pytest.mark.asyncio
async def test_resync_replaces_pending(reconciler):
    await reconciler.receive(_request("r1"))

    reconciler.resync([_request("r7", "u7")])

    assert reconciler.view.pending_ids() == ("r7",)


@pytest.mark.asyncio
async def test_accept_emits_removes_and_refreshes(reconciler, channel, refresh):
    reconciler.resync([_request("r1"), _request("r2", "u3")])

    assert await reconciler.accept("r1") is True

    channel.accept_friend_request.assert_awaited_once_with("r1")
    assert reconciler.view.pending_ids() == ("r2",)
    refresh.assert_awaited_once()


@pytest.mark.asyncio
async def test_accept_after_empty_resync_is_noop(reconciler, channel, refresh):
    reconciler.resync([_request("r1")])
    reconciler.resync([])

    assert await reconciler.accept("r1") is False

    channel.accept_friend_request.assert_not_awaited()
    refresh.assert_not_awaited()


@pytest.mark.asyncio
async def test_accept_without_channel_is_noop(session, refresh):
    reconciler = Reconciler(session, StubChannel(connected=False), refresh=refresh)
    reconciler.resync([_request("r1")])

    assert await reconciler.accept("r1") is False
    assert reconciler.view.pending_ids() == ("r1",)


@pytest.mark.asyncio
async def test_request_resync_needs_connected_channel(session, channel):
    assert await Reconciler(session, channel).request_resync() is True
    channel.request_pending.assert_awaited_once()

    assert await Reconciler(session, None).request_resync() is False


@pytest.mark.asyncio
async def test_listeners_see_changes_but_not_noops(reconciler):
    seen = []
    unsubscribe = reconciler.subscribe(seen.append)

    await reconciler.receive(_request("r1"))
    await reconciler.receive(_request("r1"))
    unsubscribe()
    await reconciler.receive(_request("r2", "u3"))

    assert len(seen) == 1
    assert seen[0].pending_ids() == ("r1",)


def test_session_is_exposed(session):
    assert Reconciler(session).session == Session(user_id="me", display_name="Alice")
