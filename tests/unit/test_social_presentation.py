import pytest

from friendlink.domain.social import presentation
from friendlink.domain.social.models import (
    AffordanceAction,
    FriendRequest,
    RelationshipStatus,
    RequestStatus,
    UserSummary,
)


def _user(user_id: str, status: RelationshipStatus = RelationshipStatus.NONE, mutual: int = 0) -> UserSummary:
    return UserSummary(id=user_id, display_name=user_id.upper(), mutual_friend_count=mutual, relationship_status=status)


def _request(request_id: str, sender_id: str, sender_name: str = "", status: RequestStatus = RequestStatus.PENDING):
    return FriendRequest(id=request_id, sender_id=sender_id, sender_name=sender_name, receiver_id="me", status=status)


def test_pending_incoming_entry_takes_precedence_over_none():
    affordance = presentation.affordance_for(_user("u2"), [_request("r1", "u2")])

    assert affordance.label == "Respond"
    assert affordance.enabled is True
    assert affordance.action is AffordanceAction.VIEW_REQUESTS


def test_pending_incoming_entry_takes_precedence_over_outgoing():
    affordance = presentation.affordance_for(_user("u2", RelationshipStatus.PENDING_OUTGOING), [_request("r1", "u2")])

    assert affordance.label == "Respond"


def test_request_from_someone_else_does_not_match():
    affordance = presentation.affordance_for(_user("u2"), [_request("r1", "u3")])

    assert affordance.label == "Add Friend"


def test_resolved_request_does_not_match():
    affordance = presentation.affordance_for(_user("u2"), [_request("r1", "u2", status=RequestStatus.ACCEPTED)])

    assert affordance.label == "Add Friend"


@pytest.mark.parametrize(
    ("status", "label", "style", "enabled", "action"),
    [
        (RelationshipStatus.PENDING_OUTGOING, "Request Sent", "pending", False, AffordanceAction.NONE),
        (RelationshipStatus.PENDING_INCOMING, "Respond", "respond", True, AffordanceAction.VIEW_REQUESTS),
        (RelationshipStatus.FRIENDS, "Friends", "friends", False, AffordanceAction.NONE),
        (RelationshipStatus.NONE, "Add Friend", "add", True, AffordanceAction.SEND),
    ],
)
def test_directory_status_mapping(status, label, style, enabled, action):
    affordance = presentation.affordance_for(_user("u1", status), [])

    assert (affordance.label, affordance.style_class, affordance.enabled, affordance.action) == (
        label,
        style,
        enabled,
        action,
    )


def test_affordances_pairs_every_row():
    users = [_user("u1"), _user("u2")]

    rows = presentation.affordances(users, [_request("r1", "u2")])

    assert [(user.id, affordance.label) for user, affordance in rows] == [("u1", "Add Friend"), ("u2", "Respond")]


def test_pending_summary_lists_sender_names():
    pending = [_request("r1", "u2", "Bob"), _request("r2", "u3", "")]

    assert presentation.pending_requests_summary(pending) == "You have pending requests from: Bob, Unknown user"


def test_pending_summary_when_empty():
    assert presentation.pending_requests_summary([]) == "No pending friend requests"


def test_mutual_friends_caption():
    assert presentation.mutual_friends_caption(_user("u1", mutual=3)) == "3 mutual friends"
    assert presentation.mutual_friends_caption(_user("u1")) is None


def test_avatar_url_falls_back_to_placeholder():
    assert presentation.avatar_url("https://cdn.example/a.png") == "https://cdn.example/a.png"
    assert presentation.avatar_url(None, "https://placeholder.example/40") == "https://placeholder.example/40"
    assert presentation.avatar_url("").startswith("http")
