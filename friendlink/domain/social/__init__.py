"""Friends domain exports."""

from . import channel, directory, presentation, reconciler, screen, view  # noqa: F401
from .exceptions import ChannelUnavailable, SocialClientError, StaleReferenceWarning, TransportError  # noqa: F401
from .models import (  # noqa: F401
	Affordance,
	AffordanceAction,
	FriendRequest,
	RelationshipStatus,
	RequestStatus,
	Session,
	UserSummary,
)
from .reconciler import Reconciler  # noqa: F401
from .screen import FriendsScreen  # noqa: F401
from .view import RelationshipView  # noqa: F401
