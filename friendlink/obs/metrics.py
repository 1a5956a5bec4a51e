"""Central registry for Prometheus metrics used across the client."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

FETCHES = Counter(
	"friendlink_fetch_total",
	"Directory and friend-list fetches by outcome",
	["kind", "result"],
)

CHANNEL_CONNECTED = Gauge(
	"friendlink_channel_connected",
	"Whether the event channel is connected per namespace",
	["namespace"],
)

CHANNEL_EVENTS = Counter(
	"friendlink_channel_events_total",
	"Inbound event-channel events per namespace",
	["namespace", "event"],
)

CHANNEL_COMMANDS = Counter(
	"friendlink_channel_commands_total",
	"Outbound event-channel commands per namespace",
	["namespace", "command"],
)

CHANNEL_DROPPED = Counter(
	"friendlink_channel_events_dropped_total",
	"Inbound events dropped before reaching the reconciler",
	["event", "reason"],
)

OPTIMISTIC_MUTATIONS = Counter(
	"friendlink_optimistic_mutations_total",
	"Local view changes applied ahead of server confirmation",
	["action"],
)

STALE_REFERENCES = Counter(
	"friendlink_stale_references_total",
	"Actions referencing a request no longer in the pending set",
	["action"],
)


def inc_fetch(kind: str, result: str) -> None:
	FETCHES.labels(kind=kind, result=result).inc()


def channel_connected(namespace: str) -> None:
	CHANNEL_CONNECTED.labels(namespace=namespace).set(1)


def channel_disconnected(namespace: str) -> None:
	CHANNEL_CONNECTED.labels(namespace=namespace).set(0)


def channel_event(namespace: str, event: str) -> None:
	CHANNEL_EVENTS.labels(namespace=namespace, event=event).inc()


def channel_command(namespace: str, command: str) -> None:
	CHANNEL_COMMANDS.labels(namespace=namespace, command=command).inc()


def channel_dropped(event: str, reason: str) -> None:
	CHANNEL_DROPPED.labels(event=event, reason=reason).inc()


def inc_optimistic(action: str) -> None:
	OPTIMISTIC_MUTATIONS.labels(action=action).inc()


def inc_stale_reference(action: str) -> None:
	STALE_REFERENCES.labels(action=action).inc()
