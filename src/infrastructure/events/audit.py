# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail subscriber.

Writes every audit-relevant lifecycle event to the structured audit
logger. Registered once at application startup.

Example:
    from src.infrastructure.events.audit import register_audit_subscriber

    register_audit_subscriber(get_event_bus())
"""

from src.infrastructure.events.bus import EventBus, EventData
from src.infrastructure.events.types import EventPatterns, EventRegistry
from src.utils.logging import get_audit_logger


async def record_audit_event(event: EventData) -> None:
    """Log one event to the audit logger if it is audit-relevant."""
    if not EventRegistry.is_audit_event(event.event_type):
        return

    get_audit_logger().info(
        event.event_type,
        event_id=event.event_id,
        actor_id=event.actor_id,
        timestamp=event.timestamp.isoformat(),
        **event.payload,
    )


def register_audit_subscriber(bus: EventBus) -> None:
    """Subscribe the audit recorder to every event on the bus."""
    bus.subscribe(EventPatterns.ALL, record_audit_event)


def unregister_audit_subscriber(bus: EventBus) -> None:
    """Remove the audit recorder from the bus."""
    bus.unsubscribe(EventPatterns.ALL, record_audit_event)
