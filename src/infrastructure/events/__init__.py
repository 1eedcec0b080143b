# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure module for Secretaria Online.

Services publish lifecycle events to an in-memory bus once their
transaction has committed. The audit subscriber turns the relevant
ones into structured audit log records.

Architecture:
    Service → commit → EventBus.publish() → audit subscriber → structlog

Quick Start:
    from src.infrastructure.events import get_event_bus, EventTypes

    await get_event_bus().publish(
        EventTypes.Enrollment.CANCELLED,
        {"enrollment_id": 42},
        actor_id=1,
    )
"""

from src.infrastructure.events.audit import (
    record_audit_event,
    register_audit_subscriber,
    unregister_audit_subscriber,
)
from src.infrastructure.events.bus import (
    EventBus,
    EventData,
    EventHandler,
    get_event_bus,
    reset_event_bus,
)
from src.infrastructure.events.types import (
    EventPatterns,
    EventRegistry,
    EventTypes,
)

__all__ = [
    "EventBus",
    "EventData",
    "EventHandler",
    "get_event_bus",
    "reset_event_bus",
    "EventTypes",
    "EventPatterns",
    "EventRegistry",
    "record_audit_event",
    "register_audit_subscriber",
    "unregister_audit_subscriber",
]
