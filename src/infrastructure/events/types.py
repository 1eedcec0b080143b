# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Centralized event type definitions for Secretaria Online.

Services publish lifecycle events by these constants rather than by
string literals, so subscribers can rely on a single list of names.

Adding a new event:
1. Add constant to appropriate class here
2. If the event belongs in the audit trail, add it to EventRegistry
3. Pattern subscribers pick up new events automatically
"""


class EventTypes:
    """All event types in Secretaria Online organized by domain."""

    class Enrollment:
        """Enrollment state machine events."""

        CREATED = "enrollment.created"
        ACTIVATED = "enrollment.activated"
        STATUS_CHANGED = "enrollment.status.changed"
        SEMESTER_UPDATED = "enrollment.semester.updated"
        CANCELLED = "enrollment.cancelled"
        DELETED = "enrollment.deleted"

    class Reenrollment:
        """Termly reenrollment events."""

        BATCH_PROCESSED = "reenrollment.batch.processed"
        ACCEPTED = "reenrollment.accepted"

    class Contract:
        """Contract events."""

        CREATED = "contract.created"
        ACCEPTED = "contract.accepted"
        DELETED = "contract.deleted"


class EventPatterns:
    """Wildcard patterns for subscribing to groups of events."""

    ALL_ENROLLMENT = "enrollment.*"
    ALL_REENROLLMENT = "reenrollment.*"
    ALL_CONTRACT = "contract.*"

    ALL = "*"


class EventRegistry:
    """Registry for event metadata."""

    # Events written to the audit log by the default subscriber
    _audit_events: frozenset[str] = frozenset(
        {
            EventTypes.Enrollment.CANCELLED,
            EventTypes.Enrollment.DELETED,
            EventTypes.Enrollment.SEMESTER_UPDATED,
            EventTypes.Reenrollment.BATCH_PROCESSED,
            EventTypes.Reenrollment.ACCEPTED,
            EventTypes.Contract.ACCEPTED,
            EventTypes.Contract.DELETED,
        }
    )

    @classmethod
    def is_audit_event(cls, event_type: str) -> bool:
        """Check if an event must be kept in the audit trail.

        Args:
            event_type: Event type string.

        Returns:
            True if the audit subscriber records this event.
        """
        return event_type in cls._audit_events
