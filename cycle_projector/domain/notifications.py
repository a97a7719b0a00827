"""Notification identity and read-state tracking for projected occurrences"""

from dataclasses import replace
from datetime import date, datetime
from typing import AbstractSet, Iterable, List, Protocol, Set, Union

from cycle_projector.domain.models import Notification, Occurrence, Recurrence, RecurringObligation
from cycle_projector.domain.occurrences import MAX_PROJECTION_STEPS, project

TRANSACTION_KIND = "tx"


class ReadStateStore(Protocol):
    """Per-owner persisted set of acknowledged notification ids"""

    def load_read_ids(self, owner_id: str) -> Set[str]:
        ...

    def save_read_ids(self, owner_id: str, read_ids: AbstractSet[str]) -> None:
        """Merge ids into the owner's set; existing ids are never removed"""
        ...


def notification_id(obligation_id: str, projected_date: date, kind: str = TRANSACTION_KIND) -> str:
    """Stable id for one occurrence, e.g. "tx-42-2024-02-29" """
    return f"{kind}-{obligation_id}-{projected_date.isoformat()}"


def annotate(
    occurrences: Iterable[Occurrence],
    read_ids: AbstractSet[str],
    kind: str = TRANSACTION_KIND,
) -> List[Notification]:
    """Attach identity and read flag to each occurrence (read_ids is not modified)"""
    notifications = []
    for occurrence in occurrences:
        identity = notification_id(occurrence.obligation_id, occurrence.projected_date, kind)
        notifications.append(
            Notification(
                id=identity,
                kind=kind,
                obligation_id=occurrence.obligation_id,
                projected_date=occurrence.projected_date,
                is_past=occurrence.is_past,
                is_read=identity in read_ids,
            )
        )
    return notifications


def unread_count(notifications: Iterable[Notification]) -> int:
    return sum(1 for n in notifications if not n.is_read)


def build_notifications(
    obligations: Iterable[RecurringObligation],
    window_start: Union[date, datetime],
    window_end: Union[date, datetime],
    now: Union[date, datetime],
    read_ids: AbstractSet[str],
    max_steps: int = MAX_PROJECTION_STEPS,
) -> List[Notification]:
    """
    Notification feed for a set of recurring transactions.

    Every recurring obligation is projected over the window and annotated with
    its read state. Most recent projected date first; ties go to the most
    recently created transaction.
    """
    feed: List[Notification] = []
    for obligation in obligations:
        if Recurrence.parse(obligation.recurrence) is Recurrence.NONE:
            continue

        occurrences = project(obligation, window_start, window_end, now, max_steps=max_steps)
        for notification in annotate(occurrences, read_ids):
            feed.append(
                replace(
                    notification,
                    amount_cents=obligation.amount_cents,
                    message=obligation.description or obligation.category,
                    created_at=obligation.created_at,
                )
            )

    feed.sort(key=lambda n: n.created_at.timestamp() if n.created_at else 0.0, reverse=True)
    feed.sort(key=lambda n: n.projected_date, reverse=True)
    return feed


class ReadStateTracker:
    """Mark notifications as read for one owner through an injected store"""

    def __init__(self, store: ReadStateStore, owner_id: str):
        self.store = store
        self.owner_id = owner_id

    def read_ids(self) -> Set[str]:
        return set(self.store.load_read_ids(self.owner_id))

    def mark_read(self, notification_id: str) -> bool:
        """
        Add one id to the read-set.

        Returns:
            True if the id was newly marked, False if it was already read
        """
        if notification_id in self.read_ids():
            return False

        self.store.save_read_ids(self.owner_id, {notification_id})
        return True

    def mark_all_read(self, notifications: Iterable[Notification]) -> Set[str]:
        """
        Mark every currently unread notification as read in one batch.

        Returns:
            Ids that were newly added to the read-set
        """
        unread = {n.id for n in notifications} - self.read_ids()
        if unread:
            self.store.save_read_ids(self.owner_id, unread)
        return unread
