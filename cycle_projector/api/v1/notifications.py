"""Notification feed for recurring transactions and read-state endpoints"""

import time
import logging
from dataclasses import replace
from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from cycle_projector.api.v1.schemas import (
    MarkAllReadRequest,
    MarkAllReadResponse,
    MarkReadRequest,
    MarkReadResponse,
    NotificationFeedResponse,
    NotificationSchema,
)
from cycle_projector.api.dependencies import get_now, get_request_id
from cycle_projector.config import settings
from cycle_projector.domain.exceptions import StorageError
from cycle_projector.domain.models import Notification
from cycle_projector.domain.notifications import ReadStateTracker, build_notifications, unread_count
from cycle_projector.domain.occurrences import notification_window
from cycle_projector.infrastructure.database.session import get_db
from cycle_projector.infrastructure.database.repositories import ReadStateRepository, TransactionRepository
from cycle_projector.infrastructure.observability.metrics import (
    notifications_marked_read_counter,
    record_feed,
    record_storage_failure,
)
from cycle_projector.infrastructure.observability.logging import log_feed, log_marked_read

router = APIRouter()


def load_feed(db: Session, owner_id: str, now: datetime, request_id: str) -> List[Notification]:
    """
    Project an owner's recurring transactions into the notification window.

    Storage failures never block the feed:
    - Obligations unavailable → empty feed
    - Read-state unavailable → everything shown as unread
    """
    try:
        obligations = TransactionRepository(db).list_obligations_for_owner(owner_id)
    except StorageError as e:
        db.rollback()
        record_storage_failure(e.operation)
        logging.error(f"Obligation listing failed: {e}", extra={"request_id": request_id, "owner_id": owner_id})
        obligations = []

    try:
        read_ids = ReadStateRepository(db).load_read_ids(owner_id)
    except StorageError as e:
        db.rollback()
        record_storage_failure(e.operation)
        logging.warning(f"Read-state unavailable: {e}", extra={"request_id": request_id, "owner_id": owner_id})
        read_ids = set()

    window_start, window_end = notification_window(
        now,
        days_before=settings.notification_days_before,
        days_after=settings.notification_days_after,
    )
    return build_notifications(
        obligations,
        window_start,
        window_end,
        now,
        read_ids,
        max_steps=settings.projection_max_steps,
    )


def _to_schema(notification: Notification) -> NotificationSchema:
    return NotificationSchema(
        id=notification.id,
        kind=notification.kind,
        related_id=notification.obligation_id,
        projected_date=notification.projected_date,
        is_past=notification.is_past,
        is_read=notification.is_read,
        amount_cents=notification.amount_cents,
        message=notification.message,
    )


@router.get("/notifications", response_model=NotificationFeedResponse)
def get_notifications(
    request: Request,
    owner_id: str = Query(..., min_length=1, description="Owner identifier"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Scheduled-transaction notifications around today.

    Returns:
        Feed ordered by projected date (most recent first) with the unread count
    """
    start_time = time.time()
    request_id = get_request_id(request)

    feed = load_feed(db, owner_id, now, request_id)
    unread = unread_count(feed)

    duration_ms = (time.time() - start_time) * 1000
    record_feed(len(feed), unread)
    log_feed(request_id, owner_id, len(feed), unread, duration_ms)

    return NotificationFeedResponse(
        owner_id=owner_id,
        unread_count=unread,
        notifications=[_to_schema(n) for n in feed],
    )


@router.post("/notifications/read", response_model=MarkReadResponse)
def mark_notification_read(
    request_body: MarkReadRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Mark one notification as read; repeating the call changes nothing"""
    request_id = get_request_id(request)
    tracker = ReadStateTracker(ReadStateRepository(db), request_body.owner_id)

    try:
        newly_marked = tracker.mark_read(request_body.notification_id)
        db.commit()
    except StorageError as e:
        db.rollback()
        record_storage_failure(e.operation)
        logging.error(f"Read-state save failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Read-state storage unavailable")

    if newly_marked:
        notifications_marked_read_counter.inc()
        log_marked_read(request_id, request_body.owner_id, 1)

    return MarkReadResponse(notification_id=request_body.notification_id, newly_marked=newly_marked)


@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    request_body: MarkAllReadRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Mark every notification in the current feed as read in one batch"""
    request_id = get_request_id(request)
    feed = load_feed(db, request_body.owner_id, now, request_id)
    tracker = ReadStateTracker(ReadStateRepository(db), request_body.owner_id)

    try:
        newly_read = tracker.mark_all_read(feed)
        read_ids = tracker.read_ids()
        db.commit()
    except StorageError as e:
        db.rollback()
        record_storage_failure(e.operation)
        logging.error(f"Read-state save failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Read-state storage unavailable")

    notifications_marked_read_counter.inc(len(newly_read))
    log_marked_read(request_id, request_body.owner_id, len(newly_read))

    refreshed = [replace(n, is_read=n.id in read_ids) for n in feed]
    return MarkAllReadResponse(marked_count=len(newly_read), unread_count=unread_count(refreshed))
