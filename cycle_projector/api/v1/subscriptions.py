"""GET /v1/subscriptions - Recurring expenses and whether this month's payment is due yet"""

import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from cycle_projector.api.v1.schemas import SubscriptionSchema, SubscriptionsResponse
from cycle_projector.api.dependencies import get_now, get_request_id
from cycle_projector.domain.exceptions import StorageError
from cycle_projector.domain.models import Recurrence
from cycle_projector.domain.occurrences import expected_occurrence_in_month, latest_occurrence_in_month
from cycle_projector.infrastructure.database.session import get_db
from cycle_projector.infrastructure.database.repositories import TransactionRepository
from cycle_projector.infrastructure.observability.metrics import record_storage_failure
from cycle_projector.utils.date_utils import start_of_day

router = APIRouter()


@router.get("/subscriptions", response_model=SubscriptionsResponse)
def get_subscriptions(
    request: Request,
    owner_id: str = Query(..., min_length=1, description="Owner identifier"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Recurring expenses sorted by category, then description.

    expected_payment_date is this month's payment, past or still due;
    paid_this_month is set once it has landed (today included).
    """
    try:
        obligations = TransactionRepository(db).list_obligations_for_owner(owner_id)
    except StorageError as e:
        record_storage_failure(e.operation)
        logging.error(f"Obligation listing failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Transaction storage unavailable")

    recurring_expenses = sorted(
        (o for o in obligations if o.type == "expense" and o.recurrence is not Recurrence.NONE),
        key=lambda o: (o.category, o.description),
    )

    today = start_of_day(now)
    subscriptions = []
    for expense in recurring_expenses:
        latest = latest_occurrence_in_month(expense, now)
        expected = expected_occurrence_in_month(expense, now)
        subscriptions.append(
            SubscriptionSchema(
                id=expense.id,
                description=expense.description,
                category=expense.category,
                amount_cents=expense.amount_cents,
                recurrence=expense.recurrence.value,
                last_payment_date=latest.projected_date if latest else None,
                expected_payment_date=expected.projected_date if expected else None,
                paid_this_month=expected is not None and expected.projected_date <= today,
            )
        )

    return SubscriptionsResponse(owner_id=owner_id, subscriptions=subscriptions)
