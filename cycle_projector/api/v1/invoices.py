"""Card invoices: per-card billing cycles and totals across all of an owner's cards"""

import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from cycle_projector.api.v1.schemas import (
    AllocationSchema,
    CardCycleTotalSchema,
    CurrentInvoiceResponse,
    InvoiceListResponse,
    InvoiceSummarySchema,
    OwnerInvoiceSummaryResponse,
)
from cycle_projector.api.dependencies import get_now, get_request_id
from cycle_projector.domain.billing import (
    invoice_total,
    open_invoice_period,
    summaries_from_previous_month,
    summarize_by_cycle,
    totals_across_cards,
)
from cycle_projector.domain.exceptions import CardNotFoundError, StorageError
from cycle_projector.infrastructure.database.session import get_db
from cycle_projector.infrastructure.database.repositories import CardRepository
from cycle_projector.infrastructure.observability.metrics import record_storage_failure
from cycle_projector.utils.date_utils import shift_month, start_of_day

router = APIRouter()


def _load_card(repo: CardRepository, owner_id: str, card_id: str):
    card = repo.get_card(owner_id, card_id)
    if card is None:
        raise CardNotFoundError(f"Card {card_id} not found")
    return card


@router.get("/cards/invoices/summary", response_model=OwnerInvoiceSummaryResponse)
def get_owner_invoice_summary(
    request: Request,
    owner_id: str = Query(..., min_length=1, description="Owner identifier"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Invoice totals across all of the owner's cards.

    previous: invoices that closed last month and are paid this month.
    current: invoices closing this month.
    """
    try:
        purchases = CardRepository(db).list_purchases_for_owner(owner_id)
    except StorageError as e:
        record_storage_failure(e.operation)
        logging.error(f"Card storage error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Card storage unavailable")

    today = start_of_day(now)
    previous_year, previous_month = shift_month(today.year, today.month, -1)
    previous = totals_across_cards(purchases, previous_year, previous_month)
    current = totals_across_cards(purchases, today.year, today.month)

    return OwnerInvoiceSummaryResponse(
        owner_id=owner_id,
        previous_cycle=f"{previous_year:04d}-{previous_month:02d}",
        current_cycle=f"{today.year:04d}-{today.month:02d}",
        previous_total_cents=sum(previous.values()),
        current_total_cents=sum(current.values()),
        cards=[
            CardCycleTotalSchema(
                card_id=card_id,
                previous_total_cents=previous[card_id],
                current_total_cents=current[card_id],
            )
            for card_id in current
        ],
    )


@router.get("/cards/{card_id}/invoices", response_model=InvoiceListResponse)
def get_card_invoices(
    card_id: str,
    request: Request,
    owner_id: str = Query(..., min_length=1, description="Owner identifier"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Monthly invoices of one card, from last month onwards.

    Returns:
        One entry per billing cycle with its total and the installments it bills
    """
    repo = CardRepository(db)
    try:
        _load_card(repo, owner_id, card_id)
        purchases = repo.list_purchases_for_owner(owner_id, card_id=card_id)
    except CardNotFoundError:
        raise HTTPException(status_code=404, detail="Card not found")
    except StorageError as e:
        record_storage_failure(e.operation)
        logging.error(f"Card storage error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Card storage unavailable")

    summaries = summaries_from_previous_month(summarize_by_cycle(purchases), start_of_day(now))

    return InvoiceListResponse(
        card_id=card_id,
        invoices=[
            InvoiceSummarySchema(
                cycle_year=s.cycle_year,
                cycle_month=s.cycle_month,
                total_cents=s.total_cents,
                installments=[
                    AllocationSchema(
                        purchase_id=a.purchase_id,
                        installment_index=a.installment_index,
                        installment_count=a.installment_count,
                        amount_cents=a.installment_amount_cents,
                    )
                    for a in s.allocations
                ],
            )
            for s in summaries
        ],
    )


@router.get("/cards/{card_id}/invoices/current", response_model=CurrentInvoiceResponse)
def get_current_invoice(
    card_id: str,
    request: Request,
    owner_id: str = Query(..., min_length=1, description="Owner identifier"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Totals of this month's and next month's invoices plus the open purchase period"""
    repo = CardRepository(db)
    try:
        card = _load_card(repo, owner_id, card_id)
        purchases = [p for p, _ in repo.list_purchases_for_owner(owner_id, card_id=card_id)]
    except CardNotFoundError:
        raise HTTPException(status_code=404, detail="Card not found")
    except StorageError as e:
        record_storage_failure(e.operation)
        logging.error(f"Card storage error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Card storage unavailable")

    today = start_of_day(now)
    next_year, next_month = shift_month(today.year, today.month, 1)
    period = open_invoice_period(card, today)

    return CurrentInvoiceResponse(
        card_id=card.id,
        closing_date_day=card.closing_date_day,
        current_total_cents=invoice_total(card, purchases, today.year, today.month),
        next_total_cents=invoice_total(card, purchases, next_year, next_month),
        open_period_start=period.start,
        open_period_end=period.end,
    )
