"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional


class NotificationSchema(BaseModel):
    """Projected occurrence of a recurring transaction"""

    id: str
    kind: str
    related_id: str
    projected_date: date
    is_past: bool
    is_read: bool
    amount_cents: int
    message: str


class NotificationFeedResponse(BaseModel):
    """Response for GET /v1/notifications"""

    owner_id: str
    unread_count: int
    notifications: List[NotificationSchema]


class MarkReadRequest(BaseModel):
    """Request body for POST /v1/notifications/read"""

    owner_id: str = Field(..., min_length=1, description="Owner identifier")
    notification_id: str = Field(..., min_length=1, description="Notification identifier")


class MarkReadResponse(BaseModel):
    notification_id: str
    newly_marked: bool


class MarkAllReadRequest(BaseModel):
    """Request body for POST /v1/notifications/read-all"""

    owner_id: str = Field(..., min_length=1, description="Owner identifier")


class MarkAllReadResponse(BaseModel):
    marked_count: int
    unread_count: int


class AllocationSchema(BaseModel):
    """One installment billed on an invoice"""

    purchase_id: str
    installment_index: int
    installment_count: int
    amount_cents: int


class InvoiceSummarySchema(BaseModel):
    """Installments billed on one card in one monthly cycle"""

    cycle_year: int
    cycle_month: int
    total_cents: int
    installments: List[AllocationSchema]


class InvoiceListResponse(BaseModel):
    """Response for GET /v1/cards/{card_id}/invoices"""

    card_id: str
    invoices: List[InvoiceSummarySchema]


class CurrentInvoiceResponse(BaseModel):
    """Response for GET /v1/cards/{card_id}/invoices/current"""

    card_id: str
    closing_date_day: int
    current_total_cents: int
    next_total_cents: int
    open_period_start: date
    open_period_end: date


class CardCycleTotalSchema(BaseModel):
    card_id: str
    previous_total_cents: int
    current_total_cents: int


class OwnerInvoiceSummaryResponse(BaseModel):
    """Response for GET /v1/cards/invoices/summary"""

    owner_id: str
    previous_cycle: str = Field(..., description="YYYY-MM of the invoices closed last month")
    current_cycle: str = Field(..., description="YYYY-MM of the invoices closing this month")
    previous_total_cents: int
    current_total_cents: int
    cards: List[CardCycleTotalSchema]


class SubscriptionSchema(BaseModel):
    """Recurring expense with this month's payment status"""

    id: str
    description: str
    category: str
    amount_cents: int
    recurrence: str
    last_payment_date: Optional[date] = None
    expected_payment_date: Optional[date] = None
    paid_this_month: bool


class SubscriptionsResponse(BaseModel):
    """Response for GET /v1/subscriptions"""

    owner_id: str
    subscriptions: List[SubscriptionSchema]
