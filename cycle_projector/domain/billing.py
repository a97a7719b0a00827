"""Credit card billing cycles - which invoice each installment lands on"""

from datetime import date
from typing import Dict, Iterable, Iterator, List, Tuple

from cycle_projector.domain.installments import split_installments
from cycle_projector.domain.models import (
    CardPurchase,
    CreditCard,
    CycleAllocation,
    InvoicePeriod,
    InvoiceSummary,
)
from cycle_projector.utils.date_utils import last_day_of_month, shift_month


def first_billing_cycle(purchase_date: date, closing_date_day: int) -> Tuple[int, int]:
    """
    (year, month) of the invoice that bills the first installment.

    A purchase made after the closing day misses that month's invoice and rolls
    to the next one. Plain day-of-month comparison: a closing day of 31 is
    valid in every month, short or not.
    """
    shift = 1 if purchase_date.day > closing_date_day else 0
    return shift_month(purchase_date.year, purchase_date.month, shift)


def allocate(purchase: CardPurchase, card: CreditCard) -> Iterator[CycleAllocation]:
    """
    Yield one allocation per installment, in consecutive monthly cycles.

    Example:
        300.00 in 3x on 2024-06-20, closing day 15
        -> (2024, 7), (2024, 8), (2024, 9), 100.00 each
    """
    year, month = first_billing_cycle(purchase.purchase_date, card.closing_date_day)
    amounts = split_installments(purchase.total_cents, purchase.installments)

    for offset, amount in enumerate(amounts):
        cycle_year, cycle_month = shift_month(year, month, offset)
        yield CycleAllocation(
            card_id=card.id,
            purchase_id=purchase.id,
            cycle_month=cycle_month,
            cycle_year=cycle_year,
            installment_index=offset + 1,
            installment_count=len(amounts),
            installment_amount_cents=amount,
        )


def summarize_by_cycle(
    purchases: Iterable[Tuple[CardPurchase, CreditCard]],
) -> List[InvoiceSummary]:
    """Group allocations by (card, year, month), oldest cycle first"""
    summaries: Dict[Tuple[str, int, int], InvoiceSummary] = {}

    for purchase, card in purchases:
        for allocation in allocate(purchase, card):
            key = (card.id, allocation.cycle_year, allocation.cycle_month)
            summary = summaries.get(key)
            if summary is None:
                summary = InvoiceSummary(
                    card_id=card.id,
                    cycle_year=allocation.cycle_year,
                    cycle_month=allocation.cycle_month,
                )
                summaries[key] = summary

            summary.total_cents += allocation.installment_amount_cents
            summary.allocations.append(allocation)

    return sorted(summaries.values(), key=lambda s: (s.cycle_year, s.cycle_month, s.card_id))


def invoice_total(
    card: CreditCard,
    purchases: Iterable[CardPurchase],
    year: int,
    month: int,
) -> int:
    """Total billed on one card's invoice for the given cycle"""
    return sum(
        allocation.installment_amount_cents
        for purchase in purchases
        if purchase.card_id == card.id
        for allocation in allocate(purchase, card)
        if allocation.cycle == (year, month)
    )


def open_invoice_period(card: CreditCard, today: date) -> InvoicePeriod:
    """
    Purchase dates that fall on the invoice still open today.

    Before or on the closing day, the open invoice runs from last month's
    closing date to this month's; after it, from this month's to next month's.
    Closing days past a month's end are clamped to its last day.
    """
    if today.day > card.closing_date_day:
        start_offset, end_offset = 0, 1
    else:
        start_offset, end_offset = -1, 0

    return InvoicePeriod(
        start=_closing_date(card, today, start_offset),
        end=_closing_date(card, today, end_offset),
    )


def _closing_date(card: CreditCard, today: date, month_offset: int) -> date:
    year, month = shift_month(today.year, today.month, month_offset)
    return date(year, month, min(card.closing_date_day, last_day_of_month(year, month)))


def summaries_from_previous_month(
    summaries: Iterable[InvoiceSummary],
    today: date,
) -> List[InvoiceSummary]:
    """Drop cycles older than last month; the current and future ones stay"""
    earliest = shift_month(today.year, today.month, -1)
    return [s for s in summaries if (s.cycle_year, s.cycle_month) >= earliest]


def totals_across_cards(
    purchases: Iterable[Tuple[CardPurchase, CreditCard]],
    year: int,
    month: int,
) -> Dict[str, int]:
    """
    Per-card invoice totals for one cycle, every card the purchases touch.

    Cards are matched by id, so the same (year, month) key adds up across
    cards with different closing days.
    """
    cards: Dict[str, CreditCard] = {}
    by_card: Dict[str, List[CardPurchase]] = {}
    for purchase, card in purchases:
        cards[card.id] = card
        by_card.setdefault(card.id, []).append(purchase)

    return {
        card_id: invoice_total(cards[card_id], card_purchases, year, month)
        for card_id, card_purchases in sorted(by_card.items())
    }
