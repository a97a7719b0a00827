"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from cycle_projector.domain.calendar import PeriodUnit


class Recurrence(str, Enum):
    """How often a recurring transaction repeats"""

    NONE = "none"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ANNUALLY = "annually"

    @classmethod
    def parse(cls, value: object) -> "Recurrence":
        """Lenient parse: missing or unrecognised values mean no recurrence"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NONE

    @property
    def unit(self) -> Optional[PeriodUnit]:
        return {
            Recurrence.WEEKLY: PeriodUnit.WEEK,
            Recurrence.MONTHLY: PeriodUnit.MONTH,
            Recurrence.ANNUALLY: PeriodUnit.YEAR,
        }.get(self)


@dataclass(frozen=True)
class RecurringObligation:
    """Transaction that repeats from its anchor date"""

    id: str
    anchor_date: date
    amount_cents: int
    recurrence: Recurrence
    type: str = "expense"  # "income" or "expense"
    description: str = ""
    category: str = ""
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CreditCard:
    """Card whose billing cycle closes on a fixed day of the month"""

    id: str
    closing_date_day: int  # 1-31
    name: str = ""
    due_date_day: Optional[int] = None


@dataclass(frozen=True)
class CardPurchase:
    """Purchase split into equal monthly installments"""

    id: str
    card_id: str
    purchase_date: date
    total_cents: int
    installments: int
    description: str = ""
    category: str = ""


@dataclass(frozen=True)
class Occurrence:
    """One projected calendar instance of a recurring obligation"""

    obligation_id: str
    projected_date: date
    is_past: bool


@dataclass(frozen=True)
class CycleAllocation:
    """One installment assigned to a monthly invoice"""

    card_id: str
    purchase_id: str
    cycle_month: int  # 1-12
    cycle_year: int
    installment_index: int  # 1-based
    installment_count: int
    installment_amount_cents: int

    @property
    def cycle(self) -> tuple[int, int]:
        """Sortable (year, month) key"""
        return self.cycle_year, self.cycle_month


@dataclass
class InvoiceSummary:
    """Installments billed on one card in one cycle"""

    card_id: str
    cycle_year: int
    cycle_month: int
    total_cents: int = 0
    allocations: List[CycleAllocation] = field(default_factory=list)


@dataclass(frozen=True)
class InvoicePeriod:
    """Purchase dates covered by an invoice: after start, up to and including end"""

    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start < day <= self.end


@dataclass(frozen=True)
class Notification:
    """Projected occurrence annotated with its identity and read state"""

    id: str
    kind: str
    obligation_id: str
    projected_date: date
    is_past: bool
    is_read: bool
    amount_cents: int = 0
    message: str = ""
    created_at: Optional[datetime] = None
