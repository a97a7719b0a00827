"""Data access layer for obligations, card purchases and notification read-state"""

from datetime import date
from typing import AbstractSet, List, Optional, Set, Tuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from cycle_projector.infrastructure.database.models import (
    CreditCardPurchaseRecord,
    CreditCardRecord,
    NotificationReadRecord,
    TransactionRecord,
)
from cycle_projector.domain.exceptions import StorageError
from cycle_projector.domain.models import CardPurchase, CreditCard, Recurrence, RecurringObligation


def _to_obligation(record: TransactionRecord) -> RecurringObligation:
    return RecurringObligation(
        id=record.id,
        anchor_date=record.date,
        amount_cents=record.amount_cents,
        recurrence=Recurrence.parse(record.recurrence_frequency),
        type=record.type,
        description=record.description or "",
        category=record.category,
        created_at=record.created_at,
    )


def _to_card(record: CreditCardRecord) -> CreditCard:
    return CreditCard(
        id=record.id,
        closing_date_day=record.closing_date_day,
        name=record.name,
        due_date_day=record.due_date_day,
    )


def _to_purchase(record: CreditCardPurchaseRecord) -> CardPurchase:
    return CardPurchase(
        id=record.id,
        card_id=record.card_id,
        purchase_date=record.date,
        total_cents=record.total_cents,
        installments=record.installments,
        description=record.description,
        category=record.category,
    )


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(
        self,
        owner_id: str,
        type: str,
        amount_cents: int,
        category: str,
        on: date,
        description: Optional[str] = None,
        recurrence: str = "none",
    ) -> TransactionRecord:
        """Persist a transaction; recurrence is stored as given"""
        record = TransactionRecord(
            owner_id=owner_id,
            type=type,
            amount_cents=amount_cents,
            category=category,
            description=description,
            date=on,
            recurrence_frequency=recurrence,
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def list_obligations_for_owner(self, owner_id: str) -> List[RecurringObligation]:
        """
        Fetch every transaction of an owner as a domain obligation.

        Raises:
            StorageError: On database failure
        """
        try:
            records = (
                self.db.query(TransactionRecord)
                .filter(TransactionRecord.owner_id == owner_id)
                .order_by(TransactionRecord.date.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise StorageError("list_obligations", str(e)) from e
        return [_to_obligation(r) for r in records]


class CardRepository:
    """Repository for credit cards and their purchases"""

    def __init__(self, db: Session):
        self.db = db

    def create_card(
        self,
        owner_id: str,
        name: str,
        closing_date_day: int,
        due_date_day: int,
        limit_cents: int = 0,
    ) -> CreditCardRecord:
        record = CreditCardRecord(
            owner_id=owner_id,
            name=name,
            closing_date_day=closing_date_day,
            due_date_day=due_date_day,
            limit_cents=limit_cents,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def create_purchase(
        self,
        owner_id: str,
        card_id: str,
        on: date,
        total_cents: int,
        installments: int,
        description: str,
        category: str,
    ) -> CreditCardPurchaseRecord:
        record = CreditCardPurchaseRecord(
            owner_id=owner_id,
            card_id=card_id,
            date=on,
            total_cents=total_cents,
            installments=installments,
            description=description,
            category=category,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get_card(self, owner_id: str, card_id: str) -> Optional[CreditCard]:
        """Fetch one card, scoped to its owner"""
        try:
            record = (
                self.db.query(CreditCardRecord)
                .filter(CreditCardRecord.id == card_id, CreditCardRecord.owner_id == owner_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise StorageError("get_card", str(e)) from e
        return _to_card(record) if record else None

    def list_purchases_for_owner(
        self,
        owner_id: str,
        card_id: Optional[str] = None,
    ) -> List[Tuple[CardPurchase, CreditCard]]:
        """
        Fetch an owner's purchases paired with the card they were made on.

        Raises:
            StorageError: On database failure
        """
        try:
            query = (
                self.db.query(CreditCardPurchaseRecord, CreditCardRecord)
                .join(CreditCardRecord, CreditCardPurchaseRecord.card_id == CreditCardRecord.id)
                .filter(CreditCardPurchaseRecord.owner_id == owner_id)
            )
            if card_id is not None:
                query = query.filter(CreditCardRecord.id == card_id)
            rows = query.order_by(CreditCardPurchaseRecord.date.asc()).all()
        except SQLAlchemyError as e:
            raise StorageError("list_purchases", str(e)) from e
        return [(_to_purchase(p), _to_card(c)) for p, c in rows]


class ReadStateRepository:
    """Read-set persistence: one row per (owner, notification id)"""

    def __init__(self, db: Session):
        self.db = db

    def load_read_ids(self, owner_id: str) -> Set[str]:
        try:
            rows = (
                self.db.query(NotificationReadRecord.notification_id)
                .filter(NotificationReadRecord.owner_id == owner_id)
                .all()
            )
        except SQLAlchemyError as e:
            raise StorageError("load_read_ids", str(e)) from e
        return {row.notification_id for row in rows}

    def save_read_ids(self, owner_id: str, read_ids: AbstractSet[str]) -> None:
        """Insert the ids the owner has not read yet; existing rows are kept"""
        if not read_ids:
            return
        try:
            for notification_id in sorted(set(read_ids) - self._existing_ids(owner_id, read_ids)):
                self._insert_once(owner_id, notification_id)
        except SQLAlchemyError as e:
            raise StorageError("save_read_ids", str(e)) from e

    def _existing_ids(self, owner_id: str, read_ids: AbstractSet[str]) -> Set[str]:
        return {
            row.notification_id
            for row in self.db.query(NotificationReadRecord.notification_id).filter(
                NotificationReadRecord.owner_id == owner_id,
                NotificationReadRecord.notification_id.in_(list(read_ids)),
            )
        }

    def _insert_once(self, owner_id: str, notification_id: str) -> None:
        # A concurrent writer may insert the same row after the existence check
        savepoint = self.db.begin_nested()
        try:
            self.db.add(NotificationReadRecord(owner_id=owner_id, notification_id=notification_id))
            self.db.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
