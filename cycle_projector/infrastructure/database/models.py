"""SQLAlchemy ORM models for the records the projection engine reads"""

import uuid
from sqlalchemy import Column, String, BigInteger, DateTime, Date, Integer, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class TransactionRecord(Base):
    """Income or expense, optionally repeating from its date"""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    category = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    recurrence_frequency = Column(Text, nullable=False, default="none")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CreditCardRecord(Base):
    """Credit card with its monthly closing day"""

    __tablename__ = "credit_cards"
    __table_args__ = (
        CheckConstraint("closing_date_day >= 1 AND closing_date_day <= 31", name="ck_closing_date_day"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    limit_cents = Column(BigInteger, nullable=False, default=0)
    due_date_day = Column(Integer, nullable=False)
    closing_date_day = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    purchases = relationship("CreditCardPurchaseRecord", back_populates="card", cascade="all, delete-orphan")


class CreditCardPurchaseRecord(Base):
    """Card purchase split into monthly installments"""

    __tablename__ = "credit_card_purchases"
    __table_args__ = (
        CheckConstraint("installments >= 1", name="ck_installments_positive"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(Text, nullable=False, index=True)
    card_id = Column(String(36), ForeignKey("credit_cards.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    total_cents = Column(BigInteger, nullable=False)
    installments = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    card = relationship("CreditCardRecord", back_populates="purchases")


class NotificationReadRecord(Base):
    """One acknowledged notification id; the owner's rows form its read-set"""

    __tablename__ = "notification_reads"

    owner_id = Column(Text, primary_key=True)
    notification_id = Column(Text, primary_key=True)
    read_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
