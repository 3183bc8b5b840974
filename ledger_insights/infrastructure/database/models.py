"""SQLAlchemy ORM models for the transaction and category tables the engine reads"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Numeric, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


class CategoryRecord(Base):
    """User-defined spending or income category"""

    __tablename__ = "categories"

    id = Column(Text, primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(Text, nullable=False, default="EXPENSE")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship("TransactionRecord", back_populates="category")


class TransactionRecord(Base):
    """Logged income, expense or transfer"""

    __tablename__ = "transactions"

    id = Column(Text, primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    category_id = Column(Text, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    description = Column(Text, nullable=False)
    merchant = Column(Text, nullable=True)
    type = Column(Text, nullable=False)  # INCOME | EXPENSE | TRANSFER
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    category = relationship("CategoryRecord", back_populates="transactions")
