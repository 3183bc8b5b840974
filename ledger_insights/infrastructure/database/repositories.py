"""Read-only data access for the analytics engine"""

from datetime import date, datetime, time
from typing import List
from sqlalchemy.orm import Session, joinedload
from ledger_insights.infrastructure.database.models import CategoryRecord, TransactionRecord
from ledger_insights.domain.models import Category, Transaction


class TransactionRepository:
    """Repository for user transactions"""

    def __init__(self, db: Session):
        self.db = db

    def get_transactions_since(self, user_id: str, start_date: date) -> List[Transaction]:
        """Fetch a user's transactions on or after start_date, newest first"""
        records = (
            self.db.query(TransactionRecord)
            .options(joinedload(TransactionRecord.category))
            .filter(
                TransactionRecord.user_id == user_id,
                TransactionRecord.date >= datetime.combine(start_date, time.min),
            )
            .order_by(TransactionRecord.date.desc())
            .all()
        )
        return [self._to_domain(record) for record in records]

    @staticmethod
    def _to_domain(record: TransactionRecord) -> Transaction:
        return Transaction(
            transaction_id=record.id,
            date=record.date.date(),
            amount=float(record.amount),
            type=record.type,
            description=record.description,
            category_id=record.category_id,
            category_name=record.category.name if record.category else None,
            payee=record.merchant,
        )


class CategoryRepository:
    """Repository for user categories"""

    def __init__(self, db: Session):
        self.db = db

    def get_categories_by_user(self, user_id: str) -> List[Category]:
        """Fetch every category a user owns"""
        records = (
            self.db.query(CategoryRecord)
            .filter(CategoryRecord.user_id == user_id)
            .order_by(CategoryRecord.name)
            .all()
        )
        return [Category(category_id=r.id, name=r.name) for r in records]
