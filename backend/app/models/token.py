"""
Token balance and the append-only token transaction log.

Key design decisions:
- `tokens.balance` is the source of truth; the transaction log is history only
- CHECK (balance >= 0) backs the conditional debit in the service layer
- Transaction amounts are signed: usage rows are negative, every other kind
  positive. The sign is stored, not derived from `kind` at read time.
"""

from sqlalchemy import (
    Column, Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint, Index, func,
)

from app.db.base import Base, TimestampMixin, utcnow

TRANSACTION_KINDS = ("purchase", "usage", "refund", "admin_grant")


class TokenBalance(Base, TimestampMixin):
    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)
    balance = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("balance >= 0", name="check_token_balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<TokenBalance(user={self.user_id}, balance={self.balance})>"


class TokenTransaction(Base):
    __tablename__ = "token_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    kind = Column(String(20), nullable=False)
    amount = Column(Integer, nullable=False)
    cost = Column(Numeric(10, 2), nullable=True)
    reference_id = Column(String(255), nullable=True)
    reference_type = Column(String(100), nullable=True)
    payment_reference = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "kind IN ('purchase', 'usage', 'refund', 'admin_grant')",
            name="check_token_transaction_kind",
        ),
        CheckConstraint(
            "(kind = 'usage' AND amount < 0) OR (kind <> 'usage' AND amount > 0)",
            name="check_token_transaction_sign",
        ),
        Index("ix_token_transactions_user_created", "user_id", "created_at"),
        Index("ix_token_transactions_kind", "kind"),
    )

    def __repr__(self) -> str:
        return f"<TokenTransaction(id={self.id}, user={self.user_id}, kind={self.kind}, amount={self.amount})>"
