import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, DECIMAL, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from splitledger.db.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Group(Base):
    __tablename__ = "groups"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    name = Column(String(100), nullable=False, index=True)
    created_by = Column(String, nullable=False)  # Reference to user service (no FK constraint)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    members = relationship(
        "GroupMember",
        back_populates="group",
        order_by="GroupMember.position",
        cascade="all, delete-orphan",
    )
    expenses = relationship(
        "Expense",
        back_populates="group",
        order_by="Expense.created_at",
        cascade="all, delete-orphan",
    )

    @property
    def member_ids(self):
        return [member.user_id for member in self.members]


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_member"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)  # Reference to user service
    position = Column(Integer, nullable=False)  # Display order only
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    group = relationship("Group", back_populates="members")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(200), nullable=False)
    amount = Column(DECIMAL(10, 2), nullable=False)
    payer_id = Column(String, nullable=False, index=True)  # Member credited with fronting the amount
    date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    group = relationship("Group", back_populates="expenses")
    splits = relationship(
        "ExpenseSplit",
        back_populates="expense",
        order_by="ExpenseSplit.position",
        cascade="all, delete-orphan",
    )

    @property
    def is_paid(self) -> bool:
        """Derived: true once every split is paid"""
        return bool(self.splits) and all(split.is_paid for split in self.splits)


class ExpenseSplit(Base):
    __tablename__ = "expense_splits"
    __table_args__ = (UniqueConstraint("expense_id", "member_id", name="uq_expense_split_member"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(String, nullable=False, index=True)  # Reference to user service
    position = Column(Integer, nullable=False)
    share_amount = Column(DECIMAL(10, 2), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    settled_by = Column(String, nullable=True)

    expense = relationship("Expense", back_populates="splits")
