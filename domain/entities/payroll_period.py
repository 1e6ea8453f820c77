"""Модель расчётного периода."""

import enum

from sqlalchemy import Column, Integer, DateTime, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from domain.entities.base import Base


class PayrollPeriodStatus(enum.Enum):
    """Статусы периода. Переходы только вперёд."""
    DRAFT = "DRAFT"  # Черновик
    CALCULATED = "CALCULATED"  # Рассчитан
    APPROVED = "APPROVED"  # Утверждён
    PAID = "PAID"  # Выплачен


class PayrollPeriod(Base):
    """Расчётный период компании за календарный месяц."""

    __tablename__ = "payroll_periods"
    __table_args__ = (
        UniqueConstraint("company_id", "year", "month", name="uq_payroll_periods_company_year_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)

    status = Column(
        Enum(PayrollPeriodStatus, name="payroll_period_status"),
        default=PayrollPeriodStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Кто и когда переводил период по статусам
    calculated_at = Column(DateTime(timezone=True), nullable=True)
    calculated_by = Column(Integer, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(Integer, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    paid_by = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    slips = relationship(
        "PayrollSlip",
        back_populates="period",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PayrollSlip.employee_id",
    )

    def __repr__(self) -> str:
        return (
            f"<PayrollPeriod(id={self.id}, company_id={self.company_id}, "
            f"{self.year}-{self.month:02d}, status={self.status.value if self.status else None})>"
        )
