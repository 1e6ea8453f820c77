"""Модель расчётного листка."""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from domain.entities.base import Base, JSONType, Money


class PayrollSlip(Base):
    """
    Расчётный листок сотрудника за период.

    Создаётся и пересоздаётся только пока период в DRAFT (целиком, всем набором).
    После выхода периода из DRAFT - неизменяемая историческая запись.
    """

    __tablename__ = "payroll_slips"
    __table_args__ = (
        UniqueConstraint("period_id", "employee_id", name="uq_payroll_slips_period_employee"),
    )

    id = Column(Integer, primary_key=True, index=True)
    period_id = Column(Integer, ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    company_id = Column(Integer, nullable=False, index=True)

    # Начисления
    base_salary = Column(Money, nullable=False)
    allowances = Column(Money, nullable=False)  # Сумма надбавок
    overtime_pay = Column(Money, nullable=False)
    bonus = Column(Money, nullable=False)
    other_income = Column(Money, nullable=False)
    gross_pay = Column(Money, nullable=False)

    # Удержания
    labor_insurance = Column(Money, nullable=False)
    health_insurance = Column(Money, nullable=False)
    labor_pension = Column(Money, nullable=False)  # Добровольные отчисления сотрудника
    income_tax = Column(Money, nullable=False)
    other_deduction = Column(Money, nullable=False)
    total_deduction = Column(Money, nullable=False)

    # К выплате (может быть отрицательным)
    net_pay = Column(Money, nullable=False)

    # Расходы работодателя (в net_pay не входят, для отчётов)
    employer_labor_insurance = Column(Money, nullable=False, default=0)
    employer_health_insurance = Column(Money, nullable=False, default=0)
    employer_pension = Column(Money, nullable=False, default=0)

    overtime_details = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    period = relationship("PayrollPeriod", back_populates="slips")

    def __repr__(self) -> str:
        return f"<PayrollSlip(period_id={self.period_id}, employee_id={self.employee_id}, net_pay={self.net_pay})>"
