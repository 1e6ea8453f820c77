"""Модель разовых сумм сотрудника за период."""

from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint
from domain.entities.base import Base, Money


class PayrollPeriodInput(Base):
    """Премия, прочий доход и прочее удержание сотрудника в конкретном периоде."""

    __tablename__ = "payroll_period_inputs"
    __table_args__ = (
        UniqueConstraint("period_id", "employee_id", name="uq_payroll_period_inputs_period_employee"),
    )

    id = Column(Integer, primary_key=True, index=True)
    period_id = Column(Integer, ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, nullable=False)

    bonus = Column(Money, nullable=False, default=0)
    other_income = Column(Money, nullable=False, default=0)
    other_deduction = Column(Money, nullable=False, default=0)
    note = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<PayrollPeriodInput(period_id={self.period_id}, employee_id={self.employee_id})>"
