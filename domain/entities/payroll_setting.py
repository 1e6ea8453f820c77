"""Модель настроек расчёта зарплаты компании."""

from decimal import Decimal

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.sql import func
from domain.entities.base import Base, Money, Rate


class PayrollSetting(Base):
    """Ставки страховых взносов, коэффициенты сверхурочных и пороги компании (одна запись на компанию)."""

    __tablename__ = "payroll_settings"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, unique=True, index=True)

    # Страхование труда
    labor_insurance_rate = Column(Rate, nullable=False)
    labor_insurance_emp_share = Column(Rate, nullable=False)
    labor_insurance_employer_share = Column(Rate, nullable=False, default=Decimal("0.7"))

    # Медицинское страхование
    health_insurance_rate = Column(Rate, nullable=False)
    health_insurance_emp_share = Column(Rate, nullable=False)
    health_insurance_employer_share = Column(Rate, nullable=False, default=Decimal("0.6"))
    health_insurance_avg_dependents = Column(Rate, nullable=False, default=Decimal("0.61"))
    health_insurance_max_dependents = Column(Integer, nullable=True)  # NULL - без ограничения

    # Пенсионные отчисления работодателя
    labor_pension_rate = Column(Rate, nullable=False)

    # Коэффициенты сверхурочных
    overtime_rate_1 = Column(Rate, nullable=False)  # первые часы в рабочий день
    overtime_rate_2 = Column(Rate, nullable=False)  # сверх первых часов
    overtime_rate_holiday = Column(Rate, nullable=False)  # выходные и праздники

    minimum_wage = Column(Money, nullable=False)
    withholding_threshold = Column(Money, nullable=False)  # Порог удержания налога у источника

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<PayrollSetting(company_id={self.company_id})>"
