"""Модели данных для отчётов по зарплате."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from domain.entities.payroll_period import PayrollPeriodStatus

ZERO = Decimal("0")


@dataclass
class PeriodSummary:
    """Итоги одного рассчитанного периода."""

    period_id: int
    year: int
    month: int
    status: PayrollPeriodStatus
    employee_count: int = 0

    # Сотрудник
    total_gross_pay: Decimal = ZERO
    total_deduction: Decimal = ZERO
    total_net_pay: Decimal = ZERO
    total_labor_insurance: Decimal = ZERO
    total_health_insurance: Decimal = ZERO
    total_labor_pension: Decimal = ZERO
    total_income_tax: Decimal = ZERO

    # Работодатель
    total_employer_labor_insurance: Decimal = ZERO
    total_employer_health_insurance: Decimal = ZERO
    total_employer_pension: Decimal = ZERO

    @property
    def total_employer_cost(self) -> Decimal:
        """Начисления плюс взносы работодателя."""
        return (
            self.total_gross_pay
            + self.total_employer_labor_insurance
            + self.total_employer_health_insurance
            + self.total_employer_pension
        )


@dataclass
class SlipHistoryItem:
    """Листок сотрудника вместе с периодом, к которому он относится."""

    period_id: int
    year: int
    month: int
    status: PayrollPeriodStatus
    gross_pay: Decimal
    total_deduction: Decimal
    net_pay: Decimal
    overtime_pay: Decimal = ZERO
    income_tax: Decimal = ZERO
    calculated_at: Optional[datetime] = None


@dataclass
class SummaryReport:
    """Сводный отчёт компании за год (или месяц)."""

    company_id: int
    year: int
    month: Optional[int] = None
    periods: List[PeriodSummary] = field(default_factory=list)

    @property
    def total_net_pay(self) -> Decimal:
        return sum((period.total_net_pay for period in self.periods), ZERO)

    @property
    def total_gross_pay(self) -> Decimal:
        return sum((period.total_gross_pay for period in self.periods), ZERO)
