"""Отчёты по рассчитанным периодам."""

from __future__ import annotations

from typing import List, Optional

from core.logging.logger import logger
from core.utils.money import to_decimal
from domain.entities.payroll_period import PayrollPeriodStatus
from domain.exceptions import ValidationError
from shared.models.payroll_report import PeriodSummary, SlipHistoryItem, SummaryReport
from shared.services.payroll_store.base import PayrollStore

# Черновики в отчёты не попадают: у них нет листков
REPORTED_STATUSES = (
    PayrollPeriodStatus.CALCULATED,
    PayrollPeriodStatus.APPROVED,
    PayrollPeriodStatus.PAID,
)

SUMMED_FIELDS = {
    "total_gross_pay": "gross_pay",
    "total_deduction": "total_deduction",
    "total_net_pay": "net_pay",
    "total_labor_insurance": "labor_insurance",
    "total_health_insurance": "health_insurance",
    "total_labor_pension": "labor_pension",
    "total_income_tax": "income_tax",
    "total_employer_labor_insurance": "employer_labor_insurance",
    "total_employer_health_insurance": "employer_health_insurance",
    "total_employer_pension": "employer_pension",
}


class PayrollReportService:
    """Сводные итоги компании и история листков сотрудника."""

    def __init__(self, store: PayrollStore):
        self.store = store

    async def summary_report(self, company_id: int, year: int, month: Optional[int] = None) -> SummaryReport:
        """Итоги по каждому рассчитанному/утверждённому/выплаченному периоду, по возрастанию месяца."""
        if month is not None and not 1 <= month <= 12:
            raise ValidationError("Месяц должен быть в диапазоне 1..12", month=month)

        periods = await self.store.list_periods(company_id, year=year, month=month, statuses=REPORTED_STATUSES)
        report = SummaryReport(company_id=company_id, year=year, month=month)

        for period in periods:
            slips = await self.store.list_slips(period.id)
            summary = PeriodSummary(
                period_id=period.id,
                year=period.year,
                month=period.month,
                status=period.status,
                employee_count=len(slips),
            )
            for total_name, slip_field in SUMMED_FIELDS.items():
                total = sum((to_decimal(getattr(slip, slip_field)) for slip in slips), getattr(summary, total_name))
                setattr(summary, total_name, total)
            report.periods.append(summary)

        logger.debug(
            "Сводный отчёт сформирован",
            company_id=company_id,
            year=year,
            month=month,
            period_count=len(report.periods),
        )
        return report

    async def employee_slip_history(
        self, employee_id: int, company_id: int, year: Optional[int] = None
    ) -> List[SlipHistoryItem]:
        """Листки сотрудника, новые периоды первыми."""
        rows = await self.store.list_employee_slips(employee_id, company_id, year)
        return [
            SlipHistoryItem(
                period_id=period.id,
                year=period.year,
                month=period.month,
                status=period.status,
                gross_pay=to_decimal(slip.gross_pay),
                total_deduction=to_decimal(slip.total_deduction),
                net_pay=to_decimal(slip.net_pay),
                overtime_pay=to_decimal(slip.overtime_pay),
                income_tax=to_decimal(slip.income_tax),
                calculated_at=period.calculated_at,
            )
            for slip, period in rows
        ]
