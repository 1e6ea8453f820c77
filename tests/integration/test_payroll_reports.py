"""
Интеграционные тесты отчётов по зарплате
"""
import pytest
import pytest_asyncio
from datetime import date

from domain.entities.payroll_period import PayrollPeriodStatus
from domain.exceptions import ValidationError
from shared.services.payroll_report_service import PayrollReportService
from shared.services.period_settlement_orchestrator import PeriodSettlementOrchestrator
from shared.services.salary_profile_service import SalaryProfileService
from tests.utils.payroll_helpers import COMPANY_ID, YEAR


@pytest_asyncio.fixture
async def calculated_periods(store, seeded_grades, company_setting):
    """Март и апрель рассчитаны, май остаётся черновиком."""
    profiles = SalaryProfileService(store)
    await profiles.upsert_profile(101, COMPANY_ID, "36000", date(YEAR, 1, 1))
    await profiles.upsert_profile(102, COMPANY_ID, "52000", date(YEAR, 1, 1))

    orchestrator = PeriodSettlementOrchestrator(store)
    periods = {}
    for month in (3, 4, 5):
        periods[month] = await orchestrator.create_period(COMPANY_ID, YEAR, month)
    await orchestrator.calculate_period(periods[3].id, operator_id=1)
    await orchestrator.calculate_period(periods[4].id, operator_id=1)
    await orchestrator.approve(periods[4].id, operator_id=1)
    return periods


class TestSummaryReport:
    """Тесты сводного отчёта."""

    @pytest.mark.asyncio
    async def test_drafts_excluded(self, store, calculated_periods):
        report = await PayrollReportService(store).summary_report(COMPANY_ID, YEAR)

        assert [summary.month for summary in report.periods] == [3, 4]
        assert report.periods[1].status == PayrollPeriodStatus.APPROVED

    @pytest.mark.asyncio
    async def test_totals_match_slips(self, store, calculated_periods):
        report = await PayrollReportService(store).summary_report(COMPANY_ID, YEAR, month=3)
        slips = await store.list_slips(calculated_periods[3].id)

        (summary,) = report.periods
        assert summary.employee_count == 2
        assert summary.total_gross_pay == sum(slip.gross_pay for slip in slips)
        assert summary.total_net_pay == sum(slip.net_pay for slip in slips)
        assert summary.total_gross_pay - summary.total_deduction == summary.total_net_pay
        assert summary.total_employer_cost == (
            summary.total_gross_pay
            + sum(slip.employer_labor_insurance + slip.employer_health_insurance + slip.employer_pension
                  for slip in slips)
        )
        assert report.total_net_pay == summary.total_net_pay

    @pytest.mark.asyncio
    async def test_other_company_empty(self, store, calculated_periods):
        report = await PayrollReportService(store).summary_report(COMPANY_ID + 1, YEAR)

        assert report.periods == []
        assert report.total_gross_pay == 0

    @pytest.mark.asyncio
    async def test_bad_month_rejected(self, store):
        with pytest.raises(ValidationError):
            await PayrollReportService(store).summary_report(COMPANY_ID, YEAR, month=13)


class TestSlipHistory:

    @pytest.mark.asyncio
    async def test_newest_period_first(self, store, calculated_periods):
        history = await PayrollReportService(store).employee_slip_history(101, COMPANY_ID)

        assert [(item.year, item.month) for item in history] == [(YEAR, 4), (YEAR, 3)]
        assert history[0].status == PayrollPeriodStatus.APPROVED
        for item in history:
            assert item.gross_pay - item.total_deduction == item.net_pay
            assert item.calculated_at is not None

    @pytest.mark.asyncio
    async def test_year_filter(self, store, calculated_periods):
        service = PayrollReportService(store)

        assert await service.employee_slip_history(101, COMPANY_ID, year=YEAR - 1) == []
        assert len(await service.employee_slip_history(102, COMPANY_ID, year=YEAR)) == 2
